"""YAML/JSON patch documents.

Record patches can be stored as YAML (or JSON, which YAML reads as well)
documents in the plain-data form produced by ``patch_to_dict``::

    # person-patch.yaml
    age: 31
    address:
      city: Oslo

Loaded with ``load_patch(Person, "person-patch.yaml")`` this gives
``PersonPatch(name=None, age=Some(31), address=AddressPatch(city=Some("Oslo")))``.
"""

import logging
from io import StringIO
from pathlib import Path
from typing import Any, Optional, TextIO, Union

from ruamel.yaml import YAML

from patchable.core.derive import patch_type_of
from patchable.core.engine import apply_patch
from patchable.core.record import RecordPatch
from patchable.core.serialize import patch_from_dict, patch_to_dict

logger = logging.getLogger(__name__)


def _create_yaml_instance() -> YAML:
    """Create configured ruamel.yaml instance for patch documents.

    Returns:
        YAML instance configured to:
        - Load plain dicts and lists (safe loader)
        - Use block style (not flow style) when dumping
        - Not wrap long strings
    """
    yaml = YAML(typ="safe", pure=True)
    yaml.default_flow_style = False
    yaml.width = 4096
    yaml.allow_unicode = True
    return yaml


def loads_patch(patch_cls: type, text: str) -> RecordPatch:
    """Parse a record patch from YAML or JSON text.

    Args:
        patch_cls: Record patch type, or a patchable value class
        text: Document content; an empty document is an empty patch

    Returns:
        Record patch instance

    Raises:
        PatchDecodeError: If the document does not match the patch schema
    """
    data = _create_yaml_instance().load(text)
    return patch_from_dict(patch_cls, {} if data is None else data)


def load_patch(patch_cls: type, path: Union[str, Path]) -> RecordPatch:
    """Load a record patch from a YAML or JSON file.

    Args:
        patch_cls: Record patch type, or a patchable value class
        path: Path to the document

    Returns:
        Record patch instance
    """
    path = Path(path)
    patch = loads_patch(patch_cls, path.read_text(encoding="utf-8"))
    logger.info(f"Loaded {type(patch).__name__} from {path}")
    return patch


def dump_patch(patch: RecordPatch, stream: Optional[TextIO] = None) -> Optional[str]:
    """Write a record patch as a block-style YAML document.

    Args:
        patch: Record patch to write
        stream: Text stream to write to; if None the document is returned

    Returns:
        The document text when no stream was given, otherwise None
    """
    yaml = _create_yaml_instance()
    data = patch_to_dict(patch)
    if stream is not None:
        yaml.dump(data, stream)
        return None
    buffer = StringIO()
    yaml.dump(data, buffer)
    return buffer.getvalue()


def apply_document(target: Any, path: Union[str, Path]) -> Any:
    """Load the patch document at path for target's class and apply it.

    Args:
        target: Instance of a patchable dataclass
        path: Path to the patch document

    Returns:
        The same target, patched in place
    """
    return apply_patch(target, load_patch(patch_type_of(target), path))
