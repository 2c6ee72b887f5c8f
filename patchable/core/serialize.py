"""Plain-data form of record patches.

Record patches are serialized to nested dicts that only mention what changes:

Example::

    # PersonPatch(name=None, age=Some(31), address=AddressPatch(city=Some("Oslo")))
    {
      "age": 31,
      "address": {"city": "Oslo"}
    }

- Present replacements map to their value (dataclass values become dicts,
  enum members their values, tuples and sets lists)
- Absent replacements and empty nested patches are left out
- Sequence fields map to lists, with no-op elements dropped

Decoding is the inverse: a missing key is an absent patch, a present key is
``Some(value)``, even when the value is ``null``.
"""

import dataclasses
import logging
import types
import typing
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from patchable.core.derive import is_patchable, patch_type_of
from patchable.core.errors import PatchDecodeError
from patchable.core.record import RecordPatch
from patchable.core.schema.option import Some
from patchable.core.schema.patch import FieldShape, FieldSpec

logger = logging.getLogger(__name__)

_OMIT = object()


def patch_to_dict(patch: RecordPatch) -> Dict[str, Any]:
    """Serialize a record patch to a JSON/YAML-compatible dict.

    Args:
        patch: Record patch to serialize

    Returns:
        Dict holding only the fields that change something

    Raises:
        TypeError: If a nested patch is a hand-written patch type
    """
    result: Dict[str, Any] = {}
    for spec in type(patch).__patch_fields__:
        field_patch = getattr(patch, spec.name)
        if spec.shape is FieldShape.SEQUENCE:
            encoded = [
                item
                for item in (_encode_single(spec, element) for element in field_patch)
                if item is not _OMIT
            ]
            if encoded:
                result[spec.name] = encoded
        else:
            encoded = _encode_single(spec, field_patch)
            if encoded is not _OMIT:
                result[spec.name] = encoded
    return result


def patch_from_dict(
    patch_cls: type, data: Any, path: Tuple[Any, ...] = ()
) -> RecordPatch:
    """Deserialize a record patch from a dict produced by patch_to_dict().

    Args:
        patch_cls: Record patch type, or a patchable value class
        data: Mapping of field name to field patch data
        path: Keys leading to data, used in error messages

    Returns:
        Record patch instance

    Raises:
        PatchDecodeError: If data has unknown keys or wrongly shaped values
    """
    if is_patchable(patch_cls):
        patch_cls = patch_type_of(patch_cls)
    if not isinstance(patch_cls, type) or not issubclass(patch_cls, RecordPatch):
        raise PatchDecodeError(f"{patch_cls!r} is not a record patch type", path)
    if not isinstance(data, Mapping):
        raise PatchDecodeError(
            f"{patch_cls.__name__} expects a mapping at {_format_path(path)}, "
            f"got {type(data).__name__}",
            path,
        )

    specs = {spec.name: spec for spec in patch_cls.__patch_fields__}
    unknown = sorted(str(key) for key in data if key not in specs)
    if unknown:
        raise PatchDecodeError(
            f"Unknown fields for {patch_cls.__name__} at {_format_path(path)}: "
            f"{', '.join(unknown)}. Available: {list(specs)}",
            path,
        )

    hints = _type_hints(patch_cls.__patch_target__)
    kwargs: Dict[str, Any] = {}
    for name, raw in data.items():
        spec = specs[name]
        field_path = path + (name,)
        if spec.shape is FieldShape.SEQUENCE:
            if not isinstance(raw, list):
                raise PatchDecodeError(
                    f"Expected a list at {_format_path(field_path)}, "
                    f"got {type(raw).__name__}",
                    field_path,
                )
            kwargs[name] = [
                _decode_single(spec, element, hints, field_path + (index,))
                for index, element in enumerate(raw)
            ]
        else:
            kwargs[name] = _decode_single(spec, raw, hints, field_path)

    return patch_cls(**kwargs)


def _encode_single(spec: FieldSpec, field_patch: Any) -> Any:
    if field_patch is None:
        return _OMIT
    if isinstance(field_patch, Some):
        return _plain(field_patch.value)
    if isinstance(field_patch, RecordPatch):
        encoded = patch_to_dict(field_patch)
        return encoded if encoded else _OMIT
    raise TypeError(
        f"Cannot serialize {type(field_patch).__name__} in field '{spec.name}'; "
        f"only derived record patches have a plain-data form"
    )


def _decode_single(
    spec: FieldSpec, raw: Any, hints: Dict[str, Any], path: Tuple[Any, ...]
) -> Any:
    if spec.patch_type is None:
        return Some(_build_value(hints.get(spec.name), raw, path))
    if not issubclass(spec.patch_type, RecordPatch):
        raise PatchDecodeError(
            f"{spec.patch_type.__name__} at {_format_path(path)} has no plain-data form",
            path,
        )
    return patch_from_dict(spec.patch_type, raw, path)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return _plain(value.value)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(item) for item in value]
    if isinstance(value, Mapping):
        return {key: _plain(item) for key, item in value.items()}
    return value


def _build_value(hint: Optional[Any], raw: Any, path: Tuple[Any, ...]) -> Any:
    """Rebuild a replacement value from its plain form, following the type hint.

    Dataclasses, enums, tuples and sets are restored, including inside list,
    tuple, set and dict hints. Anything else is returned as-is.
    """
    if raw is None:
        return None
    hint = _unwrap_optional(hint)
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)

    if origin in (list, set, frozenset) and isinstance(raw, list):
        item_hint = args[0] if args else None
        return origin(
            _build_value(item_hint, item, path + (index,)) for index, item in enumerate(raw)
        )
    if origin is tuple and isinstance(raw, list):
        return tuple(
            _build_value(item_hint, item, path + (index,))
            for index, (item, item_hint) in enumerate(zip(raw, _tuple_hints(args, len(raw))))
        )
    if origin is dict and isinstance(raw, Mapping):
        value_hint = args[1] if len(args) == 2 else None
        return {key: _build_value(value_hint, value, path + (key,)) for key, value in raw.items()}

    if hint in (tuple, set, frozenset) and isinstance(raw, list):
        return hint(raw)
    if isinstance(hint, type) and issubclass(hint, Enum):
        try:
            return hint(raw)
        except ValueError as e:
            raise PatchDecodeError(
                f"Cannot build {hint.__name__} at {_format_path(path)}: {e}", path
            ) from e
    if not (isinstance(hint, type) and dataclasses.is_dataclass(hint)):
        return raw
    if not isinstance(raw, Mapping):
        return raw

    field_hints = _type_hints(hint)
    try:
        return hint(
            **{
                key: _build_value(field_hints.get(key), value, path + (key,))
                for key, value in raw.items()
            }
        )
    except TypeError as e:
        raise PatchDecodeError(
            f"Cannot build {hint.__name__} at {_format_path(path)}: {e}", path
        ) from e


def _tuple_hints(args: Tuple[Any, ...], length: int) -> List[Any]:
    if len(args) == 2 and args[1] is Ellipsis:
        return [args[0]] * length
    if len(args) == length:
        return list(args)
    return [None] * length


def _unwrap_optional(hint: Any) -> Any:
    if typing.get_origin(hint) in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(hint) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _type_hints(cls: Optional[type]) -> Dict[str, Any]:
    if cls is None:
        return {}
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        # Unresolvable forward references: replacement values stay plain data
        logger.debug(f"Could not resolve type hints of {cls.__name__}: {e}")
        return {}


def _format_path(path: Tuple[Any, ...]) -> str:
    return "/".join(str(p) for p in path) or "(root)"
