"""
patchable: partial updates for Python dataclasses

A patch describes a sparse set of field-level changes to a value. Applying it
replaces, merges into, or leaves alone each field according to the field's
patch shape: optional replacement, nested patch, or sequence of patches.
"""

from patchable.core.derive import derive_patch, is_patchable, patch_field, patch_type_of, patchable
from patchable.core.engine import apply_patch, apply_patches
from patchable.core.errors import PatchApplyError, PatchDecodeError, SchemaError
from patchable.core.record import RecordPatch
from patchable.core.schema import FieldShape, FieldSpec, Option, Patch, Some, is_present
from patchable.core.serialize import patch_from_dict, patch_to_dict
from patchable.documents import apply_document, dump_patch, load_patch, loads_patch

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "FieldShape",
    "FieldSpec",
    "Option",
    "Patch",
    "PatchApplyError",
    "PatchDecodeError",
    "RecordPatch",
    "SchemaError",
    "Some",
    "apply_document",
    "apply_patch",
    "apply_patches",
    "derive_patch",
    "dump_patch",
    "is_patchable",
    "is_present",
    "load_patch",
    "loads_patch",
    "patch_field",
    "patch_from_dict",
    "patch_to_dict",
    "patch_type_of",
    "patchable",
]
