"""
Core schema definitions for patches.

These dataclasses and protocols describe the three patch shapes
(optional replacement, nested, sequence) independently of the merge engine.
"""

from patchable.core.schema.option import Option, Some, is_present
from patchable.core.schema.patch import FieldShape, FieldSpec, Patch

__all__ = [
    "FieldShape",
    "FieldSpec",
    "Option",
    "Patch",
    "Some",
    "is_present",
]
