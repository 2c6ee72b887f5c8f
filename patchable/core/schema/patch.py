"""Patch protocol and per-field shape descriptions.

Every record patch field uses exactly one of three shapes:

- ``REPLACE``: optional replacement, ``None`` or ``Some(value)``
- ``NESTED``: a patch of the field's own patchable type, merged in place
- ``SEQUENCE``: a list of patches of one element shape, applied in order
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class Patch(Protocol):
    """Patch interface for anything that merges itself into a target.

    Generated record patches implement it, and so can hand-written patch
    types. ``apply`` mutates the target in place where it can and returns the
    resulting value; for in-place merges that is the target itself.

    Example:
        class Increment:
            def __init__(self, by: int) -> None:
                self.by = by

            def apply(self, target: int) -> int:
                return target + self.by
    """

    def apply(self, target: Any) -> Any:
        """Merge this patch into target and return the result.

        Args:
            target: The value being patched

        Returns:
            The patched value
        """
        ...


class FieldShape(str, Enum):
    """Shape of a single record patch field."""

    REPLACE = "replace"
    NESTED = "nested"
    SEQUENCE = "sequence"


@dataclass(frozen=True)
class FieldSpec:
    """Description of one field of a record patch.

    Attributes:
        name: Field name, shared by the value class and the patch class
        shape: Patch shape used for the field
        patch_type: Nested patch type for NESTED fields and for SEQUENCE
                    fields of nested patches; None for optional replacements
        value_type: Declared type of the field on the value class, as found
                    in the dataclass definition (may be a string annotation)
    """

    name: str
    shape: FieldShape
    patch_type: Optional[type] = None
    value_type: Any = None

    @property
    def element_shape(self) -> FieldShape:
        """Shape of the elements of a SEQUENCE field."""
        return FieldShape.REPLACE if self.patch_type is None else FieldShape.NESTED
