"""Optional-replacement patches.

An optional-replacement patch is either absent (``None``, leave the target
alone) or present (``Some(value)``, replace the target with ``value``).
Wrapping the present case keeps ``None`` usable as a replacement value:
``Some(None)`` sets a field to ``None``.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Some(Generic[T]):
    """Present optional-replacement patch.

    Attributes:
        value: The value that replaces the target in full

    Example:
        >>> apply_patch(30, Some(31))
        31
        >>> apply_patch(30, None)
        30
    """

    value: T


Option = Optional[Some[T]]
"""Optional-replacement patch type: ``None`` (absent) or ``Some[T]`` (present)."""


def is_present(patch: "Option[T]") -> bool:
    """Return True if the optional-replacement patch carries a value."""
    return isinstance(patch, Some)
