"""Merge engine: applies a patch of any supported shape to a target.

Dispatch is by the shape of the patch value:

1. ``None``: absent optional replacement, target returned unchanged
2. ``Some(value)``: present optional replacement, ``value`` returned
3. ``list`` / ``tuple``: sequence patch, elements folded left to right
4. record patches: ``__patch_apply__`` hook, which field names cannot shadow
5. ``Patch`` protocol objects: ``patch.apply(target)`` (hand-written patch
   types)

The engine returns the patched value. In-place merges return the target
object itself, so callers that hold a record keep the same identity; callers
applying a replacement at the top level must rebind the returned value.
"""

import logging
from typing import Any, TypeVar

from patchable.core.errors import PatchApplyError
from patchable.core.schema.option import Some
from patchable.core.schema.patch import Patch

logger = logging.getLogger(__name__)

T = TypeVar("T")


def apply_patch(target: T, patch: Any) -> T:
    """Apply patch to target and return the patched value.

    Args:
        target: The value being patched
        patch: None, Some(value), a list/tuple of patches, or a Patch

    Returns:
        The patched value (the same object for in-place merges)

    Raises:
        PatchApplyError: If patch is not one of the supported shapes

    Example:
        >>> apply_patch("Alice", None)
        'Alice'
        >>> apply_patch("Alice", [Some("Bob"), Some("Carol")])
        'Carol'
    """
    if patch is None:
        return target

    if isinstance(patch, Some):
        return patch.value

    if isinstance(patch, (list, tuple)):
        return apply_patches(target, patch)

    apply_hook = getattr(type(patch), "__patch_apply__", None)
    if apply_hook is not None:
        logger.debug(f"Applying {type(patch).__name__} to {type(target).__name__}")
        return apply_hook(patch, target)

    if isinstance(patch, Patch):
        logger.debug(f"Applying {type(patch).__name__} to {type(target).__name__}")
        return patch.apply(target)

    raise PatchApplyError(
        f"Unsupported patch shape: {type(patch).__name__}. "
        f"Expected None, Some, a list of patches or an object with apply()",
        patch=patch,
        target=target,
    )


def apply_patches(target: T, patches: Any) -> T:
    """Apply a sequence of patches to the same target, in order.

    Each patch sees the result of the previous ones. An empty sequence
    returns the target unchanged.

    Args:
        target: The value being patched
        patches: Iterable of patches of one shape

    Returns:
        The patched value
    """
    for patch in patches:
        target = apply_patch(target, patch)
    return target
