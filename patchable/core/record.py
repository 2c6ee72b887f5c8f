"""Record patches: one field patch per field of a dataclass value.

Generated patch fields share the namespace of ``RecordPatch``, so the
machinery lives in ``__patch_*__`` hooks and module-level helpers. Value
fields named ``apply``, ``check`` or ``is_empty`` shadow only the
convenience methods of the same name; the engine always goes through
``__patch_apply__``.
"""

import logging
from typing import Any, ClassVar, Optional, Tuple

from patchable.core.engine import apply_patch
from patchable.core.errors import PatchApplyError
from patchable.core.schema.option import Some
from patchable.core.schema.patch import FieldShape, FieldSpec

logger = logging.getLogger(__name__)


class RecordPatch:
    """Base class of derived record patch types.

    Subclasses are dataclasses produced by ``derive_patch``. Each one is
    bound to a single value class and carries one attribute per value field.

    Applying a record patch processes every declared field exactly once,
    in declaration order, merging each field patch into the target's
    current field value. There is no early exit and no rollback.

    Attributes:
        __patch_target__: Value class this patch type applies to
        __patch_fields__: FieldSpec for every patch field
        __patch_strict__: Whether shapes are checked before applying
    """

    __patch_target__: ClassVar[Optional[type]] = None
    __patch_fields__: ClassVar[Tuple[FieldSpec, ...]] = ()
    __patch_strict__: ClassVar[bool] = True

    def __patch_apply__(self, target: Any, checked: bool = False) -> Any:
        """Merge this patch into target in place.

        Args:
            target: Instance of the bound value class
            checked: An enclosing record patch already checked this one

        Returns:
            The same target object

        Raises:
            PatchApplyError: In strict mode, if target or a field patch does
                             not match the declared schema (nothing is
                             mutated in that case)
        """
        if self.__patch_strict__ and not checked:
            self.__patch_check__(target)
            checked = True

        for spec in self.__patch_fields__:
            field_patch = getattr(self, spec.name)
            if field_patch is None:
                continue
            current = getattr(target, spec.name)
            patched = _apply_field(spec, field_patch, current, checked)
            if patched is not current:
                logger.debug(f"Replaced {type(target).__name__}.{spec.name}")
                setattr(target, spec.name, patched)

        return target

    def __patch_check__(self, target: Any) -> None:
        """Validate target and field patches against the declared schema.

        Nested record patches are checked against the target's current
        field values, so a failing check never leaves a partial merge.

        Args:
            target: The value this patch is about to be applied to

        Raises:
            PatchApplyError: On the first mismatch found
        """
        cls = type(self)
        target_cls = cls.__patch_target__
        if target_cls is not None and not isinstance(target, target_cls):
            raise PatchApplyError(
                f"{cls.__name__} applies to {target_cls.__name__}, "
                f"got {type(target).__name__}",
                patch=self,
                target=target,
            )

        for spec in cls.__patch_fields__:
            field_patch = getattr(self, spec.name)
            if spec.shape is FieldShape.SEQUENCE:
                if not isinstance(field_patch, (list, tuple)):
                    _shape_error(self, spec, field_patch, target, "a list of patches")
                for element in field_patch:
                    _check_single(self, spec, spec.element_shape, element, target)
            else:
                _check_single(self, spec, spec.shape, field_patch, target)

    def __patch_is_empty__(self) -> bool:
        for spec in type(self).__patch_fields__:
            field_patch = getattr(self, spec.name)
            if spec.shape is FieldShape.SEQUENCE:
                if not all(_is_noop(element) for element in field_patch):
                    return False
            elif not _is_noop(field_patch):
                return False
        return True

    def apply(self, target: Any) -> Any:
        """Merge this patch into target in place and return target."""
        return self.__patch_apply__(target)

    def check(self, target: Any) -> None:
        """Raise PatchApplyError if this patch does not fit target."""
        self.__patch_check__(target)

    def is_empty(self) -> bool:
        """Return True if applying this patch cannot change anything."""
        return self.__patch_is_empty__()


def _apply_field(spec: FieldSpec, field_patch: Any, current: Any, checked: bool) -> Any:
    if not checked or spec.patch_type is None:
        return apply_patch(current, field_patch)
    if spec.shape is FieldShape.SEQUENCE:
        for element in field_patch:
            current = _apply_checked(element, current)
        return current
    return _apply_checked(field_patch, current)


def _apply_checked(field_patch: Any, current: Any) -> Any:
    if isinstance(field_patch, RecordPatch):
        return field_patch.__patch_apply__(current, checked=True)
    return apply_patch(current, field_patch)


def _check_single(
    patch: RecordPatch, spec: FieldSpec, shape: FieldShape, field_patch: Any, target: Any
) -> None:
    if shape is FieldShape.REPLACE:
        if field_patch is not None and not isinstance(field_patch, Some):
            _shape_error(patch, spec, field_patch, target, "None or Some(value)")
    elif not isinstance(field_patch, spec.patch_type):
        _shape_error(patch, spec, field_patch, target, spec.patch_type.__name__)
    elif isinstance(field_patch, RecordPatch) and field_patch.__patch_strict__:
        field_patch.__patch_check__(getattr(target, spec.name))


def _shape_error(
    patch: RecordPatch, spec: FieldSpec, field_patch: Any, target: Any, expected: str
) -> None:
    raise PatchApplyError(
        f"{type(patch).__name__}.{spec.name} expects {expected}, "
        f"got {type(field_patch).__name__}",
        patch=patch,
        target=target,
        field=spec.name,
    )


def _is_noop(patch: Any) -> bool:
    # Hand-written patch types are opaque and always count as changes
    if patch is None:
        return True
    if isinstance(patch, RecordPatch):
        return patch.__patch_is_empty__()
    return False
