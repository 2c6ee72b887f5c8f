"""Runtime derivation of record patch types from dataclasses.

Given a dataclass, ``derive_patch`` builds a sibling dataclass with one patch
field per value field and registers it on the value class. The field shape is
chosen per field:

- default: optional replacement, ``Optional[Some[FieldType]]``, default None
- ``patch_field(BarPatch)``: nested patch, default ``BarPatch()``
- ``patch_field(BarPatch, sequence=True)``: list of nested patches
- ``patch_field(sequence=True)``: list of optional replacements

Example::

    @patchable
    @dataclass
    class Bar:
        foobar: int

    @patchable(name="MyPatch")
    @dataclass
    class MyStruct:
        foo: str
        bar: Bar = patch_field(Bar)

    MyPatch = patch_type_of(MyStruct)
    value = MyStruct(foo="x", bar=Bar(foobar=1))
    apply_patch(value, MyPatch(bar=patch_type_of(Bar)(foobar=Some(2))))
"""

import dataclasses
import logging
from enum import Enum
from typing import Any, List, Optional, Tuple

from patchable.core.config import get_config_flag, get_config_value
from patchable.core.errors import SchemaError
from patchable.core.record import RecordPatch
from patchable.core.schema.option import Some
from patchable.core.schema.patch import FieldShape, FieldSpec

logger = logging.getLogger(__name__)

DEFAULT_PATCH_SUFFIX = "Patch"
PATCH_METADATA_KEY = "patchable"
RESERVED_PREFIX = "__patch_"


def patch_field(
    patch_type: Optional[type] = None, *, sequence: bool = False, **kwargs: Any
) -> Any:
    """Declare the patch shape of a dataclass field.

    Args:
        patch_type: Patch type used for a nested field, or a patchable value
                    class whose registered patch type should be used
        sequence: Patch the field with a list of patches instead of a single one
        **kwargs: Forwarded to dataclasses.field (default, default_factory, ...)

    Returns:
        A dataclasses.field carrying the patch declaration in its metadata
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[PATCH_METADATA_KEY] = {"patch_type": patch_type, "sequence": sequence}
    return dataclasses.field(metadata=metadata, **kwargs)


def patchable(
    cls: Optional[type] = None, *, name: Optional[str] = None, strict: Optional[bool] = None
) -> Any:
    """Class decorator that derives and registers a patch type.

    Usable bare (``@patchable``) or with options (``@patchable(name="P")``).
    Must be placed above ``@dataclass``.

    Args:
        cls: The dataclass to derive from
        name: Patch type name (default: class name + configured suffix)
        strict: Check shapes before applying (default: from config, True)

    Returns:
        The class itself, unchanged apart from the registration
    """

    def wrap(value_cls: type) -> type:
        derive_patch(value_cls, name=name, strict=strict)
        return value_cls

    if cls is None:
        return wrap
    return wrap(cls)


def derive_patch(
    cls: type, name: Optional[str] = None, strict: Optional[bool] = None
) -> type:
    """Build the record patch type of a dataclass and register it.

    Args:
        cls: The dataclass to derive from
        name: Patch type name (default: class name + configured suffix)
        strict: Check shapes before applying (default: from config, True)

    Returns:
        The generated RecordPatch subclass

    Raises:
        SchemaError: If cls is not a mutable dataclass with named fields, or
                     a nested field does not name a patch type
    """
    _check_record(cls)

    if name is None:
        suffix = get_config_value(["patchable", "patch_suffix"], default=DEFAULT_PATCH_SUFFIX)
        name = f"{cls.__name__}{suffix}"
    if strict is None:
        strict = get_config_flag(["patchable", "strict"], default=True)

    specs: List[FieldSpec] = []
    patch_fields: List[Tuple[str, Any, Any]] = []
    for value_field in dataclasses.fields(cls):
        spec = _field_spec(cls, value_field)
        specs.append(spec)
        patch_fields.append((spec.name, _annotation(spec), _default(spec)))

    namespace = {
        "__patch_target__": cls,
        "__patch_fields__": tuple(specs),
        "__patch_strict__": bool(strict),
        "__doc__": f"Record patch for {cls.__name__}.",
    }
    patch_cls = dataclasses.make_dataclass(
        name, patch_fields, bases=(RecordPatch,), namespace=namespace
    )
    patch_cls.__module__ = cls.__module__

    cls.__patch_type__ = patch_cls
    logger.debug(
        f"Derived {name} for {cls.__name__}: "
        + ", ".join(f"{s.name}={s.shape.value}" for s in specs)
    )
    return patch_cls


def patch_type_of(cls: Any) -> type:
    """Return the patch type registered for a value class (or instance).

    Raises:
        SchemaError: If no patch type was derived for the class
    """
    if not isinstance(cls, type):
        cls = type(cls)
    patch_cls = cls.__dict__.get("__patch_type__")
    if patch_cls is None:
        raise SchemaError(
            f"{cls.__name__} has no patch type; decorate it with @patchable", cls=cls
        )
    return patch_cls


def is_patchable(cls: Any) -> bool:
    """Return True if a patch type was derived for the class (or instance)."""
    if not isinstance(cls, type):
        cls = type(cls)
    return "__patch_type__" in cls.__dict__


def _check_record(cls: Any) -> None:
    if not isinstance(cls, type):
        raise SchemaError(f"Expected a class, got {type(cls).__name__}")
    if issubclass(cls, Enum):
        raise SchemaError(
            f"{cls.__name__} is an enum; variant values can only be replaced whole",
            cls=cls,
        )
    if issubclass(cls, tuple):
        raise SchemaError(
            f"{cls.__name__} has positional fields; only named-field records are patchable",
            cls=cls,
        )
    if not dataclasses.is_dataclass(cls):
        raise SchemaError(
            f"{cls.__name__} is not a dataclass (apply @dataclass below @patchable)",
            cls=cls,
        )
    if cls.__dataclass_params__.frozen:
        raise SchemaError(
            f"{cls.__name__} is frozen and cannot be patched in place", cls=cls
        )


def _field_spec(cls: type, value_field: dataclasses.Field) -> FieldSpec:
    if value_field.name.startswith(RESERVED_PREFIX):
        raise SchemaError(
            f"{cls.__name__}.{value_field.name}: names starting with "
            f"{RESERVED_PREFIX} are reserved for record patch hooks",
            cls=cls,
            field=value_field.name,
        )

    declaration = value_field.metadata.get(PATCH_METADATA_KEY)
    if declaration is None:
        return FieldSpec(value_field.name, FieldShape.REPLACE, None, value_field.type)

    patch_type = declaration["patch_type"]
    if patch_type is not None:
        patch_type = _resolve_patch_type(cls, value_field.name, patch_type)

    if declaration["sequence"]:
        shape = FieldShape.SEQUENCE
    elif patch_type is not None:
        shape = FieldShape.NESTED
    else:
        shape = FieldShape.REPLACE
    return FieldSpec(value_field.name, shape, patch_type, value_field.type)


def _resolve_patch_type(cls: type, field_name: str, declared: Any) -> type:
    if isinstance(declared, type):
        if "__patch_type__" in declared.__dict__:
            return declared.__patch_type__
        if issubclass(declared, RecordPatch) or callable(getattr(declared, "apply", None)):
            return declared
    label = getattr(declared, "__name__", repr(declared))
    raise SchemaError(
        f"{cls.__name__}.{field_name}: {label} is neither a patch type "
        f"nor a patchable class",
        cls=cls,
        field=field_name,
    )


def _annotation(spec: FieldSpec) -> Any:
    if spec.patch_type is not None:
        element = spec.patch_type
    elif isinstance(spec.value_type, str):
        element = Optional[Some]
    else:
        element = Optional[Some[spec.value_type]]

    if spec.shape is FieldShape.SEQUENCE:
        return List[element]
    return element


def _default(spec: FieldSpec) -> Any:
    if spec.shape is FieldShape.SEQUENCE:
        return dataclasses.field(default_factory=list)
    if spec.shape is FieldShape.NESTED:
        return dataclasses.field(default_factory=spec.patch_type)
    return dataclasses.field(default=None)
