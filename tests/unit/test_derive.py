"""Tests for patch type derivation (patchable, derive_patch, patch_field)."""

import dataclasses
from collections import namedtuple
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Optional

import pytest

from patchable.core.derive import (
    PATCH_METADATA_KEY,
    derive_patch,
    is_patchable,
    patch_field,
    patch_type_of,
    patchable,
)
from patchable.core.engine import apply_patch
from patchable.core.errors import SchemaError
from patchable.core.schema.option import Some
from patchable.core.schema.patch import FieldShape


class Add:
    """Hand-written patch type for integer fields."""

    def __init__(self, by: int = 0) -> None:
        self.by = by

    def apply(self, target: int) -> int:
        return target + self.by


@patchable
@dataclass
class Bar:
    foobar: int


@patchable(name="MyPatch")
@dataclass
class MyStruct:
    foo: str
    bar: Bar = patch_field(Bar)


@patchable
@dataclass
class Score:
    points: int = patch_field(Add, default=0)
    rounds: Bar = patch_field(patch_type_of(Bar), sequence=True, default_factory=lambda: Bar(0))
    labels: Optional[str] = patch_field(sequence=True, default=None)


class TestPatchTypeNames:
    """Tests for generated patch type naming."""

    def test_default_name(self):
        """Test that the default name is the class name plus Patch."""
        assert patch_type_of(Bar).__name__ == "BarPatch"

    def test_custom_name(self):
        """Test that name= overrides the generated name."""
        assert patch_type_of(MyStruct).__name__ == "MyPatch"

    def test_module_follows_value_class(self):
        """Test that the patch type lives in the value class's module."""
        assert patch_type_of(Bar).__module__ == Bar.__module__

    def test_suffix_from_environment(self, monkeypatch):
        """Test that the suffix can be configured."""
        monkeypatch.setenv("PATCHABLE_PATCH_SUFFIX", "Delta")

        @dataclass
        class Thing:
            size: int

        assert derive_patch(Thing).__name__ == "ThingDelta"


class TestPatchFields:
    """Tests for the fields of generated patch types."""

    def test_fields_mirror_value_fields(self):
        """Test that the patch type has one field per value field."""
        names = [f.name for f in dataclasses.fields(patch_type_of(MyStruct))]
        assert names == ["foo", "bar"]

    def test_replacement_defaults_to_absent(self):
        """Test that replacement fields default to None."""
        assert patch_type_of(Bar)().foobar is None

    def test_nested_defaults_to_empty_patch(self):
        """Test that nested fields default to an empty nested patch."""
        patch = patch_type_of(MyStruct)()
        assert patch.bar == patch_type_of(Bar)()
        assert patch.bar.is_empty()

    def test_sequence_defaults_to_fresh_list(self):
        """Test that sequence fields default to distinct empty lists."""
        score_patch = patch_type_of(Score)
        first, second = score_patch(), score_patch()

        assert first.rounds == []
        assert first.rounds is not second.rounds

    def test_field_specs(self):
        """Test the recorded shape of each field."""
        specs = {s.name: s for s in patch_type_of(Score).__patch_fields__}

        assert specs["points"].shape is FieldShape.NESTED
        assert specs["points"].patch_type is Add
        assert specs["rounds"].shape is FieldShape.SEQUENCE
        assert specs["rounds"].element_shape is FieldShape.NESTED
        assert specs["labels"].shape is FieldShape.SEQUENCE
        assert specs["labels"].element_shape is FieldShape.REPLACE
        assert specs["labels"].patch_type is None

    def test_registration_attributes(self):
        """Test that the patch type knows its value class."""
        patch_cls = patch_type_of(MyStruct)
        assert patch_cls.__patch_target__ is MyStruct
        assert patch_cls.__patch_strict__ is True

    def test_keyword_construction(self):
        """Test constructing a patch with keyword arguments."""
        patch = patch_type_of(MyStruct)(foo=Some("y"))
        assert patch.foo == Some("y")

    def test_patch_field_keeps_user_metadata(self):
        """Test that patch_field merges with caller metadata."""
        f = patch_field(Bar, metadata={"doc": "a bar"})
        assert f.metadata["doc"] == "a bar"
        assert f.metadata[PATCH_METADATA_KEY] == {"patch_type": Bar, "sequence": False}


class TestHandWrittenNestedPatch:
    """Tests for nested fields using a hand-written patch type."""

    def test_default_instance(self):
        """Test that the hand-written patch type is the field default."""
        assert isinstance(patch_type_of(Score)().points, Add)

    def test_apply(self):
        """Test that the record rule delegates to the hand-written patch."""
        score = Score(points=10)
        apply_patch(score, patch_type_of(Score)(points=Add(5)))
        assert score.points == 15

    def test_sequence_of_replacements_on_optional_field(self):
        """Test replacing an Optional field through a sequence."""
        score = Score()
        apply_patch(score, patch_type_of(Score)(labels=[Some("a"), Some(None)]))
        assert score.labels is None


class TestStrictConfiguration:
    """Tests for the strict flag."""

    def test_strict_from_environment(self, monkeypatch):
        """Test that PATCHABLE_STRICT=false derives lenient patches."""
        monkeypatch.setenv("PATCHABLE_STRICT", "false")

        @dataclass
        class Loose:
            value: int

        assert derive_patch(Loose).__patch_strict__ is False

    def test_explicit_strict_wins(self, monkeypatch):
        """Test that strict= overrides configuration."""
        monkeypatch.setenv("PATCHABLE_STRICT", "false")

        @dataclass
        class Tight:
            value: int

        assert derive_patch(Tight, strict=True).__patch_strict__ is True


class TestSchemaErrors:
    """Tests for shapes the builder rejects."""

    def test_not_a_class(self):
        """Test deriving from an instance."""
        with pytest.raises(SchemaError, match="Expected a class"):
            derive_patch(Bar(1))

    def test_plain_class(self):
        """Test deriving from a class that is not a dataclass."""

        class Plain:
            x = 1

        with pytest.raises(SchemaError, match="not a dataclass"):
            derive_patch(Plain)

    def test_decorator_order(self):
        """Test that @patchable below @dataclass is rejected."""
        with pytest.raises(SchemaError):

            @dataclass
            @patchable
            class Wrong:
                x: int

    def test_enum(self):
        """Test that sum types are rejected."""

        class Color(Enum):
            RED = 1
            GREEN = 2

        with pytest.raises(SchemaError, match="enum") as exc_info:
            derive_patch(Color)
        assert exc_info.value.cls is Color

    def test_namedtuple(self):
        """Test that positional records are rejected."""
        Pair = namedtuple("Pair", ["left", "right"])

        with pytest.raises(SchemaError, match="positional"):
            derive_patch(Pair)

    def test_typed_namedtuple(self):
        """Test that typing.NamedTuple records are rejected."""

        class Pair(NamedTuple):
            left: int
            right: int

        with pytest.raises(SchemaError, match="positional"):
            derive_patch(Pair)

    def test_frozen_dataclass(self):
        """Test that frozen dataclasses are rejected."""

        @dataclass(frozen=True)
        class Frozen:
            x: int

        with pytest.raises(SchemaError, match="frozen"):
            derive_patch(Frozen)

    def test_nested_type_without_patch(self):
        """Test that nested declarations must name a patch type."""

        @dataclass
        class Holder:
            x: int = patch_field(int)

        with pytest.raises(SchemaError) as exc_info:
            derive_patch(Holder)
        assert exc_info.value.field == "x"

    def test_nested_undecorated_dataclass(self):
        """Test that an unpatchable dataclass cannot be nested."""

        @dataclass
        class Inner:
            y: int

        @dataclass
        class Outer:
            inner: Inner = patch_field(Inner)

        with pytest.raises(SchemaError, match="neither a patch type"):
            derive_patch(Outer)


class TestRegistry:
    """Tests for patch_type_of / is_patchable."""

    def test_is_patchable(self):
        """Test is_patchable on classes and instances."""
        assert is_patchable(Bar)
        assert is_patchable(Bar(1))
        assert not is_patchable(int)

    def test_patch_type_of_instance(self):
        """Test patch_type_of with an instance."""
        assert patch_type_of(Bar(1)) is patch_type_of(Bar)

    def test_unregistered_class(self):
        """Test patch_type_of on a class without a patch type."""
        with pytest.raises(SchemaError, match="no patch type"):
            patch_type_of(int)

    def test_subclass_is_not_registered(self):
        """Test that registration is not inherited."""

        class SubBar(Bar):
            pass

        assert not is_patchable(SubBar)
        with pytest.raises(SchemaError):
            patch_type_of(SubBar)

    def test_resolve_value_class_to_patch_type(self):
        """Test that patch_field(ValueClass) uses its registered patch type."""
        specs = {s.name: s for s in patch_type_of(MyStruct).__patch_fields__}
        assert specs["bar"].patch_type is patch_type_of(Bar)


class TestReservedNames:
    """Tests for field names reserved by record patch hooks."""

    def test_hook_prefix_rejected(self):
        """Test that __patch_* field names are rejected."""

        @dataclass
        class Hooked:
            __patch_apply__: int = 0

        with pytest.raises(SchemaError, match="reserved") as exc_info:
            derive_patch(Hooked)
        assert exc_info.value.field == "__patch_apply__"

    def test_method_names_allowed(self):
        """Test that fields named like RecordPatch methods are accepted."""

        @dataclass
        class Task:
            apply: bool = False
            check: int = 0

        names = [f.name for f in dataclasses.fields(derive_patch(Task))]
        assert names == ["apply", "check"]
