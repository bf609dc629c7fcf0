from collections import OrderedDict, deque
from dataclasses import dataclass
import enum
from typing import NamedTuple

import pytest

from shapepack.core import Child, DisplayStyle, KeyValue, Mirror, reflect, type_name


@dataclass
class Config:
    host: str
    port: int


class Coordinates(NamedTuple):
    lat: float
    lon: float


class Level(enum.Enum):
    LOW = 1


class Slotted:
    __slots__ = ("a", "b")

    def __init__(self) -> None:
        self.a = 1


class Plain:
    def __init__(self) -> None:
        self.name = "plain"


class BadMirror:
    def __dump_mirror__(self) -> str:
        return "nope"


@pytest.mark.parametrize(
    ("value", "style"),
    [
        (1, DisplayStyle.SCALAR),
        ("text", DisplayStyle.SCALAR),
        (None, DisplayStyle.SCALAR),
        (int, DisplayStyle.SCALAR),
        ([1], DisplayStyle.COLLECTION),
        (deque([1]), DisplayStyle.COLLECTION),
        ({"a": 1}, DisplayStyle.DICTIONARY),
        (OrderedDict(a=1), DisplayStyle.DICTIONARY),
        ({1}, DisplayStyle.SET),
        (frozenset({1}), DisplayStyle.SET),
        ((1, 2), DisplayStyle.TUPLE),
        (Coordinates(1.0, 2.0), DisplayStyle.STRUCT),
        (Config("h", 1), DisplayStyle.STRUCT),
        (Level.LOW, DisplayStyle.ENUM),
        (Plain(), DisplayStyle.CLASS),
        (Slotted(), DisplayStyle.CLASS),
        (object(), DisplayStyle.SCALAR),
    ],
)
def test_reflect_display_style(value: object, style: DisplayStyle) -> None:
    assert reflect(value).display_style is style


def test_reflect_dataclass_children_in_field_order() -> None:
    mirror = reflect(Config("localhost", 8080))

    assert [(child.label, child.value) for child in mirror.children] == [
        ("host", "localhost"),
        ("port", 8080),
    ]
    assert mirror.type_name == "Config"


def test_reflect_tuple_uses_positional_labels() -> None:
    mirror = reflect(("a", "b"))

    assert [child.label for child in mirror.children] == [".0", ".1"]


def test_reflect_dictionary_entries_are_unlabeled_key_values() -> None:
    mirror = reflect({"k": 1})

    assert len(mirror.children) == 1
    entry = mirror.children[0]
    assert entry.label is None
    assert isinstance(entry.value, KeyValue)
    assert (entry.value.key, entry.value.value) == ("k", 1)


def test_reflect_slots_skip_unset_attributes() -> None:
    mirror = reflect(Slotted())

    assert [(child.label, child.value) for child in mirror.children] == [("a", 1)]


def test_reflect_enum_member_has_case_child() -> None:
    mirror = reflect(Level.LOW)

    assert mirror.children == [Child("LOW", ())]


def test_reflect_custom_mirror_must_return_mirror() -> None:
    with pytest.raises(TypeError, match="must return Mirror"):
        reflect(BadMirror())


def test_mirror_constructors() -> None:
    subject = object()

    assert Mirror.optional(subject).children == []
    assert Mirror.optional(subject, 3).children == [Child("some", 3)]
    assert Mirror.enum_case(subject, "done", (1,)).children == [Child("done", (1,))]
    unlabeled = Mirror.unlabeled(subject, [1, 2], DisplayStyle.TUPLE)
    assert [child.label for child in unlabeled.children] == [None, None]


def test_mirror_identity_only_for_class_style() -> None:
    plain = Plain()

    assert reflect(plain).identity == id(plain)
    assert reflect(Config("h", 1)).identity is None


def test_mirror_single_value_container() -> None:
    subject = object()

    assert Mirror.unlabeled(subject, [1], DisplayStyle.STRUCT).is_single_value_container
    assert not Mirror.unlabeled(subject, [1], DisplayStyle.TUPLE).is_single_value_container
    assert not reflect(Plain()).is_single_value_container


def test_type_name_strips_local_scope() -> None:
    class Local:
        pass

    assert type_name(Local) == "Local"
    assert type_name(Config) == "Config"
    assert type_name(None) == "None"
