"""Value introspection: decompose arbitrary values into labeled children."""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, MutableSequence
from dataclasses import dataclass, field, fields, is_dataclass
import datetime
from decimal import Decimal
import enum
from fractions import Fraction
import functools
from pathlib import PurePath
import re
import types
from typing import Any, Iterable
from uuid import UUID

from shapepack.core.types import SYNTHETIC_LABEL_PREFIX, DisplayStyle

_SCALAR_TYPES: tuple[type, ...] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    memoryview,
    range,
    Decimal,
    Fraction,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    datetime.tzinfo,
    UUID,
    PurePath,
    re.Pattern,
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    functools.partial,
)

_ABSENT = object()


@dataclass(slots=True)
class Child:
    """A labeled slot inside a reflected value.

    The label is display-only; comparisons always look at ``value``.
    """

    label: str | None
    value: Any


@dataclass(frozen=True, slots=True, eq=False)
class KeyValue:
    """A dictionary entry, reflected as a single unlabeled child."""

    key: Any
    value: Any


@dataclass(slots=True)
class Mirror:
    """Reflection of one value: its type, display style and children."""

    subject: Any
    children: list[Child] = field(default_factory=list)
    display_style: DisplayStyle = DisplayStyle.STRUCT
    subject_type: type | None = None

    def __post_init__(self) -> None:
        if self.subject_type is None:
            self.subject_type = type(self.subject)
        self.children = list(self.children)

    @property
    def type_name(self) -> str:
        return type_name(self.subject_type)

    @property
    def identity(self) -> int | None:
        if self.display_style is DisplayStyle.CLASS:
            return id(self.subject)
        return None

    @property
    def is_single_value_container(self) -> bool:
        return (
            self.display_style in (DisplayStyle.STRUCT, DisplayStyle.CLASS)
            and len(self.children) == 1
            and self.children[0].label is None
        )

    @classmethod
    def enum_case(cls, subject: Any, case: str, payload: Any = ()) -> Mirror:
        """Mirror an enum-like value whose case carries associated values.

        ``payload`` is a tuple of associated values, or a single value.
        """
        return cls(subject, [Child(case, payload)], DisplayStyle.ENUM)

    @classmethod
    def optional(cls, subject: Any, value: Any = _ABSENT) -> Mirror:
        """Mirror an optional wrapper; omit ``value`` for the absent case."""
        children = [] if value is _ABSENT else [Child("some", value)]
        return cls(subject, children, DisplayStyle.OPTIONAL)

    @classmethod
    def unlabeled(cls, subject: Any, values: Iterable[Any], display_style: DisplayStyle) -> Mirror:
        return cls(subject, [Child(None, value) for value in values], display_style)


def type_name(cls: type | None) -> str:
    if cls is None:
        return "None"
    qualname = getattr(cls, "__qualname__", None) or getattr(cls, "__name__", repr(cls))
    return qualname.rsplit("<locals>.", 1)[-1]


def has_custom_description(value: Any) -> bool:
    return not isinstance(value, type) and callable(getattr(value, "__dump_description__", None))


def has_dump_value(value: Any) -> bool:
    return not isinstance(value, type) and callable(getattr(value, "__dump_value__", None))


def custom_description(value: Any) -> str:
    return str(value.__dump_description__())


def custom_dump_value(value: Any) -> Any:
    return value.__dump_value__()


def is_synthetic_label(label: str | None) -> bool:
    return label is not None and label.startswith(SYNTHETIC_LABEL_PREFIX)


def reflect(value: Any) -> Mirror:
    """Reflect ``value`` into a :class:`Mirror`."""
    custom = None if isinstance(value, type) else getattr(value, "__dump_mirror__", None)
    if callable(custom):
        mirror = custom()
        if not isinstance(mirror, Mirror):
            raise TypeError(
                f"{type_name(type(value))}.__dump_mirror__ must return Mirror, "
                f"got {type_name(type(mirror))}"
            )
        return mirror

    if isinstance(value, enum.Enum):
        return Mirror.enum_case(value, value.name or repr(value.value))

    if isinstance(value, _SCALAR_TYPES):
        return Mirror(value, [], DisplayStyle.SCALAR)

    if isinstance(value, tuple) and hasattr(type(value), "_fields"):
        return Mirror(
            value,
            [Child(name, getattr(value, name)) for name in type(value)._fields],
            DisplayStyle.STRUCT,
        )

    if is_dataclass(value):
        return Mirror(
            value,
            [Child(item.name, getattr(value, item.name)) for item in fields(value) if item.repr],
            DisplayStyle.STRUCT,
        )

    if isinstance(value, tuple):
        return Mirror(
            value,
            [
                Child(f"{SYNTHETIC_LABEL_PREFIX}{index}", item)
                for index, item in enumerate(value)
            ],
            DisplayStyle.TUPLE,
        )

    if isinstance(value, Mapping):
        return Mirror.unlabeled(
            value,
            (KeyValue(key, item) for key, item in value.items()),
            DisplayStyle.DICTIONARY,
        )

    if isinstance(value, (set, frozenset)):
        return Mirror.unlabeled(value, value, DisplayStyle.SET)

    if isinstance(value, (MutableSequence, deque)):
        return Mirror.unlabeled(value, value, DisplayStyle.COLLECTION)

    attributes = _instance_attributes(value)
    if attributes is not None:
        return Mirror(
            value,
            [Child(name, item) for name, item in attributes],
            DisplayStyle.CLASS,
        )

    return Mirror(value, [], DisplayStyle.SCALAR)


def _instance_attributes(value: Any) -> list[tuple[str, Any]] | None:
    found = False
    attributes: dict[str, Any] = {}

    for cls in reversed(type(value).__mro__):
        slots = cls.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for slot in slots:
            if slot in ("__dict__", "__weakref__"):
                continue
            found = True
            if hasattr(value, slot):
                attributes[slot] = getattr(value, slot)

    instance_dict = getattr(value, "__dict__", None)
    if isinstance(instance_dict, dict):
        found = True
        attributes.update(instance_dict)

    if not found:
        return None
    return list(attributes.items())
