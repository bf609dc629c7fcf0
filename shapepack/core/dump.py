"""Pretty-printer that renders a single value as indented text."""

from __future__ import annotations

import re
from typing import Any

from shapepack.core.mirror import (
    Child,
    KeyValue,
    Mirror,
    custom_description,
    custom_dump_value,
    has_custom_description,
    has_dump_value,
    is_synthetic_label,
    reflect,
    type_name,
)
from shapepack.core.types import REVISITED, UNBOUNDED, DisplayStyle

_QUOTE_HASHES_RE = re.compile(r'"(#*)')
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\t": "\\t",
    "\r": "\\r",
    "\0": "\\0",
}


def dump(
    value: Any,
    name: str | None = None,
    indent: int = 0,
    max_depth: int = UNBOUNDED,
) -> str:
    """Render ``value`` as text.

    ``max_depth=0`` yields a single summarized line; nested containers beyond
    ``max_depth`` collapse to ``[…]``-style placeholders. Every line is
    indented by ``indent`` spaces and the first line carries ``name: ``.
    """
    return indent_by(_Dumper().render(value, name, max_depth), indent)


def indent_lines(text: str, prefix: str) -> str:
    if not prefix:
        return text
    return prefix + text.replace("\n", "\n" + prefix)


def indent_by(text: str, count: int) -> str:
    return indent_lines(text, " " * count)


def hash_count(text: str) -> int:
    """Number of ``#`` characters needed to fence ``text`` in a block literal."""
    if '"""' not in text:
        return 0
    longest = max(len(match.group(1)) for match in _QUOTE_HASHES_RE.finditer(text))
    return longest + 1


def split_lines(text: str) -> list[str]:
    """Split on LF, CRLF or lone CR; a trailing break yields a final empty line."""
    return _LINE_BREAK_RE.split(text)


def is_multiline(text: str) -> bool:
    return _LINE_BREAK_RE.search(text) is not None


def sort_key(value: Any) -> str:
    """Rendered form used to order dictionary keys and set elements."""
    return dump(value, max_depth=1)


def quote(text: str) -> str:
    escaped = "".join(_ESCAPES.get(char, _escape_control(char)) for char in text)
    return f'"{escaped}"'


def _escape_control(char: str) -> str:
    if char.isprintable() or char == "\n":
        return char
    return f"\\u{{{ord(char):x}}}"


class _Dumper:
    __slots__ = ("_visiting",)

    def __init__(self) -> None:
        self._visiting: set[int] = set()

    def render(self, value: Any, name: str | None, max_depth: int) -> str:
        label = f"{name}: " if name is not None else ""

        if has_custom_description(value):
            return label + custom_description(value)
        if has_dump_value(value):
            return self.render(custom_dump_value(value), name, max_depth)
        if isinstance(value, str):
            return label + _render_string(value, named=name is not None)

        mirror = reflect(value)
        style = mirror.display_style

        if style is DisplayStyle.SCALAR:
            return label + _render_scalar(value)

        if style is DisplayStyle.OPTIONAL:
            if not mirror.children:
                return label + "None"
            return self.render(mirror.children[0].value, name, max_depth)

        if style is DisplayStyle.ENUM:
            return label + self._render_enum(mirror, max_depth)

        if style is DisplayStyle.CLASS:
            identity = id(value)
            if identity in self._visiting:
                return label + f"{mirror.type_name}({REVISITED})"
            self._visiting.add(identity)
            try:
                return label + self._render_children(
                    mirror.children,
                    f"{mirror.type_name}(",
                    ")",
                    max_depth,
                )
            finally:
                self._visiting.discard(identity)

        if style is DisplayStyle.STRUCT:
            return label + self._render_children(
                mirror.children,
                f"{mirror.type_name}(",
                ")",
                max_depth,
            )

        if style is DisplayStyle.TUPLE:
            return label + self._render_children(
                _strip_synthetic_labels(mirror.children),
                "(",
                ")",
                max_depth,
            )

        if style is DisplayStyle.COLLECTION:
            children = [
                Child(f"[{index}]", child.value) for index, child in enumerate(mirror.children)
            ]
            return label + self._render_children(children, "[", "]", max_depth)

        if style is DisplayStyle.DICTIONARY:
            if not mirror.children:
                return label + "[:]"
            return label + self._render_children(
                _dictionary_entries(mirror.children),
                "[",
                "]",
                max_depth,
            )

        if style is DisplayStyle.SET:
            children = sorted(mirror.children, key=lambda child: sort_key(child.value))
            return label + self._render_children(children, "Set([", "])", max_depth)

        return label + repr(value)

    def _render_enum(self, mirror: Mirror, max_depth: int) -> str:
        if not mirror.children:
            return repr(mirror.subject)
        case = mirror.children[0]
        head = f"{mirror.type_name}.{case.label}"
        associated = associated_values(mirror.subject, case.value)
        if not associated.children:
            return head
        return self._render_children(
            _strip_synthetic_labels(associated.children),
            f"{head}(",
            ")",
            max_depth,
        )

    def _render_children(
        self,
        children: list[Child],
        prefix: str,
        suffix: str,
        max_depth: int,
    ) -> str:
        if not children:
            return prefix + suffix
        if max_depth <= 0:
            return f"{prefix}…{suffix}"

        lines = [prefix]
        last = len(children) - 1
        for index, child in enumerate(children):
            rendered = self.render(child.value, child.label, max_depth - 1)
            lines.append(indent_by(rendered, 2) + ("" if index == last else ","))
        lines.append(suffix)
        return "\n".join(lines)


def associated_values(subject: Any, payload: Any) -> Mirror:
    """Reflect an enum case payload as a tuple of associated values."""
    mirror = reflect(payload)
    if mirror.display_style is DisplayStyle.TUPLE:
        return mirror
    return Mirror.unlabeled(subject, [payload], DisplayStyle.TUPLE)


def _strip_synthetic_labels(children: list[Child]) -> list[Child]:
    return [
        Child(None, child.value) if is_synthetic_label(child.label) else child
        for child in children
    ]


def _dictionary_entries(children: list[Child]) -> list[Child]:
    entries: list[Child] = []
    for child in children:
        if isinstance(child.value, KeyValue):
            entries.append(Child(sort_key(child.value.key), child.value.value))
        else:
            entries.append(child)
    return sorted(entries, key=lambda entry: entry.label if entry.label is not None else "")


def _render_string(text: str, *, named: bool) -> str:
    if not is_multiline(text):
        return quote(text)

    hashes = "#" * hash_count(text)
    lines = "\n".join(split_lines(text))
    body = indent_by(lines, 2) if named else lines
    closing = '  """' if named else '"""'
    return f'{hashes}"""\n{body}\n{closing}{hashes}'


def _render_scalar(value: Any) -> str:
    if isinstance(value, type):
        return type_name(value)
    return repr(value)
