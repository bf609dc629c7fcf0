"""Structural diff engine with run collapsing and cycle detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from shapepack.core.dump import (
    associated_values,
    dump,
    hash_count,
    indent_by,
    indent_lines,
    is_multiline,
    sort_key,
    split_lines,
)
from shapepack.core.equality import identical, structurally_equal
from shapepack.core.mirror import (
    Child,
    KeyValue,
    Mirror,
    custom_dump_value,
    has_custom_description,
    has_dump_value,
    is_synthetic_label,
    reflect,
    type_name,
)
from shapepack.core.types import REVISITED, UNBOUNDED, DisplayStyle
from shapepack.diff.alignment import align
from shapepack.diff.formatting import DiffFormat
from shapepack.plugins import DiffEndEvent, DiffStartEvent, get_active_plugin_manager

Equivalence = Callable[[Child, Child], bool]
OrderKey = Callable[[Child], str]
Relabel = Callable[[Child, int], Child]


def diff(left: Any, right: Any, format: DiffFormat = DiffFormat.default) -> str | None:
    """Describe how ``left`` differs from ``right``.

    Returns ``None`` when the values are structurally equal, otherwise lines
    prefixed with ``format.first`` (only in ``left``), ``format.second``
    (only in ``right``) or ``format.both`` (unchanged).
    """
    left_type = type_name(type(left))
    right_type = type_name(type(right))
    plugin_manager = get_active_plugin_manager()
    plugin_manager.on_diff_start(
        DiffStartEvent(left_type=left_type, right_type=right_type, format_name=format.name)
    )

    try:
        if structurally_equal(left, right):
            result = None
        else:
            result = _Differ(format).diff(
                left,
                right,
                left_name=None,
                right_name=None,
                separator="",
                indent=0,
            )
            if result.endswith("\n"):
                result = result[:-1]
    except Exception as error:
        plugin_manager.on_diff_end(
            DiffEndEvent(
                left_type=left_type,
                right_type=right_type,
                status="error",
                error_type=error.__class__.__name__,
                error_message=str(error),
            )
        )
        raise

    lines = [] if result is None else result.split("\n")
    plugin_manager.on_diff_end(
        DiffEndEvent(
            left_type=left_type,
            right_type=right_type,
            status="ok",
            identical=result is None,
            line_count=0 if result is None else len(lines),
            first_only_lines=_count_marked(lines, format.first),
            second_only_lines=_count_marked(lines, format.second),
        )
    )
    return result


def _count_marked(lines: list[str], marker: str) -> int:
    prefix = marker + " "
    return sum(1 for line in lines if line.startswith(prefix))


@dataclass(slots=True)
class _DiffOutput:
    parts: list[str] = field(default_factory=list)

    def write(self, text: str, terminator: str = "\n") -> None:
        self.parts.append(text)
        self.parts.append(terminator)

    def getvalue(self) -> str:
        return "".join(self.parts)


@dataclass(frozen=True, slots=True)
class _Pair:
    left: Any
    right: Any
    left_name: str | None
    right_name: str | None
    separator: str
    indent: int


@dataclass(frozen=True, slots=True)
class _ChildPolicy:
    prefix: str
    suffix: str
    element_indent: int
    element_separator: str
    collapse_unchanged: bool
    equivalent: Equivalence
    order: OrderKey | None = None
    relabel: Relabel | None = None


class _Differ:
    """One top-level diff call; owns the visited identity set."""

    def __init__(self, format: DiffFormat) -> None:
        self.format = format
        self.visited: set[int] = set()

    def mark(self, text: str, marker: str) -> str:
        return indent_lines(text, marker + " ")

    def diff(
        self,
        left: Any,
        right: Any,
        *,
        left_name: str | None,
        right_name: str | None,
        separator: str,
        indent: int,
    ) -> str:
        if right_name is None:
            right_name = left_name
        if structurally_equal(left, right):
            return self.mark(dump(left, right_name, indent, 0) + separator, self.format.both)

        pair = _Pair(left, right, left_name, right_name, separator, indent)
        out = _DiffOutput()
        self._dispatch(pair, out)
        return out.getvalue()

    def _dispatch(self, pair: _Pair, out: _DiffOutput) -> None:
        left, right = pair.left, pair.right
        if type(left) is not type(right):
            self._diff_everything(pair, out)
            return

        if has_custom_description(left) or has_custom_description(right):
            self._diff_everything(pair, out)
            return

        if has_dump_value(left) and has_dump_value(right):
            out.write(
                self.diff(
                    custom_dump_value(left),
                    custom_dump_value(right),
                    left_name=pair.left_name,
                    right_name=pair.right_name,
                    separator=pair.separator,
                    indent=pair.indent,
                ),
                terminator="",
            )
            return

        left_mirror = reflect(left)
        right_mirror = reflect(right)
        style = left_mirror.display_style
        if style is not right_mirror.display_style:
            self._diff_everything(pair, out)
            return

        if style is DisplayStyle.CLASS:
            self._diff_reference(pair, out, left_mirror, right_mirror)
        elif style is DisplayStyle.COLLECTION:
            self._diff_children(
                pair,
                out,
                left_mirror,
                right_mirror,
                _ChildPolicy(
                    prefix="[",
                    suffix="]",
                    element_indent=2,
                    element_separator=",",
                    collapse_unchanged=True,
                    equivalent=_same_or_equal,
                    relabel=_index_label,
                ),
            )
        elif style is DisplayStyle.DICTIONARY:
            self._diff_children(
                pair,
                out,
                left_mirror,
                right_mirror,
                _ChildPolicy(
                    prefix="[",
                    suffix="]",
                    element_indent=2,
                    element_separator=",",
                    collapse_unchanged=True,
                    equivalent=_same_key,
                    order=_entry_order,
                    relabel=_entry_label,
                ),
            )
        elif style is DisplayStyle.ENUM:
            self._diff_enum(pair, out, left_mirror, right_mirror)
        elif style is DisplayStyle.OPTIONAL:
            if not left_mirror.children or not right_mirror.children:
                self._diff_everything(pair, out)
                return
            out.write(
                self.diff(
                    left_mirror.children[0].value,
                    right_mirror.children[0].value,
                    left_name=pair.left_name,
                    right_name=pair.right_name,
                    separator=pair.separator,
                    indent=pair.indent,
                ),
                terminator="",
            )
        elif style is DisplayStyle.SET:
            self._diff_children(
                pair,
                out,
                left_mirror,
                right_mirror,
                _ChildPolicy(
                    prefix="Set([",
                    suffix="])",
                    element_indent=2,
                    element_separator=",",
                    collapse_unchanged=True,
                    equivalent=_same_or_equal,
                    order=_element_order,
                ),
            )
        elif style is DisplayStyle.STRUCT:
            self._diff_children(
                pair,
                out,
                left_mirror,
                right_mirror,
                _ChildPolicy(
                    prefix=f"{left_mirror.type_name}(",
                    suffix=")",
                    element_indent=2,
                    element_separator=",",
                    collapse_unchanged=False,
                    equivalent=_same_label,
                ),
            )
        elif style is DisplayStyle.TUPLE:
            self._diff_children(
                pair,
                out,
                left_mirror,
                right_mirror,
                _ChildPolicy(
                    prefix="(",
                    suffix=")",
                    element_indent=2,
                    element_separator=",",
                    collapse_unchanged=False,
                    equivalent=_same_label,
                    relabel=_strip_synthetic_label,
                ),
            )
        elif isinstance(left, str) and (is_multiline(left) or is_multiline(right)):
            self._diff_text(pair, out)
        else:
            self._diff_everything(pair, out)

    def _diff_everything(self, pair: _Pair, out: _DiffOutput) -> None:
        out.write(
            self.mark(
                dump(pair.left, pair.left_name, pair.indent, UNBOUNDED) + pair.separator,
                self.format.first,
            )
        )
        out.write(
            self.mark(
                dump(pair.right, pair.right_name, pair.indent, UNBOUNDED) + pair.separator,
                self.format.second,
            ),
            terminator="",
        )

    def _diff_reference(
        self,
        pair: _Pair,
        out: _DiffOutput,
        left_mirror: Mirror,
        right_mirror: Mirror,
    ) -> None:
        left_identity = left_mirror.identity
        right_identity = right_mirror.identity
        if left_identity in self.visited or right_identity in self.visited:
            placeholder = indent_by(f"{left_mirror.type_name}({REVISITED})", pair.indent)
            out.write(self.mark(placeholder, self.format.first))
            out.write(self.mark(placeholder, self.format.second), terminator="")
            return

        if left_identity is not None:
            self.visited.add(left_identity)
        self._diff_children(
            pair,
            out,
            left_mirror,
            right_mirror,
            _ChildPolicy(
                prefix=f"{left_mirror.type_name}(",
                suffix=")",
                element_indent=2,
                element_separator=",",
                collapse_unchanged=False,
                equivalent=_same_label,
            ),
        )

    def _diff_enum(
        self,
        pair: _Pair,
        out: _DiffOutput,
        left_mirror: Mirror,
        right_mirror: Mirror,
    ) -> None:
        if not left_mirror.children or not right_mirror.children:
            self._diff_everything(pair, out)
            return
        left_case = left_mirror.children[0]
        right_case = right_mirror.children[0]
        if left_case.label is None or left_case.label != right_case.label:
            self._diff_everything(pair, out)
            return

        self._diff_children(
            pair,
            out,
            associated_values(pair.left, left_case.value),
            associated_values(pair.right, right_case.value),
            _ChildPolicy(
                prefix=f"{left_mirror.type_name}.{left_case.label}(",
                suffix=")",
                element_indent=2,
                element_separator=",",
                collapse_unchanged=False,
                equivalent=_same_label,
                relabel=_strip_synthetic_label,
            ),
        )

    def _diff_text(self, pair: _Pair, out: _DiffOutput) -> None:
        named = pair.right_name is not None
        hashes = "#" * max(hash_count(pair.left), hash_count(pair.right))
        self._diff_children(
            pair,
            out,
            Mirror.unlabeled(pair.left, _text_lines(pair.left), DisplayStyle.COLLECTION),
            Mirror.unlabeled(pair.right, _text_lines(pair.right), DisplayStyle.COLLECTION),
            _ChildPolicy(
                prefix=f'{hashes}"""',
                suffix=f'  """{hashes}' if named else f'"""{hashes}',
                element_indent=2 if named else 0,
                element_separator="",
                collapse_unchanged=False,
                equivalent=_same_or_equal,
            ),
        )

    def _diff_children(
        self,
        pair: _Pair,
        out: _DiffOutput,
        left_mirror: Mirror,
        right_mirror: Mirror,
        policy: _ChildPolicy,
    ) -> None:
        if not left_mirror.children and not right_mirror.children:
            out.write(
                self.mark(
                    dump(pair.left, pair.left_name, pair.indent, 0) + pair.separator,
                    self.format.first,
                )
            )
            out.write(
                self.mark(
                    dump(pair.right, pair.right_name, pair.indent, 0) + pair.separator,
                    self.format.second,
                ),
                terminator="",
            )
            return

        if left_mirror.is_single_value_container or right_mirror.is_single_value_container:
            self._diff_everything(pair, out)
            return

        label = f"{pair.right_name}: " if pair.right_name is not None else ""
        out.write(self.mark(indent_by(label + policy.prefix, pair.indent), self.format.both))

        _ChildWalk(self, out, pair.indent, policy, left_mirror, right_mirror).run()

        out.write(
            self.mark(indent_by(policy.suffix, pair.indent), self.format.both),
            terminator=pair.separator,
        )


class _ChildWalk:
    """Lockstep walk over two aligned child lists, collapsing unchanged runs."""

    def __init__(
        self,
        differ: _Differ,
        out: _DiffOutput,
        indent: int,
        policy: _ChildPolicy,
        left_mirror: Mirror,
        right_mirror: Mirror,
    ) -> None:
        self.differ = differ
        self.out = out
        self.policy = policy
        self.element_indent = indent + policy.element_indent
        self.alignment = align(
            left_mirror.children,
            right_mirror.children,
            policy.equivalent,
            key=policy.order,
        )
        self.left = self.alignment.left
        self.right = self.alignment.right
        self.left_offset = 0
        self.right_offset = 0
        self.unchanged: list[Child] = []

    def run(self) -> None:
        policy = self.policy
        while self.left_offset < len(self.left) or self.right_offset < len(self.right):
            step = self.alignment.step(self.left_offset, self.right_offset)

            if (
                policy.collapse_unchanged
                and step == "pair"
                and _children_equal(self.left[self.left_offset], self.right[self.right_offset])
            ):
                self.unchanged.append(self._relabel(self.right[self.right_offset], self.right_offset))
                self.left_offset += 1
                self.right_offset += 1
                continue

            if policy.order is None:
                self._flush()

            if step in ("pair", "replacement"):
                self._emit_pair(replacement=step == "replacement")
            elif step == "removal":
                self._emit_removal()
            else:
                self._emit_insertion()

        self._flush()

    def _relabel(self, child: Child, offset: int) -> Child:
        if self.policy.relabel is None:
            return child
        return self.policy.relabel(child, offset)

    def _terminator(self, is_last: bool) -> str:
        return "\n" if is_last else self.policy.element_separator + "\n"

    def _run_pending(self) -> bool:
        # Sorted walks write the collapsed run after every other line.
        return self.policy.order is not None and bool(self.unchanged)

    def _flush(self) -> None:
        if not self.policy.collapse_unchanged:
            return
        count = len(self.unchanged)
        is_last = self.right_offset - 1 == len(self.right) - 1
        marker = self.differ.format.both

        if self.policy.order is None and count == 1:
            child = self.unchanged[0]
            self.out.write(
                self.differ.mark(dump(child.value, child.label, self.element_indent, 0), marker),
                terminator=self._terminator(is_last),
            )
        elif count >= 1:
            self.out.write(
                self.differ.mark(indent_by(f"… ({count} unchanged)", self.element_indent), marker),
                terminator=self._terminator(is_last),
            )
        self.unchanged.clear()

    def _emit_pair(self, *, replacement: bool) -> None:
        left_offset, right_offset = self.left_offset, self.right_offset
        left_child = self._relabel(
            self.left[left_offset], left_offset if replacement else right_offset
        )
        right_child = self._relabel(self.right[right_offset], right_offset)
        is_last = (
            left_offset == len(self.left) - 1
            and right_offset == len(self.right) - 1
            and not self._run_pending()
        )
        self.out.write(
            self.differ.diff(
                left_child.value,
                right_child.value,
                left_name=left_child.label,
                right_name=right_child.label,
                separator="" if is_last else self.policy.element_separator,
                indent=self.element_indent,
            )
        )
        self.left_offset += 1
        self.right_offset += 1

    def _emit_removal(self) -> None:
        child = self._relabel(self.left[self.left_offset], self.left_offset)
        self.out.write(
            self.differ.mark(
                dump(child.value, child.label, self.element_indent, UNBOUNDED),
                self.differ.format.first,
            ),
            terminator=self._terminator(
                self.left_offset == len(self.left) - 1 and not self._run_pending()
            ),
        )
        self.left_offset += 1

    def _emit_insertion(self) -> None:
        child = self._relabel(self.right[self.right_offset], self.right_offset)
        is_last = self.right_offset == len(self.right) - 1 and not self.unchanged
        self.out.write(
            self.differ.mark(
                dump(child.value, child.label, self.element_indent, UNBOUNDED),
                self.differ.format.second,
            ),
            terminator=self._terminator(is_last),
        )
        self.right_offset += 1


@dataclass(frozen=True, slots=True)
class _Line:
    """One line of a multi-line string, described verbatim."""

    raw: str

    def __dump_description__(self) -> str:
        return self.raw


def _text_lines(text: str) -> list[_Line]:
    if not text:
        return []
    return [_Line(line) for line in split_lines(text)]


def _children_equal(left: Child, right: Child) -> bool:
    return left.label == right.label and structurally_equal(left.value, right.value)


def _same_label(left: Child, right: Child) -> bool:
    return left.label == right.label


def _same_or_equal(left: Child, right: Child) -> bool:
    return identical(left.value, right.value) or structurally_equal(left.value, right.value)


def _same_key(left: Child, right: Child) -> bool:
    if isinstance(left.value, KeyValue) and isinstance(right.value, KeyValue):
        return structurally_equal(left.value.key, right.value.key)
    return structurally_equal(left.value, right.value)


def _entry_order(child: Child) -> str:
    if isinstance(child.value, KeyValue):
        return sort_key(child.value.key)
    return sort_key(child.value)


def _element_order(child: Child) -> str:
    return sort_key(child.value)


def _index_label(child: Child, offset: int) -> Child:
    return Child(f"[{offset}]", child.value)


def _entry_label(child: Child, offset: int) -> Child:
    if not isinstance(child.value, KeyValue):
        return child
    return Child(sort_key(child.value.key), child.value.value)


def _strip_synthetic_label(child: Child, offset: int) -> Child:
    if is_synthetic_label(child.label):
        return Child(None, child.value)
    return child
