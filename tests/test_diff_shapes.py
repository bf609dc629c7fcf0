import enum

from shapepack.core import Mirror
from shapepack.core.types import DisplayStyle
from shapepack.diff import diff


class Point:
    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y


class Node:
    def __init__(self, value: int) -> None:
        self.value = value
        self.next: "Node | None" = None


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


class Result:
    """Tagged union with associated values."""

    def __init__(self, case: str, payload: object = ()) -> None:
        self.case = case
        self.payload = payload

    def __dump_mirror__(self) -> Mirror:
        return Mirror.enum_case(self, self.case, self.payload)


class Maybe:
    _absent = object()

    def __init__(self, value: object = _absent) -> None:
        self.value = value

    def __dump_mirror__(self) -> Mirror:
        if self.value is Maybe._absent:
            return Mirror.optional(self)
        return Mirror.optional(self, self.value)


class Box:
    def __init__(self, item: object) -> None:
        self.item = item


class Token:
    def __init__(self, name: str) -> None:
        self.name = name

    def __dump_description__(self) -> str:
        return f"tok-{self.name}"


class Meters:
    def __init__(self, amount: float) -> None:
        self.amount = amount

    def __dump_value__(self) -> float:
        return self.amount


class Wrapper:
    def __init__(self, inner: object) -> None:
        self.inner = inner

    def __dump_mirror__(self) -> Mirror:
        return Mirror.unlabeled(self, [self.inner], DisplayStyle.STRUCT)


def test_diff_plain_objects_by_attribute() -> None:
    result = diff(Point(1, 2), Point(1, 3))

    assert result == (
        "  Point(\n"
        "    x: 1,\n"
        "-   y: 2\n"
        "+   y: 3\n"
        "  )"
    )


def test_diff_plain_objects_with_same_attributes_are_equal() -> None:
    assert diff(Point(1, 2), Point(1, 2)) is None


def test_diff_cyclic_objects_emit_revisit_placeholder() -> None:
    left = Node(1)
    left.next = left
    right = Node(2)
    right.next = right

    result = diff(left, right)

    assert result == (
        "  Node(\n"
        "-   value: 1,\n"
        "+   value: 2,\n"
        "-   Node(↩︎)\n"
        "+   Node(↩︎)\n"
        "  )"
    )


def test_diff_cyclic_object_against_itself_is_none() -> None:
    node = Node(1)
    node.next = node

    assert diff(node, node) is None


def test_diff_cyclic_graphs_with_equal_shape_are_equal() -> None:
    left = Node(1)
    left.next = left
    right = Node(1)
    right.next = right

    assert diff(left, right) is None


def test_diff_enum_case_change_falls_back_to_full_dump() -> None:
    result = diff(Result("success", 1), Result("failure", "x"))

    assert result == (
        "- Result.success(\n"
        "-   1\n"
        "- )\n"
        "+ Result.failure(\n"
        '+   "x"\n'
        "+ )"
    )


def test_diff_enum_same_case_diffs_associated_value() -> None:
    result = diff(Result("success", 1), Result("success", 2))

    assert result == (
        "  Result.success(\n"
        "-   1\n"
        "+   2\n"
        "  )"
    )


def test_diff_enum_same_case_diffs_associated_tuple() -> None:
    result = diff(Result("moved", (1, 2)), Result("moved", (1, 5)))

    assert result == (
        "  Result.moved(\n"
        "    1,\n"
        "-   2\n"
        "+   5\n"
        "  )"
    )


def test_diff_stdlib_enum_members() -> None:
    assert diff(Color.RED, Color.RED) is None
    assert diff(Color.RED, Color.GREEN) == "- Color.RED\n+ Color.GREEN"


def test_diff_optional_is_transparent() -> None:
    assert diff(Maybe(1), Maybe(2)) == "- 1\n+ 2"
    assert diff(Box(Maybe(1)), Box(Maybe(2))) == (
        "  Box(\n"
        "-   item: 1\n"
        "+   item: 2\n"
        "  )"
    )


def test_diff_optional_absent_side_falls_back() -> None:
    assert diff(Maybe(), Maybe(2)) == "- None\n+ 2"
    assert diff(Maybe(), Maybe()) is None


def test_diff_custom_description_is_atomic() -> None:
    assert diff(Token("a"), Token("b")) == "- tok-a\n+ tok-b"
    assert diff(Token("a"), Token("a")) is None


def test_diff_custom_dump_value_redirects_to_proxy() -> None:
    assert diff(Meters(1.5), Meters(2.0)) == "- 1.5\n+ 2.0"
    assert diff([Meters(1.5)], [Meters(2.0)]) == (
        "  [\n"
        "-   [0]: 1.5\n"
        "+   [0]: 2.0\n"
        "  ]"
    )


def test_diff_single_value_container_dumps_both_sides() -> None:
    result = diff(Wrapper(1), Wrapper(2))

    assert result == (
        "- Wrapper(\n"
        "-   1\n"
        "- )\n"
        "+ Wrapper(\n"
        "+   2\n"
        "+ )"
    )


def test_diff_collection_prefers_identity_when_matching_objects() -> None:
    shared = Point(0, 0)
    result = diff([shared, Point(1, 1)], [shared, Point(1, 2)])

    assert result == (
        "  [\n"
        "    [0]: Point(…),\n"
        "    [1]: Point(\n"
        "      x: 1,\n"
        "-     y: 1\n"
        "+     y: 2\n"
        "    )\n"
        "  ]"
    )
