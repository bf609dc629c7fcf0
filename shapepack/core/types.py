"""Type definitions for ShapeKit value introspection."""

from enum import Enum
import sys


class DisplayStyle(str, Enum):
    SCALAR = "scalar"
    CLASS = "class"
    COLLECTION = "collection"
    DICTIONARY = "dictionary"
    ENUM = "enum"
    OPTIONAL = "optional"
    SET = "set"
    STRUCT = "struct"
    TUPLE = "tuple"


UNBOUNDED = sys.maxsize
REVISITED = "↩︎"
SYNTHETIC_LABEL_PREFIX = "."
