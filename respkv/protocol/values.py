"""
RESP Wire Value Model

This module defines the immutable value types exchanged over the wire.

Variants:
    SimpleString  +<text>\\r\\n
    BulkString    $<len>\\r\\n<text>\\r\\n   (Text, Empty or Null)
    Error         -<title> <message>\\r\\n
    Integer       :<n>\\r\\n
    Array         *<count>\\r\\n<items...>  (Items, Empty or Null)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterable, Tuple, Union


class BulkKind(Enum):
    """Enumeration of bulk string shapes."""
    TEXT = auto()
    EMPTY = auto()
    NULL = auto()


class ArrayKind(Enum):
    """Enumeration of array shapes."""
    ITEMS = auto()
    EMPTY = auto()
    NULL = auto()


@dataclass(frozen=True)
class SimpleString:
    """A single-line, non-binary status string."""
    text: str


@dataclass(frozen=True)
class BulkString:
    """
    A length-prefixed string.

    Attributes:
        kind: TEXT, EMPTY or NULL
        text: The payload (always "" for EMPTY and NULL)
    """
    kind: BulkKind
    text: str = ""

    @classmethod
    def of(cls, text: str) -> "BulkString":
        """Create a Text bulk string; "" becomes Empty, as it decodes."""
        if not text:
            return cls.empty()
        return cls(kind=BulkKind.TEXT, text=text)

    @classmethod
    def empty(cls) -> "BulkString":
        return cls(kind=BulkKind.EMPTY)

    @classmethod
    def null(cls) -> "BulkString":
        return cls(kind=BulkKind.NULL)

    @property
    def is_null(self) -> bool:
        return self.kind == BulkKind.NULL

    def inner(self) -> str:
        """Return the payload; Empty and Null both read as ""."""
        return self.text if self.kind == BulkKind.TEXT else ""


@dataclass(frozen=True)
class Error:
    """An error reply, split at the first space into title and message."""
    title: str
    message: str = ""


@dataclass(frozen=True)
class Integer:
    """A signed 64-bit integer."""
    value: int


@dataclass(frozen=True)
class Array:
    """
    An ordered sequence of values.

    Attributes:
        kind: ITEMS, EMPTY or NULL
        items: The elements (always () for EMPTY and NULL)
    """
    kind: ArrayKind
    items: Tuple["Value", ...] = ()

    @classmethod
    def of(cls, items: Iterable["Value"]) -> "Array":
        """Create an Items array."""
        return cls(kind=ArrayKind.ITEMS, items=tuple(items))

    @classmethod
    def empty(cls) -> "Array":
        return cls(kind=ArrayKind.EMPTY)

    @classmethod
    def null(cls) -> "Array":
        return cls(kind=ArrayKind.NULL)

    def __len__(self) -> int:
        return len(self.items)


Value = Union[SimpleString, BulkString, Error, Integer, Array]


# Common replies
PONG = SimpleString("PONG")
OK = SimpleString("OK")
NULL_BULK = BulkString.null()
EMPTY_ARRAY = Array.empty()


def bulk(text: str) -> BulkString:
    """Create a bulk string reply; "" becomes Empty."""
    return BulkString.of(text)


def array(items: Iterable[Value]) -> Array:
    """Create an array reply; no items becomes Empty."""
    items = tuple(items)
    return Array.of(items) if items else Array.empty()
