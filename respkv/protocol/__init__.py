"""Protocol module for respkv."""

from .commands import Command, CommandType, classify
from .errors import IncompleteFrameError, ProtocolDecodeError, UnclassifiedCommandError
from .parser import RespParser, decode, encode
from .values import (
    Array,
    ArrayKind,
    BulkKind,
    BulkString,
    Error,
    Integer,
    SimpleString,
    Value,
)

__all__ = [
    "Array",
    "ArrayKind",
    "BulkKind",
    "BulkString",
    "Command",
    "CommandType",
    "Error",
    "IncompleteFrameError",
    "Integer",
    "ProtocolDecodeError",
    "RespParser",
    "SimpleString",
    "UnclassifiedCommandError",
    "Value",
    "classify",
    "decode",
    "encode",
]
