"""
Protocol Command Definitions

This module defines the typed commands the server understands and the
classifier that maps decoded wire values onto them.

Commands:
    PING                           -> Ping
    ECHO <arg>                     -> Echo(arg)
    SET <key> <value> [PX <ms>]    -> Set(key, value, expiry_ms)
    GET <key>                      -> Get(key)
    CONFIG GET <key>               -> ConfigGet(key)
    KEYS <pattern>                 -> Keys(pattern)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from .errors import UnclassifiedCommandError
from .values import Array, ArrayKind, BulkKind, BulkString, Value


class CommandType(Enum):
    """Enumeration of supported command types."""
    PING = auto()
    ECHO = auto()
    SET = auto()
    GET = auto()
    CONFIG_GET = auto()
    KEYS = auto()


@dataclass(frozen=True)
class Command:
    """
    Represents a classified command.

    Attributes:
        type: The type of command
        key: The key for SET/GET, the setting name for CONFIG GET
        value: The value to store for SET
        argument: The ECHO argument or the KEYS pattern
        expiry_ms: Relative expiry for SET ... PX <ms> (None = no expiry)
        raw: The original wire value
    """
    type: CommandType
    key: str = ""
    value: Optional[Value] = None
    argument: Optional[BulkString] = None
    expiry_ms: Optional[int] = None
    raw: Optional[Value] = None


def _keyword(word: BulkString) -> str:
    return word.text.lower()


def classify(value: Value) -> Command:
    """
    Classify a decoded wire value into a Command.

    Keywords are matched case-insensitively. Every element must be a
    non-null bulk string.

    Raises:
        UnclassifiedCommandError: The value does not match any command

    Examples:
        >>> classify(Array.of([BulkString.of("PiNg")])).type
        <CommandType.PING: 1>
    """
    if not isinstance(value, Array) or value.kind != ArrayKind.ITEMS:
        raise UnclassifiedCommandError(value, "expected a non-empty array")

    parts = value.items
    if not all(isinstance(p, BulkString) and p.kind != BulkKind.NULL for p in parts):
        raise UnclassifiedCommandError(value, "expected bulk string arguments")

    name = _keyword(parts[0])
    args = parts[1:]

    if name == "ping" and not args:
        return Command(type=CommandType.PING, raw=value)

    if name == "echo" and len(args) == 1:
        return Command(type=CommandType.ECHO, argument=args[0], raw=value)

    if name == "get" and len(args) == 1:
        return Command(type=CommandType.GET, key=args[0].inner(), raw=value)

    if name == "keys" and len(args) == 1:
        return Command(type=CommandType.KEYS, argument=args[0], raw=value)

    if name == "config" and len(args) == 2 and _keyword(args[0]) == "get":
        return Command(type=CommandType.CONFIG_GET, key=args[1].inner(), raw=value)

    if name == "set" and len(args) >= 2:
        return _classify_set(value, args)

    raise UnclassifiedCommandError(value)


def _classify_set(value: Array, args) -> Command:
    """
    Classify SET <key> <value> [PX <millis> ...].

    Tokens after the PX pair are ignored, and so is anything after the
    value that does not start with PX.
    """
    key, stored = args[0], args[1]
    rest = args[2:]

    expiry_ms = None
    if len(rest) >= 2 and _keyword(rest[0]) == "px":
        millis = rest[1].inner()
        if not (millis.isascii() and millis.isdigit()):
            raise UnclassifiedCommandError(value, "PX expects a non-negative integer")
        expiry_ms = int(millis)

    return Command(
        type=CommandType.SET,
        key=key.inner(),
        value=stored,
        expiry_ms=expiry_ms,
        raw=value,
    )
