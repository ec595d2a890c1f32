"""
Snapshot Data Model

Typed records produced by the snapshot decoder. All of them are
immutable once decoded and may be shared read-only between connections.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Union

from ..protocol.values import BulkString, bulk


@dataclass(frozen=True)
class IntegerString:
    """A string stored as a 32-bit signed integer."""
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class TextString:
    """A plain UTF-8 string."""
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class CompressedString:
    """An LZF-compressed string. Decoding one always fails."""
    compressed_length: int
    uncompressed_length: int
    data: bytes = b""

    def __str__(self) -> str:
        return ""


DBString = Union[IntegerString, TextString, CompressedString]


def to_wire(s: DBString) -> BulkString:
    """Convert a snapshot string into a wire bulk string."""
    return bulk(str(s))


@dataclass(frozen=True)
class StringValue:
    """A string-typed snapshot value (type tag 0)."""
    string: DBString

    def __str__(self) -> str:
        return str(self.string)

    def to_wire(self) -> BulkString:
        return to_wire(self.string)


DBValue = StringValue


class ExpirationUnit(Enum):
    """Unit marker an expiry was stored with on disk."""
    SECONDS = 0xFD
    MILLISECONDS = 0xFC


@dataclass(frozen=True)
class KVPair:
    """
    A single key-value record.

    Attributes:
        key: The record key
        value: The record value
        expiration_ms: Absolute expiry in Unix milliseconds (None = never)
        expiration_unit: The unit the expiry was stored with on disk
    """
    key: DBString
    value: DBValue
    expiration_ms: Optional[int] = None
    expiration_unit: Optional[ExpirationUnit] = None


@dataclass(frozen=True)
class ResizeHint:
    hash_table_size: int
    expire_hash_table_size: int


@dataclass(frozen=True)
class Auxiliary:
    key: DBString
    value: DBString


@dataclass(frozen=True)
class DB:
    """A database section."""
    number: int
    resize_hint: Optional[ResizeHint] = None
    entries: Tuple[KVPair, ...] = ()

    def get(self, key: str) -> Optional[DBValue]:
        for entry in self.entries:
            if str(entry.key) == key:
                return entry.value
        return None

    def keys(self) -> Iterator[DBString]:
        return (entry.key for entry in self.entries)


@dataclass(frozen=True)
class Snapshot:
    """
    A fully decoded snapshot file.

    Attributes:
        version: The format version from the header
        auxiliary: Metadata records, in file order
        databases: Database sections, in file order
        checksum: The 8 bytes after the EOF marker, if present (not verified)
    """
    version: int
    auxiliary: Tuple[Auxiliary, ...] = ()
    databases: Tuple[DB, ...] = ()
    checksum: Optional[bytes] = field(default=None, compare=False)

    def entries(self) -> Iterator[KVPair]:
        """Iterate every record across all databases."""
        for db in self.databases:
            yield from db.entries

    def keys(self) -> Iterator[DBString]:
        for db in self.databases:
            yield from db.keys()

    def get(self, key: str) -> Optional[DBValue]:
        """Return the first value stored under ``key`` in any database."""
        for db in self.databases:
            value = db.get(key)
            if value is not None:
                return value
        return None

    def aux_dict(self) -> Dict[str, str]:
        return {str(aux.key): str(aux.value) for aux in self.auxiliary}
