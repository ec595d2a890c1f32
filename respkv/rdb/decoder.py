"""
Snapshot Decoder Module

This module decodes the binary snapshot (RDB) format into the typed
records of ``respkv.rdb.models``.

File layout:
    "REDIS" <4-digit version>
    (0xFA <string key> <string value>)*             auxiliary fields
    (0xFE <length db number>
        [0xFB <length> <length>]                    resize hint
        ([0xFD <u32 secs> | 0xFC <u64 ms>]
         <u8 type> <string key> <string value>)*    records
    )*
    0xFF [<8-byte checksum>]

Length encoding (first byte, top two bits):
    00  length is the low 6 bits
    01  length is the low 6 bits << 8 | next byte
    10  length is the next 4 bytes, big-endian
    11  special encoding, selector is the low 6 bits:
        0 = int8, 1 = int16, 2 = int32 (big-endian), 3 = LZF string

Decoding is forward-only: the cursor never moves backwards, and the
first error aborts the whole decode.
"""

import logging
import struct
from dataclasses import dataclass
from typing import List, Optional

from .errors import (
    BadLengthEncoding,
    BadMagic,
    BadVersion,
    InvalidUtf8,
    SnapshotDecodeError,
    TruncatedSnapshot,
    UnsupportedCompression,
    UnsupportedSpecialEncoding,
    UnsupportedValueType,
)
from .models import (
    DB,
    Auxiliary,
    DBString,
    ExpirationUnit,
    IntegerString,
    KVPair,
    ResizeHint,
    Snapshot,
    StringValue,
    TextString,
)

logger = logging.getLogger(__name__)

MAGIC = b"REDIS"

OP_AUX = 0xFA
OP_RESIZEDB = 0xFB
OP_EXPIRETIME_MS = 0xFC
OP_EXPIRETIME = 0xFD
OP_SELECTDB = 0xFE
OP_EOF = 0xFF

VALUE_TYPE_STRING = 0

SPECIAL_INT8 = 0
SPECIAL_INT16 = 1
SPECIAL_INT32 = 2
SPECIAL_LZF = 3

CHECKSUM_SIZE = 8


@dataclass(frozen=True)
class Length:
    """
    A decoded length field.

    Exactly one of ``number`` (a plain length) and ``special`` (a
    special-encoding selector) is set.
    """
    number: Optional[int] = None
    special: Optional[int] = None

    @property
    def is_special(self) -> bool:
        return self.special is not None


class Cursor:
    """Forward-only reader over an immutable byte buffer."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self.offset = 0

    def remaining(self) -> int:
        return len(self._data) - self.offset

    def at_end(self) -> bool:
        return self.offset >= len(self._data)

    def peek(self) -> int:
        """Return the next byte without consuming it."""
        if self.at_end():
            raise TruncatedSnapshot("unexpected end of snapshot", self.offset)
        return self._data[self.offset]

    def read(self, count: int) -> bytes:
        if count > self.remaining():
            raise TruncatedSnapshot(
                f"wanted {count} bytes, {self.remaining()} left", self.offset
            )
        chunk = self._data[self.offset:self.offset + count]
        self.offset += count
        return chunk

    def read_u8(self) -> int:
        return self.read(1)[0]

    def unpack(self, fmt: str) -> int:
        return struct.unpack(fmt, self.read(struct.calcsize(fmt)))[0]


class SnapshotDecoder:
    """
    Decoder for a complete snapshot buffer.

    Usage:
        snapshot = SnapshotDecoder(data).decode()
    """

    def __init__(self, data: bytes):
        self.cursor = Cursor(data)

    def decode(self) -> Snapshot:
        """
        Decode the whole buffer.

        Returns:
            The decoded Snapshot

        Raises:
            SnapshotDecodeError: On any malformed or unsupported input
        """
        version = self.read_header()
        auxiliary = self.read_auxiliary()

        databases: List[DB] = []
        while True:
            opcode = self.cursor.peek()
            if opcode == OP_EOF:
                self.cursor.read_u8()
                break
            if opcode != OP_SELECTDB:
                raise SnapshotDecodeError(
                    f"expected database selector, found 0x{opcode:02X}", self.cursor.offset
                )
            databases.append(self.read_database())

        checksum = None
        if self.cursor.remaining() >= CHECKSUM_SIZE:
            checksum = self.cursor.read(CHECKSUM_SIZE)

        logger.debug(
            f"Decoded snapshot v{version}: {len(auxiliary)} aux fields, "
            f"{len(databases)} databases"
        )
        return Snapshot(
            version=version,
            auxiliary=tuple(auxiliary),
            databases=tuple(databases),
            checksum=checksum,
        )

    def read_header(self) -> int:
        offset = self.cursor.offset
        try:
            magic = self.cursor.read(len(MAGIC))
        except TruncatedSnapshot:
            raise BadMagic("missing magic bytes", offset) from None
        if magic != MAGIC:
            raise BadMagic(f"bad magic {magic!r}", offset)

        offset = self.cursor.offset
        try:
            raw = self.cursor.read(4)
        except TruncatedSnapshot:
            raise BadVersion("missing version", offset) from None
        if not raw.isdigit():
            raise BadVersion(f"bad version {raw!r}", offset)
        return int(raw)

    def read_auxiliary(self) -> List[Auxiliary]:
        fields = []
        while not self.cursor.at_end() and self.cursor.peek() == OP_AUX:
            self.cursor.read_u8()
            key = self.read_string()
            value = self.read_string()
            fields.append(Auxiliary(key=key, value=value))
        return fields

    def read_length(self) -> Length:
        """Read one length-encoded field."""
        first = self.cursor.read_u8()
        kind = first >> 6

        if kind == 0b00:
            return Length(number=first & 0x3F)
        if kind == 0b01:
            return Length(number=((first & 0x3F) << 8) | self.cursor.read_u8())
        if kind == 0b10:
            return Length(number=self.cursor.unpack(">I"))
        return Length(special=first & 0x3F)

    def read_plain_length(self) -> int:
        """Read a length field that must not be a special encoding."""
        offset = self.cursor.offset
        length = self.read_length()
        if length.is_special:
            raise BadLengthEncoding(
                f"expected a plain length, got special encoding {length.special}", offset
            )
        return length.number

    def read_string(self) -> DBString:
        """Read a length-prefixed or integer-encoded string."""
        offset = self.cursor.offset
        length = self.read_length()

        if not length.is_special:
            raw = self.cursor.read(length.number)
            try:
                return TextString(raw.decode("utf-8"))
            except UnicodeDecodeError as exc:
                raise InvalidUtf8(str(exc), offset) from exc

        if length.special == SPECIAL_INT8:
            return IntegerString(self.cursor.unpack(">b"))
        if length.special == SPECIAL_INT16:
            return IntegerString(self.cursor.unpack(">h"))
        if length.special == SPECIAL_INT32:
            return IntegerString(self.cursor.unpack(">i"))
        if length.special == SPECIAL_LZF:
            raise UnsupportedCompression("LZF compressed strings are not supported", offset)
        raise UnsupportedSpecialEncoding(
            f"unsupported special encoding {length.special}", offset
        )

    def read_database(self) -> DB:
        self.cursor.read_u8()  # OP_SELECTDB
        number = self.read_plain_length()

        resize_hint = None
        if self.cursor.peek() == OP_RESIZEDB:
            self.cursor.read_u8()
            resize_hint = ResizeHint(
                hash_table_size=self.read_plain_length(),
                expire_hash_table_size=self.read_plain_length(),
            )

        entries = []
        while self.cursor.peek() not in (OP_SELECTDB, OP_EOF):
            entries.append(self.read_kv_pair())

        return DB(number=number, resize_hint=resize_hint, entries=tuple(entries))

    def read_kv_pair(self) -> KVPair:
        expiration_ms = None
        unit = None

        marker = self.cursor.peek()
        if marker == OP_EXPIRETIME:
            self.cursor.read_u8()
            expiration_ms = self.cursor.unpack(">I") * 1000
            unit = ExpirationUnit.SECONDS
        elif marker == OP_EXPIRETIME_MS:
            self.cursor.read_u8()
            expiration_ms = self.cursor.unpack(">Q")
            unit = ExpirationUnit.MILLISECONDS

        offset = self.cursor.offset
        value_type = self.cursor.read_u8()
        key = self.read_string()
        if value_type != VALUE_TYPE_STRING:
            raise UnsupportedValueType(f"unsupported value type {value_type}", offset)
        value = StringValue(self.read_string())

        return KVPair(
            key=key,
            value=value,
            expiration_ms=expiration_ms,
            expiration_unit=unit,
        )


def decode_snapshot(data: bytes) -> Snapshot:
    """Decode a complete snapshot buffer."""
    return SnapshotDecoder(data).decode()
