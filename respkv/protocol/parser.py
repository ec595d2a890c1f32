"""
RESP Codec Module

This module handles decoding of raw RESP frames into wire values and
encoding of wire values back into bytes.

Grammar (dispatched on the leading byte):
    +<text>\\r\\n                    -> SimpleString
    -<title> <message>\\r\\n         -> Error
    :[+|-]<digits>\\r\\n             -> Integer
    $<len>\\r\\n<bytes>\\r\\n         -> BulkString (len -1 = Null, 0 = Empty)
    *<count>\\r\\n<value>...         -> Array (count -1 = Null, 0 = Empty)
"""

from typing import List, Optional, Tuple

from ..config.settings import settings
from .errors import IncompleteFrameError, ProtocolDecodeError
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

CRLF = b"\r\n"

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class RespParser:
    """
    Decoder and encoder for RESP values.

    Decoding is recursive for arrays; nesting deeper than ``max_depth``
    is rejected so adversarial input cannot exhaust the stack. Declared
    bulk lengths and array counts above their caps are rejected as soon
    as the header is read, before any body bytes are buffered.

    Attributes:
        max_depth: Maximum array nesting accepted by decode()
        max_bulk_length: Largest accepted bulk string length
        max_array_length: Largest accepted array element count
        open_empty_body: True when the last decode() ended on a ``$0``
            header whose empty body had not arrived yet
    """

    def __init__(
            self,
            max_depth: Optional[int] = None,
            max_bulk_length: Optional[int] = None,
            max_array_length: Optional[int] = None,
    ):
        self.max_depth = max_depth if max_depth is not None else settings.MAX_NESTING_DEPTH
        self.max_bulk_length = (
            max_bulk_length if max_bulk_length is not None else settings.MAX_BULK_LENGTH
        )
        self.max_array_length = (
            max_array_length if max_array_length is not None else settings.MAX_ARRAY_LENGTH
        )
        self.open_empty_body = False

    def decode(self, data: bytes) -> Tuple[bytes, Value]:
        """
        Decode one value from the front of a buffer.

        Args:
            data: Raw bytes, possibly holding more than one frame

        Returns:
            (remaining bytes, decoded value)

        Raises:
            IncompleteFrameError: The buffer ends before the value does
            ProtocolDecodeError: The bytes are malformed

        Examples:
            >>> RespParser().decode(b"+OK\\r\\n:1\\r\\n")
            (b':1\\r\\n', SimpleString(text='OK'))
        """
        data = bytes(data)
        self.open_empty_body = False
        value, pos = self._decode_at(data, 0, 0)
        return data[pos:], value

    def decode_all(self, data: bytes) -> Tuple[bytes, List[Value]]:
        """
        Decode every complete value in a buffer.

        Returns:
            (unconsumed trailing bytes of an incomplete frame, values)

        Raises:
            ProtocolDecodeError: A frame is malformed
        """
        values: List[Value] = []
        remaining = bytes(data)
        while remaining:
            try:
                remaining, value = self.decode(remaining)
            except IncompleteFrameError:
                break
            values.append(value)
        return remaining, values

    def _decode_at(self, data: bytes, pos: int, depth: int) -> Tuple[Value, int]:
        if pos >= len(data):
            raise IncompleteFrameError("unexpected end of buffer")

        marker = data[pos:pos + 1]
        if marker == b"+":
            line, pos = self._read_line(data, pos + 1)
            return SimpleString(self._text(line)), pos
        if marker == b"-":
            line, pos = self._read_line(data, pos + 1)
            title, _, message = self._text(line).partition(" ")
            return Error(title=title, message=message), pos
        if marker == b":":
            line, pos = self._read_line(data, pos + 1)
            return Integer(self._parse_int(line, allow_plus=True)), pos
        if marker == b"$":
            return self._decode_bulk(data, pos + 1)
        if marker == b"*":
            return self._decode_array(data, pos + 1, depth)

        raise ProtocolDecodeError(f"unknown type marker {marker!r} at offset {pos}")

    def _decode_bulk(self, data: bytes, pos: int) -> Tuple[Value, int]:
        line, pos = self._read_line(data, pos)
        size = self._parse_int(line)

        if size == -1:
            return BulkString.null(), pos
        if size < -1:
            raise ProtocolDecodeError(f"invalid bulk length {size}")
        if size > self.max_bulk_length:
            raise ProtocolDecodeError(
                f"bulk length {size} exceeds limit of {self.max_bulk_length}"
            )
        if size == 0:
            # Optional empty body
            tail = data[pos:pos + len(CRLF)]
            if tail == CRLF:
                return BulkString.empty(), pos + len(CRLF)
            if tail and CRLF.startswith(tail) and pos + len(tail) == len(data):
                raise IncompleteFrameError("empty bulk string body truncated")
            self.open_empty_body = pos == len(data)
            return BulkString.empty(), pos

        end = pos + size
        if end + len(CRLF) > len(data):
            raise IncompleteFrameError("bulk string body truncated")
        if data[end:end + len(CRLF)] != CRLF:
            raise ProtocolDecodeError(f"bulk string of length {size} not terminated by CRLF")

        return BulkString.of(self._text(data[pos:end])), end + len(CRLF)

    def _decode_array(self, data: bytes, pos: int, depth: int) -> Tuple[Value, int]:
        line, pos = self._read_line(data, pos)
        count = self._parse_int(line)

        if count == -1:
            return Array.null(), pos
        if count < -1:
            raise ProtocolDecodeError(f"invalid array count {count}")
        if count > self.max_array_length:
            raise ProtocolDecodeError(
                f"array count {count} exceeds limit of {self.max_array_length}"
            )
        if count == 0:
            return Array.empty(), pos

        if depth + 1 > self.max_depth:
            raise ProtocolDecodeError(f"array nesting exceeds {self.max_depth} levels")

        items = []
        for _ in range(count):
            item, pos = self._decode_at(data, pos, depth + 1)
            items.append(item)

        return Array.of(items), pos

    @staticmethod
    def _read_line(data: bytes, pos: int) -> Tuple[bytes, int]:
        """Return the bytes up to the next CRLF and the offset past it."""
        end = data.find(CRLF, pos)
        if end == -1:
            raise IncompleteFrameError("missing CRLF terminator")
        return data[pos:end], end + len(CRLF)

    @staticmethod
    def _text(raw: bytes) -> str:
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ProtocolDecodeError(f"invalid utf-8 payload: {exc}") from exc

    @staticmethod
    def _parse_int(raw: bytes, allow_plus: bool = False) -> int:
        """
        Parse a strict decimal integer field.

        Python's int() accepts whitespace and underscores; RESP does not.
        At most one sign is accepted.
        """
        text = raw
        if allow_plus and text.startswith(b"+") and text[1:2].isdigit():
            text = text[1:]
        digits = text[1:] if text.startswith(b"-") else text
        if not digits or not digits.isdigit():
            raise ProtocolDecodeError(f"invalid integer field {raw!r}")

        number = int(text)
        if not INT64_MIN <= number <= INT64_MAX:
            raise ProtocolDecodeError(f"integer {number} out of 64-bit range")
        return number

    def encode(self, value: Value) -> bytes:
        """
        Encode a wire value into RESP bytes.

        Examples:
            >>> RespParser().encode(SimpleString("PONG"))
            b'+PONG\\r\\n'
            >>> RespParser().encode(BulkString.null())
            b'$-1\\r\\n'
        """
        out: List[bytes] = []
        self._encode_into(value, out)
        return b"".join(out)

    def _encode_into(self, value: Value, out: List[bytes]) -> None:
        if isinstance(value, SimpleString):
            out.append(b"+%s\r\n" % value.text.encode("utf-8"))
        elif isinstance(value, BulkString):
            if value.kind == BulkKind.NULL:
                out.append(b"$-1\r\n")
            elif value.kind == BulkKind.EMPTY:
                out.append(b"$0\r\n\r\n")
            else:
                body = value.text.encode("utf-8")
                out.append(b"$%d\r\n%s\r\n" % (len(body), body))
        elif isinstance(value, Error):
            text = f"{value.title} {value.message}" if value.message else value.title
            out.append(b"-%s\r\n" % text.encode("utf-8"))
        elif isinstance(value, Integer):
            out.append(b":%d\r\n" % value.value)
        elif isinstance(value, Array):
            if value.kind == ArrayKind.NULL:
                out.append(b"*-1\r\n")
            elif value.kind == ArrayKind.EMPTY:
                out.append(b"*0\r\n")
            else:
                out.append(b"*%d\r\n" % len(value.items))
                for item in value.items:
                    self._encode_into(item, out)
        else:
            raise TypeError(f"cannot encode {type(value).__name__}")


_default_parser = RespParser()


def decode(data: bytes) -> Tuple[bytes, Value]:
    """Decode one value using the default parser."""
    return _default_parser.decode(data)


def encode(value: Value) -> bytes:
    """Encode a value using the default parser."""
    return _default_parser.encode(value)
