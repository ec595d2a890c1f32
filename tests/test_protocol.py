"""
Tests for the RESP Codec

These tests verify the RespParser class:
- decode(): Parse raw frames into wire values
- encode(): Serialize wire values into frames

Run with: python -m pytest tests/test_protocol.py -v
"""

import pytest
from respkv.config.settings import settings
from respkv.protocol.errors import IncompleteFrameError, ProtocolDecodeError
from respkv.protocol.parser import RespParser, decode, encode
from respkv.protocol.values import (
    Array,
    BulkString,
    Error,
    Integer,
    SimpleString,
)


class TestDecodeScalars:
    """Test decoding of the non-array value kinds."""

    def test_decode_simple_string(self, parser: RespParser):
        remaining, value = parser.decode(b"+OK\r\n")
        assert value == SimpleString("OK")
        assert remaining == b""

    def test_decode_error_with_message(self, parser: RespParser):
        _, value = parser.decode(b"-ERR unknown command 'asdf'\r\n")
        assert value == Error(title="ERR", message="unknown command 'asdf'")

    def test_decode_error_without_space(self, parser: RespParser):
        _, value = parser.decode(b"-World\r\n")
        assert value == Error(title="World", message="")

    def test_decode_error_splits_at_first_space_only(self, parser: RespParser):
        _, value = parser.decode(
            b"-WRONGTYPE Operation against a key holding the wrong kind of value\r\n"
        )
        assert value.title == "WRONGTYPE"
        assert value.message == "Operation against a key holding the wrong kind of value"

    @pytest.mark.parametrize("raw,expected", [
        (b":10\r\n", 10),
        (b":-1000\r\n", -1000),
        (b":+2000\r\n", 2000),
        (b":0\r\n", 0),
    ])
    def test_decode_integer(self, parser: RespParser, raw, expected):
        remaining, value = parser.decode(raw)
        assert value == Integer(expected)
        assert remaining == b""

    def test_decode_bulk_string(self, parser: RespParser):
        remaining, value = parser.decode(b"$5\r\nhello\r\n")
        assert value == BulkString.of("hello")
        assert remaining == b""

    def test_decode_bulk_string_with_crlf_in_body(self, parser: RespParser):
        _, value = parser.decode(b"$4\r\na\r\nb\r\n")
        assert value == BulkString.of("a\r\nb")

    def test_decode_empty_bulk_string(self, parser: RespParser):
        remaining, value = parser.decode(b"$0\r\n\r\n")
        assert value == BulkString.empty()
        assert remaining == b""

    def test_decode_empty_bulk_string_without_body(self, parser: RespParser):
        remaining, value = parser.decode(b"$0\r\n")
        assert value == BulkString.empty()
        assert remaining == b""
        assert parser.open_empty_body is True

    def test_empty_bulk_string_with_body_is_closed(self, parser: RespParser):
        parser.decode(b"$0\r\n\r\n")
        assert parser.open_empty_body is False

    def test_empty_bulk_string_followed_by_frame(self, parser: RespParser):
        remaining, value = parser.decode(b"$0\r\n:1\r\n")
        assert value == BulkString.empty()
        assert remaining == b":1\r\n"
        assert parser.open_empty_body is False

    def test_empty_bulk_string_ending_nested_frame(self, parser: RespParser):
        _, value = parser.decode(b"*2\r\n$4\r\nECHO\r\n$0\r\n")
        assert value == Array.of([BulkString.of("ECHO"), BulkString.empty()])
        assert parser.open_empty_body is True

    def test_decode_null_bulk_string(self, parser: RespParser):
        remaining, value = parser.decode(b"$-1\r\n")
        assert value == BulkString.null()
        assert remaining == b""

    def test_decode_multibyte_bulk_string(self, parser: RespParser):
        _, value = parser.decode("$2\r\né\r\n".encode())
        assert value == BulkString.of("é")


class TestDecodeArrays:
    """Test decoding of arrays, including nesting."""

    def test_decode_empty_array(self, parser: RespParser):
        assert parser.decode(b"*0\r\n") == (b"", Array.empty())

    def test_decode_null_array(self, parser: RespParser):
        assert parser.decode(b"*-1\r\n") == (b"", Array.null())

    def test_decode_bulk_string_array(self, parser: RespParser):
        _, value = parser.decode(b"*2\r\n$5\r\nhello\r\n$5\r\nworld\r\n")
        assert value == Array.of([BulkString.of("hello"), BulkString.of("world")])

    def test_decode_mixed_array(self, parser: RespParser):
        _, value = parser.decode(b"*5\r\n:1\r\n:2\r\n:3\r\n:4\r\n$5\r\nhello\r\n")
        assert value == Array.of([
            Integer(1), Integer(2), Integer(3), Integer(4), BulkString.of("hello"),
        ])

    def test_decode_nested_array(self, parser: RespParser):
        _, value = parser.decode(b"*2\r\n*3\r\n:1\r\n:2\r\n:3\r\n*2\r\n+Hello\r\n-World\r\n")
        assert value == Array.of([
            Array.of([Integer(1), Integer(2), Integer(3)]),
            Array.of([SimpleString("Hello"), Error(title="World")]),
        ])

    def test_decode_array_with_null_element(self, parser: RespParser):
        _, value = parser.decode(b"*3\r\n$5\r\nhello\r\n$-1\r\n$5\r\nworld\r\n")
        assert value == Array.of([
            BulkString.of("hello"), BulkString.null(), BulkString.of("world"),
        ])

    def test_decode_array_leaves_remainder_untouched(self, parser: RespParser):
        remaining, value = parser.decode(b"*2\r\n:1\r\n:2\r\n:3\r\n+extra\r\n")
        assert value == Array.of([Integer(1), Integer(2)])
        assert remaining == b":3\r\n+extra\r\n"

    def test_decode_all_pipelined(self, parser: RespParser):
        remaining, values = parser.decode_all(b"+A\r\n:1\r\n*1\r\n$4\r\nPI")
        assert values == [SimpleString("A"), Integer(1)]
        assert remaining == b"*1\r\n$4\r\nPI"

    def test_nesting_limit(self):
        parser = RespParser(max_depth=3)
        assert parser.decode(b"*1\r\n*1\r\n*1\r\n:1\r\n")[1] is not None
        with pytest.raises(ProtocolDecodeError):
            parser.decode(b"*1\r\n*1\r\n*1\r\n*1\r\n:1\r\n")


class TestDecodeErrors:
    """Test malformed and incomplete input."""

    @pytest.mark.parametrize("raw", [
        b"",
        b"+OK",
        b"$5\r\nhel",
        b"*2\r\n:1\r\n",
        b":12",
        b"$0\r\n\r",
        b"*2\r\n$0\r\n",
    ])
    def test_incomplete_input(self, parser: RespParser, raw):
        with pytest.raises(IncompleteFrameError):
            parser.decode(raw)

    def test_incomplete_is_a_decode_error(self):
        assert issubclass(IncompleteFrameError, ProtocolDecodeError)

    @pytest.mark.parametrize("raw", [
        b":abc\r\n",
        b": 12\r\n",
        b":1_000\r\n",
        b":\r\n",
        b":99999999999999999999\r\n",
        b":+-5\r\n",
        b":+\r\n",
        b":-+5\r\n",
        b"$x\r\nabc\r\n",
        b"$-2\r\n",
        b"*y\r\n",
        b"*-5\r\n",
        b"$3\r\nabcd\r\n",
        b"?what\r\n",
    ])
    def test_malformed_input(self, parser: RespParser, raw):
        with pytest.raises(ProtocolDecodeError) as info:
            parser.decode(raw)
        assert not isinstance(info.value, IncompleteFrameError)

    def test_invalid_utf8_bulk(self, parser: RespParser):
        with pytest.raises(ProtocolDecodeError):
            parser.decode(b"$2\r\n\xff\xfe\r\n")


class TestDecodeLimits:
    """Declared sizes above the parser's caps are rejected at the header."""

    def test_bulk_length_at_limit(self):
        parser = RespParser(max_bulk_length=5)
        assert parser.decode(b"$5\r\nhello\r\n")[1] == BulkString.of("hello")

    def test_bulk_length_over_limit(self):
        parser = RespParser(max_bulk_length=4)
        with pytest.raises(ProtocolDecodeError) as info:
            parser.decode(b"$5\r\n")
        assert not isinstance(info.value, IncompleteFrameError)
        assert "exceeds limit of 4" in str(info.value)

    def test_array_count_over_limit(self):
        parser = RespParser(max_array_length=2)
        assert len(parser.decode(b"*2\r\n:1\r\n:2\r\n")[1]) == 2
        with pytest.raises(ProtocolDecodeError) as info:
            parser.decode(b"*3\r\n")
        assert not isinstance(info.value, IncompleteFrameError)

    def test_default_limits_come_from_settings(self, parser: RespParser):
        assert parser.max_bulk_length == settings.MAX_BULK_LENGTH
        assert parser.max_array_length == settings.MAX_ARRAY_LENGTH
        with pytest.raises(ProtocolDecodeError):
            parser.decode(b"$%d\r\n" % (settings.MAX_BULK_LENGTH + 1))


class TestEncode:
    """Test encode() output for every value kind."""

    @pytest.mark.parametrize("value,expected", [
        (SimpleString("PONG"), b"+PONG\r\n"),
        (BulkString.of("hey"), b"$3\r\nhey\r\n"),
        (BulkString.empty(), b"$0\r\n\r\n"),
        (BulkString.null(), b"$-1\r\n"),
        (Error("ERR", "bad thing"), b"-ERR bad thing\r\n"),
        (Error("World"), b"-World\r\n"),
        (Integer(-42), b":-42\r\n"),
        (Array.empty(), b"*0\r\n"),
        (Array.null(), b"*-1\r\n"),
    ])
    def test_encode_value(self, parser: RespParser, value, expected):
        assert parser.encode(value) == expected

    def test_encode_bulk_uses_byte_length(self, parser: RespParser):
        assert parser.encode(BulkString.of("é")) == "$2\r\né\r\n".encode()

    def test_encode_nested_array(self, parser: RespParser):
        value = Array.of([
            BulkString.of("dir"),
            Array.of([Integer(1), BulkString.null()]),
        ])
        assert parser.encode(value) == b"*2\r\n$3\r\ndir\r\n*2\r\n:1\r\n$-1\r\n"

    def test_encode_rejects_foreign_types(self, parser: RespParser):
        with pytest.raises(TypeError):
            parser.encode("not a value")


class TestRoundTrip:
    """Canonical frames survive decode then encode unchanged."""

    @pytest.mark.parametrize("raw", [
        b"+OK\r\n",
        b"-ERR unknown command\r\n",
        b":7\r\n",
        b"$5\r\nhello\r\n",
        b"$0\r\n\r\n",
        b"$-1\r\n",
        b"*0\r\n",
        b"*-1\r\n",
        b"*2\r\n*3\r\n:1\r\n:2\r\n:3\r\n*2\r\n+Hello\r\n-World\r\n",
        b"*3\r\n$5\r\nhello\r\n$-1\r\n*0\r\n",
    ])
    def test_canonical_bytes(self, raw):
        remaining, value = decode(raw)
        assert remaining == b""
        assert encode(value) == raw

    def test_empty_text_is_empty_bulk(self):
        assert BulkString.of("") == BulkString.empty()
        assert decode(encode(BulkString.of("")))[1] == BulkString.of("")

    def test_array_with_empty_text_survives(self):
        value = Array.of([BulkString.of("ECHO"), BulkString.of("")])
        assert decode(encode(value)) == (b"", value)
