import io

import pytest

from firedbproxy.codis.decoder import (
    MAX_ARRAY_LEN,
    MAX_BULK_BYTES_LEN,
    Decoder,
    ProtocolError,
    btoi64,
    decode,
    decode_from_bytes,
    decode_multi_bulk_from_bytes,
)
from firedbproxy.codis.resp import RespType


@pytest.mark.parametrize(
    "text,value",
    [
        (b"123", 123),
        (b"-45", -45),
        (b"+7", 7),
        (b"0", 0),
        (b"9223372036854775807", (1 << 63) - 1),
        (b"-9223372036854775808", -(1 << 63)),
    ],
)
def test_btoi64_valid(text, value):
    assert btoi64(text) == value


@pytest.mark.parametrize(
    "text", [b"", b"-", b"+", b"12a", b" 12", b"1_0", b"9223372036854775808"]
)
def test_btoi64_invalid(text):
    with pytest.raises(ProtocolError):
        btoi64(text)


def test_decode_simple_string():
    resp = decode_from_bytes(b"+OK\r\n")
    assert resp.type == RespType.STRING
    assert resp.value == b"OK"


def test_decode_error_and_int():
    assert decode_from_bytes(b"-ERR bad\r\n").value == b"ERR bad"
    assert decode_from_bytes(b":42\r\n").is_int()


def test_decode_bulk_bytes():
    resp = decode_from_bytes(b"$3\r\nfoo\r\n")
    assert resp.is_bulk_bytes()
    assert resp.value == b"foo"


def test_decode_null_bulk_and_array():
    assert decode_from_bytes(b"$-1\r\n").value is None
    resp = decode_from_bytes(b"*-1\r\n")
    assert resp.is_array()
    assert resp.array is None


def test_decode_nested_array():
    resp = decode_from_bytes(b"*2\r\n$1\r\na\r\n*1\r\n:5\r\n")
    assert [item.type for item in resp.array] == [RespType.BULK_BYTES, RespType.ARRAY]
    assert resp.array[0].value == b"a"
    assert resp.array[1].array[0].value == b"5"


def test_decode_from_stream_in_sequence():
    stream = io.BytesIO(b"+a\r\n+b\r\n")
    decoder = Decoder(stream)
    assert decoder.decode().value == b"a"
    assert decoder.decode().value == b"b"


def test_decode_function_reads_stream():
    assert decode(io.BytesIO(b"$0\r\n\r\n")).value == b""


def test_long_line_with_small_buffer():
    text = b"x" * 100
    resp = Decoder(io.BytesIO(b"+" + text + b"\r\n"), size=4).decode()
    assert resp.value == text


@pytest.mark.parametrize(
    "data,message",
    [
        (b"+OK\n", "bad CRLF end"),
        (b"?x\r\n", "bad resp type"),
        (b"$-2\r\n", "bad bulk bytes len"),
        (b"$3\r\nfooXY", "bad CRLF end"),
        (b"*-5\r\n", "bad array len"),
        (f"*{MAX_ARRAY_LEN + 1}\r\n".encode(), "bad array len, too long"),
        (f"${MAX_BULK_BYTES_LEN + 1}\r\n".encode(), "bad bulk bytes len, too long"),
        (b"$abc\r\n", "invalid integer"),
    ],
)
def test_decode_errors(data, message):
    with pytest.raises(ProtocolError, match=message):
        decode_from_bytes(data)


def test_decode_truncated_raises_eof():
    with pytest.raises(EOFError):
        decode_from_bytes(b"$3\r\nfo")


def test_failed_decoder_is_sticky():
    decoder = Decoder(io.BytesIO(b"?\r\n+OK\r\n"))
    with pytest.raises(ProtocolError, match="bad resp type"):
        decoder.decode()
    with pytest.raises(ProtocolError, match="use of failed decoder"):
        decoder.decode()
    assert decoder.err is not None


def test_multi_bulk_array():
    multi = decode_multi_bulk_from_bytes(b"*2\r\n$3\r\nGET\r\n$3\r\nkey\r\n")
    assert [item.value for item in multi] == [b"GET", b"key"]
    assert all(item.is_bulk_bytes() for item in multi)


def test_multi_bulk_inline():
    multi = decode_multi_bulk_from_bytes(b"GET  key\r\n")
    assert [item.value for item in multi] == [b"GET", b"key"]


def test_multi_bulk_empty_inline_line():
    assert decode_multi_bulk_from_bytes(b"\r\n") == []


@pytest.mark.parametrize(
    "data,message",
    [
        (b"   \r\n", "bad multi-bulk len"),
        (b"*0\r\n", "bad array len"),
        (b"*1\r\n:1\r\n", "bad multi-bulk content"),
    ],
)
def test_multi_bulk_errors(data, message):
    with pytest.raises(ProtocolError, match=message):
        decode_multi_bulk_from_bytes(data)