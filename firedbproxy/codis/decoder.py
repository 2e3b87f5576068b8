"""Decoding of protocol values from a byte stream."""

from __future__ import annotations

import io
import re
from typing import Any

from firedbproxy.codis.bufio import Reader
from firedbproxy.codis.resp import Resp, RespType, new_bulk_bytes, type_name

MAX_BULK_BYTES_LEN = 1024 * 1024 * 512
MAX_ARRAY_LEN = 1024 * 1024

DEFAULT_DECODER_SIZE = 8192

ERR_BAD_CRLF_END = "bad CRLF end"
ERR_BAD_ARRAY_LEN = "bad array len"
ERR_BAD_ARRAY_LEN_TOO_LONG = "bad array len, too long"
ERR_BAD_BULK_BYTES_LEN = "bad bulk bytes len"
ERR_BAD_BULK_BYTES_LEN_TOO_LONG = "bad bulk bytes len, too long"
ERR_BAD_MULTI_BULK_LEN = "bad multi-bulk len"
ERR_BAD_MULTI_BULK_CONTENT = "bad multi-bulk content, should be bulkbytes"
ERR_FAILED_DECODER = "use of failed decoder"

_INT_RE = re.compile(rb"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


class ProtocolError(ValueError):
    """Malformed protocol data, or use of a coder after it failed."""


def btoi64(data: bytes) -> int:
    """Parse a signed decimal 64-bit integer."""
    raw = bytes(data)
    if not _INT_RE.fullmatch(raw):
        raise ProtocolError(f"invalid integer {raw!r}")
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ProtocolError(f"integer out of range {raw!r}")
    return value


class Decoder:
    """Reads protocol values; after any failure every later call raises."""

    def __init__(self, source: Any, size: int = DEFAULT_DECODER_SIZE) -> None:
        self._reader = source if isinstance(source, Reader) else Reader(source, size)
        self.err: BaseException | None = None

    def _guard(self, action):
        if self.err is not None:
            raise ProtocolError(ERR_FAILED_DECODER) from self.err
        try:
            return action()
        except Exception as exc:
            self.err = exc
            raise

    def decode(self) -> Resp:
        """Read one value of any type."""
        return self._guard(self._decode_resp)

    def decode_multi_bulk(self) -> list[Resp]:
        """Read a request: an array of bulk strings, or an inline command line."""
        return self._guard(self._decode_multi_bulk)

    def _decode_resp(self) -> Resp:
        first = self._reader.read_byte()
        try:
            kind = RespType(first)
        except ValueError:
            raise ProtocolError(f"bad resp type {type_name(first)}") from None
        if kind in (RespType.STRING, RespType.ERROR, RespType.INT):
            return Resp(kind, value=self._decode_text_bytes())
        if kind is RespType.BULK_BYTES:
            return Resp(kind, value=self._decode_bulk_bytes())
        return Resp(kind, array=self._decode_array())

    def _decode_text_bytes(self) -> bytes:
        line = self._reader.read_bytes(b"\n")
        n = len(line) - 2
        if n < 0 or line[n] != 0x0D:
            raise ProtocolError(ERR_BAD_CRLF_END)
        return line[:n]

    def _decode_int(self) -> int:
        line = self._reader.read_slice(b"\n")
        n = len(line) - 2
        if n < 0 or line[n] != 0x0D:
            raise ProtocolError(ERR_BAD_CRLF_END)
        return btoi64(line[:n])

    def _decode_bulk_bytes(self) -> bytes | None:
        n = self._decode_int()
        if n < -1:
            raise ProtocolError(ERR_BAD_BULK_BYTES_LEN)
        if n > MAX_BULK_BYTES_LEN:
            raise ProtocolError(ERR_BAD_BULK_BYTES_LEN_TOO_LONG)
        if n == -1:
            return None
        data = self._reader.read_full(n + 2)
        if data[n] != 0x0D or data[n + 1] != 0x0A:
            raise ProtocolError(ERR_BAD_CRLF_END)
        return data[:n]

    def _decode_array(self) -> list[Resp] | None:
        n = self._decode_int()
        if n < -1:
            raise ProtocolError(ERR_BAD_ARRAY_LEN)
        if n > MAX_ARRAY_LEN:
            raise ProtocolError(ERR_BAD_ARRAY_LEN_TOO_LONG)
        if n == -1:
            return None
        return [self._decode_resp() for _ in range(n)]

    def _decode_single_line_multi_bulk(self) -> list[Resp]:
        line = self._decode_text_bytes()
        if not line:
            return []
        multi = [new_bulk_bytes(part) for part in line.split(b" ") if part]
        if not multi:
            raise ProtocolError(ERR_BAD_MULTI_BULK_LEN)
        return multi

    def _decode_multi_bulk(self) -> list[Resp]:
        if self._reader.peek_byte() != RespType.ARRAY:
            return self._decode_single_line_multi_bulk()
        self._reader.read_byte()
        n = self._decode_int()
        if n <= 0:
            raise ProtocolError(ERR_BAD_ARRAY_LEN)
        if n > MAX_ARRAY_LEN:
            raise ProtocolError(ERR_BAD_ARRAY_LEN_TOO_LONG)
        multi = []
        for _ in range(n):
            resp = self._decode_resp()
            if resp.type != RespType.BULK_BYTES:
                raise ProtocolError(ERR_BAD_MULTI_BULK_CONTENT)
            multi.append(resp)
        return multi


def decode(stream: Any) -> Resp:
    """Decode one value from a binary stream."""
    return Decoder(stream).decode()


def decode_from_bytes(data: bytes) -> Resp:
    return Decoder(io.BytesIO(data)).decode()


def decode_multi_bulk_from_bytes(data: bytes) -> list[Resp]:
    return Decoder(io.BytesIO(data)).decode_multi_bulk()