"""Encoding of protocol values onto a byte stream."""

from __future__ import annotations

import io
from typing import Any

from firedbproxy.codis.bufio import Writer
from firedbproxy.codis.decoder import ProtocolError
from firedbproxy.codis.resp import Resp, RespType, type_name

DEFAULT_ENCODER_SIZE = 8192
ERR_FAILED_ENCODER = "use of failed encoder"

_MIN_ITOA = -128
_MAX_ITOA = 32768
_SMALL_INTS = tuple(str(i) for i in range(_MIN_ITOA, _MAX_ITOA + 1))

_CRLF = b"\r\n"


def itoa(value: int) -> str:
    """Decimal text of an integer, served from a table for common sizes."""
    if _MIN_ITOA <= value <= _MAX_ITOA:
        return _SMALL_INTS[value - _MIN_ITOA]
    return str(value)


class Encoder:
    """Writes protocol values; after any failure every later call raises."""

    def __init__(self, sink: Any, size: int = DEFAULT_ENCODER_SIZE) -> None:
        self._writer = sink if isinstance(sink, Writer) else Writer(sink, size)
        self.err: BaseException | None = None

    def _guard(self, action, flush: bool) -> None:
        if self.err is not None:
            raise ProtocolError(ERR_FAILED_ENCODER) from self.err
        try:
            action()
            if flush:
                self._writer.flush()
        except Exception as exc:
            self.err = exc
            raise

    def encode(self, resp: Resp, flush: bool = True) -> None:
        """Write one value, flushing the buffer when ``flush`` is set."""
        self._guard(lambda: self._encode_resp(resp), flush)

    def encode_multi_bulk(self, multi: list[Resp] | None, flush: bool = True) -> None:
        """Write a list of values as an array."""
        self._guard(lambda: self._encode_multi_bulk(multi), flush)

    def flush(self) -> None:
        if self.err is not None:
            raise ProtocolError(ERR_FAILED_ENCODER) from self.err
        try:
            self._writer.flush()
        except Exception as exc:
            self.err = exc
            raise

    def _encode_resp(self, resp: Resp) -> None:
        self._writer.write_byte(int(resp.type) & 0xFF)
        try:
            kind = RespType(resp.type)
        except ValueError:
            raise ProtocolError(f"bad resp type {type_name(resp.type)}") from None
        if kind in (RespType.STRING, RespType.ERROR, RespType.INT):
            self._encode_text_bytes(resp.value)
        elif kind is RespType.BULK_BYTES:
            self._encode_bulk_bytes(resp.value)
        else:
            self._encode_array(resp.array)

    def _encode_multi_bulk(self, multi: list[Resp] | None) -> None:
        self._writer.write_byte(RespType.ARRAY)
        self._encode_array(multi)

    def _encode_text_bytes(self, data: bytes | None) -> None:
        if data:
            self._writer.write(data)
        self._writer.write(_CRLF)

    def _encode_int(self, value: int) -> None:
        self._writer.write_string(itoa(value))
        self._writer.write(_CRLF)

    def _encode_bulk_bytes(self, data: bytes | None) -> None:
        if data is None:
            self._encode_int(-1)
            return
        self._encode_int(len(data))
        self._encode_text_bytes(data)

    def _encode_array(self, array: list[Resp] | None) -> None:
        if array is None:
            self._encode_int(-1)
            return
        self._encode_int(len(array))
        for item in array:
            self._encode_resp(item)


def encode(stream: Any, resp: Resp) -> None:
    """Write one value to a binary stream and flush it."""
    Encoder(stream).encode(resp, True)


def encode_to_bytes(resp: Resp) -> bytes:
    sink = io.BytesIO()
    encode(sink, resp)
    return sink.getvalue()