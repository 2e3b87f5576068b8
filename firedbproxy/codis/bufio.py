"""Buffered reader and writer over binary streams with sticky errors."""

from __future__ import annotations

from typing import Any

DEFAULT_BUFFER_SIZE = 1024


class BufferFullError(Exception):
    """The delimiter was not found within a full buffer; ``data`` holds it."""

    def __init__(self, data: bytes) -> None:
        super().__init__("buffer full")
        self.data = data


class NoProgressError(Exception):
    """The underlying stream returned no data and no error."""

    def __init__(self) -> None:
        super().__init__("multiple Read calls return no data or error")


class ShortWriteError(Exception):
    """The underlying stream accepted fewer bytes than given."""

    def __init__(self) -> None:
        super().__init__("short write")


def _delim_byte(delim: int | bytes) -> int:
    if isinstance(delim, int):
        return delim
    if len(delim) != 1:
        raise ValueError("delimiter must be a single byte")
    return delim[0]


class Reader:
    """Buffered reader; once the stream fails, every later call raises again."""

    def __init__(self, stream: Any, size: int = DEFAULT_BUFFER_SIZE) -> None:
        if size <= 0:
            size = DEFAULT_BUFFER_SIZE
        self._stream = stream
        self._buf = bytearray(size)
        self._rpos = 0
        self._wpos = 0
        self._err: BaseException | None = None

    @property
    def size(self) -> int:
        return len(self._buf)

    def _buffered(self) -> int:
        return self._wpos - self._rpos

    def _fail(self, err: BaseException) -> None:
        self._err = err
        raise err

    def _check(self) -> None:
        if self._err is not None:
            raise self._err

    def _fill(self) -> None:
        self._check()
        if self._rpos > 0:
            remaining = self._buffered()
            self._buf[:remaining] = self._buf[self._rpos:self._wpos]
            self._rpos = 0
            self._wpos = remaining
        try:
            data = self._stream.read(len(self._buf) - self._wpos)
        except OSError as exc:
            self._fail(exc)
        if data is None:
            self._fail(NoProgressError())
        if not data:
            self._fail(EOFError("EOF"))
        end = self._wpos + len(data)
        self._buf[self._wpos:end] = data
        self._wpos = end

    def read(self, n: int) -> bytes:
        """Read up to ``n`` bytes, at most one call on the stream."""
        self._check()
        if n <= 0:
            return b""
        if self._buffered() == 0:
            if n >= len(self._buf):
                try:
                    data = self._stream.read(n)
                except OSError as exc:
                    self._fail(exc)
                if data is None:
                    return b""
                if not data:
                    self._fail(EOFError("EOF"))
                return bytes(data)
            self._fill()
        take = min(n, self._buffered())
        chunk = bytes(self._buf[self._rpos:self._rpos + take])
        self._rpos += take
        return chunk

    def read_byte(self) -> int:
        self._check()
        if self._buffered() == 0:
            self._fill()
        value = self._buf[self._rpos]
        self._rpos += 1
        return value

    def peek_byte(self) -> int:
        self._check()
        if self._buffered() == 0:
            self._fill()
        return self._buf[self._rpos]

    def read_slice(self, delim: int | bytes) -> bytes:
        """Read through ``delim``; raise BufferFullError if it does not fit."""
        self._check()
        target = _delim_byte(delim)
        while True:
            index = self._buf.find(target, self._rpos, self._wpos)
            if index >= 0:
                chunk = bytes(self._buf[self._rpos:index + 1])
                self._rpos = index + 1
                return chunk
            if self._buffered() == len(self._buf):
                chunk = bytes(self._buf)
                self._rpos = self._wpos
                raise BufferFullError(chunk)
            self._fill()

    def read_bytes(self, delim: int | bytes) -> bytes:
        """Read through ``delim`` however long the line is."""
        pieces = []
        while True:
            try:
                last = self.read_slice(delim)
            except BufferFullError as full:
                pieces.append(full.data)
                continue
            pieces.append(last)
            return b"".join(pieces)

    def read_full(self, n: int) -> bytes:
        """Read exactly ``n`` bytes."""
        self._check()
        if n == 0:
            return b""
        pieces = []
        got = 0
        while got < n:
            try:
                chunk = self.read(n - got)
            except EOFError:
                if got:
                    raise EOFError("unexpected EOF") from None
                raise
            pieces.append(chunk)
            got += len(chunk)
        return b"".join(pieces)


class Writer:
    """Buffered writer; once the stream fails, every later call raises again."""

    def __init__(self, stream: Any, size: int = DEFAULT_BUFFER_SIZE) -> None:
        if size <= 0:
            size = DEFAULT_BUFFER_SIZE
        self._stream = stream
        self._buf = bytearray(size)
        self._wpos = 0
        self._err: BaseException | None = None

    @property
    def size(self) -> int:
        return len(self._buf)

    @property
    def buffered(self) -> int:
        return self._wpos

    def _available(self) -> int:
        return len(self._buf) - self._wpos

    def _check(self) -> None:
        if self._err is not None:
            raise self._err

    def _fail(self, err: BaseException) -> None:
        self._err = err
        raise err

    def _raw_write(self, data: bytes) -> int:
        try:
            written = self._stream.write(data)
        except OSError as exc:
            self._fail(exc)
        return len(data) if written is None else written

    def flush(self) -> None:
        self._check()
        if self._wpos == 0:
            return
        written = self._raw_write(bytes(self._buf[:self._wpos]))
        if written < self._wpos:
            self._fail(ShortWriteError())
        self._wpos = 0

    def _copy_in(self, data: bytes) -> int:
        take = min(len(data), self._available())
        self._buf[self._wpos:self._wpos + take] = data[:take]
        self._wpos += take
        return take

    def write(self, data: bytes) -> int:
        """Buffer ``data``, writing straight through when it cannot fit."""
        self._check()
        view = memoryview(bytes(data))
        total = 0
        while len(view) > self._available():
            if self._wpos == 0:
                n = self._raw_write(bytes(view))
                if n <= 0:
                    self._fail(ShortWriteError())
            else:
                n = self._copy_in(bytes(view))
                self.flush()
            total += n
            view = view[n:]
        if not view:
            return total
        return total + self._copy_in(bytes(view))

    def write_byte(self, c: int) -> None:
        self._check()
        if self._available() == 0:
            self.flush()
        self._buf[self._wpos] = c
        self._wpos += 1

    def write_string(self, s: str | bytes) -> int:
        """Buffer a string (UTF-8 encoded), flushing whenever the buffer fills."""
        self._check()
        data = s.encode("utf-8") if isinstance(s, str) else bytes(s)
        total = 0
        while len(data) > self._available():
            n = self._copy_in(data)
            self.flush()
            total += n
            data = data[n:]
        if not data:
            return total
        return total + self._copy_in(data)