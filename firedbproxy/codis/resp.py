"""Values of the Redis serialization protocol."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class RespType(IntEnum):
    """The leading byte that selects how a reply is encoded."""

    STRING = ord("+")
    ERROR = ord("-")
    INT = ord(":")
    BULK_BYTES = ord("$")
    ARRAY = ord("*")


_TYPE_NAMES = {
    RespType.STRING: "<string>",
    RespType.ERROR: "<error>",
    RespType.INT: "<int>",
    RespType.BULK_BYTES: "<bulkbytes>",
    RespType.ARRAY: "<array>",
}


def type_name(value: int) -> str:
    """Human-readable name of a type byte, known or not."""
    try:
        return _TYPE_NAMES[RespType(value)]
    except ValueError:
        return f"<unknown-0x{value & 0xFF:02x}>"


@dataclass
class Resp:
    """One protocol value: text, integer, error, bulk bytes or an array."""

    type: int
    value: bytes | None = None
    array: list[Resp] | None = None

    def is_string(self) -> bool:
        return self.type == RespType.STRING

    def is_error(self) -> bool:
        return self.type == RespType.ERROR

    def is_int(self) -> bool:
        return self.type == RespType.INT

    def is_bulk_bytes(self) -> bool:
        return self.type == RespType.BULK_BYTES

    def is_array(self) -> bool:
        return self.type == RespType.ARRAY


def new_string(value: bytes | None) -> Resp:
    return Resp(RespType.STRING, value=value)


def new_error(value: bytes | None) -> Resp:
    return Resp(RespType.ERROR, value=value)


def new_errorf(fmt: str, *args: object) -> Resp:
    """Build an error reply from a %-style format."""
    message = fmt % args if args else fmt
    return new_error(message.encode("utf-8"))


def new_int(value: bytes | None) -> Resp:
    return Resp(RespType.INT, value=value)


def new_bulk_bytes(value: bytes | None) -> Resp:
    return Resp(RespType.BULK_BYTES, value=value)


def new_array(array: list[Resp] | None) -> Resp:
    return Resp(RespType.ARRAY, array=array)