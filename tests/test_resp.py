import pytest

from firedbproxy.codis.resp import (
    Resp,
    RespType,
    new_array,
    new_bulk_bytes,
    new_error,
    new_errorf,
    new_int,
    new_string,
    type_name,
)

PREDICATES = ["is_string", "is_error", "is_int", "is_bulk_bytes", "is_array"]


@pytest.mark.parametrize(
    "resp,expected",
    [
        (new_string(b"OK"), "is_string"),
        (new_error(b"ERR"), "is_error"),
        (new_int(b"1"), "is_int"),
        (new_bulk_bytes(b"foo"), "is_bulk_bytes"),
        (new_array([]), "is_array"),
    ],
)
def test_exactly_one_predicate_holds(resp, expected):
    results = {name: getattr(resp, name)() for name in PREDICATES}
    assert results[expected] is True
    assert sum(results.values()) == 1


@pytest.mark.parametrize(
    "kind,name",
    [
        (RespType.STRING, "<string>"),
        (RespType.ERROR, "<error>"),
        (RespType.INT, "<int>"),
        (RespType.BULK_BYTES, "<bulkbytes>"),
        (RespType.ARRAY, "<array>"),
    ],
)
def test_type_name_known(kind, name):
    assert type_name(kind) == name


def test_type_name_unknown():
    assert type_name(0x21) == "<unknown-0x21>"


def test_constructors_keep_value():
    assert new_string(b"OK").value == b"OK"
    assert new_bulk_bytes(None).value is None
    assert new_int(b"42").value == b"42"


def test_new_array_keeps_items():
    items = [new_bulk_bytes(b"a"), new_int(b"2")]
    resp = new_array(items)
    assert resp.array == items
    assert resp.value is None


def test_new_errorf_formats():
    resp = new_errorf("ERR %s %d", "x", 3)
    assert resp.is_error()
    assert resp.value == b"ERR x 3"


def test_resp_equality():
    assert Resp(RespType.STRING, b"a") == new_string(b"a")
    assert new_string(b"a") != new_bulk_bytes(b"a")