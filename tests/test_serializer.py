import datetime
from decimal import Decimal

import pytest

from httpsql.core.exceptions import SerializationError
from httpsql.core.executor import ResultSet
from httpsql.core.serializer import render, wants_text

RESULT = ResultSet(
    columns=["id", "name", "ok"],
    rows=[
        {"id": 1, "name": "alice", "ok": True},
        {"id": 2, "name": None, "ok": False},
    ],
)


def test_render_json():
    assert render(RESULT, text=False) == (
        b'[{"id":1,"name":"alice","ok":true},{"id":2,"name":null,"ok":false}]'
    )


def test_render_text():
    """Columns joined by ';', null for None, no trailing newline"""
    assert render(RESULT, text=True) == b"1;alice;true\n2;null;false"


def test_render_empty():
    empty = ResultSet(columns=["n"], rows=[])
    assert render(empty, text=False) == b"[]"
    assert render(empty, text=True) == b""


def test_render_text_follows_column_order():
    result = ResultSet(columns=["b", "a"], rows=[{"a": 1, "b": 2}])
    assert render(result, text=True) == b"2;1"


def test_render_json_non_native_scalars():
    result = ResultSet(
        columns=["amount", "day"],
        rows=[{"amount": Decimal("1.5"), "day": datetime.date(2024, 1, 31)}],
    )
    assert render(result, text=False) == b'[{"amount":1.5,"day":"2024-01-31"}]'


def test_render_json_failure():
    result = ResultSet(columns=["x"], rows=[{"x": float("nan")}])
    with pytest.raises(SerializationError):
        render(result, text=False)


@pytest.mark.parametrize(
    "flags, accept, expected",
    [
        ({"text": ""}, None, True),
        ({"json": "", "text": ""}, "application/json", True),
        ({"json": ""}, "text/plain", False),
        ({}, "text/plain", True),
        ({}, "application/json", False),
        ({}, None, False),
        ({}, "*/*", False),
    ],
)
def test_wants_text(flags, accept, expected):
    assert wants_text(flags, accept) is expected
