from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkin_desk.utils import coerce_int, extract_participant_id, parse_truthy


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("http://x/participant/102/qr?token=abc", "102"),
        ("http://www.start.gg/api/-/gg_api./participant/5551234/qr?token=zz", "5551234"),
        ("00102", "00102"),
        ("  42  ", "42"),
        ("abc", None),
        ("", None),
        ("12a", None),
        ("participant/abc/qr", None),
    ],
)
def test_extract_participant_id(raw: str, expected) -> None:
    assert extract_participant_id(raw) == expected


def test_extract_participant_id_none_input() -> None:
    assert extract_participant_id(None) is None


def test_coerce_int_is_tolerant() -> None:
    assert coerce_int("4000") == 4000
    assert coerce_int("4,000") == 4000
    assert coerce_int("1500.0") == 1500
    assert coerce_int("-1000") == -1000
    assert coerce_int("") == 0
    assert coerce_int(None) == 0
    assert coerce_int("n/a") == 0


def test_parse_truthy() -> None:
    for value in ("true", "TRUE", "Yes", "1", " yes "):
        assert parse_truthy(value) is True
    for value in ("false", "no", "0", "", "checked", None):
        assert parse_truthy(value) is False
    assert parse_truthy(True) is True
