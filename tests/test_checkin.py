from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkin_desk.checkin import check_in
from checkin_desk.errors import AlreadyCheckedIn, MissingReason
from checkin_desk.pricing import default_pricing_config
from checkin_desk.schemas import ParticipantRecord, PaymentTotals
from checkin_desk.utils import format_timestamp_jst


NOW = datetime(2024, 6, 1, 1, 15)  # 10:15 JST


def _participant(**overrides) -> ParticipantRecord:
    data = dict(
        participant_id="102",
        player_name="Luna",
        admin_notes="B-02",
        payment=PaymentTotals(total_transaction=0, total_owed=4000),
    )
    data.update(overrides)
    return ParticipantRecord(**data)


def test_format_timestamp_jst_uses_fixed_offset() -> None:
    assert format_timestamp_jst(NOW) == "2024-06-01 10:15 JST"
    assert format_timestamp_jst(datetime(2024, 6, 1, 15, 30)) == "2024-06-02 00:30 JST"
    aware = datetime(2024, 6, 1, 10, 15, tzinfo=timezone(timedelta(hours=9)))
    assert format_timestamp_jst(aware) == "2024-06-01 10:15 JST"


def test_check_in_sets_state_and_appends_one_note() -> None:
    pricing = default_pricing_config()
    participant = _participant()
    updated, note = check_in(participant, pricing.find_option("general_to_bring"), 0, "", "op-1", NOW)

    assert note == "2024-06-01 10:15 JST | 一般→持参 (-1000円) | -1000円"
    assert updated.checked_in is True
    assert updated.checked_in_at == NOW
    assert updated.checked_in_by == "op-1"
    assert updated.edit_notes == note
    # input untouched
    assert participant.checked_in is False
    assert participant.edit_notes == ""


def test_check_in_zero_delta_still_records_note() -> None:
    pricing = default_pricing_config()
    updated, note = check_in(_participant(), pricing.find_option("none"), 0, "", "op-1", NOW)
    assert note == "2024-06-01 10:15 JST | 変更なし | +0円"
    assert updated.edit_notes.count("\n") == 0


def test_check_in_appends_to_existing_notes() -> None:
    pricing = default_pricing_config()
    participant = _participant(edit_notes="2024-05-01 09:00 JST | 事前 | +0円")
    updated, note = check_in(participant, pricing.find_option("bring_to_general"), 0, "", "op", NOW)
    lines = updated.edit_notes.split("\n")
    assert lines == ["2024-05-01 09:00 JST | 事前 | +0円", note]
    assert note.endswith("| +1000円")


def test_other_adjustment_uses_reason_and_custom_amount() -> None:
    pricing = default_pricing_config()
    _, note = check_in(_participant(), pricing.find_option("other"), -500, " late arrival ", "op", NOW)
    assert note == "2024-06-01 10:15 JST | other: late arrival | -500円"


@pytest.mark.parametrize("reason,amount", [("", 500), ("   ", 500), ("late", 0)])
def test_other_adjustment_requires_reason_and_nonzero_amount(reason: str, amount: int) -> None:
    pricing = default_pricing_config()
    participant = _participant()
    with pytest.raises(MissingReason):
        check_in(participant, pricing.find_option("other"), amount, reason, "op", NOW)
    assert participant.checked_in is False
    assert participant.edit_notes == ""


def test_second_check_in_is_rejected_without_new_note() -> None:
    pricing = default_pricing_config()
    updated, _ = check_in(_participant(), pricing.find_option("none"), 0, "", "op", NOW)
    with pytest.raises(AlreadyCheckedIn):
        check_in(updated, pricing.find_option("none"), 0, "", "op-2", NOW + timedelta(minutes=5))
    assert updated.edit_notes.count("JST") == 1
    assert updated.checked_in_by == "op"
    assert updated.checked_in_at == NOW
