from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkin_desk.errors import EmptyImport, HeaderNotFound
from checkin_desk.roster import (
    IMPORT_OPERATOR,
    find_header_row,
    import_participants,
    import_roster,
    read_csv_rows,
    resolve_columns,
)
from checkin_desk.schemas import ParticipantRecord, PaymentTotals


NOW = datetime(2024, 6, 1, 1, 0)

ROSTER_CSV = (
    "Tournament Attendees Export,,,,,,,,,\n"
    ",,,,,,,,,\n"
    "Id,GamerTag,Short GamerTag,Real Name,Phone,Admin Notes,Checked In,Total Owed,Total Paid,Total Transaction\n"
    "101,Skyline,Sky,Taro Yamada,090-0000-0000,A-01,false,0,4000,4000\n"
    "102,,Luna,Hanako Sato,090-1111-1111,B-02,no,\"4,000\",0,0\n"
    ",Ghost,,Nobody,,,,,,\n"
    ",,,,,,,,,\n"
    "104,,,Jiro,,D-04,Yes,3000,0,0\n"
)


def test_read_csv_rows_strips_bom() -> None:
    rows = read_csv_rows("\ufeffId,GamerTag\n1,A\n")
    assert rows == [["Id", "GamerTag"], ["1", "A"]]


def test_header_detection_skips_preamble() -> None:
    rows = read_csv_rows(ROSTER_CSV)
    assert find_header_row(rows) == 2
    positions = resolve_columns(rows[2])
    assert positions["participant_id"] == 0
    assert positions["total_transaction"] == 9
    assert "Real Name" not in positions


def test_import_roster_whitelists_columns_and_builds_candidates() -> None:
    merged, count = import_roster(read_csv_rows(ROSTER_CSV), {}, now=NOW)
    assert count == 3
    assert sorted(merged) == ["101", "102", "104"]

    sky = merged["101"]
    assert sky.player_name == "Skyline"
    assert sky.admin_notes == "A-01"
    assert sky.payment == PaymentTotals(total_transaction=4000, total_owed=0, total_paid=4000)
    assert sky.checked_in is False

    luna = merged["102"]
    assert luna.player_name == "Luna"
    assert luna.payment.total_owed == 4000

    jiro = merged["104"]
    assert jiro.player_name == "104"
    assert jiro.checked_in is True
    assert jiro.checked_in_at == NOW
    assert jiro.checked_in_by == IMPORT_OPERATOR

    dumped = " ".join(str(p.model_dump()) for p in merged.values())
    assert "Taro Yamada" not in dumped
    assert "090-0000-0000" not in dumped


def test_import_never_downgrades_checked_in() -> None:
    checked_at = datetime(2024, 5, 31, 23, 0)
    existing = {
        "102": ParticipantRecord(
            participant_id="102",
            player_name="Old Luna",
            payment=PaymentTotals(total_owed=4000),
            checked_in=True,
            checked_in_at=checked_at,
            checked_in_by="op-1",
            edit_notes="2024-06-01 08:00 JST | 変更なし | +0円",
        ),
        "999": ParticipantRecord(participant_id="999", player_name="Untouched"),
    }
    rows = [
        ["Id", "GamerTag", "Checked In", "Total Owed"],
        ["102", "Luna", "false", "3000"],
    ]
    merged, count = import_roster(rows, existing, now=NOW)
    assert count == 1
    luna = merged["102"]
    assert luna.checked_in is True
    assert luna.checked_in_at == checked_at
    assert luna.checked_in_by == "op-1"
    assert luna.player_name == "Luna"
    assert luna.payment.total_owed == 3000
    assert luna.edit_notes == "2024-06-01 08:00 JST | 変更なし | +0円"
    assert merged["999"].player_name == "Untouched"
    # caller's mapping is left alone
    assert existing["102"].player_name == "Old Luna"


def test_count_is_candidates_processed_not_new_records() -> None:
    existing = {"101": ParticipantRecord(participant_id="101")}
    rows = [["Id", "Short GamerTag"], ["101", "A"], ["102", "B"], ["102", "B2"]]
    merged, count = import_roster(rows, existing, now=NOW)
    assert count == 3
    assert len(merged) == 2
    assert merged["102"].player_name == "B2"


def test_missing_header_raises_and_merges_nothing() -> None:
    existing = {"101": ParticipantRecord(participant_id="101", checked_in=True)}
    with pytest.raises(HeaderNotFound):
        import_roster([["Name", "Phone"], ["Taro", "090"]], existing, now=NOW)
    with pytest.raises(HeaderNotFound):
        import_roster([["Id", "Phone"], ["1", "090"]], existing, now=NOW)
    assert existing["101"].checked_in is True


def test_header_without_rows_is_empty_import() -> None:
    with pytest.raises(EmptyImport):
        import_roster([["Id", "GamerTag"], ["", "Nameless"], ["", ""]], {}, now=NOW)


def test_import_participants_accepts_api_and_roster_keys() -> None:
    merged, count = import_participants(
        [
            {"participantId": "201", "playerName": "Nova", "payment": {"totalOwed": 4000}},
            {"Id": "202", "Short GamerTag": "Orbit", "Checked In": "yes", "Total Transaction": "4000"},
            {"participantId": "  "},
        ],
        {},
        now=NOW,
    )
    assert count == 2
    assert merged["201"].player_name == "Nova"
    assert merged["201"].payment.total_owed == 4000
    assert merged["202"].player_name == "Orbit"
    assert merged["202"].checked_in is True
    assert merged["202"].payment.total_transaction == 4000


def test_import_participants_empty_raises() -> None:
    with pytest.raises(EmptyImport):
        import_participants([{"playerName": "no id"}], {}, now=NOW)
