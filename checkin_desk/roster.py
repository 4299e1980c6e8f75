from __future__ import annotations

"""
EMBED_SUMMARY: Roster import from start.gg attendee exports; header detection, whitelisted columns, monotonic merge.
EMBED_TAGS: roster, csv, import, merge, privacy, checkin

Only the columns listed in COLUMN_ALIASES survive an import. Everything else in the export
(real names, phone numbers, addresses) is dropped while the rows are read.
"""

import csv
import io
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import EmptyImport, HeaderNotFound
from .schemas import ParticipantRecord, PaymentTotals
from .utils import coerce_int, parse_truthy


logger = logging.getLogger("roster")

IMPORT_OPERATOR = "roster-import"

# Canonical field -> accepted header names in the roster export
COLUMN_ALIASES: Dict[str, List[str]] = {
    "participant_id": ["Id"],
    "player_name": ["GamerTag"],
    "alt_player_name": ["Short GamerTag"],
    "admin_notes": ["Admin Notes"],
    "checked_in": ["Checked In"],
    "total_owed": ["Total Owed"],
    "total_paid": ["Total Paid"],
    "total_transaction": ["Total Transaction"],
}

# Keys accepted on JSON payloads in addition to the roster header names
API_ALIASES: Dict[str, List[str]] = {
    "participant_id": ["participant_id", "participantId"],
    "player_name": ["player_name", "playerName"],
    "admin_notes": ["admin_notes", "adminNotes"],
    "checked_in": ["checked_in", "checkedIn"],
    "total_owed": ["total_owed", "totalOwed"],
    "total_paid": ["total_paid", "totalPaid"],
    "total_transaction": ["total_transaction", "totalTransaction"],
    "edit_notes": ["edit_notes", "editNotes"],
}

ROSTER_FIELDS = ("player_name", "admin_notes", "payment")


def read_csv_rows(text: str) -> List[List[str]]:
    if text.startswith("\ufeff"):
        text = text[1:]
    return [list(row) for row in csv.reader(io.StringIO(text))]


def _is_header(cells: Sequence[str]) -> bool:
    if not any(name in cells for name in COLUMN_ALIASES["participant_id"]):
        return False
    names = COLUMN_ALIASES["player_name"] + COLUMN_ALIASES["alt_player_name"]
    return any(name in cells for name in names)


def find_header_row(rows: Sequence[Sequence[Any]]) -> int:
    for index, row in enumerate(rows):
        if _is_header([str(cell).strip() for cell in row]):
            return index
    raise HeaderNotFound("Could not find a header row with Id and GamerTag/Short GamerTag columns")


def resolve_columns(header: Sequence[Any]) -> Dict[str, int]:
    """Map each canonical field to its column position; absent fields are left out."""
    cells = [str(cell).strip() for cell in header]
    positions: Dict[str, int] = {}
    for field, names in COLUMN_ALIASES.items():
        for name in names:
            if name in cells:
                positions[field] = cells.index(name)
                break
    return positions


def _cell(row: Sequence[Any], positions: Mapping[str, int], field: str) -> str:
    index = positions.get(field)
    if index is None or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else str(value).strip()


def parse_roster_rows(rows: Sequence[Sequence[Any]]) -> List[ParticipantRecord]:
    header_index = find_header_row(rows)
    positions = resolve_columns(rows[header_index])

    candidates: List[ParticipantRecord] = []
    for row in rows[header_index + 1:]:
        if not any(str(cell).strip() for cell in row if cell is not None):
            continue
        participant_id = _cell(row, positions, "participant_id")
        if not participant_id:
            continue
        candidates.append(
            ParticipantRecord(
                participant_id=participant_id,
                player_name=_cell(row, positions, "player_name")
                or _cell(row, positions, "alt_player_name")
                or participant_id,
                admin_notes=_cell(row, positions, "admin_notes"),
                payment=PaymentTotals(
                    total_transaction=coerce_int(_cell(row, positions, "total_transaction")),
                    total_owed=coerce_int(_cell(row, positions, "total_owed")),
                    total_paid=coerce_int(_cell(row, positions, "total_paid")),
                ),
                checked_in=parse_truthy(_cell(row, positions, "checked_in")),
            )
        )
    return candidates


def _lookup(data: Mapping[str, Any], field: str) -> Any:
    for key in API_ALIASES.get(field, []) + COLUMN_ALIASES.get(field, []):
        if key in data and data[key] is not None and data[key] != "":
            return data[key]
    return None


def normalize_participant(data: Mapping[str, Any]) -> Optional[ParticipantRecord]:
    """Turn one JSON import row into a candidate; either API keys or roster headers work."""
    participant_id = str(_lookup(data, "participant_id") or "").strip()
    if not participant_id:
        return None

    payment_src = data.get("payment") if isinstance(data.get("payment"), Mapping) else data
    name = _lookup(data, "player_name") or data.get("Short GamerTag")
    notes = _lookup(data, "admin_notes")
    edit_notes = _lookup(data, "edit_notes")
    return ParticipantRecord(
        participant_id=participant_id,
        player_name=str(name).strip() if name else participant_id,
        admin_notes=str(notes).strip() if notes else None,
        payment=PaymentTotals(
            total_transaction=coerce_int(_lookup(payment_src, "total_transaction")),
            total_owed=coerce_int(_lookup(payment_src, "total_owed")),
            total_paid=coerce_int(_lookup(payment_src, "total_paid")),
        ),
        checked_in=parse_truthy(_lookup(data, "checked_in")),
        edit_notes=edit_notes if isinstance(edit_notes, str) else "",
    )


def merge_participant(
    existing: Optional[ParticipantRecord],
    candidate: ParticipantRecord,
    now: Optional[datetime] = None,
) -> ParticipantRecord:
    """Merge one candidate over the stored record.

    Roster fields come from the candidate. checked_in never goes back to False, and the
    audit fields (edit_notes, checked_in_at, checked_in_by) stay with the stored record.
    """
    now = now or datetime.utcnow()
    if existing is None:
        merged = candidate.model_copy(deep=True)
        if merged.checked_in and merged.checked_in_at is None:
            merged.checked_in_at = now
            merged.checked_in_by = IMPORT_OPERATOR
        return merged

    checked_in = existing.checked_in or candidate.checked_in
    update: Dict[str, Any] = {field: getattr(candidate, field) for field in ROSTER_FIELDS}
    update["checked_in"] = checked_in
    if checked_in and not existing.checked_in:
        update["checked_in_at"] = now
        update["checked_in_by"] = IMPORT_OPERATOR
    return existing.model_copy(update=update, deep=True)


def merge_candidates(
    candidates: Iterable[ParticipantRecord],
    existing: Mapping[str, ParticipantRecord],
    now: Optional[datetime] = None,
) -> Tuple[Dict[str, ParticipantRecord], int]:
    merged: Dict[str, ParticipantRecord] = dict(existing)
    count = 0
    for candidate in candidates:
        merged[candidate.participant_id] = merge_participant(merged.get(candidate.participant_id), candidate, now)
        count += 1
    if count == 0:
        raise EmptyImport()
    return merged, count


def import_roster(
    raw_rows: Sequence[Sequence[Any]],
    existing: Mapping[str, ParticipantRecord],
    now: Optional[datetime] = None,
) -> Tuple[Dict[str, ParticipantRecord], int]:
    candidates = parse_roster_rows(raw_rows)
    merged, count = merge_candidates(candidates, existing, now)
    logger.info("roster rows=%s candidates=%s merged_total=%s", len(raw_rows), count, len(merged))
    return merged, count


def import_participants(
    payloads: Iterable[Mapping[str, Any]],
    existing: Mapping[str, ParticipantRecord],
    now: Optional[datetime] = None,
) -> Tuple[Dict[str, ParticipantRecord], int]:
    candidates = [c for c in (normalize_participant(p) for p in payloads if isinstance(p, Mapping)) if c]
    return merge_candidates(candidates, existing, now)
