from __future__ import annotations

from datetime import datetime
from typing import Tuple

from .errors import AlreadyCheckedIn, MissingReason
from .pricing import OTHER_KEY, resolve_delta
from .schemas import AdjustmentOption, ParticipantRecord
from .utils import format_signed_amount, format_timestamp_jst


def reason_label_for(adjustment: AdjustmentOption, custom_reason: str) -> str:
    if adjustment.key == OTHER_KEY:
        return f"other: {(custom_reason or '').strip()}"
    return adjustment.label


def format_audit_note(now: datetime, reason_label: str, delta: int) -> str:
    return f"{format_timestamp_jst(now)} | {reason_label} | {format_signed_amount(delta)}円"


def check_in(
    participant: ParticipantRecord,
    adjustment: AdjustmentOption,
    custom_delta: int,
    custom_reason: str,
    operator_id: str,
    now: datetime,
) -> Tuple[ParticipantRecord, str]:
    """Latch a participant to checked-in and produce its single audit line.

    Returns a new record; the argument is left untouched. Rejections happen before
    anything is computed so a failed call never yields a note.
    """
    if participant.checked_in:
        raise AlreadyCheckedIn(f"Participant {participant.participant_id} is already checked in")
    if adjustment.requires_reason:
        # Reason text and a non-zero amount are each required on their own
        if not (custom_reason or "").strip() or custom_delta == 0:
            raise MissingReason()

    delta = resolve_delta(adjustment, custom_delta)
    note = format_audit_note(now, reason_label_for(adjustment, custom_reason), delta)
    edit_notes = f"{participant.edit_notes}\n{note}" if participant.edit_notes else note

    updated = participant.model_copy(
        update={
            "checked_in": True,
            "checked_in_at": now,
            "checked_in_by": operator_id,
            "edit_notes": edit_notes,
        },
        deep=True,
    )
    return updated, note
