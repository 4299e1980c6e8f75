from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from .schemas import ParticipantRecord


JST_OFFSET = timedelta(hours=9)
TRUTHY_VALUES = {"true", "yes", "1"}

_QR_URL_PATTERN = re.compile(r"participant/(\d+)/qr")
_DIGITS_ONLY = re.compile(r"^\d+$")


def extract_participant_id(raw: Optional[str]) -> Optional[str]:
    """Pull a participant id out of scanned QR text or a typed id.

    start.gg QR codes encode a URL like ``.../participant/102/qr?token=...``;
    operators may also type the bare numeric id.
    """
    text = (raw or "").strip()
    match = _QR_URL_PATTERN.search(text)
    if match:
        return match.group(1)
    if _DIGITS_ONLY.match(text):
        return text
    return None


def format_timestamp_jst(moment: datetime) -> str:
    # Fixed +9h offset; naive datetimes are UTC
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    local = moment + JST_OFFSET
    return local.strftime("%Y-%m-%d %H:%M") + " JST"


def format_signed_amount(amount: int) -> str:
    return f"+{amount}" if amount >= 0 else str(amount)


def coerce_int(value: Any) -> int:
    """Tolerant integer parsing for roster amounts; anything unparseable is 0."""
    if value is None:
        return 0
    if isinstance(value, (bool, int)):
        return int(value)
    text = str(value).strip().replace(",", "")
    if not text:
        return 0
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return 0


def parse_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_VALUES


def display_name(participant: ParticipantRecord) -> str:
    return participant.player_name or participant.participant_id
