from __future__ import annotations

import csv
import io
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ..deps import get_db, require_token
from ..store import list_participants


router = APIRouter(prefix="/api", tags=["exports"], dependencies=[Depends(require_token)])

PARTICIPANT_EXPORT_FIELDS = [
    "Id",
    "GamerTag",
    "Admin Notes",
    "Checked In",
    "Total Owed",
    "Total Paid",
    "Total Transaction",
    "Checked In At",
    "Checked In By",
    "Edit Notes",
]


def _stream_csv(rows: Iterable[dict], filename: str, header_fields: Optional[List[str]] = None) -> StreamingResponse:
    buffer = io.StringIO()
    row_iter = iter(rows)
    first_row = next(row_iter, None)
    if header_fields is not None:
        fieldnames = header_fields
    elif first_row is not None:
        fieldnames = list(first_row.keys())
    else:
        fieldnames = []
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    if first_row is not None:
        writer.writerow(first_row)
    for row in row_iter:
        writer.writerow(row)
    buffer.seek(0)
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return StreamingResponse(iter([buffer.getvalue()]), media_type="text/csv", headers=headers)


@router.get("/export.participants.csv")
def export_participants(tournament_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    # Same column names as the roster export so the file can be re-imported
    rows = (
        {
            "Id": p.participant_id,
            "GamerTag": p.player_name or "",
            "Admin Notes": p.admin_notes or "",
            "Checked In": "true" if p.checked_in else "false",
            "Total Owed": p.payment.total_owed,
            "Total Paid": p.payment.total_paid,
            "Total Transaction": p.payment.total_transaction,
            "Checked In At": p.checked_in_at.isoformat() if p.checked_in_at else "",
            "Checked In By": p.checked_in_by or "",
            "Edit Notes": p.edit_notes or "",
        }
        for p in list_participants(db, tournament_id)
    )
    return _stream_csv(rows, "participants.csv", header_fields=PARTICIPANT_EXPORT_FIELDS)
