from __future__ import annotations

"""
EMBED_SUMMARY: Participant roster endpoints: list/filter, JSON and CSV import, QR lookup, payment quote, check-in.
EMBED_TAGS: participants, roster, import, csv, qr, checkin, payments
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ..dashboard import FILTER_MODES, filter_participants, participant_out
from ..deps import get_db, get_operator_id, require_token
from ..feed import participant_cache
from ..pricing import compute_status
from ..roster import import_participants, import_roster, read_csv_rows
from ..schemas import (
    CheckinOut,
    CheckinRequest,
    ImportResult,
    LookupRequest,
    ParticipantOut,
    ParticipantsImport,
    ParticipantsListResponse,
    PaymentStatus,
    QuoteRequest,
)
from ..store import (
    check_in_participant,
    find_adjustment,
    get_participant,
    get_pricing_config,
    list_participants,
    load_participant_map,
    save_merged,
)
from ..utils import extract_participant_id


router = APIRouter(prefix="/api", tags=["participants"], dependencies=[Depends(require_token)])


@router.get("/participants.list", response_model=ParticipantsListResponse)
def participants_list(
    tournament_id: str = Query(..., min_length=1),
    q: Optional[str] = None,
    filter: str = Query(default="all"),
    db: Session = Depends(get_db),
):
    if filter not in FILTER_MODES:
        raise HTTPException(status_code=400, detail=f"filter must be one of {', '.join(FILTER_MODES)}")
    pricing = get_pricing_config(db, tournament_id)
    snapshot = participant_cache.get(tournament_id, lambda: list_participants(db, tournament_id))
    items = [participant_out(p, pricing) for p in filter_participants(snapshot, q, filter)]
    return {"items": items, "total": len(items)}


@router.post("/participants.import", response_model=ImportResult)
def participants_import(payload: ParticipantsImport, db: Session = Depends(get_db)):
    existing = load_participant_map(db, payload.tournament_id)
    merged, count = import_participants(payload.participants, existing, now=datetime.utcnow())
    save_merged(db, payload.tournament_id, merged, count, source="json")
    return {"ok": True, "count": count}


@router.post("/participants.importCsv", response_model=ImportResult)
async def participants_import_csv(
    request: Request,
    tournament_id: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    body = await request.body()
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="CSV upload must be UTF-8 encoded") from exc
    rows = read_csv_rows(text)
    existing = load_participant_map(db, tournament_id)
    merged, count = import_roster(rows, existing, now=datetime.utcnow())
    save_merged(db, tournament_id, merged, count, source="csv")
    return {"ok": True, "count": count}


@router.post("/participants.lookup", response_model=ParticipantOut)
def participants_lookup(payload: LookupRequest, db: Session = Depends(get_db)):
    participant_id = extract_participant_id(payload.raw)
    if not participant_id:
        raise HTTPException(status_code=400, detail="Could not extract a participant id from the scanned text")
    participant = get_participant(db, payload.tournament_id, participant_id)
    return participant_out(participant, get_pricing_config(db, payload.tournament_id))


@router.post("/participants.quote", response_model=PaymentStatus)
def participants_quote(payload: QuoteRequest, db: Session = Depends(get_db)):
    pricing = get_pricing_config(db, payload.tournament_id)
    adjustment = find_adjustment(pricing, payload.adjustment_key)
    participant = get_participant(db, payload.tournament_id, payload.participant_id)
    return compute_status(participant, payload.student_discount, adjustment, payload.custom_delta, pricing)


@router.post("/participants.checkin", response_model=CheckinOut)
def participants_checkin(
    payload: CheckinRequest,
    operator_id: str = Depends(get_operator_id),
    db: Session = Depends(get_db),
):
    pricing = get_pricing_config(db, payload.tournament_id)
    adjustment = find_adjustment(pricing, payload.adjustment_key)
    updated, note = check_in_participant(
        db,
        payload.tournament_id,
        payload.participant_id,
        adjustment,
        payload.custom_delta,
        payload.custom_reason,
        (payload.operator_user_id or "").strip() or operator_id,
    )
    return {"ok": True, "note_entry": note, "participant": updated}
