from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..dashboard import summarize
from ..deps import get_db, require_token
from ..feed import participant_cache
from ..schemas import DashboardSummary
from ..store import get_pricing_config, list_participants


router = APIRouter(prefix="/api", tags=["dashboard"], dependencies=[Depends(require_token)])


@router.get("/dashboard.summary", response_model=DashboardSummary)
def dashboard_summary(tournament_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    pricing = get_pricing_config(db, tournament_id)
    snapshot = participant_cache.get(tournament_id, lambda: list_participants(db, tournament_id))
    return summarize(tournament_id, snapshot, pricing)
