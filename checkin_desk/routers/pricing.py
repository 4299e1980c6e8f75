from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..deps import get_db, require_token
from ..schemas import PricingOut, PricingUpdate
from ..store import ensure_tournament, get_pricing_config, save_pricing_config


router = APIRouter(prefix="/api", tags=["pricing"], dependencies=[Depends(require_token)])


@router.get("/pricing.get", response_model=PricingOut)
def pricing_get(tournament_id: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    config = get_pricing_config(db, tournament_id)
    tournament = ensure_tournament(db, tournament_id)
    return {"tournament_id": tournament_id, "name": tournament.name, "pricing_config": config}


@router.post("/pricing.update", response_model=PricingOut)
def pricing_update(payload: PricingUpdate, db: Session = Depends(get_db)):
    tournament, config = save_pricing_config(db, payload.tournament_id, payload.pricing_config, payload.name)
    return {"tournament_id": tournament.id, "name": tournament.name, "pricing_config": config}
