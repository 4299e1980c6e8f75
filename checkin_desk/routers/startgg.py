from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..deps import require_access_token, require_token
from ..schemas import ManagedTournamentsResponse
from ..startgg import StartGGClient, get_startgg_client


router = APIRouter(prefix="/api/startgg", tags=["startgg"], dependencies=[Depends(require_token)])


@router.get("/tournaments.list", response_model=ManagedTournamentsResponse)
def tournaments_list(
    page: int = Query(default=1, ge=1),
    per_page: int = Query(default=50, ge=1, le=100),
    access_token: str = Depends(require_access_token),
    startgg: StartGGClient = Depends(get_startgg_client),
):
    return {"tournaments": startgg.fetch_managed_tournaments(access_token, page=page, per_page=per_page)}
