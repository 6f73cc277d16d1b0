"""
Knockout match result hook. Records the winning side, then re-runs bracket
resolution for the match's stage so the winner is forwarded.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from clubbracket.database import get_session
from clubbracket.models.match import SideLabel
from clubbracket.services.match_results import record_winner
from clubbracket.utils.http_errors import service_errors

router = APIRouter()


class MatchWinnerUpdate(BaseModel):
    side: SideLabel


class MatchWinnerResponse(BaseModel):
    match_id: int
    stage_id: int
    winner_side: str
    resolved_count: int = 0


@router.post("/matches/{match_id}/winner", response_model=MatchWinnerResponse)
def set_match_winner(
    match_id: int,
    payload: MatchWinnerUpdate,
    session: Session = Depends(get_session),
) -> MatchWinnerResponse:
    with service_errors():
        result = record_winner(session, match_id, payload.side.value)
    return MatchWinnerResponse(**result)
