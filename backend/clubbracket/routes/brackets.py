"""
Knockout bracket endpoints: generate once, read, re-resolve.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlmodel import Session

from clubbracket.database import get_session
from clubbracket.services.bracket_service import generate_bracket, get_bracket, resolve_stage
from clubbracket.services.entrant_resolver import BracketOptions, EntrantSourceType, SeedOrder
from clubbracket.utils.http_errors import service_errors

router = APIRouter()


class PairIn(BaseModel):
    side_a: Optional[int] = None
    side_b: Optional[int] = None


class GenerateBracketRequest(BaseModel):
    source_type: EntrantSourceType
    source_stage_id: Optional[int] = None
    size: Optional[int] = Field(default=None, ge=2)
    seed_order: SeedOrder = SeedOrder.STANDARD
    top_n_per_group: Optional[int] = Field(default=None, ge=1)
    wildcard_count: int = Field(default=0, ge=0)
    best_of: int = Field(default=1, ge=1)
    pairs: List[PairIn] = Field(default_factory=list)

    def to_options(self) -> BracketOptions:
        return BracketOptions(
            source_type=self.source_type,
            source_stage_id=self.source_stage_id,
            size=self.size,
            seed_order=self.seed_order,
            top_n_per_group=self.top_n_per_group,
            wildcard_count=self.wildcard_count,
            best_of=self.best_of,
            pairs=[(p.side_a, p.side_b) for p in self.pairs],
        )


class GenerateBracketResponse(BaseModel):
    stage_id: int
    source_type: str
    size: int
    rounds: int
    matches_created: int
    entrants: List[int]
    resolved: int


class ParticipantView(BaseModel):
    id: int
    display_name: Optional[str] = None


class MatchSideView(BaseModel):
    side: str
    is_winner: bool
    participants: List[ParticipantView]


class BracketMatchView(BaseModel):
    id: int
    round_no: int
    match_no: int
    best_of: int
    status: str
    sides: List[MatchSideView]


class BracketSlotView(BaseModel):
    id: int
    target_match_id: int
    target_side: str
    source_type: str
    source_seed: Optional[int] = None
    source_group_id: Optional[int] = None
    source_rank: Optional[int] = None
    source_match_id: Optional[int] = None
    resolved: bool
    participant: Optional[ParticipantView] = None


class BracketView(BaseModel):
    stage_id: int
    matches: List[BracketMatchView]
    slots: List[BracketSlotView]


class ResolveBracketResponse(BaseModel):
    resolved_count: int


@router.post("/stages/{stage_id}/bracket/generate", response_model=GenerateBracketResponse)
def generate_stage_bracket(
    stage_id: int,
    request: GenerateBracketRequest,
    session: Session = Depends(get_session),
) -> GenerateBracketResponse:
    """
    Build the knockout tree for a stage (once) and resolve what is already known.

    400 if the stage is not knockout, already generated, or the entrant/size
    validation fails. Nothing is written in that case.
    """
    with service_errors():
        result = generate_bracket(session, stage_id, request.to_options())
    return GenerateBracketResponse(**result)


@router.get("/stages/{stage_id}/bracket", response_model=BracketView)
def get_stage_bracket(stage_id: int, session: Session = Depends(get_session)) -> BracketView:
    """Matches (round, number, status, side members) and slots (source, resolved flag)."""
    with service_errors():
        view = get_bracket(session, stage_id)
    return BracketView.model_validate(view)


@router.post("/stages/{stage_id}/bracket/resolve", response_model=ResolveBracketResponse)
def resolve_stage_bracket(stage_id: int, session: Session = Depends(get_session)) -> ResolveBracketResponse:
    """Re-run resolution. Idempotent; returns the number of newly filled slots."""
    with service_errors():
        resolved_count = resolve_stage(session, stage_id)
    return ResolveBracketResponse(resolved_count=resolved_count)
