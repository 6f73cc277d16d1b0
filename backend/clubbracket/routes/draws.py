from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from clubbracket.database import get_session
from clubbracket.models.draw import DrawSession, DrawStatus, DrawType
from clubbracket.services import draw_service
from clubbracket.utils.http_errors import service_errors

router = APIRouter()


class DrawCreate(BaseModel):
    tournament_id: int
    stage_id: Optional[int] = None
    type: DrawType
    payload: Dict[str, Any] = {}


class DrawUpdate(BaseModel):
    payload: Optional[Dict[str, Any]] = None
    result: Optional[Dict[str, Any]] = None


class DrawResponse(BaseModel):
    id: int
    tournament_id: int
    stage_id: Optional[int] = None
    type: str
    status: str
    payload: Dict[str, Any]
    result: Dict[str, Any]
    created_at: datetime
    updated_at: datetime
    applied_at: Optional[datetime] = None


def _draw_to_response(draw: DrawSession) -> DrawResponse:
    return DrawResponse(
        id=draw.id,
        tournament_id=draw.tournament_id,
        stage_id=draw.stage_id,
        type=DrawType(draw.type).value,
        status=DrawStatus(draw.status).value,
        payload=draw.payload or {},
        result=draw.result or {},
        created_at=draw.created_at,
        updated_at=draw.updated_at,
        applied_at=draw.applied_at,
    )


@router.get("/draws", response_model=List[DrawResponse])
def list_draws(
    tournament_id: Optional[int] = None,
    stage_id: Optional[int] = None,
    type: Optional[DrawType] = None,
    session: Session = Depends(get_session),
) -> List[DrawResponse]:
    """List draw sessions, newest first"""
    draws = draw_service.get_draws(session, tournament_id=tournament_id, stage_id=stage_id, draw_type=type)
    return [_draw_to_response(d) for d in draws]


@router.post("/draws", response_model=DrawResponse, status_code=201)
def create_draw(payload: DrawCreate, session: Session = Depends(get_session)) -> DrawResponse:
    """Create a DRAFT draw session"""
    with service_errors():
        draw = draw_service.create_draw(
            session,
            tournament_id=payload.tournament_id,
            draw_type=payload.type,
            payload=payload.payload,
            stage_id=payload.stage_id,
        )
    return _draw_to_response(draw)


@router.get("/draws/{draw_id}", response_model=DrawResponse)
def get_draw(draw_id: int, session: Session = Depends(get_session)) -> DrawResponse:
    with service_errors():
        draw = draw_service.get_draw(session, draw_id)
    return _draw_to_response(draw)


@router.patch("/draws/{draw_id}", response_model=DrawResponse)
def update_draw(draw_id: int, update: DrawUpdate, session: Session = Depends(get_session)) -> DrawResponse:
    """Replace payload/result while the draw is still DRAFT"""
    with service_errors():
        draw = draw_service.update_draw(session, draw_id, payload=update.payload, result=update.result)
    return _draw_to_response(draw)


@router.post("/draws/{draw_id}/apply")
def apply_draw(draw_id: int, session: Session = Depends(get_session)) -> Dict[str, Any]:
    """
    Apply a DRAFT draw in one transaction and mark it APPLIED.

    400 if already applied or the staged result does not validate; no partial writes.
    """
    with service_errors():
        return draw_service.apply_draw(session, draw_id)
