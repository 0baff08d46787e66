"""Phase template CRUD for a tournament (creator only, not while running)."""
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from matchday.database import get_session
from matchday.models.tournament import Tournament
from matchday.routes.deps import get_owned_tournament
from matchday.routes.schemas import PhaseTemplateOut
from matchday.services.match_store import get_tournament
from matchday.services.phase_templates import (
    create_phase_template,
    delete_phase_template,
    list_phase_templates,
    update_phase_template,
)

router = APIRouter(prefix="/tournaments/{tournament_id}/phases", tags=["phases"])


class PhaseCreate(BaseModel):
    phase_name: Optional[str] = None
    phase_type: Optional[str] = None
    phase_order: Optional[int] = None
    turn_based: bool = True
    max_selections: int = 1
    time_limit_seconds: int = 30
    is_optional: bool = False
    is_enabled: bool = True


class PhaseUpdate(BaseModel):
    phase_name: Optional[str] = None
    phase_type: Optional[str] = None
    phase_order: Optional[int] = None
    turn_based: Optional[bool] = None
    max_selections: Optional[int] = None
    time_limit_seconds: Optional[int] = None
    is_optional: Optional[bool] = None
    is_enabled: Optional[bool] = None


class PhaseResponse(BaseModel):
    success: bool = True
    phase: PhaseTemplateOut


class PhaseListResponse(BaseModel):
    success: bool = True
    phases: List[PhaseTemplateOut]


@router.get("", response_model=PhaseListResponse)
def list_phases(tournament_id: int, session: Session = Depends(get_session)) -> PhaseListResponse:
    get_tournament(session, tournament_id)
    phases = list_phase_templates(session, tournament_id)
    return PhaseListResponse(phases=[PhaseTemplateOut.model_validate(p) for p in phases])


@router.post("", response_model=PhaseResponse)
def create_phase(
    tournament_id: int,
    payload: PhaseCreate,
    session: Session = Depends(get_session),
    tournament: Tournament = Depends(get_owned_tournament),
) -> PhaseResponse:
    phase = create_phase_template(session, tournament, **payload.model_dump())
    return PhaseResponse(phase=PhaseTemplateOut.model_validate(phase))


@router.put("/{phase_id}", response_model=PhaseResponse)
def update_phase(
    tournament_id: int,
    phase_id: int,
    payload: PhaseUpdate,
    session: Session = Depends(get_session),
    tournament: Tournament = Depends(get_owned_tournament),
) -> PhaseResponse:
    phase = update_phase_template(session, tournament, phase_id, payload.model_dump(exclude_unset=True))
    return PhaseResponse(phase=PhaseTemplateOut.model_validate(phase))


@router.delete("/{phase_id}")
def delete_phase(
    tournament_id: int,
    phase_id: int,
    session: Session = Depends(get_session),
    tournament: Tournament = Depends(get_owned_tournament),
):
    delete_phase_template(session, tournament, phase_id)
    return {"success": True, "deleted_phase_id": phase_id}
