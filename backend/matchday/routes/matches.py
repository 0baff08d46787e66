"""
Match play endpoints: view, ready-check, start, phase selections, scoring.

Participants authenticate with their access link (``Authorization: Bearer``);
the tournament creator with a session token (``X-Session-Token``). Domain
errors propagate to the app-level handler.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlmodel import Session

from matchday.database import get_session
from matchday.routes.deps import get_match_access
from matchday.routes.schemas import (
    MatchOut,
    MatchPhaseOut,
    ParticipantOut,
    PhaseTemplateOut,
    SelectionOut,
    SubmissionOut,
    TournamentOut,
    VerificationActionOut,
)
from matchday.services import match_events
from matchday.services.access_resolver import MatchAccess
from matchday.services.errors import Forbidden
from matchday.services.match_lifecycle import match_snapshot, set_ready
from matchday.services.match_store import get_match
from matchday.services.phase_engine import make_selection, skip_phase, start_match
from matchday.services.score_protocol import list_submissions, submit_score, verify_score

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matches", tags=["matches"])


class AccessOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    participant_id: Optional[int] = None
    is_owner: bool
    is_spectator: bool
    via_token: bool
    can_start: bool


class PhaseViewOut(BaseModel):
    phase: MatchPhaseOut
    template: Optional[PhaseTemplateOut] = None
    selections: List[SelectionOut] = []


class MatchSnapshotResponse(BaseModel):
    success: bool = True
    match: MatchOut
    tournament: TournamentOut
    participant1: Optional[ParticipantOut] = None
    participant2: Optional[ParticipantOut] = None
    phases: List[PhaseViewOut]
    current_phase: Optional[PhaseViewOut] = None
    time_remaining: int
    current_submission: Optional[SubmissionOut] = None
    current_participant: Optional[ParticipantOut] = None
    access: AccessOut


class ReadyRequest(BaseModel):
    ready: bool = True


class MatchResponse(BaseModel):
    success: bool = True
    match: MatchOut


class StartResponse(BaseModel):
    success: bool = True
    match: MatchOut
    current_phase: Optional[MatchPhaseOut] = None


class SelectionRequest(BaseModel):
    selection_type: Optional[str] = None
    selection_data: Optional[Dict[str, Any]] = None


class SelectionResponse(BaseModel):
    success: bool = True
    selection: Optional[SelectionOut] = None
    current_phase: Optional[MatchPhaseOut] = None
    time_remaining: int
    phase_complete: bool
    match_status: str


class ScoreSubmitRequest(BaseModel):
    participant1_score: Any = None
    participant2_score: Any = None
    notes: Optional[str] = None
    game_number: Optional[int] = None
    game_scores: Optional[List[Dict[str, Any]]] = None


class ScoreSubmitResponse(BaseModel):
    success: bool = True
    submission: SubmissionOut


class ScoreVerifyRequest(BaseModel):
    submission_id: int
    action_type: str
    participant1_score: Any = None
    participant2_score: Any = None
    notes: Optional[str] = None


class ScoreVerifyResponse(BaseModel):
    success: bool = True
    action: VerificationActionOut
    counter_submission: Optional[SubmissionOut] = None
    finalized: bool
    advanced_count: int
    match: MatchOut


class SubmissionHistoryItem(BaseModel):
    submission: SubmissionOut
    actions: List[VerificationActionOut]


class SubmissionHistoryResponse(BaseModel):
    success: bool = True
    current_submission_id: Optional[int] = None
    score_submission_status: Optional[str] = None
    submissions: List[SubmissionHistoryItem]


class MatchUpdateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    update_type: str
    update_data: Dict[str, Any]
    participant_id: Optional[int] = None
    created_at: datetime


class MatchUpdatesResponse(BaseModel):
    success: bool = True
    updates: List[MatchUpdateOut]


def _phase_view(view) -> PhaseViewOut:
    return PhaseViewOut(
        phase=MatchPhaseOut.model_validate(view.phase),
        template=PhaseTemplateOut.model_validate(view.template) if view.template else None,
        selections=[SelectionOut.model_validate(s) for s in view.selections],
    )


@router.get("/{match_id}", response_model=MatchSnapshotResponse)
def get_match_snapshot(
    match_id: int,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> MatchSnapshotResponse:
    """Full match view for participants, the creator, and spectators of public tournaments."""
    snapshot = match_snapshot(session, get_match(session, match_id), access)
    return MatchSnapshotResponse(
        match=MatchOut.model_validate(snapshot.match),
        tournament=TournamentOut.model_validate(snapshot.tournament),
        participant1=ParticipantOut.model_validate(snapshot.participant1) if snapshot.participant1 else None,
        participant2=ParticipantOut.model_validate(snapshot.participant2) if snapshot.participant2 else None,
        phases=[_phase_view(v) for v in snapshot.phases],
        current_phase=_phase_view(snapshot.current_phase) if snapshot.current_phase else None,
        time_remaining=snapshot.time_remaining,
        current_submission=(
            SubmissionOut.model_validate(snapshot.current_submission) if snapshot.current_submission else None
        ),
        current_participant=(
            ParticipantOut.model_validate(snapshot.current_participant) if snapshot.current_participant else None
        ),
        access=AccessOut.model_validate(access),
    )


@router.post("/{match_id}/ready", response_model=MatchResponse)
def mark_ready(
    match_id: int,
    payload: ReadyRequest,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> MatchResponse:
    match = set_ready(session, match_id, access, payload.ready)
    return MatchResponse(match=MatchOut.model_validate(match))


@router.post("/{match_id}/start", response_model=StartResponse)
def start(
    match_id: int,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> StartResponse:
    """Start a pending match (creator, or a participant holding an access link)."""
    result = start_match(session, match_id, access)
    return StartResponse(
        match=MatchOut.model_validate(result.match),
        current_phase=MatchPhaseOut.model_validate(result.first_phase) if result.first_phase else None,
    )


@router.post("/{match_id}/phases/{phase_id}/select", response_model=SelectionResponse)
def select(
    match_id: int,
    phase_id: int,
    payload: SelectionRequest,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> SelectionResponse:
    result = make_selection(session, match_id, phase_id, access, payload.selection_type, payload.selection_data)
    return _selection_response(result)


@router.post("/{match_id}/phases/{phase_id}/skip", response_model=SelectionResponse)
def skip(
    match_id: int,
    phase_id: int,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> SelectionResponse:
    """Close an active optional phase."""
    result = skip_phase(session, match_id, phase_id, access)
    return _selection_response(result)


def _selection_response(result) -> SelectionResponse:
    return SelectionResponse(
        selection=SelectionOut.model_validate(result.selection) if result.selection else None,
        current_phase=MatchPhaseOut.model_validate(result.current_phase) if result.current_phase else None,
        time_remaining=result.time_remaining,
        phase_complete=result.phase_complete,
        match_status=result.match_status,
    )


@router.post("/{match_id}/score", response_model=ScoreSubmitResponse)
def submit(
    match_id: int,
    payload: ScoreSubmitRequest,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> ScoreSubmitResponse:
    submission = submit_score(
        session,
        match_id,
        access,
        payload.participant1_score,
        payload.participant2_score,
        notes=payload.notes,
        game_number=payload.game_number,
        game_scores=payload.game_scores,
    )
    return ScoreSubmitResponse(submission=SubmissionOut.model_validate(submission))


@router.get("/{match_id}/score", response_model=SubmissionHistoryResponse)
def score_history(
    match_id: int,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> SubmissionHistoryResponse:
    if not access.can_view:
        raise Forbidden("Not authorized to view scores for this match")
    match = get_match(session, match_id)
    history = list_submissions(session, match_id)
    return SubmissionHistoryResponse(
        current_submission_id=match.current_score_submission_id,
        score_submission_status=match.score_submission_status,
        submissions=[
            SubmissionHistoryItem(
                submission=SubmissionOut.model_validate(item["submission"]),
                actions=[VerificationActionOut.model_validate(a) for a in item["actions"]],
            )
            for item in history
        ],
    )


@router.post("/{match_id}/score/verify", response_model=ScoreVerifyResponse)
def verify(
    match_id: int,
    payload: ScoreVerifyRequest,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> ScoreVerifyResponse:
    """Accept, dispute, counter-propose, or (creator) finalize a submitted score."""
    result = verify_score(
        session,
        match_id,
        payload.submission_id,
        access,
        payload.action_type,
        participant1_score=payload.participant1_score,
        participant2_score=payload.participant2_score,
        notes=payload.notes,
    )
    match = get_match(session, match_id)
    return ScoreVerifyResponse(
        action=VerificationActionOut.model_validate(result.action),
        counter_submission=(
            SubmissionOut.model_validate(result.counter_submission) if result.counter_submission else None
        ),
        finalized=result.finalized,
        advanced_count=result.advanced_count,
        match=MatchOut.model_validate(match),
    )


@router.get("/{match_id}/updates", response_model=MatchUpdatesResponse)
def updates(
    match_id: int,
    since_id: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> MatchUpdatesResponse:
    """Poll the match-update feed for rows newer than ``since_id``."""
    if not access.can_view:
        raise Forbidden("Not authorized to view this match")
    rows = match_events.list_match_updates(session, match_id, since_id=since_id, limit=limit)
    return MatchUpdatesResponse(updates=[MatchUpdateOut.model_validate(r) for r in rows])
