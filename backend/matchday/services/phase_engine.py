"""
Phase Engine: start a match and drive it through its ordered selection phases.

Per-phase states: pending -> active -> completed. Phases activate in template
order and at most one is active per match. Each mutating call locks the match
row, validates against the state it just read, writes, and commits once; any
error raised before the commit leaves no trace.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from matchday import settings
from matchday.models.match import MATCH_IN_PROGRESS, MATCH_PENDING, MATCH_READY_FOR_SCORE, Match
from matchday.models.match_event import MatchReadyEvent
from matchday.models.match_phase import PHASE_ACTIVE, PHASE_COMPLETED, PHASE_PENDING, MatchPhase
from matchday.models.phase_selection import PhaseSelection
from matchday.models.tournament_phase import TournamentPhase
from matchday.services import match_events
from matchday.services.access_links import ensure_access_tokens
from matchday.services.access_resolver import MatchAccess
from matchday.services.errors import (
    Conflict,
    Forbidden,
    InvalidSelection,
    InvalidState,
    MatchAlreadyStarted,
    NotYourTurn,
    PhaseNotActive,
    SelectionLimitReached,
)
from matchday.services.match_store import find_active_phase, get_match_phase, lock_match

logger = logging.getLogger(__name__)


@dataclass
class StartResult:
    match: Match
    first_phase: Optional[MatchPhase]


@dataclass
class SelectionResult:
    selection: Optional[PhaseSelection]
    current_phase: Optional[MatchPhase]
    time_remaining: int
    phase_complete: bool
    match_status: str


def _template_for(session: Session, phase: MatchPhase) -> TournamentPhase:
    template = session.get(TournamentPhase, phase.tournament_phase_id)
    if template is None:
        raise InvalidState(f"Phase template {phase.tournament_phase_id} no longer exists")
    return template


def instantiate_phases(session: Session, match: Match) -> List[MatchPhase]:
    """Create a pending MatchPhase per tournament template, in template order."""
    existing = session.exec(select(MatchPhase).where(MatchPhase.match_id == match.id)).all()
    if existing:
        return sorted(existing, key=lambda p: (p.phase_order, p.id))

    templates = session.exec(
        select(TournamentPhase)
        .where(TournamentPhase.tournament_id == match.tournament_id)
        .order_by(TournamentPhase.phase_order, TournamentPhase.id)
    ).all()
    phases = []
    for template in templates:
        phase = MatchPhase(
            match_id=match.id,
            tournament_phase_id=template.id,
            phase_order=template.phase_order,
            phase_status=PHASE_PENDING,
        )
        session.add(phase)
        phases.append(phase)
    session.flush()
    return phases


def _activate(phase: MatchPhase, template: TournamentPhase, match: Match, now: datetime) -> None:
    phase.phase_status = PHASE_ACTIVE
    phase.started_at = now
    filled = match.participant_ids()
    phase.current_turn_participant_id = filled[0] if template.turn_based and filled else None
    phase.time_remaining = template.time_limit_seconds


def _complete(phase: MatchPhase, now: datetime, skipped: bool = False) -> None:
    phase.phase_status = PHASE_COMPLETED
    phase.completed_at = now
    phase.current_turn_participant_id = None
    phase.time_remaining = None
    phase.skipped = skipped


def activate_next_phase(
    session: Session, match: Match, now: Optional[datetime] = None, skip_disabled: Optional[bool] = None
) -> Optional[MatchPhase]:
    """
    Activate the next pending phase in ordinal order and return it.

    Disabled templates are completed as skipped when ``skip_disabled`` is on
    (``SKIP_DISABLED_PHASES``). Optional templates always activate; they can be
    closed early with ``skip_phase``. Returns None when no phase is left.
    Does not commit.
    """
    now = now or datetime.utcnow()
    if skip_disabled is None:
        skip_disabled = settings.SKIP_DISABLED_PHASES

    active = find_active_phase(session, match.id)
    if active is not None:
        return active

    pending = session.exec(
        select(MatchPhase)
        .where(MatchPhase.match_id == match.id, MatchPhase.phase_status == PHASE_PENDING)
        .order_by(MatchPhase.phase_order, MatchPhase.id)
    ).all()
    for phase in pending:
        template = _template_for(session, phase)
        if skip_disabled and not template.is_enabled:
            _complete(phase, now, skipped=True)
            session.add(phase)
            logger.info(f"Match {match.id}: skipped disabled phase '{template.phase_name}'")
            continue
        _activate(phase, template, match, now)
        session.add(phase)
        logger.info(f"Match {match.id}: activated phase '{template.phase_name}' (order {phase.phase_order})")
        return phase
    return None


def start_match(session: Session, match_id: int, access: MatchAccess, now: Optional[datetime] = None) -> StartResult:
    """Move a pending match to in_progress and open its first phase."""
    now = now or datetime.utcnow()
    if not access.can_start:
        raise Forbidden("Only the tournament creator or a participant with an access link can start this match")

    match = lock_match(session, match_id)
    if match.status != MATCH_PENDING:
        raise MatchAlreadyStarted()

    match.status = MATCH_IN_PROGRESS
    match.started_at = now
    session.add(match)

    instantiate_phases(session, match)
    first_phase = activate_next_phase(session, match, now)
    if first_phase is None:
        match.status = MATCH_READY_FOR_SCORE

    ensure_access_tokens(session, match, now)

    started_by_owner = access.is_owner and not access.via_token
    session.add(
        MatchReadyEvent(
            match_id=match.id,
            participant_id=None if started_by_owner else access.participant_id,
            event_type="creator_start" if started_by_owner else "participant_start",
            created_by=access.user_id,
        )
    )
    event = match_events.MatchUpdateEvent(
        match_id=match.id,
        update_type=match_events.MATCH_STARTED,
        data={"first_phase_id": first_phase.id if first_phase else None, "status": match.status},
        participant_id=access.participant_id,
    )
    match_events.emit(session, event)
    session.commit()
    session.refresh(match)
    if first_phase is not None:
        session.refresh(first_phase)
    match_events.broadcast(event)

    logger.info(f"Match {match.id} started ({'creator' if started_by_owner else 'participant'}); status={match.status}")
    return StartResult(match=match, first_phase=first_phase)


def _selection_count(session: Session, phase_id: int, participant_id: Optional[int] = None) -> int:
    query = select(func.count()).select_from(PhaseSelection).where(PhaseSelection.match_phase_id == phase_id)
    if participant_id is not None:
        query = query.where(PhaseSelection.participant_id == participant_id)
    return session.exec(query).one()


def _close_phase_and_advance(session: Session, match: Match, phase: MatchPhase, now: datetime, skipped: bool) -> Optional[MatchPhase]:
    _complete(phase, now, skipped=skipped)
    session.add(phase)
    session.flush()
    next_phase = activate_next_phase(session, match, now)
    if next_phase is None:
        match.status = MATCH_READY_FOR_SCORE
        session.add(match)
        logger.info(f"Match {match.id}: all phases complete, ready for score")
    return next_phase


def make_selection(
    session: Session,
    match_id: int,
    phase_id: int,
    access: MatchAccess,
    selection_type: Optional[str],
    selection_data: Optional[Dict[str, Any]],
    now: Optional[datetime] = None,
) -> SelectionResult:
    """Record one pick for the acting participant and advance turn/phase."""
    now = now or datetime.utcnow()
    participant_id = access.require_participant("Invalid or expired access token")

    match = lock_match(session, match_id)
    phase = get_match_phase(session, match.id, phase_id)
    template = _template_for(session, phase)

    if phase.phase_status != PHASE_ACTIVE:
        raise PhaseNotActive()
    if template.turn_based and phase.current_turn_participant_id != participant_id:
        raise NotYourTurn()
    prior_count = _selection_count(session, phase.id, participant_id)
    if prior_count >= template.max_selections:
        raise SelectionLimitReached()
    if not selection_type or selection_data is None:
        raise InvalidSelection()

    selection = PhaseSelection(
        match_phase_id=phase.id,
        participant_id=participant_id,
        selection_type=selection_type,
        selection_data=selection_data,
        selection_order=prior_count + 1,
        created_at=now,
    )
    session.add(selection)
    try:
        session.flush()
    except IntegrityError:
        session.rollback()
        raise Conflict("Selection conflicted with a concurrent selection; retry")

    total = _selection_count(session, phase.id)
    capacity = template.max_selections * max(len(match.participant_ids()), 1)
    phase_complete = total >= capacity

    current_phase: Optional[MatchPhase] = phase
    if phase_complete:
        current_phase = _close_phase_and_advance(session, match, phase, now, skipped=False)
    elif template.turn_based:
        phase.current_turn_participant_id = match.opponent_of(participant_id) or participant_id
        phase.time_remaining = template.time_limit_seconds
        session.add(phase)

    event = match_events.MatchUpdateEvent(
        match_id=match.id,
        update_type=match_events.SELECTION_MADE,
        data={
            "phase_id": phase.id,
            "participant_id": participant_id,
            "selection": {"selection_type": selection_type, "selection_data": selection_data},
            "phase_complete": phase_complete,
        },
        participant_id=participant_id,
    )
    match_events.emit(session, event)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise Conflict("Selection conflicted with a concurrent selection; retry")

    session.refresh(selection)
    session.refresh(match)
    if current_phase is not None:
        session.refresh(current_phase)
    match_events.broadcast(event)

    return SelectionResult(
        selection=selection,
        current_phase=current_phase,
        time_remaining=(current_phase.time_remaining or 0) if current_phase else 0,
        phase_complete=phase_complete,
        match_status=match.status,
    )


def skip_phase(
    session: Session, match_id: int, phase_id: int, access: MatchAccess, now: Optional[datetime] = None
) -> SelectionResult:
    """Close an active optional phase without selections."""
    now = now or datetime.utcnow()
    if not (access.has_participant or access.is_owner):
        raise Forbidden("Not authorized to skip phases for this match")

    match = lock_match(session, match_id)
    phase = get_match_phase(session, match.id, phase_id)
    template = _template_for(session, phase)

    if phase.phase_status != PHASE_ACTIVE:
        raise PhaseNotActive()
    if not template.is_optional:
        raise InvalidState("Only optional phases can be skipped", code="PHASE_NOT_OPTIONAL")

    current_phase = _close_phase_and_advance(session, match, phase, now, skipped=True)
    event = match_events.MatchUpdateEvent(
        match_id=match.id,
        update_type=match_events.PHASE_SKIPPED,
        data={"phase_id": phase.id, "next_phase_id": current_phase.id if current_phase else None},
        participant_id=access.participant_id,
    )
    match_events.emit(session, event)
    session.commit()
    session.refresh(match)
    if current_phase is not None:
        session.refresh(current_phase)
    match_events.broadcast(event)

    return SelectionResult(
        selection=None,
        current_phase=current_phase,
        time_remaining=(current_phase.time_remaining or 0) if current_phase else 0,
        phase_complete=True,
        match_status=match.status,
    )
