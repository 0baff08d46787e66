"""
Match lifecycle glue: ready-check and the read model of a match.

    pending -> in_progress -> (phases) -> ready_for_score -> (scores) -> completed

Ready flags are informational; they never start the match on their own.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlmodel import Session, select

from matchday.models.match import MATCH_PENDING, Match
from matchday.models.match_event import MatchReadyEvent
from matchday.models.match_phase import PHASE_ACTIVE, MatchPhase
from matchday.models.participant import Participant
from matchday.models.phase_selection import PhaseSelection
from matchday.models.score_submission import ScoreSubmission
from matchday.models.tournament import Tournament
from matchday.models.tournament_phase import TournamentPhase
from matchday.services import match_events
from matchday.services.access_resolver import MatchAccess
from matchday.services.errors import Forbidden, MatchAlreadyStarted
from matchday.services.match_store import list_match_phases, lock_match

logger = logging.getLogger(__name__)


def set_ready(session: Session, match_id: int, access: MatchAccess, ready: bool) -> Match:
    """Set the acting participant's ready flag on a pending match."""
    match = lock_match(session, match_id)
    if match.status != MATCH_PENDING:
        raise MatchAlreadyStarted("Match has already started or completed")
    participant_id = access.require_participant("Not authorized to mark ready for this match")

    slot = match.slot_of(participant_id)
    if slot == 1:
        match.participant1_ready = ready
    elif slot == 2:
        match.participant2_ready = ready
    else:
        raise Forbidden("Invalid participant for this match")
    session.add(match)

    session.add(
        MatchReadyEvent(
            match_id=match.id,
            participant_id=participant_id,
            event_type="ready" if ready else "unready",
            created_by=access.user_id,
        )
    )
    event = match_events.MatchUpdateEvent(
        match_id=match.id,
        update_type=match_events.READY_CHANGED,
        data={
            "participant_id": participant_id,
            "ready": ready,
            "participant1_ready": match.participant1_ready,
            "participant2_ready": match.participant2_ready,
        },
        participant_id=participant_id,
    )
    match_events.emit(session, event)
    session.commit()
    session.refresh(match)
    match_events.broadcast(event)

    logger.info(f"Match {match.id}: participant {participant_id} marked {'ready' if ready else 'not ready'}")
    return match


@dataclass
class PhaseView:
    phase: MatchPhase
    template: Optional[TournamentPhase]
    selections: List[PhaseSelection] = field(default_factory=list)


@dataclass
class MatchSnapshot:
    match: Match
    tournament: Tournament
    participant1: Optional[Participant]
    participant2: Optional[Participant]
    phases: List[PhaseView]
    current_phase: Optional[PhaseView]
    time_remaining: int
    current_submission: Optional[ScoreSubmission]
    access: MatchAccess
    current_participant: Optional[Participant] = None


def match_snapshot(session: Session, match: Match, access: MatchAccess) -> MatchSnapshot:
    """Everything a match page needs, for anyone allowed to view the match."""
    if not access.can_view:
        raise Forbidden("Access denied. You need a participant link or the tournament must be public.")

    tournament = session.get(Tournament, match.tournament_id)
    participant1 = session.get(Participant, match.participant1_id) if match.participant1_id else None
    participant2 = session.get(Participant, match.participant2_id) if match.participant2_id else None

    phases = list_match_phases(session, match.id)
    selections_by_phase: Dict[int, List[PhaseSelection]] = {}
    if phases:
        rows = session.exec(
            select(PhaseSelection)
            .where(PhaseSelection.match_phase_id.in_([p.id for p in phases]))
            .order_by(PhaseSelection.match_phase_id, PhaseSelection.created_at, PhaseSelection.id)
        ).all()
        for row in rows:
            selections_by_phase.setdefault(row.match_phase_id, []).append(row)

    views = [
        PhaseView(
            phase=p,
            template=session.get(TournamentPhase, p.tournament_phase_id),
            selections=selections_by_phase.get(p.id, []),
        )
        for p in phases
    ]
    current = next((v for v in views if v.phase.phase_status == PHASE_ACTIVE), None)

    current_submission = None
    if match.current_score_submission_id is not None:
        current_submission = session.get(ScoreSubmission, match.current_score_submission_id)

    current_participant = None
    if access.participant_id is not None:
        current_participant = participant1 if access.participant_id == match.participant1_id else participant2

    return MatchSnapshot(
        match=match,
        tournament=tournament,
        participant1=participant1,
        participant2=participant2,
        phases=views,
        current_phase=current,
        time_remaining=(current.phase.time_remaining or 0) if current else 0,
        current_submission=current_submission,
        access=access,
        current_participant=current_participant,
    )
