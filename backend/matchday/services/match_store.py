"""
Lookups shared by the match services.

``find_*`` helpers return ``None`` when a row is absent; ``get_*`` helpers
raise ``NotFound``. ``lock_match`` re-reads the match row under a write lock
(``SELECT ... FOR UPDATE`` where the dialect supports it) so that the
check-then-write sequence of every mutating operation runs against a
consistent snapshot.
"""
from typing import List, Optional

from sqlmodel import Session, select

from matchday.models.match import Match
from matchday.models.match_phase import PHASE_ACTIVE, MatchPhase
from matchday.models.participant import Participant
from matchday.models.score_submission import ScoreSubmission
from matchday.models.tournament import Tournament
from matchday.services.errors import NotFound


def find_match(session: Session, match_id: int) -> Optional[Match]:
    return session.get(Match, match_id)


def get_match(session: Session, match_id: int) -> Match:
    match = find_match(session, match_id)
    if not match:
        raise NotFound("Match not found")
    return match


def lock_match(session: Session, match_id: int) -> Match:
    match = session.exec(
        select(Match).where(Match.id == match_id).with_for_update().execution_options(populate_existing=True)
    ).first()
    if not match:
        raise NotFound("Match not found")
    return match


def get_tournament(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise NotFound("Tournament not found")
    return tournament


def get_match_phase(session: Session, match_id: int, phase_id: int) -> MatchPhase:
    phase = session.get(MatchPhase, phase_id)
    if not phase or phase.match_id != match_id:
        raise NotFound("Phase not found")
    return phase


def list_match_phases(session: Session, match_id: int) -> List[MatchPhase]:
    return list(
        session.exec(
            select(MatchPhase).where(MatchPhase.match_id == match_id).order_by(MatchPhase.phase_order, MatchPhase.id)
        ).all()
    )


def find_active_phase(session: Session, match_id: int) -> Optional[MatchPhase]:
    return session.exec(
        select(MatchPhase).where(MatchPhase.match_id == match_id, MatchPhase.phase_status == PHASE_ACTIVE)
    ).first()


def get_submission(session: Session, match_id: int, submission_id: int) -> ScoreSubmission:
    submission = session.get(ScoreSubmission, submission_id)
    if not submission or submission.match_id != match_id:
        raise NotFound("Score submission not found")
    return submission


def get_match_participant(session: Session, match: Match, participant_id: int) -> Participant:
    if participant_id not in match.participant_ids():
        raise NotFound("Participant not found in this match")
    participant = session.get(Participant, participant_id)
    if not participant:
        raise NotFound("Participant not found")
    return participant
