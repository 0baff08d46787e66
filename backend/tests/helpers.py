"""Shared builders and request headers for the test modules."""
from sqlmodel import Session

from matchday.models.tournament import Tournament
from matchday.models.tournament_phase import TournamentPhase
from matchday.services.access_resolver import MatchAccess, resolve_match_access
from matchday.services.auth_service import create_session_token

OWNER_ID = "owner-1"
USER1_ID = "user-1"
USER2_ID = "user-2"


def owner_headers() -> dict:
    return {"X-Session-Token": create_session_token(OWNER_ID)}


def user_headers(user_id: str) -> dict:
    return {"X-Session-Token": create_session_token(user_id)}


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def add_phase(session: Session, tournament: Tournament, order: int, **overrides) -> TournamentPhase:
    values = dict(
        tournament_id=tournament.id,
        phase_name=f"Phase {order}",
        phase_type="ban",
        phase_order=order,
        turn_based=True,
        max_selections=1,
        time_limit_seconds=30,
    )
    values.update(overrides)
    phase = TournamentPhase(**values)
    session.add(phase)
    session.commit()
    session.refresh(phase)
    return phase


def owner_access(session: Session, match) -> MatchAccess:
    return resolve_match_access(session, match, user_id=OWNER_ID)


def token_access(participant_id: int, match) -> MatchAccess:
    """Participant bound through an access link."""
    return MatchAccess(match_id=match.id, participant_id=participant_id, via_token=True)
