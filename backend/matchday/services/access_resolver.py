"""
Access Resolver: decide who is acting on a match and what they may do.

Resolution order:
  1. Bearer access token -> active, non-expired privilege for this match binds
     the caller to that participant (``last_used_at`` is touched best-effort).
  2. Session identity -> bound to a participant slot whose ``user_id`` matches.
  3. Public tournament -> spectator (read-only).
  4. Nothing -> no access; callers raise Forbidden/Unauthorized.

Owner capability is derived from the session identity alone, so an owner who
also holds a participant link keeps both. This departs from strict first-match
resolution on purpose. An expired or deactivated token is treated as if no
token had been sent.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from matchday.models.match import Match
from matchday.models.match_privilege import MatchParticipantPrivilege
from matchday.models.participant import Participant
from matchday.models.tournament import Tournament
from matchday.services.errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)


@dataclass
class MatchAccess:
    match_id: int
    user_id: Optional[str] = None
    participant_id: Optional[int] = None
    is_owner: bool = False
    is_spectator: bool = False
    via_token: bool = False
    privilege_id: Optional[int] = None

    @property
    def has_participant(self) -> bool:
        return self.participant_id is not None

    @property
    def can_view(self) -> bool:
        return self.has_participant or self.is_owner or self.is_spectator

    @property
    def can_start(self) -> bool:
        return self.is_owner or (self.via_token and self.has_participant)

    def require_participant(self, message: str = "Not a participant in this match") -> int:
        if self.participant_id is None:
            raise Forbidden(message)
        return self.participant_id

    def require_owner(self, message: str = "Only the tournament creator can do this") -> None:
        if self.user_id is None:
            raise Unauthorized("Authentication required")
        if not self.is_owner:
            raise Forbidden(message)


def find_current_privilege(
    session: Session, match_id: int, access_token: str, now: Optional[datetime] = None
) -> Optional[MatchParticipantPrivilege]:
    """Active, non-expired privilege for (match, token), else None."""
    now = now or datetime.utcnow()
    return session.exec(
        select(MatchParticipantPrivilege).where(
            MatchParticipantPrivilege.match_id == match_id,
            MatchParticipantPrivilege.access_token == access_token,
            MatchParticipantPrivilege.is_active == True,  # noqa: E712
            MatchParticipantPrivilege.expires_at >= now,
        )
    ).first()


def _touch_privilege(session: Session, privilege: MatchParticipantPrivilege, now: datetime) -> None:
    try:
        privilege.last_used_at = now
        session.add(privilege)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning(f"Failed to touch last_used_at for privilege {privilege.id}: {e}")


def resolve_match_access(
    session: Session,
    match: Match,
    user_id: Optional[str] = None,
    access_token: Optional[str] = None,
    now: Optional[datetime] = None,
) -> MatchAccess:
    now = now or datetime.utcnow()
    match_id = match.id
    tournament = session.get(Tournament, match.tournament_id)
    access = MatchAccess(match_id=match_id, user_id=user_id)

    if user_id is not None and tournament is not None and tournament.creator_id == user_id:
        access.is_owner = True

    if access_token:
        privilege = find_current_privilege(session, match_id, access_token, now)
        if privilege is not None and match.slot_of(privilege.participant_id) is not None:
            access.participant_id = privilege.participant_id
            access.via_token = True
            access.privilege_id = privilege.id
            _touch_privilege(session, privilege, now)
            return access
        logger.info(f"Ignoring invalid or expired access token for match {match_id}")

    if user_id is not None:
        for participant_id in match.participant_ids():
            participant = session.get(Participant, participant_id)
            if participant is not None and participant.user_id == user_id:
                access.participant_id = participant_id
                break

    if not access.has_participant and not access.is_owner:
        access.is_spectator = bool(tournament is not None and tournament.is_public)

    return access
