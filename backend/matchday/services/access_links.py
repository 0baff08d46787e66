"""
Participant access links: opaque bearer tokens scoped to (match, participant).

Regeneration deactivates every earlier link of the match first, so at most
one current link per participant survives.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlmodel import Session, select

from matchday.models.match import Match
from matchday.models.match_privilege import MatchParticipantPrivilege
from matchday.models.tournament import TOURNAMENT_IN_PROGRESS, Tournament
from matchday.services.errors import InvalidInput, InvalidState
from matchday.settings import ACCESS_LINK_TTL_DAYS, APP_BASE_URL

logger = logging.getLogger(__name__)


@dataclass
class AccessLink:
    match_id: int
    participant_id: int
    access_token: str
    access_url: str
    expires_at: datetime
    last_used_at: Optional[datetime] = None
    last_email_sent_at: Optional[datetime] = None


def new_access_token() -> str:
    """Cryptographically random, URL-safe token."""
    return secrets.token_urlsafe(32)


def build_access_url(match_id: int, access_token: str) -> str:
    return f"{APP_BASE_URL}/match/{match_id}?token={access_token}"


def to_access_link(privilege: MatchParticipantPrivilege) -> AccessLink:
    return AccessLink(
        match_id=privilege.match_id,
        participant_id=privilege.participant_id,
        access_token=privilege.access_token,
        access_url=build_access_url(privilege.match_id, privilege.access_token),
        expires_at=privilege.expires_at,
        last_used_at=privilege.last_used_at,
        last_email_sent_at=privilege.last_email_sent_at,
    )


def find_participant_privilege(
    session: Session, match_id: int, participant_id: int, now: Optional[datetime] = None
) -> Optional[MatchParticipantPrivilege]:
    """Newest active, non-expired privilege for the participant, else None."""
    now = now or datetime.utcnow()
    return session.exec(
        select(MatchParticipantPrivilege)
        .where(
            MatchParticipantPrivilege.match_id == match_id,
            MatchParticipantPrivilege.participant_id == participant_id,
            MatchParticipantPrivilege.is_active == True,  # noqa: E712
            MatchParticipantPrivilege.expires_at >= now,
        )
        .order_by(MatchParticipantPrivilege.id.desc())
    ).first()


def list_current_privileges(
    session: Session, match_id: int, now: Optional[datetime] = None
) -> List[MatchParticipantPrivilege]:
    now = now or datetime.utcnow()
    return list(
        session.exec(
            select(MatchParticipantPrivilege)
            .where(
                MatchParticipantPrivilege.match_id == match_id,
                MatchParticipantPrivilege.is_active == True,  # noqa: E712
                MatchParticipantPrivilege.expires_at >= now,
            )
            .order_by(MatchParticipantPrivilege.participant_id)
        ).all()
    )


def _issue_privilege(session: Session, match_id: int, participant_id: int, now: datetime) -> MatchParticipantPrivilege:
    privilege = MatchParticipantPrivilege(
        match_id=match_id,
        participant_id=participant_id,
        access_token=new_access_token(),
        expires_at=now + timedelta(days=ACCESS_LINK_TTL_DAYS),
        is_active=True,
        created_at=now,
    )
    session.add(privilege)
    return privilege


def _deactivate_match_privileges(session: Session, match_ids: List[int]) -> int:
    if not match_ids:
        return 0
    active = session.exec(
        select(MatchParticipantPrivilege).where(
            MatchParticipantPrivilege.match_id.in_(match_ids),
            MatchParticipantPrivilege.is_active == True,  # noqa: E712
        )
    ).all()
    for privilege in active:
        privilege.is_active = False
        session.add(privilege)
    return len(active)


def ensure_access_tokens(
    session: Session, match: Match, now: Optional[datetime] = None
) -> List[MatchParticipantPrivilege]:
    """Issue a link for each filled slot lacking a current one. Does not commit."""
    now = now or datetime.utcnow()
    created = []
    for participant_id in match.participant_ids():
        if find_participant_privilege(session, match.id, participant_id, now) is None:
            created.append(_issue_privilege(session, match.id, participant_id, now))
    return created


def generate_access_links(session: Session, match: Match, now: Optional[datetime] = None) -> List[AccessLink]:
    """Deactivate all links of the match and issue fresh ones for each filled slot."""
    now = now or datetime.utcnow()
    participant_ids = match.participant_ids()
    if not participant_ids:
        raise InvalidInput("No participants found to generate links for")

    deactivated = _deactivate_match_privileges(session, [match.id])
    privileges = [_issue_privilege(session, match.id, pid, now) for pid in participant_ids]
    session.commit()
    for privilege in privileges:
        session.refresh(privilege)

    logger.info(f"Generated {len(privileges)} access links for match {match.id} (deactivated {deactivated})")
    return [to_access_link(p) for p in privileges]


def generate_tournament_access_links(
    session: Session, tournament: Tournament, now: Optional[datetime] = None
) -> Dict[int, List[AccessLink]]:
    """Regenerate links for every match of a running tournament, grouped by match id."""
    now = now or datetime.utcnow()
    if tournament.status != TOURNAMENT_IN_PROGRESS:
        raise InvalidState("Match links can only be generated for tournaments in progress")

    matches = session.exec(
        select(Match).where(Match.tournament_id == tournament.id).order_by(Match.round, Match.match_number)
    ).all()
    targets = [(m.id, pid) for m in matches for pid in m.participant_ids()]
    if not targets:
        raise InvalidInput("No participants found to generate links for")

    _deactivate_match_privileges(session, [m.id for m in matches])
    privileges = [_issue_privilege(session, match_id, pid, now) for match_id, pid in targets]
    session.commit()

    links_by_match: Dict[int, List[AccessLink]] = {}
    for privilege in privileges:
        session.refresh(privilege)
        links_by_match.setdefault(privilege.match_id, []).append(to_access_link(privilege))

    logger.info(f"Generated {len(privileges)} access links across {len(links_by_match)} matches of tournament {tournament.id}")
    return links_by_match
