"""Request-scoped identity: session user, participant access token, match access."""
from typing import Optional

from fastapi import Depends, Header, Query, Request
from sqlmodel import Session

from matchday.database import get_session
from matchday.models.tournament import Tournament
from matchday.services.access_resolver import MatchAccess, resolve_match_access
from matchday.services.auth_service import resolve_session_user
from matchday.services.errors import Forbidden, Unauthorized
from matchday.services.match_store import get_match, get_tournament


def get_session_user(x_session_token: Optional[str] = Header(default=None)) -> Optional[str]:
    """User id from the ``X-Session-Token`` header; invalid tokens count as anonymous."""
    return resolve_session_user(x_session_token)


def require_session_user(user_id: Optional[str] = Depends(get_session_user)) -> str:
    if user_id is None:
        raise Unauthorized("Authentication required")
    return user_id


def get_access_token(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    token: Optional[str] = Query(default=None),
) -> Optional[str]:
    """Participant token from ``Authorization: Bearer``, or ``?token=`` on GET."""
    if authorization and authorization.lower().startswith("bearer "):
        value = authorization[7:].strip()
        if value:
            return value
    if request.method == "GET" and token:
        return token
    return None


def get_match_access(
    match_id: int,
    session: Session = Depends(get_session),
    user_id: Optional[str] = Depends(get_session_user),
    access_token: Optional[str] = Depends(get_access_token),
) -> MatchAccess:
    match = get_match(session, match_id)
    return resolve_match_access(session, match, user_id=user_id, access_token=access_token)


def get_owned_tournament(
    tournament_id: int,
    session: Session = Depends(get_session),
    user_id: str = Depends(require_session_user),
) -> Tournament:
    """The tournament, if the session user created it."""
    tournament = get_tournament(session, tournament_id)
    if tournament.creator_id != user_id:
        raise Forbidden("Only the tournament creator can do this")
    return tournament
