"""Who is acting on a match: token, session identity, owner, spectator."""
from datetime import datetime, timedelta

import pytest
from sqlmodel import Session

from matchday.models.match_privilege import MatchParticipantPrivilege
from matchday.services.access_links import generate_access_links
from matchday.services.access_resolver import MatchAccess, resolve_match_access
from matchday.services.errors import Forbidden, Unauthorized
from tests.helpers import OWNER_ID, USER1_ID


def _privilege(session: Session, match, participant, token: str, expires_in=timedelta(days=1), is_active=True):
    privilege = MatchParticipantPrivilege(
        match_id=match.id,
        participant_id=participant.id,
        access_token=token,
        expires_at=datetime.utcnow() + expires_in,
        is_active=is_active,
    )
    session.add(privilege)
    session.commit()
    session.refresh(privilege)
    return privilege


def test_valid_token_binds_participant_and_touches_last_used(session: Session, arena):
    match, p2 = arena["match"], arena["p2"]
    privilege = _privilege(session, match, p2, "tok-p2")

    access = resolve_match_access(session, match, access_token="tok-p2")

    assert access.participant_id == p2.id
    assert access.via_token is True
    assert access.privilege_id == privilege.id
    assert access.can_start is True
    session.refresh(privilege)
    assert privilege.last_used_at is not None


def test_expired_token_grants_nothing(session: Session, arena):
    match, p1 = arena["match"], arena["p1"]
    _privilege(session, match, p1, "tok-old", expires_in=timedelta(seconds=-1))

    access = resolve_match_access(session, match, access_token="tok-old")

    assert access.participant_id is None
    assert access.via_token is False
    assert access.can_view is False


def test_deactivated_token_grants_nothing(session: Session, arena):
    match, p1 = arena["match"], arena["p1"]
    _privilege(session, match, p1, "tok-off", is_active=False)

    access = resolve_match_access(session, match, access_token="tok-off")

    assert access.has_participant is False


def test_regenerated_links_invalidate_old_token(session: Session, arena):
    match = arena["match"]
    first = generate_access_links(session, match)
    old_token = first[0].access_token
    generate_access_links(session, match)

    access = resolve_match_access(session, match, access_token=old_token)

    assert access.has_participant is False


def test_token_for_another_match_is_ignored(session: Session, arena):
    from matchday.models.match import Match

    other = Match(tournament_id=arena["tournament"].id, round=1, match_number=2, participant1_id=arena["p1"].id)
    session.add(other)
    session.commit()
    session.refresh(other)
    _privilege(session, other, arena["p1"], "tok-other")

    access = resolve_match_access(session, arena["match"], access_token="tok-other")

    assert access.has_participant is False


def test_session_user_bound_to_their_slot(session: Session, arena):
    access = resolve_match_access(session, arena["match"], user_id=USER1_ID)

    assert access.participant_id == arena["p1"].id
    assert access.via_token is False
    assert access.is_owner is False
    # A session-bound participant views and plays but cannot start the match
    assert access.can_start is False


def test_owner_keeps_owner_capability_with_a_participant_token(session: Session, arena):
    match, p1 = arena["match"], arena["p1"]
    _privilege(session, match, p1, "tok-p1")

    access = resolve_match_access(session, match, user_id=OWNER_ID, access_token="tok-p1")

    assert access.is_owner is True
    assert access.participant_id == p1.id


def test_public_tournament_makes_anonymous_a_spectator(session: Session, arena):
    tournament = arena["tournament"]
    tournament.is_public = True
    session.add(tournament)
    session.commit()

    access = resolve_match_access(session, arena["match"])

    assert access.is_spectator is True
    assert access.can_view is True
    assert access.has_participant is False


def test_private_tournament_anonymous_has_no_access(session: Session, arena):
    access = resolve_match_access(session, arena["match"], user_id="stranger")

    assert access.can_view is False
    assert access.is_spectator is False


def test_require_owner_distinguishes_anonymous_from_other_users():
    with pytest.raises(Unauthorized):
        MatchAccess(match_id=1).require_owner()
    with pytest.raises(Forbidden):
        MatchAccess(match_id=1, user_id="someone").require_owner()
    MatchAccess(match_id=1, user_id=OWNER_ID, is_owner=True).require_owner()


def test_require_participant_raises_forbidden_without_binding():
    with pytest.raises(Forbidden, match="no link"):
        MatchAccess(match_id=1, is_spectator=True).require_participant("no link")
    assert MatchAccess(match_id=1, participant_id=7).require_participant() == 7
