"""Tournament records and advancement repair."""
from fastapi.testclient import TestClient
from sqlmodel import Session

from matchday.models.match import MATCH_COMPLETED, Match
from matchday.services.advancement_service import apply_advancement, resolve_all_dependencies
from tests.helpers import owner_headers, user_headers


def test_create_tournament_with_participants_and_matches(client: TestClient):
    created = client.post("/api/tournaments", json={"name": "Summer Open", "is_public": True}, headers=owner_headers())
    assert created.status_code == 200
    tournament = created.json()["tournament"]
    assert tournament["status"] == "draft"
    assert tournament["creator_id"] == "owner-1"
    tid = tournament["id"]

    a = client.post(f"/api/tournaments/{tid}/participants", json={"participant_name": "A"}, headers=owner_headers())
    b = client.post(f"/api/tournaments/{tid}/participants", json={"participant_name": "B"}, headers=owner_headers())
    a_id, b_id = a.json()["participant"]["id"], b.json()["participant"]["id"]

    semi = client.post(
        f"/api/tournaments/{tid}/matches",
        json={"round": 1, "match_number": 1, "participant1_id": a_id, "participant2_id": b_id},
        headers=owner_headers(),
    )
    assert semi.status_code == 200
    final = client.post(
        f"/api/tournaments/{tid}/matches",
        json={"round": 2, "match_number": 1, "source_match1_id": semi.json()["match"]["id"]},
        headers=owner_headers(),
    )
    assert final.json()["match"]["source_match1_id"] == semi.json()["match"]["id"]

    detail = client.get(f"/api/tournaments/{tid}").json()
    assert [p["participant_name"] for p in detail["participants"]] == ["A", "B"]
    assert len(detail["matches"]) == 2


def test_create_tournament_requires_session(client: TestClient):
    response = client.post("/api/tournaments", json={"name": "Nope"})
    assert response.status_code == 401


def test_private_tournament_detail_is_owner_only(client: TestClient, arena):
    tid = arena["tournament"].id
    assert client.get(f"/api/tournaments/{tid}").status_code == 403
    assert client.get(f"/api/tournaments/{tid}", headers=owner_headers()).status_code == 200


def test_match_rejects_foreign_participant(client: TestClient, arena):
    other = client.post("/api/tournaments", json={"name": "Other"}, headers=owner_headers()).json()["tournament"]
    response = client.post(
        f"/api/tournaments/{other['id']}/matches",
        json={"participant1_id": arena["p1"].id},
        headers=owner_headers(),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidInput"


def test_status_change_owner_only(client: TestClient, arena):
    tid = arena["tournament"].id
    denied = client.patch(f"/api/tournaments/{tid}/status", json={"status": "completed"}, headers=user_headers("x"))
    assert denied.status_code == 403
    bad = client.patch(f"/api/tournaments/{tid}/status", json={"status": "paused"}, headers=owner_headers())
    assert bad.status_code == 400
    ok = client.patch(f"/api/tournaments/{tid}/status", json={"status": "completed"}, headers=owner_headers())
    assert ok.json()["tournament"]["status"] == "completed"


def test_tournament_access_links_route(client: TestClient, arena):
    response = client.post(f"/api/tournaments/{arena['tournament'].id}/access-links", headers=owner_headers())
    assert response.status_code == 200
    assert response.json()["total_links"] == 2


def _completed_feeder(session: Session, arena) -> Match:
    match = arena["match"]
    match.status = MATCH_COMPLETED
    match.winner_id = arena["p2"].id
    session.add(match)
    session.commit()
    session.refresh(match)
    return match


def test_apply_advancement_is_idempotent_and_keeps_filled_slots(session: Session, arena):
    feeder = _completed_feeder(session, arena)
    downstream = Match(tournament_id=feeder.tournament_id, round=2, source_match1_id=feeder.id)
    occupied = Match(
        tournament_id=feeder.tournament_id, round=2, match_number=2,
        source_match2_id=feeder.id, participant2_id=arena["p1"].id,
    )
    session.add(downstream)
    session.add(occupied)
    session.commit()

    assert apply_advancement(session, feeder) == 1
    session.commit()
    assert apply_advancement(session, feeder) == 0

    session.refresh(downstream)
    session.refresh(occupied)
    assert downstream.participant1_id == arena["p2"].id
    assert occupied.participant2_id == arena["p1"].id


def test_advancement_skips_unfinished_matches(session: Session, arena):
    match = arena["match"]
    match.winner_id = arena["p1"].id
    session.add(Match(tournament_id=match.tournament_id, round=2, source_match1_id=match.id))
    session.commit()

    assert apply_advancement(session, match) == 0


def test_resolve_all_dependencies(session: Session, arena):
    feeder = _completed_feeder(session, arena)
    downstream = Match(tournament_id=feeder.tournament_id, round=2, source_match2_id=feeder.id)
    session.add(downstream)
    session.commit()

    result = resolve_all_dependencies(session, feeder.tournament_id)

    session.refresh(downstream)
    assert result == {"matches_processed": 1, "slots_filled": 1}
    assert downstream.participant2_id == arena["p2"].id


def test_resolve_advancement_route(client: TestClient, session: Session, arena):
    _completed_feeder(session, arena)
    response = client.post(f"/api/tournaments/{arena['tournament'].id}/resolve-advancement", headers=owner_headers())
    assert response.status_code == 200
    assert response.json() == {"success": True, "matches_processed": 1, "slots_filled": 0}
