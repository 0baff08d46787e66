import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

from matchday import settings  # noqa: E402
from matchday.database import get_session  # noqa: E402
from matchday.main import app  # noqa: E402
from matchday.models.match import Match  # noqa: E402
from matchday.models.participant import Participant  # noqa: E402
from matchday.models.tournament import TOURNAMENT_IN_PROGRESS, Tournament  # noqa: E402
from matchday.services import email_service, twilio_service  # noqa: E402
from tests.helpers import OWNER_ID, USER1_ID, USER2_ID  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# sqlite:///:memory: with StaticPool so every session (fixture and app) shares
# one database; check_same_thread=False for TestClient's worker thread.
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Fresh schema per test on the shared in-memory database."""
    import matchday.models  # noqa: F401

    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Test client with the app's session dependency pointed at the test engine."""
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def default_workflow_settings(monkeypatch):
    """Pin workflow switches and force notification dry runs."""
    monkeypatch.setattr(settings, "AUTO_FINALIZE_ON_ACCEPT", False)
    monkeypatch.setattr(settings, "REJECT_STALE_VERIFICATION", False)
    monkeypatch.setattr(settings, "SKIP_DISABLED_PHASES", True)
    monkeypatch.setattr(settings, "SMTP_HOST", None)
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "")
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "")
    monkeypatch.setattr(settings, "TWILIO_FROM_NUMBER", "")
    monkeypatch.setattr(email_service, "_email_service", None)
    monkeypatch.setattr(twilio_service, "_twilio_service", None)


@pytest.fixture
def arena(session: Session):
    """Tournament in progress with two participants and one pending match, no phases."""
    tournament = Tournament(name="Spring Cup", creator_id=OWNER_ID, game="Arena", status=TOURNAMENT_IN_PROGRESS)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)

    p1 = Participant(
        tournament_id=tournament.id,
        participant_name="Alpha",
        user_id=USER1_ID,
        email="alpha@example.com",
        phone="(555) 123-4567",
        seed=1,
    )
    p2 = Participant(tournament_id=tournament.id, participant_name="Bravo", user_id=USER2_ID, seed=2)
    session.add(p1)
    session.add(p2)
    session.commit()
    session.refresh(p1)
    session.refresh(p2)

    match = Match(
        tournament_id=tournament.id,
        round=1,
        match_number=1,
        participant1_id=p1.id,
        participant2_id=p2.id,
    )
    session.add(match)
    session.commit()
    session.refresh(match)

    return {"tournament": tournament, "p1": p1, "p2": p2, "match": match}
