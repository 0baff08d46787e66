"""Score submission, verification, creator finalization and advancement."""
import pytest
from sqlmodel import Session, select

from matchday import settings
from matchday.models.match import (
    MATCH_COMPLETED,
    MATCH_PENDING,
    MATCH_READY_FOR_SCORE,
    SCORE_DISPUTED,
    SCORE_FINALIZED,
    SCORE_PENDING_VERIFICATION,
    Match,
)
from matchday.models.score_submission import (
    SUBMISSION_ACCEPTED,
    SUBMISSION_COUNTER,
    SUBMISSION_GAME_RESULT,
    SUBMISSION_INITIAL,
    SUBMISSION_PENDING,
    SUBMISSION_SUPERSEDED,
    ScoreSubmission,
)
from matchday.models.score_verification_action import ScoreVerificationAction
from matchday.services.access_resolver import MatchAccess
from matchday.services.errors import Conflict, Forbidden, InvalidInput, InvalidState, MatchNotInProgress
from matchday.services.score_protocol import list_submissions, submit_score, verify_score
from tests.helpers import owner_access, token_access


@pytest.fixture
def scoring(session: Session, arena):
    """Arena match with its phases done and waiting for a score."""
    match = arena["match"]
    match.status = MATCH_READY_FOR_SCORE
    session.add(match)
    session.commit()
    session.refresh(match)
    return arena


def _submissions(session: Session, match_id: int):
    return session.exec(
        select(ScoreSubmission).where(ScoreSubmission.match_id == match_id).order_by(ScoreSubmission.id)
    ).all()


def test_submit_sets_current_pending_submission(session: Session, scoring):
    match, p1 = scoring["match"], scoring["p1"]

    submission = submit_score(session, match.id, token_access(p1.id, match), 2, 1, notes="gg")

    session.refresh(match)
    assert submission.status == SUBMISSION_PENDING
    assert submission.submission_type == SUBMISSION_INITIAL
    assert submission.submitted_by == p1.id
    assert match.current_score_submission_id == submission.id
    assert match.score_submission_status == SCORE_PENDING_VERIFICATION


def test_submit_with_game_details_is_a_game_result(session: Session, scoring):
    match, p1 = scoring["match"], scoring["p1"]

    submission = submit_score(
        session, match.id, token_access(p1.id, match), 1, 0, game_number=1, game_scores=[{"p1": 13, "p2": 9}]
    )

    assert submission.submission_type == SUBMISSION_GAME_RESULT
    assert submission.game_scores == [{"p1": 13, "p2": 9}]


def test_resubmission_supersedes_previous(session: Session, scoring):
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    first = submit_score(session, match.id, token_access(p1.id, match), 2, 1)
    second = submit_score(session, match.id, token_access(p2.id, match), 1, 2)

    session.refresh(first)
    session.refresh(match)
    assert first.status == SUBMISSION_SUPERSEDED
    assert match.current_score_submission_id == second.id


def test_submit_on_pending_match_creates_nothing(session: Session, arena):
    match, p1 = arena["match"], arena["p1"]
    assert match.status == MATCH_PENDING

    with pytest.raises(MatchNotInProgress):
        submit_score(session, match.id, token_access(p1.id, match), 2, 1)
    assert _submissions(session, match.id) == []


def test_submit_rejects_negative_and_non_integer_scores(session: Session, scoring):
    match, p1 = scoring["match"], scoring["p1"]

    with pytest.raises(InvalidInput):
        submit_score(session, match.id, token_access(p1.id, match), -1, 2)
    with pytest.raises(InvalidInput):
        submit_score(session, match.id, token_access(p1.id, match), "two", 2)
    assert _submissions(session, match.id) == []


def test_submit_requires_participant(session: Session, scoring):
    match = scoring["match"]

    with pytest.raises(Forbidden):
        submit_score(session, match.id, owner_access(session, match), 2, 1)


def test_accept_is_recorded_without_finalizing(session: Session, scoring):
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    submission = submit_score(session, match.id, token_access(p1.id, match), 2, 1)

    result = verify_score(session, match.id, submission.id, token_access(p2.id, match), "accept")

    session.refresh(match)
    assert result.finalized is False
    assert result.action.action_type == "accept"
    assert result.action.participant_id == p2.id
    assert match.status == MATCH_READY_FOR_SCORE
    assert match.score_submission_status == SCORE_PENDING_VERIFICATION


def test_accept_finalizes_when_enabled(session: Session, scoring, monkeypatch):
    monkeypatch.setattr(settings, "AUTO_FINALIZE_ON_ACCEPT", True)
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    submission = submit_score(session, match.id, token_access(p1.id, match), 2, 1)

    own = verify_score(session, match.id, submission.id, token_access(p1.id, match), "accept")
    assert own.finalized is False

    result = verify_score(session, match.id, submission.id, token_access(p2.id, match), "accept")

    session.refresh(match)
    assert result.finalized is True
    assert match.status == MATCH_COMPLETED
    assert match.winner_id == p1.id


def test_counter_propose_creates_current_counter_submission(session: Session, scoring):
    """Participant 1 reports 2-1, participant 2 counters with 1-2."""
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    original = submit_score(session, match.id, token_access(p1.id, match), 2, 1)

    result = verify_score(
        session, match.id, original.id, token_access(p2.id, match), "counter_propose",
        participant1_score=1, participant2_score=2,
    )

    session.refresh(match)
    session.refresh(original)
    counter = result.counter_submission
    assert counter.submission_type == SUBMISSION_COUNTER
    assert counter.submitted_by == p2.id
    assert (counter.participant1_score, counter.participant2_score) == (1, 2)
    assert match.current_score_submission_id == counter.id
    assert match.score_submission_status == SCORE_DISPUTED
    assert original.status == SUBMISSION_SUPERSEDED
    assert result.action.action_type == "dispute"


def test_plain_dispute_creates_no_submission(session: Session, scoring):
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    original = submit_score(session, match.id, token_access(p1.id, match), 2, 1)

    result = verify_score(session, match.id, original.id, token_access(p2.id, match), "dispute", notes="wrong")

    session.refresh(match)
    assert result.counter_submission is None
    assert len(_submissions(session, match.id)) == 1
    assert match.current_score_submission_id == original.id
    assert match.score_submission_status == SCORE_DISPUTED


def test_counter_propose_with_bad_score_records_nothing(session: Session, scoring):
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    original = submit_score(session, match.id, token_access(p1.id, match), 2, 1)

    with pytest.raises(InvalidInput):
        verify_score(
            session, match.id, original.id, token_access(p2.id, match), "counter_propose",
            participant1_score=-3, participant2_score=2,
        )
    session.rollback()
    assert session.exec(select(ScoreVerificationAction)).all() == []


def test_creator_finalize_without_participant_binding(session: Session, scoring):
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    original = submit_score(session, match.id, token_access(p1.id, match), 2, 1)
    counter = verify_score(
        session, match.id, original.id, token_access(p2.id, match), "counter_propose",
        participant1_score=1, participant2_score=2,
    ).counter_submission

    result = verify_score(session, match.id, counter.id, owner_access(session, match), "creator_finalize")

    session.refresh(match)
    session.refresh(counter)
    session.refresh(original)
    assert result.finalized is True
    assert result.action.participant_id is None
    assert result.action.action_type == "creator_finalize"
    assert match.status == MATCH_COMPLETED
    assert match.score_submission_status == SCORE_FINALIZED
    assert match.winner_id == p2.id
    assert (match.participant1_score, match.participant2_score) == (1, 2)
    assert match.completed_at is not None
    assert counter.status == SUBMISSION_ACCEPTED
    assert original.status == SUBMISSION_SUPERSEDED


def test_tie_leaves_no_winner(session: Session, scoring):
    match, p1 = scoring["match"], scoring["p1"]
    submission = submit_score(session, match.id, token_access(p1.id, match), 1, 1)

    verify_score(session, match.id, submission.id, owner_access(session, match), "creator_finalize")

    session.refresh(match)
    assert match.status == MATCH_COMPLETED
    assert match.winner_id is None


def test_participant_cannot_creator_finalize(session: Session, scoring):
    match, p1 = scoring["match"], scoring["p1"]
    submission = submit_score(session, match.id, token_access(p1.id, match), 2, 1)

    with pytest.raises(Forbidden):
        verify_score(session, match.id, submission.id, token_access(p1.id, match), "creator_finalize")


def test_unknown_action_is_invalid(session: Session, scoring):
    match, p1 = scoring["match"], scoring["p1"]
    submission = submit_score(session, match.id, token_access(p1.id, match), 2, 1)

    with pytest.raises(InvalidInput):
        verify_score(session, match.id, submission.id, token_access(p1.id, match), "approve")


def test_verify_requires_participant_or_owner(session: Session, scoring):
    match, p1 = scoring["match"], scoring["p1"]
    submission = submit_score(session, match.id, token_access(p1.id, match), 2, 1)

    with pytest.raises(Forbidden):
        verify_score(session, match.id, submission.id, MatchAccess(match_id=match.id, is_spectator=True), "accept")


def test_dispute_after_completion_is_invalid_state(session: Session, scoring):
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    submission = submit_score(session, match.id, token_access(p1.id, match), 2, 1)
    verify_score(session, match.id, submission.id, owner_access(session, match), "creator_finalize")

    with pytest.raises(InvalidState):
        verify_score(session, match.id, submission.id, token_access(p2.id, match), "dispute")


def test_stale_verification_allowed_by_default(session: Session, scoring):
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    first = submit_score(session, match.id, token_access(p1.id, match), 2, 1)
    submit_score(session, match.id, token_access(p1.id, match), 2, 0)

    result = verify_score(session, match.id, first.id, token_access(p2.id, match), "accept")

    assert result.action.score_submission_id == first.id


def test_stale_verification_rejected_when_enabled(session: Session, scoring, monkeypatch):
    monkeypatch.setattr(settings, "REJECT_STALE_VERIFICATION", True)
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    first = submit_score(session, match.id, token_access(p1.id, match), 2, 1)
    submit_score(session, match.id, token_access(p1.id, match), 2, 0)

    with pytest.raises(Conflict) as exc:
        verify_score(session, match.id, first.id, token_access(p2.id, match), "accept")
    assert exc.value.code == "STALE_SUBMISSION"


def test_finalize_advances_winner_downstream(session: Session, scoring):
    match, p1 = scoring["match"], scoring["p1"]
    final = Match(tournament_id=match.tournament_id, round=2, match_number=1, source_match2_id=match.id)
    session.add(final)
    session.commit()
    session.refresh(final)

    submission = submit_score(session, match.id, token_access(p1.id, match), 3, 0)
    result = verify_score(session, match.id, submission.id, owner_access(session, match), "creator_finalize")

    session.refresh(final)
    assert result.advanced_count == 1
    assert final.participant2_id == p1.id
    assert final.participant1_id is None


def test_history_lists_submissions_with_actions(session: Session, scoring):
    match, p1, p2 = scoring["match"], scoring["p1"], scoring["p2"]
    original = submit_score(session, match.id, token_access(p1.id, match), 2, 1)
    verify_score(
        session, match.id, original.id, token_access(p2.id, match), "counter_propose",
        participant1_score=1, participant2_score=2,
    )

    history = list_submissions(session, match.id)

    assert [item["submission"].submission_type for item in history] == [SUBMISSION_INITIAL, SUBMISSION_COUNTER]
    assert [a.action_type for a in history[0]["actions"]] == ["dispute"]
    assert history[1]["actions"] == []
