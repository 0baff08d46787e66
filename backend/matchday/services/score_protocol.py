"""
Score Resolution Protocol.

One participant submits a score; the counterpart accepts, disputes, or
counter-proposes; the tournament creator can finalize unilaterally.

Score lifecycle on the match (``score_submission_status``):
    pending_verification <-> disputed -> finalized

``accept`` is advisory unless ``AUTO_FINALIZE_ON_ACCEPT`` is on, in which case
an accept of the current submission by the participant who did not submit it
finalizes the match. Verifying a superseded submission is allowed unless
``REJECT_STALE_VERIFICATION`` is on.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from matchday import settings
from matchday.models.match import (
    MATCH_COMPLETED,
    MATCH_IN_PROGRESS,
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
from matchday.models.score_verification_action import (
    ACTION_ACCEPT,
    ACTION_CREATOR_FINALIZE,
    ACTION_DISPUTE,
    ScoreVerificationAction,
)
from matchday.services import match_events
from matchday.services.access_resolver import MatchAccess
from matchday.services.advancement_service import apply_advancement
from matchday.services.errors import Conflict, Forbidden, InvalidInput, InvalidState, MatchNotInProgress
from matchday.services.match_store import get_submission, lock_match

logger = logging.getLogger(__name__)

VERIFY_ACCEPT = "accept"
VERIFY_DISPUTE = "dispute"
VERIFY_COUNTER_PROPOSE = "counter_propose"
VERIFY_CREATOR_FINALIZE = "creator_finalize"

VERIFY_ACTIONS = (VERIFY_ACCEPT, VERIFY_DISPUTE, VERIFY_COUNTER_PROPOSE, VERIFY_CREATOR_FINALIZE)

SCOREABLE_STATUSES = (MATCH_IN_PROGRESS, MATCH_READY_FOR_SCORE)


@dataclass
class VerificationResult:
    action: ScoreVerificationAction
    counter_submission: Optional[ScoreSubmission] = None
    finalized: bool = False
    advanced_count: int = 0


def _validate_score(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise InvalidInput(f"{field_name} must be an integer")
    try:
        score = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field_name} must be an integer")
    if score < 0:
        raise InvalidInput(f"{field_name} must be >= 0")
    return score


def _supersede_current(session: Session, match: Match) -> None:
    if match.current_score_submission_id is None:
        return
    previous = session.get(ScoreSubmission, match.current_score_submission_id)
    if previous is not None and previous.status == SUBMISSION_PENDING:
        previous.status = SUBMISSION_SUPERSEDED
        session.add(previous)


def submit_score(
    session: Session,
    match_id: int,
    access: MatchAccess,
    participant1_score: Any,
    participant2_score: Any,
    notes: Optional[str] = None,
    game_number: Optional[int] = None,
    game_scores: Optional[List[Dict[str, Any]]] = None,
) -> ScoreSubmission:
    """Create a pending submission and make it the match's current one."""
    match = lock_match(session, match_id)
    if match.status not in SCOREABLE_STATUSES:
        raise MatchNotInProgress()
    participant_id = access.require_participant("Not authorized to submit scores for this match")

    score1 = _validate_score(participant1_score, "participant1_score")
    score2 = _validate_score(participant2_score, "participant2_score")
    has_game_meta = game_number is not None or bool(game_scores)

    _supersede_current(session, match)
    submission = ScoreSubmission(
        match_id=match.id,
        submitted_by=participant_id,
        participant1_score=score1,
        participant2_score=score2,
        status=SUBMISSION_PENDING,
        submission_type=SUBMISSION_GAME_RESULT if has_game_meta else SUBMISSION_INITIAL,
        game_number=game_number,
        game_scores=game_scores or None,
        notes=notes or None,
    )
    session.add(submission)
    session.flush()

    match.current_score_submission_id = submission.id
    match.score_submission_status = SCORE_PENDING_VERIFICATION
    session.add(match)

    event = match_events.MatchUpdateEvent(
        match_id=match.id,
        update_type=match_events.SCORE_SUBMITTED,
        data={
            "submission_id": submission.id,
            "participant1_score": score1,
            "participant2_score": score2,
            "submission_type": submission.submission_type,
        },
        participant_id=participant_id,
    )
    match_events.emit(session, event)
    session.commit()
    session.refresh(submission)
    match_events.broadcast(event)

    logger.info(f"Match {match_id}: participant {participant_id} submitted {score1}-{score2} (submission {submission.id})")
    return submission


def finalize_match(session: Session, match: Match, submission: ScoreSubmission, now: Optional[datetime] = None) -> int:
    """
    Close the match on ``submission``: scores copied, winner set, siblings
    superseded, downstream slots filled. Returns the advancement count.
    Does not commit.
    """
    now = now or datetime.utcnow()
    siblings = session.exec(
        select(ScoreSubmission).where(
            ScoreSubmission.match_id == match.id,
            ScoreSubmission.id != submission.id,
            ScoreSubmission.status != SUBMISSION_SUPERSEDED,
        )
    ).all()
    for other in siblings:
        other.status = SUBMISSION_SUPERSEDED
        session.add(other)

    submission.status = SUBMISSION_ACCEPTED
    session.add(submission)

    match.participant1_score = submission.participant1_score
    match.participant2_score = submission.participant2_score
    if submission.participant1_score > submission.participant2_score:
        match.winner_id = match.participant1_id
    elif submission.participant2_score > submission.participant1_score:
        match.winner_id = match.participant2_id
    else:
        match.winner_id = None
    match.current_score_submission_id = submission.id
    match.score_submission_status = SCORE_FINALIZED
    match.status = MATCH_COMPLETED
    match.completed_at = now
    session.add(match)
    session.flush()

    advanced = apply_advancement(session, match)
    logger.info(
        f"Match {match.id} finalized on submission {submission.id}: "
        f"{match.participant1_score}-{match.participant2_score}, winner={match.winner_id}, advanced={advanced}"
    )
    return advanced


def verify_score(
    session: Session,
    match_id: int,
    submission_id: int,
    access: MatchAccess,
    action_type: str,
    participant1_score: Any = None,
    participant2_score: Any = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> VerificationResult:
    """Apply accept / dispute / counter_propose / creator_finalize to a submission."""
    now = now or datetime.utcnow()
    if not access.has_participant and not access.is_owner:
        raise Forbidden("Not authorized to verify scores for this match")
    if action_type not in VERIFY_ACTIONS:
        raise InvalidInput("Invalid action type")
    if action_type == VERIFY_CREATOR_FINALIZE and not access.is_owner:
        raise Forbidden("Only the tournament creator can finalize scores")

    match = lock_match(session, match_id)
    submission = get_submission(session, match.id, submission_id)
    if settings.REJECT_STALE_VERIFICATION and submission.id != match.current_score_submission_id:
        raise Conflict("Score submission is no longer current", code="STALE_SUBMISSION")

    result: VerificationResult
    if action_type == VERIFY_ACCEPT:
        action = _record_action(session, match, submission, access.participant_id, ACTION_ACCEPT, notes, access)
        result = VerificationResult(action=action)
        if (
            settings.AUTO_FINALIZE_ON_ACCEPT
            and match.status != MATCH_COMPLETED
            and access.participant_id is not None
            and access.participant_id != submission.submitted_by
            and submission.id == match.current_score_submission_id
        ):
            result.advanced_count = finalize_match(session, match, submission, now)
            result.finalized = True

    elif action_type in (VERIFY_DISPUTE, VERIFY_COUNTER_PROPOSE):
        if match.status == MATCH_COMPLETED:
            raise InvalidState("Match is already completed")
        is_counter = (
            action_type == VERIFY_COUNTER_PROPOSE
            and participant1_score is not None
            and participant2_score is not None
        )
        if is_counter:
            counter_by = access.require_participant("Only a participant can counter-propose a score")
            score1 = _validate_score(participant1_score, "participant1_score")
            score2 = _validate_score(participant2_score, "participant2_score")

        action = _record_action(session, match, submission, access.participant_id, ACTION_DISPUTE, notes, access)
        result = VerificationResult(action=action)
        if is_counter:
            _supersede_current(session, match)
            counter = ScoreSubmission(
                match_id=match.id,
                submitted_by=counter_by,
                participant1_score=score1,
                participant2_score=score2,
                status=SUBMISSION_PENDING,
                submission_type=SUBMISSION_COUNTER,
                notes=notes or None,
            )
            session.add(counter)
            session.flush()
            match.current_score_submission_id = counter.id
            result.counter_submission = counter
        match.score_submission_status = SCORE_DISPUTED
        session.add(match)

    else:
        if match.status == MATCH_COMPLETED and match.current_score_submission_id != submission.id:
            raise InvalidState("Match is already completed")
        action = _record_action(session, match, submission, None, ACTION_CREATOR_FINALIZE, notes, access)
        result = VerificationResult(action=action, finalized=True)
        if match.status != MATCH_COMPLETED:
            result.advanced_count = finalize_match(session, match, submission, now)

    event = match_events.MatchUpdateEvent(
        match_id=match.id,
        update_type=match_events.SCORE_VERIFIED,
        data={
            "submission_id": submission.id,
            "action_type": action_type,
            "counter_submission_id": result.counter_submission.id if result.counter_submission else None,
            "finalized": result.finalized,
        },
        participant_id=access.participant_id,
    )
    match_events.emit(session, event)
    completed_event = None
    if result.finalized:
        completed_event = match_events.MatchUpdateEvent(
            match_id=match.id,
            update_type=match_events.MATCH_COMPLETED,
            data={"winner_id": match.winner_id, "submission_id": match.current_score_submission_id},
        )
        match_events.emit(session, completed_event)

    session.commit()
    session.refresh(result.action)
    if result.counter_submission is not None:
        session.refresh(result.counter_submission)
    match_events.broadcast(event)
    if completed_event is not None:
        match_events.broadcast(completed_event)

    logger.info(f"Match {match_id}: {action_type} on submission {submission_id} by participant={access.participant_id} owner={access.is_owner}")
    return result


def _record_action(
    session: Session,
    match: Match,
    submission: ScoreSubmission,
    participant_id: Optional[int],
    action_type: str,
    notes: Optional[str],
    access: MatchAccess,
) -> ScoreVerificationAction:
    action = ScoreVerificationAction(
        score_submission_id=submission.id,
        match_id=match.id,
        participant_id=participant_id,
        action_type=action_type,
        notes=notes or None,
        created_by=access.user_id,
    )
    session.add(action)
    return action


def list_submissions(session: Session, match_id: int) -> List[Dict[str, Any]]:
    """Submission history (oldest first) with the actions taken on each."""
    submissions = session.exec(
        select(ScoreSubmission).where(ScoreSubmission.match_id == match_id).order_by(ScoreSubmission.id)
    ).all()
    actions = session.exec(
        select(ScoreVerificationAction)
        .where(ScoreVerificationAction.match_id == match_id)
        .order_by(ScoreVerificationAction.id)
    ).all()
    by_submission: Dict[int, List[ScoreVerificationAction]] = {}
    for action in actions:
        by_submission.setdefault(action.score_submission_id, []).append(action)
    return [{"submission": s, "actions": by_submission.get(s.id, [])} for s in submissions]
