from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

ACTION_ACCEPT = "accept"
ACTION_DISPUTE = "dispute"
ACTION_CREATOR_FINALIZE = "creator_finalize"


class ScoreVerificationAction(SQLModel, table=True):
    """Append-only audit of accept/dispute/finalize decisions on a submission."""

    __tablename__ = "score_verification_action"

    id: Optional[int] = Field(default=None, primary_key=True)
    score_submission_id: int = Field(foreign_key="score_submission.id", index=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    participant_id: Optional[int] = Field(default=None, foreign_key="participant.id")  # None for owner actions
    action_type: str  # accept | dispute | creator_finalize
    notes: Optional[str] = None
    created_by: Optional[str] = None  # session user id, when there was one
    created_at: datetime = Field(default_factory=datetime.utcnow)
