from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

SUBMISSION_PENDING = "pending"
SUBMISSION_ACCEPTED = "accepted"
SUBMISSION_SUPERSEDED = "superseded"

SUBMISSION_INITIAL = "initial"
SUBMISSION_GAME_RESULT = "game_result"
SUBMISSION_COUNTER = "counter"


class ScoreSubmission(SQLModel, table=True):
    __tablename__ = "score_submission"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    submitted_by: int = Field(foreign_key="participant.id")
    participant1_score: int
    participant2_score: int
    status: str = Field(default=SUBMISSION_PENDING)  # pending | accepted | superseded
    submission_type: str = Field(default=SUBMISSION_INITIAL)  # initial | game_result | counter
    game_number: Optional[int] = Field(default=None)
    game_scores: Optional[List[Dict[str, Any]]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
