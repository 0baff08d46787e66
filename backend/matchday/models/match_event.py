"""Audit and observer feed rows attached to a match."""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class MatchReadyEvent(SQLModel, table=True):
    __tablename__ = "match_ready_event"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    participant_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    event_type: str  # ready | unready | creator_start | participant_start
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class MatchUpdate(SQLModel, table=True):
    """Persisted match-update event; observers poll this feed by id."""

    __tablename__ = "match_update"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    update_type: str  # match_started | selection_made | phase_skipped | score_submitted | ...
    update_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    participant_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
