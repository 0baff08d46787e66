from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.match import Match
    from matchday.models.participant import Participant
    from matchday.models.tournament_phase import TournamentPhase

TOURNAMENT_DRAFT = "draft"
TOURNAMENT_REGISTRATION = "registration"
TOURNAMENT_IN_PROGRESS = "in_progress"
TOURNAMENT_COMPLETED = "completed"

TOURNAMENT_STATUSES = (
    TOURNAMENT_DRAFT,
    TOURNAMENT_REGISTRATION,
    TOURNAMENT_IN_PROGRESS,
    TOURNAMENT_COMPLETED,
)


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    creator_id: str = Field(index=True)  # External user identity of the owner
    game: Optional[str] = None
    is_public: bool = Field(default=False)
    status: str = Field(default=TOURNAMENT_DRAFT)  # draft | registration | in_progress | completed
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    participants: List["Participant"] = Relationship(back_populates="tournament")
    matches: List["Match"] = Relationship(back_populates="tournament")
    phases: List["TournamentPhase"] = Relationship(back_populates="tournament")
