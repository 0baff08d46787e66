from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.match import Match
    from matchday.models.tournament_phase import TournamentPhase

PHASE_PENDING = "pending"
PHASE_ACTIVE = "active"
PHASE_COMPLETED = "completed"


class MatchPhase(SQLModel, table=True):
    """Live instance of a TournamentPhase for one match."""

    __tablename__ = "match_phase"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    tournament_phase_id: int = Field(foreign_key="tournament_phase.id")
    phase_order: int  # copied from the template when instantiated
    phase_status: str = Field(default=PHASE_PENDING)  # pending | active | completed
    current_turn_participant_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    time_remaining: Optional[int] = Field(default=None)  # seconds, advisory
    skipped: bool = Field(default=False)
    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)

    match: "Match" = Relationship(back_populates="phases")
    tournament_phase: "TournamentPhase" = Relationship()
