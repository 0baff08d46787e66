from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.tournament import Tournament


class TournamentPhase(SQLModel, table=True):
    """Phase template owned by a tournament (map veto, character draft, ...)."""

    __tablename__ = "tournament_phase"

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    phase_name: str
    phase_type: str  # ban | pick | veto | custom
    phase_order: int = Field(default=1)  # 1..n, contiguous within a tournament
    turn_based: bool = Field(default=True)
    max_selections: int = Field(default=1)  # per participant
    time_limit_seconds: int = Field(default=30)
    is_optional: bool = Field(default=False)
    is_enabled: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    tournament: "Tournament" = Relationship(back_populates="phases")
