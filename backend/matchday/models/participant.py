from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.tournament import Tournament


class Participant(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    participant_name: str
    user_id: Optional[str] = Field(default=None, index=True)  # None for guest entries
    email: Optional[str] = None
    phone: Optional[str] = None
    seed: Optional[int] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    tournament: "Tournament" = Relationship(back_populates="participants")
