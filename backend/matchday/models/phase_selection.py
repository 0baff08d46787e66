from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, UniqueConstraint as SAUniqueConstraint
from sqlmodel import Column, Field, SQLModel


class PhaseSelection(SQLModel, table=True):
    __tablename__ = "phase_selection"
    __table_args__ = (
        # Backs the per-participant selection limit under concurrent inserts
        SAUniqueConstraint(
            "match_phase_id", "participant_id", "selection_order", name="uq_selection_phase_participant_order"
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    match_phase_id: int = Field(foreign_key="match_phase.id", index=True)
    participant_id: int = Field(foreign_key="participant.id")
    selection_type: str
    selection_data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    selection_order: int
    created_at: datetime = Field(default_factory=datetime.utcnow)
