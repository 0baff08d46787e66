from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from matchday.models.match_phase import MatchPhase
    from matchday.models.participant import Participant
    from matchday.models.tournament import Tournament

MATCH_PENDING = "pending"
MATCH_IN_PROGRESS = "in_progress"
MATCH_READY_FOR_SCORE = "ready_for_score"
MATCH_COMPLETED = "completed"
MATCH_DISPUTED = "disputed"
MATCH_FORFEIT = "forfeit"

MATCH_STATUSES = (
    MATCH_PENDING,
    MATCH_IN_PROGRESS,
    MATCH_READY_FOR_SCORE,
    MATCH_COMPLETED,
    MATCH_DISPUTED,
    MATCH_FORFEIT,
)

SCORE_PENDING_VERIFICATION = "pending_verification"
SCORE_DISPUTED = "disputed"
SCORE_FINALIZED = "finalized"


class Match(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round: int = Field(default=1)
    match_number: int = Field(default=1)
    bracket_type: str = Field(default="winners")  # winners | losers | group tag

    # Participant slots (nullable until seeding)
    participant1_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    participant2_id: Optional[int] = Field(default=None, foreign_key="participant.id")
    winner_id: Optional[int] = Field(default=None, foreign_key="participant.id")

    status: str = Field(default=MATCH_PENDING)
    participant1_ready: bool = Field(default=False)
    participant2_ready: bool = Field(default=False)

    # Score verification; no FK on the pointer (scoresubmission references match)
    current_score_submission_id: Optional[int] = Field(default=None)
    score_submission_status: Optional[str] = Field(default=None)  # pending_verification | disputed | finalized
    participant1_score: Optional[int] = Field(default=None)
    participant2_score: Optional[int] = Field(default=None)

    # Advancement: winners of these matches fill slot 1 / slot 2
    source_match1_id: Optional[int] = Field(default=None, foreign_key="match.id")
    source_match2_id: Optional[int] = Field(default=None, foreign_key="match.id")

    started_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
    participant1: Optional["Participant"] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "Match.participant1_id"}
    )
    participant2: Optional["Participant"] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "Match.participant2_id"}
    )
    phases: List["MatchPhase"] = Relationship(
        back_populates="match", sa_relationship_kwargs={"order_by": "MatchPhase.phase_order"}
    )

    def participant_ids(self) -> List[int]:
        """Filled participant slots, slot 1 first."""
        return [pid for pid in (self.participant1_id, self.participant2_id) if pid is not None]

    def slot_of(self, participant_id: Optional[int]) -> Optional[int]:
        if participant_id is None:
            return None
        if participant_id == self.participant1_id:
            return 1
        if participant_id == self.participant2_id:
            return 2
        return None

    def opponent_of(self, participant_id: int) -> Optional[int]:
        if participant_id == self.participant1_id:
            return self.participant2_id
        if participant_id == self.participant2_id:
            return self.participant1_id
        return None
