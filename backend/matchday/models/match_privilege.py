from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class MatchParticipantPrivilege(SQLModel, table=True):
    """Bearer access token scoping one participant to one match."""

    __tablename__ = "match_participant_privilege"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    participant_id: int = Field(foreign_key="participant.id", index=True)
    access_token: str = Field(unique=True, index=True)
    expires_at: datetime
    is_active: bool = Field(default=True)
    last_used_at: Optional[datetime] = Field(default=None)
    last_email_sent_at: Optional[datetime] = Field(default=None)
    last_sms_sent_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def is_current(self, now: Optional[datetime] = None) -> bool:
        return self.is_active and self.expires_at >= (now or datetime.utcnow())
