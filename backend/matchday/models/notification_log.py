"""Log of access-link deliveries (email and SMS)."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel


class NotificationLog(SQLModel, table=True):
    __tablename__ = "notification_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    participant_id: int = Field(foreign_key="participant.id")
    channel: str  # email | sms
    recipient: str  # Email address or E.164 phone
    subject: Optional[str] = None
    message_body: str
    provider_id: Optional[str] = Field(default=None)  # Twilio SID / SMTP message id
    status: str = Field(default="queued")  # queued | sent | dry_run | failed
    error_message: Optional[str] = Field(default=None)
    sent_at: datetime = Field(default_factory=datetime.utcnow)
