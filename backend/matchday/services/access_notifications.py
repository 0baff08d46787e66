"""
Deliver a participant's current access link by email or SMS.

Delivery is best-effort: a provider failure is logged, recorded in
``NotificationLog`` and reported back, never raised.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from matchday.models.match import Match
from matchday.models.match_privilege import MatchParticipantPrivilege
from matchday.models.notification_log import NotificationLog
from matchday.models.participant import Participant
from matchday.models.tournament import Tournament
from matchday.services.access_links import build_access_url, find_participant_privilege
from matchday.services.access_resolver import MatchAccess
from matchday.services.email_service import get_email_service
from matchday.services.errors import InvalidInput, NotFound
from matchday.services.match_store import get_match_participant, get_tournament
from matchday.services.twilio_service import get_participant_phone, get_twilio_service

logger = logging.getLogger(__name__)

CHANNEL_EMAIL = "email"
CHANNEL_SMS = "sms"

DELIVERED_STATUSES = ("queued", "sent", "accepted", "dry_run")


@dataclass
class DeliveryAck:
    channel: str
    recipient: str
    status: str
    delivered: bool
    error: Optional[str] = None
    notification_id: Optional[int] = None


def _current_link(session: Session, match: Match, participant: Participant, now: datetime) -> MatchParticipantPrivilege:
    privilege = find_participant_privilege(session, match.id, participant.id, now)
    if privilege is None:
        raise NotFound("No active access link found. Please generate match links first.")
    return privilege


def _opponent_name(session: Session, match: Match, participant: Participant) -> str:
    opponent_id = match.opponent_of(participant.id)
    opponent = session.get(Participant, opponent_id) if opponent_id else None
    return opponent.participant_name if opponent else "TBD"


def _email_body(tournament: Tournament, match: Match, participant: Participant, opponent: str, url: str, expires_at: datetime) -> str:
    return (
        f"Hello {participant.participant_name},\n\n"
        f"Your match in {tournament.name} is ready to begin.\n\n"
        f"Round: {match.round}\n"
        f"Match: {match.match_number}\n"
        f"Opponent: {opponent}\n\n"
        f"Open your match here:\n{url}\n\n"
        f"This link expires on {expires_at:%Y-%m-%d}.\n"
    )


def _log_delivery(
    session: Session,
    match: Match,
    participant: Participant,
    channel: str,
    recipient: str,
    body: str,
    result: dict,
    provider_id: Optional[str],
    subject: Optional[str] = None,
) -> NotificationLog:
    row = NotificationLog(
        tournament_id=match.tournament_id,
        match_id=match.id,
        participant_id=participant.id,
        channel=channel,
        recipient=recipient,
        subject=subject,
        message_body=body,
        provider_id=provider_id,
        status=result["status"],
        error_message=result.get("error"),
    )
    session.add(row)
    return row


def send_access_email(
    session: Session, match: Match, participant_id: int, access: MatchAccess, now: Optional[datetime] = None
) -> DeliveryAck:
    """Email the participant their current access link."""
    now = now or datetime.utcnow()
    access.require_owner("Only tournament creators can send access emails")
    participant = get_match_participant(session, match, participant_id)
    if not participant.email:
        raise InvalidInput("Participant does not have an email address")
    privilege = _current_link(session, match, participant, now)

    tournament = get_tournament(session, match.tournament_id)
    url = build_access_url(match.id, privilege.access_token)
    subject = f"Your match access link for {tournament.name}"
    body = _email_body(tournament, match, participant, _opponent_name(session, match, participant), url, privilege.expires_at)

    result = get_email_service().send_email(participant.email, subject, body)
    delivered = result["status"] in DELIVERED_STATUSES
    if delivered:
        privilege.last_email_sent_at = now
        session.add(privilege)
    row = _log_delivery(
        session, match, participant, CHANNEL_EMAIL, participant.email, body, result, result.get("message_id"), subject
    )
    session.commit()
    session.refresh(row)

    if not delivered:
        logger.warning(f"Access email for match {match.id} participant {participant.id} failed: {result.get('error')}")
    return DeliveryAck(
        channel=CHANNEL_EMAIL,
        recipient=participant.email,
        status=result["status"],
        delivered=delivered,
        error=result.get("error"),
        notification_id=row.id,
    )


def send_access_sms(
    session: Session, match: Match, participant_id: int, access: MatchAccess, now: Optional[datetime] = None
) -> DeliveryAck:
    """Text the participant their current access link."""
    now = now or datetime.utcnow()
    access.require_owner("Only tournament creators can send access texts")
    participant = get_match_participant(session, match, participant_id)
    phone = get_participant_phone(participant)
    if phone is None:
        raise InvalidInput("Participant does not have a valid phone number")
    privilege = _current_link(session, match, participant, now)

    tournament = get_tournament(session, match.tournament_id)
    url = build_access_url(match.id, privilege.access_token)
    body = (
        f"{tournament.name} R{match.round} M{match.match_number} vs "
        f"{_opponent_name(session, match, participant)}: {url}"
    )

    result = get_twilio_service().send_sms(phone, body)
    delivered = result["status"] in DELIVERED_STATUSES
    if delivered:
        privilege.last_sms_sent_at = now
        session.add(privilege)
    row = _log_delivery(session, match, participant, CHANNEL_SMS, phone, body, result, result.get("sid"))
    session.commit()
    session.refresh(row)

    if not delivered:
        logger.warning(f"Access SMS for match {match.id} participant {participant.id} failed: {result.get('error')}")
    return DeliveryAck(
        channel=CHANNEL_SMS,
        recipient=phone,
        status=result["status"],
        delivered=delivered,
        error=result.get("error"),
        notification_id=row.id,
    )
