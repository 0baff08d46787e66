"""Access-link delivery: phone formatting, dry-run senders, notification log."""
import smtplib
from types import SimpleNamespace

import pytest
from sqlmodel import Session, select

from matchday import settings
from matchday.models.notification_log import NotificationLog
from matchday.models.participant import Participant
from matchday.services.access_links import find_participant_privilege, generate_access_links
from matchday.services.access_notifications import send_access_email, send_access_sms
from matchday.services.email_service import EmailService, validate_email
from matchday.services.errors import Forbidden, InvalidInput, NotFound
from matchday.services.twilio_service import (
    TwilioService,
    format_e164,
    get_participant_phone,
    validate_e164,
)
from tests.helpers import owner_access, token_access


# ---------------------------------------------------------------------------
# Phone number formatting
# ---------------------------------------------------------------------------


class TestFormatE164:
    def test_ten_digit_us(self):
        assert format_e164("5551234567") == "+15551234567"

    def test_eleven_digit_us(self):
        assert format_e164("15551234567") == "+15551234567"

    def test_already_e164(self):
        assert format_e164("+15551234567") == "+15551234567"

    def test_parens(self):
        assert format_e164("(555) 123-4567") == "+15551234567"

    def test_international(self):
        assert format_e164("+44 20 7946 0958") == "+442079460958"

    def test_invalid_short(self):
        with pytest.raises(ValueError, match="Cannot parse"):
            format_e164("12345")

    def test_invalid_empty(self):
        with pytest.raises(ValueError, match="empty"):
            format_e164("  ")


def test_validate_e164():
    assert validate_e164("+15551234567")
    assert not validate_e164("5551234567")
    assert not validate_e164("+0123")


def test_participant_phone_skips_placeholders_and_garbage():
    assert get_participant_phone(SimpleNamespace(id=1, phone="555.123.4567")) == "+15551234567"
    assert get_participant_phone(SimpleNamespace(id=1, phone="N/A")) is None
    assert get_participant_phone(SimpleNamespace(id=1, phone="call me")) is None
    assert get_participant_phone(SimpleNamespace(id=1, phone=None)) is None


# ---------------------------------------------------------------------------
# Senders
# ---------------------------------------------------------------------------


class TestTwilioDryRun:
    def test_dry_run_without_credentials(self):
        service = TwilioService()
        assert service.dry_run is True
        assert service.is_configured is False

    def test_dry_run_send(self):
        result = TwilioService().send_sms("+15551234567", "hello")
        assert result["status"] == "dry_run"
        assert result["sid"].startswith("DRY_RUN_")
        assert result["error"] is None

    def test_invalid_number_fails_without_sending(self):
        result = TwilioService().send_sms("5551234567", "hello")
        assert result["status"] == "failed"
        assert "Invalid phone number" in result["error"]


class TestEmailService:
    def test_dry_run_without_host(self):
        service = EmailService()
        result = service.send_email("alpha@example.com", "Subject", "Body")
        assert service.dry_run is True
        assert result["status"] == "dry_run"

    def test_invalid_address(self):
        result = EmailService().send_email("not-an-address", "Subject", "Body")
        assert result["status"] == "failed"

    def test_smtp_failure_is_reported(self, monkeypatch):
        monkeypatch.setattr(settings, "SMTP_HOST", "smtp.invalid")
        monkeypatch.setattr(settings, "SMTP_USE_SSL", False)

        class BrokenSMTP:
            def __init__(self, *args, **kwargs):
                raise smtplib.SMTPConnectError(421, "unavailable")

        monkeypatch.setattr(smtplib, "SMTP", BrokenSMTP)
        result = EmailService().send_email("alpha@example.com", "Subject", "Body")
        assert result["status"] == "failed"
        assert result["message_id"] is None

    def test_validate_email(self):
        assert validate_email("a@b.co")
        assert not validate_email("a@b")


# ---------------------------------------------------------------------------
# Access-link delivery
# ---------------------------------------------------------------------------


def test_send_access_email_stamps_link_and_logs(session: Session, arena):
    match, p1 = arena["match"], arena["p1"]
    generate_access_links(session, match)

    ack = send_access_email(session, match, p1.id, owner_access(session, match))

    assert ack.delivered is True
    assert ack.status == "dry_run"
    assert ack.recipient == "alpha@example.com"
    privilege = find_participant_privilege(session, match.id, p1.id)
    assert privilege.last_email_sent_at is not None
    log = session.exec(select(NotificationLog)).one()
    assert log.channel == "email"
    assert log.subject == "Your match access link for Spring Cup"
    assert privilege.access_token in log.message_body
    assert "Opponent: Bravo" in log.message_body


def test_send_access_email_failure_is_acknowledged_not_raised(session: Session, arena, monkeypatch):
    match, p1 = arena["match"], arena["p1"]
    generate_access_links(session, match)
    monkeypatch.setattr(
        EmailService, "send_email", lambda self, to, subject, body: {"message_id": None, "status": "failed", "error": "boom"}
    )

    ack = send_access_email(session, match, p1.id, owner_access(session, match))

    assert ack.delivered is False
    assert ack.error == "boom"
    assert find_participant_privilege(session, match.id, p1.id).last_email_sent_at is None
    assert session.exec(select(NotificationLog)).one().status == "failed"


def test_send_access_email_requires_email(session: Session, arena):
    match, p2 = arena["match"], arena["p2"]
    generate_access_links(session, match)

    with pytest.raises(InvalidInput):
        send_access_email(session, match, p2.id, owner_access(session, match))


def test_send_access_email_requires_current_link(session: Session, arena):
    match, p1 = arena["match"], arena["p1"]

    with pytest.raises(NotFound, match="generate match links"):
        send_access_email(session, match, p1.id, owner_access(session, match))


def test_send_access_email_rejects_outsiders(session: Session, arena):
    match = arena["match"]
    generate_access_links(session, match)
    stranger = Participant(tournament_id=arena["tournament"].id, participant_name="Charlie", email="c@example.com")
    session.add(stranger)
    session.commit()
    session.refresh(stranger)

    with pytest.raises(NotFound):
        send_access_email(session, match, stranger.id, owner_access(session, match))


def test_send_access_email_owner_only(session: Session, arena):
    match, p1 = arena["match"], arena["p1"]
    generate_access_links(session, match)
    participant_access = token_access(p1.id, match)
    participant_access.user_id = "user-1"

    with pytest.raises(Forbidden):
        send_access_email(session, match, p1.id, participant_access)


def test_send_access_sms_dry_run(session: Session, arena):
    match, p1 = arena["match"], arena["p1"]
    generate_access_links(session, match)

    ack = send_access_sms(session, match, p1.id, owner_access(session, match))

    assert ack.delivered is True
    assert ack.recipient == "+15551234567"
    assert find_participant_privilege(session, match.id, p1.id).last_sms_sent_at is not None
    assert session.exec(select(NotificationLog)).one().channel == "sms"


def test_send_access_sms_requires_phone(session: Session, arena):
    match, p2 = arena["match"], arena["p2"]
    generate_access_links(session, match)

    with pytest.raises(InvalidInput):
        send_access_sms(session, match, p2.id, owner_access(session, match))
