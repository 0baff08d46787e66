"""Environment-driven settings."""
import logging

from matchday import settings


def test_missing_session_secret_falls_back_with_warning(monkeypatch, caplog):
    monkeypatch.delenv("SESSION_SECRET_KEY", raising=False)

    with caplog.at_level(logging.WARNING, logger="matchday.settings"):
        key = settings._session_secret_key()

    assert key == settings.DEFAULT_SESSION_SECRET_KEY
    assert "SESSION_SECRET_KEY is not set" in caplog.text


def test_session_secret_from_environment(monkeypatch, caplog):
    monkeypatch.setenv("SESSION_SECRET_KEY", "s3cret")

    with caplog.at_level(logging.WARNING, logger="matchday.settings"):
        key = settings._session_secret_key()

    assert key == "s3cret"
    assert caplog.text == ""
