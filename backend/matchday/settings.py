"""Runtime settings read from the environment (and an optional .env file)."""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_SESSION_SECRET_KEY = "dev-session-secret-change-in-production"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def _session_secret_key() -> str:
    value = os.getenv("SESSION_SECRET_KEY")
    if not value:
        logger.warning("SESSION_SECRET_KEY is not set; using the development default key")
        return DEFAULT_SESSION_SECRET_KEY
    return value


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./matchday.db")
SQL_ECHO = _env_flag("SQL_ECHO")

CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
if _extra:
    CORS_ORIGINS.extend(o.strip() for o in _extra.split(",") if o.strip())

# Platform session tokens (X-Session-Token header)
SESSION_SECRET_KEY = _session_secret_key()
SESSION_ALGORITHM = os.getenv("SESSION_ALGORITHM", "HS256")
SESSION_TOKEN_EXPIRE_MINUTES = int(os.getenv("SESSION_TOKEN_EXPIRE_MINUTES", "1440"))

# Participant access links
APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:3000").rstrip("/")
ACCESS_LINK_TTL_DAYS = int(os.getenv("ACCESS_LINK_TTL_DAYS", "7"))

# Workflow switches
AUTO_FINALIZE_ON_ACCEPT = _env_flag("AUTO_FINALIZE_ON_ACCEPT")
REJECT_STALE_VERIFICATION = _env_flag("REJECT_STALE_VERIFICATION")
SKIP_DISABLED_PHASES = _env_flag("SKIP_DISABLED_PHASES", "true")

# Outbound email (SMTP). Unset host means log-only dry run.
SMTP_HOST = os.getenv("SMTP_HOST")
_smtp_port_raw = os.getenv("SMTP_PORT")
SMTP_PORT = int(_smtp_port_raw) if _smtp_port_raw and _smtp_port_raw.isdigit() else None
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = _env_flag("SMTP_USE_TLS", "true")
SMTP_USE_SSL = _env_flag("SMTP_USE_SSL")
SMTP_SENDER = os.getenv("SMTP_SENDER")

# Outbound SMS (Twilio). Missing credentials means log-only dry run.
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER", "")
