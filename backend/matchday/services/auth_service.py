"""Platform session tokens (JWT) resolved to a user identity."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from matchday.settings import SESSION_ALGORITHM, SESSION_SECRET_KEY, SESSION_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)


def create_session_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a session token for ``user_id`` (used by tooling and tests)."""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=SESSION_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "exp": expire, "type": "session"}
    return jwt.encode(to_encode, SESSION_SECRET_KEY, algorithm=SESSION_ALGORITHM)


def resolve_session_user(token: Optional[str]) -> Optional[str]:
    """Return the user id carried by a valid session token, else None."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, SESSION_SECRET_KEY, algorithms=[SESSION_ALGORITHM])
    except JWTError as e:
        logger.info(f"Rejected session token: {e}")
        return None
    if payload.get("type") != "session":
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None
