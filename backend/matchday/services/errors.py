"""
Domain errors raised by the match services.

Each error carries a taxonomy ``kind`` and the HTTP status it maps to; the
app-level exception handler in ``matchday.main`` renders them as
``{"success": false, "error": kind, "code": code, "message": ...}``.
Services raise these before touching any row, so a failed call leaves the
match exactly as it was.
"""
from typing import Any, Dict, Optional


class MatchdayError(Exception):
    kind = "Internal"
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": False,
            "error": self.kind,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


class Unauthorized(MatchdayError):
    kind = "Unauthorized"
    status_code = 401
    code = "AUTH_REQUIRED"


class Forbidden(MatchdayError):
    kind = "Forbidden"
    status_code = 403
    code = "FORBIDDEN"


class NotFound(MatchdayError):
    kind = "NotFound"
    status_code = 404
    code = "NOT_FOUND"


class InvalidState(MatchdayError):
    kind = "InvalidState"
    status_code = 400
    code = "INVALID_STATE"


class InvalidInput(MatchdayError):
    kind = "InvalidInput"
    status_code = 400
    code = "INVALID_INPUT"


class Conflict(MatchdayError):
    kind = "Conflict"
    status_code = 409
    code = "CONFLICT"


class Internal(MatchdayError):
    pass


# Specific reasons used by the phase engine and score protocol


class MatchAlreadyStarted(InvalidState):
    code = "MATCH_ALREADY_STARTED"

    def __init__(self, message: str = "Match has already started or is completed"):
        super().__init__(message)


class PhaseNotActive(InvalidState):
    code = "PHASE_NOT_ACTIVE"

    def __init__(self, message: str = "Phase is not active"):
        super().__init__(message)


class MatchNotInProgress(InvalidState):
    code = "MATCH_NOT_IN_PROGRESS"

    def __init__(self, message: str = "Match is not in progress"):
        super().__init__(message)


class NotYourTurn(Conflict):
    code = "NOT_YOUR_TURN"

    def __init__(self, message: str = "Not your turn"):
        super().__init__(message)


class SelectionLimitReached(Conflict):
    code = "SELECTION_LIMIT_REACHED"

    def __init__(self, message: str = "Maximum selections reached for this phase"):
        super().__init__(message)


class InvalidSelection(InvalidInput):
    code = "INVALID_SELECTION"

    def __init__(self, message: str = "Invalid selection data"):
        super().__init__(message)
