from matchday.models.match import Match
from matchday.models.match_event import MatchReadyEvent, MatchUpdate
from matchday.models.match_phase import MatchPhase
from matchday.models.match_privilege import MatchParticipantPrivilege
from matchday.models.notification_log import NotificationLog
from matchday.models.participant import Participant
from matchday.models.phase_selection import PhaseSelection
from matchday.models.score_submission import ScoreSubmission
from matchday.models.score_verification_action import ScoreVerificationAction
from matchday.models.tournament import Tournament
from matchday.models.tournament_phase import TournamentPhase

__all__ = [
    "Tournament",
    "Participant",
    "Match",
    "TournamentPhase",
    "MatchPhase",
    "PhaseSelection",
    "MatchParticipantPrivilege",
    "ScoreSubmission",
    "ScoreVerificationAction",
    "MatchReadyEvent",
    "MatchUpdate",
    "NotificationLog",
]
