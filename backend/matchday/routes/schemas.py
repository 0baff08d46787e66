"""Response models shared by the match and tournament routers."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class TournamentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    creator_id: str
    game: Optional[str] = None
    is_public: bool
    status: str


class ParticipantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    participant_name: str
    user_id: Optional[str] = None
    seed: Optional[int] = None


class MatchOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    round: int
    match_number: int
    bracket_type: str
    participant1_id: Optional[int] = None
    participant2_id: Optional[int] = None
    winner_id: Optional[int] = None
    status: str
    participant1_ready: bool
    participant2_ready: bool
    current_score_submission_id: Optional[int] = None
    score_submission_status: Optional[str] = None
    participant1_score: Optional[int] = None
    participant2_score: Optional[int] = None
    source_match1_id: Optional[int] = None
    source_match2_id: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class PhaseTemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    phase_name: str
    phase_type: str
    phase_order: int
    turn_based: bool
    max_selections: int
    time_limit_seconds: int
    is_optional: bool
    is_enabled: bool


class MatchPhaseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    match_id: int
    tournament_phase_id: int
    phase_order: int
    phase_status: str
    current_turn_participant_id: Optional[int] = None
    time_remaining: Optional[int] = None
    skipped: bool
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class SelectionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    match_phase_id: int
    participant_id: int
    selection_type: str
    selection_data: Dict[str, Any]
    selection_order: int
    created_at: datetime


class SubmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    match_id: int
    submitted_by: int
    participant1_score: int
    participant2_score: int
    status: str
    submission_type: str
    game_number: Optional[int] = None
    game_scores: Optional[List[Dict[str, Any]]] = None
    notes: Optional[str] = None
    created_at: datetime


class VerificationActionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    score_submission_id: int
    participant_id: Optional[int] = None
    action_type: str
    notes: Optional[str] = None
    created_at: datetime


class AccessLinkOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    match_id: int
    participant_id: int
    access_token: str
    access_url: str
    expires_at: datetime
    last_used_at: Optional[datetime] = None
    last_email_sent_at: Optional[datetime] = None
