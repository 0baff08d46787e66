"""
Tournament records: create, read, status, participants, matches.

Bracket generation is out of scope; matches are created one by one and may
name the feeder matches whose winners fill their slots.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session, select

from matchday.database import get_session
from matchday.models.match import Match
from matchday.models.participant import Participant
from matchday.models.tournament import TOURNAMENT_STATUSES, Tournament
from matchday.routes.deps import get_owned_tournament, get_session_user, require_session_user
from matchday.routes.schemas import MatchOut, ParticipantOut, TournamentOut
from matchday.services.advancement_service import resolve_all_dependencies
from matchday.services.errors import Forbidden, InvalidInput
from matchday.services.match_store import get_tournament

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tournaments", tags=["tournaments"])


class TournamentCreate(BaseModel):
    name: str
    game: Optional[str] = None
    is_public: bool = False


class TournamentStatusUpdate(BaseModel):
    status: str


class TournamentResponse(BaseModel):
    success: bool = True
    tournament: TournamentOut


class TournamentDetailResponse(BaseModel):
    success: bool = True
    tournament: TournamentOut
    participants: List[ParticipantOut]
    matches: List[MatchOut]


class ParticipantCreate(BaseModel):
    participant_name: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    seed: Optional[int] = None


class ParticipantResponse(BaseModel):
    success: bool = True
    participant: ParticipantOut


class MatchCreate(BaseModel):
    round: int = 1
    match_number: int = 1
    bracket_type: str = "winners"
    participant1_id: Optional[int] = None
    participant2_id: Optional[int] = None
    source_match1_id: Optional[int] = None
    source_match2_id: Optional[int] = None


class MatchResponse(BaseModel):
    success: bool = True
    match: MatchOut


class ResolveAdvancementResponse(BaseModel):
    success: bool = True
    matches_processed: int
    slots_filled: int


@router.post("", response_model=TournamentResponse)
def create_tournament(
    payload: TournamentCreate,
    session: Session = Depends(get_session),
    user_id: str = Depends(require_session_user),
) -> TournamentResponse:
    if not payload.name.strip():
        raise InvalidInput("Tournament name is required")
    tournament = Tournament(name=payload.name.strip(), game=payload.game, is_public=payload.is_public, creator_id=user_id)
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    logger.info(f"Tournament {tournament.id} created by {user_id}")
    return TournamentResponse(tournament=TournamentOut.model_validate(tournament))


@router.get("/{tournament_id}", response_model=TournamentDetailResponse)
def get_tournament_detail(
    tournament_id: int,
    session: Session = Depends(get_session),
    user_id: Optional[str] = Depends(get_session_user),
) -> TournamentDetailResponse:
    """Public tournaments are readable by anyone; private ones by their creator."""
    tournament = get_tournament(session, tournament_id)
    if not tournament.is_public and tournament.creator_id != user_id:
        raise Forbidden("This tournament is private")
    participants = session.exec(
        select(Participant).where(Participant.tournament_id == tournament_id).order_by(Participant.id)
    ).all()
    matches = session.exec(
        select(Match).where(Match.tournament_id == tournament_id).order_by(Match.round, Match.match_number)
    ).all()
    return TournamentDetailResponse(
        tournament=TournamentOut.model_validate(tournament),
        participants=[ParticipantOut.model_validate(p) for p in participants],
        matches=[MatchOut.model_validate(m) for m in matches],
    )


@router.patch("/{tournament_id}/status", response_model=TournamentResponse)
def update_tournament_status(
    tournament_id: int,
    payload: TournamentStatusUpdate,
    session: Session = Depends(get_session),
    tournament: Tournament = Depends(get_owned_tournament),
) -> TournamentResponse:
    if payload.status not in TOURNAMENT_STATUSES:
        raise InvalidInput(f"Invalid tournament status: {payload.status}")
    tournament.status = payload.status
    session.add(tournament)
    session.commit()
    session.refresh(tournament)
    logger.info(f"Tournament {tournament.id} status -> {tournament.status}")
    return TournamentResponse(tournament=TournamentOut.model_validate(tournament))


@router.post("/{tournament_id}/participants", response_model=ParticipantResponse)
def register_participant(
    tournament_id: int,
    payload: ParticipantCreate,
    session: Session = Depends(get_session),
    tournament: Tournament = Depends(get_owned_tournament),
) -> ParticipantResponse:
    if not payload.participant_name.strip():
        raise InvalidInput("Participant name is required")
    participant = Participant(tournament_id=tournament.id, **payload.model_dump())
    participant.participant_name = payload.participant_name.strip()
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return ParticipantResponse(participant=ParticipantOut.model_validate(participant))


def _check_tournament_ref(session: Session, model, row_id: Optional[int], tournament_id: int, label: str) -> None:
    if row_id is None:
        return
    row = session.get(model, row_id)
    if row is None or row.tournament_id != tournament_id:
        raise InvalidInput(f"{label} {row_id} does not belong to this tournament")


@router.post("/{tournament_id}/matches", response_model=MatchResponse)
def create_match(
    tournament_id: int,
    payload: MatchCreate,
    session: Session = Depends(get_session),
    tournament: Tournament = Depends(get_owned_tournament),
) -> MatchResponse:
    if payload.participant1_id is not None and payload.participant1_id == payload.participant2_id:
        raise InvalidInput("A participant cannot play against themselves")
    _check_tournament_ref(session, Participant, payload.participant1_id, tournament.id, "Participant")
    _check_tournament_ref(session, Participant, payload.participant2_id, tournament.id, "Participant")
    _check_tournament_ref(session, Match, payload.source_match1_id, tournament.id, "Match")
    _check_tournament_ref(session, Match, payload.source_match2_id, tournament.id, "Match")

    match = Match(tournament_id=tournament.id, **payload.model_dump())
    session.add(match)
    session.commit()
    session.refresh(match)
    return MatchResponse(match=MatchOut.model_validate(match))


@router.post("/{tournament_id}/resolve-advancement", response_model=ResolveAdvancementResponse)
def resolve_advancement(
    tournament_id: int,
    session: Session = Depends(get_session),
    tournament: Tournament = Depends(get_owned_tournament),
) -> ResolveAdvancementResponse:
    """Re-run advancement for every completed match (repair after an interrupted finalize)."""
    result = resolve_all_dependencies(session, tournament.id)
    return ResolveAdvancementResponse(**result)
