"""Access-link endpoints for the tournament creator: generate, list, deliver."""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from matchday.database import get_session
from matchday.models.tournament import Tournament
from matchday.routes.deps import get_match_access, get_owned_tournament
from matchday.routes.schemas import AccessLinkOut
from matchday.services.access_links import (
    find_participant_privilege,
    generate_access_links,
    generate_tournament_access_links,
    list_current_privileges,
    to_access_link,
)
from matchday.services.access_notifications import send_access_email, send_access_sms
from matchday.services.access_resolver import MatchAccess
from matchday.services.errors import NotFound
from matchday.services.match_store import get_match, get_match_participant

logger = logging.getLogger(__name__)

router = APIRouter(tags=["access-links"])


class AccessLinksResponse(BaseModel):
    success: bool = True
    links: List[AccessLinkOut]


class AccessLinkResponse(BaseModel):
    success: bool = True
    link: AccessLinkOut


class TournamentAccessLinksResponse(BaseModel):
    success: bool = True
    total_links: int
    links_by_match: Dict[int, List[AccessLinkOut]]


class SendAccessRequest(BaseModel):
    participant_id: int


class SendAccessResponse(BaseModel):
    success: bool = True
    message: str
    channel: str
    recipient: str
    status: str
    delivered: bool
    error: Optional[str] = None
    sent_at: datetime


@router.post("/matches/{match_id}/access-links", response_model=AccessLinksResponse)
def create_match_access_links(
    match_id: int,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> AccessLinksResponse:
    """Replace every link of the match with fresh ones."""
    access.require_owner("Only tournament creators can generate match links")
    links = generate_access_links(session, get_match(session, match_id))
    return AccessLinksResponse(links=[AccessLinkOut.model_validate(link) for link in links])


@router.get("/matches/{match_id}/access-links", response_model=AccessLinksResponse)
def list_match_access_links(
    match_id: int,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> AccessLinksResponse:
    access.require_owner("Only tournament creators can view match links")
    privileges = list_current_privileges(session, match_id)
    return AccessLinksResponse(links=[AccessLinkOut.model_validate(to_access_link(p)) for p in privileges])


@router.get("/matches/{match_id}/access-links/{participant_id}", response_model=AccessLinkResponse)
def get_participant_access_link(
    match_id: int,
    participant_id: int,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> AccessLinkResponse:
    access.require_owner("Only tournament creators can view match links")
    participant = get_match_participant(session, get_match(session, match_id), participant_id)
    privilege = find_participant_privilege(session, match_id, participant.id)
    if privilege is None:
        raise NotFound("No active access link found. Please generate match links first.")
    return AccessLinkResponse(link=AccessLinkOut.model_validate(to_access_link(privilege)))


def _send_response(ack, message: str) -> SendAccessResponse:
    return SendAccessResponse(
        message=message if ack.delivered else f"Delivery failed: {ack.error}",
        channel=ack.channel,
        recipient=ack.recipient,
        status=ack.status,
        delivered=ack.delivered,
        error=ack.error,
        sent_at=datetime.utcnow(),
    )


@router.post("/matches/{match_id}/send-access-email", response_model=SendAccessResponse)
def email_access_link(
    match_id: int,
    payload: SendAccessRequest,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> SendAccessResponse:
    ack = send_access_email(session, get_match(session, match_id), payload.participant_id, access)
    return _send_response(ack, "Email sent successfully")


@router.post("/matches/{match_id}/send-access-sms", response_model=SendAccessResponse)
def sms_access_link(
    match_id: int,
    payload: SendAccessRequest,
    session: Session = Depends(get_session),
    access: MatchAccess = Depends(get_match_access),
) -> SendAccessResponse:
    ack = send_access_sms(session, get_match(session, match_id), payload.participant_id, access)
    return _send_response(ack, "Text sent successfully")


@router.post("/tournaments/{tournament_id}/access-links", response_model=TournamentAccessLinksResponse)
def create_tournament_access_links(
    tournament_id: int,
    session: Session = Depends(get_session),
    tournament: Tournament = Depends(get_owned_tournament),
) -> TournamentAccessLinksResponse:
    """Regenerate links for every match of a tournament in progress."""
    links_by_match = generate_tournament_access_links(session, tournament)
    return TournamentAccessLinksResponse(
        total_links=sum(len(links) for links in links_by_match.values()),
        links_by_match={
            match_id: [AccessLinkOut.model_validate(link) for link in links]
            for match_id, links in links_by_match.items()
        },
    )
