"""
Typed match-update events.

Services ``emit`` an event inside their transaction (it is persisted as a
``MatchUpdate`` row so pollers can read the feed) and ``broadcast`` it after
commit to in-process listeners. Fan-out to websockets or push channels is a
listener concern.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlmodel import Session, select

from matchday.models.match_event import MatchUpdate

logger = logging.getLogger(__name__)

MATCH_STARTED = "match_started"
READY_CHANGED = "ready_changed"
SELECTION_MADE = "selection_made"
PHASE_SKIPPED = "phase_skipped"
SCORE_SUBMITTED = "score_submitted"
SCORE_VERIFIED = "score_verified"
MATCH_COMPLETED = "match_completed"


@dataclass
class MatchUpdateEvent:
    match_id: int
    update_type: str
    data: Dict[str, Any] = field(default_factory=dict)
    participant_id: Optional[int] = None


MatchUpdateListener = Callable[[MatchUpdateEvent], None]

_listeners: List[MatchUpdateListener] = []


def subscribe(listener: MatchUpdateListener) -> None:
    if listener not in _listeners:
        _listeners.append(listener)


def unsubscribe(listener: MatchUpdateListener) -> None:
    if listener in _listeners:
        _listeners.remove(listener)


def emit(session: Session, event: MatchUpdateEvent) -> MatchUpdate:
    """Stage the event row in the caller's transaction."""
    row = MatchUpdate(
        match_id=event.match_id,
        update_type=event.update_type,
        update_data=event.data,
        participant_id=event.participant_id,
    )
    session.add(row)
    return row


def broadcast(event: MatchUpdateEvent) -> None:
    """Notify listeners after commit. A failing listener never fails the caller."""
    for listener in list(_listeners):
        try:
            listener(event)
        except Exception:
            logger.exception(f"Match update listener failed for {event.update_type} on match {event.match_id}")


def list_match_updates(session: Session, match_id: int, since_id: int = 0, limit: int = 100) -> List[MatchUpdate]:
    return list(
        session.exec(
            select(MatchUpdate)
            .where(MatchUpdate.match_id == match_id, MatchUpdate.id > since_id)
            .order_by(MatchUpdate.id)
            .limit(limit)
        ).all()
    )
