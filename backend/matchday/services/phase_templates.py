"""
Tournament phase templates (map veto, character draft, ...).

Templates are edited by the tournament creator before the tournament runs.
``phase_order`` is kept contiguous (1..n) across create, reorder and delete.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from matchday.models.tournament import TOURNAMENT_IN_PROGRESS, Tournament
from matchday.models.tournament_phase import TournamentPhase
from matchday.services.errors import InvalidInput, InvalidState, NotFound

logger = logging.getLogger(__name__)

PHASE_TYPES = ("ban", "pick", "veto", "custom")

_EDITABLE_FIELDS = (
    "phase_name",
    "phase_type",
    "turn_based",
    "max_selections",
    "time_limit_seconds",
    "is_optional",
    "is_enabled",
)


def list_phase_templates(session: Session, tournament_id: int) -> List[TournamentPhase]:
    return list(
        session.exec(
            select(TournamentPhase)
            .where(TournamentPhase.tournament_id == tournament_id)
            .order_by(TournamentPhase.phase_order, TournamentPhase.id)
        ).all()
    )


def _ensure_editable(tournament: Tournament) -> None:
    if tournament.status == TOURNAMENT_IN_PROGRESS:
        raise InvalidState("Phases cannot be changed while the tournament is in progress")


def _validate_fields(data: Dict[str, Any]) -> None:
    if "phase_type" in data and data["phase_type"] not in PHASE_TYPES:
        raise InvalidInput(f"phase_type must be one of: {', '.join(PHASE_TYPES)}")
    if "max_selections" in data and (data["max_selections"] is None or data["max_selections"] < 1):
        raise InvalidInput("max_selections must be >= 1")
    if "time_limit_seconds" in data and (data["time_limit_seconds"] is None or data["time_limit_seconds"] < 0):
        raise InvalidInput("time_limit_seconds must be >= 0")


def _renumber(phases: List[TournamentPhase]) -> None:
    for index, phase in enumerate(phases, start=1):
        if phase.phase_order != index:
            phase.phase_order = index


def create_phase_template(
    session: Session,
    tournament: Tournament,
    phase_name: Optional[str],
    phase_type: Optional[str],
    phase_order: Optional[int] = None,
    turn_based: bool = True,
    max_selections: int = 1,
    time_limit_seconds: int = 30,
    is_optional: bool = False,
    is_enabled: bool = True,
) -> TournamentPhase:
    """Add a template; an explicit order inserts there and shifts later phases."""
    _ensure_editable(tournament)
    if not phase_name or not phase_type:
        raise InvalidInput("Phase name and type are required")
    _validate_fields(
        {"phase_type": phase_type, "max_selections": max_selections, "time_limit_seconds": time_limit_seconds}
    )

    phases = list_phase_templates(session, tournament.id)
    phase = TournamentPhase(
        tournament_id=tournament.id,
        phase_name=phase_name,
        phase_type=phase_type,
        turn_based=turn_based,
        max_selections=max_selections,
        time_limit_seconds=time_limit_seconds,
        is_optional=is_optional,
        is_enabled=is_enabled,
    )
    if phase_order is None or phase_order > len(phases):
        phases.append(phase)
    else:
        phases.insert(max(phase_order, 1) - 1, phase)
    _renumber(phases)
    for p in phases:
        session.add(p)
    session.commit()
    session.refresh(phase)

    logger.info(f"Tournament {tournament.id}: created phase '{phase.phase_name}' at order {phase.phase_order}")
    return phase


def _get_template(session: Session, tournament: Tournament, phase_id: int) -> TournamentPhase:
    phase = session.get(TournamentPhase, phase_id)
    if not phase or phase.tournament_id != tournament.id:
        raise NotFound("Phase not found")
    return phase


def update_phase_template(
    session: Session, tournament: Tournament, phase_id: int, changes: Dict[str, Any]
) -> TournamentPhase:
    """Apply a partial update; a new ``phase_order`` moves the template."""
    _ensure_editable(tournament)
    phase = _get_template(session, tournament, phase_id)

    fields = {k: v for k, v in changes.items() if k in _EDITABLE_FIELDS}
    if "phase_name" in fields and not fields["phase_name"]:
        raise InvalidInput("Phase name is required")
    if "phase_type" in fields and not fields["phase_type"]:
        raise InvalidInput("Phase type is required")
    _validate_fields(fields)

    for key, value in fields.items():
        setattr(phase, key, value)

    new_order = changes.get("phase_order")
    if new_order is not None:
        phases = [p for p in list_phase_templates(session, tournament.id) if p.id != phase.id]
        phases.insert(min(max(new_order, 1), len(phases) + 1) - 1, phase)
        _renumber(phases)
        for p in phases:
            session.add(p)

    session.add(phase)
    session.commit()
    session.refresh(phase)
    return phase


def delete_phase_template(session: Session, tournament: Tournament, phase_id: int) -> None:
    """Delete a template and close the gap in the ordering."""
    _ensure_editable(tournament)
    phase = _get_template(session, tournament, phase_id)
    session.delete(phase)
    session.flush()

    remaining = list_phase_templates(session, tournament.id)
    _renumber(remaining)
    for p in remaining:
        session.add(p)
    session.commit()

    logger.info(f"Tournament {tournament.id}: deleted phase {phase_id}, {len(remaining)} remaining")
