"""
Advancement: when a match is completed, fill downstream participant slots.

A downstream match names its feeders through ``source_match1_id`` /
``source_match2_id``; the feeder's winner goes into the matching slot. Only
empty slots (or slots already holding that winner) are written.
"""
from typing import Dict, List

from sqlmodel import Session, select

from matchday.models.match import MATCH_COMPLETED, MATCH_FORFEIT, Match


def apply_advancement(session: Session, match: Match) -> int:
    """
    Advance the winner of a completed match into the matches it feeds.
    Returns count of downstream matches that had a slot updated.
    Idempotent: calling twice produces the same state. Does not commit.
    """
    winner_id = match.winner_id
    if winner_id is None:
        return 0
    if match.status not in (MATCH_COMPLETED, MATCH_FORFEIT):
        return 0

    updated_count = 0

    # Downstream where this match feeds slot 1
    downstream_1 = session.exec(select(Match).where(Match.source_match1_id == match.id)).all()
    for down in downstream_1:
        if down.participant1_id is None:
            down.participant1_id = winner_id
            session.add(down)
            updated_count += 1

    # Downstream where this match feeds slot 2
    downstream_2 = session.exec(select(Match).where(Match.source_match2_id == match.id)).all()
    for down in downstream_2:
        if down.participant2_id is None:
            down.participant2_id = winner_id
            session.add(down)
            updated_count += 1

    return updated_count


def resolve_all_dependencies(session: Session, tournament_id: int) -> Dict[str, int]:
    """
    Re-run advancement for every completed match of a tournament.

    Useful after an interrupted finalize or a manual repair. Processes matches
    in id order and commits once.
    """
    matches: List[Match] = list(
        session.exec(
            select(Match)
            .where(
                Match.tournament_id == tournament_id,
                Match.status.in_([MATCH_COMPLETED, MATCH_FORFEIT]),
                Match.winner_id.is_not(None),
            )
            .order_by(Match.id)
        ).all()
    )
    slots_filled = 0
    for match in matches:
        slots_filled += apply_advancement(session, match)
    if slots_filled:
        session.commit()
    return {"matches_processed": len(matches), "slots_filled": slots_filled}
