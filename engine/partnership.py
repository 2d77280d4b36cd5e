"""Active batting pair and partnership runs."""

import logging
from typing import Optional

from engine.errors import RuleViolation
from engine.models import Ball, Innings

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "___"


def partnership_key(first: str, second: str) -> str:
    """A and B batting together is the same partnership whoever is on strike."""
    return KEY_SEPARATOR.join(sorted((first, second)))


def add_runs(innings: Innings, ball: Ball) -> None:
    innings.current_partnership.runs += ball.total_runs


def close_partnership(innings: Innings, dismissed: Optional[str]) -> Optional[str]:
    """
    Archive the current partnership and vacate the dismissed batsman's slot.

    Returns the vacated slot ("striker" / "non_striker"), or None when the
    dismissed name is in neither slot; in that case both batsmen stay but
    the running total still starts again from zero.
    """
    current = innings.current_partnership
    if current.striker and current.non_striker:
        key = partnership_key(current.striker, current.non_striker)
        innings.partnerships[key] = innings.partnerships.get(key, 0) + current.runs
        logger.debug(f"[Partnership] Archived {key}: {innings.partnerships[key]}")

    current.runs = 0
    if dismissed and dismissed == current.striker:
        current.striker = None
        return "striker"
    if dismissed and dismissed == current.non_striker:
        current.non_striker = None
        return "non_striker"
    logger.warning(f"[Partnership] Dismissed player {dismissed!r} is not at the crease")
    return None


def fill_vacant_slot(innings: Innings, name: str) -> str:
    current = innings.current_partnership
    if not current.striker:
        current.striker = name
        return "striker"
    if not current.non_striker:
        current.non_striker = name
        return "non_striker"
    raise RuleViolation("No wicket waiting for a new batsman")
