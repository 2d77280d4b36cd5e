"""
engine/innings_manager.py
=========================

Innings lifecycle: not_started -> active -> completed, and the match-level
consequences of an innings completing.

First innings complete  -> second innings gets the other team (if unset) and
                           becomes the current innings.
Second innings complete -> match is completed and its result is computed.

Completion happens when the overs limit is reached, on all out (if
``scoring.auto_complete_on_all_out``), or through the manual end-innings
operation.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from engine.errors import InvalidState
from engine.models import INNINGS_ACTIVE, INNINGS_COMPLETED, Innings
from engine.result import calculate_result
from engine.settings import ScoringSettings

logger = logging.getLogger(__name__)

MATCH_NOT_STARTED = "not_started"
MATCH_IN_PROGRESS = "in_progress"
MATCH_COMPLETED = "completed"

REASON_OVERS = "overs_completed"
REASON_ALL_OUT = "all_out"


def _now():
    return datetime.now(timezone.utc).isoformat()


def activate(match, innings: Innings) -> None:
    innings.status = INNINGS_ACTIVE
    if match.status == MATCH_NOT_STARTED:
        match.status = MATCH_IN_PROGRESS
        match.started_at = _now()
        logger.info(f"[Innings] Match {match.match_id} started")


def completion_reason(innings: Innings, settings: ScoringSettings) -> Optional[str]:
    """Why this innings is over after the latest ball, or None if it is not."""
    if innings.legal_deliveries >= innings.overs_limit * 6:
        return REASON_OVERS
    if settings.auto_complete_on_all_out and innings.wickets >= innings.wickets_limit:
        return REASON_ALL_OUT
    return None


def ensure_can_end(match) -> Innings:
    if match.status == MATCH_COMPLETED:
        raise InvalidState("Match already completed")
    innings = match.current_innings
    if innings.completed:
        raise InvalidState("Innings already completed")
    return innings


def complete_innings(match, reason: str) -> Innings:
    """
    Close the current innings and advance the match.

    Callers check ensure_can_end() first; this never runs twice for the
    same innings.
    """
    innings = match.current_innings
    innings.status = INNINGS_COMPLETED
    innings.end_reason = reason
    index = match.current_innings_index
    logger.info(
        f"[Innings] Innings {index + 1} of {match.match_id} ended ({reason}): "
        f"{innings.total_runs}/{innings.wickets}"
    )

    if index == 0:
        second = match.innings[1]
        if not second.team_name:
            second.team_name = match.other_team(innings.team_name)
        match.current_innings_index = 1
        return innings

    finalise(match)
    return innings


def finalise(match) -> None:
    first, second = match.innings
    match.result = calculate_result(
        first.team_name, first.total_runs, second.team_name, second.total_runs
    )
    match.status = MATCH_COMPLETED
    match.ended_at = _now()
    logger.info(f"[Innings] Match {match.match_id} completed: {match.result.summary}")
