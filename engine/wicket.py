"""Dismissal handling: wicket count, bowler credit, fall of wicket."""

import logging

from engine.delivery import format_overs
from engine.ledger import ensure_batsman, ensure_bowler
from engine.models import Ball, FallOfWicket, Innings
from engine.partnership import close_partnership
from engine.settings import ScoringSettings

logger = logging.getLogger(__name__)

DEFAULT_DISMISSAL = "out"


def resolve_wicket(innings: Innings, ball: Ball, settings: ScoringSettings) -> FallOfWicket:
    """
    Apply a wicket ball that has already been appended and ledgered.

    Score and over position in the fall-of-wicket record therefore include
    this delivery.
    """
    innings.wickets += 1
    kind = ball.wicket_type or DEFAULT_DISMISSAL

    if settings.credits_bowler(kind):
        ensure_bowler(innings, ball.bowler).wickets += 1
    else:
        logger.info(f"[Wicket] {kind} is not credited to {ball.bowler}")

    batsman = ensure_batsman(innings, ball.wicket_player)
    batsman.is_out = True
    batsman.dismissal = kind

    fow = FallOfWicket(
        wicket_number=innings.wickets,
        batsman=ball.wicket_player,
        score_at_fall=innings.total_runs,
        over=format_overs(innings.legal_deliveries),
    )
    innings.fall_of_wickets.append(fow)
    close_partnership(innings, ball.wicket_player)
    logger.info(
        f"[Wicket] {ball.wicket_player} {kind} at {fow.score_at_fall}/{innings.wickets} ({fow.over})"
    )
    return fow
