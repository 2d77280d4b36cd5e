"""
engine/ledger.py
================

Per-player running figures for one innings.

Entries are created the first time a name is referenced and never removed.
Names are opaque strings (registered usernames or guest names); nothing is
pre-populated from a roster.
"""

import logging

from engine.delivery import DeliveryPlacement
from engine.models import Ball, BatsmanLedgerEntry, BowlerLedgerEntry, Innings
from engine.settings import ScoringSettings

logger = logging.getLogger(__name__)


def ensure_batsman(innings: Innings, name: str) -> BatsmanLedgerEntry:
    entry = innings.batsmen.get(name)
    if entry is None:
        entry = BatsmanLedgerEntry(name=name)
        innings.batsmen[name] = entry
        logger.debug(f"[Ledger] New batting entry: {name}")
    return entry


def ensure_bowler(innings: Innings, name: str) -> BowlerLedgerEntry:
    entry = innings.bowlers.get(name)
    if entry is None:
        entry = BowlerLedgerEntry(name=name)
        innings.bowlers[name] = entry
        logger.debug(f"[Ledger] New bowling entry: {name}")
    return entry


def bowler_runs_for(ball: Ball, settings: ScoringSettings) -> int:
    """Runs charged to the bowler for this ball."""
    if settings.byes_count_against_bowler:
        return ball.total_runs
    return ball.total_runs - ball.extras.bye - ball.extras.leg_bye


def _credit_bat_runs(entry: BatsmanLedgerEntry, runs: int) -> None:
    entry.runs += runs
    if runs == 4:
        entry.fours += 1
    elif runs == 6:
        entry.sixes += 1


def record_delivery(innings: Innings, ball: Ball, placement: DeliveryPlacement,
                    settings: ScoringSettings) -> None:
    """
    Update the bowler's and striker's figures for one delivery.

    - bowler: runs conceded, wides/no-balls, balls bowled on legal deliveries
    - striker: ball faced on legal deliveries; bat runs on legal deliveries
      and on no-balls (a no-ball is never a ball faced)
    - byes and leg-byes are never the batsman's runs
    """
    bowler = ensure_bowler(innings, ball.bowler)
    bowler.runs += bowler_runs_for(ball, settings)
    bowler.wides += ball.extras.wide
    bowler.no_balls += ball.extras.no_ball

    if placement.is_legal:
        bowler.balls += 1
        striker = ensure_batsman(innings, ball.striker)
        striker.balls += 1
        _credit_bat_runs(striker, ball.runs)
    elif ball.extras.no_ball > 0 and ball.runs > 0:
        _credit_bat_runs(ensure_batsman(innings, ball.striker), ball.runs)
