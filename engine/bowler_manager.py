"""
engine/bowler_manager.py
========================

Strike rotation and over control for one innings.

Rules enforced
--------------
1. No-consecutive: the bowler who bowled the last legal ball of over K may
                    not bowl a legal ball in over K+1.
2. Bowling quota:  a bowler may not exceed format_config.max_bowler_overs
                    per innings (only when scoring.enforce_bowling_quota).
3. Strike:         odd runs (bat + byes + leg-byes) on a non-wicket legal
                    ball swap the batsmen; completing an over swaps them
                    again.  The two swaps compose.

The bowler of the previous over is kept on the innings itself
(``innings.last_over_bowler``) and refreshed each time an over completes,
so the consecutive-over check never rescans the ball log.

Usage (in match.py)
-------------------
    manager = BowlerManager(innings, self.fmt, self.settings)

    # Before any mutation
    manager.check_bowler(bowler_name, placement)

    # After the ball is appended and ledgered
    manager.rotate_after_delivery(ball, placement)
    if placement.completes_over:
        manager.record_over_completion(ball.bowler)

    # Standalone pre-check, no mutation
    manager.validate_next_bowler(bowler_name)
"""

import logging
from typing import Dict

from engine.delivery import DeliveryPlacement
from engine.errors import InvalidState, RuleViolation
from engine.format_config import BALLS_PER_OVER, FormatConfig
from engine.ledger import bowler_runs_for
from engine.models import Ball, Innings
from engine.settings import ScoringSettings

logger = logging.getLogger(__name__)


class BowlerManager:
    """
    Applies bowling constraints and strike rotation to one innings.

    Parameters
    ----------
    innings        : the Innings being bowled.
    format_config  : FormatConfig for the current match format.
    settings       : ScoringSettings (quota enforcement switch).
    """

    def __init__(self, innings: Innings, format_config: FormatConfig,
                 settings: ScoringSettings):
        self.innings = innings
        self.fmt = format_config
        self.settings = settings

    # ------------------------------------------------------------------ #
    # Public query interface                                               #
    # ------------------------------------------------------------------ #

    def is_consecutive(self, bowler_name: str, over: int) -> bool:
        """True if bowling `over` would be this bowler's second over in a row."""
        return over > 0 and bowler_name == self.innings.last_over_bowler

    def overs_bowled(self, bowler_name: str) -> str:
        entry = self.innings.bowlers.get(bowler_name)
        balls = entry.balls if entry else 0
        return f"{balls // BALLS_PER_OVER}.{balls % BALLS_PER_OVER}"

    def overs_remaining(self, bowler_name: str) -> int:
        """Whole overs this bowler can still start in the current innings."""
        entry = self.innings.bowlers.get(bowler_name)
        balls = entry.balls if entry else 0
        return max(0, self.fmt.max_bowler_overs - (balls + BALLS_PER_OVER - 1) // BALLS_PER_OVER)

    def at_quota(self, bowler_name: str) -> bool:
        entry = self.innings.bowlers.get(bowler_name)
        balls = entry.balls if entry else 0
        return balls >= self.fmt.max_bowler_overs * BALLS_PER_OVER

    def quota_summary(self) -> Dict[str, Dict]:
        """
        Returns {bowler_name: {overs, remaining, at_quota}} for every bowler
        who has a ledger entry.  Used by the scoreboard.
        """
        return {
            name: {
                "overs": self.overs_bowled(name),
                "remaining": self.overs_remaining(name),
                "at_quota": self.at_quota(name),
            }
            for name in self.innings.bowlers
        }

    # ------------------------------------------------------------------ #
    # Validation                                                           #
    # ------------------------------------------------------------------ #

    def _check_constraints(self, bowler_name: str, over: int) -> None:
        if self.is_consecutive(bowler_name, over):
            logger.info(
                f"[BowlerManager] Rejected {bowler_name} for over {over + 1}: bowled over {over}"
            )
            raise RuleViolation(
                "Bowler cannot bowl consecutive overs",
                bowler=bowler_name,
                over=over,
            )
        if self.settings.enforce_bowling_quota and self.at_quota(bowler_name):
            raise RuleViolation(
                f"Bowler has used the full quota of {self.fmt.max_bowler_overs} overs",
                bowler=bowler_name,
            )

    def check_bowler(self, bowler_name: str, placement: DeliveryPlacement) -> None:
        """Inline check made while recording a ball.  Illegal balls are exempt."""
        if placement.is_legal:
            self._check_constraints(bowler_name, placement.over)

    def validate_next_bowler(self, bowler_name: str) -> None:
        """
        Confirm a bowler choice for the next over without recording anything.

        Shares its predicate with check_bowler, so a bowler accepted here is
        accepted for the first ball of the over and vice versa.
        """
        if self.innings.completed:
            raise InvalidState("Innings already completed")
        legal = self.innings.legal_deliveries
        if legal % BALLS_PER_OVER != 0:
            raise RuleViolation(
                "Over not completed yet",
                balls_in_over=legal % BALLS_PER_OVER,
            )
        self._check_constraints(bowler_name, legal // BALLS_PER_OVER)

    # ------------------------------------------------------------------ #
    # State mutation                                                       #
    # ------------------------------------------------------------------ #

    def rotate_after_delivery(self, ball: Ball, placement: DeliveryPlacement) -> None:
        partnership = self.innings.current_partnership
        if placement.is_legal and not ball.is_wicket:
            ran = ball.runs + ball.extras.bye + ball.extras.leg_bye
            if ran % 2 == 1:
                partnership.swap()
        if placement.completes_over:
            partnership.swap()

    def add_over_runs(self, ball: Ball) -> None:
        self.innings.current_over_runs += bowler_runs_for(ball, self.settings)

    def record_over_completion(self, bowler_name: str) -> None:
        """
        Call this when a legal delivery completes an over.

        Updates:
        - last_over_bowler (for consecutive-over enforcement)
        - maidens for the bowler who completed the over
        - resets the running over tally
        """
        if self.innings.current_over_runs == 0:
            entry = self.innings.bowlers.get(bowler_name)
            if entry is not None:
                entry.maidens += 1
        self.innings.last_over_bowler = bowler_name
        self.innings.current_over_runs = 0
        logger.debug(
            f"[BowlerManager] {bowler_name} completed over "
            f"{self.innings.legal_deliveries // BALLS_PER_OVER}"
        )
