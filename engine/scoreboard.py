"""
engine/scoreboard.py
====================

Read-only projections of a match: overs strings, run rates, economy, strike
rates and the required rate.  Nothing here mutates the match; every value is
derived from the innings ledgers on each call.
"""

from typing import Optional

from engine.bowler_manager import BowlerManager
from engine.delivery import format_overs
from engine.innings_manager import MATCH_COMPLETED
from engine.models import Innings


def economy(runs: int, balls: int) -> float:
    if balls == 0:
        return 0
    return round(runs * 6 / balls, 2)


def strike_rate(runs: int, balls: int) -> float:
    if balls == 0:
        return 0
    return round(runs * 100 / balls, 2)


def run_rate(innings: Innings) -> float:
    return economy(innings.total_runs, innings.legal_deliveries)


def target(match) -> Optional[int]:
    if match.current_innings_index != 1:
        return None
    return match.innings[0].total_runs + 1


def required_run_rate(match) -> Optional[float]:
    """
    Runs needed per over by the chasing side.

    Only defined while the second innings is the live innings; None once no
    balls remain or nothing more is needed.
    """
    if match.current_innings_index != 1 or match.status == MATCH_COMPLETED:
        return None
    second = match.innings[1]
    if not second.is_active:
        return None
    required = target(match) - second.total_runs
    balls_left = second.balls_remaining
    if balls_left == 0 or required <= 0:
        return None
    return round(required * 6 / balls_left, 2)


def extras_breakdown(innings: Innings) -> dict:
    breakdown = {"wide": 0, "no_ball": 0, "bye": 0, "leg_bye": 0, "penalty": 0}
    for ball in innings.balls:
        breakdown["wide"] += ball.extras.wide
        breakdown["no_ball"] += ball.extras.no_ball
        breakdown["bye"] += ball.extras.bye
        breakdown["leg_bye"] += ball.extras.leg_bye
        breakdown["penalty"] += ball.extras.penalty
    breakdown["total"] = sum(breakdown.values())
    return breakdown


def batting_card(innings: Innings) -> list:
    return [
        {
            "name": b.name,
            "runs": b.runs,
            "balls": b.balls,
            "fours": b.fours,
            "sixes": b.sixes,
            "strike_rate": strike_rate(b.runs, b.balls),
            "is_out": b.is_out,
            "dismissal": b.dismissal,
        }
        for b in innings.batsmen.values()
    ]


def bowling_card(innings: Innings) -> list:
    return [
        {
            "name": b.name,
            "overs": format_overs(b.balls),
            "balls": b.balls,
            "maidens": b.maidens,
            "runs": b.runs,
            "wickets": b.wickets,
            "wides": b.wides,
            "no_balls": b.no_balls,
            "economy": economy(b.runs, b.balls),
        }
        for b in innings.bowlers.values()
    ]


def innings_summary(innings: Innings, number: int) -> dict:
    return {
        "index": number,
        "team": innings.team_name,
        "score": f"{innings.total_runs}/{innings.wickets}",
        "total_runs": innings.total_runs,
        "wickets": innings.wickets,
        "overs": format_overs(innings.legal_deliveries),
        "overs_limit": innings.overs_limit,
        "legal_deliveries": innings.legal_deliveries,
        "run_rate": run_rate(innings),
        "status": innings.status,
        "completed": innings.completed,
        "end_reason": innings.end_reason,
    }


def _partnership_view(innings: Innings) -> dict:
    current = innings.current_partnership
    return {"striker": current.striker, "non_striker": current.non_striker, "runs": current.runs}


def build_scoreboard(match) -> dict:
    """Live view: the current innings in full, the other as a summary line."""
    idx = match.current_innings_index
    innings = match.innings[idx]
    other = match.innings[1 - idx]
    manager = BowlerManager(innings, match.fmt, match.settings)

    live = innings_summary(innings, idx + 1)
    live.update({
        "current_partnership": _partnership_view(innings),
        "batsmen": batting_card(innings),
        "bowlers": bowling_card(innings),
        "bowling_quota": manager.quota_summary(),
        "last_over_bowler": innings.last_over_bowler,
        "extras": extras_breakdown(innings),
        "phase": _phase_name(match, innings),
    })
    return {
        "match_id": match.match_id,
        "status": match.status,
        "current_innings_index": idx,
        "innings": live,
        "other_innings": innings_summary(other, 2 - idx),
        "target": target(match),
        "required_rate": required_run_rate(match),
        "result": match.result.to_dict(),
    }


def build_match_details(match) -> dict:
    """Full record: every innings with cards, fall of wickets and ball log."""
    scoreboard = []
    for idx, innings in enumerate(match.innings):
        view = innings_summary(innings, idx + 1)
        view.update({
            "batsmen": batting_card(innings),
            "bowlers": bowling_card(innings),
            "extras": extras_breakdown(innings),
            "fall_of_wickets": [
                {
                    "wicket_number": f.wicket_number,
                    "batsman": f.batsman,
                    "score_at_fall": f.score_at_fall,
                    "over": f.over,
                }
                for f in innings.fall_of_wickets
            ],
            "partnerships": dict(innings.partnerships),
            "current_partnership": _partnership_view(innings),
            "balls": [b.to_dict() for b in innings.balls],
        })
        scoreboard.append(view)

    return {
        "match_id": match.match_id,
        "room_id": match.room_id,
        "match_type": match.fmt.name,
        "status": match.status,
        "result": match.result.to_dict(),
        "toss": {"winner": match.toss_winner, "choice": match.toss_choice},
        "teams": match.team_list(),
        "overs_limit": match.overs_limit,
        "revised_target": match.revised_target,
        "current_innings": match.current_innings_index + 1,
        "required_rate": required_run_rate(match),
        "scoreboard": scoreboard,
        "created_at": match.created_at,
        "started_at": match.started_at,
        "ended_at": match.ended_at,
    }


def _phase_name(match, innings: Innings) -> Optional[str]:
    if innings.completed:
        return None
    phase = match.fmt.get_phase(innings.legal_deliveries // 6)
    return phase.name if phase else None
