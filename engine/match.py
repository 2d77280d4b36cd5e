"""
engine/match.py
===============

The Match aggregate: owns both innings and applies every scoring operation
to them.

Each operation validates everything it needs before touching state, so a
rejected call (NotFound / InvalidState / RuleViolation / ValidationError)
leaves the match exactly as it was.  Serialising writers is the caller's job
(see engine/match_service.py).
"""

import logging
import uuid
from datetime import datetime, timezone

from engine.bowler_manager import BowlerManager
from engine.delivery import classify_delivery
from engine.errors import InvalidState, RuleViolation, ValidationError
from engine.format_config import FORMAT_REGISTRY, resolve_format
from engine.innings_manager import (
    MATCH_COMPLETED,
    MATCH_IN_PROGRESS,
    MATCH_NOT_STARTED,
    activate,
    complete_innings,
    completion_reason,
    ensure_can_end,
)
from engine.ledger import ensure_batsman, ensure_bowler, record_delivery
from engine.models import (
    EXTRAS_FIELDS,
    INNINGS_COMPLETED,
    Ball,
    CurrentPartnership,
    Extras,
    Innings,
    Result,
)
from engine.partnership import add_runs, fill_vacant_slot
from engine.result import no_result
from engine.settings import ScoringSettings
from engine.wicket import resolve_wicket

logger = logging.getLogger(__name__)

TOSS_CHOICES = {"bat", "bowl"}

# camelCase keys sent by older clients
_BALL_ALIASES = {
    "isWicket": "is_wicket",
    "wicketType": "wicket_type",
    "wicketPlayer": "wicket_player",
    "wicketBy": "wicket_by",
}
_EXTRAS_ALIASES = {"noBall": "no_ball", "legBye": "leg_bye"}


def _now():
    return datetime.now(timezone.utc).isoformat()


def _require_name(value, field_name):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required", field=field_name)
    return value.strip()


def _optional_name(value, field_name):
    if value is None or value == "":
        return None
    return _require_name(value, field_name)


def _count(value, field_name):
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number", field=field_name)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number", field=field_name)
    if number != value and not (isinstance(value, str) and value.strip().lstrip("-").isdigit()):
        raise ValidationError(f"{field_name} must be a whole number", field=field_name)
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return number


def _flag(value):
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "on"}
    return bool(value)


def parse_ball_input(payload) -> dict:
    """
    Normalise and validate a ball submission.

    Expected shape:
        {
          "bowler": "X",
          "runs": 1,                                   # off the bat
          "extras": {"wide": 0, "no_ball": 0, "bye": 0, "leg_bye": 0, "penalty": 0},
          "is_wicket": false,
          "wicket_type": "caught",
          "wicket_player": "A",
          "wicket_by": "F",
          "commentary": ""
        }
    """
    if not isinstance(payload, dict):
        raise ValidationError("Ball payload must be a JSON object")
    data = {_BALL_ALIASES.get(k, k): v for k, v in payload.items()}

    raw_extras = data.get("extras") or {}
    if not isinstance(raw_extras, dict):
        raise ValidationError("extras must be an object", field="extras")
    raw_extras = {_EXTRAS_ALIASES.get(k, k): v for k, v in raw_extras.items()}
    unknown = sorted(set(raw_extras) - set(EXTRAS_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown extras: {', '.join(unknown)}", field="extras")

    commentary = data.get("commentary") or ""
    if not isinstance(commentary, str):
        raise ValidationError("commentary must be text", field="commentary")

    is_wicket = _flag(data.get("is_wicket", False))
    return {
        "bowler": _require_name(data.get("bowler"), "bowler"),
        "runs": _count(data.get("runs", 0), "runs"),
        "extras": Extras(**{k: _count(raw_extras.get(k, 0), k) for k in EXTRAS_FIELDS}),
        "is_wicket": is_wicket,
        "wicket_type": _optional_name(data.get("wicket_type"), "wicket_type") if is_wicket else None,
        "wicket_player": _optional_name(data.get("wicket_player"), "wicket_player") if is_wicket else None,
        "wicket_by": _optional_name(data.get("wicket_by"), "wicket_by") if is_wicket else None,
        "commentary": commentary,
    }


def _parse_teams(raw):
    if not isinstance(raw, (list, tuple)) or len(raw) != 2:
        raise ValidationError("Exactly two teams are required", field="teams")
    ids, names = [], {}
    for entry in raw:
        if isinstance(entry, dict):
            team_id = _require_name(entry.get("id"), "teams.id")
            names[team_id] = _optional_name(entry.get("name"), "teams.name") or team_id
        else:
            team_id = _require_name(entry, "teams")
            names[team_id] = team_id
        ids.append(team_id)
    if ids[0] == ids[1]:
        raise ValidationError("Please select two different teams", field="teams")
    return ids, names


class Match:
    """
    One fixture: two innings, a toss, a lifecycle status and a result.

    Build new matches with Match.create(context); rebuild stored ones with
    Match.from_dict(data).
    """

    def __init__(self, match_id, teams, team_names, toss_winner, toss_choice,
                 match_type=None, overs_limit=None, wickets_limit=10,
                 room_id=None, created_by=None, umpire=None, settings=None):
        self.match_id = match_id
        self.teams = list(teams)
        self.team_names = dict(team_names)
        self.toss_winner = toss_winner
        self.toss_choice = toss_choice
        self.fmt = resolve_format(match_type, overs_limit)
        self.overs_limit = self.fmt.overs
        self.wickets_limit = wickets_limit
        self.room_id = room_id
        self.created_by = created_by
        self.umpire = umpire
        self.settings = settings or ScoringSettings()

        self.innings = [
            Innings(team_name=self.batting_first(), overs_limit=self.overs_limit,
                    wickets_limit=wickets_limit),
            Innings(team_name=None, overs_limit=self.overs_limit,
                    wickets_limit=wickets_limit),
        ]
        self.current_innings_index = 0
        self.status = MATCH_NOT_STARTED
        self.result = Result()
        self.revised_target = None       # DLS revision is not implemented
        self.created_at = _now()
        self.started_at = None
        self.ended_at = None

    # ------------------------------------------------------------------ #
    # Construction                                                         #
    # ------------------------------------------------------------------ #

    @classmethod
    def create(cls, context, settings=None, match_id=None):
        """
        Build a match from the finalized room/toss context.

        context keys: teams, toss_winner, toss_choice, and either overs or
        match_type; optional wickets_limit, room_id, created_by, umpire.
        """
        if not isinstance(context, dict):
            raise ValidationError("Match context must be a JSON object")
        teams, names = _parse_teams(context.get("teams"))

        toss_winner = _require_name(context.get("toss_winner"), "toss_winner")
        if toss_winner not in teams:
            raise ValidationError("toss_winner must be one of the teams", field="toss_winner")
        toss_choice = _require_name(context.get("toss_choice"), "toss_choice").lower()
        if toss_choice not in TOSS_CHOICES:
            raise ValidationError("toss_choice must be bat or bowl", field="toss_choice")

        overs = context.get("overs")
        if overs is not None:
            overs = _count(overs, "overs")
            if overs == 0:
                raise ValidationError("overs must be at least 1", field="overs")
        wickets_limit = _count(context.get("wickets_limit", 10), "wickets_limit")
        if wickets_limit == 0:
            raise ValidationError("wickets_limit must be at least 1", field="wickets_limit")
        match_type = _optional_name(context.get("match_type"), "match_type")
        if match_type is not None and match_type not in FORMAT_REGISTRY:
            raise ValidationError(
                f"match_type must be one of {', '.join(FORMAT_REGISTRY)}", field="match_type"
            )

        match = cls(
            match_id=match_id or str(uuid.uuid4()),
            teams=teams,
            team_names=names,
            toss_winner=toss_winner,
            toss_choice=toss_choice,
            match_type=match_type,
            overs_limit=overs,
            wickets_limit=wickets_limit,
            room_id=_optional_name(context.get("room_id"), "room_id"),
            created_by=_optional_name(context.get("created_by"), "created_by"),
            umpire=_optional_name(context.get("umpire"), "umpire"),
            settings=settings,
        )
        logger.info(
            f"[Match] Created {match.match_id}: {match.fmt.name} {match.overs_limit} overs, "
            f"{toss_winner} won the toss and chose to {toss_choice}"
        )
        return match

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    @property
    def current_innings(self) -> Innings:
        return self.innings[self.current_innings_index]

    def batting_first(self):
        if self.toss_choice == "bat":
            return self.toss_winner
        return self.other_team(self.toss_winner)

    def other_team(self, team):
        return self.teams[1] if team == self.teams[0] else self.teams[0]

    def team_list(self):
        return [{"id": t, "name": self.team_names.get(t, t)} for t in self.teams]

    def is_official(self, user_id) -> bool:
        """Creator or umpire: the people allowed to drive the scoring."""
        if not user_id:
            return False
        return user_id in {self.created_by, self.umpire}

    def bowler_manager(self, innings=None) -> BowlerManager:
        return BowlerManager(innings or self.current_innings, self.fmt, self.settings)

    def _ensure_in_play(self) -> Innings:
        if self.status == MATCH_COMPLETED:
            raise InvalidState("Match already completed")
        innings = self.current_innings
        if innings.completed:
            raise InvalidState("Innings already completed")
        return innings

    # ------------------------------------------------------------------ #
    # Operations                                                           #
    # ------------------------------------------------------------------ #

    def start_innings(self, striker, non_striker, bowler) -> Innings:
        striker = _require_name(striker, "striker")
        non_striker = _require_name(non_striker, "non_striker")
        bowler = _require_name(bowler, "bowler")
        if striker == non_striker:
            raise ValidationError("striker and non_striker must be different players")

        innings = self._ensure_in_play()
        if innings.balls:
            raise InvalidState("Innings already has deliveries recorded")

        innings.current_partnership = CurrentPartnership(striker=striker, non_striker=non_striker)
        ensure_batsman(innings, striker)
        ensure_batsman(innings, non_striker)
        ensure_bowler(innings, bowler)
        activate(self, innings)
        logger.info(
            f"[Innings] {self.match_id} innings {self.current_innings_index + 1}: "
            f"{striker} & {non_striker}, {bowler} to open"
        )
        return innings

    def record_ball(self, ball_input) -> Ball:
        """
        Apply one delivery: classify, ledger, partnership/wicket, strike,
        over completion, innings completion.
        """
        data = parse_ball_input(ball_input)

        if self.status != MATCH_IN_PROGRESS:
            raise InvalidState("Match not in progress")
        innings = self._ensure_in_play()
        if not innings.is_active:
            raise InvalidState("Innings not started")

        partnership = innings.current_partnership
        if not partnership.striker or not partnership.non_striker:
            raise RuleViolation("Both striker and non_striker must be set")

        placement = classify_delivery(innings.legal_deliveries, data["extras"])
        manager = self.bowler_manager(innings)
        manager.check_bowler(data["bowler"], placement)

        # Validation done: nothing below can reject.
        wicket_player = data["wicket_player"]
        if data["is_wicket"] and not wicket_player:
            wicket_player = partnership.striker
        ball = Ball(
            over=placement.over,
            ball_in_over=placement.ball_in_over,
            striker=partnership.striker,
            non_striker=partnership.non_striker,
            bowler=data["bowler"],
            runs=data["runs"],
            extras=data["extras"],
            total_runs=data["runs"] + data["extras"].total,
            is_wicket=data["is_wicket"],
            wicket_type=data["wicket_type"],
            wicket_player=wicket_player,
            wicket_by=data["wicket_by"],
            commentary=data["commentary"],
            timestamp=_now(),
        )

        innings.balls.append(ball)
        innings.total_runs += ball.total_runs
        if placement.is_legal:
            innings.legal_deliveries += 1
        record_delivery(innings, ball, placement, self.settings)
        manager.add_over_runs(ball)

        if ball.is_wicket:
            resolve_wicket(innings, ball, self.settings)
        else:
            add_runs(innings, ball)

        manager.rotate_after_delivery(ball, placement)
        if placement.completes_over:
            manager.record_over_completion(ball.bowler)

        logger.debug(
            f"[RecordBall] {self.match_id} {placement.over}.{placement.ball_in_over} "
            f"{ball.bowler} to {ball.striker}: {ball.total_runs} "
            f"-> {innings.total_runs}/{innings.wickets}"
        )

        reason = completion_reason(innings, self.settings)
        if reason:
            complete_innings(self, reason)
        return ball

    def select_next_batsman(self, name) -> str:
        name = _require_name(name, "name")
        innings = self._ensure_in_play()
        if not innings.is_active:
            raise InvalidState("Innings not started")
        current = innings.current_partnership
        if not current.has_vacancy:
            raise RuleViolation("No wicket waiting for a new batsman")
        if name in (current.striker, current.non_striker):
            raise RuleViolation(f"{name} is already batting")

        ensure_batsman(innings, name)
        slot = fill_vacant_slot(innings, name)
        logger.info(f"[Innings] {self.match_id}: {name} comes in as {slot}")
        return slot

    def validate_next_bowler(self, bowler) -> dict:
        bowler = _require_name(bowler, "bowler")
        if self.status == MATCH_COMPLETED:
            raise InvalidState("Match already completed")
        innings = self.current_innings
        manager = self.bowler_manager(innings)
        manager.validate_next_bowler(bowler)
        return {
            "bowler": bowler,
            "over": innings.legal_deliveries // 6,
            "last_over_bowler": innings.last_over_bowler,
            "overs_remaining": manager.overs_remaining(bowler),
        }

    def end_innings(self, reason=None) -> Innings:
        reason = _optional_name(reason, "reason")
        innings = ensure_can_end(self)
        if not innings.is_active:
            raise InvalidState("Innings not started")
        return complete_innings(self, reason or "finished")

    def abandon(self, reason=None) -> Result:
        reason = _optional_name(reason, "reason")
        if self.status == MATCH_COMPLETED:
            raise InvalidState("Match already completed")
        innings = self.current_innings
        if not innings.completed:
            innings.status = INNINGS_COMPLETED
            innings.end_reason = reason or "abandoned"
        self.result = no_result(reason)
        self.status = MATCH_COMPLETED
        self.ended_at = _now()
        logger.info(f"[Match] {self.match_id} abandoned: {self.result.summary}")
        return self.result

    # ------------------------------------------------------------------ #
    # Persistence                                                          #
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "match_type": self.fmt.name,
            "teams": self.team_list(),
            "toss": {"winner": self.toss_winner, "choice": self.toss_choice},
            "overs_limit": self.overs_limit,
            "wickets_limit": self.wickets_limit,
            "room_id": self.room_id,
            "created_by": self.created_by,
            "umpire": self.umpire,
            "innings": [inn.to_dict() for inn in self.innings],
            "current_innings_index": self.current_innings_index,
            "status": self.status,
            "result": self.result.to_dict(),
            "revised_target": self.revised_target,
            "created_at": self.created_at,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
        }

    @classmethod
    def from_dict(cls, data, settings=None):
        teams, names = _parse_teams(data["teams"])
        match = cls(
            match_id=data["match_id"],
            teams=teams,
            team_names=names,
            toss_winner=data["toss"]["winner"],
            toss_choice=data["toss"]["choice"],
            match_type=data.get("match_type"),
            overs_limit=data.get("overs_limit"),
            wickets_limit=data.get("wickets_limit", 10),
            room_id=data.get("room_id"),
            created_by=data.get("created_by"),
            umpire=data.get("umpire"),
            settings=settings,
        )
        match.innings = [Innings.from_dict(inn) for inn in data["innings"]]
        match.current_innings_index = data.get("current_innings_index", 0)
        match.status = data.get("status", MATCH_NOT_STARTED)
        match.result = Result.from_dict(data.get("result"))
        match.revised_target = data.get("revised_target")
        match.created_at = data.get("created_at")
        match.started_at = data.get("started_at")
        match.ended_at = data.get("ended_at")
        return match
