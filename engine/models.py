"""
engine/models.py
================

State records owned by the scoring engine.

A Match owns exactly two Innings; an Innings owns its append-only Ball log
and the ledgers derived from it.  Everything here is plain data: the rules
that mutate it live in the component modules (delivery, ledger, partnership,
wicket, bowler_manager, innings_manager, result).

All records round-trip through ``to_dict`` / ``from_dict`` so a match can be
persisted as one JSON document.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

INNINGS_NOT_STARTED = "not_started"
INNINGS_ACTIVE = "active"
INNINGS_COMPLETED = "completed"

EXTRAS_FIELDS = ("wide", "no_ball", "bye", "leg_bye", "penalty")


@dataclass(frozen=True)
class Extras:
    wide: int = 0
    no_ball: int = 0
    bye: int = 0
    leg_bye: int = 0
    penalty: int = 0

    @property
    def total(self) -> int:
        return self.wide + self.no_ball + self.bye + self.leg_bye + self.penalty

    @property
    def is_illegal(self) -> bool:
        """Wides and no-balls void the delivery; it does not use an over slot."""
        return self.wide > 0 or self.no_ball > 0

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Extras":
        data = data or {}
        return cls(**{k: int(data.get(k, 0) or 0) for k in EXTRAS_FIELDS})


@dataclass(frozen=True)
class Ball:
    """One delivery.  Immutable once appended to an innings' log."""
    over: int
    ball_in_over: int            # 1..6 for legal deliveries, 0 for wides/no-balls
    striker: str
    non_striker: str
    bowler: str
    runs: int                    # off the bat
    extras: Extras
    total_runs: int              # runs + extras.total
    is_wicket: bool = False
    wicket_type: Optional[str] = None
    wicket_player: Optional[str] = None
    wicket_by: Optional[str] = None
    commentary: str = ""
    timestamp: Optional[str] = None

    @property
    def is_legal(self) -> bool:
        return self.ball_in_over > 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Ball":
        data = dict(data)
        data["extras"] = Extras.from_dict(data.get("extras"))
        return cls(**data)


@dataclass
class BatsmanLedgerEntry:
    name: str
    runs: int = 0
    balls: int = 0
    fours: int = 0
    sixes: int = 0
    is_out: bool = False
    dismissal: Optional[str] = None


@dataclass
class BowlerLedgerEntry:
    name: str
    balls: int = 0
    runs: int = 0
    wickets: int = 0
    wides: int = 0
    no_balls: int = 0
    maidens: int = 0


@dataclass
class FallOfWicket:
    wicket_number: int
    batsman: str
    score_at_fall: int
    over: str                    # "<completed overs>.<balls in current over>"


@dataclass
class CurrentPartnership:
    striker: Optional[str] = None
    non_striker: Optional[str] = None
    runs: int = 0

    def swap(self) -> None:
        self.striker, self.non_striker = self.non_striker, self.striker

    @property
    def has_vacancy(self) -> bool:
        return not self.striker or not self.non_striker


@dataclass
class Result:
    winner: Optional[str] = None     # team id, "tie" or "no result"
    summary: Optional[str] = None
    margin_type: Optional[str] = None
    margin_value: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Result":
        return cls(**(data or {}))


@dataclass
class Innings:
    """One team's batting effort."""
    team_name: Optional[str]
    overs_limit: int
    wickets_limit: int = 10
    total_runs: int = 0
    wickets: int = 0
    legal_deliveries: int = 0
    balls: List[Ball] = field(default_factory=list)
    batsmen: Dict[str, BatsmanLedgerEntry] = field(default_factory=dict)
    bowlers: Dict[str, BowlerLedgerEntry] = field(default_factory=dict)
    fall_of_wickets: List[FallOfWicket] = field(default_factory=list)
    partnerships: Dict[str, int] = field(default_factory=dict)
    current_partnership: CurrentPartnership = field(default_factory=CurrentPartnership)
    status: str = INNINGS_NOT_STARTED
    end_reason: Optional[str] = None
    last_over_bowler: Optional[str] = None
    current_over_runs: int = 0

    @property
    def completed(self) -> bool:
        return self.status == INNINGS_COMPLETED

    @property
    def is_active(self) -> bool:
        return self.status == INNINGS_ACTIVE

    @property
    def balls_remaining(self) -> int:
        return max(0, self.overs_limit * 6 - self.legal_deliveries)

    def to_dict(self) -> dict:
        return {
            "team_name": self.team_name,
            "overs_limit": self.overs_limit,
            "wickets_limit": self.wickets_limit,
            "total_runs": self.total_runs,
            "wickets": self.wickets,
            "legal_deliveries": self.legal_deliveries,
            "balls": [b.to_dict() for b in self.balls],
            "batsmen": {k: asdict(v) for k, v in self.batsmen.items()},
            "bowlers": {k: asdict(v) for k, v in self.bowlers.items()},
            "fall_of_wickets": [asdict(f) for f in self.fall_of_wickets],
            "partnerships": dict(self.partnerships),
            "current_partnership": asdict(self.current_partnership),
            "status": self.status,
            "end_reason": self.end_reason,
            "last_over_bowler": self.last_over_bowler,
            "current_over_runs": self.current_over_runs,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Innings":
        return cls(
            team_name=data.get("team_name"),
            overs_limit=data["overs_limit"],
            wickets_limit=data.get("wickets_limit", 10),
            total_runs=data.get("total_runs", 0),
            wickets=data.get("wickets", 0),
            legal_deliveries=data.get("legal_deliveries", 0),
            balls=[Ball.from_dict(b) for b in data.get("balls", [])],
            batsmen={k: BatsmanLedgerEntry(**v) for k, v in data.get("batsmen", {}).items()},
            bowlers={k: BowlerLedgerEntry(**v) for k, v in data.get("bowlers", {}).items()},
            fall_of_wickets=[FallOfWicket(**f) for f in data.get("fall_of_wickets", [])],
            partnerships=dict(data.get("partnerships", {})),
            current_partnership=CurrentPartnership(**data.get("current_partnership", {})),
            status=data.get("status", INNINGS_NOT_STARTED),
            end_reason=data.get("end_reason"),
            last_over_bowler=data.get("last_over_bowler"),
            current_over_runs=data.get("current_over_runs", 0),
        )
