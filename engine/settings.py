"""Scoring policy switches read from the ``scoring`` section of config.yaml."""

from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_BOWLER_NEUTRAL_DISMISSALS = (
    "runout",
    "obstructingthefield",
    "retired",
    "retiredhurt",
)


def _as_bool(value, default: bool) -> bool:
    """Quoted YAML values such as "false" arrive as strings."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "on"}
    return bool(value)


def normalise_dismissal(kind: Optional[str]) -> str:
    """'Run Out', 'run_out' and 'run-out' all normalise to 'runout'."""
    if not kind:
        return ""
    return "".join(ch for ch in str(kind).lower() if ch.isalnum())


@dataclass(frozen=True)
class ScoringSettings:
    # Byes and leg-byes are charged to the bowler unless switched off.
    byes_count_against_bowler: bool = True
    auto_complete_on_all_out: bool = True
    enforce_bowling_quota: bool = False
    bowler_neutral_dismissals: Tuple[str, ...] = field(
        default=DEFAULT_BOWLER_NEUTRAL_DISMISSALS
    )

    def credits_bowler(self, kind: Optional[str]) -> bool:
        return normalise_dismissal(kind) not in self.bowler_neutral_dismissals

    @classmethod
    def from_config(cls, config: Optional[dict]) -> "ScoringSettings":
        section = (config or {}).get("scoring") or {}
        neutral = section.get("bowler_neutral_dismissals")
        if neutral:
            neutral = tuple(normalise_dismissal(k) for k in neutral)
        else:
            neutral = DEFAULT_BOWLER_NEUTRAL_DISMISSALS
        return cls(
            byes_count_against_bowler=_as_bool(section.get("byes_count_against_bowler"), True),
            auto_complete_on_all_out=_as_bool(section.get("auto_complete_on_all_out"), True),
            enforce_bowling_quota=_as_bool(section.get("enforce_bowling_quota"), False),
            bowler_neutral_dismissals=neutral,
        )
