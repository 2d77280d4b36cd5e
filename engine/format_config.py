"""
engine/format_config.py
=======================

Single source of truth for the limited-overs formats a match can be created
with.

Every engine component that needs a format-sensitive value (overs per
innings, bowling quota, phase of play) reads it from a FormatConfig instance
rather than hardcoding T20 constants.  Adding a new format requires only a
new entry in FORMAT_REGISTRY.

Usage
-----
    from engine.format_config import get_format, FormatConfig

    fmt = get_format(context.get("match_type"))
    fmt.overs            # 20, 50, 10
    fmt.max_bowler_overs # 4, 10, 2
    fmt.get_phase(over)  # Phase object

    fmt = FormatConfig.custom(8)   # room agreed on an 8-over game
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

BALLS_PER_OVER = 6


# ---------------------------------------------------------------------------
# Phase descriptor
# ---------------------------------------------------------------------------

@dataclass
class Phase:
    """Describes one phase of an innings (powerplay, middle, death)."""
    name: str
    start: int               # first over index (0-based, inclusive)
    end: int                 # last over index (0-based, inclusive)


# ---------------------------------------------------------------------------
# FormatConfig
# ---------------------------------------------------------------------------

@dataclass
class FormatConfig:
    """
    Complete parameterisation of a limited-overs format.

    Attributes
    ----------
    name             : canonical format name ("T20", "ListA", "T10", "Custom")
    overs            : overs per innings
    max_bowler_overs : bowling quota per bowler per innings
    powerplay_phases : ordered list of Powerplay Phase objects
    middle_phase     : the consolidation/middle Phase (may be empty)
    death_phase      : the final/slog Phase
    """
    name: str
    overs: int
    max_bowler_overs: int
    powerplay_phases: List[Phase] = field(default_factory=list)
    middle_phase: Optional[Phase] = None
    death_phase: Optional[Phase] = None

    @classmethod
    def custom(cls, overs: int) -> "FormatConfig":
        """
        Build a format for an arbitrary overs limit agreed in the room.

        The quota follows the usual fifth-of-the-innings convention and
        phases are derived proportionally (first 30% powerplay, last 20%
        death).
        """
        overs = int(overs)
        powerplay_end = max(0, int(round(overs * 0.3)) - 1)
        death_start = max(powerplay_end + 1, overs - max(1, int(round(overs * 0.2))))
        return cls(
            name="Custom",
            overs=overs,
            max_bowler_overs=max(1, -(-overs // 5)),
            powerplay_phases=[Phase("Powerplay", start=0, end=powerplay_end)],
            middle_phase=Phase("Middle", start=powerplay_end + 1, end=death_start - 1),
            death_phase=Phase("Death", start=death_start, end=overs - 1),
        )

    # ------------------------------------------------------------------ #
    # Phase helpers                                                        #
    # ------------------------------------------------------------------ #

    def get_phase(self, over: int) -> Optional[Phase]:
        """
        Return the Phase that contains the given over index.

        Checks powerplay phases first (in order), then death, then middle.
        Returns None past the end of the innings.
        """
        for pp in self.powerplay_phases:
            if pp.start <= over <= pp.end:
                return pp
        if self.death_phase and self.death_phase.start <= over <= self.death_phase.end:
            return self.death_phase
        if self.middle_phase and self.middle_phase.start <= over <= self.middle_phase.end:
            return self.middle_phase
        return None


# ---------------------------------------------------------------------------
# Registered formats
# ---------------------------------------------------------------------------

_T20 = FormatConfig(
    name="T20",
    overs=20,
    max_bowler_overs=4,
    powerplay_phases=[Phase("Powerplay", start=0, end=5)],
    middle_phase=Phase("Middle", start=6, end=15),
    death_phase=Phase("Death", start=16, end=19),
)

_LISTA = FormatConfig(
    name="ListA",
    overs=50,
    max_bowler_overs=10,
    powerplay_phases=[Phase("PP1", start=0, end=9)],
    middle_phase=Phase("Middle", start=10, end=39),
    death_phase=Phase("Death", start=40, end=49),
)

_T10 = FormatConfig(
    name="T10",
    overs=10,
    max_bowler_overs=2,
    powerplay_phases=[Phase("Powerplay", start=0, end=1)],
    middle_phase=Phase("Middle", start=2, end=6),
    death_phase=Phase("Death", start=7, end=9),
)


# ---------------------------------------------------------------------------
# Public registry: look up by match_type string
# ---------------------------------------------------------------------------

FORMAT_REGISTRY: Dict[str, FormatConfig] = {
    "T20":   _T20,
    "ListA": _LISTA,
    "ODI":   _LISTA,
    "T10":   _T10,
}


def get_format(match_type: Optional[str]) -> FormatConfig:
    """
    Return the FormatConfig for the given match_type string.
    Defaults to T20 for None or unrecognised values.
    """
    return FORMAT_REGISTRY.get(match_type or "T20", FORMAT_REGISTRY["T20"])


def resolve_format(match_type: Optional[str], overs: Optional[int] = None) -> FormatConfig:
    """
    Resolve the format for a new match.

    An explicit overs limit wins over the registered format's default unless
    the two agree, in which case the registered format is kept as-is.
    """
    fmt = get_format(match_type)
    if overs is None or int(overs) == fmt.overs:
        return fmt
    return FormatConfig.custom(int(overs))
