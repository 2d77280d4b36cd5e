"""
Tests for match formats and settings read from config.
"""

from engine.format_config import FormatConfig, get_format, resolve_format
from engine.settings import ScoringSettings, normalise_dismissal


class TestFormats:

    def test_registered_formats(self):
        assert get_format("T20").max_bowler_overs == 4
        assert get_format("ODI").overs == 50
        assert get_format("T10").overs == 10

    def test_unknown_format_falls_back_to_t20(self):
        assert get_format("Hundred").name == "T20"
        assert get_format(None).name == "T20"

    def test_matching_overs_keep_registered_format(self):
        assert resolve_format("T10", 10).name == "T10"

    def test_custom_overs(self):
        fmt = resolve_format(None, 6)
        assert fmt.name == "Custom"
        assert fmt.overs == 6
        assert fmt.max_bowler_overs == 2

    def test_custom_phases_cover_innings(self):
        fmt = FormatConfig.custom(15)
        phases = [fmt.get_phase(over) for over in range(15)]
        assert all(phase is not None for phase in phases)
        assert fmt.get_phase(0).name == "Powerplay"
        assert fmt.get_phase(14).name == "Death"
        assert fmt.get_phase(15) is None


class TestScoringSettings:

    def test_defaults(self):
        settings = ScoringSettings.from_config({})
        assert settings.byes_count_against_bowler
        assert settings.auto_complete_on_all_out
        assert not settings.enforce_bowling_quota

    def test_section_overrides(self):
        settings = ScoringSettings.from_config({
            "scoring": {
                "byes_count_against_bowler": False,
                "enforce_bowling_quota": True,
                "bowler_neutral_dismissals": ["Run Out", "Handled Ball"],
            }
        })
        assert not settings.byes_count_against_bowler
        assert settings.enforce_bowling_quota
        assert not settings.credits_bowler("run_out")
        assert not settings.credits_bowler("handled ball")
        assert settings.credits_bowler("caught")

    def test_quoted_flags_are_read_as_words(self):
        settings = ScoringSettings.from_config({
            "scoring": {
                "auto_complete_on_all_out": "false",
                "byes_count_against_bowler": "no",
                "enforce_bowling_quota": "yes",
            }
        })
        assert not settings.auto_complete_on_all_out
        assert not settings.byes_count_against_bowler
        assert settings.enforce_bowling_quota

    def test_normalise_dismissal(self):
        assert normalise_dismissal("Run-Out") == "runout"
        assert normalise_dismissal(None) == ""
