"""
Tests for dismissals, fall of wickets and the partnership tracker.
"""

import pytest

from conftest import ball
from engine.errors import InvalidState, RuleViolation
from engine.partnership import partnership_key
from engine.settings import ScoringSettings


def wicket(bowler="X", player=None, kind="caught", runs=0, **kwargs):
    payload = ball(bowler, runs, is_wicket=True, wicket_type=kind, **kwargs)
    if player:
        payload["wicket_player"] = player
    return payload


class TestDismissals:

    def test_caught_credits_bowler_and_records_fall(self, live_match):
        live_match.record_ball(ball("X", 3))
        live_match.record_ball(wicket("X", player="B", kind="caught"))
        innings = live_match.current_innings

        assert innings.wickets == 1
        assert innings.bowlers["X"].wickets == 1
        assert innings.batsmen["B"].is_out
        assert innings.batsmen["B"].dismissal == "caught"
        fow = innings.fall_of_wickets[0]
        assert (fow.wicket_number, fow.batsman, fow.score_at_fall, fow.over) == (1, "B", 3, "0.2")

    def test_run_out_non_striker_not_credited(self, live_match):
        live_match.record_ball(wicket("X", player="B", kind="runout"))
        innings = live_match.current_innings

        assert innings.bowlers["X"].wickets == 0
        assert innings.batsmen["B"].is_out
        assert innings.current_partnership.non_striker is None
        assert innings.current_partnership.striker == "A"

    @pytest.mark.parametrize("kind", ["Run Out", "run-out", "retired hurt", "obstructing the field"])
    def test_neutral_kinds_are_normalised(self, live_match, kind):
        live_match.record_ball(wicket("X", player="A", kind=kind))
        assert live_match.current_innings.bowlers["X"].wickets == 0

    def test_neutral_kinds_are_configurable(self, make_match):
        match = make_match(settings=ScoringSettings(bowler_neutral_dismissals=("runout", "caught")))
        match.start_innings("A", "B", "X")
        match.record_ball(wicket("X", player="A", kind="caught"))
        assert match.current_innings.bowlers["X"].wickets == 0

    def test_missing_dismissed_player_defaults_to_striker(self, live_match):
        live_match.record_ball(wicket("X", kind="bowled"))
        innings = live_match.current_innings
        assert innings.batsmen["A"].is_out
        assert innings.current_partnership.striker is None
        assert innings.balls[-1].wicket_player == "A"

    def test_missing_kind_still_credits_bowler(self, live_match):
        live_match.record_ball(ball("X", 0, is_wicket=True))
        innings = live_match.current_innings
        assert innings.bowlers["X"].wickets == 1
        assert innings.batsmen["A"].dismissal == "out"

    def test_run_out_off_a_bye_keeps_the_run(self, live_match):
        live_match.record_ball(wicket("X", player="B", kind="runout", extras={"bye": 1}))
        innings = live_match.current_innings
        assert innings.total_runs == 1
        assert innings.batsmen["A"].runs == 0
        assert innings.fall_of_wickets[0].score_at_fall == 1

    def test_wicket_ball_does_not_rotate_on_odd_runs(self, live_match):
        live_match.record_ball(wicket("X", player="B", kind="runout", runs=1))
        partnership = live_match.current_innings.current_partnership
        assert partnership.striker == "A"
        assert partnership.non_striker is None

    def test_wicket_on_last_ball_moves_vacancy_with_over_swap(self, live_match):
        for _ in range(5):
            live_match.record_ball(ball("X", 0))
        live_match.record_ball(wicket("X", kind="bowled"))
        partnership = live_match.current_innings.current_partnership
        assert partnership.striker == "B"
        assert partnership.non_striker is None

    def test_dismissal_of_unknown_player_leaves_slots(self, live_match):
        live_match.record_ball(ball("X", 2))
        live_match.record_ball(wicket("X", player="Z", kind="caught"))
        innings = live_match.current_innings

        assert innings.wickets == 1
        assert innings.current_partnership.striker == "A"
        assert innings.current_partnership.non_striker == "B"
        assert innings.current_partnership.runs == 0
        assert innings.partnerships[partnership_key("A", "B")] == 2


class TestPartnerships:

    def test_key_ignores_strike(self):
        assert partnership_key("B", "A") == partnership_key("A", "B") == "A___B"

    def test_runs_accumulate_including_extras(self, live_match):
        live_match.record_ball(ball("X", 1))
        live_match.record_ball(ball("X", 0, extras={"wide": 1}))
        live_match.record_ball(ball("X", 4))
        assert live_match.current_innings.current_partnership.runs == 6

    def test_partnership_archived_on_wicket(self, live_match):
        live_match.record_ball(ball("X", 1))
        live_match.record_ball(ball("X", 4))
        live_match.record_ball(wicket("X", player="A", kind="lbw"))
        innings = live_match.current_innings

        assert innings.partnerships == {"A___B": 5}
        assert innings.current_partnership.runs == 0

    def test_partnership_with_new_batsman(self, live_match):
        live_match.record_ball(wicket("X", player="A", kind="bowled"))
        live_match.select_next_batsman("C")
        live_match.record_ball(ball("X", 2))
        live_match.record_ball(wicket("X", player="B", kind="caught"))
        assert live_match.current_innings.partnerships == {"A___B": 0, "B___C": 2}


class TestNextBatsman:

    def test_fills_vacated_striker_slot(self, live_match):
        live_match.record_ball(wicket("X", player="A", kind="bowled"))
        slot = live_match.select_next_batsman("C")

        partnership = live_match.current_innings.current_partnership
        assert slot == "striker"
        assert (partnership.striker, partnership.non_striker) == ("C", "B")
        assert "C" in live_match.current_innings.batsmen

    def test_fills_vacated_non_striker_slot(self, live_match):
        live_match.record_ball(wicket("X", player="B", kind="runout"))
        assert live_match.select_next_batsman("C") == "non_striker"

    def test_rejected_without_a_vacancy(self, live_match):
        with pytest.raises(RuleViolation):
            live_match.select_next_batsman("C")

    def test_second_call_rejected(self, live_match):
        live_match.record_ball(wicket("X", player="A", kind="bowled"))
        live_match.select_next_batsman("C")
        with pytest.raises(RuleViolation):
            live_match.select_next_batsman("D")

    def test_player_already_at_crease_rejected(self, live_match):
        live_match.record_ball(wicket("X", player="A", kind="bowled"))
        with pytest.raises(RuleViolation):
            live_match.select_next_batsman("B")

    def test_ball_rejected_while_slot_vacant(self, live_match):
        live_match.record_ball(wicket("X", player="A", kind="bowled"))
        before = live_match.to_dict()
        with pytest.raises(RuleViolation):
            live_match.record_ball(ball("X", 1))
        assert live_match.to_dict() == before

    def test_rejected_before_innings_starts(self, make_match):
        match = make_match()
        with pytest.raises(InvalidState):
            match.select_next_batsman("C")
