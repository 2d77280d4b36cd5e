"""
Tests for delivery classification and the batting/bowling ledger.
"""

import pytest

from conftest import ball
from engine.delivery import classify_delivery, format_overs
from engine.models import Extras
from engine.settings import ScoringSettings


class TestDeliveryClassifier:

    def test_first_legal_ball(self):
        placement = classify_delivery(0, Extras())
        assert placement.is_legal
        assert (placement.over, placement.ball_in_over) == (0, 1)

    def test_sixth_ball_completes_over(self):
        placement = classify_delivery(5, Extras(bye=1))
        assert placement.is_legal
        assert placement.ball_in_over == 6
        assert placement.completes_over

    def test_wide_keeps_current_over_with_zero_slot(self):
        placement = classify_delivery(6, Extras(wide=1))
        assert not placement.is_legal
        assert (placement.over, placement.ball_in_over) == (1, 0)

    def test_no_ball_is_illegal(self):
        assert not classify_delivery(3, Extras(no_ball=1)).is_legal

    def test_format_overs(self):
        assert format_overs(0) == "0.0"
        assert format_overs(17) == "2.5"
        assert format_overs(18) == "3.0"


class TestLedger:

    def test_boundary_off_the_bat(self, live_match):
        live_match.record_ball(ball("X", 4))
        innings = live_match.current_innings

        assert innings.total_runs == 4
        assert innings.legal_deliveries == 1
        assert innings.current_partnership.striker == "A"
        striker = innings.batsmen["A"]
        assert (striker.runs, striker.balls, striker.fours, striker.sixes) == (4, 1, 1, 0)
        bowler = innings.bowlers["X"]
        assert (bowler.balls, bowler.runs) == (1, 4)

    def test_single_swaps_strike(self, live_match):
        live_match.record_ball(ball("X", 4))
        live_match.record_ball(ball("X", 1))
        partnership = live_match.current_innings.current_partnership
        assert partnership.striker == "B"
        assert partnership.non_striker == "A"

    def test_six_counts_as_six(self, live_match):
        live_match.record_ball(ball("X", 6))
        assert live_match.current_innings.batsmen["A"].sixes == 1

    def test_five_is_not_a_boundary(self, live_match):
        live_match.record_ball(ball("X", 5))
        striker = live_match.current_innings.batsmen["A"]
        assert striker.fours == 0 and striker.sixes == 0

    def test_wide_charged_to_bowler_not_batsman(self, live_match):
        live_match.record_ball(ball("X", 0, extras={"wide": 1}))
        innings = live_match.current_innings

        assert innings.legal_deliveries == 0
        assert innings.total_runs == 1
        assert innings.balls[-1].ball_in_over == 0
        assert innings.batsmen["A"].balls == 0
        bowler = innings.bowlers["X"]
        assert (bowler.wides, bowler.runs, bowler.balls) == (1, 1, 0)

    def test_runs_off_no_ball_credit_batsman_without_ball_faced(self, live_match):
        live_match.record_ball(ball("X", 4, extras={"no_ball": 1}))
        innings = live_match.current_innings

        striker = innings.batsmen["A"]
        assert (striker.runs, striker.balls, striker.fours) == (4, 0, 1)
        bowler = innings.bowlers["X"]
        assert (bowler.no_balls, bowler.runs, bowler.balls) == (1, 5, 0)
        assert innings.balls[-1].total_runs == 5
        assert innings.legal_deliveries == 0

    def test_byes_never_reach_batsman(self, live_match):
        live_match.record_ball(ball("X", 0, extras={"bye": 2}))
        innings = live_match.current_innings

        assert innings.batsmen["A"].runs == 0
        assert innings.batsmen["A"].balls == 1
        assert innings.bowlers["X"].runs == 2

    def test_byes_can_be_excluded_from_bowler(self, make_match):
        match = make_match(settings=ScoringSettings(byes_count_against_bowler=False))
        match.start_innings("A", "B", "X")
        match.record_ball(ball("X", 1, extras={"leg_bye": 0, "bye": 3}))
        assert match.current_innings.bowlers["X"].runs == 1
        assert match.current_innings.total_runs == 4

    def test_leg_bye_single_rotates_strike(self, live_match):
        live_match.record_ball(ball("X", 0, extras={"leg_bye": 1}))
        assert live_match.current_innings.current_partnership.striker == "B"

    def test_new_bowler_entry_created_lazily(self, live_match):
        live_match.record_ball(ball("Guest Bowler", 0))
        assert "Guest Bowler" in live_match.current_innings.bowlers

    def test_camel_case_payload_is_accepted(self, live_match):
        live_match.record_ball({"bowler": "X", "runs": 0, "extras": {"noBall": 1, "legBye": 0}})
        assert live_match.current_innings.bowlers["X"].no_balls == 1

    def test_totals_match_ball_log(self, live_match):
        deliveries = [
            ball("X", 1),
            ball("X", 0, extras={"wide": 1}),
            ball("X", 4, extras={"no_ball": 1}),
            ball("X", 0, extras={"bye": 1}),
            ball("X", 2),
            ball("X", 6),
            ball("X", 0, extras={"penalty": 5}),
        ]
        for payload in deliveries:
            live_match.record_ball(payload)
        innings = live_match.current_innings

        assert innings.total_runs == sum(b.total_runs for b in innings.balls)
        assert innings.legal_deliveries == sum(1 for b in innings.balls if b.ball_in_over > 0)
        assert innings.total_runs == 1 + 1 + 5 + 1 + 2 + 6 + 5


class TestBallValidation:

    @pytest.mark.parametrize("payload", [
        {"bowler": "X", "runs": -1},
        {"bowler": "X", "runs": "two"},
        {"bowler": "X", "runs": 1.5},
        {"bowler": "X", "runs": True},
        {"bowler": "", "runs": 1},
        {"runs": 1},
        {"bowler": "X", "extras": {"wide": -1}},
        {"bowler": "X", "extras": {"overthrow": 1}},
        {"bowler": "X", "extras": [1]},
    ])
    def test_malformed_input_rejected_without_mutation(self, live_match, payload):
        from engine.errors import ValidationError

        before = live_match.to_dict()
        with pytest.raises(ValidationError):
            live_match.record_ball(payload)
        assert live_match.to_dict() == before

    def test_numeric_strings_are_accepted(self, live_match):
        live_match.record_ball({"bowler": "X", "runs": "2"})
        assert live_match.current_innings.total_runs == 2
