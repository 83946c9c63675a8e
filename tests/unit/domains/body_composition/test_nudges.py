"""Tests for the NudgeGenerator."""

from __future__ import annotations

from wellscale.domains.body_composition.domain_logic.nudges import NudgeGenerator, NudgeStandard


class TestGenerateNudges:
    def test_all_above_standard_in_order(self):
        nudges = NudgeGenerator().generate_nudges({"weight": 90.4, "bmi": 27.6, "body_fat": 25})
        assert [n.metric for n in nudges] == ["weight", "bmi", "body_fat"]
        assert [n.value for n in nudges] == [90, 28, 25]
        assert [n.unit for n in nudges] == ["kg", "", "%"]

    def test_equal_to_standard_is_not_a_nudge(self):
        assert NudgeGenerator().generate_nudges({"weight": 85, "bmi": 22, "body_fat": 20}) == []

    def test_missing_metrics_are_ignored(self):
        nudges = NudgeGenerator().generate_nudges({"body_fat": 21})
        assert len(nudges) == 1
        assert nudges[0].message == "Your body fat percentage is above the standard value"

    def test_reference_reading_gives_two_nudges(self):
        nudges = NudgeGenerator().generate_nudges({"weight": 90, "bmi": 25, "body_fat": 18})
        assert [n.metric for n in nudges] == ["weight", "bmi"]

    def test_half_values_round_up(self):
        nudges = NudgeGenerator().generate_nudges({"weight": 86.5, "bmi": 22.5})
        assert [n.value for n in nudges] == [87, 23]

    def test_nudge_shape(self):
        nudge = NudgeGenerator().generate_nudges({"weight": 100})[0]
        data = nudge.as_dict()
        assert data["message"] == "Your weight is very high"
        assert data["plan_code"] == "conditionalPlan"
        assert data["action_message"].startswith("Check your Weight,")

    def test_non_numeric_values_are_ignored(self):
        assert NudgeGenerator().generate_nudges({"weight": "heavy", "bmi": None}) == []

    def test_custom_standards(self):
        generator = NudgeGenerator((NudgeStandard("visceral_fat", 12, "%", "High visceral fat", "Visceral Fat"),))
        nudges = generator.generate_nudges({"visceral_fat": 14, "weight": 120})
        assert [n.metric for n in nudges] == ["visceral_fat"]
