"""Tests for the smart scale dashboard and daily weight readings."""

from __future__ import annotations

import math
from datetime import datetime, timedelta

import pytest

from wellscale.domains.body_composition.domain_logic.nudges import NudgeGenerator
from wellscale.domains.body_composition.domain_logic.risk_engine import RiskScoreEngine
from wellscale.domains.body_composition.domain_logic.scale_dashboard import ScaleDashboard


@pytest.fixture
def dashboard() -> ScaleDashboard:
    return ScaleDashboard(RiskScoreEngine(), NudgeGenerator())


@pytest.fixture
def week_of_readings(make_reading):
    start = datetime(2026, 3, 8, 7, 30)
    return [
        make_reading(
            start + timedelta(days=day),
            weight=80.0 + day,
            bmi=24.0,
            body_fat=18.4,
            muscle_mass=55.2,
            right_arm_fat_kg=1.2,
            trunk_muscle_mass_kg=27.6,
        )
        for day in range(7)
    ]


class TestBuildDashboard:
    def test_no_readings(self, dashboard):
        assert dashboard.build_dashboard([], gender="male", height=168) is None

    def test_graph_covers_last_five_readings(self, dashboard, week_of_readings):
        page = dashboard.build_dashboard(week_of_readings, gender="male", height=168)
        weight = next(g for g in page["graph_data"] if g["key"] == "weight")
        assert weight["unit"] == "kg"
        assert weight["y_axis"] == [82, 83, 84, 85, 86]
        assert weight["x_axis"] == [r["timestamp"] for r in week_of_readings[2:]]
        assert "timestamp" not in {g["key"] for g in page["graph_data"]}

    def test_missing_values_plot_as_none(self, dashboard, make_reading):
        readings = [
            make_reading(datetime(2026, 3, 1, 8), weight=80.0),
            make_reading(datetime(2026, 3, 2, 8), weight=80.5, bmi=24.6),
        ]
        page = dashboard.build_dashboard(readings, gender="male", height=168)
        bmi = next(g for g in page["graph_data"] if g["key"] == "bmi")
        assert bmi["y_axis"] == [None, 25]

    def test_widgets(self, dashboard, week_of_readings):
        widgets = dashboard.build_dashboard(week_of_readings, gender="male", height=168)["widgets"]
        assert set(widgets) == {"weight", "fat", "muscle", "efficiency"}

        fat = {w["value_heading"]: w for w in widgets["fat"]}
        assert fat["right_arm_fat"] == {"value_heading": "right_arm_fat", "value": 1, "unit": "kg"}
        assert fat["body_fat"]["value"] == 18
        assert fat["visceral_fat"]["value"] is None

        muscle = {w["value_heading"]: w for w in widgets["muscle"]}
        assert muscle["trunk_muscle_mass"]["value"] == 28

        assert widgets["weight"][-1] == {"value_heading": "standard_weight", "value": 75, "unit": "kg"}

    def test_health_score_widget(self, dashboard, week_of_readings):
        efficiency = dashboard.build_dashboard(week_of_readings, gender="male", height=168)["widgets"]["efficiency"]
        health = efficiency[-1]
        expected = RiskScoreEngine().calculate_risk_for_reading(
            week_of_readings[-1], gender="male", height=168
        )
        assert health["value_heading"] == "health_score"
        assert isinstance(health["value"], int)
        assert health["value"] == math.floor(expected.wellness_score + 0.5)

    def test_display_values_round_half_up(self, dashboard, make_reading):
        page = dashboard.build_dashboard(
            [make_reading(datetime(2026, 3, 1, 8), weight=80.5, body_fat=18.5, bmr=1650.5)],
            gender="male",
            height=168,
        )
        weight = next(g for g in page["graph_data"] if g["key"] == "weight")
        assert weight["y_axis"] == [81]
        fat = {w["value_heading"]: w["value"] for w in page["widgets"]["fat"]}
        assert fat["body_fat"] == 19
        efficiency = {w["value_heading"]: w["value"] for w in page["widgets"]["efficiency"]}
        assert efficiency["bmr"] == 1651

    def test_health_score_none_without_scorable_metrics(self, dashboard, make_reading):
        page = dashboard.build_dashboard(
            [make_reading(datetime(2026, 3, 1, 8), bmr=1650)], gender="female", height=None
        )
        assert page["widgets"]["efficiency"][-1]["value"] is None

    def test_nudges_from_latest_reading(self, dashboard, week_of_readings):
        nudges = dashboard.build_dashboard(week_of_readings, gender="male", height=168)["nudges"]
        assert [n["metric"] for n in nudges] == ["weight", "bmi"]
        assert nudges[0]["value"] == 86

    def test_configured_standard_weight(self, week_of_readings):
        dashboard = ScaleDashboard(RiskScoreEngine(), NudgeGenerator(), standard_weight=68)
        widgets = dashboard.build_dashboard(week_of_readings, gender="female", height=160)["widgets"]
        assert widgets["weight"][-1]["value"] == 68


class TestDailyWeightReadings:
    def test_groups_by_day(self, dashboard, make_reading, now):
        readings = [
            make_reading(datetime(2026, 3, 14, 7), weight=80.04),
            make_reading(datetime(2026, 3, 14, 21), weight=80.66),
            make_reading(datetime(2026, 3, 15, 7), weight=79.93),
            make_reading(datetime(2026, 1, 1, 7), weight=85.0),
            make_reading(datetime(2026, 3, 15, 8), bmi=24.0),
        ]
        result = dashboard.daily_weight_readings(readings, now)
        assert result["type"] == "Weight"
        assert result["current"] == 79.9
        assert [d["date"] for d in result["daily_readings"]] == ["2026-03-14", "2026-03-15"]
        assert result["daily_readings"][0]["total_readings"] == 2
        assert [r["value"] for r in result["daily_readings"][0]["readings"]] == [80.0, 80.7]

    def test_no_readings(self, dashboard, now):
        assert dashboard.daily_weight_readings([], now) == {
            "type": "Weight",
            "current": None,
            "daily_readings": [],
        }
