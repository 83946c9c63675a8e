"""Smart scale overview page built from already-fetched readings."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from wellscale.domains.body_composition.domain_logic.errors import InsufficientDataError
from wellscale.domains.body_composition.domain_logic.metric_models import (
    NUMERIC_FIELDS,
    UNIT_MAPPINGS,
    chronological,
    finite_number,
    measurement_date,
    round_half_up,
)
from wellscale.domains.body_composition.domain_logic.nudges import NudgeGenerator
from wellscale.domains.body_composition.domain_logic.risk_engine import RiskScoreEngine

# Number of most recent readings plotted on the overview
DASHBOARD_READINGS = 5

WIDGET_CATEGORIES: dict[str, tuple[str, ...]] = {
    "weight": ("fat_free_weight", "bmi", "bone_mass", "body_water"),
    "fat": (
        "visceral_fat",
        "subcutaneous_fat",
        "right_arm_fat_kg",
        "left_leg_fat_kg",
        "right_leg_fat_kg",
        "left_arm_fat_kg",
        "trunk_fat_kg",
        "body_fat",
    ),
    "muscle": (
        "trunk_muscle_mass_kg",
        "skeletal_muscle",
        "right_arm_muscle_mass_kg",
        "left_arm_muscle_mass_kg",
        "left_leg_muscle_mass_kg",
        "right_leg_muscle_mass_kg",
        "protein",
        "muscle_mass",
    ),
    "efficiency": ("bmr", "metabolic_age"),
}


def _display_int(value: Any) -> int | None:
    number = finite_number(value)
    return round_half_up(number) if number is not None else None


def _widget(heading: str, value: Any, unit: str) -> dict[str, Any]:
    if heading.endswith("_kg"):
        heading = heading[: -len("_kg")]
    return {"value_heading": heading, "value": value, "unit": unit}


class ScaleDashboard:
    """Graph axes, category widgets and nudges for the latest readings.

    Usage::

        dashboard = ScaleDashboard(RiskScoreEngine(), NudgeGenerator())
        page = dashboard.build_dashboard(readings, gender="male", height=168)
    """

    def __init__(
        self,
        risk_engine: RiskScoreEngine,
        nudge_generator: NudgeGenerator,
        *,
        standard_weight: float = 75,
    ) -> None:
        self._risk_engine = risk_engine
        self._nudges = nudge_generator
        self._standard_weight = standard_weight

    def build_dashboard(
        self,
        records: list[dict[str, Any]],
        *,
        gender: str,
        height: float | None,
    ) -> dict[str, Any] | None:
        """Build the overview page, or return None when there are no readings."""
        recent = chronological(records)[-DASHBOARD_READINGS:]
        if not recent:
            return None
        latest = recent[-1]

        graph_data = []
        for key, value in latest.items():
            if key not in NUMERIC_FIELDS or finite_number(value) is None:
                continue
            graph_data.append({
                "key": key,
                "unit": UNIT_MAPPINGS.get(key, ""),
                "y_axis": [_display_int(record.get(key)) for record in recent],
                "x_axis": [record.get("timestamp") for record in recent],
            })

        widgets: dict[str, list[dict[str, Any]]] = {}
        for category, keys in WIDGET_CATEGORIES.items():
            widgets[category] = [
                _widget(key, _display_int(latest.get(key)), UNIT_MAPPINGS.get(key, ""))
                for key in keys
            ]

        try:
            health_score = self._risk_engine.calculate_risk_for_reading(
                latest, gender=gender, height=height
            ).wellness_score
        except InsufficientDataError:
            health_score = None
        widgets["efficiency"].append(_widget("health_score", _display_int(health_score), "%"))
        widgets["weight"].append(_widget("standard_weight", self._standard_weight, "kg"))

        return {
            "graph_data": graph_data,
            "nudges": [nudge.as_dict() for nudge in self._nudges.generate_nudges(latest)],
            "widgets": widgets,
        }

    def daily_weight_readings(
        self,
        records: list[dict[str, Any]],
        now: datetime | None = None,
        days: int = 30,
    ) -> dict[str, Any]:
        """Weight readings of the last ``days`` days, grouped per calendar day."""
        end = now or datetime.now()
        start = end - timedelta(days=days)

        grouped: dict[str, list[dict[str, Any]]] = {}
        current = None
        for record in chronological(records):
            moment = measurement_date(record)
            weight = finite_number(record.get("weight"))
            if weight is None or not start <= moment <= end:
                continue
            grouped.setdefault(moment.date().isoformat(), []).append({
                "timestamp": record.get("timestamp"),
                "value": round(weight, 1),
            })
            current = round(weight, 1)

        return {
            "type": "Weight",
            "current": current,
            "daily_readings": [
                {"date": day, "readings": readings, "total_readings": len(readings)}
                for day, readings in grouped.items()
            ],
        }
