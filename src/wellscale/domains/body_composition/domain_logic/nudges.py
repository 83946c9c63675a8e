"""Nudges for readings that exceed their reference standard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from wellscale.domains.body_composition.domain_logic.metric_models import (
    Nudge,
    finite_number,
    round_half_up,
)


@dataclass(frozen=True)
class NudgeStandard:
    metric: str
    standard: float
    unit: str
    message: str
    label: str


DEFAULT_STANDARDS: tuple[NudgeStandard, ...] = (
    NudgeStandard("weight", 85, "kg", "Your weight is very high", "Weight"),
    NudgeStandard("bmi", 22, "", "Your BMI is above the standard value", "BMI"),
    NudgeStandard(
        "body_fat", 20, "%",
        "Your body fat percentage is above the standard value", "Fat Percentage",
    ),
)


class NudgeGenerator:
    """Compares the latest reading against fixed standards, in order."""

    def __init__(self, standards: tuple[NudgeStandard, ...] = DEFAULT_STANDARDS) -> None:
        self._standards = standards

    def generate_nudges(self, latest_reading: dict[str, Any]) -> list[Nudge]:
        nudges: list[Nudge] = []
        for standard in self._standards:
            value = finite_number(latest_reading.get(standard.metric))
            if value is None or value <= standard.standard:
                continue
            nudges.append(Nudge(
                metric=standard.metric,
                message=standard.message,
                value=round_half_up(value),
                unit=standard.unit,
                action_message=(
                    f"Check your {standard.label}, follow emergency protocols if "
                    "necessary, and contact your healthcare provider for further guidance."
                ),
            ))
        return nudges
