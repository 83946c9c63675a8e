"""Body composition metric vocabulary and result types.

Readings are plain dicts keyed by the names in ``NUMERIC_FIELDS`` plus
``timestamp`` (unix seconds), ``measurement_date`` and ``gender``.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

DISEASE_CATEGORIES = (
    "cardiac",
    "kidney",
    "diabetes",
    "neurological",
    "cancer",
    "copd",
    "mental",
    "gastrointestinal",
)

GENDERS = ("male", "female")

_REGIONAL_FIELDS = tuple(
    f"{region}_{kind}{suffix}"
    for region in ("right_arm", "left_arm", "right_leg", "left_leg", "trunk")
    for kind in ("fat", "muscle_mass")
    for suffix in ("", "_kg")
)

NUMERIC_FIELDS = frozenset({
    "weight",
    "height",
    "bmi",
    "body_fat",
    "body_water",
    "bone_mass",
    "muscle_mass",
    "skeletal_muscle",
    "fat_free_weight",
    "subcutaneous_fat",
    "visceral_fat",
    "protein",
    "bmr",
    "metabolic_age",
    "health_score",
    "blood_pressure",
    "heart_rate",
    "hrv",
    "spo2",
    "respiration_rate",
    *_REGIONAL_FIELDS,
})

# Default projections used by the analytics operations
GRAPH_FIELDS = (
    "weight",
    "bmi",
    "body_fat",
    "subcutaneous_fat",
    "visceral_fat",
    "muscle_mass",
    "bmr",
    "bone_mass",
    "body_water",
    "metabolic_age",
    "protein",
    "skeletal_muscle",
    "health_score",
)

STATISTICS_FIELDS = (
    "weight",
    "bmi",
    "body_fat",
    "muscle_mass",
    "visceral_fat",
    "bmr",
    "body_water",
    "metabolic_age",
    "health_score",
)

TREND_FIELDS = ("weight", "bmi", "body_fat", "muscle_mass", "visceral_fat")

UNIT_MAPPINGS = {
    "weight": "kg",
    "height": "cm",
    "bmi": "",
    "body_fat": "%",
    "fat_free_weight": "kg",
    "subcutaneous_fat": "%",
    "visceral_fat": "%",
    "body_water": "%",
    "skeletal_muscle": "%",
    "muscle_mass": "kg",
    "bone_mass": "kg",
    "protein": "%",
    "bmr": "kcal",
    "metabolic_age": "years",
    "health_score": "%",
    "blood_pressure": "mmHg",
    "heart_rate": "bpm",
    "hrv": "ms",
    "spo2": "%",
    "respiration_rate": "breaths/min",
    "standard_weight": "kg",
    **{name: ("kg" if name.endswith("_kg") else "%") for name in _REGIONAL_FIELDS},
}


# ---------------------------------------------------------------------------
# Helpers shared by the pure engines
# ---------------------------------------------------------------------------

def finite_number(value: Any) -> float | None:
    """Return ``value`` as a float when it is a finite number, else None.

    Booleans are not numbers here, and strings are not coerced.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def measurement_date(record: dict[str, Any]) -> datetime | None:
    """Return the record's measurement time as a naive local datetime.

    Unparsable dates and out-of-range timestamps count as absent.
    """
    value = record.get("measurement_date")
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        if parsed.tzinfo is not None:
            return parsed.astimezone().replace(tzinfo=None)
        return parsed
    ts = finite_number(record.get("timestamp"))
    if ts is None:
        return None
    try:
        return datetime.fromtimestamp(ts)
    except (ValueError, OverflowError, OSError):
        return None


def chronological(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Records with a usable measurement date, oldest first (stable)."""
    dated = []
    for record in records:
        moment = measurement_date(record)
        if moment is not None:
            dated.append((moment, record))
    dated.sort(key=lambda pair: pair[0])
    return [record for _, record in dated]


def round2(value: float) -> float:
    return round(value, 2)


def round_half_up(value: float) -> int:
    """Nearest integer, halves rounded up (86.5 -> 87)."""
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskVector:
    """Risk contribution (0-100) for each of the eight disease categories."""

    cardiac: float = 0.0
    kidney: float = 0.0
    diabetes: float = 0.0
    neurological: float = 0.0
    cancer: float = 0.0
    copd: float = 0.0
    mental: float = 0.0
    gastrointestinal: float = 0.0

    def values(self) -> tuple[float, ...]:
        """Return values in DISEASE_CATEGORIES order."""
        return tuple(getattr(self, name) for name in DISEASE_CATEGORIES)

    def __add__(self, other: RiskVector) -> RiskVector:
        return RiskVector(*(a + b for a, b in zip(self.values(), other.values())))

    def scaled(self, divisor: float) -> RiskVector:
        return RiskVector(*(v / divisor for v in self.values()))


@dataclass(frozen=True)
class CompositeRiskResult:
    """Averaged per-disease risk, total risk and wellness score."""

    cardiac_risk_score: float
    kidney_risk_score: float
    diabetes_risk_score: float
    neurological_risk_score: float
    cancer_risk_score: float
    copd_risk_score: float
    mental_risk_score: float
    gastrointestinal_risk_score: float
    total_risk_score: float
    wellness_score: float
    metrics_used: tuple[str, ...] = ()

    def disease_scores(self) -> dict[str, float]:
        return {name: getattr(self, f"{name}_risk_score") for name in DISEASE_CATEGORIES}

    def as_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["metrics_used"] = list(self.metrics_used)
        return data


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def as_dict(self) -> dict[str, str]:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass
class IntervalBucket:
    """One grouped interval: label, bucket start and the averaged record."""

    interval: str
    timestamp: datetime
    data: dict[str, Any]


@dataclass
class TrendResult:
    """Trend of a single field across a window of readings."""

    trend: str
    direction: str
    change: float = 0.0
    change_percent: float = 0.0
    volatility: float | None = None
    data_points: int = 0
    timespan: dict[str, datetime] | None = None

    def as_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "trend": self.trend,
            "direction": self.direction,
            "change": self.change,
            "change_percent": self.change_percent,
        }
        if self.trend != "insufficient_data":
            data["volatility"] = self.volatility
            data["data_points"] = self.data_points
            data["timespan"] = {
                key: value.isoformat() for key, value in (self.timespan or {}).items()
            }
        return data


@dataclass
class Nudge:
    """A prompt to act on a metric that exceeds its standard."""

    message: str
    value: int
    unit: str
    action_message: str
    plan_code: str = "conditionalPlan"
    metric: str = ""

    def as_dict(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "message": self.message,
            "value": self.value,
            "unit": self.unit,
            "action_message": self.action_message,
            "plan_code": self.plan_code,
        }
