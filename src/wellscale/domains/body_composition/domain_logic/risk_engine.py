"""Multi-factor health risk scoring from body composition and vitals.

Every metric is classified into a calibrated bracket whose eight-way risk
vector (cardiac, kidney, diabetes, neurological, cancer, COPD, mental,
gastrointestinal) is summed and averaged across the metrics supplied.

All computation is deterministic: table lookups and arithmetic only.
"""

from __future__ import annotations

from typing import Any, Callable

from wellscale.domains.body_composition.domain_logic.errors import (
    InsufficientDataError,
    ValidationError,
)
from wellscale.domains.body_composition.domain_logic.metric_models import (
    DISEASE_CATEGORIES,
    GENDERS,
    CompositeRiskResult,
    RiskVector,
    finite_number,
)
from wellscale.domains.body_composition.domain_logic.risk_tables import (
    RiskTables,
    default_risk_tables,
)


def normalize_gender(gender: Any) -> str:
    """Return ``'male'`` or ``'female'``; anything else is a ValidationError."""
    value = gender.strip().lower() if isinstance(gender, str) else gender
    if value not in GENDERS:
        raise ValidationError(f"Invalid gender: {gender!r}. Use 'male' or 'female'")
    return value


# ---------------------------------------------------------------------------
# Per-metric classifiers
# ---------------------------------------------------------------------------

def body_fat_risk(gender: str, body_fat: float, tables: RiskTables | None = None) -> RiskVector:
    """Body fat % — male brackets 11/22/27, female 21/31/37."""
    tables = tables or default_risk_tables()
    return tables["body_fat"].lookup(body_fat, gender=normalize_gender(gender)).risk


def bmi_risk(bmi: float, tables: RiskTables | None = None) -> RiskVector:
    tables = tables or default_risk_tables()
    return tables["bmi"].lookup(bmi).risk


def body_water_risk(gender: str, body_water: float, tables: RiskTables | None = None) -> RiskVector:
    tables = tables or default_risk_tables()
    return tables["body_water"].lookup(body_water, gender=normalize_gender(gender)).risk


def bone_mass_risk(
    gender: str,
    body_weight: float,
    bone_mass: float,
    tables: RiskTables | None = None,
) -> RiskVector:
    """Bone mass (kg), bracketed first by body weight (kg)."""
    tables = tables or default_risk_tables()
    return tables["bone_mass"].lookup(
        bone_mass, gender=normalize_gender(gender), companion_value=body_weight
    ).risk


def muscle_volume_risk(
    gender: str,
    height: float,
    muscle_volume: float,
    tables: RiskTables | None = None,
) -> RiskVector:
    """Muscle volume (kg), bracketed first by height (cm)."""
    tables = tables or default_risk_tables()
    return tables["muscle_volume"].lookup(
        muscle_volume, gender=normalize_gender(gender), companion_value=height
    ).risk


def blood_pressure_risk(blood_pressure: float, tables: RiskTables | None = None) -> RiskVector:
    tables = tables or default_risk_tables()
    return tables["blood_pressure"].lookup(blood_pressure).risk


def heart_rate_risk(heart_rate: float, tables: RiskTables | None = None) -> RiskVector:
    tables = tables or default_risk_tables()
    return tables["heart_rate"].lookup(heart_rate).risk


def hrv_risk(hrv: float, tables: RiskTables | None = None) -> RiskVector:
    tables = tables or default_risk_tables()
    return tables["hrv"].lookup(hrv).risk


def spo2_risk(spo2: float, tables: RiskTables | None = None) -> RiskVector:
    tables = tables or default_risk_tables()
    return tables["spo2"].lookup(spo2).risk


def respiration_rate_risk(respiration_rate: float, tables: RiskTables | None = None) -> RiskVector:
    tables = tables or default_risk_tables()
    return tables["respiration_rate"].lookup(respiration_rate).risk


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RiskScoreEngine:
    """Composite eight-way risk and wellness scoring.

    Usage::

        engine = RiskScoreEngine()
        result = engine.calculate_risk("male", body_fat=15, bmi=23.1)
        result.wellness_score
    """

    def __init__(self, tables: RiskTables | None = None) -> None:
        self._tables = tables or default_risk_tables()

    @property
    def tables(self) -> RiskTables:
        return self._tables

    def calculate_risk(
        self,
        gender: str,
        *,
        body_fat: float | None = None,
        bmi: float | None = None,
        body_water: float | None = None,
        body_weight: float | None = None,
        bone_mass: float | None = None,
        height: float | None = None,
        muscle_volume: float | None = None,
        blood_pressure: float | None = None,
        heart_rate: float | None = None,
        hrv: float | None = None,
        spo2: float | None = None,
        respiration_rate: float | None = None,
    ) -> CompositeRiskResult:
        """Average the risk vectors of every metric supplied.

        Metrics that are None (or not finite numbers) are skipped. Bone mass
        is scored only together with body weight, muscle volume only
        together with height.

        Raises:
            ValidationError: If ``gender`` is not 'male' or 'female'.
            InsufficientDataError: If no metric could be scored.
        """
        gender = normalize_gender(gender)
        tables = self._tables

        body_fat = finite_number(body_fat)
        bmi = finite_number(bmi)
        body_water = finite_number(body_water)
        body_weight = finite_number(body_weight)
        bone_mass = finite_number(bone_mass)
        height = finite_number(height)
        muscle_volume = finite_number(muscle_volume)
        blood_pressure = finite_number(blood_pressure)
        heart_rate = finite_number(heart_rate)
        hrv = finite_number(hrv)
        spo2 = finite_number(spo2)
        respiration_rate = finite_number(respiration_rate)

        scorers: list[tuple[str, bool, Callable[[], RiskVector]]] = [
            ("body_fat", body_fat is not None,
             lambda: body_fat_risk(gender, body_fat, tables)),
            ("bmi", bmi is not None,
             lambda: bmi_risk(bmi, tables)),
            ("body_water", body_water is not None,
             lambda: body_water_risk(gender, body_water, tables)),
            ("bone_mass", body_weight is not None and bone_mass is not None,
             lambda: bone_mass_risk(gender, body_weight, bone_mass, tables)),
            ("muscle_volume", height is not None and muscle_volume is not None,
             lambda: muscle_volume_risk(gender, height, muscle_volume, tables)),
            ("blood_pressure", blood_pressure is not None,
             lambda: blood_pressure_risk(blood_pressure, tables)),
            ("heart_rate", heart_rate is not None,
             lambda: heart_rate_risk(heart_rate, tables)),
            ("hrv", hrv is not None,
             lambda: hrv_risk(hrv, tables)),
            ("spo2", spo2 is not None,
             lambda: spo2_risk(spo2, tables)),
            ("respiration_rate", respiration_rate is not None,
             lambda: respiration_rate_risk(respiration_rate, tables)),
        ]

        total = RiskVector()
        used: list[str] = []
        for name, present, score in scorers:
            if present:
                total = total + score()
                used.append(name)

        if not used:
            raise InsufficientDataError("At least one metric is required to compute a risk score")

        averaged = [round(v, 1) for v in total.scaled(len(used)).values()]
        total_risk = round(sum(averaged) / len(DISEASE_CATEGORIES), 1)

        return CompositeRiskResult(
            *averaged,
            total_risk_score=total_risk,
            wellness_score=round(100 - total_risk, 1),
            metrics_used=tuple(used),
        )

    def calculate_risk_for_reading(
        self,
        reading: dict[str, Any],
        *,
        gender: str | None = None,
        height: float | None = None,
    ) -> CompositeRiskResult:
        """Score a single body composition reading.

        ``gender`` and ``height`` override the values stored on the reading
        (scale readings often lack them).
        """
        return self.calculate_risk(
            gender if gender is not None else reading.get("gender"),
            body_fat=reading.get("body_fat"),
            bmi=reading.get("bmi"),
            body_water=reading.get("body_water"),
            body_weight=reading.get("weight"),
            bone_mass=reading.get("bone_mass"),
            height=height if height is not None else reading.get("height"),
            muscle_volume=reading.get("muscle_mass"),
            blood_pressure=reading.get("blood_pressure"),
            heart_rate=reading.get("heart_rate"),
            hrv=reading.get("hrv"),
            spo2=reading.get("spo2"),
            respiration_rate=reading.get("respiration_rate"),
        )
