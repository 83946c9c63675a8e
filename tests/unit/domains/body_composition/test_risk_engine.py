"""Tests for the RiskScoreEngine — bracket classifiers and composite scoring."""

from __future__ import annotations

import math

import pytest

from wellscale.domains.body_composition.domain_logic.errors import (
    InsufficientDataError,
    ValidationError,
)
from wellscale.domains.body_composition.domain_logic.metric_models import RiskVector
from wellscale.domains.body_composition.domain_logic.risk_engine import (
    RiskScoreEngine,
    blood_pressure_risk,
    bmi_risk,
    body_fat_risk,
    body_water_risk,
    bone_mass_risk,
    heart_rate_risk,
    hrv_risk,
    muscle_volume_risk,
    normalize_gender,
    respiration_rate_risk,
    spo2_risk,
)

STANDARD_BODY_FAT = RiskVector(5, 6, 3, 2, 8, 2, 4, 4)
SERIOUSLY_HIGH_BODY_FAT = RiskVector(80, 85, 90, 78, 89, 88, 93, 96)
STANDARD_BMI = RiskVector(3, 4, 5, 7, 3, 4, 5, 6)


@pytest.fixture
def engine() -> RiskScoreEngine:
    return RiskScoreEngine()


class TestClassifiers:
    def test_body_fat_brackets_by_gender(self):
        assert body_fat_risk("male", 15) == STANDARD_BODY_FAT
        assert body_fat_risk("female", 15) == RiskVector(10, 30, 8, 30, 25, 14, 40, 13)
        assert body_fat_risk("female", 40) == SERIOUSLY_HIGH_BODY_FAT

    def test_lower_bound_is_inclusive(self):
        # 11 is the first value of the male standard bracket
        assert body_fat_risk("male", 11) == STANDARD_BODY_FAT
        assert body_fat_risk("male", 10.99) == RiskVector(10, 30, 8, 30, 25, 14, 40, 13)
        assert body_fat_risk("male", 22) == RiskVector(70, 50, 75, 80, 77, 80, 78, 80)

    def test_bmi_boundaries(self):
        assert bmi_risk(18.4) == RiskVector(12, 33, 20, 35, 28, 28, 44, 18)
        assert bmi_risk(18.5) == STANDARD_BMI
        assert bmi_risk(26) == RiskVector(82, 86, 92, 75, 85, 83, 92, 93)

    def test_body_water_female_thresholds(self):
        assert body_water_risk("female", 50) == RiskVector(4, 6, 7, 10, 6, 8, 12, 8)
        assert body_water_risk("male", 50) == RiskVector(11, 23, 30, 42, 35, 27, 42, 16)

    def test_bone_mass_uses_weight_bracket(self):
        # 60 kg is the first value of the male medium-weight bracket
        assert bone_mass_risk("male", 60, 2.7) == RiskVector(8, 10, 9, 13, 14, 14, 12, 11)
        assert bone_mass_risk("male", 59.9, 2.7) == RiskVector(84, 88, 85, 72, 82, 85, 85, 89)

    def test_muscle_volume_uses_height_bracket(self):
        assert muscle_volume_risk("female", 150, 32.9) == RiskVector(19, 15, 16, 12, 16, 17, 14, 19)
        assert muscle_volume_risk("male", 180, 40) == RiskVector(81, 80, 75, 76, 77, 79, 74, 79)

    def test_vitals(self):
        assert blood_pressure_risk(125) == RiskVector(33, 52, 61, 59, 42, 54, 34, 43)
        assert heart_rate_risk(100) == RiskVector(92, 83, 85, 87, 83, 84, 88, 84)
        assert hrv_risk(65) == RiskVector(33, 35, 34, 23, 42, 35, 32, 23)
        assert spo2_risk(99) == RiskVector(13, 14, 15, 12, 14, 12, 11, 13)
        assert respiration_rate_risk(11) == RiskVector(93, 94, 95, 97, 95, 93, 95, 94)

    def test_gender_is_case_insensitive(self):
        assert normalize_gender("  Female ") == "female"
        assert body_fat_risk("MALE", 15) == STANDARD_BODY_FAT

    @pytest.mark.parametrize("gender", ["", "other", None, 1])
    def test_invalid_gender_raises(self, gender):
        with pytest.raises(ValidationError, match="Invalid gender"):
            normalize_gender(gender)


class TestCalculateRisk:
    def test_single_metric(self, engine):
        result = engine.calculate_risk("male", body_fat=30)
        assert result.cardiac_risk_score == 80
        assert result.gastrointestinal_risk_score == 96
        assert result.total_risk_score == 87.4
        assert result.wellness_score == 12.6
        assert result.metrics_used == ("body_fat",)

    def test_bmi_only_gives_bmi_vector(self, engine):
        result = engine.calculate_risk("female", bmi=30)
        assert tuple(result.disease_scores().values()) == (82, 86, 92, 75, 85, 83, 92, 93)
        assert result.total_risk_score == 86.0
        assert result.wellness_score == 14.0

    def test_averages_across_metrics(self, engine):
        result = engine.calculate_risk("male", body_fat=15, bmi=23)
        assert result.disease_scores() == {
            "cardiac": 4.0,
            "kidney": 5.0,
            "diabetes": 4.0,
            "neurological": 4.5,
            "cancer": 5.5,
            "copd": 3.0,
            "mental": 4.5,
            "gastrointestinal": 5.0,
        }
        assert result.total_risk_score == 4.4
        assert result.wellness_score == 95.6

    def test_wellness_and_total_sum_to_100(self, engine):
        result = engine.calculate_risk(
            "female",
            body_fat=28,
            bmi=24.2,
            body_water=52,
            body_weight=58,
            bone_mass=2.2,
            height=163,
            muscle_volume=40,
            blood_pressure=118,
            heart_rate=72,
            hrv=55,
            spo2=98,
            respiration_rate=14,
        )
        assert len(result.metrics_used) == 10
        assert math.isclose(result.wellness_score + result.total_risk_score, 100, abs_tol=0.05)
        for score in result.disease_scores().values():
            assert 0 <= score <= 100

    def test_bone_mass_needs_body_weight(self, engine):
        result = engine.calculate_risk("male", bmi=23, bone_mass=3.0)
        assert result.metrics_used == ("bmi",)

    def test_muscle_volume_needs_height(self, engine):
        with pytest.raises(InsufficientDataError):
            engine.calculate_risk("male", muscle_volume=50)

    def test_no_metrics_raises(self, engine):
        with pytest.raises(InsufficientDataError, match="At least one metric"):
            engine.calculate_risk("female")

    def test_non_finite_values_are_skipped(self, engine):
        result = engine.calculate_risk("male", body_fat=float("nan"), bmi=23)
        assert result.metrics_used == ("bmi",)

    def test_gender_validated_before_metrics(self, engine):
        with pytest.raises(ValidationError):
            engine.calculate_risk("unknown")

    def test_as_dict_is_json_friendly(self, engine):
        data = engine.calculate_risk("male", bmi=23).as_dict()
        assert data["metrics_used"] == ["bmi"]
        assert data["wellness_score"] == 95.4


class TestCalculateRiskForReading:
    def test_maps_scale_fields(self, engine):
        reading = {
            "gender": "male",
            "weight": 70,
            "bone_mass": 3.0,
            "muscle_mass": 50,
            "height": 165,
        }
        result = engine.calculate_risk_for_reading(reading)
        assert result.metrics_used == ("bone_mass", "muscle_volume")

    def test_arguments_override_reading(self, engine):
        reading = {"gender": "female", "muscle_mass": 40, "bmi": 23}
        result = engine.calculate_risk_for_reading(reading, gender="male", height=170)
        assert result.metrics_used == ("bmi", "muscle_volume")
        expected = engine.calculate_risk("male", bmi=23, height=170, muscle_volume=40)
        assert result == expected
