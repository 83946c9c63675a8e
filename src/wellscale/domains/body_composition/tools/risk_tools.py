"""MCP tools for stateless risk scoring and nudges.

Both tools work on values passed in the call; nothing is stored.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from wellscale.domains.body_composition.tools.responses import run_tool

if TYPE_CHECKING:
    from wellscale.core.audit.logger import AuditLogger
    from wellscale.domains.body_composition.domain_logic.nudges import NudgeGenerator
    from wellscale.domains.body_composition.domain_logic.risk_engine import RiskScoreEngine

logger = logging.getLogger(__name__)


def register_risk_tools(
    mcp: FastMCP,
    risk_engine: RiskScoreEngine,
    nudge_generator: NudgeGenerator,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register risk scoring and nudge tools on the MCP server."""

    @mcp.tool
    async def calculate_risk_score(
        ctx: Context,
        gender: str,
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
    ) -> str:
        """Score eight disease risks and an overall wellness score (0-100).

        Every metric is optional; at least one must be given. Bone mass is
        only scored together with body weight, muscle volume together with
        height.

        Args:
            gender: 'male' or 'female'.
            body_fat: Body fat percentage.
            bmi: Body mass index.
            body_water: Body water percentage.
            body_weight: Body weight in kg.
            bone_mass: Bone mass in kg.
            height: Height in cm.
            muscle_volume: Muscle mass in kg.
            blood_pressure: Systolic blood pressure in mmHg.
            heart_rate: Resting heart rate in BPM.
            hrv: Heart rate variability in ms.
            spo2: Blood oxygen saturation percentage.
            respiration_rate: Breaths per minute.
        """
        metrics = {
            "body_fat": body_fat,
            "bmi": bmi,
            "body_water": body_water,
            "body_weight": body_weight,
            "bone_mass": bone_mass,
            "height": height,
            "muscle_volume": muscle_volume,
            "blood_pressure": blood_pressure,
            "heart_rate": heart_rate,
            "hrv": hrv,
            "spo2": spo2,
            "respiration_rate": respiration_rate,
        }

        def _score() -> dict:
            result = risk_engine.calculate_risk(gender, **metrics)
            return {"status": "ok", **result.as_dict()}

        return run_tool(
            "calculate_risk_score", {"gender": gender, **metrics}, audit_logger, _score
        )

    @mcp.tool
    async def smart_scale_nudges(
        ctx: Context,
        weight: float | None = None,
        bmi: float | None = None,
        body_fat: float | None = None,
    ) -> str:
        """Nudges for a scale reading whose weight, BMI or body fat is above standard.

        Args:
            weight: Weight in kg (standard 85).
            bmi: Body mass index (standard 22).
            body_fat: Body fat percentage (standard 20).
        """
        reading = {"weight": weight, "bmi": bmi, "body_fat": body_fat}

        def _nudges() -> dict:
            nudges = nudge_generator.generate_nudges(reading)
            return {"status": "ok", "count": len(nudges), "nudges": [n.as_dict() for n in nudges]}

        return run_tool("smart_scale_nudges", reading, audit_logger, _nudges)
