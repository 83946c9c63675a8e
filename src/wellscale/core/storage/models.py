"""Data models for the body composition persistence layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class BodyCompositionEntry:
    """One stored scale measurement.

    ``metrics`` (every measured value, plus any extra keys the scale sent)
    is stored encrypted. The scores are stored unencrypted so entries can
    be sorted and queried without decrypting every row.
    """

    id: str
    user_id: str
    timestamp: int  # unix seconds
    measurement_date: str  # ISO 8601, naive local time
    profile_id: str | None = None
    gender: str | None = None

    # Encrypted at rest
    metrics: dict[str, Any] = field(default_factory=dict)

    # Unencrypted computed scores
    wellness_score: float | None = None
    total_risk_score: float | None = None

    created_at: str = ""
    updated_at: str = ""

    def as_record(self) -> dict[str, Any]:
        """Flat reading dict consumed by the scoring and analytics engines."""
        return {
            **self.metrics,
            "id": self.id,
            "timestamp": self.timestamp,
            "measurement_date": self.measurement_date,
            "gender": self.gender,
        }

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "profile_id": self.profile_id,
            "timestamp": self.timestamp,
            "measurement_date": self.measurement_date,
            "gender": self.gender,
            "metrics": dict(self.metrics),
            "wellness_score": self.wellness_score,
            "total_risk_score": self.total_risk_score,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
