"""Body composition service — entry lifecycle and analytics over stored readings.

The service validates incoming scale data, keeps the encrypted repository
up to date (including each entry's risk scores) and hands stored readings
to the pure engines for statistics, trends, graphs and the dashboard.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any

from wellscale.core.storage.models import BodyCompositionEntry
from wellscale.core.storage.repository import BodyCompositionRepository
from wellscale.domains.body_composition.domain_logic.analytics import TimeSeriesAnalyticsEngine
from wellscale.domains.body_composition.domain_logic.errors import (
    InsufficientDataError,
    ValidationError,
)
from wellscale.domains.body_composition.domain_logic.metric_models import (
    NUMERIC_FIELDS,
    finite_number,
)
from wellscale.domains.body_composition.domain_logic.nudges import NudgeGenerator
from wellscale.domains.body_composition.domain_logic.periods import resolve_date_range
from wellscale.domains.body_composition.domain_logic.risk_engine import (
    RiskScoreEngine,
    normalize_gender,
)
from wellscale.domains.body_composition.domain_logic.scale_dashboard import ScaleDashboard

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("weight", "bmi", "body_fat", "timestamp")

# Keys held in entry columns rather than in the encrypted metrics payload
_ENTRY_KEYS = frozenset({"id", "user_id", "profile_id", "timestamp", "measurement_date", "gender"})


class EntryNotFoundError(LookupError):
    """Raised when an entry does not exist or belongs to another user."""


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec="seconds")


def _parse_timestamp(value: Any) -> int:
    number = finite_number(value)
    if number is None:
        raise ValidationError(f"Invalid timestamp: {value!r}. Expected unix seconds")
    try:
        datetime.fromtimestamp(number)
    except (ValueError, OverflowError, OSError) as exc:
        raise ValidationError(
            f"Timestamp out of range: {value!r}. Expected unix seconds, not milliseconds"
        ) from exc
    return int(number)


def _validate_metrics(data: dict[str, Any]) -> dict[str, Any]:
    metrics: dict[str, Any] = {}
    for key, value in data.items():
        if key in _ENTRY_KEYS:
            continue
        if key in NUMERIC_FIELDS and value is not None and finite_number(value) is None:
            raise ValidationError(f"Invalid value for {key}: {value!r}. Expected a number")
        metrics[key] = value
    return metrics


class BodyCompositionService:
    """Entry lifecycle and analytics for one repository.

    Usage::

        service = BodyCompositionService(repository)
        entry = service.create_entry("user-1", "profile-1", {
            "weight": 72.4, "bmi": 23.1, "body_fat": 18.0, "timestamp": 1767254400,
        })
        service.get_trends("user-1", "30d")
    """

    def __init__(
        self,
        repository: BodyCompositionRepository,
        *,
        risk_engine: RiskScoreEngine | None = None,
        analytics: TimeSeriesAnalyticsEngine | None = None,
        nudge_generator: NudgeGenerator | None = None,
        dashboard: ScaleDashboard | None = None,
        default_gender: str = "male",
        default_height: float | None = 168,
    ) -> None:
        self._repo = repository
        self._risk = risk_engine or RiskScoreEngine()
        self._analytics = analytics or TimeSeriesAnalyticsEngine()
        self._nudges = nudge_generator or NudgeGenerator()
        self._dashboard = dashboard or ScaleDashboard(self._risk, self._nudges)
        self._default_gender = default_gender
        self._default_height = default_height

    # ------------------------------------------------------------------
    # Entry lifecycle
    # ------------------------------------------------------------------

    def create_entry(
        self, user_id: str, profile_id: str | None, data: dict[str, Any]
    ) -> BodyCompositionEntry:
        """Validate, score and store a new scale reading.

        Raises:
            ValidationError: If a required field is missing or a known
                numeric field holds a non-number.
        """
        for name in REQUIRED_FIELDS:
            if data.get(name) is None:
                raise ValidationError(f"Missing required field: {name}")

        timestamp = _parse_timestamp(data["timestamp"])
        gender = data.get("gender")
        entry = BodyCompositionEntry(
            id="",
            user_id=user_id,
            profile_id=profile_id,
            timestamp=timestamp,
            measurement_date=_iso(datetime.fromtimestamp(timestamp)),
            gender=normalize_gender(gender) if gender is not None else None,
            metrics=_validate_metrics(data),
        )
        self._score(entry)
        self._repo.save_entry(entry)
        return entry

    def update_entry(
        self, entry_id: str, user_id: str, updates: dict[str, Any]
    ) -> BodyCompositionEntry:
        """Merge ``updates`` into a stored entry and re-score it.

        Raises:
            EntryNotFoundError: If the user has no entry with that ID.
            ValidationError: If an updated value is invalid.
        """
        entry = self._require_entry(entry_id, user_id)

        if updates.get("timestamp") is not None:
            entry.timestamp = _parse_timestamp(updates["timestamp"])
            entry.measurement_date = _iso(datetime.fromtimestamp(entry.timestamp))
        if "gender" in updates:
            gender = updates["gender"]
            entry.gender = normalize_gender(gender) if gender is not None else None
        if "profile_id" in updates:
            entry.profile_id = updates["profile_id"]
        entry.metrics.update(_validate_metrics(updates))

        self._score(entry)
        if not self._repo.update_entry(entry):
            raise EntryNotFoundError(f"Body composition entry not found: {entry_id}")
        logger.info("Updated body composition entry %s", entry_id)
        return entry

    def delete_entry(self, entry_id: str, user_id: str) -> None:
        """Raises EntryNotFoundError if the user has no entry with that ID."""
        if not self._repo.delete_entry(entry_id, user_id):
            raise EntryNotFoundError(f"Body composition entry not found: {entry_id}")

    def _require_entry(self, entry_id: str, user_id: str) -> BodyCompositionEntry:
        entry = self._repo.get_entry(entry_id, user_id)
        if entry is None:
            raise EntryNotFoundError(f"Body composition entry not found: {entry_id}")
        return entry

    def _score(self, entry: BodyCompositionEntry) -> None:
        """Store wellness/total risk on the entry when its gender is known."""
        entry.wellness_score = None
        entry.total_risk_score = None
        if entry.gender is None:
            return
        try:
            result = self._risk.calculate_risk_for_reading(entry.as_record())
        except InsufficientDataError:
            return
        entry.wellness_score = result.wellness_score
        entry.total_risk_score = result.total_risk_score

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_latest_entries(self, user_id: str, profile_id: str | None) -> list[BodyCompositionEntry]:
        """The newest entry, or the two newest when more than one exists."""
        return self._repo.get_latest_entries(user_id, profile_id=profile_id, limit=2)

    def get_current_day(
        self, user_id: str, profile_id: str | None, now: datetime | None = None
    ) -> dict[str, Any]:
        """Today's latest entry, if any."""
        today = (now or datetime.now()).replace(hour=0, minute=0, second=0, microsecond=0)
        tomorrow = today + timedelta(days=1)

        entries = [
            entry for entry in self._repo.get_entries(
                user_id, profile_id=profile_id, since=_iso(today)
            )
            if entry.measurement_date < _iso(tomorrow)
        ]
        result: dict[str, Any] = {"has_entry": bool(entries), "date": today.date().isoformat()}
        if entries:
            result["entry"] = entries[-1].as_dict()
        else:
            result["message"] = "No body composition data recorded for today"
        return result

    def list_entries(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 50,
        sort_by: str = "measurement_date",
        sort_order: str = "desc",
    ) -> dict[str, Any]:
        """One page of entries plus pagination metadata."""
        if page < 1:
            raise ValidationError("page must be at least 1")
        if limit < 1:
            raise ValidationError("limit must be at least 1")

        skip = (page - 1) * limit
        entries = self._repo.list_entries(
            user_id, offset=skip, limit=limit, sort_by=sort_by, sort_order=sort_order
        )
        total = self._repo.count_entries(user_id)
        return {
            "entries": [entry.as_dict() for entry in entries],
            "pagination": {
                "current": page,
                "total": math.ceil(total / limit),
                "total_entries": total,
                "has_next": skip + len(entries) < total,
                "has_prev": page > 1,
                "limit": limit,
            },
            "sorting": {"sort_by": sort_by, "sort_order": sort_order},
        }

    def _records(
        self,
        user_id: str,
        profile_id: str | None = None,
        period_key: str | None = None,
        now: datetime | None = None,
    ) -> list[dict[str, Any]]:
        since = None
        if period_key is not None:
            since = _iso(resolve_date_range(period_key, now).start)
        entries = self._repo.get_entries(user_id, profile_id=profile_id, since=since)
        return [entry.as_record() for entry in entries]

    def get_statistics(
        self,
        user_id: str,
        profile_id: str | None,
        range_key: str = "30d",
        now: datetime | None = None,
    ) -> dict[str, Any]:
        records = self._records(user_id, profile_id, range_key, now)
        return self._analytics.summarize(records, range_key, now)

    def get_trends(
        self,
        user_id: str,
        range_key: str = "30d",
        fields: list[str] | None = None,
        profile_id: str | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        records = self._records(user_id, profile_id, range_key, now)
        return self._analytics.analyze_trends(records, range_key, fields, now)

    def get_graph(
        self,
        timeline: str,
        user_id: str,
        profile_id: str | None,
        fields: list[str] | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        records = self._records(user_id, profile_id, timeline, now)
        return self._analytics.graph(records, timeline, fields, now)

    def assess_wellness(
        self,
        user_id: str,
        profile_id: str | None,
        height: float | None = None,
    ) -> dict[str, Any]:
        """Risk breakdown and nudges for the latest entry.

        Raises:
            EntryNotFoundError: If the user has no entries.
            InsufficientDataError: If the latest entry has nothing to score.
        """
        latest = self.get_latest_entries(user_id, profile_id)
        if not latest:
            raise EntryNotFoundError("No body composition entries recorded yet")

        reading = latest[0].as_record()
        if height is None:
            height = reading.get("height") or self._default_height
        result = self._risk.calculate_risk_for_reading(
            reading,
            gender=reading.get("gender") or self._default_gender,
            height=height,
        )
        return {
            "entry_id": latest[0].id,
            "measurement_date": latest[0].measurement_date,
            "risk": result.as_dict(),
            "nudges": [nudge.as_dict() for nudge in self._nudges.generate_nudges(reading)],
        }

    def dashboard(self, user_id: str, profile_id: str | None) -> dict[str, Any] | None:
        records = self._records(user_id, profile_id)
        gender = self._default_gender
        if records and records[-1].get("gender"):
            gender = records[-1]["gender"]
        return self._dashboard.build_dashboard(
            records, gender=gender, height=self._default_height
        )

    def weight_readings(
        self, user_id: str, now: datetime | None = None, days: int = 30
    ) -> dict[str, Any]:
        end = now or datetime.now()
        records = [
            entry.as_record()
            for entry in self._repo.get_entries(user_id, since=_iso(end - timedelta(days=days)))
        ]
        return self._dashboard.daily_weight_readings(records, end, days)
