"""Time-series analytics over body composition readings.

Groups irregular samples into display intervals, computes per-field trends
(direction, change, volatility) and summary statistics over a window.

Every operation is a pure function of the readings passed in. Empty input
yields empty results; only unknown period/timeline keys and field names
raise.
"""

from __future__ import annotations

import math
import statistics
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable

from wellscale.domains.body_composition.domain_logic.errors import (
    InvalidPeriodError,
    ValidationError,
)
from wellscale.domains.body_composition.domain_logic.metric_models import (
    GRAPH_FIELDS,
    NUMERIC_FIELDS,
    STATISTICS_FIELDS,
    TREND_FIELDS,
    IntervalBucket,
    TimeWindow,
    TrendResult,
    chronological,
    finite_number,
    measurement_date,
    round2,
)
from wellscale.domains.body_composition.domain_logic.periods import (
    TIMELINES,
    resolve_date_range,
)

# Changes within +/- this percentage are reported as neutral
NEUTRAL_CHANGE_PERCENT = 1.0


def validate_fields(fields: Iterable[str]) -> list[str]:
    """Return ``fields`` as a list, rejecting names outside NUMERIC_FIELDS."""
    selected = list(fields)
    unknown = [name for name in selected if name not in NUMERIC_FIELDS]
    if unknown:
        raise ValidationError(f"Unknown numeric fields: {unknown}")
    return selected


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def _week_start(day: date) -> date:
    """Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


class TimeSeriesAnalyticsEngine:
    """Groups, trends and summarises body composition readings.

    Usage::

        analytics = TimeSeriesAnalyticsEngine()
        buckets = analytics.group_by_interval(readings, "yearly")
        trend = analytics.compute_trend(readings, "weight")
    """

    def __init__(self, week_bucket_threshold: int = 60) -> None:
        # 'monthly' groups by day up to this many readings, by week above it
        self._week_bucket_threshold = week_bucket_threshold

    # ------------------------------------------------------------------
    # Grouping
    # ------------------------------------------------------------------

    def group_by_interval(
        self,
        records: list[dict[str, Any]],
        timeline: str,
        fields: Iterable[str] | None = None,
    ) -> list[IntervalBucket]:
        """Group readings into display intervals for ``timeline``.

        daily -> one bucket per distinct local time of day, weekly -> per
        calendar day, monthly -> per day (or per Sunday-started week above
        the threshold), yearly -> per calendar month. Buckets are returned
        oldest first.
        """
        timeline = timeline.strip().lower() if isinstance(timeline, str) else ""
        if timeline not in TIMELINES:
            raise InvalidPeriodError(
                f"Invalid timeline: {timeline!r}. Use one of: {', '.join(TIMELINES)}"
            )
        selected = validate_fields(fields if fields is not None else GRAPH_FIELDS)

        ordered = chronological(records)
        if not ordered:
            return []

        if timeline == "daily":
            grouped = self._group_by_time_of_day(ordered)
        elif timeline == "weekly":
            grouped = self._group_by_day(ordered)
        elif timeline == "monthly" and len(ordered) > self._week_bucket_threshold:
            grouped = self._group_by_week(ordered)
        elif timeline == "monthly":
            grouped = self._group_by_day(ordered)
        else:
            grouped = self._group_by_month(ordered)

        buckets = [
            IntervalBucket(
                interval=label,
                timestamp=bucket_start,
                data=average_group(members, selected),
            )
            for label, (bucket_start, members) in grouped.items()
        ]
        buckets.sort(key=lambda bucket: bucket.timestamp)
        return buckets

    @staticmethod
    def _group_by_time_of_day(records):
        grouped: dict[str, tuple[datetime, list[dict[str, Any]]]] = {}
        for record in records:
            moment = measurement_date(record)
            # Same-second readings collapse onto the latest one
            grouped[moment.strftime("%I:%M:%S %p")] = (moment, [record])
        return grouped

    @staticmethod
    def _group_by_day(records):
        grouped: dict[str, tuple[datetime, list[dict[str, Any]]]] = {}
        for record in records:
            day = measurement_date(record).date()
            grouped.setdefault(day.isoformat(), (_day_start(day), []))[1].append(record)
        return grouped

    @staticmethod
    def _group_by_week(records):
        grouped: dict[str, tuple[datetime, list[dict[str, Any]]]] = {}
        for record in records:
            start = _week_start(measurement_date(record).date())
            label = f"Week of {start.isoformat()}"
            grouped.setdefault(label, (_day_start(start), []))[1].append(record)
        return grouped

    @staticmethod
    def _group_by_month(records):
        grouped: dict[str, tuple[datetime, list[dict[str, Any]]]] = {}
        for record in records:
            moment = measurement_date(record)
            label = f"{moment.year}-{moment.month:02d}"
            grouped.setdefault(label, (datetime(moment.year, moment.month, 1), []))[1].append(record)
        return grouped

    # ------------------------------------------------------------------
    # Trend and statistics
    # ------------------------------------------------------------------

    def compute_trend(self, records: list[dict[str, Any]], field: str) -> TrendResult:
        """Direction, change and volatility of ``field`` from first to last reading."""
        validate_fields([field])
        points = [
            (measurement_date(record), value)
            for record in chronological(records)
            if (value := finite_number(record.get(field))) is not None
        ]

        if len(points) < 2:
            return TrendResult(
                trend="insufficient_data",
                direction="neutral",
                data_points=len(points),
            )

        values = [value for _, value in points]
        first, last = values[0], values[-1]
        change = last - first
        change_percent = change / first * 100 if first != 0 else 0.0

        direction = "neutral"
        if abs(change_percent) > NEUTRAL_CHANGE_PERCENT:
            direction = "increasing" if change > 0 else "decreasing"

        return TrendResult(
            trend=direction,
            direction=direction,
            change=round2(change),
            change_percent=round2(change_percent),
            volatility=round2(statistics.pstdev(values)),
            data_points=len(values),
            timespan={"start": points[0][0], "end": points[-1][0]},
        )

    def compute_statistics(
        self,
        records: list[dict[str, Any]],
        fields: Iterable[str] | None = None,
    ) -> dict[str, dict[str, float]]:
        """Current/min/max/average and first-to-last change per field.

        Fields with no values are left out of the result.
        """
        selected = validate_fields(fields if fields is not None else STATISTICS_FIELDS)
        ordered = chronological(records)

        stats: dict[str, dict[str, float]] = {}
        for field in selected:
            values = [
                value for record in ordered
                if (value := finite_number(record.get(field))) is not None
            ]
            if not values:
                continue

            first, last = values[0], values[-1]
            several = len(values) > 1
            stats[field] = {
                "current": last,
                "min": min(values),
                "max": max(values),
                "average": round2(statistics.fmean(values)),
                "change": round2(last - first) if several else 0,
                "change_percent": (
                    round2((last - first) / first * 100) if several and first != 0 else 0
                ),
            }
        return stats

    def build_graph_series(
        self,
        records: list[dict[str, Any]],
        timeline: str,
        fields: Iterable[str] | None = None,
    ) -> dict[str, list[dict[str, Any]]]:
        """Group readings, then project each field into an ordered point list."""
        selected = validate_fields(fields if fields is not None else GRAPH_FIELDS)
        buckets = self.group_by_interval(records, timeline, selected)

        series: dict[str, list[dict[str, Any]]] = {}
        for field in selected:
            series[field] = [
                {
                    "timestamp": bucket.timestamp,
                    "interval": bucket.interval,
                    "value": bucket.data.get(field),
                }
                for bucket in buckets
                if bucket.data.get(field) is not None
            ]
        return series

    # ------------------------------------------------------------------
    # Window-level views
    # ------------------------------------------------------------------

    def filter_window(
        self, records: list[dict[str, Any]], window: TimeWindow
    ) -> list[dict[str, Any]]:
        """Readings measured inside ``window``, oldest first."""
        return [
            record for record in chronological(records)
            if window.contains(measurement_date(record))
        ]

    def summarize(
        self,
        records: list[dict[str, Any]],
        range_key: str = "30d",
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Statistics and trends for the readings inside a named range."""
        window = resolve_date_range(range_key, now)
        entries = self.filter_window(records, window)

        if not entries:
            return {
                "range": range_key,
                "total_entries": 0,
                "message": "No entries found for the specified period",
            }

        trends = {}
        if len(entries) >= 2:
            trends = {
                field: self.compute_trend(entries, field).as_dict() for field in TREND_FIELDS
            }

        return {
            "range": range_key,
            "date_range": window.as_dict(),
            "total_entries": len(entries),
            "statistics": self.compute_statistics(entries),
            "trends": trends,
            "latest_entry": entries[-1],
            "oldest_entry": entries[0],
        }

    def analyze_trends(
        self,
        records: list[dict[str, Any]],
        range_key: str = "30d",
        fields: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Per-field trends over a named range (at least two readings)."""
        selected = validate_fields(fields if fields is not None else TREND_FIELDS)
        window = resolve_date_range(range_key, now)
        entries = self.filter_window(records, window)

        if len(entries) < 2:
            return {
                "range": range_key,
                "message": "Insufficient data for trend analysis (minimum 2 entries required)",
                "trends": {},
            }

        span = window.end - window.start
        return {
            "range": range_key,
            "date_range": window.as_dict(),
            "total_entries": len(entries),
            "fields_analyzed": selected,
            "trends": {field: self.compute_trend(entries, field).as_dict() for field in selected},
            "period": {"days": math.ceil(span / timedelta(days=1))},
        }

    def graph(
        self,
        records: list[dict[str, Any]],
        timeline: str,
        fields: Iterable[str] | None = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Graph series for the readings inside the timeline's own window."""
        window = resolve_date_range(timeline, now)
        entries = self.filter_window(records, window)
        return {
            "timeline": timeline,
            "date_range": window.as_dict(),
            "total_entries": len(entries),
            "data": self.build_graph_series(entries, timeline, fields),
        }


def average_group(
    members: list[dict[str, Any]], fields: Iterable[str]
) -> dict[str, Any]:
    """Average ``fields`` across a bucket's readings.

    A single reading is returned unchanged. Otherwise fields present on
    every member are replaced by their mean (2 decimals) and fields missing
    from any member are dropped; other keys come from the first member.
    """
    if len(members) == 1:
        return dict(members[0])

    averaged = dict(members[0])
    for field in fields:
        values = [finite_number(member.get(field)) for member in members]
        if all(value is not None for value in values):
            averaged[field] = round2(statistics.fmean(values))
        else:
            averaged.pop(field, None)
    return averaged
