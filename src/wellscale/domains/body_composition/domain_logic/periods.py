"""Named period resolution: 'daily', '7d', 'yearly', ... -> TimeWindow."""

from __future__ import annotations

from datetime import datetime, timedelta

from wellscale.domains.body_composition.domain_logic.errors import InvalidPeriodError
from wellscale.domains.body_composition.domain_logic.metric_models import TimeWindow

PERIOD_KEYS = ("daily", "1d", "weekly", "7d", "monthly", "30d", "90d", "yearly", "1y")

# Timelines accepted for interval grouping
TIMELINES = ("daily", "weekly", "monthly", "yearly")

_DAYS_BACK = {
    "weekly": 7,
    "7d": 7,
    "monthly": 30,
    "30d": 30,
    "90d": 90,
}


def normalize_period(period_key: str) -> str:
    key = period_key.strip().lower() if isinstance(period_key, str) else ""
    if key not in PERIOD_KEYS:
        raise InvalidPeriodError(
            f"Invalid timeline/range: {period_key!r}. "
            f"Use one of: {', '.join(PERIOD_KEYS)}"
        )
    return key


def resolve_date_range(period_key: str, now: datetime | None = None) -> TimeWindow:
    """Resolve a named period into ``[start, now]`` in local time.

    'daily'/'1d' starts at local midnight; 'yearly'/'1y' goes back one
    calendar year (29 February falls back to 28 February).
    """
    key = normalize_period(period_key)
    end = now or datetime.now()
    if end.tzinfo is not None:
        end = end.astimezone().replace(tzinfo=None)

    if key in ("daily", "1d"):
        start = end.replace(hour=0, minute=0, second=0, microsecond=0)
    elif key in ("yearly", "1y"):
        try:
            start = end.replace(year=end.year - 1)
        except ValueError:
            start = end.replace(year=end.year - 1, day=28)
    else:
        start = end - timedelta(days=_DAYS_BACK[key])

    return TimeWindow(start=start, end=end)
