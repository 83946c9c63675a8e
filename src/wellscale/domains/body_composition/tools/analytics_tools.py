"""MCP tools for time-series analytics over readings passed in the call."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from fastmcp import Context, FastMCP

from wellscale.domains.body_composition.domain_logic.analytics import validate_fields
from wellscale.domains.body_composition.domain_logic.metric_models import TREND_FIELDS
from wellscale.domains.body_composition.domain_logic.periods import resolve_date_range
from wellscale.domains.body_composition.tools.responses import run_tool

if TYPE_CHECKING:
    from wellscale.core.audit.logger import AuditLogger
    from wellscale.domains.body_composition.domain_logic.analytics import (
        TimeSeriesAnalyticsEngine,
    )

logger = logging.getLogger(__name__)


def register_analytics_tools(
    mcp: FastMCP,
    analytics: TimeSeriesAnalyticsEngine,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register stateless analytics tools on the MCP server."""

    @mcp.tool
    async def resolve_period(ctx: Context, period: str) -> str:
        """Resolve a named period into its start and end time (local time).

        Args:
            period: One of 'daily', '1d', 'weekly', '7d', 'monthly', '30d',
                '90d', 'yearly', '1y'.
        """
        def _resolve() -> dict:
            return {"status": "ok", "period": period, **resolve_date_range(period).as_dict()}

        return run_tool("resolve_period", {"period": period}, audit_logger, _resolve)

    @mcp.tool
    async def analyze_readings(
        ctx: Context,
        readings: list[dict[str, Any]],
        operation: Literal["statistics", "trends", "graph"] = "statistics",
        timeline: str = "monthly",
        fields: list[str] | None = None,
    ) -> str:
        """Statistics, trends or graph series for a list of scale readings.

        Each reading needs a 'timestamp' (unix seconds) or an ISO
        'measurement_date', plus any numeric metrics (weight, bmi, body_fat, ...).

        Args:
            readings: The readings to analyze, in any order.
            operation: 'statistics', 'trends' or 'graph'.
            timeline: Grouping for 'graph': 'daily', 'weekly', 'monthly' or 'yearly'.
            fields: Metrics to include; defaults depend on the operation.
        """
        def _analyze() -> dict:
            result: dict[str, Any] = {"status": "ok", "operation": operation}
            if operation == "statistics":
                result["statistics"] = analytics.compute_statistics(readings, fields)
            elif operation == "trends":
                selected = validate_fields(fields or TREND_FIELDS)
                result["trends"] = {
                    field: analytics.compute_trend(readings, field).as_dict()
                    for field in selected
                }
            else:
                result["timeline"] = timeline
                result["data"] = analytics.build_graph_series(readings, timeline, fields)
            return result

        return run_tool(
            "analyze_readings",
            {"operation": operation, "timeline": timeline, "fields": fields, "count": len(readings)},
            audit_logger,
            _analyze,
        )
