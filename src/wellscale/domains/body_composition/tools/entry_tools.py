"""MCP tools for stored body composition entries.

These tools add, change and remove scale readings in the encrypted data
bank, and run statistics, trends, graphs and the dashboard over them.
Deletions are audit-logged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from wellscale.domains.body_composition.tools.responses import run_tool

if TYPE_CHECKING:
    from wellscale.core.audit.logger import AuditLogger
    from wellscale.domains.body_composition.service import BodyCompositionService

logger = logging.getLogger(__name__)

# Single-user local server: entries belong to this user unless told otherwise
DEFAULT_USER = "local"


def register_entry_tools(
    mcp: FastMCP,
    service: BodyCompositionService,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register body composition entry tools on the MCP server."""

    @mcp.tool
    async def add_body_composition_entry(
        ctx: Context,
        measurement: dict[str, Any],
        user_id: str = DEFAULT_USER,
        profile_id: str | None = None,
    ) -> str:
        """Store a smart scale reading and score it.

        Args:
            measurement: The reading. Requires 'weight' (kg), 'bmi', 'body_fat'
                (%) and 'timestamp' (unix seconds); may include 'gender' and
                any other scale metric (muscle_mass, body_water, bone_mass,
                visceral_fat, bmr, metabolic_age, regional values, ...).
            user_id: Owner of the entry.
            profile_id: Optional profile (family member) of the owner.
        """
        def _add() -> dict:
            entry = service.create_entry(user_id, profile_id, measurement)
            return {"status": "saved", "entry": entry.as_dict(), "_entry_id": entry.id}

        return run_tool(
            "add_body_composition_entry",
            {"user_id": user_id, "profile_id": profile_id, "measurement": measurement},
            audit_logger,
            _add,
        )

    @mcp.tool
    async def update_body_composition_entry(
        ctx: Context,
        entry_id: str,
        updates: dict[str, Any],
        user_id: str = DEFAULT_USER,
    ) -> str:
        """Change values of a stored reading; its scores are recomputed.

        Args:
            entry_id: ID of the entry to update.
            updates: Metrics (or 'timestamp', 'gender') to overwrite.
            user_id: Owner of the entry.
        """
        def _update() -> dict:
            entry = service.update_entry(entry_id, user_id, updates)
            return {"status": "updated", "entry": entry.as_dict()}

        return run_tool(
            "update_body_composition_entry",
            {"entry_id": entry_id, "user_id": user_id, "updates": updates},
            audit_logger,
            _update,
            entry_id=entry_id,
        )

    @mcp.tool
    async def delete_body_composition_entry(
        ctx: Context,
        entry_id: str,
        user_id: str = DEFAULT_USER,
    ) -> str:
        """Permanently delete a stored reading.

        Args:
            entry_id: ID of the entry to delete.
            user_id: Owner of the entry.
        """
        def _delete() -> dict:
            service.delete_entry(entry_id, user_id)
            if audit_logger is not None:
                audit_logger.log_data_delete(
                    tool_name="delete_body_composition_entry",
                    entry_id=entry_id,
                    count=1,
                )
            return {"status": "deleted", "entry_id": entry_id}

        return run_tool(
            "delete_body_composition_entry",
            {"entry_id": entry_id, "user_id": user_id},
            audit_logger,
            _delete,
            entry_id=entry_id,
        )

    @mcp.tool
    async def list_body_composition_entries(
        ctx: Context,
        user_id: str = DEFAULT_USER,
        page: int = 1,
        limit: int = 50,
        sort_by: str = "measurement_date",
        sort_order: str = "desc",
    ) -> str:
        """List stored readings, one page at a time.

        Args:
            user_id: Owner of the entries.
            page: Page number, starting at 1.
            limit: Entries per page.
            sort_by: 'measurement_date', 'timestamp', 'created_at' or 'wellness_score'.
            sort_order: 'asc' or 'desc'.
        """
        def _list() -> dict:
            return {
                "status": "ok",
                **service.list_entries(user_id, page, limit, sort_by, sort_order),
            }

        return run_tool(
            "list_body_composition_entries",
            {"user_id": user_id, "page": page, "limit": limit,
             "sort_by": sort_by, "sort_order": sort_order},
            audit_logger,
            _list,
        )

    @mcp.tool
    async def latest_body_composition(
        ctx: Context,
        user_id: str = DEFAULT_USER,
        profile_id: str | None = None,
    ) -> str:
        """The most recent reading, or the two most recent for comparison.

        Args:
            user_id: Owner of the entries.
            profile_id: Optional profile filter.
        """
        def _latest() -> dict:
            entries = service.get_latest_entries(user_id, profile_id)
            return {
                "status": "ok",
                "count": len(entries),
                "entries": [entry.as_dict() for entry in entries],
            }

        return run_tool(
            "latest_body_composition",
            {"user_id": user_id, "profile_id": profile_id},
            audit_logger,
            _latest,
        )

    @mcp.tool
    async def body_composition_today(
        ctx: Context,
        user_id: str = DEFAULT_USER,
        profile_id: str | None = None,
    ) -> str:
        """Today's reading, if one was recorded.

        Args:
            user_id: Owner of the entries.
            profile_id: Optional profile filter.
        """
        def _today() -> dict:
            return {"status": "ok", **service.get_current_day(user_id, profile_id)}

        return run_tool(
            "body_composition_today",
            {"user_id": user_id, "profile_id": profile_id},
            audit_logger,
            _today,
        )

    @mcp.tool
    async def body_composition_statistics(
        ctx: Context,
        range_key: str = "30d",
        user_id: str = DEFAULT_USER,
        profile_id: str | None = None,
    ) -> str:
        """Current, min, max, average and change per metric over a period.

        Args:
            range_key: 'daily', 'weekly', 'monthly', 'yearly', '7d', '30d', '90d' or '1y'.
            user_id: Owner of the entries.
            profile_id: Optional profile filter.
        """
        def _statistics() -> dict:
            return {"status": "ok", **service.get_statistics(user_id, profile_id, range_key)}

        return run_tool(
            "body_composition_statistics",
            {"range_key": range_key, "user_id": user_id, "profile_id": profile_id},
            audit_logger,
            _statistics,
        )

    @mcp.tool
    async def body_composition_trends(
        ctx: Context,
        range_key: str = "30d",
        fields: list[str] | None = None,
        user_id: str = DEFAULT_USER,
        profile_id: str | None = None,
    ) -> str:
        """Direction, change and volatility per metric over a period.

        Needs at least two readings in the period.

        Args:
            range_key: 'daily', 'weekly', 'monthly', 'yearly', '7d', '30d', '90d' or '1y'.
            fields: Metrics to analyze (default weight, bmi, body_fat,
                muscle_mass, visceral_fat).
            user_id: Owner of the entries.
            profile_id: Optional profile filter.
        """
        def _trends() -> dict:
            return {
                "status": "ok",
                **service.get_trends(user_id, range_key, fields, profile_id=profile_id),
            }

        return run_tool(
            "body_composition_trends",
            {"range_key": range_key, "fields": fields,
             "user_id": user_id, "profile_id": profile_id},
            audit_logger,
            _trends,
        )

    @mcp.tool
    async def body_composition_graph(
        ctx: Context,
        timeline: str = "monthly",
        fields: list[str] | None = None,
        user_id: str = DEFAULT_USER,
        profile_id: str | None = None,
    ) -> str:
        """Graph series per metric, grouped for the timeline.

        daily: every reading today; weekly: one point per day; monthly: one
        point per day (per week for busy months); yearly: one point per month.

        Args:
            timeline: 'daily', 'weekly', 'monthly' or 'yearly'.
            fields: Metrics to plot (default: all common scale metrics).
            user_id: Owner of the entries.
            profile_id: Optional profile filter.
        """
        def _graph() -> dict:
            return {"status": "ok", **service.get_graph(timeline, user_id, profile_id, fields)}

        return run_tool(
            "body_composition_graph",
            {"timeline": timeline, "fields": fields,
             "user_id": user_id, "profile_id": profile_id},
            audit_logger,
            _graph,
        )

    @mcp.tool
    async def smart_scale_dashboard(
        ctx: Context,
        user_id: str = DEFAULT_USER,
        profile_id: str | None = None,
    ) -> str:
        """Overview of the latest five readings: graphs, widgets and nudges.

        Args:
            user_id: Owner of the entries.
            profile_id: Optional profile filter.
        """
        def _dashboard() -> dict:
            page = service.dashboard(user_id, profile_id)
            if page is None:
                return {"status": "no_data", "message": "No body composition entries recorded yet"}
            return {"status": "ok", **page}

        return run_tool(
            "smart_scale_dashboard",
            {"user_id": user_id, "profile_id": profile_id},
            audit_logger,
            _dashboard,
        )

    @mcp.tool
    async def weight_readings(
        ctx: Context,
        user_id: str = DEFAULT_USER,
        days: int = 30,
    ) -> str:
        """Weight readings of the last days, grouped per day.

        Args:
            user_id: Owner of the entries.
            days: Number of days to look back (default: 30).
        """
        def _readings() -> dict:
            return {"status": "ok", **service.weight_readings(user_id, days=days)}

        return run_tool(
            "weight_readings", {"user_id": user_id, "days": days}, audit_logger, _readings
        )

    @mcp.tool
    async def wellness_assessment(
        ctx: Context,
        user_id: str = DEFAULT_USER,
        profile_id: str | None = None,
        height: float | None = None,
    ) -> str:
        """Risk breakdown, wellness score and nudges for the latest reading.

        Args:
            user_id: Owner of the entries.
            profile_id: Optional profile filter.
            height: Height in cm, used for muscle scoring when the reading has none.
        """
        def _assess() -> dict:
            return {"status": "ok", **service.assess_wellness(user_id, profile_id, height)}

        return run_tool(
            "wellness_assessment",
            {"user_id": user_id, "profile_id": profile_id, "height": height},
            audit_logger,
            _assess,
        )
