"""wellscale MCP server — application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from wellscale.core.audit.logger import AuditLogger
from wellscale.core.config.settings import get_settings
from wellscale.core.storage.database import HealthDatabase
from wellscale.core.storage.encryption import EncryptionError, FieldEncryptor
from wellscale.core.storage.repository import BodyCompositionRepository
from wellscale.domains.body_composition.domain_logic.analytics import TimeSeriesAnalyticsEngine
from wellscale.domains.body_composition.domain_logic.nudges import NudgeGenerator
from wellscale.domains.body_composition.domain_logic.risk_engine import RiskScoreEngine
from wellscale.domains.body_composition.domain_logic.risk_tables import load_risk_tables
from wellscale.domains.body_composition.domain_logic.scale_dashboard import ScaleDashboard
from wellscale.domains.body_composition.tools.analytics_tools import register_analytics_tools
from wellscale.domains.body_composition.tools.risk_tools import register_risk_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "wellscale"
SERVER_VERSION = "0.1.0"


def create_app(
    *,
    repository_override: BodyCompositionRepository | None = None,
    audit_logger_override: AuditLogger | None = None,
) -> FastMCP:
    """Create and configure the wellscale MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Builds the scoring, analytics and nudge engines
    3. Initializes the encrypted storage layer when a key is configured
    4. Registers the stateless tools, then the storage-backed tools
    """
    settings = get_settings()

    server = FastMCP(
        "wellscale",
        instructions=(
            "Body composition wellness server. Scores eight disease risks and "
            "an overall wellness score from smart scale and vital readings, "
            "stores readings in an encrypted local data bank, and reports "
            "statistics, trends, graphs and nudges over them."
        ),
    )

    # --- Engines ---
    if settings.risk_tables_path:
        risk_engine = RiskScoreEngine(load_risk_tables(settings.risk_tables_path))
        logger.info("Loaded risk tables from %s", settings.risk_tables_path)
    else:
        risk_engine = RiskScoreEngine()
    analytics = TimeSeriesAnalyticsEngine(week_bucket_threshold=settings.week_bucket_threshold)
    nudge_generator = NudgeGenerator()

    # --- Encrypted storage (body composition data bank) ---
    repository: BodyCompositionRepository | None = None
    audit_logger: AuditLogger | None = audit_logger_override
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key:
        try:
            encryptor = FieldEncryptor(settings.encryption_key)
            health_db = HealthDatabase(settings.db_path)
            health_db.initialize()
            repository = BodyCompositionRepository(health_db, encryptor)
            if audit_logger is None:
                audit_logger = AuditLogger(health_db)
            logger.info(
                "Body composition data bank initialized: %s (schema v%d)",
                settings.db_path,
                health_db.get_schema_version(),
            )
        except EncryptionError as exc:
            logger.error("Failed to initialize storage: %s", exc)
            logger.warning("Continuing without persistence — entries will not be stored")
    else:
        logger.info(
            "No ENCRYPTION_KEY configured — running without persistence. "
            "Set ENCRYPTION_KEY to enable the body composition data bank."
        )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "risk_tables_version": risk_engine.tables.version,
            "storage_enabled": repository is not None,
            "audit_enabled": audit_logger is not None,
        }
        if repository is not None:
            status["entries_stored"] = repository.count_entries()
        return status

    register_risk_tools(server, risk_engine, nudge_generator, audit_logger)
    register_analytics_tools(server, analytics, audit_logger)
    logger.info("Risk and analytics tools registered")

    # --- Register entry tools (requires storage) ---
    if repository is not None:
        from wellscale.domains.body_composition.service import BodyCompositionService
        from wellscale.domains.body_composition.tools.entry_tools import register_entry_tools

        service = BodyCompositionService(
            repository,
            risk_engine=risk_engine,
            analytics=analytics,
            nudge_generator=nudge_generator,
            dashboard=ScaleDashboard(
                risk_engine, nudge_generator, standard_weight=settings.standard_weight_kg
            ),
            default_gender=settings.default_gender,
            default_height=settings.default_height_cm,
        )
        register_entry_tools(server, service, audit_logger)
        logger.info("Body composition entry tools registered")

    return server


# Module-level instance for FastMCP discovery ("...app.py:mcp").
# Lazy: only created when accessed, not when tests import create_app.
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
