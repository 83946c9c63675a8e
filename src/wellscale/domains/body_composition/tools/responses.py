"""JSON responses and audit bookkeeping shared by the body composition tools."""

from __future__ import annotations

import json
import logging
import time
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Callable

from wellscale.core.storage.repository import RepositoryError
from wellscale.domains.body_composition.domain_logic.errors import (
    InsufficientDataError,
    ValidationError,
)
from wellscale.domains.body_composition.service import EntryNotFoundError

if TYPE_CHECKING:
    from wellscale.core.audit.logger import AuditLogger

logger = logging.getLogger(__name__)

# Errors reported back to the caller as a JSON error payload
CALLER_ERRORS = (ValidationError, InsufficientDataError, EntryNotFoundError, RepositoryError)


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, default=_json_default)


def error_response(exc: Exception) -> str:
    return json.dumps({
        "status": "error",
        "error_type": type(exc).__name__,
        "message": str(exc),
    })


def run_tool(
    tool_name: str,
    tool_input: dict[str, Any],
    audit_logger: AuditLogger | None,
    action: Callable[[], dict[str, Any]],
    *,
    entry_id: str | None = None,
) -> str:
    """Run ``action``, audit the call and serialize its result.

    Caller errors become ``{"status": "error", ...}``; anything else is
    audited as a failure and re-raised.
    """
    start_time = time.monotonic()

    def _audit(status: str, error_type: str | None = None, result_entry: str | None = None) -> None:
        if audit_logger is None:
            return
        audit_logger.log_tool_call(
            tool_name=tool_name,
            tool_input=tool_input,
            entry_id=result_entry or entry_id,
            duration_ms=(time.monotonic() - start_time) * 1000,
            status=status,
            error_type=error_type,
        )

    try:
        payload = action()
    except CALLER_ERRORS as exc:
        logger.info("%s rejected: %s", tool_name, type(exc).__name__)
        _audit("failure", type(exc).__name__)
        return error_response(exc)
    except Exception as exc:
        _audit("failure", type(exc).__name__)
        raise

    _audit("success", result_entry=payload.pop("_entry_id", None))
    return to_json(payload)
