"""Shared test fixtures for wellscale tests."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("RISK_TABLES_PATH", "")
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("WELLSCALE_HOST", "127.0.0.1")
    monkeypatch.setenv("WELLSCALE_ALLOW_INSECURE_BIND", "false")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))


def _reading(when: datetime, **metrics: Any) -> dict[str, Any]:
    return {"timestamp": int(when.timestamp()), **metrics}


@pytest.fixture
def make_reading():
    """Factory for a scale reading taken at local time ``when``."""
    return _reading


@pytest.fixture
def now() -> datetime:
    """Fixed 'now' for window calculations (local, naive)."""
    return datetime(2026, 3, 15, 12, 0, 0)


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_db():
    """Create an in-memory HealthDatabase for testing."""
    from wellscale.core.storage.database import HealthDatabase

    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from wellscale.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def repository(health_db, field_encryptor):
    """Create a BodyCompositionRepository backed by in-memory SQLite."""
    from wellscale.core.storage.repository import BodyCompositionRepository

    return BodyCompositionRepository(health_db, field_encryptor)


@pytest.fixture
def audit_logger(health_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from wellscale.core.audit.logger import AuditLogger

    return AuditLogger(health_db)


@pytest.fixture
def service(repository):
    """BodyCompositionService with the default engines."""
    from wellscale.domains.body_composition.service import BodyCompositionService

    return BodyCompositionService(repository)
