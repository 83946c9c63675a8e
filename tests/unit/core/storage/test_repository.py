"""Tests for BodyCompositionRepository — CRUD with in-memory SQLite."""

from __future__ import annotations

import pytest

from wellscale.core.storage.models import BodyCompositionEntry
from wellscale.core.storage.repository import RepositoryError


def _make_entry(day: int = 1, **overrides) -> BodyCompositionEntry:
    """Create a test entry measured at 08:00 on March ``day``, 2026."""
    defaults = dict(
        id="",
        user_id="user-1",
        profile_id="main",
        timestamp=1772352000 + (day - 1) * 86400,
        measurement_date=f"2026-03-{day:02d}T08:00:00",
        gender="female",
        metrics={"weight": 62.5, "bmi": 22.1, "body_fat": 27.3, "timestamp": 0},
        wellness_score=71.4,
        total_risk_score=28.6,
    )
    defaults.update(overrides)
    return BodyCompositionEntry(**defaults)


class TestSaveAndRetrieve:
    def test_save_returns_id(self, repository):
        entry_id = repository.save_entry(_make_entry())
        assert isinstance(entry_id, str)
        assert len(entry_id) == 36  # UUID format

    def test_save_fills_timestamps(self, repository):
        entry = _make_entry()
        repository.save_entry(entry)
        assert entry.created_at
        assert entry.updated_at == entry.created_at

    def test_round_trip_preserves_data(self, repository):
        entry_id = repository.save_entry(_make_entry())
        loaded = repository.get_entry(entry_id)

        assert loaded is not None
        assert loaded.metrics["weight"] == 62.5
        assert loaded.metrics["body_fat"] == 27.3
        assert loaded.gender == "female"
        assert loaded.profile_id == "main"
        assert loaded.wellness_score == 71.4

    def test_explicit_id_kept(self, repository):
        assert repository.save_entry(_make_entry(id="fixed-id")) == "fixed-id"

    def test_metrics_encrypted_at_rest(self, repository, health_db):
        entry_id = repository.save_entry(_make_entry())
        row = health_db.connection.execute(
            "SELECT payload_enc FROM body_composition_entries WHERE id = ?", (entry_id,)
        ).fetchone()
        assert "62.5" not in row[0]
        assert "weight" not in row[0]

    def test_get_missing_returns_none(self, repository):
        assert repository.get_entry("nope") is None

    def test_get_scoped_to_user(self, repository):
        entry_id = repository.save_entry(_make_entry())
        assert repository.get_entry(entry_id, "user-1") is not None
        assert repository.get_entry(entry_id, "user-2") is None

    def test_as_record_flattens_metrics(self, repository):
        loaded = repository.get_entry(repository.save_entry(_make_entry()))
        record = loaded.as_record()
        assert record["weight"] == 62.5
        assert record["id"] == loaded.id
        assert record["timestamp"] == loaded.timestamp
        assert record["gender"] == "female"


class TestUpdateAndDelete:
    def test_update(self, repository):
        entry = _make_entry()
        repository.save_entry(entry)
        entry.metrics = {**entry.metrics, "weight": 61.0}
        entry.wellness_score = 74.0

        assert repository.update_entry(entry) is True
        loaded = repository.get_entry(entry.id)
        assert loaded.metrics["weight"] == 61.0
        assert loaded.wellness_score == 74.0

    def test_update_other_users_entry_fails(self, repository):
        entry = _make_entry()
        repository.save_entry(entry)
        entry.user_id = "intruder"
        assert repository.update_entry(entry) is False

    def test_delete(self, repository):
        entry_id = repository.save_entry(_make_entry())
        assert repository.delete_entry(entry_id, "user-1") is True
        assert repository.get_entry(entry_id) is None

    def test_delete_requires_owner(self, repository):
        entry_id = repository.save_entry(_make_entry())
        assert repository.delete_entry(entry_id, "user-2") is False
        assert repository.get_entry(entry_id) is not None

    def test_delete_missing(self, repository):
        assert repository.delete_entry("nope", "user-1") is False


class TestQueries:
    @pytest.fixture
    def populated(self, repository):
        for day in (3, 1, 2):
            repository.save_entry(_make_entry(day, wellness_score=60.0 + day))
        repository.save_entry(_make_entry(4, profile_id="guest"))
        repository.save_entry(_make_entry(5, user_id="user-2"))
        return repository

    def test_get_entries_oldest_first(self, populated):
        entries = populated.get_entries("user-1")
        assert [e.measurement_date[:10] for e in entries] == [
            "2026-03-01", "2026-03-02", "2026-03-03", "2026-03-04",
        ]

    def test_get_entries_profile_filter(self, populated):
        assert len(populated.get_entries("user-1", profile_id="main")) == 3
        assert len(populated.get_entries("user-1", profile_id="guest")) == 1

    def test_get_entries_date_bounds(self, populated):
        entries = populated.get_entries(
            "user-1", since="2026-03-02T00:00:00", until="2026-03-03T23:59:59"
        )
        assert [e.measurement_date[:10] for e in entries] == ["2026-03-02", "2026-03-03"]

    def test_latest_entries_newest_first(self, populated):
        latest = populated.get_latest_entries("user-1", profile_id="main")
        assert [e.measurement_date[:10] for e in latest] == ["2026-03-03", "2026-03-02"]

    def test_list_entries_paginates(self, populated):
        page = populated.list_entries("user-1", offset=1, limit=2)
        assert [e.measurement_date[:10] for e in page] == ["2026-03-03", "2026-03-02"]

    def test_list_entries_sort_by_score(self, populated):
        page = populated.list_entries("user-1", sort_by="wellness_score", sort_order="ASC", limit=3)
        assert [e.wellness_score for e in page] == [61.0, 62.0, 63.0]

    def test_invalid_sort_column(self, repository):
        with pytest.raises(RepositoryError, match="Invalid sort column"):
            repository.list_entries("user-1", sort_by="payload_enc")

    def test_invalid_sort_order(self, repository):
        with pytest.raises(RepositoryError, match="Invalid sort order"):
            repository.list_entries("user-1", sort_order="sideways")

    def test_count_entries(self, populated):
        assert populated.count_entries() == 5
        assert populated.count_entries("user-1") == 4
        assert populated.count_entries("user-1", profile_id="guest") == 1
        assert populated.count_entries("nobody") == 0
