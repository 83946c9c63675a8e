"""Body composition repository — CRUD operations for the encrypted data bank.

The repository mediates between ``BodyCompositionEntry`` objects and the
SQLite database, using FieldEncryptor to encrypt/decrypt metric payloads.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from wellscale.core.storage.database import HealthDatabase
from wellscale.core.storage.encryption import FieldEncryptor
from wellscale.core.storage.models import BodyCompositionEntry

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = ("measurement_date", "timestamp", "created_at", "wellness_score")


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class BodyCompositionRepository:
    """CRUD repository for encrypted body composition entries.

    Usage::

        db = HealthDatabase(":memory:")
        db.initialize()
        repo = BodyCompositionRepository(db, FieldEncryptor(key="..."))

        entry_id = repo.save_entry(entry)
        readings = repo.get_entries("user-1", since="2026-01-01T00:00:00")
    """

    def __init__(self, database: HealthDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save_entry(self, entry: BodyCompositionEntry) -> str:
        """Persist an entry with its metrics encrypted.

        If ``entry.id`` is empty a UUID is generated. ``created_at`` and
        ``updated_at`` are filled in on the entry when not already set.

        Returns:
            The entry ID.
        """
        entry.id = entry.id or self._new_id()
        entry.created_at = entry.created_at or self._now_iso()
        entry.updated_at = entry.updated_at or entry.created_at

        conn = self._db.connection
        conn.execute(
            """INSERT INTO body_composition_entries (
                id, user_id, profile_id, timestamp, measurement_date, gender,
                payload_enc, wellness_score, total_risk_score, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                entry.id,
                entry.user_id,
                entry.profile_id,
                entry.timestamp,
                entry.measurement_date,
                entry.gender,
                self._enc.encrypt(entry.metrics),
                entry.wellness_score,
                entry.total_risk_score,
                entry.created_at,
                entry.updated_at,
            ),
        )
        conn.commit()
        logger.info("Saved body composition entry %s", entry.id)
        return entry.id

    def update_entry(self, entry: BodyCompositionEntry) -> bool:
        """Overwrite a stored entry. Returns False when no row matched."""
        entry.updated_at = self._now_iso()
        conn = self._db.connection
        cursor = conn.execute(
            """UPDATE body_composition_entries SET
                profile_id = ?, timestamp = ?, measurement_date = ?, gender = ?,
                payload_enc = ?, wellness_score = ?, total_risk_score = ?, updated_at = ?
               WHERE id = ? AND user_id = ?""",
            (
                entry.profile_id,
                entry.timestamp,
                entry.measurement_date,
                entry.gender,
                self._enc.encrypt(entry.metrics),
                entry.wellness_score,
                entry.total_risk_score,
                entry.updated_at,
                entry.id,
                entry.user_id,
            ),
        )
        conn.commit()
        return cursor.rowcount > 0

    def delete_entry(self, entry_id: str, user_id: str) -> bool:
        """Delete one of the user's entries. Returns True if a row was removed."""
        conn = self._db.connection
        cursor = conn.execute(
            "DELETE FROM body_composition_entries WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        conn.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted body composition entry %s", entry_id)
        return deleted

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_entry(self, entry_id: str, user_id: str | None = None) -> BodyCompositionEntry | None:
        """Retrieve an entry by ID (optionally scoped to a user), decrypted."""
        query = "SELECT * FROM body_composition_entries WHERE id = ?"
        params: list[Any] = [entry_id]
        if user_id is not None:
            query += " AND user_id = ?"
            params.append(user_id)

        row = self._db.connection.execute(query, params).fetchone()
        return self._row_to_entry(row) if row is not None else None

    def get_entries(
        self,
        user_id: str,
        *,
        profile_id: str | None = None,
        since: str | None = None,
        until: str | None = None,
    ) -> list[BodyCompositionEntry]:
        """Entries for a user, oldest first.

        Args:
            user_id: Owner of the entries.
            profile_id: Optional profile filter.
            since: ISO 8601 measurement date lower bound (inclusive).
            until: ISO 8601 measurement date upper bound (inclusive).
        """
        conditions, params = self._scope(user_id, profile_id)
        if since:
            conditions.append("measurement_date >= ?")
            params.append(since)
        if until:
            conditions.append("measurement_date <= ?")
            params.append(until)

        query = (
            "SELECT * FROM body_composition_entries WHERE "
            + " AND ".join(conditions)
            + " ORDER BY measurement_date ASC, timestamp ASC"
        )
        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_latest_entries(
        self,
        user_id: str,
        *,
        profile_id: str | None = None,
        limit: int = 2,
    ) -> list[BodyCompositionEntry]:
        """The user's most recent entries, newest first."""
        conditions, params = self._scope(user_id, profile_id)
        query = (
            "SELECT * FROM body_composition_entries WHERE "
            + " AND ".join(conditions)
            + " ORDER BY measurement_date DESC, timestamp DESC LIMIT ?"
        )
        params.append(limit)
        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def list_entries(
        self,
        user_id: str,
        *,
        offset: int = 0,
        limit: int = 10,
        sort_by: str = "measurement_date",
        sort_order: str = "desc",
    ) -> list[BodyCompositionEntry]:
        """One page of the user's entries.

        Raises:
            RepositoryError: If ``sort_by`` or ``sort_order`` is not supported.
        """
        if sort_by not in SORTABLE_COLUMNS:
            raise RepositoryError(
                f"Invalid sort column: {sort_by!r}. Valid: {list(SORTABLE_COLUMNS)}"
            )
        direction = sort_order.lower() if isinstance(sort_order, str) else ""
        if direction not in ("asc", "desc"):
            raise RepositoryError(f"Invalid sort order: {sort_order!r}. Use 'asc' or 'desc'")

        # Column name and direction validated above
        query = (
            "SELECT * FROM body_composition_entries WHERE user_id = ? "
            f"ORDER BY {sort_by} {direction.upper()}, id ASC LIMIT ? OFFSET ?"
        )
        rows = self._db.connection.execute(query, (user_id, limit, offset)).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def count_entries(self, user_id: str | None = None, *, profile_id: str | None = None) -> int:
        """Count stored entries, for one user or overall."""
        if user_id is None:
            row = self._db.connection.execute(
                "SELECT COUNT(*) FROM body_composition_entries"
            ).fetchone()
            return row[0]

        conditions, params = self._scope(user_id, profile_id)
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM body_composition_entries WHERE " + " AND ".join(conditions),
            params,
        ).fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _scope(user_id: str, profile_id: str | None) -> tuple[list[str], list[Any]]:
        conditions = ["user_id = ?"]
        params: list[Any] = [user_id]
        if profile_id is not None:
            conditions.append("profile_id = ?")
            params.append(profile_id)
        return conditions, params

    def _row_to_entry(self, row: Any) -> BodyCompositionEntry:
        return BodyCompositionEntry(
            id=row["id"],
            user_id=row["user_id"],
            profile_id=row["profile_id"],
            timestamp=row["timestamp"],
            measurement_date=row["measurement_date"],
            gender=row["gender"],
            metrics=self._enc.decrypt(row["payload_enc"]),
            wellness_score=row["wellness_score"],
            total_risk_score=row["total_risk_score"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
