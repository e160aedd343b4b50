"""SQLite repository for generated designs.

Designs are stored one row per design, keyed by id, with the full record as
JSON and two indexed columns:

- ``seq``: autoincrement insertion order, used for "oldest first" listings
- ``owner_artifact_id``: secondary index backing :meth:`get_by_owner`

Every public operation is a coroutine; the blocking ``sqlite3`` work runs in
a worker thread via :func:`asyncio.to_thread`.  Each operation opens its own
connection and commits in one transaction, so writes to the same key are
serialized by SQLite itself.

Failures are never swallowed: any ``sqlite3.Error`` or unparseable stored
record surfaces as a non-retryable ``STORAGE_ERROR`` :class:`DesignError`.
Retrying storage is the caller's decision.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError

from creative_design.core.errors import DesignError, storage_error
from creative_design.core.models import GeneratedDesign

logger = logging.getLogger(__name__)


class DesignRepository:
    """Durable store of completed designs.

    Args:
        db_path: Path to the SQLite database file.  Parent directories are
            created on demand.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()
        logger.info(f"Initialized design repository at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _initialize_db(self) -> None:
        """Create database schema if it doesn't exist."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS designs (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        id TEXT NOT NULL UNIQUE,
                        owner_artifact_id TEXT NOT NULL,
                        created_at REAL NOT NULL,
                        payload TEXT NOT NULL
                    )
                    """)

                # Owner lookups go through this index rather than a table scan
                cursor.execute("""
                    CREATE INDEX IF NOT EXISTS idx_designs_owner
                    ON designs(owner_artifact_id, seq)
                    """)

                conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Error initializing design repository {self.db_path}: {e}")
            raise storage_error("The design store could not be opened.", e) from e

    async def _run(self, operation, *args):
        try:
            return await asyncio.to_thread(operation, *args)
        except DesignError:
            raise
        except sqlite3.Error as e:
            logger.error(f"Design repository {operation.__name__} failed: {e}")
            raise storage_error("The design store is unavailable. Please try again.", e) from e
        except ValidationError as e:
            logger.error(f"Design repository {operation.__name__} read a corrupt record: {e}")
            raise storage_error("A stored design is corrupt and could not be read.", e) from e

    # -- Writes ---------------------------------------------------------------

    def _insert(self, design: GeneratedDesign) -> None:
        with self._connect() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO designs (id, owner_artifact_id, created_at, payload)
                    VALUES (?, ?, ?, ?)
                    """,
                    (design.id, design.owner_artifact_id, design.created_at, design.model_dump_json()),
                )
            except sqlite3.IntegrityError as e:
                logger.error(f"Design {design.id} already exists")
                raise storage_error(f"A design with id {design.id} already exists.", e) from e
        logger.info(f"Saved design {design.id} for artifact {design.owner_artifact_id}")

    async def save(self, design: GeneratedDesign) -> None:
        """Insert a new design.

        Raises:
            DesignError: ``STORAGE_ERROR`` if the id already exists or the
                store fails.
        """
        await self._run(self._insert, design)

    def _upsert(self, design: GeneratedDesign) -> None:
        with self._connect() as conn:
            # ON CONFLICT keeps the existing row, and therefore its seq position
            conn.execute(
                """
                INSERT INTO designs (id, owner_artifact_id, created_at, payload)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    owner_artifact_id = excluded.owner_artifact_id,
                    created_at = excluded.created_at,
                    payload = excluded.payload
                """,
                (design.id, design.owner_artifact_id, design.created_at, design.model_dump_json()),
            )
        logger.info(f"Updated design {design.id}")

    async def update(self, design: GeneratedDesign) -> None:
        """Replace the stored design with the same id, inserting if absent."""
        await self._run(self._upsert, design)

    def _delete(self, design_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM designs WHERE id = ?", (design_id,))
            was_deleted = cursor.rowcount > 0
        if was_deleted:
            logger.info(f"Deleted design {design_id}")
        else:
            logger.debug(f"Design not found for delete: {design_id}")
        return was_deleted

    async def delete(self, design_id: str) -> bool:
        """Delete a design.

        Returns:
            True if a design was removed, False if the id was unknown.
        """
        return await self._run(self._delete, design_id)

    def _clear(self) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM designs")
        logger.info("Cleared all designs")

    async def clear(self) -> None:
        """Remove every design."""
        await self._run(self._clear)

    # -- Reads ----------------------------------------------------------------

    def _select_one(self, design_id: str) -> GeneratedDesign | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT payload FROM designs WHERE id = ? LIMIT 1", (design_id,)
            ).fetchone()
        return GeneratedDesign.model_validate_json(row[0]) if row else None

    async def get(self, design_id: str) -> GeneratedDesign | None:
        return await self._run(self._select_one, design_id)

    def _select_all(self) -> list[GeneratedDesign]:
        with self._connect() as conn:
            rows = conn.execute("SELECT payload FROM designs ORDER BY seq ASC").fetchall()
        return [GeneratedDesign.model_validate_json(row[0]) for row in rows]

    async def get_all(self) -> list[GeneratedDesign]:
        """All designs, oldest first."""
        return await self._run(self._select_all)

    def _select_by_owner(self, owner_artifact_id: str) -> list[GeneratedDesign]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT payload FROM designs INDEXED BY idx_designs_owner
                WHERE owner_artifact_id = ?
                ORDER BY seq ASC
                """,
                (owner_artifact_id,),
            ).fetchall()
        return [GeneratedDesign.model_validate_json(row[0]) for row in rows]

    async def get_by_owner(self, owner_artifact_id: str) -> list[GeneratedDesign]:
        """Designs belonging to one artifact, oldest first."""
        return await self._run(self._select_by_owner, owner_artifact_id)

    def _count(self) -> int:
        with self._connect() as conn:
            result = conn.execute("SELECT COUNT(*) FROM designs").fetchone()
        return result[0] if result else 0

    async def count(self) -> int:
        return await self._run(self._count)
