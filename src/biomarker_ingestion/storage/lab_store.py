# ============================================================================
# src/biomarker_ingestion/storage/lab_store.py
# ============================================================================
"""
Lab Store

SQLite persistence for lab documents, their biomarker records and the
per-document processing status. Raw sqlite3, JSON text for metadata
blobs, one connection per call.

Connections run in autocommit mode; multi-statement work goes through
transaction(), which opens with BEGIN IMMEDIATE so the write lock is
taken up front and two writers never interleave on the same database.
Methods that take a `conn` argument run inside the caller's transaction.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from ..config import storage_settings
from ..core.context import ProcessingState
from ..utils.exceptions import ProcessingConflictError

logger = logging.getLogger(__name__)


_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS lab_results (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id         INTEGER,
        file_name       TEXT NOT NULL,
        uploaded_at     TEXT NOT NULL,
        metadata        TEXT NOT NULL DEFAULT '{}'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS biomarker_results (
        id                  INTEGER PRIMARY KEY AUTOINCREMENT,
        lab_result_id       INTEGER NOT NULL REFERENCES lab_results(id) ON DELETE CASCADE,
        name                TEXT NOT NULL,
        value               TEXT NOT NULL,
        unit                TEXT NOT NULL,
        category            TEXT NOT NULL,
        reference_range     TEXT,
        test_date           TEXT NOT NULL,
        status              TEXT,
        extraction_method   TEXT NOT NULL,
        confidence          REAL,
        metadata            TEXT,
        created_at          TEXT NOT NULL,
        updated_at          TEXT NOT NULL,
        UNIQUE (lab_result_id, name, test_date)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_biomarker_results_lab
    ON biomarker_results (lab_result_id)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_biomarker_results_name_date
    ON biomarker_results (name, test_date)
    """,
    """
    CREATE TABLE IF NOT EXISTS biomarker_processing_status (
        lab_result_id       INTEGER PRIMARY KEY REFERENCES lab_results(id) ON DELETE CASCADE,
        status              TEXT NOT NULL,
        extraction_method   TEXT,
        biomarker_count     INTEGER NOT NULL DEFAULT 0,
        error_message       TEXT,
        started_at          TEXT NOT NULL,
        completed_at        TEXT,
        metadata            TEXT NOT NULL DEFAULT '{}',
        created_at          TEXT NOT NULL,
        updated_at          TEXT NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_processing_status_status
    ON biomarker_processing_status (status)
    """,
]

_BIOMARKER_COLUMNS = (
    "lab_result_id", "name", "value", "unit", "category", "reference_range",
    "test_date", "status", "extraction_method", "confidence", "metadata",
    "created_at", "updated_at",
)


def _loads(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed JSON metadata")
        return {}
    return data if isinstance(data, dict) else {}


class LabStore:
    """
    SQLite-backed store for lab results, biomarker records and
    processing status.
    """

    def __init__(self, db_path: Optional[Path] = None, timeout: Optional[float] = None):
        self.db_path = Path(db_path or storage_settings.LAB_DB_PATH)
        self.timeout = timeout if timeout is not None else storage_settings.SQLITE_TIMEOUT
        self._init_database()

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _connection(self, conn: Optional[sqlite3.Connection] = None) -> Iterator[sqlite3.Connection]:
        """Reuse the caller's connection or open a short-lived one."""
        if conn is not None:
            yield conn
            return
        own = self._connect()
        try:
            yield own
        finally:
            own.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        BEGIN IMMEDIATE ... COMMIT on a fresh connection.

        Any exception rolls the whole unit back and is re-raised.
        """
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------
    def _init_database(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            for statement in _SCHEMA:
                conn.execute(statement)
        logger.info(f"Lab store initialized: {self.db_path}")

    # ------------------------------------------------------------------
    # Lab documents
    # ------------------------------------------------------------------
    def add_lab_result(
        self,
        file_name: str,
        metadata: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
        uploaded_at: Optional[datetime] = None,
    ) -> int:
        """Insert a lab document and return its id."""
        with self._connection() as conn:
            cur = conn.execute(
                "INSERT INTO lab_results (user_id, file_name, uploaded_at, metadata) VALUES (?, ?, ?, ?)",
                (
                    user_id,
                    file_name,
                    (uploaded_at or datetime.now()).isoformat(),
                    json.dumps(metadata or {}, default=str),
                ),
            )
            return cur.lastrowid

    def get_lab_result(
        self,
        lab_result_id: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[Dict[str, Any]]:
        with self._connection(conn) as c:
            row = c.execute(
                "SELECT id, user_id, file_name, uploaded_at, metadata FROM lab_results WHERE id = ?",
                (lab_result_id,),
            ).fetchone()
        if row is None:
            return None
        return {
            "id": row["id"],
            "user_id": row["user_id"],
            "file_name": row["file_name"],
            "uploaded_at": datetime.fromisoformat(row["uploaded_at"]) if row["uploaded_at"] else None,
            "metadata": _loads(row["metadata"]),
        }

    def update_lab_metadata(
        self,
        conn: sqlite3.Connection,
        lab_result_id: int,
        metadata: Dict[str, Any],
    ) -> None:
        conn.execute(
            "UPDATE lab_results SET metadata = ? WHERE id = ?",
            (json.dumps(metadata, default=str), lab_result_id),
        )

    def list_lab_result_ids(self) -> List[int]:
        with self._connection() as conn:
            rows = conn.execute("SELECT id FROM lab_results ORDER BY id").fetchall()
        return [r["id"] for r in rows]

    def find_unprocessed_lab_results(self, limit: Optional[int] = None) -> List[int]:
        """Documents with no processing status row, or whose last run ended in error."""
        query = """
            SELECT lr.id FROM lab_results lr
            LEFT JOIN biomarker_processing_status ps ON ps.lab_result_id = lr.id
            WHERE ps.lab_result_id IS NULL OR ps.status = ?
            ORDER BY lr.uploaded_at DESC, lr.id DESC
        """
        params: list = [ProcessingState.ERROR.value]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        with self._connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [r["id"] for r in rows]

    # ------------------------------------------------------------------
    # Biomarker records
    # ------------------------------------------------------------------
    def delete_biomarkers(self, conn: sqlite3.Connection, lab_result_id: int) -> int:
        cur = conn.execute("DELETE FROM biomarker_results WHERE lab_result_id = ?", (lab_result_id,))
        return cur.rowcount

    def insert_biomarkers(
        self,
        conn: sqlite3.Connection,
        rows: Sequence[Dict[str, Any]],
        batch_size: Optional[int] = None,
    ) -> int:
        """Insert rows in fixed-size batches; returns the number inserted."""
        batch_size = batch_size or storage_settings.STORAGE_BATCH_SIZE
        inserted = 0
        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            self._insert_batch(conn, batch)
            inserted += len(batch)
            logger.debug(f"Inserted batch of {len(batch)} biomarkers ({inserted}/{len(rows)})")
        return inserted

    def _insert_batch(self, conn: sqlite3.Connection, batch: Sequence[Dict[str, Any]]) -> None:
        placeholders = "(" + ", ".join("?" for _ in _BIOMARKER_COLUMNS) + ")"
        sql = (
            f"INSERT INTO biomarker_results ({', '.join(_BIOMARKER_COLUMNS)}) VALUES "
            + ", ".join(placeholders for _ in batch)
        )
        params: list = []
        for row in batch:
            for column in _BIOMARKER_COLUMNS:
                value = row.get(column)
                if column == "metadata" and value is not None:
                    value = json.dumps(value, default=str)
                params.append(value)
        conn.execute(sql, params)

    def count_biomarkers(self, lab_result_id: int, conn: Optional[sqlite3.Connection] = None) -> int:
        with self._connection(conn) as c:
            return c.execute(
                "SELECT COUNT(*) FROM biomarker_results WHERE lab_result_id = ?",
                (lab_result_id,),
            ).fetchone()[0]

    def get_biomarkers(self, lab_result_id: int) -> List[Dict[str, Any]]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM biomarker_results WHERE lab_result_id = ? ORDER BY id",
                (lab_result_id,),
            ).fetchall()
        results = []
        for row in rows:
            record = dict(row)
            record["metadata"] = _loads(record.get("metadata"))
            results.append(record)
        return results

    # ------------------------------------------------------------------
    # Processing status
    # ------------------------------------------------------------------
    def get_status(
        self,
        lab_result_id: int,
        conn: Optional[sqlite3.Connection] = None,
    ) -> Optional[Dict[str, Any]]:
        with self._connection(conn) as c:
            row = c.execute(
                "SELECT * FROM biomarker_processing_status WHERE lab_result_id = ?",
                (lab_result_id,),
            ).fetchone()
        if row is None:
            return None
        status = dict(row)
        status["metadata"] = _loads(status.get("metadata"))
        return status

    def write_status(
        self,
        conn: sqlite3.Connection,
        lab_result_id: int,
        status: ProcessingState,
        metadata_updates: Optional[Dict[str, Any]] = None,
        **columns: Any,
    ) -> None:
        """
        Insert or update the status row, merging metadata_updates into the
        existing metadata blob. Extra keyword columns (extraction_method,
        biomarker_count, error_message, started_at, completed_at) are
        written as given.
        """
        now = datetime.now().isoformat()
        existing = self.get_status(lab_result_id, conn=conn)
        metadata = existing["metadata"] if existing else {}
        metadata.update(metadata_updates or {})

        values = dict(columns)
        values["status"] = ProcessingState(status).value
        values["metadata"] = json.dumps(metadata, default=str)
        values["updated_at"] = now

        if existing is None:
            values.setdefault("started_at", now)
            values.setdefault("biomarker_count", 0)
            values["created_at"] = now
            values["lab_result_id"] = lab_result_id
            names = list(values)
            conn.execute(
                f"INSERT INTO biomarker_processing_status ({', '.join(names)}) "
                f"VALUES ({', '.join('?' for _ in names)})",
                [values[n] for n in names],
            )
        else:
            assignments = ", ".join(f"{name} = ?" for name in values)
            conn.execute(
                f"UPDATE biomarker_processing_status SET {assignments} WHERE lab_result_id = ?",
                [*values.values(), lab_result_id],
            )

    def claim_processing(self, lab_result_id: int, stale_after_seconds: Optional[int] = None) -> int:
        """
        Atomically move a document into `processing`.

        Raises ProcessingConflictError, leaving the row untouched, when
        another run holds a claim younger than stale_after_seconds.
        Returns the retry count recorded for this run.
        """
        stale_after = (
            stale_after_seconds if stale_after_seconds is not None
            else storage_settings.PROCESSING_STALE_AFTER_SECONDS
        )
        now = datetime.now()

        with self.transaction() as conn:
            existing = self.get_status(lab_result_id, conn=conn)
            retry_count = 0

            if existing is not None:
                retry_count = int(existing["metadata"].get("retryCount", 0) or 0)
                state = existing["status"]

                if state == ProcessingState.PROCESSING.value:
                    started = datetime.fromisoformat(existing["started_at"])
                    age = (now - started).total_seconds()
                    if age < stale_after:
                        raise ProcessingConflictError(lab_result_id)
                    logger.warning(
                        f"Taking over stale processing claim for lab result {lab_result_id} "
                        f"(started {age:.0f}s ago)"
                    )
                elif state == ProcessingState.ERROR.value:
                    retry_count += 1

            self.write_status(
                conn,
                lab_result_id,
                ProcessingState.PROCESSING,
                metadata_updates={"retryCount": retry_count},
                started_at=now.isoformat(),
                completed_at=None,
                error_message=None,
            )

        return retry_count

    def set_error_status(self, lab_result_id: int, message: str) -> None:
        """Record a failure on its own connection and transaction."""
        with self.transaction() as conn:
            self.write_status(
                conn,
                lab_result_id,
                ProcessingState.ERROR,
                error_message=message,
                completed_at=datetime.now().isoformat(),
            )
