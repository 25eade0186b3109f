"""
SQLite persistence sink for decisions, executions and tick records.

Writes are fire-and-forget: `save_*` enqueues and returns immediately; a
daemon worker thread drains the queue. Failures are logged here and never
reach the tick loop.
"""

import json
import logging
import queue
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, List, Optional, Union

from claw_agent.data.models import Decision, ExecutionRecord, TickAuditRecord

logger = logging.getLogger(__name__)

_STOP = object()


class SqliteSink:
    """
    Repository for the audit tables: decisions, executions, ticks.
    """

    def __init__(self, db_path: Union[str, Path] = "claw.db", start: bool = True):
        """
        Initialize sink and create tables.

        Args:
            db_path: SQLite database file
            start: Start the writer thread immediately
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_database()
        self._queue: "queue.Queue[Any]" = queue.Queue()
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="sqlite-sink", daemon=True)
        if start:
            self._worker.start()
        logger.info(f"[DB] SQLite sink ready at {self.db_path}")

    @contextmanager
    def _get_connection(self):
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _initialize_database(self) -> None:
        with self._get_connection() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS decisions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    token TEXT NOT NULL,
                    token_address TEXT NOT NULL,
                    action TEXT NOT NULL,
                    allocation REAL NOT NULL,
                    confidence REAL NOT NULL,
                    momentum_score REAL NOT NULL,
                    reasoning TEXT,
                    strategy TEXT,
                    timestamp INTEGER NOT NULL
                );

                CREATE TABLE IF NOT EXISTS executions (
                    id TEXT PRIMARY KEY,
                    token TEXT NOT NULL,
                    token_address TEXT NOT NULL,
                    action TEXT NOT NULL,
                    tx_hash TEXT,
                    success INTEGER NOT NULL,
                    error TEXT,
                    allocation REAL NOT NULL,
                    confidence REAL NOT NULL,
                    momentum_score REAL NOT NULL,
                    executed_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS ticks (
                    run_id TEXT PRIMARY KEY,
                    timestamp TEXT NOT NULL,
                    tokens_evaluated INTEGER NOT NULL,
                    dry_run INTEGER NOT NULL,
                    payload TEXT NOT NULL
                );
            """)

    # ------------------------
    # Public API (non-blocking)
    # ------------------------
    def save_decision(self, decision: Decision) -> None:
        self._submit(self._insert_decision, decision, int(time.time() * 1000))

    def save_execution(self, execution: ExecutionRecord) -> None:
        self._submit(self._insert_execution, execution)

    def save_tick(self, record: TickAuditRecord) -> None:
        self._submit(self._insert_tick, record)

    def flush(self) -> None:
        """Block until every queued write has been attempted."""
        self._queue.join()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Drain pending writes and stop the worker."""
        if self._closed:
            return
        self._closed = True
        self._queue.put(_STOP)
        if self._worker.is_alive():
            self._worker.join(timeout)

    # ------------------------
    # Reads
    # ------------------------
    def fetch_decisions(self, limit: int = 100) -> List[dict]:
        return self._fetch("SELECT * FROM decisions ORDER BY id DESC LIMIT ?", limit)

    def fetch_executions(self, limit: int = 100) -> List[dict]:
        return self._fetch("SELECT * FROM executions ORDER BY executed_at DESC LIMIT ?", limit)

    def fetch_ticks(self, limit: int = 100) -> List[dict]:
        return self._fetch("SELECT * FROM ticks ORDER BY timestamp DESC LIMIT ?", limit)

    def _fetch(self, sql: str, limit: int) -> List[dict]:
        with self._get_connection() as conn:
            return [dict(row) for row in conn.execute(sql, (limit,)).fetchall()]

    # ------------------------
    # Worker
    # ------------------------
    def _submit(self, fn: Callable, *args) -> None:
        if self._closed:
            logger.warning(f"[DB] Sink closed; dropping {fn.__name__}")
            return
        self._queue.put((fn, args))

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                fn, args = item
                fn(*args)
            except Exception as e:
                logger.error(f"[DB] Failed to {fn.__name__.lstrip('_')}: {e}")
            finally:
                self._queue.task_done()

    def _insert_decision(self, decision: Decision, timestamp_ms: int) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO decisions
                    (token, token_address, action, allocation, confidence,
                     momentum_score, reasoning, strategy, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    decision.token.symbol,
                    decision.token.address,
                    decision.action.value,
                    decision.suggested_size,
                    decision.confidence,
                    decision.momentum_score,
                    decision.reason,
                    decision.strategy,
                    timestamp_ms,
                ),
            )

    def _insert_execution(self, execution: ExecutionRecord) -> None:
        d = execution.decision
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO executions
                    (id, token, token_address, action, tx_hash, success, error,
                     allocation, confidence, momentum_score, executed_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    execution.id,
                    d.token.symbol,
                    d.token.address,
                    d.action.value,
                    execution.tx_hash,
                    int(execution.success),
                    execution.error,
                    d.suggested_size,
                    d.confidence,
                    d.momentum_score,
                    execution.executed_at.isoformat(),
                ),
            )

    def _insert_tick(self, record: TickAuditRecord) -> None:
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO ticks (run_id, timestamp, tokens_evaluated, dry_run, payload)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.run_id,
                    record.timestamp.isoformat(),
                    record.tokens_evaluated,
                    int(record.dry_run),
                    json.dumps(record.to_dict()),
                ),
            )
