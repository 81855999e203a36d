"""Per-user record store for expenses and budget profiles.

:class:`RecordStore` is the interface the rest of the package depends on.
:class:`SqliteRecordStore` keeps everything in a local SQLite file; any other
backend only has to implement the same five methods and raise
:class:`~budget_tracker.exceptions.StoreUnavailableError` when it cannot be
reached.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

import pandas as pd

from .config import DB_PATH, ensure_data_directories
from .exceptions import StoreError, StoreUnavailableError
from .models import ExpenseRecord, UserBudgetProfile

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS expenses (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    name TEXT,
    amount REAL,
    category TEXT,
    timestamp INTEGER
);

CREATE INDEX IF NOT EXISTS ix_expenses_user_ts ON expenses (user_id, timestamp);

CREATE TABLE IF NOT EXISTS profiles (
    user_id TEXT PRIMARY KEY,
    document TEXT NOT NULL
);
"""

# OperationalError messages that mean the database cannot be reached right now.
UNAVAILABLE_MARKERS = ('unable to open', 'locked', 'busy', 'disk i/o', 'readonly database')


class RecordStore(ABC):
    """Abstract per-user persistence for expense entries and profile documents."""

    @abstractmethod
    def append(self, user_id: str, record: Mapping[str, Any]) -> str:
        """Store a new expense document and return its id."""

    @abstractmethod
    def query_range(self, user_id: str, start_ms: Optional[int] = None, end_ms: Optional[int] = None) -> List[ExpenseRecord]:
        """Expenses with ``start_ms <= timestamp <= end_ms``; open bounds when ``None``."""

    @abstractmethod
    def get_user_profile(self, user_id: str) -> Optional[UserBudgetProfile]:
        """The user's budget profile, or ``None`` if none exists."""

    @abstractmethod
    def put_user_profile(self, user_id: str, partial: Mapping[str, Any], merge: bool = True) -> None:
        """Write profile fields, merging into the stored document when ``merge`` is true."""

    def query_all(self, user_id: str) -> List[ExpenseRecord]:
        return self.query_range(user_id)


def _translate(exc: sqlite3.Error) -> StoreError:
    message = str(exc).lower()
    if isinstance(exc, sqlite3.OperationalError) and any(m in message for m in UNAVAILABLE_MARKERS):
        return StoreUnavailableError(str(exc))
    return StoreError(str(exc))


def _clean_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: (None if v is None or (isinstance(v, float) and pd.isna(v)) else v) for k, v in row.items()}


class SqliteRecordStore(RecordStore):
    """Record store backed by a SQLite database file."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None, timeout: float = 5.0):
        self.db_path = Path(db_path) if db_path is not None else DB_PATH
        self.timeout = timeout
        self._initialized = False

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        try:
            if self.db_path == DB_PATH:
                ensure_data_directories()
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except sqlite3.Error as exc:
            logger.error("Record store unreachable at %s: %s", self.db_path, exc)
            raise _translate(exc) from exc
        except OSError as exc:
            logger.error("Record store unreachable at %s: %s", self.db_path, exc)
            raise StoreUnavailableError(str(exc)) from exc
        try:
            if not self._initialized:
                conn.executescript(SCHEMA_SQL)
                conn.commit()
                self._initialized = True
            yield conn
        except sqlite3.Error as exc:
            logger.error("Record store error: %s", exc)
            raise _translate(exc) from exc
        except pd.errors.DatabaseError as exc:
            # read_sql_query wraps the driver error; the sqlite3 one is the cause.
            logger.error("Record store error: %s", exc)
            if isinstance(exc.__cause__, sqlite3.Error):
                raise _translate(exc.__cause__) from exc
            raise StoreError(str(exc)) from exc
        finally:
            conn.close()

    def append(self, user_id: str, record: Mapping[str, Any]) -> str:
        record_id = uuid.uuid4().hex
        with self.connect() as conn:
            conn.execute(
                "INSERT INTO expenses (id, user_id, name, amount, category, timestamp) VALUES (?, ?, ?, ?, ?, ?)",
                (
                    record_id,
                    user_id,
                    record.get('name'),
                    record.get('amount'),
                    record.get('category'),
                    record.get('timestamp'),
                ),
            )
            conn.commit()
        return record_id

    def query_range(self, user_id: str, start_ms: Optional[int] = None, end_ms: Optional[int] = None) -> List[ExpenseRecord]:
        where = ["user_id = ?"]
        params: List[Any] = [user_id]
        if start_ms is not None:
            where.append("timestamp >= ?")
            params.append(int(start_ms))
        if end_ms is not None:
            where.append("timestamp <= ?")
            params.append(int(end_ms))

        sql = "SELECT id, name, amount, category, timestamp FROM expenses WHERE " + " AND ".join(where)
        sql += " ORDER BY timestamp ASC, id ASC"

        with self.connect() as conn:
            df = pd.read_sql_query(sql, conn, params=params)
        return [
            ExpenseRecord.from_document(_clean_row(row), record_id=row['id'])
            for row in df.to_dict(orient='records')
        ]

    def get_user_profile(self, user_id: str) -> Optional[UserBudgetProfile]:
        document = self._read_profile_document(user_id)
        return UserBudgetProfile.from_document(document)

    def put_user_profile(self, user_id: str, partial: Mapping[str, Any], merge: bool = True) -> None:
        with self.connect() as conn:
            existing = self._read_profile_document(user_id, conn) if merge else None
            document = dict(existing or {})
            document.update(partial)
            conn.execute(
                "INSERT INTO profiles (user_id, document) VALUES (?, ?) "
                "ON CONFLICT(user_id) DO UPDATE SET document = excluded.document",
                (user_id, json.dumps(document)),
            )
            conn.commit()

    def _read_profile_document(self, user_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[Dict[str, Any]]:
        if conn is None:
            with self.connect() as own:
                return self._read_profile_document(user_id, own)
        row = conn.execute("SELECT document FROM profiles WHERE user_id = ?", (user_id,)).fetchone()
        if row is None:
            return None
        try:
            data = json.loads(row[0])
        except json.JSONDecodeError as exc:
            raise StoreError(f"Corrupt profile document for {user_id}: {exc}") from exc
        return data if isinstance(data, dict) else None
