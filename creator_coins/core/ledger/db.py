from __future__ import annotations

import sqlite3
import threading
import time
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from creator_coins.core.models import CoinRecord

_COLUMNS = (
    "id",
    "name",
    "symbol",
    "metadata_uri",
    "creator_wallet",
    "status",
    "address",
    "chain_id",
    "created_at",
    "registered_at",
    "salt",
    "tx_hash",
    "failure_reason",
    "needs_reconciliation",
    "registry_tx_hash",
    "user_op_hash",
)
_UPDATABLE_COLUMNS = frozenset(_COLUMNS) - {"id", "creator_wallet", "salt"}

_SCHEMA = (
    "PRAGMA journal_mode=WAL;",
    """
    CREATE TABLE IF NOT EXISTS coins (
      id TEXT PRIMARY KEY,
      name TEXT NOT NULL,
      symbol TEXT NOT NULL,
      metadata_uri TEXT NOT NULL,
      creator_wallet TEXT NOT NULL,
      status TEXT NOT NULL,
      address TEXT,
      chain_id INTEGER,
      created_at INTEGER NOT NULL,
      registered_at INTEGER,
      salt TEXT,
      tx_hash TEXT,
      failure_reason TEXT,
      needs_reconciliation INTEGER NOT NULL DEFAULT 0,
      registry_tx_hash TEXT,
      user_op_hash TEXT,
      updated_at INTEGER NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_coins_salt ON coins(salt);",
    "CREATE INDEX IF NOT EXISTS idx_coins_status ON coins(status);",
)

# active wins over pending, then the most recent insert
_BY_SALT = """
SELECT * FROM coins
WHERE salt = ?
ORDER BY CASE status WHEN 'active' THEN 0 WHEN 'pending' THEN 1 ELSE 2 END,
         rowid DESC
LIMIT 1
"""


def _row_to_record(row: sqlite3.Row) -> CoinRecord:
    data = {k: row[k] for k in _COLUMNS}
    data["needs_reconciliation"] = bool(data["needs_reconciliation"])
    return CoinRecord.model_validate(data)


def _to_db_value(key: str, value: Any) -> Any:
    if key == "needs_reconciliation":
        return int(bool(value))
    if key == "status" and value is not None:
        return str(value)
    return value


class CoinLedgerDB:
    """SQLite-backed coin ledger.

    Methods are async to satisfy ``LedgerStore``; the work itself is a short
    synchronous SQLite call guarded by a lock.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path)
        if str(db_path) != ":memory:":
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        # autocommit; every statement stands alone
        self._conn = sqlite3.connect(
            str(db_path), check_same_thread=False, isolation_level=None
        )
        self._conn.row_factory = sqlite3.Row
        for statement in _SCHEMA:
            self._execute(statement)
        self._add_missing_columns()

    @property
    def path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def _add_missing_columns(self) -> None:
        # ledgers created before user_op_hash existed
        present = {row["name"] for row in self._execute("PRAGMA table_info(coins)")}
        if "user_op_hash" not in present:
            self._execute("ALTER TABLE coins ADD COLUMN user_op_hash TEXT")

    def _one(self, sql: str, params: Sequence[Any]) -> CoinRecord | None:
        rows = self._execute(sql, params)
        return _row_to_record(rows[0]) if rows else None

    async def create_coin(self, record: CoinRecord) -> CoinRecord:
        data = record.model_dump()
        columns = (*_COLUMNS, "updated_at")
        self._execute(
            f"INSERT INTO coins({', '.join(columns)}) "
            f"VALUES ({', '.join('?' * len(columns))})",
            [*(_to_db_value(k, data[k]) for k in _COLUMNS), int(time.time())],
        )
        return record

    async def update_coin(self, coin_id: str, fields: dict[str, Any]) -> CoinRecord:
        unknown = set(fields) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update coin fields: {sorted(unknown)}")
        assignments = {**fields, "updated_at": int(time.time())}
        updated = self._execute(
            f"UPDATE coins SET {', '.join(f'{k} = ?' for k in assignments)} "
            "WHERE id = ? RETURNING *",
            [*(_to_db_value(k, v) for k, v in assignments.items()), coin_id],
        )
        if not updated:
            raise KeyError(f"Coin not found: {coin_id}")
        return _row_to_record(updated[0])

    async def get_coin(self, coin_id: str) -> CoinRecord | None:
        return self._one("SELECT * FROM coins WHERE id = ?", (coin_id,))

    async def find_coin_by_salt(self, salt: str) -> CoinRecord | None:
        """Record owning ``salt``: active first, then the newest pending."""
        return self._one(_BY_SALT, (salt,))

    async def list_coins(self, *, status: str | None = None) -> list[CoinRecord]:
        if status is None:
            rows = self._execute("SELECT * FROM coins ORDER BY rowid")
        else:
            rows = self._execute(
                "SELECT * FROM coins WHERE status = ? ORDER BY rowid", (str(status),)
            )
        return [_row_to_record(row) for row in rows]
