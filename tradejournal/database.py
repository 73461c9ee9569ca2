"""
SQLite persistence layer for the trade journal.

Trades and settings live in document collections: one table per
collection, the document body as JSON, a uuid document id and
server-assigned timestamps. All store operations go through
SQLiteTradeStore; every failure is logged and re-raised as StoreError.
"""
import json
import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone

from config.settings import settings
from tradejournal.models.trade import AppSettings, Trade

logger = logging.getLogger("tradejournal.store")

SETTINGS_DOC_ID = "user_preferences"
MAX_BATCH = 500

# Fields the store owns; never taken from a client payload
_SERVER_FIELDS = {"id", "created_at", "updated_at"}


class StoreError(Exception):
    """Any failure talking to the trade store."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteTradeStore:
    def __init__(self, db_path: str = None):
        self.db_path = db_path or settings.DB_PATH
        self.init_db()

    def _get_connection(self) -> sqlite3.Connection:
        dirname = os.path.dirname(self.db_path)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _transaction(self, action: str):
        """Yield a connection, commit on success, wrap any failure in StoreError."""
        conn = None
        try:
            conn = self._get_connection()
            yield conn
            conn.commit()
        except StoreError:
            raise
        except (sqlite3.Error, ValueError, TypeError) as e:
            # ValueError covers corrupt documents (JSONDecodeError, pydantic ValidationError)
            logger.error("Error %s: %s", action, e)
            raise StoreError(f"Store failure while {action}") from e
        finally:
            if conn is not None:
                conn.close()

    def init_db(self):
        with self._transaction("initializing database") as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS trades (
                    id          TEXT PRIMARY KEY,
                    date        INTEGER NOT NULL,
                    data        TEXT NOT NULL,
                    created_at  TEXT NOT NULL,
                    updated_at  TEXT NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_trades_date ON trades(date);
                CREATE TABLE IF NOT EXISTS settings (
                    id          TEXT PRIMARY KEY,
                    data        TEXT NOT NULL,
                    updated_at  TEXT NOT NULL
                );
            """)

    # ── Trades ──────────────────────────────────────────────

    @staticmethod
    def _row_to_trade(row: sqlite3.Row) -> Trade:
        data = json.loads(row["data"])
        return Trade(
            **data,
            id=row["id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def create_trade(self, record: Trade) -> str:
        """Insert a trade document and return its new id."""
        now = _now()
        trade_id = str(uuid.uuid4())
        data = record.model_dump(mode="json", exclude=_SERVER_FIELDS)
        with self._transaction("adding trade") as conn:
            conn.execute(
                """INSERT INTO trades (id, date, data, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (trade_id, data["date"], json.dumps(data), now, now),
            )
        return trade_id

    def list_trades(self, max_count: int = 100) -> list[Trade]:
        """Newest first by trade date, capped at max_count."""
        with self._transaction("fetching trades") as conn:
            rows = conn.execute(
                "SELECT * FROM trades ORDER BY date DESC, created_at DESC LIMIT ?",
                (max_count,),
            ).fetchall()
            return [self._row_to_trade(r) for r in rows]

    def update_trade(self, trade_id: str, fields: dict) -> None:
        """Merge the given fields into an existing trade document."""
        with self._transaction("updating trade") as conn:
            row = conn.execute("SELECT data FROM trades WHERE id = ?", (trade_id,)).fetchone()
            if row is None:
                logger.error("Error updating trade: %s not found", trade_id)
                raise StoreError(f"Trade {trade_id} not found")
            data = json.loads(row["data"])
            data.update({k: v for k, v in fields.items() if k not in _SERVER_FIELDS})
            conn.execute(
                "UPDATE trades SET date = ?, data = ?, updated_at = ? WHERE id = ?",
                (data["date"], json.dumps(data), _now(), trade_id),
            )

    def delete_trade(self, trade_id: str) -> None:
        with self._transaction("deleting trade") as conn:
            conn.execute("DELETE FROM trades WHERE id = ?", (trade_id,))

    def delete_trades(self, max_batch: int = MAX_BATCH) -> int:
        """Delete up to max_batch trades in one batch; returns how many went."""
        max_batch = max(1, min(int(max_batch), MAX_BATCH))
        with self._transaction("deleting trades") as conn:
            ids = [
                r["id"]
                for r in conn.execute("SELECT id FROM trades LIMIT ?", (max_batch,)).fetchall()
            ]
            conn.executemany("DELETE FROM trades WHERE id = ?", [(i,) for i in ids])
        return len(ids)

    # ── Settings ──────────────────────────────────────────────

    def get_settings(self) -> AppSettings:
        with self._transaction("getting settings") as conn:
            row = conn.execute(
                "SELECT data FROM settings WHERE id = ?", (SETTINGS_DOC_ID,)
            ).fetchone()
            if row is None:
                return AppSettings(initial_capital=settings.DEFAULT_INITIAL_CAPITAL)
            return AppSettings(**json.loads(row["data"]))

    def set_settings(self, partial: dict) -> None:
        """Merge-write the settings document, creating it if needed."""
        with self._transaction("saving settings") as conn:
            row = conn.execute(
                "SELECT data FROM settings WHERE id = ?", (SETTINGS_DOC_ID,)
            ).fetchone()
            data = json.loads(row["data"]) if row else {}
            data.update(partial)
            conn.execute(
                """INSERT INTO settings (id, data, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET data = excluded.data,
                                                 updated_at = excluded.updated_at""",
                (SETTINGS_DOC_ID, json.dumps(data), _now()),
            )
