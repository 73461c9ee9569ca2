# tests/conftest.py
import os
import tempfile

# Keep the app's module-level store and prefs out of the repo's data/ dir.
_TMP = tempfile.mkdtemp(prefix="tradejournal_tests_")
os.environ.setdefault("JOURNAL_DB_PATH", os.path.join(_TMP, "journal.db"))
os.environ.setdefault("JOURNAL_PREFS_PATH", os.path.join(_TMP, "preferences.json"))

import pytest

from tradejournal.core.editor import parse_date
from tradejournal.database import SQLiteTradeStore, StoreError
from tradejournal.models.trade import Position, Trade, TradeResult


def make_trade(pair="XAUUSD", profit=10.0, day="2024-01-15", notes="", trade_id=None, **kw):
    if profit > 0:
        result = TradeResult.WIN
    elif profit < 0:
        result = TradeResult.LOSS
    else:
        result = TradeResult.BREAK_EVEN
    return Trade(
        id=trade_id,
        date=parse_date(day),
        pair=pair,
        position=kw.pop("position", Position.BUY),
        lot=kw.pop("lot", 0.01),
        profit=profit,
        result=result,
        notes=notes,
        **kw,
    )


class FlakyStore(SQLiteTradeStore):
    """SQLite store whose writes can be made to fail on demand."""

    def __init__(self, db_path):
        super().__init__(db_path)
        self.fail_writes = False
        self.fail_reads = False

    def _check(self, flag):
        if flag:
            raise StoreError("injected failure")

    def create_trade(self, record):
        self._check(self.fail_writes)
        return super().create_trade(record)

    def update_trade(self, trade_id, fields):
        self._check(self.fail_writes)
        return super().update_trade(trade_id, fields)

    def delete_trade(self, trade_id):
        self._check(self.fail_writes)
        return super().delete_trade(trade_id)

    def delete_trades(self, max_batch=500):
        self._check(self.fail_writes)
        return super().delete_trades(max_batch)

    def set_settings(self, partial):
        self._check(self.fail_writes)
        return super().set_settings(partial)

    def list_trades(self, max_count=100):
        self._check(self.fail_reads)
        return super().list_trades(max_count)

    def get_settings(self):
        self._check(self.fail_reads)
        return super().get_settings()


@pytest.fixture
def store(tmp_path):
    return SQLiteTradeStore(str(tmp_path / "journal.db"))


@pytest.fixture
def flaky_store(tmp_path):
    return FlakyStore(str(tmp_path / "journal.db"))
