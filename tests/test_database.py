import sqlite3

import pytest

from conftest import make_trade
from tradejournal.database import SQLiteTradeStore, StoreError


def test_create_and_list_newest_first(store):
    ids = [
        store.create_trade(make_trade("A", 1, day="2024-01-01")),
        store.create_trade(make_trade("B", 2, day="2024-01-03")),
        store.create_trade(make_trade("C", 3, day="2024-01-02")),
    ]
    trades = store.list_trades(10)
    assert [t.pair for t in trades] == ["B", "C", "A"]
    assert {t.id for t in trades} == set(ids)
    assert all(t.created_at and t.updated_at for t in trades)


def test_list_is_capped(store):
    for i in range(5):
        store.create_trade(make_trade("A", i, day=f"2024-01-0{i + 1}"))
    trades = store.list_trades(3)
    assert len(trades) == 3
    assert trades[0].profit == 4


def test_update_merges_fields(store):
    trade_id = store.create_trade(make_trade("A", 5, notes="before"))
    created = store.list_trades(1)[0]
    store.update_trade(trade_id, {"notes": "after", "profit": -2.0, "result": "Loss", "id": "hijack"})
    updated = store.list_trades(1)[0]
    assert updated.id == trade_id
    assert updated.notes == "after"
    assert updated.profit == -2.0
    assert updated.result.value == "Loss"
    assert updated.pair == "A"
    assert updated.created_at == created.created_at


def test_update_missing_trade_fails(store):
    with pytest.raises(StoreError):
        store.update_trade("nope", {"notes": "x"})


def test_delete_one(store):
    keep = store.create_trade(make_trade("A"))
    gone = store.create_trade(make_trade("B"))
    store.delete_trade(gone)
    assert [t.id for t in store.list_trades(10)] == [keep]


def test_delete_trades_is_bounded(store):
    for _ in range(7):
        store.create_trade(make_trade("A"))
    assert store.delete_trades(max_batch=5) == 5
    assert len(store.list_trades(100)) == 2
    assert store.delete_trades(max_batch=5) == 2
    assert store.delete_trades(max_batch=5) == 0


def test_settings_default_and_merge(store):
    assert store.get_settings().initial_capital == 1000
    store.set_settings({"initial_capital": 2500.0})
    assert store.get_settings().initial_capital == 2500.0
    store.set_settings({"initial_capital": 300})
    assert store.get_settings().initial_capital == 300


def test_backend_errors_become_store_errors(tmp_path, monkeypatch):
    store = SQLiteTradeStore(str(tmp_path / "journal.db"))

    def broken(self):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(SQLiteTradeStore, "_get_connection", broken)
    with pytest.raises(StoreError):
        store.list_trades(10)
    with pytest.raises(StoreError):
        store.create_trade(make_trade("A"))


@pytest.mark.parametrize("payload", ["{not json", '{"pair": "A"}', "[1, 2]"])
def test_corrupt_trade_document_is_a_store_error(store, payload):
    store.create_trade(make_trade("A"))
    conn = sqlite3.connect(store.db_path)
    conn.execute("UPDATE trades SET data = ?", (payload,))
    conn.commit()
    conn.close()
    with pytest.raises(StoreError):
        store.list_trades(10)


def test_corrupt_settings_document_is_a_store_error(store):
    store.set_settings({"initial_capital": 100})
    conn = sqlite3.connect(store.db_path)
    conn.execute("UPDATE settings SET data = ?", ('{"initial_capital": "lots"}',))
    conn.commit()
    conn.close()
    with pytest.raises(StoreError):
        store.get_settings()
