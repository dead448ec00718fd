# tests/test_db_manager.py
import sqlite3

from fundgrid.core.ledger.strategy_registry import StrategyRegistry
from fundgrid.core.ledger.trade_ledger import TradeLedger


def test_db_init_and_round_trip(db):
    state = db.load_state()
    assert state.strategies == [] and state.records == [] and state.starred_fund_ids == []

    registry = StrategyRegistry(state)
    ledger = TradeLedger(state)
    strategy = registry.add("161725", 5, 5, 5)
    first = ledger.open("161725", strategy.id, "2024-01-02", 2.0, 2.5, 10000)
    ledger.open("161725", strategy.id, "2024-01-10", 1.9, 2.4, 10000)
    ledger.close(first.id, "2024-01-20", 2.1)
    state.toggle_star("161725")

    # 每次修改都已自动落盘
    reloaded = db.load_state()
    assert reloaded.strategies == state.strategies
    assert reloaded.records == state.records
    assert reloaded.starred_fund_ids == ["161725"]
    assert reloaded.strategies[0].is_active is True


def test_reloaded_state_keeps_persisting(db):
    state = db.load_state()
    StrategyRegistry(state).add("000001", 3, 3, 3)

    reloaded = db.load_state()
    StrategyRegistry(reloaded).add("000001", 4, 4, 4)

    final = db.load_state()
    assert len(final.strategies) == 2
    assert [s.is_active for s in final.strategies] == [False, True]


def test_get_recent_records(db):
    state = db.load_state()
    strategy = StrategyRegistry(state).add("161725", 5, 5, 5)
    ledger = TradeLedger(state)
    ledger.open("161725", strategy.id, "2024-01-02", 2.0, 2.0, 10000)
    ledger.open("161725", strategy.id, "2024-02-02", 1.9, 1.9, 5000)

    rows = db.get_recent_records(limit=1)
    assert len(rows) == 1
    assert rows[0]["open_date"] == "2024-02-02"
    assert rows[0]["status"] == "holding"


def test_tables_created(db):
    conn = sqlite3.connect(db.db_path)
    try:
        names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    finally:
        conn.close()
    assert {"strategies", "trade_records", "starred_funds"} <= names
