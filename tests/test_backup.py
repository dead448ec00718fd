# tests/test_backup.py
import json
from datetime import datetime

import pytest

from fundgrid.core.errors import BackupFormatError
from fundgrid.core.state import AppState
from fundgrid.utils.backup import backup_filename, dumps_backup, export_data, import_backup, parse_backup


@pytest.fixture
def populated(state, registry, ledger):
    strategy = registry.add("161725", 5, 5, 5)
    registry.add("000001", 3, 4, 6)
    first = ledger.open("161725", strategy.id, "2024-01-02", 2.0, 2.5, 10000)
    ledger.open("161725", strategy.id, "2024-01-10", 1.9, 2.4, 8000)
    ledger.close(first.id, "2024-01-20", 2.1, close_amount=10500)
    state.toggle_star("000001")
    return state


def test_export_layout(populated):
    data = export_data(populated)
    assert data["version"] == "1.0.0"
    assert isinstance(data["timestamp"], int)
    assert set(data["data"]) == {"strategies", "records", "starredFundIds"}
    record = data["data"]["records"][0]
    assert record["openNAV"] == 2.0
    assert record["closeAmount"] == 10500
    assert record["status"] == "sold"
    assert data["data"]["starredFundIds"] == ["000001"]


def test_export_import_round_trip(populated):
    text = dumps_backup(export_data(populated))

    target = AppState()
    backup = import_backup(target, text)
    assert target.strategies == populated.strategies
    assert target.records == populated.records
    assert target.starred_fund_ids == populated.starred_fund_ids
    assert backup.version == "1.0.0"


def test_import_commits_once(populated, persister):
    text = dumps_backup(export_data(populated)).encode("utf-8")
    calls = persister.calls
    import_backup(populated, text)
    assert persister.calls == calls + 1


def test_legacy_keys_accepted():
    raw = json.dumps({
        "version": "1.0.0",
        "timestamp": 1700000000000,
        "data": {"gridStrategy": [], "tradeRecord": [], "fundStar": ["161725"]},
    })
    assert parse_backup(raw).starred_fund_ids == ["161725"]


def test_legacy_entries_accepted():
    raw = json.dumps({
        "version": "1.0.0",
        "timestamp": 1700000000000,
        "data": {
            "gridStrategy": [{
                "id": "161725-1700000000000", "fundCode": "161725", "buyWidth": 5, "sellWidth": 6,
                "gridCount": 5, "isActive": True, "createdAt": 1700000000000, "updatedAt": 1700000000000,
            }],
            "tradeRecord": [
                {"id": "161725-1", "fundCode": "161725", "strategyId": "161725-1700000000000",
                 "date": "2024-01-02", "netWorth": 2.0, "accNetWorth": 3.0, "buyAmount": 10000,
                 "buyShares": 5000, "expectedSellNetWorth": 2.12, "expectedSellAccNetWorth": 3.18,
                 "status": "sold", "sellDate": "2024-01-20", "sellNetWorth": 2.12, "sellAccNetWorth": 3.18,
                 "sellAmount": 15900, "profit": 900, "profitRate": 6},
                {"id": "161725-2", "fundCode": "161725", "strategyId": "161725-1700000000000",
                 "date": "2024-01-25", "netWorth": 1.9, "accNetWorth": 2.9, "buyAmount": 10000,
                 "buyShares": 5263.16, "expectedSellNetWorth": 2.01, "expectedSellAccNetWorth": 3.07,
                 "actualGridWidth": -3.33, "status": "holding"},
            ],
            "fundStar": ["161725"],
        },
    })
    backup = parse_backup(raw)
    strategy = backup.strategies[0]
    assert (strategy.fund_id, strategy.buy_width_percent, strategy.sell_width_percent) == ("161725", 5, 6)
    sold, holding = backup.records
    assert sold.open_nav == 2.0 and sold.open_accumulated_nav == 3.0
    assert (sold.close_date, sold.close_nav, sold.close_amount) == ("2024-01-20", 2.12, 15900)
    assert sold.realized_profit == 900
    assert holding.open_date == "2024-01-25"
    assert holding.expected_close_accumulated_nav == 3.07
    assert holding.close_nav is None


def _record(**overrides):
    record = {"id": "x", "fundId": "161725", "openDate": "2024-01-01", "openNAV": 1,
              "buyAmount": 1000, "expectedCloseNAV": 1.05, "status": "holding"}
    record.update(overrides)
    return json.dumps({"version": "1.0.0", "timestamp": 1, "data": {"records": [record]}})


def _strategy(**overrides):
    strategy = {"id": "s", "fundId": "161725", "buyWidthPercent": 5, "sellWidthPercent": 5,
                "gridCount": 5, "isActive": True, "createdAt": 1}
    strategy.update(overrides)
    return json.dumps({"version": "1.0.0", "timestamp": 1, "data": {"strategies": [strategy]}})


@pytest.mark.parametrize("raw", [
    "not json",
    b"\xff\xfe\x00",
    "[]",
    json.dumps({"version": "1.0.0", "data": {}}),
    json.dumps({"version": "1.0.0", "timestamp": 1, "data": {"strategies": {}}}),
    json.dumps({"version": "1.0.0", "timestamp": 1, "data": {"records": [{"id": "x"}]}}),
    json.dumps({"version": "1.0.0", "timestamp": 1, "data": {"records": ["x"]}}),
    _record(status="closed"),
    # 净值为 0 且没有份额
    _record(openNAV=0),
    _record(buyAmount=-5),
    _record(buyShares=0),
    _record(expectedCloseNAV=None),
    # 已卖出但缺少卖出字段
    _record(status="sold"),
    _record(status="sold", closeDate="2024-01-05", closeAmount=1100),
    _record(status="sold", closeDate="2024-01-05", closeNAV=1.1),
    # 持仓记录带卖出字段
    _record(closeNAV=1.1),
    _strategy(isActive="false"),
    _strategy(gridCount=1.5),
    _strategy(buyWidthPercent=0),
])
def test_malformed_backup_rejected(raw):
    with pytest.raises(BackupFormatError):
        parse_backup(raw)


def test_sold_record_profit_derived_when_missing():
    backup = parse_backup(_record(status="sold", closeDate="2024-01-05", closeNAV=1.1, closeAmount=1100))
    record = backup.records[0]
    assert record.realized_profit == pytest.approx(100)
    assert record.realized_profit_rate == pytest.approx(10)


def test_failed_import_leaves_state_untouched(populated, persister):
    before = (list(populated.strategies), list(populated.records), list(populated.starred_fund_ids))
    calls = persister.calls
    bad = json.dumps({"version": "1.0.0", "timestamp": 1, "data": {
        "strategies": [], "records": [{"id": "broken"}], "starredFundIds": []}})
    with pytest.raises(BackupFormatError):
        import_backup(populated, bad)
    assert (populated.strategies, populated.records, populated.starred_fund_ids) == before
    assert persister.calls == calls


def test_backup_filename():
    assert backup_filename(datetime(2024, 3, 5)) == "grid-trade-backup-20240305.json"
