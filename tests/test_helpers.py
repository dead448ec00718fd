# tests/test_helpers.py
import pandas as pd
import plotly.graph_objects as go
import pytest

from fundgrid.core.market.models import NavPoint
from fundgrid.utils.helpers import format_amount, history_to_frame, records_to_frame, round_nav
from fundgrid.web.components.fund_chart import build_trade_markers, render_nav_chart
from fundgrid.web.components.trade_table import delete_option_labels


@pytest.mark.parametrize("value, expected", [
    (12345, "1.23万"),
    (2500, "2.50千"),
    (300, "3.00百"),
    (99.5, "99.50"),
])
def test_format_amount(value, expected):
    assert format_amount(value) == expected


def test_round_nav():
    assert round_nav(1.234567) == 1.2346


def test_records_to_frame(strategy, ledger):
    assert records_to_frame([]).empty

    first = ledger.open("161725", strategy.id, "2024-01-02", 2.0, 2.0, 10000)
    ledger.open("161725", strategy.id, "2024-01-03", 1.9, 1.9, 10000)
    ledger.close(first.id, "2024-01-04", 2.1)
    df = records_to_frame(ledger.records_for("161725"))
    assert list(df["status"]) == ["持仓中", "已卖出"]
    assert "openNAV" in df.columns


def _history():
    return history_to_frame([
        NavPoint("2024-01-04", 2.1, 2.1, 1.0),
        NavPoint("2024-01-02", 2.0, 2.0, 0.0),
        NavPoint("2024-01-03", 1.9, 1.9, -5.0),
    ])


def test_history_to_frame_sorted():
    history = _history()
    assert list(history["nav"]) == [2.0, 1.9, 2.1]
    assert history_to_frame([]).empty


def test_trade_markers(strategy, ledger):
    first = ledger.open("161725", strategy.id, "2024-01-02", 2.0, 2.0, 10000)
    ledger.open("161725", strategy.id, "2023-12-01", 1.8, 1.8, 10000)
    ledger.close(first.id, "2024-01-04", 2.1)

    markers = build_trade_markers(_history(), ledger.records_for("161725"))
    # 区间外的买入点被过滤
    assert sorted(markers["side"]) == ["buy", "sell"]
    sell = markers[markers["side"] == "sell"].iloc[0]
    # 卖出时未填累计净值，取当日历史值
    assert sell["accumulated_nav"] == 2.1
    assert sell["date"] == pd.Timestamp("2024-01-04")

    assert build_trade_markers(history_to_frame([]), ledger.records_for("161725")).empty


def test_render_nav_chart(strategy, ledger):
    ledger.open("161725", strategy.id, "2024-01-03", 1.9, 1.9, 10000)
    fig = render_nav_chart(_history(), ledger.records_for("161725"), title="走势")
    assert isinstance(fig, go.Figure)
    assert [trace.name for trace in fig.data] == ["累计净值", "买入"]

    empty = render_nav_chart(history_to_frame([]), [])
    assert len(empty.data) == 0


def test_delete_options_distinguish_identical_buys(strategy, ledger):
    first = ledger.open("161725", strategy.id, "2024-01-02", 2.0, 2.0, 10000)
    second = ledger.open("161725", strategy.id, "2024-01-02", 2.0, 2.0, 10000)
    labels = delete_option_labels(ledger.records_for("161725"))
    assert set(labels) == {first.id, second.id}
    assert labels[first.id] != labels[second.id]
    assert labels[first.id].startswith("2024-01-02 · 10000.00 · 持仓中")
