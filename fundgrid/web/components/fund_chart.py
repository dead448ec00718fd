# web/components/fund_chart.py
import pandas as pd
import plotly.graph_objects as go
from typing import Iterable

from fundgrid.core.database.models import TradeRecord
from fundgrid.utils.helpers import format_amount


def build_trade_markers(history: pd.DataFrame, records: Iterable[TradeRecord]) -> pd.DataFrame:
    """
    交易点：买入日 + 卖出日，只保留落在净值历史区间内的日期
    Returns: DataFrame ['date', 'accumulated_nav', 'side', 'label']
    """
    rows = []
    for r in records:
        rows.append((r.open_date, r.open_accumulated_nav, "buy", format_amount(r.buy_amount)))
        if r.close_date:
            rows.append((r.close_date, r.close_accumulated_nav, "sell", format_amount(r.close_amount or 0.0)))
    markers = pd.DataFrame(rows, columns=["date", "accumulated_nav", "side", "label"])
    if markers.empty or history.empty:
        return markers.iloc[0:0]

    markers["date"] = pd.to_datetime(markers["date"])
    markers = markers[markers["date"].isin(history["date"])].copy()
    # 卖出累计净值缺失时取当日历史累计净值
    lookup = history.set_index("date")["accumulated_nav"]
    markers["accumulated_nav"] = markers["accumulated_nav"].fillna(markers["date"].map(lookup))
    return markers.reset_index(drop=True)


def render_nav_chart(history: pd.DataFrame, records: Iterable[TradeRecord],
                     title: str = "近30日走势") -> go.Figure:
    """累计净值走势 + 买卖点标注"""
    fig = go.Figure()
    if history.empty:
        fig.update_layout(title=title, height=360)
        return fig

    fig.add_trace(go.Scatter(
        x=history["date"], y=history["accumulated_nav"],
        mode="lines", name="累计净值",
        line=dict(width=2, shape="spline"),
    ))

    markers = build_trade_markers(history, records)
    for side, color, symbol, name in (
        ("buy", "red", "triangle-up", "买入"),
        ("sell", "green", "triangle-down", "卖出"),
    ):
        points = markers[markers["side"] == side]
        if points.empty:
            continue
        fig.add_trace(go.Scatter(
            x=points["date"], y=points["accumulated_nav"],
            mode="markers+text", name=name,
            text=points["label"], textposition="top center",
            marker=dict(color=color, size=12, symbol=symbol),
        ))

    fig.update_layout(
        title=title,
        height=360,
        showlegend=True,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(l=10, r=10, t=40, b=10),
        hovermode="x unified",
    )
    fig.update_xaxes(type="date", tickformat="%m-%d")
    return fig
