# utils/helpers.py
import numpy as np
import pandas as pd
from typing import Iterable, List

from fundgrid.core.database.models import SOLD, TradeRecord
from fundgrid.core.market.models import NavPoint


def format_amount(value: float) -> str:
    """金额缩写：12345 → 1.23万"""
    if value >= 10000:
        return f"{value / 10000:.2f}万"
    if value >= 1000:
        return f"{value / 1000:.2f}千"
    if value >= 100:
        return f"{value / 100:.2f}百"
    return f"{value:.2f}"


def round_nav(nav: float) -> float:
    """基金净值精度：小数点后4位"""
    return round(nav, 4)


def records_to_frame(records: Iterable[TradeRecord]) -> pd.DataFrame:
    """交易记录 → DataFrame（看板表格 / CSV 导出）"""
    rows = [r.to_dict() for r in records]
    if not rows:
        return pd.DataFrame()
    df = pd.DataFrame(rows)
    df["status"] = np.where(df["status"] == SOLD, "已卖出", "持仓中")
    return df


def history_to_frame(points: List[NavPoint]) -> pd.DataFrame:
    """净值历史 → 按日期升序的 DataFrame"""
    df = pd.DataFrame(
        [(p.date, p.nav, p.accumulated_nav, p.day_growth) for p in points],
        columns=["date", "nav", "accumulated_nav", "day_growth"],
    )
    if df.empty:
        return df
    df["date"] = pd.to_datetime(df["date"])
    return df.sort_values("date").reset_index(drop=True)
