# core/strategy/grid_calculator.py
from dataclasses import dataclass
from typing import Iterable, Optional

from fundgrid.core.database.models import HOLDING, SOLD, Strategy, TradeRecord
from fundgrid.core.errors import ValidationError
from fundgrid.core.validation import require_positive

OPERATIONS = ("buy", "sell")


@dataclass(frozen=True)
class Distance:
    buy: float   # -grid_width - 买入宽度；>= 0 表示跌幅已达买入宽度
    sell: float  # 卖出宽度 - grid_width；<= 0 表示涨幅已达卖出宽度


@dataclass(frozen=True)
class GridMetrics:
    grid_width: float
    base_nav: float
    estimated_distance: Distance


def _latest(records: Iterable[TradeRecord], key):
    # max() 取第一个最大值；倒序遍历使同一日期时列表中靠后的记录胜出
    candidates = list(records)
    if not candidates:
        return None
    return max(reversed(candidates), key=key)


def latest_holding_record(records: Iterable[TradeRecord], fund_id: str) -> Optional[TradeRecord]:
    """最新一条未卖出记录（按买入日期）"""
    return _latest(
        (r for r in records if r.fund_id == fund_id and r.status == HOLDING),
        key=lambda r: r.open_date,
    )


def latest_sold_record(records: Iterable[TradeRecord], fund_id: str) -> Optional[TradeRecord]:
    """最近一次卖出记录（按卖出日期）"""
    return _latest(
        (r for r in records if r.fund_id == fund_id and r.status == SOLD),
        key=lambda r: r.close_date or "",
    )


def calculate_grid_metrics(
    current_nav: float,
    records: Iterable[TradeRecord],
    fund_id: str,
    strategy: Strategy,
    operation: str = "buy",
) -> GridMetrics:
    """
    计算网格宽度与距离下一条网格线的百分比

    - sell：以最新未卖出记录的买入净值为基准
    - buy ：以最近一次卖出记录的卖出净值为基准
    没有对应记录时以当前净值为基准（网格宽度为 0）
    """
    current_nav = require_positive("current_nav", current_nav)
    if operation not in OPERATIONS:
        raise ValidationError(f"operation must be one of {OPERATIONS}, got {operation!r}")

    if operation == "sell":
        base_record = latest_holding_record(records, fund_id)
        base_nav = base_record.open_nav if base_record else current_nav
    else:
        base_record = latest_sold_record(records, fund_id)
        base_nav = base_record.close_nav if base_record else current_nav

    base_nav = require_positive("base_nav", base_nav)
    grid_width = (current_nav - base_nav) / base_nav * 100

    return GridMetrics(
        grid_width=grid_width,
        base_nav=base_nav,
        estimated_distance=Distance(
            buy=-grid_width - strategy.buy_width_percent,
            sell=strategy.sell_width_percent - grid_width,
        ),
    )


def expected_close_nav(nav: float, strategy: Strategy) -> float:
    """按卖出宽度推算目标卖出净值"""
    return require_positive("nav", nav) * (1 + strategy.sell_width_percent / 100)


def is_buy_signal(metrics: GridMetrics) -> bool:
    # grid_width <= -买入宽度
    return metrics.estimated_distance.buy >= 0


def is_sell_signal(metrics: GridMetrics) -> bool:
    return metrics.estimated_distance.sell <= 0
