# core/market/models.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FundSearchItem:
    code: str
    name: str
    type: str


@dataclass(frozen=True)
class FundQuote:
    code: str
    name: str
    nav: float                       # 单位净值（上一交易日）
    accumulated_nav: Optional[float]  # 估值接口不一定返回累计净值
    estimated_nav: float             # 盘中估值
    estimated_time: str
    nav_date: str
    day_growth: float                # 估算涨跌幅 %

    @property
    def current_nav(self) -> float:
        """有估值用估值，否则用最新净值"""
        return self.estimated_nav if self.estimated_nav > 0 else self.nav


@dataclass(frozen=True)
class NavPoint:
    date: str
    nav: float
    accumulated_nav: float
    day_growth: float


@dataclass(frozen=True)
class MarketIndex:
    code: str
    name: str
    current: float
    change: float
    change_percent: float
    volume: float
    amount: float
