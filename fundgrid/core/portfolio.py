# core/portfolio.py
from dataclasses import dataclass
from typing import Dict, List, Optional

from fundgrid.core.database.models import HOLDING, SOLD
from fundgrid.core.errors import ValidationError
from fundgrid.core.ledger.strategy_registry import StrategyRegistry
from fundgrid.core.ledger.trade_ledger import TradeLedger
from fundgrid.core.market.models import FundQuote
from fundgrid.core.state import AppState
from fundgrid.core.strategy.grid_calculator import GridMetrics, calculate_grid_metrics
from fundgrid.utils.logger import get_logger

logger = get_logger(__name__)

SORT_KEYS = ("grids", "profit", "date")


@dataclass(frozen=True)
class LastOperation:
    type: str  # "buy" | "sell"
    date: str
    nav: float


@dataclass(frozen=True)
class FundCard:
    code: str
    name: str
    current_grids: int
    max_grids: int
    total_profit: float
    profit_percentage: float
    last_operation: Optional[LastOperation]
    next_grid: Optional[GridMetrics]
    is_starred: bool
    buy_width_percent: float
    sell_width_percent: float


def build_fund_card(state: AppState, fund_id: str, quote: FundQuote) -> Optional[FundCard]:
    strategy = StrategyRegistry(state).active_for(fund_id)
    if strategy is None:
        return None

    ledger = TradeLedger(state)
    records = ledger.records_for(fund_id)
    sold = [r for r in records if r.status == SOLD]
    total_profit = sum(r.realized_profit or 0.0 for r in sold)
    total_investment = sum(r.buy_amount for r in sold)
    profit_percentage = total_profit / total_investment * 100 if total_investment > 0 else 0.0

    last_operation = None
    next_grid = None
    if records:
        last = records[0]
        if last.status == HOLDING:
            last_operation = LastOperation("buy", last.open_date, last.open_nav)
        else:
            last_operation = LastOperation("sell", last.close_date or last.open_date, last.close_nav)
        # 持仓中看卖出基准，已卖出看买入基准
        operation = "sell" if last.status == HOLDING else "buy"
        try:
            next_grid = calculate_grid_metrics(quote.current_nav, state.records, fund_id, strategy, operation)
        except ValidationError as e:
            logger.warning(f"⚠️  Grid metrics skipped for {fund_id}: {e}")

    return FundCard(
        code=fund_id,
        name=quote.name,
        current_grids=ledger.holding_count(fund_id),
        max_grids=strategy.grid_count,
        total_profit=total_profit,
        profit_percentage=profit_percentage,
        last_operation=last_operation,
        next_grid=next_grid,
        is_starred=state.is_starred(fund_id),
        buy_width_percent=strategy.buy_width_percent,
        sell_width_percent=strategy.sell_width_percent,
    )


def build_fund_cards(state: AppState, quotes: Dict[str, FundQuote],
                     sort_by: str = "date", descending: bool = True) -> List[FundCard]:
    """有生效策略且有行情的基金卡片；置顶在前，其余按 sort_by 排序"""
    if sort_by not in SORT_KEYS:
        raise ValidationError(f"sort_by must be one of {SORT_KEYS}, got {sort_by!r}")

    cards = []
    for fund_id in StrategyRegistry(state).fund_ids():
        quote = quotes.get(fund_id)
        if quote is None:
            continue
        card = build_fund_card(state, fund_id, quote)
        if card is not None:
            cards.append(card)

    def sort_value(card: FundCard):
        if sort_by == "grids":
            return card.current_grids
        if sort_by == "profit":
            return card.total_profit
        return card.last_operation.date if card.last_operation else ""

    cards.sort(key=sort_value, reverse=descending)
    # 稳定排序：再按置顶分组
    cards.sort(key=lambda c: not c.is_starred)
    return cards
