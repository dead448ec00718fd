# core/ledger/trade_ledger.py
import uuid
from typing import List, Optional

from fundgrid.core.database.models import HOLDING, SOLD, TradeRecord
from fundgrid.core.errors import StateConflictError, ValidationError
from fundgrid.core.ledger.strategy_registry import StrategyRegistry
from fundgrid.core.state import AppState
from fundgrid.core.strategy.grid_calculator import (
    expected_close_nav as derive_expected_close_nav,
    latest_holding_record,
)
from fundgrid.core.validation import require_positive
from fundgrid.utils.logger import get_logger

logger = get_logger(__name__)


class TradeLedger:
    """
    交易记录账本：买入开仓 / 卖出平仓 / 删除
    所有校验在修改前完成，失败时状态不变
    """

    def __init__(self, state: AppState):
        self.state = state

    def open(self, fund_id: str, strategy_id: str, date: str, nav: float,
             accumulated_nav: float, buy_amount: float,
             expected_close_nav: Optional[float] = None,
             expected_close_accumulated_nav: Optional[float] = None) -> TradeRecord:
        buy_amount = require_positive("buy_amount", buy_amount)
        nav = require_positive("nav", nav)
        accumulated_nav = require_positive("accumulated_nav", accumulated_nav)
        if not fund_id:
            raise ValidationError("fund_id must not be empty")
        if not date:
            raise ValidationError("date must not be empty")

        if expected_close_nav is None:
            strategy = StrategyRegistry(self.state).active_for(fund_id)
            if strategy is None:
                raise ValidationError(f"fund {fund_id} has no active strategy to derive the expected exit")
            expected_close_nav = derive_expected_close_nav(nav, strategy)
        expected_close_nav = require_positive("expected_close_nav", expected_close_nav)
        if expected_close_accumulated_nav is None:
            # 累计净值目标与单位净值目标同比例
            expected_close_accumulated_nav = accumulated_nav * expected_close_nav / nav
        expected_close_accumulated_nav = require_positive(
            "expected_close_accumulated_nav", expected_close_accumulated_nav)

        # 相对同基金上一条记录（按买入日期）的累计净值变化
        actual_grid_width = None
        previous = self._latest_by_date(fund_id)
        if previous is not None and previous.open_accumulated_nav > 0:
            actual_grid_width = (
                (accumulated_nav - previous.open_accumulated_nav) / previous.open_accumulated_nav * 100
            )

        record = TradeRecord(
            id=f"{fund_id}-{uuid.uuid4().hex[:12]}",
            fund_id=fund_id,
            strategy_id=strategy_id,
            open_date=date,
            open_nav=nav,
            open_accumulated_nav=accumulated_nav,
            buy_amount=buy_amount,
            buy_shares=buy_amount / nav,
            expected_close_nav=expected_close_nav,
            expected_close_accumulated_nav=expected_close_accumulated_nav,
            actual_grid_width=actual_grid_width,
            status=HOLDING,
        )
        self.state.records.append(record)
        self.state.commit()
        logger.info(
            f"🟢 Opened {record.id}: {buy_amount:.2f} @ {nav:.4f} "
            f"({record.buy_shares:.2f} shares, exit {expected_close_nav:.4f})"
        )
        return record

    def close(self, record_id: str, close_date: str, close_nav: float,
              close_amount: Optional[float] = None,
              close_accumulated_nav: Optional[float] = None) -> TradeRecord:
        record = self.get(record_id)
        if record is None:
            raise StateConflictError(f"record {record_id} not found")
        if record.status != HOLDING:
            raise StateConflictError(f"record {record_id} is already {record.status}")
        close_nav = require_positive("close_nav", close_nav)
        if close_amount is None:
            close_amount = record.buy_shares * close_nav
        close_amount = require_positive("close_amount", close_amount)
        if close_accumulated_nav is not None:
            close_accumulated_nav = require_positive("close_accumulated_nav", close_accumulated_nav)

        record.status = SOLD
        record.close_date = close_date
        record.close_nav = close_nav
        record.close_accumulated_nav = close_accumulated_nav
        record.close_amount = close_amount
        record.realized_profit = close_amount - record.buy_amount
        record.realized_profit_rate = record.realized_profit / record.buy_amount * 100
        self.state.commit()
        logger.info(
            f"🔴 Closed {record_id}: {close_amount:.2f} @ {close_nav:.4f} "
            f"profit {record.realized_profit:+.2f} ({record.realized_profit_rate:+.2f}%)"
        )
        return record

    def remove(self, record_id: str) -> bool:
        before = len(self.state.records)
        self.state.records = [r for r in self.state.records if r.id != record_id]
        if len(self.state.records) == before:
            logger.debug(f"Record {record_id} not found, nothing removed")
            return False
        self.state.commit()
        logger.info(f"🗑️  Record {record_id} removed")
        return True

    def update_expected_close(self, record_id: str, expected_close_nav: float,
                              expected_close_accumulated_nav: Optional[float] = None) -> TradeRecord:
        """调整持仓记录的目标卖出净值"""
        record = self.get(record_id)
        if record is None:
            raise StateConflictError(f"record {record_id} not found")
        if record.status != HOLDING:
            raise StateConflictError(f"record {record_id} is already {record.status}")
        expected_close_nav = require_positive("expected_close_nav", expected_close_nav)
        if expected_close_accumulated_nav is not None:
            expected_close_accumulated_nav = require_positive(
                "expected_close_accumulated_nav", expected_close_accumulated_nav)

        record.expected_close_nav = expected_close_nav
        if expected_close_accumulated_nav is not None:
            record.expected_close_accumulated_nav = expected_close_accumulated_nav
        self.state.commit()
        logger.info(f"🎯 Record {record_id} exit target -> {expected_close_nav:.4f}")
        return record

    def get(self, record_id: str) -> Optional[TradeRecord]:
        return next((r for r in self.state.records if r.id == record_id), None)

    def records_for(self, fund_id: str) -> List[TradeRecord]:
        """同基金记录，按买入日期倒序"""
        records = [r for r in self.state.records if r.fund_id == fund_id]
        # 稳定排序：同一天时后录入的排在前面
        return sorted(reversed(records), key=lambda r: r.open_date, reverse=True)

    def next_sellable(self, fund_id: str) -> Optional[TradeRecord]:
        """下一笔可卖出的记录：最新买入的持仓（后进先出）"""
        return latest_holding_record(self.state.records, fund_id)

    def holding_count(self, fund_id: str) -> int:
        return sum(1 for r in self.state.records if r.fund_id == fund_id and r.status == HOLDING)

    def realized_profit(self, fund_id: str) -> float:
        return sum(
            r.realized_profit or 0.0
            for r in self.state.records
            if r.fund_id == fund_id and r.status == SOLD
        )

    def _latest_by_date(self, fund_id: str) -> Optional[TradeRecord]:
        records = self.records_for(fund_id)
        return records[0] if records else None
