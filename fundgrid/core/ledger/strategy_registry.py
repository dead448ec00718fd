# core/ledger/strategy_registry.py
import time
import uuid
from typing import List, Optional

from fundgrid.core.database.models import Strategy
from fundgrid.core.errors import StateConflictError, ValidationError
from fundgrid.core.state import AppState
from fundgrid.core.validation import require_grid_count, require_positive
from fundgrid.utils.logger import get_logger

logger = get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class StrategyRegistry:
    """网格策略历史：只追加，新策略生效时同基金旧策略全部失效"""

    def __init__(self, state: AppState):
        self.state = state

    def add(self, fund_id: str, buy_width_percent: float, sell_width_percent: float,
            grid_count: int) -> Strategy:
        if not fund_id:
            raise ValidationError("fund_id must not be empty")
        buy_width_percent = require_positive("buy_width_percent", buy_width_percent)
        sell_width_percent = require_positive("sell_width_percent", sell_width_percent)
        grid_count = require_grid_count(grid_count)

        now = _now_ms()
        strategy = Strategy(
            id=f"{fund_id}-{uuid.uuid4().hex[:12]}",
            fund_id=fund_id,
            buy_width_percent=buy_width_percent,
            sell_width_percent=sell_width_percent,
            grid_count=int(grid_count),
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        self._deactivate_fund(fund_id, now)
        self.state.strategies.append(strategy)
        self.state.commit()
        logger.info(
            f"✅ Strategy {strategy.id} active for {fund_id}: "
            f"buy {strategy.buy_width_percent}% / sell {strategy.sell_width_percent}% x{strategy.grid_count}"
        )
        return strategy

    def activate(self, strategy_id: str) -> Strategy:
        """重新启用历史策略"""
        strategy = self.get(strategy_id)
        if strategy is None:
            raise StateConflictError(f"strategy {strategy_id} not found")
        now = _now_ms()
        self._deactivate_fund(strategy.fund_id, now)
        strategy.is_active = True
        strategy.updated_at = now
        self.state.commit()
        logger.info(f"🔄 Strategy {strategy_id} re-activated for {strategy.fund_id}")
        return strategy

    def delete(self, strategy_id: str) -> bool:
        before = len(self.state.strategies)
        self.state.strategies = [s for s in self.state.strategies if s.id != strategy_id]
        if len(self.state.strategies) == before:
            logger.debug(f"Strategy {strategy_id} not found, nothing deleted")
            return False
        self.state.commit()
        logger.info(f"🗑️  Strategy {strategy_id} deleted")
        return True

    def get(self, strategy_id: str) -> Optional[Strategy]:
        return next((s for s in self.state.strategies if s.id == strategy_id), None)

    def active_for(self, fund_id: str) -> Optional[Strategy]:
        return next((s for s in self.state.strategies if s.fund_id == fund_id and s.is_active), None)

    def history_for(self, fund_id: str) -> List[Strategy]:
        """同基金全部策略，新的在前"""
        history = [s for s in self.state.strategies if s.fund_id == fund_id]
        return list(reversed(history))

    def fund_ids(self) -> List[str]:
        seen = []
        for s in self.state.strategies:
            if s.fund_id not in seen:
                seen.append(s.fund_id)
        return seen

    def _deactivate_fund(self, fund_id: str, now: int):
        for s in self.state.strategies:
            if s.fund_id == fund_id and s.is_active:
                s.is_active = False
                s.updated_at = now
