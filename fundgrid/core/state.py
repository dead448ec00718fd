# core/state.py
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from fundgrid.core.database.models import Strategy, TradeRecord
from fundgrid.core.errors import ValidationError
from fundgrid.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AppState:
    """
    应用状态容器：策略 / 交易记录 / 置顶基金
    每次成功修改后由调用方执行 commit()，再交给 persister 落盘
    """
    strategies: List[Strategy] = field(default_factory=list)
    records: List[TradeRecord] = field(default_factory=list)
    starred_fund_ids: List[str] = field(default_factory=list)
    persister: Optional[Callable[["AppState"], None]] = field(default=None, repr=False, compare=False)

    def commit(self):
        if self.persister is None:
            return
        self.persister(self)
        logger.debug(
            f"State persisted: {len(self.strategies)} strategies, "
            f"{len(self.records)} records, {len(self.starred_fund_ids)} starred"
        )

    def replace(self, strategies: List[Strategy], records: List[TradeRecord], starred_fund_ids: List[str]):
        """整体替换（备份导入用），随后 commit"""
        self.strategies = list(strategies)
        self.records = list(records)
        self.starred_fund_ids = list(starred_fund_ids)
        self.commit()

    def is_starred(self, fund_id: str) -> bool:
        return fund_id in self.starred_fund_ids

    def toggle_star(self, fund_id: str) -> bool:
        """切换置顶，返回切换后的状态"""
        if not fund_id:
            raise ValidationError("fund_id must not be empty")
        if fund_id in self.starred_fund_ids:
            self.starred_fund_ids.remove(fund_id)
            starred = False
        else:
            self.starred_fund_ids.append(fund_id)
            starred = True
        self.commit()
        logger.info(f"⭐ Fund {fund_id} {'starred' if starred else 'unstarred'}")
        return starred
