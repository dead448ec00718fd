# core/database/models.py
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from fundgrid.core.errors import ValidationError
from fundgrid.core.validation import require_bool, require_grid_count, require_positive

HOLDING = "holding"
SOLD = "sold"
RECORD_STATUSES = (HOLDING, SOLD)

# 备份 JSON 使用的驼峰字段名
_STRATEGY_KEYS = {
    "id": "id",
    "fund_id": "fundId",
    "buy_width_percent": "buyWidthPercent",
    "sell_width_percent": "sellWidthPercent",
    "grid_count": "gridCount",
    "is_active": "isActive",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

_RECORD_KEYS = {
    "id": "id",
    "fund_id": "fundId",
    "strategy_id": "strategyId",
    "open_date": "openDate",
    "open_nav": "openNAV",
    "open_accumulated_nav": "openAccumulatedNAV",
    "buy_amount": "buyAmount",
    "buy_shares": "buyShares",
    "expected_close_nav": "expectedCloseNAV",
    "expected_close_accumulated_nav": "expectedCloseAccumulatedNAV",
    "actual_grid_width": "actualGridWidth",
    "status": "status",
    "close_date": "closeDate",
    "close_nav": "closeNAV",
    "close_accumulated_nav": "closeAccumulatedNAV",
    "close_amount": "closeAmount",
    "realized_profit": "realizedProfit",
    "realized_profit_rate": "realizedProfitRate",
}


# 旧版备份（gridStrategy / tradeRecord）条目字段 → 当前字段
_LEGACY_STRATEGY_KEYS = {
    "fundCode": "fundId",
    "buyWidth": "buyWidthPercent",
    "sellWidth": "sellWidthPercent",
}

_LEGACY_RECORD_KEYS = {
    "fundCode": "fundId",
    "date": "openDate",
    "netWorth": "openNAV",
    "accNetWorth": "openAccumulatedNAV",
    "expectedSellNetWorth": "expectedCloseNAV",
    "expectedSellAccNetWorth": "expectedCloseAccumulatedNAV",
    "sellDate": "closeDate",
    "sellNetWorth": "closeNAV",
    "sellAccNetWorth": "closeAccumulatedNAV",
    "sellAmount": "closeAmount",
    "profit": "realizedProfit",
    "profitRate": "realizedProfitRate",
}

_CLOSE_KEYS = ("closeDate", "closeNAV", "closeAccumulatedNAV", "closeAmount",
               "realizedProfit", "realizedProfitRate")


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _with_legacy_keys(data: Dict[str, Any], legacy: Dict[str, str]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise ValidationError(f"entry must be an object, got {type(data).__name__}")
    data = dict(data)
    for old, new in legacy.items():
        if new not in data and old in data:
            data[new] = data[old]
    return data


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{name} must be a non-empty string, got {value!r}")
    return value


@dataclass
class Strategy:
    id: str
    fund_id: str
    buy_width_percent: float
    sell_width_percent: float
    grid_count: int
    is_active: bool
    created_at: int  # epoch ms
    updated_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in _STRATEGY_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Strategy":
        """备份条目 → Strategy；字段缺失或非法时抛 KeyError / ValidationError"""
        data = _with_legacy_keys(data, _LEGACY_STRATEGY_KEYS)
        created_at = int(data["createdAt"])
        return cls(
            id=_require_text("id", data["id"]),
            fund_id=_require_text("fundId", data["fundId"]),
            buy_width_percent=require_positive("buyWidthPercent", data["buyWidthPercent"]),
            sell_width_percent=require_positive("sellWidthPercent", data["sellWidthPercent"]),
            grid_count=require_grid_count(data["gridCount"]),
            is_active=require_bool("isActive", data["isActive"]),
            created_at=created_at,
            updated_at=int(data.get("updatedAt", created_at)),
        )


@dataclass
class TradeRecord:
    id: str
    fund_id: str
    strategy_id: str
    open_date: str  # YYYY-MM-DD
    open_nav: float
    open_accumulated_nav: float
    buy_amount: float
    buy_shares: float
    expected_close_nav: float
    expected_close_accumulated_nav: Optional[float] = None
    actual_grid_width: Optional[float] = None
    status: str = HOLDING  # "holding" | "sold"
    close_date: Optional[str] = None
    close_nav: Optional[float] = None
    close_accumulated_nav: Optional[float] = None
    close_amount: Optional[float] = None
    realized_profit: Optional[float] = None
    realized_profit_rate: Optional[float] = None

    @property
    def is_holding(self) -> bool:
        return self.status == HOLDING

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in _RECORD_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TradeRecord":
        """
        备份条目 → TradeRecord，同时校验生命周期：
        - 持仓记录不能带卖出字段
        - 已卖出记录必须有卖出日期 / 卖出净值 / 卖出金额
        """
        data = _with_legacy_keys(data, _LEGACY_RECORD_KEYS)
        status = data.get("status", HOLDING)
        if status not in RECORD_STATUSES:
            raise ValidationError(f"unknown record status: {status!r}")

        open_nav = require_positive("openNAV", data["openNAV"])
        buy_amount = require_positive("buyAmount", data["buyAmount"])
        buy_shares = data.get("buyShares")
        buy_shares = (require_positive("buyShares", buy_shares) if buy_shares is not None
                      else buy_amount / open_nav)
        expected_acc = data.get("expectedCloseAccumulatedNAV")

        record = cls(
            id=_require_text("id", data["id"]),
            fund_id=_require_text("fundId", data["fundId"]),
            strategy_id=str(data.get("strategyId") or ""),
            open_date=_require_text("openDate", data["openDate"]),
            open_nav=open_nav,
            open_accumulated_nav=require_positive(
                "openAccumulatedNAV", data.get("openAccumulatedNAV", open_nav)),
            buy_amount=buy_amount,
            buy_shares=buy_shares,
            expected_close_nav=require_positive("expectedCloseNAV", data["expectedCloseNAV"]),
            expected_close_accumulated_nav=(require_positive("expectedCloseAccumulatedNAV", expected_acc)
                                            if expected_acc is not None else None),
            actual_grid_width=_opt_float(data.get("actualGridWidth")),
            status=status,
        )

        if status == HOLDING:
            present = [key for key in _CLOSE_KEYS if data.get(key) is not None]
            if present:
                raise ValidationError(f"holding record {record.id} carries sell fields {present}")
            return record

        record.close_date = _require_text("closeDate", data.get("closeDate"))
        record.close_nav = require_positive("closeNAV", data.get("closeNAV"))
        close_acc = data.get("closeAccumulatedNAV")
        record.close_accumulated_nav = (require_positive("closeAccumulatedNAV", close_acc)
                                        if close_acc is not None else None)
        record.close_amount = require_positive("closeAmount", data.get("closeAmount"))
        profit = _opt_float(data.get("realizedProfit"))
        record.realized_profit = profit if profit is not None else record.close_amount - buy_amount
        rate = _opt_float(data.get("realizedProfitRate"))
        record.realized_profit_rate = rate if rate is not None else record.realized_profit / buy_amount * 100
        return record


def column_names(model) -> list:
    """数据表列顺序与 dataclass 字段顺序一致"""
    return [f.name for f in fields(model)]
