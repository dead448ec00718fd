# core/errors.py


class FundGridError(Exception):
    """所有业务错误的基类（均可恢复，不会留下半途修改的状态）"""


class ValidationError(FundGridError, ValueError):
    """数值或参数非法（净值 / 金额 <= 0、未知操作类型等）"""


class StateConflictError(FundGridError):
    """状态冲突：记录不存在或已卖出"""


class BackupFormatError(FundGridError):
    """备份文件无法解析或结构不合法"""


class MarketDataError(FundGridError):
    """行情接口请求失败"""


class MarketDataParseError(MarketDataError):
    """行情接口返回内容无法解析"""
