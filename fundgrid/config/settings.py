# config/settings.py
import os
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class MarketConfig:
    search_url: str = "https://fundsuggest.eastmoney.com/FundSearch/api/FundSearchAPI.ashx"
    quote_url: str = "https://fundgz.1234567.com.cn/js/{code}.js"
    history_url: str = "https://api.fund.eastmoney.com/f10/lsjz"
    index_url: str = "https://hq.sinajs.cn/list={codes}"
    timeout: float = 10.0  # 秒
    user_agent: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko)"
    # 看板刷新周期（秒）
    quote_ttl: int = 60
    index_ttl: int = 10
    indices: Dict[str, str] = field(default_factory=lambda: {
        "SH": "s_sh000001",     # 上证指数
        "HS300": "s_sz399300",  # 沪深300
        "CYB": "s_sz399006",    # 创业板指
        "KC50": "s_sh000688",   # 科创50
        "BANK": "s_sz399986",   # 中证银行
        "SEC": "s_sz399975",    # 证券公司
    })


@dataclass
class GridConfig:
    # 新建策略表单的默认值
    buy_width_percent: float = 5.0
    sell_width_percent: float = 5.0
    grid_count: int = 5


@dataclass
class DatabaseConfig:
    db_path: str = "data/fundgrid.db"


@dataclass
class BackupConfig:
    version: str = "1.0.0"
    filename_prefix: str = "grid-trade-backup"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_dir: str = "logs"


class Config:
    MARKET = MarketConfig()
    GRID = GridConfig()
    DB = DatabaseConfig()
    BACKUP = BackupConfig()
    LOGGING = LoggingConfig()

    @classmethod
    def from_env(cls):
        if os.getenv("FUNDGRID_DEBUG") == "1":
            cls.LOGGING.level = "DEBUG"
        if os.getenv("FUNDGRID_DB_PATH"):
            cls.DB.db_path = os.environ["FUNDGRID_DB_PATH"]
        if os.getenv("FUNDGRID_LOG_DIR"):
            cls.LOGGING.log_dir = os.environ["FUNDGRID_LOG_DIR"]
        return cls()
