# core/database/db_manager.py
import sqlite3
from pathlib import Path
from typing import List, Dict, Any, Optional

from fundgrid.config.settings import Config
from fundgrid.core.database.models import Strategy, TradeRecord, column_names
from fundgrid.core.state import AppState
from fundgrid.utils.logger import get_logger

logger = get_logger(__name__)

STRATEGY_COLUMNS = column_names(Strategy)
RECORD_COLUMNS = column_names(TradeRecord)


class DBManager:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or Config.DB.db_path

        # 确保数据目录存在
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        self.init_db()

    def init_db(self):
        """创建所有必需的数据表"""
        conn = self._get_connection()
        try:
            c = conn.cursor()

            # 网格策略历史
            c.execute("""
                CREATE TABLE IF NOT EXISTS strategies (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT UNIQUE NOT NULL,
                    fund_id TEXT NOT NULL,
                    buy_width_percent REAL NOT NULL,
                    sell_width_percent REAL NOT NULL,
                    grid_count INTEGER NOT NULL,
                    is_active BOOLEAN DEFAULT 0,
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
            """)

            # 交易记录（持仓 + 已卖出共用）
            c.execute("""
                CREATE TABLE IF NOT EXISTS trade_records (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT UNIQUE NOT NULL,
                    fund_id TEXT NOT NULL,
                    strategy_id TEXT,
                    open_date TEXT NOT NULL,
                    open_nav REAL NOT NULL,
                    open_accumulated_nav REAL NOT NULL,
                    buy_amount REAL NOT NULL,
                    buy_shares REAL NOT NULL,
                    expected_close_nav REAL NOT NULL,
                    expected_close_accumulated_nav REAL,
                    actual_grid_width REAL,
                    status TEXT NOT NULL,
                    close_date TEXT,
                    close_nav REAL,
                    close_accumulated_nav REAL,
                    close_amount REAL,
                    realized_profit REAL,
                    realized_profit_rate REAL
                )
            """)

            # 置顶基金
            c.execute("""
                CREATE TABLE IF NOT EXISTS starred_funds (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    fund_id TEXT UNIQUE NOT NULL
                )
            """)

            c.execute("CREATE INDEX IF NOT EXISTS idx_records_fund ON trade_records(fund_id)")
            conn.commit()
        finally:
            conn.close()
        logger.info(f"✅ Database initialized at {self.db_path}")

    def _get_connection(self):
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"❌ Failed to connect to DB: {e}")
            raise

    def save_snapshot(self, state: AppState):
        """整体覆盖写入当前状态（单事务）"""
        conn = self._get_connection()
        try:
            with conn:
                c = conn.cursor()
                c.execute("DELETE FROM strategies")
                c.execute("DELETE FROM trade_records")
                c.execute("DELETE FROM starred_funds")
                c.executemany(
                    f"INSERT INTO strategies ({', '.join(STRATEGY_COLUMNS)}) "
                    f"VALUES ({', '.join('?' * len(STRATEGY_COLUMNS))})",
                    [tuple(getattr(s, col) for col in STRATEGY_COLUMNS) for s in state.strategies],
                )
                c.executemany(
                    f"INSERT INTO trade_records ({', '.join(RECORD_COLUMNS)}) "
                    f"VALUES ({', '.join('?' * len(RECORD_COLUMNS))})",
                    [tuple(getattr(r, col) for col in RECORD_COLUMNS) for r in state.records],
                )
                c.executemany(
                    "INSERT INTO starred_funds (fund_id) VALUES (?)",
                    [(fund_id,) for fund_id in state.starred_fund_ids],
                )
            logger.debug(f"✅ Snapshot saved: {len(state.strategies)} strategies, {len(state.records)} records")
        except sqlite3.Error as e:
            logger.error(f"❌ save_snapshot failed: {e}")
            raise
        finally:
            conn.close()

    def load_state(self) -> AppState:
        """读取全部数据，返回已接好持久化回调的 AppState"""
        conn = self._get_connection()
        conn.row_factory = sqlite3.Row
        try:
            c = conn.cursor()
            c.execute(f"SELECT {', '.join(STRATEGY_COLUMNS)} FROM strategies ORDER BY seq")
            strategies = [self._row_to_strategy(row) for row in c.fetchall()]
            c.execute(f"SELECT {', '.join(RECORD_COLUMNS)} FROM trade_records ORDER BY seq")
            records = [TradeRecord(**dict(row)) for row in c.fetchall()]
            c.execute("SELECT fund_id FROM starred_funds ORDER BY seq")
            starred = [row["fund_id"] for row in c.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"❌ load_state failed: {e}")
            raise
        finally:
            conn.close()

        logger.info(f"📂 Loaded {len(strategies)} strategies, {len(records)} records from {self.db_path}")
        return AppState(strategies=strategies, records=records,
                        starred_fund_ids=starred, persister=self.save_snapshot)

    def get_recent_records(self, limit: int = 10) -> List[Dict[str, Any]]:
        """最近交易记录（用于看板表格）"""
        conn = self._get_connection()
        conn.row_factory = sqlite3.Row
        c = conn.cursor()
        try:
            c.execute("""
                SELECT id, fund_id, open_date, open_nav, buy_amount,
                       status, close_date, close_nav,
                       ROUND(realized_profit, 2) as realized_profit
                FROM trade_records
                ORDER BY open_date DESC, seq DESC
                LIMIT ?
            """, (limit,))
            return [dict(row) for row in c.fetchall()]
        except sqlite3.Error as e:
            logger.error(f"❌ get_recent_records failed: {e}")
            return []
        finally:
            conn.close()

    @staticmethod
    def _row_to_strategy(row) -> Strategy:
        data = dict(row)
        data["is_active"] = bool(data["is_active"])
        return Strategy(**data)
