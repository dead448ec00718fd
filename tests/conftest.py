# tests/conftest.py
import tempfile

import pytest

from fundgrid.config.settings import Config

# 测试日志写到临时目录
Config.LOGGING.log_dir = tempfile.mkdtemp(prefix="fundgrid-logs-")

from fundgrid.core.database.db_manager import DBManager  # noqa: E402
from fundgrid.core.ledger.strategy_registry import StrategyRegistry  # noqa: E402
from fundgrid.core.ledger.trade_ledger import TradeLedger  # noqa: E402
from fundgrid.core.state import AppState  # noqa: E402


class RecordingPersister:
    """记录每次 commit 的调用次数"""

    def __init__(self):
        self.calls = 0

    def __call__(self, state):
        self.calls += 1


@pytest.fixture
def persister():
    return RecordingPersister()


@pytest.fixture
def state(persister):
    return AppState(persister=persister)


@pytest.fixture
def registry(state):
    return StrategyRegistry(state)


@pytest.fixture
def ledger(state):
    return TradeLedger(state)


@pytest.fixture
def strategy(registry):
    return registry.add("161725", buy_width_percent=5, sell_width_percent=5, grid_count=5)


@pytest.fixture
def db(tmp_path):
    return DBManager(str(tmp_path / "fundgrid_test.db"))
