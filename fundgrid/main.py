#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
fundgrid: 基金网格交易看板入口
Supports:
  --mode=full      : Launch Streamlit dashboard (default)
  --mode=refresh   : Fetch quotes once and log grid distances for every fund
  --mode=export    : Write a JSON backup to --file
  --mode=import    : Replace local data with the JSON backup in --file
  --port=8501      : Custom Streamlit port (only for full mode)
"""

import argparse
import signal
import sys
from pathlib import Path

from fundgrid.config.settings import Config
from fundgrid.utils.logger import get_logger, setup_logging

ROOT_DIR = Path(__file__).resolve().parent

logger = get_logger("fundgrid.main")


def setup_signal_handlers():
    """注册 Ctrl+C 优雅退出"""
    def signal_handler(signum, frame):
        logger.info("🛑 Received SIGINT. Shutting down gracefully...")
        sys.exit(0)
    signal.signal(signal.SIGINT, signal_handler)


def run_dashboard(port: int = 8501):
    """启动 Streamlit Web 界面"""
    logger.info(f"Launching Streamlit dashboard on http://localhost:{port}")
    import streamlit.web.cli as stcli
    sys.argv = ["streamlit", "run", str(ROOT_DIR / "web" / "dashboard.py"), "--server.port", str(port)]
    sys.exit(stcli.main())


def run_refresh() -> int:
    """单次行情轮询：打印每只基金距下一条网格线的距离"""
    from fundgrid.core.database.db_manager import DBManager
    from fundgrid.core.errors import ValidationError
    from fundgrid.core.ledger.strategy_registry import StrategyRegistry
    from fundgrid.core.market.fund_client import get_fund_client
    from fundgrid.core.strategy.grid_calculator import calculate_grid_metrics

    state = DBManager().load_state()
    registry = StrategyRegistry(state)
    fund_ids = registry.fund_ids()
    if not fund_ids:
        logger.info("No strategies configured, nothing to refresh")
        return 0

    quotes = get_fund_client().get_fund_quotes(fund_ids)
    for fund_id in fund_ids:
        strategy = registry.active_for(fund_id)
        quote = quotes.get(fund_id)
        if strategy is None or quote is None:
            continue
        try:
            buy = calculate_grid_metrics(quote.current_nav, state.records, fund_id, strategy, "buy")
            sell = calculate_grid_metrics(quote.current_nav, state.records, fund_id, strategy, "sell")
        except ValidationError as e:
            logger.warning(f"⚠️  {fund_id}: {e}")
            continue
        logger.info(
            f"📈 {fund_id} {quote.name}: nav {quote.current_nav:.4f} | "
            f"to buy {buy.estimated_distance.buy:+.2f}% | to sell {sell.estimated_distance.sell:+.2f}%"
        )
    return 0


def run_export(path: str) -> int:
    from fundgrid.core.database.db_manager import DBManager
    from fundgrid.utils.backup import dumps_backup, export_data

    state = DBManager().load_state()
    Path(path).write_text(dumps_backup(export_data(state)), encoding="utf-8")
    logger.info(f"📤 Backup written to {path}")
    return 0


def run_import(path: str) -> int:
    from fundgrid.core.database.db_manager import DBManager
    from fundgrid.core.errors import BackupFormatError
    from fundgrid.utils.backup import import_backup

    state = DBManager().load_state()
    try:
        import_backup(state, Path(path).read_bytes())
    except (OSError, BackupFormatError) as e:
        logger.error(f"❌ Import failed: {e}")
        return 1
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(description="Fund grid trading dashboard launcher")
    parser.add_argument(
        "--mode",
        type=str,
        default="full",
        choices=["full", "refresh", "export", "import"],
        help="Run mode: 'full' (Web UI), 'refresh' (one quote pass), 'export' / 'import' (JSON backup)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8501,
        help="Streamlit server port (only used in 'full' mode)"
    )
    parser.add_argument("--file", type=str, help="Backup file path for export / import")
    args = parser.parse_args(argv)

    Config.from_env()
    setup_logging()
    setup_signal_handlers()
    logger.info(f"🚀 fundgrid starting in '{args.mode}' mode")

    if args.mode in ("export", "import") and not args.file:
        parser.error(f"--file is required in '{args.mode}' mode")

    if args.mode == "full":
        run_dashboard(args.port)
    elif args.mode == "refresh":
        return run_refresh()
    elif args.mode == "export":
        return run_export(args.file)
    elif args.mode == "import":
        return run_import(args.file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
