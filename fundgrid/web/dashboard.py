# web/dashboard.py
from datetime import date, datetime, timedelta

import streamlit as st

from fundgrid.config.settings import Config
from fundgrid.core.database.db_manager import DBManager
from fundgrid.core.errors import FundGridError, MarketDataError
from fundgrid.core.ledger.strategy_registry import StrategyRegistry
from fundgrid.core.ledger.trade_ledger import TradeLedger
from fundgrid.core.market.fund_client import get_fund_client
from fundgrid.core.portfolio import build_fund_cards
from fundgrid.core.strategy.grid_calculator import (
    calculate_grid_metrics,
    expected_close_nav,
    is_buy_signal,
    is_sell_signal,
)
from fundgrid.utils.backup import backup_filename, dumps_backup, export_data, import_backup
from fundgrid.utils.helpers import history_to_frame
from fundgrid.utils.logger import get_logger, setup_logging
from fundgrid.web.components.fund_card import render_fund_card
from fundgrid.web.components.fund_chart import render_nav_chart
from fundgrid.web.components.trade_table import render_trade_table

logger = get_logger(__name__)


# --- 行情缓存（ttl 到期自动刷新）---
@st.cache_data(ttl=Config.MARKET.index_ttl)
def get_indices_cached():
    return get_fund_client().get_market_indices()


@st.cache_data(ttl=Config.MARKET.quote_ttl)
def get_quotes_cached(codes: tuple):
    return get_fund_client().get_fund_quotes(codes)


@st.cache_data(ttl=Config.MARKET.quote_ttl)
def get_history_cached(code: str, start_date: str, end_date: str):
    points, _ = get_fund_client().get_fund_history(code, start_date, end_date, page_size=40)
    return history_to_frame(points)


def main():
    st.set_page_config(page_title="基金网格交易看板", layout="wide", initial_sidebar_state="expanded")

    # === 初始化（单例）===
    if "db" not in st.session_state:
        Config.from_env()
        setup_logging()
        st.session_state.db = DBManager()
    if "state" not in st.session_state:
        st.session_state.state = st.session_state.db.load_state()
    if "fund_id" not in st.session_state:
        st.session_state.fund_id = None

    page = st.sidebar.radio("🧭 导航", ["📊 总览", "📈 基金详情", "💾 备份"], key="nav_page")

    if page == "📊 总览":
        _render_overview_page()
    elif page == "📈 基金详情":
        _render_fund_page()
    elif page == "💾 备份":
        _render_backup_page()


# --- 总览页：大盘指数 + 基金卡片 ---
def _render_overview_page():
    state = st.session_state.state
    st.title("📊 基金网格总览")

    try:
        indices = get_indices_cached()
        cols = st.columns(len(indices))
        for col, index in zip(cols, indices.values()):
            col.metric(index.name, f"{index.current:.2f}", f"{index.change_percent:.2f}%")
    except MarketDataError as e:
        st.warning(f"⚠️ 大盘指数获取失败：{e}")

    _render_fund_search()

    st.divider()
    col_sort, col_order = st.columns(2)
    sort_by = col_sort.selectbox("排序", ["date", "grids", "profit"],
                                 format_func={"date": "最近操作", "grids": "持仓网格", "profit": "收益"}.get)
    descending = col_order.radio("顺序", ["降序", "升序"], horizontal=True) == "降序"

    fund_ids = tuple(StrategyRegistry(state).fund_ids())
    if not fund_ids:
        st.info("暂无网格策略，先搜索基金并创建策略")
        return

    quotes = get_quotes_cached(fund_ids)
    cards = build_fund_cards(state, quotes, sort_by=sort_by, descending=descending)
    cols = st.columns(3)
    for i, card in enumerate(cards):
        with cols[i % 3]:
            if render_fund_card(card, state):
                st.session_state.fund_id = card.code
                st.info("已选中，切换到“基金详情”页查看")

    st.caption(f"✅ 数据源：天天基金估值 · 新浪指数 | 刷新：st.cache_data(ttl={Config.MARKET.quote_ttl}s)")


def _render_fund_search():
    keyword = st.text_input("🔍 搜索基金（代码 / 名称 / 拼音）", key="search_kw")
    if not keyword:
        return
    try:
        results = get_fund_client().search_funds(keyword)
    except MarketDataError as e:
        st.error(f"搜索失败：{e}")
        return
    if not results:
        st.info("未找到基金")
        return
    for item in results[:10]:
        col1, col2 = st.columns([4, 1])
        col1.write(f"`{item.code}` {item.name} · {item.type}")
        if col2.button("选择", key=f"pick_{item.code}"):
            st.session_state.fund_id = item.code
            st.success(f"已选择 {item.name}，切换到“基金详情”页配置策略")


# --- 详情页：策略 + 买卖 + 记录 + 走势 ---
def _render_fund_page():
    state = st.session_state.state
    registry = StrategyRegistry(state)
    ledger = TradeLedger(state)

    fund_ids = registry.fund_ids()
    default = st.session_state.fund_id
    options = fund_ids + ([default] if default and default not in fund_ids else [])
    if not options:
        st.info("请先在总览页搜索并选择基金")
        return
    fund_id = st.sidebar.selectbox("基金", options, index=options.index(default) if default in options else 0)
    st.session_state.fund_id = fund_id

    quote = get_quotes_cached((fund_id,)).get(fund_id)
    if quote is None:
        st.error("行情获取失败，请稍后刷新")
        return

    st.title(f"📈 {quote.name}（{fund_id}）")
    col1, col2, col3 = st.columns(3)
    col1.metric("估算净值", f"{quote.estimated_nav:.4f}", f"{quote.day_growth:.2f}%")
    col2.metric("单位净值", f"{quote.nav:.4f}", quote.nav_date, delta_color="off")
    col3.metric("估值时间", quote.estimated_time or "-")

    strategy = _render_strategy_section(registry, fund_id)
    if strategy is None:
        return

    # 网格指标
    st.subheader("🎯 网格位置")
    col_buy, col_sell = st.columns(2)
    try:
        buy_metrics = calculate_grid_metrics(quote.current_nav, state.records, fund_id, strategy, "buy")
        sell_metrics = calculate_grid_metrics(quote.current_nav, state.records, fund_id, strategy, "sell")
    except FundGridError as e:
        st.error(f"网格指标计算失败：{e}")
        return
    col_buy.metric("距买入线", f"{buy_metrics.estimated_distance.buy:.2f}%",
                   "可买入" if is_buy_signal(buy_metrics) else f"基准 {buy_metrics.base_nav:.4f}",
                   delta_color="off")
    col_sell.metric("距卖出线", f"{sell_metrics.estimated_distance.sell:.2f}%",
                    "可卖出" if is_sell_signal(sell_metrics) else f"基准 {sell_metrics.base_nav:.4f}",
                    delta_color="off")

    col_form_buy, col_form_sell = st.columns(2)
    with col_form_buy:
        _render_buy_form(ledger, strategy, fund_id, quote)
    with col_form_sell:
        _render_sell_form(ledger, fund_id, quote)

    st.subheader("📋 交易记录")
    render_trade_table(ledger, fund_id)

    st.subheader("📉 净值走势")
    end = date.today()
    start = end - timedelta(days=30)
    try:
        history = get_history_cached(fund_id, start.isoformat(), end.isoformat())
        st.plotly_chart(render_nav_chart(history, ledger.records_for(fund_id)), use_container_width=True)
    except MarketDataError as e:
        st.warning(f"⚠️ 历史净值获取失败：{e}")


def _render_strategy_section(registry: StrategyRegistry, fund_id: str):
    active = registry.active_for(fund_id)
    with st.expander("⚙️ 网格策略", expanded=active is None):
        with st.form(f"strategy_form_{fund_id}"):
            buy_width = st.number_input("买入宽度 (%)", 0.1, 50.0,
                                        active.buy_width_percent if active else Config.GRID.buy_width_percent, 0.5)
            sell_width = st.number_input("卖出宽度 (%)", 0.1, 50.0,
                                         active.sell_width_percent if active else Config.GRID.sell_width_percent, 0.5)
            grid_count = st.number_input("网格数量", 1, 100,
                                         active.grid_count if active else Config.GRID.grid_count, 1)
            if st.form_submit_button("保存为新策略", type="primary"):
                try:
                    registry.add(fund_id, buy_width, sell_width, int(grid_count))
                    st.success("策略已生效")
                    st.rerun()
                except FundGridError as e:
                    st.error(f"保存失败：{e}")

        history = registry.history_for(fund_id)
        for s in history:
            created = datetime.fromtimestamp(s.created_at / 1000).strftime("%Y-%m-%d %H:%M")
            col1, col2 = st.columns([4, 1])
            col1.caption(f"{'✅' if s.is_active else '⚪'} {created} · 买入宽度: {s.buy_width_percent:g}% | "
                         f"卖出宽度: {s.sell_width_percent:g}% | 网格数: {s.grid_count}")
            if not s.is_active and col2.button("启用", key=f"activate_{s.id}"):
                registry.activate(s.id)
                st.rerun()
    return registry.active_for(fund_id)


def _render_buy_form(ledger: TradeLedger, strategy, fund_id: str, quote):
    st.markdown("**🟢 买入**")
    with st.form(f"buy_form_{fund_id}", clear_on_submit=True):
        trade_date = st.date_input("买入日期", value=date.today() - timedelta(days=1))
        nav = st.number_input("单位净值", min_value=0.0, value=float(quote.nav), step=0.0001, format="%.4f")
        acc_nav = st.number_input("累计净值", min_value=0.0,
                                  value=float(quote.accumulated_nav or quote.nav), step=0.0001, format="%.4f")
        amount = st.number_input("买入金额", min_value=0.0, value=10000.0, step=100.0)
        if nav > 0:
            st.caption(f"份额 ≈ {amount / nav:.2f} · 预期卖出净值 {expected_close_nav(nav, strategy):.4f}")
        if st.form_submit_button("记录买入"):
            try:
                ledger.open(fund_id, strategy.id, trade_date.isoformat(), nav, acc_nav, amount)
                st.success("买入成功")
                st.rerun()
            except FundGridError as e:
                st.error(f"买入失败：{e}")


def _render_sell_form(ledger: TradeLedger, fund_id: str, quote):
    st.markdown("**🔴 卖出**")
    record = ledger.next_sellable(fund_id)
    if record is None:
        st.info("没有可卖出的持仓")
        return
    st.caption(f"卖出对象：{record.open_date} 买入 · {record.buy_shares:.2f} 份 · 目标 {record.expected_close_nav:.4f}")
    with st.form(f"sell_form_{fund_id}", clear_on_submit=True):
        trade_date = st.date_input("卖出日期", value=date.today() - timedelta(days=1))
        nav = st.number_input("卖出净值", min_value=0.0, value=float(quote.nav), step=0.0001, format="%.4f")
        acc_nav = st.number_input("卖出累计净值", min_value=0.0,
                                  value=float(quote.accumulated_nav or quote.nav), step=0.0001, format="%.4f")
        if st.form_submit_button("记录卖出"):
            if trade_date.isoformat() <= record.open_date:
                st.error("卖出日期必须晚于买入日期")
                return
            try:
                ledger.close(record.id, trade_date.isoformat(), nav, close_accumulated_nav=acc_nav)
                st.success("卖出成功")
                st.rerun()
            except FundGridError as e:
                st.error(f"卖出失败：{e}")


# --- 备份页：导出 / 导入 JSON ---
def _render_backup_page():
    state = st.session_state.state
    st.title("💾 数据备份")

    st.subheader("📤 导出")
    st.download_button(
        label="下载备份 JSON",
        data=dumps_backup(export_data(state)).encode("utf-8"),
        file_name=backup_filename(),
        mime="application/json",
        use_container_width=True,
    )

    st.subheader("📥 导入")
    st.warning("导入会覆盖当前全部策略、交易记录和置顶基金")
    uploaded = st.file_uploader("选择备份文件", type=["json"])
    if uploaded is not None and st.button("确认导入", type="primary"):
        try:
            backup = import_backup(state, uploaded.getvalue())
            st.success(f"导入成功：{len(backup.strategies)} 个策略，{len(backup.records)} 条记录")
        except FundGridError as e:
            logger.warning(f"⚠️  Backup import rejected: {e}")
            st.error(f"导入失败：{e}")


if __name__ == "__main__":
    main()
