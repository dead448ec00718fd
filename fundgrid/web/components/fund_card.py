# web/components/fund_card.py
import streamlit as st

from fundgrid.core.portfolio import FundCard
from fundgrid.core.state import AppState


def render_fund_card(card: FundCard, state: AppState) -> bool:
    """渲染单只基金卡片，返回是否点击了“查看详情”"""
    with st.container(border=True):
        col_title, col_star = st.columns([5, 1])
        with col_title:
            st.markdown(f"**{card.name}**  \n`{card.code}`")
            st.caption(f"网格策略：买入{card.buy_width_percent:g}% / 卖出{card.sell_width_percent:g}%")
        with col_star:
            if st.button("★" if card.is_starred else "☆", key=f"star_{card.code}"):
                state.toggle_star(card.code)
                st.rerun()

        col1, col2 = st.columns(2)
        col1.metric("持仓网格", f"{card.current_grids}/{card.max_grids}")
        col2.metric("已实现收益", f"{card.total_profit:.2f}", f"{card.profit_percentage:.2f}%")

        if card.next_grid is not None:
            distance = card.next_grid.estimated_distance
            col3, col4 = st.columns(2)
            col3.metric("距买入", f"{distance.buy:.2f}%")
            col4.metric("距卖出", f"{distance.sell:.2f}%")

        if card.last_operation is not None:
            op = card.last_operation
            label = "买入" if op.type == "buy" else "卖出"
            st.caption(f"最近操作：{label} · {op.date} · {op.nav:.4f}")
        else:
            st.caption("最近操作：-")

        return st.button("查看详情", key=f"open_{card.code}", use_container_width=True)
