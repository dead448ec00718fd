# web/components/trade_table.py
from typing import Dict, List

import streamlit as st

from fundgrid.core.database.models import SOLD, TradeRecord
from fundgrid.core.ledger.trade_ledger import TradeLedger
from fundgrid.utils.helpers import records_to_frame

DISPLAY_COLUMNS = [
    "openDate", "openNAV", "openAccumulatedNAV", "buyAmount", "buyShares",
    "expectedCloseNAV", "actualGridWidth", "status",
    "closeDate", "closeNAV", "closeAmount", "realizedProfit", "realizedProfitRate",
]


def delete_option_labels(records: List[TradeRecord]) -> Dict[str, str]:
    """{记录 id: 显示文字}；同日同额的记录靠 id 区分"""
    return {
        r.id: f"{r.open_date} · {r.buy_amount:.2f} · {'已卖出' if r.status == SOLD else '持仓中'} · {r.id[-6:]}"
        for r in records
    }


def render_trade_table(ledger: TradeLedger, fund_id: str):
    """交易记录表格 + 删除操作"""
    records = ledger.records_for(fund_id)
    if not records:
        st.info("暂无交易记录")
        return

    df = records_to_frame(records)
    st.dataframe(
        df[DISPLAY_COLUMNS],
        use_container_width=True,
        hide_index=True,
        column_config={
            "openDate": st.column_config.TextColumn("买入日期"),
            "openNAV": st.column_config.NumberColumn("买入净值", format="%.4f"),
            "openAccumulatedNAV": st.column_config.NumberColumn("累计净值", format="%.4f"),
            "buyAmount": st.column_config.NumberColumn("买入金额", format="%.2f"),
            "buyShares": st.column_config.NumberColumn("份额", format="%.2f"),
            "expectedCloseNAV": st.column_config.NumberColumn("预期卖出净值", format="%.4f"),
            "actualGridWidth": st.column_config.NumberColumn("实际网格 %", format="%.2f"),
            "status": st.column_config.TextColumn("状态"),
            "closeDate": st.column_config.TextColumn("卖出日期"),
            "closeNAV": st.column_config.NumberColumn("卖出净值", format="%.4f"),
            "closeAmount": st.column_config.NumberColumn("卖出金额", format="%.2f"),
            "realizedProfit": st.column_config.NumberColumn("收益", format="%.2f"),
            "realizedProfitRate": st.column_config.NumberColumn("收益率 %", format="%.2f"),
        },
    )

    csv = df.to_csv(index=False).encode("utf-8")
    st.download_button(
        label="📥 导出交易记录为 CSV",
        data=csv,
        file_name=f"{fund_id}_trade_records.csv",
        mime="text/csv",
        use_container_width=True,
    )

    with st.expander("🗑️ 删除记录"):
        labels = delete_option_labels(records)
        record_id = st.selectbox("选择记录", list(labels), format_func=labels.get, key=f"delete_{fund_id}")
        if st.button("确认删除", key=f"delete_btn_{fund_id}", type="primary"):
            ledger.remove(record_id)
            st.success("记录已删除")
            st.rerun()
