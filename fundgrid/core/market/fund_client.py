# core/market/fund_client.py
import time
from typing import Dict, Iterable, List, Optional, Tuple

import requests

from fundgrid.config.settings import Config
from fundgrid.core.errors import MarketDataError, MarketDataParseError
from fundgrid.core.market.models import FundQuote, FundSearchItem, MarketIndex, NavPoint
from fundgrid.core.market.parsers import (
    parse_fund_quote,
    parse_nav_history,
    parse_sina_indices,
    parse_search_results,
)
from fundgrid.utils.logger import get_logger

logger = get_logger(__name__)

EASTMONEY_REFERER = "https://fund.eastmoney.com"
F10_REFERER = "https://fundf10.eastmoney.com/"
SINA_REFERER = "https://finance.sina.com.cn"


class FundDataClient:
    """天天基金 / 新浪行情客户端"""

    def __init__(self, session: Optional[requests.Session] = None, config=None):
        self.config = config or Config.MARKET
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": self.config.user_agent,
            "Accept": "*/*",
        })

    def _get(self, url: str, referer: str, params: Optional[dict] = None,
             encoding: Optional[str] = None) -> requests.Response:
        try:
            resp = self.session.get(
                url,
                params=params,
                headers={"Referer": referer, "Origin": referer.rstrip("/")},
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"⚠️  Request failed {url}: {e}")
            raise MarketDataError(f"请求失败: {url}: {e}") from e
        if encoding:
            resp.encoding = encoding
        return resp

    def search_funds(self, keyword: str) -> List[FundSearchItem]:
        keyword = (keyword or "").strip()
        if not keyword:
            return []
        resp = self._get(self.config.search_url, EASTMONEY_REFERER, params={"m": 1, "key": keyword})
        results = parse_search_results(resp.text)
        logger.debug(f"Search {keyword!r}: {len(results)} funds")
        return results

    def get_fund_quote(self, code: str) -> FundQuote:
        url = self.config.quote_url.format(code=code)
        resp = self._get(url, EASTMONEY_REFERER, params={"rt": int(time.time() * 1000)}, encoding="utf-8")
        quote = parse_fund_quote(resp.text)
        logger.debug(f"Quote {code}: nav={quote.nav} est={quote.estimated_nav} @ {quote.estimated_time}")
        return quote

    def get_fund_quotes(self, codes: Iterable[str]) -> Dict[str, FundQuote]:
        """批量获取；单只失败只记日志，不影响其他基金"""
        quotes = {}
        for code in codes:
            try:
                quotes[code] = self.get_fund_quote(code)
            except MarketDataError as e:
                logger.warning(f"⚠️  Quote for {code} unavailable: {e}")
        return quotes

    def get_fund_history(self, code: str, start_date: str = "", end_date: str = "",
                         page_index: int = 1, page_size: int = 20) -> Tuple[List[NavPoint], int]:
        resp = self._get(
            self.config.history_url,
            F10_REFERER,
            params={
                "fundCode": code,
                "pageIndex": page_index,
                "pageSize": page_size,
                "startDate": start_date,
                "endDate": end_date,
            },
        )
        try:
            payload = resp.json()
        except ValueError as e:
            raise MarketDataParseError(f"history for {code} is not JSON: {e}") from e
        points, total = parse_nav_history(payload)
        logger.debug(f"History {code}: {len(points)}/{total} points")
        return points, total

    def get_nav_on(self, code: str, date: str) -> NavPoint:
        """某一交易日的净值（买入 / 卖出表单自动填充）"""
        points, _ = self.get_fund_history(code, start_date=date, end_date=date, page_size=1)
        if not points:
            raise MarketDataError(f"未找到 {code} 在 {date} 的净值数据")
        return points[0]

    def get_market_indices(self, codes: Optional[Dict[str, str]] = None) -> Dict[str, MarketIndex]:
        """返回 {别名: MarketIndex}，别名取自 Config.MARKET.indices"""
        codes = codes or self.config.indices
        url = self.config.index_url.format(codes=",".join(codes.values()))
        resp = self._get(url, SINA_REFERER, encoding="gbk")
        by_code = parse_sina_indices(resp.text)
        missing = [code for code in codes.values() if code not in by_code]
        if missing:
            raise MarketDataParseError(f"indices missing from response: {missing}")
        return {alias: by_code[code] for alias, code in codes.items()}


# 全局单例（复用 HTTP 连接）
_fund_client = None


def get_fund_client() -> FundDataClient:
    global _fund_client
    if _fund_client is None:
        _fund_client = FundDataClient()
    return _fund_client
