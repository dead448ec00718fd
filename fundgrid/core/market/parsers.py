# core/market/parsers.py
"""
行情接口返回内容解析

上游接口返回 JSONP / 新浪 hq_str 文本，字段全是字符串；
这里统一转成 dataclass，解析失败一律抛 MarketDataParseError。
"""
import json
import re
from typing import Any, Dict, List, Optional, Tuple

from fundgrid.core.errors import MarketDataParseError
from fundgrid.core.market.models import FundQuote, FundSearchItem, MarketIndex, NavPoint

_SINA_LINE = re.compile(r'hq_str_(?P<code>\w+)="(?P<body>[^"]*)"')


def jsonp_to_json(text: str) -> Any:
    """去掉 JSONP 包装（jsonpgz(...); / callback(...)），纯 JSON 直接解析"""
    text = (text or "").strip()
    if not text:
        raise MarketDataParseError("empty response")
    if text[0] in "{[":
        body = text
    else:
        start, end = text.find("("), text.rfind(")")
        if start == -1 or end <= start:
            raise MarketDataParseError(f"not a JSONP payload: {text[:60]!r}")
        body = text[start + 1:end].strip()
    if not body:
        raise MarketDataParseError("empty JSONP payload")
    try:
        return json.loads(body)
    except json.JSONDecodeError as e:
        raise MarketDataParseError(f"invalid JSON: {e}") from e


def _to_float(value: Any, name: str, default: Optional[float] = None) -> float:
    if value in (None, "", "--"):
        if default is not None:
            return default
        raise MarketDataParseError(f"missing numeric field {name}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MarketDataParseError(f"field {name} is not numeric: {value!r}") from None


def parse_fund_quote(text: str) -> FundQuote:
    data = jsonp_to_json(text)
    if not isinstance(data, dict) or not data.get("fundcode"):
        raise MarketDataParseError("fund quote payload has no fundcode")
    accumulated = data.get("ljjz")
    return FundQuote(
        code=str(data["fundcode"]),
        name=str(data.get("name", "")),
        nav=_to_float(data.get("dwjz"), "dwjz"),
        accumulated_nav=_to_float(accumulated, "ljjz") if accumulated not in (None, "") else None,
        estimated_nav=_to_float(data.get("gsz"), "gsz", default=0.0),
        estimated_time=str(data.get("gztime", "")),
        nav_date=str(data.get("jzrq", "")),
        day_growth=_to_float(data.get("gszzl"), "gszzl", default=0.0),
    )


def parse_search_results(text: str) -> List[FundSearchItem]:
    data = jsonp_to_json(text)
    if not isinstance(data, dict):
        raise MarketDataParseError("search payload is not an object")
    items = data.get("Datas") or []
    if not isinstance(items, list):
        raise MarketDataParseError("search payload Datas is not a list")
    results = []
    for item in items:
        if not isinstance(item, dict) or not item.get("CODE"):
            raise MarketDataParseError(f"malformed search item: {item!r}")
        results.append(FundSearchItem(
            code=str(item["CODE"]),
            name=str(item.get("NAME", "")),
            type=str(item.get("FundType") or (item.get("FundBaseInfo") or {}).get("FTYPE", "")),
        ))
    return results


def parse_nav_history(payload: Dict[str, Any]) -> Tuple[List[NavPoint], int]:
    """返回 (净值列表, 总条数)"""
    if not isinstance(payload, dict) or not isinstance(payload.get("Data"), dict):
        raise MarketDataParseError("history payload has no Data object")
    data = payload["Data"]
    rows = data.get("LSJZList")
    if not isinstance(rows, list):
        raise MarketDataParseError("history payload has no LSJZList")
    points = []
    for row in rows:
        nav = _to_float(row.get("DWJZ"), "DWJZ")
        points.append(NavPoint(
            date=str(row.get("FSRQ", "")),
            nav=nav,
            accumulated_nav=_to_float(row.get("LJJZ"), "LJJZ", default=nav),
            day_growth=_to_float(row.get("JZZZL"), "JZZZL", default=0.0),
        ))
    total = payload.get("TotalCount", data.get("TotalCount", len(points)))
    return points, int(total or 0)


def parse_sina_indices(text: str) -> Dict[str, MarketIndex]:
    """var hq_str_s_sh000001="上证指数,3000.000,50.000,1.20,1000000,1000000"; → {code: MarketIndex}"""
    result = {}
    for match in _SINA_LINE.finditer(text or ""):
        code, body = match.group("code"), match.group("body")
        fields = body.split(",")
        if len(fields) < 4:
            raise MarketDataParseError(f"index {code} has {len(fields)} fields")
        result[code] = MarketIndex(
            code=code,
            name=fields[0],
            current=_to_float(fields[1], "current"),
            change=_to_float(fields[2], "change"),
            change_percent=_to_float(fields[3], "change_percent"),
            volume=_to_float(fields[4] if len(fields) > 4 else None, "volume", default=0.0),
            amount=_to_float(fields[5] if len(fields) > 5 else None, "amount", default=0.0),
        )
    if not result:
        raise MarketDataParseError("no index quotes in response")
    return result
