# tests/test_market_parsers.py
import pytest

from fundgrid.core.errors import MarketDataParseError
from fundgrid.core.market.parsers import (
    jsonp_to_json,
    parse_fund_quote,
    parse_nav_history,
    parse_search_results,
    parse_sina_indices,
)

QUOTE = ('jsonpgz({"fundcode":"161725","name":"招商中证白酒指数(LOF)A","jzrq":"2024-01-02",'
         '"dwjz":"1.0530","gsz":"1.0612","gszzl":"0.78","gztime":"2024-01-03 15:00"});')

SINA = (
    'var hq_str_s_sh000001="上证指数,2962.2755,-5.9577,-0.20,3203640,3329285";\n'
    'var hq_str_s_sz399006="创业板指,1854.3020,12.1100,0.66,1582930,2663040";\n'
)


def test_jsonp_to_json_variants():
    assert jsonp_to_json('jsonpgz({"a": 1});') == {"a": 1}
    assert jsonp_to_json('({"a": 2})') == {"a": 2}
    assert jsonp_to_json('{"a": 3}') == {"a": 3}
    for bad in ("", "jsonpgz();", "no parens", "cb({bad json})"):
        with pytest.raises(MarketDataParseError):
            jsonp_to_json(bad)


def test_parse_fund_quote():
    quote = parse_fund_quote(QUOTE)
    assert quote.code == "161725"
    assert quote.nav == 1.053
    assert quote.estimated_nav == 1.0612
    assert quote.current_nav == 1.0612
    assert quote.accumulated_nav is None
    assert quote.day_growth == 0.78
    assert quote.nav_date == "2024-01-02"


def test_quote_without_estimate_uses_nav():
    quote = parse_fund_quote('jsonpgz({"fundcode":"000001","name":"x","dwjz":"1.5","gsz":""});')
    assert quote.current_nav == 1.5


def test_parse_fund_quote_rejects_missing_nav():
    with pytest.raises(MarketDataParseError):
        parse_fund_quote('jsonpgz({"fundcode":"000001","name":"x","dwjz":"abc"});')
    with pytest.raises(MarketDataParseError):
        parse_fund_quote('jsonpgz({"name":"x"});')


def test_parse_search_results():
    text = ('({"ErrCode":0,"Datas":[{"CODE":"161725","NAME":"招商中证白酒","FundBaseInfo":{"FTYPE":"指数型"}},'
            '{"CODE":"012414","NAME":"招商白酒C","FundType":"指数型-股票"}]})')
    results = parse_search_results(text)
    assert [r.code for r in results] == ["161725", "012414"]
    assert results[0].type == "指数型"
    assert results[1].type == "指数型-股票"
    assert parse_search_results('{"Datas": null}') == []


def test_parse_nav_history():
    payload = {
        "Data": {"LSJZList": [
            {"FSRQ": "2024-01-03", "DWJZ": "1.0600", "LJJZ": "2.1000", "JZZZL": "0.66"},
            {"FSRQ": "2024-01-02", "DWJZ": "1.0530", "LJJZ": "", "JZZZL": ""},
        ]},
        "TotalCount": 240,
    }
    points, total = parse_nav_history(payload)
    assert total == 240
    assert points[0].accumulated_nav == 2.1
    assert points[1].accumulated_nav == 1.053
    assert points[1].day_growth == 0.0
    with pytest.raises(MarketDataParseError):
        parse_nav_history({"Data": None})


def test_parse_sina_indices():
    indices = parse_sina_indices(SINA)
    sh = indices["s_sh000001"]
    assert sh.name == "上证指数"
    assert sh.current == pytest.approx(2962.2755)
    assert sh.change_percent == pytest.approx(-0.20)
    assert indices["s_sz399006"].volume == 1582930
    with pytest.raises(MarketDataParseError):
        parse_sina_indices('var hq_str_s_sh000001="";')
    with pytest.raises(MarketDataParseError):
        parse_sina_indices("")
