"""Unit tests for the pure reshaping helpers."""

import math

import pytest

from llamaboard import transforms as t

UNISWAP = {
    "id": "1", "name": "Uniswap", "symbol": "UNI", "category": "Dexes",
    "chains": ["Ethereum"], "tvl": 1000, "change_1d": 1, "change_7d": 2,
    "change_1m": 3, "slug": "uniswap",
}
AAVE = {
    "id": "2", "name": "Aave", "symbol": "AAVE", "category": "Lending",
    "chains": ["Ethereum", "Polygon"], "tvl": 2000, "slug": "aave",
}


def test_search_is_case_insensitive_substring():
    rows = t.filter_search([UNISWAP, AAVE], "uNi", ("name", "symbol", "category"))
    assert rows == [UNISWAP]


def test_search_matches_any_field():
    rows = t.filter_search([UNISWAP, AAVE], "lend", ("name", "symbol", "category"))
    assert rows == [AAVE]

@pytest.mark.parametrize("search", [None, ""])
def test_empty_search_keeps_everything(search):
    assert t.filter_search([UNISWAP, AAVE], search, ("name",)) == [UNISWAP, AAVE]


def test_search_without_matches_is_empty():
    assert t.filter_search([UNISWAP, AAVE], "zzz", ("name", "symbol")) == []


def test_search_skips_missing_fields():
    rows = t.filter_search([{"name": "Foo", "symbol": None}, {"name": "Bar"}], "foo", ("symbol", "name"))
    assert rows == [{"name": "Foo", "symbol": None}]


def test_pct_change():
    assert t.pct_change(110, 100) == pytest.approx(10)
    assert t.pct_change(90, 100) == pytest.approx(-10)

@pytest.mark.parametrize("previous", [0, None])
def test_pct_change_without_previous_is_zero(previous):
    value = t.pct_change(110, previous)
    assert value == 0
    assert math.isfinite(value)


def test_day_formats_unix_seconds():
    assert t.day(1704067200) == "2024-01-01"
    assert t.day("1704067200") == "2024-01-01"


def test_iso_timestamp_matches_javascript_format():
    assert t.iso_timestamp(1704067200) == "2024-01-01T00:00:00.000Z"


def test_iso_from_string_normalizes_offsets():
    assert t.iso_from_string("2022-02-11T23:01:09.123Z") == "2022-02-11T23:01:09.123Z"
    assert t.iso_from_string("2022-02-12T01:00:00+02:00") == "2022-02-11T23:00:00.000Z"


def test_bad_dates():
    assert t.day(None) == t.INVALID_DATE
    assert t.day("yesterday") == t.INVALID_DATE
    assert t.iso_from_string(None) == t.INVALID_DATE


def test_protocol_row_joins_chains_and_defaults():
    row = t.protocol_row(AAVE)
    assert row["chains"] == "Ethereum, Polygon"
    assert row["change_1d"] == 0
    assert row["mcap"] == 0
    assert row["tvl"] == 2000


def test_protocol_detail_defaults_each_field():
    row = t.protocol_detail({"id": "9", "name": "X", "chains": ["Base"], "slug": "x"})
    assert row["description"] == ""
    assert row["logo"] == ""
    assert row["chainTvls"] == {}
    assert row["mcap"] == 0
    assert row["chains"] == ["Base"]
    assert row["name"] == "X"


def test_chain_row_defaults_chain_id():
    assert t.chain_row({"name": "Solana", "tvl": 5, "chainId": None}) == {
        "name": "Solana", "tvl": 5, "tokenSymbol": "", "chainId": "",
    }


def test_chains_chart_keeps_top_20_by_tvl():
    chains = [{"name": f"c{i}", "tvl": i} for i in range(30)]
    chart = t.chains_chart(chains)
    assert len(chart) == 20
    assert chart[0] == {"name": "c29", "value": 29, "tokenSymbol": "", "chainId": ""}
    assert chart[-1]["name"] == "c10"


def test_stablecoin_row_changes():
    row = t.stablecoin_row({
        "id": "1", "name": "Tether", "symbol": "USDT",
        "circulating": {"peggedUSD": 110},
        "circulatingPrevDay": {"peggedUSD": 100},
        "circulatingPrevWeek": {"peggedUSD": 0},
        "chainCirculating": {"Ethereum": {}, "Tron": {}},
    })
    assert row["change_1d"] == pytest.approx(10)
    assert row["change_7d"] == 0
    assert row["change_1m"] == 0
    assert row["chains"] == "Ethereum, Tron"
    assert row["price"] == 1


def test_stablecoin_history_spreads_tokens():
    rows = t.stablecoin_history({"chainBalances": [
        {"date": 1704067200, "totalCirculating": {"peggedUSD": 5}, "tokens": {"Ethereum": 3}},
        {"date": 1704153600},
    ]})
    assert rows == [
        {"date": "2024-01-01", "totalCirculating": 5, "Ethereum": 3},
        {"date": "2024-01-02", "totalCirculating": 0},
    ]


def test_stablecoin_totals_keep_raw_timestamp():
    rows = t.stablecoin_totals([{"date": "1704067200", "totalCirculatingUSD": {"peggedUSD": 7}}])
    assert rows == [{"date": "2024-01-01", "timestamp": 1704067200, "totalCirculatingUSD": 7}]


def test_pool_row_defaults():
    row = t.pool_row({"pool": "p1", "chain": "Ethereum", "project": "aave-v3", "symbol": "USDC"})
    assert row["apy"] == 0
    assert row["stablecoin"] is False
    assert row["ilRisk"] == "no"
    assert row["exposure"] == ""
    assert row["predictions"] == {}


def test_pool_chart_uses_iso_dates():
    chart = t.pool_chart({"status": "success", "data": [
        {"timestamp": "2024-01-01T00:00:00.000Z", "tvlUsd": 10, "apy": 4.2},
    ]})
    assert chart == {"status": "success", "data": [
        {"date": "2024-01-01T00:00:00.000Z", "tvlUsd": 10, "apy": 4.2, "apyBase": 0, "apyReward": 0},
    ]}


def test_pool_chart_requires_data():
    with pytest.raises(KeyError):
        t.pool_chart({"status": "error"})


def test_dex_summary_series():
    summary = t.dex_summary({
        "name": "uniswap", "displayName": "Uniswap", "total24h": 5,
        "totalDataChart": [[1704067200, 100], [1704153600, 200]],
    })
    assert summary["totalDataChart"] == [
        {"date": "2024-01-01T00:00:00.000Z", "volume": 100},
        {"date": "2024-01-02T00:00:00.000Z", "volume": 200},
    ]
    assert summary["totalDataChartBreakdown"] == []


def test_fees_summary_names_values_fees():
    summary = t.fees_summary({"totalDataChart": [[1704067200, 3]]})
    assert summary["totalDataChart"] == [{"date": "2024-01-01T00:00:00.000Z", "fees": 3}]


def test_options_summary_has_no_breakdown():
    assert "totalDataChartBreakdown" not in t.options_summary({"totalDataChart": []})


def test_fee_row_definition():
    assert t.fee_row({"methodology": {"Revenue": "Swap fees"}})["definition"] == "Swap fees"
    assert t.fee_row({})["definition"] == ""


def test_open_interest_row_joins_chains():
    row = t.open_interest_row({"name": "dydx", "chains": ["Ethereum", "dYdX"]})
    assert row["chains"] == "Ethereum, dYdX"
    assert t.open_interest_row({"name": "x"})["chains"] == ""


def test_chain_tvl_and_global_tvl_use_day_dates():
    points = [{"date": 1704067200, "tvl": 9}]
    assert t.chain_tvl(points) == [{"date": "2024-01-01", "tvl": 9}]
    assert t.global_tvl(points) == [{"date": "2024-01-01", "value": 9}]


def test_day_value_chart():
    assert t.day_value_chart({"totalDataChart": [[1704067200, 4]]}) == [{"date": "2024-01-01", "value": 4}]
    assert t.day_value_chart({}) == []


def test_category_row_defaults():
    assert t.category_row({"name": "Lending"}) == {
        "name": "Lending", "tvl": 0, "change_1d": 0, "change_7d": 0, "mcapTvl": 0,
        "protocols": 0, "description": "",
    }


def test_stablecoin_chain_row_reads_pegged_usd():
    row = t.stablecoin_chain_row({"gecko_id": "tron", "name": "Tron", "totalCirculatingUSD": {"peggedUSD": 3}})
    assert row == {"gecko_id": "tron", "totalCirculatingUSD": 3, "name": "Tron"}
    assert t.stablecoin_chain_row({"name": "X"})["totalCirculatingUSD"] == 0


def test_stablecoin_chart_values():
    chart = t.stablecoin_chart([{"date": 1704067200, "totalCirculatingUSD": {"peggedUSD": 7}}, {"date": None}])
    assert chart == [{"date": "2024-01-01", "value": 7}, {"date": t.INVALID_DATE, "value": 0}]


def test_volume_row_defaults():
    row = t.volume_row({"name": "uniswap"})
    assert set(row) == {
        "defillamaId", "name", "displayName", "module", "category", "logo", "chains",
        "total24h", "total7d", "total30d", "totalAllTime", "change_1d", "change_7d", "change_1m",
    }
    assert row["chains"] == []
    assert row["totalAllTime"] == 0


def test_chain_rows_for_volumes_and_fees():
    volume = t.volume_chain_row({"name": "uniswap", "total24h": 5})
    assert volume == {
        "defillamaId": None, "name": "uniswap", "displayName": None,
        "total24h": 5, "total7d": 0, "change_1d": 0, "change_7d": 0,
    }
    fees = t.fee_chain_row({"name": "uniswap", "revenue24h": 2})
    assert fees["revenue24h"] == 2
    assert fees["revenue7d"] == 0
    assert set(fees) == set(volume) | {"revenue24h", "revenue7d"}


def test_bridge_row_defaults():
    assert t.bridge_row({"displayName": "Hop"}) == {
        "displayName": "Hop", "volumePrevDay": 0, "volumePrev2Day": 0, "weeklyVolume": 0,
        "monthlyVolume": 0, "chains": [], "destinationChain": "",
    }


def test_breakdown_fills_missing_protocols():
    rows = t.normalize_breakdown({"totalDataChartBreakdown": [
        [1704067200, {"X": 1}],
        [1704153600, {"Y": 2}],
    ]})
    assert rows == [
        {"date": "2024-01-01", "X": 1, "Y": 0},
        {"date": "2024-01-02", "X": 0, "Y": 2},
    ]


def test_breakdown_null_point_is_all_zero():
    rows = t.normalize_breakdown({"totalDataChartBreakdown": [
        [1704067200, None],
        [1704153600, {"X": 4}],
    ]})
    assert rows[0] == {"date": "2024-01-01", "X": 0}


def test_breakdown_empty():
    assert t.normalize_breakdown({}) == []
    assert t.normalize_breakdown({"totalDataChartBreakdown": []}) == []


def _stats(chart, **extra):
    rows = t.open_interest_stats({"totalDataChart": chart, **extra})
    return {r["metric"]: r["value"] for r in rows}


def test_stats_change_windows():
    chart = [[i, 100 + i] for i in range(10)]
    stats = _stats(chart, protocols=[{}, {}, {}], allChains=["a", "b"])
    assert stats["Total Open Interest"] == 109
    assert stats["24h Change"] == pytest.approx((109 - 108) / 108 * 100)
    assert stats["7d Change"] == pytest.approx((109 - 102) / 102 * 100)
    assert stats["Total Protocols"] == 3
    assert stats["Total Chains"] == 2


def test_stats_short_series_has_no_week_change():
    chart = [[i, 100 + i] for i in range(8)]
    stats = _stats(chart)
    assert stats["7d Change"] == 0
    assert stats["24h Change"] != 0


def test_stats_table_shape():
    rows = t.open_interest_stats({})
    assert [r["metric"] for r in rows] == [
        "Total Open Interest", "24h Change", "7d Change", "Total Protocols", "Total Chains",
    ]
    assert all(r["value"] == 0 for r in rows)
