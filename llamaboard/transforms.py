"""Reshape DefiLlama documents into flat, widget-friendly records.

Every function here is pure: upstream JSON in, normalized JSON out. Optional
fields are defaulted one by one (numbers to 0, strings to "", lists to [],
mappings to {}), so a record missing a field still emits the rest.
"""

from datetime import datetime, timezone
from typing import Any, Iterable

INVALID_DATE = "Invalid date"
TOP_CHAINS = 20


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def filter_search(records: Iterable[dict], search: str | None, fields: Iterable[str]) -> list[dict]:
    """Keep records where any of ``fields`` contains ``search``, ignoring case.

    An empty or missing ``search`` keeps everything.
    """
    records = list(records)
    if not search:
        return records
    needle = search.lower()
    fields = tuple(fields)
    return [
        r for r in records
        if any(isinstance(r.get(f), str) and needle in r[f].lower() for f in fields)
    ]


def pct_change(current, previous) -> float:
    """Percent change from ``previous`` to ``current``; 0 without a usable previous."""
    if not previous:
        return 0
    return ((current or 0) - previous) / previous * 100


def _utc(ts) -> datetime | None:
    try:
        return datetime.fromtimestamp(float(ts), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def _iso(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def day(ts) -> str:
    """Unix seconds (number or numeric string) -> ``YYYY-MM-DD`` in UTC."""
    dt = _utc(ts)
    return dt.strftime("%Y-%m-%d") if dt else INVALID_DATE


def iso_timestamp(ts) -> str:
    """Unix seconds -> ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    dt = _utc(ts)
    return _iso(dt) if dt else INVALID_DATE


def iso_from_string(value) -> str:
    """Normalize an upstream ISO string (or epoch milliseconds) to UTC ISO form."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return iso_timestamp(value / 1000)
    try:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return INVALID_DATE
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return _iso(dt.astimezone(timezone.utc))


def _unix(ts) -> int | None:
    try:
        return int(float(ts))
    except (TypeError, ValueError, OverflowError):
        return None


def _usd(obj) -> float:
    """``obj.peggedUSD`` or 0."""
    return (obj or {}).get("peggedUSD") or 0


def _joined(values) -> str:
    return ", ".join(values or [])


def pair_series(points, value_key: str = "value", fmt=day) -> list[dict]:
    """``[[unixSeconds, value], ...]`` -> ``[{"date": ..., value_key: value}, ...]``."""
    return [{"date": fmt(p[0]), value_key: p[1]} for p in points or []]


def day_value_chart(data: dict) -> list[dict]:
    return pair_series(data.get("totalDataChart"))


# ---------------------------------------------------------------------------
# Protocols & chains
# ---------------------------------------------------------------------------

def protocol_row(p: dict) -> dict:
    return {
        "id": p.get("id"),
        "name": p.get("name"),
        "symbol": p.get("symbol") or "",
        "category": p.get("category"),
        "chains": _joined(p.get("chains")),
        "tvl": p.get("tvl") or 0,
        "change_1d": p.get("change_1d") or 0,
        "change_7d": p.get("change_7d") or 0,
        "change_1m": p.get("change_1m") or 0,
        "mcap": p.get("mcap") or 0,
        "slug": p.get("slug"),
    }


def protocol_detail(p: dict) -> dict:
    return {
        "id": p.get("id"),
        "name": p.get("name"),
        "symbol": p.get("symbol") or "",
        "category": p.get("category"),
        "chains": p.get("chains") or [],
        "description": p.get("description") or "",
        "logo": p.get("logo") or "",
        "url": p.get("url") or "",
        "twitter": p.get("twitter") or "",
        "tvl": p.get("tvl") or [],
        "chainTvls": p.get("chainTvls") or {},
        "mcap": p.get("mcap") or 0,
        "slug": p.get("slug"),
    }


def protocol_tvl(p: dict) -> list[dict]:
    return [
        {"date": day(point.get("date")), "totalLiquidityUSD": point.get("totalLiquidityUSD")}
        for point in p.get("tvl") or []
    ]


def protocol_chart(p: dict) -> list[dict]:
    return [
        {"date": day(point.get("date")), "value": point.get("totalLiquidityUSD")}
        for point in p.get("tvl") or []
    ]


def chain_row(c: dict) -> dict:
    return {
        "name": c.get("name"),
        "tvl": c.get("tvl") or 0,
        "tokenSymbol": c.get("tokenSymbol") or "",
        "chainId": c.get("chainId") or "",
    }


def chain_tvl(points: list) -> list[dict]:
    return [{"date": day(point.get("date")), "tvl": point.get("tvl")} for point in points]


def chains_chart(chains: list) -> list[dict]:
    """Top chains by TVL, largest first."""
    ranked = sorted(chains, key=lambda c: c.get("tvl") or 0, reverse=True)[:TOP_CHAINS]
    return [
        {
            "name": c.get("name"),
            "value": c.get("tvl") or 0,
            "tokenSymbol": c.get("tokenSymbol") or "",
            "chainId": c.get("chainId") or "",
        }
        for c in ranked
    ]


def global_tvl(points: list) -> list[dict]:
    return [{"date": day(point.get("date")), "value": point.get("tvl")} for point in points]


def category_row(c: dict) -> dict:
    return {
        "name": c.get("name"),
        "tvl": c.get("tvl") or 0,
        "change_1d": c.get("change_1d") or 0,
        "change_7d": c.get("change_7d") or 0,
        "mcapTvl": c.get("mcapTvl") or 0,
        "protocols": c.get("protocols") or 0,
        "description": c.get("description") or "",
    }


# ---------------------------------------------------------------------------
# Stablecoins
# ---------------------------------------------------------------------------

def stablecoin_row(s: dict) -> dict:
    circulating = _usd(s.get("circulating"))
    return {
        "id": s.get("id"),
        "name": s.get("name"),
        "symbol": s.get("symbol"),
        "circulating": circulating,
        "price": s.get("price") or 1,
        "chains": _joined(s.get("chainCirculating") or {}),
        "change_1d": pct_change(circulating, _usd(s.get("circulatingPrevDay"))),
        "change_7d": pct_change(circulating, _usd(s.get("circulatingPrevWeek"))),
        "change_1m": pct_change(circulating, _usd(s.get("circulatingPrevMonth"))),
    }


def stablecoin_history(data: dict) -> list[dict]:
    rows = []
    for point in data.get("chainBalances") or []:
        row = {
            "date": day(point.get("date")),
            "totalCirculating": _usd(point.get("totalCirculating")),
        }
        tokens = point.get("tokens")
        if isinstance(tokens, dict):
            row.update(tokens)
        rows.append(row)
    return rows


def stablecoin_chain_row(c: dict) -> dict:
    return {
        "gecko_id": c.get("gecko_id"),
        "totalCirculatingUSD": _usd(c.get("totalCirculatingUSD")),
        "name": c.get("name"),
    }


def stablecoin_totals(points: list) -> list[dict]:
    return [
        {
            "date": day(point.get("date")),
            "timestamp": _unix(point.get("date")),
            "totalCirculatingUSD": _usd(point.get("totalCirculatingUSD")),
        }
        for point in points
    ]


def stablecoin_chart(points: list) -> list[dict]:
    return [
        {"date": day(point.get("date")), "value": _usd(point.get("totalCirculatingUSD"))}
        for point in points
    ]


# ---------------------------------------------------------------------------
# Yields
# ---------------------------------------------------------------------------

def pool_row(p: dict) -> dict:
    return {
        "pool": p.get("pool"),
        "chain": p.get("chain"),
        "project": p.get("project"),
        "symbol": p.get("symbol"),
        "tvlUsd": p.get("tvlUsd") or 0,
        "apy": p.get("apy") or 0,
        "apyBase": p.get("apyBase") or 0,
        "apyReward": p.get("apyReward") or 0,
        "apyPct1D": p.get("apyPct1D") or 0,
        "apyPct7D": p.get("apyPct7D") or 0,
        "apyPct30D": p.get("apyPct30D") or 0,
        "stablecoin": p.get("stablecoin") or False,
        "ilRisk": p.get("ilRisk") or "no",
        "exposure": p.get("exposure") or "",
        "predictions": p.get("predictions") or {},
    }


def pool_chart(data: dict) -> dict:
    return {
        "status": data.get("status"),
        "data": [
            {
                "date": iso_from_string(point.get("timestamp")),
                "tvlUsd": point.get("tvlUsd") or 0,
                "apy": point.get("apy") or 0,
                "apyBase": point.get("apyBase") or 0,
                "apyReward": point.get("apyReward") or 0,
            }
            for point in data["data"]
        ],
    }


# ---------------------------------------------------------------------------
# Volume overviews: DEXs, options, fees, open interest
# ---------------------------------------------------------------------------

def volume_row(p: dict) -> dict:
    return {
        "defillamaId": p.get("defillamaId"),
        "name": p.get("name"),
        "displayName": p.get("displayName"),
        "module": p.get("module"),
        "category": p.get("category"),
        "logo": p.get("logo"),
        "chains": p.get("chains") or [],
        "total24h": p.get("total24h") or 0,
        "total7d": p.get("total7d") or 0,
        "total30d": p.get("total30d") or 0,
        "totalAllTime": p.get("totalAllTime") or 0,
        "change_1d": p.get("change_1d") or 0,
        "change_7d": p.get("change_7d") or 0,
        "change_1m": p.get("change_1m") or 0,
    }


def volume_chain_row(p: dict) -> dict:
    return {
        "defillamaId": p.get("defillamaId"),
        "name": p.get("name"),
        "displayName": p.get("displayName"),
        "total24h": p.get("total24h") or 0,
        "total7d": p.get("total7d") or 0,
        "change_1d": p.get("change_1d") or 0,
        "change_7d": p.get("change_7d") or 0,
    }


def _summary(data: dict, value_key: str) -> dict:
    return {
        "name": data.get("name"),
        "displayName": data.get("displayName"),
        "total24h": data.get("total24h"),
        "total7d": data.get("total7d"),
        "total30d": data.get("total30d"),
        "totalAllTime": data.get("totalAllTime"),
        "totalDataChart": pair_series(data.get("totalDataChart"), value_key, fmt=iso_timestamp),
    }


def dex_summary(data: dict) -> dict:
    summary = _summary(data, "volume")
    summary["totalDataChartBreakdown"] = data.get("totalDataChartBreakdown") or []
    return summary


def fees_summary(data: dict) -> dict:
    summary = _summary(data, "fees")
    summary["totalDataChartBreakdown"] = data.get("totalDataChartBreakdown") or []
    return summary


def options_summary(data: dict) -> dict:
    return _summary(data, "volume")


def fee_row(p: dict) -> dict:
    revenue = (p.get("methodology") or {}).get("Revenue")
    return {
        "displayName": p.get("displayName"),
        "category": p.get("category"),
        "definition": revenue if revenue is not None else "",
        "chains": p.get("chains") or [],
        "revenue24h": p.get("total24h") or 0,
        "revenue7d": p.get("total7d") or 0,
        "revenue30d": p.get("total30d") or 0,
        "revenueAllTime": p.get("totalAllTime") or 0,
        "monthlyAverage": p.get("monthlyAverage1y") or 0,
        "change_1d": p.get("change_1d") or 0,
        "change_7d": p.get("change_7d") or 0,
        "change_1m": p.get("change_1m") or 0,
    }


def fee_chain_row(p: dict) -> dict:
    return {
        "defillamaId": p.get("defillamaId"),
        "name": p.get("name"),
        "displayName": p.get("displayName"),
        "total24h": p.get("total24h") or 0,
        "total7d": p.get("total7d") or 0,
        "revenue24h": p.get("revenue24h") or 0,
        "revenue7d": p.get("revenue7d") or 0,
        "change_1d": p.get("change_1d") or 0,
        "change_7d": p.get("change_7d") or 0,
    }


def bridge_row(b: dict) -> dict:
    return {
        "displayName": b.get("displayName"),
        "volumePrevDay": b.get("volumePrevDay") or 0,
        "volumePrev2Day": b.get("volumePrev2Day") or 0,
        "weeklyVolume": b.get("weeklyVolume") or 0,
        "monthlyVolume": b.get("monthlyVolume") or 0,
        "chains": b.get("chains") or [],
        "destinationChain": b.get("destinationChain") or "",
    }


def open_interest_row(p: dict) -> dict:
    return {
        "name": p.get("name"),
        "displayName": p.get("displayName"),
        "total24h": p.get("total24h") or 0,
        "total7d": p.get("total7d") or 0,
        "change_1d": p.get("change_1d") or 0,
        "change_7d": p.get("change_7d") or 0,
        "chains": _joined(p.get("chains")),
    }


def normalize_breakdown(data: dict) -> list[dict]:
    """Give every breakdown point the same protocol columns.

    Protocol names are collected across all points first, then each point is
    re-emitted with every name present, missing ones set to 0.
    """
    points = data.get("totalDataChartBreakdown") or []
    names: dict[str, None] = {}
    for point in points:
        names.update(dict.fromkeys(point[1] or {}))

    rows = []
    for point in points:
        row: dict[str, Any] = {"date": day(point[0])}
        row.update(dict.fromkeys(names, 0))
        row.update(point[1] or {})
        rows.append(row)
    return rows


def _value_back(chart: list, n: int):
    """Value of the n-th point from the end, or 0."""
    if len(chart) < n:
        return 0
    return chart[-n][1] or 0


def open_interest_stats(data: dict) -> list[dict]:
    chart = data.get("totalDataChart") or []
    latest = _value_back(chart, 1)
    previous = _value_back(chart, 2)
    # a week back needs the latest point plus eight more
    week_ago = _value_back(chart, 8) if len(chart) > 8 else 0
    return [
        {"metric": "Total Open Interest", "value": latest},
        {"metric": "24h Change", "value": pct_change(latest, previous)},
        {"metric": "7d Change", "value": pct_change(latest, week_ago)},
        {"metric": "Total Protocols", "value": len(data.get("protocols") or [])},
        {"metric": "Total Chains", "value": len(data.get("allChains") or [])},
    ]
