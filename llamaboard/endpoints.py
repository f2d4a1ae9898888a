"""Endpoint table: one row per route, driving the generic handler and the widget manifest.

A row either maps every record of a list (``records`` + ``transform``, with an
optional ``search`` over ``search_fields``) or reshapes the whole document
(``transform`` only). A row without ``transform`` passes the upstream
document through unchanged.
"""

from dataclasses import dataclass, field
from operator import itemgetter
from typing import Any, Callable

from . import transforms as t
from .config import (
    BRIDGES_BASE, COINS_BASE, LLAMA_API_BASE, STABLECOINS_BASE,
    TTL_CURRENT, TTL_HISTORICAL, TTL_LIVE, YIELDS_BASE,
)

NOT_FOUND = 404
FAILED = 500


def _whole(doc):
    return doc


@dataclass(frozen=True)
class Endpoint:
    widget_id: str
    path: str
    url: str
    ttl: int
    error_message: str
    error_status: int = FAILED
    transform: Callable[[Any], Any] | None = None
    records: Callable[[Any], list] | None = None
    search_fields: tuple[str, ...] = ()
    name: str = ""
    description: str = ""
    chart: bool = False
    examples: dict[str, str] = field(default_factory=dict)

    @property
    def searchable(self) -> bool:
        return bool(self.search_fields)


PARAM_DOCS = {
    "slug": "Protocol slug (e.g., 'aave', 'uniswap')",
    "chain": "Chain name (e.g., 'Ethereum', 'BSC', 'Polygon')",
    "asset": "Stablecoin id (e.g., '1' for USDT)",
    "pool": "Yield pool id",
    "protocol": "Protocol name (e.g., 'uniswap', 'aave')",
    "id": "Bridge id",
    "coins": "Comma separated chain:address list (e.g., 'coingecko:ethereum')",
    "timestamp": "Unix timestamp in seconds",
    "search": "Case-insensitive text filter",
}

_OPEN_INTEREST = f"{LLAMA_API_BASE}/overview/open-interest"

ENDPOINTS: list[Endpoint] = [
    # Protocols & chains
    Endpoint(
        "protocols_list", "/protocols", f"{LLAMA_API_BASE}/protocols", TTL_CURRENT,
        "Failed to fetch protocols",
        records=_whole, transform=t.protocol_row, search_fields=("name", "symbol", "category"),
        name="Protocols List", description="List all DeFi protocols with their TVL and statistics",
    ),
    Endpoint(
        "protocol_detail", "/protocol/{slug}", f"{LLAMA_API_BASE}/protocol/{{slug}}", TTL_CURRENT,
        "Protocol not found", NOT_FOUND, transform=t.protocol_detail,
        name="Protocol Details", description="Profile and current TVL of a protocol",
        examples={"slug": "aave"},
    ),
    Endpoint(
        "protocol_tvl_table", "/protocol/{slug}/tvl", f"{LLAMA_API_BASE}/protocol/{{slug}}", TTL_HISTORICAL,
        "Protocol not found", NOT_FOUND, transform=t.protocol_tvl,
        name="Protocol TVL Table", description="Daily TVL history of a protocol",
        examples={"slug": "aave"},
    ),
    Endpoint(
        "chains_list", "/chains", f"{LLAMA_API_BASE}/v2/chains", TTL_CURRENT,
        "Failed to fetch chains",
        records=_whole, transform=t.chain_row, search_fields=("name", "tokenSymbol"),
        name="Chains List", description="List all chains with their total TVL",
    ),
    Endpoint(
        "chain_history", "/chain/{chain}", f"{LLAMA_API_BASE}/v2/historicalChainTvl/{{chain}}", TTL_HISTORICAL,
        "Chain not found", NOT_FOUND, transform=t.chain_tvl,
        name="Chain TVL History", description="Historical TVL data for a specific chain",
        examples={"chain": "Ethereum"},
    ),
    Endpoint(
        "chains_chart", "/charts/chains", f"{LLAMA_API_BASE}/v2/chains", TTL_CURRENT,
        "Failed to fetch chains", transform=t.chains_chart,
        name="Chains TVL Chart", description="Bar chart showing TVL by chain", chart=True,
    ),
    Endpoint(
        "protocol_tvl", "/charts/protocol/{slug}", f"{LLAMA_API_BASE}/protocol/{{slug}}", TTL_HISTORICAL,
        "Protocol not found", NOT_FOUND, transform=t.protocol_chart,
        name="Protocol TVL History", description="Historical TVL chart for a specific protocol",
        chart=True, examples={"slug": "aave"},
    ),
    Endpoint(
        "global_tvl_chart", "/charts/global-tvl", f"{LLAMA_API_BASE}/v2/historicalChainTvl", TTL_HISTORICAL,
        "Failed to fetch global TVL", transform=t.global_tvl,
        name="Global DeFi TVL", description="Historical TVL across all chains", chart=True,
    ),
    Endpoint(
        "categories", "/categories", f"{LLAMA_API_BASE}/api/categories", TTL_HISTORICAL,
        "Failed to fetch categories", records=_whole, transform=t.category_row,
        name="Protocol Categories", description="TVL and protocol counts per category",
    ),
    # Stablecoins
    Endpoint(
        "stablecoins_list", "/stablecoins", f"{STABLECOINS_BASE}/stablecoins?includePrices=true", TTL_CURRENT,
        "Failed to fetch stablecoins",
        records=itemgetter("peggedAssets"), transform=t.stablecoin_row, search_fields=("name", "symbol"),
        name="Stablecoins List", description="Stablecoins with circulating supply and supply changes",
    ),
    Endpoint(
        "stablecoin_history", "/stablecoin/{asset}", f"{STABLECOINS_BASE}/stablecoin/{{asset}}", TTL_HISTORICAL,
        "Stablecoin not found", NOT_FOUND, transform=t.stablecoin_history,
        name="Stablecoin History", description="Historical circulating supply of a stablecoin",
        examples={"asset": "1"},
    ),
    Endpoint(
        "stablecoin_chains", "/stablecoins/chains", f"{STABLECOINS_BASE}/stablecoinchains", TTL_CURRENT,
        "Failed to fetch stablecoin chains", records=_whole, transform=t.stablecoin_chain_row,
        name="Stablecoins by Chain", description="Stablecoin market cap per chain",
    ),
    Endpoint(
        "stablecoin_totals", "/stablecoins/charts/all", f"{STABLECOINS_BASE}/stablecoincharts/all", TTL_HISTORICAL,
        "Failed to fetch stablecoin charts", transform=t.stablecoin_totals,
        name="Stablecoin Supply Table", description="Historical stablecoin market cap across all chains",
    ),
    Endpoint(
        "stablecoins_chart", "/charts/stablecoins", f"{STABLECOINS_BASE}/stablecoincharts/all", TTL_HISTORICAL,
        "Failed to fetch stablecoin data", transform=t.stablecoin_chart,
        name="Stablecoins Market Cap", description="Total stablecoin market cap over time", chart=True,
    ),
    # Yields
    Endpoint(
        "yield_pools", "/yields/pools", f"{YIELDS_BASE}/pools", TTL_CURRENT,
        "Failed to fetch yield pools",
        records=itemgetter("data"), transform=t.pool_row, search_fields=("project", "symbol", "chain"),
        name="Yield Pools", description="Yield pools with APY and TVL",
    ),
    Endpoint(
        "yield_pool_chart", "/yields/chart/{pool}", f"{YIELDS_BASE}/chart/{{pool}}", TTL_HISTORICAL,
        "Pool not found", NOT_FOUND, transform=t.pool_chart,
        name="Yield Pool History", description="Historical APY and TVL of a pool",
        examples={"pool": "747c1d2a-c668-4682-b9f9-296708a3dd90"},
    ),
    # DEX volumes
    Endpoint(
        "dexs_list", "/dexs", f"{LLAMA_API_BASE}/overview/dexs", TTL_CURRENT,
        "Failed to fetch DEXs",
        records=itemgetter("protocols"), transform=t.volume_row, search_fields=("name", "displayName"),
        name="DEX Volumes", description="DEXs with trading volume summaries",
    ),
    Endpoint(
        "dexs_by_chain", "/dexs/{chain}", f"{LLAMA_API_BASE}/overview/dexs/{{chain}}", TTL_CURRENT,
        "Failed to fetch DEX data for chain", records=itemgetter("protocols"), transform=t.volume_chain_row,
        name="DEX Volumes by Chain", description="DEX volumes on one chain",
        examples={"chain": "ethereum"},
    ),
    Endpoint(
        "dex_summary", "/dexs/summary/{protocol}", f"{LLAMA_API_BASE}/summary/dexs/{{protocol}}", TTL_HISTORICAL,
        "DEX not found", NOT_FOUND, transform=t.dex_summary,
        name="DEX Summary", description="Volume totals and history of a DEX",
        examples={"protocol": "uniswap"},
    ),
    Endpoint(
        "dex_volume_chart", "/charts/dex/{protocol}", f"{LLAMA_API_BASE}/summary/dexs/{{protocol}}", TTL_HISTORICAL,
        "DEX not found", NOT_FOUND, transform=t.day_value_chart,
        name="DEX Volume Chart", description="Daily volume of a DEX", chart=True,
        examples={"protocol": "uniswap"},
    ),
    # Fees
    Endpoint(
        "fees_list", "/fees", f"{LLAMA_API_BASE}/overview/fees", TTL_CURRENT,
        "Failed to fetch fees data", records=itemgetter("protocols"), transform=t.fee_row,
        name="Fees & Revenue", description="Protocols with fees and revenue",
    ),
    Endpoint(
        "fees_by_chain", "/fees/{chain}", f"{LLAMA_API_BASE}/overview/fees/{{chain}}", TTL_CURRENT,
        "Failed to fetch fees for chain", records=itemgetter("protocols"), transform=t.fee_chain_row,
        name="Fees by Chain", description="Fees and revenue on one chain",
        examples={"chain": "ethereum"},
    ),
    Endpoint(
        "fees_summary", "/fees/summary/{protocol}", f"{LLAMA_API_BASE}/summary/fees/{{protocol}}", TTL_HISTORICAL,
        "Protocol not found", NOT_FOUND, transform=t.fees_summary,
        name="Fees Summary", description="Fee totals and history of a protocol",
        examples={"protocol": "uniswap"},
    ),
    Endpoint(
        "fees_chart", "/charts/fees/{protocol}", f"{LLAMA_API_BASE}/summary/fees/{{protocol}}", TTL_HISTORICAL,
        "Protocol not found", NOT_FOUND, transform=t.day_value_chart,
        name="Fees Chart", description="Daily fees of a protocol", chart=True,
        examples={"protocol": "uniswap"},
    ),
    # Bridges
    Endpoint(
        "bridges_list", "/bridges", f"{BRIDGES_BASE}/bridges?includeChains=true", TTL_CURRENT,
        "Failed to fetch bridges", records=itemgetter("bridges"), transform=t.bridge_row,
        name="Bridges", description="Bridges with volume data",
    ),
    Endpoint(
        "bridge_detail", "/bridge/{id}", f"{BRIDGES_BASE}/bridge/{{id}}", TTL_CURRENT,
        "Bridge not found", NOT_FOUND,
        name="Bridge Details", description="Raw details of a bridge", examples={"id": "1"},
    ),
    # Options
    Endpoint(
        "options_list", "/options", f"{LLAMA_API_BASE}/overview/options", TTL_CURRENT,
        "Failed to fetch options data", records=itemgetter("protocols"), transform=t.volume_row,
        name="Options Volumes", description="Options DEXs with volume summaries",
    ),
    Endpoint(
        "options_by_chain", "/options/{chain}", f"{LLAMA_API_BASE}/overview/options/{{chain}}", TTL_CURRENT,
        "Failed to fetch options for chain", records=itemgetter("protocols"), transform=t.volume_chain_row,
        name="Options by Chain", description="Options volumes on one chain",
        examples={"chain": "ethereum"},
    ),
    Endpoint(
        "options_summary", "/options/summary/{protocol}", f"{LLAMA_API_BASE}/summary/options/{{protocol}}",
        TTL_HISTORICAL, "Protocol not found", NOT_FOUND, transform=t.options_summary,
        name="Options Summary", description="Volume totals and history of an options protocol",
        examples={"protocol": "lyra"},
    ),
    # Open interest
    Endpoint(
        "open_interest", "/open-interest", _OPEN_INTEREST, TTL_CURRENT,
        "Failed to fetch open interest data",
        name="Open Interest Overview", description="Raw open interest overview",
    ),
    Endpoint(
        "open_interest_protocols", "/open-interest/protocols", _OPEN_INTEREST, TTL_CURRENT,
        "Failed to fetch open interest protocols",
        records=itemgetter("protocols"), transform=t.open_interest_row, search_fields=("name", "displayName"),
        name="Open Interest Protocols", description="Protocols ranked by open interest",
    ),
    Endpoint(
        "open_interest_total", "/open-interest/chart/total", _OPEN_INTEREST, TTL_HISTORICAL,
        "Failed to fetch open interest chart data", transform=t.day_value_chart,
        name="Open Interest Chart", description="Total open interest over time", chart=True,
    ),
    Endpoint(
        "open_interest_breakdown", "/open-interest/chart/breakdown", _OPEN_INTEREST, TTL_HISTORICAL,
        "Failed to fetch open interest breakdown", transform=t.normalize_breakdown,
        name="Open Interest Breakdown", description="Open interest per protocol over time", chart=True,
    ),
    Endpoint(
        "open_interest_stats", "/open-interest/stats", _OPEN_INTEREST, TTL_CURRENT,
        "Failed to fetch open interest stats", transform=t.open_interest_stats,
        name="Open Interest Stats", description="Headline open interest metrics",
    ),
    # Prices
    Endpoint(
        "prices_current", "/prices/current/{coins}", f"{COINS_BASE}/prices/current/{{coins}}", TTL_LIVE,
        "Failed to fetch prices",
        name="Current Prices", description="Current token prices",
        examples={"coins": "coingecko:ethereum"},
    ),
    Endpoint(
        "prices_historical", "/prices/historical/{timestamp}/{coins}",
        f"{COINS_BASE}/prices/historical/{{timestamp}}/{{coins}}", TTL_HISTORICAL,
        "Failed to fetch historical prices",
        name="Historical Prices", description="Token prices at a point in time",
        examples={"timestamp": "1648680149", "coins": "coingecko:ethereum"},
    ),
]


def render(ep: Endpoint, doc: Any, search: str | None = None) -> Any:
    """Apply an endpoint's search filter and transform to an upstream document."""
    if ep.records is not None:
        rows = ep.records(doc)
        if ep.searchable:
            rows = t.filter_search(rows, search, ep.search_fields)
        return [ep.transform(r) for r in rows]
    if ep.transform is None:
        return doc
    return ep.transform(doc)
