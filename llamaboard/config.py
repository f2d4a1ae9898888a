import os

API_PREFIX = os.environ.get("LLAMA_API_PREFIX", "/defillama")
LLAMA_API_BASE = os.environ.get("LLAMA_API_BASE", "https://api.llama.fi")
STABLECOINS_BASE = os.environ.get("LLAMA_STABLECOINS_BASE", "https://stablecoins.llama.fi")
YIELDS_BASE = os.environ.get("LLAMA_YIELDS_BASE", "https://yields.llama.fi")
BRIDGES_BASE = os.environ.get("LLAMA_BRIDGES_BASE", "https://bridges.llama.fi")
COINS_BASE = os.environ.get("LLAMA_COINS_BASE", "https://coins.llama.fi")
HTTP_TIMEOUT_S = float(os.environ.get("LLAMA_HTTP_TIMEOUT", "30"))
PUBLIC_URL = os.environ.get("LLAMA_PUBLIC_URL", "https://openbb-defillama.YOUR-DOMAIN.workers.dev")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    o.strip() for o in os.environ.get(
        "LLAMA_CORS_ORIGINS",
        "https://pro.openbb.co,https://excel.openbb.co,http://localhost:1420,https://pro.openbb.dev",
    ).split(",") if o.strip()
]
USER_AGENT = "llamaboard/1.0"
CACHE_MAX_ENTRIES = int(os.environ.get("LLAMA_CACHE_MAX_ENTRIES", "1024"))

# Cache lifetimes in seconds, by data volatility
TTL_LIVE = 300          # current prices
TTL_CURRENT = 1800      # current-state listings
TTL_HISTORICAL = 3600   # time series, reference data, historical prices
