"""FastAPI app entry point."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .cache import Fetcher, MemoryCacheStore
from .config import CORS_ORIGINS, HTTP_TIMEOUT_S, LOG_LEVEL, USER_AGENT

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def upstream_client(**kwargs) -> httpx.AsyncClient:
    """Client for origin calls. Redirects are followed."""
    return httpx.AsyncClient(
        timeout=HTTP_TIMEOUT_S,
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        **kwargs,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: one shared client and cache for all handlers
    client = upstream_client()
    app.state.fetcher = Fetcher(client, MemoryCacheStore())
    logger.info("Upstream client ready (timeout=%ss)", HTTP_TIMEOUT_S)
    yield
    # Shutdown
    await app.state.fetcher.drain()
    await client.aclose()


app = FastAPI(title="Llamaboard", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_headers=["Content-Type", "Authorization"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
)

from .api import router as api_router
from .dashboard import router as dashboard_router
from .manifest import router as manifest_router

app.include_router(api_router)
app.include_router(manifest_router)
app.include_router(dashboard_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
