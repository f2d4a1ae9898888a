"""GET /defillama/* - one route per endpoint table row, served by a generic handler."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from .cache import Fetcher, UpstreamError
from .config import API_PREFIX
from .endpoints import ENDPOINTS, Endpoint, render
from .models import ErrorBody

logger = logging.getLogger(__name__)

router = APIRouter(prefix=API_PREFIX)

# Raised by transforms when the upstream document is not shaped as expected
_MALFORMED = (LookupError, TypeError, ValueError, AttributeError)


def get_fetcher(request: Request) -> Fetcher:
    return request.app.state.fetcher


def _error(ep: Endpoint) -> JSONResponse:
    body = ErrorBody(error=ep.error_message)
    return JSONResponse(content=body.model_dump(), status_code=ep.error_status)


async def serve(ep: Endpoint, request: Request, fetcher: Fetcher, search: str | None = None):
    url = ep.url.format(**request.path_params)
    try:
        doc = await fetcher.fetch_with_cache(url, ep.ttl)
    except UpstreamError as e:
        logger.warning("%s: upstream failed (status=%s): %s", ep.path, e.status, e.reason)
        return _error(ep)

    try:
        data = render(ep, doc, search)
    except _MALFORMED:
        logger.exception("%s: unexpected upstream document from %s", ep.path, url)
        return _error(ep)
    return JSONResponse(content=data)


def _make_handler(ep: Endpoint):
    if ep.searchable:
        async def handler(request: Request, search: str | None = None,
                          fetcher: Fetcher = Depends(get_fetcher)):
            return await serve(ep, request, fetcher, search)
    else:
        async def handler(request: Request, fetcher: Fetcher = Depends(get_fetcher)):
            return await serve(ep, request, fetcher)
    handler.__name__ = ep.widget_id
    return handler


for _ep in ENDPOINTS:
    router.add_api_route(
        _ep.path,
        _make_handler(_ep),
        methods=["GET"],
        name=_ep.widget_id,
        summary=_ep.name,
        description=_ep.description,
        responses={_ep.error_status: {"model": ErrorBody}},
    )
