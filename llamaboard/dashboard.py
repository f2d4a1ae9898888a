"""GET / - landing page explaining how to connect this backend."""

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from .config import PUBLIC_URL
from .endpoints import ENDPOINTS
from .manifest import widget_endpoint

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _fmt_ttl(s: int) -> str:
    if s >= 3600 and s % 3600 == 0:
        return f"{s // 3600}h"
    if s >= 60:
        return f"{s // 60}m"
    return f"{s}s"


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def landing(request: Request):
    rows = [
        {
            "name": ep.name,
            "endpoint": widget_endpoint(ep.path),
            "ttl": _fmt_ttl(ep.ttl),
            "kind": "chart" if ep.chart else "table",
        }
        for ep in ENDPOINTS
    ]
    return templates.TemplateResponse(request, "index.html", {
        "public_url": PUBLIC_URL,
        "endpoints": rows,
    })
