"""GET /widgets.json and /apps.json - the manifest the dashboard host reads."""

import re

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .config import API_PREFIX
from .endpoints import ENDPOINTS, PARAM_DOCS, Endpoint
from .models import App, AppTab, ChartView, LayoutItem, LayoutState, Widget, WidgetParam

router = APIRouter()

_PATH_PARAM = re.compile(r"\{(\w+)\}")
LOGO = "https://defillama.com/llama.png"


def widget_endpoint(path: str) -> str:
    """``/protocol/{slug}`` -> ``/defillama/protocol/:slug``."""
    return API_PREFIX + _PATH_PARAM.sub(r":\1", path)


def build_widget(ep: Endpoint) -> Widget:
    params = [
        WidgetParam(paramName=p, description=PARAM_DOCS.get(p, p), value=ep.examples.get(p, ""))
        for p in _PATH_PARAM.findall(ep.path)
    ]
    if ep.searchable:
        params.append(WidgetParam(paramName="search", description=PARAM_DOCS["search"]))
    return Widget(
        name=ep.name,
        description=ep.description,
        endpoint=widget_endpoint(ep.path),
        type="chart" if ep.chart else None,
        params=params,
    )


def build_widgets() -> dict[str, dict]:
    return {ep.widget_id: build_widget(ep).model_dump(exclude_none=True) for ep in ENDPOINTS}


def _layout(widget_id: str, y: int, h: int, chart_type: str = "line", chart: bool = False) -> LayoutItem:
    return LayoutItem(
        i=widget_id, y=y, h=h,
        state=LayoutState(chartView=ChartView(enabled=chart, chartType=chart_type)),
    )


def build_apps() -> list[dict]:
    app = App(
        name="DefiLlama",
        img=LOGO,
        img_dark=LOGO,
        img_light=LOGO,
        description=(
            "An OpenBB Workspace app that connects to the DefiLlama API, enabling the "
            "integration of DeFi TVL data and analytics. It defines widgets for visualizing "
            "protocol TVL, chain analytics, and historical DeFi metrics within the OpenBB "
            "Workspace interface."
        ),
        tabs={
            "overview": AppTab(
                id="overview",
                name="Overview",
                layout=[
                    _layout("protocols_list", y=0, h=20),
                    _layout("chains_list", y=20, h=12),
                    _layout("chains_chart", y=32, h=15, chart_type="bar", chart=True),
                ],
            ),
        },
    )
    return [app.model_dump(exclude_none=True)]


@router.get("/widgets.json")
async def widgets():
    return JSONResponse(content=build_widgets())


@router.get("/apps.json")
async def apps():
    return JSONResponse(content=build_apps())
