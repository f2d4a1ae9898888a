from pydantic import BaseModel


class ErrorBody(BaseModel):
    error: str


class WidgetParam(BaseModel):
    paramName: str
    description: str
    type: str = "text"
    value: str = ""


class Widget(BaseModel):
    name: str
    description: str
    source: str = "DefiLlama"
    endpoint: str
    type: str | None = None
    params: list[WidgetParam] = []


class ChartView(BaseModel):
    enabled: bool = False
    chartType: str = "line"


class LayoutState(BaseModel):
    chartView: ChartView = ChartView()


class LayoutItem(BaseModel):
    i: str
    x: int = 0
    y: int = 0
    w: int = 40
    h: int = 12
    state: LayoutState = LayoutState()


class AppTab(BaseModel):
    id: str
    name: str
    layout: list[LayoutItem] = []


class App(BaseModel):
    name: str
    img: str
    img_dark: str
    img_light: str
    description: str
    allowCustomization: bool = True
    tabs: dict[str, AppTab] = {}
    groups: list[dict] = []
