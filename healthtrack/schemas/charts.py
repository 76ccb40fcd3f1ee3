from typing import Any
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChartPoint(_Camel):
    x: str          # ISO-8601 timestamp
    y: float


class ChartDataset(_Camel):
    bucket: str
    label: str
    border_color: str
    background_color: str
    data: list[ChartPoint] = []
    tension: float = 0.1
    show_line: bool = False


class TimeWindow(_Camel):
    min: str
    max: str


class Chart(_Camel):
    key: str
    title: str
    y_title: str
    y_min: float = 0
    y_max: float = 200
    window: TimeWindow
    labels: list[str] = []
    datasets: list[ChartDataset] = Field(default_factory=list)

    def to_chartjs(self) -> dict[str, Any]:
        """Chart.js line-chart config (time x-axis, fixed y range)."""
        return {
            "type": "line",
            "data": {
                "labels": list(self.labels),
                "datasets": [
                    {
                        "label": ds.label,
                        "data": [{"x": p.x, "y": p.y} for p in ds.data],
                        "borderColor": ds.border_color,
                        "backgroundColor": ds.background_color,
                        "tension": ds.tension,
                        "showLine": ds.show_line,
                    }
                    for ds in self.datasets
                ],
            },
            "options": {
                "responsive": True,
                "interaction": {"mode": "index", "intersect": False},
                "plugins": {"title": {"display": True, "text": self.title}},
                "scales": {
                    "y": {
                        "min": self.y_min,
                        "max": self.y_max,
                        "type": "linear",
                        "display": True,
                        "title": {"display": True, "text": self.y_title},
                    },
                    "x": {
                        "type": "time",
                        "title": {"display": True, "text": "Date"},
                        "min": self.window.min,
                        "max": self.window.max,
                        "ticks": {"includeBounds": True},
                    },
                },
            },
        }


class ChartSeriesSet(_Camel):
    charts: list[Chart] = []

    def chart(self, key: str) -> Chart:
        for c in self.charts:
            if c.key == key:
                return c
        raise KeyError(key)
