from zoneinfo import ZoneInfo

from fastapi import APIRouter, Body, Depends

from healthtrack.config import CHART_WINDOW_DAYS
from healthtrack.core.client import RecordsClient
from healthtrack.core.dashboard import TrendView
from healthtrack.core.trends import build_blood_pressure_charts
from healthtrack.dependencies import get_clock, get_records_client, get_tz
from healthtrack.schemas.charts import ChartSeriesSet
from healthtrack.schemas.records import BloodPressureDTO

router = APIRouter(prefix="/charts", tags=["Charts"])


def _load_view(client: RecordsClient, tz: ZoneInfo, clock) -> TrendView:
    view = TrendView(client, tz=tz, window_days=CHART_WINDOW_DAYS, clock=clock)
    view.refresh()
    return view


@router.get("/blood-pressure", response_model=ChartSeriesSet, response_model_by_alias=True)
def blood_pressure_charts(
    tz: ZoneInfo = Depends(get_tz),
    clock=Depends(get_clock),
    client: RecordsClient = Depends(get_records_client),
):
    """Latest reading per day and time-of-day bucket, one chart per measure."""
    return _load_view(client, tz, clock).charts()


@router.get("/blood-pressure/chartjs")
def blood_pressure_chartjs(
    tz: ZoneInfo = Depends(get_tz),
    clock=Depends(get_clock),
    client: RecordsClient = Depends(get_records_client),
):
    charts = _load_view(client, tz, clock).charts()
    return [chart.to_chartjs() for chart in charts.charts]


@router.post("/blood-pressure", response_model=ChartSeriesSet, response_model_by_alias=True)
def blood_pressure_charts_from_readings(
    readings: list[BloodPressureDTO] = Body(...),
    tz: ZoneInfo = Depends(get_tz),
    clock=Depends(get_clock),
):
    return build_blood_pressure_charts(
        readings, tz=tz, now=clock(), window_days=CHART_WINDOW_DAYS
    )
