"""
Trend aggregation for the readings charts.

Each reading falls into one (civil date, time-of-day bucket) cell in the display
timezone; only the latest reading of a cell is plotted. Everything here is pure:
the timezone and "now" are arguments, never read from global state.
"""
import logging
from datetime import datetime, timedelta
from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Iterable, Sequence
from zoneinfo import ZoneInfo

from healthtrack.schemas.charts import Chart, ChartDataset, ChartPoint, ChartSeriesSet, TimeWindow
from healthtrack.utils.timeutils import end_of_month, parse_timestamp, start_of_month, to_iso_string

logger = logging.getLogger(__name__)


class Bucket(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    NIGHT = "night"


BUCKET_LABELS = {
    Bucket.MORNING: "Morning: 06:00 - 11:59",
    Bucket.AFTERNOON: "Afternoon: 12:00 - 17:59",
    Bucket.NIGHT: "Night: 18:00 - 05:59 next day",
}

BUCKET_COLORS = {
    Bucket.MORNING: "#4dc9f6",
    Bucket.AFTERNOON: "#f67019",
    Bucket.NIGHT: "#f53794",
}

BLOOD_PRESSURE_CHARTS = (
    {"key": "sbp", "title": "Systolic (mmHg)", "y_title": "mmHg"},
    {"key": "dbp", "title": "Diastolic (mmHg)", "y_title": "mmHg"},
    {"key": "pulse", "title": "Pulse (beats/min)", "y_title": "beats/min"},
)

DEFAULT_WINDOW_DAYS = 30


def bucket_for_hour(hour: int) -> Bucket:
    if not 0 <= hour <= 23:
        raise ValueError(f"hour out of range: {hour}")
    if 6 <= hour < 12:
        return Bucket.MORNING
    if 12 <= hour < 18:
        return Bucket.AFTERNOON
    return Bucket.NIGHT


def latest_per_bucket(
    readings: Iterable[Any],
    tz: ZoneInfo,
    *,
    timestamp_of: Callable[[Any], Any] = attrgetter("datetime"),
) -> dict[Bucket, list[Any]]:
    """
    Keep the latest reading per (civil date, bucket) cell.

    A reading only displaces the kept one when its timestamp is strictly later,
    so on an exact tie the first reading seen stays. Readings whose timestamp
    does not parse are skipped. The 00:00-05:59 part of the night bucket counts
    towards the calendar date it falls on.
    Timestamps without an offset are civil time in `tz`.
    """
    cells: dict[Bucket, dict[str, tuple[datetime, Any]]] = {b: {} for b in Bucket}

    for reading in readings:
        ts = parse_timestamp(timestamp_of(reading), tz)
        if ts is None:
            logger.debug("Skipping reading with unparseable timestamp: %r", reading)
            continue
        local = ts.astimezone(tz)
        day = local.date().isoformat()
        cell = cells[bucket_for_hour(local.hour)]

        kept = cell.get(day)
        if kept is None or ts > kept[0]:
            cell[day] = (ts, reading)

    return {b: [reading for _, reading in cell.values()] for b, cell in cells.items()}


def project_series(
    readings: Iterable[Any],
    key: str,
    tz: ZoneInfo | None = None,
    *,
    timestamp_of: Callable[[Any], Any] = attrgetter("datetime"),
) -> list[ChartPoint]:
    points = []
    for reading in readings:
        ts = parse_timestamp(timestamp_of(reading), tz)
        value = getattr(reading, key, None)
        if ts is None or value is None:
            continue
        points.append((ts, value))
    points.sort(key=lambda p: p[0])
    return [ChartPoint(x=to_iso_string(ts), y=value) for ts, value in points]


def chart_labels(
    readings: Iterable[Any],
    tz: ZoneInfo,
    *,
    timestamp_of: Callable[[Any], Any] = attrgetter("datetime"),
) -> list[str]:
    """Start of the first reading's month and end of the last reading's month."""
    stamps = [ts for ts in (parse_timestamp(timestamp_of(r), tz) for r in readings) if ts is not None]
    if not stamps:
        return []
    first = min(stamps).astimezone(tz)
    last = max(stamps).astimezone(tz)
    return [to_iso_string(start_of_month(first)), to_iso_string(end_of_month(last))]


def build_charts(
    readings: Sequence[Any],
    chart_defs: Iterable[dict],
    *,
    tz: ZoneInfo,
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
    timestamp_of: Callable[[Any], Any] = attrgetter("datetime"),
) -> ChartSeriesSet:
    # The window only sets the axis bounds; older points stay in the series.
    window = TimeWindow(
        min=to_iso_string(now - timedelta(days=window_days)),
        max=to_iso_string(now),
    )
    kept = latest_per_bucket(readings, tz, timestamp_of=timestamp_of)
    labels = chart_labels(readings, tz, timestamp_of=timestamp_of)

    charts = []
    for chart_def in chart_defs:
        datasets = [
            ChartDataset(
                bucket=bucket.value,
                label=BUCKET_LABELS[bucket],
                border_color=BUCKET_COLORS[bucket],
                background_color=BUCKET_COLORS[bucket],
                data=project_series(kept[bucket], chart_def["key"], tz, timestamp_of=timestamp_of),
            )
            for bucket in Bucket
        ]
        charts.append(
            Chart(
                key=chart_def["key"],
                title=chart_def["title"],
                y_title=chart_def["y_title"],
                window=window,
                labels=labels,
                datasets=datasets,
            )
        )
    return ChartSeriesSet(charts=charts)


def build_blood_pressure_charts(
    readings: Sequence[Any],
    *,
    tz: ZoneInfo,
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> ChartSeriesSet:
    return build_charts(readings, BLOOD_PRESSURE_CHARTS, tz=tz, now=now, window_days=window_days)
