import logging
from typing import Any, Callable, Mapping
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from healthtrack.core.client import RecordsClient
from healthtrack.core.dialog import BLOOD_PRESSURE, RecordDialog, RecordKind
from healthtrack.core.errors import RecordsApiError
from healthtrack.core.notifications import Notifier
from healthtrack.core.trends import DEFAULT_WINDOW_DAYS, build_blood_pressure_charts
from healthtrack.schemas.charts import ChartSeriesSet
from healthtrack.schemas.records import BloodPressureDTO, transform_record
from healthtrack.utils.timeutils import now_utc

logger = logging.getLogger(__name__)


class TrendView:
    """
    Parent view of the blood pressure charts.

    Holds the current readings; dialogs created through `dialog()` call
    `refresh()` after a successful save so the charts pick up the change.
    """

    def __init__(
        self,
        client: RecordsClient,
        *,
        tz: ZoneInfo,
        window_days: int = DEFAULT_WINDOW_DAYS,
        clock: Callable[[], Any] = now_utc,
    ):
        self.client = client
        self.tz = tz
        self.window_days = window_days
        self.clock = clock
        self.readings: list[BloodPressureDTO] = []

    def refresh(self) -> list[BloodPressureDTO]:
        rows = self.client.list(BLOOD_PRESSURE.resource)
        readings = []
        for row in rows:
            try:
                readings.append(transform_record(BloodPressureDTO, row, self.tz))
            except (ValidationError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed blood pressure row: {e}")
        self.readings = readings
        return readings

    def _refresh_after_save(self) -> None:
        # The record is already saved; a failed reload only leaves the charts stale.
        try:
            self.refresh()
        except RecordsApiError as e:
            logger.warning(f"Reloading blood pressure readings after save failed: {e}")

    def charts(self) -> ChartSeriesSet:
        return build_blood_pressure_charts(
            self.readings,
            tz=self.tz,
            now=self.clock(),
            window_days=self.window_days,
        )

    def dialog(
        self,
        kind: RecordKind = BLOOD_PRESSURE,
        record: BloodPressureDTO | Mapping[str, Any] | None = None,
        notifier: Notifier | None = None,
    ) -> RecordDialog:
        return RecordDialog(
            kind,
            self.client,
            on_success=self._refresh_after_save,
            record=record,
            notifier=notifier,
            tz=self.tz,
            clock=self.clock,
        )
