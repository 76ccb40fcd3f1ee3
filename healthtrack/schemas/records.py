from typing import Any, Mapping, TypeVar
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from healthtrack.utils.timeutils import normalize_timestamp

# ----------- Reading DTOs (as served by the records API) -----------

class RecordDTO(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    id: str
    # Kept as a string: a malformed value must survive to the chart layer.
    datetime: str | None = None


class BloodPressureDTO(RecordDTO):
    sbp: int | None = None
    dbp: int | None = None
    pulse: int | None = None


class BloodSugarDTO(RecordDTO):
    before_breakfast: float | None = None
    after_breakfast: float | None = None
    before_lunch: float | None = None
    after_lunch: float | None = None
    before_dinner: float | None = None
    after_dinner: float | None = None
    before_sleep: float | None = None
    remarks: str | None = None


class TimeRecordDTO(RecordDTO):
    location: str | None = None
    activity_type: str | None = None
    duration_in_min: int | None = None


DTO = TypeVar("DTO", bound=RecordDTO)


def transform_record(dto_model: type[DTO], row: Mapping[str, Any], tz: ZoneInfo | None = None) -> DTO:
    """Build a DTO from a backend row, normalising its timestamp to ISO-8601 UTC.

    A timestamp without an offset is civil time in `tz`.
    """
    data = dict(row)
    if "id" in data and data["id"] is not None:
        data["id"] = str(data["id"])
    data["datetime"] = normalize_timestamp(data.get("datetime"), tz)
    return dto_model.model_validate(data)


# ----------- Responses -----------

class NotificationRead(BaseModel):
    level: str
    message: str


class SubmitResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ok: bool
    notifications: list[NotificationRead] = []


class FormErrorResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    field_errors: dict[str, list[str]] = {}
    form_errors: list[str] = []
