"""
Form models for the record editors.

Each form validates what a user typed into a dialog (civil datetime string,
numbers as entered) and knows how to turn itself into the JSON payload the
records API expects. Validation needs the display timezone and the current
moment; both come in through the pydantic validation context:

    BloodPressureForm.model_validate(values, context={"tz": tz, "now": now})
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar, Mapping
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from healthtrack.config import get_display_tz
from healthtrack.utils.timeutils import from_civil_datetime, now_utc, to_iso_string

REQUIRED_MESSAGE = "Required"
DATETIME_FORMAT_MESSAGE = "Use the format YYYY-MM-DDTHH:mm"
DATETIME_FUTURE_MESSAGE = "Date and time cannot be in the future"
PRESSURE_RANGE_MESSAGE = "Blood pressure valid range: 0-200 mmHg"
PULSE_RANGE_MESSAGE = "Pulse valid range: 20-200 beats/min"
SUGAR_RANGE_MESSAGE = "Blood sugar valid range: 1.0-30.0 mmol/L"
REMARKS_LENGTH_MESSAGE = "Remarks must be 30 characters or fewer"
DURATION_MIN_MESSAGE = "At least 10 minutes"
DURATION_MAX_MESSAGE = "At most 300 minutes"
SBP_OVER_DBP_MESSAGE = "Diastolic pressure must be lower than systolic pressure"

BLOOD_SUGAR_SLOTS = (
    "before_breakfast",
    "after_breakfast",
    "before_lunch",
    "after_lunch",
    "before_dinner",
    "after_dinner",
    "before_sleep",
)


def _check_range(value, low, high, message: str):
    if value is not None and not (low <= value <= high):
        raise PydanticCustomError("out_of_range", message)
    return value


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class ReadingForm(BaseModel):
    """Shared datetime handling and payload building."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    allow_future: ClassVar[bool] = False

    datetime: str

    @field_validator("datetime")
    @classmethod
    def _check_datetime(cls, value: str, info: ValidationInfo) -> str:
        tz, now = _context(info)
        try:
            moment = from_civil_datetime(value, tz)
        except ValueError:
            raise PydanticCustomError("civil_datetime", DATETIME_FORMAT_MESSAGE)
        if not cls.allow_future and moment > now:
            raise PydanticCustomError("future_datetime", DATETIME_FUTURE_MESSAGE)
        return value

    def to_payload(self, tz: ZoneInfo) -> dict[str, Any]:
        """camelCase body with an absolute timestamp; unset optionals are left out."""
        data = self.model_dump(by_alias=True, exclude_none=True)
        data["datetime"] = to_iso_string(from_civil_datetime(self.datetime, tz))
        return data


class BloodPressureForm(ReadingForm):
    sbp: int
    dbp: int
    pulse: int

    @field_validator("sbp", "dbp")
    @classmethod
    def _check_pressure(cls, value: int) -> int:
        return _check_range(value, 0, 200, PRESSURE_RANGE_MESSAGE)

    @field_validator("pulse")
    @classmethod
    def _check_pulse(cls, value: int) -> int:
        return _check_range(value, 20, 200, PULSE_RANGE_MESSAGE)

    @model_validator(mode="after")
    def _check_sbp_over_dbp(self):
        if not self.sbp > self.dbp:
            raise PydanticCustomError("form_error", SBP_OVER_DBP_MESSAGE)
        return self


class BloodSugarForm(ReadingForm):
    before_breakfast: float | None = None
    after_breakfast: float | None = None
    before_lunch: float | None = None
    after_lunch: float | None = None
    before_dinner: float | None = None
    after_dinner: float | None = None
    before_sleep: float | None = None
    remarks: str | None = None

    @field_validator(*BLOOD_SUGAR_SLOTS, mode="before")
    @classmethod
    def _blank_slot(cls, value):
        return _blank_to_none(value)

    @field_validator(*BLOOD_SUGAR_SLOTS)
    @classmethod
    def _check_sugar(cls, value: float | None) -> float | None:
        return _check_range(value, 1.0, 30.0, SUGAR_RANGE_MESSAGE)

    @field_validator("remarks", mode="before")
    @classmethod
    def _blank_remarks(cls, value):
        value = _blank_to_none(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("remarks")
    @classmethod
    def _check_remarks(cls, value: str | None) -> str | None:
        if value is not None and len(value) > 30:
            raise PydanticCustomError("too_long", REMARKS_LENGTH_MESSAGE)
        return value


class TimeRecordForm(ReadingForm):
    # Activities can be planned ahead.
    allow_future: ClassVar[bool] = True

    location: str | None = None
    activity_type: str
    duration_in_min: int

    @field_validator("location", mode="before")
    @classmethod
    def _blank_location(cls, value):
        return _blank_to_none(value)

    @field_validator("activity_type", mode="before")
    @classmethod
    def _check_activity_type(cls, value):
        value = _blank_to_none(value)
        if value is None:
            raise PydanticCustomError("missing", REQUIRED_MESSAGE)
        return value

    @field_validator("duration_in_min")
    @classmethod
    def _check_duration(cls, value: int) -> int:
        if value < 10:
            raise PydanticCustomError("out_of_range", DURATION_MIN_MESSAGE)
        if value > 300:
            raise PydanticCustomError("out_of_range", DURATION_MAX_MESSAGE)
        return value


# ----------- Validation errors -----------

@dataclass
class FormErrors:
    fields: dict[str, list[str]] = field(default_factory=dict)
    form: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.fields or self.form)

    def add(self, name: str | None, message: str) -> None:
        if name is None:
            if message not in self.form:
                self.form.append(message)
        else:
            self.fields.setdefault(name, []).append(message)


def _context(info: ValidationInfo) -> tuple[ZoneInfo, Any]:
    ctx = info.context or {}
    tz = ctx.get("tz")
    if tz is None:
        tz = get_display_tz()
    now = ctx.get("now") or now_utc()
    return tz, now


def _field_name(form_model: type[ReadingForm], loc_head) -> str:
    for name, info in form_model.model_fields.items():
        if loc_head in (name, info.alias):
            return name
    return str(loc_head)


def errors_from_validation(form_model: type[ReadingForm], exc: ValidationError) -> FormErrors:
    errors = FormErrors()
    for err in exc.errors():
        loc = err.get("loc") or ()
        if err["type"] == "missing" or ("input" in err and err["input"] is None and loc):
            message = REQUIRED_MESSAGE
        else:
            message = err["msg"]
        errors.add(_field_name(form_model, loc[0]) if loc else None, message)
    return errors


def validate_form(
    form_model: type[ReadingForm],
    values: Mapping[str, Any],
    *,
    tz: ZoneInfo,
    now,
) -> tuple[ReadingForm | None, FormErrors]:
    try:
        form = form_model.model_validate(dict(values), context={"tz": tz, "now": now})
    except ValidationError as exc:
        return None, errors_from_validation(form_model, exc)
    return form, FormErrors()
