"""
Record editor dialogs.

One generic dialog drives every record kind: validate the form, turn the civil
datetime back into an absolute timestamp, build the payload, send one request,
report the outcome. What differs per kind (form, endpoint, defaults, messages)
lives in a `RecordKind`.

State per dialog:  CLOSED -> OPEN -> SUBMITTING -> OPEN (failure) | CLOSED (success)
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping
from zoneinfo import ZoneInfo

from healthtrack.core.client import RecordsClient
from healthtrack.core.errors import DialogStateError, RecordsApiError, SubmissionInProgressError
from healthtrack.core.notifications import Notifier
from healthtrack.schemas.forms import (
    BloodPressureForm,
    BloodSugarForm,
    FormErrors,
    ReadingForm,
    TimeRecordForm,
    validate_form,
)
from healthtrack.schemas.records import BloodPressureDTO, BloodSugarDTO, RecordDTO, TimeRecordDTO, transform_record
from healthtrack.utils.timeutils import now_utc, to_civil_datetime

logger = logging.getLogger(__name__)

UPDATED_MESSAGE = "Record updated"
FAILED_MESSAGE = "Could not save the record, please try again"


@dataclass(frozen=True)
class RecordKind:
    resource: str
    form_model: type[ReadingForm]
    dto_model: type[RecordDTO]
    title: str
    created_message: str
    create_defaults: Mapping[str, Any] = field(default_factory=dict)
    # Edit-mode fields that fall back to "" instead of a default when unset.
    text_fields: tuple[str, ...] = ()


BLOOD_PRESSURE = RecordKind(
    resource="bloodPressures",
    form_model=BloodPressureForm,
    dto_model=BloodPressureDTO,
    title="Blood pressure record",
    created_message="Blood pressure record added!",
    create_defaults={"sbp": 120, "dbp": 80, "pulse": 70},
)

BLOOD_SUGAR = RecordKind(
    resource="bloodSugars",
    form_model=BloodSugarForm,
    dto_model=BloodSugarDTO,
    title="Blood sugar record",
    created_message="Blood sugar record added!",
    text_fields=("remarks",),
)

TIME_RECORD = RecordKind(
    resource="timeRecords",
    form_model=TimeRecordForm,
    dto_model=TimeRecordDTO,
    title="Exercise record",
    created_message="Exercise record added!",
    create_defaults={"duration_in_min": 30},
    text_fields=("location", "activity_type"),
)

RECORD_KINDS: dict[str, RecordKind] = {
    k.resource: k for k in (BLOOD_PRESSURE, BLOOD_SUGAR, TIME_RECORD)
}


class DialogState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    SUBMITTING = "submitting"


@dataclass
class SubmitResult:
    ok: bool
    errors: FormErrors = field(default_factory=FormErrors)
    detail: Any = None


class RecordDialog:
    def __init__(
        self,
        kind: RecordKind,
        client: RecordsClient | None,
        *,
        on_success: Callable[[], None] | None = None,
        record: RecordDTO | Mapping[str, Any] | None = None,
        notifier: Notifier | None = None,
        tz: ZoneInfo,
        clock: Callable[[], Any] = now_utc,
    ):
        self.kind = kind
        self.client = client
        self.on_success = on_success
        self.tz = tz
        self.record = transform_record(kind.dto_model, record, tz) if isinstance(record, Mapping) else record
        self.notifier = notifier or Notifier()
        self.clock = clock
        self.state = DialogState.CLOSED
        self.values: dict[str, Any] = self.default_values()

    @property
    def is_editing(self) -> bool:
        return self.record is not None

    @property
    def title(self) -> str:
        return f"Edit {self.kind.title.lower()}" if self.is_editing else f"New {self.kind.title.lower()}"

    def default_values(self) -> dict[str, Any]:
        fields = [name for name in self.kind.form_model.model_fields if name != "datetime"]

        if not self.is_editing:
            values = {name: self.kind.create_defaults.get(name) for name in fields}
            values["datetime"] = to_civil_datetime(self.clock(), self.tz)
            return values

        values = {}
        for name in fields:
            current = getattr(self.record, name, None)
            if current is None:
                current = "" if name in self.kind.text_fields else self.kind.create_defaults.get(name)
            values[name] = current
        try:
            values["datetime"] = to_civil_datetime(self.record.datetime, self.tz)
        except ValueError:
            values["datetime"] = to_civil_datetime(self.clock(), self.tz)
        return values

    def open(self) -> None:
        if self.state is DialogState.CLOSED:
            self.state = DialogState.OPEN

    def close(self) -> None:
        if self.state is DialogState.SUBMITTING:
            raise SubmissionInProgressError("Cannot close while a submission is in flight")
        self.state = DialogState.CLOSED

    def reset(self) -> None:
        self.values = self.default_values()

    def load(self, values: Mapping[str, Any]) -> None:
        """Replace the form state wholesale."""
        self.values = self._by_field_name(values)

    def _by_field_name(self, values: Mapping[str, Any]) -> dict[str, Any]:
        # Incoming JSON uses camelCase aliases; the form state is keyed by field name.
        aliases = {
            info.alias: name
            for name, info in self.kind.form_model.model_fields.items()
            if info.alias
        }
        return {aliases.get(key, key): value for key, value in values.items()}

    def validate(self, values: Mapping[str, Any] | None = None) -> FormErrors:
        _, errors = validate_form(
            self.kind.form_model,
            self.values if values is None else values,
            tz=self.tz,
            now=self.clock(),
        )
        return errors

    def submit(self, values: Mapping[str, Any] | None = None) -> SubmitResult:
        if self.state is DialogState.SUBMITTING:
            raise SubmissionInProgressError("A submission is already in flight")
        if self.state is DialogState.CLOSED:
            raise DialogStateError("Open the dialog before submitting")

        if values is not None:
            self.values.update(self._by_field_name(values))

        form, errors = validate_form(self.kind.form_model, self.values, tz=self.tz, now=self.clock())
        if errors:
            return SubmitResult(ok=False, errors=errors)

        payload = form.to_payload(self.tz)
        self.state = DialogState.SUBMITTING
        try:
            if self.is_editing:
                self.client.update(
                    self.kind.resource,
                    self.record.id,
                    {"id": self.record.id, **payload},
                )
                self.notifier.success(UPDATED_MESSAGE)
            else:
                self.client.create(self.kind.resource, payload)
                self.notifier.success(self.kind.created_message)
        except RecordsApiError as e:
            logger.exception("Saving %s failed", self.kind.resource)
            self.notifier.error(FAILED_MESSAGE)
            self.state = DialogState.OPEN
            return SubmitResult(ok=False, detail=e.detail)

        self.state = DialogState.CLOSED
        self.reset()
        if self.on_success is not None:
            self.on_success()
        return SubmitResult(ok=True)


def blood_pressure_dialog(client: RecordsClient, **kwargs) -> RecordDialog:
    return RecordDialog(BLOOD_PRESSURE, client, **kwargs)


def blood_sugar_dialog(client: RecordsClient, **kwargs) -> RecordDialog:
    return RecordDialog(BLOOD_SUGAR, client, **kwargs)


def time_record_dialog(client: RecordsClient, **kwargs) -> RecordDialog:
    return RecordDialog(TIME_RECORD, client, **kwargs)
