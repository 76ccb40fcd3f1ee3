import logging
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from fastapi.responses import JSONResponse

from healthtrack.core.client import RecordsClient
from healthtrack.core.dialog import RECORD_KINDS, RecordDialog, RecordKind, SubmitResult
from healthtrack.core.notifications import Notifier
from healthtrack.dependencies import bearer_scheme, get_clock, get_records_client, get_tz
from healthtrack.schemas.records import FormErrorResponse, NotificationRead, SubmitResponse

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/records", tags=["Records"])


def _resolve_kind(resource: str) -> RecordKind:
    kind = RECORD_KINDS.get(resource)
    if not kind:
        raise HTTPException(status_code=404, detail=f"Unknown record type: {resource}")
    return kind


def _respond(result: SubmitResult, notifier: Notifier, *, success_status: int):
    notifications = [
        NotificationRead(level=n.level, message=n.message) for n in notifier.drain()
    ]
    if result.ok:
        body = SubmitResponse(ok=True, notifications=notifications)
        return JSONResponse(status_code=success_status, content=body.model_dump(by_alias=True))

    if result.errors:
        body = FormErrorResponse(field_errors=result.errors.fields, form_errors=result.errors.form)
        return JSONResponse(status_code=422, content=body.model_dump(by_alias=True))

    return JSONResponse(
        status_code=502,
        content={
            "detail": result.detail,
            "notifications": [n.model_dump() for n in notifications],
        },
    )


def _submit(dialog: RecordDialog, values: dict[str, Any], *, success_status: int):
    notifier = dialog.notifier
    dialog.open()
    # The request body is the whole form; nothing is filled in from defaults.
    dialog.load(values)
    result = dialog.submit()
    if not result.ok and not result.errors:
        logger.warning(f"{dialog.kind.resource} submission failed: {result.detail}")
    return _respond(result, notifier, success_status=success_status)


@router.get("/{resource}/defaults", dependencies=[Depends(bearer_scheme)])
def record_defaults(
    resource: str,
    tz: ZoneInfo = Depends(get_tz),
    clock=Depends(get_clock),
):
    """Blank form values for a new record (current civil datetime + defaults)."""
    kind = _resolve_kind(resource)
    # Defaults never reach the records API, so no client is built.
    dialog = RecordDialog(kind, None, tz=tz, clock=clock)
    return {"title": dialog.title, "values": dialog.values}


@router.post("/{resource}")
def create_record(
    resource: str,
    values: dict[str, Any] = Body(...),
    tz: ZoneInfo = Depends(get_tz),
    clock=Depends(get_clock),
    client: RecordsClient = Depends(get_records_client),
):
    kind = _resolve_kind(resource)
    dialog = RecordDialog(kind, client, notifier=Notifier(), tz=tz, clock=clock)
    return _submit(dialog, values, success_status=201)


@router.put("/{resource}/{record_id}")
def update_record(
    resource: str,
    record_id: str,
    values: dict[str, Any] = Body(...),
    tz: ZoneInfo = Depends(get_tz),
    clock=Depends(get_clock),
    client: RecordsClient = Depends(get_records_client),
):
    """Full replace of an existing record's fields; the id never changes."""
    kind = _resolve_kind(resource)
    dialog = RecordDialog(
        kind,
        client,
        record={"id": record_id},
        notifier=Notifier(),
        tz=tz,
        clock=clock,
    )
    return _submit(dialog, values, success_status=200)


@router.delete("/{resource}/{record_id}", status_code=202)
def delete_record(
    resource: str,
    record_id: str,
    client: RecordsClient = Depends(get_records_client),
):
    kind = _resolve_kind(resource)
    client.delete(kind.resource, record_id)
    return Response(status_code=202)
