from zoneinfo import ZoneInfo

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from healthtrack.config import APP_API_URL, REQUEST_TIMEOUT, get_display_tz
from healthtrack.core.client import RecordsClient
from healthtrack.utils.timeutils import now_utc

bearer_scheme = HTTPBearer(auto_error=True)


# --- Records API client, authenticated as the caller ---
def get_records_client(
    creds: HTTPAuthorizationCredentials = Depends(bearer_scheme),
):
    client = RecordsClient(APP_API_URL, token=creds.credentials, timeout=REQUEST_TIMEOUT)
    try:
        yield client
    finally:
        client.close()


def get_tz() -> ZoneInfo:
    return get_display_tz()


def get_clock():
    return now_utc
