import logging
from typing import Any

import requests

from healthtrack.core.errors import RecordsApiError

logger = logging.getLogger(__name__)


def _auth_headers(token: str | None) -> dict:
    if not token:
        return {}
    return {"Authorization": f"Bearer {token}"}


def _handle_response(response: requests.Response) -> requests.Response:
    if not 200 <= response.status_code < 300:
        try:
            detail = response.json()
        except ValueError:
            detail = response.text
        raise RecordsApiError(response.status_code, detail)
    return response


class RecordsClient:
    """
    Thin JSON client for the records API (bloodPressures, bloodSugars, timeRecords).

    Response bodies of writes are not interpreted; only the status matters.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(_auth_headers(token))

    def _url(self, resource: str, record_id: str | None = None) -> str:
        url = f"{self.base_url}/{resource}"
        if record_id is not None:
            url = f"{url}/{record_id}"
        return url

    def _request(self, method: str, url: str, payload: dict | None = None) -> requests.Response:
        try:
            r = self.session.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RecordsApiError(None, str(e)) from e
        return _handle_response(r)

    def create(self, resource: str, payload: dict[str, Any]) -> None:
        self._request("POST", self._url(resource), payload)

    def update(self, resource: str, record_id: str, payload: dict[str, Any]) -> None:
        self._request("PUT", self._url(resource, record_id), payload)

    def delete(self, resource: str, record_id: str) -> None:
        self._request("DELETE", self._url(resource, record_id))

    def list(self, resource: str) -> list[dict]:
        r = self._request("GET", self._url(resource))
        try:
            data = r.json()
        except ValueError as e:
            raise RecordsApiError(r.status_code, "Response is not JSON") from e
        if not isinstance(data, list):
            logger.warning("Expected a list from %s, got %s", resource, type(data).__name__)
            return []
        return data

    def close(self) -> None:
        self.session.close()
