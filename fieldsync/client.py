"""
HTTP client for the Caresora API as used from a field device.

Network trouble (no route, DNS, timeouts) surfaces as
:class:`OfflineError` so callers can fall back to the offline queue;
any answer from the server with an error status is an
:class:`ApiError`.
"""

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class OfflineError(Exception):
    """The server could not be reached."""


class ApiError(Exception):
    def __init__(self, status: int, detail: Any = None) -> None:
        self.status = status
        self.detail = detail
        super().__init__(f"API error {status}: {detail}")


class CaresoraClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.token: Optional[str] = None
        if token:
            self.set_token(token)

    def set_token(self, token: str) -> None:
        self.token = token
        self.session.headers["Authorization"] = f"Token {token}"

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = f"{self.base_url}{path}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.info("%s %s failed: %s", method, path, e)
            raise OfflineError(str(e)) from e
        try:
            data = r.json()
        except ValueError:
            data = {}
        if r.status_code >= 400:
            detail = (data.get("error") or data.get("detail")) if isinstance(data, dict) else data
            raise ApiError(r.status_code, detail or r.reason)
        return data

    # ------------------------------------------------------------------

    def login(self, email: str, password: str) -> dict:
        """Log in and keep the legacy token for later calls."""
        data = self._request("POST", "/api/auth/login", json={"email": email, "password": password})
        self.set_token(data["token"])
        return data

    def submit_record(self, record: dict) -> dict:
        return self._request("POST", "/api/records", json=record)

    def sync_records(self, records: list[dict]) -> dict:
        return self._request("POST", "/api/records/sync", json={"records": records})

    def thread(self, peer_id: int, since_id: Optional[int] = None) -> list[dict]:
        params = {"peerId": peer_id}
        if since_id:
            params["sinceId"] = since_id
        return self._request("GET", "/api/messages/thread", params=params)["items"]

    def send_message(self, recipient_id: int, content: str) -> dict:
        data = self._request("POST", "/api/messages/send", json={"recipientId": recipient_id, "content": content})
        return data["message"]
