"""
HTTP client for the portfolio API (the remote object store, as seen by the
site and the admin tools).
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds


class RemoteStoreError(Exception):
    """A remote read or write failed; the message is safe to show to the admin."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: Any) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"Request failed with status {response.status_code}"


class RemoteStoreClient:
    """
    Reads and replaces the project/category blobs and uploads images.

    ``session`` can be any requests-compatible client (a ``requests.Session``
    by default).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        session: Any = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _auth_headers(self) -> dict:
        if not self.token:
            raise RemoteStoreError("No admin token configured for remote writes")
        return {"Authorization": f"Bearer {self.token}"}

    def _send(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = getattr(self.session, method)(
                self._url(path), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as exc:
            raise RemoteStoreError(f"Could not reach {path}: {exc}") from exc
        if response.status_code >= 400:
            raise RemoteStoreError(_error_message(response), response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteStoreError(f"Invalid JSON from {path}") from exc

    def _fetch_list(self, path: str) -> list:
        payload = self._send("get", path)
        if not isinstance(payload, list):
            raise RemoteStoreError(f"Expected a list from {path}")
        return payload

    def _replace_list(self, path: str, records: list) -> None:
        self._send("put", path, json=records, headers=self._auth_headers())
        logger.info("Published %d records to %s", len(records), path)

    def fetch_projects(self) -> list:
        return self._fetch_list("projects")

    def fetch_categories(self) -> list:
        return self._fetch_list("categories")

    def save_projects(self, records: list) -> None:
        self._replace_list("projects", records)

    def save_categories(self, records: list) -> None:
        self._replace_list("categories", records)

    def upload_image(
        self, slug: str, filename: str, data: bytes, content_type: str
    ) -> str:
        """Upload one image and return its public URL."""
        payload = self._send(
            "post",
            "upload",
            files={"file": (filename, data, content_type)},
            data={"slug": slug},
            headers=self._auth_headers(),
        )
        if not isinstance(payload, dict) or not payload.get("url"):
            raise RemoteStoreError("Upload response did not include a URL")
        return payload["url"]
