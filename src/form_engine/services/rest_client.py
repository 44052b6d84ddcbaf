"""REST implementations of the form engine collaborators.

Every call goes through one ``requests.Session`` carrying the bearer
token and JSON accept header. Transport and HTTP errors are converted
into FetchError so callers handle a single error type. Coroutine
methods run the blocking call on a worker thread.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from form_engine.config.settings import EngineSettings, get_settings
from form_engine.errors import FetchError

logger = logging.getLogger(__name__)


class RestClient:
    """Thin JSON-over-HTTP wrapper around a ``requests.Session``."""

    def __init__(self, settings: Optional[EngineSettings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})
        if self.settings.api_token:
            self.session.headers.update({"Authorization": f"Bearer {self.settings.api_token}"})

    def url_for(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.settings.api_base_url}/{endpoint.lstrip('/')}"

    def request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Send one request and return the decoded JSON body.

        Raises:
            FetchError: On transport errors, non-2xx status or a non-JSON body.
        """
        url = self.url_for(endpoint)
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.settings.http_timeout,
                verify=self.settings.verify_tls,
                **kwargs,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error(f"API error ({method} {url}): {exc}")
            raise FetchError(f"{method} {url} failed: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"{method} {url} returned invalid JSON") from exc


def _unwrap(body: Any, *keys: str) -> Any:
    """Strip the backend's ``{success, data: {...}}`` envelope."""
    if isinstance(body, dict) and "success" in body:
        if not body.get("success"):
            raise FetchError(body.get("message") or "Request was not successful")
        body = body.get("data", {})
    for key in keys:
        if isinstance(body, dict) and key in body:
            body = body[key]
    return body


class RestFormsApi:
    """Forms persistence API over REST."""

    def __init__(self, client: Optional[RestClient] = None):
        self.client = client or RestClient()

    def create_form(self, definition: Dict[str, Any]) -> Dict[str, Any]:
        return _unwrap(self.client.request("POST", "/api/forms/create", json=definition), "form")

    def update_form(self, form_id: str, definition: Dict[str, Any]) -> Dict[str, Any]:
        return _unwrap(self.client.request("PUT", f"/api/forms/{form_id}", json=definition), "form")

    def get_form(self, form_id: str) -> Dict[str, Any]:
        return _unwrap(self.client.request("GET", f"/api/forms/{form_id}"), "form")


class RestOptionSource:
    """Generic ``GET <endpoint> -> Item[]`` option source."""

    def __init__(self, client: Optional[RestClient] = None):
        self.client = client or RestClient()

    async def fetch_items(self, endpoint: str) -> List[Dict[str, Any]]:
        body = await asyncio.to_thread(self.client.request, "GET", endpoint)
        items = _unwrap(body, "items")
        if not isinstance(items, list):
            raise FetchError(f"Option endpoint {endpoint} did not return a list")
        return items


class RestFileStorage:
    """File storage API: multipart upload returning the stored URL."""

    def __init__(self, client: Optional[RestClient] = None):
        self.client = client or RestClient()

    async def upload_file(self, file: Any, folder: str) -> str:
        filename = getattr(file, "filename", None) or Path(getattr(file, "name", "upload")).name
        content_type = getattr(file, "content_type", None) or "application/octet-stream"
        content = file.read_bytes() if hasattr(file, "read_bytes") else file.read()

        body = await asyncio.to_thread(
            self.client.request,
            "POST",
            "/api/upload/file",
            files={"file": (filename, content, content_type)},
            data={"folder": folder},
        )
        url = _unwrap(body, "url")
        if not isinstance(url, str) or not url:
            raise FetchError(f"Upload of {filename} did not return a URL")
        return url


class RestSubmitter:
    """Submit collaborator posting a payload to ``/api/forms/{id}/submit``."""

    def __init__(self, form_id: str, client: Optional[RestClient] = None):
        self.form_id = form_id
        self.client = client or RestClient()

    async def __call__(self, payload: Dict[str, Any]) -> Any:
        body = await asyncio.to_thread(
            self.client.request, "POST", f"/api/forms/{self.form_id}/submit", json=payload
        )
        return _unwrap(body)
