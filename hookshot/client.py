"""Synchronous REST client for pre-encoded webhook requests (uses httpx)."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

from hookshot.config import DEFAULT_TIMEOUT, DEFAULTS
from hookshot.exceptions import TransportError, WebhookTimeoutError

logger = logging.getLogger(__name__)


def _decode_body(resp: httpx.Response) -> Any:
    """Decode JSON, falling back to raw text (HTML error pages etc.)."""
    if not resp.content:
        return None
    try:
        return resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return resp.text


class RESTClient:
    """Posts exact body bytes to the API and returns ``(decoded_body, status)``.

    Usage::

        with RESTClient("https://api.hookshot.dev", token="tok-...") as client:
            body, status = client.post("/ws-acme/events/orders", {}, b"{}", headers)

    Non-2xx statuses are returned, not raised; the caller applies its own
    failure threshold.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        workspace_id: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.strip().rstrip("/")
        self.token = (token or "").strip()
        self.workspace_id = (workspace_id or "").strip()
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "RESTClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def post(
        self,
        path: str,
        query: Optional[Mapping[str, str]],
        body: bytes,
        headers: Optional[Mapping[str, str]] = None,
        authenticate: bool = True,
    ) -> Tuple[Any, int]:
        """POST *body* verbatim; user *headers* override the defaults."""
        request_headers: Dict[str, str] = {}
        if authenticate and self.token:
            request_headers["Authorization"] = f"Bearer {self.token}"
        if self.workspace_id:
            request_headers[DEFAULTS.workspace_header] = self.workspace_id
        for name, value in (headers or {}).items():
            if name.strip():
                request_headers[name] = value

        url = self.url_for(path)
        try:
            resp = self._client.post(
                url,
                params=dict(query or {}),
                content=body,
                headers=request_headers,
            )
        except httpx.TimeoutException as exc:
            raise WebhookTimeoutError(f"request timed out: {exc}", url=url) from exc
        except httpx.TransportError as exc:
            raise TransportError(f"request failed: {exc}", url=url) from exc

        logger.info("POST %s -> %d", url, resp.status_code)
        return _decode_body(resp), resp.status_code
