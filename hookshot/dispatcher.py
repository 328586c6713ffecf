"""Route a built webhook request to the live, draft or validate endpoint.

Endpoints (relative to the API base URL)::

    /<workspace>/events/<path>                    live
    /<workspace>/api/events/draft/<path>          draft
    /<workspace>/api/events/validate/<path>       validate-only

Live sends never carry the session token; they rely on the per-request
auth and signature headers.  Draft and validate-only sends require it.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

from hookshot.client import RESTClient
from hookshot.config import DEFAULTS, WebhookDefaults, redact
from hookshot.exceptions import APIError, ConfigurationError, ResponseWriteError, TransportError

logger = logging.getLogger(__name__)

# Characters a path segment may keep unescaped besides the unreserved set.
_SEGMENT_SAFE = "$&+=:@"

_CREDENTIAL_HEADERS = frozenset({"authorization", "x-api-key", "proxy-authorization", "cookie"})


class EndpointKind(str, Enum):
    LIVE = "live"
    DRAFT = "draft"
    VALIDATE = "validate"


@dataclass
class DispatchPlan:
    kind: EndpointKind
    path: str
    query: Dict[str, str] = field(default_factory=dict)
    authenticate: bool = False


@dataclass
class DispatchResult:
    status_code: int
    data: Any
    endpoint: EndpointKind
    url: str


def escape_path_segments(raw: str) -> str:
    """Percent-escape each ``/``-delimited segment, dropping empty ones."""
    segments = [part.strip() for part in (raw or "").strip().split("/")]
    return "/".join(quote(part, safe=_SEGMENT_SAFE) for part in segments if part)


def plan_dispatch(
    workspace_id: str,
    event_path: str,
    draft: bool = False,
    validate_only: bool = False,
    persist_resources: bool = False,
    session_token: Optional[str] = None,
) -> DispatchPlan:
    """Choose the endpoint and query flags for a send.

    Raises:
        ConfigurationError: for a missing workspace or path, persistence
            outside validate-only, or draft / validate-only without a token.
    """
    workspace_id = (workspace_id or "").strip()
    if not workspace_id:
        raise ConfigurationError("missing workspace id", code="missing_workspace")
    if not (event_path or "").strip():
        raise ConfigurationError("missing event path", code="missing_path")
    if persist_resources and not validate_only:
        raise ConfigurationError(
            "persist-resources requires validate-only", code="persist_requires_validate_only"
        )
    escaped = escape_path_segments(event_path)
    if not escaped:
        raise ConfigurationError(f"empty event path: {event_path!r}", code="empty_path")
    if (draft or validate_only) and not (session_token or "").strip():
        raise ConfigurationError(
            "a session token is required for draft and validate-only sends",
            code="api_auth_required",
        )

    ws = quote(workspace_id, safe=_SEGMENT_SAFE)
    if validate_only:
        query: Dict[str, str] = {}
        if persist_resources:
            query["persist-resources"] = "true"
        if draft:
            query["draft"] = "true"
        return DispatchPlan(
            EndpointKind.VALIDATE, f"/{ws}/api/events/validate/{escaped}", query, authenticate=True
        )
    if draft:
        return DispatchPlan(EndpointKind.DRAFT, f"/{ws}/api/events/draft/{escaped}", authenticate=True)
    return DispatchPlan(EndpointKind.LIVE, f"/{ws}/events/{escaped}")


def _detail(body: Any) -> str:
    if isinstance(body, dict):
        for key in ("detail", "message", "error"):
            if key in body:
                value = body[key]
                if isinstance(value, dict):
                    return str(value.get("message", value))
                return str(value)
        return str(body)
    return str(body)


def write_response_file(path: str, data: Any, pretty: bool = True) -> None:
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2 if pretty else None, default=str)
            fh.write("\n")
    except OSError as exc:
        raise ResponseWriteError(f"write response {path}: {exc.strerror or exc}") from exc


class Dispatcher:
    """Sends a planned request through a :class:`RESTClient`."""

    def __init__(
        self,
        client: RESTClient,
        fail_on_http: Optional[int] = None,
        defaults: WebhookDefaults = DEFAULTS,
    ) -> None:
        self._client = client
        self.threshold = fail_on_http if fail_on_http and fail_on_http > 0 else defaults.fail_on_http

    def dispatch(
        self,
        plan: DispatchPlan,
        body: bytes,
        headers: Mapping[str, str],
        query: Optional[Mapping[str, str]] = None,
        save_response: Optional[str] = None,
    ) -> DispatchResult:
        """POST the request; raise :class:`APIError` at or above the threshold."""
        merged = dict(query or {})
        merged.update(plan.query)
        url = self._client.url_for(plan.path)

        logger.info("Sending webhook to %s endpoint %s", plan.kind.value, url)
        try:
            data, status = self._client.post(
                plan.path, merged, body, headers, authenticate=plan.authenticate
            )
        except TransportError as exc:
            if plan.kind is EndpointKind.VALIDATE:
                exc.code = "webhook_validate_failed"
            raise

        if save_response and plan.kind is not EndpointKind.VALIDATE:
            write_response_file(save_response, data)

        if status >= self.threshold:
            logger.warning("%s endpoint answered HTTP %d", plan.kind.value, status)
            err = APIError(status, _detail(data), data, endpoint=plan.kind.value, url=url)
            err.code = (
                "webhook_validate_failed" if plan.kind is EndpointKind.VALIDATE else "webhook_send_failed"
            )
            raise err
        return DispatchResult(status_code=status, data=data, endpoint=plan.kind, url=url)


def preview_request(
    url: str,
    headers: Mapping[str, str],
    query: Optional[Mapping[str, str]],
    body: bytes,
) -> Dict[str, Any]:
    """Describe a request without sending it; credential headers are redacted."""
    preview: Dict[str, Any] = {
        "method": "POST",
        "url": url,
        "headers": {
            name: redact(value) if name.lower() in _CREDENTIAL_HEADERS else value
            for name, value in headers.items()
        },
    }
    if query:
        preview["query"] = dict(query)
    try:
        preview["body"] = body.decode("utf-8")
    except UnicodeDecodeError:
        preview["body_base64"] = base64.b64encode(body).decode("ascii")
    preview["body_bytes"] = len(body)
    return preview
