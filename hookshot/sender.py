"""End-to-end webhook send: build, authenticate, sign, self-check, dispatch.

All option conflicts are rejected before any file is read or request is
built.  Nothing is retried; every failure surfaces as a
:class:`~hookshot.exceptions.HookshotError` subclass with a ``code``.

Usage::

    options = WebhookSendOptions(
        path="webhooks/orders",
        workspace_id="ws-acme",
        json_payload='{"orderId": "o-1"}',
        hmac_secret="shh",
    )
    result = send_webhook(options)
    print(result.to_output(quiet=options.quiet))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from hookshot.auth import apply_auth, resolve_auth_scheme
from hookshot.client import RESTClient
from hookshot.config import DEFAULTS, AppConfig, WebhookDefaults
from hookshot.dispatcher import Dispatcher, plan_dispatch
from hookshot.exceptions import APIError, ConfigurationError, HookshotError, TransportError
from hookshot.models import TimestampBinding
from hookshot.payload import build_payload, resolve_payload_source
from hookshot.signing.engine import SignatureEngine, resolve_signature_options
from hookshot.signing.validator import SignatureValidator

logger = logging.getLogger(__name__)

# Kept verbatim: a prefix may legitimately end in whitespace.
_UNSTRIPPED_FIELDS = frozenset({"signature_prefix"})


class WebhookSendOptions(BaseModel):
    """Every option accepted by a webhook send."""

    model_config = ConfigDict(extra="forbid")

    # Target
    path: str = ""
    workspace_id: str = ""
    base_url: str = ""
    token: str = Field(default="", repr=False)
    draft: bool = False
    validate_only: bool = False
    persist_resources: bool = False

    # Payload
    json_payload: str = ""
    json_file: str = ""
    form_fields: List[str] = Field(default_factory=list)
    multipart_files: List[str] = Field(default_factory=list)
    raw_file: str = ""
    content_type: str = ""
    headers: List[str] = Field(default_factory=list)

    # Auth
    api_key: str = Field(default="", repr=False)
    bearer: str = Field(default="", repr=False)
    basic: str = Field(default="", repr=False)
    header_auth: str = ""
    api_key_location: str = "header"
    api_key_param: str = ""

    # Signature
    hmac_secret: str = Field(default="", repr=False)
    sign: str = ""
    sign_secret: str = Field(default="", repr=False)
    sign_private_key: str = ""
    sign_public_key: str = ""
    signature_header: str = DEFAULTS.signature_header
    signature_format: str = DEFAULTS.signature_encoding
    signature_prefix: str = ""
    timestamp_header: str = ""
    timestamp: str = ""
    timestamp_max_skew_ms: int = Field(default=0, ge=0)

    # Output
    quiet: bool = False
    fail_on_http: int = Field(default=0, ge=0)
    print_input_map: bool = False
    save_response: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str) and info.field_name not in _UNSTRIPPED_FIELDS:
            return value.strip()
        return value


def parse_header_flags(raw_headers: Optional[List[str]]) -> Dict[str, str]:
    """Parse ``Name: Value`` entries; later entries win."""
    headers: Dict[str, str] = {}
    for raw in raw_headers or []:
        name, sep, value = raw.partition(":")
        name = name.strip()
        if not sep or not name:
            raise ConfigurationError(f"invalid header: {raw}", code="invalid_header")
        headers[name] = value.strip()
    return headers


@dataclass
class SendResult:
    status_code: int
    data: Any
    endpoint: str
    url: str
    input_map: Optional[Dict[str, Any]] = None
    signature_algorithm: Optional[str] = None

    def to_output(self, quiet: bool = False) -> Any:
        """Quiet mode yields only the decoded response."""
        if quiet:
            return self.data
        out: Dict[str, Any] = {
            "ok": True,
            "status": self.status_code,
            "endpoint": self.endpoint,
            "url": self.url,
            "data": self.data,
        }
        if self.input_map is not None:
            out["input"] = self.input_map
        return out


def error_output(exc: HookshotError, quiet: bool = False) -> Any:
    """Render a failure; quiet mode yields only the decoded response, if any."""
    if quiet:
        return exc.response_body if isinstance(exc, APIError) else None
    error: Dict[str, Any] = {"code": exc.code, "message": str(exc)}
    out: Dict[str, Any] = {"ok": False, "error": error}
    if isinstance(exc, APIError):
        out["status"] = exc.status_code
        out["endpoint"] = exc.endpoint
        out["data"] = exc.response_body
    if isinstance(exc, (APIError, TransportError)) and exc.url:
        out["url"] = exc.url
    return out


def send_webhook(
    options: WebhookSendOptions,
    client: Optional[RESTClient] = None,
    config: Optional[AppConfig] = None,
    engine: Optional[SignatureEngine] = None,
    validator: Optional[SignatureValidator] = None,
    defaults: WebhookDefaults = DEFAULTS,
) -> SendResult:
    """Build, sign, self-check and send one webhook request."""
    config = config or AppConfig()
    token = options.token or config.token
    workspace_id = options.workspace_id or config.workspace_id
    base_url = (options.base_url or config.api_url).rstrip("/")
    if not base_url:
        raise ConfigurationError("missing base url", code="missing_base_url")

    # Configuration checks, no I/O yet.
    plan = plan_dispatch(
        workspace_id,
        options.path,
        draft=options.draft,
        validate_only=options.validate_only,
        persist_resources=options.persist_resources,
        session_token=token,
    )
    source = resolve_payload_source(
        options.json_payload,
        options.json_file,
        options.form_fields,
        options.multipart_files,
        options.raw_file,
    )
    custom_headers = parse_header_flags(options.headers)
    auth_scheme = resolve_auth_scheme(
        options.api_key,
        options.bearer,
        options.basic,
        options.header_auth,
        options.api_key_location,
        options.api_key_param,
    )
    signature_options = resolve_signature_options(
        options.hmac_secret,
        options.sign,
        options.sign_secret,
        options.sign_private_key,
        options.signature_header,
        options.signature_format,
        options.signature_prefix,
        defaults=defaults,
    )
    if options.sign_public_key and not options.validate_only:
        raise ConfigurationError(
            "sign-public-key requires validate-only", code="signature_validation_failed"
        )

    payload = build_payload(source, options.content_type, defaults)
    headers: Dict[str, str] = {"Content-Type": payload.content_type}
    headers.update(custom_headers)
    query: Dict[str, str] = {}
    apply_auth(headers, query, auth_scheme, defaults)

    binding = TimestampBinding(
        options.timestamp_header, options.timestamp, options.timestamp_max_skew_ms
    )
    preview = (engine or SignatureEngine()).sign(
        headers, payload.body, signature_options, binding.header_name, binding.value
    )
    (validator or SignatureValidator()).validate(
        options.validate_only,
        preview,
        options.sign_public_key,
        binding.header_name,
        binding.value,
        binding.max_skew_ms,
    )

    owns_client = client is None
    if client is None:
        client = RESTClient(base_url, token=token, workspace_id=workspace_id, timeout=config.timeout)
    try:
        dispatcher = Dispatcher(client, fail_on_http=options.fail_on_http, defaults=defaults)
        result = dispatcher.dispatch(
            plan, payload.body, headers, query, save_response=options.save_response or None
        )
    finally:
        if owns_client:
            client.close()

    show_input = options.print_input_map and not options.validate_only
    return SendResult(
        status_code=result.status_code,
        data=result.data,
        endpoint=result.endpoint.value,
        url=result.url,
        input_map=payload.input_map if show_input else None,
        signature_algorithm=preview.algorithm if preview else None,
    )
