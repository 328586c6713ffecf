"""hookshot: build, sign, self-verify and send webhook requests."""

from hookshot.auth import apply_auth, apply_auth_flags, resolve_auth_scheme
from hookshot.client import RESTClient
from hookshot.config import DEFAULTS, AppConfig, WebhookDefaults, configure_logging
from hookshot.dispatcher import Dispatcher, EndpointKind, escape_path_segments, plan_dispatch
from hookshot.exceptions import (
    APIError,
    ConfigurationError,
    CryptoError,
    HookshotError,
    KeyReadError,
    PayloadParseError,
    PayloadReadError,
    ResponseWriteError,
    SignatureVerificationError,
    TimestampSkewError,
    TransportError,
    WebhookTimeoutError,
)
from hookshot.models import SignaturePreview, WebhookPayload
from hookshot.payload import build_payload, build_webhook_payload, resolve_payload_source
from hookshot.sender import SendResult, WebhookSendOptions, error_output, send_webhook
from hookshot.signing import SignatureEngine, SignatureValidator

__all__ = [
    "APIError",
    "AppConfig",
    "ConfigurationError",
    "CryptoError",
    "DEFAULTS",
    "Dispatcher",
    "EndpointKind",
    "HookshotError",
    "KeyReadError",
    "PayloadParseError",
    "PayloadReadError",
    "RESTClient",
    "ResponseWriteError",
    "SendResult",
    "SignatureEngine",
    "SignaturePreview",
    "SignatureValidator",
    "SignatureVerificationError",
    "TimestampSkewError",
    "TransportError",
    "WebhookDefaults",
    "WebhookPayload",
    "WebhookSendOptions",
    "WebhookTimeoutError",
    "apply_auth",
    "apply_auth_flags",
    "build_payload",
    "build_webhook_payload",
    "configure_logging",
    "error_output",
    "escape_path_segments",
    "plan_dispatch",
    "resolve_auth_scheme",
    "resolve_payload_source",
    "send_webhook",
]

__version__ = "0.1.0"
