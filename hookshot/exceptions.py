"""Exception hierarchy for webhook construction, signing and delivery."""

from __future__ import annotations

from typing import Any, Optional


class HookshotError(Exception):
    """Base exception for all hookshot errors."""

    code = "webhook_error"


class ConfigurationError(HookshotError):
    """Raised for conflicting or missing options, before any I/O."""

    code = "configuration_invalid"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        if code:
            self.code = code


class PayloadReadError(HookshotError):
    """Raised when a declared payload file cannot be read."""

    code = "payload_invalid"


class PayloadParseError(HookshotError):
    """Raised when a JSON payload cannot be decoded."""

    code = "payload_invalid"


class CryptoError(HookshotError):
    """Raised for unusable key material or a failed signing operation."""

    code = "signature_invalid"


class KeyReadError(CryptoError):
    """Raised when a key file cannot be read."""


class SignatureVerificationError(CryptoError):
    """Raised when a signature does not verify against its message."""

    code = "signature_validation_failed"


class TimestampSkewError(CryptoError):
    """Raised when a signed timestamp is missing, malformed or too old."""

    code = "signature_validation_failed"


class TransportError(HookshotError):
    """Raised when the request could not be delivered."""

    code = "webhook_send_failed"

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(f"{message} (url: {url})" if url else message)


class WebhookTimeoutError(TransportError):
    """Raised when the outbound request exceeds its deadline."""


class APIError(HookshotError):
    """Raised when the API answers with a status at or above the failure threshold."""

    code = "api_error"

    def __init__(
        self,
        status_code: int,
        detail: str,
        response_body: Any = None,
        endpoint: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.status_code = status_code
        self.detail = detail
        self.response_body = response_body if response_body is not None else {}
        self.endpoint = endpoint
        self.url = url
        super().__init__(f"HTTP {status_code}: {detail}")


class ResponseWriteError(HookshotError):
    """Raised when the decoded response cannot be saved to disk."""

    code = "response_write_failed"
