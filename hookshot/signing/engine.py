"""Compute and attach a request signature, optionally bound to a timestamp.

With a timestamp header configured the signed message is the timestamp's
bytes followed directly by the body (no delimiter); otherwise it is the
body alone.
"""

from __future__ import annotations

import base64
import binascii
import logging
import time
from typing import Callable, Dict, Optional

from hookshot.config import DEFAULTS, WebhookDefaults
from hookshot.exceptions import ConfigurationError
from hookshot.models import EcdsaSpec, HmacSpec, SignatureOptions, SignaturePreview
from hookshot.signing.registry import SignerRegistry, default_registry

logger = logging.getLogger(__name__)

VALID_ENCODINGS = ("base64", "hex")
_ALGO_PREFIX = "algo:"


def encode_signature(raw: bytes, encoding: str = "base64") -> str:
    if encoding == "hex":
        return raw.hex()
    return base64.b64encode(raw).decode("ascii")


def decode_signature(text: str, encoding: str = "base64") -> bytes:
    """Inverse of :func:`encode_signature`."""
    try:
        if encoding == "hex":
            return bytes.fromhex(text)
        return base64.b64decode(text, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise ConfigurationError(f"invalid {encoding} signature: {exc}") from exc


def normalize_encoding(encoding: Optional[str], defaults: WebhookDefaults = DEFAULTS) -> str:
    value = (encoding or "").strip().lower() or defaults.signature_encoding
    if value not in VALID_ENCODINGS:
        raise ConfigurationError(f"invalid signature-format: {encoding}", code="signature_invalid")
    return value


def resolve_signature_options(
    hmac_secret: Optional[str] = None,
    sign: Optional[str] = None,
    sign_secret: Optional[str] = None,
    private_key_path: Optional[str] = None,
    header_name: Optional[str] = None,
    encoding: Optional[str] = None,
    prefix: Optional[str] = None,
    registry: SignerRegistry = default_registry,
    defaults: WebhookDefaults = DEFAULTS,
) -> Optional[SignatureOptions]:
    """Resolve signature options, or ``None`` when no algorithm is selected.

    ``hmac_secret`` is a shortcut for ``sign="hmac-sha256"`` plus a secret,
    so it cannot be combined with ``sign``.

    Raises:
        ConfigurationError: for conflicting options, an unknown algorithm or
            encoding, or a missing secret / private key path.
    """
    hmac_secret = (hmac_secret or "").strip()
    sign = (sign or "").strip()
    if hmac_secret and sign:
        raise ConfigurationError("hmac-secret cannot be combined with sign", code="signature_invalid")

    algorithm = sign
    secret = (sign_secret or "").strip()
    if hmac_secret:
        algorithm = "hmac-sha256"
        secret = hmac_secret
    if not algorithm:
        return None

    if algorithm.startswith(_ALGO_PREFIX):
        algorithm = algorithm[len(_ALGO_PREFIX):]
    algorithm = algorithm.strip().lower()
    if not algorithm:
        raise ConfigurationError("invalid sign value", code="signature_invalid")

    encoding = normalize_encoding(encoding, defaults)
    header_name = (header_name or "").strip() or defaults.signature_header

    signer_cls = registry.get(algorithm)
    if signer_cls.algorithm == "hmac-sha256":
        if not secret:
            raise ConfigurationError("missing sign-secret for hmac-sha256", code="signature_invalid")
        spec = HmacSpec(secret=secret)
    elif signer_cls.algorithm == "ecdsa-p256":
        key_path = (private_key_path or "").strip()
        if not key_path:
            raise ConfigurationError("missing sign-private-key for ecdsa-p256", code="signature_invalid")
        spec = EcdsaSpec(private_key_path=key_path)
    else:
        raise ConfigurationError(f"unsupported signature algo: {algorithm}", code="signature_invalid")

    return SignatureOptions(spec=spec, header_name=header_name, encoding=encoding, prefix=prefix or "")


class SignatureEngine:
    """Signs payloads and writes the signature (and timestamp) headers."""

    def __init__(
        self,
        registry: SignerRegistry = default_registry,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry
        self._clock = clock

    def sign(
        self,
        headers: Dict[str, str],
        body: bytes,
        options: Optional[SignatureOptions],
        timestamp_header: Optional[str] = None,
        timestamp_value: Optional[str] = None,
    ) -> Optional[SignaturePreview]:
        """Sign *body*, mutate *headers*, and return a preview for self-checks.

        Returns ``None`` when *options* is ``None``; signing is optional.
        """
        if options is None:
            return None

        timestamp_header = (timestamp_header or "").strip()
        timestamp = (timestamp_value or "").strip()
        message = body
        if timestamp_header:
            if not timestamp:
                timestamp = str(int(self._clock()))
            headers[timestamp_header] = timestamp
            message = timestamp.encode("utf-8") + body
        elif timestamp:
            raise ConfigurationError("timestamp requires timestamp-header", code="signature_invalid")

        signer = self._registry.get(options.algorithm).from_spec(options.spec)
        raw = signer.sign(message)

        encoded = encode_signature(raw, options.encoding)
        if options.prefix:
            encoded = options.prefix + encoded
        if encoded:
            headers[options.header_name] = encoded

        logger.info(
            "Signed %d-byte message with %s into header %s%s",
            len(message), options.algorithm, options.header_name,
            f" (timestamp header {timestamp_header})" if timestamp_header else "",
        )
        return SignaturePreview(
            algorithm=options.algorithm,
            signature_bytes=raw,
            message_bytes=message,
            timestamp=timestamp,
        )


def apply_signature_headers(
    headers: Dict[str, str],
    body: bytes,
    hmac_secret: Optional[str] = None,
    sign: Optional[str] = None,
    sign_secret: Optional[str] = None,
    private_key_path: Optional[str] = None,
    header_name: Optional[str] = None,
    encoding: Optional[str] = None,
    prefix: Optional[str] = None,
    timestamp_header: Optional[str] = None,
    timestamp_value: Optional[str] = None,
    engine: Optional[SignatureEngine] = None,
) -> Optional[SignaturePreview]:
    options = resolve_signature_options(
        hmac_secret, sign, sign_secret, private_key_path, header_name, encoding, prefix,
    )
    return (engine or SignatureEngine()).sign(headers, body, options, timestamp_header, timestamp_value)
