"""Offline self-check of a just-computed signature before anything is sent.

Only runs in validate-only mode and only when a public key is supplied.
Verification failures always raise; there is no boolean result to ignore.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from hookshot.exceptions import ConfigurationError, TimestampSkewError
from hookshot.models import SignaturePreview
from hookshot.signing.registry import SignerRegistry, default_registry

logger = logging.getLogger(__name__)

# Timestamps of up to this many characters are read as Unix seconds,
# longer ones as milliseconds.
SECONDS_MAX_DIGITS = 10


def parse_timestamp_ms(raw: str) -> int:
    """Parse a Unix timestamp and return it in milliseconds."""
    raw = (raw or "").strip()
    if not raw:
        raise TimestampSkewError("empty timestamp")
    if raw.startswith("+"):
        raw = raw[1:]
    try:
        value = int(raw)
    except ValueError as exc:
        raise TimestampSkewError(f"invalid timestamp: {raw!r}") from exc
    if len(raw) <= SECONDS_MAX_DIGITS:
        return value * 1000
    return value


def check_timestamp_skew(timestamp: str, max_skew_ms: int, now_ms: int) -> int:
    """Return the absolute skew in ms; raise if it exceeds *max_skew_ms*."""
    skew = abs(now_ms - parse_timestamp_ms(timestamp))
    if skew > max_skew_ms:
        raise TimestampSkewError(f"timestamp skew exceeds max ({max_skew_ms}ms)")
    return skew


class SignatureValidator:
    """Verifies a :class:`SignaturePreview` against a public key and clock."""

    def __init__(
        self,
        registry: SignerRegistry = default_registry,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry
        self._clock = clock

    def validate(
        self,
        validate_only: bool,
        preview: Optional[SignaturePreview],
        public_key_path: Optional[str] = None,
        timestamp_header: Optional[str] = None,
        timestamp_value: Optional[str] = None,
        max_skew_ms: int = 0,
    ) -> None:
        public_key_path = (public_key_path or "").strip()
        if not public_key_path:
            return
        if not validate_only:
            raise ConfigurationError(
                "sign-public-key requires validate-only", code="signature_validation_failed"
            )
        if preview is None:
            raise ConfigurationError(
                "signature preview missing; no signature was computed",
                code="signature_validation_failed",
            )

        signer_cls = self._registry.get(preview.algorithm)
        if not signer_cls.supports_public_key:
            raise ConfigurationError(
                f"sign-public-key only applies to asymmetric algorithms, not {preview.algorithm}",
                code="signature_validation_failed",
            )

        verifier = signer_cls.for_verification(public_key_path)
        verifier.verify(preview.message_bytes, preview.signature_bytes)
        logger.info("Verified %s signature with %s", preview.algorithm, public_key_path)

        if (timestamp_header or "").strip() and max_skew_ms > 0:
            timestamp = (timestamp_value or "").strip() or preview.timestamp
            if not timestamp:
                raise TimestampSkewError("missing timestamp for validation")
            now_ms = int(self._clock() * 1000)
            skew = check_timestamp_skew(timestamp, max_skew_ms, now_ms)
            logger.debug("Timestamp skew %dms within %dms", skew, max_skew_ms)


def validate_signature_preview(
    validate_only: bool,
    preview: Optional[SignaturePreview],
    public_key_path: Optional[str] = None,
    timestamp_header: Optional[str] = None,
    timestamp_value: Optional[str] = None,
    max_skew_ms: int = 0,
    validator: Optional[SignatureValidator] = None,
) -> None:
    (validator or SignatureValidator()).validate(
        validate_only, preview, public_key_path, timestamp_header, timestamp_value, max_skew_ms,
    )
