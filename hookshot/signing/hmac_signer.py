"""HMAC-SHA256 signer (symmetric, deterministic)."""

from __future__ import annotations

import hashlib
import hmac

from hookshot.exceptions import ConfigurationError, SignatureVerificationError
from hookshot.models import HmacSpec
from hookshot.signing.base import BaseSigner


def hmac_sha256(secret: str, message: bytes) -> bytes:
    """Raw HMAC-SHA256 digest of *message* keyed with *secret*."""
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


class HmacSha256Signer(BaseSigner):
    algorithm = "hmac-sha256"

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ConfigurationError("missing secret for hmac-sha256", code="signature_invalid")
        self._secret = secret

    @classmethod
    def from_spec(cls, spec: HmacSpec) -> "HmacSha256Signer":
        return cls(spec.secret.strip())

    def sign(self, message: bytes) -> bytes:
        return hmac_sha256(self._secret, message)

    def verify(self, message: bytes, signature: bytes) -> None:
        if not hmac.compare_digest(self.sign(message), signature):
            raise SignatureVerificationError("hmac-sha256 signature verification failed")
