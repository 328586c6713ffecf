"""ECDSA over NIST P-256 with SHA-256, ASN.1/DER signatures.

Signing draws a fresh nonce from the OpenSSL CSPRNG on every call, so the
same message never yields the same signature twice.  Check results with
:meth:`EcdsaP256Signer.verify`, not by comparing bytes.
"""

from __future__ import annotations

from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec

from hookshot.exceptions import ConfigurationError, CryptoError, SignatureVerificationError
from hookshot.models import EcdsaSpec
from hookshot.signing.base import BaseSigner
from hookshot.signing.keystore import load_private_key, load_public_key


class EcdsaP256Signer(BaseSigner):
    algorithm = "ecdsa-p256"
    supports_public_key = True

    def __init__(
        self,
        private_key: Optional[ec.EllipticCurvePrivateKey] = None,
        public_key: Optional[ec.EllipticCurvePublicKey] = None,
    ) -> None:
        if private_key is None and public_key is None:
            raise ConfigurationError("ecdsa-p256 needs a private or public key")
        self._private_key = private_key
        self._public_key = public_key or private_key.public_key()

    @classmethod
    def from_spec(cls, spec: EcdsaSpec) -> "EcdsaP256Signer":
        path = spec.private_key_path.strip()
        if not path:
            raise ConfigurationError("missing private key for ecdsa-p256", code="signature_invalid")
        return cls(private_key=load_private_key(path))

    @classmethod
    def for_verification(cls, public_key_path: str) -> "EcdsaP256Signer":
        return cls(public_key=load_public_key(public_key_path))

    def sign(self, message: bytes) -> bytes:
        if self._private_key is None:
            raise CryptoError("ecdsa-p256 signer has no private key")
        try:
            return self._private_key.sign(message, ec.ECDSA(hashes.SHA256()))
        except ValueError as exc:
            raise CryptoError(f"sign ecdsa: {exc}") from exc

    def verify(self, message: bytes, signature: bytes) -> None:
        try:
            self._public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
        except InvalidSignature as exc:
            raise SignatureVerificationError("ecdsa signature verification failed") from exc
