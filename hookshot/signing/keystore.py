"""PEM key loading for the asymmetric signers.

Private keys may be SEC1 (``EC PRIVATE KEY``) or PKCS8 (``PRIVATE KEY``);
public keys are PKIX (``PUBLIC KEY``).  Only NIST P-256 keys are accepted.
Error messages name the file, never its contents.
"""

from __future__ import annotations

import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from hookshot.exceptions import CryptoError, KeyReadError

logger = logging.getLogger(__name__)


def _read_pem(path: str, kind: str) -> bytes:
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as exc:
        raise KeyReadError(f"read {kind} key {path}: {exc.strerror or exc}") from exc
    if b"-----BEGIN" not in data:
        raise CryptoError(f"invalid {kind} key PEM: {path}")
    return data


def _require_p256(key, kind: str, path: str) -> None:
    if not isinstance(key.curve, ec.SECP256R1):
        raise CryptoError(f"{kind} key {path} is not on curve P-256 (got {key.curve.name})")


def load_private_key(path: str) -> ec.EllipticCurvePrivateKey:
    """Load a P-256 private key from a PEM file (SEC1 or PKCS8)."""
    data = _read_pem(path, "private")
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except TypeError as exc:
        raise CryptoError(f"private key {path} is encrypted; provide an unencrypted key") from exc
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise CryptoError(f"parse private key {path}: unsupported or malformed PEM") from exc
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise CryptoError(f"private key {path} is not ECDSA")
    _require_p256(key, "private", path)
    logger.debug("Loaded EC private key from %s", path)
    return key


def load_public_key(path: str) -> ec.EllipticCurvePublicKey:
    """Load a P-256 public key from a PEM PKIX file."""
    data = _read_pem(path, "public")
    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise CryptoError(f"parse public key {path}: unsupported or malformed PEM") from exc
    if not isinstance(key, ec.EllipticCurvePublicKey):
        raise CryptoError(f"public key {path} is not ECDSA")
    _require_p256(key, "public", path)
    logger.debug("Loaded EC public key from %s", path)
    return key
