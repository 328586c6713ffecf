"""Signature algorithms, the signing engine and the pre-flight validator.

New algorithms subclass :class:`BaseSigner` and register with a
:class:`SignerRegistry`; the engine and validator look signers up by name.
"""

from hookshot.signing.base import BaseSigner
from hookshot.signing.ecdsa_signer import EcdsaP256Signer
from hookshot.signing.engine import (
    SignatureEngine,
    apply_signature_headers,
    decode_signature,
    encode_signature,
    resolve_signature_options,
)
from hookshot.signing.hmac_signer import HmacSha256Signer, hmac_sha256
from hookshot.signing.keystore import load_private_key, load_public_key
from hookshot.signing.registry import SignerRegistry, default_registry
from hookshot.signing.validator import (
    SignatureValidator,
    check_timestamp_skew,
    parse_timestamp_ms,
    validate_signature_preview,
)

__all__ = [
    "BaseSigner",
    "EcdsaP256Signer",
    "HmacSha256Signer",
    "SignatureEngine",
    "SignatureValidator",
    "SignerRegistry",
    "apply_signature_headers",
    "check_timestamp_skew",
    "decode_signature",
    "default_registry",
    "encode_signature",
    "hmac_sha256",
    "load_private_key",
    "load_public_key",
    "parse_timestamp_ms",
    "resolve_signature_options",
    "validate_signature_preview",
]
