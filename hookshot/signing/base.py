"""Abstract base class for signature algorithms."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from hookshot.exceptions import ConfigurationError


class BaseSigner(ABC):
    """Common interface every signature algorithm must implement.

    Subclasses MUST set ``algorithm`` as a class attribute and implement
    :meth:`from_spec`, :meth:`sign` and :meth:`verify`.  Asymmetric
    algorithms set ``supports_public_key`` and implement
    :meth:`for_verification` so a public key can check a signature offline.
    """

    algorithm: str = ""
    supports_public_key: bool = False

    @classmethod
    @abstractmethod
    def from_spec(cls, spec: Any) -> "BaseSigner":
        """Build a signer from a resolved signature spec."""

    @classmethod
    def for_verification(cls, public_key_path: str) -> "BaseSigner":
        """Build a verify-only signer from a public key file."""
        raise ConfigurationError(
            f"public key verification is not defined for {cls.algorithm}",
            code="signature_validation_failed",
        )

    @abstractmethod
    def sign(self, message: bytes) -> bytes:
        """Return the raw signature over *message*."""

    @abstractmethod
    def verify(self, message: bytes, signature: bytes) -> None:
        """Raise ``SignatureVerificationError`` unless *signature* matches *message*."""
