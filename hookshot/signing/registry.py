"""Signer registry mapping algorithm names to signer classes."""

from __future__ import annotations

import logging
from typing import Dict, List, Type

from hookshot.exceptions import ConfigurationError
from hookshot.signing.base import BaseSigner
from hookshot.signing.ecdsa_signer import EcdsaP256Signer
from hookshot.signing.hmac_signer import HmacSha256Signer

logger = logging.getLogger(__name__)


class SignerRegistry:
    """Maps algorithm names (case-insensitive) to :class:`BaseSigner` classes.

    Instantiate for an isolated registry (useful in tests) or use
    :data:`default_registry`, which knows ``hmac-sha256`` and ``ecdsa-p256``.
    """

    def __init__(self) -> None:
        self._signers: Dict[str, Type[BaseSigner]] = {}

    def register(self, signer_cls: Type[BaseSigner]) -> None:
        """Register a signer class. Uses ``signer_cls.algorithm`` as the key."""
        name = signer_cls.algorithm.lower().strip()
        if not name:
            raise ValueError("Signer class must have a non-empty 'algorithm' attribute")
        self._signers[name] = signer_cls
        logger.debug("Registered signer: %s", name)

    def get(self, algorithm: str) -> Type[BaseSigner]:
        """Look up a signer class. Raises ConfigurationError if unknown."""
        cls = self._signers.get(algorithm.lower().strip())
        if cls is None:
            raise ConfigurationError(
                f"unsupported signature algo: {algorithm}. Available: {self.list_algorithms()}",
                code="signature_invalid",
            )
        return cls

    def unregister(self, algorithm: str) -> bool:
        return self._signers.pop(algorithm.lower().strip(), None) is not None

    def has(self, algorithm: str) -> bool:
        return algorithm.lower().strip() in self._signers

    def list_algorithms(self) -> List[str]:
        return sorted(self._signers.keys())


default_registry = SignerRegistry()
default_registry.register(HmacSha256Signer)
default_registry.register(EcdsaP256Signer)
