"""Data model for webhook payloads, credentials and signatures.

Payload sources, auth schemes and signature specs are tagged variants: each
alternative is its own frozen dataclass, and the resolver functions in
``hookshot.payload``, ``hookshot.auth`` and ``hookshot.signing.engine`` build
exactly one of them (or ``None``) from raw option values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass
class WebhookPayload:
    """Wire-ready body plus a human-inspectable view of its inputs."""

    body: bytes
    content_type: str
    input_map: Dict[str, Any] = field(default_factory=dict)


@dataclass
class FilePart:
    """One file entry of a multipart body."""

    field: str
    path: str
    filename: str
    content_type: str
    size_bytes: int


@dataclass
class SignaturePreview:
    """What was signed and how, kept only for the pre-flight self-check."""

    algorithm: str
    signature_bytes: bytes
    message_bytes: bytes
    timestamp: str = ""


@dataclass
class TimestampBinding:
    """Header carrying the signed timestamp, its value and the allowed skew."""

    header_name: str = ""
    value: str = ""
    max_skew_ms: int = 0


# ---------------------------------------------------------------------------
# Payload sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JsonText:
    text: str


@dataclass(frozen=True)
class JsonFile:
    path: str


@dataclass(frozen=True)
class RawFile:
    path: str


@dataclass(frozen=True)
class FormSource:
    """Form fields and/or multipart files, in declaration order.

    ``files`` entries are ``(field, path, content_type_override)``.
    """

    fields: Tuple[Tuple[str, str], ...] = ()
    files: Tuple[Tuple[str, str, str], ...] = ()

    @property
    def is_multipart(self) -> bool:
        return bool(self.files)


PayloadSource = Union[JsonText, JsonFile, RawFile, FormSource]


# ---------------------------------------------------------------------------
# Auth schemes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ApiKeyAuth:
    key: str = field(repr=False)
    location: str = "header"
    name: str = ""


@dataclass(frozen=True)
class BearerAuth:
    token: str = field(repr=False)


@dataclass(frozen=True)
class BasicAuth:
    credentials: str = field(repr=False)

    @property
    def username(self) -> str:
        return self.credentials.split(":", 1)[0]


AuthScheme = Union[ApiKeyAuth, BearerAuth, BasicAuth]


# ---------------------------------------------------------------------------
# Signature specs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HmacSpec:
    secret: str = field(repr=False)
    algorithm: str = "hmac-sha256"


@dataclass(frozen=True)
class EcdsaSpec:
    private_key_path: str
    algorithm: str = "ecdsa-p256"


SignatureSpec = Union[HmacSpec, EcdsaSpec]


@dataclass(frozen=True)
class SignatureOptions:
    """A resolved signature spec plus how the result goes on the wire."""

    spec: SignatureSpec
    header_name: str = "X-Signature"
    encoding: str = "base64"
    prefix: str = ""

    @property
    def algorithm(self) -> str:
        return self.spec.algorithm


def split_key_value(raw: str) -> Optional[Tuple[str, str]]:
    """Split ``key=value`` at the first ``=``; ``None`` if either side is blank."""
    key, sep, value = raw.strip().partition("=")
    key, value = key.strip(), value.strip()
    if not sep or not key or not value:
        return None
    return key, value


def trim_items(items: Optional[List[str]]) -> List[str]:
    """Strip each item and drop the blank ones."""
    return [item.strip() for item in items or [] if item and item.strip()]
