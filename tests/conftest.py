from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from hookshot.client import RESTClient

FIXED_NOW = 1_700_000_000.0


@pytest.fixture(autouse=True)
def _clear_hookshot_env(monkeypatch):
    """Keep the developer's HOOKSHOT_* environment out of the tests."""
    for name in (
        "HOOKSHOT_API_URL",
        "HOOKSHOT_WORKSPACE",
        "HOOKSHOT_TOKEN",
        "HOOKSHOT_TIMEOUT",
        "HOOKSHOT_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Key material
# ---------------------------------------------------------------------------


@dataclass
class KeyFiles:
    private_key: ec.EllipticCurvePrivateKey
    sec1_path: str
    pkcs8_path: str
    public_path: str


def _write_keypair(directory: Path, name: str) -> KeyFiles:
    key = ec.generate_private_key(ec.SECP256R1())
    sec1 = directory / f"{name}-sec1.pem"
    sec1.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        )
    )
    pkcs8 = directory / f"{name}-pkcs8.pem"
    pkcs8.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    public = directory / f"{name}-pub.pem"
    public.write_bytes(
        key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return KeyFiles(key, str(sec1), str(pkcs8), str(public))


@pytest.fixture()
def ec_keys(tmp_path: Path) -> KeyFiles:
    """A fresh P-256 key pair written as SEC1, PKCS8 and PKIX PEM files."""
    return _write_keypair(tmp_path, "signer")


@pytest.fixture()
def other_ec_keys(tmp_path: Path) -> KeyFiles:
    """A second, unrelated P-256 key pair."""
    return _write_keypair(tmp_path, "other")


@pytest.fixture()
def fixed_clock() -> Callable[[], float]:
    return lambda: FIXED_NOW


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class RecordingHandler:
    """httpx.MockTransport handler that records requests and returns a canned response."""

    def __init__(
        self,
        status_code: int = 200,
        json_body: Any = None,
        text: Optional[str] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.status_code = status_code
        self.json_body = {"ok": True} if json_body is None else json_body
        self.text = text
        self.error = error
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, content=json.dumps(self.json_body).encode())

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture()
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture()
def rest_client(handler: RecordingHandler):
    client = RESTClient(
        "http://testserver",
        token="tok-123",
        workspace_id="ws-acme",
        transport=httpx.MockTransport(handler),
    )
    yield client
    client.close()


@pytest.fixture()
def make_client():
    """Build RESTClients over arbitrary recording handlers; closed at teardown."""
    clients: List[RESTClient] = []

    def _make(handler: RecordingHandler, token: Optional[str] = "tok-123") -> RESTClient:
        client = RESTClient(
            "http://testserver",
            token=token,
            workspace_id="ws-acme",
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


@pytest.fixture()
def recording_handler_cls():
    return RecordingHandler
