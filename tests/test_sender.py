"""End-to-end tests for send_webhook plus configuration and output helpers."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from pathlib import Path

import pydantic
import pytest

from hookshot import (
    AppConfig,
    ConfigurationError,
    SignatureVerificationError,
    WebhookSendOptions,
    send_webhook,
)
from hookshot.config import LOG_FORMAT, configure_logging, redact
from hookshot.exceptions import APIError, TransportError
from hookshot.sender import SendResult, error_output, parse_header_flags


@pytest.fixture()
def config(tmp_path: Path, monkeypatch) -> AppConfig:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOOKSHOT_API_URL", "http://testserver")
    monkeypatch.setenv("HOOKSHOT_WORKSPACE", "ws-acme")
    monkeypatch.setenv("HOOKSHOT_TOKEN", "tok-123")
    return AppConfig()


# ---------------------------------------------------------------------------
# send_webhook
# ---------------------------------------------------------------------------


class TestSendWebhook:

    def test_json_hmac_live_send(self, rest_client, handler, config):
        options = WebhookSendOptions(
            path="webhooks/orders",
            json_payload='{"orderId":"o-1"}',
            hmac_secret="shh",
            header_auth="X-Hook-Key",
            api_key="k-1",
            headers=["X-Trace: abc"],
        )
        result = send_webhook(options, client=rest_client, config=config)

        request = handler.last
        assert request.url.path == "/ws-acme/events/webhooks/orders"
        assert request.content == b'{"orderId":"o-1"}'
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["X-Trace"] == "abc"
        assert request.headers["X-Hook-Key"] == "k-1"
        assert "Authorization" not in request.headers
        expected = base64.b64encode(
            hmac.new(b"shh", b'{"orderId":"o-1"}', hashlib.sha256).digest()
        ).decode()
        assert request.headers["X-Signature"] == expected

        assert result.status_code == 200
        assert result.endpoint == "live"
        assert result.signature_algorithm == "hmac-sha256"
        assert result.input_map is None

    def test_custom_header_overrides_content_type(self, rest_client, handler, config):
        options = WebhookSendOptions(
            path="p", json_payload="{}", headers=["Content-Type: application/cloudevents+json"],
        )
        send_webhook(options, client=rest_client, config=config)
        assert handler.last.headers["Content-Type"] == "application/cloudevents+json"

    def test_api_key_in_query(self, rest_client, handler, config):
        options = WebhookSendOptions(
            path="p", json_payload="{}", api_key="k-1", api_key_location="query",
        )
        send_webhook(options, client=rest_client, config=config)
        assert handler.last.url.params["token"] == "k-1"

    def test_validate_only_with_public_key(self, rest_client, handler, config, ec_keys):
        options = WebhookSendOptions(
            path="orders",
            json_payload='{"a":1}',
            validate_only=True,
            draft=True,
            sign="ecdsa-p256",
            sign_private_key=ec_keys.sec1_path,
            sign_public_key=ec_keys.public_path,
            print_input_map=True,
        )
        result = send_webhook(options, client=rest_client, config=config)
        assert handler.last.url.path == "/ws-acme/api/events/validate/orders"
        assert handler.last.url.params["draft"] == "true"
        assert handler.last.headers["Authorization"] == "Bearer tok-123"
        assert result.endpoint == "validate"
        assert result.input_map is None

    def test_validate_only_mismatched_key_sends_nothing(
        self, rest_client, handler, config, ec_keys, other_ec_keys,
    ):
        options = WebhookSendOptions(
            path="orders",
            json_payload="{}",
            validate_only=True,
            sign="ecdsa-p256",
            sign_private_key=ec_keys.pkcs8_path,
            sign_public_key=other_ec_keys.public_path,
        )
        with pytest.raises(SignatureVerificationError):
            send_webhook(options, client=rest_client, config=config)
        assert handler.requests == []

    def test_persist_without_validate_rejected_before_io(self, rest_client, handler, config, tmp_path):
        options = WebhookSendOptions(
            path="orders", json_file=str(tmp_path / "missing.json"), persist_resources=True,
        )
        with pytest.raises(ConfigurationError) as exc_info:
            send_webhook(options, client=rest_client, config=config)
        assert exc_info.value.code == "persist_requires_validate_only"
        assert handler.requests == []

    def test_public_key_without_validate_rejected_before_io(self, rest_client, config, tmp_path):
        options = WebhookSendOptions(
            path="orders",
            raw_file=str(tmp_path / "missing.bin"),
            sign="ecdsa-p256",
            sign_private_key=str(tmp_path / "missing.pem"),
            sign_public_key=str(tmp_path / "missing-pub.pem"),
        )
        with pytest.raises(ConfigurationError, match="validate-only"):
            send_webhook(options, client=rest_client, config=config)

    def test_print_input_map(self, rest_client, config):
        options = WebhookSendOptions(
            path="orders", form_fields=["a=1", "b=2"], print_input_map=True,
        )
        result = send_webhook(options, client=rest_client, config=config)
        assert result.input_map == {"a": "1", "b": "2"}
        assert result.to_output()["input"] == {"a": "1", "b": "2"}

    def test_draft_without_token(self, rest_client, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        options = WebhookSendOptions(
            path="orders", workspace_id="ws", json_payload="{}", draft=True,
        )
        with pytest.raises(ConfigurationError) as exc_info:
            send_webhook(options, client=rest_client, config=AppConfig())
        assert exc_info.value.code == "api_auth_required"

    def test_http_failure(self, make_client, recording_handler_cls, config):
        client = make_client(recording_handler_cls(status_code=409, json_body={"detail": "duplicate"}))
        options = WebhookSendOptions(path="orders", json_payload="{}")
        with pytest.raises(APIError) as exc_info:
            send_webhook(options, client=client, config=config)
        out = error_output(exc_info.value)
        assert out["ok"] is False
        assert out["status"] == 409
        assert out["data"] == {"detail": "duplicate"}
        assert out["error"]["code"] == "webhook_send_failed"
        assert error_output(exc_info.value, quiet=True) == {"detail": "duplicate"}

    def test_signature_secret_not_in_logs(self, rest_client, config, caplog):
        caplog.set_level("DEBUG")
        options = WebhookSendOptions(path="orders", json_payload="{}", hmac_secret="very-secret-value")
        send_webhook(options, client=rest_client, config=config)
        assert "very-secret-value" not in caplog.text


# ---------------------------------------------------------------------------
# Options and output
# ---------------------------------------------------------------------------


class TestOptions:

    def test_strings_are_stripped(self):
        options = WebhookSendOptions(path="  orders  ", signature_prefix="sha256= ")
        assert options.path == "orders"
        assert options.signature_prefix == "sha256= "

    def test_unknown_option_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            WebhookSendOptions(nonsense=True)

    def test_negative_skew_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            WebhookSendOptions(timestamp_max_skew_ms=-1)

    def test_secrets_not_in_repr(self):
        options = WebhookSendOptions(hmac_secret="s3cret", token="t0ken", bearer="b3arer")
        text = repr(options)
        assert "s3cret" not in text
        assert "t0ken" not in text
        assert "b3arer" not in text


def test_parse_header_flags():
    assert parse_header_flags(["A: 1", "B:2", "A: 3", "C: x:y"]) == {"A": "3", "B": "2", "C": "x:y"}
    with pytest.raises(ConfigurationError) as exc_info:
        parse_header_flags(["no-colon"])
    assert exc_info.value.code == "invalid_header"


def test_send_result_output():
    result = SendResult(200, {"id": 1}, "live", "http://testserver/ws/events/o")
    assert result.to_output(quiet=True) == {"id": 1}
    assert result.to_output() == {
        "ok": True,
        "status": 200,
        "endpoint": "live",
        "url": "http://testserver/ws/events/o",
        "data": {"id": 1},
    }


def test_error_output_transport():
    err = TransportError("request failed: refused", url="http://testserver/x")
    out = error_output(err)
    assert out["url"] == "http://testserver/x"
    assert out["error"]["code"] == "webhook_send_failed"
    assert error_output(err, quiet=True) is None


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_app_config_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = AppConfig()
    assert cfg.api_url == "https://api.hookshot.dev"
    assert cfg.timeout == 30.0
    assert cfg.token == ""


def test_app_config_env_file(tmp_path, monkeypatch):
    env = tmp_path / "hookshot.env"
    env.write_text("HOOKSHOT_API_URL=http://local:8000/\nHOOKSHOT_TOKEN=abcdefghijkl\nHOOKSHOT_TIMEOUT=5\n")
    # Registers teardown so values loaded from the file are removed afterwards.
    for name in ("HOOKSHOT_API_URL", "HOOKSHOT_TOKEN", "HOOKSHOT_TIMEOUT"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    cfg = AppConfig(env_file=str(env))
    assert cfg.api_url == "http://local:8000"
    assert cfg.timeout == 5.0
    assert cfg.to_dict()["token"] == "abcd***kl"
    assert cfg.to_dict(redact_secrets=False)["token"] == "abcdefghijkl"


@pytest.mark.parametrize(
    "value, expected",
    [(None, "***"), ("", "***"), ("short", "***"), ("abcdefgh", "abcd***gh")],
)
def test_redact(value, expected):
    assert redact(value) == expected


def test_configure_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    configure_logging("debug")
    configure_logging("nonsense")
    assert calls[0] == {"level": logging.DEBUG, "format": LOG_FORMAT}
    assert calls[1]["level"] == logging.INFO
