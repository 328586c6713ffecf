"""Defaults and environment-driven configuration.

``WebhookDefaults`` is the explicit record of header names, content types and
encodings that the payload builder, auth injector, signature engine and
dispatcher read instead of inline literals.  ``AppConfig`` reads the process
environment (after loading ``.env`` via python-dotenv).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_API_URL = "https://api.hookshot.dev"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class WebhookDefaults:
    """Default names and values used when an option is left blank."""

    json_content_type: str = "application/json"
    raw_content_type: str = "application/octet-stream"
    form_content_type: str = "application/x-www-form-urlencoded"
    file_content_type: str = "application/octet-stream"
    api_key_header: str = "X-API-Key"
    api_key_location: str = "header"
    api_key_query_param: str = "token"
    signature_header: str = "X-Signature"
    signature_encoding: str = "base64"
    workspace_header: str = "X-Hookshot-Workspace"
    resource_placeholder: str = "resource://placeholder"
    fail_on_http: int = 400


DEFAULTS = WebhookDefaults()

_SECRET_KEYS = frozenset({"token"})


def redact(value: Optional[str]) -> str:
    """Mask a secret, keeping the first 4 and last 2 characters of long values."""
    if not value or len(value) < 8:
        return "***"
    return f"{value[:4]}***{value[-2:]}"


def configure_logging(level: str = "info") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )


class AppConfig:
    """Runtime configuration sourced from ``HOOKSHOT_*`` environment variables."""

    def __init__(self, env_file: Optional[str] = None) -> None:
        load_dotenv(dotenv_path=env_file)
        self.api_url = os.environ.get("HOOKSHOT_API_URL", DEFAULT_API_URL).strip().rstrip("/")
        self.workspace_id = os.environ.get("HOOKSHOT_WORKSPACE", "").strip()
        self.token = os.environ.get("HOOKSHOT_TOKEN", "").strip()
        self.timeout = float(os.environ.get("HOOKSHOT_TIMEOUT", DEFAULT_TIMEOUT))
        self.log_level = os.environ.get("HOOKSHOT_LOG_LEVEL", "info").strip().lower()

    def to_dict(self, redact_secrets: bool = True) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "api_url": self.api_url,
            "workspace_id": self.workspace_id,
            "token": self.token,
            "timeout": self.timeout,
            "log_level": self.log_level,
        }
        if redact_secrets:
            for key in _SECRET_KEYS:
                if data.get(key):
                    data[key] = redact(data[key])
        return data
