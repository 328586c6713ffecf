"""Inject at most one credential scheme into request headers or query."""

from __future__ import annotations

import base64
import logging
from typing import Dict, Optional

from hookshot.config import DEFAULTS, WebhookDefaults
from hookshot.exceptions import ConfigurationError
from hookshot.models import ApiKeyAuth, AuthScheme, BasicAuth, BearerAuth

logger = logging.getLogger(__name__)

VALID_LOCATIONS = ("header", "query")


def resolve_auth_scheme(
    api_key: Optional[str] = None,
    bearer: Optional[str] = None,
    basic: Optional[str] = None,
    header_name: Optional[str] = None,
    location: Optional[str] = None,
    query_param: Optional[str] = None,
) -> Optional[AuthScheme]:
    """Build the single auth scheme selected by the options, or ``None``.

    Raises:
        ConfigurationError: if more than one credential is given, the API key
            location is unknown, or basic credentials lack a ``:``.
    """
    api_key = (api_key or "").strip()
    bearer = (bearer or "").strip()
    basic = (basic or "").strip()

    if sum(1 for value in (api_key, bearer, basic) if value) > 1:
        raise ConfigurationError("multiple auth options provided", code="auth_invalid")

    if api_key:
        loc = (location or "").strip().lower() or DEFAULTS.api_key_location
        if loc not in VALID_LOCATIONS:
            raise ConfigurationError(f"invalid api-key location: {location}", code="auth_invalid")
        name = (header_name if loc == "header" else query_param) or ""
        return ApiKeyAuth(key=api_key, location=loc, name=name.strip())
    if bearer:
        return BearerAuth(token=bearer)
    if basic:
        if ":" not in basic:
            raise ConfigurationError("basic auth must be in user:pass form", code="auth_invalid")
        return BasicAuth(credentials=basic)
    return None


def apply_auth(
    headers: Dict[str, str],
    query: Dict[str, str],
    scheme: Optional[AuthScheme],
    defaults: WebhookDefaults = DEFAULTS,
) -> None:
    """Write *scheme* into *headers* or *query* in place."""
    if scheme is None:
        return
    if isinstance(scheme, ApiKeyAuth):
        if scheme.location == "query":
            param = scheme.name or defaults.api_key_query_param
            query[param] = scheme.key
            logger.debug("API key placed in query parameter %s", param)
        else:
            name = scheme.name or defaults.api_key_header
            headers[name] = scheme.key
            logger.debug("API key placed in header %s", name)
    elif isinstance(scheme, BearerAuth):
        headers["Authorization"] = f"Bearer {scheme.token}"
    elif isinstance(scheme, BasicAuth):
        encoded = base64.b64encode(scheme.credentials.encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {encoded}"
        logger.debug("Basic auth for user %s", scheme.username)
    else:
        raise ConfigurationError(f"unsupported auth scheme: {type(scheme).__name__}", code="auth_invalid")


def apply_auth_flags(
    headers: Dict[str, str],
    query: Dict[str, str],
    api_key: Optional[str] = None,
    bearer: Optional[str] = None,
    basic: Optional[str] = None,
    header_name: Optional[str] = None,
    location: Optional[str] = None,
    query_param: Optional[str] = None,
    defaults: WebhookDefaults = DEFAULTS,
) -> Optional[AuthScheme]:
    scheme = resolve_auth_scheme(api_key, bearer, basic, header_name, location, query_param)
    apply_auth(headers, query, scheme, defaults)
    return scheme
