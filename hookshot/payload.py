"""Build a webhook request body from exactly one payload source.

Supported sources:

- inline JSON text or a JSON file (body sent verbatim, decoded for ``input_map``)
- a raw file (body sent verbatim as ``application/octet-stream``)
- form fields, optionally with multipart file parts

Usage::

    payload = build_webhook_payload(json_payload='{"orderId": "o-1"}')
    payload.body, payload.content_type, payload.input_map
"""

from __future__ import annotations

import json
import logging
import mimetypes
import os
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

import httpx

from hookshot.config import DEFAULTS, WebhookDefaults
from hookshot.exceptions import ConfigurationError, PayloadParseError, PayloadReadError
from hookshot.models import (
    FilePart,
    FormSource,
    JsonFile,
    JsonText,
    PayloadSource,
    RawFile,
    WebhookPayload,
    split_key_value,
    trim_items,
)

logger = logging.getLogger(__name__)

_TYPE_MARKER = ";type="

# httpx only needs a URL to encode a multipart request; nothing is sent to it.
_ENCODER_URL = "http://multipart.invalid/"


# ---------------------------------------------------------------------------
# Source resolution
# ---------------------------------------------------------------------------


def resolve_payload_source(
    json_text: Optional[str] = None,
    json_file: Optional[str] = None,
    form_fields: Optional[List[str]] = None,
    multipart_files: Optional[List[str]] = None,
    raw_file: Optional[str] = None,
) -> PayloadSource:
    """Pick the single payload source selected by the options.

    Form fields and multipart files together count as one source.

    Raises:
        ConfigurationError: if zero or several sources are selected, or a
            ``key=value`` entry is malformed.
    """
    json_text = (json_text or "").strip()
    json_file = (json_file or "").strip()
    raw_file = (raw_file or "").strip()
    fields = trim_items(form_fields)
    files = trim_items(multipart_files)

    selected = sum(1 for value in (json_text, json_file, raw_file) if value)
    if files or fields:
        selected += 1
    if selected != 1:
        raise ConfigurationError("exactly one payload type is required", code="payload_invalid")

    if json_text:
        return JsonText(json_text)
    if json_file:
        return JsonFile(json_file)
    if raw_file:
        return RawFile(raw_file)
    return FormSource(
        fields=tuple(_parse_pair(raw) for raw in fields),
        files=tuple(_parse_file_entry(raw) for raw in files),
    )


def _parse_pair(raw: str) -> Tuple[str, str]:
    pair = split_key_value(raw)
    if pair is None:
        raise ConfigurationError(f"invalid key=value: {raw}", code="payload_invalid")
    return pair


def _parse_file_entry(raw: str) -> Tuple[str, str, str]:
    """Parse ``field=path`` with an optional ``;type=<mime>`` suffix."""
    content_type = ""
    if _TYPE_MARKER in raw:
        raw, _, content_type = raw.rpartition(_TYPE_MARKER)
        content_type = content_type.strip()
    key, path = _parse_pair(raw)
    return key, path, content_type


# ---------------------------------------------------------------------------
# Body construction
# ---------------------------------------------------------------------------


def build_payload(
    source: PayloadSource,
    content_type: Optional[str] = None,
    defaults: WebhookDefaults = DEFAULTS,
) -> WebhookPayload:
    """Turn a resolved source into body bytes, content type and input map."""
    override = (content_type or "").strip()

    if isinstance(source, JsonText):
        body = source.text.encode("utf-8")
        input_map = decode_json_input(body, "json payload")
        return WebhookPayload(body, override or defaults.json_content_type, input_map)

    if isinstance(source, JsonFile):
        body = _read_file(source.path, "json-file")
        input_map = decode_json_input(body, f"json-file {source.path}")
        return WebhookPayload(body, override or defaults.json_content_type, input_map)

    if isinstance(source, RawFile):
        body = _read_file(source.path, "raw-file")
        return WebhookPayload(body, override or defaults.raw_content_type, {})

    if isinstance(source, FormSource):
        if source.is_multipart:
            if override:
                raise ConfigurationError(
                    "content-type override is not supported with multipart payloads",
                    code="payload_invalid",
                )
            parts = [_stat_file_part(f, p, t, defaults) for f, p, t in source.files]
            return build_multipart_body(source.fields, parts, defaults)
        body = urlencode(list(source.fields)).encode("ascii")
        return WebhookPayload(
            body,
            override or defaults.form_content_type,
            group_fields(source.fields),
        )

    raise ConfigurationError(f"unsupported payload source: {type(source).__name__}")


def build_webhook_payload(
    json_payload: Optional[str] = None,
    json_file: Optional[str] = None,
    form_fields: Optional[List[str]] = None,
    multipart_files: Optional[List[str]] = None,
    raw_file: Optional[str] = None,
    content_type: Optional[str] = None,
    defaults: WebhookDefaults = DEFAULTS,
) -> WebhookPayload:
    """Resolve the payload source from raw options and build it."""
    source = resolve_payload_source(json_payload, json_file, form_fields, multipart_files, raw_file)
    payload = build_payload(source, content_type, defaults)
    logger.debug(
        "Built %s payload: %d bytes, content-type %s",
        type(source).__name__, len(payload.body), payload.content_type,
    )
    return payload


def decode_json_input(body: bytes, label: str = "json payload") -> Dict[str, Any]:
    """Decode JSON without losing numeric precision.

    A top-level object becomes the input map; any other value is wrapped
    as ``{"value": <decoded>}``.  An empty body yields ``{}``.
    """
    if not body.strip():
        return {}
    try:
        value = json.loads(body, parse_float=Decimal, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as exc:
        raise PayloadParseError(f"invalid {label}: {exc}") from exc
    if isinstance(value, dict):
        return value
    return {"value": value}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def group_fields(fields: Sequence[Tuple[str, str]]) -> Dict[str, Any]:
    """Collapse ordered pairs into a map; repeated keys become lists."""
    grouped: Dict[str, Any] = {}
    for key, value in fields:
        if key not in grouped:
            grouped[key] = value
        elif isinstance(grouped[key], list):
            grouped[key].append(value)
        else:
            grouped[key] = [grouped[key], value]
    return grouped


def build_multipart_body(
    fields: Sequence[Tuple[str, str]],
    parts: Sequence[FilePart],
    defaults: WebhookDefaults = DEFAULTS,
) -> WebhookPayload:
    """Encode form fields then file parts as ``multipart/form-data``.

    File entries in the input map are descriptors; the server assigns the
    real resource path after upload.
    """
    # Plain fields go in as filename-less parts so declaration order survives.
    entries: List[Tuple[str, Any]] = [
        (key, (None, value.encode("utf-8"))) for key, value in fields
    ]
    input_map: Dict[str, Any] = group_fields(fields)
    for part in parts:
        content = _read_file(part.path, "multipart file")
        entries.append((part.field, (part.filename, content, part.content_type)))
        input_map[part.field] = {
            "content-type": part.content_type,
            "filename": part.filename,
            "path": defaults.resource_placeholder,
            "size-bytes": part.size_bytes,
        }

    request = httpx.Request("POST", _ENCODER_URL, files=entries)
    body = request.read()
    return WebhookPayload(body, request.headers["Content-Type"], input_map)


def _stat_file_part(field: str, path: str, content_type: str, defaults: WebhookDefaults) -> FilePart:
    try:
        size = os.stat(path).st_size
    except OSError as exc:
        raise PayloadReadError(f"stat {path}: {exc.strerror or exc}") from exc
    filename = os.path.basename(path)
    if not content_type:
        content_type = mimetypes.guess_type(filename)[0] or defaults.file_content_type
    return FilePart(
        field=field,
        path=path,
        filename=filename,
        content_type=content_type,
        size_bytes=size,
    )


def _read_file(path: str, label: str) -> bytes:
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        raise PayloadReadError(f"read {label} {path}: {exc.strerror or exc}") from exc
