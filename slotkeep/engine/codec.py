from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

from slotkeep.engine.cipher import KeyedTransform
from slotkeep.engine.models import DecodeResult
from slotkeep.engine.utils import strip_newlines

logger = logging.getLogger(__name__)


def parse_json_or_null(text: str) -> Any | None:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        logger.warning("JSON parse failed: %s", exc)
        return None


def encode_dict(data: dict[str, Any], transform: KeyedTransform | None = None) -> str:
    json_text = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    encoded = base64.b64encode(json_text.encode("utf-8")).decode("ascii")
    if transform is None:
        return encoded
    return transform.encode(encoded)


def decode_string(text: str, transform: KeyedTransform | None = None) -> DecodeResult:
    # Pasted export strings often pick up surrounding whitespace or wrapping.
    text = strip_newlines(text).strip()
    if transform is not None:
        text = transform.decode(text)

    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.warning("Import string is not valid base64: %s", exc)
        return DecodeResult(error="invalid base64")

    try:
        json_text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.warning("Import string does not decode to UTF-8: %s", exc)
        return DecodeResult(error="invalid utf-8")

    data = parse_json_or_null(json_text)
    if data is None:
        return DecodeResult(error="invalid json")
    if not isinstance(data, dict):
        logger.warning("Import string holds %s, expected an object", type(data).__name__)
        return DecodeResult(error="not an object")
    return DecodeResult(data=data)
