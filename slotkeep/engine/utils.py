from __future__ import annotations

import copy
from typing import Any


def clone_data(data: dict[str, Any]) -> dict[str, Any]:
    return copy.deepcopy(data)


def is_valid_index(index: Any, count: int) -> bool:
    # bool is an int subclass; True must not address slot 1
    if not isinstance(index, int) or isinstance(index, bool):
        return False
    return 0 <= index < count


def strip_newlines(text: str) -> str:
    return text.replace("\r\n", "").replace("\n", "").replace("\r", "")


def strip_newline_bytes(blob: bytes) -> bytes:
    return blob.replace(b"\r\n", b"").replace(b"\n", b"").replace(b"\r", b"")
