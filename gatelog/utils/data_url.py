"""
Helpers for data URLs (data:<mime>[;base64],<payload>).
Camera captures arrive as data URLs and evidence is handed back the same way,
so the caller can display it directly.
"""

import base64
import binascii
import re
from typing import Tuple
from urllib.parse import unquote_to_bytes

DEFAULT_MIME = "application/octet-stream"

_MIME_RE = re.compile(r"data:(.*?)(;|$)")


def is_data_url(value: str) -> bool:
    return isinstance(value, str) and value.startswith("data:") and "," in value


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a data URL into (mime_type, raw bytes).
    Raises ValueError if the string is not a decodable data URL.
    """
    if not is_data_url(data_url):
        raise ValueError("not a data URL")
    meta, body = data_url.split(",", 1)
    match = _MIME_RE.match(meta)
    mime = (match.group(1) if match else "") or DEFAULT_MIME
    if meta.endswith(";base64"):
        try:
            return mime, base64.b64decode(body, validate=True)
        except binascii.Error as e:
            raise ValueError(f"invalid base64 payload: {e}") from e
    return mime, unquote_to_bytes(body)


def to_data_url(mime_type: str, payload: bytes) -> str:
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME};base64,{encoded}"
