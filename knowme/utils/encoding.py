"""Binary helpers for sending documents to multimodal models."""

from __future__ import annotations

import base64

# 3 bytes -> 4 base64 characters, so any multiple of 3 encodes without
# padding and windows can be concatenated directly.
BASE64_WINDOW_BYTES = 3 * 1024 * 8


def chunked_b64encode(data: bytes, window: int = BASE64_WINDOW_BYTES) -> str:
    """Base64-encode *data* in fixed windows and join the pieces.

    Produces exactly the same string as a single ``b64encode`` call while
    never holding more than one window's worth of intermediate output per
    step.
    """
    if window <= 0 or window % 3 != 0:
        raise ValueError("window must be a positive multiple of 3")
    view = memoryview(data)
    parts = [
        base64.b64encode(view[offset : offset + window]).decode("ascii")
        for offset in range(0, len(data), window)
    ]
    return "".join(parts)


def detect_media_type(data: bytes) -> str:
    """Detect the MIME type of an image from its magic bytes.

    PNG starts with: 89 50 4E 47 0D 0A 1A 0A
    GIF starts with: GIF87a / GIF89a
    WEBP starts with: RIFF....WEBP
    JPEG starts with: FF D8
    """
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:2] == b"\xff\xd8":
        return "image/jpeg"
    return "image/jpeg"


def to_data_uri(data: bytes, media_type: str) -> str:
    """Return ``data:<mime>;base64,<payload>`` for *data*."""
    return f"data:{media_type};base64,{chunked_b64encode(data)}"
