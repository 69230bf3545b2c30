"""Photo payloads: data-URI parsing and image decoding."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

import cv2
import numpy as np

# Encoded (base64) payloads above this size skip the recognition call.
MAX_ENCODED_BYTES = 500 * 1024

_DATA_URI = re.compile(
    r"^data:(?P<media>image/[a-zA-Z0-9.+-]+);base64,(?P<data>[A-Za-z0-9+/=\s]+)$"
)


@dataclass(frozen=True)
class PhotoPayload:
    """A decoded photo submitted as a data URI."""

    media_type: str
    base64_data: str

    @property
    def encoded_size(self) -> int:
        return len(self.base64_data)

    @property
    def is_oversized(self) -> bool:
        return self.encoded_size > MAX_ENCODED_BYTES

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.base64_data)

    def to_data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.base64_data}"

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str = "image/jpeg") -> PhotoPayload:
        return cls(
            media_type=media_type,
            base64_data=base64.b64encode(data).decode("ascii"),
        )


def parse_data_uri(uri: str) -> PhotoPayload:
    """Parse ``data:image/<type>;base64,<data>`` into a PhotoPayload.

    Raises
    ------
    ValueError
        If the string is not an image data URI or its payload is not
        valid base64.
    """
    if not isinstance(uri, str) or not uri.startswith("data:image/"):
        msg = "expected a data:image/... URI"
        raise ValueError(msg)
    match = _DATA_URI.match(uri)
    if match is None:
        msg = "malformed image data URI"
        raise ValueError(msg)
    data = re.sub(r"\s+", "", match.group("data"))
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = "image data is not valid base64"
        raise ValueError(msg) from exc
    return PhotoPayload(media_type=match.group("media"), base64_data=data)


def decode_image(data: bytes) -> np.ndarray:
    """Decode encoded image bytes into a BGR array.

    Raises
    ------
    ValueError
        If OpenCV cannot decode the bytes.
    """
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if image is None:
        msg = "could not decode image bytes"
        raise ValueError(msg)
    return image


def guess_media_type(data: bytes) -> str:
    """Sniff PNG/JPEG magic bytes, defaulting to JPEG."""
    if data.startswith(b"\x89PNG"):
        return "image/png"
    return "image/jpeg"
