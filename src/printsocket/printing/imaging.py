"""
Image Decoder
=============

Dedicated module for decoding base64 PNG/JPEG payloads into OpenCV matrices
and fitting them onto a printed page.

Design Rules:
    - This is the ONLY place in the codebase that decodes images
    - Base64 and image failures raise distinct exceptions
    - Validates shape and dtype
    - Returns BGR (what cv2.imencode expects for printing)
"""

import base64
import binascii
import logging
from dataclasses import dataclass

import cv2
import numpy as np


logger = logging.getLogger(__name__)

MM_PER_INCH = 25.4


class Base64DecodeError(Exception):
    """Raised when the image payload is not valid base64."""


class ImageDecodeError(Exception):
    """Raised when the decoded bytes are not a readable image."""


@dataclass(frozen=True)
class DecodedImage:
    """
    Image ready for printing.

    Attributes:
        pixels: BGR image as np.ndarray (H, W, 3), dtype=uint8
        display_name: Name shown in logs and as the print job title
    """

    pixels: np.ndarray
    display_name: str

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        return (
            f"DecodedImage(display_name={self.display_name!r}, "
            f"width={self.width}, height={self.height})"
        )


@dataclass(frozen=True)
class PageBounds:
    """Printable page size in device pixels."""

    width_px: int
    height_px: int

    @classmethod
    def from_paper(cls, width_mm: float, height_mm: float, dpi: int) -> "PageBounds":
        """Compute page bounds from paper size in millimetres and resolution."""
        return cls(
            width_px=max(1, round(width_mm / MM_PER_INCH * dpi)),
            height_px=max(1, round(height_mm / MM_PER_INCH * dpi)),
        )


def decode_base64(image_b64: str) -> bytes:
    """
    Decode a base64 payload.

    Whitespace (line breaks from MIME-style encoders) is ignored; any other
    non-alphabet character is an error.

    Raises:
        Base64DecodeError: If the payload is not valid base64
    """
    compact = "".join(image_b64.split())
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as e:
        raise Base64DecodeError(f"Invalid base64 image data: {e}") from e


def decode_image_bytes(image_bytes: bytes) -> np.ndarray:
    """
    Decode PNG/JPEG bytes to a BGR numpy array.

    Args:
        image_bytes: Encoded image file contents

    Returns:
        BGR image as np.ndarray (H, W, 3), dtype=uint8

    Raises:
        ImageDecodeError: If decoding fails or image is invalid
    """
    if not image_bytes:
        raise ImageDecodeError("Image data is empty")

    nparr = np.frombuffer(image_bytes, np.uint8)
    try:
        bgr = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise ImageDecodeError(f"Failed to decode image: {e}") from e

    if bgr is None:
        raise ImageDecodeError("Failed to decode image: unsupported or corrupt data")

    if len(bgr.shape) != 3 or bgr.shape[2] != 3:
        raise ImageDecodeError(f"Invalid image shape: {bgr.shape}")

    if bgr.dtype != np.uint8:
        raise ImageDecodeError(f"Invalid image dtype: {bgr.dtype}")

    return bgr


def decode_image(image_b64: str, display_name: str) -> DecodedImage:
    """
    Decode a base64-encoded PNG/JPEG into a DecodedImage.

    Raises:
        Base64DecodeError: If the payload is not valid base64
        ImageDecodeError: If the bytes are not a readable image
    """
    pixels = decode_image_bytes(decode_base64(image_b64))
    return DecodedImage(pixels=pixels, display_name=display_name)


def render_to_page(pixels: np.ndarray, bounds: PageBounds, fit: str = "stretch") -> np.ndarray:
    """
    Scale an image onto a page.

    Args:
        pixels: BGR source image
        bounds: Target page size
        fit: "stretch" fills the page (aspect ratio not kept);
            "contain" keeps aspect ratio and centres on a white page

    Returns:
        BGR image of exactly bounds.height_px x bounds.width_px
    """
    if fit == "stretch":
        return cv2.resize(pixels, (bounds.width_px, bounds.height_px), interpolation=cv2.INTER_LINEAR)

    if fit != "contain":
        raise ValueError(f"Unknown fit mode: {fit}")

    height, width = pixels.shape[:2]
    scale = min(bounds.width_px / width, bounds.height_px / height)
    scaled_w = max(1, int(width * scale))
    scaled_h = max(1, int(height * scale))
    scaled = cv2.resize(pixels, (scaled_w, scaled_h), interpolation=cv2.INTER_AREA)

    page = np.full((bounds.height_px, bounds.width_px, 3), 255, dtype=np.uint8)
    top = (bounds.height_px - scaled_h) // 2
    left = (bounds.width_px - scaled_w) // 2
    page[top:top + scaled_h, left:left + scaled_w] = scaled
    return page


def encode_png(pixels: np.ndarray) -> bytes:
    """Encode a BGR image as PNG bytes."""
    ok, buffer = cv2.imencode(".png", pixels)
    if not ok:
        raise ValueError("Failed to encode image as PNG")
    return buffer.tobytes()
