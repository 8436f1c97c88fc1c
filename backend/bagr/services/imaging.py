"""
Bagr Imaging Utilities
Handles photo sources, decoding to RGBA pixel buffers and remote fetches.
"""
import base64
import binascii
import io
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote_to_bytes, urlparse

import httpx
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from bagr.config import config


class PhotoSourceError(Exception):
    """Base class for photo acquisition failures."""
    pass


class PhotoDecodeError(PhotoSourceError):
    """Photo bytes are missing, unreadable or in an unsupported format."""
    pass


class PhotoAccessDenied(PhotoSourceError):
    """The photo source refused to hand over its pixels."""
    pass


@dataclass(frozen=True)
class RasterImage:
    """
    Decoded photo: RGBA pixels in row-major order.
    The pixel buffer is marked read-only on construction.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA pixels, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")
        self.pixels.flags.writeable = False

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def rgb(self) -> np.ndarray:
        """RGB channels as an (H, W, 3) view."""
        return self.pixels[:, :, :3]

    @classmethod
    def from_rgb(cls, rgb: np.ndarray) -> "RasterImage":
        """Build an opaque RasterImage from an (H, W, 3) uint8 array."""
        height, width = rgb.shape[:2]
        alpha = np.full((height, width, 1), 255, dtype=np.uint8)
        return cls(np.ascontiguousarray(np.concatenate([rgb.astype(np.uint8), alpha], axis=2)))


@dataclass(frozen=True)
class PhotoSource:
    """
    A user-supplied photo: uploaded bytes, a data URI or a remote URL.

    ``reference`` is what the caller stores when cropping is abandoned:
    the data URI of an upload, or the URL itself.
    """
    kind: str  # "upload", "data_uri" or "url"
    reference: str
    data: Optional[bytes] = None

    @classmethod
    def from_bytes(cls, data: bytes, content_type: Optional[str] = None) -> "PhotoSource":
        mime = sniff_mime_type(data) or content_type or "application/octet-stream"
        encoded = base64.b64encode(data).decode("ascii")
        return cls(kind="upload", reference=f"data:{mime};base64,{encoded}", data=data)

    @classmethod
    def from_reference(cls, reference: str) -> "PhotoSource":
        """Wrap a string the user pasted: a data URI or an image URL."""
        reference = reference.strip()
        if reference.startswith("data:"):
            return cls(kind="data_uri", reference=reference)
        return cls(kind="url", reference=reference)


def sniff_mime_type(file_bytes: bytes) -> Optional[str]:
    """
    Detect the image MIME type from magic bytes.

    Returns:
        MIME type string, or None if the bytes match no supported format
    """
    if file_bytes.startswith(b'\xff\xd8\xff'):
        return "image/jpeg"
    if file_bytes.startswith(b'\x89PNG\r\n\x1a\n'):
        return "image/png"
    if file_bytes[:6] in (b'GIF87a', b'GIF89a'):
        return "image/gif"
    if file_bytes[:4] == b'RIFF' and file_bytes[8:12] == b'WEBP':
        return "image/webp"
    return None


def decode_image_bytes(file_bytes: bytes) -> RasterImage:
    """
    Decode image bytes into an RGBA RasterImage.

    EXIF orientation is applied so the pixels match what a browser displays.

    Raises:
        PhotoDecodeError: for empty, corrupt or unsupported data
    """
    if not file_bytes:
        raise PhotoDecodeError("Empty image data")

    try:
        pil_image = Image.open(io.BytesIO(file_bytes))
        pil_image.load()
        pil_image = ImageOps.exif_transpose(pil_image)
        if pil_image.mode != 'RGBA':
            pil_image = pil_image.convert('RGBA')
        rgba = np.array(pil_image, dtype=np.uint8)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise PhotoDecodeError(f"Failed to decode image: {e}") from e

    return RasterImage(rgba)


def decode_data_uri(data_uri: str) -> bytes:
    """
    Extract the payload bytes of a ``data:`` URI.

    Raises:
        PhotoDecodeError: if the URI is malformed
    """
    if not data_uri.startswith("data:") or "," not in data_uri:
        raise PhotoDecodeError("Malformed data URI")

    header, payload = data_uri[5:].split(",", 1)
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise PhotoDecodeError(f"Invalid base64 payload: {e}") from e
    return unquote_to_bytes(payload)


def max_photo_bytes() -> int:
    return config.MAX_FILE_MB * 1024 * 1024


async def _read_limited(client: httpx.AsyncClient, url: str, timeout: float, max_bytes: int) -> bytes:
    async with client.stream("GET", url, timeout=timeout) as response:
        if response.status_code in (401, 403):
            raise PhotoAccessDenied(f"Access to {url} denied ({response.status_code})")
        if response.status_code >= 400:
            raise PhotoDecodeError(f"Fetching {url} returned {response.status_code}")

        declared = response.headers.get("Content-Length", "")
        if declared.isdigit() and int(declared) > max_bytes:
            raise PhotoDecodeError(f"Image at {url} is {declared} bytes, limit is {max_bytes}")

        body = bytearray()
        async for chunk in response.aiter_bytes():
            body.extend(chunk)
            if len(body) > max_bytes:
                raise PhotoDecodeError(f"Image at {url} exceeds {max_bytes} bytes")
        return bytes(body)


async def fetch_photo_bytes(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
    max_bytes: Optional[int] = None
) -> bytes:
    """
    Download a remote photo, reading at most max_bytes of body.

    Args:
        url: http(s) URL of the image
        client: Optional shared client (tests pass one with a mock transport)
        timeout: Request timeout in seconds (default from config)
        max_bytes: Body size limit (default MAX_FILE_MB)

    Raises:
        PhotoAccessDenied: for non-http(s) URLs and 401/403 responses
        PhotoDecodeError: for malformed URLs, network failures, oversized
            bodies and other error statuses
    """
    try:
        scheme = urlparse(url).scheme.lower()
    except ValueError as e:
        raise PhotoDecodeError(f"Malformed URL {url!r}: {e}") from e
    if scheme not in ("http", "https"):
        raise PhotoAccessDenied(f"Unsupported URL scheme: {scheme or '<none>'}")

    if timeout is None:
        timeout = config.FETCH_TIMEOUT_S
    if max_bytes is None:
        max_bytes = max_photo_bytes()

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned:
                return await _read_limited(owned, url, timeout, max_bytes)
        return await _read_limited(client, url, timeout, max_bytes)
    # Bad ports surface as OverflowError from the socket layer; InvalidURL is not an HTTPError
    except (httpx.HTTPError, httpx.InvalidURL, ValueError, OverflowError) as e:
        raise PhotoDecodeError(f"Failed to fetch {url}: {e}") from e


async def load_photo(
    source: PhotoSource,
    client: Optional[httpx.AsyncClient] = None
) -> RasterImage:
    """
    Acquire and decode the pixels of a photo source.

    This is the only suspend point of the pipeline; everything after it
    runs synchronously on the returned buffer.

    Raises:
        PhotoDecodeError, PhotoAccessDenied
    """
    if source.data is not None:
        file_bytes = source.data
    elif source.kind == "data_uri":
        file_bytes = decode_data_uri(source.reference)
    else:
        file_bytes = await fetch_photo_bytes(source.reference, client=client)

    if len(file_bytes) > max_photo_bytes():
        raise PhotoDecodeError(f"Image larger than {config.MAX_FILE_MB}MB")

    return decode_image_bytes(file_bytes)
