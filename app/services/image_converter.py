# app/services/image_converter.py
"""
Image reference helpers: data URLs, remote URLs and already-hosted URLs
all end up as raw bytes plus a content type.
"""

import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote_to_bytes, urlparse

import httpx
from PIL import Image

from app.core.config import settings
from app.core.errors import (
    ImageFetchError,
    MalformedDataUrlError,
    UnsupportedImageTypeError,
)

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/png"

# Accepted upload types (image/jpg is a common browser alias)
ACCEPTED_UPLOAD_TYPES = ("image/jpeg", "image/png", "image/jpg")

# Shown in the upload UI; not enforced
ADVISORY_MAX_UPLOAD_MB = 50

EXTENSION_TO_MIME = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
}

MIME_TO_EXTENSION = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}

_SUFFIX_RE = re.compile(r"\.([a-zA-Z0-9]+)$")


@dataclass
class ResolvedBlob:
    content: bytes
    content_type: str


def _url_suffix(url: str) -> Optional[str]:
    if not url or url.startswith("data:"):
        return None
    path = urlparse(url).path or url
    match = _SUFFIX_RE.search(path)
    return match.group(1).lower() if match else None


def mime_type_from_url(url: str) -> str:
    """Guess a content type from a data URL prefix or a file extension."""
    if url.startswith("data:"):
        header = url[5:].split(",", 1)[0]
        declared = header.split(";", 1)[0].strip()
        return declared or DEFAULT_CONTENT_TYPE
    return EXTENSION_TO_MIME.get(_url_suffix(url) or "", DEFAULT_CONTENT_TYPE)


def get_image_extension(content_type: str, url: str = "") -> str:
    """Extension for a stored image: content type, then URL suffix, then png."""
    base_type = (content_type or "").split(";", 1)[0].strip().lower()
    if base_type in MIME_TO_EXTENSION:
        return MIME_TO_EXTENSION[base_type]
    suffix = _url_suffix(url)
    if suffix in EXTENSION_TO_MIME:
        return "jpg" if suffix == "jpeg" else suffix
    return "png"


def parse_data_url(data_url: str) -> ResolvedBlob:
    """
    Decode an inline data URL.

    Raises:
        MalformedDataUrlError: no "data:" prefix, no separator, or bad base64.
    """
    if not data_url.startswith("data:"):
        raise MalformedDataUrlError("Not a data URL")
    header, sep, payload = data_url[5:].partition(",")
    if not sep:
        raise MalformedDataUrlError("Invalid data URL format")

    content_type = header.split(";", 1)[0].strip() or DEFAULT_CONTENT_TYPE
    try:
        if ";base64" in header:
            content = base64.b64decode(payload, validate=True)
        else:
            content = unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise MalformedDataUrlError(f"Invalid data URL payload: {e}") from e
    return ResolvedBlob(content=content, content_type=content_type)


def extract_base64(data_url: str) -> str:
    """Strip the "data:...," header and return the raw base64 payload."""
    comma = data_url.find(",")
    if comma == -1:
        raise MalformedDataUrlError("Invalid data URL format")
    return data_url[comma + 1:]


def to_data_url(content: bytes, content_type: str = DEFAULT_CONTENT_TYPE) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def encode_upload(content: bytes, filename: str = "", content_type: str = "") -> str:
    """
    Base64-encode an uploaded floor plan the way the browser's FileReader does.

    Raises:
        UnsupportedImageTypeError: content type outside ACCEPTED_UPLOAD_TYPES.
    """
    content_type = (content_type or mime_type_from_url(filename)).lower()
    if content_type not in ACCEPTED_UPLOAD_TYPES:
        raise UnsupportedImageTypeError(
            f"Unsupported file type {content_type!r}; use JPG or PNG"
        )
    if content_type == "image/jpg":
        content_type = "image/jpeg"
    return to_data_url(content, content_type)


async def fetch_blob_from_url(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
) -> ResolvedBlob:
    """
    Resolve an image reference to bytes and a content type.

    Data URLs are decoded without touching the network. Anything else is
    fetched once; failures are raised, not retried.

    Raises:
        ImageFetchError: transport failure or non-2xx response.
        MalformedDataUrlError: broken inline data URL.
    """
    if url.startswith("data:"):
        return parse_data_url(url)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(
            timeout=settings.http_timeout_seconds, follow_redirects=True
        )
    try:
        try:
            response = await client.get(url)
        except httpx.HTTPError as e:
            raise ImageFetchError(url, f"Failed to fetch image: {e}") from e

        if not response.is_success:
            raise ImageFetchError(
                url,
                f"Failed to fetch image: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        header_type = response.headers.get("content-type", "").split(";", 1)[0].strip()
        suffix = _url_suffix(url)
        content_type = (
            header_type
            or (EXTENSION_TO_MIME.get(suffix) if suffix else None)
            or DEFAULT_CONTENT_TYPE
        )
        return ResolvedBlob(content=response.content, content_type=content_type)
    finally:
        if owns_client:
            await client.aclose()


async def fetch_as_data_url(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    if url.startswith("data:"):
        return url
    blob = await fetch_blob_from_url(url, client=client)
    return to_data_url(blob.content, blob.content_type)


def reencode_as_png(content: bytes) -> bytes:
    """Decode any Pillow-readable image and write it back out as PNG."""
    with Image.open(io.BytesIO(content)) as img:
        if img.mode not in ("RGB", "RGBA", "L", "LA"):
            img = img.convert("RGBA")
        out = io.BytesIO()
        img.save(out, format="PNG")
        return out.getvalue()


async def image_url_to_png_blob(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[ResolvedBlob]:
    """
    Re-render an image reference as PNG.

    Returns None when the bytes are not a decodable image; fetch errors
    propagate like fetch_blob_from_url.
    """
    blob = await fetch_blob_from_url(url, client=client)
    try:
        png = reencode_as_png(blob.content)
    except (OSError, ValueError) as e:
        logger.warning("[IMAGES] Could not re-encode %s as PNG: %s", url[:80], e)
        return None
    return ResolvedBlob(content=png, content_type="image/png")
