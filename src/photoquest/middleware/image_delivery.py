"""Image delivery middleware.

Adds long-lived cache headers and Accept-based content-type negotiation to
responses for image paths. Uses raw ASGI (no BaseHTTPMiddleware) so file
responses keep streaming. Headers only; bytes are never touched here, so
whatever serves the image must already produce the negotiated format.
"""

import re
import time
from email.utils import formatdate
from typing import Callable

from ..models.media import MAX_DIMENSION

IMAGE_PATH = re.compile(r"\.(jpg|jpeg|png|webp|gif|heic|heif)$", re.IGNORECASE)

CACHE_CONTROL = "public, max-age=31536000, immutable"
VARY = "Accept-Encoding, Accept"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

_NEGOTIATED_TYPES = {
    "avif": "image/avif",
    "webp": "image/webp",
}


def is_image_path(path: str) -> bool:
    """True when the request path names an image file."""
    return bool(IMAGE_PATH.search(path))


def negotiate_image_format(accept: str | None) -> str | None:
    """Pick ``avif`` over ``webp`` from an Accept header; None keeps the original format."""
    if not accept:
        return None
    accept = accept.lower()
    if "image/avif" in accept:
        return "avif"
    if "image/webp" in accept:
        return "webp"
    return None


def negotiated_content_type(accept: str | None) -> str | None:
    """MIME type advertised for an Accept header, or None to leave Content-Type alone."""
    image_format = negotiate_image_format(accept)
    return _NEGOTIATED_TYPES.get(image_format) if image_format else None


def _parse_dimension(value: str | int | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None


def clamp_dimensions(width: str | int | None = None, height: str | int | None = None) -> tuple[int | None, int | None]:
    """
    Clamp requested resize dimensions to the 2048px ceiling.

    Query-string values are read like ``parseInt`` (``"300px"`` is 300).
    Missing or unparseable dimensions come back as None, never 0.
    """
    clamped = []
    for value in (width, height):
        parsed = _parse_dimension(value)
        if parsed is None or parsed < 1:
            clamped.append(None)
        else:
            clamped.append(min(parsed, MAX_DIMENSION))
    return clamped[0], clamped[1]


def _header(scope: dict, name: bytes) -> str | None:
    for key, value in scope.get("headers", []):
        if key.lower() == name:
            return value.decode("latin-1")
    return None


def ImageDeliveryMiddleware(app: Callable) -> Callable:
    """Set caching and negotiated Content-Type on image responses. Raw ASGI."""

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http" or not is_image_path(scope.get("path", "")):
            await app(scope, receive, send)
            return

        content_type = negotiated_content_type(_header(scope, b"accept"))

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                now = time.time()
                replaced = {b"cache-control", b"vary"}
                if content_type is not None:
                    replaced.add(b"content-type")

                headers = [(k, v) for k, v in message.get("headers", []) if k.lower() not in replaced]
                seen = {k.lower() for k, _ in headers}
                headers.append((b"cache-control", CACHE_CONTROL.encode()))
                headers.append((b"vary", VARY.encode()))
                if content_type is not None:
                    headers.append((b"content-type", content_type.encode()))
                # Handlers that know the asset set real validators; keep them
                if b"last-modified" not in seen:
                    headers.append((b"last-modified", formatdate(now, usegmt=True).encode()))
                if b"etag" not in seen:
                    headers.append((b"etag", f'W/"{int(now * 1000):x}"'.encode()))
                message["headers"] = headers
            await send(message)

        await app(scope, receive, send_wrapper)

    return asgi_app
