"""
Unit tests for the image delivery middleware.
"""

import pytest
from starlette.applications import Starlette
from starlette.responses import JSONResponse, Response
from starlette.routing import Route
from starlette.testclient import TestClient

from photoquest.middleware.image_delivery import (
    CACHE_CONTROL,
    ImageDeliveryMiddleware,
    clamp_dimensions,
    is_image_path,
    negotiate_image_format,
    negotiated_content_type,
)


async def image_endpoint(request):
    return Response(b"\xff\xd8fake", media_type="image/png", headers={"Cache-Control": "no-cache"})


async def validated_image_endpoint(request):
    return Response(
        b"\xff\xd8fake",
        media_type="image/jpeg",
        headers={"ETag": '"abc123"', "Last-Modified": "Sat, 01 Jun 2024 10:00:00 GMT"},
    )


async def missing_image_endpoint(request):
    return JSONResponse({"message": "Photo not found"}, status_code=404)


async def guests_endpoint(request):
    return JSONResponse([{"name": "Jana"}], headers={"Cache-Control": "no-store"})


def build_client() -> TestClient:
    app = Starlette(
        routes=[
            Route("/img/{name}", image_endpoint),
            Route("/validated/{name}", validated_image_endpoint),
            Route("/missing/{name}", missing_image_endpoint),
            Route("/api/guests", guests_endpoint),
        ]
    )
    app.add_middleware(ImageDeliveryMiddleware)
    return TestClient(app)


class TestIsImagePath:
    """Test cases for the path matching rule."""

    @pytest.mark.parametrize(
        "path",
        ["/a.jpg", "/a.jpeg", "/a.png", "/a.webp", "/a.gif", "/a.heic", "/a.heif", "/A.JPG", "/x/y/Photo.HeIc"],
    )
    def test_matches_image_extensions(self, path):
        assert is_image_path(path) is True

    @pytest.mark.parametrize("path", ["/api/guests", "/a.jpg/info", "/a.svg", "/a.tiff", "/jpg", "/a.jpgx", "/"])
    def test_rejects_other_paths(self, path):
        assert is_image_path(path) is False


class TestNegotiation:
    """Test cases for Accept-based format negotiation."""

    @pytest.mark.parametrize(
        "accept,expected",
        [
            ("image/avif,image/webp,*/*", "avif"),
            ("image/webp,image/avif", "avif"),
            ("image/avif,*/*", "avif"),
            ("image/webp,*/*", "webp"),
            ("IMAGE/WEBP", "webp"),
            ("image/png,*/*", None),
            ("*/*", None),
            ("", None),
            (None, None),
        ],
    )
    def test_negotiate_image_format(self, accept, expected):
        assert negotiate_image_format(accept) == expected

    def test_negotiated_content_type(self):
        assert negotiated_content_type("image/avif") == "image/avif"
        assert negotiated_content_type("image/webp") == "image/webp"
        assert negotiated_content_type("text/html") is None


class TestClampDimensions:
    """Test cases for clamp_dimensions."""

    @pytest.mark.parametrize(
        "width,height,expected",
        [
            ("5000", "3000", (2048, 2048)),
            ("4096", "100", (2048, 100)),
            ("800", "600", (800, 600)),
            ("2048", "2048", (2048, 2048)),
            (3000, 10, (2048, 10)),
            ("300px", " 200", (300, 200)),
        ],
    )
    def test_clamps_to_ceiling(self, width, height, expected):
        assert clamp_dimensions(width, height) == expected

    def test_unspecified_dimensions_are_none(self):
        assert clamp_dimensions() == (None, None)
        assert clamp_dimensions("500", None) == (500, None)
        assert clamp_dimensions(None, "9000") == (None, 2048)

    @pytest.mark.parametrize("value", ["abc", "", "0", "-5"])
    def test_unusable_dimensions_are_none(self, value):
        assert clamp_dimensions(value, value) == (None, None)


class TestImageDeliveryMiddleware:
    """Test cases for ImageDeliveryMiddleware."""

    def setup_method(self):
        self.client = build_client()

    def test_avif_negotiation(self):
        response = self.client.get("/img/sample.png", headers={"Accept": "image/avif,*/*"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/avif"
        assert response.headers["cache-control"] == CACHE_CONTROL
        assert response.headers["cache-control"] == "public, max-age=31536000, immutable"

    def test_webp_negotiation(self):
        response = self.client.get("/img/sample.png", headers={"Accept": "image/webp,*/*"})

        assert response.headers["content-type"] == "image/webp"

    def test_original_type_kept(self):
        response = self.client.get("/img/sample.png", headers={"Accept": "image/png,*/*"})

        assert response.headers["content-type"] == "image/png"

    def test_caching_headers(self):
        response = self.client.get("/img/SAMPLE.JPG")

        assert response.headers["cache-control"] == CACHE_CONTROL
        assert response.headers["vary"] == "Accept-Encoding, Accept"
        assert response.headers["last-modified"].endswith("GMT")
        assert response.headers["etag"].startswith('W/"')

    def test_existing_cache_control_replaced_once(self):
        response = self.client.get("/img/sample.gif")

        assert response.headers.get_list("cache-control") == [CACHE_CONTROL]
        assert len(response.headers.get_list("content-type")) == 1

    def test_handler_validators_kept(self):
        response = self.client.get("/validated/sample.jpg", headers={"Accept": "image/webp"})

        assert response.headers["etag"] == '"abc123"'
        assert response.headers["last-modified"] == "Sat, 01 Jun 2024 10:00:00 GMT"
        assert response.headers["content-type"] == "image/webp"

    def test_headers_applied_whatever_the_status(self):
        response = self.client.get("/missing/sample.png", headers={"Accept": "image/avif,*/*"})

        assert response.status_code == 404
        assert response.headers["cache-control"] == CACHE_CONTROL
        assert response.headers["vary"] == "Accept-Encoding, Accept"
        assert response.headers["content-type"] == "image/avif"

    def test_non_image_passthrough(self):
        response = self.client.get("/api/guests", headers={"Accept": "image/avif,*/*"})

        assert response.status_code == 200
        assert response.headers["cache-control"] == "no-store"
        assert response.headers["content-type"] == "application/json"
        assert "vary" not in response.headers
        assert "etag" not in response.headers
        assert "last-modified" not in response.headers
        assert response.json() == [{"name": "Jana"}]

    def test_body_untouched(self):
        response = self.client.get("/img/sample.png", headers={"Accept": "image/avif"})

        assert response.content == b"\xff\xd8fake"

    def test_no_state_between_requests(self):
        """Each response is negotiated from its own Accept header."""
        first = self.client.get("/img/sample.png", headers={"Accept": "image/avif"})
        second = self.client.get("/img/sample.png", headers={"Accept": "image/png"})

        assert first.headers["content-type"] == "image/avif"
        assert second.headers["content-type"] == "image/png"
