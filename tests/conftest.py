"""
Pytest configuration and fixtures for photoquest tests.
"""

import io
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from PIL import Image

from photoquest.config import AppSettings, RemoteMediaSettings

REMOTE_ENV_VARS = [
    "CLOUDINARY_URL",
    "CLOUDINARY_CLOUD_NAME",
    "CLOUDINARY_API_KEY",
    "CLOUDINARY_API_SECRET",
    "GCS_PHOTOS_BUCKET",
    "GOOGLE_CLOUD_PROJECT",
]


def make_image(format_type: str = "JPEG", size: tuple[int, int] = (100, 100), mode: str = "RGB") -> bytes:
    """Create a test image in memory."""
    image = Image.new(mode, size, color="red")
    buffer = io.BytesIO()
    image.save(buffer, format=format_type)
    return buffer.getvalue()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def jpeg_data() -> bytes:
    """A 300x200 JPEG."""
    return make_image("JPEG", (300, 200))


@pytest.fixture
def png_data() -> bytes:
    """A 64x64 PNG with alpha channel."""
    return make_image("PNG", (64, 64), "RGBA")


@pytest.fixture
def photo_file(temp_dir: Path, jpeg_data: bytes) -> Path:
    """A JPEG written to disk, as the upload route leaves it."""
    path = temp_dir / "photo.jpg"
    path.write_bytes(jpeg_data)
    return path


@pytest.fixture
def cloudinary_settings() -> RemoteMediaSettings:
    return RemoteMediaSettings(
        provider="cloudinary",
        cloud_name="wedding",
        api_key="key",
        api_secret="secret",
    )


@pytest.fixture
def app_settings(temp_dir: Path) -> AppSettings:
    """Settings with local fallback only."""
    return AppSettings(upload_dir=temp_dir / "uploads")


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Start every test in local fallback mode with default structlog config."""
    monkeypatch.setenv("ENVIRONMENT", "testing")
    for name in REMOTE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()
