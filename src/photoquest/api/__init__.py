"""HTTP API for photo upload and delivery."""

from .app import create_app

__all__ = ["create_app"]
