"""
photoquest - Photo ingestion and delivery for the wedding photo quest

- Photo upload with remote media storage (Cloudinary or Google Cloud Storage)
- Local filesystem fallback when the remote backend is absent or failing
- Image delivery with long-lived caching and AVIF/WebP negotiation
"""

__version__ = "0.1.0"
__author__ = "photoquest"
__description__ = "Photo ingestion and delivery for the wedding photo quest"
