"""
Test suite for the photoquest media pipeline.

- Unit tests for models, services and middleware
- Integration tests for upload and delivery through the HTTP app
"""
