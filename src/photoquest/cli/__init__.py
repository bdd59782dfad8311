"""Command line tools for the photoquest media pipeline."""
