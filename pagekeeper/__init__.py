"""Shared package for the pagekeeper read-it-later service."""

from .environment import load_environment

# Load environment variables from .env-style files as soon as the package is
# imported so the CLI entry point, the FastAPI app and the tests all see the
# same settings.
load_environment()

__all__ = ["load_environment"]
