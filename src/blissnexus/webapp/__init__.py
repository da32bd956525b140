"""Flask JSON API for BlissNexus."""

from .app import create_app

__all__ = ["create_app"]
