"""HTTP surface for neurowave."""

from .app import create_app

__all__ = ["create_app"]
