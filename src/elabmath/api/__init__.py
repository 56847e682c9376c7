"""HTTP API for elabmath."""

from .app import create_app

__all__ = ["create_app"]
