from __future__ import annotations

from .app import create_app, get_layer

__all__ = ["create_app", "get_layer"]
