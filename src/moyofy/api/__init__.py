from __future__ import annotations

from moyofy.api.app import create_app

__all__ = ["create_app"]
