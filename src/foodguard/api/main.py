"""ASGI entrypoint."""

from __future__ import annotations

from foodguard.api.app import create_app

app = create_app()
