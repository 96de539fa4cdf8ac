"""``foodguard-serve``: run the FoodGuard API under uvicorn.

The dashboard and the ``foodguard`` CLI reach the server through ``FOODGUARD_API_URL``
(default ``http://localhost:8000``). A ``.env`` in the working directory is loaded first so
``FOODGUARD_*`` settings apply to the app as well as to the server's log level.
"""

from __future__ import annotations

from typing import Annotated

import typer
import uvicorn
from dotenv import load_dotenv

from foodguard.config import load_settings


def main(
    host: Annotated[str, typer.Option(help="Interface to bind; use 127.0.0.1 to keep the API local")] = "0.0.0.0",
    port: Annotated[int, typer.Option(help="Port the dashboard and CLI connect to")] = 8000,
    reload: Annotated[bool, typer.Option(help="Restart on source changes (development only)")] = False,
) -> None:
    """Serve the analysis, quick-analysis and chat endpoints."""

    load_dotenv()
    settings = load_settings()
    uvicorn.run(
        "foodguard.api.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def run() -> None:
    typer.run(main)


if __name__ == "__main__":
    run()
