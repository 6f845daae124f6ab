"""Run the tracker API under uvicorn."""

from __future__ import annotations

import uvicorn

from clashtracker.backend.config import configure_logging, load_settings


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "clashtracker.backend.api:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
