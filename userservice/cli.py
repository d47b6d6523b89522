"""Command line entry for the user service."""

from __future__ import annotations

import uvicorn

from userservice.core.config import settings


def run_server() -> None:
    uvicorn.run(
        "userservice.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


def main() -> None:
    run_server()


if __name__ == "__main__":
    main()
