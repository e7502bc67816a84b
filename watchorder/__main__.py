"""Module executed when running ``python -m watchorder``."""

import logging

import uvicorn

from watchorder.core.config import get_settings


def main() -> None:
    """Start the uvicorn server."""
    settings = get_settings()
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("watchorder.main:app", reload=settings.debug)


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
