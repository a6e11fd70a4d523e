#!/usr/bin/env python3
"""Mobile Chat Relay - run the API server."""

import uvicorn

from core.config import settings


def main() -> None:
    """Serve the relay with uvicorn."""
    uvicorn.run(
        "api.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.value.lower(),
        reload=settings.debug,
        proxy_headers=True,
    )


if __name__ == "__main__":
    main()
