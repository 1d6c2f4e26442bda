"""Entry point for running the API as a module: python -m vpsdash."""

import sys

import uvicorn
from pydantic import ValidationError

from vpsdash.api.app import setup_logging
from vpsdash.settings import get_settings


def main() -> None:
    """Start the FastAPI server."""
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e.errors()[0]['msg']}", file=sys.stderr)
        sys.exit(1)
    setup_logging(settings.log_level)
    uvicorn.run(
        "vpsdash.api.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
