"""FastAPI server entry point for World Chat."""

import uvicorn

from .config import get_settings


def main():
    """Run the FastAPI server."""
    settings = get_settings()

    uvicorn.run(
        "worldchat.app:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()
