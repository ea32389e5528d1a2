"""
Main module entry point.

Runs the HTTP service: python -m predictcore.main
"""

import uvicorn

from predictcore.main.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "predictcore.main.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.service.port,
        reload=settings.service.reload,
    )


if __name__ == "__main__":
    main()
