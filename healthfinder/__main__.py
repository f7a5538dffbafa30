"""Run the API server: python -m healthfinder (or the healthfinder-serve script)."""

import uvicorn

from healthfinder.config import settings


def serve() -> None:
    uvicorn.run(
        "healthfinder.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    serve()
