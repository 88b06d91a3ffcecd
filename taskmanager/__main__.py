"""Serve the API: ``python -m taskmanager`` or the ``taskmanager`` console script."""
import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run("taskmanager.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
