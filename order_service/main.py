"""Main entry point for the Order Service."""

import uvicorn

from order_service.config import Settings
from order_service.server import app


def main():
    settings = Settings.from_env()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
