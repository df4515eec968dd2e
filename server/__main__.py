"""Run the server: python -m server"""

import uvicorn

from helixrun.config import Settings
from server.app import configure_logging


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    # uvicorn builds the app through the factory
    uvicorn.run("server.app:create_app", factory=True, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
