# Use: python -m batepapo
import uvicorn

from .app import create_app
from .config import Settings
from .log import configure_logging


def main():
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == '__main__':
    main()
