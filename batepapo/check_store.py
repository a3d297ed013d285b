"""Connectivity check for the document store used by the backend.
Run this after starting MongoDB to verify the configured DATABASE_URL works:

    python -m batepapo.check_store
"""
import asyncio
import logging
import sys

from .config import Settings
from .exceptions import StoreError
from .log import configure_logging
from .store import Store

logger = logging.getLogger(__name__)


async def check(store: Store) -> bool:
    try:
        collections = await store.ping()
    except StoreError as e:
        logger.error('connection failed: %s', e.message)
        return False
    else:
        logger.info('connected to %s, collections: %s', store.name, collections)
        return True
    finally:
        await store.close()


def main():
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    logger.info('using DATABASE_URL=%s', settings.DATABASE_URL)
    store = Store.from_url(settings.DATABASE_URL, settings.DATABASE_NAME)
    sys.exit(0 if asyncio.run(check(store)) else 1)


if __name__ == '__main__':
    main()
