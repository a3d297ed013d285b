"""
Document store used by every component.

A thin async wrapper around a Motor (MongoDB) database that exposes the
generic insert/find/update/delete operations the chat needs and translates
driver failures into StoreError. One Store is built at process start, opened
in the application lifespan and closed on shutdown.
"""
import functools
import logging
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from .exceptions import DuplicateEntry, StoreError

logger = logging.getLogger(__name__)

PARTICIPANTS = 'participants'
MESSAGES = 'messages'

# never hand Mongo's ObjectId back to callers
_PROJECTION = {'_id': 0}


def _translate_errors(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except DuplicateKeyError as e:
            raise DuplicateEntry(str(e)) from e
        except PyMongoError as e:
            raise StoreError(str(e)) from e
    return wrapper


class Store:
    def __init__(self, client, database_name: str):
        self._client = client
        self._db = client.get_default_database(default=database_name)

    @classmethod
    def from_url(cls, url: str, database_name: str) -> 'Store':
        return cls(AsyncIOMotorClient(url), database_name)

    @property
    def name(self) -> str:
        return self._db.name

    @_translate_errors
    async def open(self):
        # uniqueness enforced at write time closes the check-then-insert race on registration
        await self._db[PARTICIPANTS].create_index('name', unique=True)
        logger.info('store %s opened', self.name)

    async def close(self):
        self._client.close()
        logger.info('store %s closed', self.name)

    @_translate_errors
    async def ping(self) -> List[str]:
        """Round-trip to the server; returns the collection names of the database."""
        await self._client.admin.command('ping')
        return await self._db.list_collection_names()

    @_translate_errors
    async def insert_one(self, collection: str, document: dict):
        # the driver writes _id into the dict it is given
        result = await self._db[collection].insert_one(dict(document))
        return result.inserted_id

    @_translate_errors
    async def find_one(self, collection: str, query: dict) -> Optional[dict]:
        return await self._db[collection].find_one(query, projection=_PROJECTION)

    @_translate_errors
    async def find(self, collection: str, query: Optional[dict] = None) -> List[dict]:
        """All matching documents in natural (insertion) order."""
        cursor = self._db[collection].find(query or {}, projection=_PROJECTION).sort('$natural', 1)
        return await cursor.to_list(length=None)

    @_translate_errors
    async def update_one(self, collection: str, query: dict, changes: dict, unset=()) -> int:
        """Apply $set changes (and $unset the `unset` keys) to the first match; returns the matched count."""
        update = {'$set': changes}
        if unset:
            update['$unset'] = {key: '' for key in unset}
        result = await self._db[collection].update_one(query, update)
        return result.matched_count

    @_translate_errors
    async def delete_one(self, collection: str, query: dict) -> int:
        result = await self._db[collection].delete_one(query)
        return result.deleted_count
