import logging
from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorClient

from config.env import MONGO_URI, MONGO_DB_NAME, MONGO_TRANSACTIONS

logger = logging.getLogger(__name__)

_client = None
_db = None


def get_client():
    global _client
    if _client is None:
        if not MONGO_URI:
            raise RuntimeError("MONGODB_URI not set")
        _client = AsyncIOMotorClient(MONGO_URI, tz_aware=False)
    return _client


def get_db():
    global _db
    if _db is None:
        _db = get_client()[MONGO_DB_NAME]
    return _db


def use_database(db) -> None:
    """
    Swap the process-wide database handle (tests, scripts).
    """
    global _db
    _db = db


def close_db() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


@asynccontextmanager
async def unit_of_work(db):
    """
    Groups an entity write with its ledger append.

    Yields a session bound to a transaction when MONGO_TRANSACTIONS is on,
    otherwise None and the writes run one after another.
    """
    if not MONGO_TRANSACTIONS:
        yield None
        return

    async with await db.client.start_session() as session:
        async with session.start_transaction():
            yield session
