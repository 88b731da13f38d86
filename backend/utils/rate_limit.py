from datetime import datetime, timedelta

from pymongo import ReturnDocument

from utils.errors import TooManyRequests


async def rate_limit(
    db,
    key: str,
    max_requests: int,
    window_seconds: int,
):
    """
    Fixed window counter kept in Mongo, shared by every worker process.
    """
    now = datetime.utcnow()
    window_start = now - timedelta(seconds=window_seconds)

    # window over: start counting again
    await db.rate_limits.delete_one({
        "key": key,
        "created_at": {"$lt": window_start},
    })

    record = await db.rate_limits.find_one_and_update(
        {"key": key},
        {
            "$inc": {"count": 1},
            "$setOnInsert": {"created_at": now},
        },
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )

    if record["count"] > max(1, max_requests):
        raise TooManyRequests()


async def reset_rate_limit(db, key: str):
    await db.rate_limits.delete_one({"key": key})
