from bson import ObjectId


async def fetch_by_ids(collection, ids, projection: dict | None = None) -> dict:
    """
    One round trip for a batch of related documents, keyed by _id.
    """
    unique = list({i for i in ids if isinstance(i, ObjectId)})
    if not unique:
        return {}

    docs = {}
    async for doc in collection.find({"_id": {"$in": unique}}, projection):
        docs[doc["_id"]] = doc
    return docs


USER_PUBLIC_PROJECTION = {"password": 0}
