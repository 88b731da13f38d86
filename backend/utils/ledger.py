from datetime import datetime

from models.notification import NotificationType
from utils.errors import Forbidden, NotFound
from utils.guards import parse_object_id
from utils.mongo import fetch_by_ids
from utils.serializers import serialize_notification

# ============================================================
# NOTIFICATION LEDGER
# ============================================================
# Append-only record of product lifecycle events per user.
# The only mutation after insert is is_read: False -> True.
# ============================================================


async def append_notification(
    db,
    *,
    user_id,
    notification_type: NotificationType,
    product_id=None,
    session=None,
):
    """
    Single source of truth for notification inserts.
    """
    notification_type = NotificationType(notification_type)

    doc = {
        "user_id": parse_object_id(user_id, "user_id"),
        "product_id": parse_object_id(product_id, "product_id") if product_id else None,
        "type": notification_type.value,
        "is_read": False,
        "created_at": datetime.utcnow(),
    }

    result = await db.notifications.insert_one(doc, session=session)
    return result.inserted_id


def notification_scope(principal, query_user_id: str | None = None) -> dict:
    """
    Admins may target any user (or everyone); everybody else is pinned
    to their own id whatever they ask for.
    """
    if principal.is_admin:
        if query_user_id:
            return {"user_id": parse_object_id(query_user_id, "userId")}
        return {}
    return {"user_id": principal.user_id}


async def list_notifications(db, principal, query_user_id: str | None = None) -> list:
    cursor = db.notifications.find(
        notification_scope(principal, query_user_id)
    ).sort("created_at", -1)

    notifications = await cursor.to_list(length=None)
    products = await fetch_by_ids(db.products, [n.get("product_id") for n in notifications])

    return [
        serialize_notification(n, products.get(n.get("product_id")))
        for n in notifications
    ]


async def mark_read(db, principal, notification_id: str) -> dict:
    oid = parse_object_id(notification_id, "notification ID")

    notification = await db.notifications.find_one({"_id": oid})
    if not notification:
        raise NotFound("Notification not found")

    if not principal.is_admin and notification["user_id"] != principal.user_id:
        raise Forbidden("Forbidden")

    await db.notifications.update_one(
        {"_id": oid},
        {"$set": {"is_read": True}},
    )
    notification["is_read"] = True

    return serialize_notification(notification)


async def mark_all_read(db, principal, query_user_id: str | None = None) -> int:
    scope = notification_scope(principal, query_user_id)
    scope["is_read"] = False

    result = await db.notifications.update_many(scope, {"$set": {"is_read": True}})
    return result.modified_count
