from pymongo import ASCENDING, DESCENDING
from pymongo.errors import OperationFailure

from config.env import LOGIN_RATE_WINDOW_SECONDS


def _normalize_key_pairs(keys):
    return [(k, v) for k, v in keys]


async def _create_index_safe(collection, keys, **kwargs):
    """
    Create index safely.
    If Mongo reports IndexOptionsConflict/IndexKeySpecsConflict for same key pattern,
    drop the conflicting index and recreate with desired options.
    """
    desired_key = _normalize_key_pairs(keys)
    desired_name = kwargs.get("name")
    try:
        await collection.create_index(keys, **kwargs)
        return
    except OperationFailure as e:
        if getattr(e, "code", None) not in {85, 86}:
            raise

        conflicting_names = []
        async for idx in collection.list_indexes():
            idx_key = _normalize_key_pairs(list(idx.get("key", {}).items()))
            if idx_key == desired_key:
                idx_name = idx.get("name")
                if idx_name and idx_name != desired_name:
                    conflicting_names.append(idx_name)

        for idx_name in conflicting_names:
            await collection.drop_index(idx_name)

        await collection.create_index(keys, **kwargs)


async def ensure_indexes(db):
    # Users
    await _create_index_safe(
        db.users,
        [("email", ASCENDING)],
        name="users_email_unique_idx",
        unique=True,
    )
    await _create_index_safe(
        db.users,
        [("role", ASCENDING), ("created_at", DESCENDING)],
        name="users_role_created_idx",
    )

    # Products
    await _create_index_safe(
        db.products,
        [("is_approved", ASCENDING), ("created_at", DESCENDING)],
        name="products_status_created_idx",
    )
    await _create_index_safe(
        db.products,
        [("seller_user_id", ASCENDING), ("created_at", DESCENDING)],
        name="products_seller_created_idx",
    )

    # Notifications
    await _create_index_safe(
        db.notifications,
        [("user_id", ASCENDING), ("created_at", DESCENDING)],
        name="notifications_user_created_idx",
    )
    await _create_index_safe(
        db.notifications,
        [("user_id", ASCENDING), ("is_read", ASCENDING)],
        name="notifications_user_unread_idx",
    )

    # Enquiries
    await _create_index_safe(
        db.enquiries,
        [("product_id", ASCENDING), ("created_at", DESCENDING)],
        name="enquiries_product_created_idx",
    )
    await _create_index_safe(
        db.enquiries,
        [("user_id", ASCENDING), ("created_at", DESCENDING)],
        name="enquiries_user_created_idx",
    )

    # Audit
    await _create_index_safe(
        db.audit_logs,
        [("actor_id", ASCENDING), ("created_at", DESCENDING)],
        name="audit_actor_created_idx",
    )

    # Login throttling
    await _create_index_safe(
        db.rate_limits,
        [("key", ASCENDING)],
        name="rate_limits_key_unique",
        unique=True,
    )
    await _create_index_safe(
        db.rate_limits,
        [("created_at", ASCENDING)],
        name="rate_limits_ttl_idx",
        expireAfterSeconds=LOGIN_RATE_WINDOW_SECONDS,
    )
