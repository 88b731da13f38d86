import logging
from datetime import datetime

from pymongo import ReturnDocument

from database import unit_of_work
from models.notification import NotificationType
from models.product import ProductStatus
from utils.errors import Conflict, Forbidden, NotFound
from utils.guards import parse_object_id
from utils.ledger import append_notification
from utils.mongo import USER_PUBLIC_PROJECTION, fetch_by_ids
from utils.serializers import serialize_product

logger = logging.getLogger(__name__)

# ============================================================
# PRODUCT MODERATION
# ============================================================
# Every status change is paired with exactly one ledger entry.
# DELETED is terminal.
# ============================================================

_LIVE = {
    ProductStatus.PENDING,
    ProductStatus.APPROVED,
    ProductStatus.REJECTED,
    ProductStatus.DELETED,
}

TRANSITIONS = {
    ProductStatus.PENDING: _LIVE,
    ProductStatus.APPROVED: _LIVE,
    ProductStatus.REJECTED: _LIVE,
    ProductStatus.DELETED: set(),
}

NOT_DELETED = {"$ne": ProductStatus.DELETED.value}


def can_transition(current, target) -> bool:
    return ProductStatus(target) in TRANSITIONS[ProductStatus(current)]


def assert_transition(product: dict, target: ProductStatus) -> None:
    current = ProductStatus(product.get("is_approved", ProductStatus.PENDING))
    if not can_transition(current, target):
        raise Conflict(f"Cannot move product from {current.name} to {target.name}")


async def get_product_or_404(db, product_id) -> dict:
    product = await db.products.find_one({"_id": parse_object_id(product_id, "product ID")})
    if not product:
        raise NotFound("Product not found")
    return product


def assert_owner(principal, product: dict) -> None:
    # ownership, not role: admins edit only their own listings
    if not principal.owns(product.get("seller_user_id")):
        raise Forbidden("You do not own this product")


async def _append(db, session, *, user_id, product_id, notification_type):
    try:
        await append_notification(
            db,
            user_id=user_id,
            notification_type=notification_type,
            product_id=product_id,
            session=session,
        )
    except Exception:
        if session is None:
            logger.critical(
                "LEDGER_OUT_OF_SYNC product_id=%s user_id=%s type=%s",
                product_id,
                user_id,
                NotificationType(notification_type).value,
            )
        raise


# ------------------------------------------------------------
# Transitions
# ------------------------------------------------------------

async def create_product(db, principal, data) -> dict:
    now = datetime.utcnow()
    doc = {
        **data.to_document(),
        "images": [],
        "seller_user_id": principal.user_id,
        "is_approved": ProductStatus.PENDING.value,
        "deleted_at": None,
        "seller_deleted": False,
        "created_at": now,
        "updated_at": now,
    }

    async with unit_of_work(db) as session:
        result = await db.products.insert_one(doc, session=session)
        doc["_id"] = result.inserted_id
        await _append(
            db,
            session,
            user_id=principal.user_id,
            product_id=doc["_id"],
            notification_type=NotificationType.PRODUCT_CREATED,
        )

    logger.info("PRODUCT_CREATED product_id=%s seller_id=%s", doc["_id"], principal.user_id)
    return doc


async def update_product(db, principal, product_id, data) -> dict:
    product = await get_product_or_404(db, product_id)
    assert_owner(principal, product)
    assert_transition(product, ProductStatus.PENDING)

    updates = data.to_document()
    updates["is_approved"] = ProductStatus.PENDING.value
    updates["updated_at"] = datetime.utcnow()

    async with unit_of_work(db) as session:
        updated = await db.products.find_one_and_update(
            {"_id": product["_id"], "is_approved": NOT_DELETED},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if updated is None:
            raise Conflict("Product was deleted")

        await _append(
            db,
            session,
            user_id=product["seller_user_id"],
            product_id=product["_id"],
            notification_type=NotificationType.PRODUCT_UPDATED,
        )

    logger.info("PRODUCT_UPDATED product_id=%s fields=%s", product["_id"], sorted(updates))
    return updated


async def delete_product(db, principal, product_id) -> dict:
    """
    Soft delete. The PRODUCT_DELETED entry is written first and on its
    own, so the event is on record even if the status write fails.
    """
    product = await get_product_or_404(db, product_id)
    assert_owner(principal, product)
    assert_transition(product, ProductStatus.DELETED)

    await append_notification(
        db,
        user_id=product["seller_user_id"],
        notification_type=NotificationType.PRODUCT_DELETED,
        product_id=product["_id"],
    )

    now = datetime.utcnow()
    deleted = await db.products.find_one_and_update(
        {"_id": product["_id"], "is_approved": NOT_DELETED},
        {
            "$set": {
                "is_approved": ProductStatus.DELETED.value,
                "deleted_at": now,
                "updated_at": now,
            }
        },
        return_document=ReturnDocument.AFTER,
    )
    if deleted is None:
        raise Conflict("Product was already deleted")

    logger.info("PRODUCT_DELETED product_id=%s", product["_id"])
    return deleted


async def moderate_product(db, admin, product_id, target: ProductStatus) -> dict:
    """
    Admin approve / reject. The ledger entry goes to the owning seller.
    """
    notification_type = {
        ProductStatus.APPROVED: NotificationType.PRODUCT_APPROVED,
        ProductStatus.REJECTED: NotificationType.PRODUCT_REJECTED,
    }[target]

    product = await get_product_or_404(db, product_id)
    assert_transition(product, target)

    async with unit_of_work(db) as session:
        updated = await db.products.find_one_and_update(
            {"_id": product["_id"], "is_approved": NOT_DELETED},
            {"$set": {"is_approved": target.value, "updated_at": datetime.utcnow()}},
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if updated is None:
            raise Conflict("Product was deleted")

        await _append(
            db,
            session,
            user_id=product["seller_user_id"],
            product_id=product["_id"],
            notification_type=notification_type,
        )

    logger.info(
        "PRODUCT_MODERATED product_id=%s status=%s admin_id=%s",
        product["_id"],
        target.name,
        admin.user_id,
    )
    return updated


# ------------------------------------------------------------
# Reads
# ------------------------------------------------------------

def visible_statuses(principal, seller_id=None) -> dict:
    """
    Status filter for listings: admins (and a seller looking at its own
    listings) see everything, everyone else only approved products whose
    seller account still exists.
    """
    if principal is not None and (principal.is_admin or (seller_id and principal.owns(seller_id))):
        return {}
    return {"is_approved": ProductStatus.APPROVED.value, "seller_deleted": {"$ne": True}}


async def _with_sellers(db, products: list) -> list:
    sellers = await fetch_by_ids(
        db.users,
        [p.get("seller_user_id") for p in products],
        USER_PUBLIC_PROJECTION,
    )
    return [
        serialize_product(p, sellers.get(p.get("seller_user_id")))
        for p in products
    ]


async def find_products(db, query: dict) -> list:
    products = await db.products.find(query).sort("created_at", -1).to_list(length=None)
    return await _with_sellers(db, products)


async def list_products(db, principal) -> list:
    return await find_products(db, visible_statuses(principal))


async def list_by_seller(db, principal, seller_id) -> list:
    seller_oid = parse_object_id(seller_id, "seller ID")
    query = {"seller_user_id": seller_oid, **visible_statuses(principal, seller_oid)}
    return await find_products(db, query)


async def list_except_seller(db, principal, seller_id) -> list:
    seller_oid = parse_object_id(seller_id, "seller ID")
    query = {"seller_user_id": {"$ne": seller_oid}, **visible_statuses(principal)}
    return await find_products(db, query)


async def list_by_status(db, status: ProductStatus) -> list:
    return await find_products(db, {"is_approved": status.value})


async def get_product(db, product_id) -> dict:
    product = await get_product_or_404(db, product_id)
    seller = await db.users.find_one(
        {"_id": product.get("seller_user_id")},
        USER_PUBLIC_PROJECTION,
    )
    return serialize_product(product, seller)
