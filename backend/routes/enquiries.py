import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from database import get_db
from models.enquiry import EnquiryCreate
from models.product import ProductStatus
from models.user import UserRole
from utils.errors import NotFound
from utils.guards import parse_object_id
from utils.mongo import USER_PUBLIC_PROJECTION, fetch_by_ids
from utils.security import Principal, get_principal, require_role
from utils.serializers import serialize_enquiry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/enquiries", tags=["Enquiries"])


# =========================
# HELPERS
# =========================

async def _expand(db, enquiries: list, with_user: bool = False) -> list:
    products = await fetch_by_ids(db.products, [e.get("product_id") for e in enquiries])
    users = {}
    if with_user:
        users = await fetch_by_ids(
            db.users,
            [e.get("user_id") for e in enquiries],
            USER_PUBLIC_PROJECTION,
        )

    return [
        serialize_enquiry(
            e,
            products.get(e.get("product_id")),
            users.get(e.get("user_id")) if with_user else None,
        )
        for e in enquiries
    ]


async def _find(db, query: dict) -> list:
    return await db.enquiries.find(query).sort("created_at", -1).to_list(length=None)


# =========================
# SEND
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def send_enquiry(
    data: EnquiryCreate,
    principal: Principal = Depends(get_principal),
):
    db = get_db()
    product_id = parse_object_id(data.product_id, "productId")

    product = await db.products.find_one({
        "_id": product_id,
        "is_approved": {"$ne": ProductStatus.DELETED.value},
    })
    if not product:
        raise NotFound("Product not found")

    enquiry = {
        "user_id": principal.user_id,
        "product_id": product_id,
        "message": data.message,
        "created_at": datetime.utcnow(),
    }
    result = await db.enquiries.insert_one(enquiry)
    enquiry["_id"] = result.inserted_id

    logger.info("ENQUIRY_SENT enquiry_id=%s product_id=%s", enquiry["_id"], product_id)
    return {"message": "Enquiry sent", "enquiry": serialize_enquiry(enquiry)}


# =========================
# LISTINGS
# =========================

@router.get("")
async def list_all(admin: Principal = Depends(require_role(UserRole.ADMIN))):
    db = get_db()
    return await _expand(db, await _find(db, {}), with_user=True)


@router.get("/user")
async def list_by_user(principal: Principal = Depends(get_principal)):
    db = get_db()
    return await _expand(db, await _find(db, {"user_id": principal.user_id}))


@router.get("/seller")
async def list_by_seller(
    seller_user_id: Optional[str] = Query(None, alias="sellerUserId"),
    principal: Principal = Depends(require_role(UserRole.SELLER, UserRole.ADMIN)),
):
    """
    Enquiries on products the seller owns. Only admins may look at another
    seller's inbox.
    """
    db = get_db()

    seller_id = principal.user_id
    if principal.is_admin and seller_user_id:
        seller_id = parse_object_id(seller_user_id, "sellerUserId")

    product_ids = await db.products.distinct("_id", {"seller_user_id": seller_id})
    if not product_ids:
        return []

    enquiries = await _find(db, {"product_id": {"$in": product_ids}})
    return await _expand(db, enquiries, with_user=True)


@router.get("/product/{product_id}")
async def list_by_product(product_id: str):
    db = get_db()
    oid = parse_object_id(product_id, "productId")
    return await _expand(db, await _find(db, {"product_id": oid}))
