from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status

from database import get_db
from models.product import ProductCreate, ProductStatus, ProductUpdate
from models.user import UserRole
from utils import mailer, moderation
from utils.mongo import USER_PUBLIC_PROJECTION
from utils.security import Principal, get_optional_principal, get_principal, require_role
from utils.serializers import serialize_product

router = APIRouter(prefix="/products", tags=["Products"])


async def _load_user(db, user_id):
    return await db.users.find_one({"_id": user_id}, USER_PUBLIC_PROJECTION)


# =========================
# LISTINGS (STATIC PATHS BEFORE /{product_id})
# =========================

@router.get("")
async def list_products(principal: Optional[Principal] = Depends(get_optional_principal)):
    return await moderation.list_products(get_db(), principal)


@router.get("/pending")
async def list_pending(admin: Principal = Depends(require_role(UserRole.ADMIN))):
    return await moderation.list_by_status(get_db(), ProductStatus.PENDING)


@router.get("/rejected")
async def list_rejected(admin: Principal = Depends(require_role(UserRole.ADMIN))):
    return await moderation.list_by_status(get_db(), ProductStatus.REJECTED)


@router.get("/seller/{seller_id}")
async def list_by_seller(
    seller_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
):
    return await moderation.list_by_seller(get_db(), principal, seller_id)


@router.get("/except/{seller_id}")
async def list_except_seller(
    seller_id: str,
    principal: Optional[Principal] = Depends(get_optional_principal),
):
    return await moderation.list_except_seller(get_db(), principal, seller_id)


# =========================
# CREATE
# =========================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(require_role(UserRole.SELLER, UserRole.ADMIN)),
):
    db = get_db()
    product = await moderation.create_product(db, principal, data)

    mailer.queue_product_pending(background_tasks, await _load_user(db, principal.user_id), product)

    return {"message": "Product added", "product": serialize_product(product)}


# =========================
# SINGLE PRODUCT
# =========================

@router.get("/{product_id}")
async def get_product(product_id: str):
    return await moderation.get_product(get_db(), product_id)


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    data: ProductUpdate,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_principal),
):
    db = get_db()
    product = await moderation.update_product(db, principal, product_id, data)

    mailer.queue_product_updated(background_tasks, await _load_user(db, product["seller_user_id"]), product)

    return {"message": "Product updated", "product": serialize_product(product)}


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_principal),
):
    # any request body is ignored: deletion takes no fields
    db = get_db()
    product = await moderation.delete_product(db, principal, product_id)

    mailer.queue_product_deleted(background_tasks, await _load_user(db, product["seller_user_id"]), product)

    return {"message": "Product deleted"}


# =========================
# MODERATION (ADMIN)
# =========================

@router.post("/{product_id}/approve")
async def approve_product(
    product_id: str,
    background_tasks: BackgroundTasks,
    admin: Principal = Depends(require_role(UserRole.ADMIN)),
):
    db = get_db()
    product = await moderation.moderate_product(db, admin, product_id, ProductStatus.APPROVED)

    mailer.queue_product_approved(background_tasks, await _load_user(db, product["seller_user_id"]), product)

    return {
        "message": "Product approved successfully",
        "product": serialize_product(product),
    }


@router.post("/{product_id}/reject")
async def reject_product(
    product_id: str,
    background_tasks: BackgroundTasks,
    admin: Principal = Depends(require_role(UserRole.ADMIN)),
):
    db = get_db()
    product = await moderation.moderate_product(db, admin, product_id, ProductStatus.REJECTED)

    mailer.queue_product_rejected(background_tasks, await _load_user(db, product["seller_user_id"]), product)

    return {
        "message": "Product marked as rejected",
        "productId": str(product["_id"]),
        "productName": product.get("name"),
        "product": serialize_product(product),
    }
