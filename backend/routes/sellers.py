from fastapi import APIRouter, Depends

from database import get_db
from utils.errors import NotFound
from utils.guards import parse_object_id
from utils.mongo import USER_PUBLIC_PROJECTION
from utils.security import Principal, get_principal, require_self_or_admin
from utils.serializers import serialize_product, serialize_seller_profile, serialize_user_summary

router = APIRouter(prefix="/sellers", tags=["Sellers"])


@router.get("/{seller_id}")
async def get_seller(
    seller_id: str,
    principal: Principal = Depends(get_principal),
):
    """
    Seller profile with contact details and every listing, any status.
    Visible to the seller themself and to admins.
    """
    oid = parse_object_id(seller_id, "sellerId")
    require_self_or_admin(principal, oid)

    db = get_db()
    user = await db.users.find_one({"_id": oid}, USER_PUBLIC_PROJECTION)
    if not user or not user.get("seller_profile"):
        raise NotFound("Seller not found")

    products = await db.products.find({"seller_user_id": oid}).sort("created_at", -1).to_list(length=None)

    return {
        "message": "Found seller",
        "seller": {
            "userId": str(oid),
            **serialize_seller_profile(user["seller_profile"]),
            "user": serialize_user_summary(user),
            "products": [serialize_product(p) for p in products],
        },
    }
