from fastapi import APIRouter, Depends

from database import get_db
from models.user import UserRole
from utils import roles
from utils.mongo import USER_PUBLIC_PROJECTION
from utils.security import Principal, require_role
from utils.serializers import serialize_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
async def list_users(admin: Principal = Depends(require_role(UserRole.ADMIN))):
    db = get_db()
    cursor = db.users.find({}, USER_PUBLIC_PROJECTION).sort("created_at", -1)

    users = [serialize_user(u) async for u in cursor]
    return {"success": True, "users": users}


@router.post("/{user_id}/approve")
async def approve_document(
    user_id: str,
    admin: Principal = Depends(require_role(UserRole.ADMIN)),
):
    seller = await roles.approve_document(get_db(), admin, user_id)
    return {"message": "User Document Verified", "user": serialize_user(seller)}


@router.post("/{user_id}/revoke-seller")
async def revoke_seller(
    user_id: str,
    admin: Principal = Depends(require_role(UserRole.ADMIN)),
):
    user = await roles.revoke_seller(get_db(), admin, user_id)
    return {"message": "Seller role revoked", "user": serialize_user(user)}
