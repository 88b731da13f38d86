import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, status

from config.constants import FRONTEND_TYPE_HEADER
from config.env import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW_SECONDS
from database import get_db
from models.user import (
    ChangePasswordRequest,
    LoginRequest,
    SignupRequest,
    UpdateProfileRequest,
    UserRole,
    VerifySellerRequest,
)
from utils import mailer, roles
from utils.errors import Conflict, Forbidden, NotFound, Unauthenticated
from utils.guards import assert_valid_role_state
from utils.hash import hash_password, verify_password
from utils.jwt import create_access_token, create_confirmation_token
from utils.rate_limit import rate_limit, reset_rate_limit
from utils.security import Principal, assert_login_surface, get_principal
from utils.serializers import serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


# ======================
# Signup
# ======================

@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(data: SignupRequest, background_tasks: BackgroundTasks):
    db = get_db()

    if await db.users.find_one({"email": data.email}, {"_id": 1}):
        raise Conflict("Email already in use")

    now = datetime.utcnow()
    user = {
        "name": data.name,
        "email": data.email,
        "password": await hash_password(data.password),
        "role": UserRole.USER.value,
        "address": data.address,
        "country_code": data.country_code,
        "phone_number": data.phone_number,
        "is_email_verified": False,
        "is_document_verified": False,
        "created_at": now,
        "updated_at": now,
    }

    # unique index turns a lost race into DuplicateKeyError -> 409
    result = await db.users.insert_one(user)
    user["_id"] = result.inserted_id

    mailer.queue_confirmation(background_tasks, user, create_confirmation_token(user["_id"]))

    logger.info("USER_SIGNED_UP user_id=%s", user["_id"])
    return {"message": "USER registered", "user": serialize_user(user)}


# ======================
# Login
# ======================

@router.post("/login")
async def login(
    data: LoginRequest,
    frontend_type: Optional[str] = Header(None, alias=FRONTEND_TYPE_HEADER),
):
    db = get_db()

    await rate_limit(
        db=db,
        key=f"login:{data.email}",
        max_requests=LOGIN_RATE_LIMIT,
        window_seconds=LOGIN_RATE_WINDOW_SECONDS,
    )

    user = await db.users.find_one({"email": data.email})
    if not user:
        raise NotFound("User not found")

    # surface first: a correct password never lifts a surface refusal
    assert_login_surface(user, frontend_type)

    if not await verify_password(data.password, user.get("password")):
        logger.info("LOGIN_REFUSED user_id=%s reason=bad_password", user["_id"])
        raise Unauthenticated("Incorrect password")

    if not user.get("is_email_verified"):
        logger.info("LOGIN_REFUSED user_id=%s reason=email_not_verified", user["_id"])
        raise Forbidden("Email not verified")

    assert_valid_role_state(user)
    await reset_rate_limit(db, f"login:{data.email}")

    logger.info("LOGIN_OK user_id=%s role=%s", user["_id"], user["role"])
    return {
        "message": "Login successful",
        "token": create_access_token(user["_id"], user["role"]),
        "user": serialize_user(user),
    }


# ======================
# Current User
# ======================

@router.get("/me")
async def me(principal: Principal = Depends(get_principal)):
    user = await roles.get_user_or_404(get_db(), principal.user_id)
    return {"user": serialize_user(user)}


# ======================
# Seller Verification
# ======================

@router.post("/verify")
async def verify_as_seller(
    data: VerifySellerRequest,
    principal: Principal = Depends(get_principal),
):
    seller = await roles.submit_verification(get_db(), principal, data)

    return {
        "message": "User verified as seller",
        "token": create_access_token(seller["_id"], seller["role"]),
        "user": serialize_user(seller),
    }


# ======================
# Profile
# ======================

@router.post("/update-profile")
async def update_profile(
    data: UpdateProfileRequest,
    principal: Principal = Depends(get_principal),
):
    user = await roles.update_profile(get_db(), principal, data)
    return {"message": "Profile updated", "user": serialize_user(user)}


@router.post("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    background_tasks: BackgroundTasks,
    principal: Principal = Depends(get_principal),
):
    user = await roles.change_password(get_db(), principal, data)
    mailer.queue_password_changed(background_tasks, user)
    return {"message": "Password changed successfully"}


@router.delete("")
async def delete_account(principal: Principal = Depends(get_principal)):
    await roles.delete_account(get_db(), principal)
    return {"message": "Account deleted"}
