import logging
from datetime import datetime

from pymongo import ReturnDocument

from database import unit_of_work
from models.user import SELLER_PROFILE_FIELDS, UserRole
from utils import audit
from utils.errors import Conflict, Forbidden, NotFound, Unauthenticated
from utils.guards import parse_object_id
from utils.hash import hash_password, verify_password

logger = logging.getLogger(__name__)

# ============================================================
# ROLE TRANSITIONS
# Only this module writes role / is_document_verified.
# ============================================================
#   PLAIN_USER ──upload doc──▶ PENDING_VERIFICATION
#        │                            │
#        └──────verify / approve──────┴──▶ SELLER
#   SELLER ──revoke──▶ PLAIN_USER
#
# role == SELLER  <=>  is_document_verified == True
# ============================================================

EMPTY_SELLER_PROFILE = {
    "business_desc": "",
    "business_type": "",
    "verification_doc_url": None,
}


async def get_user_or_404(db, user_id, *, session=None) -> dict:
    user = await db.users.find_one(
        {"_id": parse_object_id(user_id, "userId")},
        session=session,
    )
    if not user:
        raise NotFound("User not found")
    return user


# ------------------------------------------------------------
# Primitive transitions
# ------------------------------------------------------------

async def promote_to_seller(db, user: dict, profile: dict | None = None, *, session=None) -> dict:
    """
    Make `user` a document-verified SELLER.

    Profile fields are written only when supplied; fields set earlier are
    kept. Re-promoting an identical seller performs no write at all.
    """
    if user.get("role") == UserRole.ADMIN.value:
        raise Conflict("Admin accounts cannot become sellers")

    current_profile = user.get("seller_profile")
    supplied = {
        key: (profile or {}).get(key)
        for key in SELLER_PROFILE_FIELDS
        if (profile or {}).get(key)
    }

    updates = {}
    if user.get("role") != UserRole.SELLER.value:
        updates["role"] = UserRole.SELLER.value
    if not user.get("is_document_verified"):
        updates["is_document_verified"] = True

    if current_profile is None:
        updates["seller_profile"] = {**EMPTY_SELLER_PROFILE, **supplied}
    else:
        for key, value in supplied.items():
            if current_profile.get(key) != value:
                updates[f"seller_profile.{key}"] = value

    if not updates:
        return user

    updates["updated_at"] = datetime.utcnow()

    promoted = await db.users.find_one_and_update(
        {"_id": user["_id"], "role": {"$ne": UserRole.ADMIN.value}},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if promoted is None:
        raise NotFound("User not found")

    logger.info("SELLER_PROMOTED user_id=%s fields=%s", user["_id"], sorted(supplied))
    return promoted


async def demote_to_user(db, user: dict, *, session=None) -> dict:
    demoted = await db.users.find_one_and_update(
        {"_id": user["_id"], "role": UserRole.SELLER.value},
        {
            "$set": {
                "role": UserRole.USER.value,
                "is_document_verified": False,
                "updated_at": datetime.utcnow(),
            },
            "$unset": {"seller_profile": ""},
        },
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if demoted is None:
        raise Conflict("User is not a seller")

    logger.info("SELLER_DEMOTED user_id=%s", user["_id"])
    return demoted


# ------------------------------------------------------------
# Seller verification
# ------------------------------------------------------------

def _has_business_details(user: dict) -> bool:
    profile = user.get("seller_profile") or {}
    return bool(profile.get("business_desc") or profile.get("business_type"))


async def submit_verification(db, principal, data) -> dict:
    if principal.role != UserRole.USER:
        raise Forbidden("Only a regular user can verify as seller")

    user = await get_user_or_404(db, principal.user_id)
    if user.get("role") == UserRole.ADMIN.value:
        raise Forbidden("Only a regular user can verify as seller")

    # an older USER token may outlive the promotion; only an approved seller
    # whose business details are still blank may complete them
    if user.get("role") == UserRole.SELLER.value and _has_business_details(user):
        raise Forbidden("Seller details were already submitted")

    async with unit_of_work(db) as session:
        seller = await promote_to_seller(
            db,
            user,
            {
                "business_desc": data.business_desc,
                "business_type": data.business_type,
                "verification_doc_url": data.verification_doc_url,
            },
            session=session,
        )
        await audit.log_audit(
            db,
            actor_id=principal.user_id,
            actor_role=principal.role.value,
            action=audit.SELLER_VERIFICATION_SUBMITTED,
            metadata={"business_type": data.business_type},
            session=session,
        )

    return seller


async def approve_document(db, admin, target_user_id) -> dict:
    user = await get_user_or_404(db, target_user_id)

    async with unit_of_work(db) as session:
        seller = await promote_to_seller(db, user, session=session)
        if seller is not user:
            await audit.log_audit(
                db,
                actor_id=admin.user_id,
                actor_role=admin.role.value,
                action=audit.SELLER_DOCUMENT_APPROVED,
                metadata={"user_id": str(user["_id"])},
                session=session,
            )

    return seller


def assert_document_holder(principal) -> None:
    if principal.is_admin:
        raise Forbidden("Admin accounts do not carry seller documents")


async def record_verification_document(db, principal, url: str) -> dict:
    """
    Upload path: a USER becomes pending (profile with document, not yet
    verified); a SELLER only swaps the document URL.
    """
    assert_document_holder(principal)

    user = await get_user_or_404(db, principal.user_id)
    role = user.get("role")
    now = datetime.utcnow()

    if role == UserRole.ADMIN.value:
        raise Forbidden("Admin accounts do not carry seller documents")

    if role == UserRole.SELLER.value:
        updates = {"seller_profile.verification_doc_url": url, "updated_at": now}
    elif user.get("seller_profile") is None:
        updates = {
            "seller_profile": {**EMPTY_SELLER_PROFILE, "verification_doc_url": url},
            "is_document_verified": False,
            "updated_at": now,
        }
    else:
        updates = {
            "seller_profile.verification_doc_url": url,
            "is_document_verified": False,
            "updated_at": now,
        }

    updated = await db.users.find_one_and_update(
        {"_id": user["_id"], "role": role},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise Conflict("Account changed during upload, please retry")

    await audit.log_audit(
        db,
        actor_id=principal.user_id,
        actor_role=role,
        action=audit.SELLER_DOCUMENT_UPLOADED,
    )
    return updated


async def revoke_seller(db, admin, target_user_id) -> dict:
    user = await get_user_or_404(db, target_user_id)
    if user.get("role") != UserRole.SELLER.value:
        raise Conflict("User is not a seller")

    async with unit_of_work(db) as session:
        demoted = await demote_to_user(db, user, session=session)
        await audit.log_audit(
            db,
            actor_id=admin.user_id,
            actor_role=admin.role.value,
            action=audit.SELLER_REVOKED,
            metadata={"user_id": str(user["_id"])},
            session=session,
        )

    return demoted


# ------------------------------------------------------------
# Account maintenance
# ------------------------------------------------------------

async def update_profile(db, principal, data) -> dict:
    user = await get_user_or_404(db, principal.user_id)

    updates = {}
    if data.name:
        updates["name"] = data.name
    if data.email and data.email != user.get("email"):
        taken = await db.users.find_one({"email": data.email, "_id": {"$ne": user["_id"]}})
        if taken:
            raise Conflict("Email already in use")
        updates["email"] = data.email
    if data.country_code:
        updates["country_code"] = data.country_code
    if data.phone_number:
        updates["phone_number"] = data.phone_number
    if data.address:
        updates["address"] = data.address

    if principal.role == UserRole.SELLER and user.get("role") == UserRole.SELLER.value:
        for key in SELLER_PROFILE_FIELDS:
            value = getattr(data, key)
            if value:
                updates[f"seller_profile.{key}"] = value

    if not updates:
        return user

    updates["updated_at"] = datetime.utcnow()

    updated = await db.users.find_one_and_update(
        {"_id": user["_id"]},
        {"$set": updates},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise NotFound("User not found")
    return updated


async def change_password(db, principal, data) -> dict:
    user = await get_user_or_404(db, principal.user_id)

    if not await verify_password(data.current_password, user.get("password")):
        raise Unauthenticated("Current password is incorrect")

    digest = await hash_password(data.new_password)
    await db.users.update_one(
        {"_id": user["_id"]},
        {"$set": {"password": digest, "updated_at": datetime.utcnow()}},
    )

    logger.info("PASSWORD_CHANGED user_id=%s", user["_id"])
    return user


async def delete_account(db, principal) -> dict:
    """
    Removes the account together with its embedded seller/admin profile.
    Owned products stay behind, flagged, with their moderation history.
    """
    user = await get_user_or_404(db, principal.user_id)

    async with unit_of_work(db) as session:
        await db.users.delete_one({"_id": user["_id"]}, session=session)
        orphaned = await db.products.update_many(
            {"seller_user_id": user["_id"]},
            {"$set": {"seller_deleted": True, "updated_at": datetime.utcnow()}},
            session=session,
        )
        await audit.log_audit(
            db,
            actor_id=user["_id"],
            actor_role=user.get("role"),
            action=audit.ACCOUNT_DELETED,
            metadata={"orphaned_products": orphaned.modified_count},
            session=session,
        )

    logger.info(
        "ACCOUNT_DELETED user_id=%s role=%s orphaned_products=%s",
        user["_id"],
        user.get("role"),
        orphaned.modified_count,
    )
    return user
