import logging

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException

from models.user import UserRole
from utils.errors import ValidationFailed

logger = logging.getLogger(__name__)

# -------------------------------
# ObjectId Guard
# -------------------------------

def parse_object_id(value, name: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationFailed(f"Invalid {name}")


# -------------------------------
# Role State Guard
# -------------------------------

def assert_valid_role_state(user: dict):
    """
    A SELLER is always document-verified; an ADMIN never carries a
    seller profile. Anything else means a write bypassed utils.roles.
    """
    role = user.get("role")

    if role == UserRole.SELLER.value and not user.get("is_document_verified"):
        logger.error("CORRUPT_ROLE_STATE user_id=%s role=%s", user.get("_id"), role)
        raise HTTPException(
            status_code=500,
            detail="Corrupt seller state: seller without verified document"
        )

    if role == UserRole.ADMIN.value and user.get("seller_profile"):
        logger.error("CORRUPT_ROLE_STATE user_id=%s role=%s", user.get("_id"), role)
        raise HTTPException(
            status_code=500,
            detail="Corrupt admin state: admin with seller profile"
        )
