import logging
from datetime import datetime

from config.constants import DEFAULT_ADMIN_PERMISSIONS
from config.env import ADMIN_EMAIL, ADMIN_NAME, ADMIN_PASSWORD
from models.user import UserRole
from utils.hash import hash_password

logger = logging.getLogger(__name__)


async def ensure_admin_account(db, email=None, password=None, name=None):
    """
    Startup bootstrap: make sure the configured admin account exists.
    An existing account is never modified.
    """
    email = (email or ADMIN_EMAIL or "").strip().lower()
    password = password or ADMIN_PASSWORD
    if not email or not password:
        return None

    existing = await db.users.find_one({"email": email})
    if existing:
        if existing.get("role") != UserRole.ADMIN.value:
            logger.error("ADMIN_BOOTSTRAP_CONFLICT email=%s role=%s", email, existing.get("role"))
        return existing

    now = datetime.utcnow()
    admin = {
        "name": name or ADMIN_NAME,
        "email": email,
        "password": await hash_password(password),
        "role": UserRole.ADMIN.value,
        "is_email_verified": True,
        "is_document_verified": False,
        "admin_profile": {"permissions": list(DEFAULT_ADMIN_PERMISSIONS)},
        "created_at": now,
        "updated_at": now,
    }
    result = await db.users.insert_one(admin)
    admin["_id"] = result.inserted_id

    logger.info("ADMIN_BOOTSTRAPPED user_id=%s", admin["_id"])
    return admin
