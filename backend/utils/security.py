import logging
from dataclasses import dataclass
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from config.constants import ADMIN_FRONTEND
from models.user import UserRole
from utils.errors import Forbidden, Unauthenticated
from utils.jwt import decode_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """
    Identity and role taken from a validated access token.
    """

    user_id: ObjectId
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def owns(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)


def principal_from_token(token: str) -> Optional[Principal]:
    payload = decode_token(token)
    if not payload:
        return None

    try:
        return Principal(
            user_id=ObjectId(payload["sub"]),
            role=UserRole(payload.get("role")),
        )
    except (InvalidId, TypeError, ValueError):
        return None


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    if credentials is None:
        raise Unauthenticated("Missing or malformed token")

    principal = principal_from_token(credentials.credentials)
    if principal is None:
        raise Unauthenticated("Invalid or expired token")

    return principal


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[Principal]:
    """
    Public endpoints that relax filters for admins: a missing or bad token
    simply means an anonymous caller.
    """
    if credentials is None:
        return None
    return principal_from_token(credentials.credentials)


def require_role(*roles):
    allowed = {UserRole(r) for r in roles}

    async def checker(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in allowed:
            raise Forbidden(
                "Only " + " or ".join(sorted(r.value.lower() + "s" for r in allowed))
                + " may perform this operation"
            )
        return principal

    return checker


def require_self_or_admin(principal: Principal, target_user_id) -> Principal:
    if principal.is_admin or principal.owns(target_user_id):
        return principal
    raise Forbidden("You may only access your own account")


# -------------------------------
# Login surface
# -------------------------------

def is_admin_surface(frontend_type: Optional[str]) -> bool:
    return frontend_type == ADMIN_FRONTEND


def assert_login_surface(user: dict, frontend_type: Optional[str]) -> None:
    """
    Admin accounts log in only through the admin frontend, and the admin
    frontend only accepts admin accounts.
    """
    is_admin_account = user.get("role") == UserRole.ADMIN.value

    if is_admin_surface(frontend_type):
        if not is_admin_account:
            logger.info("LOGIN_REFUSED user_id=%s reason=non_admin_on_admin_surface", user.get("_id"))
            raise Forbidden("Only admin accounts can login through the admin portal")
    elif is_admin_account:
        logger.info("LOGIN_REFUSED user_id=%s reason=admin_on_user_surface", user.get("_id"))
        raise Forbidden(
            "This email belongs to an admin account and cannot be used to login through this portal"
        )
