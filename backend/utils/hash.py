import asyncio

from passlib.context import CryptContext

from config.constants import MAX_BCRYPT_BYTES
from config.env import BCRYPT_ROUNDS

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def password_fits(password: str) -> bool:
    return len(password.encode("utf-8")) <= MAX_BCRYPT_BYTES


def _hash(password: str) -> str:
    if not password_fits(password):
        raise ValueError("Password too long (max 72 bytes)")
    return pwd_context.hash(password)


def _verify(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password or not password_fits(plain_password):
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # unknown or corrupt legacy hash
        return False


async def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt off the event loop.
    """
    return await asyncio.to_thread(_hash, password)


async def verify_password(plain_password: str, hashed_password: str) -> bool:
    return await asyncio.to_thread(_verify, plain_password, hashed_password)
