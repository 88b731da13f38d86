from datetime import datetime, timedelta
from jose import jwt, JWTError
from config.env import JWT_SECRET, JWT_ALGORITHM, ACCESS_TOKEN_MINUTES, CONFIRM_TOKEN_HOURS

ACCESS_TOKEN = "access"
CONFIRMATION_TOKEN = "email_confirm"


def _require_jwt_secret() -> str:
    secret = (JWT_SECRET or "").strip()
    if not secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return secret


def _encode(claims: dict, expires_in: timedelta) -> str:
    now = datetime.utcnow()
    payload = claims.copy()
    payload.update({
        "iat": now,
        "exp": now + expires_in,
    })
    return jwt.encode(payload, _require_jwt_secret(), algorithm=JWT_ALGORITHM)


def create_access_token(user_id, role: str) -> str:
    return _encode(
        {"sub": str(user_id), "role": str(role), "typ": ACCESS_TOKEN},
        timedelta(minutes=ACCESS_TOKEN_MINUTES),
    )


def create_confirmation_token(user_id) -> str:
    return _encode(
        {"sub": str(user_id), "typ": CONFIRMATION_TOKEN},
        timedelta(hours=CONFIRM_TOKEN_HOURS),
    )


def decode_token(token: str, token_type: str = ACCESS_TOKEN) -> dict | None:
    """
    Returns the claims of a valid token of the given type, else None.
    Malformed, tampered, expired and wrong-type tokens are indistinguishable.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, _require_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None

    if payload.get("typ") != token_type or not payload.get("sub"):
        return None
    return payload
