from datetime import timedelta

from bson import ObjectId

from conftest import auth
from utils import jwt as tokens
from utils.security import principal_from_token


def test_access_token_round_trip():
    user_id = ObjectId()
    principal = principal_from_token(tokens.create_access_token(user_id, "SELLER"))

    assert principal.user_id == user_id
    assert principal.role.value == "SELLER"


def test_token_types_are_not_interchangeable():
    user_id = ObjectId()
    access = tokens.create_access_token(user_id, "USER")
    confirm = tokens.create_confirmation_token(user_id)

    assert tokens.decode_token(confirm) is None
    assert tokens.decode_token(access, tokens.CONFIRMATION_TOKEN) is None
    assert principal_from_token(confirm) is None


def test_expired_and_tampered_tokens_are_invalid():
    expired = tokens._encode(
        {"sub": str(ObjectId()), "role": "USER", "typ": tokens.ACCESS_TOKEN},
        timedelta(seconds=-5),
    )
    assert tokens.decode_token(expired) is None

    good = tokens.create_access_token(ObjectId(), "USER")
    header, payload, signature = good.split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
    tampered = ".".join([header, payload, flipped])
    assert tokens.decode_token(tampered) is None


def test_unknown_role_claim_is_invalid():
    token = tokens.create_access_token(ObjectId(), "SUPERUSER")
    assert principal_from_token(token) is None


def test_confirmation_token_is_not_a_bearer_token(client, register):
    user_id = register("ana@example.com")
    res = client.get("/api/auth/me", headers=auth(tokens.create_confirmation_token(user_id)))
    assert res.status_code == 401
