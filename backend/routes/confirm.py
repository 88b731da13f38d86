import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Query
from fastapi.responses import PlainTextResponse
from pymongo import ReturnDocument

from database import get_db
from utils import mailer
from utils.errors import NotFound, ValidationFailed
from utils.guards import parse_object_id
from utils.jwt import CONFIRMATION_TOKEN, decode_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.get("/confirm", response_class=PlainTextResponse)
async def confirm_email(
    background_tasks: BackgroundTasks,
    token: Optional[str] = Query(None),
):
    """
    Target of the link in the signup email.
    """
    if not token:
        raise ValidationFailed("Missing or invalid token")

    payload = decode_token(token, CONFIRMATION_TOKEN)
    if not payload:
        raise ValidationFailed("Invalid or expired token")

    db = get_db()
    user_id = parse_object_id(payload["sub"], "token subject")

    user = await db.users.find_one({"_id": user_id})
    if not user:
        raise NotFound("User not found")
    if user.get("is_email_verified"):
        raise ValidationFailed("Email is already confirmed")

    confirmed = await db.users.find_one_and_update(
        {"_id": user_id, "is_email_verified": False},
        {"$set": {"is_email_verified": True, "updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if confirmed is None:
        raise ValidationFailed("Email is already confirmed")

    mailer.queue_welcome(background_tasks, confirmed)

    logger.info("EMAIL_CONFIRMED user_id=%s", user_id)
    return "Email confirmed! You may now log in."
