import logging
import re
from datetime import datetime
from html import escape, unescape
from string import Template

import httpx

from config.env import SENDGRID_API_KEY, EMAIL_FROM, EMAIL_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

SENDGRID_URL = "https://api.sendgrid.com/v3/mail/send"

# =====================================================
# TEMPLATES
# =====================================================

TEMPLATES = {
    "confirm": Template(
        "<p>Hi $name,</p>"
        "<p>Thanks for signing up to Green Cycle Hub. Please confirm your email "
        "address by clicking the link below.</p>"
        '<p><a href="$confirm_url">Confirm my email</a></p>'
        "<p>If you did not create an account you can ignore this message.</p>"
    ),
    "welcome": Template(
        "<p>Hi $name,</p>"
        "<p>Your email is confirmed. Welcome to Green Cycle Hub, you can now log in.</p>"
    ),
    "password": Template(
        "<p>Hi $user_name,</p>"
        "<p>Your password was changed on $change_date.</p>"
        "<p>If this was not you, contact support immediately.</p>"
    ),
    "product_pending": Template(
        "<p>Hi $user_name,</p>"
        "<p>Your product <strong>$product_name</strong> was added and is waiting "
        "for review. We will let you know once it is approved.</p>"
    ),
    "product_updated": Template(
        "<p>Hi $user_name,</p>"
        "<p>Your product <strong>$product_name</strong> was updated and is back "
        "in review.</p>"
    ),
    "product_deleted": Template(
        "<p>Hi $user_name,</p>"
        "<p>Your product <strong>$product_name</strong> ($product_id) was deleted "
        "at $deletion_date.</p>"
    ),
    "product_approved": Template(
        "<p>Hi $user_name,</p>"
        "<p>Good news, <strong>$product_name</strong> is approved and now live on "
        "the marketplace.</p>"
        '<p><a href="$action_url">View your listing</a></p>'
    ),
    "product_rejected": Template(
        "<p>Hi $user_name,</p>"
        "<p>Unfortunately <strong>$product_name</strong> ($product_id) did not pass "
        "review. You can edit the listing and submit it again.</p>"
    ),
}

_TAG_RE = re.compile(r"<[^>]*>")


def render_template(template: str, context: dict) -> str:
    """
    Every value is HTML-escaped, URLs included.
    """
    return TEMPLATES[template].safe_substitute(
        {key: "" if value is None else escape(str(value)) for key, value in context.items()}
    )


def format_deletion_time(moment: datetime) -> str:
    """
    '3:07 PM, 05 Mar 2025'
    """
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment:%M} {moment:%p}, {moment:%d} {moment:%b} {moment:%Y}"


# =====================================================
# SEND
# =====================================================

async def send_email(to: str | None, subject: str, template: str, context: dict) -> bool:
    """
    Single attempt, never raises. Returns whether SendGrid accepted it.
    """
    if not to:
        logger.warning("EMAIL_SKIPPED reason=no_recipient subject=%r", subject)
        return False

    if not SENDGRID_API_KEY:
        logger.warning("EMAIL_SKIPPED reason=no_api_key to=%s subject=%r", to, subject)
        return False

    try:
        html = render_template(template, context)
    except KeyError:
        logger.error("EMAIL_SEND_FAILED to=%s template=%s reason=unknown_template", to, template)
        return False

    payload = {
        "personalizations": [{"to": [{"email": to}]}],
        "from": {"email": EMAIL_FROM},
        "subject": subject,
        "content": [
            {"type": "text/plain", "value": unescape(_TAG_RE.sub("", html))},
            {"type": "text/html", "value": html},
        ],
    }
    headers = {"Authorization": f"Bearer {SENDGRID_API_KEY}"}

    try:
        async with httpx.AsyncClient(timeout=EMAIL_TIMEOUT_SECONDS) as client:
            response = await client.post(SENDGRID_URL, json=payload, headers=headers)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.error(
            "EMAIL_SEND_FAILED to=%s template=%s status=%s body=%s",
            to,
            template,
            e.response.status_code,
            e.response.text[:500],
        )
        return False
    except httpx.HTTPError as e:
        logger.error("EMAIL_SEND_FAILED to=%s template=%s error=%s", to, template, e)
        return False

    logger.info("EMAIL_SENT to=%s template=%s", to, template)
    return True
