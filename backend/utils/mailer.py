from datetime import datetime
from urllib.parse import quote

from fastapi import BackgroundTasks

from config.env import API_BASE_URL, FRONTEND_URL
from utils.email import format_deletion_time, send_email

# =====================================================
# EMAIL SIDE EFFECTS
# Queued as background tasks: they run after the response is
# sent, once, and their failures only reach the log.
# =====================================================


def confirmation_url(token: str) -> str:
    return f"{API_BASE_URL}/confirm?token={quote(token, safe='')}"


def product_url(product_id) -> str:
    return f"{FRONTEND_URL}/marketplace/{product_id}"


def queue_confirmation(tasks: BackgroundTasks, user: dict, token: str) -> None:
    tasks.add_task(
        send_email,
        user.get("email"),
        "Confirm your Email Address | Green Cycle Hub",
        "confirm",
        {"name": user.get("name"), "confirm_url": confirmation_url(token)},
    )


def queue_welcome(tasks: BackgroundTasks, user: dict) -> None:
    tasks.add_task(
        send_email,
        user.get("email"),
        "Welcome to Green Cycle Hub!",
        "welcome",
        {"name": user.get("name")},
    )


def queue_password_changed(tasks: BackgroundTasks, user: dict) -> None:
    tasks.add_task(
        send_email,
        user.get("email"),
        "Password Changed Successfully",
        "password",
        {
            "user_name": user.get("name"),
            "change_date": datetime.utcnow().strftime("%Y-%m-%d %H:%M UTC"),
        },
    )


def queue_product_pending(tasks: BackgroundTasks, owner: dict | None, product: dict) -> None:
    if not owner:
        return
    tasks.add_task(
        send_email,
        owner.get("email"),
        f"New Product Added | {product.get('name')}",
        "product_pending",
        {"user_name": owner.get("name"), "product_name": product.get("name")},
    )


def queue_product_updated(tasks: BackgroundTasks, owner: dict | None, product: dict) -> None:
    if not owner:
        return
    tasks.add_task(
        send_email,
        owner.get("email"),
        f"Product Updated | {product.get('name')}",
        "product_updated",
        {"user_name": owner.get("name"), "product_name": product.get("name")},
    )


def queue_product_deleted(tasks: BackgroundTasks, owner: dict | None, product: dict) -> None:
    if not owner:
        return
    deleted_at = product.get("deleted_at") or datetime.utcnow()
    tasks.add_task(
        send_email,
        owner.get("email"),
        f"Product Deleted | {product.get('name')}",
        "product_deleted",
        {
            "user_name": owner.get("name"),
            "product_id": str(product["_id"]),
            "product_name": product.get("name"),
            "deletion_date": format_deletion_time(deleted_at),
        },
    )


def queue_product_approved(tasks: BackgroundTasks, seller: dict | None, product: dict) -> None:
    if not seller:
        return
    tasks.add_task(
        send_email,
        seller.get("email"),
        f"Product Approved | {product.get('name')}",
        "product_approved",
        {
            "user_name": seller.get("name"),
            "product_name": product.get("name"),
            "product_id": str(product["_id"]),
            "action_url": product_url(product["_id"]),
        },
    )


def queue_product_rejected(tasks: BackgroundTasks, seller: dict | None, product: dict) -> None:
    if not seller:
        return
    tasks.add_task(
        send_email,
        seller.get("email"),
        f"Product Rejected | {product.get('name')}",
        "product_rejected",
        {
            "user_name": seller.get("name"),
            "product_name": product.get("name"),
            "product_id": str(product["_id"]),
        },
    )
