from bson import ObjectId
from datetime import datetime


def serialize_object_id(value):
    return str(value) if isinstance(value, ObjectId) else value


def serialize_datetime(value):
    return value.isoformat() if isinstance(value, datetime) else None


def serialize_seller_profile(profile: dict | None) -> dict:
    if not profile:
        return {}
    return {
        "businessDesc": profile.get("business_desc"),
        "businessType": profile.get("business_type"),
        "verificationDocUrl": profile.get("verification_doc_url"),
    }


def serialize_user(user: dict) -> dict:
    """
    Account view. Never includes the password digest.
    """
    data = {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role"),
        "address": user.get("address"),
        "countryCode": user.get("country_code"),
        "phoneNumber": user.get("phone_number"),
        "isEmailVerified": user.get("is_email_verified", False),
        "isDocumentVerified": user.get("is_document_verified", False),
        "createdAt": serialize_datetime(user.get("created_at")),
    }

    data.update(serialize_seller_profile(user.get("seller_profile")))

    if user.get("admin_profile"):
        data["permissions"] = user["admin_profile"].get("permissions", [])

    return data


def serialize_user_summary(user: dict | None) -> dict | None:
    if not user:
        return None
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
        "phoneNumber": user.get("phone_number"),
        "countryCode": user.get("country_code"),
        "address": user.get("address"),
        "isEmailVerified": user.get("is_email_verified", False),
        "isDocumentVerified": user.get("is_document_verified", False),
        "createdAt": serialize_datetime(user.get("created_at")),
    }


def serialize_product(product: dict, seller: dict | None = None) -> dict:
    data = {
        "id": str(product["_id"]),
        "name": product.get("name"),
        "price": product.get("price"),
        "currency": product.get("currency"),
        "quantity": product.get("quantity"),
        "unit": product.get("unit"),
        "category": product.get("category"),
        "country": product.get("country"),
        "color": product.get("color"),
        "sourceMaterial": product.get("source_material"),
        "batchSize": product.get("batch_size"),
        "minimumOrderQuantity": product.get("minimum_order_quantity"),
        "application": product.get("application"),
        "description": product.get("description"),
        "additionalNotes": product.get("additional_notes"),
        "images": product.get("images", []),
        "sellerUserId": serialize_object_id(product.get("seller_user_id")),
        "isApproved": product.get("is_approved"),
        "sellerDeleted": product.get("seller_deleted", False),
        "deletedAt": serialize_datetime(product.get("deleted_at")),
        "createdAt": serialize_datetime(product.get("created_at")),
        "updatedAt": serialize_datetime(product.get("updated_at")),
    }

    if seller is not None:
        profile = seller.get("seller_profile") or {}
        data["seller"] = {
            "userId": str(seller["_id"]),
            "businessDesc": profile.get("business_desc"),
            "businessType": profile.get("business_type"),
            "user": serialize_user_summary(seller),
        }

    return data


def serialize_notification(notification: dict, product: dict | None = None) -> dict:
    return {
        "id": str(notification["_id"]),
        "userId": serialize_object_id(notification.get("user_id")),
        "productId": serialize_object_id(notification.get("product_id")),
        "type": notification.get("type"),
        "isRead": notification.get("is_read", False),
        "createdAt": serialize_datetime(notification.get("created_at")),
        "product": serialize_product(product) if product else None,
    }


def serialize_enquiry(
    enquiry: dict,
    product: dict | None = None,
    user: dict | None = None,
) -> dict:
    data = {
        "id": str(enquiry["_id"]),
        "userId": serialize_object_id(enquiry.get("user_id")),
        "productId": serialize_object_id(enquiry.get("product_id")),
        "message": enquiry.get("message"),
        "createdAt": serialize_datetime(enquiry.get("created_at")),
        "product": serialize_product(product) if product else None,
    }
    if user is not None:
        data["user"] = {
            "id": str(user["_id"]),
            "name": user.get("name"),
            "email": user.get("email"),
        }
    return data


def serialize_chat_lead(lead: dict) -> dict:
    return {
        "id": str(lead["_id"]),
        "companyName": lead.get("company_name"),
        "userName": lead.get("user_name"),
        "phoneNumber": lead.get("phone_number"),
        "createdAt": serialize_datetime(lead.get("created_at")),
    }
