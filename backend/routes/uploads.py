# backend/routes/uploads.py

import os
from typing import List

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pymongo import ReturnDocument

from config.constants import (
    DOCUMENT_CONTENT_TYPES,
    MAX_DOCUMENT_BYTES,
    MAX_IMAGE_BYTES,
    MAX_PRODUCT_IMAGES,
)
from database import get_db
from utils import roles, storage
from utils.cloudinary import upload_file
from utils.errors import Conflict, ValidationFailed
from utils.moderation import NOT_DELETED, assert_owner, get_product_or_404
from utils.security import Principal, get_principal
from utils.serializers import serialize_user

router = APIRouter(prefix="/files", tags=["Uploads"])


def _require_image(file: UploadFile):
    if not file.content_type or not file.content_type.startswith("image/"):
        raise ValidationFailed("Only image files are allowed")
    _require_size(file, MAX_IMAGE_BYTES)


def _require_size(file: UploadFile, limit: int):
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    if size > limit:
        raise ValidationFailed(f"File exceeds the {limit // (1024 * 1024)} MB limit")


async def _store(file: UploadFile, key: str, resource_type: str = "image") -> str:
    url = await upload_file(file.file, key, resource_type=resource_type)
    if not url:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Upload failed",
        )
    return url


# =========================
# PROFILE PICTURE
# =========================
@router.post("/upload-profile-pic")
async def upload_profile_pic(
    file: UploadFile = File(...),
    principal: Principal = Depends(get_principal),
):
    _require_image(file)

    url = await _store(file, storage.profile_pic_key(principal.user_id, file.filename))

    return {"url": url}


# =========================
# PRODUCT IMAGES
# =========================
@router.post("/upload-product-images")
async def upload_product_images(
    product_id: str = Form(..., alias="productId"),
    images: List[UploadFile] = File(...),
    principal: Principal = Depends(get_principal),
):
    db = get_db()

    product = await get_product_or_404(db, product_id)
    assert_owner(principal, product)

    for image in images:
        _require_image(image)

    existing = len(product.get("images", []))
    if existing + len(images) > MAX_PRODUCT_IMAGES:
        raise ValidationFailed(f"A product can have at most {MAX_PRODUCT_IMAGES} images")

    # numbering continues after images already stored
    urls = []
    for offset, image in enumerate(images):
        key = storage.product_image_key(principal.user_id, product["_id"], existing + offset)
        urls.append(await _store(image, key))

    updated = await db.products.find_one_and_update(
        {"_id": product["_id"], "is_approved": NOT_DELETED},
        {"$push": {"images": {"$each": urls}}},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise Conflict("Product was deleted")

    return {"images": urls}


# =========================
# SELLER VERIFICATION DOCUMENT
# =========================
@router.post("/upload-verification-doc")
async def upload_verification_doc(
    file: UploadFile = File(...),
    principal: Principal = Depends(get_principal),
):
    if file.content_type not in DOCUMENT_CONTENT_TYPES:
        raise ValidationFailed("Only PDF or image documents are allowed")
    _require_size(file, MAX_DOCUMENT_BYTES)

    resource_type = "image" if file.content_type.startswith("image/") else "raw"
    key = storage.verification_doc_key(principal.user_id, file.filename)

    roles.assert_document_holder(principal)

    url = await _store(file, key, resource_type=resource_type)
    user = await roles.record_verification_document(get_db(), principal, url)

    return {"verificationDocUrl": url, "user": serialize_user(user)}
