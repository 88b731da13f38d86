import asyncio
import io
import logging

import cloudinary.exceptions
from bson import ObjectId

from config.constants import MAX_DOCUMENT_BYTES, MAX_IMAGE_BYTES
from conftest import auth
from routes import uploads
from utils import cloudinary as cloud
from utils import storage


# =========================
# STORAGE KEYS
# =========================

def test_storage_keys():
    assert storage.profile_pic_key("u1", "my photo.png", timestamp=1700000000000) == (
        "profile-pics/u1_1700000000000_my_photo.png"
    )
    assert storage.product_image_key("u1", "p9", 3) == "seller/u1/p9/images/3.jpg"
    assert storage.verification_doc_key("u1", "trade license.pdf", timestamp=42) == (
        "verification-docs/u1/42_trade_license.pdf"
    )


# =========================
# PROFILE PICTURE
# =========================

def test_upload_profile_pic(client, make_user, uploaded):
    user_id, token = make_user("ana@example.com")

    res = client.post(
        "/api/files/upload-profile-pic",
        files={"file": ("me now.png", b"\x89PNG", "image/png")},
        headers=auth(token),
    )
    assert res.status_code == 200
    key, resource_type = uploaded[-1]
    assert key.startswith(f"profile-pics/{user_id}_")
    assert key.endswith("_me_now.png")
    assert res.json()["url"] == f"https://cdn.test/{key}"


def test_upload_profile_pic_rejects_non_images(client, make_user, uploaded):
    _, token = make_user("ana@example.com")
    res = client.post(
        "/api/files/upload-profile-pic",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=auth(token),
    )
    assert res.status_code == 400
    assert uploaded == []


def test_upload_profile_pic_rejects_oversized_files(client, make_user, uploaded):
    _, token = make_user("ana@example.com")
    res = client.post(
        "/api/files/upload-profile-pic",
        files={"file": ("huge.jpg", b"\0" * (MAX_IMAGE_BYTES + 1), "image/jpeg")},
        headers=auth(token),
    )
    assert res.status_code == 400
    assert uploaded == []


def test_upload_requires_token(client):
    res = client.post(
        "/api/files/upload-profile-pic",
        files={"file": ("me.png", b"\x89PNG", "image/png")},
    )
    assert res.status_code == 401


# =========================
# PRODUCT IMAGES
# =========================

def test_upload_product_images_appends(client, db, run, make_seller, make_product):
    seller_id, token = make_seller("sam@example.com")
    product = make_product(token)

    def upload(names):
        return client.post(
            "/api/files/upload-product-images",
            data={"productId": product["id"]},
            files=[("images", (name, b"\xff\xd8", "image/jpeg")) for name in names],
            headers=auth(token),
        )

    res = upload(["a.jpg", "b.jpg"])
    assert res.status_code == 200
    assert res.json()["images"] == [
        f"https://cdn.test/seller/{seller_id}/{product['id']}/images/0.jpg",
        f"https://cdn.test/seller/{seller_id}/{product['id']}/images/1.jpg",
    ]

    res = upload(["c.jpg"])
    assert res.json()["images"] == [f"https://cdn.test/seller/{seller_id}/{product['id']}/images/2.jpg"]

    stored = run(db.products.find_one({"_id": ObjectId(product["id"])}))
    assert len(stored["images"]) == 3


def test_upload_product_images_requires_ownership(client, make_seller, make_product, uploaded):
    _, owner_token = make_seller("sam@example.com")
    _, other_token = make_seller("olga@example.com")
    product = make_product(owner_token)

    res = client.post(
        "/api/files/upload-product-images",
        data={"productId": product["id"]},
        files=[("images", ("a.jpg", b"\xff\xd8", "image/jpeg"))],
        headers=auth(other_token),
    )
    assert res.status_code == 403
    assert uploaded == []


# =========================
# VERIFICATION DOCUMENT
# =========================

def test_verification_doc_marks_user_pending(client, db, run, make_user, uploaded):
    user_id, token = make_user("ana@example.com")

    res = client.post(
        "/api/files/upload-verification-doc",
        files={"file": ("trade license.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth(token),
    )
    assert res.status_code == 200
    url = res.json()["verificationDocUrl"]
    assert uploaded[-1][1] == "raw"

    stored = run(db.users.find_one({"_id": ObjectId(user_id)}))
    assert stored["role"] == "USER"
    assert stored["is_document_verified"] is False
    assert stored["seller_profile"]["verification_doc_url"] == url


def test_verification_doc_for_seller_only_swaps_url(client, db, run, make_seller):
    user_id, token = make_seller("sam@example.com")

    res = client.post(
        "/api/files/upload-verification-doc",
        files={"file": ("new.png", b"\x89PNG", "image/png")},
        headers=auth(token),
    )
    assert res.status_code == 200

    stored = run(db.users.find_one({"_id": ObjectId(user_id)}))
    assert stored["role"] == "SELLER"
    assert stored["is_document_verified"] is True
    assert stored["seller_profile"]["verification_doc_url"] == res.json()["verificationDocUrl"]
    assert stored["seller_profile"]["business_type"] == "Manufacturer"


def test_verification_doc_refused_for_admin(client, admin, uploaded):
    _, token = admin
    res = client.post(
        "/api/files/upload-verification-doc",
        files={"file": ("doc.pdf", b"%PDF-1.4", "application/pdf")},
        headers=auth(token),
    )
    assert res.status_code == 403
    assert uploaded == []


def test_verification_doc_rejects_other_types(client, make_user):
    _, token = make_user("ana@example.com")
    res = client.post(
        "/api/files/upload-verification-doc",
        files={"file": ("doc.zip", b"PK", "application/zip")},
        headers=auth(token),
    )
    assert res.status_code == 400


def test_verification_doc_rejects_oversized_files(client, db, run, make_user, uploaded):
    user_id, token = make_user("ana@example.com")
    res = client.post(
        "/api/files/upload-verification-doc",
        files={"file": ("license.pdf", b"\0" * (MAX_DOCUMENT_BYTES + 1), "application/pdf")},
        headers=auth(token),
    )
    assert res.status_code == 400
    assert uploaded == []

    stored = run(db.users.find_one({"_id": ObjectId(user_id)}))
    assert stored.get("seller_profile") is None


# =========================
# CLOUD FAILURES
# =========================

def _failing_upload(*args, **kwargs):
    raise cloudinary.exceptions.Error("Invalid Signature")


def test_cloud_error_is_logged_and_returns_none(monkeypatch, caplog):
    monkeypatch.setattr(cloud.cloudinary.uploader, "upload", _failing_upload)

    with caplog.at_level(logging.ERROR, logger="utils.cloudinary"):
        url = asyncio.run(cloud.upload_file(io.BytesIO(b"\x89PNG"), "profile-pics/u1_1_me.png"))

    assert url is None
    assert any("UPLOAD_FAILED" in r.getMessage() for r in caplog.records)


def test_cloud_error_surfaces_as_upload_failed(client, make_user, monkeypatch):
    _, token = make_user("ana@example.com")
    monkeypatch.setattr(cloud.cloudinary.uploader, "upload", _failing_upload)
    monkeypatch.setattr(uploads, "upload_file", cloud.upload_file)

    res = client.post(
        "/api/files/upload-profile-pic",
        files={"file": ("me.png", b"\x89PNG", "image/png")},
        headers=auth(token),
    )
    assert res.status_code == 500
    assert res.json()["detail"] == "Upload failed"
