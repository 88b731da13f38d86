import asyncio
import os

# settings are read at import time
os.environ["ENV"] = "test"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOGIN_RATE_LIMIT"] = "5"
os.environ["MONGO_TRANSACTIONS"] = "false"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["FRONTEND_URL"] = "https://greencycle.test"
os.environ["API_BASE_URL"] = "https://api.greencycle.test"
os.environ["ADMIN_EMAIL"] = "root@greencycle.io"
os.environ["ADMIN_PASSWORD"] = "root-password"

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

import database
from main import app
from routes import uploads
from utils import mailer

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]
PASSWORD = "secret123"

SELLER_FIELDS = {
    "businessDesc": "Recycled HDPE pellets",
    "businessType": "Manufacturer",
    "verificationDocUrl": "https://cdn.test/verification-docs/license.pdf",
}

PRODUCT = {
    "product_name": "HDPE Regrind",
    "product_price": 450.0,
    "product_currency": "EUR",
    "product_qty": 20,
    "product_unit": "t",
    "product_category": "Plastics",
}


def auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def run():
    return asyncio.run


@pytest.fixture
def db():
    mock_db = AsyncMongoMockClient()["greencycle_test"]
    database.use_database(mock_db)
    yield mock_db
    database.use_database(None)


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    async def fake_send(to, subject, template, context):
        sent.append({"to": to, "subject": subject, "template": template, "context": context})
        return True

    monkeypatch.setattr(mailer, "send_email", fake_send)
    return sent


@pytest.fixture
def uploaded(monkeypatch):
    keys = []

    async def fake_upload(file, key, resource_type="image"):
        keys.append((key, resource_type))
        return f"https://cdn.test/{key}"

    monkeypatch.setattr(uploads, "upload_file", fake_upload)
    return keys


@pytest.fixture
def client(db, sent_emails, uploaded):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client, db, run):
    def _register(email, password=PASSWORD, name="Test User", verified=True):
        res = client.post("/api/auth/signup", json={
            "name": name,
            "email": email,
            "password": password,
            "address": "1 Green Street",
        })
        assert res.status_code == 201, res.text
        user_id = res.json()["user"]["id"]
        if verified:
            run(db.users.update_one(
                {"_id": ObjectId(user_id)},
                {"$set": {"is_email_verified": True}},
            ))
        return user_id

    return _register


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD, admin=False):
        headers = {"X-Frontend-Type": "admin"} if admin else {}
        res = client.post("/api/auth/login", json={"email": email, "password": password}, headers=headers)
        assert res.status_code == 200, res.text
        return res.json()["token"]

    return _login


@pytest.fixture
def make_user(register, login):
    def _make(email):
        user_id = register(email)
        return user_id, login(email)

    return _make


@pytest.fixture
def make_seller(client, make_user):
    def _make(email):
        user_id, token = make_user(email)
        res = client.post("/api/auth/verify", json=SELLER_FIELDS, headers=auth(token))
        assert res.status_code == 200, res.text
        return user_id, res.json()["token"]

    return _make


@pytest.fixture
def admin(client, login):
    token = login(ADMIN_EMAIL, ADMIN_PASSWORD, admin=True)
    me = client.get("/api/auth/me", headers=auth(token)).json()["user"]
    return me["id"], token


@pytest.fixture
def make_product(client):
    def _make(token, **overrides):
        res = client.post("/api/products", json={**PRODUCT, **overrides}, headers=auth(token))
        assert res.status_code == 201, res.text
        return res.json()["product"]

    return _make
