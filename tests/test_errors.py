from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from utils.errors import Conflict, register_exception_handlers


class Payload(BaseModel):
    count: int


def _app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.post("/payload")
    async def payload(data: Payload):
        return {"count": data.count}

    @app.get("/duplicate")
    async def duplicate():
        raise DuplicateKeyError("E11000 duplicate key error")

    @app.get("/conflict")
    async def conflict():
        raise Conflict("Email already in use")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return app


def test_validation_error_is_400_with_field_list():
    client = TestClient(_app())
    res = client.post("/payload", json={"count": "many"})

    assert res.status_code == 400
    assert res.json()["errors"][0]["field"] == "count"


def test_duplicate_key_is_409():
    res = TestClient(_app()).get("/duplicate")
    assert res.status_code == 409


def test_http_errors_keep_their_status():
    res = TestClient(_app()).get("/conflict")
    assert res.status_code == 409
    assert res.json()["detail"] == "Email already in use"


def test_unhandled_error_is_500_with_detail_outside_production():
    res = TestClient(_app(), raise_server_exceptions=False).get("/boom")

    assert res.status_code == 500
    body = res.json()
    assert body["detail"] == "Internal server error"
    assert "kaboom" in body["error"]


def test_unhandled_error_hides_detail_in_production(monkeypatch):
    import utils.errors

    monkeypatch.setattr(utils.errors, "is_production", lambda: True)
    res = TestClient(_app(), raise_server_exceptions=False).get("/boom")

    assert res.status_code == 500
    assert "error" not in res.json()
