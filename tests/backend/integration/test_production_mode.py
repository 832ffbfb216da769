"""
Behaviour that differs when ENV=production: cookie flags and error detail.
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from account_service.core.error_handlers import GENERIC_MESSAGE
from account_service.main import create_app


pytestmark = pytest.mark.asyncio


@pytest.fixture
def prod_app(settings_factory):
    app = create_app(settings_factory(env="production"))

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    return app


@pytest_asyncio.fixture
async def prod_client(prod_app, db):
    transport = ASGITransport(app=prod_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


async def test_token_cookie_is_secure_in_production(prod_client):
    resp = await prod_client.post(
        "/api/v1/auth/signup",
        json={
            "username": "produser",
            "email": "prod@example.com",
            "password": "ProdPass#123",
            "passwordConfirm": "ProdPass#123",
        },
    )
    assert resp.status_code == 201
    set_cookie = resp.headers["set-cookie"]
    assert set_cookie.startswith("jwt=")
    assert "HttpOnly" in set_cookie
    assert "Secure" in set_cookie


async def test_unexpected_error_is_generic_in_production(prod_client):
    resp = await prod_client.get("/boom")
    body = resp.json()
    assert resp.status_code == 500
    assert body == {"status": "error", "code": "INTERNAL_ERROR", "message": GENERIC_MESSAGE}
    assert "secret internals" not in resp.text


async def test_operational_error_keeps_message_in_production(prod_client):
    resp = await prod_client.post("/api/v1/auth/login", json={"email": "x@example.com", "password": "nope"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Incorrect email or password."


async def test_unexpected_error_is_detailed_in_development(app, client):
    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    resp = await client.get("/boom")
    body = resp.json()
    assert resp.status_code == 500
    assert body["message"] == "secret internals"
    assert body["error"]["type"] == "RuntimeError"
    assert body["stack"]
