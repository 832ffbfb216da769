import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from account_service.config import Settings
from account_service.core.db import build_tortoise_config
from account_service.main import create_app
from account_service.models.user import Role, User


TEST_DB_URL = "sqlite://:memory:"


def make_settings(**overrides) -> Settings:
    """
    Settings for tests: in-memory database, fixed secret and the lowest bcrypt
    cost so hashing stays fast.
    """
    values = {
        "env": "development",
        "database_url": TEST_DB_URL,
        "jwt_secret": "test-secret",
        "bcrypt_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings_factory():
    """Build test settings with overrides, e.g. settings_factory(env="production")."""
    return make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest_asyncio.fixture
async def db():
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    await Tortoise.init(config=build_tortoise_config(TEST_DB_URL))
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client(app, db):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    Startup hooks are not run; the db fixture owns the connection.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest.fixture
def users(app):
    """The user collection wired into the app."""
    return app.state.users


@pytest.fixture
def tokens(app):
    return app.state.tokens


@pytest_asyncio.fixture
async def create_user(users, db):
    """
    Factory fixture to create users directly through the collection.
    """

    async def _create_user(password: str = "UserPass!23", role: Role = Role.USER, **fields) -> tuple[User, str]:
        prefix = "admin" if role == Role.ADMIN else "user"
        payload = {
            "username": f"{prefix}_{uuid.uuid4().hex[:6]}",
            "email": f"{prefix}_{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "passwordConfirm": password,
            "role": role,
        }
        payload.update(fields)
        user = await users.create(payload)
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_admin(create_user):
    async def _create_admin(password: str = "AdminPass!23") -> tuple[User, str]:
        return await create_user(password=password, role=Role.ADMIN)

    return _create_admin


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    The cookie set by login is cleared so only the header authenticates.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"email": email, "password": password},
        )
        assert resp.status_code == 200, resp.text
        client.cookies.clear()
        token = resp.json()["token"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
