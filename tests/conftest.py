import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from tortoise import Tortoise

from app.main import app
from app.core.database import TORTOISE_MODULES
from app.enums.user_role import UserRole
from app.models.product import Product
from app.models.user import User
from tests.factories import make_user, make_product


@pytest.fixture(scope="function", autouse=True)
async def initialize_tests():
    """Fresh in-memory database for every test"""
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules=TORTOISE_MODULES,
        use_tz=True,
        timezone="UTC",
    )
    await Tortoise.generate_schemas()
    yield
    await Tortoise.close_connections()


@pytest.fixture
async def client() -> AsyncGenerator:
    """Create async HTTP client for testing"""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def vendor() -> User:
    return await make_user("Vendor", UserRole.vendor)


@pytest.fixture
async def buyer() -> User:
    return await make_user("Buyer")


@pytest.fixture
async def admin() -> User:
    return await make_user("Admin", UserRole.admin)


@pytest.fixture
async def product(vendor: User) -> Product:
    """Active auction, starting price 1000 (increment 50)"""
    return await make_product(vendor)
