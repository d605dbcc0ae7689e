# tests/conftest.py
import os

# Settings are read at import time, so the environment has to be ready first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_DSN", "sqlite://")

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.clients.storefront_api import StorefrontAPIClient
from app.core.config import settings
from app.db.session import Base
from app.dependencies import get_db
from app.main import app
# All models have to be imported for create_all
from app.models import cart, order, package, product  # noqa: F401
from app.models.package import Package
from app.models.product import Product
from app.storefront.storage import MemoryStorage

# In-memory SQLite shared by the test session and the app through a single connection
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_USER_ID = "22222222-2222-2222-2222-222222222222"


def make_token(user_id: str, **claims) -> str:
    payload = {
        "sub": user_id,
        "aud": settings.JWT_AUDIENCE,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        "email": f"{user_id[:4]}@example.com",
        "role": "authenticated",
    }
    payload.update(claims)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


@pytest.fixture(scope="function")
def db_session() -> Session:
    """
    Clean database for every test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
async def client(db_session):
    """HTTP client talking to the app in-process, with the test database."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client
    app.dependency_overrides.clear()


@pytest.fixture
async def api_client(client):
    """StorefrontAPIClient wired to the in-process app."""
    storefront_api = StorefrontAPIClient("http://test", transport=httpx.ASGITransport(app=app))
    yield storefront_api
    await storefront_api.aclose()


@pytest.fixture
def user_token() -> str:
    return make_token(USER_ID)


@pytest.fixture
def auth_headers(user_token) -> dict:
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def other_auth_headers() -> dict:
    return {"Authorization": f"Bearer {make_token(OTHER_USER_ID)}"}


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def products(db_session):
    """
    Small catalog: two socket families (1 and 2), two RAM types (1 and 2)
    and one product for every other required builder category.
    """
    rows = [
        Product(id=1, name="CPU S1", category="CPUs", price=200, stock=10, cpu_socket_id=1),
        Product(id=2, name="CPU S2", category="CPUs", price=250, stock=10, cpu_socket_id=2),
        Product(id=3, name="Board S1 R1", category="Motherboards", price=150, stock=10, cpu_socket_id=1, ram_type_id=1),
        Product(id=4, name="Board S2 R2", category="Motherboards", price=180, stock=10, cpu_socket_id=2, ram_type_id=2),
        Product(id=5, name="RAM R1", category="RAM", price=80, stock=10, ram_type_id=1),
        Product(id=6, name="RAM R2", category="RAM", price=90, stock=10, ram_type_id=2),
        Product(id=7, name="SSD 1TB", category="Storage", price=100, sale_price=90, stock=20, image="ssd.png"),
        Product(id=8, name="PSU 650W", category="PSUs", price=70, stock=10),
        Product(id=9, name="Tower Case", category="Casings", price=60, stock=3, image="case.png"),
        Product(id=10, name="Unlimited Cable", category="Accessories", price=5, stock=None),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {p.id: p for p in rows}


@pytest.fixture
def packages(db_session):
    rows = [
        Package(id=3, name="Office Pack", image_url="office.png", price_complete=999.99, price_unit_only=799.0),
        Package(id=4, name="Retired Pack", image_url="old.png", price_complete=100, is_active=False),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {p.id: p for p in rows}
