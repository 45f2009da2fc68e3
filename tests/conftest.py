"""Shared fixtures: a throwaway SQLite database, an ASGI client and data builders."""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="farm-market-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/market.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TRACING_ENABLED"] = "false"
os.environ["SUPPORT_USER_ID"] = "900"

import httpx
import pytest
import pytest_asyncio

from main import app
from services.auth_service.models import User
from services.listing_service.models import Listing, ListingImage
from services.verification_service.models import SellerVerification
from shared.config.database import AsyncSessionLocal, Base, engine
from shared.security import create_access_token

SELLER_ID = 1
BUYER_ID = 2
OTHER_BUYER_ID = 3
ADMIN_ID = 4

SHIPPING = {
    "receiver_name": "Kim Minji",
    "receiver_phone": "010-1234-5678",
    "postal_code": "04524",
    "road_address": "110 Sejong-daero, Jung-gu, Seoul",
    "address_detail": "3F",
}


@pytest_asyncio.fixture
async def tables():
    """Create the schema for one test and drop it afterwards."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(tables):
    async with AsyncSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_factory(tables):
    return AsyncSessionLocal


@pytest_asyncio.fixture
async def client(tables):
    """ASGI client. Requests must carry a token of an existing account, so the
    fixed test users are created up front."""
    async with AsyncSessionLocal() as s:
        for user_id in (SELLER_ID, BUYER_ID, OTHER_BUYER_ID):
            await add_user(s, user_id)
        await add_user(s, ADMIN_ID, is_admin=True)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def auth_headers(user_id: int) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


async def add_user(db, user_id: int, is_admin: bool = False) -> User:
    user = User(
        id=user_id,
        email=f"user{user_id}@farm.example.com",
        hashed_password="not-a-real-hash",
        is_admin=is_admin,
    )
    db.add(user)
    await db.commit()
    return user


async def approve_seller(db, user_id: int = SELLER_ID) -> SellerVerification:
    verification = SellerVerification(
        user_id=user_id,
        farm_name="Green Valley Farm",
        owner_name="Park Seojun",
        phone="010-0000-0000",
        address="Icheon-si, Gyeonggi-do",
        business_license_path=f"{user_id}/license.pdf",
        status="approved",
    )
    db.add(verification)
    await db.commit()
    return verification


async def add_listing(
    db, owner_id: int = SELLER_ID, price=10000, stock=3, title="Heirloom tomatoes", images=()
) -> Listing:
    listing = Listing(
        owner_id=owner_id,
        title=title,
        category="vegetables",
        price=price,
        stock_quantity=stock,
        status="on_sale",
        images=[ListingImage(url=url, sort_order=i) for i, url in enumerate(images)],
    )
    db.add(listing)
    await db.commit()
    await db.refresh(listing)
    return listing
