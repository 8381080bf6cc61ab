"""Pytest configuration: throwaway SQLite database, dependency overrides, token minting and seeders."""

import os

# Must be set before the app (and config) is imported
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone
import uuid

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from config import get_db, get_session_factory
from main import app
from models import (
    Base, State, Area, Market, Vendor, Product, CatalogItem, UserProfile,
    ProductStatus, UserRole,
)
from utils.aggregates import ProductChange, apply_product_change, location_snapshot

JWT_SECRET = os.environ["JWT_SECRET_KEY"]


def make_token(user_id, role="user", email=None, expires_in=3600, secret=JWT_SECRET):
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email or f"{user_id}@example.com",
        "user_metadata": {"role": role},
        "iat": now - timedelta(seconds=5),
        "exp": now + timedelta(seconds=expires_in),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(user_id, role="user"):
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


class Seeder:
    """Writes fixtures straight to the database; every helper commits"""

    def __init__(self, session, session_factory):
        self.session = session
        self.session_factory = session_factory

    async def _add(self, instance):
        self.session.add(instance)
        await self.session.commit()
        return instance

    async def fetch(self, model, item_id):
        """Read a row through a fresh session so changes made by requests are visible"""
        async with self.session_factory() as session:
            return await session.get(model, item_id)

    async def state(self, name="Lagos", **fields):
        return await self._add(State(name=name, **fields))

    async def area(self, state, name="Ikeja", **fields):
        return await self._add(Area(state_id=state.id, name=name, **fields))

    async def market(self, state, area, name="Computer Village", **fields):
        return await self._add(Market(state_id=state.id, area_id=area.id, name=name, **fields))

    async def user(self, role=UserRole.USER, user_id=None, **fields):
        return await self._add(UserProfile(user_id=user_id or uuid.uuid4(), role=role.value, **fields))

    async def vendor(self, state, area, market=None, user_id=None, business_name="Gadget Hub", **fields):
        fields.setdefault("contact_details", {"phone": "08012345678", "whatsapp": "08012345678"})
        vendor = Vendor(
            user_id=user_id or uuid.uuid4(),
            business_name=business_name,
            state_id=state.id,
            area_id=area.id,
            market_id=market.id if market else None,
            **fields
        )
        return await self._add(vendor)

    async def catalog_item(self, name="iPhone 15", category="Phones", **fields):
        return await self._add(CatalogItem(name=name, category=category, **fields))

    async def product(self, vendor, name="iPhone 15", price=100.0, category="Phones",
                      status=ProductStatus.APPROVED, **fields):
        product = Product(
            vendor_id=vendor.id,
            name=name,
            price=price,
            category=category,
            status=status.value,
            **{**location_snapshot(vendor), **fields}
        )
        self.session.add(product)
        await apply_product_change(self.session, ProductChange.for_product(product))
        await self.session.commit()
        return product


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def seed(db, session_factory):
    return Seeder(db, session_factory)


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def lagos(seed):
    """Lagos > Ikeja > Computer Village, with coordinates for proximity searches"""
    state = await seed.state("Lagos", latitude=6.5244, longitude=3.3792)
    area = await seed.area(state, "Ikeja", latitude=6.6018, longitude=3.3515)
    market = await seed.market(state, area, "Computer Village", latitude=6.5966, longitude=3.3421)
    return state, area, market
