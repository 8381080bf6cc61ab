import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from models import Base

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

ENVIRONMENT = os.getenv("ENVIRONMENT", "dev")
DEBUG = ENVIRONMENT == "dev"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "NGN")

# Search tunables
SEARCH_DEFAULT_RADIUS_KM = float(os.getenv("SEARCH_DEFAULT_RADIUS_KM", "10"))
SEARCH_DEFAULT_PAGE_SIZE = 20
SEARCH_MAX_PAGE_SIZE = 100
SEARCH_FACET_LIMIT = 20
SEARCH_COMPARISON_LIMIT = 20
SHOP_PREVIEW_PRODUCTS = 4


def _async_url(url: str) -> str:
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql+asyncpg://"):
        base_url = url.split("?")[0]
        url = f"{base_url}?prepared_statement_cache_size=0"
    return url


def _sync_url(url: str) -> str:
    if url.startswith("postgresql+asyncpg://"):
        return url.replace("postgresql+asyncpg://", "postgresql://", 1).split("?")[0]
    if url.startswith("sqlite+aiosqlite://"):
        return url.replace("sqlite+aiosqlite://", "sqlite://", 1)
    return url


if DATABASE_URL:
    sync_engine = create_engine(_sync_url(DATABASE_URL))

    async_url = _async_url(DATABASE_URL)
    engine_options = {"echo": False}
    if async_url.startswith("postgresql+asyncpg://"):
        engine_options.update(pool_pre_ping=False, pool_size=5, max_overflow=0)

    async_engine = create_async_engine(async_url, **engine_options)

    AsyncSessionLocal = sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
else:
    sync_engine = None
    async_engine = None
    AsyncSessionLocal = None

async def get_db():
    if AsyncSessionLocal is None:
        raise Exception("Database not configured")
    async with AsyncSessionLocal() as session:
        yield session

def get_session_factory():
    """Session factory for work that needs its own session (concurrent search branches, counters)"""
    if AsyncSessionLocal is None:
        raise Exception("Database not configured")
    return AsyncSessionLocal

async def init_db():
    if async_engine is None:
        raise Exception("Database not configured")
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

def get_sync_engine():
    if sync_engine is None:
        raise Exception("Database not configured")
    return sync_engine
