from sqlalchemy import (
    Boolean,
    String,
    Text,
    DateTime,
    SmallInteger,
    CheckConstraint,
    UniqueConstraint,
    Index,
    text,
    ForeignKey,
    Float,
    Integer,
    JSON,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, declarative_base
from typing import Optional
from datetime import datetime, timezone
from enum import Enum
import uuid

Base = declarative_base()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    USER = "user"
    VENDOR = "vendor"
    ADMIN = "admin"


class ProductStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    OUT_OF_STOCK = "out_of_stock"
    DISCONTINUED = "discontinued"


class ProductType(str, Enum):
    SALE = "sale"
    LEASE = "lease"
    RENT = "rent"
    SERVICE = "service"


class VendorType(str, Enum):
    MARKET_SHOP = "market_shop"
    MALL_SHOP = "mall_shop"
    HOME_BASED = "home_based"
    STREET_SHOP = "street_shop"
    ONLINE_ONLY = "online_only"


class MarketType(str, Enum):
    OPEN_MARKET = "open_market"
    SHOPPING_MALL = "shopping_mall"
    PLAZA = "plaza"
    STREET_MARKET = "street_market"
    SPECIALIZED_MARKET = "specialized_market"
    OTHER = "other"


class ReviewType(str, Enum):
    PRODUCT = "product"
    VENDOR = "vendor"


# Favorites point at the same two kinds of entity as reviews
FavoriteType = ReviewType


def _created_at():
    return mapped_column(
        DateTime(True),
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )


def _updated_at():
    return mapped_column(
        DateTime(True),
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=False
    )


# =================
# LOCATION HIERARCHY
# =================

class State(Base):
    """
    Top level of the location hierarchy (e.g. Lagos)
    Coordinates are only stored when they are actually known
    """
    __tablename__ = "states"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    code: Mapped[Optional[str]] = mapped_column(String(10))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = _created_at()


class Area(Base):
    __tablename__ = "areas"
    __table_args__ = (
        UniqueConstraint("state_id", "name", name="areas_state_name_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    state_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("states.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    local_government: Mapped[Optional[str]] = mapped_column(String(100))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = _created_at()


class Market(Base):
    """
    A market, mall or plaza inside an area
    area_id must belong to the same state as state_id (checked when markets are created)
    """
    __tablename__ = "markets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    state_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("states.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    area_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("areas.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(50), default=MarketType.OPEN_MARKET.value, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255))
    landmark: Mapped[Optional[str]] = mapped_column(String(255))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    photos: Mapped[Optional[list]] = mapped_column(JSONType, default=list)
    opening_time: Mapped[Optional[str]] = mapped_column(String(10))
    closing_time: Mapped[Optional[str]] = mapped_column(String(10))
    operating_days: Mapped[Optional[list]] = mapped_column(JSONType, default=list)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(20))
    total_shops: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = _created_at()


# =================
# USERS
# =================

class UserProfile(Base):
    """
    Application profile for an authenticated subject
    user_id is the `sub` claim of the bearer token; rows are created on first authenticated request
    """
    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), unique=True, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    display_name: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(20))

    # Role-based access control
    role: Mapped[str] = mapped_column(String(50), default=UserRole.USER.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


# =================
# VENDOR DIRECTORY
# =================

class Vendor(Base):
    """
    A shop profile. Exactly one per user.
    total_products, min/max_product_price are maintained by utils.aggregates;
    rating/review_count by the reviews router; total_views/search_appearances by utils.counters
    """
    __tablename__ = "vendors"
    __table_args__ = (
        CheckConstraint("min_product_price <= max_product_price", name="vendors_price_range_check"),
        Index("vendors_location_idx", "state_id", "area_id", "market_id"),
        Index("vendors_geo_idx", "latitude", "longitude"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), unique=True, nullable=False)

    business_name: Mapped[str] = mapped_column(String(200), nullable=False)
    business_description: Mapped[Optional[str]] = mapped_column(Text)
    vendor_type: Mapped[str] = mapped_column(String(50), default=VendorType.MARKET_SHOP.value, nullable=False)

    # Location hierarchy
    state_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("states.id"), nullable=False
    )
    area_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("areas.id"), nullable=False
    )
    market_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("markets.id", ondelete="SET NULL")
    )

    # Placement inside the market
    shop_number: Mapped[Optional[str]] = mapped_column(String(50))
    shop_floor: Mapped[Optional[str]] = mapped_column(String(50))
    shop_block: Mapped[Optional[str]] = mapped_column(String(50))
    shop_address: Mapped[Optional[str]] = mapped_column(String(255))
    landmark: Mapped[Optional[str]] = mapped_column(String(255))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)

    shop_images: Mapped[Optional[dict]] = mapped_column(JSONType, default=dict)  # entrance_photo, logo, layout_map, additional_images
    contact_details: Mapped[dict] = mapped_column(JSONType, nullable=False)  # phone is required
    bank_details: Mapped[Optional[dict]] = mapped_column(JSONType)
    operating_hours: Mapped[Optional[dict]] = mapped_column(JSONType)  # opening_time, closing_time, operating_days, is_24_hours

    categories: Mapped[Optional[list]] = mapped_column(JSONType, default=list)
    tags: Mapped[Optional[list]] = mapped_column(JSONType, default=list)

    # Denormalized aggregates
    total_products: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    search_appearances: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_product_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    max_product_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_open: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


# =================
# CATALOG REFERENCE
# =================

class CatalogItem(Base):
    """
    Canonical product definition used to link listings across vendors
    Price statistics are recomputed from linked active+approved products by utils.aggregates
    """
    __tablename__ = "catalog_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    sku: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
    brand: Mapped[Optional[str]] = mapped_column(String(100))
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    subcategory: Mapped[Optional[str]] = mapped_column(String(100))
    tags: Mapped[Optional[list]] = mapped_column(JSONType, default=list)
    images: Mapped[Optional[list]] = mapped_column(JSONType, default=list)
    specifications: Mapped[Optional[dict]] = mapped_column(JSONType)
    alternate_names: Mapped[Optional[list]] = mapped_column(JSONType, default=list)

    total_listings: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lowest_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    highest_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    average_price: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


# =================
# PRODUCT LISTINGS
# =================

class Product(Base):
    """
    A sellable item at one vendor
    state_id/area_id/market_id/latitude/longitude are a snapshot of the vendor's location,
    re-copied by utils.aggregates.resync_product_locations when the vendor moves
    """
    __tablename__ = "products"
    __table_args__ = (
        Index("products_search_idx", "status", "is_active", "category"),
        Index("products_location_idx", "state_id", "area_id", "market_id"),
        Index("products_geo_idx", "latitude", "longitude"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    catalog_item_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("catalog_items.id", ondelete="SET NULL"),
        index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    sku: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    brand: Mapped[Optional[str]] = mapped_column(String(100))
    product_type: Mapped[str] = mapped_column(String(20), default=ProductType.SALE.value, nullable=False)

    price: Mapped[float] = mapped_column(Float, nullable=False)
    original_price: Mapped[Optional[float]] = mapped_column(Float)
    currency: Mapped[str] = mapped_column(String(10), default="NGN", nullable=False)

    images: Mapped[Optional[list]] = mapped_column(JSONType, default=list)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    subcategory: Mapped[Optional[str]] = mapped_column(String(100))
    tags: Mapped[Optional[list]] = mapped_column(JSONType, default=list)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit: Mapped[Optional[str]] = mapped_column(String(50))
    specifications: Mapped[Optional[dict]] = mapped_column(JSONType)

    status: Mapped[str] = mapped_column(String(20), default=ProductStatus.PENDING.value, nullable=False)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    in_stock: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_restocked: Mapped[Optional[datetime]] = mapped_column(DateTime(True))

    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    search_appearances: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    review_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Location snapshot copied from the vendor
    state_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), ForeignKey("states.id"))
    area_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(as_uuid=True), ForeignKey("areas.id"))
    market_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("markets.id", ondelete="SET NULL")
    )
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


# =================
# REVIEWS & FAVORITES
# =================

class Review(Base):
    """
    A rating of either a product or a vendor; one per user per item
    """
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="reviews_rating_check"),
        UniqueConstraint("user_id", "product_id", name="reviews_user_product_key"),
        UniqueConstraint("user_id", "vendor_id", name="reviews_user_vendor_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE"), index=True
    )
    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("vendors.id", ondelete="CASCADE"), index=True
    )

    rating: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(200))
    comment: Mapped[Optional[str]] = mapped_column(Text)
    images: Mapped[Optional[list]] = mapped_column(JSONType, default=list)
    helpful_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = _updated_at()


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "type", "item_id", name="favorites_user_type_item_key"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    item_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("products.id", ondelete="CASCADE")
    )
    vendor_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("vendors.id", ondelete="CASCADE")
    )

    created_at: Mapped[datetime] = _created_at()
