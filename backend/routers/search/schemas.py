"""
Search request filters and result shapes

Filters are immutable and validated once, at the HTTP boundary, then passed unchanged
through query building, execution and result shaping.
"""
from pydantic import ConfigDict, Field, field_validator, model_validator
from typing import Optional, List, Any
from datetime import datetime
from enum import Enum
from config import (
    SEARCH_DEFAULT_RADIUS_KM,
    SEARCH_DEFAULT_PAGE_SIZE,
    SEARCH_MAX_PAGE_SIZE,
)
from models import VendorType
from routers.vendors.schemas import LocationRef, ShopLocation, ContactDetails, BankDetails
from utils.response_helpers import CamelModel, PaginatedResponse
import uuid


class SearchType(str, Enum):
    PRODUCTS = "products"
    SHOPS = "shops"
    ALL = "all"


class SortBy(str, Enum):
    RELEVANCE = "relevance"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    NEWEST = "newest"
    DISTANCE = "distance"
    POPULARITY = "popularity"


# =================
# FILTERS
# =================

class SearchFilters(CamelModel):
    model_config = ConfigDict(frozen=True)

    query: Optional[str] = None

    state_id: Optional[uuid.UUID] = None
    area_id: Optional[uuid.UUID] = None
    market_id: Optional[uuid.UUID] = None

    longitude: Optional[float] = Field(None, ge=-180, le=180)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    max_distance: float = Field(SEARCH_DEFAULT_RADIUS_KM, gt=0, description="Radius in kilometres")

    category: Optional[str] = None
    subcategory: Optional[str] = None
    brand: Optional[str] = None

    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)

    in_stock: Optional[bool] = None
    verified_only: bool = False

    sort_by: SortBy = SortBy.RELEVANCE
    page: int = Field(1, ge=1)
    limit: int = Field(SEARCH_DEFAULT_PAGE_SIZE, ge=1, le=SEARCH_MAX_PAGE_SIZE)

    @field_validator("query", "category", "subcategory", "brand", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @model_validator(mode="after")
    def check_ranges(self):
        if (self.longitude is None) != (self.latitude is None):
            raise ValueError("longitude and latitude must be provided together")
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("minPrice cannot be greater than maxPrice")
        return self

    @property
    def is_geo(self) -> bool:
        return self.longitude is not None and self.latitude is not None

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def narrow(self, filter_class):
        """Re-type these filters as another filter kind, keeping the fields both share"""
        shared = {name: getattr(self, name) for name in filter_class.model_fields if name in type(self).model_fields}
        return filter_class(**shared)


class ProductSearchFilters(SearchFilters):
    sku: Optional[str] = None
    barcode: Optional[str] = None

    @field_validator("sku", "barcode", mode="before")
    @classmethod
    def blank_code_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class ShopSearchFilters(SearchFilters):
    vendor_type: Optional[VendorType] = None
    is_open: Optional[bool] = None


class UnifiedSearchFilters(ShopSearchFilters):
    search_type: SearchType = SearchType.ALL
    sku: Optional[str] = None
    barcode: Optional[str] = None


class FacetFilters(CamelModel):
    """Facets only look at text and category; location pins narrow areas/markets"""
    model_config = ConfigDict(frozen=True)

    query: Optional[str] = None
    category: Optional[str] = None
    state_id: Optional[uuid.UUID] = None
    area_id: Optional[uuid.UUID] = None

    @field_validator("query", "category", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


class ShopProductsFilters(CamelModel):
    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    min_price: Optional[float] = Field(None, ge=0)
    max_price: Optional[float] = Field(None, ge=0)
    page: int = Field(1, ge=1)
    limit: int = Field(SEARCH_DEFAULT_PAGE_SIZE, ge=1, le=SEARCH_MAX_PAGE_SIZE)

    @model_validator(mode="after")
    def check_ranges(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("minPrice cannot be greater than maxPrice")
        return self


# =================
# RESULTS
# =================

class VendorContactSummary(CamelModel):
    phone: Optional[str] = None
    whatsapp: Optional[str] = None


class ProductVendorSummary(CamelModel):
    id: str
    business_name: str
    logo: Optional[str] = None
    rating: float = 0.0
    is_verified: bool = False
    contact_details: VendorContactSummary


class ProductLocation(CamelModel):
    state: Optional[LocationRef] = None
    area: Optional[LocationRef] = None
    market: Optional[LocationRef] = None
    shop_number: Optional[str] = None
    shop_address: Optional[str] = None
    coordinates: Optional[List[float]] = None  # [longitude, latitude]


class ProductSearchItem(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    brand: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    images: List[str] = []
    price: float
    original_price: Optional[float] = None
    currency: str
    in_stock: bool
    views: int = 0
    created_at: datetime
    distance: Optional[float] = None  # kilometres, geo searches only
    vendor: ProductVendorSummary
    location: ProductLocation


class ProductSearchPage(PaginatedResponse):
    items: List[ProductSearchItem] = []


class FeaturedProduct(CamelModel):
    id: str
    name: str
    price: float
    image: Optional[str] = None


class ShopPriceRange(CamelModel):
    min: float = 0.0
    max: float = 0.0


class ShopContactSummary(CamelModel):
    phone: Optional[str] = None
    whatsapp: Optional[str] = None
    email: Optional[str] = None
    instagram: Optional[str] = None


class ShopOperatingHours(CamelModel):
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    operating_days: List[str] = []
    is_open: bool = True


class ShopSearchItem(CamelModel):
    id: str
    business_name: str
    business_description: Optional[str] = None
    vendor_type: str
    logo: Optional[str] = None
    entrance_photo: Optional[str] = None
    layout_map: Optional[str] = None
    rating: float = 0.0
    review_count: int = 0
    total_products: int = 0
    is_verified: bool = False
    is_featured: bool = False
    categories: List[str] = []
    distance: Optional[float] = None
    price_range: ShopPriceRange
    contact_details: ShopContactSummary
    bank_details: Optional[BankDetails] = None
    location: ShopLocation
    operating_hours: ShopOperatingHours
    featured_products: List[FeaturedProduct] = []


class ShopSearchPage(PaginatedResponse):
    items: List[ShopSearchItem] = []


class ComparisonVendor(CamelModel):
    vendor_id: str
    product_id: str
    business_name: str
    logo: Optional[str] = None
    entrance_photo: Optional[str] = None
    rating: float = 0.0
    is_verified: bool = False
    price: float
    original_price: Optional[float] = None
    in_stock: bool
    quantity: int = 0
    contact_details: ContactDetails
    bank_details: Optional[BankDetails] = None
    location: ShopLocation
    operating_hours: ShopOperatingHours


class ComparisonPriceRange(CamelModel):
    lowest: float
    highest: float
    average: float
    currency: str


class ComparisonGroup(CamelModel):
    id: str  # grouping key: sku, or lower-cased name
    catalog_item_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    brand: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    images: List[str] = []
    price_range: ComparisonPriceRange
    total_vendors: int
    vendors: List[ComparisonVendor]


class ComparisonResult(CamelModel):
    items: List[ComparisonGroup] = []
    total: int = 0


class FacetCount(CamelModel):
    id: Optional[str] = None
    name: str
    count: int


class FacetPriceRange(CamelModel):
    min: float = 0.0
    max: float = 0.0


class AvailableFilters(CamelModel):
    states: List[FacetCount] = []
    areas: List[FacetCount] = []
    markets: List[FacetCount] = []
    categories: List[FacetCount] = []
    brands: List[FacetCount] = []
    price_range: FacetPriceRange = FacetPriceRange()


class SearchMeta(CamelModel):
    query: Optional[str] = None
    search_type: SearchType
    timestamp: datetime
    took_ms: int


class UnifiedSearchResponse(CamelModel):
    products: Optional[ProductSearchPage] = None
    shops: Optional[ShopSearchPage] = None
    product_comparison: Optional[ComparisonResult] = None
    available_filters: AvailableFilters
    meta: SearchMeta


class ShopProductsResponse(PaginatedResponse):
    shop: ShopSearchItem
    products: List[ProductSearchItem] = []


class SimilarProductsResponse(CamelModel):
    items: List[ProductSearchItem] = []


def empty_page(page_class, filters) -> Any:
    """Well-typed empty result used when a search branch fails"""
    return page_class(items=[], total=0, page=filters.page, limit=filters.limit, total_pages=0)


def coordinates(latitude: Optional[float], longitude: Optional[float]) -> Optional[List[float]]:
    if latitude is None or longitude is None:
        return None
    return [longitude, latitude]

