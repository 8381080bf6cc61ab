from pydantic import Field, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from config import DEFAULT_CURRENCY
from models import ProductType, ProductStatus
from routers.search.schemas import ProductSearchFilters, ProductVendorSummary, ProductLocation
from utils.response_helpers import CamelModel, PaginatedResponse
import uuid


class ProductCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    product_type: ProductType = ProductType.SALE
    price: float = Field(..., ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    currency: str = Field(DEFAULT_CURRENCY, max_length=10)
    images: List[str] = []
    category: str = Field(..., min_length=1, max_length=100)
    subcategory: Optional[str] = None
    tags: List[str] = []
    quantity: int = Field(0, ge=0)
    unit: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    in_stock: bool = True
    save_as_draft: bool = False


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    product_type: Optional[ProductType] = None
    price: Optional[float] = Field(None, ge=0)
    original_price: Optional[float] = Field(None, ge=0)
    images: Optional[List[str]] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    subcategory: Optional[str] = None
    tags: Optional[List[str]] = None
    quantity: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    in_stock: Optional[bool] = None
    is_active: Optional[bool] = None
    status: Optional[ProductStatus] = None


class ProductStatusUpdate(CamelModel):
    status: ProductStatus
    rejection_reason: Optional[str] = None

    @model_validator(mode="after")
    def reason_for_rejection(self):
        if self.status == ProductStatus.REJECTED and not (self.rejection_reason or "").strip():
            raise ValueError("rejectionReason is required when rejecting a product")
        return self


class ProductResponse(CamelModel):
    id: str
    vendor_id: str
    catalog_item_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    brand: Optional[str] = None
    product_type: str
    price: float
    original_price: Optional[float] = None
    currency: str
    images: List[str] = []
    category: str
    subcategory: Optional[str] = None
    tags: List[str] = []
    quantity: int = 0
    unit: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    status: str
    rejection_reason: Optional[str] = None
    is_active: bool = True
    in_stock: bool = True
    views: int = 0
    search_appearances: int = 0
    rating: float = 0.0
    review_count: int = 0
    state_id: Optional[str] = None
    area_id: Optional[str] = None
    market_id: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: datetime
    updated_at: datetime


class ProductDetailResponse(ProductResponse):
    vendor: ProductVendorSummary
    location: ProductLocation


class ProductListResponse(PaginatedResponse):
    items: List[ProductResponse]


class ProductListFilters(ProductSearchFilters):
    """Product search filters plus owner and status; `search` is accepted as an alias of `query`"""
    vendor_id: Optional[uuid.UUID] = None
    status: ProductStatus = ProductStatus.APPROVED
    search: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def search_as_query(cls, data):
        if isinstance(data, dict) and data.get("search") and not data.get("query"):
            data = {**data, "query": data["search"]}
        return data
