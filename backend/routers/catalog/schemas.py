from pydantic import Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from utils.response_helpers import CamelModel, PaginatedResponse


class CatalogItemCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = Field(None, max_length=100)
    barcode: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    subcategory: Optional[str] = None
    tags: List[str] = []
    images: List[str] = []
    specifications: Optional[Dict[str, Any]] = None
    alternate_names: List[str] = []


class CatalogItemResponse(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    brand: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    tags: List[str] = []
    images: List[str] = []
    specifications: Optional[Dict[str, Any]] = None
    alternate_names: List[str] = []
    total_listings: int = 0
    lowest_price: float = 0.0
    highest_price: float = 0.0
    average_price: float = 0.0
    is_active: bool = True
    created_at: datetime


class CatalogListResponse(PaginatedResponse):
    items: List[CatalogItemResponse]


class ValueCount(CamelModel):
    name: str
    count: int
