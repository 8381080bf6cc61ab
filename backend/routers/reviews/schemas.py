from pydantic import Field, model_validator
from typing import Optional, List, Dict
from datetime import datetime
from models import ReviewType
from utils.response_helpers import CamelModel, PaginatedResponse
import uuid


class ReviewCreate(CamelModel):
    type: ReviewType
    product_id: Optional[uuid.UUID] = None
    vendor_id: Optional[uuid.UUID] = None
    rating: int = Field(..., ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = Field(None, max_length=2000)
    images: List[str] = []

    @model_validator(mode="after")
    def check_target(self):
        if self.type == ReviewType.PRODUCT and self.product_id is None:
            raise ValueError("productId is required for a product review")
        if self.type == ReviewType.VENDOR and self.vendor_id is None:
            raise ValueError("vendorId is required for a vendor review")
        return self

    @property
    def target_id(self) -> uuid.UUID:
        return self.product_id if self.type == ReviewType.PRODUCT else self.vendor_id


class ReviewUpdate(CamelModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, max_length=200)
    comment: Optional[str] = Field(None, max_length=2000)
    images: Optional[List[str]] = None


class ReviewResponse(CamelModel):
    id: str
    user_id: str
    type: str
    product_id: Optional[str] = None
    vendor_id: Optional[str] = None
    rating: int
    title: Optional[str] = None
    comment: Optional[str] = None
    images: List[str] = []
    helpful_count: int = 0
    is_verified: bool = False
    created_at: datetime
    updated_at: datetime


class ReviewListResponse(PaginatedResponse):
    items: List[ReviewResponse]
    average_rating: float = 0.0
    rating_distribution: Dict[str, int] = {}
