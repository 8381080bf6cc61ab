from pydantic import Field, model_validator
from typing import Optional, List
from datetime import datetime
from models import VendorType
from utils.response_helpers import CamelModel, PaginatedResponse
import uuid


# Nested JSON documents stored on the vendor row
class ContactDetails(CamelModel):
    phone: str = Field(..., min_length=5, max_length=20)
    alternate_phone: Optional[str] = None
    email: Optional[str] = None
    whatsapp: Optional[str] = None
    instagram: Optional[str] = None
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    website: Optional[str] = None


class BankDetails(CamelModel):
    bank_name: Optional[str] = None
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    bank_code: Optional[str] = None


class OperatingHours(CamelModel):
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    operating_days: List[str] = []
    is_24_hours: bool = False


class ShopImages(CamelModel):
    entrance_photo: Optional[str] = None
    logo: Optional[str] = None
    layout_map: Optional[str] = None
    additional_images: List[str] = []


class LocationRef(CamelModel):
    id: str
    name: str
    type: Optional[str] = None


class ShopLocation(CamelModel):
    state: Optional[LocationRef] = None
    area: Optional[LocationRef] = None
    market: Optional[LocationRef] = None
    shop_number: Optional[str] = None
    shop_floor: Optional[str] = None
    shop_block: Optional[str] = None
    shop_address: Optional[str] = None
    landmark: Optional[str] = None
    coordinates: Optional[List[float]] = None  # [longitude, latitude]


# Requests
class VendorCreate(CamelModel):
    business_name: str = Field(..., min_length=2, max_length=200)
    business_description: Optional[str] = None
    vendor_type: VendorType = VendorType.MARKET_SHOP
    state_id: uuid.UUID
    area_id: uuid.UUID
    market_id: Optional[uuid.UUID] = None
    shop_number: Optional[str] = None
    shop_floor: Optional[str] = None
    shop_block: Optional[str] = None
    shop_address: Optional[str] = None
    landmark: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    shop_images: Optional[ShopImages] = None
    contact_details: ContactDetails
    bank_details: Optional[BankDetails] = None
    operating_hours: Optional[OperatingHours] = None
    categories: List[str] = []
    tags: List[str] = []

    @model_validator(mode="after")
    def check_coordinates(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class VendorUpdate(CamelModel):
    business_name: Optional[str] = Field(None, min_length=2, max_length=200)
    business_description: Optional[str] = None
    vendor_type: Optional[VendorType] = None
    state_id: Optional[uuid.UUID] = None
    area_id: Optional[uuid.UUID] = None
    market_id: Optional[uuid.UUID] = None
    shop_number: Optional[str] = None
    shop_floor: Optional[str] = None
    shop_block: Optional[str] = None
    shop_address: Optional[str] = None
    landmark: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    shop_images: Optional[ShopImages] = None
    contact_details: Optional[ContactDetails] = None
    bank_details: Optional[BankDetails] = None
    operating_hours: Optional[OperatingHours] = None
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    is_open: Optional[bool] = None

    @model_validator(mode="after")
    def check_coordinates(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


# Responses
class VendorResponse(CamelModel):
    id: str
    user_id: str
    business_name: str
    business_description: Optional[str] = None
    vendor_type: str
    state_id: str
    area_id: str
    market_id: Optional[str] = None
    shop_number: Optional[str] = None
    shop_floor: Optional[str] = None
    shop_block: Optional[str] = None
    shop_address: Optional[str] = None
    landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    shop_images: Optional[ShopImages] = None
    contact_details: ContactDetails
    bank_details: Optional[BankDetails] = None
    operating_hours: Optional[OperatingHours] = None
    categories: List[str] = []
    tags: List[str] = []
    total_products: int = 0
    total_views: int = 0
    search_appearances: int = 0
    rating: float = 0.0
    review_count: int = 0
    min_product_price: float = 0.0
    max_product_price: float = 0.0
    is_active: bool = True
    is_verified: bool = False
    is_featured: bool = False
    is_open: bool = True
    created_at: datetime
    updated_at: datetime


class VendorDetailResponse(VendorResponse):
    location: ShopLocation


class VendorListResponse(PaginatedResponse):
    items: List[VendorResponse]
