from pydantic import Field, model_validator
from typing import Optional, List
from datetime import datetime
from models import MarketType
from utils.response_helpers import CamelModel, PaginatedResponse
import uuid


class Coordinates(CamelModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def check_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class StateCreate(Coordinates):
    name: str = Field(..., min_length=2, max_length=100)
    code: Optional[str] = Field(None, max_length=10)


class StateResponse(CamelModel):
    id: str
    name: str
    code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool = True
    created_at: datetime


class AreaCreate(Coordinates):
    state_id: uuid.UUID
    name: str = Field(..., min_length=2, max_length=100)
    local_government: Optional[str] = None


class AreaResponse(CamelModel):
    id: str
    state_id: str
    name: str
    local_government: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool = True
    created_at: datetime


class MarketCreate(Coordinates):
    state_id: uuid.UUID
    area_id: uuid.UUID
    name: str = Field(..., min_length=2, max_length=200)
    description: Optional[str] = None
    type: MarketType = MarketType.OPEN_MARKET
    address: Optional[str] = None
    landmark: Optional[str] = None
    photos: List[str] = []
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    operating_days: List[str] = []
    contact_phone: Optional[str] = None


class MarketResponse(CamelModel):
    id: str
    state_id: str
    area_id: str
    name: str
    description: Optional[str] = None
    type: str
    address: Optional[str] = None
    landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    photos: List[str] = []
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    operating_days: List[str] = []
    contact_phone: Optional[str] = None
    total_shops: int = 0
    is_active: bool = True
    is_verified: bool = False
    created_at: datetime


class MarketListResponse(PaginatedResponse):
    items: List[MarketResponse]
