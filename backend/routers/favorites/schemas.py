from typing import Optional, List
from datetime import datetime
from models import FavoriteType
from utils.response_helpers import CamelModel
import uuid


class FavoriteRequest(CamelModel):
    type: FavoriteType
    item_id: uuid.UUID


class FavoriteResponse(CamelModel):
    id: str
    type: str
    item_id: str
    product_id: Optional[str] = None
    vendor_id: Optional[str] = None
    created_at: datetime


class FavoriteToggleResponse(CamelModel):
    is_favorite: bool
    favorite: Optional[FavoriteResponse] = None


class FavoriteCheckResponse(CamelModel):
    is_favorite: bool


class FavoriteListResponse(CamelModel):
    items: List[FavoriteResponse]
    total: int
