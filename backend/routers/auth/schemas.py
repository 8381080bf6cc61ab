from typing import Optional
from datetime import datetime
from utils.response_helpers import CamelModel


class UserResponse(CamelModel):
    id: str
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    phone: Optional[str] = None
    role: str = "user"
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class UserProfileUpdate(CamelModel):
    display_name: Optional[str] = None
    phone: Optional[str] = None
