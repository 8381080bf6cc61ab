from typing import Optional, List, Dict
from models import UserRole
from routers.auth.schemas import UserResponse
from routers.products.schemas import ProductResponse
from utils.response_helpers import CamelModel, PaginatedResponse


class DashboardStats(CamelModel):
    total_users: int
    users_by_role: Dict[str, int]
    total_vendors: int
    active_vendors: int
    verified_vendors: int
    total_products: int
    products_by_status: Dict[str, int]
    total_catalog_items: int
    total_states: int
    total_areas: int
    total_markets: int
    total_reviews: int
    total_product_views: int
    total_shop_views: int
    total_search_appearances: int


class AdminProductListResponse(PaginatedResponse):
    items: List[ProductResponse]


class VendorFlagsUpdate(CamelModel):
    is_verified: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    is_open: Optional[bool] = None


class UserRoleUpdate(CamelModel):
    role: UserRole


class UserListResponse(PaginatedResponse):
    items: List[UserResponse]
