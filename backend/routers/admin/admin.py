from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from config import get_db
from dependencies.rbac import require_admin, require_admin_write, require_admin_delete, require_analytics
from routers.auth.auth import get_current_user
from routers.auth.schemas import UserResponse
from routers.products.schemas import ProductResponse, ProductStatusUpdate
from routers.products.helpers import product_helpers
from routers.vendors.schemas import VendorResponse
from routers.vendors.helpers import vendor_helpers
from models import (
    UserProfile, UserRole, Vendor, Product, ProductStatus, CatalogItem,
    State, Area, Market, Review,
)
from utils.aggregates import ProductChange, apply_product_change
from utils.response_helpers import safe_model_validate, safe_model_validate_list, total_pages
from .schemas import (
    DashboardStats,
    AdminProductListResponse,
    VendorFlagsUpdate,
    UserRoleUpdate,
    UserListResponse,
)
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _count(db: AsyncSession, column, *conditions) -> int:
    result = await db.execute(select(func.count(column)).where(*conditions))
    return int(result.scalar() or 0)


async def _total(db: AsyncSession, column) -> int:
    result = await db.execute(select(func.coalesce(func.sum(column), 0)))
    return int(result.scalar() or 0)


async def _counts_by(db: AsyncSession, column, keys) -> dict:
    result = await db.execute(
        select(column, func.count().label("row_total")).group_by(column)
    )
    counts = {key: 0 for key in keys}
    for value, row_total in result.all():
        counts[value] = row_total
    return counts


# =================
# DASHBOARD
# =================

@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_analytics)
):
    """Admin only: platform-wide counts"""
    try:
        users_by_role = await _counts_by(db, UserProfile.role, [role.value for role in UserRole])
        products_by_status = await _counts_by(db, Product.status, [s.value for s in ProductStatus])

        return DashboardStats(
            total_users=sum(users_by_role.values()),
            users_by_role=users_by_role,
            total_vendors=await _count(db, Vendor.id),
            active_vendors=await _count(db, Vendor.id, Vendor.is_active == True),
            verified_vendors=await _count(db, Vendor.id, Vendor.is_verified == True),
            total_products=sum(products_by_status.values()),
            products_by_status=products_by_status,
            total_catalog_items=await _count(db, CatalogItem.id),
            total_states=await _count(db, State.id),
            total_areas=await _count(db, Area.id),
            total_markets=await _count(db, Market.id),
            total_reviews=await _count(db, Review.id, Review.is_active == True),
            total_product_views=await _total(db, Product.views),
            total_shop_views=await _total(db, Vendor.total_views),
            total_search_appearances=(
                await _total(db, Product.search_appearances) + await _total(db, Vendor.search_appearances)
            ),
        )

    except Exception as e:
        logger.error(f"Dashboard stats failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get dashboard stats"
        )


# =================
# PRODUCT MODERATION
# =================

@router.get("/products", response_model=AdminProductListResponse)
async def list_products_for_moderation(
    product_status: ProductStatus = Query(ProductStatus.PENDING, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin)
):
    """Admin only: products in one status, oldest first so the queue is worked in order"""
    try:
        conditions = [Product.status == product_status.value]
        total = await _count(db, Product.id, *conditions)

        result = await db.execute(
            select(Product)
            .where(*conditions)
            .order_by(Product.created_at.asc(), Product.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return AdminProductListResponse(
            items=safe_model_validate_list(ProductResponse, result.scalars().all()),
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages(total, limit)
        )

    except Exception as e:
        logger.error(f"Listing products for moderation failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get products"
        )


@router.put("/products/{product_id}/status", response_model=ProductResponse)
async def update_product_status(
    product_id: uuid.UUID,
    status_data: ProductStatusUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin_write)
):
    """Admin only: approve, reject (with a reason) or make any other lifecycle move"""
    try:
        product = await product_helpers.get_product(db, product_id)
        old_status = product.status
        product_helpers.check_transition(old_status, status_data.status, moderator=True)

        product.status = status_data.status.value
        if status_data.status == ProductStatus.REJECTED:
            product.rejection_reason = status_data.rejection_reason
        elif status_data.status == ProductStatus.APPROVED:
            product.rejection_reason = None
        if status_data.status == ProductStatus.OUT_OF_STOCK:
            product.in_stock = False

        await apply_product_change(db, ProductChange.for_product(product))
        await db.commit()
        await db.refresh(product)

        logger.info(f"Product {product_id} moved from {old_status} to {product.status} by {current_user['user_id']}")
        return safe_model_validate(ProductResponse, product)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Product status update failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update product status"
        )


# =================
# VENDOR MANAGEMENT
# =================

@router.put("/vendors/{vendor_id}", response_model=VendorResponse)
async def update_vendor_flags(
    vendor_id: uuid.UUID,
    flags: VendorFlagsUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin_write)
):
    """Admin only: verify, feature, deactivate or close a shop"""
    try:
        vendor = await vendor_helpers.get_vendor(db, vendor_id)
        for field, value in flags.model_dump(exclude_none=True).items():
            setattr(vendor, field, value)

        await db.commit()
        await db.refresh(vendor)

        logger.info(f"Vendor {vendor_id} flags updated by {current_user['user_id']}: {flags.model_dump(exclude_none=True)}")
        return safe_model_validate(VendorResponse, vendor)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Vendor flag update failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update vendor"
        )


@router.delete("/vendors/{vendor_id}")
async def delete_vendor(
    vendor_id: uuid.UUID,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin_delete)
):
    """Admin only: remove a shop and everything listed under it"""
    try:
        vendor = await vendor_helpers.get_vendor(db, vendor_id)
        await vendor_helpers.delete_vendor(db, vendor)
        await db.commit()

        logger.info(f"Vendor {vendor_id} deleted by {current_user['user_id']}")
        return {"message": "Vendor deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Vendor deletion failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete vendor"
        )


# =================
# USER MANAGEMENT
# =================

@router.get("/users", response_model=UserListResponse)
async def list_all_users(
    role: Optional[UserRole] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin)
):
    """Admin only: list user profiles with an optional role filter"""
    try:
        conditions = []
        if role:
            conditions.append(UserProfile.role == role.value)

        total = await _count(db, UserProfile.id, *conditions)
        result = await db.execute(
            select(UserProfile)
            .where(*conditions)
            .order_by(UserProfile.created_at.desc(), UserProfile.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return UserListResponse(
            items=safe_model_validate_list(UserResponse, result.scalars().all()),
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages(total, limit)
        )

    except Exception as e:
        logger.error(f"List users failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve users"
        )


@router.put("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: uuid.UUID,
    role_data: UserRoleUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_admin_write)
):
    """Admin only: change a user's role; it applies on the user's next request"""
    try:
        result = await db.execute(
            select(UserProfile).where(UserProfile.user_id == user_id)
        )
        user_profile = result.scalar_one_or_none()
        if not user_profile:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

        old_role = user_profile.role
        user_profile.role = role_data.role.value
        await db.commit()
        await db.refresh(user_profile)

        logger.info(f"User {user_id} role changed from {old_role} to {user_profile.role} by {current_user['user_id']}")
        return safe_model_validate(UserResponse, user_profile)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Update user role failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user role"
        )
