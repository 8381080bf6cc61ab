from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from config import get_db, get_session_factory
from models import Vendor, UserProfile, UserRole, VendorType
from routers.auth.auth import get_current_user
from routers.locations.helpers import location_helpers
from routers.search.filters import contains_text, json_list_contains_text, json_list_has_value
from dependencies.rbac import require_vendor_register, require_vendor_self, require_vendor_self_delete
from utils.aggregates import resync_product_locations
from utils.counters import increment_counter
from utils.response_helpers import safe_model_validate, safe_model_validate_list, total_pages
from .schemas import (
    VendorCreate,
    VendorUpdate,
    VendorResponse,
    VendorDetailResponse,
    VendorListResponse,
)
from .helpers import vendor_helpers, LOCATION_FIELDS
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/vendors", tags=["Vendors"])


# =================
# OWN SHOP
# =================

@router.post("", response_model=VendorResponse, status_code=status.HTTP_201_CREATED)
async def register_vendor(
    vendor_data: VendorCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_vendor_register)
):
    """Register a shop for the current user (one per user)"""
    try:
        existing = await db.execute(
            select(Vendor.id).where(Vendor.user_id == current_user["user_id"])
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="User already has a vendor profile"
            )

        market = await location_helpers.validate_chain(
            db, vendor_data.state_id, vendor_data.area_id, vendor_data.market_id
        )

        data = vendor_data.model_dump()
        data["vendor_type"] = vendor_data.vendor_type.value
        data["shop_images"] = data["shop_images"] or {}
        vendor = Vendor(user_id=current_user["user_id"], **data)
        db.add(vendor)

        if market:
            market.total_shops += 1

        profile = await db.get(UserProfile, current_user["profile_id"])
        if profile and profile.role == UserRole.USER.value:
            profile.role = UserRole.VENDOR.value

        await db.commit()
        await db.refresh(vendor)

        logger.info(f"Vendor {vendor.business_name} registered by {current_user['user_id']}")
        return safe_model_validate(VendorResponse, vendor)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Vendor registration failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to register vendor"
        )


@router.get("/me", response_model=VendorDetailResponse)
async def get_my_vendor(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_vendor_self)
):
    vendor = await vendor_helpers.get_vendor_for_user(db, current_user["user_id"])
    return await vendor_helpers.detail(db, vendor)


@router.put("/me", response_model=VendorDetailResponse)
async def update_my_vendor(
    vendor_data: VendorUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_vendor_self)
):
    """
    Update the current user's shop.
    A location change is validated as a whole and copied onto every product of the shop.
    """
    try:
        vendor = await vendor_helpers.get_vendor_for_user(db, current_user["user_id"])
        updates = vendor_data.model_dump(exclude_unset=True)
        if "vendor_type" in updates and updates["vendor_type"] is not None:
            updates["vendor_type"] = vendor_data.vendor_type.value

        location_changed = any(
            field in updates and updates[field] != getattr(vendor, field)
            for field in LOCATION_FIELDS
        )
        if location_changed:
            state_id = updates.get("state_id") or vendor.state_id
            area_id = updates.get("area_id") or vendor.area_id
            market_id = updates["market_id"] if "market_id" in updates else vendor.market_id
            await location_helpers.validate_chain(db, state_id, area_id, market_id)

            if market_id != vendor.market_id:
                await vendor_helpers.change_market_shop_count(db, vendor.market_id, -1)
                await vendor_helpers.change_market_shop_count(db, market_id, 1)

        for field, value in updates.items():
            if field in ("state_id", "area_id", "business_name", "contact_details") and value is None:
                continue
            setattr(vendor, field, value)

        await db.flush()
        if location_changed:
            await resync_product_locations(db, vendor)

        await db.commit()
        await db.refresh(vendor)

        logger.info(f"Vendor {vendor.id} updated (location changed: {location_changed})")
        return await vendor_helpers.detail(db, vendor)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Vendor update failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update vendor"
        )


@router.delete("/me")
async def delete_my_vendor(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_vendor_self_delete)
):
    """Delete the current user's shop together with all of its listings"""
    try:
        vendor = await vendor_helpers.get_vendor_for_user(db, current_user["user_id"])
        await vendor_helpers.delete_vendor(db, vendor)
        await db.commit()
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
# DIRECTORY (PUBLIC)
# =================

@router.get("", response_model=VendorListResponse)
async def list_vendors(
    state_id: Optional[uuid.UUID] = Query(None, alias="stateId"),
    area_id: Optional[uuid.UUID] = Query(None, alias="areaId"),
    market_id: Optional[uuid.UUID] = Query(None, alias="marketId"),
    vendor_type: Optional[VendorType] = Query(None, alias="vendorType"),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    is_verified: Optional[bool] = Query(None, alias="isVerified"),
    is_featured: Optional[bool] = Query(None, alias="isFeatured"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Active shops, featured first, then by rating, then newest"""
    try:
        conditions = [Vendor.is_active == True]
        if state_id:
            conditions.append(Vendor.state_id == state_id)
        if area_id:
            conditions.append(Vendor.area_id == area_id)
        if market_id:
            conditions.append(Vendor.market_id == market_id)
        if vendor_type:
            conditions.append(Vendor.vendor_type == vendor_type.value)
        if category:
            conditions.append(json_list_has_value(Vendor.categories, category))
        if search and search.strip():
            conditions.append(or_(
                contains_text(Vendor.business_name, search.strip()),
                contains_text(Vendor.business_description, search.strip()),
                json_list_contains_text(Vendor.tags, search.strip()),
            ))
        if is_verified is not None:
            conditions.append(Vendor.is_verified == is_verified)
        if is_featured is not None:
            conditions.append(Vendor.is_featured == is_featured)

        total = (await db.execute(
            select(func.count(Vendor.id)).where(*conditions)
        )).scalar() or 0

        result = await db.execute(
            select(Vendor)
            .where(*conditions)
            .order_by(
                Vendor.is_featured.desc(),
                Vendor.rating.desc(),
                Vendor.created_at.desc(),
                Vendor.id.asc()
            )
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return VendorListResponse(
            items=safe_model_validate_list(VendorResponse, result.scalars().all()),
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages(total, limit)
        )

    except Exception as e:
        logger.error(f"Error listing vendors: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get vendors"
        )


@router.get("/{vendor_id}", response_model=VendorDetailResponse)
async def get_vendor(
    vendor_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory = Depends(get_session_factory)
):
    """Public shop profile; counts a view"""
    vendor = await vendor_helpers.get_vendor(db, vendor_id)
    if not vendor.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Vendor not found"
        )

    background_tasks.add_task(increment_counter, session_factory, Vendor, "total_views", [vendor.id])
    return await vendor_helpers.detail(db, vendor)
