from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Annotated
from config import get_db, get_session_factory
from models import Product, Vendor, ProductStatus
from routers.auth.auth import get_current_user
from routers.catalog.helpers import find_catalog_match
from routers.vendors.helpers import vendor_helpers
from routers.search.filters import build_product_conditions
from routers.search.products import product_rows_query, product_to_item
from dependencies.rbac import require_product_write, require_product_delete
from utils.aggregates import ProductChange, apply_product_change, location_snapshot
from utils.counters import increment_counter
from utils.response_helpers import model_to_dict, safe_model_validate, safe_model_validate_list, total_pages
from .schemas import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductDetailResponse,
    ProductListResponse,
    ProductListFilters,
)
from .helpers import product_helpers
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


async def product_detail(db: AsyncSession, product_id: uuid.UUID) -> ProductDetailResponse:
    row = (await db.execute(product_rows_query([Product.id == product_id]))).first()
    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found"
        )

    item = product_to_item(row)
    product_dict = model_to_dict(row.Product)
    product_dict["vendor"] = item.vendor.model_dump()
    product_dict["location"] = item.location.model_dump()
    return safe_model_validate(ProductDetailResponse, product_dict)


# =================
# VENDOR ROUTES
# =================

@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_write)
):
    """
    Create a listing in the current user's shop.
    New listings wait for moderation (pending) unless saved as draft.
    """
    try:
        vendor = await vendor_helpers.get_vendor_for_user(db, current_user["user_id"])
        if not vendor.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Vendor account is deactivated"
            )

        data = product_data.model_dump(exclude={"save_as_draft"})
        data["product_type"] = product_data.product_type.value

        catalog_item = await find_catalog_match(db, product_data.sku, product_data.barcode)

        product = Product(
            vendor_id=vendor.id,
            catalog_item_id=catalog_item.id if catalog_item else None,
            status=(ProductStatus.DRAFT if product_data.save_as_draft else ProductStatus.PENDING).value,
            last_restocked=datetime.now(timezone.utc) if product_data.in_stock else None,
            **location_snapshot(vendor),
            **data
        )
        db.add(product)

        await apply_product_change(db, ProductChange.for_product(product))
        await db.commit()
        await db.refresh(product)

        logger.info(f"Product {product.id} created for vendor {vendor.id} (catalog link: {product.catalog_item_id})")
        return safe_model_validate(ProductResponse, product)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating product: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create product"
        )


@router.get("/mine", response_model=ProductListResponse)
async def get_my_products(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_write)
):
    """All of the current user's listings, whatever their status, newest first"""
    vendor = await vendor_helpers.get_vendor_for_user(db, current_user["user_id"])

    total = (await db.execute(
        select(func.count(Product.id)).where(Product.vendor_id == vendor.id)
    )).scalar() or 0
    result = await db.execute(
        select(Product)
        .where(Product.vendor_id == vendor.id)
        .order_by(Product.created_at.desc(), Product.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return ProductListResponse(
        items=safe_model_validate_list(ProductResponse, result.scalars().all()),
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit)
    )


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_data: ProductUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_write)
):
    """Update an owned listing; status moves follow the listing lifecycle"""
    try:
        product = await product_helpers.get_owned_product(db, product_id, current_user)
        previous_catalog_item_id = product.catalog_item_id

        updates = product_data.model_dump(exclude_unset=True)
        new_status = updates.pop("status", None)
        if new_status is not None:
            product_helpers.check_transition(product.status, new_status)
            product.status = new_status.value
            if new_status == ProductStatus.OUT_OF_STOCK:
                product.in_stock = False

        if updates.get("product_type") is not None:
            updates["product_type"] = updates["product_type"].value
        if updates.get("in_stock") and not product.in_stock:
            product.last_restocked = datetime.now(timezone.utc)

        for field, value in updates.items():
            if field in ("name", "price", "category", "product_type", "quantity", "in_stock", "is_active") and value is None:
                continue
            setattr(product, field, value)

        if "sku" in updates or "barcode" in updates:
            catalog_item = await find_catalog_match(db, product.sku, product.barcode)
            product.catalog_item_id = catalog_item.id if catalog_item else None

        await apply_product_change(db, ProductChange.for_product(product, previous_catalog_item_id))
        await db.commit()
        await db.refresh(product)

        logger.info(f"Product {product.id} updated by {current_user['user_id']}")
        return safe_model_validate(ProductResponse, product)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update product"
        )


@router.delete("/{product_id}")
async def delete_product(
    product_id: uuid.UUID,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_product_delete)
):
    try:
        product = await product_helpers.get_owned_product(db, product_id, current_user)
        change = ProductChange.for_product(product)

        await product_helpers.delete_product(db, product)
        await apply_product_change(db, change)
        await db.commit()

        logger.info(f"Product {product_id} deleted by {current_user['user_id']}")
        return {"message": "Product deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error deleting product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete product"
        )


# =================
# PUBLIC ROUTES
# =================

@router.get("", response_model=ProductListResponse)
async def list_products(
    filters: Annotated[ProductListFilters, Query()],
    db: AsyncSession = Depends(get_db)
):
    """Listings of active shops, approved by default, newest first"""
    try:
        conditions = build_product_conditions(filters, status=filters.status)
        conditions.append(Vendor.is_active == True)
        if filters.vendor_id:
            conditions.append(Product.vendor_id == filters.vendor_id)

        total = (await db.execute(
            select(func.count(Product.id))
            .select_from(Product)
            .join(Vendor, Product.vendor_id == Vendor.id)
            .where(*conditions)
        )).scalar() or 0

        result = await db.execute(
            select(Product)
            .join(Vendor, Product.vendor_id == Vendor.id)
            .where(*conditions)
            .order_by(Product.created_at.desc(), Product.id.asc())
            .offset(filters.offset)
            .limit(filters.limit)
        )

        return ProductListResponse(
            items=safe_model_validate_list(ProductResponse, result.scalars().all()),
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=total_pages(total, filters.limit)
        )

    except Exception as e:
        logger.error(f"Error listing products: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get products"
        )


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(
    product_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory = Depends(get_session_factory)
):
    """Product with its shop and location; counts a view"""
    detail = await product_detail(db, product_id)
    background_tasks.add_task(increment_counter, session_factory, Product, "views", [product_id])
    return detail
