from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from config import get_db
from models import CatalogItem
from routers.auth.auth import get_current_user
from routers.search.filters import contains_text, json_list_contains_text
from dependencies.rbac import require_catalog_write
from utils.response_helpers import safe_model_validate, safe_model_validate_list, total_pages
from .schemas import CatalogItemCreate, CatalogItemResponse, CatalogListResponse, ValueCount
from .helpers import find_duplicate
from typing import List, Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["Catalog"])

BRAND_LIMIT = 50


def _not_found():
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Catalog item not found"
    )


@router.post("", response_model=CatalogItemResponse, status_code=status.HTTP_201_CREATED)
async def create_catalog_item(
    item_data: CatalogItemCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_catalog_write)
):
    """Admin only: add a canonical product definition"""
    try:
        duplicate = await find_duplicate(db, item_data.name, item_data.sku, item_data.barcode)
        if duplicate:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Catalog item with this name, SKU or barcode already exists"
            )

        item = CatalogItem(**item_data.model_dump())
        db.add(item)
        await db.commit()
        await db.refresh(item)

        logger.info(f"Catalog item {item.name} created by {current_user['user_id']}")
        return safe_model_validate(CatalogItemResponse, item)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating catalog item: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create catalog item"
        )


@router.get("", response_model=CatalogListResponse)
async def list_catalog_items(
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    subcategory: Optional[str] = Query(None),
    brand: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    """Active catalog items, most listed first"""
    try:
        conditions = [CatalogItem.is_active == True]
        if search and search.strip():
            term = search.strip()
            conditions.append(or_(
                contains_text(CatalogItem.name, term),
                contains_text(CatalogItem.description, term),
                contains_text(CatalogItem.brand, term),
                json_list_contains_text(CatalogItem.tags, term),
                json_list_contains_text(CatalogItem.alternate_names, term),
            ))
        if category:
            conditions.append(CatalogItem.category == category)
        if subcategory:
            conditions.append(CatalogItem.subcategory == subcategory)
        if brand:
            conditions.append(contains_text(CatalogItem.brand, brand))

        total = (await db.execute(
            select(func.count(CatalogItem.id)).where(*conditions)
        )).scalar() or 0

        result = await db.execute(
            select(CatalogItem)
            .where(*conditions)
            .order_by(CatalogItem.total_listings.desc(), CatalogItem.name.asc(), CatalogItem.id.asc())
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return CatalogListResponse(
            items=safe_model_validate_list(CatalogItemResponse, result.scalars().all()),
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages(total, limit)
        )

    except Exception as e:
        logger.error(f"Error listing catalog items: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get catalog items"
        )


@router.get("/categories", response_model=List[ValueCount])
async def get_catalog_categories(db: AsyncSession = Depends(get_db)):
    try:
        item_count = func.count(CatalogItem.id).label("item_count")
        result = await db.execute(
            select(CatalogItem.category, item_count)
            .where(CatalogItem.is_active == True)
            .group_by(CatalogItem.category)
            .order_by(item_count.desc(), CatalogItem.category.asc())
        )
        return [ValueCount(name=row.category, count=row.item_count) for row in result.all()]

    except Exception as e:
        logger.error(f"Error getting catalog categories: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get categories"
        )


@router.get("/brands", response_model=List[ValueCount])
async def get_catalog_brands(
    category: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    try:
        item_count = func.count(CatalogItem.id).label("item_count")
        query = (
            select(CatalogItem.brand, item_count)
            .where(CatalogItem.is_active == True)
            .where(CatalogItem.brand.is_not(None))
        )
        if category:
            query = query.where(CatalogItem.category == category)

        result = await db.execute(
            query.group_by(CatalogItem.brand)
            .order_by(item_count.desc(), CatalogItem.brand.asc())
            .limit(BRAND_LIMIT)
        )
        return [ValueCount(name=row.brand, count=row.item_count) for row in result.all()]

    except Exception as e:
        logger.error(f"Error getting catalog brands: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get brands"
        )


@router.get("/sku/{sku}", response_model=CatalogItemResponse)
async def get_catalog_item_by_sku(sku: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(CatalogItem).where(CatalogItem.sku == sku))
    item = result.scalar_one_or_none()
    if not item:
        raise _not_found()
    return safe_model_validate(CatalogItemResponse, item)


@router.get("/barcode/{barcode}", response_model=CatalogItemResponse)
async def get_catalog_item_by_barcode(barcode: str, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(CatalogItem).where(CatalogItem.barcode == barcode))
    item = result.scalar_one_or_none()
    if not item:
        raise _not_found()
    return safe_model_validate(CatalogItemResponse, item)


@router.get("/{item_id}", response_model=CatalogItemResponse)
async def get_catalog_item(item_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    item = await db.get(CatalogItem, item_id)
    if not item:
        raise _not_found()
    return safe_model_validate(CatalogItemResponse, item)
