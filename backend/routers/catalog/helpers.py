from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from models import CatalogItem
from typing import Optional
import logging

logger = logging.getLogger(__name__)


async def find_catalog_match(
    db: AsyncSession,
    sku: Optional[str] = None,
    barcode: Optional[str] = None
) -> Optional[CatalogItem]:
    """Active catalog item for a new listing: SKU match first, then barcode"""
    for column, value in ((CatalogItem.sku, sku), (CatalogItem.barcode, barcode)):
        if not value:
            continue
        result = await db.execute(
            select(CatalogItem)
            .where(column == value)
            .where(CatalogItem.is_active == True)
        )
        item = result.scalar_one_or_none()
        if item:
            return item
    return None


async def find_duplicate(db: AsyncSession, name: str, sku: Optional[str], barcode: Optional[str]) -> Optional[CatalogItem]:
    """Existing item with the same SKU, barcode, or case-insensitive name"""
    matches = [func.lower(CatalogItem.name) == name.strip().lower()]
    if sku:
        matches.append(CatalogItem.sku == sku)
    if barcode:
        matches.append(CatalogItem.barcode == barcode)

    result = await db.execute(select(CatalogItem).where(or_(*matches)).limit(1))
    return result.scalar_one_or_none()
