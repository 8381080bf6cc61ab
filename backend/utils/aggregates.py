"""
Materialized aggregates kept on Vendor and CatalogItem

Every product mutation (create, update, status change, delete) is described by a
ProductChange and passed to apply_product_change, which recomputes the owning vendor's
stats and the stats of every catalog item the product is or was linked to.
Recomputation runs inside the caller's session; the caller commits.
"""
from dataclasses import dataclass
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func
from models import Vendor, Product, CatalogItem, ProductStatus
from typing import Optional, Tuple
import logging
import uuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductChange:
    vendor_id: uuid.UUID
    catalog_item_ids: Tuple[uuid.UUID, ...] = ()

    @classmethod
    def for_product(cls, product: Product, previous_catalog_item_id: Optional[uuid.UUID] = None) -> "ProductChange":
        linked = {cid for cid in (product.catalog_item_id, previous_catalog_item_id) if cid is not None}
        return cls(vendor_id=product.vendor_id, catalog_item_ids=tuple(sorted(linked)))


def _listed(query):
    return query.where(Product.is_active == True).where(Product.status == ProductStatus.APPROVED.value)


async def recompute_vendor_aggregates(db: AsyncSession, vendor_id: uuid.UUID):
    """total_products counts active listings; the price range only covers active+approved ones"""
    vendor = await db.get(Vendor, vendor_id)
    if vendor is None:
        return

    total_result = await db.execute(
        select(func.count(Product.id))
        .where(Product.vendor_id == vendor_id)
        .where(Product.is_active == True)
    )
    price_result = await db.execute(
        _listed(select(func.min(Product.price), func.max(Product.price)))
        .where(Product.vendor_id == vendor_id)
    )
    min_price, max_price = price_result.one()

    vendor.total_products = int(total_result.scalar() or 0)
    vendor.min_product_price = float(min_price or 0.0)
    vendor.max_product_price = float(max_price or 0.0)


async def recompute_catalog_aggregates(db: AsyncSession, catalog_item_id: uuid.UUID):
    item = await db.get(CatalogItem, catalog_item_id)
    if item is None:
        return

    result = await db.execute(
        _listed(select(
            func.count(Product.id),
            func.min(Product.price),
            func.max(Product.price),
            func.avg(Product.price),
        ))
        .where(Product.catalog_item_id == catalog_item_id)
    )
    count, lowest, highest, average = result.one()

    item.total_listings = int(count or 0)
    item.lowest_price = float(lowest or 0.0)
    item.highest_price = float(highest or 0.0)
    item.average_price = round(float(average or 0.0), 2)


async def apply_product_change(db: AsyncSession, change: ProductChange):
    await db.flush()
    await recompute_vendor_aggregates(db, change.vendor_id)
    for catalog_item_id in change.catalog_item_ids:
        await recompute_catalog_aggregates(db, catalog_item_id)
    logger.info(
        f"Recomputed aggregates for vendor {change.vendor_id} "
        f"and {len(change.catalog_item_ids)} catalog items"
    )


def location_snapshot(vendor: Vendor) -> dict:
    """Location fields a product copies from its vendor"""
    return {
        "state_id": vendor.state_id,
        "area_id": vendor.area_id,
        "market_id": vendor.market_id,
        "latitude": vendor.latitude,
        "longitude": vendor.longitude,
    }


async def resync_product_locations(db: AsyncSession, vendor: Vendor) -> int:
    """Re-copy the vendor's location onto all of its products; returns the number of rows touched"""
    result = await db.execute(
        update(Product)
        .where(Product.vendor_id == vendor.id)
        .values(**location_snapshot(vendor))
        .execution_options(synchronize_session="fetch")
    )
    logger.info(f"Re-synced location snapshot on {result.rowcount} products for vendor {vendor.id}")
    return result.rowcount
