"""
Cross-vendor price comparison

Listings are clustered by a heuristic key: the SKU when one is set, otherwise the
lower-cased product name. Two different goods that share a free-text name end up in
the same group; the key is not an authoritative product identity.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case, and_, or_, literal_column
from config import SEARCH_COMPARISON_LIMIT, DEFAULT_CURRENCY
from models import Product, Vendor, State, Area, Market
from utils.response_helpers import location_ref_to_dict
from .filters import (
    build_product_conditions,
    vendor_visibility_conditions,
    listed_products,
    contains_text,
    product_location_conditions,
    price_conditions,
)
from .schemas import ComparisonGroup, ComparisonResult, ComparisonVendor, coordinates
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


def sku_or_name_key():
    # Literal '' (not a bind parameter) so the SELECT and GROUP BY expressions render identically
    return case(
        (and_(Product.sku.is_not(None), Product.sku != literal_column("''")), Product.sku),
        else_=func.lower(Product.name),
    )


def name_key():
    return func.lower(Product.name)


def comparison_vendor(row) -> ComparisonVendor:
    product, vendor = row.Product, row.Vendor
    images = vendor.shop_images or {}
    hours = vendor.operating_hours or {}
    return ComparisonVendor(
        vendor_id=str(vendor.id),
        product_id=str(product.id),
        business_name=vendor.business_name,
        logo=images.get("logo"),
        entrance_photo=images.get("entrance_photo"),
        rating=vendor.rating,
        is_verified=vendor.is_verified,
        price=product.price,
        original_price=product.original_price,
        in_stock=product.in_stock,
        quantity=product.quantity,
        contact_details=vendor.contact_details,
        bank_details=vendor.bank_details,
        location={
            "state": location_ref_to_dict(row.State),
            "area": location_ref_to_dict(row.Area),
            "market": location_ref_to_dict(row.Market),
            "shop_number": vendor.shop_number,
            "shop_floor": vendor.shop_floor,
            "shop_block": vendor.shop_block,
            "shop_address": vendor.shop_address,
            "landmark": vendor.landmark,
            "coordinates": coordinates(vendor.latitude, vendor.longitude),
        },
        operating_hours={
            "opening_time": hours.get("opening_time"),
            "closing_time": hours.get("closing_time"),
            "operating_days": hours.get("operating_days") or [],
            "is_open": vendor.is_open,
        },
    )


def build_group(group_key: str, rows) -> ComparisonGroup:
    """rows arrive sorted by price ascending; metadata comes from the earliest listing"""
    first = min(rows, key=lambda row: (row.Product.created_at, row.Product.id))
    prices = [row.Product.price for row in rows]
    product = first.Product
    return ComparisonGroup(
        id=group_key,
        catalog_item_id=str(product.catalog_item_id) if product.catalog_item_id else None,
        name=product.name,
        description=product.description,
        brand=product.brand,
        category=product.category,
        subcategory=product.subcategory,
        images=product.images or [],
        price_range={
            "lowest": min(prices),
            "highest": max(prices),
            "average": round(sum(prices) / len(prices), 2),
            "currency": DEFAULT_CURRENCY,
        },
        total_vendors=len(rows),
        vendors=[comparison_vendor(row) for row in rows],
    )


async def grouped_listings(session: AsyncSession, conditions, key_expr, limit: Optional[int]) -> List[ComparisonGroup]:
    """
    Two passes: pick the largest groups (listing count desc, key asc), then load every
    listing in those groups ordered by price so each group's vendors list is already sorted
    """
    listing_count = func.count(Product.id).label("listing_count")
    group_query = (
        select(key_expr.label("group_key"), listing_count)
        .select_from(Product)
        .join(Vendor, Product.vendor_id == Vendor.id)
        .where(*conditions)
        .group_by(key_expr)
        .order_by(listing_count.desc(), key_expr.asc())
    )
    if limit is not None:
        group_query = group_query.limit(limit)

    keys = [row.group_key for row in (await session.execute(group_query)).all()]
    if not keys:
        return []

    listing_query = (
        select(Product, Vendor, State, Area, Market, key_expr.label("group_key"))
        .join(Vendor, Product.vendor_id == Vendor.id)
        .outerjoin(State, Product.state_id == State.id)
        .outerjoin(Area, Product.area_id == Area.id)
        .outerjoin(Market, Product.market_id == Market.id)
        .where(*conditions)
        .where(key_expr.in_(keys))
        .order_by(Product.price.asc(), Product.created_at.asc(), Product.id.asc())
    )
    rows_by_key: Dict[str, list] = {key: [] for key in keys}
    for row in (await session.execute(listing_query)).all():
        rows_by_key[row.group_key].append(row)

    return [build_group(key, rows_by_key[key]) for key in keys if rows_by_key[key]]


async def compare_products(session: AsyncSession, filters) -> ComparisonResult:
    """Proximity is not applied here; location pins (state/area/market) are"""
    conditions = build_product_conditions(filters) + vendor_visibility_conditions(filters.verified_only)
    groups = await grouped_listings(session, conditions, sku_or_name_key(), SEARCH_COMPARISON_LIMIT)
    return ComparisonResult(items=groups, total=len(groups))


async def product_vendors(session: AsyncSession, product_name: str, filters) -> Optional[ComparisonGroup]:
    """
    All eligible vendors for one product, matched by name substring, exact SKU or exact barcode
    and grouped by lower-cased name. The group named exactly `product_name` wins; otherwise the
    group with the most vendors.
    """
    conditions = listed_products() + vendor_visibility_conditions(filters.verified_only)
    conditions.append(or_(
        contains_text(Product.name, product_name),
        Product.sku == product_name,
        Product.barcode == product_name,
    ))
    conditions.extend(product_location_conditions(filters))
    conditions.extend(price_conditions(Product.price, filters.min_price, filters.max_price))

    groups = await grouped_listings(session, conditions, name_key(), None)
    if not groups:
        return None

    # Names are folded in Python; SQL lower() is ASCII-only on some backends
    wanted = product_name.strip().lower()
    for group in groups:
        if group.name.lower() == wanted:
            return group
    return groups[0]
