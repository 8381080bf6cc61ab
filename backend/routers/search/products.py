"""
Product search: filterable, paginated, optionally proximity-ranked listings
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from models import Product, Vendor, State, Area, Market
from utils.geo import haversine_km
from utils.response_helpers import location_ref_to_dict, total_pages
from .filters import build_product_conditions, vendor_visibility_conditions, geo_box_condition
from .ordering import product_sort_plan, order_by_clauses, sort_in_memory
from .schemas import ProductSearchItem, ProductSearchPage, coordinates
from typing import List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

PRODUCT_SORT_COLUMNS = {
    "price": Product.price,
    "views": Product.views,
    "rating": Vendor.rating,
    "created": Product.created_at,
    "id": Product.id,
}

PRODUCT_SORT_GETTERS = {
    "distance": lambda hit: hit[1],
    "price": lambda hit: hit[0].Product.price,
    "views": lambda hit: hit[0].Product.views,
    "rating": lambda hit: hit[0].Vendor.rating,
    "created": lambda hit: hit[0].Product.created_at,
    "id": lambda hit: hit[0].Product.id,
}


def product_rows_query(conditions):
    """Product + owning vendor + location names for presentation"""
    return (
        select(Product, Vendor, State, Area, Market)
        .join(Vendor, Product.vendor_id == Vendor.id)
        .outerjoin(State, Product.state_id == State.id)
        .outerjoin(Area, Product.area_id == Area.id)
        .outerjoin(Market, Product.market_id == Market.id)
        .where(*conditions)
    )


def product_to_item(row, distance: Optional[float] = None) -> ProductSearchItem:
    product, vendor = row.Product, row.Vendor
    contact = vendor.contact_details or {}
    images = vendor.shop_images or {}
    return ProductSearchItem(
        id=str(product.id),
        name=product.name,
        description=product.description,
        brand=product.brand,
        category=product.category,
        subcategory=product.subcategory,
        images=product.images or [],
        price=product.price,
        original_price=product.original_price,
        currency=product.currency,
        in_stock=product.in_stock,
        views=product.views,
        created_at=product.created_at,
        distance=round(distance, 3) if distance is not None else None,
        vendor={
            "id": str(vendor.id),
            "business_name": vendor.business_name,
            "logo": images.get("logo"),
            "rating": vendor.rating,
            "is_verified": vendor.is_verified,
            "contact_details": {
                "phone": contact.get("phone"),
                "whatsapp": contact.get("whatsapp"),
            },
        },
        location={
            "state": location_ref_to_dict(row.State),
            "area": location_ref_to_dict(row.Area),
            "market": location_ref_to_dict(row.Market),
            "shop_number": vendor.shop_number,
            "shop_address": vendor.shop_address,
            "coordinates": coordinates(product.latitude, product.longitude),
        },
    )


async def _geo_hits(session: AsyncSession, conditions, filters) -> List[Tuple[object, float]]:
    """Candidates inside the bounding box, kept only when within max_distance km"""
    query = product_rows_query(conditions).where(
        geo_box_condition(Product.latitude, Product.longitude, filters)
    )
    rows = (await session.execute(query)).all()

    hits = []
    for row in rows:
        distance = haversine_km(filters.latitude, filters.longitude, row.Product.latitude, row.Product.longitude)
        if distance <= filters.max_distance:
            hits.append((row, distance))
    return hits


async def search_products(session: AsyncSession, filters) -> ProductSearchPage:
    """
    Run a product search. The total is computed over the whole filtered set,
    independently of page/limit. Raises SQLAlchemyError on storage failure;
    the caller decides whether to degrade.
    """
    conditions = build_product_conditions(filters) + vendor_visibility_conditions(filters.verified_only)
    plan = product_sort_plan(filters.sort_by, filters.is_geo)

    if filters.is_geo:
        hits = sort_in_memory(await _geo_hits(session, conditions, filters), plan, PRODUCT_SORT_GETTERS)
        total = len(hits)
        page_hits = hits[filters.offset:filters.offset + filters.limit]
        items = [product_to_item(row, distance) for row, distance in page_hits]
    else:
        count_query = (
            select(func.count(Product.id))
            .select_from(Product)
            .join(Vendor, Product.vendor_id == Vendor.id)
            .where(*conditions)
        )
        total = (await session.execute(count_query)).scalar() or 0

        query = (
            product_rows_query(conditions)
            .order_by(*order_by_clauses(plan, PRODUCT_SORT_COLUMNS))
            .offset(filters.offset)
            .limit(filters.limit)
        )
        rows = (await session.execute(query)).all()
        items = [product_to_item(row) for row in rows]

    return ProductSearchPage(
        items=items,
        total=total,
        page=filters.page,
        limit=filters.limit,
        total_pages=total_pages(total, filters.limit),
    )
