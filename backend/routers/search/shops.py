"""
Shop search: same filtering/pagination model as product search, over vendors,
with each shop's most viewed approved listings attached as a preview
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case
from config import SHOP_PREVIEW_PRODUCTS
from models import Product, Vendor, State, Area, Market
from utils.geo import haversine_km
from utils.response_helpers import location_ref_to_dict, total_pages
from .filters import build_shop_conditions, listed_products, geo_box_condition
from .ordering import shop_sort_plan, order_by_clauses, sort_in_memory
from .schemas import ShopSearchItem, ShopSearchPage, FeaturedProduct, coordinates
from typing import Dict, List, Optional
import logging
import uuid

logger = logging.getLogger(__name__)

SHOP_SORT_COLUMNS = {
    "featured": Vendor.is_featured,
    "verified": Vendor.is_verified,
    "rating": Vendor.rating,
    "views": Vendor.total_views,
    "min_price": Vendor.min_product_price,
    "unpriced": case((Vendor.max_product_price == 0, 1), else_=0),
    "max_price": Vendor.max_product_price,
    "created": Vendor.created_at,
    "id": Vendor.id,
}

SHOP_SORT_GETTERS = {
    "distance": lambda hit: hit[1],
    "featured": lambda hit: hit[0].Vendor.is_featured,
    "verified": lambda hit: hit[0].Vendor.is_verified,
    "rating": lambda hit: hit[0].Vendor.rating,
    "views": lambda hit: hit[0].Vendor.total_views,
    "min_price": lambda hit: hit[0].Vendor.min_product_price,
    "unpriced": lambda hit: hit[0].Vendor.max_product_price == 0,
    "max_price": lambda hit: hit[0].Vendor.max_product_price,
    "created": lambda hit: hit[0].Vendor.created_at,
    "id": lambda hit: hit[0].Vendor.id,
}


def shop_rows_query(conditions):
    return (
        select(Vendor, State, Area, Market)
        .outerjoin(State, Vendor.state_id == State.id)
        .outerjoin(Area, Vendor.area_id == Area.id)
        .outerjoin(Market, Vendor.market_id == Market.id)
        .where(*conditions)
    )


def shop_to_item(row, featured: List[FeaturedProduct], distance: Optional[float] = None) -> ShopSearchItem:
    vendor = row.Vendor
    images = vendor.shop_images or {}
    contact = vendor.contact_details or {}
    hours = vendor.operating_hours or {}
    return ShopSearchItem(
        id=str(vendor.id),
        business_name=vendor.business_name,
        business_description=vendor.business_description,
        vendor_type=vendor.vendor_type,
        logo=images.get("logo"),
        entrance_photo=images.get("entrance_photo"),
        layout_map=images.get("layout_map"),
        rating=vendor.rating,
        review_count=vendor.review_count,
        total_products=vendor.total_products,
        is_verified=vendor.is_verified,
        is_featured=vendor.is_featured,
        categories=vendor.categories or [],
        distance=round(distance, 3) if distance is not None else None,
        price_range={"min": vendor.min_product_price, "max": vendor.max_product_price},
        contact_details={
            "phone": contact.get("phone"),
            "whatsapp": contact.get("whatsapp"),
            "email": contact.get("email"),
            "instagram": contact.get("instagram"),
        },
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
        featured_products=featured,
    )


async def featured_products_for(session: AsyncSession, vendor_ids: List[uuid.UUID]) -> Dict[uuid.UUID, List[FeaturedProduct]]:
    """Top SHOP_PREVIEW_PRODUCTS approved listings by views for each vendor, one query for the page"""
    if not vendor_ids:
        return {}

    ranked = (
        select(
            Product.id,
            Product.vendor_id,
            Product.name,
            Product.price,
            Product.images,
            func.row_number().over(
                partition_by=Product.vendor_id,
                order_by=(Product.views.desc(), Product.created_at.asc(), Product.id.asc()),
            ).label("rank"),
        )
        .where(Product.vendor_id.in_(vendor_ids))
        .where(*listed_products())
        .subquery()
    )
    result = await session.execute(
        select(ranked)
        .where(ranked.c.rank <= SHOP_PREVIEW_PRODUCTS)
        .order_by(ranked.c.vendor_id, ranked.c.rank)
    )

    featured: Dict[uuid.UUID, List[FeaturedProduct]] = {vendor_id: [] for vendor_id in vendor_ids}
    for row in result.all():
        images = row.images or []
        featured[row.vendor_id].append(FeaturedProduct(
            id=str(row.id),
            name=row.name,
            price=row.price,
            image=images[0] if images else None,
        ))
    return featured


async def _geo_hits(session: AsyncSession, conditions, filters):
    query = shop_rows_query(conditions).where(
        geo_box_condition(Vendor.latitude, Vendor.longitude, filters)
    )
    rows = (await session.execute(query)).all()

    hits = []
    for row in rows:
        distance = haversine_km(filters.latitude, filters.longitude, row.Vendor.latitude, row.Vendor.longitude)
        if distance <= filters.max_distance:
            hits.append((row, distance))
    return hits


async def search_shops(session: AsyncSession, filters) -> ShopSearchPage:
    conditions = build_shop_conditions(filters)
    plan = shop_sort_plan(filters.sort_by, filters.is_geo)

    if filters.is_geo:
        hits = sort_in_memory(await _geo_hits(session, conditions, filters), plan, SHOP_SORT_GETTERS)
        total = len(hits)
        page_hits = hits[filters.offset:filters.offset + filters.limit]
    else:
        count_query = select(func.count(Vendor.id)).where(*conditions)
        total = (await session.execute(count_query)).scalar() or 0

        query = (
            shop_rows_query(conditions)
            .order_by(*order_by_clauses(plan, SHOP_SORT_COLUMNS))
            .offset(filters.offset)
            .limit(filters.limit)
        )
        page_hits = [(row, None) for row in (await session.execute(query)).all()]

    featured = await featured_products_for(session, [row.Vendor.id for row, _ in page_hits])
    items = [shop_to_item(row, featured.get(row.Vendor.id, []), distance) for row, distance in page_hits]

    return ShopSearchPage(
        items=items,
        total=total,
        page=filters.page,
        limit=filters.limit,
        total_pages=total_pages(total, filters.limit),
    )
