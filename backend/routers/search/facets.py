"""
Available-filter facets

Counts are computed over the text/category-constrained listing set, ignoring any
location already chosen, so the UI can show which other locations also have matches.
A chosen state narrows the area facet; a chosen state/area narrows the market facet.
"""
from sqlalchemy import select, func, literal_column
from config import SEARCH_FACET_LIMIT
from models import Product, Vendor, State, Area, Market
from .filters import build_facet_conditions
from .schemas import AvailableFilters, FacetCount, FacetPriceRange
import asyncio
import logging

logger = logging.getLogger(__name__)


def _listing_count():
    return func.count(Product.id).label("listing_count")


def _base(*columns):
    return select(*columns).select_from(Product).join(Vendor, Product.vendor_id == Vendor.id)


def location_facet_query(filters, node, product_column, pins=()):
    count = _listing_count()
    return (
        _base(node.id, node.name, count)
        .join(node, product_column == node.id)
        .where(*build_facet_conditions(filters))
        .where(*pins)
        .group_by(node.id, node.name)
        .order_by(count.desc(), node.name.asc())
        .limit(SEARCH_FACET_LIMIT)
    )


def states_query(filters):
    return location_facet_query(filters, State, Product.state_id)


def areas_query(filters):
    pins = []
    if filters.state_id is not None:
        pins.append(Product.state_id == filters.state_id)
    return location_facet_query(filters, Area, Product.area_id, pins)


def markets_query(filters):
    pins = [Product.market_id.is_not(None)]
    if filters.state_id is not None:
        pins.append(Product.state_id == filters.state_id)
    if filters.area_id is not None:
        pins.append(Product.area_id == filters.area_id)
    return location_facet_query(filters, Market, Product.market_id, pins)


def categories_query(filters):
    count = _listing_count()
    return (
        _base(Product.category.label("name"), count)
        .where(*build_facet_conditions(filters))
        .group_by(Product.category)
        .order_by(count.desc(), Product.category.asc())
        .limit(SEARCH_FACET_LIMIT)
    )


def brands_query(filters):
    count = _listing_count()
    return (
        _base(Product.brand.label("name"), count)
        .where(*build_facet_conditions(filters))
        .where(Product.brand.is_not(None), Product.brand != literal_column("''"))
        .group_by(Product.brand)
        .order_by(count.desc(), Product.brand.asc())
        .limit(SEARCH_FACET_LIMIT)
    )


def price_query(filters):
    return _base(func.min(Product.price), func.max(Product.price)).where(*build_facet_conditions(filters))


def _location_counts(rows):
    return [FacetCount(id=str(row.id), name=row.name, count=row.listing_count) for row in rows]


def _value_counts(rows):
    return [FacetCount(name=row.name, count=row.listing_count) for row in rows]


async def _fetch(session_factory, query):
    async with session_factory() as session:
        result = await session.execute(query)
        return result.all()


async def available_filters(session_factory, filters) -> AvailableFilters:
    """Six independent aggregations, each on its own session, run concurrently"""
    states, areas, markets, categories, brands, prices = await asyncio.gather(
        _fetch(session_factory, states_query(filters)),
        _fetch(session_factory, areas_query(filters)),
        _fetch(session_factory, markets_query(filters)),
        _fetch(session_factory, categories_query(filters)),
        _fetch(session_factory, brands_query(filters)),
        _fetch(session_factory, price_query(filters)),
    )

    low, high = prices[0] if prices else (None, None)
    return AvailableFilters(
        states=_location_counts(states),
        areas=_location_counts(areas),
        markets=_location_counts(markets),
        categories=_value_counts(categories),
        brands=_value_counts(brands),
        price_range=FacetPriceRange(min=low or 0.0, max=high or 0.0),
    )
