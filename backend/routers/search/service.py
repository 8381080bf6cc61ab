"""
Search service: runs the search operations against fresh sessions, applies the
degrade-on-storage-failure policy per branch, and schedules the analytics counters
"""
from fastapi import BackgroundTasks
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, func
from models import Product, Vendor
from utils.counters import increment_counter
from utils.response_helpers import total_pages
from .filters import listed_products, vendor_visibility_conditions, price_conditions
from .products import search_products, product_rows_query, product_to_item
from .shops import search_shops, shop_rows_query, shop_to_item, featured_products_for
from .comparison import compare_products, product_vendors
from .facets import available_filters
from .schemas import (
    SearchType,
    ProductSearchFilters,
    ShopSearchFilters,
    UnifiedSearchFilters,
    FacetFilters,
    ShopProductsFilters,
    ProductSearchPage,
    ShopSearchPage,
    ComparisonResult,
    ComparisonGroup,
    AvailableFilters,
    UnifiedSearchResponse,
    ShopProductsResponse,
    SimilarProductsResponse,
    empty_page,
)
from datetime import datetime, timezone
from typing import Optional
import asyncio
import logging
import time
import uuid

logger = logging.getLogger(__name__)


class SearchService:
    """One instance per request; holds the session factory so each branch gets its own session"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def _degrade(self, operation: str, filters, run, empty):
        """
        Run one search branch. A storage failure is logged with the filters that caused it
        and replaced by an empty result so sibling branches are unaffected. Anything else propagates.
        """
        try:
            async with self.session_factory() as session:
                return await run(session)
        except SQLAlchemyError:
            logger.exception(
                f"{operation} failed, returning empty result. Filters: {filters.model_dump(mode='json', exclude_none=True)}"
            )
            return empty

    def _count_appearances(self, background_tasks: BackgroundTasks, model, ids):
        if ids:
            background_tasks.add_task(
                increment_counter, self.session_factory, model, "search_appearances", [uuid.UUID(i) for i in ids]
            )

    async def search_products(self, filters: ProductSearchFilters, background_tasks: BackgroundTasks) -> ProductSearchPage:
        page = await self._degrade(
            "Product search", filters,
            lambda session: search_products(session, filters),
            empty_page(ProductSearchPage, filters),
        )
        self._count_appearances(background_tasks, Product, [item.id for item in page.items])
        return page

    async def search_shops(self, filters: ShopSearchFilters, background_tasks: BackgroundTasks) -> ShopSearchPage:
        page = await self._degrade(
            "Shop search", filters,
            lambda session: search_shops(session, filters),
            empty_page(ShopSearchPage, filters),
        )
        self._count_appearances(background_tasks, Vendor, [item.id for item in page.items])
        return page

    async def compare_products(self, filters: ProductSearchFilters) -> ComparisonResult:
        return await self._degrade(
            "Product comparison", filters,
            lambda session: compare_products(session, filters),
            ComparisonResult(),
        )

    async def available_filters(self, filters: FacetFilters) -> AvailableFilters:
        try:
            return await available_filters(self.session_factory, filters)
        except SQLAlchemyError:
            logger.exception(
                f"Facet aggregation failed, returning empty filters. Filters: {filters.model_dump(mode='json', exclude_none=True)}"
            )
            return AvailableFilters()

    async def search(self, filters: UnifiedSearchFilters, background_tasks: BackgroundTasks) -> UnifiedSearchResponse:
        """
        Fan out the branches selected by search_type plus the facets, and join them.
        If any branch raises (anything other than an absorbed storage error) the whole
        request fails and the remaining branches are cancelled.
        """
        started = time.perf_counter()
        product_filters = filters.narrow(ProductSearchFilters)
        shop_filters = filters.narrow(ShopSearchFilters)
        facet_filters = filters.narrow(FacetFilters)

        wants_products = filters.search_type in (SearchType.PRODUCTS, SearchType.ALL)
        wants_shops = filters.search_type in (SearchType.SHOPS, SearchType.ALL)

        products_task = shops_task = comparison_task = None
        async with asyncio.TaskGroup() as group:
            if wants_products:
                products_task = group.create_task(self.search_products(product_filters, background_tasks))
                comparison_task = group.create_task(self.compare_products(product_filters))
            if wants_shops:
                shops_task = group.create_task(self.search_shops(shop_filters, background_tasks))
            facets_task = group.create_task(self.available_filters(facet_filters))

        took_ms = int((time.perf_counter() - started) * 1000)
        return UnifiedSearchResponse(
            products=products_task.result() if products_task else None,
            shops=shops_task.result() if shops_task else None,
            product_comparison=comparison_task.result() if comparison_task else None,
            available_filters=facets_task.result(),
            meta={
                "query": filters.query,
                "search_type": filters.search_type,
                "timestamp": datetime.now(timezone.utc),
                "took_ms": took_ms,
            },
        )

    async def product_vendors(self, product_name: str, filters) -> Optional[ComparisonGroup]:
        async with self.session_factory() as session:
            return await product_vendors(session, product_name, filters)

    async def shop_products(self, vendor_id: uuid.UUID, filters: ShopProductsFilters) -> Optional[ShopProductsResponse]:
        """Shop header plus its listed products, newest first; None when the shop is missing or inactive"""
        async with self.session_factory() as session:
            shop_row = (await session.execute(
                shop_rows_query([Vendor.id == vendor_id, Vendor.is_active == True])
            )).first()
            if shop_row is None:
                return None

            featured = await featured_products_for(session, [vendor_id])
            shop = shop_to_item(shop_row, featured.get(vendor_id, []))

            conditions = listed_products() + [Product.vendor_id == vendor_id]
            if filters.category:
                conditions.append(Product.category == filters.category)
            conditions.extend(price_conditions(Product.price, filters.min_price, filters.max_price))

            total = (await session.execute(
                select(func.count(Product.id)).where(*conditions)
            )).scalar() or 0

            offset = (filters.page - 1) * filters.limit
            rows = (await session.execute(
                product_rows_query(conditions)
                .order_by(Product.created_at.desc(), Product.id.asc())
                .offset(offset)
                .limit(filters.limit)
            )).all()

        return ShopProductsResponse(
            shop=shop,
            products=[product_to_item(row) for row in rows],
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=total_pages(total, filters.limit),
        )

    async def similar_products(self, product_id: uuid.UUID, limit: int) -> Optional[SimilarProductsResponse]:
        """Uniform random sample of other listed products in the same category"""
        async with self.session_factory() as session:
            product = await session.get(Product, product_id)
            if product is None:
                return None

            conditions = listed_products() + vendor_visibility_conditions() + [
                Product.category == product.category,
                Product.id != product.id,
            ]
            rows = (await session.execute(
                product_rows_query(conditions).order_by(func.random()).limit(limit)
            )).all()

        return SimilarProductsResponse(items=[product_to_item(row) for row in rows])
