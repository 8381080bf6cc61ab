from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Query, status
from typing import Annotated
from config import get_session_factory
from .service import SearchService
from .schemas import (
    SearchFilters,
    ProductSearchFilters,
    ShopSearchFilters,
    UnifiedSearchFilters,
    FacetFilters,
    ShopProductsFilters,
    UnifiedSearchResponse,
    ProductSearchPage,
    ShopSearchPage,
    ComparisonResult,
    ComparisonGroup,
    AvailableFilters,
    ShopProductsResponse,
    SimilarProductsResponse,
)
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["Search"])


def get_search_service(session_factory=Depends(get_session_factory)) -> SearchService:
    return SearchService(session_factory)


# =================
# SEARCH ROUTES (PUBLIC)
# =================

@router.get("", response_model=UnifiedSearchResponse)
async def unified_search(
    filters: Annotated[UnifiedSearchFilters, Query()],
    background_tasks: BackgroundTasks,
    service: SearchService = Depends(get_search_service)
):
    """
    Search products, shops or both.
    Product searches also return cross-vendor price comparison groups; every search returns facets.
    """
    try:
        return await service.search(filters, background_tasks)
    except Exception as e:
        logger.error(f"Unified search failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Search failed"
        )


@router.get("/products", response_model=ProductSearchPage)
async def search_products(
    filters: Annotated[ProductSearchFilters, Query()],
    background_tasks: BackgroundTasks,
    service: SearchService = Depends(get_search_service)
):
    """Paginated product-at-a-vendor listings; pass longitude+latitude for a proximity search"""
    try:
        return await service.search_products(filters, background_tasks)
    except Exception as e:
        logger.error(f"Product search failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Product search failed"
        )


@router.get("/shops", response_model=ShopSearchPage)
async def search_shops(
    filters: Annotated[ShopSearchFilters, Query()],
    background_tasks: BackgroundTasks,
    service: SearchService = Depends(get_search_service)
):
    """Paginated shops with a preview of their most viewed products"""
    try:
        return await service.search_shops(filters, background_tasks)
    except Exception as e:
        logger.error(f"Shop search failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Shop search failed"
        )


@router.get("/compare", response_model=ComparisonResult)
async def compare_products(
    filters: Annotated[ProductSearchFilters, Query()],
    service: SearchService = Depends(get_search_service)
):
    """Group matching listings across vendors for price comparison (top groups by vendor count)"""
    try:
        return await service.compare_products(filters)
    except Exception as e:
        logger.error(f"Product comparison failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Product comparison failed"
        )


@router.get("/filters", response_model=AvailableFilters)
async def get_available_filters(
    filters: Annotated[FacetFilters, Query()],
    service: SearchService = Depends(get_search_service)
):
    """Facet counts for the current text/category search"""
    try:
        return await service.available_filters(filters)
    except Exception as e:
        logger.error(f"Filter aggregation failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get available filters"
        )


@router.get("/product/{product_name}/vendors", response_model=ComparisonGroup)
async def get_product_vendors(
    filters: Annotated[SearchFilters, Query()],
    product_name: str = Path(..., min_length=1),
    service: SearchService = Depends(get_search_service)
):
    """Every eligible vendor selling one product (matched by name, SKU or barcode), cheapest first"""
    try:
        group = await service.product_vendors(product_name, filters)
        if group is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"No vendors found for '{product_name}'"
            )
        return group

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting vendors for product {product_name}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get product vendors"
        )


@router.get("/shop/{vendor_id}/products", response_model=ShopProductsResponse)
async def get_shop_products(
    vendor_id: uuid.UUID,
    filters: Annotated[ShopProductsFilters, Query()],
    service: SearchService = Depends(get_search_service)
):
    try:
        result = await service.shop_products(vendor_id, filters)
        if result is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Shop not found"
            )
        return result

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting products for shop {vendor_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get shop products"
        )


@router.get("/product/{product_id}/similar", response_model=SimilarProductsResponse)
async def get_similar_products(
    product_id: uuid.UUID,
    limit: int = Query(10, ge=1, le=50),
    service: SearchService = Depends(get_search_service)
):
    try:
        result = await service.similar_products(product_id, limit)
        if result is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found"
            )
        return result

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting similar products for {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get similar products"
        )
