from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, or_
from models import Vendor, Product, Review, Favorite, Market, UserProfile, State, Area, UserRole
from utils.aggregates import recompute_catalog_aggregates
from utils.response_helpers import model_to_dict, safe_model_validate, location_ref_to_dict
from routers.search.schemas import coordinates
from .schemas import VendorDetailResponse
import logging
import uuid

logger = logging.getLogger(__name__)

LOCATION_FIELDS = {"state_id", "area_id", "market_id", "latitude", "longitude"}


class VendorHelpers:
    """Vendor lookups and lifecycle operations shared by the vendors and admin routers"""

    async def get_vendor_for_user(self, db: AsyncSession, user_id: uuid.UUID) -> Vendor:
        result = await db.execute(select(Vendor).where(Vendor.user_id == user_id))
        vendor = result.scalar_one_or_none()
        if not vendor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Vendor profile not found"
            )
        return vendor

    async def get_vendor(self, db: AsyncSession, vendor_id: uuid.UUID) -> Vendor:
        vendor = await db.get(Vendor, vendor_id)
        if not vendor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Vendor not found"
            )
        return vendor

    async def change_market_shop_count(self, db: AsyncSession, market_id, delta: int):
        if market_id is None:
            return
        market = await db.get(Market, market_id)
        if market:
            market.total_shops = max(0, market.total_shops + delta)

    async def detail(self, db: AsyncSession, vendor: Vendor) -> VendorDetailResponse:
        """Vendor with its location resolved to names"""
        state = await db.get(State, vendor.state_id)
        area = await db.get(Area, vendor.area_id)
        market = await db.get(Market, vendor.market_id) if vendor.market_id else None

        vendor_dict = model_to_dict(vendor)
        vendor_dict["location"] = {
            "state": location_ref_to_dict(state),
            "area": location_ref_to_dict(area),
            "market": location_ref_to_dict(market),
            "shop_number": vendor.shop_number,
            "shop_floor": vendor.shop_floor,
            "shop_block": vendor.shop_block,
            "shop_address": vendor.shop_address,
            "landmark": vendor.landmark,
            "coordinates": coordinates(vendor.latitude, vendor.longitude),
        }
        return safe_model_validate(VendorDetailResponse, vendor_dict)

    async def delete_vendor(self, db: AsyncSession, vendor: Vendor):
        """
        Remove a vendor with its listings, and the reviews and favorites pointing at either.
        Linked catalog items are recomputed, the market shop count decremented and the
        owner's role reverted to user. The caller commits.
        """
        vendor_id = vendor.id
        product_ids = select(Product.id).where(Product.vendor_id == vendor_id)

        catalog_result = await db.execute(
            select(Product.catalog_item_id)
            .where(Product.vendor_id == vendor_id)
            .where(Product.catalog_item_id.is_not(None))
            .distinct()
        )
        catalog_item_ids = [row[0] for row in catalog_result.all()]

        await db.execute(
            delete(Review)
            .where(or_(Review.vendor_id == vendor_id, Review.product_id.in_(product_ids)))
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Favorite)
            .where(or_(Favorite.vendor_id == vendor_id, Favorite.product_id.in_(product_ids)))
            .execution_options(synchronize_session=False)
        )
        products_result = await db.execute(
            delete(Product)
            .where(Product.vendor_id == vendor_id)
            .execution_options(synchronize_session=False)
        )

        await self.change_market_shop_count(db, vendor.market_id, -1)

        profile_result = await db.execute(
            select(UserProfile).where(UserProfile.user_id == vendor.user_id)
        )
        profile = profile_result.scalar_one_or_none()
        if profile and profile.role == UserRole.VENDOR.value:
            profile.role = UserRole.USER.value

        await db.delete(vendor)
        await db.flush()

        for catalog_item_id in catalog_item_ids:
            await recompute_catalog_aggregates(db, catalog_item_id)

        logger.info(
            f"Deleted vendor {vendor_id} with {products_result.rowcount} products, "
            f"recomputed {len(catalog_item_ids)} catalog items"
        )


vendor_helpers = VendorHelpers()
