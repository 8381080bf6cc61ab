from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete
from models import Product, Review, Favorite, ProductStatus, UserRole
from routers.vendors.helpers import vendor_helpers
import logging
import uuid

logger = logging.getLogger(__name__)

# Every legal lifecycle move
STATUS_TRANSITIONS = {
    ProductStatus.DRAFT: {ProductStatus.PENDING},
    ProductStatus.PENDING: {ProductStatus.APPROVED, ProductStatus.REJECTED},
    ProductStatus.REJECTED: {ProductStatus.PENDING},
    ProductStatus.APPROVED: {ProductStatus.OUT_OF_STOCK, ProductStatus.DISCONTINUED},
    ProductStatus.OUT_OF_STOCK: {ProductStatus.APPROVED, ProductStatus.DISCONTINUED},
    ProductStatus.DISCONTINUED: set(),
}

# Approve and reject are moderation actions
MODERATOR_ONLY = {
    (ProductStatus.PENDING, ProductStatus.APPROVED),
    (ProductStatus.PENDING, ProductStatus.REJECTED),
}


class ProductHelpers:

    def check_transition(self, current: str, target: ProductStatus, moderator: bool = False):
        """Raise 400 unless current -> target is a legal move for this actor; same status is a no-op"""
        current_status = ProductStatus(current)
        if current_status == target:
            return

        if target not in STATUS_TRANSITIONS[current_status]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot change status from {current_status.value} to {target.value}"
            )
        if not moderator and (current_status, target) in MODERATOR_ONLY:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only an admin can change status from {current_status.value} to {target.value}"
            )

    async def get_product(self, db: AsyncSession, product_id: uuid.UUID) -> Product:
        product = await db.get(Product, product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found"
            )
        return product

    async def get_owned_product(self, db: AsyncSession, product_id: uuid.UUID, current_user: dict) -> Product:
        """The product if the current user's shop owns it (admins may touch any product)"""
        product = await self.get_product(db, product_id)
        if current_user.get("role") == UserRole.ADMIN.value:
            return product

        vendor = await vendor_helpers.get_vendor_for_user(db, current_user["user_id"])
        if product.vendor_id != vendor.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only manage your own products"
            )
        return product

    async def delete_product(self, db: AsyncSession, product: Product):
        """Delete a listing with the reviews and favorites pointing at it. The caller commits."""
        await db.execute(
            delete(Review)
            .where(Review.product_id == product.id)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Favorite)
            .where(Favorite.product_id == product.id)
            .execution_options(synchronize_session=False)
        )
        await db.delete(product)


product_helpers = ProductHelpers()
