from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from models import Review, ReviewType, Product, Vendor
from typing import Dict, Tuple
import logging
import uuid

logger = logging.getLogger(__name__)

TARGETS = {
    ReviewType.PRODUCT: (Product, Review.product_id),
    ReviewType.VENDOR: (Vendor, Review.vendor_id),
}


class ReviewHelpers:
    """Helper functions for review operations"""

    async def get_target(self, db: AsyncSession, review_type: ReviewType, target_id: uuid.UUID):
        model, _ = TARGETS[review_type]
        target = await db.get(model, target_id)
        if not target or not target.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{review_type.value.title()} not found"
            )
        return target

    async def rating_summary(self, db: AsyncSession, review_type: ReviewType, target_id: uuid.UUID) -> Tuple[float, int]:
        _, column = TARGETS[review_type]
        result = await db.execute(
            select(func.avg(Review.rating), func.count(Review.id))
            .where(column == target_id)
            .where(Review.is_active == True)
        )
        avg_rating, total_reviews = result.first()
        return round(float(avg_rating or 0.0), 2), int(total_reviews or 0)

    async def rating_distribution(self, db: AsyncSession, review_type: ReviewType, target_id: uuid.UUID) -> Dict[str, int]:
        _, column = TARGETS[review_type]
        result = await db.execute(
            select(Review.rating, func.count(Review.id).label("review_total"))
            .where(column == target_id)
            .where(Review.is_active == True)
            .group_by(Review.rating)
        )
        distribution = {str(star): 0 for star in range(1, 6)}
        for row in result.all():
            distribution[str(row.rating)] = row.review_total
        return distribution

    async def update_target_rating(self, db: AsyncSession, review_type: ReviewType, target_id: uuid.UUID):
        """
        Recompute the product's or vendor's average rating and review count from active reviews.
        Runs in the caller's session; the caller commits.
        """
        await db.flush()
        avg_rating, total_reviews = await self.rating_summary(db, review_type, target_id)

        model, _ = TARGETS[review_type]
        target = await db.get(model, target_id)
        if target:
            target.rating = avg_rating
            target.review_count = total_reviews

    async def get_own_review(self, db: AsyncSession, review_id: uuid.UUID, user_id: uuid.UUID) -> Review:
        review = await db.get(Review, review_id)
        if not review or not review.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found"
            )
        if review.user_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only manage your own reviews"
            )
        return review

    def target_of(self, review: Review) -> Tuple[ReviewType, uuid.UUID]:
        review_type = ReviewType(review.type)
        return review_type, review.product_id if review_type == ReviewType.PRODUCT else review.vendor_id


review_helpers = ReviewHelpers()
