from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from config import get_db
from models import Review, ReviewType
from routers.auth.auth import get_current_user
from dependencies.rbac import require_review_write, require_review_delete
from utils.response_helpers import safe_model_validate, safe_model_validate_list, total_pages
from .schemas import ReviewCreate, ReviewUpdate, ReviewResponse, ReviewListResponse
from .helpers import review_helpers, TARGETS
from typing import List
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


async def _reviews_for(db: AsyncSession, review_type: ReviewType, target_id: uuid.UUID, page: int, limit: int) -> ReviewListResponse:
    _, column = TARGETS[review_type]
    conditions = [column == target_id, Review.is_active == True]

    total = (await db.execute(
        select(func.count(Review.id)).where(*conditions)
    )).scalar() or 0
    result = await db.execute(
        select(Review)
        .where(*conditions)
        .order_by(Review.created_at.desc(), Review.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    average_rating, _ = await review_helpers.rating_summary(db, review_type, target_id)

    return ReviewListResponse(
        items=safe_model_validate_list(ReviewResponse, result.scalars().all()),
        total=total,
        page=page,
        limit=limit,
        total_pages=total_pages(total, limit),
        average_rating=average_rating,
        rating_distribution=await review_helpers.rating_distribution(db, review_type, target_id)
    )


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(
    review_data: ReviewCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_review_write)
):
    """Review a product or a shop (once per user per item)"""
    try:
        await review_helpers.get_target(db, review_data.type, review_data.target_id)

        _, column = TARGETS[review_data.type]
        existing = await db.execute(
            select(Review.id)
            .where(Review.user_id == current_user["user_id"])
            .where(column == review_data.target_id)
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"You have already reviewed this {review_data.type.value}"
            )

        review = Review(
            user_id=current_user["user_id"],
            type=review_data.type.value,
            product_id=review_data.product_id if review_data.type == ReviewType.PRODUCT else None,
            vendor_id=review_data.vendor_id if review_data.type == ReviewType.VENDOR else None,
            rating=review_data.rating,
            title=review_data.title,
            comment=review_data.comment,
            images=review_data.images,
        )
        db.add(review)

        await review_helpers.update_target_rating(db, review_data.type, review_data.target_id)
        await db.commit()
        await db.refresh(review)

        logger.info(f"Review {review.id} created for {review.type} {review_data.target_id}")
        return safe_model_validate(ReviewResponse, review)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating review: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create review"
        )


@router.get("/product/{product_id}", response_model=ReviewListResponse)
async def get_product_reviews(
    product_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await _reviews_for(db, ReviewType.PRODUCT, product_id, page, limit)
    except Exception as e:
        logger.error(f"Error getting reviews for product {product_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get reviews"
        )


@router.get("/vendor/{vendor_id}", response_model=ReviewListResponse)
async def get_vendor_reviews(
    vendor_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
):
    try:
        return await _reviews_for(db, ReviewType.VENDOR, vendor_id, page, limit)
    except Exception as e:
        logger.error(f"Error getting reviews for vendor {vendor_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get reviews"
        )


@router.get("/mine", response_model=List[ReviewResponse])
async def get_my_reviews(
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(Review)
        .where(Review.user_id == current_user["user_id"])
        .where(Review.is_active == True)
        .order_by(Review.created_at.desc())
    )
    return safe_model_validate_list(ReviewResponse, result.scalars().all())


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: uuid.UUID,
    review_data: ReviewUpdate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_review_write)
):
    try:
        review = await review_helpers.get_own_review(db, review_id, current_user["user_id"])
        updates = review_data.model_dump(exclude_unset=True)
        rating_changed = updates.get("rating") is not None and updates["rating"] != review.rating

        for field, value in updates.items():
            if field == "rating" and value is None:
                continue
            setattr(review, field, value)

        if rating_changed:
            await review_helpers.update_target_rating(db, *review_helpers.target_of(review))

        await db.commit()
        await db.refresh(review)
        return safe_model_validate(ReviewResponse, review)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating review {review_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update review"
        )


@router.delete("/{review_id}")
async def delete_review(
    review_id: uuid.UUID,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_review_delete)
):
    try:
        review = await review_helpers.get_own_review(db, review_id, current_user["user_id"])
        review_type, target_id = review_helpers.target_of(review)

        await db.delete(review)
        await review_helpers.update_target_rating(db, review_type, target_id)
        await db.commit()

        return {"message": "Review deleted successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error deleting review {review_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete review"
        )


@router.post("/{review_id}/helpful", response_model=ReviewResponse)
async def mark_review_helpful(
    review_id: uuid.UUID,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_review_write)
):
    try:
        review = await db.get(Review, review_id)
        if not review or not review.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Review not found"
            )

        review.helpful_count += 1
        await db.commit()
        await db.refresh(review)
        return safe_model_validate(ReviewResponse, review)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error marking review {review_id} helpful: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to mark review as helpful"
        )
