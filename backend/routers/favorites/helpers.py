from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from models import Favorite, FavoriteType, Product, Vendor
from typing import Optional
import uuid


async def ensure_target_exists(db: AsyncSession, favorite_type: FavoriteType, item_id: uuid.UUID):
    model = Product if favorite_type == FavoriteType.PRODUCT else Vendor
    if not await db.get(model, item_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{favorite_type.value.title()} not found"
        )


async def find_favorite(db: AsyncSession, user_id: uuid.UUID, favorite_type: FavoriteType, item_id: uuid.UUID) -> Optional[Favorite]:
    result = await db.execute(
        select(Favorite)
        .where(Favorite.user_id == user_id)
        .where(Favorite.type == favorite_type.value)
        .where(Favorite.item_id == item_id)
    )
    return result.scalar_one_or_none()


def new_favorite(user_id: uuid.UUID, favorite_type: FavoriteType, item_id: uuid.UUID) -> Favorite:
    return Favorite(
        user_id=user_id,
        type=favorite_type.value,
        item_id=item_id,
        product_id=item_id if favorite_type == FavoriteType.PRODUCT else None,
        vendor_id=item_id if favorite_type == FavoriteType.VENDOR else None,
    )
