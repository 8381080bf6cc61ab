from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from config import get_db
from models import Favorite, FavoriteType
from routers.auth.auth import get_current_user
from dependencies.rbac import require_favorite_read, require_favorite_write
from utils.response_helpers import safe_model_validate, safe_model_validate_list
from .schemas import (
    FavoriteRequest,
    FavoriteResponse,
    FavoriteToggleResponse,
    FavoriteCheckResponse,
    FavoriteListResponse,
)
from .helpers import ensure_target_exists, find_favorite, new_favorite
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.post("", response_model=FavoriteResponse)
async def add_favorite(
    favorite_data: FavoriteRequest,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_favorite_write)
):
    """Save a product or shop; adding an existing favorite returns it unchanged"""
    try:
        await ensure_target_exists(db, favorite_data.type, favorite_data.item_id)

        favorite = await find_favorite(db, current_user["user_id"], favorite_data.type, favorite_data.item_id)
        if favorite is None:
            favorite = new_favorite(current_user["user_id"], favorite_data.type, favorite_data.item_id)
            db.add(favorite)
            await db.commit()
            await db.refresh(favorite)

        return safe_model_validate(FavoriteResponse, favorite)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error adding favorite: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to add favorite"
        )


@router.post("/toggle", response_model=FavoriteToggleResponse)
async def toggle_favorite(
    favorite_data: FavoriteRequest,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_favorite_write)
):
    try:
        favorite = await find_favorite(db, current_user["user_id"], favorite_data.type, favorite_data.item_id)
        if favorite:
            await db.delete(favorite)
            await db.commit()
            return FavoriteToggleResponse(is_favorite=False)

        await ensure_target_exists(db, favorite_data.type, favorite_data.item_id)
        favorite = new_favorite(current_user["user_id"], favorite_data.type, favorite_data.item_id)
        db.add(favorite)
        await db.commit()
        await db.refresh(favorite)

        return FavoriteToggleResponse(
            is_favorite=True,
            favorite=safe_model_validate(FavoriteResponse, favorite)
        )

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error toggling favorite: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to toggle favorite"
        )


@router.get("", response_model=FavoriteListResponse)
async def list_favorites(
    favorite_type: Optional[FavoriteType] = Query(None, alias="type"),
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_favorite_read)
):
    query = select(Favorite).where(Favorite.user_id == current_user["user_id"])
    if favorite_type:
        query = query.where(Favorite.type == favorite_type.value)

    result = await db.execute(query.order_by(Favorite.created_at.desc()))
    favorites = result.scalars().all()
    return FavoriteListResponse(
        items=safe_model_validate_list(FavoriteResponse, favorites),
        total=len(favorites)
    )


@router.get("/check/{favorite_type}/{item_id}", response_model=FavoriteCheckResponse)
async def check_favorite(
    favorite_type: FavoriteType,
    item_id: uuid.UUID,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_favorite_read)
):
    favorite = await find_favorite(db, current_user["user_id"], favorite_type, item_id)
    return FavoriteCheckResponse(is_favorite=favorite is not None)


@router.delete("/{favorite_type}/{item_id}")
async def remove_favorite(
    favorite_type: FavoriteType,
    item_id: uuid.UUID,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_favorite_write)
):
    try:
        favorite = await find_favorite(db, current_user["user_id"], favorite_type, item_id)
        if not favorite:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Favorite not found"
            )

        await db.delete(favorite)
        await db.commit()
        return {"message": "Favorite removed successfully"}

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error removing favorite: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to remove favorite"
        )
