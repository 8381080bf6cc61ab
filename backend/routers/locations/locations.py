from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from config import get_db
from models import State, Area, Market, MarketType
from routers.auth.auth import get_current_user
from dependencies.rbac import require_location_write
from utils.response_helpers import safe_model_validate, safe_model_validate_list, total_pages
from .schemas import (
    StateCreate, StateResponse,
    AreaCreate, AreaResponse,
    MarketCreate, MarketResponse, MarketListResponse,
)
from .helpers import location_helpers
from typing import List, Optional
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/locations", tags=["Locations"])


# =================
# STATES
# =================

@router.get("/states", response_model=List[StateResponse])
async def list_states(db: AsyncSession = Depends(get_db)):
    try:
        result = await db.execute(
            select(State).where(State.is_active == True).order_by(State.name)
        )
        return safe_model_validate_list(StateResponse, result.scalars().all())

    except Exception as e:
        logger.error(f"Error listing states: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get states"
        )


@router.get("/states/{state_id}", response_model=StateResponse)
async def get_state(state_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    state = await location_helpers.get_state(db, state_id)
    return safe_model_validate(StateResponse, state)


@router.post("/states", response_model=StateResponse, status_code=status.HTTP_201_CREATED)
async def create_state(
    state_data: StateCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_location_write)
):
    """Admin only: add a state"""
    try:
        existing = await db.execute(
            select(State).where(func.lower(State.name) == state_data.name.strip().lower())
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="State already exists"
            )

        state = State(**state_data.model_dump())
        db.add(state)
        await db.commit()
        await db.refresh(state)

        logger.info(f"State {state.name} created by {current_user['user_id']}")
        return safe_model_validate(StateResponse, state)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating state: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create state"
        )


# =================
# AREAS
# =================

@router.get("/areas", response_model=List[AreaResponse])
async def list_areas(
    state_id: Optional[uuid.UUID] = Query(None, alias="stateId"),
    db: AsyncSession = Depends(get_db)
):
    try:
        query = select(Area).where(Area.is_active == True)
        if state_id:
            query = query.where(Area.state_id == state_id)

        result = await db.execute(query.order_by(Area.name))
        return safe_model_validate_list(AreaResponse, result.scalars().all())

    except Exception as e:
        logger.error(f"Error listing areas: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get areas"
        )


@router.get("/areas/{area_id}", response_model=AreaResponse)
async def get_area(area_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    area = await location_helpers.get_area(db, area_id)
    return safe_model_validate(AreaResponse, area)


@router.post("/areas", response_model=AreaResponse, status_code=status.HTTP_201_CREATED)
async def create_area(
    area_data: AreaCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_location_write)
):
    """Admin only: add an area under an existing state"""
    try:
        state = await db.get(State, area_data.state_id)
        if not state:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid state"
            )

        existing = await db.execute(
            select(Area)
            .where(Area.state_id == state.id)
            .where(func.lower(Area.name) == area_data.name.strip().lower())
        )
        if existing.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Area already exists in this state"
            )

        area = Area(**area_data.model_dump())
        db.add(area)
        await db.commit()
        await db.refresh(area)

        logger.info(f"Area {area.name} created in state {state.name}")
        return safe_model_validate(AreaResponse, area)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating area: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create area"
        )


# =================
# MARKETS
# =================

@router.get("/markets", response_model=MarketListResponse)
async def list_markets(
    state_id: Optional[uuid.UUID] = Query(None, alias="stateId"),
    area_id: Optional[uuid.UUID] = Query(None, alias="areaId"),
    market_type: Optional[MarketType] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    try:
        conditions = [Market.is_active == True]
        if state_id:
            conditions.append(Market.state_id == state_id)
        if area_id:
            conditions.append(Market.area_id == area_id)
        if market_type:
            conditions.append(Market.type == market_type.value)

        total = (await db.execute(
            select(func.count(Market.id)).where(*conditions)
        )).scalar() or 0

        result = await db.execute(
            select(Market)
            .where(*conditions)
            .order_by(Market.name, Market.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )

        return MarketListResponse(
            items=safe_model_validate_list(MarketResponse, result.scalars().all()),
            total=total,
            page=page,
            limit=limit,
            total_pages=total_pages(total, limit)
        )

    except Exception as e:
        logger.error(f"Error listing markets: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get markets"
        )


@router.get("/markets/{market_id}", response_model=MarketResponse)
async def get_market(market_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    market = await location_helpers.get_market(db, market_id)
    return safe_model_validate(MarketResponse, market)


@router.post("/markets", response_model=MarketResponse, status_code=status.HTTP_201_CREATED)
async def create_market(
    market_data: MarketCreate,
    current_user = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    _: bool = Depends(require_location_write)
):
    """Admin only: add a market; its area must belong to its state"""
    try:
        await location_helpers.validate_chain(db, market_data.state_id, market_data.area_id)

        data = market_data.model_dump()
        data["type"] = market_data.type.value
        market = Market(**data)
        db.add(market)
        await db.commit()
        await db.refresh(market)

        logger.info(f"Market {market.name} created by {current_user['user_id']}")
        return safe_model_validate(MarketResponse, market)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Error creating market: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create market"
        )
