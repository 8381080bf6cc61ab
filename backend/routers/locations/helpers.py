from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from models import State, Area, Market
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)


class LocationHelpers:
    """Lookups and hierarchy checks shared by the locations, vendors and admin routers"""

    async def get_state(self, db: AsyncSession, state_id: uuid.UUID) -> State:
        state = await db.get(State, state_id)
        if not state:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="State not found"
            )
        return state

    async def get_area(self, db: AsyncSession, area_id: uuid.UUID) -> Area:
        area = await db.get(Area, area_id)
        if not area:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Area not found"
            )
        return area

    async def get_market(self, db: AsyncSession, market_id: uuid.UUID) -> Market:
        market = await db.get(Market, market_id)
        if not market:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Market not found"
            )
        return market

    async def validate_chain(
        self,
        db: AsyncSession,
        state_id: uuid.UUID,
        area_id: uuid.UUID,
        market_id: Optional[uuid.UUID] = None
    ) -> Optional[Market]:
        """
        Check that the area belongs to the state and the market (if any) to the area.
        Returns the market so callers can maintain its shop count.
        """
        state = await db.get(State, state_id)
        if not state:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid state"
            )

        area = await db.get(Area, area_id)
        if not area or area.state_id != state.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Area does not belong to the selected state"
            )

        if market_id is None:
            return None

        market = await db.get(Market, market_id)
        if not market or market.area_id != area.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Market does not belong to the selected area"
            )
        return market


location_helpers = LocationHelpers()
