"""
Best-effort analytics counters (views, total_views, search_appearances)

These run as FastAPI background tasks after the response is sent, each with its own
session. A failure is logged and dropped; it never reaches the request that scheduled it.
"""
from sqlalchemy import update
from typing import Iterable
import logging
import uuid

logger = logging.getLogger(__name__)


async def increment_counter(session_factory, model, column: str, ids: Iterable[uuid.UUID], amount: int = 1):
    """Add `amount` to `model.column` for every row in `ids` with one UPDATE"""
    ids = list(ids)
    if not ids:
        return

    try:
        counter = getattr(model, column)
        async with session_factory() as session:
            await session.execute(
                update(model)
                .where(model.id.in_(ids))
                .values({column: counter + amount})
                .execution_options(synchronize_session=False)
            )
            await session.commit()
    except Exception as e:
        logger.error(f"Failed to increment {model.__tablename__}.{column} for {len(ids)} rows: {str(e)}")
