"""
Order Repository.
Data access layer for order operations.
"""

import logging
from typing import List

from sqlalchemy import select, func

from voice_commerce.config import CLOSED_ORDER_STATUSES
from voice_commerce.db.database import get_db
from voice_commerce.db.models import Order

logger = logging.getLogger(__name__)


class OrderRepository:
    """Repository for order data operations."""

    async def find_by_artisan(
        self,
        artisan_id: str,
        limit: int = 5
    ) -> List[Order]:
        """Most recent orders for an artisan."""
        async with get_db() as db:
            stmt = (
                select(Order)
                .where(Order.artisan_id == artisan_id)
                .order_by(Order.created_at.desc())
                .limit(limit)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def get_pending_summary(self, artisan_id: str) -> dict:
        """Count and value of orders not yet delivered or cancelled."""
        async with get_db() as db:
            stmt = (
                select(
                    func.count(Order.id),
                    func.coalesce(func.sum(Order.total_amount), 0)
                )
                .where(Order.artisan_id == artisan_id)
                .where(Order.status.not_in(CLOSED_ORDER_STATUSES))
            )
            count, value = (await db.execute(stmt)).one()
            return {"pendingCount": int(count), "pendingValue": float(value)}

    async def create(self, data: dict) -> Order:
        """Create a new order."""
        async with get_db() as db:
            order = Order(**data)
            db.add(order)
            await db.flush()
            await db.refresh(order)
            return order
