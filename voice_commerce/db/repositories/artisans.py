"""
Artisan Repository.
Data access layer for artisan accounts and their business metrics.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select

from voice_commerce.db.database import get_db
from voice_commerce.db.models import Artisan

logger = logging.getLogger(__name__)


class ArtisanRepository:
    """Repository for artisan data operations."""

    async def get_by_id(self, artisan_id: str) -> Optional[Artisan]:
        """Get an artisan by ID."""
        async with get_db() as db:
            result = await db.execute(
                select(Artisan).where(Artisan.id == artisan_id)
            )
            return result.scalar_one_or_none()

    async def get_metrics(self, artisan_id: str) -> Optional[Dict[str, Any]]:
        """Aggregate business metrics, or None for an unknown artisan."""
        artisan = await self.get_by_id(artisan_id)
        if artisan is None:
            return None

        return {
            "artisanName": artisan.name,
            "totalSales": artisan.total_sales or 0,
            "totalOrders": artisan.total_orders or 0,
            "avgOrderValue": artisan.avg_order_value or 0,
            "customerRating": artisan.customer_rating or 0,
            "digitalScore": artisan.digital_score or 0
        }

    async def create(self, data: dict) -> Artisan:
        """Create a new artisan."""
        async with get_db() as db:
            artisan = Artisan(**data)
            db.add(artisan)
            await db.flush()
            return artisan
