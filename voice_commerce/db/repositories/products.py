"""
Product Repository.
Data access layer for product operations.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func

from voice_commerce.db.database import get_db
from voice_commerce.db.models import Product

logger = logging.getLogger(__name__)


class ProductRepository:
    """Repository for product data operations."""

    async def find_by_artisan(
        self,
        artisan_id: str,
        limit: int = 10,
        status: Optional[str] = "active"
    ) -> List[Product]:
        """An artisan's products, newest first."""
        async with get_db() as db:
            stmt = select(Product).where(Product.artisan_id == artisan_id)

            if status:
                stmt = stmt.where(Product.status == status)

            stmt = stmt.order_by(Product.created_at.desc()).limit(limit)

            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def find_by_name(
        self,
        artisan_id: str,
        name: str,
        limit: int = 5
    ) -> List[Product]:
        """Case-insensitive substring match on product name."""
        async with get_db() as db:
            stmt = (
                select(Product)
                .where(Product.artisan_id == artisan_id)
                .where(Product.name.ilike(f"%{name}%"))
                .order_by(Product.created_at.desc())
                .limit(limit)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def get_performance_totals(self, artisan_id: str) -> Dict[str, int]:
        """Live sums of the performance counters over an artisan's active products."""
        async with get_db() as db:
            stmt = (
                select(
                    func.count(Product.id),
                    func.coalesce(func.sum(Product.views), 0),
                    func.coalesce(func.sum(Product.likes), 0),
                    func.coalesce(func.sum(Product.orders), 0)
                )
                .where(Product.artisan_id == artisan_id)
                .where(Product.status == "active")
            )
            count, views, likes, orders = (await db.execute(stmt)).one()
            return {
                "activeProducts": int(count),
                "totalViews": int(views),
                "totalLikes": int(likes),
                "totalProductOrders": int(orders)
            }

    async def get_price_summary(self, artisan_id: str) -> Dict[str, Any]:
        """Count, min, max and average price over an artisan's active products."""
        async with get_db() as db:
            stmt = (
                select(
                    func.count(Product.id),
                    func.min(Product.price),
                    func.max(Product.price),
                    func.avg(Product.price)
                )
                .where(Product.artisan_id == artisan_id)
                .where(Product.status == "active")
            )
            count, min_price, max_price, avg_price = (await db.execute(stmt)).one()
            if not count:
                return {"count": 0}
            return {
                "count": int(count),
                "minPrice": float(min_price or 0),
                "maxPrice": float(max_price or 0),
                "avgPrice": round(float(avg_price or 0), 2)
            }

    async def create(self, data: Dict[str, Any]) -> Product:
        """Create a new product."""
        async with get_db() as db:
            product = Product(**data)
            db.add(product)
            await db.flush()
            await db.refresh(product)
            logger.info(f"Created product {product.id} for artisan {product.artisan_id}")
            return product

    async def count(self) -> int:
        async with get_db() as db:
            result = await db.execute(select(func.count(Product.id)))
            return int(result.scalar_one())
