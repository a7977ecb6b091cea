"""Database repositories initialization."""

from voice_commerce.db.repositories.artisans import ArtisanRepository
from voice_commerce.db.repositories.products import ProductRepository
from voice_commerce.db.repositories.orders import OrderRepository

__all__ = [
    "ArtisanRepository",
    "ProductRepository",
    "OrderRepository"
]
