"""Database module initialization."""

from voice_commerce.db.database import init_db, close_db, get_db
from voice_commerce.db.models import Artisan, Product, Order

__all__ = [
    "init_db",
    "close_db",
    "get_db",
    "Artisan",
    "Product",
    "Order"
]
