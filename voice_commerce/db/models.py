"""
SQLAlchemy Database Models.
Business records the conversation engine reads and writes.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, String, Float, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from voice_commerce.db.database import Base


def _new_id(prefix: str):
    return lambda: f"{prefix}_{uuid.uuid4().hex[:12]}"


class Artisan(Base):
    """Artisan account with aggregate business metrics."""
    __tablename__ = "artisans"

    id = Column(String(50), primary_key=True, default=_new_id("art"))
    name = Column(String(255), nullable=False)
    phone = Column(String(20), index=True)
    craft = Column(String(100))
    location = Column(String(255))
    preferred_language = Column(String(10), default="hi-IN")

    # Business metrics
    total_sales = Column(Float, default=0)
    total_orders = Column(Integer, default=0)
    avg_order_value = Column(Float, default=0)
    customer_rating = Column(Float, default=0)
    digital_score = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, onupdate=datetime.utcnow)

    # Relationships
    products = relationship("Product", back_populates="artisan", lazy="selectin")
    orders = relationship("Order", back_populates="artisan", lazy="selectin")

    def __repr__(self):
        return f"<Artisan {self.id}: {self.name}>"


class Product(Base):
    """Product listed by an artisan."""
    __tablename__ = "products"

    id = Column(String(50), primary_key=True, default=_new_id("prod"))
    artisan_id = Column(String(50), ForeignKey("artisans.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text)
    category = Column(String(100), default="other", index=True)
    price = Column(Float, nullable=False, default=0)
    status = Column(String(50), default="active", index=True)

    # Performance counters
    views = Column(Integer, default=0)
    likes = Column(Integer, default=0)
    orders = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, onupdate=datetime.utcnow)

    # Relationships
    artisan = relationship("Artisan", back_populates="products")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "artisanId": self.artisan_id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "status": self.status,
            "performance": {"views": self.views, "likes": self.likes, "orders": self.orders},
            "createdAt": self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f"<Product {self.id}: {self.name}>"


class Order(Base):
    """Customer order placed with an artisan."""
    __tablename__ = "orders"

    id = Column(String(50), primary_key=True, default=_new_id("ord"))
    artisan_id = Column(String(50), ForeignKey("artisans.id"), nullable=False, index=True)
    customer_name = Column(String(255))
    status = Column(String(50), default="pending", index=True)
    total_amount = Column(Float, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, onupdate=datetime.utcnow)

    # Relationships
    artisan = relationship("Artisan", back_populates="orders")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "status": self.status,
            "totalAmount": self.total_amount,
            "createdAt": self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f"<Order {self.id}: {self.status}>"
