"""
Seed Database with Sample Data.
Populates the database with demo artisans, their products and orders.
"""

import asyncio
import sys
from pathlib import Path
from datetime import datetime, timedelta

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from voice_commerce.db.database import init_db, close_db, get_db
from voice_commerce.db.models import Artisan, Product, Order


ARTISANS = [
    {
        "id": "art_rajesh",
        "name": "Rajesh Kumar",
        "phone": "9876543210",
        "craft": "pottery",
        "location": "Jaipur, Rajasthan",
        "preferred_language": "hi-IN",
        "total_sales": 125000,
        "total_orders": 50,
        "avg_order_value": 2500,
        "customer_rating": 4.8,
        "digital_score": 85
    },
    {
        "id": "art_priya",
        "name": "Priya Devi",
        "phone": "9876543211",
        "craft": "textiles",
        "location": "Murshidabad, West Bengal",
        "preferred_language": "bn-IN",
        "total_sales": 200000,
        "total_orders": 25,
        "avg_order_value": 8000,
        "customer_rating": 4.9,
        "digital_score": 92
    },
    {
        "id": "art_arjun",
        "name": "Arjun Singh",
        "phone": "9876543212",
        "craft": "woodwork",
        "location": "Amritsar, Punjab",
        "preferred_language": "pa-IN",
        "total_sales": 180000,
        "total_orders": 36,
        "avg_order_value": 5000,
        "customer_rating": 4.7,
        "digital_score": 78
    }
]


async def seed_artisans():
    """Seed demo artisans."""
    print("🧑‍🎨 Seeding artisans...")

    async with get_db() as db:
        for artisan_data in ARTISANS:
            db.add(Artisan(**artisan_data))

    print(f"   ✅ Added {len(ARTISANS)} artisans")


async def seed_products():
    """Seed sample products."""
    print("📦 Seeding products...")

    now = datetime.utcnow()
    products = [
        {
            "id": "prod_blue_vase",
            "artisan_id": "art_rajesh",
            "name": "Traditional Blue Pottery Vase",
            "description": "Handcrafted blue pottery vase from Jaipur with Mughal-inspired patterns",
            "category": "pottery",
            "price": 2200,
            "views": 1250,
            "likes": 89,
            "orders": 12,
            "created_at": now - timedelta(days=30)
        },
        {
            "id": "prod_diya_set",
            "artisan_id": "art_rajesh",
            "name": "Painted Clay Diya Set",
            "description": "Set of six hand painted clay diyas",
            "category": "pottery",
            "price": 450,
            "views": 640,
            "likes": 41,
            "orders": 27,
            "created_at": now - timedelta(days=12)
        },
        {
            "id": "prod_blue_plate",
            "artisan_id": "art_rajesh",
            "name": "Blue Pottery Wall Plate",
            "description": "Decorative wall plate with floral motifs",
            "category": "pottery",
            "price": 1200,
            "views": 310,
            "likes": 18,
            "orders": 4,
            "status": "draft",
            "created_at": now - timedelta(days=3)
        },
        {
            "id": "prod_silk_saree",
            "artisan_id": "art_priya",
            "name": "Handwoven Silk Saree - Traditional Bengali",
            "description": "Pure silk saree with gold zari border, woven on a handloom",
            "category": "textiles",
            "price": 12000,
            "views": 2100,
            "likes": 156,
            "orders": 8,
            "created_at": now - timedelta(days=45)
        },
        {
            "id": "prod_jewelry_box",
            "artisan_id": "art_arjun",
            "name": "Hand Carved Wooden Jewelry Box",
            "description": "Sheesham wood jewelry box with traditional Punjabi motifs",
            "category": "woodwork",
            "price": 3500,
            "views": 890,
            "likes": 67,
            "orders": 15,
            "created_at": now - timedelta(days=20)
        }
    ]

    async with get_db() as db:
        for product_data in products:
            db.add(Product(**product_data))

    print(f"   ✅ Added {len(products)} products")


async def seed_orders():
    """Seed sample orders."""
    print("📋 Seeding orders...")

    now = datetime.utcnow()
    orders = [
        {
            "id": "ord_1001",
            "artisan_id": "art_rajesh",
            "customer_name": "Anita Sharma",
            "status": "delivered",
            "total_amount": 2200,
            "created_at": now - timedelta(days=10)
        },
        {
            "id": "ord_1002",
            "artisan_id": "art_rajesh",
            "customer_name": "Vikram Rao",
            "status": "shipped",
            "total_amount": 900,
            "created_at": now - timedelta(days=4)
        },
        {
            "id": "ord_1003",
            "artisan_id": "art_rajesh",
            "customer_name": "Meera Iyer",
            "status": "pending",
            "total_amount": 4400,
            "created_at": now - timedelta(days=1)
        },
        {
            "id": "ord_1004",
            "artisan_id": "art_priya",
            "customer_name": "Sunita Ghosh",
            "status": "confirmed",
            "total_amount": 12000,
            "created_at": now - timedelta(days=2)
        },
        {
            "id": "ord_1005",
            "artisan_id": "art_arjun",
            "customer_name": "Harpreet Kaur",
            "status": "cancelled",
            "total_amount": 3500,
            "created_at": now - timedelta(days=6)
        }
    ]

    async with get_db() as db:
        for order_data in orders:
            db.add(Order(**order_data))

    print(f"   ✅ Added {len(orders)} orders")


async def main():
    """Seed all data."""
    print("🌱 Starting database seeding...\n")

    # Initialize database first
    await init_db()

    # Artisans first, products and orders reference them
    await seed_artisans()
    await seed_products()
    await seed_orders()

    await close_db()

    print("\n✅ Database seeding complete!")
    print("\n📊 Summary:")
    print(f"   - {len(ARTISANS)} Artisans")
    print("   - 5 Products")
    print("   - 5 Orders")


if __name__ == "__main__":
    asyncio.run(main())
