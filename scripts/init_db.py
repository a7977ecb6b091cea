"""
Database Initialization Script.
Creates the artisan, product and order tables.
"""

import asyncio
import sys
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from voice_commerce.config import get_settings
from voice_commerce.db.database import init_db, close_db


async def main():
    """Initialize the database."""
    settings = get_settings()
    print("🗄️  Initializing database...")

    await init_db()
    await close_db()

    print("✅ Database initialized successfully!")
    print(f"📁 Database: {settings.DATABASE_URL}")


if __name__ == "__main__":
    asyncio.run(main())
