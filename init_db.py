#!/usr/bin/env python3
"""
Create the users and appointments tables directly, without Alembic.
Meant for SQLite / local databases; production schemas go through migrations.
"""

import asyncio
import sys
from pathlib import Path

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent))

from app.core.config import settings
from app.db.base import init_db
from app.db.session import AsyncSessionLocal


async def init_database() -> bool:
    """Initialize the configured database with tables"""
    if settings.is_sqlite:
        # Create data directory if the URL points into one
        Path("data").mkdir(exist_ok=True)

    print(f"Initializing database at {settings.async_db_uri.split('@')[-1]} ...")
    try:
        await init_db()
        async with AsyncSessionLocal() as session:
            result = await session.execute(sa.text("SELECT 1"))
            if result.scalar() != 1:
                print("Database connection test failed")
                return False
    except SQLAlchemyError as e:
        print(f"Database initialization failed: {e}")
        return False

    print("Database tables created successfully")
    return True


if __name__ == "__main__":
    ok = asyncio.run(init_database())
    sys.exit(0 if ok else 1)
