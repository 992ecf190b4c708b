# app/db/base.py

"""
This file imports all the ORM models so Alembic can discover them.
Whenever you add a new model, import it here.
"""
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.models.user import User
from app.db.models.appointment import Appointment
from app.db.session import engine, Base

async def init_db(bind: AsyncEngine = engine):
    """Initialize database by creating all tables"""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

