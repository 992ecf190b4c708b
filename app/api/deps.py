# app/api/deps.py
"""
Dependency providers: the only place the services are wired to the
process-wide engine and settings. Tests swap ``get_session_factory``.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.crud.appointment import AppointmentStore
from app.crud.user import UserDirectory
from app.db.session import AsyncSessionLocal
from app.services.booking import BookingService
from app.services.users import UserService


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return AsyncSessionLocal


def get_booking_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> BookingService:
    return BookingService(
        session_factory,
        UserDirectory(),
        AppointmentStore(),
        timeout_seconds=settings.BOOKING_TIMEOUT_SECONDS,
    )


def get_user_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> UserService:
    return UserService(session_factory, UserDirectory())
