# app/services/users.py
from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import DuplicateEmailError, StorageError, UserNotFoundError
from app.core.logging import get_logger
from app.crud.user import UserDirectory
from app.db.models.user import User
from app.schemas.user import UserCreate

logger = get_logger(__name__)


class UserService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], users: UserDirectory):
        self._session_factory = session_factory
        self._users = users

    async def create_user(self, data: UserCreate) -> User:
        """
        Insert a new user. The email pre-check gives the common case a clean
        error; a concurrent insert of the same email still hits the unique
        constraint and surfaces as the same ``DuplicateEmailError``.
        """
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    existing = await self._users.find_by_email(db, data.email)
                    if existing is not None:
                        logger.info("duplicate_email_rejected", user_id=existing.id)
                        raise DuplicateEmailError(details={"email": data.email})
                    user = await self._users.create(db, data)
        except SQLAlchemyError as exc:
            # commit failure; lookups and flushes already raise domain errors
            raise StorageError("failed to create user") from exc

        logger.info("user_created", user_id=user.id)
        return user

    async def get_user(self, user_id: int) -> User:
        async with self._session_factory() as db:
            user = await self._users.find_by_id(db, user_id)
        if user is None:
            raise UserNotFoundError(details={"user_id": user_id})
        return user

    async def get_user_by_email(self, email: str) -> User:
        async with self._session_factory() as db:
            user = await self._users.find_by_email(db, email)
        if user is None:
            raise UserNotFoundError(details={"email": email})
        return user
