# app/crud/user.py
from __future__ import annotations

from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app.core.errors import DuplicateEmailError, StorageError
from app.core.logging import get_logger
from app.db.models.user import User
from app.schemas.user import UserCreate

logger = get_logger(__name__)


class UserDirectory:
    """
    User lookups and creation against the ``users`` table.

    Every method works inside the session it is given and never commits;
    the caller owns the transaction. "Not found" is ``None``, a failed
    lookup is ``StorageError``.
    """

    async def lock(self, db: AsyncSession, user_ids: Sequence[int]) -> None:
        """
        Take the write lock for a booking on the given users: their rows
        ``FOR UPDATE`` in id order on Postgres, the database write lock on
        SQLite (the first statement opens ``BEGIN IMMEDIATE``). Ids with no
        row are skipped; existence is checked separately.
        """
        stmt = (
            sa.select(User.id)
            .where(User.id.in_(list(user_ids)))
            .order_by(User.id)
            .with_for_update()
        )
        try:
            await db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("user_lock_failed", user_ids=list(user_ids), error=str(exc))
            raise StorageError("could not lock users for booking") from exc

    async def find_by_id(self, db: AsyncSession, user_id: int) -> Optional[User]:
        stmt = sa.select(User).where(User.id == user_id)
        try:
            res = await db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("user_lookup_failed", user_id=user_id, error=str(exc))
            raise StorageError("user lookup failed") from exc
        return res.scalar_one_or_none()

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        stmt = sa.select(User).where(User.email == email)
        try:
            res = await db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("user_lookup_failed", lookup="email", error=str(exc))
            raise StorageError("user lookup failed") from exc
        return res.scalar_one_or_none()

    async def create(self, db: AsyncSession, data: UserCreate) -> User:
        obj = User(name=data.name, email=data.email, role=data.role)
        db.add(obj)
        try:
            # flush assigns the id and surfaces the unique constraint now
            await db.flush()
        except IntegrityError as exc:
            if _is_duplicate_email(exc):
                raise DuplicateEmailError() from exc
            logger.error("user_create_failed", error=str(exc))
            raise StorageError("failed to create user") from exc
        except SQLAlchemyError as exc:
            logger.error("user_create_failed", error=str(exc))
            raise StorageError("failed to create user") from exc
        return obj


def _is_duplicate_email(exc: IntegrityError) -> bool:
    # Postgres names the constraint; SQLite names the column
    text = str(exc.orig)
    return "uq_users_email" in text or "UNIQUE constraint failed: users.email" in text
