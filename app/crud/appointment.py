# app/crud/appointment.py

from __future__ import annotations
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from app.core.business import NON_BLOCKING_STATUSES
from app.core.errors import StorageError
from app.core.logging import get_logger
from app.db.models.appointment import Appointment

logger = get_logger(__name__)


class AppointmentStore:
    """Persistence for appointments. Callers own the transaction."""

    async def find_conflicts(self, db: AsyncSession, candidate: Appointment) -> Sequence[Appointment]:
        """
        Return active appointments overlapping ``candidate`` that share either of
        its users, in either role.
        """
        users = (candidate.organizer_id, candidate.participant_id)
        stmt = sa.select(Appointment).where(
            sa.or_(
                Appointment.organizer_id.in_(users),
                Appointment.participant_id.in_(users),
            ),
            Appointment.status.not_in([s.value for s in NON_BLOCKING_STATUSES]),
            # half-open [start, end): touching intervals do not conflict
            Appointment.start_time < candidate.end_time,
            Appointment.end_time > candidate.start_time,
        )
        try:
            res = await db.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("conflict_scan_failed", error=str(exc))
            raise StorageError("conflict scan failed") from exc
        return res.scalars().all()

    async def insert(self, db: AsyncSession, appointment: Appointment) -> Appointment:
        db.add(appointment)
        try:
            await db.flush()
            await db.refresh(appointment)
        except SQLAlchemyError as exc:
            logger.error("appointment_insert_failed", error=str(exc))
            raise StorageError("appointment insert failed") from exc
        return appointment

    async def find_by_id(self, db: AsyncSession, appointment_id: int) -> Optional[Appointment]:
        try:
            return await db.get(Appointment, appointment_id)
        except SQLAlchemyError as exc:
            logger.error("appointment_lookup_failed", appointment_id=appointment_id, error=str(exc))
            raise StorageError("appointment lookup failed") from exc
