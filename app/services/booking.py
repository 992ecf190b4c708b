# app/services/booking.py
from __future__ import annotations

from datetime import datetime
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.business import AppointmentStatus, parse_instant
from app.core.errors import (
    CommitFailedError,
    ConflictError,
    CreateFailedError,
    ErrorSeverity,
    InvalidIntervalError,
    NotFoundError,
    ParticipantNotFoundError,
    SelfBookingError,
    StorageError,
    log_error,
)
from app.core.logging import get_logger
from app.crud.appointment import AppointmentStore
from app.crud.user import UserDirectory
from app.db.models.appointment import Appointment
from app.utils.timeout_protection import with_timeout

logger = get_logger(__name__)

Instant = Union[str, datetime]


class BookingService:
    """
    Creates appointments without double-booking either participant.

    The participant lookups, the conflict scan and the insert share one
    transaction. Both user rows are locked before the scan, so two bookings
    that share a user run one after the other and the second one sees the
    first one's row.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        users: UserDirectory,
        appointments: AppointmentStore,
        *,
        timeout_seconds: Optional[float] = None,
    ):
        self._session_factory = session_factory
        self._users = users
        self._appointments = appointments
        self._timeout_seconds = timeout_seconds

    async def create_appointment(
        self,
        *,
        organizer_id: int,
        participant_id: int,
        start_time: Instant,
        end_time: Instant,
        description: Optional[str] = None,
    ) -> Appointment:
        # Stateless checks first: nothing below opens a transaction
        if organizer_id == participant_id:
            logger.info("self_booking_rejected", user_id=organizer_id)
            raise SelfBookingError()

        start = parse_instant(start_time, "start_time")
        end = parse_instant(end_time, "end_time")
        if end <= start:
            raise InvalidIntervalError()

        candidate = Appointment(
            organizer_id=organizer_id,
            participant_id=participant_id,
            start_time=start,
            end_time=end,
            description=description,
            status=AppointmentStatus.PENDING.value,
        )
        return await with_timeout(
            self._create_in_transaction(candidate),
            self._timeout_seconds,
            "create_appointment",
        )

    async def get_appointment(self, appointment_id: int) -> Appointment:
        async with self._session_factory() as db:
            appointment = await self._appointments.find_by_id(db, appointment_id)
        if appointment is None:
            raise NotFoundError(details={"appointment_id": appointment_id})
        return appointment

    async def _create_in_transaction(self, candidate: Appointment) -> Appointment:
        async with self._session_factory() as db:
            txn = await db.begin()
            try:
                await self._resolve_participants(db, candidate.organizer_id, candidate.participant_id)

                conflicts = await self._appointments.find_conflicts(db, candidate)
                if conflicts:
                    conflicting_ids = [a.id for a in conflicts]
                    logger.warning(
                        "appointment_conflict",
                        organizer_id=candidate.organizer_id,
                        participant_id=candidate.participant_id,
                        conflicting_ids=conflicting_ids,
                    )
                    raise ConflictError(conflicting_ids)

                try:
                    appointment = await self._appointments.insert(db, candidate)
                except StorageError as exc:
                    raise CreateFailedError() from exc
            except BaseException:
                # includes cancellation: nothing partial may become visible
                await self._rollback_quietly(db)
                raise

            try:
                await txn.commit()
            except SQLAlchemyError as exc:
                await self._rollback_quietly(db)
                log_error(exc, {"operation": "commit_appointment"}, ErrorSeverity.HIGH)
                raise CommitFailedError() from exc

        logger.info(
            "appointment_created",
            appointment_id=appointment.id,
            organizer_id=appointment.organizer_id,
            participant_id=appointment.participant_id,
        )
        return appointment

    async def _resolve_participants(self, db: AsyncSession, organizer_id: int, participant_id: int) -> None:
        roles = {organizer_id: "organizer", participant_id: "participant"}
        # lock in id order so concurrent bookings cannot deadlock on each other;
        # a lock wait that fails is a storage error, not a missing user
        await self._users.lock(db, sorted(roles))
        for user_id in sorted(roles):
            try:
                user = await self._users.find_by_id(db, user_id)
            except StorageError as exc:
                log_error(exc, {"operation": "resolve_participant", "role": roles[user_id]})
                raise ParticipantNotFoundError(details={"user_id": user_id, "role": roles[user_id]}) from exc
            if user is None:
                logger.info("participant_not_found", user_id=user_id, role=roles[user_id])
                raise ParticipantNotFoundError(details={"user_id": user_id, "role": roles[user_id]})

    @staticmethod
    async def _rollback_quietly(db: AsyncSession) -> None:
        try:
            await db.rollback()
        except SQLAlchemyError as exc:
            # keep raising the failure that triggered the rollback
            logger.error("rollback_failed", error=str(exc))
