"""
In-memory stand-ins for the session factory, user directory and appointment
store. They follow the same contracts as the SQLAlchemy implementations,
record every transaction step, and let a test inject failures or delays.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.exc import OperationalError

from app.core.business import BLOCKING_STATUSES, AppointmentStatus, intervals_overlap
from app.core.errors import StorageError
from app.db.models.appointment import Appointment
from app.db.models.user import User


class FakeTransaction:
    def __init__(self, session: "FakeSession"):
        self.session = session

    async def commit(self):
        self.session.log.append("commit")
        if self.session.factory.fail_commit:
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
        for store, appointment in self.session.staged:
            store.rows[appointment.id] = appointment
        self.session.staged.clear()


class FakeSession:
    def __init__(self, factory: "FakeSessionFactory"):
        self.factory = factory
        self.log: List[str] = []
        self.staged = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.log.append("close")
        return False

    async def begin(self):
        self.log.append("begin")
        return FakeTransaction(self)

    async def rollback(self):
        self.log.append("rollback")
        self.staged.clear()


class FakeSessionFactory:
    """Callable like ``async_sessionmaker``; keeps every session it hands out."""

    def __init__(self):
        self.sessions: List[FakeSession] = []
        self.fail_commit = False

    def __call__(self) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    @property
    def calls(self) -> int:
        return len(self.sessions)

    @property
    def last_log(self) -> List[str]:
        return self.sessions[-1].log


class InMemoryUserDirectory:
    def __init__(self):
        self.users: Dict[int, User] = {}
        self.fail_lookups = False
        self.fail_locks = False
        self.lookups: List[int] = []
        self.locked: List[int] = []

    def add(self, name: str, email: str, role: str = "member") -> User:
        now = datetime.now(timezone.utc)
        user = User(id=len(self.users) + 1, name=name, email=email, role=role, created_at=now, updated_at=now)
        self.users[user.id] = user
        return user

    async def lock(self, db, user_ids) -> None:
        if self.fail_locks:
            raise StorageError("could not lock users for booking")
        self.locked.extend(user_ids)

    async def find_by_id(self, db, user_id: int) -> Optional[User]:
        self.lookups.append(user_id)
        if self.fail_lookups:
            raise StorageError("user lookup failed")
        return self.users.get(user_id)

    async def find_by_email(self, db, email: str) -> Optional[User]:
        if self.fail_lookups:
            raise StorageError("user lookup failed")
        return next((u for u in self.users.values() if u.email == email), None)


class InMemoryAppointmentStore:
    def __init__(self):
        self.rows: Dict[int, Appointment] = {}
        self._next_id = 1
        self.fail_scan = False
        self.fail_insert = False
        self.fail_get = False
        self.scan_delay: float = 0.0

    def add(self, organizer_id: int, participant_id: int, start: datetime, end: datetime,
            status: AppointmentStatus = AppointmentStatus.PENDING) -> Appointment:
        appointment = Appointment(
            organizer_id=organizer_id,
            participant_id=participant_id,
            start_time=start,
            end_time=end,
            status=status.value,
        )
        self._assign_id(appointment)
        self.rows[appointment.id] = appointment
        return appointment

    def _assign_id(self, appointment: Appointment) -> None:
        now = datetime.now(timezone.utc)
        appointment.id = self._next_id
        appointment.created_at = now
        appointment.updated_at = now
        self._next_id += 1

    async def find_conflicts(self, db, candidate: Appointment) -> List[Appointment]:
        if self.scan_delay:
            await asyncio.sleep(self.scan_delay)
        if self.fail_scan:
            raise StorageError("conflict scan failed")
        users = {candidate.organizer_id, candidate.participant_id}
        return [
            row for row in self.rows.values()
            if {row.organizer_id, row.participant_id} & users
            and AppointmentStatus(row.status) in BLOCKING_STATUSES
            and intervals_overlap(row.start_time, row.end_time, candidate.start_time, candidate.end_time)
        ]

    async def insert(self, db, appointment: Appointment) -> Appointment:
        if self.fail_insert:
            raise StorageError("appointment insert failed")
        self._assign_id(appointment)
        db.staged.append((self, appointment))
        return appointment

    async def find_by_id(self, db, appointment_id: int) -> Optional[Appointment]:
        if self.fail_get:
            raise StorageError("appointment lookup failed")
        return self.rows.get(appointment_id)
