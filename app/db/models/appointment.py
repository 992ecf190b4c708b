# app/db/models/appointment.py

from __future__ import annotations
from datetime import datetime
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from app.core.business import AppointmentStatus
from app.db.session import Base
from app.db.types import UTCDateTime, utcnow

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in AppointmentStatus)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        sa.CheckConstraint("end_time > start_time", name="ck_appointments_end_after_start"),
        sa.CheckConstraint("organizer_id <> participant_id", name="ck_appointments_distinct_users"),
        sa.CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_appointments_status"),
        sa.Index("ix_appointments_organizer_id_start_time", "organizer_id", "start_time"),
        sa.Index("ix_appointments_participant_id_start_time", "participant_id", "start_time"),
    )

    id: Mapped[int] = mapped_column(sa.BigInteger().with_variant(sa.Integer, "sqlite"), primary_key=True, autoincrement=True)
    # Weak references: users are resolved by lookup, never loaded through the appointment
    organizer_id: Mapped[int] = mapped_column(sa.BigInteger, sa.ForeignKey("users.id"), nullable=False)
    participant_id: Mapped[int] = mapped_column(sa.BigInteger, sa.ForeignKey("users.id"), nullable=False)

    start_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text)
    status: Mapped[str] = mapped_column(
        sa.String(32), nullable=False, default=AppointmentStatus.PENDING.value,
        server_default=AppointmentStatus.PENDING.value,
    )

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return (
            f"Appointment(id={self.id!r}, organizer_id={self.organizer_id!r}, "
            f"participant_id={self.participant_id!r}, status={self.status!r})"
        )
