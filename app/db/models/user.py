# app/db/models/user.py

from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
import sqlalchemy as sa

from app.db.session import Base
from app.db.types import UTCDateTime, utcnow


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # Primary key: big and auto-incrementing (maps to IDENTITY on modern Postgres)
    id: Mapped[int] = mapped_column(sa.BigInteger().with_variant(sa.Integer, "sqlite"), primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(sa.String(120), nullable=False)
    # Case-sensitive as stored
    email: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    role: Mapped[str] = mapped_column(sa.String(64), nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"User(id={self.id!r}, email={self.email!r})"
