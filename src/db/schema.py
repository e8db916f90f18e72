"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBPayout(Base):
    """One row per payout attempt. Rooms themselves are never stored."""

    __tablename__ = "payouts"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    room_code: Mapped[str] = mapped_column(index=True)
    winner_seat: Mapped[int]
    recipient: Mapped[Optional[str]]
    amount_minor: Mapped[int]
    succeeded: Mapped[bool]
    reference: Mapped[Optional[str]]
    error: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
