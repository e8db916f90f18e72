"""Implementation of (Payout)Repository using SQLAlchemy"""

import threading

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from src.core.models import PayoutRecord
from src.db.schema import DBPayout


class SQLPayoutRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory
        # payouts are recorded from request threads; sqlite connections do not like being shared concurrently
        self._lock = threading.Lock()

    def add_payout(self, record: PayoutRecord) -> PayoutRecord:
        payout_db = DBPayout(
            room_code=record.room_code,
            winner_seat=record.winner_seat,
            recipient=record.recipient,
            amount_minor=record.amount_minor,
            succeeded=record.succeeded,
            reference=record.reference,
            error=record.error,
        )
        with self._lock, self.session_factory() as db:
            db.add(payout_db)
            db.commit()
            db.refresh(payout_db)
            return self._to_record(payout_db)

    def list_payouts(self, room_code: str | None = None) -> list[PayoutRecord]:
        query = select(DBPayout).order_by(DBPayout.id)
        if room_code is not None:
            query = query.where(DBPayout.room_code == room_code)
        with self._lock, self.session_factory() as db:
            return [self._to_record(payout_db) for payout_db in db.scalars(query)]

    def _to_record(self, payout_db: DBPayout) -> PayoutRecord:
        """Convert SQLAlchemy model to data transfer model."""
        return PayoutRecord(
            room_code=payout_db.room_code,
            winner_seat=payout_db.winner_seat,
            recipient=payout_db.recipient,
            amount_minor=payout_db.amount_minor,
            succeeded=payout_db.succeeded,
            reference=payout_db.reference,
            error=payout_db.error,
        )
