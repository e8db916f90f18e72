"""Protocol repository for settlement records (SQLAlchemy now, anything with these methods later)"""

from typing import Protocol

from src.core.models import PayoutRecord


class PayoutRepository(Protocol):
    """Persistence layer orchestration"""

    def add_payout(self, record: PayoutRecord) -> PayoutRecord:
        """Store the outcome of one payout attempt."""
        ...

    def list_payouts(self, room_code: str | None = None) -> list[PayoutRecord]:
        """All recorded attempts, oldest first, optionally for a single room."""
        ...
