"""
Settlement of a finished room.

Runs once per room (the Room hands out its PayoutOrder only once). The match result is final no matter what
happens here: a failed payout is logged and recorded for operators, never retried and never rolled back.
"""

import logging
from decimal import ROUND_FLOOR, Decimal
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from src.collaborators.ledger import LedgerClient
from src.core.exceptions import LedgerError
from src.core.models import PayoutOrder, PayoutRecord
from src.db.repository import PayoutRepository

logger = logging.getLogger(__name__)

SEATS_PER_ROOM = 2


def to_minor_units(amount: Decimal, minor_units: int) -> int:
    """Whole tokens -> ledger minor units, rounding down."""
    return int((amount * minor_units).to_integral_value(rounding=ROUND_FLOOR))


class PayoutTrigger:
    def __init__(
        self,
        ledger: LedgerClient,
        repository: PayoutRepository,
        commission_rate: Decimal,
        minor_units: int,
    ) -> None:
        self.ledger = ledger
        self.repo = repository
        self.commission_rate = commission_rate
        self.minor_units = minor_units

    def payout_amount(self, entry_fee: Decimal) -> Decimal:
        """Both stakes minus the operator's commission."""
        return entry_fee * SEATS_PER_ROOM * (1 - self.commission_rate)

    def settle(self, order: PayoutOrder) -> Optional[str]:
        """Pay the winner. Returns the ledger reference, or None if the payout did not go through."""
        amount_minor = to_minor_units(
            self.payout_amount(order.entry_fee), self.minor_units
        )
        if not order.recipient:
            logger.error(
                "Cannot pay out room %s: seat %s has no bound address",
                order.room_code,
                order.winner_seat,
            )
            self._record(order, amount_minor, None, "winner has no bound address")
            return None

        try:
            reference = self.ledger.transfer(
                order.recipient,
                amount_minor,
                idempotency_key=f"payout-{order.room_code}",
            )
        except LedgerError as exc:
            logger.error("Payout for room %s failed: %s", order.room_code, exc)
            self._record(order, amount_minor, None, str(exc))
            return None

        logger.info(
            "Payout sent for room %s: %s minor units to %s (%s)",
            order.room_code,
            amount_minor,
            order.recipient,
            reference,
        )
        self._record(order, amount_minor, reference, None)
        return reference

    def _record(
        self,
        order: PayoutOrder,
        amount_minor: int,
        reference: Optional[str],
        error: Optional[str],
    ) -> None:
        record = PayoutRecord(
            room_code=order.room_code,
            winner_seat=order.winner_seat,
            recipient=order.recipient,
            amount_minor=amount_minor,
            succeeded=reference is not None,
            reference=reference,
            error=error,
        )
        try:
            self.repo.add_payout(record)
        except SQLAlchemyError:
            # the payout itself already happened (or not); losing the record must not undo that
            logger.exception("Could not record payout for room %s", order.room_code)
