"""
Payment confirmation: turns verified entry-fee payments into paid seats.

A payment reference is consumed at most once in the whole process. The reference is reserved before the
ledger gets asked, so two concurrent confirmations of the same reference cannot both pass, and the ledger call
itself happens without holding the room lock.
"""

import logging
import threading
from decimal import Decimal

from src.arena.clock import TimeSource, now_ms
from src.arena.room import Room, Seat
from src.collaborators.ledger import LedgerClient
from src.collaborators.names import DisplayNameDirectory
from src.core.exceptions import (
    AlreadyProcessedError,
    LedgerNotConfiguredError,
    PaymentInProgressError,
)
from src.services.payout import to_minor_units

logger = logging.getLogger(__name__)


class PaymentGate:
    def __init__(
        self,
        ledger: LedgerClient,
        names: DisplayNameDirectory,
        wallet_address: str,
        minor_units: int,
        time_source: TimeSource = now_ms,
    ) -> None:
        self.ledger = ledger
        self.names = names
        self.wallet_address = wallet_address
        self.minor_units = minor_units
        self._now = time_source
        self._consumed: set[str] = set()
        self._pending: set[str] = set()
        self._lock = threading.Lock()

    def is_consumed(self, reference: str) -> bool:
        with self._lock:
            return reference in self._consumed

    def confirm_payment(self, room: Room, reference: str, payer_address: str) -> Seat:
        """
        Confirm one entry fee for `room`.
        ----

        1. reserve the reference (rejects replays from any room, and references still being verified)
        2. check the room can take a payment
        3. let the ledger verify the transfer (no room lock held)
        4. re-check and mark the first unpaid seat paid; the second payment starts the game
        """
        self._reserve(reference)
        try:
            with room.lock:
                room.next_unpaid_seat()
                entry_fee: Decimal = room.entry_fee

            if not self.wallet_address:
                raise LedgerNotConfiguredError("Backend wallet not configured.")
            logger.info("Verifying payment %s for room %s", reference, room.code)
            self.ledger.verify_payment(
                reference,
                self.wallet_address,
                to_minor_units(entry_fee, self.minor_units),
            )

            with room.lock:
                seat = room.next_unpaid_seat()
                display_name = self.names.lookup(payer_address, seat.display_name)
                seat = room.confirm_payment(
                    reference, payer_address, display_name, self._now()
                )
                started = room.confirmed_payments == 2
        except Exception:
            with self._lock:
                self._pending.discard(reference)
            raise

        with self._lock:
            self._pending.discard(reference)
            self._consumed.add(reference)

        logger.info("Payment confirmed: %s - seat %s", room.code, seat.seat_index)
        if started:
            logger.info("Game started in room %s", room.code)
        return seat

    def _reserve(self, reference: str) -> None:
        with self._lock:
            if reference in self._consumed:
                raise AlreadyProcessedError(f"Payment {reference!r} was already processed.")
            if reference in self._pending:
                raise PaymentInProgressError(
                    f"Payment {reference!r} is being verified, try again shortly."
                )
            self._pending.add(reference)
