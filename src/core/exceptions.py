"""
Exceptions raised across the layers.

Every exception carries a stable `kind` so the API layer can turn it into a response without knowing the concrete class.
"""


class ArenaError(Exception):
    """Top-level exception of the application."""

    kind = "arena_error"


# --- NOT FOUND ---
class NotFoundError(ArenaError):
    kind = "not_found"


class RoomNotFoundError(NotFoundError):
    pass


# --- INVALID STATE ---
class InvalidStateError(ArenaError):
    """Operation is not legal for the current status of the room."""

    kind = "invalid_state"


class RoomFullError(InvalidStateError):
    pass


class GameStateError(InvalidStateError):
    pass


class NotAcceptingPaymentsError(InvalidStateError):
    pass


class NoUnpaidSeatError(InvalidStateError):
    pass


class PaymentInProgressError(InvalidStateError):
    """The payment reference is being verified by another request right now."""


# --- UNAUTHORIZED ---
class UnauthorizedError(ArenaError):
    kind = "unauthorized"


class NotYourTurnError(UnauthorizedError):
    pass


class NotYourPieceError(UnauthorizedError):
    pass


# --- ALREADY PROCESSED ---
class AlreadyProcessedError(ArenaError):
    """A payment reference can only ever be consumed once."""

    kind = "already_processed"


# --- COLLABORATOR FAILURE ---
class LedgerError(ArenaError):
    """Verification or transfer through the ledger failed (network, rejection, bad answer)."""

    kind = "collaborator_failure"


class PaymentNotFoundError(LedgerError):
    pass


class PaymentFailedError(LedgerError):
    pass


class LedgerNotConfiguredError(LedgerError):
    pass


# --- VALIDATION ---
class InvalidRequestError(ArenaError):
    kind = "validation_error"


class InvalidSquareError(InvalidRequestError):
    pass


class EmptySquareError(InvalidRequestError):
    pass


class InvalidSymbolError(InvalidRequestError):
    pass


class DisplayNameError(InvalidRequestError):
    pass
