"""Unit tests for /src/arena/room.py"""

from decimal import Decimal

import pytest

from src.arena.room import Room
from src.arena.square import Square
from src.core.exceptions import (
    EmptySquareError,
    GameStateError,
    InvalidRequestError,
    NotAcceptingPaymentsError,
    NotYourPieceError,
    NotYourTurnError,
    NoUnpaidSeatError,
    RoomFullError,
)
from src.core.shared_types import Color, FinishReason, Status

STARTING_TIME_MS = 60_000


def sq(name: str) -> Square:
    return Square.from_algebraic(name)


def new_room() -> Room:
    return Room.new(
        "ABC234", Decimal("5"), "white-wallet", starting_time_ms=STARTING_TIME_MS
    )


@pytest.fixture
def waiting_room() -> Room:
    room = new_room()
    room.join("black-wallet")
    return room


@pytest.fixture
def playing_room(waiting_room: Room) -> Room:
    waiting_room.confirm_payment("tx1", "white-wallet", "Alice", now=0)
    waiting_room.confirm_payment("tx2", "black-wallet", "Bob", now=0)
    return waiting_room


def snapshot(room: Room) -> tuple:
    return (
        room.board.to_fen(),
        room.current_turn,
        room.clock.white_ms,
        room.clock.black_ms,
        room.status,
        room.winner,
    )


# -- CREATION / JOINING --
def test_new_room() -> None:
    room = new_room()
    assert room.status == Status.WAITING_PLAYERS
    assert room.current_turn == Color.WHITE
    assert room.winner is None
    assert room.clock.white_ms == room.clock.black_ms == STARTING_TIME_MS
    assert len(room.players) == 1
    assert room.players[0].color == Color.WHITE
    assert room.players[0].display_name == "Player 1"


def test_entry_fee_must_be_positive() -> None:
    with pytest.raises(InvalidRequestError):
        Room.new("ABC234", Decimal("0"), None)


def test_second_player_gets_black(waiting_room: Room) -> None:
    assert waiting_room.status == Status.WAITING_PAYMENTS
    assert [seat.color for seat in waiting_room.players] == [Color.WHITE, Color.BLACK]
    assert waiting_room.players[1].display_name == "Player 2"


def test_third_player_rejected(waiting_room: Room) -> None:
    with pytest.raises(RoomFullError):
        waiting_room.join("third-wallet")
    assert len(waiting_room.players) == 2


# -- PAYMENTS --
def test_payments_fill_seats_in_order(waiting_room: Room) -> None:
    seat = waiting_room.confirm_payment("tx1", "payer-a", "Alice", now=10)
    assert seat.seat_index == 0
    assert seat.paid
    assert seat.address == "payer-a"
    assert waiting_room.confirmed_payments == 1
    assert waiting_room.status == Status.WAITING_PAYMENTS
    assert waiting_room.clock.anchor_ms is None


def test_second_payment_starts_game(playing_room: Room) -> None:
    assert playing_room.status == Status.PLAYING
    assert playing_room.confirmed_payments == 2
    assert all(seat.paid for seat in playing_room.players)
    assert playing_room.clock.anchor_ms == 0


def test_payment_before_second_player() -> None:
    with pytest.raises(NotAcceptingPaymentsError):
        new_room().confirm_payment("tx1", "payer", "Alice", now=0)


def test_no_unpaid_seat(waiting_room: Room) -> None:
    waiting_room.players[0].paid = True
    waiting_room.players[1].paid = True
    with pytest.raises(NoUnpaidSeatError):
        waiting_room.next_unpaid_seat()


def test_payment_after_start(playing_room: Room) -> None:
    with pytest.raises(NotAcceptingPaymentsError):
        playing_room.confirm_payment("tx3", "payer", "Carol", now=0)


# -- MOVES --
def test_moves_alternate_turns(playing_room: Room) -> None:
    moves = [(0, "e2", "e4"), (1, "e7", "e5"), (0, "g1", "f3"), (1, "b8", "c6")]
    expected_turns = [Color.BLACK, Color.WHITE, Color.BLACK, Color.WHITE]
    for (seat, from_name, to_name), turn in zip(moves, expected_turns):
        outcome = playing_room.make_move(seat, sq(from_name), sq(to_name), now=100)
        assert outcome.accepted
        assert not outcome.game_over
        assert playing_room.current_turn == turn

    assert (
        playing_room.board.to_fen()
        == "r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R"
    )
    assert playing_room.last_move.from_square == sq("b8")
    assert playing_room.last_move.piece == "n"


def test_move_out_of_turn_changes_nothing(playing_room: Room) -> None:
    before = snapshot(playing_room)
    with pytest.raises(NotYourTurnError):
        playing_room.make_move(1, sq("e7"), sq("e5"), now=0)
    assert snapshot(playing_room) == before


def test_move_opponent_piece_changes_nothing(playing_room: Room) -> None:
    before = snapshot(playing_room)
    with pytest.raises(NotYourPieceError):
        playing_room.make_move(0, sq("e7"), sq("e5"), now=0)
    assert snapshot(playing_room) == before


def test_move_from_empty_square(playing_room: Room) -> None:
    with pytest.raises(EmptySquareError):
        playing_room.make_move(0, sq("e4"), sq("e5"), now=0)


def test_move_to_same_square(playing_room: Room) -> None:
    with pytest.raises(InvalidRequestError):
        playing_room.make_move(0, sq("e2"), sq("e2"), now=0)


@pytest.mark.parametrize("seat", [-1, 2, 7])
def test_move_with_unknown_seat(playing_room: Room, seat: int) -> None:
    with pytest.raises(InvalidRequestError):
        playing_room.make_move(seat, sq("e2"), sq("e4"), now=0)


def test_move_before_game_started(waiting_room: Room) -> None:
    with pytest.raises(GameStateError):
        waiting_room.make_move(0, sq("e2"), sq("e4"), now=0)


def test_capturing_king_wins(playing_room: Room) -> None:
    """No legality checks: the queen flies straight onto the black king."""
    outcome = playing_room.make_move(0, sq("d1"), sq("e8"), now=500)
    assert outcome.accepted
    assert outcome.game_over
    assert outcome.winner == 0
    assert not outcome.timeout
    assert playing_room.status == Status.FINISHED
    assert playing_room.winner == 0
    assert playing_room.finish_reason == FinishReason.KING_CAPTURED


def test_no_moves_after_game_over(playing_room: Room) -> None:
    playing_room.make_move(0, sq("d1"), sq("e8"), now=0)
    with pytest.raises(GameStateError):
        playing_room.make_move(1, sq("e7"), sq("e5"), now=0)


# -- CLOCK --
def test_move_charges_mover_and_reanchors(playing_room: Room) -> None:
    playing_room.make_move(0, sq("e2"), sq("e4"), now=1500)
    assert playing_room.clock.white_ms == STARTING_TIME_MS - 1500
    assert playing_room.clock.anchor_ms == 1500

    playing_room.make_move(1, sq("e7"), sq("e5"), now=4000)
    assert playing_room.clock.black_ms == STARTING_TIME_MS - 2500
    assert playing_room.clock.white_ms == STARTING_TIME_MS - 1500


def test_flag_fall_decides_game(playing_room: Room) -> None:
    assert playing_room.advance_clock(STARTING_TIME_MS)
    assert playing_room.status == Status.FINISHED
    assert playing_room.winner == 1
    assert playing_room.finish_reason == FinishReason.TIMEOUT
    assert playing_room.clock.white_ms == 0

    # the decision is not repeated
    assert not playing_room.advance_clock(STARTING_TIME_MS + 10)


def test_move_on_expired_clock_reports_timeout(playing_room: Room) -> None:
    before_fen = playing_room.board.to_fen()
    outcome = playing_room.make_move(0, sq("e2"), sq("e4"), now=STARTING_TIME_MS + 1)
    assert not outcome.accepted
    assert outcome.game_over
    assert outcome.timeout
    assert outcome.winner == 1
    assert playing_room.board.to_fen() == before_fen


def test_clock_does_not_run_before_start(waiting_room: Room) -> None:
    assert not waiting_room.advance_clock(10 * STARTING_TIME_MS)
    assert waiting_room.clock.white_ms == STARTING_TIME_MS


# -- TERMINATION / PAYOUT --
def test_force_end(playing_room: Room) -> None:
    playing_room.force_end(1, now=10)
    assert playing_room.winner == 1
    assert playing_room.status == Status.FINISHED
    assert playing_room.finish_reason == FinishReason.FORCED


def test_force_end_twice_rejected(playing_room: Room) -> None:
    playing_room.force_end(1, now=10)
    with pytest.raises(GameStateError):
        playing_room.force_end(0, now=20)
    assert playing_room.winner == 1


def test_force_end_with_invalid_seat(playing_room: Room) -> None:
    with pytest.raises(InvalidRequestError):
        playing_room.force_end(5, now=0)
    assert playing_room.status == Status.PLAYING


def test_payout_claimed_exactly_once(playing_room: Room) -> None:
    assert playing_room.claim_payout() is None

    playing_room.make_move(0, sq("d1"), sq("e8"), now=0)
    order = playing_room.claim_payout()
    assert order is not None
    assert order.winner_seat == 0
    assert order.recipient == "white-wallet"
    assert order.entry_fee == Decimal("5")

    assert playing_room.claim_payout() is None


def test_payout_reference_set_once(playing_room: Room) -> None:
    playing_room.record_payout("sig-1")
    with pytest.raises(GameStateError):
        playing_room.record_payout("sig-2")
    assert playing_room.payout_reference == "sig-1"


# -- SPECTATORS / PROJECTION --
def test_spectators_deduplicated(waiting_room: Room) -> None:
    assert waiting_room.add_spectator("watcher", "W")
    assert not waiting_room.add_spectator("watcher", "W again")
    assert waiting_room.to_model().spectator_count == 1


def test_model_hides_internal_bookkeeping(playing_room: Room) -> None:
    model = playing_room.to_model()
    assert model.status == "playing"
    assert model.players[0].display_name == "Alice"
    assert not hasattr(model.players[0], "payment_reference")
    assert not hasattr(model.players[0], "address")
    assert model.board[7][4] == "K"
    assert model.last_move is None
