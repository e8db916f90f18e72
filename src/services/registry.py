"""Process-wide store of rooms, keyed by their short code."""

import logging
import secrets
import threading
from decimal import Decimal
from typing import Callable, Optional

from src.arena.room import Room
from src.core.exceptions import ArenaError, RoomNotFoundError

logger = logging.getLogger(__name__)

# no 0/O or 1/I: codes get read aloud and typed over
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 50


def generate_room_code() -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


def normalize_code(code: str) -> str:
    return code.strip().upper()


class RoomRegistry:
    def __init__(self, code_factory: Callable[[], str] = generate_room_code) -> None:
        self._rooms: dict[str, Room] = {}
        self._lock = threading.Lock()
        self._code_factory = code_factory

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def create(
        self,
        entry_fee: Decimal,
        creator_address: Optional[str],
        creator_name: Optional[str] = None,
        **room_options,
    ) -> Room:
        """Allocate a room under a code nobody else holds (collisions are rare, but checked)."""
        with self._lock:
            for _ in range(MAX_CODE_ATTEMPTS):
                code = normalize_code(self._code_factory())
                if code not in self._rooms:
                    break
                logger.warning("Room code collision on %s, generating another one", code)
            else:
                raise ArenaError("Could not allocate a unique room code.")

            room = Room.new(code, entry_fee, creator_address, creator_name, **room_options)
            self._rooms[code] = room
        logger.info("Room created: %s (entry fee %s)", code, entry_fee)
        return room

    def lookup(self, code: str) -> Room:
        with self._lock:
            room = self._rooms.get(normalize_code(code))
        if room is None:
            raise RoomNotFoundError(f"Room {code!r} not found.")
        return room

    def clear(self) -> None:
        """Teardown: drop every room."""
        with self._lock:
            self._rooms.clear()
