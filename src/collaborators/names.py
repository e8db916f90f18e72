"""Account address -> display name. A lookup that always has an answer (the caller's default)."""

import threading
from typing import Optional

from src.core.exceptions import DisplayNameError

MAX_NAME_LENGTH = 32


def validate_display_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned or len(cleaned) > MAX_NAME_LENGTH:
        raise DisplayNameError(
            f"Display name must be 1 to {MAX_NAME_LENGTH} characters long."
        )
    return cleaned


class DisplayNameDirectory:
    def __init__(self) -> None:
        self._names: dict[str, str] = {}
        self._lock = threading.Lock()

    def register(self, address: str, name: str) -> str:
        cleaned = validate_display_name(name)
        with self._lock:
            self._names[address] = cleaned
        return cleaned

    def lookup(self, address: Optional[str], default: Optional[str]) -> Optional[str]:
        if address is None:
            return default
        with self._lock:
            return self._names.get(address, default)
