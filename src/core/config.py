"""Process configuration, read once from the environment (ARENA_* variables)."""

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional, Self

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"
DEFAULT_TOKEN_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


@dataclass(frozen=True)
class Settings:
    wallet_address: str = ""
    rpc_url: str = DEFAULT_RPC_URL
    payout_url: str = ""
    token_mint: str = DEFAULT_TOKEN_MINT
    token_decimals: int = 6
    commission_rate: Decimal = Decimal("0.10")
    starting_time_ms: int = 10 * 60 * 1000
    state_reactions: int = 10
    ledger_timeout_sec: float = 10.0
    database_url: str = "sqlite://"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3001

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Self:
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            wallet_address=env.get("ARENA_WALLET_ADDRESS", defaults.wallet_address),
            rpc_url=env.get("ARENA_RPC_URL", defaults.rpc_url),
            payout_url=env.get("ARENA_PAYOUT_URL", defaults.payout_url),
            token_mint=env.get("ARENA_TOKEN_MINT", defaults.token_mint),
            token_decimals=int(
                env.get("ARENA_TOKEN_DECIMALS", defaults.token_decimals)
            ),
            commission_rate=Decimal(
                env.get("ARENA_COMMISSION_RATE", str(defaults.commission_rate))
            ),
            starting_time_ms=int(
                env.get("ARENA_STARTING_TIME_MS", defaults.starting_time_ms)
            ),
            state_reactions=int(
                env.get("ARENA_STATE_REACTIONS", defaults.state_reactions)
            ),
            ledger_timeout_sec=float(
                env.get("ARENA_LEDGER_TIMEOUT_SEC", defaults.ledger_timeout_sec)
            ),
            database_url=env.get("ARENA_DATABASE_URL", defaults.database_url),
            log_level=env.get("ARENA_LOG_LEVEL", defaults.log_level).upper(),
            host=env.get("ARENA_HOST", defaults.host),
            port=int(env.get("ARENA_PORT", defaults.port)),
        )

    @property
    def minor_units(self) -> int:
        """Amount of ledger minor units in one whole token (10**decimals)."""
        return 10**self.token_decimals


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
