"""
The ledger (payment rail) as seen from the arena.

The arena only needs two things from it: "did this payment really happen, for the right amount, to us?"
and "send this amount to the winner". Keys and transaction signing live outside this service.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import requests

from src.core.exceptions import (
    LedgerError,
    LedgerNotConfiguredError,
    PaymentFailedError,
    PaymentNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedPayment:
    reference: str
    amount_minor: int


class LedgerClient(Protocol):
    """Contract of the external ledger collaborator."""

    def verify_payment(
        self, reference: str, recipient: str, amount_minor: int
    ) -> VerifiedPayment:
        """Raise PaymentNotFoundError / PaymentFailedError / LedgerError unless the transfer checks out."""
        ...

    def transfer(self, recipient: str, amount_minor: int, idempotency_key: str) -> str:
        """Send funds and return the ledger's reference of the transfer."""
        ...


class RpcLedgerClient:
    """
    Verification through a Solana style JSON-RPC node (`getTransaction`),
    transfers through a signer service that holds the wallet keys.
    """

    def __init__(
        self,
        rpc_url: str,
        payout_url: str,
        token_mint: str,
        timeout_sec: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.payout_url = payout_url
        self.token_mint = token_mint
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()

    def verify_payment(
        self, reference: str, recipient: str, amount_minor: int
    ) -> VerifiedPayment:
        tx = self._rpc(
            "getTransaction",
            [
                reference,
                {
                    "encoding": "jsonParsed",
                    "commitment": "confirmed",
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
        if tx is None:
            raise PaymentNotFoundError(f"Transaction not found: {reference}")

        meta = tx.get("meta") or {}
        if meta.get("err") is not None:
            raise PaymentFailedError(f"Transaction failed: {reference}")

        received = self._received_amount(meta, recipient)
        if received < amount_minor:
            raise PaymentFailedError(
                f"Transaction {reference} moved {received} to {recipient}, expected {amount_minor}."
            )
        return VerifiedPayment(reference, received)

    def transfer(self, recipient: str, amount_minor: int, idempotency_key: str) -> str:
        if not self.payout_url:
            raise LedgerNotConfiguredError("No payout signer configured.")
        payload = {
            "recipient": recipient,
            "amount": amount_minor,
            "mint": self.token_mint,
            "idempotencyKey": idempotency_key,
        }
        try:
            response = self.session.post(
                self.payout_url, json=payload, timeout=self.timeout_sec
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise LedgerError(f"Payout request failed: {exc}") from exc

        reference = body.get("reference") if isinstance(body, dict) else None
        if not reference:
            raise LedgerError(f"Payout signer returned no reference: {body!r}")
        return str(reference)

    # -- Internal helpers --
    def _rpc(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            response = self.session.post(
                self.rpc_url, json=payload, timeout=self.timeout_sec
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise LedgerError(f"Ledger RPC {method} failed: {exc}") from exc

        if body.get("error"):
            raise LedgerError(f"Ledger RPC {method} error: {body['error']}")
        return body.get("result")

    def _received_amount(self, meta: dict[str, Any], recipient: str) -> int:
        """Net token balance change of the recipient's accounts for our mint (minor units)."""

        def _total(balances: list[dict[str, Any]]) -> int:
            return sum(
                int(entry["uiTokenAmount"]["amount"])
                for entry in balances
                if entry.get("owner") == recipient and entry.get("mint") == self.token_mint
            )

        return _total(meta.get("postTokenBalances") or []) - _total(
            meta.get("preTokenBalances") or []
        )
