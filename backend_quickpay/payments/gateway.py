"""
Payment execution and balance query contracts.

Implementations never raise for expected failures (unsupported currency,
unknown username, chain error); they return success=False with a message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    message: str
    tx_hash: str | None = None
    sender: str | None = None
    """Payer address, when known (used to record the transaction)."""
    recipient_address: str | None = None


@dataclass(frozen=True)
class BalanceResult:
    success: bool
    message: str
    balance: str | None = None
    """Decimal string in native units (e.g. '1.25')."""
    currency: str = "MON"


class PaymentGateway(Protocol):
    def send_payment(
        self,
        recipient_username: str,
        amount: float,
        currency: str,
        purpose: str,
    ) -> PaymentResult:
        ...

    def get_balance(self) -> BalanceResult:
        ...
