"""
User history: the input shared by the scorer, achievements and statistics.

Transactions may be plain mappings (API/JSON rows) or objects with the same
attribute names; only amount, recipient, status and timestamp are read.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

STATUS_COMPLETED = "completed"


def tx_field(tx: Any, name: str, default: Any = None) -> Any:
    if isinstance(tx, dict):
        return tx.get(name, default)
    return getattr(tx, name, default)


def parse_amount(value: Any) -> float:
    """Numeric value of an amount field; non-numeric and non-finite count as 0."""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def millis_to_datetime(value: float) -> datetime | None:
    """Epoch millis as an aware UTC datetime; None when outside the platform range."""
    try:
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def to_datetime(value: Any, default: datetime) -> datetime:
    """Accept datetime, epoch millis, or ISO-8601 string; anything else -> default."""
    if value is None:
        return default
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return millis_to_datetime(value) or default
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return default
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return default


@dataclass
class UserHistory:
    transactions: Sequence[Any] = field(default_factory=list)
    account_creation_date: Any = None
    """datetime, epoch millis or ISO string; None means 'now'."""
    verification_level: int = 0
    """0 = basic, 1 = email verified, 2 = KYC verified."""
    successful_transactions: int = 0

    @classmethod
    def from_transactions(
        cls,
        transactions: Sequence[Any],
        *,
        verification_level: int = 1,
        account_creation_date: Any = None,
    ) -> "UserHistory":
        """
        Build a history from stored rows.

        successful_transactions counts rows with status 'completed'; the account
        creation date defaults to the oldest row's timestamp.
        """
        successful = sum(1 for tx in transactions if tx_field(tx, "status") == STATUS_COMPLETED)
        if account_creation_date is None:
            stamps = [
                tx_field(tx, "timestamp")
                for tx in transactions
                if isinstance(tx_field(tx, "timestamp"), (int, float))
            ]
            account_creation_date = min(stamps) if stamps else None
        return cls(
            transactions=list(transactions),
            account_creation_date=account_creation_date,
            verification_level=verification_level,
            successful_transactions=successful,
        )

    @property
    def total_volume(self) -> float:
        return sum(parse_amount(tx_field(tx, "amount")) for tx in self.transactions)

    @property
    def unique_recipients(self) -> int:
        recipients = {
            str(tx_field(tx, "recipient")).lower()
            for tx in self.transactions
            if tx_field(tx, "recipient")
        }
        return len(recipients)
