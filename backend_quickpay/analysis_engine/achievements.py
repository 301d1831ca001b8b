"""
Achievements and transaction statistics derived from a user's history.

Badges are evaluated independently; a user may hold any subset. Order is fixed:
first_transaction, high_volume, trusted_sender, reliable_payer.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

from backend_quickpay.analysis_engine.history import (
    STATUS_COMPLETED,
    UserHistory,
    parse_amount,
    to_datetime,
    tx_field,
)

HIGH_VOLUME_THRESHOLD = 10.0
TRUSTED_SENDER_THRESHOLD = 10
RELIABLE_PAYER_THRESHOLD = 5


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    date: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class TransactionStats:
    total_transactions: int = 0
    total_volume: float = 0.0
    average_amount: float = 0.0
    largest_transaction: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTransactions": self.total_transactions,
            "totalVolume": self.total_volume,
            "averageAmount": self.average_amount,
            "largestTransaction": self.largest_transaction,
        }


def _first_transaction_date(tx: Any, fallback: str) -> str:
    stamp = tx_field(tx, "timestamp")
    if isinstance(stamp, str):
        return stamp
    if stamp is None:
        return fallback
    return to_datetime(stamp, default=datetime.now(timezone.utc)).isoformat()


def get_user_achievements(
    history: UserHistory | None,
    now: datetime | None = None,
) -> list[Achievement]:
    """
    Badges earned by a history.

    Volume and count badges are dated at evaluation time (now), not when the
    threshold was crossed.
    """
    if history is None or not history.transactions:
        return []
    evaluated_at = (now or datetime.now(timezone.utc)).isoformat()
    transactions = history.transactions
    achievements: list[Achievement] = [
        Achievement(
            id="first_transaction",
            title="First Transaction",
            description="Completed your first QuickPay transaction",
            icon="🚀",
            date=_first_transaction_date(transactions[0], evaluated_at),
        )
    ]

    total_volume = history.total_volume
    if total_volume >= HIGH_VOLUME_THRESHOLD:
        achievements.append(
            Achievement(
                id="high_volume",
                title="High Volume",
                description=f"Transacted over {total_volume:.2f} ETH in total",
                icon="💰",
                date=evaluated_at,
            )
        )

    completed = sum(1 for tx in transactions if tx_field(tx, "status") == STATUS_COMPLETED)
    if completed >= TRUSTED_SENDER_THRESHOLD:
        achievements.append(
            Achievement(
                id="trusted_sender",
                title="Trusted Sender",
                description="Made 10+ successful transactions",
                icon="🛡️",
                date=evaluated_at,
            )
        )

    if history.unique_recipients >= RELIABLE_PAYER_THRESHOLD:
        achievements.append(
            Achievement(
                id="reliable_payer",
                title="Reliable Payer",
                description="Never missed a payment request",
                icon="✅",
                date=evaluated_at,
            )
        )
    return achievements


def get_transaction_stats(history: UserHistory | None) -> TransactionStats:
    if history is None or not history.transactions:
        return TransactionStats()
    amounts = [parse_amount(tx_field(tx, "amount")) for tx in history.transactions]
    total = sum(amounts)
    return TransactionStats(
        total_transactions=len(amounts),
        total_volume=total,
        average_amount=total / len(amounts),
        largest_transaction=max(0.0, max(amounts)),
    )
