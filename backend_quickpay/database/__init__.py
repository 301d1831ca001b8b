"""
Persistence: SQLAlchemy models, the lifecycle-scoped Database and the stores.
"""

from backend_quickpay.database.database import Database
from backend_quickpay.database.models import Base, Reward, Transaction
from backend_quickpay.database.repositories import (
    RecordResult,
    RewardStore,
    TransactionStore,
    format_transaction,
)

__all__ = [
    "Base",
    "Database",
    "RecordResult",
    "Reward",
    "RewardStore",
    "Transaction",
    "TransactionStore",
    "format_transaction",
]
