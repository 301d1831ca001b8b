"""
Reward claims.

A claim is idempotent per (address, transaction): the first claim generates and
stores a reward, later claims (including a concurrent loser of the insert race)
return the stored one.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from backend_quickpay.core.exceptions import DuplicateWriteNoop, NotFoundError, ValidationError
from backend_quickpay.database.models import REWARD_STATUS_CLAIMED
from backend_quickpay.database.repositories import RewardStore, TransactionStore
from backend_quickpay.quickpay_logging import get_logger
from backend_quickpay.rewards.generator import RewardGenerator

logger = get_logger(__name__)


@dataclass(frozen=True)
class ClaimResult:
    reward: dict[str, Any]
    created: bool


class RewardService:
    def __init__(
        self,
        transactions: TransactionStore,
        rewards: RewardStore,
        generator: RewardGenerator | None = None,
    ) -> None:
        self.transactions = transactions
        self.rewards = rewards
        self.generator = generator or RewardGenerator()

    def claim(self, address: str, transaction_id: str) -> ClaimResult:
        """
        Claim the reward for one transaction.

        Raises:
            ValidationError: address or transaction_id missing.
            NotFoundError: no stored transaction with that hash.
        """
        address = (address or "").strip().lower()
        transaction_id = (transaction_id or "").strip()
        if not address or not transaction_id:
            raise ValidationError("Missing required fields")

        if self.transactions.get_transaction(transaction_id) is None:
            raise NotFoundError("Transaction not found")

        existing = self.rewards.find_reward(address, transaction_id)
        if existing is not None:
            return ClaimResult(reward=existing, created=False)

        generated = self.generator.generate()
        reward = {
            "id": uuid.uuid4().hex,
            "address": address,
            "transactionId": transaction_id,
            "amount": generated.amount,
            "currency": generated.currency,
            "claimedAt": datetime.now(timezone.utc).isoformat(),
            "status": REWARD_STATUS_CLAIMED,
        }
        try:
            stored = self.rewards.create_reward(reward)
        except DuplicateWriteNoop:
            stored = self.rewards.find_reward(address, transaction_id)
            if stored is None:
                raise
            return ClaimResult(reward=stored, created=False)
        logger.info(
            "reward_claimed",
            address=address[:10] + "...",
            transaction_id=transaction_id[:10] + "...",
            currency=generated.currency,
        )
        return ClaimResult(reward=stored, created=True)

    def eligible_transactions(self, address: str) -> list[dict[str, Any]]:
        """Transactions of address (sent or received) with no reward claimed yet, newest first."""
        address = (address or "").strip().lower()
        if not address:
            raise ValidationError("Address parameter is required")
        claimed = self.rewards.rewarded_transaction_ids(address)
        return [
            tx for tx in self.transactions.list_transactions(address) if tx["txHash"] not in claimed
        ]
