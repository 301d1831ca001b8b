"""
SQLAlchemy models for payments and rewards.

Addresses are stored lower-cased so lookups by address are case-insensitive.
Amounts are strings; they round-trip exactly what the client sent.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, BigInteger, Column, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()

DEFAULT_CURRENCY = "ETH"
REWARD_STATUS_CLAIMED = "claimed"


class Transaction(Base):
    """
    One confirmed payment. tx_hash is unique; a second write of the same hash is a no-op.
    """

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_hash = Column(String(80), unique=True, nullable=False, index=True)
    sender = Column(String(64), nullable=False, index=True)
    recipient = Column(String(64), nullable=False, index=True)
    sender_username = Column(String(64), nullable=True)
    recipient_username = Column(String(64), nullable=True)
    amount = Column(String(64), nullable=False)
    currency = Column(String(16), nullable=False, default=DEFAULT_CURRENCY)
    purpose = Column(String(512), nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)  # e.g. ["#dinner"]
    timestamp = Column(BigInteger, nullable=False, index=True)  # epoch millis

    def to_dict(self) -> dict[str, Any]:
        return {
            "txHash": self.tx_hash,
            "sender": self.sender,
            "recipient": self.recipient,
            "senderUsername": self.sender_username or "",
            "recipientUsername": self.recipient_username or "",
            "amount": self.amount,
            "currency": self.currency or DEFAULT_CURRENCY,
            "purpose": self.purpose or "",
            "tags": list(self.tags or []),
            "timestamp": self.timestamp,
        }


class Reward(Base):
    """
    Token reward claimed for a transaction. At most one per (address, transaction_id).
    """

    __tablename__ = "rewards"
    __table_args__ = (UniqueConstraint("address", "transaction_id", name="uq_reward_address_tx"),)

    id = Column(String(32), primary_key=True)  # uuid4 hex
    address = Column(String(64), nullable=False, index=True)
    transaction_id = Column(String(80), nullable=False, index=True)
    amount = Column(String(32), nullable=False)  # 2 decimal places
    currency = Column(String(16), nullable=False)
    claimed_at = Column(String(40), nullable=False, index=True)  # ISO-8601 UTC
    status = Column(String(16), nullable=False, default=REWARD_STATUS_CLAIMED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "address": self.address,
            "transactionId": self.transaction_id,
            "amount": self.amount,
            "currency": self.currency,
            "claimedAt": self.claimed_at,
            "status": self.status,
        }
