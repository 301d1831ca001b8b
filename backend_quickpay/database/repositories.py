"""
Transaction and reward stores.

Responsibilities:
- Validate and normalize incoming transaction payloads (camelCase JSON keys).
- Insert transactions idempotently by tx hash.
- Insert rewards with a (address, transaction_id) uniqueness guarantee.
- Return plain dicts so callers never hold ORM objects past the session.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from backend_quickpay.analysis_engine.history import millis_to_datetime
from backend_quickpay.core.exceptions import DuplicateWriteNoop, ValidationError
from backend_quickpay.database.database import Database
from backend_quickpay.database.models import DEFAULT_CURRENCY, Reward, Transaction
from backend_quickpay.quickpay_logging import get_logger

logger = get_logger(__name__)

REQUIRED_TRANSACTION_FIELDS = ("txHash", "sender", "recipient", "amount")
STATUS_CONFIRMED = "confirmed"


@dataclass(frozen=True)
class RecordResult:
    success: bool
    already_exists: bool
    tx_hash: str


def _now_ms() -> int:
    return int(time.time() * 1000)


def purpose_tags(purpose: str) -> list[str]:
    """First word of the purpose, lower-cased, as the only tag ('#Dinner out' -> ['#dinner'])."""
    words = (purpose or "").lower().split()
    return words[:1]


def _short(value: str) -> str:
    return value[:16] + "..." if len(value) > 16 else value


class TransactionStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    def record_transaction(self, payload: Mapping[str, Any]) -> RecordResult:
        """
        Store a payment. Raises ValidationError when a required field is missing.

        A transaction whose hash is already stored is left untouched and reported
        with already_exists=True.
        """
        missing = [name for name in REQUIRED_TRANSACTION_FIELDS if not payload.get(name)]
        if missing:
            raise ValidationError("Missing required fields")

        tx_hash = str(payload["txHash"]).strip()
        raw_ts = payload.get("timestamp")
        try:
            timestamp = int(raw_ts) if raw_ts else _now_ms()
        except (TypeError, ValueError, OverflowError) as e:
            raise ValidationError("timestamp must be epoch milliseconds") from e
        if millis_to_datetime(timestamp) is None:
            raise ValidationError("timestamp is out of range")
        purpose = str(payload.get("purpose") or "")

        try:
            with self.db.session() as session:
                existing = (
                    session.query(Transaction.id).filter(Transaction.tx_hash == tx_hash).first()
                )
                if existing is not None:
                    logger.info("transaction_already_exists", tx_hash=_short(tx_hash))
                    return RecordResult(success=True, already_exists=True, tx_hash=tx_hash)
                session.add(
                    Transaction(
                        tx_hash=tx_hash,
                        sender=str(payload["sender"]).strip().lower(),
                        recipient=str(payload["recipient"]).strip().lower(),
                        sender_username=payload.get("senderUsername") or None,
                        recipient_username=payload.get("recipientUsername") or None,
                        amount=str(payload["amount"]),
                        currency=payload.get("currency") or DEFAULT_CURRENCY,
                        purpose=purpose,
                        tags=purpose_tags(purpose),
                        timestamp=timestamp,
                    )
                )
                session.flush()
        except IntegrityError:
            # concurrent insert of the same hash
            logger.info("transaction_already_exists", tx_hash=_short(tx_hash))
            return RecordResult(success=True, already_exists=True, tx_hash=tx_hash)
        logger.info("transaction_recorded", tx_hash=_short(tx_hash))
        return RecordResult(success=True, already_exists=False, tx_hash=tx_hash)

    def get_transaction(self, tx_hash: str) -> dict[str, Any] | None:
        tx_hash = (tx_hash or "").strip()
        if not tx_hash:
            return None
        with self.db.session() as session:
            row = session.query(Transaction).filter(Transaction.tx_hash == tx_hash).first()
            return row.to_dict() if row else None

    def list_transactions(self, address: str) -> list[dict[str, Any]]:
        """Transactions where address is sender or recipient, newest first."""
        address = (address or "").strip().lower()
        if not address:
            return []
        with self.db.session() as session:
            rows = (
                session.query(Transaction)
                .filter(or_(Transaction.sender == address, Transaction.recipient == address))
                .order_by(Transaction.timestamp.desc(), Transaction.id.desc())
                .all()
            )
            return [r.to_dict() for r in rows]


def format_transaction(tx: Mapping[str, Any], address: str) -> dict[str, Any]:
    """
    History-view shape of a stored transaction from the point of view of address.

    Sent rows carry to/toUsername, received rows carry from/fromUsername.
    """
    is_sent = (tx.get("sender") or "").lower() == (address or "").strip().lower()
    view: dict[str, Any] = {
        "id": tx.get("txHash"),
        "type": "sent" if is_sent else "received",
        "status": STATUS_CONFIRMED,
    }
    if is_sent:
        view["to"] = tx.get("recipient")
        view["toUsername"] = tx.get("recipientUsername") or None
    else:
        view["from"] = tx.get("sender")
        view["fromUsername"] = tx.get("senderUsername") or None
    timestamp = tx.get("timestamp")
    moment = millis_to_datetime(timestamp) if isinstance(timestamp, (int, float)) else None
    view.update(
        {
            "amount": tx.get("amount"),
            "currency": tx.get("currency") or DEFAULT_CURRENCY,
            "date": moment.date().isoformat() if moment else None,
            "purpose": tx.get("purpose") or "",
            "tags": list(tx.get("tags") or []),
        }
    )
    return view


class RewardStore:
    def __init__(self, db: Database) -> None:
        self.db = db

    def find_reward(self, address: str, transaction_id: str) -> dict[str, Any] | None:
        with self.db.session() as session:
            row = (
                session.query(Reward)
                .filter(
                    Reward.address == address.strip().lower(),
                    Reward.transaction_id == transaction_id,
                )
                .first()
            )
            return row.to_dict() if row else None

    def create_reward(self, reward: Mapping[str, Any]) -> dict[str, Any]:
        """
        Insert a reward row (camelCase keys as produced by Reward.to_dict).

        Raises DuplicateWriteNoop when the address already holds a reward for the transaction.
        """
        address = str(reward["address"]).strip().lower()
        transaction_id = str(reward["transactionId"])
        row = Reward(
            id=reward["id"],
            address=address,
            transaction_id=transaction_id,
            amount=reward["amount"],
            currency=reward["currency"],
            claimed_at=reward["claimedAt"],
            status=reward.get("status") or "claimed",
        )
        try:
            with self.db.session() as session:
                session.add(row)
                session.flush()
                stored = row.to_dict()
        except IntegrityError as e:
            logger.info("reward_already_claimed", address=_short(address), transaction_id=_short(transaction_id))
            raise DuplicateWriteNoop((address, transaction_id)) from e
        logger.info(
            "reward_created",
            address=_short(address),
            transaction_id=_short(transaction_id),
            currency=stored["currency"],
        )
        return stored

    def list_rewards(self, address: str) -> list[dict[str, Any]]:
        """Rewards held by address, most recently claimed first."""
        address = (address or "").strip().lower()
        if not address:
            return []
        with self.db.session() as session:
            rows = (
                session.query(Reward)
                .filter(Reward.address == address)
                .order_by(Reward.claimed_at.desc())
                .all()
            )
            return [r.to_dict() for r in rows]

    def rewarded_transaction_ids(self, address: str) -> set[str]:
        address = (address or "").strip().lower()
        with self.db.session() as session:
            rows = session.query(Reward.transaction_id).filter(Reward.address == address).all()
            return {r[0] for r in rows}
