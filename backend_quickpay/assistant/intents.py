"""
Parsed intents: the structured result of interpreting one chat message.

A tagged union of three frozen dataclasses. SendIntent always carries amount,
currency and recipient; InvalidIntent always carries an error; BalanceIntent
carries nothing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from backend_quickpay.assistant.currency import normalize_currency

ACTION_SEND = "send"
ACTION_BALANCE = "balance"
ACTION_INVALID = "invalid"


@dataclass(frozen=True)
class SendIntent:
    amount: float
    currency: str
    recipient: str
    purpose: str = ""

    action: ClassVar[str] = ACTION_SEND

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "amount": self.amount,
            "currency": self.currency,
            "recipient": self.recipient,
            "purpose": self.purpose,
        }


@dataclass(frozen=True)
class BalanceIntent:
    action: ClassVar[str] = ACTION_BALANCE

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action}


@dataclass(frozen=True)
class InvalidIntent:
    error: str

    action: ClassVar[str] = ACTION_INVALID

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "error": self.error}


ParsedIntent = Union[SendIntent, BalanceIntent, InvalidIntent]


def is_valid_amount(value: float) -> bool:
    return math.isfinite(value) and value > 0


class RemoteIntentPayload(BaseModel):
    """
    Schema for the language model's JSON answer.

    Same contract as the rule parser output: a send needs a positive finite
    amount, a currency and a recipient; an invalid needs an error message.
    Extra keys are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    action: Literal["send", "balance", "invalid"]
    amount: float | None = None
    currency: str | None = None
    recipient: str | None = None
    purpose: str | None = ""
    error: str | None = None

    @field_validator("recipient")
    @classmethod
    def _strip_marker(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lstrip("@").strip() or None

    @model_validator(mode="after")
    def _check_variant(self) -> "RemoteIntentPayload":
        if self.action == ACTION_SEND:
            if self.amount is None or not is_valid_amount(self.amount):
                raise ValueError("send requires a positive finite amount")
            if not (self.currency or "").strip():
                raise ValueError("send requires a currency")
            if not self.recipient:
                raise ValueError("send requires a recipient")
        return self

    def to_intent(self) -> ParsedIntent:
        if self.action == ACTION_SEND:
            return SendIntent(
                amount=float(self.amount),
                currency=normalize_currency(self.currency or ""),
                recipient=self.recipient or "",
                purpose=(self.purpose or "").strip(),
            )
        if self.action == ACTION_BALANCE:
            return BalanceIntent()
        return InvalidIntent(error=(self.error or "").strip() or "Unrecognized command")

