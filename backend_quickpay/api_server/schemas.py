"""
Request bodies. JSON keys are camelCase; Python attributes are snake_case.

Required fields are optional here so that a missing field is reported as a
400 with the same message the stores use.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class TransactionRequest(BaseModel):
    """POST /api/transactions body."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tx_hash: str | None = Field(None, alias="txHash", description="Transaction hash")
    sender: str | None = Field(None, description="Sender address")
    recipient: str | None = Field(None, description="Recipient address")
    amount: str | int | float | None = Field(None, description="Amount in currency units")
    currency: str | None = Field(None, description="Currency symbol, default ETH")
    purpose: str | None = Field(None, max_length=512)
    timestamp: int | None = Field(None, description="Epoch milliseconds; default now")
    sender_username: str | None = Field(None, alias="senderUsername")
    recipient_username: str | None = Field(None, alias="recipientUsername")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ClaimRewardRequest(BaseModel):
    """POST /api/rewards/claim body."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    address: str | None = Field(None, description="Claiming wallet address")
    transaction_id: str | None = Field(None, alias="transactionId", description="Transaction hash")


class ChatRequest(BaseModel):
    """POST /api/chat body."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    session_id: str = Field(..., alias="sessionId", min_length=1, max_length=128)
    message: str = Field("", max_length=2000)
