"""
Application-level exceptions.

ValidationError and NotFoundError surface to users (HTTP 400/404 or a chat
message). RemoteServiceFailure wraps language-model and chain failures and is
always caught locally. DuplicateWriteNoop marks an idempotent write that found
an existing row; callers treat it as success.
"""

from __future__ import annotations

from typing import Any


class QuickPayError(Exception):
    """Base class for QuickPay domain errors."""


class ValidationError(QuickPayError):
    """Missing or malformed required fields."""


class NotFoundError(QuickPayError):
    """Unknown transaction, reward or username."""


class RemoteServiceFailure(QuickPayError):
    """Language-model or payment-chain call failed or timed out."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service


class DuplicateWriteNoop(QuickPayError):
    """Write hit a uniqueness constraint; the existing row stands."""

    def __init__(self, key: Any) -> None:
        super().__init__(f"already exists: {key}")
        self.key = key
