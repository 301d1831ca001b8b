"""
Structured logging for chat turns, payments, rewards and profile reads.

Every record carries event_type, level, logger and an ISO-8601 timestamp.
Payment events add session_id and tx_hash; store events add address.
Secrets that reach a log call (payer key, LLM key) are masked before rendering.

Imports nothing from backend_quickpay so any module can log at import time.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL_VALUE = getattr(logging, LOG_LEVEL, logging.INFO)

# "json" for deployments, "console" for a terminal
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()

SECRET_FIELDS = frozenset({"private_key", "payer_private_key", "api_key", "llm_api_key"})
MASK = "***"


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """'payment_executed' becomes both event_type and message."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "message" not in event_dict and "event_type" in event_dict:
        event_dict["message"] = str(event_dict["event_type"])
    return event_dict


def _mask_secrets(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in SECRET_FIELDS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = MASK
    return event_dict


def configure_structlog() -> None:
    """Configure structlog once at import; LOG_LEVEL and LOG_FORMAT are read from the environment."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
        _mask_secrets,
    ]
    if LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL_VALUE),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger; the event name goes first, context as keywords.

        logger = get_logger(__name__)
        logger.info("reward_claimed", address="0x12ab...", transaction_id="0x9f...", currency="DAK")

    renders as
        {"event_type": "reward_claimed", "address": "0x12ab...", "transaction_id": "0x9f...",
         "currency": "DAK", "level": "info", "logger": "backend_quickpay.rewards.service", ...}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_session(session_id: str) -> structlog.BoundLogger:
    """Chat logger with session_id on every record of that conversation."""
    return get_logger("backend_quickpay.chat").bind(session_id=session_id)
