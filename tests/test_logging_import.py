"""
Test that quickpay_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from quickpay_logging and use the logger."""
    from backend_quickpay.quickpay_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_session():
    """bind_session returns a logger usable for chat events."""
    from backend_quickpay.quickpay_logging import bind_session

    log = bind_session("session-1")
    log.info("chat_message_received", length=3)


def test_secret_fields_are_masked():
    """Keys and private keys passed as log fields never reach the rendered record."""
    from backend_quickpay.quickpay_logging.logger import MASK, _mask_secrets

    event = _mask_secrets(None, "info", {"event": "gateway_built", "payer_private_key": "0xdead", "api_key": ""})
    assert event["payer_private_key"] == MASK
    assert event["api_key"] == ""
    assert event["event"] == "gateway_built"
