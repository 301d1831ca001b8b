"""
Structured logging for Backend QuickPay.

JSON logs with timestamp, event_type and context fields (session_id, tx_hash, address).
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_quickpay.quickpay_logging.logger import bind_session, get_logger

__all__ = ["bind_session", "get_logger"]
