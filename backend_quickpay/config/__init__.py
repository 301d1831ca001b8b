"""
Configuration management for Backend QuickPay.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for database, LLM, chain and API settings.
"""

from backend_quickpay.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
