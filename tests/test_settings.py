"""
Tests for environment-driven settings.
"""

from __future__ import annotations

import pytest

ENV_NAMES = (
    "QUICKPAY_DB_URL",
    "DATABASE_URL",
    "QUICKPAY_DB_PATH",
    "LLM_API_KEY",
    "GROQ_API_KEY",
    "OPENAI_API_KEY",
    "PAYER_PRIVATE_KEY",
    "REGISTRY_CONTRACT_ADDRESS",
    "QUICKPAY_CONTRACT_ADDRESS",
    "API_PORT",
    "CHAIN_ID",
    "NATIVE_CURRENCY",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    """Without env vars: local SQLite, Monad testnet, no LLM, no payments."""
    from backend_quickpay.config import get_settings

    settings = get_settings()
    assert settings.database_url == "sqlite:///quickpay.db"
    assert settings.chain_id == 10143
    assert settings.native_currency == "MON"
    assert settings.llm_enabled is False
    assert settings.payments_enabled is False


def test_database_url_precedence(clean_env, tmp_path):
    """QUICKPAY_DB_URL beats DATABASE_URL; QUICKPAY_DB_PATH picks the SQLite file."""
    from backend_quickpay.config import get_settings

    clean_env.setenv("QUICKPAY_DB_PATH", str(tmp_path / "x.db"))
    assert get_settings().database_url == f"sqlite:///{tmp_path / 'x.db'}"

    clean_env.setenv("DATABASE_URL", "postgresql://u:p@db/quickpay")
    assert get_settings().database_url == "postgresql://u:p@db/quickpay"

    clean_env.setenv("QUICKPAY_DB_URL", "postgresql://u:p@other/quickpay")
    assert get_settings().database_url == "postgresql://u:p@other/quickpay"


def test_llm_and_payments_enabled(clean_env):
    """Any of the API key names enables the model; payments need key and both contracts."""
    from backend_quickpay.config import get_settings

    clean_env.setenv("GROQ_API_KEY", "gsk_test")
    clean_env.setenv("PAYER_PRIVATE_KEY", "0x" + "11" * 32)
    clean_env.setenv("REGISTRY_CONTRACT_ADDRESS", "0x" + "22" * 20)
    settings = get_settings()
    assert settings.llm_enabled is True
    assert settings.payments_enabled is False

    clean_env.setenv("QUICKPAY_CONTRACT_ADDRESS", "0x" + "33" * 20)
    assert get_settings().payments_enabled is True


def test_invalid_integer(clean_env):
    """Non-numeric integer settings fail loudly."""
    from backend_quickpay.config import get_settings

    clean_env.setenv("API_PORT", "eighty")
    with pytest.raises(ValueError, match="API_PORT"):
        get_settings()
