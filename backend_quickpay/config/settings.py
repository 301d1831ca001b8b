"""
Application settings.

Responsibilities:
- Load configuration from environment variables and .env files.
- Provide defaults for optional settings (SQLite path, Groq endpoint, Monad testnet RPC).
- Expose a typed, immutable Settings object for the API server, chat assistant
  and payment gateway.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_quickpay.config.env import env_float, env_int, env_str, load_quickpay_env

DEFAULT_SQLITE_PATH = "quickpay.db"

# Groq exposes an OpenAI-compatible API
DEFAULT_LLM_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_LLM_MODEL = "llama3-70b-8192"

MONAD_TESTNET_RPC_URL = "https://testnet-rpc.monad.xyz/"
MONAD_TESTNET_CHAIN_ID = 10143


@dataclass(frozen=True)
class Settings:
    """Resolved configuration. Build with get_settings(); override fields in tests."""

    database_url: str = f"sqlite:///{DEFAULT_SQLITE_PATH}"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "info"

    llm_api_key: str = ""
    llm_base_url: str = DEFAULT_LLM_BASE_URL
    llm_model: str = DEFAULT_LLM_MODEL
    llm_temperature: float = 0.1
    llm_timeout_sec: float = 20.0

    rpc_url: str = MONAD_TESTNET_RPC_URL
    chain_id: int = MONAD_TESTNET_CHAIN_ID
    payer_private_key: str = ""
    registry_contract_address: str = ""
    quickpay_contract_address: str = ""
    payment_timeout_sec: float = 120.0
    native_currency: str = "MON"

    chat_session_ttl_sec: float = 1800.0
    max_chat_sessions: int = 10_000

    @property
    def llm_enabled(self) -> bool:
        return bool(self.llm_api_key)

    @property
    def payments_enabled(self) -> bool:
        """True when the chain gateway has a signer and both contract addresses."""
        return bool(
            self.payer_private_key
            and self.registry_contract_address
            and self.quickpay_contract_address
        )


def _database_url() -> str:
    """QUICKPAY_DB_URL / DATABASE_URL if set; else SQLite from QUICKPAY_DB_PATH or default."""
    url = env_str("QUICKPAY_DB_URL", "DATABASE_URL")
    if url:
        return url
    path = env_str("QUICKPAY_DB_PATH", default=DEFAULT_SQLITE_PATH)
    return f"sqlite:///{path}"


def get_settings() -> Settings:
    """
    Return settings resolved from the environment (and .env).

    Not cached: tests set env vars with monkeypatch and call again.
    """
    load_quickpay_env()
    return Settings(
        database_url=_database_url(),
        api_host=env_str("API_HOST", default="0.0.0.0"),
        api_port=env_int("API_PORT", 8000),
        log_level=env_str("LOG_LEVEL", default="info").lower(),
        llm_api_key=env_str("LLM_API_KEY", "GROQ_API_KEY", "OPENAI_API_KEY"),
        llm_base_url=env_str("LLM_BASE_URL", default=DEFAULT_LLM_BASE_URL),
        llm_model=env_str("LLM_MODEL", default=DEFAULT_LLM_MODEL),
        llm_temperature=env_float("LLM_TEMPERATURE", 0.1),
        llm_timeout_sec=env_float("LLM_TIMEOUT_SEC", 20.0),
        rpc_url=env_str("RPC_URL", default=MONAD_TESTNET_RPC_URL),
        chain_id=env_int("CHAIN_ID", MONAD_TESTNET_CHAIN_ID),
        payer_private_key=env_str("PAYER_PRIVATE_KEY"),
        registry_contract_address=env_str("REGISTRY_CONTRACT_ADDRESS"),
        quickpay_contract_address=env_str("QUICKPAY_CONTRACT_ADDRESS"),
        payment_timeout_sec=env_float("PAYMENT_TIMEOUT_SEC", 120.0),
        native_currency=env_str("NATIVE_CURRENCY", default="MON").upper(),
        chat_session_ttl_sec=env_float("CHAT_SESSION_TTL_SEC", 1800.0),
        max_chat_sessions=env_int("MAX_CHAT_SESSIONS", 10_000),
    )
