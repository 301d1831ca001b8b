"""
FastAPI server: transactions, rewards, profile and chat assistant.

The lifespan owns the Database (connect, create schema, close) and wires the
stores, the reward service and the chat sessions onto app.state. The chat
endpoint is available only when a payment gateway is configured or injected.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend_quickpay import __version__
from backend_quickpay.api_server.routes import router
from backend_quickpay.assistant.dialogue import PaymentDialogue
from backend_quickpay.assistant.llm import CompletionClient, OpenAICompletionClient
from backend_quickpay.assistant.parser import HybridCommandParser, LLMCommandParser
from backend_quickpay.assistant.sessions import SessionRegistry
from backend_quickpay.config import Settings, get_settings
from backend_quickpay.database import Database, RewardStore, TransactionStore
from backend_quickpay.payments.gateway import PaymentGateway
from backend_quickpay.payments.web3_gateway import Web3PaymentGateway
from backend_quickpay.quickpay_logging import get_logger
from backend_quickpay.rewards import RewardGenerator, RewardService

logger = get_logger(__name__)


def _build_parser(settings: Settings, completion_client: CompletionClient | None) -> HybridCommandParser:
    if completion_client is None and settings.llm_enabled:
        completion_client = OpenAICompletionClient.from_settings(settings)
    remote = LLMCommandParser(completion_client) if completion_client is not None else None
    logger.info("command_parser_ready", remote_stage=remote is not None)
    return HybridCommandParser(remote=remote)


def _build_gateway(settings: Settings, gateway: PaymentGateway | None) -> PaymentGateway | None:
    if gateway is not None:
        return gateway
    if not settings.payments_enabled:
        logger.warning("payment_gateway_disabled", reason="signer or contract addresses not configured")
        return None
    try:
        return Web3PaymentGateway.from_settings(settings)
    except Exception as e:
        logger.exception("payment_gateway_init_failed", error=str(e))
        return None


def create_app(
    settings: Settings | None = None,
    *,
    gateway: PaymentGateway | None = None,
    completion_client: CompletionClient | None = None,
    reward_generator: RewardGenerator | None = None,
) -> FastAPI:
    """
    Build the ASGI app. Collaborators may be injected (tests); otherwise they
    are built from settings when the app starts.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = Database(settings.database_url).connect()
        db.init_schema()
        transactions = TransactionStore(db)
        rewards = RewardStore(db)

        app.state.settings = settings
        app.state.db = db
        app.state.transactions = transactions
        app.state.rewards = rewards
        app.state.reward_service = RewardService(transactions, rewards, reward_generator)

        payment_gateway = _build_gateway(settings, gateway)
        app.state.gateway = payment_gateway
        if payment_gateway is not None:
            parser = _build_parser(settings, completion_client)

            def dialogue_factory(session_id: str) -> PaymentDialogue:
                return PaymentDialogue(parser, payment_gateway, transactions, session_id=session_id)

            app.state.sessions = SessionRegistry(
                dialogue_factory,
                ttl_sec=settings.chat_session_ttl_sec,
                max_sessions=settings.max_chat_sessions,
            )
        else:
            app.state.sessions = None
        logger.info("api_started", chat_enabled=app.state.sessions is not None)

        yield

        db.close()
        logger.info("api_stopped")

    app = FastAPI(
        title="QuickPay API",
        description="Chat payments, transaction history, rewards and credibility profiles.",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router, prefix="/api")

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        """Consistent JSON error response: {"error": message}."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    def validation_exception_handler(request: Any, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies and query params are client errors (400), not 422."""
        logger.info("api_request_invalid", errors=len(exc.errors()))
        return JSONResponse(status_code=400, content={"error": "Invalid request"})

    return app
