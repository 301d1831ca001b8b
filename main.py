"""
Main entrypoint: QuickPay FastAPI server.

Settings come from the environment and .env (see backend_quickpay.config):
QUICKPAY_DB_URL / DATABASE_URL, LLM_API_KEY, RPC_URL, PAYER_PRIVATE_KEY,
REGISTRY_CONTRACT_ADDRESS, QUICKPAY_CONTRACT_ADDRESS, API_HOST, API_PORT, etc.

Equivalent: uvicorn backend_quickpay.api_server.app:app --host 0.0.0.0 --port 8000
"""

# Configure structured JSON logging before other imports that may log
from backend_quickpay.quickpay_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Build the app from settings and run it in the main thread."""
    import uvicorn

    from backend_quickpay.api_server.server import create_app
    from backend_quickpay.config import get_settings

    settings = get_settings()
    app = create_app(settings)

    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        llm_enabled=settings.llm_enabled,
        payments_enabled=settings.payments_enabled,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level)


if __name__ == "__main__":
    main()
