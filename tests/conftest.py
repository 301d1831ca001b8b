"""
Pytest fixtures for QuickPay tests. Uses a temporary SQLite DB per test and
in-memory fakes for the payment gateway and the language-model client.
"""

from __future__ import annotations

import random

import pytest

from backend_quickpay.payments.gateway import BalanceResult, PaymentResult

SENDER_ADDRESS = "0x" + "11" * 20
RECIPIENT_ADDRESS = "0x" + "22" * 20
TX_HASH = "0x" + "ab" * 32


class FakeGateway:
    """PaymentGateway double: records send_payment calls; optional canned result or error."""

    def __init__(self, result=None, balance=None, error=None):
        self.calls = []
        self.result = result or PaymentResult(
            success=True,
            message="ok",
            tx_hash=TX_HASH,
            sender=SENDER_ADDRESS,
            recipient_address=RECIPIENT_ADDRESS,
        )
        self.balance = balance or BalanceResult(
            success=True, message="", balance="1.23456", currency="MON"
        )
        self.error = error

    def send_payment(self, recipient_username, amount, currency, purpose):
        self.calls.append((recipient_username, amount, currency, purpose))
        if self.error is not None:
            raise self.error
        return self.result

    def get_balance(self):
        return self.balance


class FakeCompletionClient:
    """CompletionClient double: returns answers in order (or raises), records prompts."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def complete_json(self, prompt):
        self.prompts.append(prompt)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def database(tmp_path):
    """Connected Database on a temporary SQLite file with the schema created."""
    from backend_quickpay.database import Database

    db = Database(f"sqlite:///{tmp_path / 'quickpay.db'}").connect()
    db.init_schema()
    yield db
    db.close()


@pytest.fixture
def transaction_store(database):
    from backend_quickpay.database import TransactionStore

    return TransactionStore(database)


@pytest.fixture
def reward_store(database):
    from backend_quickpay.database import RewardStore

    return RewardStore(database)


@pytest.fixture
def settings(tmp_path):
    """Settings with a temp SQLite DB; no language model and no chain signer."""
    from backend_quickpay.config import Settings

    return Settings(database_url=f"sqlite:///{tmp_path / 'api.db'}")


@pytest.fixture
def client(settings, fake_gateway):
    """FastAPI TestClient with the fake gateway injected. Entering the client runs the lifespan."""
    from fastapi.testclient import TestClient

    from backend_quickpay.api_server.server import create_app
    from backend_quickpay.rewards import RewardGenerator

    app = create_app(
        settings,
        gateway=fake_gateway,
        reward_generator=RewardGenerator(random.Random(7)),
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def client_without_payments(settings):
    """TestClient for an app with no payment gateway configured."""
    from fastapi.testclient import TestClient

    from backend_quickpay.api_server.server import create_app

    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def make_completion_client():
    """Factory for FakeCompletionClient(*answers)."""
    return FakeCompletionClient


@pytest.fixture
def make_gateway():
    """Factory for FakeGateway(result=None, balance=None, error=None)."""
    return FakeGateway
