"""
Tests for the payment dialogue: confirmation, cancellation, currency selection,
execution outcomes and utility commands. Uses the deterministic parser only.
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest


@pytest.fixture
def recorder():
    return Mock()


@pytest.fixture
def dialogue(fake_gateway, recorder):
    from backend_quickpay.assistant.dialogue import PaymentDialogue
    from backend_quickpay.assistant.parser import HybridCommandParser

    return PaymentDialogue(HybridCommandParser(), fake_gateway, recorder, session_id="s1")


def test_send_prompts_for_confirmation(dialogue, fake_gateway):
    """A send command enters confirmation and echoes the payment; nothing is executed yet."""
    replies = dialogue.handle("Send 0.1 ETH to @alice for lunch")
    assert len(replies) == 1
    assert replies[0].role == "assistant"
    assert "send 0.1 ETH to the recipient @alice for lunch" in replies[0].content
    assert dialogue.context == {
        "active": True,
        "recipient": "alice",
        "amount": 0.1,
        "currency": "ETH",
        "purpose": "lunch",
        "stage": "confirmation",
    }
    assert fake_gateway.calls == []


def test_confirm_executes_exactly_once(dialogue, fake_gateway, recorder):
    """'yes' calls the gateway once, reports the hash, records the payment and resets to idle."""
    tx_hash = fake_gateway.result.tx_hash

    dialogue.handle("Send 0.1 ETH to @alice for lunch")
    replies = dialogue.handle("yes")

    assert fake_gateway.calls == [("alice", 0.1, "ETH", "lunch")]
    assert [m.content for m in replies] == [
        "Processing payment of 0.1 ETH to @alice for lunch...",
        "✅ Successfully sent 0.1 ETH to @alice for lunch!",
        f"Transaction hash: {tx_hash}",
    ]
    assert replies[2].role == "system"
    assert dialogue.context["active"] is False
    recorder.record_transaction.assert_called_once()
    payload = recorder.record_transaction.call_args.args[0]
    assert payload["txHash"] == tx_hash
    assert payload["recipientUsername"] == "alice"
    assert payload["amount"] == "0.1"
    assert payload["purpose"] == "lunch"

    # a second 'yes' has no pending payment to execute
    dialogue.handle("yes")
    assert len(fake_gateway.calls) == 1


def test_cancel_does_not_execute(dialogue, fake_gateway):
    """'no, cancel that' cancels; the gateway is never called."""
    from backend_quickpay.assistant.dialogue import CANCELLED_MESSAGE

    dialogue.handle("Send 0.02 MON to @bob for #dinner")
    replies = dialogue.handle("no, cancel that")
    assert [m.content for m in replies] == [CANCELLED_MESSAGE]
    assert fake_gateway.calls == []
    assert dialogue.context["active"] is False


def test_failed_payment_reports_reason(make_gateway, recorder):
    """A failure result becomes a failure message; nothing is recorded."""
    from backend_quickpay.assistant.dialogue import PaymentDialogue
    from backend_quickpay.assistant.parser import HybridCommandParser
    from backend_quickpay.payments.gateway import PaymentResult

    gateway = make_gateway(result=PaymentResult(success=False, message="Username @alice is not registered."))
    dialogue = PaymentDialogue(HybridCommandParser(), gateway, recorder)
    dialogue.handle("send 1 mon to @alice")
    replies = dialogue.handle("confirm")
    assert replies[-1].content == "❌ Failed to send payment: Username @alice is not registered."
    recorder.record_transaction.assert_not_called()
    assert dialogue.context["active"] is False


def test_gateway_exception_is_a_failure_message(make_gateway):
    """An exception from the gateway (e.g. timeout) never escapes handle()."""
    from backend_quickpay.assistant.dialogue import PaymentDialogue
    from backend_quickpay.assistant.parser import HybridCommandParser

    gateway = make_gateway(error=TimeoutError("receipt timeout"))
    dialogue = PaymentDialogue(HybridCommandParser(), gateway)
    dialogue.handle("send 1 mon to @alice")
    replies = dialogue.handle("go ahead")
    assert replies[-1].content == "❌ Error processing payment: receipt timeout"
    assert dialogue.context["active"] is False


def test_recording_failure_keeps_success(dialogue, recorder):
    """Storage errors are logged; the chat still reports success."""
    recorder.record_transaction.side_effect = RuntimeError("db down")
    dialogue.handle("send 1 eth to @alice")
    replies = dialogue.handle("ok")
    assert replies[1].content == "✅ Successfully sent 1 ETH to @alice!"


def test_unrelated_message_abandons_pending_payment(dialogue, fake_gateway):
    """A non-keyword reply drops the pending payment and is parsed as a new command."""
    dialogue.handle("send 1 eth to @alice")
    replies = dialogue.handle("what's my balance?")
    assert [m.content for m in replies] == ["Your current balance is 1.2346 MON."]
    assert dialogue.context["active"] is False
    assert fake_gateway.calls == []


def test_new_send_replaces_pending_payment(dialogue):
    """Only one payment is pending per session; the latest command wins."""
    dialogue.handle("send 1 eth to @alice")
    dialogue.handle("send 2 mon to @carol")
    assert dialogue.context["recipient"] == "carol"
    assert dialogue.context["amount"] == 2.0
    assert dialogue.context["currency"] == "MON"


def test_currency_selection_flow(dialogue, fake_gateway):
    """Without a currency the dialogue asks for one, then confirms, then executes."""
    replies = dialogue.start_payment("bob", 2.0)
    assert "Which currency" in replies[0].content
    assert dialogue.context["stage"] == "currency_selection"
    assert dialogue.context["currency"] is None

    replies = dialogue.handle("usdc please")
    assert replies[0].content == (
        "Great! To confirm, you want to send 2 USDC to @bob. Type 'yes' to confirm or 'no' to cancel."
    )
    assert dialogue.context["stage"] == "confirmation"

    dialogue.handle("yes")
    assert fake_gateway.calls == [("bob", 2.0, "USDC", "")]


def test_cancel_during_currency_selection(dialogue):
    """Cancellation keywords are honored while a currency is being chosen."""
    from backend_quickpay.assistant.dialogue import CANCELLED_MESSAGE

    dialogue.start_payment("bob", 2.0)
    replies = dialogue.handle("stop")
    assert replies[0].content == CANCELLED_MESSAGE
    assert dialogue.context["active"] is False


def test_utility_commands_keep_pending_payment(dialogue):
    """/help and /transactions answer without touching the payment state."""
    from backend_quickpay.assistant.dialogue import HELP_MESSAGE, TRANSACTIONS_MESSAGE

    dialogue.handle("send 1 eth to @alice")
    assert dialogue.handle("/help")[0].content == HELP_MESSAGE
    assert dialogue.handle("/TRANSACTIONS")[0].content == TRANSACTIONS_MESSAGE
    assert dialogue.context["stage"] == "confirmation"


def test_balance_failure_echoes_message(make_gateway):
    """A failed balance query shows the gateway's message."""
    from backend_quickpay.assistant.dialogue import PaymentDialogue
    from backend_quickpay.assistant.parser import HybridCommandParser
    from backend_quickpay.payments.gateway import BalanceResult

    gateway = make_gateway(balance=BalanceResult(success=False, message="Failed to get wallet balance: rpc down"))
    dialogue = PaymentDialogue(HybridCommandParser(), gateway)
    assert dialogue.handle("/balance")[0].content == "Failed to get wallet balance: rpc down"


def test_empty_and_unrecognized_input(dialogue):
    """Blank input produces nothing; gibberish produces the help-style reply."""
    from backend_quickpay.assistant.dialogue import UNRECOGNIZED_MESSAGE

    assert dialogue.handle("   ") == []
    assert dialogue.handle("hello there")[0].content == UNRECOGNIZED_MESSAGE


def test_format_amount():
    """Whole amounts drop the decimal point."""
    from backend_quickpay.assistant.dialogue import format_amount

    assert format_amount(2.0) == "2"
    assert format_amount(0.1) == "0.1"


def test_small_amounts_are_fixed_point(dialogue, fake_gateway, recorder):
    """Tiny amounts are echoed and stored without scientific notation."""
    from backend_quickpay.assistant.dialogue import format_amount

    assert format_amount(0.00001) == "0.00001"
    assert format_amount(1.5e-7) == "0.00000015"

    replies = dialogue.handle("send 0.00001 eth to @bob")
    assert "0.00001 ETH to the recipient @bob" in replies[0].content
    dialogue.handle("yes")
    assert recorder.record_transaction.call_args.args[0]["amount"] == "0.00001"


def test_confirmation_from_started_payment(dialogue, fake_gateway):
    """A pending 1 MON payment to bob executes once on 'yes' and resets the context."""
    dialogue.start_payment("bob", 1, "MON")
    dialogue.handle("yes")
    assert fake_gateway.calls == [("bob", 1, "MON", "")]
    assert dialogue.context["active"] is False


def test_confirmation_wins_over_cancellation(dialogue, fake_gateway):
    """A reply containing both keyword sets confirms."""
    dialogue.start_payment("bob", 1, "MON")
    dialogue.handle("yes, no wait")
    assert len(fake_gateway.calls) == 1
