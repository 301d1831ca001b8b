"""
Payment dialogue: one payment context per chat session.

States (a tagged union, each carrying only its valid fields):
- Idle
- AwaitingCurrency(recipient, amount, purpose)
- AwaitingConfirmation(recipient, amount, currency, purpose)

A message while awaiting confirmation is checked for confirmation keywords
first, then cancellation keywords. Anything else drops the pending payment and
is parsed as a fresh command. Execution calls the payment gateway
synchronously; the state returns to Idle only once the outcome is known.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Protocol, Union

from backend_quickpay.assistant.currency import infer_currency
from backend_quickpay.assistant.intents import BalanceIntent, SendIntent
from backend_quickpay.assistant.parser import HybridCommandParser
from backend_quickpay.payments.gateway import PaymentGateway, PaymentResult
from backend_quickpay.quickpay_logging import get_logger

logger = get_logger(__name__)

CONFIRM_KEYWORDS = ("yes", "confirm", "sure", "ok", "okay", "proceed", "go ahead")
CANCEL_KEYWORDS = ("no", "cancel", "stop", "abort")

ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"

HELP_MESSAGE = """**Available Commands:**

**Transaction Commands:**
- Send [amount] [currency] to @[username] for [purpose]
  Example: "Send 0.1 ETH to @alice for lunch"

**Utility Commands:**
- /help - Show this help message
- /balance - Check your current wallet balance
- /transactions - View your transaction history

**Questions you can ask:**
- "What's my balance?"
- "How do I register a username?"
- "What cryptocurrencies are supported?\""""

UNRECOGNIZED_MESSAGE = (
    "I couldn't understand your request. Try commands like:\n"
    "• Send 0.1 ETH to @alice\n"
    "• Send 0.02 MON to @bob for #dinner\n"
    "• Pay @charlie 5 USDC for #groceries\n"
    "• What's my balance?"
)

TRANSACTIONS_MESSAGE = "You can view your transactions on the [Transactions page](/transactions)."
CANCELLED_MESSAGE = "Payment canceled. Is there anything else I can help you with?"


class DialogueStage(str, Enum):
    IDLE = "idle"
    AWAITING_CURRENCY = "currency_selection"
    AWAITING_CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class Idle:
    stage: ClassVar[DialogueStage] = DialogueStage.IDLE


@dataclass(frozen=True)
class AwaitingCurrency:
    recipient: str
    amount: float
    purpose: str = ""

    stage: ClassVar[DialogueStage] = DialogueStage.AWAITING_CURRENCY


@dataclass(frozen=True)
class AwaitingConfirmation:
    recipient: str
    amount: float
    currency: str
    purpose: str = ""

    stage: ClassVar[DialogueStage] = DialogueStage.AWAITING_CONFIRMATION


DialogueState = Union[Idle, AwaitingCurrency, AwaitingConfirmation]


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class TransactionRecorder(Protocol):
    def record_transaction(self, payload: dict[str, Any]) -> Any:
        ...


def format_amount(amount: float) -> str:
    """Fixed-point, no trailing zeros: 2.0 -> '2', 0.1 -> '0.1', 1e-05 -> '0.00001'."""
    if float(amount).is_integer():
        return str(int(amount))
    text = format(Decimal(repr(float(amount))), "f")
    return text.rstrip("0").rstrip(".") if "." in text else text


def _describe(amount: float, currency: str, recipient: str, purpose: str) -> str:
    purpose_text = f" for {purpose}" if purpose else ""
    return f"{format_amount(amount)} {currency} to @{recipient}{purpose_text}"


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(word in text for word in keywords)


def payment_context(state: DialogueState) -> dict[str, Any]:
    """Flat view of the state: active, recipient, amount, currency, purpose, stage."""
    if isinstance(state, Idle):
        return {
            "active": False,
            "recipient": None,
            "amount": None,
            "currency": None,
            "purpose": None,
            "stage": None,
        }
    return {
        "active": True,
        "recipient": state.recipient,
        "amount": state.amount,
        "currency": getattr(state, "currency", None),
        "purpose": state.purpose,
        "stage": state.stage.value,
    }


class PaymentDialogue:
    """
    Not re-entrant: callers serialize handle() per session (see ChatSession).
    """

    def __init__(
        self,
        parser: HybridCommandParser,
        gateway: PaymentGateway,
        recorder: TransactionRecorder | None = None,
        *,
        session_id: str = "",
    ) -> None:
        self.parser = parser
        self.gateway = gateway
        self.recorder = recorder
        self.session_id = session_id
        self.state: DialogueState = Idle()
        self._log = logger.bind(session_id=session_id) if session_id else logger

    @property
    def context(self) -> dict[str, Any]:
        return payment_context(self.state)

    def reset(self) -> None:
        self.state = Idle()

    def start_payment(
        self,
        recipient: str,
        amount: float,
        currency: str | None = None,
        purpose: str = "",
    ) -> list[ChatMessage]:
        """Enter the payment flow directly; asks for a currency when none is given."""
        if not currency:
            self.state = AwaitingCurrency(recipient=recipient, amount=amount, purpose=purpose)
            return [
                ChatMessage(
                    ROLE_ASSISTANT,
                    f"Which currency would you like to use to send {format_amount(amount)} "
                    f"to @{recipient}? You can choose ETH, MON, USDC or DAI.",
                )
            ]
        self.state = AwaitingConfirmation(
            recipient=recipient, amount=amount, currency=currency, purpose=purpose
        )
        return [
            ChatMessage(
                ROLE_ASSISTANT,
                "It looks like you're ready to make a payment! To confirm, you want to send "
                f"{format_amount(amount)} {currency} to the recipient @{recipient}"
                f"{f' for {purpose}' if purpose else ''}. Type 'yes' to confirm or 'no' to cancel.",
            )
        ]

    def handle(self, text: str) -> list[ChatMessage]:
        """Process one user message and return the replies to show."""
        trimmed = (text or "").strip()
        if not trimmed:
            return []

        command = trimmed.lower()
        if command == "/help":
            return [ChatMessage(ROLE_ASSISTANT, HELP_MESSAGE)]
        if command == "/balance":
            return self._balance()
        if command == "/transactions":
            return [ChatMessage(ROLE_ASSISTANT, TRANSACTIONS_MESSAGE)]

        handled = self._handle_pending(command)
        if handled is not None:
            return handled

        intent = self.parser.parse(trimmed)
        if isinstance(intent, SendIntent):
            if not isinstance(self.state, Idle):
                self._log.info("payment_context_replaced", stage=self.state.stage.value)
            return self.start_payment(
                intent.recipient, intent.amount, intent.currency, intent.purpose
            )
        if isinstance(intent, BalanceIntent):
            return self._balance()
        return [ChatMessage(ROLE_ASSISTANT, UNRECOGNIZED_MESSAGE)]

    def _handle_pending(self, lowered: str) -> list[ChatMessage] | None:
        """Return replies when the message is a dialogue event, None to fall through."""
        state = self.state
        if isinstance(state, AwaitingConfirmation):
            if _contains_any(lowered, CONFIRM_KEYWORDS):
                return self._execute(state)
            if _contains_any(lowered, CANCEL_KEYWORDS):
                return self._cancel()
            # TODO: warn the user before dropping the pending payment once the UI can show it.
            self._log.info("payment_context_abandoned", stage=state.stage.value)
            self.state = Idle()
            return None
        if isinstance(state, AwaitingCurrency):
            if _contains_any(lowered, CANCEL_KEYWORDS):
                return self._cancel()
            currency = infer_currency(lowered)
            self.state = AwaitingConfirmation(
                recipient=state.recipient,
                amount=state.amount,
                currency=currency,
                purpose=state.purpose,
            )
            return [
                ChatMessage(
                    ROLE_ASSISTANT,
                    f"Great! To confirm, you want to send "
                    f"{_describe(state.amount, currency, state.recipient, state.purpose)}. "
                    "Type 'yes' to confirm or 'no' to cancel.",
                )
            ]
        return None

    def _cancel(self) -> list[ChatMessage]:
        self._log.info("payment_cancelled", stage=self.state.stage.value)
        self.state = Idle()
        return [ChatMessage(ROLE_ASSISTANT, CANCELLED_MESSAGE)]

    def _execute(self, state: AwaitingConfirmation) -> list[ChatMessage]:
        description = _describe(state.amount, state.currency, state.recipient, state.purpose)
        messages = [ChatMessage(ROLE_ASSISTANT, f"Processing payment of {description}...")]
        try:
            result = self.gateway.send_payment(
                state.recipient, state.amount, state.currency, state.purpose
            )
        except Exception as e:
            self._log.exception("payment_execution_error", recipient=state.recipient, error=str(e))
            result = PaymentResult(success=False, message=str(e))
            messages.append(ChatMessage(ROLE_ASSISTANT, f"❌ Error processing payment: {e}"))
        else:
            if result.success:
                messages.append(ChatMessage(ROLE_ASSISTANT, f"✅ Successfully sent {description}!"))
                if result.tx_hash:
                    messages.append(ChatMessage(ROLE_SYSTEM, f"Transaction hash: {result.tx_hash}"))
                self._record(state, result)
            else:
                messages.append(
                    ChatMessage(ROLE_ASSISTANT, f"❌ Failed to send payment: {result.message}")
                )
        finally:
            self.state = Idle()

        self._log.info(
            "payment_executed",
            success=result.success,
            tx_hash=result.tx_hash,
            currency=state.currency,
        )
        return messages

    def _record(self, state: AwaitingConfirmation, result: PaymentResult) -> None:
        """Store a successful payment; storage problems never change the chat outcome."""
        if self.recorder is None or not result.tx_hash or not result.sender:
            return
        payload = {
            "txHash": result.tx_hash,
            "sender": result.sender,
            "recipient": result.recipient_address or state.recipient,
            "senderUsername": "",
            "recipientUsername": state.recipient,
            "amount": format_amount(state.amount),
            "currency": state.currency,
            "purpose": state.purpose,
            "timestamp": int(time.time() * 1000),
        }
        try:
            self.recorder.record_transaction(payload)
        except Exception as e:
            self._log.exception("payment_record_failed", tx_hash=result.tx_hash, error=str(e))

    def _balance(self) -> list[ChatMessage]:
        try:
            result = self.gateway.get_balance()
        except Exception as e:
            self._log.exception("balance_query_error", error=str(e))
            return [ChatMessage(ROLE_ASSISTANT, f"Error checking balance: {e}")]
        if result.success and result.balance is not None:
            try:
                amount = float(result.balance)
            except ValueError:
                return [ChatMessage(ROLE_ASSISTANT, result.message or "Failed to get balance.")]
            return [
                ChatMessage(
                    ROLE_ASSISTANT,
                    f"Your current balance is {amount:.4f} {result.currency}.",
                )
            ]
        return [ChatMessage(ROLE_ASSISTANT, result.message or "Failed to get balance.")]
