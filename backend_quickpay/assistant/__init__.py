"""
Chat assistant: natural-language payment commands and the confirmation dialogue.

Parsing is rule-based first with a language-model fallback; the dialogue keeps
one payment context per session and drives the payment gateway on confirmation.
"""

from backend_quickpay.assistant.currency import infer_currency, normalize_currency
from backend_quickpay.assistant.dialogue import ChatMessage, PaymentDialogue
from backend_quickpay.assistant.intents import (
    BalanceIntent,
    InvalidIntent,
    ParsedIntent,
    SendIntent,
)
from backend_quickpay.assistant.parser import (
    HybridCommandParser,
    LLMCommandParser,
    RuleCommandParser,
)
from backend_quickpay.assistant.sessions import ChatSession, SessionRegistry

__all__ = [
    "BalanceIntent",
    "ChatMessage",
    "ChatSession",
    "HybridCommandParser",
    "InvalidIntent",
    "LLMCommandParser",
    "ParsedIntent",
    "PaymentDialogue",
    "RuleCommandParser",
    "SendIntent",
    "SessionRegistry",
    "infer_currency",
    "normalize_currency",
]
