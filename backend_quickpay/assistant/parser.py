"""
Command parser: free text -> ParsedIntent.

Two stages composed first-match-wins:
1. RuleCommandParser: balance phrases, then fixed payment patterns.
2. LLMCommandParser: language-model fallback returning JSON, validated
   against the same intent variants.

HybridCommandParser.parse never raises: unparseable input becomes InvalidIntent.
"""

from __future__ import annotations

import json
import re
from typing import Protocol

from pydantic import ValidationError as PydanticValidationError

from backend_quickpay.assistant.currency import normalize_currency
from backend_quickpay.assistant.intents import (
    BalanceIntent,
    InvalidIntent,
    ParsedIntent,
    RemoteIntentPayload,
    SendIntent,
    is_valid_amount,
)
from backend_quickpay.assistant.llm import LLM_SERVICE, CompletionClient
from backend_quickpay.core.exceptions import RemoteServiceFailure
from backend_quickpay.quickpay_logging import get_logger

logger = get_logger(__name__)

PARSE_FAILURE_MESSAGE = (
    "Failed to parse transaction command. Please try again with a clearer instruction."
)

BALANCE_PHRASES = ("balance", "how much", "what's my")

_AMOUNT = r"(?P<amount>\d*\.?\d+)"
_CURRENCY = r"(?P<currency>eth|ether|mon|usdc|dai|btc)"
_USER = r"@?(?P<recipient>\w+)"
_PURPOSE = r"(?:\s+for\s+(?P<purpose>[#\w\s]+))?"

# Order matters: first match wins.
SEND_PATTERNS = (
    re.compile(rf"send\s+{_AMOUNT}\s+{_CURRENCY}\s+to\s+{_USER}{_PURPOSE}"),
    re.compile(rf"transfer\s+{_AMOUNT}\s+{_CURRENCY}\s+to\s+{_USER}{_PURPOSE}"),
    re.compile(rf"pay\s+{_USER}\s+{_AMOUNT}\s+{_CURRENCY}{_PURPOSE}"),
    re.compile(rf"give\s+{_AMOUNT}\s+{_CURRENCY}\s+to\s+{_USER}{_PURPOSE}"),
    re.compile(rf"{_AMOUNT}\s+{_CURRENCY}\s+to\s+{_USER}{_PURPOSE}"),
)

PARSER_PROMPT = """Parse this transaction command and return ONLY a JSON object with the following structure.
Do not include any other text, explanations, or markdown formatting.

For sending transactions:
{{
  "action": "send",
  "amount": number,
  "currency": "ETH" or "MON" or other supported currencies,
  "recipient": "username_without_@",
  "purpose": "reason (including hashtags like #dinner, #lunch, etc.) or empty string"
}}

For balance inquiries:
{{
  "action": "balance"
}}

If not a valid command:
{{
  "action": "invalid",
  "error": "error message"
}}

Examples:
- "send 0.02 mon to @alice for #dinner" -> amount: 0.02, currency: "MON", recipient: "alice", purpose: "#dinner"
- "send 1 eth to @bob for coffee" -> amount: 1, currency: "ETH", recipient: "bob", purpose: "coffee"
- "pay @charlie 0.5 mon for #groceries" -> amount: 0.5, currency: "MON", recipient: "charlie", purpose: "#groceries"

User input: {user_input}

JSON only:"""

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?", re.IGNORECASE)


class CommandParser(Protocol):
    def parse(self, text: str) -> ParsedIntent | None:
        """Return an intent, or None when this stage does not recognize text."""
        ...


def extract_json_object(text: str) -> str:
    """
    Return the first balanced {...} object in text.

    Markdown fences are removed first; braces inside JSON strings are ignored.
    Raises ValueError when no complete object is present.
    """
    cleaned = _FENCE_RE.sub("", text or "").strip()
    start = cleaned.find("{")
    if start < 0:
        raise ValueError("no JSON object in response")
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(cleaned)):
        ch = cleaned[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return cleaned[start : i + 1]
    raise ValueError("unbalanced JSON object in response")


class RuleCommandParser:
    """Deterministic stage: balance phrases first, then SEND_PATTERNS in order."""

    def parse(self, text: str) -> ParsedIntent | None:
        lowered = (text or "").lower().strip()
        if not lowered:
            return None
        if any(phrase in lowered for phrase in BALANCE_PHRASES):
            return BalanceIntent()
        for pattern in SEND_PATTERNS:
            match = pattern.search(lowered)
            if match is None:
                continue
            try:
                amount = float(match.group("amount"))
            except ValueError:
                continue
            if not is_valid_amount(amount):
                continue
            return SendIntent(
                amount=amount,
                currency=normalize_currency(match.group("currency")),
                recipient=match.group("recipient"),
                purpose=(match.group("purpose") or "").strip(),
            )
        return None


class LLMCommandParser:
    """Remote-assisted stage. Raises RemoteServiceFailure on any unusable answer."""

    def __init__(self, client: CompletionClient) -> None:
        self.client = client

    def parse(self, text: str) -> ParsedIntent:
        try:
            raw = self.client.complete_json(PARSER_PROMPT.format(user_input=text))
        except RemoteServiceFailure:
            raise
        except Exception as e:
            raise RemoteServiceFailure(LLM_SERVICE, str(e)) from e
        try:
            payload = json.loads(extract_json_object(raw))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            raise RemoteServiceFailure(LLM_SERVICE, f"unparseable answer: {e}") from e
        if not isinstance(payload, dict) or not payload.get("action"):
            raise RemoteServiceFailure(LLM_SERVICE, "answer has no action")
        try:
            return RemoteIntentPayload.model_validate(payload).to_intent()
        except PydanticValidationError as e:
            raise RemoteServiceFailure(LLM_SERVICE, f"answer failed validation: {e.error_count()} error(s)") from e


class HybridCommandParser:
    """
    Rule stage on every call; the remote stage only when no rule matched.

    On remote failure the rule stage is retried once before giving up with
    InvalidIntent. Without a remote stage the parser is purely deterministic.
    """

    def __init__(
        self,
        rules: RuleCommandParser | None = None,
        remote: LLMCommandParser | None = None,
    ) -> None:
        self.rules = rules or RuleCommandParser()
        self.remote = remote

    def parse(self, text: str) -> ParsedIntent:
        intent = self.rules.parse(text)
        if intent is not None:
            return intent
        if self.remote is not None:
            try:
                intent = self.remote.parse(text)
                logger.debug("command_parsed_remote", action=intent.action)
                return intent
            except RemoteServiceFailure as e:
                logger.warning("command_parse_remote_failed", error=str(e))
        return self.rules.parse(text) or InvalidIntent(error=PARSE_FAILURE_MESSAGE)
