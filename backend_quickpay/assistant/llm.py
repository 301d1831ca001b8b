"""
Language-model completion client for the parser fallback.

Text in, raw text out. The OpenAI SDK talks to any OpenAI-compatible endpoint
(Groq by default). Every SDK or transport error is raised as RemoteServiceFailure
so callers only handle one failure type.
"""

from __future__ import annotations

from typing import Protocol

from openai import OpenAI, OpenAIError

from backend_quickpay.config import Settings
from backend_quickpay.core.exceptions import RemoteServiceFailure
from backend_quickpay.quickpay_logging import get_logger

logger = get_logger(__name__)

LLM_SERVICE = "language_model"


class CompletionClient(Protocol):
    def complete_json(self, prompt: str) -> str:
        """Return the model's raw answer to prompt. Raises RemoteServiceFailure."""
        ...


class OpenAICompletionClient:
    """Chat-completions call with a fixed low temperature and request timeout."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        base_url: str | None = None,
        temperature: float = 0.1,
        timeout_sec: float = 20.0,
        max_tokens: int = 300,
    ) -> None:
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout_sec, max_retries=0)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAICompletionClient":
        return cls(
            settings.llm_api_key,
            model=settings.llm_model,
            base_url=settings.llm_base_url,
            temperature=settings.llm_temperature,
            timeout_sec=settings.llm_timeout_sec,
        )

    def complete_json(self, prompt: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as e:
            logger.warning("llm_completion_failed", model=self.model, error=str(e))
            raise RemoteServiceFailure(LLM_SERVICE, str(e)) from e
        if not response.choices:
            raise RemoteServiceFailure(LLM_SERVICE, "empty completion")
        content = response.choices[0].message.content
        if not content:
            raise RemoteServiceFailure(LLM_SERVICE, "empty completion")
        return content
