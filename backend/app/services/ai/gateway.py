"""Thin wrapper over the OpenAI chat-completions API."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

import openai

from app.core.config import settings

logger = logging.getLogger(__name__)


class LLMGatewayError(Exception):
    """Raised when the model cannot be reached or returns nothing usable."""


class LLMGateway:
    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
    ):
        self.api_key = api_key
        self.model = model or settings.llm_model
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self._client: Optional[openai.OpenAI] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> openai.OpenAI:
        if not self.api_key:
            raise LLMGatewayError("LLM API key not configured")
        if self._client is None:
            self._client = openai.OpenAI(api_key=self.api_key)
        return self._client

    def complete(self, system_prompt: str, user_prompt: str, *, json_mode: bool = False) -> str:
        """Send one system + user exchange and return the reply text."""
        client = self._get_client()
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            completion = client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **kwargs,
            )
        except openai.OpenAIError as exc:
            logger.warning("LLM request failed: %s", exc)
            raise LLMGatewayError(str(exc)) from exc

        if not completion.choices:
            raise LLMGatewayError("LLM returned no choices")
        content = completion.choices[0].message.content
        if not content:
            raise LLMGatewayError("LLM returned an empty reply")
        return content


@lru_cache
def _default_gateway() -> LLMGateway:
    return LLMGateway(settings.openai_api_key)


def get_llm_gateway() -> LLMGateway:
    """FastAPI dependency; tests override it with a fake."""
    return _default_gateway()
