"""Chat client for the study coach.

Talks to any OpenAI-compatible endpoint: a local LM Studio server by
default, or the OpenAI API. Settings come from the `llm` section of the
application config.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass

import structlog
from openai import APIConnectionError, APITimeoutError, OpenAI, OpenAIError

from examprep.config.app_config import LLMSettings, load_app_config
from examprep.utils.text_utils import strip_think

logger = structlog.get_logger(__name__)

LMSTUDIO_URL = "http://localhost:1234/v1"
OPENAI_URL = "https://api.openai.com/v1"


class LLMError(Exception):
    """The coach could not get advice from the model."""


class LLMConnectionError(LLMError):
    """The model server is unreachable or timed out."""


class LLMResponseError(LLMError):
    """The model answered, but with nothing usable."""


@dataclass
class CoachReply:
    """Cleaned answer of one completion."""

    text: str
    model: str
    total_tokens: int = 0
    latency_ms: int = 0


def resolve_endpoint(settings: LLMSettings) -> tuple[str, str]:
    """Base URL and API key for the configured provider.

    LM Studio ignores the key, so any placeholder works there. For OpenAI
    the key comes from `api_key_env`, then OPENAI_API_KEY.
    """
    if settings.provider == "openai":
        base_url = settings.base_url or OPENAI_URL
        api_key = settings.get_api_key() or os.environ.get("OPENAI_API_KEY") or ""
    else:
        base_url = settings.base_url or LMSTUDIO_URL
        api_key = settings.get_api_key() or "lm-studio"
    return base_url, api_key


class LLMClient:
    def __init__(self, settings: LLMSettings | None = None):
        self.settings = settings or load_app_config().llm
        self.base_url, api_key = resolve_endpoint(self.settings)
        self._client = OpenAI(base_url=self.base_url, api_key=api_key, timeout=self.settings.timeout)
        logger.info(
            "llm.client_ready",
            provider=self.settings.provider,
            model=self.settings.model,
            base_url=self.base_url,
        )

    def complete(self, system_prompt: str, user_message: str) -> CoachReply:
        """Run one system + user turn and return the cleaned answer.

        Raises:
            LLMConnectionError: If the server cannot be reached
            LLMResponseError: If the answer is empty or only reasoning
            LLMError: For any other SDK failure
        """
        started = time.monotonic()
        try:
            response = self._client.chat.completions.create(
                model=self.settings.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
            )
        except (APIConnectionError, APITimeoutError) as e:
            raise LLMConnectionError(
                f"Could not reach {self.settings.provider} at {self.base_url}: {e}"
            ) from e
        except OpenAIError as e:
            raise LLMError(f"LLM call failed: {e}") from e

        if not response.choices:
            raise LLMResponseError("Empty response from LLM")

        text = strip_think(response.choices[0].message.content or "")
        if not text:
            raise LLMResponseError("LLM returned only reasoning, no answer")

        reply = CoachReply(
            text=text,
            model=response.model,
            total_tokens=response.usage.total_tokens if response.usage else 0,
            latency_ms=int((time.monotonic() - started) * 1000),
        )
        logger.debug(
            "llm.completed",
            model=reply.model,
            tokens=reply.total_tokens,
            latency_ms=reply.latency_ms,
        )
        return reply

    def simple_chat(self, system_prompt: str, user_message: str) -> str:
        return self.complete(system_prompt, user_message).text

    def is_available(self) -> bool:
        try:
            self._client.models.list()
        except OpenAIError:
            return False
        return True
