"""LLM access for the study coach."""

from examprep.llm.client import (
    CoachReply,
    LLMClient,
    LLMConnectionError,
    LLMError,
    LLMResponseError,
)

__all__ = [
    "CoachReply",
    "LLMClient",
    "LLMConnectionError",
    "LLMError",
    "LLMResponseError",
]
