"""
Optional LLM access for weather narration.
"""

from dimweather.ai.llm_provider import (
    LLMConfig,
    LLMManager,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    LLMRole,
    MockLLMClient,
)

__all__ = [
    "LLMConfig",
    "LLMManager",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "LLMRole",
    "MockLLMClient",
]
