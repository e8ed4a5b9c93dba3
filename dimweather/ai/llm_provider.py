"""
LLM access for weather narration.

The LLM only rewrites weather that the engine has already decided. It
cannot change dimension values, and any rules it invents (save DCs,
damage dice) are flagged so the caller can discard the text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional
import logging
import os
import re
import time

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    MOCK = "mock"  # For testing


class LLMRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class LLMMessage:
    role: LLMRole
    content: str


@dataclass
class LLMResponse:
    """Text returned by a provider, with anything that disqualifies it."""

    content: str
    model: str
    provider: LLMProvider
    authority_violations: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.authority_violations and bool(self.content.strip())


@dataclass
class LLMConfig:
    """Configuration for LLM provider."""

    provider: LLMProvider = LLMProvider.OPENAI
    model: str = "gpt-4o-mini"
    max_tokens: int = 200
    temperature: float = 0.7
    api_key: Optional[str] = None

    max_retries: int = 3
    retry_delay: float = 1.0

    max_response_length: int = 1200


class BaseLLMClient(ABC):
    """A provider client. Subclasses send one request; retries live here."""

    provider: LLMProvider

    def __init__(self, config: LLMConfig):
        self.config = config

    @abstractmethod
    def complete(
        self,
        messages: list[LLMMessage],
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass

    def _response(self, content: str, violations: Optional[list[str]] = None) -> LLMResponse:
        return LLMResponse(
            content=content,
            model=self.config.model,
            provider=self.provider,
            authority_violations=violations or [],
        )

    def _with_retries(self, request: Callable[[], str]) -> LLMResponse:
        """Call a provider request until it returns text or retries run out."""
        for attempt in range(1, self.config.max_retries + 1):
            try:
                return self._response(request())
            except Exception as e:
                logger.warning(f"{self.provider.value} request {attempt}/{self.config.max_retries} failed: {e}")
                if attempt < self.config.max_retries:
                    time.sleep(self.config.retry_delay * attempt)
        return self._response("", ["request_failed"])


def _api_key(config: LLMConfig, env_var: str) -> Optional[str]:
    key = config.api_key or os.getenv(env_var)
    if not key:
        logger.warning(f"{env_var} not set; weather narration will use plain descriptions")
    return key


class AnthropicClient(BaseLLMClient):
    provider = LLMProvider.ANTHROPIC

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None
        try:
            import anthropic
        except ImportError:
            logger.warning("anthropic is not installed: pip install dimensional-weather[llm-anthropic]")
            return
        api_key = _api_key(config, "ANTHROPIC_API_KEY")
        if api_key:
            self._client = anthropic.Anthropic(api_key=api_key)

    def is_available(self) -> bool:
        return self._client is not None

    def complete(self, messages, system_prompt=None, max_tokens=None) -> LLMResponse:
        if not self._client:
            return self._response("", ["client_unavailable"])

        def request() -> str:
            reply = self._client.messages.create(
                model=self.config.model,
                max_tokens=max_tokens or self.config.max_tokens,
                system=system_prompt or "",
                messages=[{"role": m.role.value, "content": m.content} for m in messages],
            )
            return reply.content[0].text if reply.content else ""

        return self._with_retries(request)


class OpenAIClient(BaseLLMClient):
    provider = LLMProvider.OPENAI

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._client = None
        try:
            import openai
        except ImportError:
            logger.warning("openai is not installed: pip install dimensional-weather[llm-openai]")
            return
        api_key = _api_key(config, "OPENAI_API_KEY")
        if api_key:
            self._client = openai.OpenAI(api_key=api_key)

    def is_available(self) -> bool:
        return self._client is not None

    def complete(self, messages, system_prompt=None, max_tokens=None) -> LLMResponse:
        if not self._client:
            return self._response("", ["client_unavailable"])

        chat = [{"role": "system", "content": system_prompt}] if system_prompt else []
        chat.extend({"role": m.role.value, "content": m.content} for m in messages)

        def request() -> str:
            reply = self._client.chat.completions.create(
                model=self.config.model,
                messages=chat,
                max_tokens=max_tokens or self.config.max_tokens,
                temperature=self.config.temperature,
            )
            return reply.choices[0].message.content or ""

        return self._with_retries(request)


class MockLLMClient(BaseLLMClient):
    """Canned replies for tests; every call is recorded in `calls`."""

    provider = LLMProvider.MOCK

    def __init__(self, config: LLMConfig):
        super().__init__(config)
        self._replies: list[str] = []
        self._next = 0
        self.calls: list[dict[str, Any]] = []

    def set_responses(self, responses: list[str]) -> None:
        """Replies are returned in order, then cycled."""
        self._replies = list(responses)
        self._next = 0

    def is_available(self) -> bool:
        return True

    def complete(self, messages, system_prompt=None, max_tokens=None) -> LLMResponse:
        self.calls.append({"messages": messages, "system_prompt": system_prompt, "max_tokens": max_tokens})
        if not self._replies:
            return self._response("[Mock LLM response]")
        reply = self._replies[self._next % len(self._replies)]
        self._next += 1
        return self._response(reply)


_CLIENTS: dict[LLMProvider, type[BaseLLMClient]] = {
    LLMProvider.ANTHROPIC: AnthropicClient,
    LLMProvider.OPENAI: OpenAIClient,
    LLMProvider.MOCK: MockLLMClient,
}


class LLMManager:
    """
    Picks the client for the configured provider and checks its replies
    for rules text before anyone reads them.
    """

    # Narration may describe how the weather feels, not what it does to the rules
    _RULES_PATTERNS = re.compile(
        r"""
        \bDC\s*\d+                  # "DC 15"
        | \d+d\d+                   # "1d6"
        | \bsaving\s+throw\b
        | \bdisadvantage\b
        | \badvantage\s+on\b
        | \b\d+\s+(?:points\s+of\s+)?damage\b
        | \blevels?\s+of\s+exhaustion\b
        """,
        re.VERBOSE | re.IGNORECASE,
    )

    def __init__(self, config: Optional[LLMConfig] = None):
        self.config = config or LLMConfig()
        self._client: Optional[BaseLLMClient] = _CLIENTS[LLMProvider(self.config.provider)](self.config)

    @property
    def client(self) -> Optional[BaseLLMClient]:
        return self._client

    def is_available(self) -> bool:
        return self._client is not None and self._client.is_available()

    def complete(
        self,
        messages: list[LLMMessage],
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        if not self.is_available():
            return LLMResponse("", "none", self.config.provider, ["no_provider_available"])
        return self._validate_response(self._client.complete(messages, system_prompt, max_tokens))

    def _validate_response(self, response: LLMResponse) -> LLMResponse:
        """Flag rules text and trim overlong replies."""
        violations = [
            f"rules_violation:{match.group(0).strip()}"
            for match in self._RULES_PATTERNS.finditer(response.content)
        ]
        if violations:
            response.authority_violations.extend(violations)
            logger.warning(f"LLM weather text states rules: {violations}")

        limit = self.config.max_response_length
        if len(response.content) > limit:
            response.content = response.content[:limit] + "..."
        return response
