"""
Tests for LLM weather narration and its fallbacks.
"""

import pytest

from dimweather.ai import llm_provider
from dimweather.ai.llm_provider import (
    LLMConfig,
    LLMManager,
    LLMProvider,
    LLMResponse,
    MockLLMClient,
)
from dimweather.data_models import Ruleset, TimeOfDay, WeatherContext, WeatherState
from dimweather.narrative.weather_narrator import WeatherNarrator


class RaisingMockLLMClient(MockLLMClient):
    """Mock client that fails on every call."""

    def complete(self, messages, system_prompt=None, max_tokens=None) -> LLMResponse:
        raise RuntimeError("LLM service unavailable")


@pytest.fixture
def mock_manager():
    return LLMManager(LLMConfig(provider=LLMProvider.MOCK, model="mock-model", max_tokens=200))


@pytest.fixture
def narrator(mock_manager, catalog):
    return WeatherNarrator(mock_manager, catalog, min_interval=0)


@pytest.fixture
def desert_state():
    return WeatherState(temperature=10, wind=8, precipitation=-10, humidity=-9)


@pytest.fixture
def desert_context():
    return WeatherContext(climate_id="sandyWastes", season_id="highSun", time_of_day=TimeOfDay.AFTERNOON)


class TestFallback:
    def test_no_manager_uses_composer(self, catalog, desert_state, desert_context, composer):
        narrator = WeatherNarrator(None, catalog)

        text = narrator.narrate(desert_state, Ruleset.EXTREME_HEAT, desert_context)

        assert text == composer.describe(desert_state, Ruleset.EXTREME_HEAT, desert_context)

    def test_unavailable_provider_uses_composer(self, catalog, calm_state, composer):
        manager = LLMManager(LLMConfig(provider=LLMProvider.MOCK))
        manager._client = None
        narrator = WeatherNarrator(manager, catalog)

        assert narrator.narrate(calm_state, "standard") == composer.describe(calm_state, "standard")

    def test_exception_uses_composer(self, catalog, calm_state, composer):
        config = LLMConfig(provider=LLMProvider.MOCK)
        manager = LLMManager(config)
        manager._client = RaisingMockLLMClient(config)
        narrator = WeatherNarrator(manager, catalog, min_interval=0)

        assert narrator.narrate(calm_state, Ruleset.STANDARD) == composer.describe(calm_state, Ruleset.STANDARD)

    def test_rules_text_discarded(self, narrator, mock_manager, desert_state, desert_context, composer):
        mock_manager.client.set_responses(["The heat is deadly. Make a DC 15 Constitution saving throw."])

        text = narrator.narrate(desert_state, Ruleset.EXTREME_HEAT, desert_context)

        assert text == composer.describe(desert_state, Ruleset.EXTREME_HEAT, desert_context)


class TestNarration:
    def test_llm_text_returned(self, narrator, mock_manager, desert_state, desert_context):
        mock_manager.client.set_responses(["  Sand hisses across the dunes under a white sky.  "])

        text = narrator.narrate(desert_state, Ruleset.EXTREME_HEAT, desert_context)

        assert text == "Sand hisses across the dunes under a white sky."

    def test_prompt_carries_conditions(self, narrator, mock_manager, desert_state, desert_context):
        narrator.narrate(desert_state, Ruleset.EXTREME_HEAT, desert_context)

        call = mock_manager.client.calls[0]
        prompt = call["messages"][0].content
        assert "- Terrain: Sandy Wastes" in prompt
        assert "- Temperature: Deadly heat (135°F+)" in prompt
        assert "- Time of Day: Afternoon" in prompt
        assert "Dark Sun" in call["system_prompt"]

    def test_empty_reply_retried_with_more_tokens(self, narrator, mock_manager, calm_state):
        mock_manager.client.set_responses(["", "A soft grey sky."])

        text = narrator.narrate(calm_state, Ruleset.STANDARD)

        assert text == "A soft grey sky."
        assert [c["max_tokens"] for c in mock_manager.client.calls] == [200, 400]

    def test_long_reply_truncated(self, mock_manager, catalog, calm_state):
        mock_manager.config.max_response_length = 20
        mock_manager.client.set_responses(["x" * 50])
        narrator = WeatherNarrator(mock_manager, catalog, min_interval=0)

        assert narrator.narrate(calm_state, Ruleset.STANDARD) == "x" * 20 + "..."


class TestRateLimit:
    def test_waits_between_calls(self, mock_manager, catalog, calm_state):
        ticks = iter([100.0, 101.0, 102.0])
        sleeps = []
        narrator = WeatherNarrator(
            mock_manager, catalog, min_interval=5.0, clock=lambda: next(ticks), sleep=sleeps.append
        )

        narrator.narrate(calm_state, Ruleset.STANDARD)
        narrator.narrate(calm_state, Ruleset.STANDARD)

        assert sleeps == [4.0]

    def test_first_call_does_not_wait(self, mock_manager, catalog, calm_state):
        sleeps = []
        narrator = WeatherNarrator(mock_manager, catalog, clock=lambda: 0.0, sleep=sleeps.append)

        narrator.narrate(calm_state, Ruleset.STANDARD)

        assert sleeps == []


class TestLLMManager:
    def test_flags_rules_language(self, mock_manager):
        response = LLMResponse(content="Take 2d6 fire damage and gain disadvantage.", model="m",
                               provider=LLMProvider.MOCK)

        checked = mock_manager._validate_response(response)

        assert not checked.ok
        assert any("2d6" in v for v in checked.authority_violations)

    def test_clean_text_ok(self, mock_manager):
        response = LLMResponse(content="Wind rattles the shutters.", model="m", provider=LLMProvider.MOCK)
        assert mock_manager._validate_response(response).ok

    def test_missing_sdk_is_unavailable(self, monkeypatch):
        """Without an API key the real clients report unavailable instead of failing."""
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        assert not LLMManager(LLMConfig(provider=LLMProvider.OPENAI)).is_available()
        assert not LLMManager(LLMConfig(provider=LLMProvider.ANTHROPIC)).is_available()


class TestClientRetries:
    def test_failures_retried_then_reported(self, monkeypatch):
        config = LLMConfig(provider=LLMProvider.MOCK, max_retries=3, retry_delay=0.5)
        client = MockLLMClient(config)
        sleeps = []
        monkeypatch.setattr(llm_provider.time, "sleep", sleeps.append)
        attempts = []

        def request():
            attempts.append(1)
            raise ConnectionError("timeout")

        response = client._with_retries(request)

        assert len(attempts) == 3
        assert sleeps == [0.5, 1.0]
        assert response.authority_violations == ["request_failed"]
        assert not response.ok

    def test_recovers_after_one_failure(self, monkeypatch):
        client = MockLLMClient(LLMConfig(provider=LLMProvider.MOCK))
        monkeypatch.setattr(llm_provider.time, "sleep", lambda seconds: None)
        replies = iter([ConnectionError("reset"), "Fog rolls in."])

        def request():
            reply = next(replies)
            if isinstance(reply, Exception):
                raise reply
            return reply

        assert client._with_retries(request).content == "Fog rolls in."
