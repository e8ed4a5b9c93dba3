"""
LLM weather narration.

Turns the composed weather phrases into a short atmospheric passage via
an LLM. The deterministic composer text is the fallback whenever the
LLM cannot supply clean text.
"""

from dataclasses import dataclass
from typing import Callable, Optional
import logging
import time

from dimweather.ai.llm_provider import LLMManager, LLMMessage, LLMRole
from dimweather.data_models import Dimension, Ruleset, WeatherContext, WeatherState
from dimweather.weather.catalog import WeatherCatalog, get_default_catalog
from dimweather.weather.description import DescriptionComposer
from dimweather.weather.time_of_day import TimeOfDayModulator

logger = logging.getLogger(__name__)


MIN_SECONDS_BETWEEN_CALLS = 5.0
RETRY_TOKEN_MULTIPLIER = 2

SYSTEM_PROMPTS = {
    Ruleset.EXTREME_HEAT: (
        "You are a weather system for the Dark Sun D&D setting. Generate very concise, "
        "atmospheric descriptions (2-3 sentences max) focusing on the most critical "
        "environmental effects and immediate survival concerns. Give your responses in "
        "the style of the Wanderer from the Wanderer's Chronicle."
    ),
    Ruleset.STANDARD: (
        "You are a weather system for a fantasy tabletop campaign. Generate very concise, "
        "atmospheric descriptions (2-3 sentences max) focusing on what travellers see, "
        "hear and feel. Do not state game rules."
    ),
}


@dataclass
class NarrationConditions:
    """Plain-language inputs for the prompt."""

    terrain: str
    temperature: str
    wind: str
    precipitation: str
    humidity: str
    time_of_day: str
    campaign: str = "D&D"


class WeatherNarrator:
    """
    Generates weather narration with an optional LLM.

    Usage:
        narrator = WeatherNarrator(llm_manager)
        text = narrator.narrate(state, ruleset, context)
    """

    def __init__(
        self,
        llm_manager: Optional[LLMManager] = None,
        catalog: Optional[WeatherCatalog] = None,
        min_interval: float = MIN_SECONDS_BETWEEN_CALLS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            llm_manager: LLM access. If None, narration is the composer text.
            catalog: Phrase tables for the prompt
            min_interval: Seconds to leave between LLM calls
            clock, sleep: Injectable for tests
        """
        self._llm_manager = llm_manager
        self.catalog = catalog or get_default_catalog()
        self.composer = DescriptionComposer(self.catalog)
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    def conditions_for(
        self,
        state: WeatherState,
        ruleset: Ruleset,
        context: WeatherContext,
    ) -> NarrationConditions:
        climate = self.catalog.climates.get(context.climate_id) if context.climate_id else None
        tables = self.catalog.descriptions
        return NarrationConditions(
            terrain=climate.name if climate else "Unknown terrain",
            temperature=tables.describe(Dimension.TEMPERATURE, state.temperature, ruleset),
            wind=tables.describe(Dimension.WIND, state.wind, ruleset),
            precipitation=self.composer.precipitation_phrase(state, ruleset),
            humidity=tables.describe(Dimension.HUMIDITY, state.humidity, ruleset),
            time_of_day=(
                TimeOfDayModulator.label(context.time_of_day) if context.time_of_day else "Unknown time"
            ),
            campaign="Dark Sun D&D" if ruleset == Ruleset.EXTREME_HEAT else "D&D",
        )

    def build_prompt(self, conditions: NarrationConditions) -> str:
        return (
            f"You are a weather system for the {conditions.campaign} setting. Generate very concise, "
            "atmospheric descriptions (2-3 sentences max) focusing on the most critical environmental "
            "effects and immediate survival concerns. Be direct and avoid flowery language.\n"
            "Current conditions:\n"
            f"- Terrain: {conditions.terrain}\n"
            f"- Temperature: {conditions.temperature}\n"
            f"- Wind: {conditions.wind}\n"
            f"- Precipitation: {conditions.precipitation}\n"
            f"- Humidity: {conditions.humidity}\n"
            f"- Time of Day: {conditions.time_of_day}\n\n"
            "Generate a brief, atmospheric description of these conditions. Focus on the most "
            "important environmental effects and survival considerations. Keep it concise and "
            "avoid repetition."
        )

    def _wait_for_rate_limit(self) -> None:
        if self._last_call is None:
            return
        elapsed = self._clock() - self._last_call
        if elapsed < self.min_interval:
            self._sleep(self.min_interval - elapsed)

    def narrate(
        self,
        state: WeatherState,
        ruleset: "Ruleset | str",
        context: Optional[WeatherContext] = None,
    ) -> str:
        """
        Narrate the weather.

        Returns the LLM text when it is available, non-empty and free of
        rules statements; otherwise the composer's description.
        """
        ruleset = Ruleset.parse(ruleset)
        context = context or WeatherContext()
        fallback = self.composer.describe(state, ruleset, context)

        if not self._llm_manager or not self._llm_manager.is_available():
            return fallback

        prompt = self.build_prompt(self.conditions_for(state, ruleset, context))
        messages = [LLMMessage(role=LLMRole.USER, content=prompt)]
        system_prompt = SYSTEM_PROMPTS[ruleset]
        max_tokens = self._llm_manager.config.max_tokens

        self._wait_for_rate_limit()
        try:
            response = self._llm_manager.complete(messages, system_prompt, max_tokens)
            if not response.content.strip() and not response.authority_violations:
                # Empty replies usually mean the token budget ran out
                logger.info("Empty weather narration, retrying with a larger token budget")
                response = self._llm_manager.complete(
                    messages, system_prompt, max_tokens * RETRY_TOKEN_MULTIPLIER
                )
        except Exception as e:
            logger.error(f"LLM weather narration failed: {e}")
            return fallback
        finally:
            self._last_call = self._clock()

        if not response.ok:
            if response.authority_violations:
                logger.warning(f"Discarding weather narration: {response.authority_violations}")
            return fallback
        return response.content.strip()
