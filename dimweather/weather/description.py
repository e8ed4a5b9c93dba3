"""
Weather description composer.

Builds narrative text from a WeatherState: a base sentence from the
temperature, wind and precipitation phrases, an optional humidity
sentence, and a trailing sentence joining every special condition that
applies. Deterministic; the same state always reads the same way.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from dimweather.data_models import (
    Dimension,
    Ruleset,
    WeatherContext,
    WeatherState,
)
from dimweather.weather.catalog import WeatherCatalog, get_default_catalog
from dimweather.weather.effects import EffectsCalculator
from dimweather.weather.hex_map import WeatherTypeDef
from dimweather.weather.time_of_day import TimeOfDayModulator

NOTABLE_HUMIDITY = 5
RAIN_SNOW_TOKEN = "rain/snow"


@dataclass(frozen=True)
class SpecialCondition:
    """A clause added when its predicate matches."""

    name: str
    applies: Callable[[WeatherState, WeatherContext], bool]
    clause: Callable[[WeatherState, WeatherContext], str]


def _terrain(*terrains: str) -> Callable[[WeatherContext], bool]:
    return lambda ctx: ctx.climate_id in terrains


_on_silt = _terrain("seaOfSilt")
_on_glass = _terrain("glassPlateau")
_on_ash = _terrain("ashStorm", "obsidianPlains")
_on_dunes = _terrain("sandyWastes", "windyDunes")


# Evaluation order matters; clauses appear in the order listed
EXTREME_HEAT_CONDITIONS = (
    SpecialCondition(
        "silt_cloud",
        lambda s, c: _on_silt(c) and s.wind > 6,
        lambda s, c: "with choking clouds of silt reducing visibility",
    ),
    SpecialCondition(
        "glass_storm",
        lambda s, c: _on_glass(c) and s.wind > 5,
        lambda s, c: "with deadly shards of glass carried by the wind",
    ),
    SpecialCondition(
        "ash_fall",
        lambda s, c: _on_ash(c) and s.wind > 5,
        lambda s, c: "with hot ash reducing visibility and burning exposed skin",
    ),
    SpecialCondition(
        "dust_devils",
        lambda s, c: _on_dunes(c) and s.wind > 7 and s.temperature > 7,
        lambda s, c: "with swirling dust devils dancing across the landscape",
    ),
    SpecialCondition(
        "heat_mirage",
        lambda s, c: s.temperature > 8 and s.humidity < -6,
        lambda s, c: "with shimmering heat mirages in the distance",
    ),
    SpecialCondition(
        "rare_storm",
        lambda s, c: s.precipitation > 4 and c.season_id == "sunAscending",
        lambda s, c: "with crackling lightning illuminating the sky in brilliant purple and blue",
    ),
)

STANDARD_CONDITIONS = (
    SpecialCondition(
        "thunderstorm",
        lambda s, c: s.precipitation > 6 and s.wind > 4 and s.humidity > 3,
        lambda s, c: "with thunder and lightning",
    ),
    SpecialCondition(
        "fog",
        lambda s, c: s.humidity > 5 and s.wind < -3,
        lambda s, c: "with freezing fog" if s.temperature < 0 else "with patches of fog",
    ),
)

DUST_CONDITION = {
    Ruleset.EXTREME_HEAT: SpecialCondition(
        "sandstorm",
        lambda s, c: s.humidity < -5 and s.wind > 7,
        lambda s, c: "with a severe sandstorm reducing visibility to near zero",
    ),
    Ruleset.STANDARD: SpecialCondition(
        "blowing_dust",
        lambda s, c: s.humidity < -5 and s.wind > 7,
        lambda s, c: "with blowing dust/sand reducing visibility",
    ),
}


def precipitation_type(temperature: int, ruleset: Ruleset) -> str:
    """The concrete form precipitation takes at this temperature."""
    if ruleset == Ruleset.EXTREME_HEAT:
        return "rain"
    if temperature < -3:
        return "snow"
    if temperature < 0:
        return "sleet"
    return "rain"


def temperature_band(temperature: int, ruleset: "Ruleset | str") -> str:
    """Short label for how hot it is under the ruleset."""
    if Ruleset.parse(ruleset) == Ruleset.EXTREME_HEAT:
        if temperature <= 0:
            return "cold for Athas"
        if temperature <= 4:
            return "mild for Athas"
        if temperature <= 7:
            return "typical Athasian heat"
        if temperature <= 9:
            return "searing"
        return "deadly"
    if temperature <= -5:
        return "below freezing"
    if temperature <= 0:
        return "near freezing"
    if temperature <= 5:
        return "moderate"
    return "hot"


def _join_clauses(clauses: list[str]) -> str:
    return " and ".join(clauses)


class DescriptionComposer:
    """Composes weather narrative from the catalog's phrase tables."""

    def __init__(self, catalog: Optional[WeatherCatalog] = None):
        self.catalog = catalog or get_default_catalog()
        self.effects_calculator = EffectsCalculator()

    def phrase(self, dimension: Dimension, state: WeatherState, ruleset: Ruleset) -> str:
        return self.catalog.descriptions.describe(dimension, state.value(dimension), ruleset)

    def precipitation_phrase(self, state: WeatherState, ruleset: Ruleset) -> str:
        text = self.phrase(Dimension.PRECIPITATION, state, ruleset)
        if state.precipitation > 3:
            text = text.replace(RAIN_SNOW_TOKEN, precipitation_type(state.temperature, ruleset))
        return text

    def special_conditions(self, state: WeatherState, ruleset: Ruleset, context: WeatherContext) -> list[str]:
        """Clauses for every special condition that applies, in evaluation order."""
        conditions = EXTREME_HEAT_CONDITIONS if ruleset == Ruleset.EXTREME_HEAT else STANDARD_CONDITIONS
        conditions = conditions + (DUST_CONDITION[ruleset],)
        return [cond.clause(state, context) for cond in conditions if cond.applies(state, context)]

    def describe(
        self,
        state: WeatherState,
        ruleset: "Ruleset | str",
        context: Optional[WeatherContext] = None,
    ) -> str:
        """
        Compose the narrative description of state.

        Args:
            state: Weather to describe
            ruleset: Selects the temperature table and special conditions
            context: Climate and season ids for terrain-specific clauses

        Returns:
            One to three sentences of weather text
        """
        ruleset = Ruleset.parse(ruleset)
        context = context or WeatherContext()

        temperature = self.phrase(Dimension.TEMPERATURE, state, ruleset).lower()
        wind = self.phrase(Dimension.WIND, state, ruleset).lower()
        precipitation = self.precipitation_phrase(state, ruleset).lower()
        text = f"The weather is {temperature}, {wind}, and {precipitation}."

        if abs(state.humidity) > NOTABLE_HUMIDITY:
            humidity = self.phrase(Dimension.HUMIDITY, state, ruleset).lower()
            text += f" The air is {humidity}."

        clauses = self.special_conditions(state, ruleset, context)
        if clauses:
            text += f" Conditions are {_join_clauses(clauses)}."

        return text

    def weather_report(
        self,
        state: WeatherState,
        ruleset: "Ruleset | str",
        context: Optional[WeatherContext] = None,
        description: Optional[str] = None,
    ) -> str:
        """
        Full plain-text report: narrative, dimension readout, context and
        effects. A pre-written description (e.g. from an LLM) replaces the
        composed narrative when given.
        """
        ruleset = Ruleset.parse(ruleset)
        context = context or WeatherContext()
        lines = ["=== Weather Report ==="]

        if context.climate_id:
            climate = self.catalog.climates.get(context.climate_id)
            lines.append(f"Terrain: {climate.name if climate else context.climate_id}")
        if context.season_id:
            season = self.catalog.seasons.get(context.season_id)
            lines.append(f"Season: {season.name if season else context.season_id}")
        if context.time_of_day is not None:
            lines.append(f"Time: {TimeOfDayModulator.label(context.time_of_day)}")

        lines.append("")
        lines.append(description or self.describe(state, ruleset, context))
        if ruleset == Ruleset.EXTREME_HEAT and context.time_of_day is not None:
            lines.append(TimeOfDayModulator.narrative(context.time_of_day))

        lines.append("")
        lines.append(
            f"Temperature: {state.temperature} ({temperature_band(state.temperature, ruleset)})"
        )
        lines.append(f"Wind: {state.wind} ({self.phrase(Dimension.WIND, state, ruleset)})")
        lines.append(
            f"Precipitation: {state.precipitation} ({self.precipitation_phrase(state, ruleset)})"
        )
        lines.append(f"Humidity: {state.humidity} ({self.phrase(Dimension.HUMIDITY, state, ruleset)})")
        lines.append(f"Variability: {state.variability}")

        survival = self.effects_calculator.survival_notes(state, ruleset, context)
        if survival:
            lines.append("")
            lines.append("Survival Rules:")
            lines.extend(f"- {rule}" for rule in survival)

        return "\n".join(lines)

    def hex_report(self, weather_type: WeatherTypeDef, state: WeatherState) -> str:
        """Report for the hex model's current cell."""
        position = state.hex_position
        lines = [
            f"=== {weather_type.name} ===",
            weather_type.description,
            f"Effect: {weather_type.effect}",
        ]
        if position is not None:
            lines.append(f"Position: {position}")
        return "\n".join(lines)
