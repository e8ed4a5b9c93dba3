"""
Dimension description tables.

Maps each integer dimension value to a short phrase. Temperature has a
second table used under the extreme-heat ruleset, where "cold" means
anything below a hot night.
"""

from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

from dimweather.data_models import (
    ConfigurationError,
    DIMENSION_MAX,
    DIMENSION_MIN,
    Dimension,
    Ruleset,
)


class DimensionDescriptionTable:
    """
    Read-only value -> phrase table for one dimension.

    Tables loaded from campaign files may be sparse. A value with no
    exact entry resolves toward zero: negative values take the nearest
    level at or above them, non-negative values the nearest level at or
    below.
    """

    def __init__(self, dimension: Dimension, entries: Mapping[int, str]):
        if not entries:
            raise ConfigurationError(f"Description table for {dimension.value} is empty")
        self.dimension = dimension
        self._entries: Mapping[int, str] = MappingProxyType(dict(sorted(entries.items())))
        self._levels: tuple[int, ...] = tuple(self._entries)

    @classmethod
    def from_phrases(cls, dimension: Dimension, phrases: Sequence[str]) -> "DimensionDescriptionTable":
        """Build a dense table from 21 phrases ordered -10 to 10."""
        expected = DIMENSION_MAX - DIMENSION_MIN + 1
        if len(phrases) != expected:
            raise ConfigurationError(
                f"{dimension.value} table needs {expected} phrases, got {len(phrases)}"
            )
        return cls(dimension, dict(zip(range(DIMENSION_MIN, DIMENSION_MAX + 1), phrases)))

    @classmethod
    def from_dict(cls, dimension: Dimension, data: Mapping[str, str]) -> "DimensionDescriptionTable":
        try:
            return cls(dimension, {int(level): str(text) for level, text in data.items()})
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid {dimension.value} description table: {e}") from e

    def level_for(self, value: int) -> Optional[int]:
        if value < 0:
            for level in self._levels:
                if value <= level:
                    return level
            negative = [level for level in self._levels if level < 0]
            return max(negative) if negative else None

        for level in reversed(self._levels):
            if value >= level:
                return level
        return self._levels[0]

    def lookup(self, value: int) -> str:
        level = self.level_for(int(value))
        if level is None:
            return f"Normal {self.dimension.value}"
        return self._entries[level]

    def __getitem__(self, value: int) -> str:
        return self.lookup(value)

    def __len__(self) -> int:
        return len(self._entries)

    def to_dict(self) -> dict[str, str]:
        return {str(level): text for level, text in self._entries.items()}


# =============================================================================
# DEFAULT PHRASES (ordered -10 .. 10)
# =============================================================================

TEMPERATURE_PHRASES = (
    "Frigid, deathly cold",
    "Bitterly cold",
    "Extremely cold",
    "Freezing",
    "Very cold",
    "Quite cold",
    "Cold",
    "Chilly",
    "Cool",
    "Mild",
    "Comfortable",
    "Pleasant",
    "Warm",
    "Quite warm",
    "Very warm",
    "Hot",
    "Very hot",
    "Sweltering",
    "Extremely hot (100°F)",
    "Scorching (115°F)",
    "Unbearably hot (130°F+)",
)

EXTREME_HEAT_TEMPERATURE_PHRASES = (
    "Freezing by Athasian standards",
    "Bitterly cold for Athas",
    "Extremely cold for Athas",
    "Abnormally cold",
    "Very cold night",
    "Cold night",
    "Chilly night",
    "Cool night",
    "Mild night",
    "Pleasant night",
    "Comfortable night",
    "Warm night",
    "Normal night",
    "Cool morning",
    "Mild morning",
    "Warm morning",
    "Hot morning (90°F)",
    "Midday heat (95°F)",
    "Hot afternoon (105°F)",
    "Scorching afternoon (120°F)",
    "Deadly heat (135°F+)",
)

WIND_PHRASES = (
    "Dead still, suffocating",
    "Almost no air movement",
    "Very still",
    "Still",
    "Barely any breeze",
    "Light occasional breeze",
    "Slight breeze",
    "Gentle breeze",
    "Mild breeze",
    "Moderate breeze",
    "Normal wind",
    "Steady breeze",
    "Moderate wind",
    "Blowing wind",
    "Strong breeze",
    "Strong wind",
    "Very strong wind",
    "High wind",
    "Gale force winds",
    "Storm winds",
    "Hurricane force winds",
)

PRECIPITATION_PHRASES = (
    "Clear skies, not a cloud",
    "Crystal clear",
    "Very clear",
    "Clear",
    "Mostly clear",
    "Partly cloudy",
    "Scattered clouds",
    "Cloudy patches",
    "Partly overcast",
    "Mostly cloudy",
    "Overcast",
    "Light mist",
    "Mist or fog",
    "Light drizzle",
    "Steady drizzle",
    "Light rain/snow",
    "Steady rain/snow",
    "Heavy rain/snow",
    "Downpour/blizzard",
    "Torrential rain/severe blizzard",
    "Deluge/whiteout conditions",
)

HUMIDITY_PHRASES = (
    "Bone dry, parched",
    "Extremely dry",
    "Very dry",
    "Quite dry",
    "Dry",
    "Somewhat dry",
    "Slightly dry",
    "A bit dry",
    "Normal dryness",
    "Slightly moist",
    "Comfortable humidity",
    "Slightly humid",
    "A bit humid",
    "Moderately humid",
    "Humid",
    "Quite humid",
    "Very humid",
    "High humidity",
    "Very high humidity",
    "Extremely humid",
    "Oppressively humid",
)


class DescriptionTables:
    """The full set of phrase tables, with the ruleset-specific temperature swap."""

    def __init__(
        self,
        temperature: DimensionDescriptionTable,
        wind: DimensionDescriptionTable,
        precipitation: DimensionDescriptionTable,
        humidity: DimensionDescriptionTable,
        extreme_heat_temperature: Optional[DimensionDescriptionTable] = None,
    ):
        self.temperature = temperature
        self.wind = wind
        self.precipitation = precipitation
        self.humidity = humidity
        self.extreme_heat_temperature = extreme_heat_temperature or temperature

    def table_for(self, dimension: Dimension, ruleset: Ruleset = Ruleset.STANDARD) -> DimensionDescriptionTable:
        if dimension == Dimension.TEMPERATURE:
            return self.extreme_heat_temperature if ruleset == Ruleset.EXTREME_HEAT else self.temperature
        if dimension == Dimension.WIND:
            return self.wind
        if dimension == Dimension.PRECIPITATION:
            return self.precipitation
        if dimension == Dimension.HUMIDITY:
            return self.humidity
        raise ConfigurationError(f"No description table for {dimension.value}")

    def describe(self, dimension: Dimension, value: int, ruleset: Ruleset = Ruleset.STANDARD) -> str:
        return self.table_for(dimension, ruleset).lookup(value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "temperature": self.temperature.to_dict(),
            "extremeHeatTemperature": self.extreme_heat_temperature.to_dict(),
            "wind": self.wind.to_dict(),
            "precipitation": self.precipitation.to_dict(),
            "humidity": self.humidity.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], base: Optional["DescriptionTables"] = None) -> "DescriptionTables":
        """Load tables, falling back to base for any dimension not given."""
        base = base or DEFAULT_DESCRIPTION_TABLES

        def pick(key: str, dimension: Dimension, fallback: DimensionDescriptionTable):
            if key in data:
                return DimensionDescriptionTable.from_dict(dimension, data[key])
            return fallback

        return cls(
            temperature=pick("temperature", Dimension.TEMPERATURE, base.temperature),
            wind=pick("wind", Dimension.WIND, base.wind),
            precipitation=pick("precipitation", Dimension.PRECIPITATION, base.precipitation),
            humidity=pick("humidity", Dimension.HUMIDITY, base.humidity),
            extreme_heat_temperature=pick(
                "extremeHeatTemperature", Dimension.TEMPERATURE, base.extreme_heat_temperature
            ),
        )


DEFAULT_DESCRIPTION_TABLES = DescriptionTables(
    temperature=DimensionDescriptionTable.from_phrases(Dimension.TEMPERATURE, TEMPERATURE_PHRASES),
    wind=DimensionDescriptionTable.from_phrases(Dimension.WIND, WIND_PHRASES),
    precipitation=DimensionDescriptionTable.from_phrases(Dimension.PRECIPITATION, PRECIPITATION_PHRASES),
    humidity=DimensionDescriptionTable.from_phrases(Dimension.HUMIDITY, HUMIDITY_PHRASES),
    extreme_heat_temperature=DimensionDescriptionTable.from_phrases(
        Dimension.TEMPERATURE, EXTREME_HEAT_TEMPERATURE_PHRASES
    ),
)
