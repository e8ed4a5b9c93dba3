"""
Core data models for the Dimensional Weather engine.

Holds the enums, records and error types shared by the drift engine, the
hex automaton, the effect and description derivations, and the session
glue around them.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, NamedTuple, Optional, Sequence
import logging
import math
import random

logger = logging.getLogger(__name__)


DIMENSION_MIN = -10
DIMENSION_MAX = 10
VARIABILITY_MIN = 0
VARIABILITY_MAX = 10


# =============================================================================
# ERRORS
# =============================================================================


class WeatherError(Exception):
    """Base class for weather engine errors."""


class ConfigurationError(WeatherError):
    """Raised when a climate, season or weather type id cannot be resolved."""


class InvalidInputError(WeatherError):
    """Raised when a command argument is out of range or unrecognised."""


# =============================================================================
# ENUMS
# =============================================================================


class Dimension(str, Enum):
    """The scalar weather axes."""

    TEMPERATURE = "temperature"
    WIND = "wind"
    PRECIPITATION = "precipitation"
    HUMIDITY = "humidity"
    VARIABILITY = "variability"

    @classmethod
    def parse(cls, value: "str | Dimension") -> "Dimension":
        """Resolve a dimension name, raising InvalidInputError if unknown."""
        if isinstance(value, Dimension):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(d.value for d in cls)
            raise InvalidInputError(
                f"Unknown dimension '{value}'. Valid dimensions: {valid}"
            ) from None


# The four axes that drift; variability only feeds the noise amplitude.
DRIFTING_DIMENSIONS = (
    Dimension.TEMPERATURE,
    Dimension.WIND,
    Dimension.PRECIPITATION,
    Dimension.HUMIDITY,
)


class Ruleset(str, Enum):
    """Selects which threshold and description tables apply."""

    STANDARD = "standard"
    EXTREME_HEAT = "extremeHeat"

    @classmethod
    def parse(cls, value: "str | Ruleset") -> "Ruleset":
        if isinstance(value, Ruleset):
            return value
        normalized = str(value).strip().replace("_", "").replace("-", "").lower()
        for ruleset in cls:
            if ruleset.value.lower() == normalized:
                return ruleset
        raise InvalidInputError(f"Unknown ruleset '{value}'")


class TimeOfDay(str, Enum):
    """The seven time slots used to offset baseline temperature."""

    EARLY_MORNING = "early_morning"
    MID_MORNING = "mid_morning"
    NOON = "noon"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    NIGHT = "night"
    LATE_NIGHT = "late_night"

    @classmethod
    def parse(cls, value: "str | TimeOfDay") -> "TimeOfDay":
        """
        Resolve a slot name.

        Accepts snake_case ("early_morning"), camelCase ("earlyMorning"),
        and hyphen or space separated forms ("late-night", "mid morning").
        """
        if isinstance(value, TimeOfDay):
            return value
        normalized = str(value).strip().replace("-", "").replace("_", "").replace(" ", "").lower()
        for slot in cls:
            if slot.value.replace("_", "") == normalized:
                return slot
        valid = ", ".join(s.value for s in cls)
        raise InvalidInputError(f"Unknown time of day '{value}'. Valid slots: {valid}")

    @classmethod
    def from_hour(cls, hour: int) -> "TimeOfDay":
        """Map a 0-23 clock hour to its slot."""
        hour = int(hour) % 24
        if 5 <= hour < 8:
            return cls.EARLY_MORNING
        if 8 <= hour < 11:
            return cls.MID_MORNING
        if 11 <= hour < 13:
            return cls.NOON
        if 13 <= hour < 17:
            return cls.AFTERNOON
        if 17 <= hour < 20:
            return cls.EVENING
        if 20 <= hour < 24:
            return cls.NIGHT
        return cls.LATE_NIGHT


class Visibility(str, Enum):
    """Visibility levels, ordered from clearest to worst."""

    NORMAL = "normal"
    LIGHTLY_OBSCURED = "lightly_obscured"
    HEAVILY_OBSCURED = "heavily_obscured"

    @property
    def severity(self) -> int:
        return _VISIBILITY_SEVERITY[self]

    def worst(self, other: "Visibility") -> "Visibility":
        """Return whichever of the two levels is more severe."""
        return other if other.severity > self.severity else self


_VISIBILITY_SEVERITY = {
    Visibility.NORMAL: 0,
    Visibility.LIGHTLY_OBSCURED: 1,
    Visibility.HEAVILY_OBSCURED: 2,
}


class Movement(str, Enum):
    """Movement cost imposed by the weather."""

    NORMAL = "normal"
    DIFFICULT = "difficult"


class WeatherModel(str, Enum):
    """Which generation model advances the state."""

    DIMENSIONAL = "dimensional"
    HEX = "hex"

    @classmethod
    def parse(cls, value: "str | WeatherModel") -> "WeatherModel":
        if isinstance(value, WeatherModel):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidInputError(f"Unknown weather model '{value}'") from None


# =============================================================================
# VALUE HELPERS
# =============================================================================


def clamp(value: float, low: float = DIMENSION_MIN, high: float = DIMENSION_MAX) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding upward."""
    return int(math.floor(value + 0.5))


class HexCoord(NamedTuple):
    """Axial hex coordinate."""

    q: int
    r: int

    def offset(self, dq: int, dr: int) -> "HexCoord":
        return HexCoord(self.q + dq, self.r + dr)

    def to_key(self) -> str:
        """Render as the "q,r" form used in JSON catalogs and saves."""
        return f"{self.q},{self.r}"

    @classmethod
    def from_key(cls, key: str) -> "HexCoord":
        try:
            q, r = key.split(",")
            return cls(int(q), int(r))
        except ValueError:
            raise ConfigurationError(f"Invalid hex coordinate key '{key}'") from None

    def __str__(self) -> str:
        return f"({self.q}, {self.r})"


# =============================================================================
# PRESETS
# =============================================================================


@dataclass(frozen=True)
class DimensionProfile:
    """
    A named record of the five dimension values.

    Used for both climate and season presets. The drift engine reads the
    values as pull targets; the hex automaton never consults them.
    """

    preset_id: str
    name: str
    temperature: int = 0
    wind: int = 0
    precipitation: int = 0
    humidity: int = 0
    variability: int = 5
    ruleset: Ruleset = Ruleset.STANDARD
    description: str = ""

    def value(self, dimension: Dimension) -> int:
        return getattr(self, dimension.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "temperature": self.temperature,
            "wind": self.wind,
            "precipitation": self.precipitation,
            "humidity": self.humidity,
            "variability": self.variability,
            "ruleset": self.ruleset.value,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, preset_id: str, data: dict[str, Any]) -> "DimensionProfile":
        try:
            return cls(
                preset_id=preset_id,
                name=data.get("name", preset_id),
                temperature=int(data.get("temperature", 0)),
                wind=int(data.get("wind", 0)),
                precipitation=int(data.get("precipitation", 0)),
                humidity=int(data.get("humidity", 0)),
                variability=int(data.get("variability", 5)),
                ruleset=Ruleset.parse(data.get("ruleset", Ruleset.STANDARD)),
                description=data.get("description", ""),
            )
        except (TypeError, ValueError, InvalidInputError) as e:
            raise ConfigurationError(f"Invalid preset '{preset_id}': {e}") from e


# Aliases for readability at call sites
ClimatePreset = DimensionProfile
SeasonPreset = DimensionProfile


@dataclass(frozen=True)
class WeatherContext:
    """Where and when the weather is happening, for terrain and time rules."""

    climate_id: Optional[str] = None
    season_id: Optional[str] = None
    time_of_day: Optional[TimeOfDay] = None

    def __post_init__(self):
        if self.time_of_day is not None and not isinstance(self.time_of_day, TimeOfDay):
            object.__setattr__(self, "time_of_day", TimeOfDay.parse(self.time_of_day))


# =============================================================================
# WEATHER STATE
# =============================================================================


@dataclass
class WeatherState:
    """
    The evolving atmospheric state.

    The four drifting dimensions live in [-10, 10]; variability lives in
    [0, 10]. Hex-mode fields are None until the hex model is entered.
    """

    temperature: int = 0
    wind: int = 0
    precipitation: int = 0
    humidity: int = 0
    variability: int = 5
    hex_position: Optional[HexCoord] = None
    weather_type_id: Optional[str] = None

    def __post_init__(self):
        if self.hex_position is not None and not isinstance(self.hex_position, HexCoord):
            self.hex_position = HexCoord(*self.hex_position)
        self.clamp()

    def value(self, dimension: Dimension) -> int:
        return getattr(self, dimension.value)

    def clamp(self) -> "WeatherState":
        """Force every dimension back into its integer range."""
        for dimension in DRIFTING_DIMENSIONS:
            setattr(self, dimension.value, int(clamp(getattr(self, dimension.value))))
        self.variability = int(clamp(self.variability, VARIABILITY_MIN, VARIABILITY_MAX))
        return self

    def copy(self, **changes: Any) -> "WeatherState":
        """Return a clamped copy with the given fields replaced."""
        return replace(self, **changes)

    def dimensions(self) -> dict[str, int]:
        return {d.value: self.value(d) for d in Dimension}

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.dimensions(),
            "hex_position": list(self.hex_position) if self.hex_position is not None else None,
            "weather_type_id": self.weather_type_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeatherState":
        position = data.get("hex_position")
        try:
            return cls(
                temperature=int(data.get("temperature", 0)),
                wind=int(data.get("wind", 0)),
                precipitation=int(data.get("precipitation", 0)),
                humidity=int(data.get("humidity", 0)),
                variability=int(data.get("variability", 5)),
                hex_position=HexCoord(int(position[0]), int(position[1])) if position else None,
                weather_type_id=data.get("weather_type_id"),
            )
        except (TypeError, ValueError, IndexError) as e:
            raise ConfigurationError(f"Invalid weather state data: {e}") from e

    @classmethod
    def from_profile(cls, profile: DimensionProfile, **overrides: Any) -> "WeatherState":
        """Start a state at a preset's values; keyword overrides replace them."""
        values: dict[str, Any] = {
            "temperature": profile.temperature,
            "wind": profile.wind,
            "precipitation": profile.precipitation,
            "humidity": profile.humidity,
            "variability": profile.variability,
        }
        values.update(overrides)
        return cls(**values)

    def __str__(self) -> str:
        parts = [
            f"T{self.temperature:+d}",
            f"W{self.wind:+d}",
            f"P{self.precipitation:+d}",
            f"H{self.humidity:+d}",
            f"V{self.variability}",
        ]
        if self.hex_position is not None:
            parts.append(f"@{self.hex_position} {self.weather_type_id}")
        return " ".join(parts)


# =============================================================================
# RANDOMNESS
# =============================================================================


class WeatherRng:
    """
    Injectable random source for the weather engines.

    Wraps a private random.Random so tests can seed it, and reports each
    draw to the run log with the reason it was made.
    """

    def __init__(self, seed: Optional[int] = None, log_draws: bool = True):
        self._random = random.Random(seed)
        self._seed = seed
        self._log_draws = log_draws
        self._draw_count = 0

    @property
    def seed(self) -> Optional[int]:
        return self._seed

    @property
    def draw_count(self) -> int:
        return self._draw_count

    def reseed(self, seed: int) -> None:
        """Reset the generator to a known seed."""
        self._seed = seed
        self._random.seed(seed)
        self._draw_count = 0

    def _record(self, distribution: str, low: float, high: float, value: Any, reason: str) -> None:
        self._draw_count += 1
        if not self._log_draws:
            return
        # Imported here to keep data_models free of an observability import cycle
        from dimweather.observability.run_log import get_run_log

        get_run_log().log_draw(
            distribution=distribution,
            low=low,
            high=high,
            value=value,
            reason=reason,
        )

    def uniform(self, low: float, high: float, reason: str = "") -> float:
        """Return a float in [low, high)."""
        value = low + (high - low) * self._random.random()
        self._record("uniform", low, high, value, reason)
        return value

    def randint(self, low: int, high: int, reason: str = "") -> int:
        """Return an integer in [low, high], inclusive."""
        value = self._random.randint(low, high)
        self._record("randint", low, high, value, reason)
        return value

    def choice(self, seq: Sequence[Any], reason: str = "") -> Any:
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        index = self._random.randrange(len(seq))
        self._record("choice", 0, len(seq) - 1, index, reason)
        return seq[index]
