"""
Dimensional drift engine.

The continuous weather model. Each advance pulls every dimension a fifth
of the way toward the climate and an eighth of the way toward the
season, adds bounded noise scaled by the combined variability, clamps
and rounds, then lets extreme dryness starve out precipitation.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
import logging
import math

from dimweather.data_models import (
    DRIFTING_DIMENSIONS,
    ConfigurationError,
    Dimension,
    DimensionProfile,
    VARIABILITY_MAX,
    WeatherRng,
    WeatherState,
    clamp,
    round_half_up,
)

logger = logging.getLogger(__name__)


CLIMATE_PULL_DIVISOR = 5
SEASON_PULL_DIVISOR = 8
NOISE_DIVISOR = 5

# Moisture starvation: very dry air suppresses any precipitation
STARVATION_HUMIDITY = -5

HISTORY_LIMIT = 5
FORECAST_VARIABILITY_STEP = 0.2


@dataclass
class DimensionDrift:
    """How one dimension moved during a single advance."""

    previous: int
    climate_pull: float
    season_pull: float
    noise: float
    result: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "previous": self.previous,
            "climate_pull": self.climate_pull,
            "season_pull": self.season_pull,
            "noise": self.noise,
            "result": self.result,
        }


@dataclass
class DriftCalculation:
    """Record of a single advance, kept for inspection."""

    climate_id: str
    season_id: str
    effective_variability: int
    dimensions: dict[str, DimensionDrift] = field(default_factory=dict)
    precipitation_reduction: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def starvation_applied(self) -> bool:
        return self.precipitation_reduction > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "climate_id": self.climate_id,
            "season_id": self.season_id,
            "effective_variability": self.effective_variability,
            "dimensions": {k: v.to_dict() for k, v in self.dimensions.items()},
            "precipitation_reduction": self.precipitation_reduction,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class ForecastDay:
    """One projected day."""

    day: int
    state: WeatherState
    variability: int
    changes: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        return (
            f"Day {self.day}: "
            f"Temperature {self.state.temperature}{self.changes.get('temperature', '')}, "
            f"Wind {self.state.wind}{self.changes.get('wind', '')}, "
            f"Precipitation {self.state.precipitation}{self.changes.get('precipitation', '')}, "
            f"Humidity {self.state.humidity}{self.changes.get('humidity', '')}"
        )


_CHANGE_WORDS = {
    Dimension.TEMPERATURE: ("warmer", "cooler"),
    Dimension.WIND: ("windier", "calmer"),
    Dimension.PRECIPITATION: ("wetter", "drier"),
    Dimension.HUMIDITY: ("more humid", "less humid"),
}


def change_indicator(current: int, previous: Optional[int], dimension: "Dimension | str") -> str:
    """Short suffix describing the direction of change, or "" if none."""
    if previous is None:
        return ""
    dimension = Dimension.parse(dimension)
    if dimension not in _CHANGE_WORDS:
        return ""
    diff = current - previous
    if diff == 0:
        return ""
    up, down = _CHANGE_WORDS[dimension]
    return f" ({up if diff > 0 else down})"


def effective_variability(state: WeatherState, climate: DimensionProfile, season: DimensionProfile) -> int:
    return math.floor((state.variability + climate.variability + season.variability) / 3)


class DimensionalDriftEngine:
    """Advances a WeatherState toward its climate and season targets."""

    def __init__(self, rng: Optional[WeatherRng] = None, history_limit: int = HISTORY_LIMIT):
        self.rng = rng or WeatherRng()
        self.history_limit = history_limit
        self._history: list[DriftCalculation] = []

    @property
    def history(self) -> list[DriftCalculation]:
        """Most recent advances, newest first."""
        return list(self._history)

    @property
    def last_calculation(self) -> Optional[DriftCalculation]:
        return self._history[0] if self._history else None

    def clear_history(self) -> None:
        self._history.clear()

    def advance(
        self,
        state: WeatherState,
        climate: DimensionProfile,
        season: DimensionProfile,
    ) -> WeatherState:
        """
        Run one drift step.

        Args:
            state: Current weather, left untouched
            climate: Climate preset whose values act as pull targets
            season: Season preset whose values act as weaker pull targets

        Returns:
            The advanced state

        Raises:
            ConfigurationError: If climate or season is missing
        """
        new_state, calculation = self._drift(state, climate, season, self.rng)
        self._history.insert(0, calculation)
        del self._history[self.history_limit:]

        logger.debug(
            f"Drift {climate.preset_id}/{season.preset_id} (var {calculation.effective_variability}): "
            f"{state} -> {new_state}"
        )
        return new_state

    def _drift(
        self,
        state: WeatherState,
        climate: DimensionProfile,
        season: DimensionProfile,
        rng: WeatherRng,
    ) -> tuple[WeatherState, DriftCalculation]:
        if not isinstance(climate, DimensionProfile):
            raise ConfigurationError(f"Climate preset required, got {climate!r}")
        if not isinstance(season, DimensionProfile):
            raise ConfigurationError(f"Season preset required, got {season!r}")

        variability = effective_variability(state, climate, season)
        calculation = DriftCalculation(
            climate_id=climate.preset_id,
            season_id=season.preset_id,
            effective_variability=variability,
        )

        values: dict[str, int] = {}
        for dimension in DRIFTING_DIMENSIONS:
            current = state.value(dimension)
            climate_pull = (climate.value(dimension) - current) / CLIMATE_PULL_DIVISOR
            season_pull = (season.value(dimension) - current) / SEASON_PULL_DIVISOR
            noise = rng.uniform(-1, 1, f"drift {dimension.value} noise") * (variability / NOISE_DIVISOR)
            result = round_half_up(clamp(current + climate_pull + season_pull + noise))
            values[dimension.value] = result
            calculation.dimensions[dimension.value] = DimensionDrift(
                previous=current,
                climate_pull=climate_pull,
                season_pull=season_pull,
                noise=noise,
                result=result,
            )

        if values["humidity"] < STARVATION_HUMIDITY and values["precipitation"] > 0:
            reduction = 1 + math.floor(rng.uniform(0, 2, "moisture starvation"))
            values["precipitation"] = int(clamp(values["precipitation"] - reduction))
            calculation.precipitation_reduction = reduction

        return state.copy(**values), calculation

    def forecast(
        self,
        state: WeatherState,
        climate: DimensionProfile,
        season: DimensionProfile,
        days: int = 5,
        rng: Optional[WeatherRng] = None,
    ) -> list[ForecastDay]:
        """
        Project the drift forward day by day.

        Randomness widens the further out the day is. The forecast draws
        from its own generator, seeded from the engine's, so the live
        sequence is disturbed by exactly one draw.
        """
        if days < 1:
            return []
        if rng is None:
            rng = WeatherRng(seed=self.rng.randint(0, 2**31 - 1, "forecast seed"), log_draws=False)

        forecast: list[ForecastDay] = []
        previous = state
        for i in range(days):
            day_variability = int(clamp(
                round_half_up(state.variability * (1 + i * FORECAST_VARIABILITY_STEP)),
                0,
                VARIABILITY_MAX,
            ))
            day_state, _ = self._drift(previous.copy(variability=day_variability), climate, season, rng)
            day_state = day_state.copy(variability=state.variability)
            changes = {
                d.value: change_indicator(day_state.value(d), previous.value(d), d)
                for d in DRIFTING_DIMENSIONS
            }
            forecast.append(ForecastDay(day=i + 1, state=day_state, variability=day_variability, changes=changes))
            previous = day_state
        return forecast
