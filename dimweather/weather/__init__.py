"""
Dimensional Weather core.

The two generation models (continuous drift and the hex weather map),
the time-of-day temperature override, and the effect and description
derivations, plus the read-only catalog they share.
"""

from dimweather.weather.catalog import WeatherCatalog, get_default_catalog
from dimweather.weather.description import (
    DescriptionComposer,
    temperature_band,
    precipitation_type,
)
from dimweather.weather.description_tables import (
    DescriptionTables,
    DimensionDescriptionTable,
)
from dimweather.weather.drift_engine import (
    DimensionalDriftEngine,
    DriftCalculation,
    ForecastDay,
    change_indicator,
)
from dimweather.weather.effects import EffectRecord, EffectsCalculator
from dimweather.weather.hex_automaton import HexMoveResult, HexWeatherAutomaton
from dimweather.weather.hex_map import (
    HexDirection,
    HexGrid,
    WeatherTypeDef,
    SIGNIFICANT_WEATHER_TYPES,
)
from dimweather.weather.presets import CLIMATES, SEASONS
from dimweather.weather.time_of_day import (
    TimeOfDayModulator,
    baseline_temperature,
)

__all__ = [
    # Catalog
    "WeatherCatalog",
    "get_default_catalog",
    "CLIMATES",
    "SEASONS",
    "DescriptionTables",
    "DimensionDescriptionTable",
    # Models
    "DimensionalDriftEngine",
    "DriftCalculation",
    "ForecastDay",
    "change_indicator",
    "HexWeatherAutomaton",
    "HexMoveResult",
    "HexDirection",
    "HexGrid",
    "WeatherTypeDef",
    "SIGNIFICANT_WEATHER_TYPES",
    # Derivations
    "TimeOfDayModulator",
    "baseline_temperature",
    "EffectsCalculator",
    "EffectRecord",
    "DescriptionComposer",
    "temperature_band",
    "precipitation_type",
]
