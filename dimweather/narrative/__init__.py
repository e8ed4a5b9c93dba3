"""
Weather narration.
"""

from dimweather.narrative.weather_narrator import (
    NarrationConditions,
    WeatherNarrator,
)

__all__ = [
    "NarrationConditions",
    "WeatherNarrator",
]
