"""
Session glue around the weather core: command dispatch, world-time
scheduling, change notifications and persistence.
"""

from dimweather.game_state.session_manager import (
    WeatherSession,
    WeatherSessionStore,
    WeatherSettings,
)
from dimweather.game_state.weather_controller import (
    WeatherChangeNotification,
    WeatherController,
)

__all__ = [
    "WeatherSession",
    "WeatherSessionStore",
    "WeatherSettings",
    "WeatherChangeNotification",
    "WeatherController",
]
