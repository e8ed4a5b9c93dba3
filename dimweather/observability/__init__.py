"""
Observability for the weather engine.

Records random draws, weather changes, commands and time steps.
"""

from dimweather.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RandomDrawEvent,
    WeatherChangeEvent,
    CommandEvent,
    TimeStepEvent,
    event_from_dict,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RandomDrawEvent",
    "WeatherChangeEvent",
    "CommandEvent",
    "TimeStepEvent",
    "event_from_dict",
    "get_run_log",
    "reset_run_log",
]
