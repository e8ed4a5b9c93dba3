"""
Run Log for weather engine event tracking.

Captures every random draw, weather change, command and time step so a
session can be inspected afterwards and a seeded run can be compared
draw for draw against another.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    DRAW = "draw"  # Random draw from WeatherRng
    WEATHER_CHANGE = "weather_change"  # State advanced or edited
    COMMAND = "command"  # Command accepted or rejected
    TIME_STEP = "time_step"  # World time advancement
    CUSTOM = "custom"


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # Default here so subclasses can declare defaulted fields; each
    # subclass sets its own value in __post_init__
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "context": self.context,
        }

    @classmethod
    def _base_kwargs(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "timestamp": datetime.fromisoformat(data["timestamp"]),
            "sequence_number": data.get("sequence_number", 0),
            "context": data.get("context", {}),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        """Create from dictionary."""
        return cls(event_type=EventType(data["event_type"]), **cls._base_kwargs(data))


@dataclass
class RandomDrawEvent(LogEvent):
    """A single draw from the weather random source."""

    distribution: str = ""  # "uniform", "randint", "choice"
    low: float = 0
    high: float = 0
    value: Any = None
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.DRAW

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "distribution": self.distribution,
                "low": self.low,
                "high": self.high,
                "value": self.value,
                "reason": self.reason,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RandomDrawEvent":
        return cls(
            **cls._base_kwargs(data),
            distribution=data.get("distribution", ""),
            low=data.get("low", 0),
            high=data.get("high", 0),
            value=data.get("value"),
            reason=data.get("reason", ""),
        )

    def __str__(self) -> str:
        value = f"{self.value:.4f}" if isinstance(self.value, float) else self.value
        return f"[{self.sequence_number}] DRAW {self.distribution}({self.low}, {self.high}) = {value} ({self.reason})"


@dataclass
class WeatherChangeEvent(LogEvent):
    """The weather state moved from one snapshot to another."""

    model: str = ""
    reason: str = ""
    before: dict[str, Any] = field(default_factory=dict)
    after: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.event_type = EventType.WEATHER_CHANGE

    @property
    def changed_fields(self) -> list[str]:
        return [k for k, v in self.after.items() if self.before.get(k) != v]

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "model": self.model,
                "reason": self.reason,
                "before": self.before,
                "after": self.after,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeatherChangeEvent":
        return cls(
            **cls._base_kwargs(data),
            model=data.get("model", ""),
            reason=data.get("reason", ""),
            before=data.get("before", {}),
            after=data.get("after", {}),
        )

    def __str__(self) -> str:
        changed = ", ".join(
            f"{k} {self.before.get(k)} -> {self.after.get(k)}" for k in self.changed_fields
        )
        return f"[{self.sequence_number}] WEATHER {self.model} ({self.reason}): {changed or 'no change'}"


@dataclass
class CommandEvent(LogEvent):
    """A command issued to the weather controller."""

    command: str = ""
    arguments: dict[str, Any] = field(default_factory=dict)
    accepted: bool = True
    message: str = ""

    def __post_init__(self):
        self.event_type = EventType.COMMAND

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "command": self.command,
                "arguments": self.arguments,
                "accepted": self.accepted,
                "message": self.message,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CommandEvent":
        return cls(
            **cls._base_kwargs(data),
            command=data.get("command", ""),
            arguments=data.get("arguments", {}),
            accepted=data.get("accepted", True),
            message=data.get("message", ""),
        )

    def __str__(self) -> str:
        status = "OK" if self.accepted else "REJECTED"
        suffix = f": {self.message}" if self.message else ""
        return f"[{self.sequence_number}] COMMAND {self.command} {self.arguments} {status}{suffix}"


@dataclass
class TimeStepEvent(LogEvent):
    """A world time advancement event."""

    old_hours: float = 0
    new_hours: float = 0
    update_triggered: bool = False

    def __post_init__(self):
        self.event_type = EventType.TIME_STEP

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "old_hours": self.old_hours,
                "new_hours": self.new_hours,
                "update_triggered": self.update_triggered,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeStepEvent":
        return cls(
            **cls._base_kwargs(data),
            old_hours=data.get("old_hours", 0),
            new_hours=data.get("new_hours", 0),
            update_triggered=data.get("update_triggered", False),
        )

    def __str__(self) -> str:
        fired = " -> weather update" if self.update_triggered else ""
        return f"[{self.sequence_number}] TIME {self.old_hours}h -> {self.new_hours}h{fired}"


_EVENT_CLASSES: dict[EventType, type[LogEvent]] = {
    EventType.DRAW: RandomDrawEvent,
    EventType.WEATHER_CHANGE: WeatherChangeEvent,
    EventType.COMMAND: CommandEvent,
    EventType.TIME_STEP: TimeStepEvent,
}


def event_from_dict(data: dict[str, Any]) -> LogEvent:
    """Rebuild a logged event of the right subclass."""
    event_cls = _EVENT_CLASSES.get(EventType(data["event_type"]), LogEvent)
    return event_cls.from_dict(data)


class RunLog:
    """
    Central run log for weather events.

    Singleton pattern - use get_run_log() to access.
    """

    _instance: Optional["RunLog"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._paused: bool = False

    def reset(self) -> None:
        """Reset the log for a new session."""
        self._events = []
        self._sequence = 0
        self._seed = None
        self._session_start = datetime.now()
        logger.debug("RunLog reset")

    def set_seed(self, seed: Optional[int]) -> None:
        """Record the RNG seed used for this session."""
        self._seed = seed
        logger.info(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def pause(self) -> None:
        """Stop recording events until resume() is called."""
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _log_event(self, event: LogEvent) -> None:
        if self._paused:
            return

        self._sequence += 1
        event.sequence_number = self._sequence
        self._events.append(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_draw(
        self,
        distribution: str,
        low: float,
        high: float,
        value: Any,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RandomDrawEvent:
        """Log a random draw."""
        event = RandomDrawEvent(
            distribution=distribution,
            low=low,
            high=high,
            value=value,
            reason=reason,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_weather_change(
        self,
        model: str,
        reason: str,
        before: dict[str, Any],
        after: dict[str, Any],
        context: Optional[dict[str, Any]] = None,
    ) -> WeatherChangeEvent:
        """Log a weather state change."""
        event = WeatherChangeEvent(
            model=model,
            reason=reason,
            before=before,
            after=after,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_command(
        self,
        command: str,
        arguments: dict[str, Any],
        accepted: bool = True,
        message: str = "",
    ) -> CommandEvent:
        """Log a command and whether it was accepted."""
        event = CommandEvent(
            command=command,
            arguments=arguments,
            accepted=accepted,
            message=message,
        )
        self._log_event(event)
        return event

    def log_time_step(
        self,
        old_hours: float,
        new_hours: float,
        update_triggered: bool = False,
    ) -> TimeStepEvent:
        """Log a world time advancement."""
        event = TimeStepEvent(
            old_hours=old_hours,
            new_hours=new_hours,
            update_triggered=update_triggered,
        )
        self._log_event(event)
        return event

    def log_custom(self, event_name: str, details: dict[str, Any]) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number

        Returns:
            List of events
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_draws(self) -> list[RandomDrawEvent]:
        return [e for e in self._events if isinstance(e, RandomDrawEvent)]

    def get_weather_changes(self) -> list[WeatherChangeEvent]:
        return [e for e in self._events if isinstance(e, WeatherChangeEvent)]

    def get_commands(self) -> list[CommandEvent]:
        return [e for e in self._events if isinstance(e, CommandEvent)]

    def get_time_steps(self) -> list[TimeStepEvent]:
        return [e for e in self._events if isinstance(e, TimeStepEvent)]

    def get_draw_stream(self) -> list[dict[str, Any]]:
        """
        Get the draw stream for comparison between runs.

        Two runs with the same seed and the same commands produce the same
        stream.
        """
        return [
            {"distribution": e.distribution, "value": e.value, "reason": e.reason}
            for e in self.get_draws()
        ]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "draws": len(self.get_draws()),
            "weather_changes": len(self.get_weather_changes()),
            "commands": len(self.get_commands()),
            "time_steps": len(self.get_time_steps()),
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Load a log from a file into the global instance."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = get_run_log()
        log.reset()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._seed = data.get("seed")
        log._sequence = data.get("sequence", 0)
        log._events = [event_from_dict(event_data) for event_data in data.get("events", [])]

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """Format the log as a human-readable string."""
        lines = [
            "=== Weather Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        lines.extend(str(event) for event in events)
        return "\n".join(lines)


# Singleton access
_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    log.resume()
    return log
