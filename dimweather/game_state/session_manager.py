"""
Weather session persistence.

Saves and loads the mutable half of a weather session (the current
WeatherState, the active settings and the last update time) as JSON.
Catalog data is never persisted; it is rebuilt from the built-in tables
or the campaign file at startup.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional
import json
import logging
import uuid

from dimweather.data_models import (
    ConfigurationError,
    InvalidInputError,
    TimeOfDay,
    WeatherModel,
    WeatherState,
)
from dimweather.weather.presets import DEFAULT_CLIMATE, DEFAULT_SEASON

logger = logging.getLogger(__name__)

SAVE_FORMAT_VERSION = "1.0.0"
DEFAULT_UPDATE_INTERVAL_HOURS = 6


@dataclass
class WeatherSettings:
    """Persisted per-session weather settings."""

    climate_id: str = DEFAULT_CLIMATE
    season_id: str = DEFAULT_SEASON
    time_of_day: TimeOfDay = TimeOfDay.NOON
    model: WeatherModel = WeatherModel.DIMENSIONAL
    update_interval_hours: float = DEFAULT_UPDATE_INTERVAL_HOURS
    auto_update: bool = True

    def __post_init__(self):
        self.time_of_day = TimeOfDay.parse(self.time_of_day)
        self.model = WeatherModel.parse(self.model)
        if self.update_interval_hours <= 0:
            raise InvalidInputError(
                f"Update interval must be positive, got {self.update_interval_hours}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "climate_id": self.climate_id,
            "season_id": self.season_id,
            "time_of_day": self.time_of_day.value,
            "model": self.model.value,
            "update_interval_hours": self.update_interval_hours,
            "auto_update": self.auto_update,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeatherSettings":
        try:
            return cls(
                climate_id=data.get("climate_id", DEFAULT_CLIMATE),
                season_id=data.get("season_id", DEFAULT_SEASON),
                time_of_day=data.get("time_of_day", TimeOfDay.NOON.value),
                model=data.get("model", WeatherModel.DIMENSIONAL.value),
                update_interval_hours=float(
                    data.get("update_interval_hours", DEFAULT_UPDATE_INTERVAL_HOURS)
                ),
                auto_update=bool(data.get("auto_update", True)),
            )
        except (InvalidInputError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid weather settings: {e}") from e


@dataclass
class WeatherSession:
    """Everything needed to resume a weather session."""

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    session_name: str = "Weather Session"
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())
    last_saved_at: Optional[str] = None
    version: str = SAVE_FORMAT_VERSION

    state: WeatherState = field(default_factory=WeatherState)
    settings: WeatherSettings = field(default_factory=WeatherSettings)

    # World hours at the last automatic update; None until time is first seen
    last_update_hours: Optional[float] = None

    custom_data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "session_name": self.session_name,
            "created_at": self.created_at,
            "last_saved_at": self.last_saved_at,
            "version": self.version,
            "state": self.state.to_dict(),
            "settings": self.settings.to_dict(),
            "last_update_hours": self.last_update_hours,
            "custom_data": self.custom_data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WeatherSession":
        if not isinstance(data, dict) or "state" not in data:
            raise ConfigurationError("Save data is missing the weather state")
        last_update = data.get("last_update_hours")
        return cls(
            session_id=data.get("session_id", str(uuid.uuid4())),
            session_name=data.get("session_name", "Weather Session"),
            created_at=data.get("created_at", datetime.now().isoformat()),
            last_saved_at=data.get("last_saved_at"),
            version=data.get("version", SAVE_FORMAT_VERSION),
            state=WeatherState.from_dict(data["state"]),
            settings=WeatherSettings.from_dict(data.get("settings", {})),
            last_update_hours=float(last_update) if last_update is not None else None,
            custom_data=data.get("custom_data", {}),
        )


class WeatherSessionStore:
    """
    Manages weather session save/load operations.

    Handles:
    - Saving sessions to JSON files
    - Loading sessions from JSON files
    - Listing and deleting save files
    """

    def __init__(self, save_directory: Optional[Path] = None):
        """
        Initialize the store.

        Args:
            save_directory: Directory for save files. Defaults to ./saves/
        """
        self.save_directory = Path(save_directory) if save_directory else Path("./saves")
        self.save_directory.mkdir(parents=True, exist_ok=True)

    def filename_for(self, session: WeatherSession) -> str:
        safe_name = "".join(c for c in session.session_name if c.isalnum() or c in " -_")
        return f"{safe_name}_{session.session_id[:8]}.json"

    def _resolve(self, filepath: "Path | str") -> Path:
        filepath = Path(filepath)
        if not filepath.exists():
            # Try relative to save directory
            filepath = self.save_directory / filepath
        return filepath

    def save(self, session: WeatherSession, filename: Optional[str] = None) -> Path:
        """
        Save a session to a JSON file.

        Args:
            session: Session to save
            filename: Custom filename (defaults to name_sessionid.json)

        Returns:
            Path to the saved file
        """
        session.last_saved_at = datetime.now().isoformat()
        filepath = self.save_directory / (filename or self.filename_for(session))

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(session.to_dict(), f, indent=2, ensure_ascii=False)

        logger.debug(f"Saved weather session to: {filepath}")
        return filepath

    def load(self, filepath: "Path | str") -> WeatherSession:
        """
        Load a session from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the file is not a valid weather save
        """
        filepath = self._resolve(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"Save file not found: {filepath}")

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Save file {filepath} is not valid JSON: {e}") from e

        session = WeatherSession.from_dict(data)
        logger.info(f"Loaded weather session: {session.session_name} ({session.session_id})")
        return session

    def list_sessions(self) -> list[dict[str, Any]]:
        """List save files, most recently saved first."""
        sessions = []

        for filepath in self.save_directory.glob("*.json"):
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    data = json.load(f)

                sessions.append({
                    "filepath": str(filepath),
                    "filename": filepath.name,
                    "session_id": data.get("session_id", "unknown"),
                    "session_name": data.get("session_name", "Untitled"),
                    "created_at": data.get("created_at"),
                    "last_saved_at": data.get("last_saved_at"),
                    "version": data.get("version", "unknown"),
                })
            except (json.JSONDecodeError, AttributeError) as e:
                logger.warning(f"Could not read save file {filepath}: {e}")

        sessions.sort(
            key=lambda s: s.get("last_saved_at") or s.get("created_at") or "",
            reverse=True,
        )
        return sessions

    def delete(self, filepath: "Path | str") -> bool:
        """Delete a save file. Returns True if a file was removed."""
        filepath = self._resolve(filepath)
        if filepath.exists():
            filepath.unlink()
            logger.info(f"Deleted save file: {filepath}")
            return True
        return False
