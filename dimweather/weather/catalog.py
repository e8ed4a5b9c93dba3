"""
Weather catalog.

Bundles the read-only tables the engines consult: climates, seasons,
hex weather types, the hex grid, the description tables and the
time-of-day offsets. Built once at startup, either from the built-in
tables or from a campaign JSON file layered over them.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional
import json
import logging

from dimweather.data_models import (
    ConfigurationError,
    DimensionProfile,
    InvalidInputError,
    Ruleset,
    TimeOfDay,
)
from dimweather.weather.description_tables import (
    DEFAULT_DESCRIPTION_TABLES,
    DescriptionTables,
)
from dimweather.weather.hex_map import (
    DEFAULT_WEATHER_TYPE,
    HEX_GRID,
    WEATHER_TYPES,
    HexGrid,
    WeatherTypeDef,
)
from dimweather.weather.presets import CLIMATES, SEASONS
from dimweather.weather.time_of_day import TIME_OF_DAY_OFFSETS

logger = logging.getLogger(__name__)


class WeatherCatalog:
    """Immutable lookup structures shared by every engine."""

    def __init__(
        self,
        climates: Mapping[str, DimensionProfile],
        seasons: Mapping[str, DimensionProfile],
        weather_types: Mapping[str, WeatherTypeDef],
        hex_grid: HexGrid,
        descriptions: DescriptionTables,
        time_offsets: Optional[Mapping[TimeOfDay, int]] = None,
        default_weather_type: str = DEFAULT_WEATHER_TYPE,
    ):
        self.climates: Mapping[str, DimensionProfile] = MappingProxyType(dict(climates))
        self.seasons: Mapping[str, DimensionProfile] = MappingProxyType(dict(seasons))
        self.weather_types: Mapping[str, WeatherTypeDef] = MappingProxyType(dict(weather_types))
        self.hex_grid = hex_grid
        self.descriptions = descriptions
        self.time_offsets: Mapping[TimeOfDay, int] = MappingProxyType(
            dict(time_offsets or TIME_OF_DAY_OFFSETS)
        )
        self.default_weather_type = default_weather_type
        self._validate()

    def _validate(self) -> None:
        if self.default_weather_type not in self.weather_types:
            raise ConfigurationError(
                f"Default weather type '{self.default_weather_type}' is not defined"
            )
        for coord, type_id in self.hex_grid.items():
            if type_id not in self.weather_types:
                raise ConfigurationError(f"Hex {coord} uses unknown weather type '{type_id}'")
        missing = set(TimeOfDay) - set(self.time_offsets)
        if missing:
            raise ConfigurationError(
                f"Time-of-day offsets missing for: {sorted(s.value for s in missing)}"
            )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def climate(self, climate_id: str) -> DimensionProfile:
        try:
            return self.climates[climate_id]
        except KeyError:
            raise ConfigurationError(f"Unknown climate '{climate_id}'") from None

    def season(self, season_id: str) -> DimensionProfile:
        try:
            return self.seasons[season_id]
        except KeyError:
            raise ConfigurationError(f"Unknown season '{season_id}'") from None

    def weather_type(self, type_id: str) -> WeatherTypeDef:
        try:
            return self.weather_types[type_id]
        except KeyError:
            raise ConfigurationError(f"Unknown weather type '{type_id}'") from None

    def ruleset_for(self, climate_id: str) -> Ruleset:
        """The ruleset a session runs under is decided by its climate."""
        return self.climate(climate_id).ruleset

    def climates_for(self, ruleset: Ruleset) -> list[str]:
        return [cid for cid, c in self.climates.items() if c.ruleset == ruleset]

    def seasons_for(self, ruleset: Ruleset) -> list[str]:
        return [sid for sid, s in self.seasons.items() if s.ruleset == ruleset]

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def default(cls) -> "WeatherCatalog":
        """The built-in tables."""
        return cls(
            climates=CLIMATES,
            seasons=SEASONS,
            weather_types=WEATHER_TYPES,
            hex_grid=HEX_GRID,
            descriptions=DEFAULT_DESCRIPTION_TABLES,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], extend_defaults: bool = True) -> "WeatherCatalog":
        """
        Build a catalog from campaign data.

        Args:
            data: Mapping with any of "climates", "seasons", "weatherTypes",
                "hexLayout" ("q,r" -> type id), "descriptions",
                "timeOfDayOffsets" and "defaultWeatherType".
            extend_defaults: Layer the given entries over the built-in tables
                instead of replacing them.

        Returns:
            A validated WeatherCatalog
        """
        climates = dict(CLIMATES) if extend_defaults else {}
        seasons = dict(SEASONS) if extend_defaults else {}
        weather_types = dict(WEATHER_TYPES) if extend_defaults else {}

        for climate_id, entry in data.get("climates", {}).items():
            climates[climate_id] = DimensionProfile.from_dict(climate_id, entry)
        for season_id, entry in data.get("seasons", {}).items():
            seasons[season_id] = DimensionProfile.from_dict(season_id, entry)
        for type_id, entry in data.get("weatherTypes", {}).items():
            weather_types[type_id] = WeatherTypeDef.from_dict(type_id, entry)

        if "hexLayout" in data:
            hex_grid = HexGrid.from_dict(data["hexLayout"])
        elif extend_defaults:
            hex_grid = HEX_GRID
        else:
            hex_grid = HexGrid({})

        descriptions = DescriptionTables.from_dict(data.get("descriptions", {}))

        time_offsets = None
        if "timeOfDayOffsets" in data:
            try:
                time_offsets = dict(TIME_OF_DAY_OFFSETS)
                for slot, offset in data["timeOfDayOffsets"].items():
                    time_offsets[TimeOfDay.parse(slot)] = int(offset)
            except (InvalidInputError, TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid time-of-day offsets: {e}") from e

        catalog = cls(
            climates=climates,
            seasons=seasons,
            weather_types=weather_types,
            hex_grid=hex_grid,
            descriptions=descriptions,
            time_offsets=time_offsets,
            default_weather_type=data.get("defaultWeatherType", DEFAULT_WEATHER_TYPE),
        )
        logger.info(
            f"Catalog built: {len(catalog.climates)} climates, {len(catalog.seasons)} seasons, "
            f"{len(catalog.weather_types)} weather types, {len(catalog.hex_grid)} hexes"
        )
        return catalog

    @classmethod
    def from_json_file(cls, path: "Path | str", extend_defaults: bool = True) -> "WeatherCatalog":
        """Load a campaign catalog from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Catalog file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Catalog file {path} must contain a JSON object")
        logger.info(f"Loading weather catalog from {path}")
        return cls.from_dict(data, extend_defaults=extend_defaults)

    def to_dict(self) -> dict[str, Any]:
        return {
            "climates": {cid: c.to_dict() for cid, c in self.climates.items()},
            "seasons": {sid: s.to_dict() for sid, s in self.seasons.items()},
            "weatherTypes": {tid: t.to_dict() for tid, t in self.weather_types.items()},
            "hexLayout": self.hex_grid.to_dict(),
            "descriptions": self.descriptions.to_dict(),
            "timeOfDayOffsets": {slot.value: offset for slot, offset in self.time_offsets.items()},
            "defaultWeatherType": self.default_weather_type,
        }


_default_catalog: Optional[WeatherCatalog] = None


def get_default_catalog() -> WeatherCatalog:
    """Shared built-in catalog, built on first use."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = WeatherCatalog.default()
    return _default_catalog
