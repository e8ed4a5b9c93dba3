"""
Hex weather map.

The discrete desert model: a sparse axial hex grid where every populated
cell carries a weather type, and each weather type replaces some of the
state's dimensions when the party arrives in the cell.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

from dimweather.data_models import (
    ConfigurationError,
    Dimension,
    HexCoord,
    InvalidInputError,
)


# Hex weather types may override these and nothing else
OVERRIDABLE_DIMENSIONS = (Dimension.TEMPERATURE, Dimension.WIND, Dimension.HUMIDITY)


class HexDirection(IntEnum):
    """The six axial neighbour directions, numbered clockwise from north-east."""

    NE = 1
    E = 2
    SE = 3
    SW = 4
    W = 5
    NW = 6

    @property
    def delta(self) -> tuple[int, int]:
        return DIRECTION_OFFSETS[self]

    @classmethod
    def parse(cls, value: "int | str | HexDirection") -> "HexDirection":
        """Resolve 1-6 or a compass name ("NE", "sw"), raising InvalidInputError otherwise."""
        if isinstance(value, HexDirection):
            return value
        if isinstance(value, str):
            text = value.strip().upper()
            if text in cls.__members__:
                return cls[text]
            if text.isdigit():
                value = int(text)
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise InvalidInputError(
                f"Unknown direction '{value}'. Use 1-6 or one of NE, E, SE, SW, W, NW"
            ) from None


DIRECTION_OFFSETS: Mapping[HexDirection, tuple[int, int]] = MappingProxyType({
    HexDirection.NE: (1, -1),
    HexDirection.E: (1, 0),
    HexDirection.SE: (0, 1),
    HexDirection.SW: (-1, 1),
    HexDirection.W: (-1, 0),
    HexDirection.NW: (0, -1),
})

# Alternates tried when the requested neighbour is unmapped, nearest
# heading first, alternating clockwise and counter-clockwise
FALLBACK_DIRECTIONS: Mapping[HexDirection, tuple[HexDirection, ...]] = MappingProxyType({
    HexDirection.NE: (HexDirection.E, HexDirection.NW, HexDirection.SE, HexDirection.W, HexDirection.SW),
    HexDirection.E: (HexDirection.NE, HexDirection.SE, HexDirection.NW, HexDirection.SW, HexDirection.W),
    HexDirection.SE: (HexDirection.E, HexDirection.SW, HexDirection.NE, HexDirection.W, HexDirection.NW),
    HexDirection.SW: (HexDirection.SE, HexDirection.W, HexDirection.E, HexDirection.NW, HexDirection.NE),
    HexDirection.W: (HexDirection.SW, HexDirection.NW, HexDirection.SE, HexDirection.NE, HexDirection.E),
    HexDirection.NW: (HexDirection.NE, HexDirection.W, HexDirection.E, HexDirection.SW, HexDirection.SE),
})


@dataclass(frozen=True)
class WeatherTypeDef:
    """A discrete weather condition that lives on hex cells."""

    type_id: str
    name: str
    description: str
    effect: str
    color: str = "#f9e076"
    overrides: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self):
        allowed = {d.value for d in OVERRIDABLE_DIMENSIONS}
        unknown = set(self.overrides) - allowed
        if unknown:
            raise ConfigurationError(
                f"Weather type '{self.type_id}' overrides unsupported dimensions: {sorted(unknown)}"
            )
        object.__setattr__(self, "overrides", MappingProxyType(dict(self.overrides)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "effect": self.effect,
            "color": self.color,
            "overrides": dict(self.overrides),
        }

    @classmethod
    def from_dict(cls, type_id: str, data: dict[str, Any]) -> "WeatherTypeDef":
        try:
            return cls(
                type_id=type_id,
                name=data.get("name", type_id),
                description=data.get("description", ""),
                effect=data.get("effect", ""),
                color=data.get("color", "#f9e076"),
                overrides={k: int(v) for k, v in data.get("overrides", {}).items()},
            )
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigurationError(f"Invalid weather type '{type_id}': {e}") from e


# =============================================================================
# WEATHER TYPES
# =============================================================================

DEFAULT_WEATHER_TYPE = "normal"

_WEATHER_TYPES = [
    WeatherTypeDef(
        "hot", "Hot",
        "The scorching sun beats down relentlessly.",
        "Double water consumption during the day.",
        "#f9e076", {"temperature": 7},
    ),
    WeatherTypeDef(
        "windy", "Windy",
        "Strong winds whip across the barren landscape.",
        "Penalty to ranged attacks.",
        "#b3b3b3", {"wind": 7},
    ),
    WeatherTypeDef(
        "sandstorm", "Sandstorm",
        "A wall of sand obscures vision and scours exposed skin.",
        "Cannot see past 5 feet.",
        "#e67e22", {"wind": 9, "humidity": -8},
    ),
    WeatherTypeDef(
        "deadlyHot", "Deadly Hot",
        "The heat is unbearable, threatening to cook anyone exposed to it.",
        "Quintuple water consumption during the day.",
        "#e74c3c", {"temperature": 10},
    ),
    WeatherTypeDef(
        "overcast", "Overcast",
        "Rare clouds provide some relief from the sun.",
        "Bonus to hiding in shadows.",
        "#2a9d8f", {"temperature": 5},
    ),
    WeatherTypeDef(
        "dryThunder", "Dry Thunder",
        "Lightning crackles across the sky, but no rain falls.",
        "On critical miss, lightning strikes within 20 feet.",
        "#f9e076", {"temperature": 6},
    ),
    WeatherTypeDef(
        "cool", "Cool",
        "A rare respite from the heat of Athas.",
        "No changes.",
        "#a8dadc", {"temperature": 3},
    ),
    WeatherTypeDef(
        "normal", "Normal",
        "Typical Athasian day.",
        "Standard conditions for Athas.",
        "#f9e076", {"temperature": 6},
    ),
]

WEATHER_TYPES: Mapping[str, WeatherTypeDef] = MappingProxyType({w.type_id: w for w in _WEATHER_TYPES})

# Types that warrant a loud notification when entered
SIGNIFICANT_WEATHER_TYPES = frozenset({"sandstorm", "deadlyHot", "dryThunder"})


# =============================================================================
# GRID
# =============================================================================

_LAYOUT: dict[tuple[int, int], str] = {
    (0, 0): "normal",
    (1, 0): "hot",
    (2, 0): "hot",
    (3, 0): "deadlyHot",
    (-1, 0): "overcast",
    (-2, 0): "overcast",
    (-3, 0): "sandstorm",
    (0, -1): "windy",
    (1, -1): "hot",
    (2, -1): "deadlyHot",
    (3, -1): "deadlyHot",
    (-1, -1): "overcast",
    (-2, -1): "overcast",
    (-3, -1): "sandstorm",
    (0, 1): "cool",
    (1, 1): "hot",
    (2, 1): "dryThunder",
    (3, 1): "deadlyHot",
    (-1, 1): "windy",
    (-2, 1): "sandstorm",
    (-3, 1): "sandstorm",
    (0, -2): "windy",
    (1, -2): "windy",
    (2, -2): "hot",
    (-1, -2): "overcast",
    (-2, -2): "overcast",
    (0, 2): "dryThunder",
    (1, 2): "dryThunder",
    (2, 2): "dryThunder",
    (-1, 2): "windy",
    (-2, 2): "sandstorm",
    (0, -3): "overcast",
    (1, -3): "windy",
    (-1, -3): "overcast",
    (0, 3): "dryThunder",
    (1, 3): "deadlyHot",
    (-1, 3): "windy",
}

ORIGIN = HexCoord(0, 0)


class HexGrid:
    """
    Sparse, read-only map from axial coordinates to weather type ids.

    Only populated cells are stored; the outline is irregular.
    """

    def __init__(self, cells: Mapping[tuple[int, int], str]):
        self._cells: Mapping[HexCoord, str] = MappingProxyType(
            {HexCoord(*coord): type_id for coord, type_id in cells.items()}
        )

    def __contains__(self, coord: object) -> bool:
        return coord in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[HexCoord]:
        return iter(self._cells)

    def get(self, coord: HexCoord) -> Optional[str]:
        return self._cells.get(coord)

    def items(self):
        return self._cells.items()

    def neighbour(self, coord: HexCoord, direction: HexDirection) -> HexCoord:
        return coord.offset(*direction.delta)

    def populated_neighbours(self, coord: HexCoord) -> list[HexDirection]:
        """Directions from coord that lead to a populated cell."""
        return [d for d in HexDirection if self.neighbour(coord, d) in self]

    def to_dict(self) -> dict[str, str]:
        return {coord.to_key(): type_id for coord, type_id in self._cells.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> "HexGrid":
        return cls({HexCoord.from_key(key): type_id for key, type_id in data.items()})


HEX_GRID = HexGrid(_LAYOUT)
