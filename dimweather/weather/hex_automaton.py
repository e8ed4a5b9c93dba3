"""
Hex weather automaton.

The discrete desert model. The party's weather is whatever cell of the
hex map they stand on; moving one step adopts the destination cell's
weather type, and the type's overrides replace only the dimensions it
names.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from dimweather.data_models import (
    ConfigurationError,
    HexCoord,
    WeatherRng,
    WeatherState,
)
from dimweather.weather.catalog import WeatherCatalog, get_default_catalog
from dimweather.weather.hex_map import (
    FALLBACK_DIRECTIONS,
    ORIGIN,
    HexDirection,
    WeatherTypeDef,
)

logger = logging.getLogger(__name__)


@dataclass
class HexMoveResult:
    """Where a move ended up and how."""

    requested: HexDirection
    taken: Optional[HexDirection]  # None when no populated neighbour was found
    start: HexCoord
    destination: HexCoord
    weather_type_id: str
    state: WeatherState
    alternates_tried: list[HexDirection] = field(default_factory=list)

    @property
    def moved(self) -> bool:
        return self.destination != self.start

    @property
    def used_fallback(self) -> bool:
        return self.taken is not None and self.taken != self.requested


class HexWeatherAutomaton:
    """Moves the party across the hex weather map."""

    def __init__(self, catalog: Optional[WeatherCatalog] = None, rng: Optional[WeatherRng] = None):
        self.catalog = catalog or get_default_catalog()
        self.rng = rng or WeatherRng()

    @property
    def grid(self):
        return self.catalog.hex_grid

    def current_position(self, state: WeatherState) -> HexCoord:
        return state.hex_position if state.hex_position is not None else ORIGIN

    def weather_type_at(self, coord: HexCoord) -> WeatherTypeDef:
        """The weather type at coord, or the default type for unmapped cells."""
        type_id = self.grid.get(coord)
        if type_id is None:
            logger.warning(
                f"Hex {coord} is unmapped, using default weather type '{self.catalog.default_weather_type}'"
            )
            type_id = self.catalog.default_weather_type
        return self.catalog.weather_type(type_id)

    def resolve_step(self, start: HexCoord, direction: HexDirection) -> tuple[Optional[HexDirection], list[HexDirection]]:
        """
        Find the direction actually taken from start.

        Returns the chosen direction (None if every candidate is unmapped)
        and the alternates tried before it.
        """
        if self.grid.neighbour(start, direction) in self.grid:
            return direction, []

        tried: list[HexDirection] = []
        for alternate in FALLBACK_DIRECTIONS[direction]:
            tried.append(alternate)
            if self.grid.neighbour(start, alternate) in self.grid:
                return alternate, tried
        return None, tried

    def apply_weather_type(self, state: WeatherState, weather_type: WeatherTypeDef, position: HexCoord) -> WeatherState:
        """Copy of state placed at position with the type's overrides applied."""
        return state.copy(
            hex_position=position,
            weather_type_id=weather_type.type_id,
            **dict(weather_type.overrides),
        )

    def enter(self, state: WeatherState, position: HexCoord = ORIGIN) -> WeatherState:
        """Place the party on a cell without moving, adopting its weather."""
        return self.apply_weather_type(state, self.weather_type_at(position), position)

    def move_detailed(self, state: WeatherState, direction: "HexDirection | int | str") -> HexMoveResult:
        """Move one step and report how the destination was chosen."""
        direction = HexDirection.parse(direction)
        start = self.current_position(state)
        taken, tried = self.resolve_step(start, direction)

        if taken is None:
            logger.warning(f"Hex {start} has no populated neighbours, staying in place")
            destination = start
        else:
            destination = self.grid.neighbour(start, taken)
            if taken != direction:
                logger.info(
                    f"Hex {self.grid.neighbour(start, direction)} is unmapped, "
                    f"moving {taken.name} instead of {direction.name}"
                )

        weather_type = self.weather_type_at(destination)
        new_state = self.apply_weather_type(state, weather_type, destination)
        logger.debug(f"Hex move {direction.name}: {start} -> {destination} ({weather_type.type_id})")

        return HexMoveResult(
            requested=direction,
            taken=taken,
            start=start,
            destination=destination,
            weather_type_id=weather_type.type_id,
            state=new_state,
            alternates_tried=tried,
        )

    def move(self, state: WeatherState, direction: "HexDirection | int | str") -> WeatherState:
        """
        Move one step on the hex map.

        Raises:
            InvalidInputError: If the direction is not 1-6
        """
        return self.move_detailed(state, direction).state

    def tick(self, state: WeatherState, rng: Optional[WeatherRng] = None) -> WeatherState:
        """Move in a uniformly random direction."""
        rng = rng or self.rng
        direction = HexDirection(rng.randint(1, 6, "hex weather direction"))
        return self.move(state, direction)

    def describe_cell(self, state: WeatherState) -> dict:
        """Cell id and position for external rendering."""
        position = self.current_position(state)
        type_id = state.weather_type_id or self.grid.get(position) or self.catalog.default_weather_type
        try:
            weather_type = self.catalog.weather_type(type_id)
        except ConfigurationError:
            weather_type = self.catalog.weather_type(self.catalog.default_weather_type)
        return {
            "position": {"q": position.q, "r": position.r},
            "weather_type_id": weather_type.type_id,
            "name": weather_type.name,
            "color": weather_type.color,
            "description": weather_type.description,
            "effect": weather_type.effect,
        }
