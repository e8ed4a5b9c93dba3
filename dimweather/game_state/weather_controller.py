"""
Weather Controller.

The host-facing side of the engine. Owns the session's WeatherState and
settings, maps commands onto the core operations, schedules automatic
updates from world-time advances, persists after every change, and
notifies listeners with a snapshot of the new weather.

The core engines stay pure: they return new states and never save,
log commands or notify. All of that happens here.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional
import logging

from dimweather.data_models import (
    DIMENSION_MAX,
    DIMENSION_MIN,
    Dimension,
    InvalidInputError,
    Ruleset,
    TimeOfDay,
    WeatherContext,
    WeatherError,
    WeatherModel,
    WeatherRng,
    WeatherState,
)
from dimweather.game_state.session_manager import (
    WeatherSession,
    WeatherSessionStore,
    WeatherSettings,
)
from dimweather.observability.run_log import get_run_log
from dimweather.weather.catalog import WeatherCatalog, get_default_catalog
from dimweather.weather.description import DescriptionComposer
from dimweather.weather.drift_engine import DimensionalDriftEngine, ForecastDay
from dimweather.weather.effects import EffectRecord, EffectsCalculator
from dimweather.weather.hex_automaton import HexWeatherAutomaton
from dimweather.weather.hex_map import ORIGIN, SIGNIFICANT_WEATHER_TYPES, HexDirection
from dimweather.weather.time_of_day import TimeOfDayModulator

logger = logging.getLogger(__name__)


# Dimensional weather this rough is announced loudly
SIGNIFICANT_PRECIPITATION = 5
SIGNIFICANT_WIND = 6


@dataclass
class WeatherChangeNotification:
    """Payload sent to subscribers after every weather change."""

    state: dict[str, Any]
    model: WeatherModel
    ruleset: Ruleset
    climate_id: str
    season_id: str
    time_of_day: TimeOfDay
    reason: str
    forced: bool = False
    significant: bool = False
    weather_type_id: Optional[str] = None
    hex_position: Optional[dict[str, int]] = None
    changed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "model": self.model.value,
            "ruleset": self.ruleset.value,
            "climate_id": self.climate_id,
            "season_id": self.season_id,
            "time_of_day": self.time_of_day.value,
            "reason": self.reason,
            "forced": self.forced,
            "significant": self.significant,
            "weather_type_id": self.weather_type_id,
            "hex_position": self.hex_position,
            "changed": list(self.changed),
        }


class WeatherController:
    """
    Single writer of a session's weather.

    Every command validates its input before touching anything, so a
    rejected command leaves state, settings and the save file as they were.
    """

    def __init__(
        self,
        catalog: Optional[WeatherCatalog] = None,
        session: Optional[WeatherSession] = None,
        store: Optional[WeatherSessionStore] = None,
        rng: Optional[WeatherRng] = None,
    ):
        self.catalog = catalog or get_default_catalog()
        self.rng = rng or WeatherRng()
        self.store = store

        self.drift_engine = DimensionalDriftEngine(self.rng)
        self.hex_automaton = HexWeatherAutomaton(self.catalog, self.rng)
        self.time_modulator = TimeOfDayModulator(self.catalog.time_offsets)
        self.effects_calculator = EffectsCalculator()
        self.composer = DescriptionComposer(self.catalog)

        self._subscribers: list[Callable[[WeatherChangeNotification], None]] = []

        if session is None:
            session = WeatherSession()
            climate = self.catalog.climate(session.settings.climate_id)
            session.state = WeatherState.from_profile(climate)
        else:
            # Stale ids in an old save surface here rather than mid-command
            self.catalog.climate(session.settings.climate_id)
            self.catalog.season(session.settings.season_id)
        self.session = session

        if self.settings.model == WeatherModel.HEX and self.state.hex_position is None:
            self.session.state = self.hex_automaton.enter(self.state, ORIGIN)

        get_run_log().set_seed(self.rng.seed)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> WeatherState:
        return self.session.state

    @property
    def settings(self) -> WeatherSettings:
        return self.session.settings

    @property
    def ruleset(self) -> Ruleset:
        return self.catalog.ruleset_for(self.settings.climate_id)

    @property
    def context(self) -> WeatherContext:
        return WeatherContext(
            climate_id=self.settings.climate_id,
            season_id=self.settings.season_id,
            time_of_day=self.settings.time_of_day,
        )

    def describe(self) -> str:
        return self.composer.describe(self.state, self.ruleset, self.context)

    def report(self, description: Optional[str] = None) -> str:
        """Text report for the current model."""
        if self.settings.model == WeatherModel.HEX:
            weather_type = self.catalog.weather_type(
                self.state.weather_type_id or self.catalog.default_weather_type
            )
            return "\n\n".join([
                self.composer.hex_report(weather_type, self.state),
                self.composer.weather_report(self.state, self.ruleset, self.context, description),
            ])
        return self.composer.weather_report(self.state, self.ruleset, self.context, description)

    def effects(self) -> EffectRecord:
        return self.effects_calculator.effects(self.state, self.ruleset, self.context)

    def hex_status(self) -> dict[str, Any]:
        """Current cell id and position for external map rendering."""
        return self.hex_automaton.describe_cell(self.state)

    def forecast(self, days: int = 5) -> list[ForecastDay]:
        return self.drift_engine.forecast(
            self.state,
            self.catalog.climate(self.settings.climate_id),
            self.catalog.season(self.settings.season_id),
            days=days,
        )

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Callable[[WeatherChangeNotification], None]) -> None:
        """Register a listener for weather change notifications."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[WeatherChangeNotification], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def is_significant(self, state: WeatherState) -> bool:
        if self.settings.model == WeatherModel.HEX:
            return state.weather_type_id in SIGNIFICANT_WEATHER_TYPES
        return state.precipitation >= SIGNIFICANT_PRECIPITATION or state.wind >= SIGNIFICANT_WIND

    # -------------------------------------------------------------------------
    # Internal plumbing
    # -------------------------------------------------------------------------

    def _run_command(self, command: str, arguments: dict[str, Any], action: Callable[[], Any]) -> Any:
        run_log = get_run_log()
        try:
            result = action()
        except WeatherError as e:
            run_log.log_command(command, arguments, accepted=False, message=str(e))
            logger.warning(f"Weather command {command} rejected: {e}")
            raise
        run_log.log_command(command, arguments)
        logger.info(f"Weather command {command} {arguments}")
        return result

    def _save(self) -> None:
        if self.store is not None:
            self.store.save(self.session)

    def _commit(self, new_state: WeatherState, reason: str, forced: bool = False) -> WeatherChangeNotification:
        """Install new_state, persist it, log it and notify listeners."""
        before = self.state.to_dict()
        self.session.state = new_state
        after = new_state.to_dict()

        event = get_run_log().log_weather_change(
            model=self.settings.model.value,
            reason=reason,
            before=before,
            after=after,
            context={"climate": self.settings.climate_id, "season": self.settings.season_id},
        )
        self._save()

        position = new_state.hex_position
        notification = WeatherChangeNotification(
            state=after,
            model=self.settings.model,
            ruleset=self.ruleset,
            climate_id=self.settings.climate_id,
            season_id=self.settings.season_id,
            time_of_day=self.settings.time_of_day,
            reason=reason,
            forced=forced,
            significant=self.is_significant(new_state),
            weather_type_id=new_state.weather_type_id,
            hex_position={"q": position.q, "r": position.r} if position is not None else None,
            changed=event.changed_fields,
        )

        for subscriber in self._subscribers:
            try:
                subscriber(notification)
            except Exception as e:
                logger.warning(f"Weather subscriber error: {e}")
        return notification

    def _with_time_of_day(self, state: WeatherState) -> WeatherState:
        """Apply the time-of-day temperature when the ruleset calls for it."""
        if self.ruleset != Ruleset.EXTREME_HEAT:
            return state
        return self.time_modulator.apply_to_state(
            state,
            self.catalog.climate(self.settings.climate_id),
            self.catalog.season(self.settings.season_id),
            self.settings.time_of_day,
        )

    def _advance_state(self, state: WeatherState) -> WeatherState:
        if self.settings.model == WeatherModel.HEX:
            new_state = self.hex_automaton.tick(state, self.rng)
        else:
            new_state = self.drift_engine.advance(
                state,
                self.catalog.climate(self.settings.climate_id),
                self.catalog.season(self.settings.season_id),
            )
        return self._with_time_of_day(new_state)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def force_refresh(self) -> WeatherChangeNotification:
        """Advance the active model once, ignoring the update interval."""
        return self._run_command(
            "force_refresh",
            {},
            lambda: self._commit(self._advance_state(self.state), "force_refresh", forced=True),
        )

    def set_dimension(self, name: "Dimension | str", value: Any) -> WeatherChangeNotification:
        """
        Set one dimension directly.

        Raises:
            InvalidInputError: Unknown dimension, or value outside [-10, 10]
        """
        def action():
            dimension = Dimension.parse(name)
            try:
                number = int(value)
            except (TypeError, ValueError):
                raise InvalidInputError(f"{dimension.value} must be an integer, got {value!r}") from None
            if number != value and not isinstance(value, str):
                raise InvalidInputError(f"{dimension.value} must be an integer, got {value!r}")
            if not DIMENSION_MIN <= number <= DIMENSION_MAX:
                raise InvalidInputError(
                    f"{dimension.value} must be between {DIMENSION_MIN} and {DIMENSION_MAX}, got {number}"
                )
            return self._commit(self.state.copy(**{dimension.value: number}), f"set {dimension.value}")

        return self._run_command("set_dimension", {"name": str(name), "value": value}, action)

    def set_climate(self, climate_id: str) -> WeatherChangeNotification:
        """
        Switch climate.

        In the dimensional model the state restarts from the climate's
        values and drifts once. In the hex model only the setting (and so
        the ruleset) changes.

        Raises:
            ConfigurationError: Unknown climate id
        """
        def action():
            climate = self.catalog.climate(climate_id)
            self.settings.climate_id = climate_id
            if self.settings.model == WeatherModel.HEX:
                return self._commit(self._with_time_of_day(self.state), f"climate {climate_id}")
            reset = WeatherState.from_profile(
                climate,
                hex_position=self.state.hex_position,
                weather_type_id=self.state.weather_type_id,
            )
            return self._commit(self._advance_state(reset), f"climate {climate_id}")

        return self._run_command("set_climate", {"climate_id": climate_id}, action)

    def set_season(self, season_id: str) -> WeatherChangeNotification:
        """
        Switch season and let the weather respond to it.

        Raises:
            ConfigurationError: Unknown season id
        """
        def action():
            self.catalog.season(season_id)
            self.settings.season_id = season_id
            if self.settings.model == WeatherModel.HEX:
                return self._commit(self._with_time_of_day(self.state), f"season {season_id}")
            return self._commit(self._advance_state(self.state), f"season {season_id}")

        return self._run_command("set_season", {"season_id": season_id}, action)

    def hex_move(self, direction: "HexDirection | int | str") -> WeatherChangeNotification:
        """
        Move one step on the hex weather map.

        Raises:
            InvalidInputError: Direction not 1-6, or the hex model is not active
        """
        def action():
            parsed = HexDirection.parse(direction)
            if self.settings.model != WeatherModel.HEX:
                raise InvalidInputError("Hex movement requires the hex weather model")
            result = self.hex_automaton.move_detailed(self.state, parsed)
            return self._commit(self._with_time_of_day(result.state), f"hex move {parsed.name}")

        return self._run_command("hex_move", {"direction": str(direction)}, action)

    def set_time_of_day(self, slot: "TimeOfDay | str") -> Optional[WeatherChangeNotification]:
        """
        Change the time slot.

        Temperature is recomputed only under the extreme-heat ruleset;
        otherwise the slot is stored and None is returned.

        Raises:
            InvalidInputError: Unknown slot
        """
        def action():
            self.settings.time_of_day = TimeOfDay.parse(slot)
            if self.ruleset != Ruleset.EXTREME_HEAT:
                self._save()
                return None
            return self._commit(self._with_time_of_day(self.state), f"time of day {self.settings.time_of_day.value}")

        return self._run_command("set_time_of_day", {"slot": str(slot)}, action)

    def set_model(self, model: "WeatherModel | str") -> WeatherChangeNotification:
        """
        Switch between the dimensional and hex models.

        Entering the hex model places the party on its saved cell, or the
        map centre, and adopts that cell's weather.
        """
        def action():
            self.settings.model = WeatherModel.parse(model)
            if self.settings.model == WeatherModel.HEX:
                position = self.state.hex_position or ORIGIN
                new_state = self.hex_automaton.enter(self.state, position)
                return self._commit(self._with_time_of_day(new_state), "enter hex model", forced=True)
            return self._commit(self._advance_state(self.state), "enter dimensional model", forced=True)

        return self._run_command("set_model", {"model": str(model)}, action)

    def set_auto_update(self, enabled: bool) -> None:
        self.settings.auto_update = bool(enabled)
        self._save()

    # -------------------------------------------------------------------------
    # World time
    # -------------------------------------------------------------------------

    def on_time_advance(self, world_hours: float, hour_of_day: Optional[int] = None) -> Optional[WeatherChangeNotification]:
        """
        React to the host clock moving.

        Args:
            world_hours: Absolute in-world time in hours
            hour_of_day: Clock hour (0-23); when given, the time slot
                follows it

        Returns:
            The notification if the weather updated, else None
        """
        run_log = get_run_log()
        last = self.session.last_update_hours

        if hour_of_day is not None:
            self.settings.time_of_day = TimeOfDay.from_hour(hour_of_day)

        if last is None or world_hours < last:
            # First sighting of the clock, or the clock was rewound
            self.session.last_update_hours = world_hours
            run_log.log_time_step(last if last is not None else world_hours, world_hours, False)
            self._save()
            return None

        elapsed = world_hours - last
        due = self.settings.auto_update and elapsed >= self.settings.update_interval_hours
        run_log.log_time_step(last, world_hours, due)
        if not due:
            return None

        logger.debug(f"Weather update due: {elapsed}h elapsed since {last}h")
        self.session.last_update_hours = world_hours
        return self._commit(self._advance_state(self.state), "time advance")
