"""
Dimensional Weather - Main Entry Point

Runs a weather session from the command line: advances world time in
steps, prints a report whenever the weather changes, and saves the
session at the end.
"""

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from dimweather.ai.llm_provider import LLMConfig, LLMManager, LLMProvider
from dimweather.data_models import (
    ConfigurationError,
    TimeOfDay,
    WeatherError,
    WeatherModel,
    WeatherRng,
    WeatherState,
)
from dimweather.game_state.session_manager import (
    DEFAULT_UPDATE_INTERVAL_HOURS,
    WeatherSession,
    WeatherSessionStore,
    WeatherSettings,
)
from dimweather.game_state.weather_controller import (
    WeatherChangeNotification,
    WeatherController,
)
from dimweather.narrative.weather_narrator import WeatherNarrator
from dimweather.weather.catalog import WeatherCatalog
from dimweather.weather.presets import DEFAULT_CLIMATE, DEFAULT_SEASON


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

@dataclass
class WeatherConfig:
    """Configuration for a weather session."""

    save_dir: Optional[Path] = field(default_factory=lambda: Path("saves"))
    session_name: str = "Weather Session"
    load_path: Optional[Path] = None
    catalog_path: Optional[Path] = None
    seed: Optional[int] = None

    # Weather settings
    model: str = WeatherModel.DIMENSIONAL.value
    climate: str = DEFAULT_CLIMATE
    season: str = DEFAULT_SEASON
    time_of_day: str = TimeOfDay.NOON.value
    update_interval_hours: float = DEFAULT_UPDATE_INTERVAL_HOURS
    variability: int = 5
    auto_update: bool = True

    # Simulation
    hours: float = 24
    step_hours: float = 1
    start_hour: int = 6
    forecast_days: int = 0
    hex_moves: list[str] = field(default_factory=list)

    # LLM Configuration
    llm_provider: str = "none"  # none, mock, anthropic, openai
    llm_model: Optional[str] = None

    verbose: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.save_dir, str):
            self.save_dir = Path(self.save_dir)
        if isinstance(self.load_path, str):
            self.load_path = Path(self.load_path)
        if isinstance(self.catalog_path, str):
            self.catalog_path = Path(self.catalog_path)


# =============================================================================
# SESSION ASSEMBLY
# =============================================================================

def build_catalog(config: WeatherConfig) -> WeatherCatalog:
    if config.catalog_path:
        try:
            return WeatherCatalog.from_json_file(config.catalog_path)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Catalog file not found: {config.catalog_path}") from e
    return WeatherCatalog.default()


def build_controller(config: WeatherConfig) -> WeatherController:
    """Create the controller, loading a saved session when asked to."""
    catalog = build_catalog(config)
    store = WeatherSessionStore(config.save_dir) if config.save_dir else None
    rng = WeatherRng(config.seed)

    if config.load_path:
        if store is None:
            store = WeatherSessionStore(config.load_path.parent)
        try:
            session = store.load(config.load_path)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Saved session not found: {config.load_path}") from e
    else:
        settings = WeatherSettings(
            climate_id=config.climate,
            season_id=config.season,
            time_of_day=config.time_of_day,
            model=config.model,
            update_interval_hours=config.update_interval_hours,
            auto_update=config.auto_update,
        )
        climate = catalog.climate(config.climate)
        catalog.season(config.season)
        session = WeatherSession(
            session_name=config.session_name,
            state=WeatherState.from_profile(climate, variability=config.variability),
            settings=settings,
        )

    return WeatherController(catalog=catalog, session=session, store=store, rng=rng)


def build_narrator(config: WeatherConfig, catalog: WeatherCatalog) -> Optional[WeatherNarrator]:
    if config.llm_provider == "none":
        return None
    llm_config = LLMConfig(provider=LLMProvider(config.llm_provider))
    if config.llm_model:
        llm_config.model = config.llm_model
    return WeatherNarrator(LLMManager(llm_config), catalog)


def run_simulation(
    controller: WeatherController,
    config: WeatherConfig,
    narrator: Optional[WeatherNarrator] = None,
    output: Callable[[str], None] = print,
) -> list[WeatherChangeNotification]:
    """
    Step world time forward and print the weather as it changes.

    Returns the notifications raised along the way.
    """
    changes: list[WeatherChangeNotification] = []
    controller.subscribe(changes.append)

    def show(heading: str) -> None:
        description = None
        if narrator is not None:
            description = narrator.narrate(controller.state, controller.ruleset, controller.context)
        output(f"\n--- {heading} ---")
        output(controller.report(description))

    show("Current weather")

    for direction in config.hex_moves:
        controller.hex_move(direction)
        show(f"Moved {direction}")

    controller.on_time_advance(0, hour_of_day=config.start_hour)
    elapsed = 0.0
    while elapsed + config.step_hours <= config.hours:
        elapsed += config.step_hours
        hour = int(config.start_hour + elapsed) % 24
        if controller.on_time_advance(elapsed, hour_of_day=hour) is not None:
            show(f"Hour {elapsed:g} ({hour:02d}:00)")

    if config.forecast_days:
        output(f"\n--- {config.forecast_days}-Day Forecast ---")
        for day in controller.forecast(config.forecast_days):
            output(str(day))

    controller.unsubscribe(changes.append)
    return changes


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Dimensional Weather - procedural weather for tabletop sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m dimweather.main                                  # A temperate summer day
  python -m dimweather.main --climate tundra --season winter --hours 72
  python -m dimweather.main --climate sandyWastes --season highSun --forecast 5
  python -m dimweather.main --model hex --climate saltFlats --hex-move NE E 3
        """
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for reproducible weather",
    )

    weather_group = parser.add_argument_group("Weather Options")
    weather_group.add_argument(
        "--model",
        type=str,
        default=WeatherModel.DIMENSIONAL.value,
        choices=[m.value for m in WeatherModel],
        help="Weather generation model (default: dimensional)",
    )
    weather_group.add_argument(
        "--climate",
        type=str,
        default=DEFAULT_CLIMATE,
        help=f"Climate preset id (default: {DEFAULT_CLIMATE})",
    )
    weather_group.add_argument(
        "--season",
        type=str,
        default=DEFAULT_SEASON,
        help=f"Season preset id (default: {DEFAULT_SEASON})",
    )
    weather_group.add_argument(
        "--time-of-day",
        type=str,
        default=TimeOfDay.NOON.value,
        help="Starting time slot (default: noon)",
    )
    weather_group.add_argument(
        "--variability",
        type=int,
        default=5,
        help="Starting variability 0-10 (default: 5)",
    )
    weather_group.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_UPDATE_INTERVAL_HOURS,
        help=f"Hours between automatic updates (default: {DEFAULT_UPDATE_INTERVAL_HOURS})",
    )
    weather_group.add_argument(
        "--catalog",
        type=Path,
        help="JSON campaign catalog layered over the built-in tables",
    )

    sim_group = parser.add_argument_group("Simulation Options")
    sim_group.add_argument(
        "--hours",
        type=float,
        default=24,
        help="World hours to simulate (default: 24)",
    )
    sim_group.add_argument(
        "--step-hours",
        type=float,
        default=1,
        help="Clock step in hours (default: 1)",
    )
    sim_group.add_argument(
        "--start-hour",
        type=int,
        default=6,
        help="Clock hour the simulation starts at (default: 6)",
    )
    sim_group.add_argument(
        "--forecast",
        type=int,
        default=0,
        metavar="DAYS",
        help="Print a forecast for this many days after the run",
    )
    sim_group.add_argument(
        "--hex-move",
        nargs="*",
        default=[],
        metavar="DIR",
        help="Hex moves to make before the run (1-6 or NE/E/SE/SW/W/NW)",
    )

    session_group = parser.add_argument_group("Session Options")
    session_group.add_argument(
        "--save-dir",
        type=Path,
        default=Path("saves"),
        help="Directory for session saves (default: saves)",
    )
    session_group.add_argument(
        "--no-save",
        action="store_true",
        help="Do not write a save file",
    )
    session_group.add_argument(
        "--session-name",
        type=str,
        default="Weather Session",
        help="Name for a new session",
    )
    session_group.add_argument(
        "--load",
        type=Path,
        help="Resume a saved session instead of starting a new one",
    )

    llm_group = parser.add_argument_group("LLM Options")
    llm_group.add_argument(
        "--llm-provider",
        type=str,
        default="none",
        choices=["none", "mock", "anthropic", "openai"],
        help="LLM provider for weather narration (default: none)",
    )
    llm_group.add_argument(
        "--llm-model",
        type=str,
        help="Specific model to use (provider-dependent)",
    )

    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> WeatherConfig:
    """Create WeatherConfig from parsed arguments."""
    return WeatherConfig(
        save_dir=None if args.no_save else args.save_dir,
        session_name=args.session_name,
        load_path=args.load,
        catalog_path=args.catalog,
        seed=args.seed,
        model=args.model,
        climate=args.climate,
        season=args.season,
        time_of_day=args.time_of_day,
        update_interval_hours=args.interval,
        variability=args.variability,
        hours=args.hours,
        step_hours=args.step_hours,
        start_hour=args.start_hour,
        forecast_days=args.forecast,
        hex_moves=list(args.hex_move),
        llm_provider=args.llm_provider,
        llm_model=args.llm_model,
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def run_cli(argv: Optional[list[str]] = None) -> WeatherController:
    """Run a session from command line arguments and return its controller."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    config = create_config_from_args(args)

    print("=" * 60)
    print("DIMENSIONAL WEATHER v0.1.0")
    print("=" * 60)

    try:
        controller = build_controller(config)
        narrator = build_narrator(config, controller.catalog)
        changes = run_simulation(controller, config, narrator)
    except WeatherError as e:
        logger.error(f"Weather session aborted: {e}")
        raise SystemExit(2) from e

    logger.info(f"Simulated {config.hours:g}h: {len(changes)} weather changes")
    if controller.store is not None:
        path = controller.store.save(controller.session)
        print(f"\nSession saved to {path}")
    return controller


def main(argv: Optional[list[str]] = None) -> int:
    """Console entry point; exits 2 when the session cannot be built."""
    run_cli(argv)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
