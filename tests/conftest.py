"""
Pytest fixtures for the Dimensional Weather test suite.

Provides seeded randomness, the built-in catalog, engines and a clean run
log for every test.
"""

import pytest

from dimweather.data_models import WeatherRng, WeatherState
from dimweather.game_state.session_manager import WeatherSessionStore
from dimweather.game_state.weather_controller import WeatherController
from dimweather.observability.run_log import reset_run_log
from dimweather.weather.catalog import WeatherCatalog
from dimweather.weather.description import DescriptionComposer
from dimweather.weather.drift_engine import DimensionalDriftEngine
from dimweather.weather.effects import EffectsCalculator
from dimweather.weather.hex_automaton import HexWeatherAutomaton


# =============================================================================
# RUN LOG AND RANDOMNESS
# =============================================================================


@pytest.fixture(autouse=True)
def clean_run_log():
    """Give every test an empty, unpaused run log."""
    log = reset_run_log()
    yield log
    reset_run_log()
    log._subscribers.clear()


@pytest.fixture
def seeded_rng():
    """Provide a seeded WeatherRng for reproducible tests."""
    return WeatherRng(42)


# =============================================================================
# CATALOG AND ENGINES
# =============================================================================


@pytest.fixture
def catalog():
    """The built-in weather catalog."""
    return WeatherCatalog.default()


@pytest.fixture
def drift_engine(seeded_rng):
    return DimensionalDriftEngine(seeded_rng)


@pytest.fixture
def hex_automaton(catalog, seeded_rng):
    return HexWeatherAutomaton(catalog, seeded_rng)


@pytest.fixture
def effects_calculator():
    return EffectsCalculator()


@pytest.fixture
def composer(catalog):
    return DescriptionComposer(catalog)


@pytest.fixture
def calm_state():
    """All drifting dimensions at zero, middling variability."""
    return WeatherState(temperature=0, wind=0, precipitation=0, humidity=0, variability=5)


# =============================================================================
# SESSION FIXTURES
# =============================================================================


@pytest.fixture
def store(tmp_path):
    """Session store writing into a temporary directory."""
    return WeatherSessionStore(tmp_path / "saves")


@pytest.fixture
def controller(catalog, seeded_rng):
    """Dimensional-model controller without persistence."""
    return WeatherController(catalog=catalog, rng=seeded_rng)
