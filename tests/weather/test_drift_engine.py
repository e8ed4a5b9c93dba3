"""
Tests for the dimensional drift engine.

Covers the pull toward climate and season, bounded noise, rounding,
moisture starvation, history and the multi-day forecast.
"""

import pytest

from dimweather.data_models import (
    ConfigurationError,
    DimensionProfile,
    Ruleset,
    WeatherRng,
    WeatherState,
)
from dimweather.weather.drift_engine import (
    HISTORY_LIMIT,
    DimensionalDriftEngine,
    change_indicator,
    effective_variability,
)
from dimweather.weather.presets import CLIMATES, SEASONS


def _profile(preset_id, temperature=0, wind=0, precipitation=0, humidity=0, variability=0):
    return DimensionProfile(
        preset_id=preset_id,
        name=preset_id.title(),
        temperature=temperature,
        wind=wind,
        precipitation=precipitation,
        humidity=humidity,
        variability=variability,
        ruleset=Ruleset.STANDARD,
    )


# =============================================================================
# EXACT DRIFT WITHOUT NOISE
# =============================================================================


class TestDeterministicDrift:
    """With zero variability everywhere the noise term vanishes."""

    def test_pull_toward_climate_and_season(self, drift_engine):
        """Each dimension moves a fifth toward climate and an eighth toward season."""
        state = WeatherState(temperature=0, wind=0, precipitation=0, humidity=0, variability=0)
        climate = _profile("testClimate", temperature=10, wind=-10, precipitation=5, humidity=-5)
        season = _profile("testSeason", temperature=8, wind=0, precipitation=4, humidity=-4)

        result = drift_engine.advance(state, climate, season)

        assert result.temperature == 3  # 0 + 2 + 1
        assert result.wind == -2
        assert result.precipitation == 2  # 1.5 rounds up
        assert result.humidity == -1  # -1.5 rounds up to -1

    def test_state_at_target_stays_put(self, drift_engine):
        """A state already sitting on both targets does not move."""
        state = WeatherState(temperature=4, wind=-2, precipitation=1, humidity=3, variability=0)
        profile = _profile("still", temperature=4, wind=-2, precipitation=1, humidity=3)

        result = drift_engine.advance(state, profile, profile)

        assert result.dimensions() == state.dimensions()

    def test_input_state_not_mutated(self, drift_engine):
        """Advance returns a new state and leaves the input alone."""
        state = WeatherState(temperature=0, wind=0, precipitation=0, humidity=0, variability=0)
        climate = _profile("hot", temperature=10)

        result = drift_engine.advance(state, climate, climate)

        assert result is not state
        assert state.temperature == 0

    def test_variability_and_hex_fields_preserved(self, drift_engine):
        """Drift touches the four drifting dimensions only."""
        state = WeatherState(variability=0, hex_position=(1, 0), weather_type_id="hot")
        climate = _profile("flat")

        result = drift_engine.advance(state, climate, climate)

        assert result.variability == 0
        assert result.hex_position == (1, 0)
        assert result.weather_type_id == "hot"


# =============================================================================
# MOISTURE STARVATION
# =============================================================================


class TestMoistureStarvation:
    """Very dry air eats into precipitation."""

    def test_dry_air_reduces_precipitation(self, drift_engine):
        """Humidity below -5 with precipitation above 0 loses one or two points."""
        state = WeatherState(temperature=0, wind=0, precipitation=5, humidity=-10, variability=0)
        profile = _profile("parched", precipitation=5, humidity=-10)

        result = drift_engine.advance(state, profile, profile)

        assert result.humidity == -10
        assert result.precipitation in (3, 4)
        calculation = drift_engine.last_calculation
        assert calculation.starvation_applied
        assert calculation.precipitation_reduction == 5 - result.precipitation

    def test_no_starvation_at_threshold(self, drift_engine):
        """Humidity of exactly -5 does not trigger starvation."""
        state = WeatherState(precipitation=5, humidity=-5, variability=0)
        profile = _profile("edge", precipitation=5, humidity=-5)

        result = drift_engine.advance(state, profile, profile)

        assert result.precipitation == 5
        assert not drift_engine.last_calculation.starvation_applied

    def test_no_starvation_without_precipitation(self, drift_engine):
        """Dry air with no precipitation leaves precipitation alone."""
        state = WeatherState(precipitation=-3, humidity=-10, variability=0)
        profile = _profile("dust", precipitation=-3, humidity=-10)

        result = drift_engine.advance(state, profile, profile)

        assert result.precipitation == -3

    def test_starvation_draw_logged(self, drift_engine, clean_run_log):
        """The starvation roll is logged with its reason."""
        state = WeatherState(precipitation=5, humidity=-10, variability=0)
        profile = _profile("parched", precipitation=5, humidity=-10)

        drift_engine.advance(state, profile, profile)

        reasons = [d.reason for d in clean_run_log.get_draws()]
        assert "moisture starvation" in reasons


# =============================================================================
# BOUNDS AND NOISE
# =============================================================================


class TestBoundsAndNoise:
    """Results stay in range and the noise stays within its amplitude."""

    def test_results_stay_in_range_for_every_preset(self):
        """Every climate and season pairing keeps dimensions in [-10, 10]."""
        engine = DimensionalDriftEngine(WeatherRng(123, log_draws=False))
        for climate in CLIMATES.values():
            for season in SEASONS.values():
                state = WeatherState.from_profile(climate, variability=10)
                for _ in range(10):
                    state = engine.advance(state, climate, season)
                    for value in (state.temperature, state.wind, state.precipitation, state.humidity):
                        assert -10 <= value <= 10
                        assert isinstance(value, int)

    def test_saturated_state_clamped(self, drift_engine):
        """A maxed state pulled toward a maxed target never exceeds the ceiling."""
        state = WeatherState(temperature=10, wind=10, precipitation=10, humidity=10, variability=10)
        profile = _profile("max", 10, 10, 10, 10, variability=10)

        result = drift_engine.advance(state, profile, profile)

        # Noise is at most +/-2 here, and anything above 10 is clamped
        assert 8 <= result.temperature <= 10
        assert 8 <= result.wind <= 10

    def test_noise_bounded_by_effective_variability(self, drift_engine):
        """Recorded noise never exceeds effective variability over five."""
        state = WeatherState(variability=9)
        climate = CLIMATES["mountain"]
        season = SEASONS["spring"]

        for _ in range(20):
            state = drift_engine.advance(state, climate, season)
            calculation = drift_engine.last_calculation
            bound = calculation.effective_variability / 5
            for drift in calculation.dimensions.values():
                assert abs(drift.noise) <= bound

    def test_effective_variability_is_floored_mean(self):
        """Effective variability is the floor of the three-way mean."""
        state = WeatherState(variability=5)
        assert effective_variability(state, _profile("a", variability=3), _profile("b", variability=3)) == 3
        assert effective_variability(state, _profile("a", variability=10), _profile("b", variability=10)) == 8

    def test_same_seed_same_sequence(self):
        """Two engines seeded alike produce identical runs."""
        climate, season = CLIMATES["coastal"], SEASONS["fall"]
        runs = []
        for _ in range(2):
            engine = DimensionalDriftEngine(WeatherRng(99))
            state = WeatherState.from_profile(climate)
            sequence = []
            for _ in range(8):
                state = engine.advance(state, climate, season)
                sequence.append(state.dimensions())
            runs.append(sequence)

        assert runs[0] == runs[1]

    def test_one_noise_draw_per_dimension(self, drift_engine, clean_run_log):
        """Each drifting dimension draws its noise once, in a fixed order."""
        drift_engine.advance(WeatherState(), CLIMATES["temperate"], SEASONS["summer"])

        reasons = [d.reason for d in clean_run_log.get_draws()]
        assert reasons[:4] == [
            "drift temperature noise",
            "drift wind noise",
            "drift precipitation noise",
            "drift humidity noise",
        ]


# =============================================================================
# ERRORS
# =============================================================================


class TestDriftErrors:
    """Missing presets are configuration errors."""

    def test_missing_climate(self, drift_engine):
        with pytest.raises(ConfigurationError):
            drift_engine.advance(WeatherState(), None, SEASONS["summer"])

    def test_missing_season(self, drift_engine):
        with pytest.raises(ConfigurationError):
            drift_engine.advance(WeatherState(), CLIMATES["temperate"], None)


# =============================================================================
# HISTORY
# =============================================================================


class TestDriftHistory:
    """Recent calculations are kept newest first."""

    def test_history_limited(self, drift_engine):
        state = WeatherState()
        for _ in range(HISTORY_LIMIT + 2):
            state = drift_engine.advance(state, CLIMATES["temperate"], SEASONS["summer"])

        assert len(drift_engine.history) == HISTORY_LIMIT

    def test_newest_first(self, drift_engine):
        """The first history entry describes the latest advance."""
        state = WeatherState()
        for _ in range(3):
            state = drift_engine.advance(state, CLIMATES["desert"], SEASONS["summer"])

        latest = drift_engine.history[0]
        assert latest.climate_id == "desert"
        assert latest.dimensions["temperature"].result == state.temperature

    def test_clear_history(self, drift_engine):
        drift_engine.advance(WeatherState(), CLIMATES["temperate"], SEASONS["summer"])
        drift_engine.clear_history()
        assert drift_engine.last_calculation is None


# =============================================================================
# FORECAST
# =============================================================================


class TestForecast:
    """Multi-day projections."""

    def test_forecast_length_and_numbering(self, drift_engine):
        days = drift_engine.forecast(WeatherState(), CLIMATES["temperate"], SEASONS["spring"], days=5)

        assert [d.day for d in days] == [1, 2, 3, 4, 5]

    def test_forecast_leaves_state_and_history_alone(self, drift_engine):
        """Forecasting neither mutates the state nor records history."""
        state = WeatherState(temperature=2, variability=6)
        drift_engine.forecast(state, CLIMATES["coastal"], SEASONS["fall"], days=3)

        assert state.temperature == 2
        assert drift_engine.history == []

    def test_forecast_variability_widens(self, drift_engine):
        """Later days use equal or greater variability, capped at 10."""
        days = drift_engine.forecast(
            WeatherState(variability=5), CLIMATES["temperate"], SEASONS["summer"], days=5
        )

        variabilities = [d.variability for d in days]
        assert variabilities == sorted(variabilities)
        assert variabilities[0] == 5
        assert all(v <= 10 for v in variabilities)
        assert all(d.state.variability == 5 for d in days)

    def test_forecast_change_words(self, drift_engine):
        days = drift_engine.forecast(WeatherState(), CLIMATES["desert"], SEASONS["summer"], days=4)

        allowed = {"", " (warmer)", " (cooler)", " (windier)", " (calmer)",
                   " (wetter)", " (drier)", " (more humid)", " (less humid)"}
        for day in days:
            assert set(day.changes.values()) <= allowed
            assert str(day).startswith(f"Day {day.day}: Temperature")

    def test_zero_days(self, drift_engine):
        assert drift_engine.forecast(WeatherState(), CLIMATES["temperate"], SEASONS["summer"], days=0) == []


class TestChangeIndicator:
    """Direction words for forecast readouts."""

    def test_temperature_words(self):
        assert change_indicator(3, 1, "temperature") == " (warmer)"
        assert change_indicator(1, 3, "temperature") == " (cooler)"

    def test_other_dimensions(self):
        assert change_indicator(2, 0, "wind") == " (windier)"
        assert change_indicator(-2, 0, "precipitation") == " (drier)"
        assert change_indicator(5, 4, "humidity") == " (more humid)"

    def test_no_change_or_no_previous(self):
        assert change_indicator(4, 4, "wind") == ""
        assert change_indicator(4, None, "wind") == ""
