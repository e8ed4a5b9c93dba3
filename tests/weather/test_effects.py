"""
Tests for the weather effects calculator.
"""

import itertools

import pytest

from dimweather.data_models import (
    InvalidInputError,
    Movement,
    Ruleset,
    TimeOfDay,
    Visibility,
    WeatherContext,
    WeatherState,
)


def _state(t=0, w=0, p=0, h=0):
    return WeatherState(temperature=t, wind=w, precipitation=p, humidity=h)


# =============================================================================
# EXTREME HEAT
# =============================================================================


class TestExtremeHeatTemperature:
    @pytest.mark.parametrize("t,water,exhaustion,survival", [
        (10, 3.0, True, 10),
        (8, 2.0, True, 5),
        (9, 2.0, True, 5),
        (6, 1.5, False, 2),
        (5, 1.0, False, 0),
    ])
    def test_heat_bands(self, effects_calculator, t, water, exhaustion, survival):
        record = effects_calculator.effects(_state(t=t), Ruleset.EXTREME_HEAT)

        assert record.water_consumption_multiplier == water
        assert record.exhaustion_risk is exhaustion
        assert record.survival_check_modifier == survival

    def test_dry_air_adds_water(self, effects_calculator):
        record = effects_calculator.effects(_state(t=10, h=-8), Ruleset.EXTREME_HEAT)
        assert record.water_consumption_multiplier == 3.5

    def test_salt_flats_add_water(self, effects_calculator):
        record = effects_calculator.effects(
            _state(t=10, h=-8), Ruleset.EXTREME_HEAT, WeatherContext(climate_id="saltFlats")
        )
        assert record.water_consumption_multiplier == 4.0

    def test_salt_flats_below_nine(self, effects_calculator):
        record = effects_calculator.effects(
            _state(t=8), Ruleset.EXTREME_HEAT, WeatherContext(climate_id="saltFlats")
        )
        assert record.water_consumption_multiplier == 2.0


class TestExtremeHeatWind:
    def test_sandstorm_wind(self, effects_calculator):
        record = effects_calculator.effects(_state(w=9), Ruleset.EXTREME_HEAT)

        assert record.visibility == Visibility.HEAVILY_OBSCURED
        assert record.perception_penalty == -10
        assert record.ranged_attack_penalty == -10
        assert record.movement == Movement.DIFFICULT

    def test_strong_wind(self, effects_calculator):
        record = effects_calculator.effects(_state(w=7), Ruleset.EXTREME_HEAT)

        assert record.visibility == Visibility.LIGHTLY_OBSCURED
        assert record.perception_penalty == -5
        assert record.ranged_attack_penalty == -5
        assert record.movement == Movement.NORMAL

    def test_moderate_wind(self, effects_calculator):
        record = effects_calculator.effects(_state(w=5), Ruleset.EXTREME_HEAT)

        assert record.visibility == Visibility.NORMAL
        assert record.ranged_attack_penalty == -2
        assert record.perception_penalty == 0

    @pytest.mark.parametrize("w,damage", [(6, 0), (7, 1), (9, 2), (10, 2)])
    def test_glass_storm_damage(self, effects_calculator, w, damage):
        record = effects_calculator.effects(
            _state(w=w), Ruleset.EXTREME_HEAT, WeatherContext(climate_id="glassPlateau")
        )
        assert record.direct_damage == damage
        assert record.notes

    def test_no_glass_damage_elsewhere(self, effects_calculator):
        record = effects_calculator.effects(
            _state(w=10), Ruleset.EXTREME_HEAT, WeatherContext(climate_id="saltFlats")
        )
        assert record.direct_damage == 0

    def test_silt_adds_to_wind_penalty(self, effects_calculator):
        context = WeatherContext(climate_id="seaOfSilt")

        moderate = effects_calculator.effects(_state(w=5), Ruleset.EXTREME_HEAT, context)
        severe = effects_calculator.effects(_state(w=9), Ruleset.EXTREME_HEAT, context)

        assert moderate.visibility == Visibility.HEAVILY_OBSCURED
        assert moderate.perception_penalty == -8
        assert severe.perception_penalty == -18


# =============================================================================
# STANDARD
# =============================================================================


class TestStandardRules:
    def test_calm_day_has_no_effects(self, effects_calculator, calm_state):
        record = effects_calculator.effects(calm_state, Ruleset.STANDARD)

        assert not record.has_effects
        assert record.summary_lines() == []

    def test_heavy_precipitation(self, effects_calculator):
        record = effects_calculator.effects(_state(p=7, w=5, h=4), Ruleset.STANDARD)

        assert record.visibility == Visibility.HEAVILY_OBSCURED
        assert record.perception_penalty == -5
        assert record.ranged_attack_penalty == 0

    def test_light_precipitation(self, effects_calculator):
        record = effects_calculator.effects(_state(p=4), Ruleset.STANDARD)

        assert record.visibility == Visibility.LIGHTLY_OBSCURED
        assert record.perception_penalty == -2

    def test_fog(self, effects_calculator):
        record = effects_calculator.effects(_state(h=6, w=-4), Ruleset.STANDARD)

        assert record.visibility == Visibility.HEAVILY_OBSCURED
        assert record.perception_penalty == -5

    def test_fog_and_rain_stack_penalties(self, effects_calculator):
        """Penalties add while visibility takes the worst level."""
        record = effects_calculator.effects(_state(p=4, h=6, w=-4), Ruleset.STANDARD)

        assert record.visibility == Visibility.HEAVILY_OBSCURED
        assert record.perception_penalty == -7

    @pytest.mark.parametrize("w,ranged,movement", [
        (8, -4, Movement.DIFFICULT),
        (6, -2, Movement.NORMAL),
        (5, 0, Movement.NORMAL),
    ])
    def test_wind(self, effects_calculator, w, ranged, movement):
        record = effects_calculator.effects(_state(w=w), Ruleset.STANDARD)

        assert record.ranged_attack_penalty == ranged
        assert record.movement == movement

    @pytest.mark.parametrize("t,exhaustion,survival", [
        (-7, True, 5),
        (8, True, 5),
        (-5, False, 2),
        (6, False, 2),
        (4, False, 0),
    ])
    def test_temperature_extremes(self, effects_calculator, t, exhaustion, survival):
        record = effects_calculator.effects(_state(t=t), Ruleset.STANDARD)

        assert record.exhaustion_risk is exhaustion
        assert record.survival_check_modifier == survival

    def test_snow_makes_difficult_terrain(self, effects_calculator):
        record = effects_calculator.effects(_state(t=-4, p=6), Ruleset.STANDARD)

        assert record.movement == Movement.DIFFICULT
        assert record.visibility == Visibility.LIGHTLY_OBSCURED


class TestEffectsContract:
    def test_total_over_value_grid(self, effects_calculator):
        """Every in-range state yields a record under both rulesets."""
        values = (-10, -5, 0, 5, 10)
        contexts = (WeatherContext(), WeatherContext(climate_id="glassPlateau"),
                    WeatherContext(climate_id="seaOfSilt"))
        for t, w, p, h in itertools.product(values, repeat=4):
            state = _state(t, w, p, h)
            for ruleset in Ruleset:
                for context in contexts:
                    record = effects_calculator.effects(state, ruleset, context)
                    assert record.perception_penalty <= 0
                    assert record.ranged_attack_penalty <= 0
                    assert record.water_consumption_multiplier >= 1.0

    def test_unknown_ruleset(self, effects_calculator, calm_state):
        with pytest.raises(InvalidInputError):
            effects_calculator.effects(calm_state, "arctic")

    def test_ruleset_by_name(self, effects_calculator):
        record = effects_calculator.effects(_state(t=10), "extremeHeat")
        assert record.water_consumption_multiplier == 3.0

    def test_to_dict(self, effects_calculator):
        data = effects_calculator.effects(_state(w=9), Ruleset.EXTREME_HEAT).to_dict()

        assert data["visibility"] == "heavily_obscured"
        assert data["movement"] == "difficult"
        assert data["ranged_attack_penalty"] == -10


# =============================================================================
# SURVIVAL NOTES
# =============================================================================


class TestSurvivalNotes:
    @pytest.mark.parametrize("t,fragment", [
        (10, "DC 20 Constitution saving throw every hour"),
        (9, "DC 15 Constitution saving throw every hour"),
        (8, "every 2 hours"),
        (7, "Unacclimated characters"),
    ])
    def test_heat_lines(self, effects_calculator, t, fragment):
        notes = effects_calculator.survival_notes(_state(t=t), Ruleset.EXTREME_HEAT)
        assert fragment in notes[0]

    def test_no_heat_line_when_mild(self, effects_calculator):
        assert effects_calculator.survival_notes(_state(t=5), Ruleset.EXTREME_HEAT) == []

    def test_extreme_wind_lines(self, effects_calculator):
        notes = effects_calculator.survival_notes(_state(w=10), Ruleset.EXTREME_HEAT)

        assert "Visibility reduced to 30 feet during sandstorms" in notes
        assert "Ranged attacks impossible, movement halved" in notes

    def test_water_line(self, effects_calculator):
        notes = effects_calculator.survival_notes(_state(h=-9), Ruleset.EXTREME_HEAT)
        assert notes == ["Water consumption doubled"]

    def test_glass_storm_line(self, effects_calculator):
        notes = effects_calculator.survival_notes(
            _state(w=7), Ruleset.EXTREME_HEAT, WeatherContext(climate_id="glassPlateau")
        )
        assert any("Glass storms" in n for n in notes)

    def test_time_of_day_lines(self, effects_calculator):
        afternoon = effects_calculator.survival_notes(
            _state(t=8), Ruleset.EXTREME_HEAT, WeatherContext(time_of_day=TimeOfDay.AFTERNOON)
        )
        night = effects_calculator.survival_notes(
            _state(t=0), Ruleset.EXTREME_HEAT, WeatherContext(time_of_day="late_night")
        )

        assert "Afternoon heat increases water consumption by 50%" in afternoon
        assert night == ["Cold night requires warm clothing or shelter"]

    def test_standard_notes_are_effect_summary(self, effects_calculator):
        state = _state(p=7, w=8)
        notes = effects_calculator.survival_notes(state, Ruleset.STANDARD)

        assert notes == effects_calculator.effects(state, Ruleset.STANDARD).summary_lines()
        assert "Area is heavily obscured" in notes
        assert "Movement counts as difficult terrain" in notes
