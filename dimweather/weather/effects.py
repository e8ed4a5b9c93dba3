"""
Weather effects calculator.

Turns a WeatherState into the mechanical consequences a game master
applies at the table: visibility, movement, attack and perception
penalties, exhaustion risk, water consumption and direct damage.
Penalties and multipliers from separate rules add together; visibility
takes the worst level any rule imposes.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from dimweather.data_models import (
    Movement,
    Ruleset,
    TimeOfDay,
    Visibility,
    WeatherContext,
    WeatherState,
)


# Terrains with their own hazards under the extreme-heat ruleset
GLASS_TERRAIN = "glassPlateau"
SILT_TERRAIN = "seaOfSilt"
SALT_TERRAIN = "saltFlats"


@dataclass
class EffectRecord:
    """Mechanical effects of the current weather."""

    visibility: Visibility = Visibility.NORMAL
    movement: Movement = Movement.NORMAL
    ranged_attack_penalty: int = 0
    perception_penalty: int = 0
    survival_check_modifier: int = 0
    exhaustion_risk: bool = False
    water_consumption_multiplier: float = 1.0
    direct_damage: int = 0
    notes: list[str] = field(default_factory=list)

    def obscure(self, level: Visibility) -> None:
        self.visibility = self.visibility.worst(level)

    @property
    def has_effects(self) -> bool:
        return (
            self.visibility != Visibility.NORMAL
            or self.movement != Movement.NORMAL
            or self.ranged_attack_penalty != 0
            or self.perception_penalty != 0
            or self.survival_check_modifier != 0
            or self.exhaustion_risk
            or self.water_consumption_multiplier != 1.0
            or self.direct_damage != 0
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "visibility": self.visibility.value,
            "movement": self.movement.value,
            "ranged_attack_penalty": self.ranged_attack_penalty,
            "perception_penalty": self.perception_penalty,
            "survival_check_modifier": self.survival_check_modifier,
            "exhaustion_risk": self.exhaustion_risk,
            "water_consumption_multiplier": self.water_consumption_multiplier,
            "direct_damage": self.direct_damage,
            "notes": list(self.notes),
        }

    def summary_lines(self) -> list[str]:
        """Table-ready lines for the non-default effects."""
        lines = []
        if self.visibility == Visibility.HEAVILY_OBSCURED:
            lines.append("Area is heavily obscured")
        elif self.visibility == Visibility.LIGHTLY_OBSCURED:
            lines.append("Area is lightly obscured")
        if self.perception_penalty:
            lines.append(f"Perception checks {self.perception_penalty:+d}")
        if self.ranged_attack_penalty:
            lines.append(f"Ranged attacks {self.ranged_attack_penalty:+d}")
        if self.movement == Movement.DIFFICULT:
            lines.append("Movement counts as difficult terrain")
        if self.survival_check_modifier:
            lines.append(f"Survival check DC {self.survival_check_modifier:+d}")
        if self.exhaustion_risk:
            lines.append("Risk of exhaustion without protection")
        if self.water_consumption_multiplier != 1.0:
            lines.append(f"Water consumption x{self.water_consumption_multiplier:g}")
        if self.direct_damage:
            lines.append(f"{self.direct_damage} damage per round to exposed characters")
        lines.extend(self.notes)
        return lines


class EffectsCalculator:
    """Derives EffectRecords. Stateless; one instance can serve any session."""

    def effects(
        self,
        state: WeatherState,
        ruleset: "Ruleset | str",
        context: Optional[WeatherContext] = None,
    ) -> EffectRecord:
        """
        Calculate the mechanical effects of state.

        Args:
            state: Weather to evaluate
            ruleset: Which threshold table applies
            context: Climate id for terrain hazards (optional)

        Returns:
            EffectRecord

        Raises:
            InvalidInputError: If ruleset is not recognised
        """
        ruleset = Ruleset.parse(ruleset)
        context = context or WeatherContext()
        record = EffectRecord()
        if ruleset == Ruleset.EXTREME_HEAT:
            self._extreme_heat(state, context, record)
        else:
            self._standard(state, record)
        return record

    def _extreme_heat(self, state: WeatherState, context: WeatherContext, record: EffectRecord) -> None:
        t, w, h = state.temperature, state.wind, state.humidity

        if t >= 10:
            record.exhaustion_risk = True
            record.survival_check_modifier += 10
            record.water_consumption_multiplier = 3.0
        elif t >= 8:
            record.exhaustion_risk = True
            record.survival_check_modifier += 5
            record.water_consumption_multiplier = 2.0
        elif t >= 6:
            record.survival_check_modifier += 2
            record.water_consumption_multiplier = 1.5

        if w >= 9:
            record.obscure(Visibility.HEAVILY_OBSCURED)
            record.perception_penalty -= 10
            record.ranged_attack_penalty -= 10
            record.movement = Movement.DIFFICULT
        elif w >= 7:
            record.obscure(Visibility.LIGHTLY_OBSCURED)
            record.perception_penalty -= 5
            record.ranged_attack_penalty -= 5
        elif w >= 5:
            record.ranged_attack_penalty -= 2

        terrain = context.climate_id
        if terrain == GLASS_TERRAIN and w >= 6:
            record.direct_damage += (w - 5) // 2
            record.notes.append("Wind-driven glass shards cut exposed skin")
        if terrain == SILT_TERRAIN and w >= 5:
            record.obscure(Visibility.HEAVILY_OBSCURED)
            record.perception_penalty -= 8
            record.notes.append("Silt clouds choke the air")
        if terrain == SALT_TERRAIN and t >= 9:
            record.water_consumption_multiplier += 0.5

        if h <= -8:
            record.water_consumption_multiplier += 0.5

    def _standard(self, state: WeatherState, record: EffectRecord) -> None:
        t, w, p, h = state.temperature, state.wind, state.precipitation, state.humidity

        if p >= 7:
            record.obscure(Visibility.HEAVILY_OBSCURED)
            record.perception_penalty -= 5
        elif p >= 4:
            record.obscure(Visibility.LIGHTLY_OBSCURED)
            record.perception_penalty -= 2

        # Fog
        if h > 5 and w < -3:
            record.obscure(Visibility.HEAVILY_OBSCURED)
            record.perception_penalty -= 5

        if w >= 8:
            record.ranged_attack_penalty -= 4
            record.movement = Movement.DIFFICULT
        elif w >= 6:
            record.ranged_attack_penalty -= 2

        if t <= -7 or t >= 8:
            record.exhaustion_risk = True
            record.survival_check_modifier += 5
        elif t <= -5 or t >= 6:
            record.survival_check_modifier += 2

        # Snow accumulation
        if t < -3 and p > 5:
            record.movement = Movement.DIFFICULT

    def survival_notes(
        self,
        state: WeatherState,
        ruleset: "Ruleset | str",
        context: Optional[WeatherContext] = None,
    ) -> list[str]:
        """Survival rules text for the current conditions."""
        ruleset = Ruleset.parse(ruleset)
        context = context or WeatherContext()
        if ruleset != Ruleset.EXTREME_HEAT:
            return self.effects(state, ruleset, context).summary_lines()

        t, w, h = state.temperature, state.wind, state.humidity
        rules: list[str] = []

        if t >= 10:
            rules.append(
                "Characters must make a DC 20 Constitution saving throw every hour "
                "or gain one level of exhaustion (130°F+)"
            )
        elif t >= 9:
            rules.append(
                "Characters must make a DC 15 Constitution saving throw every hour "
                "or gain one level of exhaustion (120°F)"
            )
        elif t >= 8:
            rules.append(
                "Characters must make a DC 10 Constitution saving throw every 2 hours "
                "or gain one level of exhaustion (105°F)"
            )
        elif t >= 6:
            rules.append(
                "Unacclimated characters must make a DC 10 Constitution check "
                "after 4 hours of activity (90-100°F)"
            )

        if w > 7:
            rules.append("Visibility reduced to 30 feet during sandstorms")
        if w > 9:
            rules.append("Ranged attacks impossible, movement halved")
        if h < -8:
            rules.append("Water consumption doubled")
        if context.climate_id == GLASS_TERRAIN and w > 6:
            rules.append("Glass storms deal 1d6 slashing damage per round to unprotected characters")

        slot = context.time_of_day
        if slot == TimeOfDay.AFTERNOON and t >= 8:
            rules.append("Afternoon heat increases water consumption by 50%")
        if slot in (TimeOfDay.NIGHT, TimeOfDay.LATE_NIGHT) and t <= 0:
            rules.append("Cold night requires warm clothing or shelter")

        return rules
