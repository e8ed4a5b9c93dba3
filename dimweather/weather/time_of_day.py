"""
Time-of-day temperature modulation.

Recomputes temperature from the climate/season baseline plus a fixed
offset for the current time slot. Nothing else on the state is touched.
"""

from types import MappingProxyType
from typing import Mapping, Optional
import logging
import math

from dimweather.data_models import (
    DimensionProfile,
    TimeOfDay,
    WeatherState,
    clamp,
)

logger = logging.getLogger(__name__)


TIME_OF_DAY_OFFSETS: Mapping[TimeOfDay, int] = MappingProxyType({
    TimeOfDay.EARLY_MORNING: -4,
    TimeOfDay.MID_MORNING: 0,
    TimeOfDay.NOON: 2,
    TimeOfDay.AFTERNOON: 3,
    TimeOfDay.EVENING: -1,
    TimeOfDay.NIGHT: -5,
    TimeOfDay.LATE_NIGHT: -7,
})

TIME_OF_DAY_NARRATIVE: Mapping[TimeOfDay, str] = MappingProxyType({
    TimeOfDay.EARLY_MORNING: "The cool morning air provides a brief respite from Athas's heat.",
    TimeOfDay.MID_MORNING: "The temperature rises as the crimson sun climbs higher.",
    TimeOfDay.NOON: "The sun reaches its zenith, beating down mercilessly.",
    TimeOfDay.AFTERNOON: "The afternoon heat is brutal, with temperatures at their peak.",
    TimeOfDay.EVENING: "The temperature begins to drop as the sun descends.",
    TimeOfDay.NIGHT: "The night brings a dramatic drop in temperature.",
    TimeOfDay.LATE_NIGHT: "In the depths of night, the temperature plummets to its lowest point.",
})

TIME_OF_DAY_LABELS: Mapping[TimeOfDay, str] = MappingProxyType({
    TimeOfDay.EARLY_MORNING: "Early Morning",
    TimeOfDay.MID_MORNING: "Mid Morning",
    TimeOfDay.NOON: "Noon",
    TimeOfDay.AFTERNOON: "Afternoon",
    TimeOfDay.EVENING: "Evening",
    TimeOfDay.NIGHT: "Night",
    TimeOfDay.LATE_NIGHT: "Late Night",
})


def baseline_temperature(climate: DimensionProfile, season: DimensionProfile) -> int:
    """Midpoint of the climate and season temperatures, rounded down."""
    return math.floor((climate.temperature + season.temperature) / 2)


class TimeOfDayModulator:
    """Applies the per-slot temperature offsets."""

    def __init__(self, offsets: Optional[Mapping[TimeOfDay, int]] = None):
        self.offsets = MappingProxyType(dict(offsets or TIME_OF_DAY_OFFSETS))

    def apply_time_of_day(self, baseline: int, slot: "TimeOfDay | str") -> int:
        """Return clamp(baseline + offset[slot])."""
        slot = TimeOfDay.parse(slot)
        return int(clamp(baseline + self.offsets[slot]))

    def apply_to_state(
        self,
        state: WeatherState,
        climate: DimensionProfile,
        season: DimensionProfile,
        slot: "TimeOfDay | str",
    ) -> WeatherState:
        """Copy of state with temperature recomputed for the slot."""
        baseline = baseline_temperature(climate, season)
        temperature = self.apply_time_of_day(baseline, slot)
        logger.debug(
            f"Time of day {TimeOfDay.parse(slot).value}: baseline {baseline} -> temperature {temperature}"
        )
        return state.copy(temperature=temperature)

    @staticmethod
    def narrative(slot: "TimeOfDay | str") -> str:
        return TIME_OF_DAY_NARRATIVE[TimeOfDay.parse(slot)]

    @staticmethod
    def label(slot: "TimeOfDay | str") -> str:
        return TIME_OF_DAY_LABELS[TimeOfDay.parse(slot)]
