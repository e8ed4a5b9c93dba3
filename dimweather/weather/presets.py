"""
Climate and season presets.

Standard-world climates and the four temperate seasons, plus the
extreme-heat terrains and the three sun seasons of the desert world.
Each preset carries the ruleset its world runs under.
"""

from types import MappingProxyType
from typing import Mapping

from dimweather.data_models import DimensionProfile, Ruleset

S = Ruleset.STANDARD
X = Ruleset.EXTREME_HEAT


def _preset(
    preset_id: str,
    name: str,
    temperature: int,
    wind: int,
    precipitation: int,
    humidity: int,
    variability: int,
    ruleset: Ruleset,
    description: str = "",
) -> DimensionProfile:
    return DimensionProfile(
        preset_id=preset_id,
        name=name,
        temperature=temperature,
        wind=wind,
        precipitation=precipitation,
        humidity=humidity,
        variability=variability,
        ruleset=ruleset,
        description=description,
    )


# =============================================================================
# CLIMATES
# =============================================================================

_CLIMATES = [
    # Standard world
    _preset("temperate", "Temperate", 0, 0, 0, 0, 5, S, "Mild, changeable weather"),
    _preset("desert", "Desert", 7, 3, -8, -7, 8, S, "Hot days, cold nights, little rain"),
    _preset("tundra", "Tundra", -8, 5, -5, -2, 3, S, "Frozen plains swept by wind"),
    _preset("tropical", "Tropical", 8, 2, 8, 8, 2, S, "Hot, wet and heavy air"),
    _preset("coastal", "Coastal", 2, 6, 3, 6, 7, S, "Sea winds and frequent squalls"),
    _preset("mountain", "Mountain", -5, 8, 4, 0, 9, S, "Thin cold air and sudden storms"),
    _preset("swamp", "Swamp", 4, -3, 7, 9, 2, S, "Still, sodden and humid"),
    # Extreme-heat world
    _preset("rockyBadlands", "Rocky Badlands", 9, 6, -9, -8, 6, X, "Broken rock baking under the sun"),
    _preset("saltFlats", "Salt Flats", 10, 4, -10, -9, 3, X, "Blinding white salt, no shade"),
    _preset("stonyBarrens", "Stony Barrens", 9, 5, -8, -7, 5, X, "Endless gravel and scattered boulders"),
    _preset("scrubPlains", "Scrub Plains", 8, 3, -7, -6, 4, X, "Hardy brush on cracked earth"),
    _preset("verdantBelt", "Verdant Belt", 7, 2, -4, -3, 6, X, "A thin fringe of green"),
    _preset("ruggedSavanna", "Rugged Savanna", 8, 4, -6, -5, 7, X, "Dry grass and thorn trees"),
    _preset("sandyWastes", "Sandy Wastes", 10, 8, -10, -10, 10, X, "Shifting dunes and sand storms"),
    _preset("windyDunes", "Windy Dunes", 10, 10, -9, -8, 8, X, "Dunes scoured by constant wind"),
    _preset("seaOfSilt", "Sea of Silt", 10, 7, -9, -4, 9, X, "A basin of fine, choking dust"),
    _preset("obsidianPlains", "Obsidian Plains", 10, 4, -10, -10, 4, X, "Black volcanic glass"),
    _preset("ashStorm", "Ash Storm", 10, 9, -8, -7, 10, X, "Hot ash driven on the wind"),
    _preset("crackledPlains", "Crackled Plains", 9, 5, -7, -9, 6, X, "Parched clay split into tiles"),
    _preset("glassPlateau", "Glass Plateau", 10, 4, -10, -9, 3, X, "Fused glass that storms break into shards"),
]

CLIMATES: Mapping[str, DimensionProfile] = MappingProxyType({c.preset_id: c for c in _CLIMATES})


# =============================================================================
# SEASONS
# =============================================================================

_SEASONS = [
    _preset("spring", "Spring", 2, 3, 4, 3, 7, S),
    _preset("summer", "Summer", 7, 0, 1, 5, 3, S),
    _preset("fall", "Fall", 0, 4, 3, 2, 5, S),
    _preset("winter", "Winter", -7, 2, 2, -2, 4, S),
    _preset("highSun", "High Sun", 10, 4, -10, -8, 9, X, "The hottest stretch of the year"),
    _preset("sunDescending", "Sun Descending", 8, 5, -7, -7, 7, X, "The sun begins its retreat"),
    _preset("sunAscending", "Sun Ascending", 9, 6, -8, -6, 8, X, "The season of rare storms"),
]

SEASONS: Mapping[str, DimensionProfile] = MappingProxyType({s.preset_id: s for s in _SEASONS})

DEFAULT_CLIMATE = "temperate"
DEFAULT_SEASON = "summer"
