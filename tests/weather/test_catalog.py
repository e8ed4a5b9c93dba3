"""
Tests for the weather catalog and its presets.
"""

import json

import pytest

from dimweather.data_models import ConfigurationError, Ruleset, TimeOfDay
from dimweather.weather.catalog import WeatherCatalog, get_default_catalog
from dimweather.weather.presets import CLIMATES


class TestDefaultCatalog:
    def test_table_sizes(self, catalog):
        assert len(catalog.climates) == 20
        assert len(catalog.seasons) == 7
        assert len(catalog.weather_types) == 8
        assert len(catalog.hex_grid) == 37

    def test_preset_values(self, catalog):
        salt = catalog.climate("saltFlats")
        assert (salt.temperature, salt.wind, salt.precipitation, salt.humidity, salt.variability) == (
            10, 4, -10, -9, 3
        )
        assert catalog.season("winter").temperature == -7

    def test_rulesets(self, catalog):
        assert catalog.ruleset_for("temperate") == Ruleset.STANDARD
        assert catalog.ruleset_for("glassPlateau") == Ruleset.EXTREME_HEAT
        assert set(catalog.seasons_for(Ruleset.EXTREME_HEAT)) == {"highSun", "sunDescending", "sunAscending"}
        assert len(catalog.climates_for(Ruleset.STANDARD)) == 7

    @pytest.mark.parametrize("lookup,key", [
        ("climate", "atlantis"),
        ("season", "monsoon"),
        ("weather_type", "acidRain"),
    ])
    def test_unknown_ids(self, catalog, lookup, key):
        with pytest.raises(ConfigurationError):
            getattr(catalog, lookup)(key)

    def test_unknown_climate_ruleset(self, catalog):
        with pytest.raises(ConfigurationError):
            catalog.ruleset_for("atlantis")

    def test_tables_are_read_only(self, catalog):
        with pytest.raises(TypeError):
            catalog.climates["atlantis"] = CLIMATES["temperate"]
        with pytest.raises(TypeError):
            catalog.weather_type("hot").overrides["temperature"] = 1

    def test_shared_default(self):
        assert get_default_catalog() is get_default_catalog()


class TestCampaignCatalog:
    def test_add_climate(self):
        catalog = WeatherCatalog.from_dict({
            "climates": {
                "ashWaste": {"name": "Ash Waste", "temperature": 9, "wind": 6, "ruleset": "extremeHeat"},
            },
        })

        assert catalog.climate("ashWaste").wind == 6
        assert catalog.ruleset_for("ashWaste") == Ruleset.EXTREME_HEAT
        assert "temperate" in catalog.climates

    def test_replace_instead_of_extend(self):
        catalog = WeatherCatalog.from_dict(
            {
                "climates": {"moor": {"temperature": -1}},
                "seasons": {"wet": {"precipitation": 4}},
                "weatherTypes": {"normal": {"name": "Normal"}},
            },
            extend_defaults=False,
        )

        assert list(catalog.climates) == ["moor"]
        assert list(catalog.seasons) == ["wet"]
        assert len(catalog.hex_grid) == 0

    def test_hex_layout_replaces_grid(self):
        catalog = WeatherCatalog.from_dict({"hexLayout": {"0,0": "normal", "1,0": "sandstorm"}})
        assert len(catalog.hex_grid) == 2

    def test_hex_layout_with_unknown_type(self):
        with pytest.raises(ConfigurationError):
            WeatherCatalog.from_dict({"hexLayout": {"0,0": "acidRain"}})

    def test_hex_layout_with_bad_key(self):
        with pytest.raises(ConfigurationError):
            WeatherCatalog.from_dict({"hexLayout": {"north": "normal"}})

    def test_weather_type_cannot_override_precipitation(self):
        with pytest.raises(ConfigurationError):
            WeatherCatalog.from_dict({
                "weatherTypes": {"monsoon": {"name": "Monsoon", "overrides": {"precipitation": 9}}},
            })

    def test_time_offsets_override(self):
        catalog = WeatherCatalog.from_dict({"timeOfDayOffsets": {"lateNight": -9}})

        assert catalog.time_offsets[TimeOfDay.LATE_NIGHT] == -9
        assert catalog.time_offsets[TimeOfDay.NOON] == 2

    def test_bad_time_offsets(self):
        with pytest.raises(ConfigurationError):
            WeatherCatalog.from_dict({"timeOfDayOffsets": {"teatime": 1}})

    def test_unknown_default_weather_type(self):
        with pytest.raises(ConfigurationError):
            WeatherCatalog.from_dict({"defaultWeatherType": "acidRain"})

    def test_bad_preset_values(self):
        with pytest.raises(ConfigurationError):
            WeatherCatalog.from_dict({"climates": {"odd": {"temperature": "warm"}}})


class TestCatalogFiles:
    def test_load_json_file(self, tmp_path):
        path = tmp_path / "campaign.json"
        path.write_text(json.dumps({"seasons": {"monsoon": {"precipitation": 8, "humidity": 9}}}))

        catalog = WeatherCatalog.from_json_file(path)

        assert catalog.season("monsoon").precipitation == 8

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WeatherCatalog.from_json_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            WeatherCatalog.from_json_file(path)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ConfigurationError):
            WeatherCatalog.from_json_file(path)

    def test_to_dict_reloads(self, catalog):
        """An exported catalog loads back to the same tables."""
        reloaded = WeatherCatalog.from_dict(json.loads(json.dumps(catalog.to_dict())), extend_defaults=False)

        assert set(reloaded.climates) == set(catalog.climates)
        assert reloaded.climate("sandyWastes") == catalog.climate("sandyWastes")
        assert reloaded.hex_grid.to_dict() == catalog.hex_grid.to_dict()
        assert dict(reloaded.time_offsets) == dict(catalog.time_offsets)
