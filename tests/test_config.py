"""Tests for configuration handling."""

import pytest

from city_layout_generator.config import CityConfig


class TestCityConfig:
    """Tests for defaults, validation and JSON round trips."""

    def test_defaults(self):
        config = CityConfig()

        assert config.seed == 42
        assert config.roads.city_size == 500.0
        assert config.roads.radial_decay == pytest.approx(0.008)
        assert config.roads.streamline.step_size == 2.0
        assert config.roads.streamline.max_steps == 300
        assert config.roads.streamline.separation == 15.0
        assert config.roads.streamline.snap_distance == 8.0
        assert config.blocks.grid_cell_size == 12.0
        assert config.blocks.road_clearance == 8.0
        assert config.lots.high_density_cutoff == 0.65
        assert config.lots.medium_density_cutoff == 0.35
        assert config.subdivision.max_lot_area == 800.0
        config.validate()

    @pytest.mark.parametrize("section,attr,value", [
        ("roads", "city_size", 0.0),
        ("blocks", "grid_cell_size", 2.0),
        ("blocks", "road_sample_spacing", 0.0),
        ("subdivision", "max_lot_area", -1.0),
        ("lots", "max_road_influence", 0.0),
        ("lots", "medium_density_cutoff", 0.9),
        ("river", "resolution", 1),
    ])
    def test_validate_rejects(self, section, attr, value):
        config = CityConfig()
        setattr(getattr(config, section), attr, value)

        with pytest.raises(ValueError):
            config.validate()

    @pytest.mark.parametrize("section,attr,value", [
        ("river", "city_size", 400.0),
        ("blocks", "city_half_size", 100.0),
        ("lots", "city_radius", 300.0),
    ])
    def test_validate_rejects_mismatched_extent(self, section, attr, value):
        config = CityConfig()
        setattr(getattr(config, section), attr, value)

        with pytest.raises(ValueError, match="city_size"):
            config.validate()

    def test_disabled_river_extent_is_ignored(self):
        config = CityConfig()
        config.river.enabled = False
        config.river.city_size = 100.0

        config.validate()

    def test_validate_rejects_streamline_settings(self):
        config = CityConfig()
        config.roads.streamline.step_size = 0.0

        with pytest.raises(ValueError):
            config.validate()

    def test_json_round_trip(self, tmp_path, small_config):
        path = tmp_path / "config.json"

        small_config.to_json(str(path))
        loaded = CityConfig.from_json(str(path))

        assert loaded == small_config

    def test_partial_dict_keeps_defaults(self):
        config = CityConfig.from_dict({
            "seed": 3,
            "roads": {"downtown_center": [10, 20], "streamline": {"separation": 25.0}},
        })

        assert config.seed == 3
        assert config.roads.downtown_center == (10, 20)
        assert config.roads.streamline.separation == 25.0
        assert config.roads.streamline.step_size == 2.0
        assert config.blocks == CityConfig().blocks

    def test_master_seed_reaches_stages(self):
        config = CityConfig.from_dict({"seed": 7})

        assert config.river.seed == 7
        assert config.lots.seed == 7

    def test_explicit_stage_seed_is_kept(self):
        config = CityConfig.from_dict({"seed": 7, "river": {"seed": 99}})

        assert config.river.seed == 99
        assert config.lots.seed == 7

    def test_with_seed_copies(self):
        config = CityConfig()
        reseeded = config.with_seed(5)

        assert reseeded.seed == reseeded.river.seed == reseeded.lots.seed == 5
        assert config.seed == 42
        assert config.river.seed == 12345
