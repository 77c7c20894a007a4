"""Tests for post-stage world validation."""

import logging

import numpy as np

from worldgen.state import WorldData
from worldgen.terrain.validation import ValidationResult, validate_world
from worldgen.terrain_types import TerrainType, terrain_value


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_starts_passed(self) -> None:
        result = ValidationResult()
        assert result.passed
        assert result.errors == []

    def test_error_fails(self) -> None:
        result = ValidationResult()
        result.add_error("broken")
        assert not result.passed
        assert result.errors == ["broken"]

    def test_warning_does_not_fail(self) -> None:
        result = ValidationResult()
        result.add_warning("odd")
        assert result.passed
        assert result.warnings == ["odd"]


class TestValidateWorld:
    """Tests for validate_world."""

    def test_fresh_world_passes(self, flat_world: WorldData) -> None:
        assert validate_world(flat_world).passed

    def test_nan_height_fails(self, flat_world: WorldData) -> None:
        flat_world.heightmap[2, 3] = np.nan
        result = validate_world(flat_world)
        assert not result.passed
        assert "non-finite" in result.errors[0]

    def test_height_out_of_range_fails(self, flat_world: WorldData) -> None:
        flat_world.heightmap[0, 0] = 1.2
        flat_world.heightmap[0, 1] = -0.1
        result = validate_world(flat_world)
        assert not result.passed
        assert "2 cells outside [0, 1]" in result.errors[0]

    def test_height_bounds_inclusive(self, flat_world: WorldData) -> None:
        flat_world.heightmap[0, 0] = 0.0
        flat_world.heightmap[0, 1] = 1.0
        assert validate_world(flat_world).passed

    def test_negative_slope_fails(self, flat_world: WorldData) -> None:
        flat_world.slope[4, 4] = -0.01
        assert not validate_world(flat_world).passed

    def test_lake_classified_as_mountain_fails(self, flat_world: WorldData) -> None:
        flat_world.lake_mask[3, 3] = True
        flat_world.terrain[3, 3] = terrain_value(TerrainType.CLIFF_FACE)
        result = validate_world(flat_world)
        assert not result.passed
        assert "lake cells" in result.errors[0]

    def test_mountain_outside_lake_passes(self, flat_world: WorldData) -> None:
        flat_world.terrain[3, 3] = terrain_value(TerrainType.MOUNTAIN_MID)
        assert validate_world(flat_world).passed

    def test_wrong_shape_fails(self, flat_world: WorldData) -> None:
        flat_world.slope = np.zeros((3, 3), dtype=np.float32)
        result = validate_world(flat_world)
        assert not result.passed
        assert result.errors[0].startswith("slope has shape")

    def test_all_water_warns_but_passes(self, flat_world: WorldData, caplog) -> None:
        flat_world.lake_mask[...] = True
        flat_world.river_mask[0, :] = True
        with caplog.at_level(logging.WARNING, logger="worldgen.terrain.validation"):
            result = validate_world(flat_world)
        assert result.passed
        assert result.warnings == ["No dry land left: every cell is river or lake"]
        assert "No dry land left" in caplog.text

    def test_some_land_has_no_warnings(self, flat_world: WorldData) -> None:
        flat_world.lake_mask[:, :-1] = True
        assert validate_world(flat_world).warnings == []
