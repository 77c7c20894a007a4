"""Tests for terrain classification, passability and border walls."""

import numpy as np
import pytest

from worldgen.state import WorldData
from worldgen.terrain.classification import (
    BorderWallPlacer,
    TileClassifier,
    classify_terrain,
    compute_passable,
)
from worldgen.terrain.config import ClassificationConfig, LakeConfig, RiverConfig
from worldgen.terrain_types import TerrainType, terrain_value, terrain_value_to_type


def _classify_cell(
    height: float,
    slope: float = 0.0,
    river: bool = False,
    lake: bool = False,
    dry: float = 0.0,
    config: ClassificationConfig | None = None,
) -> TerrainType:
    """Classify a single cell."""
    terrain = classify_terrain(
        np.array([[height]], dtype=np.float32),
        np.array([[slope]], dtype=np.float32),
        np.array([[river]]),
        np.array([[lake]]),
        np.array([[dry]], dtype=np.float32),
        config or ClassificationConfig(),
        LakeConfig(),
    )
    return terrain_value_to_type(int(terrain[0, 0]))


class TestClassifyTerrain:
    """Tests for per-cell category rules."""

    @pytest.mark.parametrize(
        ("height", "slope", "expected"),
        [
            (0.03, 0.0, TerrainType.MARSH),
            (0.03, 0.01, TerrainType.MEADOW),
            (0.10, 0.01, TerrainType.PLAINS),
            (0.30, 0.01, TerrainType.HILLS),
            (0.30, 0.05, TerrainType.CLIFF_FACE),
            (0.50, 0.01, TerrainType.MOOR),
            (0.50, 0.005, TerrainType.PLATEAU_GRASS),
            (0.62, 0.01, TerrainType.STEEP_SLOPE),
            (0.62, 0.02, TerrainType.ROCKY_SLOPE),
            (0.62, 0.05, TerrainType.CLIFF_FACE),
            (0.70, 0.01, TerrainType.MOUNTAIN_LOWER),
            (0.82, 0.01, TerrainType.MOUNTAIN_MID),
            (0.86, 0.01, TerrainType.MOUNTAIN_PEAK_SNOW),
        ],
    )
    def test_land_categories(self, height: float, slope: float, expected: TerrainType) -> None:
        assert _classify_cell(height, slope) == expected

    def test_dry_patches_on_low_plains(self) -> None:
        assert _classify_cell(0.10, 0.01, dry=0.9) == TerrainType.DRY_PLAINS
        assert _classify_cell(0.20, 0.01, dry=0.9) == TerrainType.PLAINS
        assert _classify_cell(0.10, 0.01, dry=0.5) == TerrainType.PLAINS

    def test_upper_mountain_below_snowline(self) -> None:
        config = ClassificationConfig(snowline=0.95)
        assert _classify_cell(0.92, 0.01, config=config) == TerrainType.MOUNTAIN_UPPER
        assert _classify_cell(0.97, 0.01, config=config) == TerrainType.MOUNTAIN_PEAK_SNOW

    def test_lake_overrides_mountain(self) -> None:
        assert _classify_cell(0.90, 0.1, lake=True) == TerrainType.LAKE_WATER

    def test_shallow_lake_is_pond(self) -> None:
        assert _classify_cell(0.05, lake=True) == TerrainType.POND_WATER
        assert _classify_cell(0.20, lake=True) == TerrainType.LAKE_WATER

    def test_river_overrides_everything(self) -> None:
        assert _classify_cell(0.90, 0.1, river=True) == TerrainType.RIVER_WATER
        assert _classify_cell(0.20, river=True, lake=True) == TerrainType.RIVER_WATER


class TestComputePassable:
    """Tests for passability."""

    def _passable(self, terrain_type: TerrainType, slope: float = 0.0) -> bool:
        terrain = np.array([[terrain_value(terrain_type)]], dtype=np.uint8)
        slopes = np.array([[slope]], dtype=np.float32)
        return bool(compute_passable(terrain, slopes, ClassificationConfig())[0, 0])

    def test_unwalkable_types_block(self) -> None:
        for terrain_type in TerrainType:
            if not terrain_type.walkable:
                assert not self._passable(terrain_type)

    def test_lowlands_pass(self) -> None:
        assert self._passable(TerrainType.MEADOW, 0.05)
        assert self._passable(TerrainType.MARSH)
        assert self._passable(TerrainType.MOUNTAIN_LOWER, 0.2)

    def test_steep_high_mountains_block(self) -> None:
        assert self._passable(TerrainType.MOUNTAIN_MID, 0.05)
        assert not self._passable(TerrainType.MOUNTAIN_MID, 0.09)
        assert not self._passable(TerrainType.MOUNTAIN_UPPER, 0.09)

    def test_steep_rocky_slopes_block(self) -> None:
        assert self._passable(TerrainType.ROCKY_SLOPE, 0.05)
        assert not self._passable(TerrainType.ROCKY_SLOPE, 0.07)


def _classifier(**overrides) -> TileClassifier:
    return TileClassifier(ClassificationConfig(**overrides), RiverConfig(), LakeConfig())


class TestTileClassifier:
    """Tests for the classification stage."""

    @pytest.fixture
    def lake_world(self) -> WorldData:
        """30x20 hills with a lake block and a river across one row."""
        world = WorldData.allocate(30, 20)
        world.heightmap[...] = 0.3
        world.heightmap[5:10, 5:12] = 0.7
        world.lake_mask[5:10, 5:12] = True
        world.heightmap[15, :] = 0.2
        world.river_mask[15, :] = True
        return world

    def test_lake_is_never_mountain(self, lake_world: WorldData) -> None:
        _classifier().process(lake_world, 1, 7000)
        lake_terrain = lake_world.terrain[lake_world.lake_mask]
        assert (lake_terrain == terrain_value(TerrainType.LAKE_WATER)).all()

    def test_water_settles_below_limits(self, lake_world: WorldData) -> None:
        _classifier().process(lake_world, 1, 7000)
        lakes, rivers = LakeConfig(), RiverConfig()
        assert lake_world.heightmap[lake_world.lake_mask].max() <= lakes.surface_max - 0.005 + 1e-6
        river_heights = lake_world.heightmap[lake_world.river_mask]
        assert river_heights.max() <= rivers.river_bed_height + 0.015 + 1e-6
        assert river_heights.min() >= rivers.river_bed_height + 0.01 - 1e-6

    def test_water_is_impassable(self, lake_world: WorldData) -> None:
        _classifier().process(lake_world, 1, 7000)
        assert not lake_world.passable[lake_world.water_mask].any()
        assert lake_world.passable[2, 20]

    def test_distance_fields(self, lake_world: WorldData) -> None:
        _classifier().process(lake_world, 1, 7000)
        assert lake_world.distance_to_water[4, 8] == 0
        assert lake_world.distance_to_water[2, 8] == 2
        assert lake_world.distance_to_land[5, 8] == 0
        assert lake_world.distance_to_land[7, 8] == 2
        assert (lake_world.distance_to_land[~lake_world.lake_mask] == -1).all()

    def test_recomputes_slope(self, lake_world: WorldData) -> None:
        lake_world.slope[...] = 5.0
        _classifier().process(lake_world, 1, 7000)
        assert lake_world.slope.max() < 1.0

    def test_marsh_water_patches(self) -> None:
        world = WorldData.allocate(40, 40)
        world.heightmap[...] = 0.02
        _classifier(marsh_water_coverage=0.3).process(world, 3, 7000)
        assert (world.terrain == terrain_value(TerrainType.MARSH)).all()
        coverage = world.marsh_water_patch.mean()
        assert 0.2 < coverage < 0.4

    def test_marsh_patches_only_on_marsh(self, lake_world: WorldData) -> None:
        _classifier(marsh_water_coverage=1.0).process(lake_world, 1, 7000)
        assert not lake_world.marsh_water_patch.any()

    def test_deterministic(self) -> None:
        def run() -> WorldData:
            world = WorldData.allocate(24, 16)
            rng = np.random.default_rng(5)
            world.heightmap[...] = rng.uniform(0.0, 0.9, size=(16, 24))
            _classifier().process(world, 42, 7000)
            return world

        first, second = run(), run()
        np.testing.assert_array_equal(first.terrain, second.terrain)
        np.testing.assert_array_equal(first.heightmap, second.heightmap)
        np.testing.assert_array_equal(first.marsh_water_patch, second.marsh_water_patch)


class TestBorderWallPlacer:
    """Tests for border walls."""

    def test_walls_on_top_and_bottom(self, flat_world: WorldData) -> None:
        BorderWallPlacer().process(flat_world, 0, 0)
        wall = terrain_value(TerrainType.BORDER_WALL)
        assert (flat_world.terrain[0] == wall).all()
        assert (flat_world.terrain[-1] == wall).all()
        assert not flat_world.passable[0].any()
        assert not flat_world.passable[-1].any()
        assert flat_world.passable[1:-1].all()
        assert (flat_world.terrain[1:-1] != wall).all()

    def test_single_row_world(self) -> None:
        world = WorldData.allocate(5, 1)
        BorderWallPlacer().process(world, 0, 0)
        assert (world.terrain == terrain_value(TerrainType.BORDER_WALL)).all()
