"""Tests for thermal and hydraulic erosion."""

import numpy as np
import pytest

from worldgen.state import WorldData
from worldgen.terrain.config import HydraulicConfig, ThermalConfig
from worldgen.terrain.erosion import HydraulicEroder, ThermalEroder


def _random_world(width: int = 24, height: int = 18, seed: int = 0) -> WorldData:
    world = WorldData.allocate(width, height)
    rng = np.random.default_rng(seed)
    world.heightmap[...] = rng.uniform(0.1, 0.9, size=(height, width)).astype(np.float32)
    return world


class TestThermalEroder:
    """Tests for ThermalEroder."""

    def test_two_cell_transfer(self) -> None:
        """A 1.0 / 0.0 pair moves min(0.5 * 0.9, 0.9 / 2.1) downhill."""
        world = WorldData.allocate(2, 1)
        world.heightmap[0] = [1.0, 0.0]
        config = ThermalConfig(iterations=1, talus_angle=0.1, strength=0.5)

        ThermalEroder(config).process(world, 0, 0)

        moved = min(0.5 * 0.9, 0.9 / 2.1)
        np.testing.assert_allclose(world.heightmap[0], [1.0 - moved, moved], rtol=1e-6)

    def test_conserves_material(self) -> None:
        world = _random_world()
        before = float(world.heightmap.sum(dtype=np.float64))
        ThermalEroder(ThermalConfig(iterations=2, talus_angle=0.05, strength=0.3)).process(
            world, 0, 0
        )
        after = float(world.heightmap.sum(dtype=np.float64))
        assert after == pytest.approx(before, rel=1e-5)

    def test_peak_stays_above_neighbours(self) -> None:
        """A lone peak spreads at most its largest single transfer per iteration."""
        world = WorldData.allocate(5, 5)
        world.heightmap[...] = 0.1
        world.heightmap[2, 2] = 0.9
        before = float(world.heightmap.sum(dtype=np.float64))

        ThermalEroder(ThermalConfig(iterations=1, talus_angle=0.05, strength=0.3)).process(
            world, 0, 0
        )

        ring = world.heightmap[1:4, 1:4].copy()
        ring[1, 1] = 0.0
        assert world.heightmap[2, 2] >= ring.max()
        np.testing.assert_allclose(world.heightmap[2, 2], 0.9 - 0.225, rtol=1e-5)
        np.testing.assert_allclose(ring[ring > 0], 0.1 + 0.225 / 8, rtol=1e-5)
        assert float(world.heightmap.sum(dtype=np.float64)) == pytest.approx(before, rel=1e-6)

    def test_heights_never_go_negative(self) -> None:
        world = WorldData.allocate(3, 3)
        world.heightmap[...] = 0.0
        world.heightmap[1, 1] = 0.5
        ThermalEroder(ThermalConfig(iterations=4, talus_angle=0.01, strength=0.5)).process(
            world, 0, 0
        )
        assert world.heightmap.min() >= 0.0
        assert float(world.heightmap.sum(dtype=np.float64)) == pytest.approx(0.5, rel=1e-5)

    def test_below_talus_is_unchanged(self) -> None:
        world = WorldData.allocate(4, 4)
        world.heightmap[...] = 0.5
        world.heightmap[1, 1] = 0.51
        before = world.heightmap.copy()
        ThermalEroder(ThermalConfig(talus_angle=0.02)).process(world, 0, 0)
        np.testing.assert_array_equal(world.heightmap, before)

    def test_water_cells_are_fixed(self) -> None:
        world = WorldData.allocate(2, 1)
        world.heightmap[0] = [1.0, 0.0]
        world.lake_mask[0, 1] = True
        ThermalEroder(ThermalConfig(iterations=3, talus_angle=0.1, strength=0.5)).process(
            world, 0, 0
        )
        np.testing.assert_array_equal(world.heightmap[0], [1.0, 0.0])

    def test_transfers_across_seam(self) -> None:
        """The first and last column are neighbours."""
        world = WorldData.allocate(6, 1)
        world.heightmap[0] = [0.0, 0.0, 0.0, 0.0, 0.0, 1.0]
        ThermalEroder(ThermalConfig(iterations=1, talus_angle=0.1, strength=0.5)).process(
            world, 0, 0
        )
        assert world.heightmap[0, 0] > 0.0
        assert world.heightmap[0, 4] > 0.0
        assert world.heightmap[0, 2] == 0.0

    def test_zero_iterations_is_noop(self) -> None:
        world = _random_world()
        before = world.heightmap.copy()
        ThermalEroder(ThermalConfig(iterations=0)).process(world, 0, 0)
        np.testing.assert_array_equal(world.heightmap, before)

    def test_worker_count_does_not_change_result(self) -> None:
        config = ThermalConfig(iterations=3, talus_angle=0.05, strength=0.2)
        single = _random_world(seed=4)
        banded = _random_world(seed=4)
        ThermalEroder(config, workers=1).process(single, 0, 0)
        ThermalEroder(config, workers=4).process(banded, 0, 0)
        np.testing.assert_array_equal(single.heightmap, banded.heightmap)

    def test_material_moved_is_never_negative(self) -> None:
        eroder = ThermalEroder(ThermalConfig(talus_angle=0.1, strength=0.5))
        diffs = np.array([-1.0, 0.0, 0.05, 0.1, 0.5], dtype=np.float32)
        moved = eroder.material_moved(diffs)
        assert (moved >= 0).all()
        assert moved[:4].tolist() == [0.0, 0.0, 0.0, 0.0]


class TestHydraulicEroder:
    """Tests for HydraulicEroder."""

    def test_heights_stay_in_unit_range(self) -> None:
        world = _random_world()
        HydraulicEroder(HydraulicConfig(iterations=5)).process(world, 0, 0)
        assert np.isfinite(world.heightmap).all()
        assert world.heightmap.min() >= 0.0
        assert world.heightmap.max() <= 1.0

    def test_changes_sloped_terrain(self) -> None:
        world = _random_world()
        before = world.heightmap.copy()
        HydraulicEroder(HydraulicConfig(iterations=3)).process(world, 0, 0)
        assert not np.array_equal(world.heightmap, before)

    def test_flat_terrain_is_unchanged(self, flat_world: WorldData) -> None:
        """No slope means no capacity and nothing to erode or deposit."""
        before = flat_world.heightmap.copy()
        HydraulicEroder(HydraulicConfig(iterations=3)).process(flat_world, 0, 0)
        np.testing.assert_array_equal(flat_world.heightmap, before)

    def test_lake_floor_is_fixed(self) -> None:
        world = _random_world()
        world.lake_mask[5:10, 5:12] = True
        before = world.heightmap[world.lake_mask].copy()
        HydraulicEroder(HydraulicConfig(iterations=4)).process(world, 0, 0)
        np.testing.assert_array_equal(world.heightmap[world.lake_mask], before)

    def test_zero_iterations_is_noop(self) -> None:
        world = _random_world()
        before = world.heightmap.copy()
        HydraulicEroder(HydraulicConfig(iterations=0)).process(world, 0, 0)
        np.testing.assert_array_equal(world.heightmap, before)

    def test_worker_count_does_not_change_result(self) -> None:
        config = HydraulicConfig(iterations=3)
        single = _random_world(seed=8)
        banded = _random_world(seed=8)
        HydraulicEroder(config, workers=1).process(single, 0, 0)
        HydraulicEroder(config, workers=3).process(banded, 0, 0)
        np.testing.assert_array_equal(single.heightmap, banded.heightmap)

    def test_outflow_never_exceeds_water(self) -> None:
        eroder = HydraulicEroder(HydraulicConfig())
        heights = _random_world().heightmap
        water = np.full(heights.shape, 0.01, dtype=np.float32)
        flux = eroder._outflow(heights, water)
        assert (flux >= 0).all()
        assert (flux.sum(axis=0) <= water + 1e-7).all()
