"""Shared test fixtures for world generation tests."""

import numpy as np
import pytest

from worldgen.state import WorldData
from worldgen.terrain.config import (
    HeightConfig,
    LakeConfig,
    MountainConfig,
    NoiseConfig,
    RiverConfig,
    TerrainConfig,
)


@pytest.fixture
def small_config() -> TerrainConfig:
    """Config for a 96x64 world with features scaled to fit it."""
    return TerrainConfig(
        seed=1234,
        width=96,
        height=64,
        workers=2,
        heights=HeightConfig(noise=NoiseConfig(frequency=0.04, octaves=4)),
        mountains=MountainConfig(
            radius_factor=0.6,
            range_noise=NoiseConfig(frequency=0.08, octaves=3, lacunarity=2.1, persistence=0.45),
            detail_noise=NoiseConfig(frequency=0.25, octaves=2),
        ),
        rivers=RiverConfig(num_sources=3),
        lakes=LakeConfig(min_size_for_waves=40, wave_max_distance_from_shore=5),
    )


@pytest.fixture
def flat_world() -> WorldData:
    """16x12 world at uniform height 0.3."""
    world = WorldData.allocate(16, 12)
    world.heightmap[...] = 0.3
    return world


@pytest.fixture
def bowl_world() -> WorldData:
    """10x10 bowl: rim ring at 0.5, interior between 0.1 and 0.35.

    The lowest interior cell is 0.1 at (5, 5).
        0.5 0.5 0.5 ... 0.5
        0.5 0.35 ...   0.5
        ...   0.1      ...
        0.5 0.5 0.5 ... 0.5
    """
    world = WorldData.allocate(10, 10)
    world.heightmap[...] = 0.5
    ys, xs = np.mgrid[1:9, 1:9]
    distance = np.maximum(np.abs(ys - 5), np.abs(xs - 5))
    world.heightmap[1:9, 1:9] = 0.1 + 0.06 * distance
    return world


@pytest.fixture
def south_ramp_world() -> WorldData:
    """40x30 world sloping down toward the south edge."""
    world = WorldData.allocate(40, 30)
    rows = 0.7 - 0.01 * np.arange(30, dtype=np.float32)
    world.heightmap[...] = rows[:, np.newaxis]
    world.slope[...] = 0.01
    return world
