"""Terrain classification: water, lowlands, hills, mountains."""

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..terrain_types import TerrainType, terrain_value
from .coastal import compute_distance_to_land, compute_distance_to_water
from .config import ClassificationConfig, LakeConfig, RiverConfig, SlopeConfig
from .noise import fbm_noise_cylindrical
from .slope import SlopeAspectCalculator
from .stage import GenerationStep, stage_seed

if TYPE_CHECKING:
    from ..state import WorldData

logger = logging.getLogger(__name__)


def classify_terrain(
    heights: NDArray[np.float32],
    slope: NDArray[np.float32],
    river_mask: NDArray[np.bool_],
    lake_mask: NDArray[np.bool_],
    dry_noise: NDArray[np.float32],
    config: ClassificationConfig,
    lakes: LakeConfig,
) -> NDArray[np.uint8]:
    """Classify each cell into a terrain type.

    Categories are painted from lowest to highest priority, so a later rule
    overrides an earlier one. Water always wins, then marsh, then the
    mountain bands by height.

    Args:
        heights: Height field.
        slope: Slope field.
        river_mask: Boolean mask where True = river.
        lake_mask: Boolean mask where True = lake.
        dry_noise: Dry patch noise in [0, 1].
        config: Classification thresholds.
        lakes: Lake configuration, for telling ponds from lakes.

    Returns:
        2D array of TerrainType values as uint8.
    """
    h, s = heights, slope
    terrain = np.full(h.shape, terrain_value(TerrainType.MEADOW), dtype=np.uint8)

    plains = h >= config.plains_low
    terrain[plains] = terrain_value(TerrainType.PLAINS)

    dry = plains & (dry_noise > config.dry_patch_threshold) & (h < config.plains_high * 0.7)
    terrain[dry] = terrain_value(TerrainType.DRY_PLAINS)

    terrain[h >= config.rolling_hills_low] = terrain_value(TerrainType.HILLS)

    steep_band = h >= config.steep_slopes_height
    terrain[steep_band] = terrain_value(TerrainType.STEEP_SLOPE)
    terrain[steep_band & (s > config.moderate_slope * 1.2)] = terrain_value(
        TerrainType.ROCKY_SLOPE
    )

    moor = (
        (h >= config.moor_min_height)
        & (h <= config.moor_max_height)
        & (s <= config.moor_max_slope)
        & (s > config.gentle_slope * 0.8)
    )
    terrain[moor] = terrain_value(TerrainType.MOOR)

    cliff = (s >= config.steep_slope * 1.1) & (h > config.rolling_hills_low)
    terrain[cliff] = terrain_value(TerrainType.CLIFF_FACE)

    plateau = (
        (h >= config.plateau_min_height)
        & (h < config.mountain_base)
        & (s <= config.plateau_max_slope)
    )
    terrain[plateau] = terrain_value(TerrainType.PLATEAU_GRASS)

    terrain[h >= config.mountain_base] = terrain_value(TerrainType.MOUNTAIN_LOWER)
    terrain[h >= config.mountain_mid] = terrain_value(TerrainType.MOUNTAIN_MID)
    terrain[h >= config.mountain_high] = terrain_value(TerrainType.MOUNTAIN_UPPER)
    terrain[h >= config.snowline] = terrain_value(TerrainType.MOUNTAIN_PEAK_SNOW)

    marsh = (h < config.marsh_max_height) & (s < config.gentle_slope * 1.3)
    terrain[marsh] = terrain_value(TerrainType.MARSH)

    terrain[lake_mask] = terrain_value(TerrainType.LAKE_WATER)
    pond = lake_mask & (h < lakes.pond_max_surface) & (h < lakes.surface_max * 0.6)
    terrain[pond] = terrain_value(TerrainType.POND_WATER)

    terrain[river_mask] = terrain_value(TerrainType.RIVER_WATER)

    return terrain


def compute_passable(
    terrain: NDArray[np.uint8],
    slope: NDArray[np.float32],
    config: ClassificationConfig,
) -> NDArray[np.bool_]:
    """Whether each cell can be crossed on foot.

    Snow peaks, cliffs, water and walls are never passable. Upper and mid
    mountain cells block above the very steep slope, rocky slopes above one
    and a half times the steep slope.
    """
    passable = np.ones(terrain.shape, dtype=bool)
    for terrain_type in TerrainType:
        if not terrain_type.walkable:
            passable[terrain == terrain_value(terrain_type)] = False

    high_mountain = (terrain == terrain_value(TerrainType.MOUNTAIN_UPPER)) | (
        terrain == terrain_value(TerrainType.MOUNTAIN_MID)
    )
    passable[high_mountain & (slope > config.very_steep_slope)] = False

    rocky = terrain == terrain_value(TerrainType.ROCKY_SLOPE)
    passable[rocky & (slope > config.steep_slope * 1.5)] = False
    return passable


class TileClassifier(GenerationStep):
    """Assign terrain categories and the fields derived from them.

    Slope and aspect are first derived again from the final heightmap.
    Besides the category grid this stage settles river beds and lake
    surfaces slightly below their limits, scatters standing water over marshes,
    computes the shoreline distance fields and marks passable cells.
    """

    name = "Tile Classifier"

    def __init__(
        self,
        config: ClassificationConfig,
        rivers: RiverConfig,
        lakes: LakeConfig,
        slope: SlopeConfig | None = None,
        workers: int = 1,
    ):
        self.config = config
        self.rivers = rivers
        self.lakes = lakes
        self.slope_calculator = SlopeAspectCalculator(slope or SlopeConfig(), workers=workers)

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        cfg = self.config
        seed = stage_seed(base_seed, stage_seed_offset)
        shape = world.heightmap.shape

        self.slope_calculator.process(world, base_seed, stage_seed_offset)

        dry_noise = fbm_noise_cylindrical(
            world.width, world.height, seed + 50, frequency=cfg.dry_patch_frequency, octaves=1
        )
        dry_noise = np.clip((dry_noise + 1.0) * 0.5, 0.0, 1.0)

        world.terrain[...] = classify_terrain(
            world.heightmap,
            world.slope,
            world.river_mask,
            world.lake_mask,
            dry_noise,
            cfg,
            self.lakes,
        )

        rng = np.random.default_rng(seed)
        self._settle_water(world, rng.random(shape, dtype=np.float32))

        marsh = world.terrain == terrain_value(TerrainType.MARSH)
        world.marsh_water_patch[...] = marsh & (
            rng.random(shape, dtype=np.float32) < cfg.marsh_water_coverage
        )

        world.distance_to_water[...] = compute_distance_to_water(
            world.lake_mask, world.river_mask, cfg.shoreline_max_distance
        )
        world.distance_to_land[...] = compute_distance_to_land(
            world.lake_mask, world.river_mask, self.lakes.wave_max_distance_from_shore
        )
        world.passable[...] = compute_passable(world.terrain, world.slope, cfg)

        _log_terrain_stats(world.terrain)

    def _settle_water(self, world: "WorldData", jitter: NDArray[np.float32]) -> None:
        """Lower river beds and lake surfaces just below their limits."""
        heights = world.heightmap
        terrain = world.terrain

        river = world.river_mask
        river_bed = self.rivers.river_bed_height + 0.01 + jitter / 200.0
        heights[river] = np.minimum(heights[river], river_bed[river])

        pond = terrain == terrain_value(TerrainType.POND_WATER)
        heights[pond] = np.minimum(heights[pond], self.lakes.pond_max_surface - 0.001)

        lake = terrain == terrain_value(TerrainType.LAKE_WATER)
        heights[lake] = np.minimum(heights[lake], self.lakes.surface_max - 0.005)


class BorderWallPlacer(GenerationStep):
    """Turn the top and bottom rows into impassable walls."""

    name = "Border Wall Placer"

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        wall = terrain_value(TerrainType.BORDER_WALL)
        for row in {0, world.height - 1}:
            world.terrain[row, :] = wall
            world.passable[row, :] = False
        logger.info("Placed border walls on the top and bottom rows")


def _log_terrain_stats(terrain: NDArray[np.uint8]) -> None:
    """Log terrain type distribution."""
    total = terrain.size
    counts = np.bincount(terrain.ravel(), minlength=len(TerrainType))
    logger.info("Terrain distribution:")
    for terrain_type in TerrainType:
        count = int(counts[terrain_value(terrain_type)])
        if count:
            logger.info(f"  {terrain_type.value}: {count} ({100 * count / total:.1f}%)")
