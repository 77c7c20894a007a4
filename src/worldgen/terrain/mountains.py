"""Mountain massif generation."""

import logging
from typing import TYPE_CHECKING

import numpy as np

from .config import MountainConfig
from .noise import fbm_noise_cylindrical, normalize_unit, ridged_multifractal_cylindrical
from .parallel import run_bands
from .stage import GenerationStep, stage_seed

if TYPE_CHECKING:
    from ..state import WorldData

logger = logging.getLogger(__name__)


class MountainMassifGenerator(GenerationStep):
    """Raise a single mountain massif shaped by ridged noise.

    The massif is a radial falloff around a random centre, measured with the
    wrapped X distance so it can straddle the seam. Ridged noise decides
    where ranges run inside it. Heights are only ever raised; water cells
    are left untouched.
    """

    name = "Mountain Massif Generator"

    def __init__(self, config: MountainConfig, workers: int = 1):
        self.config = config
        self.workers = workers
        self.center: tuple[float, float] | None = None
        self.radius = 0.0

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        cfg = self.config
        seed = stage_seed(base_seed, stage_seed_offset)
        width, height = world.width, world.height

        rng = np.random.default_rng(seed + 2)
        center_x = float(rng.uniform(width * 0.2, width * 0.8))
        center_y = float(rng.uniform(height * 0.2, height * 0.8))
        radius = min(width, height) * cfg.radius_factor
        self.center = (center_x, center_y)
        self.radius = radius

        if radius <= 1e-3:
            logger.info("Massif radius is zero; no mountains raised")
            return

        range_noise = cfg.range_noise
        ridges = normalize_unit(
            ridged_multifractal_cylindrical(
                width, height, seed,
                frequency=range_noise.frequency,
                octaves=range_noise.octaves,
                lacunarity=range_noise.lacunarity,
                persistence=range_noise.persistence,
            )
        )
        detail_noise = cfg.detail_noise
        detail = fbm_noise_cylindrical(
            width, height, seed + 1,
            frequency=detail_noise.frequency,
            octaves=detail_noise.octaves,
            lacunarity=detail_noise.lacunarity,
            persistence=detail_noise.persistence,
        )
        water = world.water_mask
        heights = world.heightmap
        threshold = cfg.range_threshold_min
        xs = np.arange(width, dtype=np.float32)[np.newaxis, :]

        dx = xs - center_x
        dx = np.where(np.abs(dx) > width / 2.0, dx - width * np.sign(dx), dx)

        def kernel(y0: int, y1: int) -> None:
            dy = np.arange(y0, y1, dtype=np.float32)[:, np.newaxis] - center_y
            ratio = (dx * dx + dy * dy) / (radius * radius)
            massif = np.where(
                ratio < 1.0, np.power(np.maximum(1.0 - ratio, 0.0), cfg.falloff_power), 0.0
            )

            effect = ridges[y0:y1]
            ridge = np.power(
                np.clip((effect - threshold) / (1.0 - threshold), 0.0, 1.0), cfg.ridge_power
            )
            effective = np.clip(ridge * massif, 0.0, 1.0)

            target = cfg.base_height + np.power(effective, cfg.height_power) * (
                cfg.peak_height - cfg.base_height
            )
            target = np.clip(
                target + detail[y0:y1] * cfg.detail_strength * effective, 0.0, cfg.peak_height
            )

            current = heights[y0:y1]
            blend = np.clip(effective * 2.0, 0.0, 1.0)
            raised = current * (1.0 - blend) + target * blend
            nudged = current + (target - current) * effective * cfg.low_target_nudge
            updated = np.maximum(np.where(target > current, raised, nudged), current)

            active = (massif >= cfg.min_massif_influence) & (effect > threshold) & ~water[y0:y1]
            heights[y0:y1] = np.where(active, np.clip(updated, 0.0, 1.0), current)

        run_bands(kernel, height, self.workers)

        logger.info(
            f"Raised massif at ({center_x:.0f}, {center_y:.0f}) radius {radius:.0f}: "
            f"max height {float(heights.max()):.3f}"
        )
