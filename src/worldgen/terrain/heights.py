"""Base heightmap synthesis from cylindrical fractal noise."""

import logging
from typing import TYPE_CHECKING

import numpy as np

from .config import HeightConfig
from .noise import fbm_noise_cylindrical
from .parallel import run_bands
from .stage import GenerationStep, stage_seed

if TYPE_CHECKING:
    from ..state import WorldData

logger = logging.getLogger(__name__)

# Raw noise ranges narrower than this are treated as this wide
MIN_NOISE_RANGE = 1e-4


class HeightSynthesizer(GenerationStep):
    """Fill the heightmap with layered noise.

    A base fBm field and a finer detail layer are summed, normalized over the
    whole grid and shaped by a power curve. Low ground is then pitted with
    shallow basins driven by a third noise field, and the result is rescaled
    into ``[min_height, max_height]``.
    """

    name = "Height Synthesizer"

    def __init__(self, config: HeightConfig, workers: int = 1):
        self.config = config
        self.workers = workers

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        cfg = self.config
        seed = stage_seed(base_seed, stage_seed_offset)
        width, height = world.width, world.height
        noise = cfg.noise

        base = fbm_noise_cylindrical(
            width, height, seed,
            frequency=noise.frequency,
            octaves=noise.octaves,
            lacunarity=noise.lacunarity,
            persistence=noise.persistence,
        )
        detail = fbm_noise_cylindrical(
            width, height, seed + 1,
            frequency=noise.frequency * cfg.detail_frequency_multiplier,
            octaves=cfg.detail_octaves,
            lacunarity=noise.lacunarity,
            persistence=noise.persistence,
        )
        raw = base + detail * cfg.detail_weight

        low = float(raw.min())
        span = max(float(raw.max()) - low, MIN_NOISE_RANGE)

        basin = cfg.basin
        trigger = fbm_noise_cylindrical(
            width, height, seed + 2,
            frequency=noise.frequency * basin.frequency_multiplier,
            octaves=basin.octaves,
            lacunarity=noise.lacunarity,
            persistence=noise.persistence,
        )
        trigger = (trigger + 1.0) * 0.5
        trigger_span = max(basin.trigger_max - basin.trigger_min, MIN_NOISE_RANGE)

        def kernel(y0: int, y1: int) -> None:
            normalized = np.power((raw[y0:y1] - low) / span, cfg.power_curve)

            band_trigger = trigger[y0:y1]
            carve = (
                (normalized < basin.height_threshold_max)
                & (band_trigger > basin.trigger_min)
                & (band_trigger < basin.trigger_max)
            )
            ramp = np.clip((band_trigger - basin.trigger_min) / trigger_span, 0.0, 1.0)
            normalized = np.where(carve, normalized - basin.strength * ramp, normalized)

            normalized = np.clip(normalized, 0.0, 1.0)
            scaled = cfg.min_height + normalized * (cfg.max_height - cfg.min_height)
            world.heightmap[y0:y1] = np.clip(scaled, 0.0, 1.0)

        run_bands(kernel, height, self.workers)

        logger.info(
            f"Synthesized heights: min={world.heightmap.min():.3f}, "
            f"max={world.heightmap.max():.3f}, mean={world.heightmap.mean():.3f}"
        )
