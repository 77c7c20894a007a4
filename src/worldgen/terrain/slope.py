"""Slope and aspect derivation."""

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..terrain_types import SlopeAspect
from .config import SlopeConfig
from .parallel import CARDINAL_OFFSETS, band_shift, run_bands
from .stage import GenerationStep

if TYPE_CHECKING:
    from ..state import WorldData

logger = logging.getLogger(__name__)

# Compass sector (0 = N, clockwise) -> aspect value
_SECTOR_ASPECTS = np.array(
    [
        SlopeAspect.NORTH,
        SlopeAspect.NORTHEAST,
        SlopeAspect.EAST,
        SlopeAspect.SOUTHEAST,
        SlopeAspect.SOUTH,
        SlopeAspect.SOUTHWEST,
        SlopeAspect.WEST,
        SlopeAspect.NORTHWEST,
    ],
    dtype=np.uint8,
)


def band_slope(heights: NDArray[np.float32], y0: int, y1: int) -> NDArray[np.float32]:
    """Maximum absolute height difference to the four cardinal neighbours.

    X wraps; Y is clamped, so an off-map neighbour contributes zero.
    """
    current = heights[y0:y1]
    slope = np.zeros_like(current)
    for dy, dx in CARDINAL_OFFSETS:
        neighbor = band_shift(heights, y0, y1, dy, dx)
        np.maximum(slope, np.abs(current - neighbor), out=slope)
    return slope


def compute_slope(heights: NDArray[np.float32], workers: int = 1) -> NDArray[np.float32]:
    """Slope of the whole grid. See :func:`band_slope`."""
    slope = np.zeros_like(heights)

    def kernel(y0: int, y1: int) -> None:
        slope[y0:y1] = band_slope(heights, y0, y1)

    run_bands(kernel, heights.shape[0], workers)
    return slope


class SlopeAspectCalculator(GenerationStep):
    """Derive slope and compass aspect from the heightmap.

    The gradient is a Sobel estimate over the eight neighbours. The aspect is
    the compass angle ``90 - atan2(dz/dy, dz/dx)`` binned into eight 45 degree
    sectors centred on north, with FLAT and STEEP_PEAK overriding the sector.
    """

    name = "Slope Aspect Calculator"

    def __init__(self, config: SlopeConfig, workers: int = 1):
        self.config = config
        self.workers = workers

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        cfg = self.config
        heights = world.heightmap

        def kernel(y0: int, y1: int) -> None:
            center = heights[y0:y1]

            def at(dy: int, dx: int) -> NDArray[np.float32]:
                return band_shift(heights, y0, y1, dy, dx)

            nw, n, ne = at(-1, -1), at(-1, 0), at(-1, 1)
            w, e = at(0, -1), at(0, 1)
            sw, s, se = at(1, -1), at(1, 0), at(1, 1)

            dz_dx = ((ne + 2.0 * e + se) - (nw + 2.0 * w + sw)) / 8.0
            dz_dy = ((sw + 2.0 * s + se) - (nw + 2.0 * n + ne)) / 8.0

            slope = band_slope(heights, y0, y1)

            angle = np.mod(90.0 - np.degrees(np.arctan2(dz_dy, dz_dx)), 360.0)
            sector = (np.mod(angle + 22.5, 360.0) // 45.0).astype(np.intp)
            aspect = _SECTOR_ASPECTS[np.clip(sector, 0, 7)]

            flat = (
                (np.abs(dz_dx) < cfg.flat_gradient) & (np.abs(dz_dy) < cfg.flat_gradient)
            ) | (slope < cfg.flat_slope)
            steep_peak = (
                ~flat
                & (slope > cfg.very_steep * 1.1)
                & (center > cfg.mountain_mid)
            )
            aspect = np.where(flat, np.uint8(SlopeAspect.FLAT), aspect)
            aspect = np.where(steep_peak, np.uint8(SlopeAspect.STEEP_PEAK), aspect)

            world.slope[y0:y1] = slope
            world.aspect[y0:y1] = aspect

        run_bands(kernel, world.height, self.workers)

        flat_fraction = float(np.mean(world.aspect == SlopeAspect.FLAT))
        logger.info(
            f"Computed slope: max={world.slope.max():.4f}, "
            f"mean={world.slope.mean():.5f}, flat={flat_fraction:.1%}"
        )
