"""Thermal and hydraulic erosion.

Both eroders run a fixed number of iterations. Each iteration reads a
snapshot of the grid, lets every row band compute its own cells, and only
then combines the results, so the outcome is the same for any worker count.
"""

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .config import HydraulicConfig, ThermalConfig
from .parallel import (
    CARDINAL_OFFSETS,
    MOORE_OFFSETS,
    band_row_valid,
    band_shift,
    distinct_offsets,
    run_bands,
)
from .slope import compute_slope
from .stage import GenerationStep

if TYPE_CHECKING:
    from ..state import WorldData

logger = logging.getLogger(__name__)

# Floor for denominators that divide by a water depth or a head sum
MIN_DIVISOR = 1e-6

# CARDINAL_OFFSETS is N, E, S, W; the opposite of direction i is (i + 2) % 4
_OPPOSITE = (2, 3, 0, 1)


class ThermalEroder(GenerationStep):
    """Slump material down slopes steeper than the talus angle.

    Water cells are fixed floors: they neither send nor receive material.
    """

    name = "Thermal Eroder"

    def __init__(self, config: ThermalConfig, workers: int = 1):
        self.config = config
        self.workers = workers

    def material_moved(self, diff: NDArray[np.float32]) -> NDArray[np.float32]:
        """Amount moved from a cell to a neighbour that is ``diff`` lower."""
        cfg = self.config
        excess = diff - cfg.talus_angle
        moved = np.minimum(excess * cfg.strength, excess / cfg.max_transfer_divisor)
        return np.where(excess > 0, np.maximum(moved, 0.0), 0.0).astype(np.float32)

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        cfg = self.config
        if cfg.iterations <= 0:
            logger.info("Thermal erosion disabled (0 iterations)")
            return

        height = world.height
        water = world.water_mask
        offsets = distinct_offsets(MOORE_OFFSETS, world.width)

        def pair_mask(y0: int, y1: int, dy: int, dx: int) -> NDArray[np.bool_]:
            neighbor_dry = ~band_shift(water, y0, y1, dy, dx)
            return band_row_valid(y0, y1, dy, height) & ~water[y0:y1] & neighbor_dry

        for iteration in range(cfg.iterations):
            snapshot = world.heightmap.copy()
            scale = np.ones_like(snapshot)
            removed = np.zeros_like(snapshot)
            received = np.zeros_like(snapshot)

            # A cell sends no more in total than its largest single transfer
            def outflow_kernel(y0: int, y1: int) -> None:
                current = snapshot[y0:y1]
                out_total = np.zeros_like(current)
                largest = np.zeros_like(current)
                for dy, dx in offsets:
                    neighbor = band_shift(snapshot, y0, y1, dy, dx)
                    moved = np.where(
                        pair_mask(y0, y1, dy, dx), self.material_moved(current - neighbor), 0.0
                    )
                    out_total += moved
                    largest = np.maximum(largest, moved)
                band_scale = np.where(
                    out_total > largest, largest / np.maximum(out_total, MIN_DIVISOR), 1.0
                ).astype(np.float32)
                scale[y0:y1] = band_scale
                removed[y0:y1] = out_total * band_scale

            # Receivers read each sender's scale so removal and receipt agree
            def inflow_kernel(y0: int, y1: int) -> None:
                current = snapshot[y0:y1]
                in_total = np.zeros_like(current)
                for dy, dx in offsets:
                    neighbor = band_shift(snapshot, y0, y1, dy, dx)
                    sender_scale = band_shift(scale, y0, y1, dy, dx)
                    moved = self.material_moved(neighbor - current) * sender_scale
                    in_total += np.where(pair_mask(y0, y1, dy, dx), moved, 0.0)
                received[y0:y1] = in_total

            run_bands(outflow_kernel, height, self.workers)
            run_bands(inflow_kernel, height, self.workers)
            world.heightmap[...] = np.clip(snapshot - removed + received, 0.0, 1.0)

            logger.debug(
                f"Thermal iteration {iteration + 1}/{cfg.iterations}: "
                f"moved {float(removed.sum()):.4f}"
            )

        logger.info(f"Thermal erosion complete ({cfg.iterations} iterations)")


class HydraulicEroder(GenerationStep):
    """Shallow-water erosion with transient water and sediment fields.

    Each iteration rains on the map, routes water to lower cardinal
    neighbours in proportion to the head difference, carries sediment with
    the moving water, erodes or deposits against the carrying capacity and
    evaporates. Lake cells collect rain but their floor never changes.
    Water leaving through the top or bottom edge is lost.
    """

    name = "Hydraulic Eroder"

    def __init__(self, config: HydraulicConfig, workers: int = 1):
        self.config = config
        self.workers = workers

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        cfg = self.config
        if cfg.iterations <= 0:
            logger.info("Hydraulic erosion disabled (0 iterations)")
            return

        shape = world.heightmap.shape
        water = np.zeros(shape, dtype=np.float32)
        sediment = np.zeros(shape, dtype=np.float32)
        lake = world.lake_mask
        rain = np.where(lake, cfg.lake_rain_amount, cfg.rain_amount).astype(np.float32)

        for iteration in range(cfg.iterations):
            water += rain
            flux = self._outflow(world.heightmap, water)
            water, sediment = self._advect(water, sediment, flux)
            sediment, delta = self._erode(world.heightmap, water, sediment, lake)
            world.heightmap[...] = np.clip(world.heightmap + delta, 0.0, 1.0)

            water *= 1.0 - cfg.evaporation
            sediment *= 1.0 - 0.1 * cfg.evaporation

            logger.debug(
                f"Hydraulic iteration {iteration + 1}/{cfg.iterations}: "
                f"water={float(water.sum()):.2f}, sediment={float(sediment.sum()):.4f}"
            )

        logger.info(f"Hydraulic erosion complete ({cfg.iterations} iterations)")

    def _outflow(
        self,
        heights: NDArray[np.float32],
        water: NDArray[np.float32],
    ) -> NDArray[np.float32]:
        """Outgoing flux toward N, E, S, W, shape ``(4, height, width)``."""
        height = heights.shape[0]
        head = heights + water
        flux = np.zeros((4, *heights.shape), dtype=np.float32)

        def kernel(y0: int, y1: int) -> None:
            here = head[y0:y1]
            drops = np.empty((4, y1 - y0, heights.shape[1]), dtype=np.float32)
            for i, (dy, dx) in enumerate(CARDINAL_OFFSETS):
                neighbor = band_shift(head, y0, y1, dy, dx)
                # Off-map neighbours have zero head
                drops[i] = np.where(band_row_valid(y0, y1, dy, height), here - neighbor, here)

            positive = np.where(drops > 0, drops, 0.0)
            total = positive.sum(axis=0)
            share = positive / np.maximum(total, MIN_DIVISOR)
            band_flux = np.minimum(water[y0:y1], positive) * share
            flux[:, y0:y1] = np.where(total > MIN_DIVISOR, band_flux, 0.0)

        run_bands(kernel, height, self.workers)
        return flux

    def _advect(
        self,
        water: NDArray[np.float32],
        sediment: NDArray[np.float32],
        flux: NDArray[np.float32],
    ) -> tuple[NDArray[np.float32], NDArray[np.float32]]:
        """Move water and suspended sediment along the flux."""
        height = water.shape[0]
        next_water = np.empty_like(water)
        next_sediment = np.empty_like(sediment)
        concentration = sediment / np.maximum(water, MIN_DIVISOR)

        def kernel(y0: int, y1: int) -> None:
            outflow = flux[:, y0:y1].sum(axis=0)
            water_in = np.zeros_like(outflow)
            sediment_in = np.zeros_like(outflow)
            for i, (dy, dx) in enumerate(CARDINAL_OFFSETS):
                valid = band_row_valid(y0, y1, dy, height)
                incoming = band_shift(flux[_OPPOSITE[i]], y0, y1, dy, dx)
                incoming = np.where(valid, incoming, 0.0)
                water_in += incoming
                sediment_in += incoming * band_shift(concentration, y0, y1, dy, dx)

            sediment_out = outflow * concentration[y0:y1]
            next_water[y0:y1] = np.maximum(water[y0:y1] - outflow + water_in, 0.0)
            next_sediment[y0:y1] = np.maximum(
                sediment[y0:y1] - sediment_out + sediment_in, 0.0
            )

        run_bands(kernel, height, self.workers)
        return next_water, next_sediment

    def _erode(
        self,
        heights: NDArray[np.float32],
        water: NDArray[np.float32],
        sediment: NDArray[np.float32],
        lake: NDArray[np.bool_],
    ) -> tuple[NDArray[np.float32], NDArray[np.float32]]:
        """Erode below capacity, deposit above it.

        Returns:
            Updated sediment and the height delta to apply.
        """
        cfg = self.config
        slope = compute_slope(heights, self.workers)
        next_sediment = np.empty_like(sediment)
        delta = np.zeros_like(heights)

        def kernel(y0: int, y1: int) -> None:
            band_slope = slope[y0:y1]
            band_water = water[y0:y1]
            band_sediment = sediment[y0:y1]
            capacity = cfg.capacity * band_slope * band_water

            eroded = np.minimum(
                np.minimum(cfg.solubility * band_slope * band_water, capacity - band_sediment),
                cfg.max_erosion_fraction * heights[y0:y1],
            )
            deposited = np.minimum(cfg.deposition * (band_sediment - capacity), band_sediment)
            change = np.where(band_sediment < capacity, -eroded, deposited)
            change = np.where(lake[y0:y1], 0.0, change)

            delta[y0:y1] = change
            next_sediment[y0:y1] = band_sediment - change

        run_bands(kernel, heights.shape[0], self.workers)
        return next_sediment, delta
