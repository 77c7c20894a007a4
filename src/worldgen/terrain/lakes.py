"""Lake formation by filling closed basins."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
from scipy import ndimage

from .coastal import component_sizes, label_wrapped
from .config import LakeConfig
from .parallel import MOORE_OFFSETS, band_row_valid, band_shift, distinct_offsets
from .stage import GenerationStep

if TYPE_CHECKING:
    from ..state import WorldData

logger = logging.getLogger(__name__)

# Rim height assigned to neighbours beyond the top or bottom edge
OFF_MAP_RIM_HEIGHT = 0.0


@dataclass
class Lake:
    """A basin that was filled to form a lake."""

    label: int
    surface: float
    lowest: float
    rim: float
    cells: int

    @property
    def depth(self) -> float:
        return self.surface - self.lowest


class LakeFormer(GenerationStep):
    """Fill closed low-lying basins with water.

    A basin is an 8-connected (X-wrapped) region of non-lake cells below the
    lake surface ceiling. Its rim is the lowest neighbour outside the region;
    a neighbour beyond the top or bottom edge has rim height 0, so basins
    touching those edges drain away. A basin whose rim is strictly higher
    than its lowest cell holds water up to the lower of the rim and the
    ceiling, provided the water would be deeper than the minimum depth.
    """

    name = "Lake Former"

    def __init__(self, config: LakeConfig):
        self.config = config
        self.lakes: list[Lake] = []

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        self.lakes = self.form_lakes(world)
        wave_lakes = self.flag_wave_lakes(world)
        logger.info(
            f"Formed {len(self.lakes)} lakes covering {int(world.lake_mask.sum())} cells, "
            f"{wave_lakes} large enough for waves"
        )

    def form_lakes(self, world: "WorldData") -> list[Lake]:
        """Fill every qualifying basin and return the lakes formed."""
        cfg = self.config
        heights = world.heightmap
        height = world.height

        basin_mask = (heights < cfg.surface_max) & ~world.lake_mask
        labels, num_basins = label_wrapped(basin_mask)
        if num_basins == 0:
            return []

        index = np.arange(1, num_basins + 1)
        lowest = np.asarray(ndimage.minimum(heights, labels, index), dtype=np.float64)

        # rim[label] = lowest neighbour outside the basin
        rim = np.full(num_basins + 1, np.inf)
        for dy, dx in distinct_offsets(MOORE_OFFSETS, world.width):
            valid = band_row_valid(0, height, dy, height)
            neighbor_labels = band_shift(labels, 0, height, dy, dx)
            neighbor_heights = band_shift(heights, 0, height, dy, dx)

            edge = (labels > 0) & valid & (neighbor_labels == 0)
            np.minimum.at(rim, labels[edge], neighbor_heights[edge].astype(np.float64))

            off_map = (labels > 0) & ~valid
            np.minimum.at(rim, labels[off_map], OFF_MAP_RIM_HEIGHT)

        basin_rim = rim[1:]
        surface = np.minimum(basin_rim, cfg.surface_max)
        forming = (basin_rim > lowest) & (surface - lowest > cfg.min_effective_depth)
        if not forming.any():
            return []

        lake_surface = np.zeros(num_basins + 1, dtype=np.float32)
        lake_surface[1:][forming] = surface[forming]
        cell_surface = lake_surface[labels]

        fill = (labels > 0) & (cell_surface > 0) & (heights < cell_surface)
        heights[fill] = cell_surface[fill]
        world.lake_mask[fill] = True

        filled_cells = component_sizes(np.where(fill, labels, 0), num_basins)
        lakes = []
        for label in np.flatnonzero(forming) + 1:
            lake = Lake(
                label=int(label),
                surface=float(lake_surface[label]),
                lowest=float(lowest[label - 1]),
                rim=float(rim[label]),
                cells=int(filled_cells[label]),
            )
            lakes.append(lake)
            logger.debug(
                f"Lake {lake.label}: {lake.cells} cells, surface={lake.surface:.4f}, "
                f"depth={lake.depth:.4f}"
            )
        return lakes

    def flag_wave_lakes(self, world: "WorldData") -> int:
        """Mark cells of lake bodies large enough to have waves.

        Returns:
            Number of lake bodies with waves.
        """
        labels, num_bodies = label_wrapped(world.lake_mask)
        if num_bodies == 0:
            world.lake_has_waves[...] = False
            return 0

        sizes = component_sizes(labels, num_bodies)
        has_waves = sizes >= self.config.min_size_for_waves
        has_waves[0] = False
        world.lake_has_waves[...] = has_waves[labels]
        return int(has_waves.sum())
