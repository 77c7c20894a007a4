"""Hydrology: river sources, downhill tracing and channel carving.

Rivers are traced one at a time on the shared heightmap. Each path carves
its channel as it goes, so later rivers see the valleys cut by earlier ones.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .config import RiverConfig
from .stage import GenerationStep, stage_seed

if TYPE_CHECKING:
    from ..state import WorldData

logger = logging.getLogger(__name__)

# D8 directions: N, NE, E, SE, S, SW, W, NW (clockwise from north)
D8_DY = np.array([-1, -1, 0, 1, 1, 1, 0, -1], dtype=np.int32)
D8_DX = np.array([0, 1, 1, 1, 0, -1, -1, -1], dtype=np.int32)

# How a traced path ended
END_LAKE = "lake"
END_RIVER_BED = "river_bed"
END_NO_DESCENT = "no_descent"
END_STAGNATION = "stagnation"
END_REVISIT = "revisit"
END_MAX_LENGTH = "max_length"

# A cell this close above the river bed height counts as reaching it
RIVER_BED_TOLERANCE = 0.001


@dataclass
class River:
    """A traced river path with its properties."""

    path: list[tuple[int, int]]  # (y, x) centre line, source first
    volume: float
    end_reason: str

    @property
    def source(self) -> tuple[int, int]:
        return self.path[0]

    def __len__(self) -> int:
        return len(self.path)


class RiverNetworkSimulator(GenerationStep):
    """Trace rivers downhill from random upland sources.

    A source is a random cell inside the source height band that is not
    already water and has some slope. From there the river repeatedly steps
    to its lowest 8-neighbour, marking and carving a horizontal swath. Volume
    grows with every step and deepens the carve. The path ends at a lake,
    at river bed height, when it runs out of descent, or at the length cap.
    """

    name = "River Network Simulator"

    def __init__(self, config: RiverConfig):
        self.config = config
        self.rivers: list[River] = []

    def num_sources(self, width: int) -> int:
        """Number of rivers to trace on a map of the given width."""
        if self.config.num_sources is not None:
            return self.config.num_sources
        return max(1, width // self.config.tiles_per_source)

    def max_length(self, width: int, height: int) -> int:
        """Maximum steps a single river may take."""
        if self.config.max_length is not None:
            return self.config.max_length
        return width + height

    def process(self, world: "WorldData", base_seed: int, stage_seed_offset: int) -> None:
        rng = np.random.default_rng(stage_seed(base_seed, stage_seed_offset))
        target = self.num_sources(world.width)
        max_attempts = target * max(200, world.width // 5)

        self.rivers = []
        attempts = 0
        while len(self.rivers) < target:
            if attempts >= max_attempts:
                logger.warning(
                    f"Gave up finding river sources after {attempts} attempts "
                    f"({len(self.rivers)}/{target} rivers traced)"
                )
                break
            attempts += 1

            y = int(rng.integers(0, world.height))
            x = int(rng.integers(0, world.width))
            if not self.is_valid_source(world, y, x):
                continue

            river = self.trace_river(world, (y, x))
            self.rivers.append(river)
            logger.debug(
                f"River {len(self.rivers)} from ({x}, {y}): "
                f"{len(river)} steps, ended by {river.end_reason}"
            )

        river_cells = int(world.river_mask.sum())
        logger.info(f"Traced {len(self.rivers)} rivers covering {river_cells} cells")

    def is_valid_source(self, world: "WorldData", y: int, x: int) -> bool:
        """Whether a river may start at ``(y, x)``."""
        cfg = self.config
        height = float(world.heightmap[y, x])
        return (
            cfg.start_min_height <= height <= cfg.start_max_height
            and float(world.slope[y, x]) > cfg.min_source_slope
            and not world.river_mask[y, x]
            and not world.lake_mask[y, x]
        )

    def trace_river(self, world: "WorldData", source: tuple[int, int]) -> River:
        """Trace and carve one river starting at ``source``.

        Args:
            world: World to carve, mutated in place.
            source: (y, x) start cell.

        Returns:
            The traced river. Its path never repeats a cell.
        """
        cfg = self.config
        heights = world.heightmap
        width, height = world.width, world.height

        y, x = source
        volume = cfg.initial_volume
        stagnation = 0
        visited: set[tuple[int, int]] = set()
        path: list[tuple[int, int]] = []
        end_reason = END_MAX_LENGTH

        for _ in range(self.max_length(width, height)):
            if (y, x) in visited:
                end_reason = END_REVISIT
                break
            if world.lake_mask[y, x]:
                end_reason = END_LAKE
                break
            visited.add((y, x))
            path.append((y, x))

            self._carve(world, y, x, volume)

            here = float(heights[y, x])
            best: tuple[int, int] | None = None
            lowest = here
            for d in range(8):
                ny = y + int(D8_DY[d])
                if ny < 0 or ny >= height:
                    continue
                nx = world.wrap_x(x + int(D8_DX[d]))
                neighbor = world.wrapped_height(nx, ny)
                if neighbor >= lowest:
                    continue
                revisit_floor = here - cfg.min_gradient * cfg.visited_gradient_factor
                if (ny, nx) in visited and neighbor >= revisit_floor:
                    continue
                lowest = neighbor
                best = (ny, nx)

            if best is None:
                end_reason = END_NO_DESCENT
                break
            if lowest >= here - cfg.min_gradient:
                stagnation += 1
                if stagnation >= cfg.max_stagnation:
                    end_reason = END_STAGNATION
                    break
            else:
                stagnation = 0

            y, x = best
            if (
                float(heights[y, x]) < cfg.river_bed_height + RIVER_BED_TOLERANCE
                and not world.lake_mask[y, x]
                and (y, x) not in visited
            ):
                world.river_mask[y, x] = True
                path.append((y, x))
                end_reason = END_RIVER_BED
                break

            volume = min(volume + cfg.volume_increase, cfg.max_volume)

        return River(path=path, volume=volume, end_reason=end_reason)

    def _carve(self, world: "WorldData", y: int, x: int, volume: float) -> None:
        """Mark and lower the swath centred on ``(y, x)``."""
        cfg = self.config
        carve = cfg.carve_strength_base + volume * cfg.carve_volume_scaling
        half = cfg.width_tiles // 2
        columns: set[int] = set()
        for offset in range(-half, half + 1):
            column = (x + offset) % world.width
            if column in columns:
                continue
            columns.add(column)
            factor = cfg.center_carve_factor if offset == 0 else cfg.edge_carve_factor
            depth = min(carve * factor, cfg.max_carve_per_step)
            world.river_mask[y, column] = True
            world.heightmap[y, column] = max(float(world.heightmap[y, column]) - depth, 0.0)
