"""World grid state and its read interface."""

import dataclasses
import time
from dataclasses import dataclass

import numpy as np
import structlog
from numpy.typing import NDArray
from pydantic import BaseModel

from .exceptions import CoordinateOutOfRangeError, InvalidDimensionsError, WorldGenError
from .terrain.config import TerrainConfig
from .terrain_types import SlopeAspect, TerrainType, terrain_value_to_type

logger = structlog.get_logger()


@dataclass(eq=False)
class WorldData:
    """Per-cell arrays of a cylindrical world, shared by all pipeline stages.

    Every array has shape ``(height, width)`` in C order, so ``arr.ravel()``
    is the row-major ``y * width + x`` buffer. X wraps around; Y does not.
    Arrays are allocated once and mutated in place by the stages.
    """

    width: int
    height: int
    heightmap: NDArray[np.float32]
    slope: NDArray[np.float32]
    aspect: NDArray[np.uint8]
    river_mask: NDArray[np.bool_]
    lake_mask: NDArray[np.bool_]
    lake_has_waves: NDArray[np.bool_]
    terrain: NDArray[np.uint8]
    passable: NDArray[np.bool_]
    distance_to_land: NDArray[np.int32]
    distance_to_water: NDArray[np.int32]
    marsh_water_patch: NDArray[np.bool_]

    @classmethod
    def allocate(cls, width: int, height: int) -> "WorldData":
        """Allocate a zeroed world.

        Raises:
            InvalidDimensionsError: If width or height is not positive.
        """
        if width <= 0 or height <= 0:
            raise InvalidDimensionsError(
                f"World dimensions must be positive, got {width}x{height}"
            )
        shape = (height, width)
        return cls(
            width=width,
            height=height,
            heightmap=np.zeros(shape, dtype=np.float32),
            slope=np.zeros(shape, dtype=np.float32),
            aspect=np.zeros(shape, dtype=np.uint8),
            river_mask=np.zeros(shape, dtype=bool),
            lake_mask=np.zeros(shape, dtype=bool),
            lake_has_waves=np.zeros(shape, dtype=bool),
            terrain=np.zeros(shape, dtype=np.uint8),
            passable=np.ones(shape, dtype=bool),
            distance_to_land=np.full(shape, -1, dtype=np.int32),
            distance_to_water=np.full(shape, -1, dtype=np.int32),
            marsh_water_patch=np.zeros(shape, dtype=bool),
        )

    @property
    def water_mask(self) -> NDArray[np.bool_]:
        """Cells holding a river or a lake."""
        return self.river_mask | self.lake_mask

    def wrap_x(self, x: int) -> int:
        """Wrap an X coordinate onto the map."""
        return x % self.width

    def wrapped_height(self, x: int, y: int) -> float:
        """Height at ``(x, y)`` with X wrapped and Y clamped to the map."""
        y = min(max(y, 0), self.height - 1)
        return float(self.heightmap[y, self.wrap_x(x)])

    def arrays(self) -> dict[str, NDArray]:
        """All per-cell arrays by field name."""
        return {
            field.name: getattr(self, field.name)
            for field in dataclasses.fields(self)
            if isinstance(getattr(self, field.name), np.ndarray)
        }

    def freeze(self) -> None:
        """Make every array read-only."""
        for array in self.arrays().values():
            array.flags.writeable = False

    @property
    def frozen(self) -> bool:
        return not self.heightmap.flags.writeable


class Tile(BaseModel, frozen=True):
    """Immutable snapshot of one grid cell."""

    x: int
    y: int
    terrain: TerrainType
    height: float
    slope: float
    aspect: SlopeAspect
    is_river: bool = False
    is_lake: bool = False
    has_waves: bool = False
    is_marsh_water_patch: bool = False
    distance_to_land: int = -1
    distance_to_water: int = -1
    passable: bool = True


class WorldMap:
    """A generated world and its read interface.

    X coordinates wrap around the cylinder; Y coordinates outside the map
    raise :class:`CoordinateOutOfRangeError`.
    """

    def __init__(
        self,
        width: int,
        height: int,
        seed: int,
        config: TerrainConfig | None = None,
    ):
        self._data = WorldData.allocate(width, height)
        self._seed = seed
        self._config = config if config is not None else TerrainConfig(
            width=width, height=height, seed=seed
        )
        self._generated = False

    @classmethod
    def from_config(cls, config: TerrainConfig) -> "WorldMap":
        """Create an ungenerated world sized and seeded by a config."""
        return cls(config.width, config.height, config.seed, config=config)

    @property
    def width(self) -> int:
        return self._data.width

    @property
    def height(self) -> int:
        return self._data.height

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def config(self) -> TerrainConfig:
        return self._config

    @property
    def data(self) -> WorldData:
        """Underlying arrays. Read-only once the world is generated."""
        return self._data

    @property
    def generated(self) -> bool:
        return self._generated

    def generate(self) -> None:
        """Run the full generation pipeline, then freeze the grid.

        Raises:
            WorldGenError: If the world was already generated.
            GenerationStageError: If any stage fails.
        """
        # Import here to avoid a circular import through the terrain package
        from .terrain.pipeline import PipelineCoordinator

        if self._generated:
            raise WorldGenError("World has already been generated")

        start = time.perf_counter()
        PipelineCoordinator.from_config(self._config).run(self._data, self._seed)
        self._data.freeze()
        self._generated = True

        logger.info(
            "world_generated",
            width=self.width,
            height=self.height,
            seed=self._seed,
            duration_s=round(time.perf_counter() - start, 2),
        )

    def in_bounds(self, y: int) -> bool:
        """Check if a Y coordinate is on the map."""
        return 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> Tile:
        """Get the tile at ``(x, y)``.

        Raises:
            CoordinateOutOfRangeError: If y is outside ``[0, height)``.
        """
        if not self.in_bounds(y):
            raise CoordinateOutOfRangeError(
                f"Y coordinate {y} outside [0, {self.height})"
            )
        x = self._data.wrap_x(x)
        data = self._data
        return Tile(
            x=x,
            y=y,
            terrain=terrain_value_to_type(int(data.terrain[y, x])),
            height=float(data.heightmap[y, x]),
            slope=float(data.slope[y, x]),
            aspect=SlopeAspect(int(data.aspect[y, x])),
            is_river=bool(data.river_mask[y, x]),
            is_lake=bool(data.lake_mask[y, x]),
            has_waves=bool(data.lake_has_waves[y, x]),
            is_marsh_water_patch=bool(data.marsh_water_patch[y, x]),
            distance_to_land=int(data.distance_to_land[y, x]),
            distance_to_water=int(data.distance_to_water[y, x]),
            passable=bool(data.passable[y, x]),
        )

    def get_height(self, x: int, y: int) -> float:
        """Height at ``(x, y)`` with X wrapped.

        Raises:
            CoordinateOutOfRangeError: If y is outside ``[0, height)``.
        """
        if not self.in_bounds(y):
            raise CoordinateOutOfRangeError(
                f"Y coordinate {y} outside [0, {self.height})"
            )
        return float(self._data.heightmap[y, self._data.wrap_x(x)])
