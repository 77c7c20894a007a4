"""Cylindrical terrain world generation."""

from .exceptions import (
    CoordinateOutOfRangeError,
    GenerationStageError,
    InvalidDimensionsError,
    WorldGenError,
)
from .state import Tile, WorldData, WorldMap
from .terrain_types import SlopeAspect, TerrainType

__all__ = [
    # State
    "WorldData",
    "WorldMap",
    "Tile",
    # Types
    "TerrainType",
    "SlopeAspect",
    # Exceptions
    "WorldGenError",
    "InvalidDimensionsError",
    "CoordinateOutOfRangeError",
    "GenerationStageError",
]
