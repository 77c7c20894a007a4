"""Terrain categories, slope aspects and their properties."""

from enum import Enum, IntEnum


class TerrainType(str, Enum):
    """Discrete terrain categories assigned by the classification stage."""

    MEADOW = "meadow"
    PLAINS = "plains"
    DRY_PLAINS = "dry_plains"
    HILLS = "hills"
    MOOR = "moor"
    PLATEAU_GRASS = "plateau_grass"
    MARSH = "marsh"
    STEEP_SLOPE = "steep_slope"
    ROCKY_SLOPE = "rocky_slope"
    CLIFF_FACE = "cliff_face"
    MOUNTAIN_LOWER = "mountain_lower"
    MOUNTAIN_MID = "mountain_mid"
    MOUNTAIN_UPPER = "mountain_upper"
    MOUNTAIN_PEAK_SNOW = "mountain_peak_snow"
    RIVER_WATER = "river_water"
    LAKE_WATER = "lake_water"
    POND_WATER = "pond_water"
    BORDER_WALL = "border_wall"

    @property
    def walkable(self) -> bool:
        """Whether this terrain can be crossed regardless of slope."""
        return self not in _IMPASSABLE_TYPES

    @property
    def is_water(self) -> bool:
        """Whether this terrain is open water."""
        return self in _WATER_TYPES

    @property
    def is_mountain(self) -> bool:
        """Whether this terrain belongs to the mountain or cliff family."""
        return self in _MOUNTAIN_TYPES


class SlopeAspect(IntEnum):
    """Compass direction a slope faces, stored as uint8 in the aspect grid."""

    FLAT = 0
    NORTH = 1
    NORTHEAST = 2
    EAST = 3
    SOUTHEAST = 4
    SOUTH = 5
    SOUTHWEST = 6
    WEST = 7
    NORTHWEST = 8
    STEEP_PEAK = 9


_IMPASSABLE_TYPES = frozenset({
    TerrainType.MOUNTAIN_PEAK_SNOW,
    TerrainType.CLIFF_FACE,
    TerrainType.RIVER_WATER,
    TerrainType.LAKE_WATER,
    TerrainType.POND_WATER,
    TerrainType.BORDER_WALL,
})

_WATER_TYPES = frozenset({
    TerrainType.RIVER_WATER,
    TerrainType.LAKE_WATER,
    TerrainType.POND_WATER,
})

_MOUNTAIN_TYPES = frozenset({
    TerrainType.MOUNTAIN_LOWER,
    TerrainType.MOUNTAIN_MID,
    TerrainType.MOUNTAIN_UPPER,
    TerrainType.MOUNTAIN_PEAK_SNOW,
    TerrainType.CLIFF_FACE,
    TerrainType.ROCKY_SLOPE,
    TerrainType.STEEP_SLOPE,
})

# Compact uint8 encoding used by the terrain grid
_TERRAIN_TO_VALUE: dict[TerrainType, int] = {
    terrain: index for index, terrain in enumerate(TerrainType)
}
_VALUE_TO_TERRAIN: dict[int, TerrainType] = {
    index: terrain for terrain, index in _TERRAIN_TO_VALUE.items()
}


def terrain_value(terrain: TerrainType) -> int:
    """Get the uint8 grid value for a terrain type."""
    return _TERRAIN_TO_VALUE[terrain]


def terrain_value_to_type(value: int) -> TerrainType:
    """Convert a uint8 grid value back to its terrain type.

    Raises:
        ValueError: If the value does not encode a terrain type.
    """
    try:
        return _VALUE_TO_TERRAIN[value]
    except KeyError:
        raise ValueError(f"Unknown terrain value: {value}") from None
