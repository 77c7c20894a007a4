"""Post-stage validation of the world grid."""

import logging
from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from ..terrain_types import TerrainType, terrain_value

if TYPE_CHECKING:
    from ..state import WorldData

logger = logging.getLogger(__name__)

_MOUNTAIN_VALUES = np.array(
    [terrain_value(t) for t in TerrainType if t.is_mountain], dtype=np.uint8
)


class ValidationResult:
    """Result of world validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_world(world: "WorldData") -> ValidationResult:
    """Check the invariants every stage must preserve.

    Args:
        world: World grid to check.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()

    _check_shapes(world, result)
    if not result.passed:
        return result

    _check_heights(world.heightmap, result)
    _check_slope(world.slope, result)
    _check_lake_terrain(world.terrain, world.lake_mask, result)
    _check_land(world.water_mask, result)

    if result.passed:
        logger.debug("World validation passed")
    else:
        logger.warning(f"World validation failed with {len(result.errors)} errors")
        for error in result.errors:
            logger.error(f"  - {error}")

    for warning in result.warnings:
        logger.warning(f"  - {warning}")

    return result


def _check_shapes(world: "WorldData", result: ValidationResult) -> None:
    """Check every array still covers the whole grid."""
    expected = (world.height, world.width)
    for name, array in world.arrays().items():
        if array.shape != expected:
            result.add_error(f"{name} has shape {array.shape}, expected {expected}")


def _check_heights(heights: NDArray[np.float32], result: ValidationResult) -> None:
    """Check heights are finite and inside [0, 1]."""
    non_finite = int(np.count_nonzero(~np.isfinite(heights)))
    if non_finite:
        result.add_error(f"Heightmap has {non_finite} non-finite cells")
        return

    out_of_range = int(np.count_nonzero((heights < 0.0) | (heights > 1.0)))
    if out_of_range:
        result.add_error(
            f"Heightmap has {out_of_range} cells outside [0, 1] "
            f"(min={float(heights.min()):.4f}, max={float(heights.max()):.4f})"
        )


def _check_slope(slope: NDArray[np.float32], result: ValidationResult) -> None:
    """Check slope is finite and non-negative."""
    invalid = int(np.count_nonzero(~np.isfinite(slope) | (slope < 0.0)))
    if invalid:
        result.add_error(f"Slope has {invalid} negative or non-finite cells")


def _check_lake_terrain(
    terrain: NDArray[np.uint8],
    lake_mask: NDArray[np.bool_],
    result: ValidationResult,
) -> None:
    """Check no lake cell carries a mountain or cliff category."""
    misclassified = int(np.count_nonzero(lake_mask & np.isin(terrain, _MOUNTAIN_VALUES)))
    if misclassified:
        result.add_error(f"{misclassified} lake cells classified as mountain terrain")


def _check_land(water: NDArray[np.bool_], result: ValidationResult) -> None:
    """Warn when rivers and lakes have covered every cell."""
    if water.size and water.all():
        result.add_warning("No dry land left: every cell is river or lake")
