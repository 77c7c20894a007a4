"""Shoreline analysis on the cylinder: connected components and distance fields."""

import numpy as np
from numpy.typing import NDArray
from scipy import ndimage

from .parallel import CARDINAL_OFFSETS, MOORE_OFFSETS, band_row_valid, band_shift


def label_wrapped(
    mask: NDArray[np.bool_],
    connectivity: int = 2,
) -> tuple[NDArray[np.int32], int]:
    """Label connected components, joining those that touch across the X seam.

    Args:
        mask: Boolean mask of cells to label.
        connectivity: 1 for 4-connected, 2 for 8-connected.

    Returns:
        Label array (0 = background, 1..n) and the number of components.
    """
    structure = ndimage.generate_binary_structure(2, connectivity)
    labeled, num_features = ndimage.label(mask, structure=structure)
    if num_features == 0 or mask.shape[1] < 2:
        return labeled.astype(np.int32), num_features

    parent = np.arange(num_features + 1)

    def find(label: int) -> int:
        while parent[label] != label:
            parent[label] = parent[parent[label]]
            label = parent[label]
        return label

    # Last column touches the first column of the same row, plus the rows
    # above and below when diagonals count
    left = labeled[:, 0]
    right = labeled[:, -1]
    row_shifts = (-1, 0, 1) if connectivity == 2 else (0,)
    merged = False
    for dy in row_shifts:
        if dy < 0:
            a, b = right[1:], left[:-1]
        elif dy > 0:
            a, b = right[:-1], left[1:]
        else:
            a, b = right, left
        touching = (a > 0) & (b > 0)
        for label_a, label_b in zip(a[touching], b[touching]):
            root_a, root_b = find(int(label_a)), find(int(label_b))
            if root_a != root_b:
                parent[max(root_a, root_b)] = min(root_a, root_b)
                merged = True

    if not merged:
        return labeled.astype(np.int32), num_features

    # Pointer jumping until every label points at its root
    roots = parent.copy()
    while True:
        next_roots = roots[roots]
        if np.array_equal(next_roots, roots):
            break
        roots = next_roots

    unique_roots, relabel = np.unique(roots, return_inverse=True)
    return relabel[labeled].astype(np.int32), len(unique_roots) - 1


def component_sizes(labeled: NDArray[np.int32], num_features: int) -> NDArray[np.int64]:
    """Cell count per label, indexed by label (index 0 is the background)."""
    return np.bincount(labeled.ravel(), minlength=num_features + 1)


def adjacent_to(
    mask: NDArray[np.bool_],
    off_map: bool = False,
) -> NDArray[np.bool_]:
    """Cells with at least one 8-neighbour in ``mask``.

    Args:
        mask: Boolean mask to look for.
        off_map: Whether a neighbour beyond the top or bottom edge counts.

    Returns:
        Boolean mask of cells touching ``mask``.
    """
    height = mask.shape[0]
    result = np.zeros_like(mask)
    for dy, dx in MOORE_OFFSETS:
        valid = band_row_valid(0, height, dy, height)
        result |= np.where(valid, band_shift(mask, 0, height, dy, dx), off_map)
    return result


def cardinal_distance(
    sources: NDArray[np.bool_],
    passable: NDArray[np.bool_],
    max_distance: int,
) -> NDArray[np.int32]:
    """Breadth-first step distance from the nearest source.

    Steps move between cardinal neighbours (X wrapped) through passable
    cells. Sources are at distance 0; cells farther than ``max_distance`` or
    unreachable stay at -1.
    """
    height = sources.shape[0]
    distance = np.full(sources.shape, -1, dtype=np.int32)
    distance[sources] = 0
    frontier = sources.copy()

    for step in range(1, max_distance + 1):
        reached = np.zeros_like(frontier)
        for dy, dx in CARDINAL_OFFSETS:
            valid = band_row_valid(0, height, dy, height)
            reached |= valid & band_shift(frontier, 0, height, dy, dx)
        frontier = reached & passable & (distance < 0)
        if not frontier.any():
            break
        distance[frontier] = step

    return distance


def compute_distance_to_water(
    lake_mask: NDArray[np.bool_],
    river_mask: NDArray[np.bool_],
    shoreline_max_distance: int,
) -> NDArray[np.int32]:
    """Distance from each land cell to the nearest lake shore.

    Land cells touching a lake are at distance 0. The field covers
    ``shoreline_max_distance`` tiles (0 through max - 1); water cells and
    land farther away stay at -1.
    """
    land = ~(lake_mask | river_mask)
    shore = land & adjacent_to(lake_mask)
    return cardinal_distance(shore, land, shoreline_max_distance - 1)


def compute_distance_to_land(
    lake_mask: NDArray[np.bool_],
    river_mask: NDArray[np.bool_],
    max_distance: int,
) -> NDArray[np.int32]:
    """Distance from each lake cell to the shore, capped at ``max_distance``.

    Shore cells are lake cells touching land or the top or bottom edge.
    Non-lake cells stay at -1.
    """
    land = ~(lake_mask | river_mask)
    shore = lake_mask & adjacent_to(land, off_map=True)
    return cardinal_distance(shore, lake_mask, max_distance)
