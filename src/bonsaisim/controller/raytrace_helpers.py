# raytrace_helpers.py
from __future__ import annotations

import numpy as np
import numpy.typing as npt
import numba as nb

# ---- JIT'd ray / axis-aligned box kernels ----
# No fastmath here: the slab test relies on IEEE infinities.


@nb.njit(cache=True)
def intersect_box(
    lower: npt.NDArray[np.float64],
    upper: npt.NDArray[np.float64],
    origin: npt.NDArray[np.float64],
    direction: npt.NDArray[np.float64],
) -> tuple[bool, float, float]:
    """
    Slab test of a ray against the box `[lower, upper]`.

    Args:
        lower, upper: Box corners, shape (3,).
        origin:       Ray origin, shape (3,).
        direction:    Ray direction, shape (3,). Need not be normalized.

    Returns:
        (hit, t_enter, t_exit). `t_enter` is clamped to 0 because the ray starts
        at its origin. A zero direction component puts no constraint on that axis
        when the origin lies between the two planes, and misses the box otherwise.
    """
    t_enter = 0.0
    t_exit = np.inf
    for k in range(3):
        d = direction[k]
        if d == 0.0:
            if origin[k] < lower[k] or origin[k] > upper[k]:
                return False, np.inf, -np.inf
            continue
        t0 = (lower[k] - origin[k]) / d
        t1 = (upper[k] - origin[k]) / d
        if t0 > t1:
            t0, t1 = t1, t0
        if t0 > t_enter:
            t_enter = t0
        if t1 < t_exit:
            t_exit = t1
    return t_enter <= t_exit, t_enter, t_exit


@nb.njit(cache=True)
def nearest_hit(
    cells: npt.NDArray[np.int64],
    size: float,
    origin: npt.NDArray[np.float64],
    direction: npt.NDArray[np.float64],
) -> tuple[int, float]:
    """
    Find the voxel with the smallest entry parameter along a ray.

    Args:
        cells:     Occupied cell indices, shape (n, 3). Scanned in order, and only
                   a strictly smaller entry replaces the current best, so ties go
                   to the earliest row.
        size:      Cell edge length.
        origin:    Ray origin, shape (3,).
        direction: Ray direction, shape (3,).

    Returns:
        (row, t_enter) of the nearest voxel, or (-1, inf) if the ray escapes.
    """
    best = -1
    t_best = np.inf
    lower = np.empty(3, np.float64)
    upper = np.empty(3, np.float64)
    for i in range(cells.shape[0]):
        for k in range(3):
            lower[k] = cells[i, k] * size
            upper[k] = lower[k] + size
        hit, t_enter, _ = intersect_box(lower, upper, origin, direction)
        if hit and t_enter < t_best:
            t_best = t_enter
            best = i
    return best, t_best


@nb.njit(cache=True)
def trace_directions(
    cells: npt.NDArray[np.int64],
    size: float,
    origin: npt.NDArray[np.float64],
    directions: npt.NDArray[np.float64],
) -> npt.NDArray[np.int64]:
    """
    Batched nearest_hit for many rays sharing one origin.

    Args:
        directions: Ray directions, shape (m, 3).

    Returns:
        Row of the nearest voxel per ray (-1 where the ray escapes), shape (m,).
    """
    m = directions.shape[0]
    hits = np.empty(m, np.int64)
    for j in range(m):
        row, _ = nearest_hit(cells, size, origin, directions[j])
        hits[j] = row
    return hits
