"""
Geometric Primitives for the plant and the light field.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence, Union
import numpy as np
import math

from bonsaisim.errors import DegenerateGeometryError, InvalidArgumentError

if TYPE_CHECKING:
    import numpy.typing as npt

CellIndex = tuple[int, int, int]
ArrayLike3 = Union[Sequence[float], "npt.NDArray[np.float64]"]


def as_vector(values: ArrayLike3) -> npt.NDArray[np.float64]:
    """Copy a 3-sequence into a float64 array, validating its shape."""
    vector = np.array(values, dtype=np.float64)
    if vector.shape != (3,):
        raise InvalidArgumentError(f"Expected a 3D vector, got shape {vector.shape}.")
    return vector


def magnitude(vector: npt.NDArray[np.float64]) -> float:
    return math.sqrt(float(np.dot(vector, vector)))


def normalize(vector: ArrayLike3) -> npt.NDArray[np.float64]:
    """
    Return the unit vector pointing along `vector`.

    Raises:
        DegenerateGeometryError: If `vector` has zero (or non-finite) length.
    """
    vector = as_vector(vector)
    mag = magnitude(vector)
    if mag == 0.0 or not math.isfinite(mag):
        raise DegenerateGeometryError(f"Cannot normalize vector {vector} of length {mag}.")
    return vector / mag


def spherical_to_cartesian(
    theta: float | npt.NDArray[np.float64],
    phi: float | npt.NDArray[np.float64],
) -> npt.NDArray[np.float64]:
    """
    Convert polar angle `theta` (from +Z) and azimuth `phi` (from +X towards +Y)
    to unit direction(s). The last axis of the result holds (x, y, z).
    """
    theta, phi = np.broadcast_arrays(np.asarray(theta, dtype=np.float64), np.asarray(phi, dtype=np.float64))
    sin_theta = np.sin(theta)
    return np.stack([sin_theta * np.cos(phi), sin_theta * np.sin(phi), np.cos(theta)], axis=-1)


def cell_indices(points: npt.NDArray[np.float64], size: float) -> npt.NDArray[np.int64]:
    """
    Index of the cell `[i*size, (i+1)*size)` per axis containing each point.

    Args:
        points: Shape (..., 3).
        size:   Cell edge length.

    Returns:
        int64 indices with the same shape as `points`.
    """
    if not size > 0.0:
        raise InvalidArgumentError(f"Cell size must be positive, got {size}.")
    return np.floor(np.asarray(points, dtype=np.float64) / size).astype(np.int64)


@dataclass
class Segment:
    """A straight edge between two points."""
    start: npt.NDArray[np.float64]
    end: npt.NDArray[np.float64]

    @property
    def length(self) -> float:
        return magnitude(self.end - self.start)

    def discretize(self, spacing: float) -> npt.NDArray[np.float64]:
        """
        Points at `spacing` intervals from `start`, always finishing with `end`.

        A zero-length segment yields its single shared point.
        """
        if spacing <= 0.0:
            raise InvalidArgumentError(f"Sample spacing must be positive, got {spacing}.")

        length = self.length
        if length == 0.0:
            return self.start.reshape(1, 3).copy()

        direction = (self.end - self.start) / length
        distances = np.arange(0, math.floor(length / spacing) + 1, dtype=np.float64) * spacing
        points = self.start + np.outer(distances, direction)
        return np.vstack([points, self.end])


@dataclass
class Ray:
    """A half-line starting at `origin`; the direction is normalized on construction."""
    origin: npt.NDArray[np.float64]
    direction: npt.NDArray[np.float64]

    def __post_init__(self) -> None:
        self.origin = as_vector(self.origin)
        self.direction = normalize(self.direction)
