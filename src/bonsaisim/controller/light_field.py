"""
Voxel Light Field
=================
Answers nearest-hit radiance queries along rays against sparse occupied cells.

Cell `i` occupies the half-open cube `[i*size, (i+1)*size)` per axis. Every
query scans all occupied cells with the slab test; there is no acceleration
structure, which is fine for the hundreds to low thousands of voxels a plant
produces. Cells are scanned in lexicographic index order, so among voxels hit at
the same distance the one with the smallest index wins.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Optional

import numpy as np

from bonsaisim.config import DEFAULT_VOXEL_RADIANCE, ESCAPED_RADIANCE
from bonsaisim.controller.raytrace_helpers import nearest_hit, trace_directions
from bonsaisim.errors import DegenerateGeometryError, InvalidArgumentError
from bonsaisim.model.geometry_primitives import ArrayLike3, CellIndex, Ray, as_vector
from bonsaisim.model.voxels import VoxelOccupancy

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

RadianceModel = Callable[[CellIndex], ArrayLike3]


def _as_radiance(values: ArrayLike3) -> npt.NDArray[np.float64]:
    """Validated read-only copy of a 3-channel radiance."""
    radiance = as_vector(values)
    if np.any(radiance < 0.0) or not np.all(np.isfinite(radiance)):
        raise InvalidArgumentError(f"Radiance must be finite and non-negative, got {radiance}.")
    radiance.setflags(write=False)
    return radiance


@dataclass(frozen=True, eq=False)
class LightVoxel:
    """
    A light-emitting voxel record. Radiance is in multiples of W/sr/m per channel.
    Records are immutable; install a new one to change a cell's radiance.
    """
    radiance: npt.NDArray[np.float64] = field(
        default_factory=lambda: np.array(DEFAULT_VOXEL_RADIANCE, dtype=np.float64)
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "radiance", _as_radiance(self.radiance))


class VoxelLightField:
    """
    Sparse field of LightVoxels with a fixed cell size.
    """

    def __init__(
        self,
        size: float = 1e-3,
        escaped_radiance: ArrayLike3 = ESCAPED_RADIANCE,
    ) -> None:
        """
        Args:
            size: Cell edge length in metres.
            escaped_radiance: Radiance returned for rays that hit nothing.
        """
        if not size > 0.0:
            raise InvalidArgumentError(f"Cell size must be positive, got {size}.")
        self.size = size
        self.escaped_radiance = _as_radiance(escaped_radiance)
        self._cells: VoxelOccupancy[Optional[LightVoxel]] = VoxelOccupancy()

        # Packed view used by the kernels, keyed by the occupancy version it was built from
        self._packed: Optional[tuple[npt.NDArray[np.int64], npt.NDArray[np.float64]]] = None
        self._packed_version = -1

    @property
    def cells(self) -> VoxelOccupancy[Optional[LightVoxel]]:
        """The voxel store. Edits made through it are picked up by the next query."""
        return self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={self.size}, voxels={len(self._cells)})"

    @classmethod
    def random(
        cls,
        rng: np.random.Generator,
        count: int = 100,
        extent: int = 50,
        size: float = 1e-3,
    ) -> VoxelLightField:
        """
        Test fixture: `count` default voxels at indices uniform in [-extent, extent].

        Duplicate draws land on the same cell, so the field holds at most `count` voxels.
        """
        field_ = cls(size=size)
        for i, j, k in rng.integers(-extent, extent, size=(count, 3), endpoint=True):
            field_.add((i, j, k), LightVoxel())
        return field_

    def add(self, index: CellIndex, voxel: Optional[LightVoxel]) -> None:
        """Install a voxel; `None` keeps the cell present but transparent."""
        self._cells[index] = voxel

    def populate(
        self,
        occupancy: VoxelOccupancy[Any],
        radiance_for_cell: Optional[RadianceModel] = None,
    ) -> None:
        """
        Install a LightVoxel for every occupied cell of `occupancy`.

        Args:
            occupancy: Cells to light up. Keys whose payload is `None` are skipped.
            radiance_for_cell: Radiance per cell index; the default placeholder
                radiance is used when omitted.
        """
        for index, payload in occupancy.items():
            if payload is None:
                continue
            if radiance_for_cell is None:
                self.add(index, LightVoxel())
            else:
                self.add(index, LightVoxel(radiance=radiance_for_cell(index)))
        logger.debug(f"Light field populated with {len(self._cells)} voxels.")

    def _pack(self) -> tuple[npt.NDArray[np.int64], npt.NDArray[np.float64]]:
        """Sorted visible cell indices and their radiance, rebuilt whenever the store changed."""
        if self._packed is None or self._packed_version != self._cells.version:
            cells = self._cells.to_array(where=lambda voxel: voxel is not None)
            radiance = np.empty((cells.shape[0], 3), dtype=np.float64)
            for row, (i, j, k) in enumerate(cells):
                radiance[row] = self._cells[(i, j, k)].radiance
            self._packed = (cells, radiance)
            self._packed_version = self._cells.version
        return self._packed

    def hit(self, origin: ArrayLike3, direction: ArrayLike3) -> tuple[Optional[CellIndex], float]:
        """
        Index and entry parameter of the nearest voxel along the ray.

        Returns:
            `(None, inf)` if the ray escapes.
        """
        cells, _ = self._pack()
        row, t_enter = self._nearest(origin, direction)
        if row < 0:
            return None, float("inf")
        i, j, k = cells[row]
        return (int(i), int(j), int(k)), t_enter

    def _nearest(self, origin: ArrayLike3, direction: ArrayLike3) -> tuple[int, float]:
        ray = Ray(origin=origin, direction=direction)
        cells, _ = self._pack()
        row, t_enter = nearest_hit(cells, self.size, ray.origin, ray.direction)
        return int(row), float(t_enter)

    def sample(self, origin: ArrayLike3, direction: ArrayLike3) -> npt.NDArray[np.float64]:
        """
        Radiance of the nearest voxel hit by the ray, or the escaped radiance.

        Raises:
            DegenerateGeometryError: If `direction` is the zero vector.
        """
        _, radiance = self._pack()
        row, _ = self._nearest(origin, direction)
        if row < 0:
            return self.escaped_radiance.copy()
        return radiance[row].copy()

    def sample_many(self, origin: ArrayLike3, directions: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        `sample` for a batch of directions sharing one origin.

        Args:
            directions: Shape (m, 3). Rows need not be unit length.

        Returns:
            Radiance per ray, shape (m, 3).

        Raises:
            DegenerateGeometryError: If any direction is zero or not finite.
        """
        origin = as_vector(origin)
        directions = np.asarray(directions, dtype=np.float64)
        if directions.ndim != 2 or directions.shape[1] != 3:
            raise InvalidArgumentError(f"Directions must have shape (m, 3), got {directions.shape}.")

        norms = np.linalg.norm(directions, axis=1)
        degenerate = ~(np.isfinite(norms) & (norms > 0.0))
        if np.any(degenerate):
            raise DegenerateGeometryError(
                f"{int(np.count_nonzero(degenerate))} ray direction(s) have zero or non-finite length, "
                f"first at row {int(np.argmax(degenerate))}."
            )
        directions = np.ascontiguousarray(directions)

        cells, radiance = self._pack()
        rows = trace_directions(cells, self.size, origin, directions)

        result = np.empty((directions.shape[0], 3), dtype=np.float64)
        escaped = rows < 0
        result[escaped] = self.escaped_radiance
        result[~escaped] = radiance[rows[~escaped]]
        return result
