"""
Sparse Voxel Occupancy
======================
A mapping from integer cell index to payload, shared by the rasterizer (payload
`True`) and the light field (payload: a LightVoxel or a `None` placeholder).

A missing key means the cell is empty. Callers never store `False` to mean empty;
`None` is reserved for cells that are deliberately present but carry nothing.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Generic, Iterator, MutableMapping, Optional, TypeVar

import numpy as np

from bonsaisim.errors import InvalidArgumentError
from bonsaisim.model.geometry_primitives import CellIndex

if TYPE_CHECKING:
    import numpy.typing as npt

T = TypeVar("T")


class VoxelOccupancy(MutableMapping[CellIndex, T], Generic[T]):
    """
    Sparse 3D grid keyed by `(i, j, k)` integer triples.
    """

    def __init__(self) -> None:
        self._cells: dict[CellIndex, T] = {}
        self.version = 0  # bumped on every edit

    @staticmethod
    def _key(index: CellIndex) -> CellIndex:
        if len(index) != 3:
            raise InvalidArgumentError(f"Cell index must have 3 components, got {index!r}.")
        return int(index[0]), int(index[1]), int(index[2])

    def __getitem__(self, index: CellIndex) -> T:
        return self._cells[self._key(index)]

    def __setitem__(self, index: CellIndex, value: T) -> None:
        self._cells[self._key(index)] = value
        self.version += 1

    def __delitem__(self, index: CellIndex) -> None:
        del self._cells[self._key(index)]
        self.version += 1

    def __contains__(self, index: object) -> bool:
        try:
            return self._key(index) in self._cells  # type: ignore[arg-type]
        except (TypeError, InvalidArgumentError):
            return False

    def __iter__(self) -> Iterator[CellIndex]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, VoxelOccupancy):
            return self._cells == other._cells
        return NotImplemented

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(cells={len(self._cells)})"

    def sorted_indices(self) -> list[CellIndex]:
        """Occupied indices in lexicographic order."""
        return sorted(self._cells)

    def to_array(self, where: Optional[Callable[[T], bool]] = None) -> npt.NDArray[np.int64]:
        """
        Sorted indices as an `(n, 3)` int64 array.

        Args:
            where: Optional filter on the payload; only cells it accepts are kept.
        """
        indices = self.sorted_indices()
        if where is not None:
            indices = [index for index in indices if where(self._cells[index])]
        if not indices:
            return np.empty((0, 3), dtype=np.int64)
        return np.array(indices, dtype=np.int64)
