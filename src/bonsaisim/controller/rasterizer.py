"""
Plant Rasterizer
================
Converts the continuous plant geometry into a sparse voxel occupancy set.

Each edge is sampled at a fixed spacing equal to the cell size, starting at the
parent and always including the child, and every sample marks the cell it
falls in. The traversal starts at the above-ground anchor and is depth-first.
"""
from __future__ import annotations

import logging

import numpy as np

from bonsaisim.errors import InvalidArgumentError
from bonsaisim.model.geometry_primitives import cell_indices
from bonsaisim.model.plant import BranchTree
from bonsaisim.model.voxels import VoxelOccupancy

logger = logging.getLogger(__name__)


class Rasterizer:
    """
    Deterministic edge sampler producing `VoxelOccupancy[bool]`.
    """

    def __init__(self, voxel_size: float = 1e-3) -> None:
        """
        Args:
            voxel_size: Cell edge length in metres.
        """
        if not voxel_size > 0.0:
            raise InvalidArgumentError(f"Voxel size must be positive, got {voxel_size}.")
        self.voxel_size = voxel_size

    def rasterize(self, tree: BranchTree) -> VoxelOccupancy[bool]:
        occupancy: VoxelOccupancy[bool] = VoxelOccupancy()
        for parent, child in tree.edges():
            self.rasterize_edge(tree.segment(parent.handle, child.handle).discretize(self.voxel_size), occupancy)

        logger.debug(f"Rasterized {len(tree)} nodes into {len(occupancy)} voxels.")
        return occupancy

    def rasterize_edge(self, points: np.ndarray, occupancy: VoxelOccupancy[bool]) -> None:
        """Mark the cells containing each sample point."""
        for i, j, k in cell_indices(points, self.voxel_size):
            occupancy[(i, j, k)] = True
