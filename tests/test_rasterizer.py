"""
Rasterizer tests.
"""
import pytest

from bonsaisim.errors import InvalidArgumentError
from bonsaisim.controller.rasterizer import Rasterizer
from bonsaisim.model.plant import SHOOT_ANCHOR, BranchTree

TIP = 2


def test_fresh_plant_occupies_one_cell():
    """The 0.1 mm anchor->tip edge lies inside a single 1 mm cell."""
    occupancy = Rasterizer(voxel_size=1e-3).rasterize(BranchTree.create((0.0, 0.0, 0.0)))
    assert dict(occupancy) == {(0, 0, 0): True}


def test_vertical_edge_marks_every_crossed_cell():
    tree = BranchTree.create((0.0005, 0.0005, 0.0005))
    tree.move(TIP, (0.0, 0.0, 0.0049))  # tip at z = 5.5 mm
    occupancy = Rasterizer(voxel_size=1e-3).rasterize(tree)
    assert set(occupancy) == {(0, 0, k) for k in range(6)}
    assert all(value is True for value in occupancy.values())


def test_negative_coordinates_use_floor():
    tree = BranchTree.create((-0.0005, -0.0005, -0.0025))
    occupancy = Rasterizer(voxel_size=1e-3).rasterize(tree)
    assert set(occupancy) == {(-1, -1, -3)}


def test_zero_length_edge_gives_one_cell():
    tree = BranchTree.create((0.0, 0.0, 0.0))
    tree.move(TIP, (0.0, 0.0, -1e-4))
    occupancy = Rasterizer(voxel_size=1e-3).rasterize(tree)
    assert set(occupancy) == {(0, 0, 0)}


def test_rasterization_is_deterministic():
    tree = BranchTree.create((0.0, 0.0, 0.0))
    tree.move(TIP, (0.002, 0.003, 0.0049))
    tree.replicate()
    tree.step(60.0)
    rasterizer = Rasterizer(voxel_size=1e-3)
    assert rasterizer.rasterize(tree) == rasterizer.rasterize(tree)


def test_subdivided_edges_cover_the_same_cells():
    """Splitting an edge into halves keeps the rasterized footprint connected."""
    tree = BranchTree.create((0.0005, 0.0005, 0.0005))
    tree.move(TIP, (0.0, 0.0, 0.0039))
    rasterizer = Rasterizer(voxel_size=1e-3)
    before = set(rasterizer.rasterize(tree))
    tree.subdivide(SHOOT_ANCHOR, TIP)
    assert set(rasterizer.rasterize(tree)) == before


def test_voxel_size_must_be_positive():
    with pytest.raises(InvalidArgumentError):
        Rasterizer(voxel_size=0.0)
