"""
Voxel light field tests.
"""
import numpy as np
import pytest

from bonsaisim.config import DEFAULT_VOXEL_RADIANCE, ESCAPED_RADIANCE
from bonsaisim.controller.light_field import LightVoxel, VoxelLightField
from bonsaisim.errors import DegenerateGeometryError, InvalidArgumentError
from bonsaisim.model.voxels import VoxelOccupancy


def single_voxel_field(radiance=(1.0, 2.0, 3.0)):
    field = VoxelLightField(size=1.0)
    field.add((0, 0, 0), LightVoxel(radiance=np.array(radiance)))
    return field


def test_empty_field_always_escapes():
    field = VoxelLightField()
    rng = np.random.default_rng(7)
    for _ in range(20):
        origin = rng.uniform(-1.0, 1.0, size=3)
        direction = rng.normal(size=3)
        np.testing.assert_array_equal(field.sample(origin, direction), ESCAPED_RADIANCE)


def test_single_voxel_hit_and_miss():
    field = single_voxel_field()
    origin = (-5.0, 0.5, 0.5)

    index, t = field.hit(origin, (1.0, 0.0, 0.0))
    assert index == (0, 0, 0)
    assert t == pytest.approx(5.0)
    np.testing.assert_array_equal(field.sample(origin, (1.0, 0.0, 0.0)), [1.0, 2.0, 3.0])

    assert field.hit(origin, (0.0, 1.0, 0.0)) == (None, float("inf"))
    np.testing.assert_array_equal(field.sample(origin, (0.0, 1.0, 0.0)), ESCAPED_RADIANCE)


def test_nearest_voxel_wins():
    field = VoxelLightField(size=1.0)
    field.add((0, 0, 0), LightVoxel(radiance=np.array([1.0, 0.0, 0.0])))
    field.add((3, 0, 0), LightVoxel(radiance=np.array([0.0, 1.0, 0.0])))

    np.testing.assert_array_equal(field.sample((-5.0, 0.5, 0.5), (1.0, 0.0, 0.0)), [1.0, 0.0, 0.0])
    np.testing.assert_array_equal(field.sample((10.0, 0.5, 0.5), (-1.0, 0.0, 0.0)), [0.0, 1.0, 0.0])


def test_ties_resolve_to_smallest_index():
    field = VoxelLightField(size=1.0)
    # Inserted in reverse order on purpose
    field.add((0, 1, 0), LightVoxel(radiance=np.array([0.0, 1.0, 0.0])))
    field.add((0, 0, 0), LightVoxel(radiance=np.array([1.0, 0.0, 0.0])))
    index, t = field.hit((-5.0, 1.0, 0.5), (1.0, 0.0, 0.0))
    assert index == (0, 0, 0)
    assert t == pytest.approx(5.0)


def test_null_placeholder_is_transparent():
    field = VoxelLightField(size=1.0)
    field.add((0, 0, 0), None)
    assert len(field) == 1
    np.testing.assert_array_equal(field.sample((-5.0, 0.5, 0.5), (1.0, 0.0, 0.0)), ESCAPED_RADIANCE)


def test_edits_invalidate_packed_cells():
    field = VoxelLightField(size=1.0)
    np.testing.assert_array_equal(field.sample((-5.0, 0.5, 0.5), (1.0, 0.0, 0.0)), ESCAPED_RADIANCE)
    field.add((0, 0, 0), LightVoxel())
    np.testing.assert_array_equal(field.sample((-5.0, 0.5, 0.5), (1.0, 0.0, 0.0)), DEFAULT_VOXEL_RADIANCE)


def test_populate_uses_radiance_model():
    occupancy = VoxelOccupancy()
    occupancy[(0, 0, 0)] = True
    occupancy[(2, 0, 0)] = True
    occupancy[(5, 0, 0)] = None

    field = VoxelLightField(size=1.0)
    field.populate(occupancy, lambda index: (float(index[0]), 0.0, 1.0))
    assert len(field) == 2
    np.testing.assert_array_equal(field.cells[(2, 0, 0)].radiance, [2.0, 0.0, 1.0])


def test_populate_default_radiance():
    occupancy = VoxelOccupancy()
    occupancy[(1, 1, 1)] = True
    field = VoxelLightField()
    field.populate(occupancy)
    np.testing.assert_array_equal(field.cells[(1, 1, 1)].radiance, DEFAULT_VOXEL_RADIANCE)


def test_sample_does_not_expose_internal_state():
    field = single_voxel_field()
    sample = field.sample((-5.0, 0.5, 0.5), (1.0, 0.0, 0.0))
    sample[:] = 0.0
    np.testing.assert_array_equal(field.sample((-5.0, 0.5, 0.5), (1.0, 0.0, 0.0)), [1.0, 2.0, 3.0])


def test_sample_many_agrees_with_sample():
    field = VoxelLightField.random(np.random.default_rng(3), count=30, extent=5, size=1.0)
    origin = np.array([0.25, -0.5, 0.75])
    directions = np.random.default_rng(4).normal(size=(50, 3))
    directions /= np.linalg.norm(directions, axis=1, keepdims=True)

    batch = field.sample_many(origin, directions)
    single = np.array([field.sample(origin, d) for d in directions])
    np.testing.assert_array_equal(batch, single)


def test_random_fixture_is_reproducible():
    a = VoxelLightField.random(np.random.default_rng(42))
    b = VoxelLightField.random(np.random.default_rng(42))
    assert set(a.cells) == set(b.cells)
    assert 0 < len(a) <= 100
    assert all(-50 <= c <= 50 for index in a.cells for c in index)
    assert a.size == pytest.approx(1e-3)


def test_zero_direction_raises():
    with pytest.raises(DegenerateGeometryError):
        single_voxel_field().sample((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))


def test_invalid_arguments():
    with pytest.raises(InvalidArgumentError):
        VoxelLightField(size=-1.0)
    with pytest.raises(InvalidArgumentError):
        LightVoxel(radiance=np.array([-1.0, 0.0, 0.0]))
    with pytest.raises(InvalidArgumentError):
        VoxelLightField().sample_many((0.0, 0.0, 0.0), np.zeros((4, 2)))


def test_edits_through_cells_are_seen_by_queries():
    """Assigning or deleting via `cells` takes effect on the next query."""
    field = single_voxel_field()
    origin, direction = (-5.0, 0.5, 0.5), (1.0, 0.0, 0.0)
    np.testing.assert_array_equal(field.sample(origin, direction), [1.0, 2.0, 3.0])

    field.cells[(0, 0, 0)] = LightVoxel(radiance=np.array([4.0, 5.0, 6.0]))
    np.testing.assert_array_equal(field.sample(origin, direction), [4.0, 5.0, 6.0])
    np.testing.assert_array_equal(field.sample_many(origin, np.array([direction])), [[4.0, 5.0, 6.0]])

    del field.cells[(0, 0, 0)]
    assert field.hit(origin, direction) == (None, float("inf"))
    np.testing.assert_array_equal(field.sample(origin, direction), ESCAPED_RADIANCE)
    np.testing.assert_array_equal(field.sample_many(origin, np.array([direction])), [ESCAPED_RADIANCE])


def test_voxel_radiance_is_read_only():
    voxel = LightVoxel(radiance=np.array([1.0, 2.0, 3.0]))
    with pytest.raises(ValueError):
        voxel.radiance[0] = 0.0
    with pytest.raises(AttributeError):
        voxel.radiance = np.zeros(3)


def test_voxel_copies_caller_radiance():
    radiance = np.array([1.0, 2.0, 3.0])
    field = VoxelLightField(size=1.0)
    field.add((0, 0, 0), LightVoxel(radiance=radiance))
    radiance[:] = 0.0
    np.testing.assert_array_equal(field.sample((-5.0, 0.5, 0.5), (1.0, 0.0, 0.0)), [1.0, 2.0, 3.0])


def test_sample_many_rejects_degenerate_directions():
    field = single_voxel_field()
    directions = np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 0.0]])
    with pytest.raises(DegenerateGeometryError):
        field.sample_many((-5.0, 0.5, 0.5), directions)
    with pytest.raises(DegenerateGeometryError):
        field.sample_many((-5.0, 0.5, 0.5), np.array([[np.nan, 0.0, 0.0]]))


def test_sample_many_accepts_unnormalized_directions():
    field = single_voxel_field()
    colours = field.sample_many((-5.0, 0.5, 0.5), np.array([[10.0, 0.0, 0.0], [0.0, 3.0, 0.0]]))
    np.testing.assert_array_equal(colours, [[1.0, 2.0, 3.0], ESCAPED_RADIANCE])
