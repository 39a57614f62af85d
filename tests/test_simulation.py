"""
Simulation loop tests.
"""
import numpy as np
import pytest

from bonsaisim.config import SimulationConfig
from bonsaisim.controller.rasterizer import Rasterizer
from bonsaisim.controller.simulation import Bonsai
from bonsaisim.errors import InvalidArgumentError

SPEED = 0.1e-3 / 60


class RecordingWriter:
    def __init__(self):
        self.calls = []

    def __call__(self, sphere, destination):
        self.calls.append((sphere, destination))


def small_config(tmp_path):
    return SimulationConfig(resolution=4, output_dir=str(tmp_path))


def test_step_advances_clock_and_hands_photo_to_writer(tmp_path):
    writer = RecordingWriter()
    bonsai = Bonsai(small_config(tmp_path), writer=writer)

    sphere = bonsai.step()
    assert bonsai.timestamp == pytest.approx(60.0)
    assert bonsai.steps == 1
    assert sphere.image.shape == (4, 8, 3)

    assert len(writer.calls) == 1
    written, destination = writer.calls[0]
    assert written is sphere
    assert destination.endswith("photo_0001.png")
    assert destination.startswith(str(tmp_path))


def test_step_grows_the_plant(tmp_path):
    bonsai = Bonsai(small_config(tmp_path))
    bonsai.step(30.0)
    assert bonsai.plant.edge_length(1, 2) == pytest.approx(1e-4 + SPEED * 30)


def test_run_repeats_default_step(tmp_path):
    writer = RecordingWriter()
    bonsai = Bonsai(small_config(tmp_path), writer=writer)
    assert bonsai.run(3) == 3
    assert bonsai.timestamp == pytest.approx(180.0)
    assert [d.rsplit("_", 1)[-1] for _, d in writer.calls] == ["0001.png", "0002.png", "0003.png"]


def test_run_skips_malformed_steps(tmp_path, caplog):
    writer = RecordingWriter()
    bonsai = Bonsai(small_config(tmp_path), writer=writer)
    with caplog.at_level("WARNING", logger="bonsaisim"):
        assert bonsai.run(2, dt=-5.0) == 0
    assert bonsai.timestamp == 0.0
    assert len(bonsai.plant) == 3
    assert writer.calls == []
    assert "Skipping step" in caplog.text


def test_light_field_matches_rasterization(tmp_path):
    config = small_config(tmp_path)
    bonsai = Bonsai(config)
    for _ in range(5):
        bonsai.plant.step(600.0)
    occupancy = Rasterizer(config.voxel_size).rasterize(bonsai.plant)
    light_field = bonsai.build_light_field()
    assert set(light_field.cells) == set(occupancy)
    for index in occupancy:
        np.testing.assert_array_equal(light_field.cells[index].radiance, config.voxel_radiance)


@pytest.mark.parametrize(
    "overrides",
    [
        {"resolution": 0},
        {"voxel_size": 0.0},
        {"voxel_radiance": (-1.0, 0.0, 0.0)},
        {"escaped_radiance": (float("nan"), 0.0, 0.0)},
        {"voxel_radiance": (1.0, 2.0)},
    ],
)
def test_config_rejects_settings_that_cannot_render(overrides):
    with pytest.raises(InvalidArgumentError):
        SimulationConfig(**overrides)


def test_failed_photo_leaves_plant_untouched(tmp_path):
    """A step that grows the plant but cannot render it is undone."""
    writer = RecordingWriter()
    bonsai = Bonsai(small_config(tmp_path), writer=writer)
    bonsai.step()
    length = bonsai.plant.edge_length(1, 2)

    bonsai.config.resolution = 0
    assert bonsai.run(3) == 0
    assert bonsai.timestamp == pytest.approx(60.0)
    assert bonsai.steps == 1
    assert bonsai.plant.edge_length(1, 2) == pytest.approx(length)
    assert len(writer.calls) == 1

    bonsai.config.resolution = 4
    assert bonsai.run(1) == 1
    assert bonsai.plant.edge_length(1, 2) == pytest.approx(1e-4 + SPEED * 120)
