"""
Configuration & Constants
=========================
This module serves as the central registry for simulation constants and the
default output location.

Why is this file needed?
------------------------
1. Calibration: growth speed, split threshold and voxel size are physical
   constants shared by the tree, the rasterizer and the light field. Keeping them
   here avoids magic numbers scattered through the controllers.
2. Overrides: the entry point builds a SimulationConfig from command-line options
   while tests build small ones directly.

Exports:
    GrowthParameters: Tunables of the branching tree.
    SimulationConfig: Tunables of a whole simulation run.
    DEFAULT_OUTPUT_PATH (str): Directory the photos are written to by default.
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path

from bonsaisim.errors import InvalidArgumentError


def get_output_path(relative_path: str) -> str:
    """
    Get absolute path to an output location next to the project root.
    """
    # config.py is in src/bonsaisim/
    current_file_path: Path = Path(__file__)
    project_root: Path = current_file_path.parent.parent.parent
    return os.path.join(str(project_root), relative_path)


# Global Constants
DEFAULT_OUTPUT_PATH: str = get_output_path("output")

UP_AXIS: tuple[float, float, float] = (0.0, 0.0, 1.0)
DEFAULT_VOXEL_RADIANCE: tuple[float, float, float] = (100.0, 200.0, 100.0)
ESCAPED_RADIANCE: tuple[float, float, float] = (100.0, 50.0, 50.0)


@dataclass(frozen=True)
class GrowthParameters:
    """
    Growth constants of the branching tree (SI units: metres and seconds).
    """
    initial_edge_length: float = 1e-4   # new tips start 0.1 mm from their parent
    root_anchor_offset: float = 1e-4    # below-ground anchor sits 0.1 mm under origin
    node_radius: float = 1e-4
    growth_speed: float = 0.1e-3 / 60   # 0.1 mm per minute
    saturation_length: float = 0.01     # edges stop growing at 10 mm
    split_threshold: float = 0.003      # edges longer than 3 mm get subdivided

    @property
    def max_dt(self) -> float:
        """Longest step that cannot push a tip edge past the split threshold twice over."""
        return min(self.split_threshold, self.saturation_length) / self.growth_speed


@dataclass
class SimulationConfig:
    """
    Settings of a simulation run.
    """
    dt: float = 60.0                    # s
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    voxel_size: float = 1e-3            # m
    viewpoint: tuple[float, float, float] = (0.03, 0.03, 0.03)
    resolution: int = 250               # rows of the radiance sphere
    voxel_radiance: tuple[float, float, float] = DEFAULT_VOXEL_RADIANCE
    escaped_radiance: tuple[float, float, float] = ESCAPED_RADIANCE
    output_dir: str = DEFAULT_OUTPUT_PATH
    filename_pattern: str = "photo_{step:04d}.png"
    growth: GrowthParameters = field(default_factory=GrowthParameters)

    def __post_init__(self) -> None:
        """
        Reject settings that would only fail halfway through a step, after the
        plant has already grown.

        Raises:
            InvalidArgumentError: On a non-positive voxel size or resolution, or a
                negative or non-finite radiance.
        """
        if not self.voxel_size > 0.0:
            raise InvalidArgumentError(f"Voxel size must be positive, got {self.voxel_size}.")
        if self.resolution < 1:
            raise InvalidArgumentError(f"Resolution must be at least 1 row, got {self.resolution}.")
        for name in ("voxel_radiance", "escaped_radiance"):
            radiance = getattr(self, name)
            if len(radiance) != 3 or any(not math.isfinite(c) or c < 0.0 for c in radiance):
                raise InvalidArgumentError(f"{name} must be 3 finite non-negative values, got {radiance}.")

    def destination(self, step: int) -> str:
        """Path the photo of the given step is written to."""
        return os.path.join(self.output_dir, self.filename_pattern.format(step=step))
