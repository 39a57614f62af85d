"""
Simulation Loop
===============
Advances the plant, rasterizes it, lights the voxels up and photographs the
result from a fixed viewpoint once per step.

Why is this file needed?
------------------------
1. Orchestration: it is the only place that knows the order of the pipeline
   (grow -> rasterize -> populate light field -> render -> write).
2. Time-Stepping: it owns the simulated clock.
3. Robustness: a malformed step is logged and skipped instead of ending the run.

Note: image encoding is delegated to the `writer` callable passed in.
"""
from __future__ import annotations

import copy
import logging
from typing import Callable, Optional

import numpy as np

from bonsaisim.config import SimulationConfig
from bonsaisim.controller.capture import RadianceSphere, SphericalCapture
from bonsaisim.controller.light_field import VoxelLightField
from bonsaisim.controller.rasterizer import Rasterizer
from bonsaisim.errors import BonsaiError
from bonsaisim.model.plant import BranchTree

logger = logging.getLogger(__name__)

ImageSink = Callable[[RadianceSphere, str], None]


class Bonsai:
    """
    A single plant observed from a fixed point.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        writer: Optional[ImageSink] = None,
    ) -> None:
        """
        Args:
            config: Simulation settings, defaults to `SimulationConfig()`.
            writer: Receives each step's RadianceSphere and destination path.
                    Photos are discarded when omitted.
        """
        self.config = config or SimulationConfig()
        self.writer = writer

        self.plant = BranchTree.create(self.config.origin, self.config.growth)
        self.rasterizer = Rasterizer(voxel_size=self.config.voxel_size)

        self.timestamp = 0.0  # s
        self.steps = 0

    def build_light_field(self) -> VoxelLightField:
        """Rasterize the plant and light every occupied cell with the placeholder radiance."""
        occupancy = self.rasterizer.rasterize(self.plant)
        light_field = VoxelLightField(size=self.config.voxel_size, escaped_radiance=self.config.escaped_radiance)
        voxel_radiance = np.array(self.config.voxel_radiance, dtype=np.float64)
        light_field.populate(occupancy, lambda index: voxel_radiance)
        return light_field

    def step(self, dt: Optional[float] = None) -> RadianceSphere:
        """
        Advance by `dt` seconds (config default when omitted) and take a photo.

        Raises:
            BonsaiError: If `dt` is outside the supported range or the photo cannot
                be taken. The plant is restored to its state before the call.
        """
        dt = self.config.dt if dt is None else dt
        previous = copy.deepcopy(self.plant)
        try:
            self.plant.step(dt)
            light_field = self.build_light_field()
            sphere = SphericalCapture.render(light_field, self.config.viewpoint, self.config.resolution)
        except BonsaiError:
            self.plant = previous
            raise

        self.timestamp += dt
        self.steps += 1

        destination = self.config.destination(self.steps)
        logger.info(
            f"Step: {self.steps} - Time: {self.timestamp:.1f} s - Nodes: {len(self.plant)} "
            f"- Voxels: {len(light_field)} - Photo: {destination}"
        )
        if self.writer is not None:
            self.writer(sphere, destination)
        return sphere

    def run(self, steps: int, dt: Optional[float] = None) -> int:
        """
        Call `step` `steps` times.

        Returns:
            Number of steps that completed; failed steps are logged and skipped.
        """
        completed = 0
        for i in range(steps):
            try:
                self.step(dt)
            except BonsaiError as e:
                logger.warning(f"Skipping step {i + 1}/{steps}: {e}")
                continue
            completed += 1
        logger.info(f"Simulation finished: {completed}/{steps} steps at t = {self.timestamp:.1f} s.")
        return completed
