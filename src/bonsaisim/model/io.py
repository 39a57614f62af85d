"""
Input/Output Manager (Images)
Writes RadianceSpheres to disk.
"""
from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

if TYPE_CHECKING:
    from bonsaisim.controller.capture import RadianceSphere

# Get module logger
logger = logging.getLogger(__name__)

# Radiance values are read as 8-bit levels by default
DEFAULT_EXPOSURE = 1.0 / 255.0


class ImageWriter:

    @staticmethod
    def save_radiance_sphere(
        sphere: RadianceSphere,
        filepath: str,
        exposure: float = DEFAULT_EXPOSURE,
    ) -> None:
        """
        Save a radiance sphere.

        `.npy` files receive the raw float buffer. Any other extension is encoded by
        matplotlib after scaling by `exposure` and clipping to [0, 1]. Channels stay
        in R, G, B order and the image keeps its (rows, 2 * rows) shape.
        """
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)

        if filepath.lower().endswith(".npy"):
            np.save(filepath, sphere.image)
        else:
            plt.imsave(filepath, np.clip(sphere.image * exposure, 0.0, 1.0))
        logger.debug(f"Radiance sphere {sphere.height}x{sphere.width} saved to: {filepath}")
