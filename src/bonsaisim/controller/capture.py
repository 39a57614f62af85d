"""
Spherical Capture
=================
Sweeps every direction around a viewpoint and records what the light field
returns, producing an equirectangular radiance image.

Row `i` of `R` rows looks at polar angle `theta = pi * i / (R - 1)`, so both poles
are sampled. Column `j` of `2R` columns looks at azimuth `phi = 2 * pi * j / (2R)`,
covering the full circle once without repeating the seam.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from bonsaisim.controller.light_field import VoxelLightField
from bonsaisim.errors import InvalidArgumentError
from bonsaisim.model.geometry_primitives import ArrayLike3, as_vector, spherical_to_cartesian

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass
class RadianceSphere:
    """
    Radiance over the whole sphere, shape (rows, 2 * rows, 3).
    Rows run over theta in [0, pi], columns over phi in [0, 2pi).
    """
    image: npt.NDArray[np.float64]

    def __post_init__(self) -> None:
        self.image = np.asarray(self.image, dtype=np.float64)
        if self.image.ndim != 3 or self.image.shape[2] != 3:
            raise InvalidArgumentError(f"Radiance image must have shape (rows, cols, 3), got {self.image.shape}.")
        if self.image.shape[1] != 2 * self.image.shape[0]:
            raise InvalidArgumentError(
                f"Radiance image must be twice as wide as it is tall, got {self.image.shape[:2]}."
            )

    @property
    def height(self) -> int:
        return self.image.shape[0]

    @property
    def width(self) -> int:
        return self.image.shape[1]


class SphericalCapture:
    """
    Renders RadianceSpheres from a VoxelLightField.
    """

    @staticmethod
    def angles(resolution: int) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Polar angles of the rows and azimuths of the columns."""
        if resolution < 1:
            raise InvalidArgumentError(f"Resolution must be at least 1 row, got {resolution}.")
        theta = np.linspace(0.0, np.pi, resolution)
        phi = 2.0 * np.pi * np.arange(2 * resolution, dtype=np.float64) / (2 * resolution)
        return theta, phi

    @classmethod
    def directions(cls, resolution: int) -> npt.NDArray[np.float64]:
        """Unit direction of every pixel, shape (resolution, 2 * resolution, 3)."""
        theta, phi = cls.angles(resolution)
        return spherical_to_cartesian(theta[:, np.newaxis], phi[np.newaxis, :])

    @classmethod
    def render(
        cls,
        light_field: VoxelLightField,
        viewpoint: ArrayLike3,
        resolution: int = 250,
    ) -> RadianceSphere:
        """
        Sample the light field along every pixel direction from `viewpoint`.

        Args:
            light_field: Field to query. It is only read.
            viewpoint: Observation point (m).
            resolution: Number of rows; the image has twice as many columns.
        """
        viewpoint = as_vector(viewpoint)
        directions = cls.directions(resolution)
        radiance = light_field.sample_many(viewpoint, directions.reshape(-1, 3))

        logger.debug(f"Rendered {resolution}x{2 * resolution} radiance sphere from {viewpoint}.")
        return RadianceSphere(image=radiance.reshape(resolution, 2 * resolution, 3))
