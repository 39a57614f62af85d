"""
Simulation Engine
=================
Rasterization, ray casting against the voxel light field, spherical capture and
the time-stepping loop that ties them together.

Note: This package should be pure Python/NumPy/Numba and should NOT do any file I/O
itself; images leave through the writer handed to `Bonsai`.
"""
