"""
The MODEL layer contains pure data structures: geometry primitives, the plant
arena, sparse voxel grids and image output. It knows nothing about rendering.
"""
