"""
bonsaisim - growth of a branching plant and the light seen around it.

A plant grows as a tree of nodes, gets rasterized into sparse voxels, and every
step a full-sphere radiance image is ray-cast from a fixed viewpoint.
"""
