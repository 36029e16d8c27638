"""Vertex welding: collapse points that coincide within a tolerance.

Welding turns a triangle soup (or an indexed mesh with duplicated points) into an
indexed mesh in which every distinct position appears once, and recomputes the
per-point normals from the welded topology.
"""

from meshsculpt.welding._weld import DEFAULT_WELD_TOLERANCE, weld, weld_buffers

__all__ = [
    "DEFAULT_WELD_TOLERANCE",
    "weld",
    "weld_buffers",
]
