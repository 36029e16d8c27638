"""Vertex adjacency for triangle meshes.

Adjacency is stored as an :class:`Adjacency` tensorclass using offset-indices
encoding, so ragged neighbor lists stay flat arrays.
"""

from meshsculpt.neighbors._adjacency import Adjacency
from meshsculpt.neighbors._point_neighbors import get_point_to_points_adjacency

__all__ = [
    "Adjacency",
    "get_point_to_points_adjacency",
]
