"""Displacement of meshes by procedural noise.

Points are mapped into noise space, sampled, weighted by a radial falloff,
clamped, and pushed along their normals.
"""

from meshsculpt.displacement._falloff import falloff_weights
from meshsculpt.displacement._transform import rotation_matrix_xyz, to_noise_space
from meshsculpt.displacement.engine import (
    clamp_offsets,
    displace,
    displacement_offsets,
)

__all__ = [
    "clamp_offsets",
    "displace",
    "displacement_offsets",
    "falloff_weights",
    "rotation_matrix_xyz",
    "to_noise_space",
]
