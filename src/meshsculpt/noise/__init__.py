"""Procedural noise kernels for mesh displacement.

Seven kernels (layered simplex, ridge, warped, worley, curl, alligator and
reaction-diffusion) plus the ``none`` kind, dispatched by :func:`sample`.
"""

from meshsculpt.noise._simplex import SimplexNoise3D
from meshsculpt.noise.kernels import (
    alligator_noise,
    curl_noise,
    curl_vectors,
    layered_noise,
    reaction_diffusion_noise,
    sample,
    worley_distances,
    worley_noise,
)
from meshsculpt.noise.reaction_diffusion import (
    FIELD_SIZE,
    ReactionDiffusionCache,
    ReactionDiffusionField,
    simulate_reaction_diffusion,
)

__all__ = [
    "FIELD_SIZE",
    "ReactionDiffusionCache",
    "ReactionDiffusionField",
    "SimplexNoise3D",
    "alligator_noise",
    "curl_noise",
    "curl_vectors",
    "layered_noise",
    "reaction_diffusion_noise",
    "sample",
    "simulate_reaction_diffusion",
    "worley_distances",
    "worley_noise",
]
