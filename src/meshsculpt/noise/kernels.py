"""Noise kernels sampled by the displacement engine.

Every kernel maps query points of shape (n, 3) to one scalar per point, roughly in
[-1, 1]. Apart from the optional reaction-diffusion field they are stateless: all
randomness comes from the seeded :class:`SimplexNoise3D` generator and the lattice
hashes.
"""

import math
from typing import Literal

import torch
import torch.nn.functional as F

from meshsculpt.noise._hash import hash_vec3
from meshsculpt.noise._simplex import SimplexNoise3D
from meshsculpt.noise.reaction_diffusion import ReactionDiffusionField
from meshsculpt.params import MIN_FREQUENCY, NoiseKind, NoiseParameters

N_OCTAVES = 3
LACUNARITY = 1.8
CURL_EPSILON = 0.01

### 27 neighbouring lattice cells, including the cell itself
_NEIGHBOR_OFFSETS = torch.tensor(
    [[dx, dy, dz] for dx in (-1, 0, 1) for dy in (-1, 0, 1) for dz in (-1, 0, 1)],
    dtype=torch.float64,
)


def _swizzle_yzx(p: torch.Tensor) -> torch.Tensor:
    return p[..., [1, 2, 0]]


def _swizzle_zxy(p: torch.Tensor) -> torch.Tensor:
    return p[..., [2, 0, 1]]


def layered_noise(
    generator: SimplexNoise3D,
    mode: Literal["simplex", "ridge", "warped"],
    points: torch.Tensor,
    params: NoiseParameters,
) -> torch.Tensor:
    """Three-octave fractal sum of simplex noise.

    Frequency grows by 1.8 and amplitude by ``roughness`` per octave. With
    ``warp > 0`` the points are first pushed along a noise vector made of three
    independent probes at half the input scale.

    Per-octave shaping:
        - ``"simplex"``: ``n``
        - ``"ridge"``: ``(1 - |n|) ** (1.2 + ridge)``
        - ``"warped"``: ``sin(n * pi)``
    """
    frequency = max(MIN_FREQUENCY, params.frequency)
    amplitude = 1.0

    if params.warp > 0:
        half = points * 0.5
        warp_vector = torch.stack(
            [generator(half), generator(_swizzle_yzx(half)), generator(_swizzle_zxy(half))],
            dim=-1,
        )
        points = points + warp_vector * params.warp

    value = torch.zeros(points.shape[:-1], dtype=points.dtype, device=points.device)
    for _ in range(N_OCTAVES):
        n = generator(points * frequency)
        if mode == "ridge":
            octave = (1.0 - n.abs()).clamp(min=0.0) ** (1.2 + params.ridge)
        elif mode == "warped":
            octave = torch.sin(n * math.pi)
        elif mode == "simplex":
            octave = n
        else:
            raise ValueError(f"Invalid {mode=}. Must be one of: 'simplex', 'ridge', 'warped'")
        value = value + octave * amplitude
        frequency *= LACUNARITY
        amplitude *= params.roughness

    return value


def worley_distances(
    points: torch.Tensor, params: NoiseParameters
) -> tuple[torch.Tensor, torch.Tensor]:
    """Nearest and second-nearest feature distances for cellular noise.

    Points are scaled by ``frequency``. Each unit lattice cell owns one feature point
    at its lattice corner plus a hashed offset of ``(hash - 0.5) * jitter`` per axis,
    so ``jitter = 0`` puts the features exactly on the integer lattice. The 27 cells
    around the query are searched.

    Returns:
        ``(min1, min2)``, each of shape (n,), with ``min1 <= min2`` elementwise.
    """
    frequency = max(MIN_FREQUENCY, params.frequency)
    jitter = min(1.0, max(0.0, params.worley_jitter))

    scaled = points.to(torch.float64) * frequency
    base = torch.floor(scaled)
    cells = base.unsqueeze(-2) + _NEIGHBOR_OFFSETS.to(points.device)  # (n, 27, 3)

    features = cells + (hash_vec3(cells, params.seed) - 0.5) * jitter
    distances = torch.linalg.vector_norm(features - scaled.unsqueeze(-2), dim=-1)

    nearest = torch.topk(distances, k=2, dim=-1, largest=False, sorted=True).values
    return nearest[..., 0].to(points.dtype), nearest[..., 1].to(points.dtype)


def worley_noise(points: torch.Tensor, params: NoiseParameters) -> torch.Tensor:
    """Cellular noise blending cell interiors with cell edges.

    ``cell = max(0, 1 - min1)`` and ``edge = clamp(min2 - min1, 0, 1)`` are mixed by
    ``worley_blend`` and rescaled from [0, 1] to [-1, 1].
    """
    blend = min(1.0, max(0.0, params.worley_blend))
    min1, min2 = worley_distances(points, params)
    cell_value = (1.0 - min1).clamp(min=0.0)
    edge_value = (min2 - min1).clamp(0.0, 1.0)
    return (cell_value * (1.0 - blend) + edge_value * blend) * 2.0 - 1.0


def _potential(generator: SimplexNoise3D, v: torch.Tensor) -> torch.Tensor:
    """Vector potential made of three decorrelated noise probes, shape (n, 3)."""
    x, y, z = v.unbind(dim=-1)
    return torch.stack(
        [
            generator(v),
            generator(torch.stack([y + 31.34, z + 78.23, x + 12.34], dim=-1)),
            generator(torch.stack([z + 45.32, x + 5.73, y + 63.94], dim=-1)),
        ],
        dim=-1,
    )


def curl_vectors(
    generator: SimplexNoise3D, points: torch.Tensor, params: NoiseParameters
) -> torch.Tensor:
    """Divergence-free field: central-difference curl of the noise potential.

    The field is oriented as ``-curl(F)``, the negated right-handed curl.

    Returns:
        Curl vectors, shape (n, 3).
    """
    scale = max(MIN_FREQUENCY, params.frequency * params.curl_scale)
    p = points * scale
    eps = CURL_EPSILON
    ex, ey, ez = torch.eye(3, dtype=p.dtype, device=p.device) * eps

    py_plus = _potential(generator, p + ey)
    py_minus = _potential(generator, p - ey)
    pz_plus = _potential(generator, p + ez)
    pz_minus = _potential(generator, p - ez)
    px_plus = _potential(generator, p + ex)
    px_minus = _potential(generator, p - ex)

    ### (dFy/dz - dFz/dy, dFz/dx - dFx/dz, dFx/dy - dFy/dx), i.e. -curl(F)
    return torch.stack(
        [
            (pz_plus[:, 1] - pz_minus[:, 1]) - (py_plus[:, 2] - py_minus[:, 2]),
            (px_plus[:, 2] - px_minus[:, 2]) - (pz_plus[:, 0] - pz_minus[:, 0]),
            (py_plus[:, 0] - py_minus[:, 0]) - (px_plus[:, 1] - px_minus[:, 1]),
        ],
        dim=-1,
    ) / (2.0 * eps)


def curl_noise(
    generator: SimplexNoise3D,
    points: torch.Tensor,
    normals: torch.Tensor,
    params: NoiseParameters,
) -> torch.Tensor:
    """Signed curl magnitude.

    The curl magnitude is clamped to 1 and signed by whether the curl points out
    of (+) or into (-) the surface; a curl exactly tangent to the surface counts as
    outward. The result is scaled by ``curl_strength``.
    """
    curl = curl_vectors(generator, points, params)
    magnitude = torch.linalg.vector_norm(curl, dim=-1).clamp(max=1.0)
    alignment = (curl * normals).sum(dim=-1)
    direction = torch.where(alignment < 0, -1.0, 1.0).to(points.dtype)
    return magnitude * direction * params.curl_strength


def alligator_noise(
    generator: SimplexNoise3D, points: torch.Tensor, params: NoiseParameters
) -> torch.Tensor:
    """Scaly ridges over diagonal stripes, weighted by ``alligator_plateau``."""
    frequency = max(MIN_FREQUENCY, params.frequency)
    plateau = min(1.0, max(0.0, params.alligator_plateau))
    bite = max(0.1, params.alligator_bite)

    scaled = points * frequency
    base = generator(scaled)
    ridge = (1.0 - base.abs()).clamp(min=0.0) ** (1.2 + plateau * 2.0)
    stripes = torch.sin(scaled.sum(dim=-1) * (0.5 + bite)) * 0.5 + 0.5
    mix = stripes * (1.0 - plateau) + ridge * plateau
    return mix * 2.0 - 1.0


def reaction_diffusion_noise(
    points: torch.Tensor,
    params: NoiseParameters,
    field: ReactionDiffusionField | None,
) -> torch.Tensor:
    """Periodic lookup into the reaction-diffusion field, rescaled to [-1, 1].

    Returns zeros when no field is available.
    """
    if field is None:
        return torch.zeros(points.shape[:-1], dtype=points.dtype, device=points.device)
    frequency = max(MIN_FREQUENCY, params.frequency)
    return field.sample(points * frequency) * 2.0 - 1.0


def sample(
    points: torch.Tensor,
    normals: torch.Tensor,
    kind: NoiseKind | str,
    params: NoiseParameters,
    generator: SimplexNoise3D,
    field: ReactionDiffusionField | None = None,
) -> torch.Tensor:
    """Sample the kernel selected by ``kind``.

    Args:
        points: Query points in noise space, shape (n, 3).
        normals: Unit surface normals at the query points, shape (n, 3). Only the
            curl kernel reads them.
        kind: Which kernel to evaluate.
        params: Noise parameters.
        generator: Seeded simplex generator.
        field: Reaction-diffusion field, needed only for that kernel.

    Returns:
        Scalar sample per point, shape (n,).

    Example:
        >>> generator = SimplexNoise3D(params.seed)
        >>> values = sample(points, normals, NoiseKind.RIDGE, params, generator)
    """
    kind = NoiseKind.parse(kind)
    if points.shape != normals.shape:
        raise ValueError(
            f"points and normals must have the same shape, got {points.shape=} and {normals.shape=}"
        )

    if kind is NoiseKind.NONE:
        return torch.zeros(points.shape[:-1], dtype=points.dtype, device=points.device)
    elif kind is NoiseKind.SIMPLEX:
        return layered_noise(generator, "simplex", points, params)
    elif kind is NoiseKind.RIDGE:
        return layered_noise(generator, "ridge", points, params)
    elif kind is NoiseKind.WARPED:
        return layered_noise(generator, "warped", points, params)
    elif kind is NoiseKind.WORLEY:
        return worley_noise(points, params)
    elif kind is NoiseKind.CURL:
        return curl_noise(generator, points, F.normalize(normals, dim=-1), params)
    elif kind is NoiseKind.ALLIGATOR:
        return alligator_noise(generator, points, params)
    elif kind is NoiseKind.REACTION_DIFFUSION:
        return reaction_diffusion_noise(points, params, field)
    else:
        raise ValueError(f"Unhandled noise kind {kind=}")
