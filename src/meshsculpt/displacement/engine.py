"""Noise-driven displacement of a mesh along its normals."""

import logging

import torch
import torch.nn.functional as F

from meshsculpt.displacement._falloff import falloff_weights
from meshsculpt.displacement._transform import to_noise_space
from meshsculpt.mesh import Mesh
from meshsculpt.noise import (
    ReactionDiffusionField,
    SimplexNoise3D,
    sample,
    simulate_reaction_diffusion,
)
from meshsculpt.params import NoiseKind, NoiseParameters
from meshsculpt.welding import DEFAULT_WELD_TOLERANCE, weld

logger = logging.getLogger(__name__)


def clamp_offsets(
    raw: torch.Tensor, clamp_outside: float, clamp_inside: float
) -> torch.Tensor:
    """Asymmetric clamp of signed offsets.

    Outward offsets are capped at ``clamp_outside`` and inward offsets at
    ``-clamp_inside``. A clamp of 0 disables that side; it does not force the
    offset to zero.
    """
    offsets = raw
    if clamp_outside > 0:
        offsets = offsets.clamp(max=clamp_outside)
    if clamp_inside > 0:
        offsets = offsets.clamp(min=-clamp_inside)
    return offsets


def displacement_offsets(
    mesh: Mesh,
    params: NoiseParameters,
    generator: SimplexNoise3D | None = None,
    field: ReactionDiffusionField | None = None,
) -> torch.Tensor:
    """Signed distance each point moves along its normal.

    Args:
        mesh: Input mesh; its ``normals`` stream gives the sampling normals.
        params: Noise parameters (sanitized internally).
        generator: Seeded simplex generator; built from ``params.seed`` if omitted.
        field: Reaction-diffusion field for that kernel.

    Returns:
        Offsets of shape (n_points,), clamped per ``clamp_outside`` / ``clamp_inside``.
    """
    params = params.sanitized()
    if generator is None:
        generator = SimplexNoise3D(params.seed, device=mesh.points.device)

    normals = F.normalize(mesh.normals, dim=-1, eps=1e-12)
    noise_points = to_noise_space(mesh.points, params)
    values = sample(noise_points, normals, params.noise_kind, params, generator, field)

    weights = falloff_weights(mesh.points, params.falloff_center, params.falloff)
    raw = values * params.amplitude * weights
    return clamp_offsets(raw, params.clamp_outside, params.clamp_inside)


def displace(
    mesh: Mesh,
    params: NoiseParameters,
    generator: SimplexNoise3D | None = None,
    field: ReactionDiffusionField | None = None,
    tolerance: float = DEFAULT_WELD_TOLERANCE,
) -> Mesh:
    """Displace every point along its unit normal by the sampled, weighted noise.

    Per point: transform into noise space (offset, per-axis scale, X/Y/Z rotation),
    sample the active kernel, multiply by ``amplitude`` and the falloff weight,
    apply the asymmetric clamp, then move along the original unit normal. Normals
    are recomputed from the displaced geometry and the mesh is re-welded to close
    seams opened by moving formerly shared points independently.

    When the active kind is reaction-diffusion and no ``field`` is given, one is
    simulated from ``params``; pass a cached field to avoid the cost.

    Args:
        mesh: Input mesh (not modified).
        params: Noise parameters.
        generator: Seeded simplex generator; built from ``params.seed`` if omitted.
        field: Cached reaction-diffusion field.
        tolerance: Weld tolerance for the final re-weld.

    Returns:
        New displaced Mesh.

    Example:
        >>> params = NoiseParameters(noise_kind="ridge", amplitude=0.5)
        >>> sculpted = displace(base_mesh, params)
    """
    params = params.sanitized()
    if params.noise_kind is NoiseKind.REACTION_DIFFUSION and field is None:
        field = simulate_reaction_diffusion(
            seed=params.seed,
            feed=params.rd_feed,
            kill=params.rd_kill,
            diffusion_u=params.rd_diffusion_u,
            diffusion_v=params.rd_diffusion_v,
            iterations=params.rd_iterations,
            device=mesh.points.device,
        )

    offsets = displacement_offsets(mesh, params, generator=generator, field=field)
    normals = F.normalize(mesh.normals, dim=-1, eps=1e-12)

    displaced = Mesh(
        points=mesh.points + normals * offsets.unsqueeze(-1),
        cells=mesh.cells.clone(),
        point_data=mesh.point_data.clone(),
        cell_data=mesh.cell_data.clone(),
    ).with_recomputed_normals()

    logger.debug(
        "Displaced %d points with %s noise (max |offset| = %.4g)",
        mesh.n_points,
        params.noise_kind.value,
        float(offsets.abs().max()) if offsets.numel() else 0.0,
    )
    return weld(displaced, tolerance=tolerance)
