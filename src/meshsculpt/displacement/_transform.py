"""Mapping from mesh space into noise space."""

import math

import torch

from meshsculpt.params import MIN_AXIS_SCALE, NoiseParameters


def rotation_matrix_xyz(
    degrees: tuple[float, float, float],
    dtype: torch.dtype = torch.float32,
    device: torch.device | str | None = None,
) -> torch.Tensor:
    """Rotation about X, then Y, then Z (right-handed), as one 3x3 matrix.

    The composition order is fixed: the returned matrix is ``Rz @ Ry @ Rx``, so a
    column vector is rotated about X first.
    """
    ax, ay, az = (math.radians(d) for d in degrees)
    cx, sx = math.cos(ax), math.sin(ax)
    cy, sy = math.cos(ay), math.sin(ay)
    cz, sz = math.cos(az), math.sin(az)

    rx = torch.tensor([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]], dtype=torch.float64)
    ry = torch.tensor([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]], dtype=torch.float64)
    rz = torch.tensor([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]], dtype=torch.float64)
    return (rz @ ry @ rx).to(dtype=dtype, device=device)


def to_noise_space(points: torch.Tensor, params: NoiseParameters) -> torch.Tensor:
    """Offset, scale and rotate mesh points into the coordinates the kernels sample.

    ``q = R_xyz((p + offset) / max(0.1, scale))`` per axis.

    Args:
        points: Shape (n, 3).
        params: Supplies ``offset``, ``scale`` and ``rotation`` (degrees).

    Returns:
        Noise-space points, shape (n, 3).
    """
    offset = torch.tensor(params.offset, dtype=points.dtype, device=points.device)
    scale = torch.tensor(
        [max(MIN_AXIS_SCALE, s) for s in params.scale],
        dtype=points.dtype,
        device=points.device,
    )
    noise_points = (points + offset) / scale

    if any(params.rotation):
        rotation = rotation_matrix_xyz(
            params.rotation, dtype=points.dtype, device=points.device
        )
        noise_points = noise_points @ rotation.T
    return noise_points
