"""Deterministic lattice hashes used by the cellular kernels."""

import torch


def hash_float(cells: torch.Tensor, seed: float) -> torch.Tensor:
    """Map lattice coordinates to pseudo-random values in [0, 1).

    ``fract(sin(x * 12.9898 + y * 78.233 + z * 37.719 + seed * 95.233))``, the
    classic shader-style hash. Evaluated in float64 so the result does not depend
    on the dtype of the caller.

    Args:
        cells: Lattice coordinates, shape (..., 3).
        seed: Seed mixed into the hash.

    Returns:
        Tensor of shape (...), float64.
    """
    cells = cells.to(torch.float64)
    s = torch.sin(
        cells[..., 0] * 12.9898
        + cells[..., 1] * 78.233
        + cells[..., 2] * 37.719
        + seed * 95.233
    )
    return s - torch.floor(s)


def hash_vec3(cells: torch.Tensor, seed: int) -> torch.Tensor:
    """Three decorrelated :func:`hash_float` values per lattice cell, shape (..., 3)."""
    shifts = torch.tensor(
        [[0.0, 0.0, 0.0], [19.19, -55.5, 3.3], [-11.7, 8.33, -4.52]],
        dtype=torch.float64,
        device=cells.device,
    )
    cells = cells.to(torch.float64)
    return torch.stack(
        [hash_float(cells + shifts[axis], seed + axis) for axis in range(3)],
        dim=-1,
    )
