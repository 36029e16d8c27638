"""Radial falloff weights."""

import torch


def falloff_weights(
    points: torch.Tensor,
    center: torch.Tensor | list | tuple,
    bias: float = 0.0,
) -> torch.Tensor:
    """Weight of every point by its distance from the falloff anchor.

    ``w = (d / max(d)) ** (1 + bias)``: 0 at the anchor, 1 at the farthest point,
    non-decreasing in distance for ``bias >= 0``. The anchor is where displacement
    vanishes; it grows outward from there.

    Args:
        points: Shape (n, 3).
        center: Anchor point, shape (3,).
        bias: Exponent bias, floored at 0.

    Returns:
        Weights in [0, 1], shape (n,). All zeros when every point sits on the anchor.
    """
    center = torch.as_tensor(center, dtype=points.dtype, device=points.device)
    distances = torch.linalg.vector_norm(points - center, dim=-1)
    if distances.numel() == 0:
        return distances

    max_distance = distances.max()
    if not max_distance > 0:
        return torch.zeros_like(distances)

    normalized = (distances / max_distance).clamp(max=1.0)
    return normalized ** (1.0 + max(0.0, bias))
