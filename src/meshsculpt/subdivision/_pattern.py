"""Child-triangle connectivity for midpoint subdivision."""

import torch


def get_subdivision_pattern(device: torch.device | str | None = None) -> torch.Tensor:
    """Get the pattern for splitting a triangle into 4 children.

    Uses a local vertex indexing scheme per parent triangle:
    - Indices 0, 1, 2: original corners a, b, c
    - Indices 3, 4, 5: edge midpoints ab, bc, ca

    Returns:
        Pattern tensor of shape (4, 3); each row lists the local indices of one child.
        The three corner children keep the parent winding, and the center child is
        ``[ab, bc, ca]``.
    """
    return torch.tensor(
        [
            [0, 3, 5],  # Corner at a: a, ab, ca
            [3, 1, 4],  # Corner at b: ab, b, bc
            [5, 4, 2],  # Corner at c: ca, bc, c
            [3, 4, 5],  # Center: ab, bc, ca
        ],
        dtype=torch.int64,
        device=device,
    )
