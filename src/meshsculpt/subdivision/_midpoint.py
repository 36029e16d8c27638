"""Midpoint subdivision of a non-indexed triangle stream."""

import torch
import torch.nn.functional as F
from tensordict import TensorDict

from meshsculpt.mesh import Mesh
from meshsculpt.subdivision._pattern import get_subdivision_pattern


def _split_corner_stream(
    corner_values: torch.Tensor,
    pattern: torch.Tensor,
    renormalize: bool = False,
) -> torch.Tensor:
    """Interpolate one per-corner stream onto the children of every triangle.

    Args:
        corner_values: Values at the parent corners, shape (n_cells, 3, *data_shape)
        pattern: Child pattern from get_subdivision_pattern(), shape (4, 3)
        renormalize: If True, the averaged edge-midpoint values are rescaled to unit
            length (used for normals).

    Returns:
        Child corner values, shape (n_cells * 4 * 3, *data_shape)
    """
    if not torch.is_floating_point(corner_values):
        raise TypeError(
            f"Only floating-point point data can be interpolated, got {corner_values.dtype=}"
        )

    a, b, c = corner_values.unbind(dim=1)
    midpoints = torch.stack([(a + b) * 0.5, (b + c) * 0.5, (c + a) * 0.5], dim=1)
    if renormalize:
        midpoints = F.normalize(midpoints, dim=-1, eps=1e-12)

    ### Local indexing per parent: [a, b, c, ab, bc, ca]
    local = torch.cat([corner_values, midpoints], dim=1)  # (n_cells, 6, *data_shape)
    children = local[:, pattern]  # (n_cells, 4, 3, *data_shape)
    return children.reshape(-1, *corner_values.shape[2:])


def _subdivide_once(soup: Mesh) -> Mesh:
    n_cells = soup.n_cells
    device = soup.points.device
    pattern = get_subdivision_pattern(device=device)

    def corners(values: torch.Tensor) -> torch.Tensor:
        return values.reshape(n_cells, 3, *values.shape[1:])

    points = _split_corner_stream(corners(soup.points), pattern)
    n_points = points.shape[0]

    point_data = TensorDict(
        {
            key: _split_corner_stream(
                corners(value), pattern, renormalize=(key == "normals")
            )
            for key, value in soup.point_data.items()
        },
        batch_size=torch.Size([n_points]),
        device=device,
    )

    ### Each child inherits its parent's cell data
    parent_indices = torch.arange(
        n_cells, dtype=torch.int64, device=device
    ).repeat_interleave(pattern.shape[0])
    cell_data = soup.cell_data[parent_indices]

    return Mesh(
        points=points,
        cells=torch.arange(n_points, dtype=torch.int64, device=device).reshape(-1, 3),
        point_data=point_data,
        cell_data=cell_data,
    )


def subdivide_soup(mesh: Mesh, levels: int) -> Mesh:
    """Midpoint-subdivide a triangle stream ``levels`` times.

    The input is first flattened to a soup (every corner its own point). Each level
    splits every triangle into 4 children at its edge midpoints, so the output holds
    exactly ``4**levels * mesh.n_cells`` triangles.

    Point data streams are linearly averaged from the parent edge endpoints rather
    than recomputed from the new geometry; ``"normals"`` is re-normalized after
    averaging. This keeps the shading of the coarse surface until the welder and
    the displacement engine recompute normals. No deduplication happens here.

    Args:
        mesh: Input triangle mesh (indexed or soup).
        levels: Number of subdivision levels, >= 0.

    Returns:
        New triangle soup Mesh.

    Raises:
        ValueError: If levels < 0.

    Example:
        >>> refined = subdivide_soup(single_triangle, levels=2)
        >>> assert refined.n_cells == 16
    """
    if levels < 0:
        raise ValueError(f"levels must be >= 0, got {levels=}")

    current = mesh.to_soup()
    for _ in range(levels):
        current = _subdivide_once(current)
    return current
