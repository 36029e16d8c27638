"""Quantized-key vertex welding."""

import logging

import torch
from tensordict import TensorDict

from meshsculpt.mesh import Mesh

logger = logging.getLogger(__name__)

DEFAULT_WELD_TOLERANCE = 1e-4


def weld(mesh: Mesh, tolerance: float = DEFAULT_WELD_TOLERANCE) -> Mesh:
    """Merge points whose positions coincide within ``tolerance``.

    Each coordinate is scaled by ``1 / tolerance`` and rounded to an integer; corners
    with identical integer triples collapse onto a single point. The first corner
    met while walking the faces supplies the surviving position (and any other
    point data). Welded points are ordered by the lowest source point of each key,
    so they keep the relative order of the input buffer: for a soup this is
    face-traversal order, and welding a mesh without duplicates returns it
    unchanged.

    Points not referenced by any cell are dropped. Normals are recomputed from the
    welded topology (unweighted mean of incident face normals).

    Args:
        mesh: Input mesh, indexed or soup.
        tolerance: Quantization step. Must be positive.

    Returns:
        New welded Mesh with the same cells count and a ``"normals"`` stream.

    Example:
        >>> soup = mesh.to_soup()
        >>> welded = weld(soup)
        >>> assert welded.n_points == mesh.n_points  # for a mesh without duplicates
    """
    if not tolerance > 0:
        raise ValueError(f"tolerance must be > 0, got {tolerance=}")

    device = mesh.points.device
    corner_indices = mesh.cells.reshape(-1)  # (n_corners,)
    n_corners = corner_indices.shape[0]

    ### Handle empty mesh
    if n_corners == 0:
        return Mesh(
            points=mesh.points.new_zeros((0, 3)),
            cells=mesh.cells.new_zeros((0, 3)),
            point_data={"normals": mesh.points.new_zeros((0, 3))},
            cell_data=mesh.cell_data.clone(),
        )

    ### Quantize every corner position to an integer key
    # float64 keeps the scaled coordinates exact enough for typical mesh extents
    key_factor = 1.0 / tolerance
    corner_keys = torch.round(
        mesh.points[corner_indices].to(torch.float64) * key_factor
    ).to(torch.int64)  # (n_corners, 3)

    ### Build the key -> welded index map
    unique_keys, inverse = torch.unique(corner_keys, dim=0, return_inverse=True)
    n_unique = unique_keys.shape[0]

    # The first corner met while walking the faces supplies the position
    first_corner = torch.full(
        (n_unique,), n_corners, dtype=torch.int64, device=device
    ).scatter_reduce(
        0,
        inverse,
        torch.arange(n_corners, dtype=torch.int64, device=device),
        reduce="amin",
        include_self=True,
    )
    winning_points = corner_indices[first_corner]  # (n_unique,)

    # torch.unique sorts keys lexicographically; re-rank them by lowest source point
    lowest_point = torch.full(
        (n_unique,), mesh.n_points, dtype=torch.int64, device=device
    ).scatter_reduce(0, inverse, corner_indices, reduce="amin", include_self=True)

    order = torch.argsort(lowest_point)
    rank = torch.empty_like(order)
    rank[order] = torch.arange(n_unique, dtype=torch.int64, device=device)

    new_cells = rank[inverse].reshape(-1, 3)
    source_points = winning_points[order]  # (n_unique,)

    ### Carry per-point streams from the winning corner; normals are recomputed
    point_data = TensorDict(
        {
            key: value[source_points]
            for key, value in mesh.point_data.items()
            if key != "normals"
        },
        batch_size=torch.Size([n_unique]),
        device=device,
    )

    welded = Mesh(
        points=mesh.points[source_points],
        cells=new_cells,
        point_data=point_data,
        cell_data=mesh.cell_data.clone(),
    )
    welded.point_data["normals"] = welded.compute_point_normals()

    logger.debug(
        "Welded %d points (%d corners) into %d points", mesh.n_points, n_corners, n_unique
    )
    return welded


def weld_buffers(
    positions: torch.Tensor,
    indices: torch.Tensor | None = None,
    tolerance: float = DEFAULT_WELD_TOLERANCE,
) -> Mesh:
    """Weld raw position / index buffers.

    Args:
        positions: Flat ``(3 * n,)`` or ``(n, 3)`` float buffer.
        indices: Optional flat or ``(m, 3)`` triangle index buffer. When omitted,
            consecutive position triples are triangles (a soup).
        tolerance: Quantization step.

    Returns:
        Welded indexed Mesh.
    """
    points = positions.reshape(-1, 3)
    if indices is None:
        if points.shape[0] % 3 != 0:
            raise ValueError(
                f"A non-indexed buffer must hold whole triangles, got {points.shape[0]=} points."
            )
        cells = torch.arange(
            points.shape[0], dtype=torch.int64, device=points.device
        ).reshape(-1, 3)
    else:
        cells = indices.reshape(-1, 3).to(torch.int64)

    return weld(Mesh(points=points, cells=cells), tolerance=tolerance)
