"""Single-pass uniform Laplacian smoothing."""

import torch

from meshsculpt.mesh import Mesh
from meshsculpt.neighbors import get_point_to_points_adjacency


def smooth_laplacian(mesh: Mesh, factor: float) -> Mesh:
    """Move every point toward the mean of its edge neighbors.

    ``new = p + factor * (mean(neighbors) - p)``. All neighbor means are taken from
    the pre-smoothing positions, so the result does not depend on point order. This
    is a single relaxation step, not an iteration to convergence.

    Args:
        mesh: Input triangle mesh. For a soup, neighbors are the other two corners
            of each point's own triangle.
        factor: Interpolation weight, clamped to [0, 1]. 0 leaves positions
            unchanged, 1 snaps every point onto its neighbor mean.

    Returns:
        New Mesh with smoothed points and recomputed normals. Isolated points keep
        their positions.
    """
    factor = min(1.0, max(0.0, float(factor)))

    adjacency = get_point_to_points_adjacency(mesh)
    counts = adjacency.counts

    ### Neighbor means from the snapshot
    snapshot = mesh.points
    neighbor_sums = torch.zeros_like(snapshot)
    neighbor_sums.index_add_(
        0, adjacency.source_indices(), snapshot[adjacency.indices]
    )
    has_neighbors = counts > 0
    neighbor_means = torch.where(
        has_neighbors.unsqueeze(-1),
        neighbor_sums / counts.clamp(min=1).unsqueeze(-1).to(snapshot.dtype),
        snapshot,
    )

    smoothed = Mesh(
        points=snapshot + factor * (neighbor_means - snapshot),
        cells=mesh.cells.clone(),
        point_data=mesh.point_data.clone(),
        cell_data=mesh.cell_data.clone(),
    )
    return smoothed.with_recomputed_normals()
