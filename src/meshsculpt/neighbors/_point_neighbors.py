"""Point-to-point adjacency of triangle meshes."""

from typing import TYPE_CHECKING

import torch

from meshsculpt.neighbors._adjacency import Adjacency

if TYPE_CHECKING:
    from meshsculpt.mesh import Mesh

### Local vertex pairs forming the three edges of a triangle
_TRIANGLE_EDGES = ((0, 1), (0, 2), (1, 2))


def get_point_to_points_adjacency(mesh: "Mesh") -> Adjacency:
    """Compute point-to-point adjacency (graph edges of the mesh).

    For each point, finds every other point sharing a triangle edge with it. Each
    neighbor appears once per source, in ascending order. For a triangle soup every
    point only sees the two other corners of its own triangle.

    Args:
        mesh: Input triangle mesh.

    Returns:
        Adjacency where adjacency.to_list()[i] contains the neighbors of point i.
        Isolated points have empty lists.

    Example:
        >>> points = torch.tensor([[0., 0., 0.], [1., 0., 0.], [0., 1., 0.]])
        >>> mesh = Mesh(points=points, cells=torch.tensor([[0, 1, 2]]))
        >>> get_point_to_points_adjacency(mesh).to_list()
        [[1, 2], [0, 2], [0, 1]]
    """
    device = mesh.points.device

    ### Handle empty mesh
    if mesh.n_cells == 0 or mesh.n_points == 0:
        return Adjacency(
            offsets=torch.zeros(mesh.n_points + 1, dtype=torch.int64, device=device),
            indices=torch.zeros(0, dtype=torch.int64, device=device),
        )

    ### Extract edges from all cells
    # Shape: (n_cells * 3, 2)
    pairs = torch.tensor(_TRIANGLE_EDGES, dtype=torch.int64, device=device)
    candidate_edges = mesh.cells[:, pairs].reshape(-1, 2)

    # Canonical form so [3, 5] and [5, 3] are the same edge; drop collapsed edges
    candidate_edges = torch.sort(candidate_edges, dim=-1)[0]
    candidate_edges = candidate_edges[candidate_edges[:, 0] != candidate_edges[:, 1]]
    unique_edges = torch.unique(candidate_edges, dim=0)

    ### Create bidirectional edges, grouped by source vertex
    bidirectional_edges = torch.cat([unique_edges, unique_edges.flip(dims=[1])], dim=0)
    sort_indices = torch.argsort(
        bidirectional_edges[:, 0] * (mesh.n_points + 1) + bidirectional_edges[:, 1]
    )
    sorted_edges = bidirectional_edges[sort_indices]

    ### Offsets from per-source counts
    offsets = torch.zeros(mesh.n_points + 1, dtype=torch.int64, device=device)
    offsets[1:] = torch.cumsum(
        torch.bincount(sorted_edges[:, 0], minlength=mesh.n_points), dim=0
    )

    return Adjacency(offsets=offsets, indices=sorted_edges[:, 1])
