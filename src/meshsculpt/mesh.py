from typing import Sequence

import torch
import torch.nn.functional as F
from tensordict import TensorDict, tensorclass


@tensorclass
class Mesh:
    points: torch.Tensor  # shape: (n_points, 3)
    cells: torch.Tensor  # shape: (n_cells, 3)
    point_data: TensorDict = None  # accepts dict/None, converted to TensorDict in __post_init__  # ty: ignore
    cell_data: TensorDict = None  # accepts dict/None, converted to TensorDict in __post_init__  # ty: ignore

    def __post_init__(self):
        ### Validate shapes
        if self.points.ndim != 2 or self.points.shape[-1] != 3:
            raise ValueError(
                f"`points` must have shape (n_points, 3), but got {self.points.shape=}."
            )
        if self.cells.ndim != 2 or self.cells.shape[-1] != 3:
            raise ValueError(
                f"`cells` must have shape (n_cells, 3), but got {self.cells.shape=}."
            )

        ### Validate dtypes
        if torch.is_floating_point(self.cells):
            raise TypeError(
                f"`cells` must have an int-like dtype, but got {self.cells.dtype=}."
            )
        if not torch.is_floating_point(self.points):
            raise TypeError(
                f"`points` must have a floating-point dtype, but got {self.points.dtype=}."
            )

        ### Validate index range
        if self.cells.numel() > 0 and not torch.compiler.is_compiling():
            lo, hi = int(self.cells.min()), int(self.cells.max())
            if lo < 0 or hi >= self.n_points:
                raise ValueError(
                    f"Cell indices must lie in [0, {self.n_points}), but got {lo=}, {hi=}."
                )

        ### Initialize data TensorDicts
        if self.point_data is None:
            self.point_data = {}
        if self.cell_data is None:
            self.cell_data = {}

        if not isinstance(self.point_data, TensorDict):
            self.point_data = TensorDict(
                dict(self.point_data),
                batch_size=torch.Size([self.n_points]),
                device=self.points.device,
            )
        if not isinstance(self.cell_data, TensorDict):
            self.cell_data = TensorDict(
                dict(self.cell_data),
                batch_size=torch.Size([self.n_cells]),
                device=self.points.device,
            )

    @property
    def n_points(self) -> int:
        return self.points.shape[0]

    @property
    def n_cells(self) -> int:
        return self.cells.shape[0]

    @property
    def is_soup(self) -> bool:
        """Whether every corner of every triangle owns a distinct point."""
        if self.n_points != 3 * self.n_cells:
            return False
        return bool(
            torch.equal(
                self.cells.reshape(-1),
                torch.arange(self.n_points, device=self.cells.device),
            )
        )

    @property
    def cell_normals(self) -> torch.Tensor:
        """Compute unit normal vectors of all triangles.

        Uses the right-hand rule on the (v0, v1, v2) winding. Degenerate triangles
        (zero area) get a zero normal.

        Returns:
            Tensor of shape (n_cells, 3) containing unit normal vectors.
        """
        corners = self.points[self.cells]  # (n_cells, 3, 3)
        normals = torch.linalg.cross(
            corners[:, 1] - corners[:, 0],
            corners[:, 2] - corners[:, 0],
            dim=-1,
        )
        return F.normalize(normals, dim=-1, eps=1e-30)

    @property
    def normals(self) -> torch.Tensor:
        """Per-point unit normals.

        Returns the stored ``point_data["normals"]`` stream when present (e.g. the
        interpolated normals carried through subdivision); otherwise computes them
        from the face geometry via :meth:`compute_point_normals`.
        """
        if "normals" in self.point_data.keys():
            return self.point_data["normals"]
        return self.compute_point_normals()

    def compute_point_normals(self) -> torch.Tensor:
        """Compute per-point normals as the unweighted mean of incident face normals.

        Every incident triangle contributes its unit normal with equal weight, so the
        result does not depend on triangle areas or corner angles.

        Returns:
            Tensor of shape (n_points, 3) containing unit normals. Points that are
            not referenced by any cell get a zero vector.
        """
        accumulated = torch.zeros_like(self.points)
        if self.n_cells == 0:
            return accumulated

        ### Scatter each face normal onto its three corners
        face_normals = self.cell_normals.repeat_interleave(3, dim=0)  # (n_cells * 3, 3)
        accumulated.index_add_(0, self.cells.reshape(-1), face_normals)

        return F.normalize(accumulated, dim=-1, eps=1e-12)

    def with_recomputed_normals(self) -> "Mesh":
        """Returns a new Mesh whose ``"normals"`` stream is recomputed from geometry."""
        point_data = self.point_data.clone()
        point_data["normals"] = self.compute_point_normals()
        return Mesh(
            points=self.points.clone(),
            cells=self.cells.clone(),
            point_data=point_data,
            cell_data=self.cell_data.clone(),
        )

    def to_soup(self) -> "Mesh":
        """Convert to a non-indexed triangle soup.

        Every triangle corner becomes its own point; point data is gathered per
        corner and cell data is preserved.

        Returns:
            New Mesh with ``3 * n_cells`` points and cells ``arange(3 * n_cells)``.
        """
        corner_indices = self.cells.reshape(-1)
        point_data = TensorDict(
            {
                key: value[corner_indices]
                for key, value in self.point_data.items()
            },
            batch_size=torch.Size([corner_indices.shape[0]]),
            device=self.points.device,
        )
        return Mesh(
            points=self.points[corner_indices],
            cells=torch.arange(
                corner_indices.shape[0], dtype=torch.int64, device=self.cells.device
            ).reshape(-1, 3),
            point_data=point_data,
            cell_data=self.cell_data.clone(),
        )

    @classmethod
    def merge(cls, meshes: Sequence["Mesh"]) -> "Mesh":
        """Concatenate meshes into one, offsetting cell indices accordingly.

        Only point_data / cell_data keys shared by every mesh are kept.

        Args:
            meshes: Meshes to merge; must be non-empty.

        Returns:
            The merged Mesh.
        """
        ### Validate inputs
        if len(meshes) == 0:
            raise ValueError("At least one Mesh must be provided to merge.")
        if not all(isinstance(m, Mesh) for m in meshes):
            raise TypeError(
                f"All objects must be Mesh types. Got:\n"
                f"{[type(m) for m in meshes]=}"
            )

        shared_point_keys = set(meshes[0].point_data.keys())
        shared_cell_keys = set(meshes[0].cell_data.keys())
        for m in meshes[1:]:
            shared_point_keys &= set(m.point_data.keys())
            shared_cell_keys &= set(m.cell_data.keys())

        ### Merge the meshes

        # Compute the number of points for each mesh, cumulatively, so that we can update
        # the point indices for the constituent cells arrays accordingly.
        n_points_for_meshes = torch.tensor(
            [m.n_points for m in meshes],
            device=meshes[0].points.device,
        )
        cumsum_n_points = torch.cumsum(n_points_for_meshes, dim=0)
        cell_index_offsets = cumsum_n_points.roll(1)
        cell_index_offsets[0] = 0

        return cls(
            points=torch.cat([m.points for m in meshes], dim=0),
            cells=torch.cat(
                [m.cells + offset for m, offset in zip(meshes, cell_index_offsets)],
                dim=0,
            ),
            point_data={
                key: torch.cat([m.point_data[key] for m in meshes], dim=0)
                for key in sorted(shared_point_keys)
            },
            cell_data={
                key: torch.cat([m.cell_data[key] for m in meshes], dim=0)
                for key in sorted(shared_cell_keys)
            },
        )

    def translate(self, offset: torch.Tensor | list | tuple) -> "Mesh":
        """Returns a new Mesh with every point shifted by ``offset``.

        Example:
            >>> translated = mesh.translate([0.0, 2.0, 0.0])
        """
        offset = torch.as_tensor(
            offset, dtype=self.points.dtype, device=self.points.device
        )
        return Mesh(
            points=self.points + offset,
            cells=self.cells.clone(),
            point_data=self.point_data.clone(),
            cell_data=self.cell_data.clone(),
        )

    def bounds(self) -> tuple[torch.Tensor, torch.Tensor]:
        """Axis-aligned bounding box as a ``(min_corner, max_corner)`` pair."""
        if self.n_points == 0:
            raise ValueError("Cannot compute bounds of a mesh with no points.")
        return self.points.min(dim=0).values, self.points.max(dim=0).values

    def weld(self, tolerance: float = 1e-4) -> "Mesh":
        """Merge coincident points. See :func:`meshsculpt.welding.weld`."""
        from meshsculpt.welding import weld

        return weld(self, tolerance=tolerance)

    def subdivide(self, levels: int = 1) -> "Mesh":
        """Midpoint-subdivide the mesh into a triangle soup.

        Convenience wrapper for :func:`meshsculpt.subdivision.subdivide_soup`.

        Example:
            >>> refined = mesh.subdivide(levels=2)
            >>> assert refined.n_cells == 16 * mesh.n_cells
        """
        from meshsculpt.subdivision import subdivide_soup

        return subdivide_soup(self, levels=levels)

    def smooth(self, factor: float) -> "Mesh":
        """Single-pass Laplacian relaxation. See :func:`meshsculpt.smoothing.smooth_laplacian`."""
        from meshsculpt.smoothing import smooth_laplacian

        return smooth_laplacian(self, factor=factor)

    def get_point_to_points_adjacency(self):
        """Compute point-to-point adjacency (mesh edges).

        Convenience wrapper for
        :func:`meshsculpt.neighbors.get_point_to_points_adjacency`.
        """
        from meshsculpt.neighbors import get_point_to_points_adjacency

        return get_point_to_points_adjacency(self)
