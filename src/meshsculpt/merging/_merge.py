"""Merge loader submeshes into one world-space triangle soup."""

import logging
from typing import Sequence

import torch
import torch.nn.functional as F

from meshsculpt.errors import GeometryError
from meshsculpt.mesh import Mesh

logger = logging.getLogger(__name__)


def _apply_transform(soup: Mesh, transform: torch.Tensor) -> Mesh:
    """Apply a 4x4 affine world transform to points and normals."""
    transform = torch.as_tensor(
        transform, dtype=soup.points.dtype, device=soup.points.device
    )
    if transform.shape != (4, 4):
        raise ValueError(f"World transforms must be 4x4, got {transform.shape=}")

    linear = transform[:3, :3]
    translation = transform[:3, 3]
    point_data = soup.point_data.clone()

    if "normals" in point_data.keys():
        # Normals transform by the inverse-transpose of the linear part
        normal_matrix = torch.linalg.inv(linear).T
        point_data["normals"] = F.normalize(
            point_data["normals"] @ normal_matrix.T, dim=-1, eps=1e-12
        )

    return Mesh(
        points=soup.points @ linear.T + translation,
        cells=soup.cells.clone(),
        point_data=point_data,
        cell_data=soup.cell_data.clone(),
    )


def merge_submeshes(
    submeshes: Sequence[Mesh],
    transforms: Sequence[torch.Tensor | None] | None = None,
    center: bool = True,
) -> Mesh:
    """Combine the parts of an asset into one triangle soup.

    Every submesh is flattened to a soup (point streams such as normals and UVs are
    gathered per corner), moved into world space by its optional 4x4 transform, and
    appended. ``cell_data["group"]`` records which submesh each triangle came from.
    Streams missing from any submesh are dropped.

    Args:
        submeshes: Parts supplied by the asset loader.
        transforms: Optional per-submesh 4x4 world matrices (``None`` entries mean
            identity).
        center: If True, translate the result so its bounding-box center is the
            origin.

    Returns:
        Merged triangle soup.

    Raises:
        GeometryError: If ``submeshes`` is empty.
    """
    if len(submeshes) == 0:
        raise GeometryError("No geometry found in the asset")
    if transforms is not None and len(transforms) != len(submeshes):
        raise ValueError(
            f"Expected one transform per submesh, got {len(transforms)=} for {len(submeshes)=}"
        )

    soups = []
    for group, submesh in enumerate(submeshes):
        soup = submesh.to_soup()
        if transforms is not None and transforms[group] is not None:
            soup = _apply_transform(soup, transforms[group])
        soup.cell_data["group"] = torch.full(
            (soup.n_cells,), group, dtype=torch.int64, device=soup.points.device
        )
        soups.append(soup)

    merged = Mesh.merge(soups)
    if merged.n_cells == 0:
        raise GeometryError("No triangles found in the asset")

    if center:
        lo, hi = merged.bounds()
        merged = merged.translate(-(lo + hi) * 0.5)

    logger.info(
        "Merged %d submeshes into %d triangles", len(submeshes), merged.n_cells
    )
    return merged


def lift_to_floor(mesh: Mesh, floor_y: float = 0.0, clearance: float = 0.0) -> Mesh:
    """Translate ``mesh`` vertically so its lowest point rests at ``floor_y + clearance``."""
    lo, _ = mesh.bounds()
    lift = floor_y + clearance - float(lo[1])
    return mesh.translate([0.0, lift, 0.0])
