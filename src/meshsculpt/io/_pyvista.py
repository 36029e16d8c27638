"""Conversion between pyvista datasets and Mesh."""

import logging
from pathlib import Path

import numpy as np
import pyvista as pv
import torch

from meshsculpt.mesh import Mesh

logger = logging.getLogger(__name__)


def from_pyvista(
    pv_mesh: pv.DataSet,
    dtype: torch.dtype = torch.float32,
    device: torch.device | str | None = None,
) -> Mesh:
    """Convert a pyvista dataset into a triangle Mesh.

    Non-PolyData datasets are reduced to their outer surface and polygons are
    triangulated. Point normals (``"Normals"``) and active texture coordinates are
    carried over as the ``"normals"`` and ``"uvs"`` streams when present.

    Args:
        pv_mesh: Input dataset.
        dtype: Floating-point dtype of the points.
        device: Target device.

    Returns:
        Mesh with triangular cells.

    Example:
        >>> mesh = from_pyvista(pv.Sphere(theta_resolution=16, phi_resolution=16))
    """
    if not isinstance(pv_mesh, pv.PolyData):
        pv_mesh = pv_mesh.extract_surface()
    if pv_mesh.n_cells > 0 and not pv_mesh.is_all_triangles:
        pv_mesh = pv_mesh.triangulate()

    points = torch.as_tensor(np.asarray(pv_mesh.points), dtype=dtype, device=device)
    faces = np.asarray(pv_mesh.faces)
    if faces.size == 0:
        cells = torch.zeros((0, 3), dtype=torch.int64, device=device)
    else:
        cells = torch.as_tensor(
            faces.reshape(-1, 4)[:, 1:].astype(np.int64), device=device
        )

    point_data = {}
    if "Normals" in pv_mesh.point_data.keys():
        point_data["normals"] = torch.as_tensor(
            np.asarray(pv_mesh.point_data["Normals"]), dtype=dtype, device=device
        )
    uvs = pv_mesh.active_texture_coordinates
    if uvs is not None:
        point_data["uvs"] = torch.as_tensor(np.asarray(uvs), dtype=dtype, device=device)

    return Mesh(points=points, cells=cells, point_data=point_data)


def to_pyvista(mesh: Mesh) -> pv.PolyData:
    """Convert a Mesh into ``pv.PolyData``, carrying normals and UVs."""
    points = mesh.points.detach().cpu().numpy()
    cells = mesh.cells.detach().cpu().numpy()
    faces = np.hstack([np.full((len(cells), 1), 3, dtype=np.int64), cells]).ravel()
    pv_mesh = pv.PolyData(points, faces=faces)

    pv_mesh.point_data["Normals"] = mesh.normals.detach().cpu().numpy()
    if "uvs" in mesh.point_data.keys():
        pv_mesh.active_texture_coordinates = mesh.point_data["uvs"].detach().cpu().numpy()
    return pv_mesh


def _iter_blocks(dataset):
    if isinstance(dataset, pv.MultiBlock):
        for block in dataset:
            if block is not None:
                yield from _iter_blocks(block)
    else:
        yield dataset


def load_submeshes(
    path: str | Path,
    dtype: torch.dtype = torch.float32,
    device: torch.device | str | None = None,
) -> list[Mesh]:
    """Read a mesh asset and return its triangle parts.

    Multi-block files yield one Mesh per non-empty block; single datasets yield a
    single Mesh. Parts without triangles are skipped, so an asset with no surface
    geometry returns an empty list.

    Args:
        path: Any file format ``pyvista.read`` understands (OBJ, PLY, STL, VTK...).
        dtype: Floating-point dtype of the points.
        device: Target device.
    """
    path = Path(path)
    dataset = pv.read(path)

    submeshes = []
    for block in _iter_blocks(dataset):
        mesh = from_pyvista(block, dtype=dtype, device=device)
        if mesh.n_cells > 0:
            submeshes.append(mesh)

    logger.info("Loaded %d submeshes from %s", len(submeshes), path)
    return submeshes
