"""Mesh export sinks."""

import logging
from pathlib import Path

from meshsculpt.io._pyvista import to_pyvista
from meshsculpt.mesh import Mesh

logger = logging.getLogger(__name__)


def export_obj(mesh: Mesh, path: str | Path) -> Path:
    """Write ``mesh`` as Wavefront OBJ text.

    Emits ``v`` and ``vn`` records per point, ``vt`` records when the mesh carries
    UVs, and one 1-based ``f`` record per triangle.

    Returns:
        The written path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    points = mesh.points.detach().cpu().tolist()
    normals = mesh.normals.detach().cpu().tolist()
    cells = (mesh.cells.detach().cpu() + 1).tolist()
    has_uvs = "uvs" in mesh.point_data.keys()

    with open(path, "w") as f:
        f.write(f"# meshsculpt export: {mesh.n_points} vertices, {mesh.n_cells} faces\n")
        for x, y, z in points:
            f.write(f"v {x:.6f} {y:.6f} {z:.6f}\n")
        for x, y, z in normals:
            f.write(f"vn {x:.6f} {y:.6f} {z:.6f}\n")
        if has_uvs:
            for u, v in mesh.point_data["uvs"].detach().cpu().tolist():
                f.write(f"vt {u:.6f} {v:.6f}\n")
        for a, b, c in cells:
            if has_uvs:
                f.write(f"f {a}/{a}/{a} {b}/{b}/{b} {c}/{c}/{c}\n")
            else:
                f.write(f"f {a}//{a} {b}//{b} {c}//{c}\n")

    logger.info("Exported %d faces to %s", mesh.n_cells, path)
    return path


def export_mesh(mesh: Mesh, path: str | Path) -> Path:
    """Export ``mesh``, choosing the writer from the file suffix.

    ``.obj`` uses :func:`export_obj`; anything else goes through pyvista's writers
    (``.ply``, ``.stl``, ``.vtk``...).
    """
    path = Path(path)
    if path.suffix.lower() == ".obj":
        return export_obj(mesh, path)

    path.parent.mkdir(parents=True, exist_ok=True)
    to_pyvista(mesh).save(path)
    logger.info("Exported %d faces to %s", mesh.n_cells, path)
    return path
