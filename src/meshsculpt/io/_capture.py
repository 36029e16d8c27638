"""Off-screen frame capture."""

import logging
from pathlib import Path

import pyvista as pv

from meshsculpt.io._pyvista import to_pyvista
from meshsculpt.mesh import Mesh
from meshsculpt.params import NoiseParameters

logger = logging.getLogger(__name__)

MESH_COLOR = "#d4ffe3"
HANDLE_COLOR = "#ff7a1a"
AXIS_COLORS = {"x": "#ff4d4d", "y": "#4dff88", "z": "#4da6ff"}


def build_overlays(
    params: NoiseParameters, handle_radius: float = 0.6, axis_length: float = 3.0
) -> dict[str, pv.PolyData]:
    """Geometry of the sculpting-tool widgets drawn over the mesh.

    Returns:
        ``"falloff_handle"``: a sphere at the falloff anchor, and ``"axis_x"``,
        ``"axis_y"``, ``"axis_z"``: arrows from the origin.
    """
    overlays = {
        "falloff_handle": pv.Sphere(radius=handle_radius, center=params.falloff_center),
    }
    for name, direction in zip("xyz", ((1, 0, 0), (0, 1, 0), (0, 0, 1))):
        overlays[f"axis_{name}"] = pv.Arrow(
            start=(0.0, 0.0, 0.0), direction=direction, scale=axis_length
        )
    return overlays


def capture_screenshot(
    mesh: Mesh,
    path: str | Path,
    params: NoiseParameters | None = None,
    suppress_overlays: bool = True,
    window_size: tuple[int, int] = (1280, 960),
) -> Path:
    """Render ``mesh`` off-screen and save the frame as an image.

    Args:
        mesh: Mesh to render.
        path: Output image path (format from suffix, e.g. ``.png``).
        params: Needed to place the overlays; ignored when they are suppressed.
        suppress_overlays: If True, only the mesh is drawn.
        window_size: Image size in pixels.

    Returns:
        The written path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    plotter = pv.Plotter(off_screen=True, window_size=list(window_size))
    try:
        plotter.add_mesh(to_pyvista(mesh), color=MESH_COLOR, smooth_shading=True)
        if not suppress_overlays and params is not None:
            for name, overlay in build_overlays(params).items():
                color = AXIS_COLORS.get(name.removeprefix("axis_"), HANDLE_COLOR)
                plotter.add_mesh(overlay, color=color)
        plotter.screenshot(str(path))
    finally:
        plotter.close()

    logger.info("Captured frame to %s", path)
    return path
