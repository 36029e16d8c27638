"""Adapters between meshsculpt meshes and the outside world.

- asset loading and conversion through pyvista
- Wavefront OBJ export
- off-screen frame capture with optional sculpting-tool overlays
"""

from meshsculpt.io._capture import build_overlays, capture_screenshot
from meshsculpt.io._export import export_mesh, export_obj
from meshsculpt.io._pyvista import from_pyvista, load_submeshes, to_pyvista

__all__ = [
    "build_overlays",
    "capture_screenshot",
    "export_mesh",
    "export_obj",
    "from_pyvista",
    "load_submeshes",
    "to_pyvista",
]
