from meshsculpt.mesh import Mesh
from meshsculpt.errors import GeometryError
from meshsculpt.params import (
    NoiseKind,
    NoiseParameters,
    load_parameters,
    save_parameters,
)
from meshsculpt.welding import weld
from meshsculpt.subdivision import subdivide_soup
from meshsculpt.merging import merge_submeshes
from meshsculpt.displacement import displace
from meshsculpt.smoothing import smooth_laplacian
from meshsculpt.pipeline import SculptPipeline

__all__ = [
    "GeometryError",
    "Mesh",
    "NoiseKind",
    "NoiseParameters",
    "SculptPipeline",
    "displace",
    "load_parameters",
    "merge_submeshes",
    "save_parameters",
    "smooth_laplacian",
    "subdivide_soup",
    "weld",
]
