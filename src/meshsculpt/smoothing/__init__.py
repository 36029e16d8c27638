"""Laplacian relaxation of displaced meshes."""

from meshsculpt.smoothing._laplacian import smooth_laplacian

__all__ = [
    "smooth_laplacian",
]
