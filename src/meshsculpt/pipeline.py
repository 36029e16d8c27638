"""End-to-end sculpting pipeline with explicit, per-instance memoization.

asset -> merge -> weld -> [subdivide -> weld] -> displace -> [smooth] -> mesh

Each stage consumes one Mesh and returns a new one. A :class:`SculptPipeline` owns
the caches for the stages that are expensive to rebuild: the welded base mesh
(built once per pipeline), the subdivided mesh (keyed on the subdivision level) and
the reaction-diffusion field (keyed on its simulation parameters). Nothing is held
in module-level state, so independent pipelines never share intermediate results.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Sequence

from meshsculpt.displacement import displace
from meshsculpt.errors import GeometryError
from meshsculpt.mesh import Mesh
from meshsculpt.merging import lift_to_floor, merge_submeshes
from meshsculpt.noise import ReactionDiffusionCache, SimplexNoise3D
from meshsculpt.params import NoiseKind, NoiseParameters
from meshsculpt.smoothing import smooth_laplacian
from meshsculpt.subdivision import subdivide_soup
from meshsculpt.utilities import KeyedCache
from meshsculpt.welding import DEFAULT_WELD_TOLERANCE, weld

logger = logging.getLogger(__name__)

AssetLoader = Callable[[], Sequence[Mesh]]


def prepare_base_mesh(
    submeshes: Sequence[Mesh],
    floor_y: float | None = None,
    clearance: float = 0.0,
    tolerance: float = DEFAULT_WELD_TOLERANCE,
) -> Mesh:
    """Merge, center and weld the asset parts into the base mesh.

    Args:
        submeshes: Parts from the asset loader.
        floor_y: If given, the welded mesh is lifted so its lowest point rests at
            ``floor_y + clearance``.
        clearance: Gap above the floor.
        tolerance: Weld tolerance.

    Raises:
        GeometryError: If there are no submeshes.
    """
    base = weld(merge_submeshes(submeshes), tolerance=tolerance)
    if floor_y is not None:
        base = lift_to_floor(base, floor_y=floor_y, clearance=clearance)
    return base


class SculptPipeline:
    """Recomputes the sculpted mesh from an asset and a parameter set.

    Args:
        loader: Zero-argument callable returning the asset's submeshes.
        floor_y: Optional floor height the base mesh is lifted onto.
        clearance: Gap between the floor and the base mesh.
        tolerance: Weld tolerance used by every weld stage.

    Attributes:
        mesh: The last successfully computed mesh, or None before the first
            successful recompute. A failed recompute leaves it untouched.
        suppress_overlays: Read by the rendering layer; True while a frame capture
            is in progress so the sculpting widgets are hidden.

    Example:
        >>> pipeline = SculptPipeline(lambda: load_submeshes("shoe.obj"))
        >>> sculpted = pipeline.recompute(NoiseParameters(noise_kind="worley"))
    """

    def __init__(
        self,
        loader: AssetLoader,
        floor_y: float | None = None,
        clearance: float = 0.0,
        tolerance: float = DEFAULT_WELD_TOLERANCE,
    ):
        self.loader = loader
        self.floor_y = floor_y
        self.clearance = clearance
        self.tolerance = tolerance

        self.mesh: Mesh | None = None
        self.suppress_overlays = False

        self._base_cache = KeyedCache()
        self._subdivision_cache = KeyedCache()
        self._field_cache = ReactionDiffusionCache()

    @classmethod
    def from_file(cls, path: str | Path, **kwargs) -> "SculptPipeline":
        """Pipeline whose asset is read from ``path`` with pyvista."""
        from meshsculpt.io import load_submeshes

        return cls(lambda: load_submeshes(path), **kwargs)

    def base_mesh(self) -> Mesh:
        """The welded base mesh, loaded on first use."""
        return self._base_cache.get_or_compute(
            "base",
            lambda: prepare_base_mesh(
                self.loader(),
                floor_y=self.floor_y,
                clearance=self.clearance,
                tolerance=self.tolerance,
            ),
        )

    def sculpt_mesh(self, subdivision_level: int) -> Mesh:
        """The base mesh subdivided ``subdivision_level`` times and re-welded."""
        base = self.base_mesh()
        if subdivision_level <= 0:
            return base
        return self._subdivision_cache.get_or_compute(
            subdivision_level,
            lambda: weld(
                subdivide_soup(base, levels=subdivision_level),
                tolerance=self.tolerance,
            ),
        )

    def recompute(self, params: NoiseParameters) -> Mesh:
        """Run the pipeline for ``params`` and return the new mesh.

        Parameters are sanitized first, so out-of-range values never raise.

        Raises:
            GeometryError: If the asset has no geometry. ``self.mesh`` keeps the
                previous result.
        """
        params = params.sanitized()
        try:
            source = self.sculpt_mesh(params.subdivision_level)
        except GeometryError:
            logger.error("Recompute aborted: the asset has no geometry")
            raise

        field = None
        if params.noise_kind is NoiseKind.REACTION_DIFFUSION:
            field = self._field_cache.get(params)

        generator = SimplexNoise3D(params.seed, device=source.points.device)
        result = displace(
            source, params, generator=generator, field=field, tolerance=self.tolerance
        )
        if params.smoothing > 0:
            result = smooth_laplacian(result, params.smoothing)

        self.mesh = result
        logger.debug(
            "Recomputed %s mesh: %d points, %d cells",
            params.noise_kind.value,
            result.n_points,
            result.n_cells,
        )
        return result

    @contextmanager
    def capturing(self) -> Iterator["SculptPipeline"]:
        """Hide the sculpting overlays for the duration of a frame capture."""
        previous = self.suppress_overlays
        self.suppress_overlays = True
        try:
            yield self
        finally:
            self.suppress_overlays = previous

    def clear_caches(self) -> None:
        self._base_cache.clear()
        self._subdivision_cache.clear()
        self._field_cache.clear()
