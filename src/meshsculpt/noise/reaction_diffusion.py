"""Gray–Scott reaction-diffusion on a periodic 3D grid.

Two species ``u`` (substrate) and ``v`` (catalyst) evolve by explicit Euler steps:

    u' = u + Du * lap(u) - u v^2 + F (1 - u)
    v' = v + Dv * lap(v) + u v^2 - (F + k) v

with the 6-neighbour periodic Laplacian. The normalized ``v`` concentration becomes
a tileable scalar field that the ``reaction_diffusion`` kernel samples.

The simulation is O(size^3 * iterations), by far the heaviest step of a recompute,
so :class:`ReactionDiffusionCache` keeps the last field keyed on the parameters it
depends on.
"""

import logging

import torch
from tensordict import tensorclass

from meshsculpt.params import (
    RD_DIFFUSION_RANGE,
    RD_ITERATION_RANGE,
    RD_RATE_RANGE,
    NoiseParameters,
)
from meshsculpt.utilities import KeyedCache

logger = logging.getLogger(__name__)

FIELD_SIZE = 32


@tensorclass
class ReactionDiffusionField:
    """Periodic scalar field with values in [0, 1].

    Attributes:
        grid: Cubic grid, shape (size, size, size). One grid period spans one unit
            of frequency-scaled noise space.
    """

    grid: torch.Tensor  # shape: (size, size, size)

    def __post_init__(self):
        if self.grid.ndim != 3 or len(set(self.grid.shape)) != 1:
            raise ValueError(
                f"`grid` must be a cubic 3D grid, but got {self.grid.shape=}."
            )

    @property
    def grid_size(self) -> int:
        return self.grid.shape[0]

    def sample(self, points: torch.Tensor) -> torch.Tensor:
        """Trilinearly interpolate the field with periodic wrapping.

        Args:
            points: Query points in field units, shape (n, 3). Each unit step covers
                one full period of the grid.

        Returns:
            Interpolated values in [0, 1], shape (n,), dtype of ``points``.
        """
        size = self.grid_size
        grid = self.grid.to(device=points.device, dtype=points.dtype)

        ### Wrap into [0, size) grid coordinates
        coords = torch.remainder(points, 1.0) * size
        base = torch.floor(coords)
        frac = coords - base
        i0 = base.long() % size
        i1 = (i0 + 1) % size

        fx, fy, fz = frac.unbind(dim=-1)
        result = torch.zeros_like(fx)
        for cx, wx in ((i0[:, 0], 1.0 - fx), (i1[:, 0], fx)):
            for cy, wy in ((i0[:, 1], 1.0 - fy), (i1[:, 1], fy)):
                for cz, wz in ((i0[:, 2], 1.0 - fz), (i1[:, 2], fz)):
                    result = result + grid[cx, cy, cz] * wx * wy * wz
        return result


def _periodic_laplacian(grid: torch.Tensor) -> torch.Tensor:
    """6-axis-neighbour Laplacian with wrap-around boundaries."""
    neighbours = (
        torch.roll(grid, 1, dims=0)
        + torch.roll(grid, -1, dims=0)
        + torch.roll(grid, 1, dims=1)
        + torch.roll(grid, -1, dims=1)
        + torch.roll(grid, 1, dims=2)
        + torch.roll(grid, -1, dims=2)
    )
    return neighbours - 6.0 * grid


def _seed_grids(
    u: torch.Tensor, v: torch.Tensor, generator: torch.Generator
) -> None:
    """Stamp spherical perturbations into the initial (u=1, v=0) state, in place."""
    size = u.shape[0]
    n_spots = max(1, size // 4)
    radius = max(2, size // 10)

    axis = torch.arange(size, dtype=torch.float64)
    for _ in range(n_spots):
        center = torch.randint(0, size, (3,), generator=generator).to(torch.float64)
        u_value, v_value = torch.rand(2, generator=generator, dtype=torch.float64).tolist()

        ### Periodic distance of every cell to the spot center
        per_axis = []
        for c in center:
            d = (axis - c).abs()
            per_axis.append(torch.minimum(d, size - d))
        dx, dy, dz = per_axis
        dist_sq = dx[:, None, None] ** 2 + dy[None, :, None] ** 2 + dz[None, None, :] ** 2
        mask = (dist_sq <= radius**2).to(u.device)

        u[mask] = 0.4 + 0.2 * u_value
        v[mask] = 0.2 + 0.25 * v_value


def simulate_reaction_diffusion(
    seed: int,
    feed: float,
    kill: float,
    diffusion_u: float,
    diffusion_v: float,
    iterations: int,
    size: int = FIELD_SIZE,
    device: torch.device | str | None = None,
) -> ReactionDiffusionField:
    """Run a Gray–Scott simulation and return the normalized ``v`` field.

    Rates are clamped to their valid ranges and ``iterations`` to [1, 250].
    Seeding draws from a dedicated ``torch.Generator`` so identical inputs produce
    bit-identical output.

    The two species live in double buffers of shape (2, size, size, size); every
    step reads buffer ``current`` and writes buffer ``1 - current``, so no cell is
    read after it has been overwritten within a step.

    Args:
        seed: Seed for the initial perturbations.
        feed: Feed rate F.
        kill: Kill rate k.
        diffusion_u: Diffusion coefficient of u.
        diffusion_v: Diffusion coefficient of v.
        iterations: Number of explicit Euler steps.
        size: Grid edge length.
        device: Device for the simulation grids.

    Returns:
        ReactionDiffusionField whose values are min-max normalized to [0, 1]
        (all zeros if the simulated field is constant).

    Example:
        >>> field = simulate_reaction_diffusion(1, 0.037, 0.06, 0.16, 0.08, 80)
        >>> assert 0.0 <= field.grid.min() and field.grid.max() <= 1.0
    """
    if size < 1:
        raise ValueError(f"size must be >= 1, got {size=}")

    feed = min(RD_RATE_RANGE[1], max(RD_RATE_RANGE[0], float(feed)))
    kill = min(RD_RATE_RANGE[1], max(RD_RATE_RANGE[0], float(kill)))
    diffusion_u = min(RD_DIFFUSION_RANGE[1], max(RD_DIFFUSION_RANGE[0], float(diffusion_u)))
    diffusion_v = min(RD_DIFFUSION_RANGE[1], max(RD_DIFFUSION_RANGE[0], float(diffusion_v)))
    iterations = int(min(RD_ITERATION_RANGE[1], max(RD_ITERATION_RANGE[0], round(iterations))))

    ### Double buffers, one pair per species
    u_buffers = torch.empty((2, size, size, size), dtype=torch.float32, device=device)
    v_buffers = torch.empty_like(u_buffers)
    u_buffers[0].fill_(1.0)
    v_buffers[0].fill_(0.0)

    generator = torch.Generator().manual_seed(int(seed))
    _seed_grids(u_buffers[0], v_buffers[0], generator)

    current = 0
    for _ in range(iterations):
        nxt = 1 - current
        u = u_buffers[current]
        v = v_buffers[current]
        reaction = u * v * v
        torch.clamp(
            u + diffusion_u * _periodic_laplacian(u) - reaction + feed * (1.0 - u),
            0.0,
            1.0,
            out=u_buffers[nxt],
        )
        torch.clamp(
            v + diffusion_v * _periodic_laplacian(v) + reaction - (feed + kill) * v,
            0.0,
            1.0,
            out=v_buffers[nxt],
        )
        current = nxt

    ### Min-max normalize the catalyst concentration
    v = v_buffers[current].clone()
    v_min, v_max = v.min(), v.max()
    span = v_max - v_min
    if span > 0:
        values = (v - v_min) / span
    else:
        values = torch.zeros_like(v)

    logger.debug(
        "Simulated reaction-diffusion field: size=%d seed=%d F=%.4f k=%.4f Du=%.3f Dv=%.3f iterations=%d",
        size,
        seed,
        feed,
        kill,
        diffusion_u,
        diffusion_v,
        iterations,
    )
    return ReactionDiffusionField(grid=values.clamp(0.0, 1.0))


def field_key(params: NoiseParameters) -> tuple:
    """Cache key of the field a parameter set needs."""
    return params.reaction_diffusion_key


class ReactionDiffusionCache:
    """Single-entry cache of the last simulated field.

    Owned by whoever invokes the pipeline; a new simulation only runs when the
    seed, feed, kill, diffusion or iteration parameters change.
    """

    def __init__(self, size: int = FIELD_SIZE, device: torch.device | str | None = None):
        self.size = size
        self.device = device
        self._cache = KeyedCache()

    def get(self, params: NoiseParameters) -> ReactionDiffusionField:
        params = params.sanitized()
        return self._cache.get_or_compute(
            field_key(params),
            lambda: simulate_reaction_diffusion(
                seed=params.seed,
                feed=params.rd_feed,
                kill=params.rd_kill,
                diffusion_u=params.rd_diffusion_u,
                diffusion_v=params.rd_diffusion_v,
                iterations=params.rd_iterations,
                size=self.size,
                device=self.device,
            ),
        )

    def clear(self) -> None:
        self._cache.clear()
