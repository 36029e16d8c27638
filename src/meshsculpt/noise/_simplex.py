"""Seeded, vectorized 3D simplex noise.

Follows Stefan Gustavson's reference formulation: skew the input onto the simplex
lattice, find the enclosing tetrahedron by ranking the fractional coordinates, and
sum the radially-attenuated gradient contributions of its four corners.
"""

import torch

### Gradient directions: midpoints of the 12 cube edges
_GRAD3 = (
    (1, 1, 0), (-1, 1, 0), (1, -1, 0), (-1, -1, 0),
    (1, 0, 1), (-1, 0, 1), (1, 0, -1), (-1, 0, -1),
    (0, 1, 1), (0, -1, 1), (0, 1, -1), (0, -1, -1),
)  # fmt: skip

_F3 = 1.0 / 3.0
_G3 = 1.0 / 6.0


class SimplexNoise3D:
    """3D simplex noise with a permutation table derived from an integer seed.

    The permutation is drawn from a dedicated ``torch.Generator`` so the global
    torch RNG state is neither consumed nor required: the same seed always yields
    the same field.

    Args:
        seed: Integer seed.
        device: Device on which the lookup tables live.

    Example:
        >>> noise = SimplexNoise3D(seed=42)
        >>> values = noise(torch.randn(100, 3))  # (100,), roughly in [-1, 1]
    """

    def __init__(self, seed: int, device: torch.device | str | None = None):
        self.seed = int(seed)
        generator = torch.Generator().manual_seed(self.seed)
        perm = torch.randperm(256, generator=generator)
        self.perm = torch.cat([perm, perm]).to(device)  # (512,)
        self.grad = torch.tensor(_GRAD3, dtype=torch.float64, device=device)

    def __call__(self, points: torch.Tensor) -> torch.Tensor:
        """Evaluate the noise at ``points``.

        Args:
            points: Query points, shape (..., 3).

        Returns:
            Noise values of shape (...), dtype of ``points``.
        """
        perm = self.perm.to(points.device)
        grad = self.grad.to(device=points.device, dtype=points.dtype)
        x, y, z = points.unbind(dim=-1)

        ### Skew input space to find the simplex cell
        s = (x + y + z) * _F3
        i = torch.floor(x + s)
        j = torch.floor(y + s)
        k = torch.floor(z + s)
        t = (i + j + k) * _G3
        x0 = x - (i - t)
        y0 = y - (j - t)
        z0 = z - (k - t)

        ### Rank the coordinates to pick the tetrahedron
        x_ge_y = x0 >= y0
        y_ge_z = y0 >= z0
        x_ge_z = x0 >= z0
        xyz = x_ge_y & y_ge_z
        xzy = x_ge_y & ~y_ge_z & x_ge_z
        zxy = x_ge_y & ~y_ge_z & ~x_ge_z
        zyx = ~x_ge_y & ~y_ge_z
        yzx = ~x_ge_y & y_ge_z & ~x_ge_z
        yxz = ~x_ge_y & y_ge_z & x_ge_z

        # Second corner: unit step along the largest coordinate
        i1 = (xyz | xzy).long()
        j1 = (yzx | yxz).long()
        k1 = (zxy | zyx).long()
        # Third corner: unit steps along the two largest coordinates
        i2 = (xyz | xzy | zxy | yxz).long()
        j2 = (xyz | zyx | yzx | yxz).long()
        k2 = (xzy | zxy | zyx | yzx).long()

        offsets = (
            (x0, y0, z0),
            (x0 - i1 + _G3, y0 - j1 + _G3, z0 - k1 + _G3),
            (x0 - i2 + 2.0 * _G3, y0 - j2 + 2.0 * _G3, z0 - k2 + 2.0 * _G3),
            (x0 - 1.0 + 3.0 * _G3, y0 - 1.0 + 3.0 * _G3, z0 - 1.0 + 3.0 * _G3),
        )

        ### Hash the four corners into gradient indices
        ii = i.long() & 255
        jj = j.long() & 255
        kk = k.long() & 255
        ones = torch.ones_like(ii)
        steps = ((0, 0, 0), (i1, j1, k1), (i2, j2, k2), (ones, ones, ones))

        total = torch.zeros_like(x)
        for (dx, dy, dz), (ox, oy, oz) in zip(steps, offsets):
            gi = perm[ii + dx + perm[jj + dy + perm[kk + dz]]] % 12
            g = grad[gi]  # (..., 3)
            falloff = 0.6 - ox * ox - oy * oy - oz * oz
            contribution = falloff.clamp(min=0.0) ** 4 * (
                g[..., 0] * ox + g[..., 1] * oy + g[..., 2] * oz
            )
            total = total + contribution

        return 32.0 * total
