"""Tests for the Gray-Scott reaction-diffusion simulator and its cache."""

import pytest
import torch

from meshsculpt.noise import (
    FIELD_SIZE,
    ReactionDiffusionCache,
    ReactionDiffusionField,
    simulate_reaction_diffusion,
)
from meshsculpt.noise.reaction_diffusion import _periodic_laplacian, field_key
from meshsculpt.params import NoiseParameters

DEFAULT_RATES = dict(feed=0.037, kill=0.06, diffusion_u=0.16, diffusion_v=0.08)


class TestSimulation:
    def test_default_grid(self):
        field = simulate_reaction_diffusion(seed=4683, iterations=80, **DEFAULT_RATES)
        assert field.grid.shape == (FIELD_SIZE, FIELD_SIZE, FIELD_SIZE)
        assert field.grid_size == 32

    def test_values_normalized(self):
        field = simulate_reaction_diffusion(seed=1, iterations=80, **DEFAULT_RATES)
        assert field.grid.min() >= 0.0
        assert field.grid.max() <= 1.0
        # Seeded spots leave a non-constant field
        assert field.grid.max() == 1.0
        assert field.grid.min() == 0.0

    def test_bit_identical_for_identical_inputs(self):
        a = simulate_reaction_diffusion(seed=4683, iterations=80, **DEFAULT_RATES)
        b = simulate_reaction_diffusion(seed=4683, iterations=80, **DEFAULT_RATES)
        assert torch.equal(a.grid, b.grid)

    def test_seed_changes_field(self):
        a = simulate_reaction_diffusion(seed=1, iterations=10, size=16, **DEFAULT_RATES)
        b = simulate_reaction_diffusion(seed=2, iterations=10, size=16, **DEFAULT_RATES)
        assert not torch.equal(a.grid, b.grid)

    def test_iterations_clamped(self):
        zero = simulate_reaction_diffusion(seed=3, iterations=0, size=8, **DEFAULT_RATES)
        one = simulate_reaction_diffusion(seed=3, iterations=1, size=8, **DEFAULT_RATES)
        assert torch.equal(zero.grid, one.grid)

    def test_rates_clamped(self):
        rates = dict(DEFAULT_RATES, feed=5.0, diffusion_u=-1.0)
        clamped = dict(DEFAULT_RATES, feed=0.1, diffusion_u=0.0)
        a = simulate_reaction_diffusion(seed=3, iterations=5, size=8, **rates)
        b = simulate_reaction_diffusion(seed=3, iterations=5, size=8, **clamped)
        assert torch.equal(a.grid, b.grid)

    def test_does_not_touch_global_rng(self):
        torch.manual_seed(0)
        expected = torch.rand(3)
        torch.manual_seed(0)
        simulate_reaction_diffusion(seed=5, iterations=1, size=8, **DEFAULT_RATES)
        assert torch.equal(torch.rand(3), expected)

    def test_invalid_size_raises(self):
        with pytest.raises(ValueError, match="size"):
            simulate_reaction_diffusion(seed=1, iterations=1, size=0, **DEFAULT_RATES)

    def test_on_device(self, device):
        field = simulate_reaction_diffusion(
            seed=1, iterations=5, size=8, device=device, **DEFAULT_RATES
        )
        assert field.grid.device.type == device


class TestPeriodicLaplacian:
    def test_constant_grid_has_zero_laplacian(self):
        grid = torch.full((6, 6, 6), 0.3)
        torch.testing.assert_close(_periodic_laplacian(grid), torch.zeros_like(grid))

    def test_wraps_around_boundaries(self):
        grid = torch.zeros(4, 4, 4)
        grid[0, 0, 0] = 1.0
        lap = _periodic_laplacian(grid)
        assert lap[0, 0, 0] == -6.0
        for index in [(3, 0, 0), (1, 0, 0), (0, 3, 0), (0, 1, 0), (0, 0, 3), (0, 0, 1)]:
            assert lap[index] == 1.0
        assert lap.sum() == 0.0


class TestField:
    def test_samples_grid_nodes_exactly(self):
        values = torch.rand(8, 8, 8, generator=torch.Generator().manual_seed(0))
        field = ReactionDiffusionField(grid=values)
        points = torch.tensor([[3 / 8, 5 / 8, 7 / 8]], dtype=torch.float64)
        torch.testing.assert_close(
            field.sample(points), values[3, 5, 7].to(torch.float64).reshape(1)
        )

    def test_periodic(self):
        values = torch.rand(8, 8, 8, generator=torch.Generator().manual_seed(0))
        field = ReactionDiffusionField(grid=values)
        points = torch.tensor([[0.125, 0.5, 0.75], [0.3, 0.1, 0.9]], dtype=torch.float64)
        torch.testing.assert_close(field.sample(points), field.sample(points + 2.0))
        torch.testing.assert_close(field.sample(points), field.sample(points - 1.0))

    def test_interpolates_between_nodes(self):
        values = torch.zeros(4, 4, 4)
        values[1] = 1.0
        field = ReactionDiffusionField(grid=values)
        points = torch.tensor([[0.125, 0.0, 0.0]], dtype=torch.float64)  # halfway 0 -> 1
        torch.testing.assert_close(field.sample(points), torch.tensor([0.5], dtype=torch.float64))

    def test_non_cubic_grid_rejected(self):
        with pytest.raises(ValueError, match="cubic"):
            ReactionDiffusionField(grid=torch.zeros(4, 4, 5))


class TestReactionDiffusionCache:
    def test_reuses_field_for_same_key(self):
        cache = ReactionDiffusionCache(size=8)
        params = NoiseParameters(rd_iterations=5)
        first = cache.get(params)
        assert cache.get(params.replace(amplitude=0.1, noise_kind="curl")) is first

    def test_recomputes_when_simulation_inputs_change(self):
        cache = ReactionDiffusionCache(size=8)
        params = NoiseParameters(rd_iterations=5)
        first = cache.get(params)
        second = cache.get(params.replace(rd_feed=0.05))
        assert second is not first

    def test_key_uses_sanitized_parameters(self):
        cache = ReactionDiffusionCache(size=8)
        first = cache.get(NoiseParameters(rd_iterations=500))
        assert cache.get(NoiseParameters(rd_iterations=250)) is first

    def test_clear(self):
        cache = ReactionDiffusionCache(size=8)
        params = NoiseParameters(rd_iterations=5)
        first = cache.get(params)
        cache.clear()
        assert cache.get(params) is not first

    def test_field_key(self):
        params = NoiseParameters()
        assert field_key(params) == (4683, 0.037, 0.06, 0.16, 0.08, 80)
