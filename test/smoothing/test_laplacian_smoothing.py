"""Tests for single-pass uniform Laplacian smoothing.

Tests cover the relaxation formula, factor clamping, order independence, isolated
points and normal recomputation.
"""

import pytest
import torch

from meshsculpt import Mesh
from meshsculpt.smoothing import smooth_laplacian


### Test Utilities ###


def create_fan(apex_height: float = 1.0) -> Mesh:
    """Square fan around a raised apex: point 0 is the apex, points 1-4 the rim."""
    points = torch.tensor(
        [
            [0.0, 0.0, apex_height],
            [1.0, 0.0, 0.0],
            [0.0, 1.0, 0.0],
            [-1.0, 0.0, 0.0],
            [0.0, -1.0, 0.0],
        ]
    )
    cells = torch.tensor([[0, 1, 2], [0, 2, 3], [0, 3, 4], [0, 4, 1]])
    return Mesh(points=points, cells=cells)


def create_noisy_sphere(noise_scale: float = 0.2, seed: int = 0) -> Mesh:
    """Sphere whose points are radially jittered outward."""
    from conftest import create_sphere

    sphere = create_sphere(subdivisions=2)
    generator = torch.Generator().manual_seed(seed)
    jitter = 1.0 + noise_scale * torch.rand(sphere.n_points, 1, generator=generator)
    return Mesh(points=sphere.points * jitter, cells=sphere.cells)


def measure_roughness(mesh: Mesh) -> float:
    """Variance of point distances from the origin."""
    return torch.var(mesh.points.norm(dim=-1)).item()


### A. Core Functionality Tests ###


class TestSmoothingFormula:
    def test_apex_moves_toward_rim_mean(self):
        mesh = create_fan(apex_height=1.0)
        smoothed = smooth_laplacian(mesh, factor=0.5)
        # Rim mean is the origin
        torch.testing.assert_close(smoothed.points[0], torch.tensor([0.0, 0.0, 0.5]))

    def test_rim_point_uses_snapshot(self):
        mesh = create_fan(apex_height=1.0)
        smoothed = smooth_laplacian(mesh, factor=1.0)
        # Point 1 neighbors: apex (0, 0, 1), points 2 and 4
        expected = (mesh.points[0] + mesh.points[2] + mesh.points[4]) / 3
        torch.testing.assert_close(smoothed.points[1], expected)

    def test_factor_zero_is_identity(self):
        mesh = create_noisy_sphere()
        smoothed = smooth_laplacian(mesh, factor=0.0)
        torch.testing.assert_close(smoothed.points, mesh.points)
        assert torch.equal(smoothed.cells, mesh.cells)

    @pytest.mark.parametrize("factor, clamped", [(-1.0, 0.0), (2.5, 1.0)])
    def test_factor_clamped(self, factor, clamped):
        mesh = create_fan()
        torch.testing.assert_close(
            smooth_laplacian(mesh, factor=factor).points,
            smooth_laplacian(mesh, factor=clamped).points,
        )

    def test_reduces_roughness(self):
        mesh = create_noisy_sphere(noise_scale=0.3)
        smoothed = smooth_laplacian(mesh, factor=0.5)
        assert measure_roughness(smoothed) < measure_roughness(mesh)

    def test_order_independent(self):
        """Relabelling the points permutes the result the same way."""
        mesh = create_noisy_sphere()
        perm = torch.randperm(mesh.n_points, generator=torch.Generator().manual_seed(1))
        inverse = torch.argsort(perm)
        relabelled = Mesh(points=mesh.points[perm], cells=inverse[mesh.cells])

        smoothed = smooth_laplacian(mesh, factor=0.7)
        smoothed_relabelled = smooth_laplacian(relabelled, factor=0.7)
        torch.testing.assert_close(smoothed_relabelled.points, smoothed.points[perm])


class TestSmoothingEdgeCases:
    def test_isolated_point_unchanged(self):
        mesh = create_fan()
        points = torch.cat([mesh.points, torch.tensor([[5.0, 5.0, 5.0]])])
        mesh = Mesh(points=points, cells=mesh.cells)
        smoothed = smooth_laplacian(mesh, factor=1.0)
        torch.testing.assert_close(smoothed.points[5], torch.tensor([5.0, 5.0, 5.0]))

    def test_input_not_modified(self):
        mesh = create_fan()
        before = mesh.points.clone()
        smooth_laplacian(mesh, factor=1.0)
        torch.testing.assert_close(mesh.points, before)

    def test_normals_recomputed(self):
        mesh = create_fan(apex_height=1.0)
        smoothed = mesh.smooth(factor=1.0)
        torch.testing.assert_close(smoothed.normals, smoothed.compute_point_normals())
        assert smoothed.normals.shape == (5, 3)

    def test_point_data_carried(self):
        mesh = create_fan()
        mesh.point_data["uvs"] = torch.rand(5, 2)
        smoothed = smooth_laplacian(mesh, factor=0.5)
        torch.testing.assert_close(smoothed.point_data["uvs"], mesh.point_data["uvs"])

    def test_on_device(self, device):
        mesh = create_fan()
        mesh = Mesh(points=mesh.points.to(device), cells=mesh.cells.to(device))
        smoothed = smooth_laplacian(mesh, factor=0.5)
        assert smoothed.points.device.type == device
