"""Tests for midpoint subdivision of triangle soups."""

import pytest
import torch

from meshsculpt.subdivision import get_subdivision_pattern, subdivide_soup
from meshsculpt.welding import weld

from conftest import create_cube_mesh, create_octahedron, create_single_triangle


class TestSubdivisionCounts:
    def test_single_triangle_two_levels(self):
        refined = subdivide_soup(create_single_triangle(), levels=2)
        assert refined.n_cells == 16
        assert refined.n_points == 48

    @pytest.mark.parametrize("levels", [0, 1, 2, 3])
    def test_four_to_the_level(self, levels):
        cube = create_cube_mesh()
        refined = subdivide_soup(cube, levels=levels)
        assert refined.n_cells == 4**levels * cube.n_cells
        assert refined.is_soup

    def test_level_zero_returns_soup(self):
        cube = create_cube_mesh()
        refined = subdivide_soup(cube, levels=0)
        torch.testing.assert_close(refined.points, cube.to_soup().points)

    def test_negative_levels_raise(self):
        with pytest.raises(ValueError, match="levels"):
            subdivide_soup(create_single_triangle(), levels=-1)

    def test_mesh_wrapper(self):
        refined = create_single_triangle().subdivide(levels=1)
        assert refined.n_cells == 4


class TestSubdivisionGeometry:
    def test_pattern(self):
        pattern = get_subdivision_pattern()
        assert pattern.tolist() == [[0, 3, 5], [3, 1, 4], [5, 4, 2], [3, 4, 5]]

    def test_children_of_single_triangle(self):
        refined = subdivide_soup(create_single_triangle(), levels=1)
        a, b, c = [0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]
        ab, bc, ca = [0.5, 0.0, 0.0], [0.5, 0.5, 0.0], [0.0, 0.5, 0.0]
        expected = torch.tensor(
            [a, ab, ca, ab, b, bc, ca, bc, c, ab, bc, ca], dtype=torch.float32
        )
        torch.testing.assert_close(refined.points, expected)

    def test_winding_preserved(self):
        refined = subdivide_soup(create_single_triangle(), levels=2)
        expected = torch.tensor([0.0, 0.0, 1.0]).expand(refined.n_cells, 3)
        torch.testing.assert_close(refined.cell_normals, expected)

    def test_area_preserved(self):
        def total_area(mesh):
            corners = mesh.points[mesh.cells]
            cross = torch.linalg.cross(
                corners[:, 1] - corners[:, 0], corners[:, 2] - corners[:, 0], dim=-1
            )
            return cross.norm(dim=-1).sum() / 2

        cube = create_cube_mesh()
        refined = subdivide_soup(cube, levels=2)
        torch.testing.assert_close(total_area(refined), total_area(cube))

    def test_no_deduplication(self):
        refined = subdivide_soup(create_octahedron(), levels=1)
        welded = weld(refined)
        assert refined.n_points == 96
        # 6 original vertices + 12 edge midpoints
        assert welded.n_points == 18


class TestSubdivisionData:
    def test_normals_renormalized(self):
        soup = create_octahedron().to_soup()
        soup.point_data["normals"] = soup.points.clone()  # radial unit normals
        refined = subdivide_soup(soup, levels=2)
        lengths = refined.point_data["normals"].norm(dim=-1)
        torch.testing.assert_close(lengths, torch.ones_like(lengths))

    def test_uvs_interpolated_linearly(self):
        mesh = create_single_triangle()
        mesh.point_data["uvs"] = mesh.points[:, :2].clone()
        refined = subdivide_soup(mesh, levels=2)
        torch.testing.assert_close(refined.point_data["uvs"], refined.points[:, :2])

    def test_cell_data_inherited(self):
        soup = create_cube_mesh().to_soup()
        soup.cell_data["group"] = torch.arange(soup.n_cells)
        refined = subdivide_soup(soup, levels=1)
        assert torch.equal(
            refined.cell_data["group"], torch.arange(12).repeat_interleave(4)
        )

    def test_integer_point_data_rejected(self):
        mesh = create_single_triangle()
        mesh.point_data["ids"] = torch.arange(3)
        with pytest.raises(TypeError):
            subdivide_soup(mesh, levels=1)

    def test_on_device(self, device):
        refined = subdivide_soup(create_cube_mesh(device=device), levels=1)
        assert refined.points.device.type == device
        assert refined.cells.device.type == device
