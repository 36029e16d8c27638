"""Pytest configuration and shared fixtures for meshsculpt tests.

All functions and fixtures defined here are automatically available to all test files
without explicit imports.
"""

import pytest
import torch


### Pytest Hooks ###


def pytest_collection_modifyitems(config, items):
    """Skip tests marked with 'cuda' if CUDA is not available."""
    if torch.cuda.is_available():
        return  # CUDA available, run all tests

    skip_cuda = pytest.mark.skip(reason="CUDA not available")
    for item in items:
        if "cuda" in item.keywords:
            item.add_marker(skip_cuda)


### Mesh Generators (Standalone Functions) ###


def create_single_triangle(device: str = "cpu", dtype: torch.dtype = torch.float32):
    """Create a mesh with one right triangle in the z=0 plane, normal +z."""
    from meshsculpt.mesh import Mesh

    points = torch.tensor(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], dtype=dtype, device=device
    )
    cells = torch.tensor([[0, 1, 2]], dtype=torch.int64, device=device)
    return Mesh(points=points, cells=cells)


def create_cube_mesh(
    size: float = 1.0, device: str = "cpu", dtype: torch.dtype = torch.float32
):
    """Create an axis-aligned cube centered at the origin (8 points, 12 triangles).

    Every triangle is wound counter-clockwise seen from outside, so face normals
    point outward.
    """
    from meshsculpt.mesh import Mesh

    s = size / 2
    corners = torch.tensor(
        [
            [-s, -s, -s],
            [s, -s, -s],
            [s, s, -s],
            [-s, s, -s],  # Bottom face
            [-s, -s, s],
            [s, -s, s],
            [s, s, s],
            [-s, s, s],  # Top face
        ],
        dtype=dtype,
        device=device,
    )

    faces = [
        # Bottom (z = -s)
        [0, 2, 1],
        [0, 3, 2],
        # Top (z = s)
        [4, 5, 6],
        [4, 6, 7],
        # Front (y = -s)
        [0, 1, 5],
        [0, 5, 4],
        # Back (y = s)
        [3, 7, 6],
        [3, 6, 2],
        # Left (x = -s)
        [0, 4, 7],
        [0, 7, 3],
        # Right (x = s)
        [1, 2, 6],
        [1, 6, 5],
    ]
    cells = torch.tensor(faces, dtype=torch.int64, device=device)
    return Mesh(points=corners, cells=cells)


def create_octahedron(
    radius: float = 1.0, device: str = "cpu", dtype: torch.dtype = torch.float32
):
    """Create a regular octahedron (6 points, 8 outward-wound triangles)."""
    from meshsculpt.mesh import Mesh

    r = radius
    points = torch.tensor(
        [
            [r, 0.0, 0.0],
            [-r, 0.0, 0.0],
            [0.0, r, 0.0],
            [0.0, -r, 0.0],
            [0.0, 0.0, r],
            [0.0, 0.0, -r],
        ],
        dtype=dtype,
        device=device,
    )
    cells = torch.tensor(
        [
            [0, 2, 4],
            [2, 1, 4],
            [1, 3, 4],
            [3, 0, 4],
            [2, 0, 5],
            [1, 2, 5],
            [3, 1, 5],
            [0, 3, 5],
        ],
        dtype=torch.int64,
        device=device,
    )
    return Mesh(points=points, cells=cells)


def create_sphere(subdivisions: int = 2, device: str = "cpu"):
    """Create a welded, approximately unit sphere by projecting a subdivided octahedron."""
    from meshsculpt.subdivision import subdivide_soup
    from meshsculpt.welding import weld

    refined = weld(subdivide_soup(create_octahedron(device=device), subdivisions))
    points = refined.points / refined.points.norm(dim=-1, keepdim=True)
    return type(refined)(points=points, cells=refined.cells).with_recomputed_normals()


### Assertion Helpers ###


def assert_mesh_valid(mesh) -> None:
    """Assert that a mesh is well-formed and carries a normals stream."""
    assert mesh.points.ndim == 2 and mesh.points.shape[1] == 3, (
        f"Points must have shape (n, 3), got {mesh.points.shape=}"
    )
    assert mesh.cells.ndim == 2 and mesh.cells.shape[1] == 3, (
        f"Cells must have shape (m, 3), got {mesh.cells.shape=}"
    )
    assert mesh.cells.dtype == torch.int64, (
        f"Cells must be int64, got {mesh.cells.dtype=}"
    )
    if mesh.n_cells > 0:
        assert torch.all(mesh.cells >= 0), "Cell indices must be non-negative"
        assert torch.all(mesh.cells < mesh.n_points), (
            f"Cell indices out of bounds: max={mesh.cells.max()}, n_points={mesh.n_points}"
        )
    assert "normals" in mesh.point_data.keys(), "Mesh must carry a normals stream"
    assert mesh.point_data["normals"].shape == mesh.points.shape, (
        f"Normals shape mismatch: {mesh.point_data['normals'].shape=} != {mesh.points.shape=}"
    )


### Pytest Fixtures ###


@pytest.fixture(
    params=[
        "cpu",
        pytest.param("cuda", marks=pytest.mark.cuda),
    ]
)
def device(request):
    """Parametrize tests over all available devices (CPU, CUDA).

    CUDA tests are automatically skipped if CUDA is not available via
    the pytest_collection_modifyitems hook.
    """
    return request.param


@pytest.fixture
def cube():
    return create_cube_mesh()


@pytest.fixture
def triangle():
    return create_single_triangle()


@pytest.fixture
def sphere():
    return create_sphere()
