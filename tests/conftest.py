"""Shared pytest fixtures for scanmesh pipeline tests."""

from pathlib import Path

import numpy as np
import pytest

from scanmesh.core.mesh import Mesh

# Unit cube, outward winding (every face normal points away from the center).
CUBE_VERTICES = np.array([
    [0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0],
    [0, 0, 1], [1, 0, 1], [1, 1, 1], [0, 1, 1],
], dtype=np.float32)

CUBE_FACES = np.array([
    # -Z
    [0, 2, 1], [0, 3, 2],
    # +Z
    [4, 5, 6], [4, 6, 7],
    # -Y
    [0, 1, 5], [0, 5, 4],
    # +Y
    [3, 7, 6], [3, 6, 2],
    # -X
    [0, 4, 7], [0, 7, 3],
    # +X
    [1, 2, 6], [1, 6, 5],
], dtype=np.int64)


def make_grid(n: int = 5, spacing: float = 0.001, z: float = 0.0) -> Mesh:
    """Flat n x n vertex grid in the XY plane, 2*(n-1)^2 triangles facing +Z."""
    xs, ys = np.meshgrid(np.arange(n) * spacing, np.arange(n) * spacing)
    vertices = np.column_stack([xs.ravel(), ys.ravel(), np.full(n * n, z)])
    faces = []
    for i in range(n - 1):
        for j in range(n - 1):
            a = i * n + j
            b, c = a + 1, a + n
            d = c + 1
            faces += [[a, b, d], [a, d, c]]
    return Mesh(vertices, faces=faces)


@pytest.fixture
def unit_cube() -> Mesh:
    """Closed unit cube: 8 vertices, 12 triangles, manifold and watertight."""
    return Mesh(CUBE_VERTICES.copy(), faces=CUBE_FACES.copy())


@pytest.fixture
def open_cube() -> Mesh:
    """Unit cube with its last triangle (+X side) removed: one 3-vertex hole."""
    return Mesh(CUBE_VERTICES.copy(), faces=CUBE_FACES[:-1].copy())


@pytest.fixture
def small_cube() -> Mesh:
    """1 cm cube: dense enough to survive the default 2 mm noise threshold."""
    return Mesh(CUBE_VERTICES * 0.01, faces=CUBE_FACES.copy())


@pytest.fixture
def grid_mesh() -> Mesh:
    """5 x 5 grid with 1 mm spacing (25 vertices, 32 triangles)."""
    return make_grid(5, 0.001)


@pytest.fixture
def grid_factory():
    """``make_grid(n, spacing, z)`` for tests that need a specific grid size."""
    return make_grid


@pytest.fixture
def data_root(tmp_path: Path) -> Path:
    """Create a temporary data root with standard directory structure."""
    for subdir in ["raw", "processed", "exports"]:
        (tmp_path / subdir).mkdir(parents=True, exist_ok=True)
    return tmp_path
