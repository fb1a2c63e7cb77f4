"""Tests for S03: Laplacian smoothing step."""

import numpy as np
import pytest

from scanmesh.steps.s03_smoothing.config import SmoothingConfig
from scanmesh.steps.s03_smoothing.contracts import SmoothingInput
from scanmesh.steps.s03_smoothing.step import SmoothingStep, laplacian_smooth
from scanmesh.utils.topology import MeshTopology


@pytest.fixture
def spiked_grid(grid_factory):
    """3 x 3 grid whose center vertex is lifted 1 mm along +Z."""
    grid = grid_factory(3)
    vertices = grid.vertices.copy()
    vertices[4, 2] = 0.001
    return grid.replace(vertices=vertices)


def _smooth(mesh, **config):
    return SmoothingStep(config=SmoothingConfig(**config)).execute(SmoothingInput(mesh=mesh))


class TestLaplacianSmooth:
    def test_zero_iterations_returns_copy(self, spiked_grid):
        topo = MeshTopology.build(spiked_grid.faces, spiked_grid.vertex_count)
        out = laplacian_smooth(spiked_grid.vertices, topo, 0, 0.5)
        np.testing.assert_array_equal(out, spiked_grid.vertices)
        assert out is not spiked_grid.vertices

    def test_single_pass_blend(self, spiked_grid):
        topo = MeshTopology.build(spiked_grid.faces, spiked_grid.vertex_count)
        out = laplacian_smooth(spiked_grid.vertices, topo, 1, 0.5)
        # All 8 neighbors of the center are flat, so their centroid z is 0.
        assert out[4, 2] == pytest.approx(0.0005)

    def test_input_not_modified(self, spiked_grid):
        before = spiked_grid.vertices.copy()
        topo = MeshTopology.build(spiked_grid.faces, spiked_grid.vertex_count)
        laplacian_smooth(spiked_grid.vertices, topo, 3, 0.5)
        np.testing.assert_array_equal(spiked_grid.vertices, before)

    def test_isolated_vertex_stays(self, grid_factory):
        grid = grid_factory(3)
        vertices = np.vstack([grid.vertices, [[1.0, 1.0, 1.0]]])
        topo = MeshTopology.build(grid.faces, len(vertices))
        out = laplacian_smooth(vertices, topo, 5, 0.5)
        np.testing.assert_array_equal(out[-1], [1.0, 1.0, 1.0])


class TestSmoothingStep:
    def test_zero_iterations_noop(self, spiked_grid):
        out = _smooth(spiked_grid, iterations=0)
        np.testing.assert_array_equal(out.mesh.vertices, spiked_grid.vertices)
        assert out.num_iterations == 0

    @pytest.mark.parametrize("low, high", [(0.1, 0.5), (0.5, 0.9), (0.25, 1.0)])
    def test_larger_factor_moves_closer_to_centroid(self, spiked_grid, low, high):
        z_low = _smooth(spiked_grid, iterations=1, factor=low).mesh.vertices[4, 2]
        z_high = _smooth(spiked_grid, iterations=1, factor=high).mesh.vertices[4, 2]
        assert abs(z_high) < abs(z_low) < 0.001

    def test_reports_displacement(self, spiked_grid):
        out = _smooth(spiked_grid, iterations=1, factor=0.5)
        assert out.num_iterations == 1
        moved = np.linalg.norm(
            out.mesh.vertices.astype(np.float64) - spiked_grid.vertices.astype(np.float64), axis=1
        )
        assert out.max_displacement == pytest.approx(moved.max())
        assert out.max_displacement >= 0.0005 - 1e-7

    def test_topology_untouched(self, spiked_grid):
        out = _smooth(spiked_grid)
        np.testing.assert_array_equal(out.mesh.faces, spiked_grid.faces)
        assert out.mesh.vertices.dtype == np.float32

    def test_factor_bounds(self):
        with pytest.raises(ValueError):
            SmoothingConfig(factor=1.5)
        with pytest.raises(ValueError):
            SmoothingConfig(iterations=-1)
