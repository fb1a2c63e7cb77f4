"""Tests for scanmesh.utils.topology — edge incidence and boundary loops."""

import numpy as np

from scanmesh.utils.topology import MeshTopology, edge_key, find_boundary_loops, valid_face_mask


class TestEdgeKey:
    def test_canonical_order(self):
        assert edge_key(5, 2) == (2, 5)
        assert edge_key(2, 5) == (2, 5)

    def test_numpy_ints_become_python_ints(self):
        key = edge_key(np.int64(3), np.int64(1))
        assert key == (1, 3)
        assert all(type(i) is int for i in key)


class TestValidFaceMask:
    def test_out_of_range(self):
        faces = np.array([[0, 1, 2], [0, 1, 9], [-1, 0, 1]])
        np.testing.assert_array_equal(valid_face_mask(faces, 3), [True, False, False])

    def test_empty(self):
        assert valid_face_mask(np.zeros((0, 3), dtype=np.int64), 3).shape == (0,)


class TestMeshTopology:
    def test_closed_cube(self, unit_cube):
        topo = MeshTopology.build(unit_cube.faces, unit_cube.vertex_count)
        assert len(topo.edge_incidence) == 18
        assert all(c == 2 for c in topo.edge_incidence.values())
        assert topo.boundary_edges() == []
        assert topo.non_manifold_edges() == []

    def test_open_cube_boundary(self, open_cube):
        topo = MeshTopology.build(open_cube.faces, open_cube.vertex_count)
        assert topo.boundary_edges() == [(1, 5), (1, 6), (5, 6)]

    def test_non_manifold_fin(self):
        # Three triangles sharing edge (0, 1).
        faces = np.array([[0, 1, 2], [1, 0, 3], [0, 1, 4]])
        topo = MeshTopology.build(faces, 5)
        assert topo.non_manifold_edges() == [(0, 1)]
        assert topo.edge_incidence[(0, 1)] == 3

    def test_adjacency(self):
        faces = np.array([[0, 1, 2], [2, 1, 3]])
        topo = MeshTopology.build(faces, 5)
        assert topo.adjacency[1] == {0, 2, 3}
        assert topo.adjacency[4] == set()
        np.testing.assert_array_equal(topo.neighbor_counts(), [2, 3, 3, 2, 0])

    def test_out_of_range_faces_skipped(self):
        faces = np.array([[0, 1, 2], [0, 1, 7]])
        topo = MeshTopology.build(faces, 3)
        assert topo.skipped_faces == 1
        assert len(topo.edge_incidence) == 3

    def test_collapsed_face_self_edges_ignored(self):
        topo = MeshTopology.build(np.array([[0, 0, 1]]), 2)
        assert topo.edge_incidence == {(0, 1): 2}

    def test_directed_pairs_cover_every_neighbor(self, unit_cube):
        topo = MeshTopology.build(unit_cube.faces, unit_cube.vertex_count)
        src, dst = topo.directed_pairs()
        assert len(src) == 2 * len(topo.edge_incidence)
        np.testing.assert_array_equal(
            np.bincount(src, minlength=8), topo.neighbor_counts()
        )

    def test_empty_faces(self):
        topo = MeshTopology.build(np.zeros((0, 3), dtype=np.int64), 4)
        assert topo.edge_incidence == {}
        src, dst = topo.directed_pairs()
        assert len(src) == 0 and len(dst) == 0


class TestFindBoundaryLoops:
    def test_no_edges(self):
        assert find_boundary_loops([]) == []

    def test_triangle_hole(self):
        loops = find_boundary_loops([(1, 5), (1, 6), (5, 6)])
        assert loops == [[1, 5, 6]]

    def test_square_loop_in_order(self):
        edges = [(0, 1), (1, 2), (2, 3), (0, 3)]
        assert find_boundary_loops(edges) == [[0, 1, 2, 3]]

    def test_two_separate_loops(self):
        edges = [(0, 1), (1, 2), (0, 2), (10, 11), (11, 12), (10, 12)]
        assert find_boundary_loops(edges) == [[0, 1, 2], [10, 11, 12]]

    def test_open_chain_of_two_discarded(self):
        assert find_boundary_loops([(3, 4)]) == []

    def test_grid_outer_boundary(self, grid_factory):
        mesh = grid_factory(3)
        topo = MeshTopology.build(mesh.faces, mesh.vertex_count)
        loops = find_boundary_loops(topo.boundary_edges())
        assert loops == [[0, 1, 2, 5, 8, 7, 6, 3]]
