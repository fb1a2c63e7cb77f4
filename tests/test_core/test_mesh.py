"""Tests for the Mesh value type."""

import numpy as np
import pytest

from scanmesh.core.errors import InputError
from scanmesh.core.mesh import Mesh, triangulate_polygons


class TestTriangulatePolygons:
    def test_triangles_pass_through(self):
        tris = triangulate_polygons([[0, 1, 2], [2, 1, 3]])
        np.testing.assert_array_equal(tris, [[0, 1, 2], [2, 1, 3]])

    def test_quad_is_fanned(self):
        tris = triangulate_polygons([[0, 1, 2, 3]])
        np.testing.assert_array_equal(tris, [[0, 1, 2], [0, 2, 3]])

    def test_short_faces_dropped(self):
        tris = triangulate_polygons([[0, 1], [4], [0, 1, 2]])
        np.testing.assert_array_equal(tris, [[0, 1, 2]])

    def test_empty(self):
        assert triangulate_polygons([]).shape == (0, 3)


class TestMesh:
    def test_dtypes_and_shapes(self, unit_cube):
        assert unit_cube.vertices.dtype == np.float32
        assert unit_cube.faces.dtype == np.int64
        assert unit_cube.vertices.shape == (8, 3)
        assert unit_cube.faces.shape == (12, 3)
        assert unit_cube.normals.shape == (0, 3)
        assert unit_cube.texture_coordinates is None

    def test_counts(self, unit_cube):
        assert unit_cube.vertex_count == 8
        assert unit_cube.face_count == 12
        assert not unit_cube.is_empty

    def test_empty_mesh(self):
        mesh = Mesh(np.zeros((0, 3)))
        assert mesh.is_empty
        lo, hi = mesh.bounding_box()
        np.testing.assert_array_equal(lo, [0, 0, 0])
        np.testing.assert_array_equal(hi, [0, 0, 0])

    def test_alignment_flags(self, unit_cube):
        assert not unit_cube.has_aligned_normals
        assert not unit_cube.has_aligned_texture_coordinates

        aligned = unit_cube.replace(
            normals=np.zeros((8, 3)), texture_coordinates=np.zeros((8, 2))
        )
        assert aligned.has_aligned_normals
        assert aligned.has_aligned_texture_coordinates

        short = unit_cube.replace(texture_coordinates=np.zeros((5, 2)))
        assert not short.has_aligned_texture_coordinates

    def test_has_texture_needs_image_and_coords(self, unit_cube):
        image = np.zeros((4, 4, 3), dtype=np.uint8)
        assert not unit_cube.replace(texture_image=image).has_texture
        textured = unit_cube.replace(texture_image=image, texture_coordinates=np.zeros((8, 2)))
        assert textured.has_texture

    def test_bounding_box(self, unit_cube):
        lo, hi = unit_cube.bounding_box()
        np.testing.assert_array_equal(lo, [0, 0, 0])
        np.testing.assert_array_equal(hi, [1, 1, 1])

    def test_replace_does_not_mutate(self, unit_cube):
        moved = unit_cube.replace(vertices=unit_cube.vertices + 1.0)
        assert moved is not unit_cube
        np.testing.assert_array_equal(unit_cube.vertices.min(axis=0), [0, 0, 0])
        np.testing.assert_array_equal(moved.vertices.min(axis=0), [1, 1, 1])
        np.testing.assert_array_equal(moved.faces, unit_cube.faces)

    def test_replace_can_clear_texcoords(self, unit_cube):
        textured = unit_cube.replace(texture_coordinates=np.zeros((8, 2)))
        cleared = textured.replace(texture_coordinates=None)
        assert cleared.texture_coordinates is None

    def test_from_polygons(self):
        vertices = [[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]]
        mesh = Mesh.from_polygons(vertices, polygons=[[0, 1, 2, 3], [0, 1]])
        assert mesh.face_count == 2

    def test_quad_array_rejected(self):
        quads = [[0, 1, 2, 3], [2, 3, 4, 5], [0, 2, 4, 5]]
        with pytest.raises(InputError, match="from_polygons"):
            Mesh(np.zeros((6, 3)), faces=quads)

    def test_quad_array_through_from_polygons(self):
        quads = [[0, 1, 2, 3], [2, 3, 4, 5], [0, 2, 4, 5]]
        mesh = Mesh.from_polygons(np.zeros((6, 3)), polygons=quads)
        np.testing.assert_array_equal(mesh.faces[:2], [[0, 1, 2], [0, 2, 3]])
        assert mesh.face_count == 6

    def test_replace_rejects_non_triangle_faces(self, unit_cube):
        with pytest.raises(InputError):
            unit_cube.replace(faces=np.zeros((2, 4), dtype=np.int64))

    def test_repr(self, unit_cube):
        text = repr(unit_cube)
        assert "vertices=8" in text
        assert "faces=12" in text


@pytest.mark.parametrize("values", [None, [], np.zeros((0, 3))])
def test_empty_inputs_normalize_to_zero_rows(values):
    mesh = Mesh(values)
    assert mesh.vertices.shape == (0, 3)
