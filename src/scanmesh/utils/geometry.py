"""3D geometry utilities shared by the processing stages and writers."""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


def face_cross_products(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Unnormalized face normals ``(v1 - v0) x (v2 - v0)``, shape (F, 3), float64.

    ``faces`` must already be restricted to in-range indices.
    """
    if len(faces) == 0:
        return np.zeros((0, 3), dtype=np.float64)
    v = np.asarray(vertices, dtype=np.float64)
    v0 = v[faces[:, 0]]
    v1 = v[faces[:, 1]]
    v2 = v[faces[:, 2]]
    return np.cross(v1 - v0, v2 - v0)


def normalize_rows(vectors: np.ndarray) -> np.ndarray:
    """Normalize each row to unit length; zero-length rows stay zero."""
    vectors = np.asarray(vectors, dtype=np.float64)
    lengths = np.linalg.norm(vectors, axis=1, keepdims=True)
    out = np.zeros_like(vectors)
    nonzero = lengths[:, 0] > 0
    out[nonzero] = vectors[nonzero] / lengths[nonzero]
    return out


def unit_face_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Unit face normals (zero for degenerate triangles)."""
    return normalize_rows(face_cross_products(vertices, faces))


def repeated_index_mask(faces: np.ndarray) -> np.ndarray:
    """(F,) mask of triangles that reference the same vertex twice."""
    if len(faces) == 0:
        return np.zeros(0, dtype=bool)
    return (
        (faces[:, 0] == faces[:, 1])
        | (faces[:, 1] == faces[:, 2])
        | (faces[:, 0] == faces[:, 2])
    )


def bounding_box(vertices: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Axis-aligned (min, max) corners in float64; zeros when empty."""
    v = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    if len(v) == 0:
        return np.zeros(3), np.zeros(3)
    return v.min(axis=0), v.max(axis=0)
