"""Mesh value type threaded through every pipeline stage.

A Mesh is treated as immutable: stages build a new one with ``replace()``
instead of writing into the arrays of the mesh they were given.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

import numpy as np

from .errors import InputError

logger = logging.getLogger(__name__)

_UNSET = object()


def _as_points(values, dims: int) -> np.ndarray:
    if values is None:
        return np.zeros((0, dims), dtype=np.float32)
    arr = np.asarray(values, dtype=np.float32)
    if arr.size == 0:
        return np.zeros((0, dims), dtype=np.float32)
    return arr.reshape(-1, dims)


def _as_faces(values) -> np.ndarray:
    if values is None:
        return np.zeros((0, 3), dtype=np.int64)
    arr = np.asarray(values, dtype=np.int64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.int64)
    if arr.ndim == 2 and arr.shape[1] != 3:
        raise InputError(
            f"Faces must be triangles, got shape {arr.shape}; use Mesh.from_polygons for polygons"
        )
    return arr.reshape(-1, 3)


def triangulate_polygons(polygons: Iterable[Sequence[int]]) -> np.ndarray:
    """Fan-triangulate heterogeneous-length index lists into (F, 3) triangles.

    Polygons with fewer than 3 indices are dropped; an n-gon becomes
    ``(p0, pi, pi+1)`` for i in 1..n-2.
    """
    triangles: list[tuple[int, int, int]] = []
    dropped = 0
    for poly in polygons:
        poly = [int(i) for i in poly]
        if len(poly) < 3:
            dropped += 1
            continue
        for i in range(1, len(poly) - 1):
            triangles.append((poly[0], poly[i], poly[i + 1]))
    if dropped:
        logger.debug(f"Dropped {dropped} faces with fewer than 3 indices")
    if not triangles:
        return np.zeros((0, 3), dtype=np.int64)
    return np.asarray(triangles, dtype=np.int64)


class Mesh:
    """Triangle mesh with index-aligned per-vertex attributes.

    Attributes:
        vertices: (N, 3) float32 positions in meters.
        normals: (K, 3) float32 per-vertex normals. K == N once normals have
            been estimated; may be shorter (or empty) on raw input.
        faces: (F, 3) int64 vertex indices. Out-of-range indices are kept as
            given and skipped by every consumer.
        texture_coordinates: (N, 2) float32 or None.
        texture_image: uint8 raster, (H, W, 3) RGB or (H, W) grayscale, or None.
    """

    __slots__ = ("vertices", "normals", "faces", "texture_coordinates", "texture_image")

    def __init__(
        self,
        vertices,
        normals=None,
        faces=None,
        texture_coordinates=None,
        texture_image: Optional[np.ndarray] = None,
    ):
        self.vertices = _as_points(vertices, 3)
        self.normals = _as_points(normals, 3)
        self.faces = _as_faces(faces)
        self.texture_coordinates = (
            None if texture_coordinates is None else _as_points(texture_coordinates, 2)
        )
        self.texture_image = texture_image

    @classmethod
    def from_polygons(
        cls,
        vertices,
        normals=None,
        polygons: Iterable[Sequence[int]] = (),
        texture_coordinates=None,
        texture_image: Optional[np.ndarray] = None,
    ) -> "Mesh":
        """Build a Mesh from raw capture data whose faces may not be triangles."""
        return cls(
            vertices,
            normals=normals,
            faces=triangulate_polygons(polygons),
            texture_coordinates=texture_coordinates,
            texture_image=texture_image,
        )

    # ── Derived properties ──

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def face_count(self) -> int:
        return len(self.faces)

    @property
    def is_empty(self) -> bool:
        return self.vertex_count == 0

    @property
    def has_aligned_normals(self) -> bool:
        return len(self.normals) == self.vertex_count

    @property
    def has_aligned_texture_coordinates(self) -> bool:
        return (
            self.texture_coordinates is not None
            and len(self.texture_coordinates) == self.vertex_count
        )

    @property
    def has_texture(self) -> bool:
        return self.texture_image is not None and self.texture_coordinates is not None

    def bounding_box(self) -> tuple[np.ndarray, np.ndarray]:
        """Return (min, max) corners; both zero for an empty mesh."""
        if self.is_empty:
            zero = np.zeros(3, dtype=np.float32)
            return zero, zero.copy()
        return self.vertices.min(axis=0), self.vertices.max(axis=0)

    def replace(
        self,
        *,
        vertices=_UNSET,
        normals=_UNSET,
        faces=_UNSET,
        texture_coordinates=_UNSET,
        texture_image=_UNSET,
    ) -> "Mesh":
        """Return a new Mesh with the given fields swapped out."""
        return Mesh(
            self.vertices if vertices is _UNSET else vertices,
            normals=self.normals if normals is _UNSET else normals,
            faces=self.faces if faces is _UNSET else faces,
            texture_coordinates=(
                self.texture_coordinates
                if texture_coordinates is _UNSET
                else texture_coordinates
            ),
            texture_image=self.texture_image if texture_image is _UNSET else texture_image,
        )

    def __repr__(self) -> str:
        return (
            f"Mesh(vertices={self.vertex_count}, normals={len(self.normals)}, "
            f"faces={self.face_count}, "
            f"texcoords={'none' if self.texture_coordinates is None else len(self.texture_coordinates)}, "
            f"texture={'yes' if self.texture_image is not None else 'no'})"
        )
