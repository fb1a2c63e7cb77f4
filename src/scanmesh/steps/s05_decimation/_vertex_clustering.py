"""Voxel-grid vertex clustering with centroid merge."""

from __future__ import annotations

import logging

import numpy as np

from scanmesh.utils.geometry import normalize_rows
from scanmesh.utils.topology import valid_face_mask

logger = logging.getLogger(__name__)


def grid_cell_size(vertices: np.ndarray, target_count: int) -> tuple[float, int]:
    """Cell edge length so the longest bbox axis holds ~round(target^(1/3)) cells."""
    cell_count = max(1, int(round(target_count ** (1.0 / 3.0))))
    extent = vertices.max(axis=0) - vertices.min(axis=0)
    return float(extent.max()) / cell_count, cell_count


def cluster_vertices(vertices: np.ndarray, cell_size: float) -> tuple[np.ndarray, int]:
    """Assign every vertex to a grid cell.

    Returns (labels, num_clusters). Clusters are numbered in order of the
    first vertex index they contain.
    """
    v = np.asarray(vertices, dtype=np.float64)
    if cell_size > 0:
        keys = np.floor((v - v.min(axis=0)) / cell_size).astype(np.int64)
    else:
        keys = np.zeros((len(v), 3), dtype=np.int64)

    _, first_index, inverse = np.unique(keys, axis=0, return_index=True, return_inverse=True)
    inverse = inverse.reshape(-1)
    # np.unique sorts cells lexicographically; renumber by first occurrence.
    order = np.argsort(first_index, kind="stable")
    rank = np.empty_like(order)
    rank[order] = np.arange(len(order))
    return rank[inverse], len(order)


def merge_clusters(
    vertices: np.ndarray, normals: np.ndarray, labels: np.ndarray, num_clusters: int
) -> tuple[np.ndarray, np.ndarray]:
    """Centroid position and normalized normal sum per cluster."""
    counts = np.bincount(labels, minlength=num_clusters).astype(np.float64)
    positions = np.zeros((num_clusters, 3), dtype=np.float64)
    np.add.at(positions, labels, np.asarray(vertices, dtype=np.float64))
    positions /= counts[:, None]

    normal_sums = np.zeros((num_clusters, 3), dtype=np.float64)
    k = min(len(normals), len(vertices))
    if k:
        np.add.at(normal_sums, labels[:k], np.asarray(normals[:k], dtype=np.float64))
    return positions.astype(np.float32), normalize_rows(normal_sums).astype(np.float32)


def collapse_faces(faces: np.ndarray, labels: np.ndarray) -> np.ndarray:
    """Map faces through cluster labels, dropping any that lose a distinct corner."""
    faces = faces[valid_face_mask(faces, len(labels))]
    if len(faces) == 0:
        return np.zeros((0, 3), dtype=np.int64)
    mapped = labels[faces]
    distinct = (
        (mapped[:, 0] != mapped[:, 1])
        & (mapped[:, 1] != mapped[:, 2])
        & (mapped[:, 0] != mapped[:, 2])
    )
    return mapped[distinct].astype(np.int64)
