"""Neighbor-distance outlier scoring and index compaction."""

from __future__ import annotations

import logging

import numpy as np

from scanmesh.utils.topology import MeshTopology

logger = logging.getLogger(__name__)


def mean_neighbor_distance(vertices: np.ndarray, topology: MeshTopology) -> np.ndarray:
    """Mean Euclidean distance from each vertex to its neighbors.

    Vertices without neighbors get ``inf``. Each vertex's value depends only on
    read-only positions, so the result is independent of evaluation order.
    """
    n = len(vertices)
    src, dst = topology.directed_pairs()
    v = np.asarray(vertices, dtype=np.float64)
    dist = np.linalg.norm(v[src] - v[dst], axis=1)
    totals = np.bincount(src, weights=dist, minlength=n)
    counts = np.bincount(src, minlength=n)
    means = np.full(n, np.inf)
    has_neighbors = counts > 0
    means[has_neighbors] = totals[has_neighbors] / counts[has_neighbors]
    return means


def compute_valid_flags(
    vertices: np.ndarray, topology: MeshTopology, cutoff: float
) -> np.ndarray:
    """(N,) bool: vertex has neighbors and mean neighbor distance < cutoff."""
    return mean_neighbor_distance(vertices, topology) < cutoff


def build_compaction_map(valid: np.ndarray) -> np.ndarray:
    """old index → new index over valid vertices in original order; -1 if dropped."""
    mapping = np.full(len(valid), -1, dtype=np.int64)
    mapping[valid] = np.arange(int(valid.sum()), dtype=np.int64)
    return mapping


def remap_faces(faces: np.ndarray, mapping: np.ndarray) -> np.ndarray:
    """Map faces through ``mapping``; drop faces with any invalid or out-of-range index."""
    if len(faces) == 0:
        return np.zeros((0, 3), dtype=np.int64)
    in_range = np.all((faces >= 0) & (faces < len(mapping)), axis=1)
    faces = faces[in_range]
    mapped = mapping[faces]
    keep = np.all(mapped >= 0, axis=1)
    return mapped[keep]
