"""Geometric and topological measurements for the print-readiness report."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from scanmesh.utils.geometry import face_cross_products, repeated_index_mask, unit_face_normals
from scanmesh.utils.topology import MeshTopology, find_boundary_loops, valid_face_mask
from .contracts import TriangleQuality

logger = logging.getLogger(__name__)

# Upper bound on pairwise-distance entries evaluated per block.
_PAIRWISE_BLOCK_ELEMENTS = 1_000_000


@dataclass
class TopologyAnalysis:
    degenerate_faces: list[int] = field(default_factory=list)
    boundary_edge_count: int = 0
    non_manifold_edge_count: int = 0
    holes: list[list[int]] = field(default_factory=list)


def find_degenerate_faces(
    vertices: np.ndarray, faces: np.ndarray, min_cross_length: float
) -> np.ndarray:
    """(F,) mask: repeated index, out-of-range index, or near-zero area."""
    n = len(vertices)
    degenerate = ~valid_face_mask(faces, n) | repeated_index_mask(faces)
    candidates = np.flatnonzero(~degenerate)
    if len(candidates):
        cross = face_cross_products(vertices, faces[candidates])
        tiny = np.linalg.norm(cross, axis=1) < min_cross_length
        degenerate[candidates[tiny]] = True
    return degenerate


def analyze_topology(
    vertices: np.ndarray, faces: np.ndarray, min_cross_length: float
) -> TopologyAnalysis:
    """Edge incidence and boundary loops over the non-degenerate faces."""
    degenerate = find_degenerate_faces(vertices, faces, min_cross_length)
    topology = MeshTopology.build(faces[~degenerate], len(vertices))
    boundary = topology.boundary_edges()
    return TopologyAnalysis(
        degenerate_faces=np.flatnonzero(degenerate).tolist(),
        boundary_edge_count=len(boundary),
        non_manifold_edge_count=len(topology.non_manifold_edges()),
        holes=find_boundary_loops(boundary),
    )


def count_duplicate_vertices(vertices: np.ndarray, distance: float) -> int:
    """Number of vertex pairs (i < j) closer than ``distance``.

    Exhaustive pairwise comparison, O(n^2) time. Fine for moderate vertex
    counts; large scans will be slow here.
    """
    v = np.asarray(vertices, dtype=np.float64)
    n = len(v)
    if n < 2:
        return 0
    threshold_sq = distance * distance
    block = max(1, _PAIRWISE_BLOCK_ELEMENTS // n)
    pairs = 0
    for start in range(0, n - 1, block):
        stop = min(start + block, n - 1)
        rows = v[start:stop]
        diff = rows[:, None, :] - v[None, :, :]
        dist_sq = np.einsum("ijk,ijk->ij", diff, diff)
        # Only count j > i.
        upper = np.arange(n)[None, :] > np.arange(start, stop)[:, None]
        pairs += int(np.count_nonzero((dist_sq < threshold_sq) & upper))
    return pairs


def surface_area(vertices: np.ndarray, faces: np.ndarray) -> float:
    tris = faces[valid_face_mask(faces, len(vertices))]
    return float(np.linalg.norm(face_cross_products(vertices, tris), axis=1).sum() / 2.0)


def enclosed_volume(vertices: np.ndarray, faces: np.ndarray) -> float:
    """Absolute sum of signed origin tetrahedra; meaningful only when watertight."""
    tris = faces[valid_face_mask(faces, len(vertices))]
    if len(tris) == 0:
        return 0.0
    v = np.asarray(vertices, dtype=np.float64)
    v0, v1, v2 = v[tris[:, 0]], v[tris[:, 1]], v[tris[:, 2]]
    signed = np.einsum("ij,ij->i", v0, np.cross(v1, v2)) / 6.0
    return float(abs(signed.sum()))


def count_inverted_faces(vertices: np.ndarray, faces: np.ndarray) -> int:
    """Faces whose normal points toward the mesh centroid instead of away from it."""
    n = len(vertices)
    tris = faces[valid_face_mask(faces, n)]
    if len(tris) == 0:
        return 0
    v = np.asarray(vertices, dtype=np.float64)
    centroid = v.mean(axis=0)
    normals = unit_face_normals(v, tris)
    face_centroids = v[tris].mean(axis=1)
    outward = face_centroids - centroid
    lengths = np.linalg.norm(outward, axis=1)
    safe = np.where(lengths > 0, lengths, 1.0)
    outward = outward / safe[:, None]
    return int(np.count_nonzero(np.einsum("ij,ij->i", normals, outward) < 0))


def triangle_quality(
    vertices: np.ndarray, faces: np.ndarray, poor: float, very_poor: float
) -> TriangleQuality:
    """Aspect ratio statistics using Heron's area."""
    tris = faces[valid_face_mask(faces, len(vertices))]
    if len(tris) == 0:
        return TriangleQuality()
    v = np.asarray(vertices, dtype=np.float64)
    p0, p1, p2 = v[tris[:, 0]], v[tris[:, 1]], v[tris[:, 2]]
    e0 = np.linalg.norm(p1 - p0, axis=1)
    e1 = np.linalg.norm(p2 - p1, axis=1)
    e2 = np.linalg.norm(p0 - p2, axis=1)

    s = (e0 + e1 + e2) / 2.0
    area = np.sqrt(np.maximum(0.0, s * (s - e0) * (s - e1) * (s - e2)))
    ok = (e0 > 0) & (e1 > 0) & (e2 > 0) & (area > 0)
    if not ok.any():
        return TriangleQuality()

    longest = np.maximum(e0, np.maximum(e1, e2))[ok]
    min_altitude = 2.0 * area[ok] / longest
    ratios = longest / min_altitude

    return TriangleQuality(
        min_aspect_ratio=float(ratios.min()),
        max_aspect_ratio=float(ratios.max()),
        avg_aspect_ratio=float(ratios.mean()),
        poor_quality_count=int(np.count_nonzero(ratios > poor)),
        very_poor_quality_count=int(np.count_nonzero(ratios > very_poor)),
    )
