"""Hole triangulation: centroid fan for small loops, ear clipping for large ones."""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)

Triangle = tuple[int, int, int]


def fan_triangles(loop: list[int], center_index: int) -> list[Triangle]:
    """One triangle per boundary edge of ``loop``, fanned to ``center_index``."""
    n = len(loop)
    return [(loop[i], loop[(i + 1) % n], center_index) for i in range(n)]


def loop_normal(points: np.ndarray) -> np.ndarray:
    """Sum of cross products of consecutive edge pairs around a closed loop."""
    edges = np.roll(points, -1, axis=0) - points
    return np.cross(edges, np.roll(edges, -1, axis=0)).sum(axis=0)


def _points_in_triangle_xy(
    pts: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray
) -> np.ndarray:
    """Inclusive 2D point-in-triangle test on the XY projection.

    Assumes the hole is roughly planar and not arbitrarily oriented; holes
    seen edge-on from +Z collapse to a line and block every ear.
    """

    def side(p, q, r):
        return (p[:, 0] - r[0]) * (q[1] - r[1]) - (q[0] - r[0]) * (p[:, 1] - r[1])

    d1 = side(pts, a, b)
    d2 = side(pts, b, c)
    d3 = side(pts, c, a)
    has_neg = (d1 < 0) | (d2 < 0) | (d3 < 0)
    has_pos = (d1 > 0) | (d2 > 0) | (d3 > 0)
    return ~(has_neg & has_pos)


def _find_ear(ring: list[int], positions: np.ndarray, normal: np.ndarray) -> int | None:
    n = len(ring)
    ring_pts = positions[ring]
    for i in range(n):
        ia, ib, ic = (i - 1) % n, i, (i + 1) % n
        a, b, c = ring_pts[ia], ring_pts[ib], ring_pts[ic]
        if np.dot(np.cross(b - a, c - b), normal) <= 0:
            continue
        others = np.ones(n, dtype=bool)
        others[[ia, ib, ic]] = False
        if others.any() and _points_in_triangle_xy(ring_pts[others], a, b, c).any():
            continue
        return i
    return None


def ear_clip(loop: list[int], positions: np.ndarray) -> list[Triangle]:
    """Triangulate a boundary loop by repeatedly clipping convex ears.

    Convexity is judged against the loop's averaged normal. When a full pass
    finds no ear the first three remaining vertices are clipped so the ring
    always shrinks.
    """
    positions = np.asarray(positions, dtype=np.float64)
    ring = list(loop)
    normal = loop_normal(positions[ring])
    triangles: list[Triangle] = []
    forced = 0

    while len(ring) > 3:
        ear = _find_ear(ring, positions, normal)
        if ear is None:
            ear = 1
            forced += 1
        n = len(ring)
        triangles.append((ring[(ear - 1) % n], ring[ear], ring[(ear + 1) % n]))
        ring.pop(ear)

    triangles.append((ring[0], ring[1], ring[2]))
    if forced:
        logger.debug(f"Ear clipping forced {forced} clips on a {len(loop)}-vertex loop")
    return triangles
