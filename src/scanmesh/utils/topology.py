"""Mesh topology index: vertex adjacency and edge → incident-face counts.

Built once per stage from the face list (O(faces)) and never persisted.
Edges are keyed by ``(min(a, b), max(a, b))`` tuples. An edge with one
incident face is a boundary edge; more than two marks non-manifold geometry.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

import numpy as np

logger = logging.getLogger(__name__)

Edge = tuple[int, int]


def edge_key(a: int, b: int) -> Edge:
    """Canonical undirected edge key (smaller index first)."""
    a, b = int(a), int(b)
    return (a, b) if a < b else (b, a)


def valid_face_mask(faces: np.ndarray, vertex_count: int) -> np.ndarray:
    """(F,) bool mask of faces whose three indices are all in range."""
    if len(faces) == 0:
        return np.zeros(0, dtype=bool)
    return np.all((faces >= 0) & (faces < vertex_count), axis=1)


@dataclass
class MeshTopology:
    """Adjacency sets per vertex plus the edge-incidence map."""

    adjacency: list[set[int]]
    edge_incidence: dict[Edge, int]
    skipped_faces: int = 0
    _pairs: tuple[np.ndarray, np.ndarray] | None = field(default=None, repr=False)

    @classmethod
    def build(cls, faces: np.ndarray, vertex_count: int) -> "MeshTopology":
        """Index ``faces`` against ``vertex_count`` vertices.

        Faces referencing out-of-range indices are skipped and counted in
        ``skipped_faces``. Self-edges of collapsed faces are ignored.
        """
        faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
        mask = valid_face_mask(faces, vertex_count)
        skipped = int(len(faces) - mask.sum())
        tris = faces[mask]

        adjacency: list[set[int]] = [set() for _ in range(vertex_count)]
        if len(tris) == 0:
            return cls(adjacency=adjacency, edge_incidence={}, skipped_faces=skipped)

        # (3F, 2) edge list in face order: (v0,v1), (v1,v2), (v2,v0)
        edges = np.stack(
            [tris, np.roll(tris, -1, axis=1)], axis=2
        ).reshape(-1, 2)
        edges = edges[edges[:, 0] != edges[:, 1]]
        edges = np.sort(edges, axis=1)
        if len(edges) == 0:
            return cls(adjacency=adjacency, edge_incidence={}, skipped_faces=skipped)

        unique_edges, counts = np.unique(edges, axis=0, return_counts=True)
        edge_incidence = {
            (int(a), int(b)): int(c) for (a, b), c in zip(unique_edges, counts)
        }
        for a, b in unique_edges.tolist():
            adjacency[a].add(b)
            adjacency[b].add(a)

        if skipped:
            logger.debug(f"Topology skipped {skipped} faces with out-of-range indices")

        topo = cls(adjacency=adjacency, edge_incidence=edge_incidence, skipped_faces=skipped)
        topo._pairs = (unique_edges[:, 0].copy(), unique_edges[:, 1].copy())
        return topo

    @property
    def vertex_count(self) -> int:
        return len(self.adjacency)

    def boundary_edges(self) -> list[Edge]:
        return sorted(e for e, c in self.edge_incidence.items() if c == 1)

    def non_manifold_edges(self) -> list[Edge]:
        return sorted(e for e, c in self.edge_incidence.items() if c > 2)

    def neighbor_counts(self) -> np.ndarray:
        """(N,) number of distinct neighbors per vertex."""
        return np.fromiter((len(a) for a in self.adjacency), dtype=np.int64, count=self.vertex_count)

    def directed_pairs(self) -> tuple[np.ndarray, np.ndarray]:
        """(src, dst) index arrays listing every adjacency in both directions.

        Each undirected edge appears exactly twice, so scatter-adds over these
        arrays visit every neighbor of every vertex exactly once.
        """
        if self._pairs is None:
            empty = np.zeros(0, dtype=np.int64)
            return empty, empty.copy()
        a, b = self._pairs
        return np.concatenate([a, b]), np.concatenate([b, a])


def _boundary_adjacency(boundary_edges: list[Edge]) -> dict[int, set[int]]:
    """Adjacency map restricted to boundary edges."""
    adj: dict[int, set[int]] = defaultdict(set)
    for a, b in boundary_edges:
        adj[a].add(b)
        adj[b].add(a)
    return dict(adj)


def find_boundary_loops(boundary_edges: list[Edge]) -> list[list[int]]:
    """Trace ordered boundary loops (holes) from single-incidence edges.

    Starting from the smallest unvisited boundary vertex, walk to the smallest
    unvisited boundary neighbor other than the one just left, until the walk
    gets back next to its start or runs out of unvisited neighbors. The walk
    length is capped at twice the boundary edge count. Loops shorter than 3
    vertices are discarded.
    """
    if not boundary_edges:
        return []

    adj = _boundary_adjacency(boundary_edges)
    max_steps = 2 * len(boundary_edges)
    visited: set[int] = set()
    loops: list[list[int]] = []

    for start in sorted(adj):
        if start in visited:
            continue
        loop = [start]
        visited.add(start)
        previous = -1
        current = start

        for _ in range(max_steps):
            nxt = next(
                (n for n in sorted(adj[current]) if n != previous and n not in visited),
                None,
            )
            if nxt is None:
                break
            loop.append(nxt)
            visited.add(nxt)
            previous, current = current, nxt

        if len(loop) >= 3:
            loops.append(loop)
        else:
            logger.debug(f"Discarded open boundary chain of {len(loop)} vertices at {start}")

    return loops
