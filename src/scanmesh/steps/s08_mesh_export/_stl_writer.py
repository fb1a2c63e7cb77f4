"""STL writer — binary (50-byte triangle records) and ASCII variants.

Facet normals are recomputed from each triangle's corners; vertex normals
are not used. Faces with out-of-range indices are skipped, and the binary
triangle count matches the records actually written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import numpy as np

from scanmesh.utils.geometry import unit_face_normals
from scanmesh.utils.io import scoped_output
from scanmesh.utils.topology import valid_face_mask

logger = logging.getLogger(__name__)

STL_HEADER = b"Binary STL exported from scanmesh".ljust(80, b" ")

STL_TRIANGLE = np.dtype([
    ("normal", "<f4", (3,)),
    ("corners", "<f4", (3, 3)),
    ("attribute_bytes", "<u2"),
])


def format_floats(values: Iterable) -> str:
    """Space-separated shortest round-trip text of float32 values."""
    return " ".join(str(v) for v in np.asarray(values, dtype=np.float32))


def _writable_triangles(vertices: np.ndarray, faces: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """(T, 3) in-range faces and their (T, 3) float32 unit normals."""
    mask = valid_face_mask(faces, len(vertices))
    skipped = int(len(faces) - mask.sum())
    if skipped:
        logger.warning(f"Skipping {skipped} faces with out-of-range vertex indices")
    tris = faces[mask]
    return tris, unit_face_normals(vertices, tris).astype(np.float32)


def write_stl_binary(vertices: np.ndarray, faces: np.ndarray, output_path: Path) -> int:
    """Write a binary STL file.

    Args:
        vertices: (N, 3) positions, already centered and scaled.
        faces: (F, 3) vertex indices.
        output_path: Output .stl file path.

    Returns:
        Number of triangles written.
    """
    tris, normals = _writable_triangles(vertices, faces)
    records = np.zeros(len(tris), dtype=STL_TRIANGLE)
    records["normal"] = normals
    records["corners"] = np.asarray(vertices, dtype=np.float32)[tris]

    with scoped_output(output_path, "wb") as f:
        f.write(STL_HEADER)
        f.write(np.uint32(len(tris)).astype("<u4").tobytes())
        f.write(records.tobytes())

    logger.info(f"STL (binary) exported: {output_path} ({len(tris)} triangles)")
    return len(tris)


def write_stl_ascii(vertices: np.ndarray, faces: np.ndarray, output_path: Path) -> int:
    """Write an ASCII STL file (``solid mesh`` ... ``endsolid mesh``)."""
    tris, normals = _writable_triangles(vertices, faces)
    corners = np.asarray(vertices, dtype=np.float32)[tris]

    with scoped_output(output_path, "w") as f:
        f.write("solid mesh\n")
        for normal, (v0, v1, v2) in zip(normals, corners):
            f.write(f"  facet normal {format_floats(normal)}\n")
            f.write("    outer loop\n")
            f.write(f"      vertex {format_floats(v0)}\n")
            f.write(f"      vertex {format_floats(v1)}\n")
            f.write(f"      vertex {format_floats(v2)}\n")
            f.write("    endloop\n")
            f.write("  endfacet\n")
        f.write("endsolid mesh\n")

    logger.info(f"STL (ASCII) exported: {output_path} ({len(tris)} triangles)")
    return len(tris)
