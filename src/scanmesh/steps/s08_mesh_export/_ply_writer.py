"""PLY writer — ASCII or binary little-endian, positions + optional normals."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from scanmesh.utils.io import scoped_output
from scanmesh.utils.topology import valid_face_mask
from ._stl_writer import format_floats

logger = logging.getLogger(__name__)

PLY_FACE = np.dtype([("count", "u1"), ("indices", "<i4", (3,))])


def _ply_header(encoding: str, vertex_count: int, face_count: int, with_normals: bool) -> str:
    lines = [
        "ply",
        f"format {encoding} 1.0",
        "comment Exported from scanmesh",
        f"element vertex {vertex_count}",
        "property float x",
        "property float y",
        "property float z",
    ]
    if with_normals:
        lines += ["property float nx", "property float ny", "property float nz"]
    lines += [
        f"element face {face_count}",
        "property list uchar int vertex_indices",
        "end_header",
    ]
    return "\n".join(lines) + "\n"


def write_ply(
    vertices: np.ndarray,
    normals: Optional[np.ndarray],
    faces: np.ndarray,
    output_path: Path,
    binary: bool = True,
) -> Path:
    """Write a triangle mesh as PLY.

    Args:
        vertices: (N, 3) positions.
        normals: (N, 3) vertex normals, or None to omit the nx/ny/nz properties.
        faces: (F, 3) vertex indices; out-of-range faces are skipped.
        output_path: Output .ply file path.
        binary: binary_little_endian when True, ascii otherwise.

    Returns:
        Path to the written PLY file.
    """
    vertices = np.asarray(vertices, dtype=np.float32)
    with_normals = normals is not None
    tris = faces[valid_face_mask(faces, len(vertices))]
    encoding = "binary_little_endian" if binary else "ascii"
    header = _ply_header(encoding, len(vertices), len(tris), with_normals)

    if with_normals:
        columns = np.hstack([vertices, np.asarray(normals, dtype=np.float32)])
    else:
        columns = vertices

    if binary:
        face_records = np.zeros(len(tris), dtype=PLY_FACE)
        face_records["count"] = 3
        face_records["indices"] = tris
        with scoped_output(output_path, "wb") as f:
            f.write(header.encode("ascii"))
            f.write(columns.astype("<f4").tobytes())
            f.write(face_records.tobytes())
    else:
        with scoped_output(output_path, "w") as f:
            f.write(header)
            for row in columns:
                f.write(format_floats(row) + "\n")
            for a, b, c in tris.tolist():
                f.write(f"3 {a} {b} {c}\n")

    logger.info(
        f"PLY ({encoding}) exported: {output_path} "
        f"({len(vertices)} vertices, {len(tris)} faces, normals={'yes' if with_normals else 'no'})"
    )
    return output_path
