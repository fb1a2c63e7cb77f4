"""Wavefront OBJ + MTL writers.

Positions, texture coordinates and normals are index-aligned, so every
face corner repeats one index for ``v/vt/vn``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np

from scanmesh.utils.io import scoped_output
from scanmesh.utils.topology import valid_face_mask
from ._stl_writer import format_floats

logger = logging.getLogger(__name__)

MATERIAL_NAME = "material0"


def _face_line(face: np.ndarray, with_texcoords: bool, with_normals: bool) -> str:
    corners = []
    for i in (face + 1).tolist():
        if with_texcoords and with_normals:
            corners.append(f"{i}/{i}/{i}")
        elif with_normals:
            corners.append(f"{i}//{i}")
        elif with_texcoords:
            corners.append(f"{i}/{i}")
        else:
            corners.append(f"{i}")
    return "f " + " ".join(corners) + "\n"


def write_obj(
    vertices: np.ndarray,
    normals: Optional[np.ndarray],
    faces: np.ndarray,
    output_path: Path,
    texture_coordinates: Optional[np.ndarray] = None,
    material_lib: Optional[str] = None,
) -> Path:
    """Write an OBJ file.

    Args:
        vertices: (N, 3) positions.
        normals: (N, 3) vertex normals, or None to omit ``vn`` lines.
        faces: (F, 3) zero-based vertex indices.
        output_path: Output .obj file path.
        texture_coordinates: (N, 2) UVs, or None to omit ``vt`` lines.
        material_lib: File name of the companion .mtl, or None.

    Returns:
        Path to the written OBJ file.
    """
    with_normals = normals is not None
    with_texcoords = texture_coordinates is not None
    tris = faces[valid_face_mask(faces, len(vertices))]

    with scoped_output(output_path, "w") as f:
        f.write("# OBJ file exported from scanmesh\n")
        f.write(f"# Vertices: {len(vertices)}\n")
        f.write(f"# Faces: {len(tris)}\n\n")

        if material_lib:
            f.write(f"mtllib {material_lib}\n\n")

        for v in vertices:
            f.write(f"v {format_floats(v)}\n")
        f.write("\n")

        if with_texcoords:
            for t in texture_coordinates:
                f.write(f"vt {format_floats(t)}\n")
            f.write("\n")

        if with_normals:
            for n in normals:
                f.write(f"vn {format_floats(n)}\n")
            f.write("\n")

        if material_lib:
            f.write(f"usemtl {MATERIAL_NAME}\n")

        for face in tris:
            f.write(_face_line(face, with_texcoords, with_normals))

    logger.info(f"OBJ exported: {output_path} ({len(vertices)} vertices, {len(tris)} faces)")
    return output_path


def write_mtl(texture_name: str, output_path: Path) -> Path:
    """Write a single-material MTL whose diffuse map is ``texture_name``."""
    with scoped_output(output_path, "w") as f:
        f.write("# MTL file exported from scanmesh\n\n")
        f.write(f"newmtl {MATERIAL_NAME}\n")
        f.write("Ka 0.2 0.2 0.2\n")
        f.write("Kd 0.8 0.8 0.8\n")
        f.write("Ks 0.0 0.0 0.0\n")
        f.write("Ns 0.0\n")
        f.write("d 1.0\n")
        f.write("illum 1\n")
        f.write(f"map_Kd {texture_name}\n")

    logger.info(f"MTL exported: {output_path}")
    return output_path
