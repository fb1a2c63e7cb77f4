"""Step 02: Hole repair — close boundary loops with new triangles.

Boundary loops are traced from single-incidence edges. Per loop:
- 3 vertices: closed with the loop's own triangle
- up to fan_max_size: fanned to a new centroid vertex
- up to max_hole_size: ear-clipped
- larger: left open and reported

New triangles are wound against the existing face along the loop so the
patch keeps the orientation of the surrounding surface.
"""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from scanmesh.core.mesh import Mesh
from scanmesh.core.step_base import BaseStep
from scanmesh.utils.geometry import normalize_rows
from scanmesh.utils.topology import MeshTopology, find_boundary_loops, valid_face_mask
from .config import HoleRepairConfig
from .contracts import HoleRepairInput, HoleRepairOutput
from ._triangulation import ear_clip, fan_triangles

logger = logging.getLogger(__name__)


def _directed_edges(mesh: Mesh) -> set[tuple[int, int]]:
    faces = mesh.faces[valid_face_mask(mesh.faces, mesh.vertex_count)]
    directed: set[tuple[int, int]] = set()
    for a, b, c in faces.tolist():
        directed.update(((a, b), (b, c), (c, a)))
    return directed


def _orient_loop(loop: list[int], directed: set[tuple[int, int]]) -> list[int]:
    """Reverse ``loop`` if it runs the same way as the face that owns its first edge."""
    if (loop[0], loop[1]) in directed:
        return loop[::-1]
    return loop


class HoleRepairStep(BaseStep[HoleRepairInput, HoleRepairOutput, HoleRepairConfig]):
    name: ClassVar[str] = "hole_repair"
    label: ClassVar[str] = "Filling holes..."
    progress: ClassVar[float] = 0.30
    input_type: ClassVar = HoleRepairInput
    output_type: ClassVar = HoleRepairOutput
    config_type: ClassVar = HoleRepairConfig

    def validate_inputs(self, inputs: HoleRepairInput) -> bool:
        if inputs.mesh.is_empty:
            logger.error("Mesh has no vertices")
            return False
        return True

    def run(self, inputs: HoleRepairInput) -> HoleRepairOutput:
        mesh = inputs.mesh
        topology = MeshTopology.build(mesh.faces, mesh.vertex_count)
        boundary = topology.boundary_edges()

        if not boundary:
            logger.info("No boundary edges, mesh is already closed")
            return HoleRepairOutput(mesh=mesh)

        loops = find_boundary_loops(boundary)
        directed = _directed_edges(mesh)
        positions = mesh.vertices.astype(np.float64)

        new_vertices: list[np.ndarray] = []
        new_normals: list[np.ndarray] = []
        new_texcoords: list[np.ndarray] = []
        new_faces: list[tuple[int, int, int]] = []
        skipped_sizes: list[int] = []
        filled = 0

        aligned_normals = mesh.has_aligned_normals
        aligned_texcoords = mesh.has_aligned_texture_coordinates

        for loop in loops:
            size = len(loop)
            if size > self.config.max_hole_size:
                skipped_sizes.append(size)
                logger.warning(
                    f"Hole with {size} boundary vertices exceeds max_hole_size "
                    f"{self.config.max_hole_size}; left open"
                )
                continue

            loop = _orient_loop(loop, directed)

            if size == 3:
                new_faces.append((loop[0], loop[1], loop[2]))
            elif size <= self.config.fan_max_size:
                center_index = mesh.vertex_count + len(new_vertices)
                new_vertices.append(positions[loop].mean(axis=0))
                if aligned_normals:
                    avg = mesh.normals[loop].astype(np.float64).mean(axis=0, keepdims=True)
                    new_normals.append(normalize_rows(avg)[0])
                if aligned_texcoords:
                    new_texcoords.append(mesh.texture_coordinates[loop].mean(axis=0))
                new_faces.extend(fan_triangles(loop, center_index))
            else:
                new_faces.extend(ear_clip(loop, positions))
            filled += 1

        logger.info(
            f"Hole repair: {len(loops)} holes, {filled} filled, {len(skipped_sizes)} left open "
            f"(+{len(new_vertices)} vertices, +{len(new_faces)} faces)"
        )

        if not new_faces:
            return HoleRepairOutput(
                mesh=mesh,
                num_holes=len(loops),
                num_skipped=len(skipped_sizes),
                skipped_loop_sizes=skipped_sizes,
            )

        vertices = mesh.vertices
        normals = mesh.normals
        texcoords = mesh.texture_coordinates
        if new_vertices:
            vertices = np.vstack([vertices, np.asarray(new_vertices, dtype=np.float32)])
            if aligned_normals:
                normals = np.vstack([normals, np.asarray(new_normals, dtype=np.float32)])
            if aligned_texcoords:
                texcoords = np.vstack([texcoords, np.asarray(new_texcoords, dtype=np.float32)])

        faces = np.vstack([mesh.faces, np.asarray(new_faces, dtype=np.int64)])

        return HoleRepairOutput(
            mesh=mesh.replace(
                vertices=vertices,
                normals=normals,
                faces=faces,
                texture_coordinates=texcoords,
            ),
            num_holes=len(loops),
            num_filled=filled,
            num_skipped=len(skipped_sizes),
            skipped_loop_sizes=skipped_sizes,
            num_new_vertices=len(new_vertices),
            num_new_faces=len(new_faces),
        )
