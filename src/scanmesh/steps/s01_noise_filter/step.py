"""Step 01: Noise filter — drop vertices whose neighborhood marks them as outliers.

A vertex survives if it has at least one neighbor and its mean distance to
its neighbors is below ``threshold * distance_multiplier``. Faces touching a
dropped vertex are removed; normals and texture coordinates are compacted
through the same index map so every array stays index-aligned.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from scanmesh.core.step_base import BaseStep
from scanmesh.utils.topology import MeshTopology
from .config import NoiseFilterConfig
from .contracts import NoiseFilterInput, NoiseFilterOutput
from ._outlier_scoring import build_compaction_map, compute_valid_flags, remap_faces

logger = logging.getLogger(__name__)


class NoiseFilterStep(BaseStep[NoiseFilterInput, NoiseFilterOutput, NoiseFilterConfig]):
    name: ClassVar[str] = "noise_filter"
    label: ClassVar[str] = "Removing noise..."
    progress: ClassVar[float] = 0.15
    input_type: ClassVar = NoiseFilterInput
    output_type: ClassVar = NoiseFilterOutput
    config_type: ClassVar = NoiseFilterConfig

    def validate_inputs(self, inputs: NoiseFilterInput) -> bool:
        if inputs.mesh.is_empty:
            logger.error("Mesh has no vertices")
            return False
        return True

    def run(self, inputs: NoiseFilterInput) -> NoiseFilterOutput:
        mesh = inputs.mesh
        topology = MeshTopology.build(mesh.faces, mesh.vertex_count)
        cutoff = self.config.threshold * self.config.distance_multiplier

        valid = compute_valid_flags(mesh.vertices, topology, cutoff)
        mapping = build_compaction_map(valid)
        new_faces = remap_faces(mesh.faces, mapping)

        # Normals may be shorter than vertices on raw input; keep those that exist.
        num_normals = min(len(mesh.normals), mesh.vertex_count)
        new_normals = mesh.normals[:num_normals][valid[:num_normals]]

        texcoords = None
        if mesh.has_aligned_texture_coordinates:
            texcoords = mesh.texture_coordinates[valid]
        elif mesh.texture_coordinates is not None:
            logger.warning(
                "Texture coordinates not aligned with vertices; dropping them for regeneration"
            )

        removed_vertices = int(mesh.vertex_count - valid.sum())
        removed_faces = int(mesh.face_count - len(new_faces))
        logger.info(
            f"Noise filter (cutoff {cutoff:.4f} m): removed {removed_vertices}/"
            f"{mesh.vertex_count} vertices, {removed_faces}/{mesh.face_count} faces"
        )

        return NoiseFilterOutput(
            mesh=mesh.replace(
                vertices=mesh.vertices[valid],
                normals=new_normals,
                faces=new_faces,
                texture_coordinates=texcoords,
            ),
            num_removed_vertices=removed_vertices,
            num_removed_faces=removed_faces,
        )
