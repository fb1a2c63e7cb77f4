"""Step 05: Decimation — spatial vertex clustering.

Vertices are bucketed into a uniform grid over the bounding box; each
non-empty cell becomes one vertex at the members' centroid. Faces that
collapse (two corners in the same cell) are dropped. Texture coordinates
cannot be carried through the merge and are cleared for regeneration.
"""

from __future__ import annotations

import logging
from typing import ClassVar

from scanmesh.core.step_base import BaseStep
from .config import DecimationConfig
from .contracts import DecimationInput, DecimationOutput
from ._vertex_clustering import cluster_vertices, collapse_faces, grid_cell_size, merge_clusters

logger = logging.getLogger(__name__)


class DecimationStep(BaseStep[DecimationInput, DecimationOutput, DecimationConfig]):
    name: ClassVar[str] = "decimation"
    label: ClassVar[str] = "Optimizing mesh..."
    progress: ClassVar[float] = 0.80
    input_type: ClassVar = DecimationInput
    output_type: ClassVar = DecimationOutput
    config_type: ClassVar = DecimationConfig

    def validate_inputs(self, inputs: DecimationInput) -> bool:
        return True

    def run(self, inputs: DecimationInput) -> DecimationOutput:
        mesh = inputs.mesh
        before = mesh.vertex_count
        target = int(before * self.config.ratio)

        if mesh.is_empty or self.config.ratio >= 1.0 or target >= before:
            logger.info(f"Decimation skipped (ratio {self.config.ratio}, {before} vertices)")
            return DecimationOutput(
                mesh=mesh, target_vertex_count=target, num_vertices_before=before
            )

        cell_size, cell_count = grid_cell_size(mesh.vertices, target)
        labels, num_clusters = cluster_vertices(mesh.vertices, cell_size)
        positions, normals = merge_clusters(mesh.vertices, mesh.normals, labels, num_clusters)
        faces = collapse_faces(mesh.faces, labels)

        logger.info(
            f"Decimation: {before} -> {num_clusters} vertices (target {target}, "
            f"{cell_count} cells, cell size {cell_size:.5f} m), "
            f"{mesh.face_count} -> {len(faces)} faces"
        )
        return DecimationOutput(
            mesh=mesh.replace(
                vertices=positions,
                normals=normals,
                faces=faces,
                texture_coordinates=None,
            ),
            target_vertex_count=target,
            cell_count=cell_count,
            num_vertices_before=before,
            num_faces_removed=mesh.face_count - len(faces),
        )
