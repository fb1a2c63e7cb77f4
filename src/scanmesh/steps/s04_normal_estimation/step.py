"""Step 04: Normal estimation — area-weighted vertex normals.

Every valid triangle adds its unnormalized cross product (twice its area
times the unit normal) to each of its three vertices, then each sum is
normalized. Vertices with a zero sum keep a zero normal.
"""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from scanmesh.core.step_base import BaseStep
from scanmesh.utils.geometry import face_cross_products, normalize_rows, repeated_index_mask
from scanmesh.utils.topology import valid_face_mask
from .config import NormalEstimationConfig
from .contracts import NormalEstimationInput, NormalEstimationOutput

logger = logging.getLogger(__name__)


def estimate_vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> tuple[np.ndarray, int]:
    """Return ((N, 3) float32 unit normals, number of faces used)."""
    n = len(vertices)
    faces = np.asarray(faces, dtype=np.int64).reshape(-1, 3)
    usable = valid_face_mask(faces, n) & ~repeated_index_mask(faces)
    tris = faces[usable]

    accum = np.zeros((n, 3), dtype=np.float64)
    face_normals = face_cross_products(vertices, tris)
    # np.add.at applies the scatter-adds in order, so shared vertices are
    # accumulated deterministically.
    for corner in range(3):
        np.add.at(accum, tris[:, corner], face_normals)

    return normalize_rows(accum).astype(np.float32), len(tris)


class NormalEstimationStep(
    BaseStep[NormalEstimationInput, NormalEstimationOutput, NormalEstimationConfig]
):
    name: ClassVar[str] = "normal_estimation"
    label: ClassVar[str] = "Calculating normals..."
    progress: ClassVar[float] = 0.70
    input_type: ClassVar = NormalEstimationInput
    output_type: ClassVar = NormalEstimationOutput
    config_type: ClassVar = NormalEstimationConfig

    def validate_inputs(self, inputs: NormalEstimationInput) -> bool:
        if inputs.mesh.is_empty:
            logger.error("Mesh has no vertices")
            return False
        return True

    def run(self, inputs: NormalEstimationInput) -> NormalEstimationOutput:
        mesh = inputs.mesh
        normals, used = estimate_vertex_normals(mesh.vertices, mesh.faces)
        zero = int(np.count_nonzero(~np.any(normals != 0, axis=1)))

        logger.info(
            f"Normals: {used}/{mesh.face_count} faces used, {zero} vertices without normal"
        )
        return NormalEstimationOutput(
            mesh=mesh.replace(normals=normals),
            num_faces_used=used,
            num_zero_normals=zero,
        )
