"""Step 03: Laplacian smoothing — relax vertices toward their neighbor centroid.

Each pass reads only the previous pass's positions (double-buffered), so the
result does not depend on vertex visiting order. Isolated vertices stay put.
"""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from scanmesh.core.step_base import BaseStep
from scanmesh.utils.topology import MeshTopology
from .config import SmoothingConfig
from .contracts import SmoothingInput, SmoothingOutput

logger = logging.getLogger(__name__)


def laplacian_smooth(
    vertices: np.ndarray,
    topology: MeshTopology,
    iterations: int,
    factor: float,
) -> np.ndarray:
    """Return smoothed positions as float64; the input array is not modified."""
    current = np.asarray(vertices, dtype=np.float64).copy()
    if iterations <= 0 or len(current) == 0:
        return current

    src, dst = topology.directed_pairs()
    counts = topology.neighbor_counts()
    movable = counts > 0
    if not movable.any():
        return current

    for _ in range(iterations):
        sums = np.zeros_like(current)
        np.add.at(sums, src, current[dst])
        nxt = current.copy()
        centroids = sums[movable] / counts[movable, None]
        nxt[movable] = current[movable] * (1.0 - factor) + centroids * factor
        current = nxt

    return current


class SmoothingStep(BaseStep[SmoothingInput, SmoothingOutput, SmoothingConfig]):
    name: ClassVar[str] = "smoothing"
    label: ClassVar[str] = "Smoothing surface..."
    progress: ClassVar[float] = 0.45
    input_type: ClassVar = SmoothingInput
    output_type: ClassVar = SmoothingOutput
    config_type: ClassVar = SmoothingConfig

    def validate_inputs(self, inputs: SmoothingInput) -> bool:
        if inputs.mesh.is_empty:
            logger.error("Mesh has no vertices")
            return False
        return True

    def run(self, inputs: SmoothingInput) -> SmoothingOutput:
        mesh = inputs.mesh
        if self.config.iterations == 0:
            logger.info("Smoothing disabled (0 iterations)")
            return SmoothingOutput(mesh=mesh)

        topology = MeshTopology.build(mesh.faces, mesh.vertex_count)
        smoothed = laplacian_smooth(
            mesh.vertices, topology, self.config.iterations, self.config.factor
        )
        new_vertices = smoothed.astype(np.float32)
        displacement = np.linalg.norm(
            new_vertices.astype(np.float64) - mesh.vertices.astype(np.float64), axis=1
        )
        max_disp = float(displacement.max()) if len(displacement) else 0.0

        logger.info(
            f"Smoothing: {self.config.iterations} iterations, factor {self.config.factor}, "
            f"max displacement {max_disp:.6f} m"
        )
        return SmoothingOutput(
            mesh=mesh.replace(vertices=new_vertices),
            num_iterations=self.config.iterations,
            max_displacement=max_disp,
        )
