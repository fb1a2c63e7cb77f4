"""Step 06: UV generation — fallback cylindrical projection.

Used only when capture-time texture coordinates are missing or were
invalidated upstream (count no longer matches the vertex count).
"""

from __future__ import annotations

import logging
from typing import ClassVar

import numpy as np

from scanmesh.core.step_base import BaseStep
from scanmesh.utils.geometry import bounding_box
from .config import UvGenerationConfig
from .contracts import UvGenerationInput, UvGenerationOutput

logger = logging.getLogger(__name__)


def cylindrical_uv(vertices: np.ndarray) -> np.ndarray:
    """Project vertices onto a cylinder around the bounding box's vertical axis.

    u is the angle around the Y axis mapped to [0, 1]; v is the normalized
    height. A flat box along Y gives v = 0.
    """
    if len(vertices) == 0:
        return np.zeros((0, 2), dtype=np.float32)

    lo, hi = bounding_box(vertices)
    dims = hi - lo
    local = np.asarray(vertices, dtype=np.float64) - lo

    angle = np.arctan2(local[:, 0] - dims[0] / 2, local[:, 2] - dims[2] / 2)
    u = (angle + np.pi) / (2 * np.pi)
    v = local[:, 1] / dims[1] if dims[1] > 0 else np.zeros(len(local))
    return np.column_stack([u, v]).astype(np.float32)


class UvGenerationStep(BaseStep[UvGenerationInput, UvGenerationOutput, UvGenerationConfig]):
    name: ClassVar[str] = "uv_generation"
    label: ClassVar[str] = "Generating texture coordinates..."
    progress: ClassVar[float] = 0.90
    input_type: ClassVar = UvGenerationInput
    output_type: ClassVar = UvGenerationOutput
    config_type: ClassVar = UvGenerationConfig

    def validate_inputs(self, inputs: UvGenerationInput) -> bool:
        return True

    def run(self, inputs: UvGenerationInput) -> UvGenerationOutput:
        mesh = inputs.mesh
        if mesh.has_aligned_texture_coordinates and not self.config.force:
            logger.info("Existing texture coordinates kept")
            return UvGenerationOutput(mesh=mesh)

        uv = cylindrical_uv(mesh.vertices)
        logger.info(f"Generated cylindrical texture coordinates for {len(uv)} vertices")
        return UvGenerationOutput(mesh=mesh.replace(texture_coordinates=uv), generated=True)
