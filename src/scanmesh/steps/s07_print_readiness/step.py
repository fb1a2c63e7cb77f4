"""Step 07: Print-readiness analysis.

Read-only diagnostic: the mesh passes through untouched and the step
returns a report with topology checks, measurements, a 0-100 score, and
ordered repair recommendations. Nothing in the report is applied.
"""

from __future__ import annotations

import logging
from typing import ClassVar, Optional

from scanmesh.core.errors import InputError
from scanmesh.core.mesh import Mesh
from scanmesh.core.step_base import BaseStep
from scanmesh.utils.geometry import bounding_box
from .config import PrintReadinessConfig
from .contracts import PrintReadinessInput, PrintReadinessOutput, PrintReadinessReport
from ._mesh_analysis import (
    analyze_topology,
    count_duplicate_vertices,
    count_inverted_faces,
    enclosed_volume,
    surface_area,
    triangle_quality,
)
from ._scoring import build_recommendations, overall_score

logger = logging.getLogger(__name__)


def analyze_mesh(mesh: Mesh, config: Optional[PrintReadinessConfig] = None) -> PrintReadinessReport:
    """Build a print-readiness report for ``mesh``.

    Raises:
        InputError: if the mesh has no vertices.
    """
    config = config or PrintReadinessConfig()
    if mesh.is_empty:
        raise InputError("Cannot analyze a mesh without vertices")

    vertices, faces = mesh.vertices, mesh.faces
    topo = analyze_topology(vertices, faces, config.degenerate_area)

    lo, hi = bounding_box(vertices)
    dims = hi - lo
    area = surface_area(vertices, faces)
    quality = triangle_quality(
        vertices, faces, config.poor_aspect_ratio, config.very_poor_aspect_ratio
    )

    is_watertight = topo.boundary_edge_count == 0
    is_manifold = topo.non_manifold_edge_count == 0
    volume = enclosed_volume(vertices, faces) if is_watertight else None

    duplicates = count_duplicate_vertices(vertices, config.duplicate_distance)
    inverted = count_inverted_faces(vertices, faces)
    degenerate = len(topo.degenerate_faces)

    recommendations = build_recommendations(
        config,
        holes=topo.holes,
        non_manifold_count=topo.non_manifold_edge_count,
        duplicate_count=duplicates,
        degenerate_count=degenerate,
        inverted_count=inverted,
        face_count=mesh.face_count,
        dimensions=dims.tolist(),
    )
    score = overall_score(
        is_watertight=is_watertight,
        is_manifold=is_manifold,
        hole_count=len(topo.holes),
        non_manifold_count=topo.non_manifold_edge_count,
        duplicate_count=duplicates,
        degenerate_count=degenerate,
        inverted_count=inverted,
        quality=quality,
    )

    report = PrintReadinessReport(
        overall_score=score,
        is_watertight=is_watertight,
        is_manifold=is_manifold,
        hole_count=len(topo.holes),
        hole_total_vertices=sum(len(h) for h in topo.holes),
        non_manifold_edge_count=topo.non_manifold_edge_count,
        duplicate_vertex_count=duplicates,
        degenerate_face_count=degenerate,
        inverted_normal_count=inverted,
        bounding_box_min=lo.tolist(),
        bounding_box_max=hi.tolist(),
        dimensions=dims.tolist(),
        surface_area=area,
        volume=volume,
        triangle_quality=quality,
        recommendations=recommendations,
    )
    logger.info(
        f"Print readiness: score {score} ({report.score_description}), "
        f"watertight={is_watertight}, manifold={is_manifold}, holes={len(topo.holes)}"
    )
    logger.debug(
        f"Duplicates={duplicates}, degenerate={degenerate}, inverted={inverted}, "
        f"area={area:.6f} m^2, volume={volume}"
    )
    return report


class PrintReadinessStep(
    BaseStep[PrintReadinessInput, PrintReadinessOutput, PrintReadinessConfig]
):
    name: ClassVar[str] = "print_readiness"
    label: ClassVar[str] = "Analyzing print readiness..."
    progress: ClassVar[float] = 0.95
    input_type: ClassVar = PrintReadinessInput
    output_type: ClassVar = PrintReadinessOutput
    config_type: ClassVar = PrintReadinessConfig

    def validate_inputs(self, inputs: PrintReadinessInput) -> bool:
        if inputs.mesh.is_empty:
            logger.error("Mesh has no vertices")
            return False
        return True

    def run(self, inputs: PrintReadinessInput) -> PrintReadinessOutput:
        return PrintReadinessOutput(report=analyze_mesh(inputs.mesh, self.config))
