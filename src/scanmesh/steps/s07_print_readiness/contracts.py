"""I/O contracts and report types for Step 07: Print-readiness analysis."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from scanmesh.core.contracts import MeshInput


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class RecommendationKind(str, Enum):
    FILL_HOLES = "fill_holes"
    REPAIR_NON_MANIFOLD = "repair_non_manifold"
    REMOVE_DUPLICATE_VERTICES = "remove_duplicate_vertices"
    REMOVE_DEGENERATE_FACES = "remove_degenerate_faces"
    FIX_INVERTED_NORMALS = "fix_inverted_normals"
    FIX_SELF_INTERSECTIONS = "fix_self_intersections"
    INCREASE_RESOLUTION = "increase_resolution"
    ADD_BASE_FOR_STABILITY = "add_base_for_stability"
    CHECK_WALL_THICKNESS = "check_wall_thickness"
    REDUCE_MESH_COMPLEXITY = "reduce_mesh_complexity"


class Recommendation(BaseModel):
    """Advisory repair hint; never applied automatically."""

    kind: RecommendationKind
    severity: Severity
    message: str


class TriangleQuality(BaseModel):
    """Aspect ratio = longest edge / shortest altitude, over non-degenerate triangles."""

    min_aspect_ratio: float = 0.0
    max_aspect_ratio: float = 0.0
    avg_aspect_ratio: float = 0.0
    poor_quality_count: int = Field(0, description="Triangles with aspect ratio > 10")
    very_poor_quality_count: int = Field(0, description="Triangles with aspect ratio > 20")


class PrintReadinessReport(BaseModel):
    """Read-only diagnostic of how printable a mesh is.

    ``self_intersection_count`` is not computed and is always 0.
    ``min_wall_thickness`` is not computed and is always None.
    ``volume`` is only set for watertight meshes.
    """

    overall_score: int = Field(..., ge=0, le=100)
    is_watertight: bool
    is_manifold: bool
    hole_count: int = 0
    hole_total_vertices: int = 0
    non_manifold_edge_count: int = 0
    duplicate_vertex_count: int = Field(0, description="Number of vertex pairs closer than the threshold")
    degenerate_face_count: int = 0
    inverted_normal_count: int = 0
    self_intersection_count: int = Field(0, description="Not implemented; always 0")
    min_wall_thickness: Optional[float] = Field(None, description="Not implemented; always None")
    bounding_box_min: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    bounding_box_max: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    dimensions: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    surface_area: float = Field(0.0, description="Square meters")
    volume: Optional[float] = Field(None, description="Cubic meters; None unless watertight")
    triangle_quality: TriangleQuality = Field(default_factory=TriangleQuality)
    recommendations: list[Recommendation] = Field(default_factory=list)

    @property
    def is_printable(self) -> bool:
        return self.overall_score >= 70 and self.is_watertight and self.is_manifold

    @property
    def score_description(self) -> str:
        if self.overall_score >= 90:
            return "Excellent - Ready to print"
        if self.overall_score >= 70:
            return "Good - Minor fixes recommended"
        if self.overall_score >= 50:
            return "Fair - Repairs needed"
        if self.overall_score >= 30:
            return "Poor - Significant repairs needed"
        return "Not printable - Major issues"


class PrintReadinessInput(MeshInput):
    pass


class PrintReadinessOutput(BaseModel):
    report: PrintReadinessReport
