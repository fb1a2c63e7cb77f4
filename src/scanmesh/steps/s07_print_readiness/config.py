"""Configuration for Step 07: Print-readiness analysis."""

from pydantic import BaseModel, Field


class PrintReadinessConfig(BaseModel):
    duplicate_distance: float = Field(
        1e-6, gt=0, description="Vertices closer than this (m) count as a duplicate pair"
    )
    degenerate_area: float = Field(
        1e-10, ge=0, description="Cross-product length below which a triangle is degenerate"
    )
    poor_aspect_ratio: float = Field(10.0, gt=0, description="Aspect ratio counted as poor")
    very_poor_aspect_ratio: float = Field(20.0, gt=0, description="Aspect ratio counted as very poor")

    # Recommendation triggers
    min_dimension: float = Field(
        0.002, description="Suggest a wall-thickness check below this bbox dimension (m)"
    )
    min_wall_thickness: float = Field(0.001, description="Wall thickness to recommend (m)")
    max_faces: int = Field(500_000, description="Suggest simplification above this face count")
    target_faces: int = Field(200_000, description="Face count suggested when simplifying")
    min_detail_faces: int = Field(
        100, description="Suggest rescanning at higher resolution below this face count"
    )
