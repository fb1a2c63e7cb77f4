"""Configuration for Step 03: Laplacian smoothing."""

from pydantic import BaseModel, Field


class SmoothingConfig(BaseModel):
    iterations: int = Field(3, ge=0, description="Relaxation passes (0 = positions unchanged)")
    factor: float = Field(
        0.5, ge=0.0, le=1.0, description="Blend toward the neighbor centroid per pass"
    )
