"""Configuration for Step 01: Noise filter."""

from pydantic import BaseModel, Field


class NoiseFilterConfig(BaseModel):
    threshold: float = Field(
        0.002, gt=0, description="Noise threshold in meters; vertices whose mean neighbor "
        "distance reaches threshold * distance_multiplier are dropped"
    )
    distance_multiplier: float = Field(
        10.0, gt=0, description="Multiplier applied to threshold for the mean-distance cutoff"
    )
