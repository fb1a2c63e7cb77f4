"""Configuration for Step 04: Normal estimation."""

from pydantic import BaseModel


class NormalEstimationConfig(BaseModel):
    """No tunables: weighting is implicit in the unnormalized face normals."""
