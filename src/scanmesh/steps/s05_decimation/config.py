"""Configuration for Step 05: Decimation."""

from pydantic import BaseModel, Field


class DecimationConfig(BaseModel):
    ratio: float = Field(
        0.5, gt=0.0, description="Target fraction of the original vertex count (>= 1 disables)"
    )
