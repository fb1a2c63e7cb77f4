"""Configuration for Step 02: Hole repair."""

from pydantic import BaseModel, Field


class HoleRepairConfig(BaseModel):
    max_hole_size: int = Field(
        500, ge=3, description="Loops with more boundary vertices are left open and reported"
    )
    fan_max_size: int = Field(
        20, ge=3, description="Loops up to this size are fanned to their centroid; larger ones are ear-clipped"
    )
