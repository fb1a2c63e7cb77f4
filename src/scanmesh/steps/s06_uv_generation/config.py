"""Configuration for Step 06: UV generation."""

from pydantic import BaseModel, Field


class UvGenerationConfig(BaseModel):
    force: bool = Field(
        False, description="Regenerate even when aligned texture coordinates already exist"
    )
