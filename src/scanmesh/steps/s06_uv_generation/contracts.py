"""I/O contracts for Step 06: UV generation."""

from pydantic import Field

from scanmesh.core.contracts import MeshInput, MeshOutput


class UvGenerationInput(MeshInput):
    pass


class UvGenerationOutput(MeshOutput):
    generated: bool = Field(False, description="True if cylindrical coordinates were written")
