"""I/O contracts for Step 01: Noise filter."""

from pydantic import Field

from scanmesh.core.contracts import MeshInput, MeshOutput


class NoiseFilterInput(MeshInput):
    pass


class NoiseFilterOutput(MeshOutput):
    num_removed_vertices: int = Field(0, description="Vertices marked as outliers or isolated")
    num_removed_faces: int = Field(0, description="Faces dropped because an endpoint was removed")
