"""I/O contracts for Step 04: Normal estimation."""

from pydantic import Field

from scanmesh.core.contracts import MeshInput, MeshOutput


class NormalEstimationInput(MeshInput):
    pass


class NormalEstimationOutput(MeshOutput):
    num_faces_used: int = Field(0, description="Valid triangles that contributed")
    num_zero_normals: int = Field(0, description="Vertices with no contributing face")
