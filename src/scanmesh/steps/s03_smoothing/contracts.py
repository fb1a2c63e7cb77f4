"""I/O contracts for Step 03: Laplacian smoothing."""

from pydantic import Field

from scanmesh.core.contracts import MeshInput, MeshOutput


class SmoothingInput(MeshInput):
    pass


class SmoothingOutput(MeshOutput):
    num_iterations: int = Field(0, description="Relaxation passes applied")
    max_displacement: float = Field(0.0, description="Largest vertex move over all passes (m)")
