"""I/O contracts for Step 05: Decimation."""

from pydantic import Field

from scanmesh.core.contracts import MeshInput, MeshOutput


class DecimationInput(MeshInput):
    pass


class DecimationOutput(MeshOutput):
    target_vertex_count: int = Field(0, description="int(vertex_count * ratio)")
    cell_count: int = Field(0, description="Grid cells along the longest bounding-box axis")
    num_vertices_before: int = Field(0, description="Vertices before clustering")
    num_faces_removed: int = Field(0, description="Faces collapsed to degenerate triangles")
