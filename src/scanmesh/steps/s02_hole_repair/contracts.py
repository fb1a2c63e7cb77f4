"""I/O contracts for Step 02: Hole repair."""

from pydantic import Field

from scanmesh.core.contracts import MeshInput, MeshOutput


class HoleRepairInput(MeshInput):
    pass


class HoleRepairOutput(MeshOutput):
    num_holes: int = Field(0, description="Boundary loops found")
    num_filled: int = Field(0, description="Loops closed with new triangles")
    num_skipped: int = Field(0, description="Loops larger than max_hole_size, left open")
    skipped_loop_sizes: list[int] = Field(
        default_factory=list, description="Vertex count of every loop left open"
    )
    num_new_vertices: int = Field(0, description="Centroid vertices appended by fan fills")
    num_new_faces: int = Field(0, description="Triangles appended")
