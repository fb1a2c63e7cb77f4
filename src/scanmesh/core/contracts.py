"""Common Pydantic models shared across pipeline steps."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, WithJsonSchema

from .mesh import Mesh

# Meshes hold numpy arrays; pydantic only checks the instance type and the
# JSON schema describes it as an opaque object.
MeshField = Annotated[
    Mesh,
    WithJsonSchema({"type": "object", "title": "Mesh", "description": "In-memory triangle mesh"}),
]


class StepMeta(BaseModel):
    """Metadata attached to every step run for reproducibility."""

    step_name: str
    elapsed_seconds: float = 0.0
    params: dict[str, Any] = Field(default_factory=dict)


class MeshInput(BaseModel):
    """Input shared by every stage: the mesh snapshot to work on."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    mesh: MeshField = Field(..., description="Mesh produced by the previous stage")


class MeshOutput(BaseModel):
    """Output shared by every processing stage: the new mesh snapshot."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    mesh: MeshField = Field(..., description="Mesh after this stage")


class StepEntry(BaseModel):
    """One entry in the pipeline step list."""

    name: str
    module: str
    config_file: Optional[str] = None
    params: dict[str, Any] = Field(
        default_factory=dict, description="Inline overrides applied on top of config_file"
    )
    inputs: dict[str, Any] = Field(
        default_factory=dict, description="Extra input fields passed alongside the mesh"
    )
    enabled: bool = True


class PipelineConfig(BaseModel):
    """Top-level pipeline configuration loaded from pipeline.yaml."""

    project_name: str = "scanmesh_project"
    data_root: Path = Path("./data")
    input_snapshot: Optional[Path] = Field(
        None, description="Snapshot to load when no mesh is handed to run_pipeline"
    )
    output_snapshot: Optional[Path] = Field(
        None, description="Snapshot to write with the processed mesh"
    )
    steps: list[StepEntry] = Field(default_factory=list)


class PipelineResult(BaseModel):
    """Processed mesh plus per-step run metadata."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    mesh: MeshField
    steps: list[StepMeta] = Field(default_factory=list)
    outputs: dict[str, BaseModel] = Field(
        default_factory=dict, description="Full output model of each step, by step name"
    )
