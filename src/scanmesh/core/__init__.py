"""scanmesh core: mesh value type, pipeline runner, base step, shared contracts."""

from .mesh import Mesh
from .errors import FormatError, InputError, MeshIOError, MeshPipelineError, PipelineCancelled
from .step_base import BaseStep
from .contracts import PipelineConfig, PipelineResult, StepEntry, StepMeta
from .pipeline_runner import (
    ProcessingOptions,
    build_pipeline_config,
    load_pipeline_config,
    process_mesh,
    run_pipeline,
)
from .logging import setup_logging

__all__ = [
    "Mesh",
    "MeshPipelineError",
    "InputError",
    "FormatError",
    "MeshIOError",
    "PipelineCancelled",
    "BaseStep",
    "PipelineConfig",
    "PipelineResult",
    "StepEntry",
    "StepMeta",
    "ProcessingOptions",
    "build_pipeline_config",
    "load_pipeline_config",
    "process_mesh",
    "run_pipeline",
    "setup_logging",
]
