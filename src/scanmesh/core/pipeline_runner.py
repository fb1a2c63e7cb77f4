"""Pipeline orchestrator: reads pipeline.yaml and executes steps in order.

Each enabled step receives the mesh produced by the one before it. Steps
whose output carries no mesh (analysis, export) leave it unchanged.
"""

from __future__ import annotations

import importlib
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml
from pydantic import BaseModel, Field

from .contracts import PipelineConfig, PipelineResult, StepEntry, StepMeta
from .errors import InputError, PipelineCancelled
from .mesh import Mesh

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]
CancelCheck = Callable[[], bool]

PREPARING = ("Preparing data...", 0.0)
FINALIZING = ("Finalizing...", 0.95)

# name, module: the processing stages in their fixed order.
DEFAULT_STEPS: list[tuple[str, str]] = [
    ("noise_filter", "scanmesh.steps.s01_noise_filter"),
    ("hole_repair", "scanmesh.steps.s02_hole_repair"),
    ("smoothing", "scanmesh.steps.s03_smoothing"),
    ("normal_estimation", "scanmesh.steps.s04_normal_estimation"),
    ("decimation", "scanmesh.steps.s05_decimation"),
    ("uv_generation", "scanmesh.steps.s06_uv_generation"),
]


def load_pipeline_config(config_path: Path) -> PipelineConfig:
    """Load and validate pipeline.yaml."""
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return PipelineConfig(**raw)


def load_step_config(
    config_path: Optional[Path],
    config_class: type[BaseModel],
    overrides: Optional[dict[str, Any]] = None,
) -> BaseModel:
    """Load a step-specific YAML config into its Pydantic model.

    ``overrides`` (inline ``params`` from pipeline.yaml) win over file values.
    Without a file the model defaults are used.
    """
    raw: dict[str, Any] = {}
    if config_path is not None:
        with open(config_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    raw.update(overrides or {})
    return config_class(**raw)


def import_step_class(module_path: str):
    """Dynamically import a step class from its module path.

    Expects module_path like 'scanmesh.steps.s01_noise_filter'
    and looks for a class ending in 'Step' in that module's step.py.
    """
    step_module = importlib.import_module(f"{module_path}.step")
    for attr_name in dir(step_module):
        attr = getattr(step_module, attr_name)
        if (
            isinstance(attr, type)
            and hasattr(attr, "run")
            and attr_name.endswith("Step")
            and attr_name != "BaseStep"
        ):
            return attr
    raise ImportError(f"No Step class found in {module_path}.step")


def _resolve(path: Path, data_root: Path) -> Path:
    return path if path.is_absolute() else data_root / path


def _report(progress: Optional[ProgressCallback], label: str, fraction: float) -> None:
    if progress is not None:
        progress(label, fraction)


def _check_cancel(should_cancel: Optional[CancelCheck], before: str) -> None:
    if should_cancel is not None and should_cancel():
        logger.warning(f"Pipeline cancelled before '{before}'")
        raise PipelineCancelled(f"Cancelled before '{before}'")


def run_pipeline(
    config: Union[PipelineConfig, Path],
    mesh: Optional[Mesh] = None,
    progress: Optional[ProgressCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> PipelineResult:
    """Execute the enabled steps of ``config`` on ``mesh``.

    Args:
        config: PipelineConfig, or a path to pipeline.yaml.
        mesh: Input mesh. When None, ``config.input_snapshot`` is loaded.
        progress: Called as ``progress(label, fraction)`` before each stage.
        should_cancel: Polled between stages; returning True aborts the run.

    Raises:
        InputError: if there is no mesh or it has no vertices.
        PipelineCancelled: if ``should_cancel`` asked to stop.
    """
    from scanmesh.utils.io import load_snapshot, save_snapshot

    pipeline_cfg = config if isinstance(config, PipelineConfig) else load_pipeline_config(config)
    data_root = pipeline_cfg.data_root

    if mesh is None:
        if pipeline_cfg.input_snapshot is None:
            raise InputError("No input mesh given and no input_snapshot configured")
        mesh = load_snapshot(_resolve(pipeline_cfg.input_snapshot, data_root))
    if mesh.is_empty:
        raise InputError("Cannot process a mesh without vertices")

    enabled_steps = [s for s in pipeline_cfg.steps if s.enabled]
    logger.info(
        f"Pipeline '{pipeline_cfg.project_name}' with {len(enabled_steps)} steps on {mesh!r}"
    )
    _report(progress, *PREPARING)

    metas: list[StepMeta] = []
    outputs: dict[str, BaseModel] = {}

    for entry in enabled_steps:
        _check_cancel(should_cancel, entry.name)
        logger.info(f"--- Step: {entry.name} ---")

        step_cls = import_step_class(entry.module)
        step_config = load_step_config(
            Path(entry.config_file) if entry.config_file else None,
            step_cls.config_type,
            entry.params,
        )
        step_instance = step_cls(config=step_config, data_root=data_root)

        if step_cls.label:
            _report(progress, step_cls.label, step_cls.progress)

        step_input = step_cls.input_type(mesh=mesh, **entry.inputs)
        t0 = time.time()
        output = step_instance.execute(step_input)
        elapsed = time.time() - t0

        outputs[entry.name] = output
        metas.append(StepMeta(
            step_name=entry.name,
            elapsed_seconds=elapsed,
            params=step_config.model_dump(mode="json"),
        ))
        new_mesh = getattr(output, "mesh", None)
        if isinstance(new_mesh, Mesh):
            mesh = new_mesh

    _check_cancel(should_cancel, "finalize")
    _report(progress, *FINALIZING)

    if pipeline_cfg.output_snapshot is not None:
        save_snapshot(mesh, _resolve(pipeline_cfg.output_snapshot, data_root))

    logger.info(f"Pipeline complete: {mesh!r}")
    return PipelineResult(mesh=mesh, steps=metas, outputs=outputs)


# ── Processing presets ───────────────────────────────────────────────

class ProcessingOptions(BaseModel):
    """Flat option set for the standard processing chain."""

    smoothing_iterations: int = Field(3, ge=0, description="0 skips smoothing")
    smoothing_factor: float = Field(0.5, ge=0.0, le=1.0)
    decimation_ratio: float = Field(0.5, gt=0.0, description=">= 1 skips decimation")
    fill_holes: bool = True
    remove_noise: bool = True
    noise_threshold: float = Field(0.002, gt=0, description="Meters")
    max_hole_size: int = Field(500, ge=3)


def build_pipeline_config(
    options: Optional[ProcessingOptions] = None,
    project_name: str = "scanmesh_project",
    data_root: Path = Path("./data"),
) -> PipelineConfig:
    """Map ProcessingOptions onto the standard step list."""
    options = options or ProcessingOptions()
    params: dict[str, dict[str, Any]] = {
        "noise_filter": {"threshold": options.noise_threshold},
        "hole_repair": {"max_hole_size": options.max_hole_size},
        "smoothing": {
            "iterations": options.smoothing_iterations,
            "factor": options.smoothing_factor,
        },
        "decimation": {"ratio": options.decimation_ratio},
    }
    enabled = {
        "noise_filter": options.remove_noise,
        "hole_repair": options.fill_holes,
        "smoothing": options.smoothing_iterations > 0,
        "decimation": options.decimation_ratio < 1.0,
    }
    steps = [
        StepEntry(
            name=name,
            module=module,
            params=params.get(name, {}),
            enabled=enabled.get(name, True),
        )
        for name, module in DEFAULT_STEPS
    ]
    return PipelineConfig(project_name=project_name, data_root=data_root, steps=steps)


def process_mesh(
    mesh: Mesh,
    options: Optional[ProcessingOptions] = None,
    progress: Optional[ProgressCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> Mesh:
    """Run the standard processing chain and return the processed mesh."""
    result = run_pipeline(
        build_pipeline_config(options), mesh, progress=progress, should_cancel=should_cancel
    )
    return result.mesh
