"""Base class for all pipeline steps.

Every step declares typed Input, Output, Config via Pydantic models.
Steps are pure: they read the mesh from their input and return a new one,
so the runner can thread a single mesh value through the stage list.
"""

from __future__ import annotations

import time
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, Optional, TypeVar, ClassVar

from pydantic import BaseModel

from .errors import InputError

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)
ConfigT = TypeVar("ConfigT", bound=BaseModel)

logger = logging.getLogger(__name__)


class BaseStep(ABC, Generic[InputT, OutputT, ConfigT]):
    """Abstract base for pipeline steps.

    Subclasses must:
    1. Define concrete Pydantic models for InputT, OutputT, ConfigT
    2. Set class variables: input_type, output_type, config_type
    3. Implement run() and validate_inputs()

    ``label`` and ``progress`` drive the progress callback of the runner.

    Example:
        class SmoothingStep(BaseStep[SmoothingInput, SmoothingOutput, SmoothingConfig]):
            input_type = SmoothingInput
            output_type = SmoothingOutput
            config_type = SmoothingConfig

            def run(self, inputs: SmoothingInput) -> SmoothingOutput: ...
            def validate_inputs(self, inputs: SmoothingInput) -> bool: ...
    """

    name: ClassVar[str] = ""
    label: ClassVar[str] = ""
    progress: ClassVar[float] = 0.0
    input_type: ClassVar[type[BaseModel]]
    output_type: ClassVar[type[BaseModel]]
    config_type: ClassVar[type[BaseModel]]

    def __init__(self, config: Optional[ConfigT] = None, data_root: Optional[Path] = None):
        self.config = config if config is not None else self.config_type()
        self.data_root = Path(data_root) if data_root is not None else Path(".")

    @abstractmethod
    def run(self, inputs: InputT) -> OutputT:
        """Execute this pipeline step. Returns output model."""
        ...

    @abstractmethod
    def validate_inputs(self, inputs: InputT) -> bool:
        """Check that the input mesh is usable by this step."""
        ...

    def execute(self, inputs: InputT) -> OutputT:
        """Run with logging, timing, and validation."""
        step_name = self.name or self.__class__.__name__
        logger.info(f"[{step_name}] Validating inputs...")

        if not self.validate_inputs(inputs):
            raise InputError(f"[{step_name}] Input validation failed")

        logger.info(f"[{step_name}] Starting...")
        t0 = time.time()
        result = self.run(inputs)
        elapsed = time.time() - t0
        logger.info(f"[{step_name}] Done in {elapsed:.2f}s")
        return result

    @classmethod
    def get_input_schema(cls) -> dict:
        """Return JSON schema for inputs."""
        return cls.input_type.model_json_schema()

    @classmethod
    def get_output_schema(cls) -> dict:
        """Return JSON schema for outputs."""
        return cls.output_type.model_json_schema()

    @classmethod
    def get_config_schema(cls) -> dict:
        """Return JSON schema for config."""
        return cls.config_type.model_json_schema()
