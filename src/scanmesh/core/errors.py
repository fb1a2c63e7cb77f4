"""Error taxonomy for the mesh pipeline.

Degenerate geometry is never an error: stages filter or report it.
Errors are reserved for unusable input, malformed data, and I/O failures.
"""

from __future__ import annotations


class MeshPipelineError(Exception):
    """Base class for all scanmesh errors."""


class InputError(MeshPipelineError, ValueError):
    """The mesh handed to a stage is unusable (e.g. no vertices)."""


class FormatError(MeshPipelineError, ValueError):
    """Corrupt/truncated snapshot data or an unsupported export format."""


class MeshIOError(MeshPipelineError, OSError):
    """Writing an output file failed. The partial file has been removed."""


class PipelineCancelled(MeshPipelineError):
    """The host requested cancellation between two stages."""
