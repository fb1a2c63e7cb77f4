"""I/O contracts for Step 08: Mesh export (Mesh → STL / OBJ / PLY)."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from scanmesh.core.contracts import MeshInput
from .config import ExportFormat


class MeshExportInput(MeshInput):
    file_name: str = Field("scan", description="Base name of the written files, without extension")
    output_dir: Optional[Path] = Field(
        None, description="Target directory (default: data_root / config.output_subdir)"
    )


class ExportResult(BaseModel):
    file_path: Path = Field(..., description="Main exported file (or the ZIP bundle)")
    format: ExportFormat
    file_size: int = Field(0, description="Size of file_path in bytes")
    vertex_count: int = 0
    face_count: int = 0
    texture_path: Optional[Path] = Field(None, description="JPEG texture (OBJ, unbundled)")
    material_path: Optional[Path] = Field(None, description="MTL file (OBJ, unbundled)")
    is_zip_archive: bool = False


class MeshExportOutput(BaseModel):
    result: ExportResult
