"""Step 08: Mesh export — Mesh → STL / OBJ (+MTL + JPEG texture) / PLY.

Applied to every format before writing:
- center: subtract the vertex centroid (optional)
- scale: multiply by config.scale × unit factor from meters

OBJ may additionally carry a material + downscaled texture, optionally
bundled as a single ZIP. USDZ is a declared format that is not written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import ClassVar

import numpy as np

from scanmesh.core.errors import FormatError
from scanmesh.core.mesh import Mesh
from scanmesh.core.step_base import BaseStep
from .config import ExportFormat, MeshExportConfig
from .contracts import ExportResult, MeshExportInput, MeshExportOutput

logger = logging.getLogger(__name__)


def transform_vertices(vertices: np.ndarray, center: bool, scale: float) -> np.ndarray:
    """Center on the vertex centroid (optional), then scale uniformly."""
    out = np.asarray(vertices, dtype=np.float32)
    if center and len(out):
        out = out - out.mean(axis=0, dtype=np.float64).astype(np.float32)
    if scale != 1.0:
        out = out * np.float32(scale)
    return out


def estimate_file_size(mesh: Mesh, config: MeshExportConfig) -> int:
    """Rough byte size of an export, for display before writing.

    Exact for binary STL; the other formats use per-element averages.
    """
    v, f = mesh.vertex_count, mesh.face_count
    fmt = config.format
    if fmt is ExportFormat.STL:
        return 80 + 4 + f * 50 if config.binary else f * 250
    if fmt is ExportFormat.OBJ:
        size = v * 40 + v * 40 + f * 30
        if config.include_texture:
            size += config.texture_resolution * config.texture_resolution // 10
        return size
    if fmt is ExportFormat.PLY:
        return v * 24 + f * 16 if config.binary else v * 50 + f * 20
    return v * 30 + f * 20


class MeshExportStep(BaseStep[MeshExportInput, MeshExportOutput, MeshExportConfig]):
    name: ClassVar[str] = "mesh_export"
    label: ClassVar[str] = "Exporting mesh..."
    progress: ClassVar[float] = 0.95
    input_type: ClassVar = MeshExportInput
    output_type: ClassVar = MeshExportOutput
    config_type: ClassVar = MeshExportConfig

    def validate_inputs(self, inputs: MeshExportInput) -> bool:
        if inputs.mesh.is_empty:
            logger.error("No mesh data to export")
            return False
        if not inputs.file_name or Path(inputs.file_name).name != inputs.file_name:
            logger.error(f"Invalid export file name: {inputs.file_name!r}")
            return False
        return True

    def run(self, inputs: MeshExportInput) -> MeshExportOutput:
        cfg = self.config
        fmt = cfg.format
        if not fmt.is_supported:
            raise FormatError(f"Export format not supported: {fmt.value}")

        mesh = inputs.mesh
        output_dir = inputs.output_dir or (self.data_root / cfg.output_subdir)
        output_dir = Path(output_dir)
        stem = inputs.file_name
        file_path = output_dir / f"{stem}.{fmt.file_extension}"

        vertices = transform_vertices(mesh.vertices, cfg.center_mesh, cfg.effective_scale)
        normals = mesh.normals if mesh.has_aligned_normals else None
        if normals is None and len(mesh.normals):
            logger.warning(
                f"Normals ({len(mesh.normals)}) not aligned with vertices "
                f"({mesh.vertex_count}); exporting without normals"
            )

        texture_path = None
        material_path = None

        if fmt is ExportFormat.STL:
            from ._stl_writer import write_stl_ascii, write_stl_binary

            writer = write_stl_binary if cfg.binary else write_stl_ascii
            writer(vertices, mesh.faces, file_path)

        elif fmt is ExportFormat.OBJ:
            from ._obj_writer import write_mtl, write_obj

            if cfg.include_texture and mesh.texture_image is not None:
                from ._texture import write_texture_jpeg

                texture_name = f"{stem}_texture.jpg"
                texture_path = write_texture_jpeg(
                    mesh.texture_image,
                    output_dir / texture_name,
                    max_size=cfg.texture_resolution,
                    quality=cfg.jpeg_quality,
                )
                material_path = write_mtl(texture_name, output_dir / f"{stem}.mtl")

            texcoords = None
            if cfg.include_texture_coords and mesh.has_aligned_texture_coordinates:
                texcoords = mesh.texture_coordinates

            write_obj(
                vertices,
                normals if cfg.include_normals else None,
                mesh.faces,
                file_path,
                texture_coordinates=texcoords,
                material_lib=material_path.name if material_path else None,
            )

            if cfg.create_zip_archive and (texture_path or material_path):
                from ._archive import bundle_zip

                bundled = [p for p in (file_path, material_path, texture_path) if p]
                zip_path = bundle_zip(bundled, output_dir / f"{stem}.zip")
                result = ExportResult(
                    file_path=zip_path,
                    format=fmt,
                    file_size=zip_path.stat().st_size,
                    vertex_count=mesh.vertex_count,
                    face_count=mesh.face_count,
                    is_zip_archive=True,
                )
                logger.info(f"Mesh export complete: {zip_path} ({result.file_size} bytes)")
                return MeshExportOutput(result=result)

        elif fmt is ExportFormat.PLY:
            from ._ply_writer import write_ply

            write_ply(
                vertices,
                normals if cfg.include_normals else None,
                mesh.faces,
                file_path,
                binary=cfg.binary,
            )

        result = ExportResult(
            file_path=file_path,
            format=fmt,
            file_size=file_path.stat().st_size,
            vertex_count=mesh.vertex_count,
            face_count=mesh.face_count,
            texture_path=texture_path,
            material_path=material_path,
        )
        logger.info(
            f"Mesh export complete: {file_path} ({result.file_size} bytes, "
            f"texture={'yes' if texture_path else 'no'})"
        )
        return MeshExportOutput(result=result)
