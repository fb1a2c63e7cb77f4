"""Configuration for Step 08: Mesh export."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class ExportFormat(str, Enum):
    STL = "stl"
    OBJ = "obj"
    PLY = "ply"
    USDZ = "usdz"

    @property
    def file_extension(self) -> str:
        return self.value

    @property
    def mime_type(self) -> str:
        return {
            ExportFormat.STL: "model/stl",
            ExportFormat.OBJ: "model/obj",
            ExportFormat.PLY: "model/ply",
            ExportFormat.USDZ: "model/vnd.usdz+zip",
        }[self]

    @property
    def is_supported(self) -> bool:
        # USDZ needs a scene-description toolkit; declared but not written yet.
        return self is not ExportFormat.USDZ


class ExportUnit(str, Enum):
    MILLIMETERS = "mm"
    CENTIMETERS = "cm"
    METERS = "m"
    INCHES = "in"

    @property
    def scale_from_meters(self) -> float:
        return {
            ExportUnit.MILLIMETERS: 1000.0,
            ExportUnit.CENTIMETERS: 100.0,
            ExportUnit.METERS: 1.0,
            ExportUnit.INCHES: 39.3701,
        }[self]


class MeshExportConfig(BaseModel):
    format: ExportFormat = Field(ExportFormat.STL, description="Output file format")
    scale: float = Field(1.0, gt=0, description="Uniform scale applied after centering")
    unit: ExportUnit = Field(
        ExportUnit.METERS, description="Output unit; its factor from meters multiplies scale"
    )
    center_mesh: bool = Field(True, description="Translate the vertex centroid to the origin")
    binary: bool = Field(True, description="Binary encoding for STL and PLY")

    include_normals: bool = Field(
        True, description="OBJ: write vn lines; PLY: write nx/ny/nz vertex properties"
    )
    include_texture_coords: bool = Field(True, description="OBJ: write vt lines")
    include_texture: bool = Field(True, description="OBJ: write MTL + JPEG texture when available")
    texture_resolution: Literal[1024, 2048, 4096] = Field(
        2048, description="Longest texture side; larger images are downscaled"
    )
    jpeg_quality: int = Field(85, ge=1, le=100, description="Texture JPEG quality")
    create_zip_archive: bool = Field(
        False, description="OBJ: bundle OBJ + MTL + texture into <name>.zip"
    )

    output_subdir: str = Field(
        "exports", description="Directory under data_root used when the input names none"
    )

    @property
    def effective_scale(self) -> float:
        return self.scale * self.unit.scale_from_meters
