"""Tests for S08: Mesh export step."""

import struct
import zipfile

import numpy as np
import pytest

from scanmesh.core.errors import FormatError, InputError
from scanmesh.core.mesh import Mesh
from scanmesh.steps.s02_hole_repair.contracts import HoleRepairInput
from scanmesh.steps.s02_hole_repair.step import HoleRepairStep
from scanmesh.steps.s04_normal_estimation.contracts import NormalEstimationInput
from scanmesh.steps.s04_normal_estimation.step import NormalEstimationStep
from scanmesh.steps.s08_mesh_export.config import ExportFormat, ExportUnit, MeshExportConfig
from scanmesh.steps.s08_mesh_export.contracts import MeshExportInput
from scanmesh.steps.s08_mesh_export.step import (
    MeshExportStep,
    estimate_file_size,
    transform_vertices,
)
from scanmesh.steps.s08_mesh_export._stl_writer import STL_TRIANGLE
from scanmesh.steps.s08_mesh_export._texture import fit_texture


def _has_trimesh() -> bool:
    try:
        import trimesh
        return True
    except ImportError:
        return False


def _has_plyfile() -> bool:
    try:
        import plyfile
        return True
    except ImportError:
        return False


needs_trimesh = pytest.mark.skipif(not _has_trimesh(), reason="trimesh not installed")
needs_plyfile = pytest.mark.skipif(not _has_plyfile(), reason="plyfile not installed")


def _export(mesh, data_root, file_name="scan", **config):
    step = MeshExportStep(config=MeshExportConfig(**config), data_root=data_root)
    return step.execute(MeshExportInput(mesh=mesh, file_name=file_name)).result


def _read_stl_records(path):
    data = path.read_bytes()
    (count,) = struct.unpack_from("<I", data, 80)
    return count, np.frombuffer(data, dtype=STL_TRIANGLE, offset=84)


@pytest.fixture
def cube_with_normals(unit_cube):
    return NormalEstimationStep().execute(NormalEstimationInput(mesh=unit_cube)).mesh


class TestExportConfig:
    def test_format_metadata(self):
        assert ExportFormat.STL.file_extension == "stl"
        assert ExportFormat.OBJ.mime_type == "model/obj"
        assert ExportFormat.USDZ.mime_type == "model/vnd.usdz+zip"
        assert not ExportFormat.USDZ.is_supported

    def test_effective_scale(self):
        cfg = MeshExportConfig(scale=2.0, unit=ExportUnit.MILLIMETERS)
        assert cfg.effective_scale == pytest.approx(2000.0)

    def test_texture_resolution_choices(self):
        with pytest.raises(ValueError):
            MeshExportConfig(texture_resolution=512)


class TestTransformVertices:
    def test_center_then_scale(self, unit_cube):
        out = transform_vertices(unit_cube.vertices, center=True, scale=1000.0)
        np.testing.assert_allclose(out.mean(axis=0), 0.0, atol=1e-4)
        np.testing.assert_allclose(out.min(axis=0), -500.0)
        np.testing.assert_allclose(out.max(axis=0), 500.0)

    def test_identity(self, unit_cube):
        out = transform_vertices(unit_cube.vertices, center=False, scale=1.0)
        np.testing.assert_array_equal(out, unit_cube.vertices)


class TestStlExport:
    def test_repaired_cube_binary_size(self, open_cube, data_root):
        repaired = HoleRepairStep().execute(HoleRepairInput(mesh=open_cube)).mesh
        result = _export(repaired, data_root)
        assert result.file_path == data_root / "exports" / "scan.stl"
        assert result.file_size == 684
        assert result.file_path.stat().st_size == 684
        assert result.face_count == 12

    def test_binary_records(self, unit_cube, data_root):
        result = _export(unit_cube, data_root, center_mesh=False)
        count, records = _read_stl_records(result.file_path)
        assert count == 12
        assert len(records) == 12
        # First face lies on the -Z side.
        np.testing.assert_allclose(records["normal"][0], [0, 0, -1], atol=1e-6)
        np.testing.assert_array_equal(records["attribute_bytes"], 0)
        np.testing.assert_array_equal(records["corners"][0], unit_cube.vertices[[0, 2, 1]])

    def test_out_of_range_faces_skipped(self, unit_cube, data_root):
        mesh = unit_cube.replace(faces=np.vstack([unit_cube.faces, [[0, 1, 50]]]))
        result = _export(mesh, data_root)
        count, _ = _read_stl_records(result.file_path)
        assert count == 12
        assert result.file_size == 84 + 12 * 50

    def test_millimeter_scaling(self, unit_cube, data_root):
        result = _export(unit_cube, data_root, unit=ExportUnit.MILLIMETERS)
        _, records = _read_stl_records(result.file_path)
        corners = records["corners"].reshape(-1, 3)
        np.testing.assert_allclose(corners.min(axis=0), -500.0)
        np.testing.assert_allclose(corners.max(axis=0), 500.0)

    def test_ascii(self, unit_cube, data_root):
        result = _export(unit_cube, data_root, binary=False)
        text = result.file_path.read_text()
        assert text.startswith("solid mesh\n")
        assert text.endswith("endsolid mesh\n")
        assert text.count("facet normal") == 12
        assert text.count("      vertex ") == 36

    @needs_trimesh
    def test_trimesh_reads_closed_solid(self, unit_cube, data_root):
        import trimesh

        result = _export(unit_cube, data_root)
        loaded = trimesh.load(result.file_path, force="mesh")
        assert len(loaded.faces) == 12
        assert loaded.is_watertight
        assert loaded.volume == pytest.approx(1.0, rel=1e-5)


class TestObjExport:
    def test_positions_normals_faces(self, cube_with_normals, data_root):
        result = _export(cube_with_normals, data_root, format=ExportFormat.OBJ, center_mesh=False)
        lines = result.file_path.read_text().splitlines()
        assert lines[0] == "# OBJ file exported from scanmesh"
        assert "# Vertices: 8" in lines
        assert sum(line.startswith("v ") for line in lines) == 8
        assert sum(line.startswith("vn ") for line in lines) == 8
        assert not any(line.startswith("vt ") for line in lines)
        faces = [line for line in lines if line.startswith("f ")]
        assert len(faces) == 12
        assert faces[0] == "f 1//1 3//3 2//2"
        assert "v 1.0 1.0 0.0" in lines

    def test_face_count_header_matches_written_faces(self, unit_cube, data_root):
        mesh = unit_cube.replace(faces=np.vstack([unit_cube.faces, [[0, 1, 50]]]))
        result = _export(mesh, data_root, format=ExportFormat.OBJ)
        lines = result.file_path.read_text().splitlines()
        assert "# Faces: 12" in lines
        assert sum(line.startswith("f ") for line in lines) == 12

    def test_without_normals(self, cube_with_normals, data_root):
        result = _export(cube_with_normals, data_root, format=ExportFormat.OBJ, include_normals=False)
        lines = result.file_path.read_text().splitlines()
        assert not any(line.startswith("vn ") for line in lines)
        assert [line for line in lines if line.startswith("f ")][0] == "f 1 3 2"

    def test_misaligned_normals_omitted(self, unit_cube, data_root):
        mesh = unit_cube.replace(normals=np.zeros((3, 3)))
        result = _export(mesh, data_root, format=ExportFormat.OBJ)
        assert "vn " not in result.file_path.read_text()

    def test_textured_export(self, unit_cube, data_root):
        import cv2

        mesh = unit_cube.replace(
            texture_coordinates=np.full((8, 2), 0.5),
            texture_image=np.full((64, 32, 3), 200, dtype=np.uint8),
        )
        result = _export(mesh, data_root, format=ExportFormat.OBJ, texture_resolution=1024)

        assert result.material_path == data_root / "exports" / "scan.mtl"
        assert result.texture_path == data_root / "exports" / "scan_texture.jpg"
        mtl = result.material_path.read_text()
        assert "newmtl material0" in mtl
        assert "map_Kd scan_texture.jpg" in mtl

        obj = result.file_path.read_text().splitlines()
        assert "mtllib scan.mtl" in obj
        assert "usemtl material0" in obj
        assert sum(line.startswith("vt ") for line in obj) == 8
        assert [line for line in obj if line.startswith("f ")][0] == "f 1/1 3/3 2/2"

        image = cv2.imread(str(result.texture_path))
        assert image.shape == (64, 32, 3)

    def test_texture_skipped_when_disabled(self, unit_cube, data_root):
        mesh = unit_cube.replace(
            texture_coordinates=np.zeros((8, 2)),
            texture_image=np.zeros((8, 8, 3), dtype=np.uint8),
        )
        result = _export(mesh, data_root, format=ExportFormat.OBJ, include_texture=False)
        assert result.texture_path is None
        assert result.material_path is None
        assert not (data_root / "exports" / "scan.mtl").exists()

    def test_zip_bundle(self, unit_cube, data_root):
        mesh = unit_cube.replace(
            texture_coordinates=np.zeros((8, 2)),
            texture_image=np.zeros((16, 16, 3), dtype=np.uint8),
        )
        result = _export(mesh, data_root, format=ExportFormat.OBJ, create_zip_archive=True)
        assert result.is_zip_archive
        assert result.file_path == data_root / "exports" / "scan.zip"
        with zipfile.ZipFile(result.file_path) as zf:
            assert sorted(zf.namelist()) == ["scan.mtl", "scan.obj", "scan_texture.jpg"]
        assert not (data_root / "exports" / "scan.obj").exists()

    def test_no_zip_without_texture(self, unit_cube, data_root):
        result = _export(unit_cube, data_root, format=ExportFormat.OBJ, create_zip_archive=True)
        assert not result.is_zip_archive
        assert result.file_path.suffix == ".obj"


class TestTexture:
    def test_fit_texture_preserves_aspect(self):
        out = fit_texture(np.zeros((200, 100, 3), dtype=np.uint8), 50)
        assert out.shape == (50, 25, 3)

    def test_small_texture_untouched(self):
        image = np.zeros((10, 20, 3), dtype=np.uint8)
        assert fit_texture(image, 50) is image


class TestPlyExport:
    def test_binary_layout(self, cube_with_normals, data_root):
        result = _export(cube_with_normals, data_root, format=ExportFormat.PLY)
        data = result.file_path.read_bytes()
        assert data.startswith(b"ply\nformat binary_little_endian 1.0\n")
        header_end = data.index(b"end_header\n") + len(b"end_header\n")
        header = data[:header_end].decode("ascii")
        assert "element vertex 8" in header
        assert "property float nx" in header
        assert "element face 12" in header
        assert len(data) == header_end + 8 * 24 + 12 * 13

    def test_ascii_without_normals(self, unit_cube, data_root):
        result = _export(unit_cube, data_root, format=ExportFormat.PLY, binary=False)
        lines = result.file_path.read_text().splitlines()
        assert lines[1] == "format ascii 1.0"
        assert "property float nx" not in lines
        body = lines[lines.index("end_header") + 1:]
        assert len(body) == 8 + 12
        assert body[-1].startswith("3 ")

    @needs_plyfile
    def test_plyfile_reads_binary(self, cube_with_normals, data_root):
        from plyfile import PlyData

        result = _export(cube_with_normals, data_root, format=ExportFormat.PLY, center_mesh=False)
        ply = PlyData.read(str(result.file_path))
        assert ply["vertex"].count == 8
        assert ply["face"].count == 12
        np.testing.assert_array_equal(ply["face"]["vertex_indices"][0], [0, 2, 1])
        np.testing.assert_allclose(ply["vertex"]["x"], cube_with_normals.vertices[:, 0])


class TestMeshExportStep:
    def test_usdz_not_supported(self, unit_cube, data_root):
        with pytest.raises(FormatError):
            _export(unit_cube, data_root, format=ExportFormat.USDZ)

    def test_empty_mesh_rejected(self, data_root):
        with pytest.raises(InputError):
            _export(Mesh(np.zeros((0, 3))), data_root)

    def test_file_name_with_directory_rejected(self, unit_cube, data_root):
        with pytest.raises(InputError):
            _export(unit_cube, data_root, file_name="../escape")

    def test_explicit_output_dir(self, unit_cube, tmp_path):
        step = MeshExportStep()
        out_dir = tmp_path / "custom"
        result = step.execute(
            MeshExportInput(mesh=unit_cube, file_name="part", output_dir=out_dir)
        ).result
        assert result.file_path == out_dir / "part.stl"
        assert result.file_path.exists()


class TestEstimateFileSize:
    def test_binary_stl_exact(self, unit_cube):
        assert estimate_file_size(unit_cube, MeshExportConfig()) == 684

    def test_ascii_stl(self, unit_cube):
        assert estimate_file_size(unit_cube, MeshExportConfig(binary=False)) == 3000

    def test_ply(self, unit_cube):
        cfg = MeshExportConfig(format=ExportFormat.PLY)
        assert estimate_file_size(unit_cube, cfg) == 8 * 24 + 12 * 16

    def test_obj_includes_texture_budget(self, unit_cube):
        with_tex = MeshExportConfig(format=ExportFormat.OBJ, texture_resolution=1024)
        without = MeshExportConfig(format=ExportFormat.OBJ, include_texture=False)
        assert estimate_file_size(unit_cube, without) == 8 * 80 + 12 * 30
        assert estimate_file_size(unit_cube, with_tex) - estimate_file_size(unit_cube, without) == 104857
