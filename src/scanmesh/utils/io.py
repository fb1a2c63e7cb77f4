"""I/O utilities: internal mesh snapshot codec and scoped output files."""

from __future__ import annotations

import logging
import struct
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator

import numpy as np

from scanmesh.core.errors import FormatError, MeshIOError
from scanmesh.core.mesh import Mesh

logger = logging.getLogger(__name__)


# ── Scoped output files ──────────────────────────────────────────────

def _remove_partial(path: Path) -> None:
    try:
        path.unlink()
        logger.debug(f"Removed partial output {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove partial output {path}: {e}")


@contextmanager
def scoped_output(path: Path, mode: str = "wb") -> Iterator[IO]:
    """Open ``path`` for writing; delete it again if the write does not complete.

    OS-level failures are re-raised as MeshIOError chained to the cause; any
    other exception propagates unchanged after the cleanup.
    """
    path = Path(path)
    kwargs = {} if "b" in mode else {"encoding": "utf-8", "newline": "\n"}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, mode, **kwargs) as f:
            yield f
    except OSError as e:
        _remove_partial(path)
        raise MeshIOError(f"Failed to write {path}: {e}") from e
    except BaseException:
        _remove_partial(path)
        raise


# ── Internal snapshot format ─────────────────────────────────────────
#
# Little-endian. Header: uint32 vertex count, uint32 normal count,
# uint32 face count, uint8 has-texcoords flag (13 bytes). Then 3 x float32
# per vertex, 3 x float32 per normal, per face a uint8 index count followed
# by that many uint32 indices, then (if flagged) 2 x float32 per vertex.

SNAPSHOT_HEADER = struct.Struct("<IIIB")
SNAPSHOT_MAX_COUNT = 10_000_000
_POINT_SIZE = 12
_TEXCOORD_SIZE = 8
_UINT32_MAX = 0xFFFFFFFF


def serialize_mesh(mesh: Mesh) -> bytes:
    """Encode a mesh into the internal snapshot format."""
    faces = mesh.faces
    if len(faces) and (faces.min() < 0 or faces.max() > _UINT32_MAX):
        raise FormatError("Face indices do not fit the snapshot's uint32 index type")

    texcoords = mesh.texture_coordinates
    if texcoords is not None and not mesh.has_aligned_texture_coordinates:
        logger.warning(
            f"Texture coordinates ({len(texcoords)}) not aligned with vertices "
            f"({mesh.vertex_count}); omitting them from snapshot"
        )
        texcoords = None

    parts = [
        SNAPSHOT_HEADER.pack(
            mesh.vertex_count, len(mesh.normals), mesh.face_count,
            1 if texcoords is not None else 0,
        ),
        mesh.vertices.astype("<f4").tobytes(),
        mesh.normals.astype("<f4").tobytes(),
    ]

    face_records = np.zeros(len(faces), dtype=[("count", "u1"), ("indices", "<u4", (3,))])
    face_records["count"] = 3
    face_records["indices"] = faces
    parts.append(face_records.tobytes())

    if texcoords is not None:
        parts.append(texcoords.astype("<f4").tobytes())

    return b"".join(parts)


def deserialize_mesh(data: bytes) -> Mesh:
    """Decode a snapshot, validating sizes before every section is read.

    Raises:
        FormatError: if the data is truncated, a count exceeds the sanity
            ceiling, the texcoord flag is not 0 or 1, a face record runs past
            the end of the buffer, or bytes are left after the last section.
    """
    data = bytes(data)
    size = len(data)
    if size < SNAPSHOT_HEADER.size:
        raise FormatError(f"Snapshot too short for header: {size} bytes")

    vertex_count, normal_count, face_count, has_texcoords = SNAPSHOT_HEADER.unpack_from(data, 0)
    for label, count in (("vertex", vertex_count), ("normal", normal_count), ("face", face_count)):
        if count > SNAPSHOT_MAX_COUNT:
            raise FormatError(f"Snapshot {label} count {count} exceeds limit {SNAPSHOT_MAX_COUNT}")
    if has_texcoords not in (0, 1):
        raise FormatError(f"Snapshot texcoord flag must be 0 or 1, got {has_texcoords}")

    offset = SNAPSHOT_HEADER.size
    min_size = offset + (vertex_count + normal_count) * _POINT_SIZE
    if size < min_size:
        raise FormatError(f"Snapshot truncated: need at least {min_size} bytes, got {size}")

    vertices = np.frombuffer(data, dtype="<f4", count=vertex_count * 3, offset=offset)
    offset += vertex_count * _POINT_SIZE
    normals = np.frombuffer(data, dtype="<f4", count=normal_count * 3, offset=offset)
    offset += normal_count * _POINT_SIZE

    polygons: list[tuple[int, ...]] = []
    for face_idx in range(face_count):
        if offset + 1 > size:
            raise FormatError(f"Snapshot truncated in face {face_idx} header")
        n = data[offset]
        offset += 1
        if offset + 4 * n > size:
            raise FormatError(f"Snapshot truncated in face {face_idx} indices")
        polygons.append(struct.unpack_from(f"<{n}I", data, offset))
        offset += 4 * n

    texcoords = None
    if has_texcoords == 1:
        needed = vertex_count * _TEXCOORD_SIZE
        if offset + needed > size:
            raise FormatError(
                f"Snapshot truncated in texture coordinates: need {needed} bytes, "
                f"{size - offset} left"
            )
        texcoords = np.frombuffer(data, dtype="<f4", count=vertex_count * 2, offset=offset)
        offset += needed

    if offset != size:
        raise FormatError(f"Snapshot has {size - offset} trailing bytes after the last section")

    return Mesh.from_polygons(
        vertices.astype(np.float32),
        normals=normals.astype(np.float32),
        polygons=polygons,
        texture_coordinates=None if texcoords is None else texcoords.astype(np.float32),
    )


def save_snapshot(mesh: Mesh, path: Path) -> Path:
    """Write a mesh snapshot to disk."""
    path = Path(path)
    payload = serialize_mesh(mesh)
    with scoped_output(path, "wb") as f:
        f.write(payload)
    logger.info(f"Snapshot saved: {path} ({len(payload)} bytes, {mesh!r})")
    return path


def load_snapshot(path: Path) -> Mesh:
    """Read a mesh snapshot from disk."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise MeshIOError(f"Failed to read snapshot {path}: {e}") from e
    mesh = deserialize_mesh(data)
    logger.info(f"Snapshot loaded: {path} ({mesh!r})")
    return mesh
