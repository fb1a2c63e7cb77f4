"""ZIP bundling of an exported file set."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

from scanmesh.utils.io import scoped_output

logger = logging.getLogger(__name__)


def bundle_zip(files: list[Path], output_path: Path) -> Path:
    """Pack ``files`` (flat, by file name) into a deflated ZIP, then delete them.

    The originals are only removed once the archive has been written.
    """
    with scoped_output(output_path, "wb") as f:
        with zipfile.ZipFile(f, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for path in files:
                zf.write(path, arcname=path.name)

    for path in files:
        path.unlink()

    logger.info(f"ZIP archive exported: {output_path} ({len(files)} files)")
    return output_path
