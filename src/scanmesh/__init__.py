"""Triangle-mesh repair, analysis and export pipeline for 3D scans."""

__version__ = "0.1.0"
