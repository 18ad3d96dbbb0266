"""
Output module: writes generated artifact sets to disk.
"""

from __future__ import annotations

from .atomic_writer import ArtifactWriter, validate_python

__all__ = ["ArtifactWriter", "validate_python"]
