"""
Atomic writer for generated artifact sets.

Writes a whole artifact set or nothing: every file is first written to a
temporary file next to its target, and only when all of them are staged
are they renamed into place.
"""

from __future__ import annotations

import ast
import tempfile
from collections.abc import Callable
from pathlib import Path, PurePosixPath

import structlog

from ..config import OutputConfig, OutputMode
from ..errors import GenerationError, TemplateError

logger = structlog.get_logger(__name__)


def validate_python(content: str) -> None:
    """Raise SyntaxError if content is not valid Python."""
    ast.parse(content)


class ArtifactWriter:
    """Handles atomic writes of artifact sets with validation.

    Uses a two-phase commit approach:
    1. Validate every artifact and write it to a temporary file in its target directory
    2. Atomically replace each target file

    An interrupted or failed run never leaves a target file half written,
    and a validation failure writes nothing at all.
    """

    def __init__(self, config: OutputConfig | None = None, validators: dict[str, Callable[[str], None]] | None = None):
        """Initialize the writer.

        Args:
            config: Output mode and atomicity
            validators: File suffix -> validation function raising on invalid content
        """
        self.config = config or OutputConfig()
        self.validators = validators if validators is not None else {".py": validate_python}

    def write_all(self, output_dir: Path, artifacts: dict[str, str]) -> list[Path]:
        """Write an artifact set below output_dir.

        Args:
            output_dir: Root of the generated tree
            artifacts: Relative POSIX path -> content

        Returns:
            The written paths, in artifact order

        Raises:
            ValueError: If an artifact path escapes output_dir
            FileExistsError: If a target exists and the mode is not force
            GenerationError: If an artifact fails validation
            OSError: If file operations fail
        """
        targets = [(self._target(output_dir, relative), content) for relative, content in artifacts.items()]
        self._check_existing([path for path, _ in targets])
        self._validate(artifacts)

        if not self.config.atomic_write:
            for path, content in targets:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
        else:
            self._write_atomic(targets)

        logger.info("artifacts_written", count=len(targets), output_dir=str(output_dir))
        return [path for path, _ in targets]

    def _target(self, output_dir: Path, relative: str) -> Path:
        pure = PurePosixPath(relative)
        if pure.is_absolute() or ".." in pure.parts:
            raise ValueError(f"Artifact path escapes the output directory: {relative}")
        return output_dir.joinpath(*pure.parts)

    def _check_existing(self, paths: list[Path]) -> None:
        if self.config.mode == OutputMode.FORCE:
            return
        existing = [str(path) for path in paths if path.exists()]
        if existing:
            listed = ", ".join(existing[:5]) + (f" and {len(existing) - 5} more" if len(existing) > 5 else "")
            raise FileExistsError(f"Output file(s) already exist: {listed}. Use force mode to overwrite.")

    def _validate(self, artifacts: dict[str, str]) -> None:
        issues = []
        for relative, content in artifacts.items():
            validator = self.validators.get(PurePosixPath(relative).suffix)
            if validator is None:
                continue
            try:
                validator(content)
            except (SyntaxError, ValueError) as e:
                issues.append(TemplateError(f"Generated code is not valid: {e}", path=f"Artifact {relative}"))
        if issues:
            raise GenerationError(issues, phase="output")

    def _write_atomic(self, targets: list[tuple[Path, str]]) -> None:
        staged: list[tuple[Path, Path]] = []
        try:
            for path, content in targets:
                path.parent.mkdir(parents=True, exist_ok=True)
                # Same directory ensures an atomic rename on the same filesystem
                temp_fd, temp_path_str = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", text=True)
                temp_path = Path(temp_path_str)
                staged.append((temp_path, path))
                with open(temp_fd, "w", encoding="utf-8", newline="\n") as f:
                    f.write(content)

            for temp_path, path in staged:
                temp_path.replace(path)
        except Exception:
            for temp_path, _ in staged:
                if temp_path.exists():
                    try:
                        temp_path.unlink()
                    except OSError:
                        logger.warning("temp_file_cleanup_failed", path=str(temp_path))
            raise
