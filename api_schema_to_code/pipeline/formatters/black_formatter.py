"""
Optional black pass over generated Python artifacts.

black is not a runtime dependency. When it is missing the pass logs once
and leaves artifacts as the source formatter produced them.
"""

from __future__ import annotations

import importlib
import importlib.util

import structlog

from ..config import FormatterConfig, TargetLanguage
from .base import Formatter

logger = structlog.get_logger(__name__)


class BlackFormatter(Formatter):
    """Runs black over Python artifacts already normalized by SourceFormatter."""

    languages = frozenset({TargetLanguage.PYTHON})

    def __init__(self):
        self._module = None
        self._checked = False

    def is_available(self) -> bool:
        if not self._checked:
            if importlib.util.find_spec("black") is None:
                logger.warning("black_unavailable", hint="pip install black")
            else:
                self._module = importlib.import_module("black")
            self._checked = True
        return self._module is not None

    def mode(self, config: FormatterConfig):
        """black.Mode for the formatter configuration; unknown target versions are ignored."""
        black = self._module
        target = getattr(black.TargetVersion, config.target_version.upper(), None) if config.target_version else None
        return black.Mode(target_versions={target} if target is not None else set(), line_length=config.line_length)

    def format(self, code: str, config: FormatterConfig) -> str:
        if not self.is_available():
            return code
        try:
            return self._module.format_str(code, mode=self.mode(config))
        except self._module.InvalidInput as e:
            # The writer's validation reports invalid artifacts
            logger.warning("black_rejected_artifact", error=str(e).splitlines()[0] if str(e) else "")
            return code
