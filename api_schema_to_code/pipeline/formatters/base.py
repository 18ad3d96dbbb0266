"""
Formatter contract: post-processing passes over rendered artifacts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..config import FormatterConfig, TargetLanguage


class Formatter(ABC):
    """One post-processing pass over a rendered artifact.

    Passes run in sequence, each on the previous one's output, and must be
    idempotent: formatting formatted code changes nothing.
    """

    # Languages the pass understands
    languages: frozenset[TargetLanguage] = frozenset(TargetLanguage)

    @abstractmethod
    def format(self, code: str, config: FormatterConfig) -> str:
        """Return code reformatted under config."""

    def applies_to(self, language: TargetLanguage) -> bool:
        return language in self.languages

    def is_available(self) -> bool:
        return True


def run_formatters(formatters: list[Formatter], code: str, language: TargetLanguage, config: FormatterConfig) -> str:
    """Apply, in order, every formatter that handles language and can run."""
    for formatter in formatters:
        if formatter.applies_to(language) and formatter.is_available():
            code = formatter.format(code, config)
    return code
