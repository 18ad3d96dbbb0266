"""
Code formatters for generated artifacts.
"""

from __future__ import annotations

from .base import Formatter, run_formatters
from .black_formatter import BlackFormatter
from .source_formatter import SourceFormatter, split_top_level

__all__ = ["Formatter", "BlackFormatter", "SourceFormatter", "run_formatters", "split_top_level"]
