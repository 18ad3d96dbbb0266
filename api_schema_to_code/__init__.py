"""API Schema to Code Generator

A Python package for generating code from OpenAPI 3.0 and 3.1 documents.
Supports Python, Java and Kotlin model, client, server and test
generation through template sets, with deduplicated inline models and
configurable output options.
"""

__version__ = "1.0.1"

from .pipeline import (
    ArtifactWriter,
    ConfigError,
    FormatterConfig,
    GenerationError,
    GeneratorConfig,
    OutputConfig,
    OutputMode,
    PipelineGenerator,
    TargetLanguage,
)

__all__ = [
    "PipelineGenerator",
    "GeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "OutputMode",
    "TargetLanguage",
    "ConfigError",
    "GenerationError",
    "ArtifactWriter",
]
