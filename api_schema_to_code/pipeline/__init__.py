"""
Pipeline - API description to code generator.

This module provides a multi-phase architecture for generating client,
server, model and test code from OpenAPI 3.0 / 3.1 documents:

1. Phase 1 (Parser): Parse documents and unify dialects into schema nodes
2. Phase 2 (Analyzer): Register schemas, promote inline schemas,
   deduplicate, resolve discriminators
3. Phase 3 (Type mapping): Map schema nodes to target-language types
4. Phase 4 (Emitter): Build views and render templates concurrently
5. Phase 5 (Formatter): Normalize layout and imports, optional black pass
6. Phase 6 (Output): Write the artifact set atomically
"""

from __future__ import annotations

from .config import (
    DateTimeFormat,
    DuplicatePolicy,
    FormatterConfig,
    GeneratorConfig,
    NamingCase,
    OutputConfig,
    OutputKind,
    OutputMode,
    SerializationLibrary,
    TargetLanguage,
    TestFramework,
)
from .errors import ConfigError, Diagnostics, GenerationError, PipelineError
from .generator import PipelineGenerator, load_document
from .log import configure_logging
from .output import ArtifactWriter

__all__ = [
    "PipelineGenerator",
    "load_document",
    "GeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "OutputMode",
    "OutputKind",
    "TargetLanguage",
    "TestFramework",
    "NamingCase",
    "SerializationLibrary",
    "DuplicatePolicy",
    "DateTimeFormat",
    "ConfigError",
    "Diagnostics",
    "GenerationError",
    "PipelineError",
    "ArtifactWriter",
    "configure_logging",
]
