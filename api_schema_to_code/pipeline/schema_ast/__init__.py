"""
Schema graph module.

Contains the node definitions, the dialect adapters and the document parser.
"""

from __future__ import annotations

from .dialects import Oas30Dialect, Oas31Dialect, SchemaDialect
from .nodes import (
    ApiDocument,
    CompositionKind,
    Constraints,
    Dialect,
    Discriminator,
    Operation,
    Parameter,
    ParameterLocation,
    PropertyDef,
    RequestBody,
    Response,
    SchemaKind,
    SchemaNode,
)
from .parser import DocumentParser, detect_dialect, synthesize_operation_id

__all__ = [
    "ApiDocument",
    "CompositionKind",
    "Constraints",
    "Dialect",
    "Discriminator",
    "Operation",
    "Parameter",
    "ParameterLocation",
    "PropertyDef",
    "RequestBody",
    "Response",
    "SchemaKind",
    "SchemaNode",
    "SchemaDialect",
    "Oas30Dialect",
    "Oas31Dialect",
    "DocumentParser",
    "detect_dialect",
    "synthesize_operation_id",
]
