"""
Analyzer module.

Contains the schema registry and the resolution passes: inline model
promotion, normalization/deduplication and discriminator resolution.
"""

from __future__ import annotations

from .discriminator import DiscriminatorResolver
from .inline_resolver import InlineModelResolver, InlineResolution
from .name_resolver import NamingHelper, sanitize_enum_case
from .normalizer import NormalizationReport, SchemaNormalizer, merge_documents
from .registry import SchemaRegistry, fingerprint, structurally_equal

__all__ = [
    "SchemaRegistry",
    "structurally_equal",
    "fingerprint",
    "InlineModelResolver",
    "InlineResolution",
    "NamingHelper",
    "sanitize_enum_case",
    "SchemaNormalizer",
    "NormalizationReport",
    "merge_documents",
    "DiscriminatorResolver",
]
