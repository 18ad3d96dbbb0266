"""
Type mapping module.

Language profiles and the TypeMapper turning schema nodes into
target-language type expressions.
"""

from __future__ import annotations

from .profiles import Import, LanguageProfile, build_profile
from .type_mapper import EnumCase, TypeExpression, TypeMapper

__all__ = [
    "Import",
    "LanguageProfile",
    "build_profile",
    "EnumCase",
    "TypeExpression",
    "TypeMapper",
]
