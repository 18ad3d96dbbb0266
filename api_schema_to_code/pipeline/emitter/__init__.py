"""
Emitter module.

Freezes the resolved graph into a GenerationModel, builds template views
and renders the artifact set.
"""

from __future__ import annotations

from .emitter import Artifact, ArtifactLayout, CodeEmitter
from .model import GenerationModel
from .templates import ArtifactKind, FunctionTemplateSet, JinjaTemplateSet, TemplateSet
from .views import (
    ApiGroupView,
    GenerationViews,
    ModelsIndexView,
    ModelView,
    OperationView,
    ParameterView,
    PropertyView,
    ResponseView,
    ViewBuilder,
)

__all__ = [
    "Artifact",
    "ArtifactLayout",
    "CodeEmitter",
    "GenerationModel",
    "ArtifactKind",
    "TemplateSet",
    "JinjaTemplateSet",
    "FunctionTemplateSet",
    "ViewBuilder",
    "GenerationViews",
    "ModelView",
    "ModelsIndexView",
    "PropertyView",
    "OperationView",
    "ParameterView",
    "ResponseView",
    "ApiGroupView",
]
