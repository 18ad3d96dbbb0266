"""
Template sets: how each artifact kind is rendered.

A template set maps an ArtifactKind to a render function taking a view and
the naming helper. The packaged jinja2 templates live under
`templates/<language>/`, with per serialization library and per test
framework subdirectories searched first.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

import jinja2

from ...utils import snake_to_pascal_case, to_camel_case, to_snake_case, to_upper_snake_case
from ..analyzer.name_resolver import NamingHelper
from ..config import GeneratorConfig, TargetLanguage, TestFramework

TEMPLATES_DIR = Path(__file__).parent.parent.parent / "templates"

RenderFunction = Callable[[Any, NamingHelper], str]


class ArtifactKind(str, Enum):
    """Kinds of generated artifacts."""

    MODEL = "model"
    ENUM = "enum"
    UNION = "union"
    MODELS_INDEX = "models_index"
    API_CLIENT = "api_client"
    API_SERVER = "api_server"
    API_TEST = "api_test"


# File extension candidates per language, in lookup order
TEMPLATE_EXTENSIONS = {
    TargetLanguage.PYTHON: ("py",),
    TargetLanguage.JAVA: ("java", "groovy"),
    TargetLanguage.KOTLIN: ("kt",),
}


class TemplateSet(ABC):
    """Maps artifact kinds to render functions."""

    @abstractmethod
    def renderer(self, kind: ArtifactKind) -> RenderFunction | None:
        """
        Render function for an artifact kind.

        Args:
            kind: The artifact kind

        Returns:
            The render function, or None when the set does not produce this kind
        """

    def supports(self, kind: ArtifactKind) -> bool:
        return self.renderer(kind) is not None

    def render(self, kind: ArtifactKind, view: Any, naming: NamingHelper) -> str:
        render = self.renderer(kind)
        if render is None:
            raise KeyError(f"Template set has no template for '{kind.value}'")
        return render(view, naming)


class FunctionTemplateSet(TemplateSet):
    """Template set backed by plain callables."""

    def __init__(self, functions: dict[ArtifactKind, RenderFunction]):
        self.functions = dict(functions)

    def renderer(self, kind: ArtifactKind) -> RenderFunction | None:
        return self.functions.get(kind)


def python_docstring(text: str | None) -> str:
    """Make text safe inside a triple-quoted Python docstring, on one line."""
    if not text:
        return ""
    text = " ".join(text.split())
    return text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"').rstrip('"')


def doc_comment(text: str | None) -> str:
    """Make text safe inside a /** */ comment, on one line."""
    if not text:
        return ""
    return " ".join(text.split()).replace("*/", "*&#47;")


def string_literal(text: Any, language: TargetLanguage = TargetLanguage.PYTHON) -> str:
    """Double-quoted string literal of the target language."""
    literal = json.dumps(str(text))
    if language == TargetLanguage.KOTLIN:
        literal = literal.replace("$", "\\$")
    return literal


class JinjaTemplateSet(TemplateSet):
    """Packaged (or user supplied) jinja2 templates for one configuration.

    Template names are `<kind>.<ext>.jinja2`. The search path is, in order:
    the user template directory (if any), `<language>/<test framework>/`,
    `<language>/<serialization library>/` and `<language>/`.
    """

    def __init__(self, config: GeneratorConfig, template_dir: Path | None = None):
        self.config = config
        language = config.language.value
        search_path = []
        if template_dir is not None:
            search_path.append(str(template_dir))
        framework = config.effective_test_framework()
        if framework != TestFramework.NONE:
            search_path.append(str(TEMPLATES_DIR / language / framework.value))
        search_path.append(str(TEMPLATES_DIR / language / config.effective_serialization_library().value))
        search_path.append(str(TEMPLATES_DIR / language))

        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(search_path),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=True,
            undefined=jinja2.StrictUndefined,
        )
        self.jinja_env.filters["pascal"] = snake_to_pascal_case
        self.jinja_env.filters["camel"] = to_camel_case
        self.jinja_env.filters["snake"] = to_snake_case
        self.jinja_env.filters["upper_snake"] = to_upper_snake_case
        self.jinja_env.filters["docstring"] = python_docstring
        self.jinja_env.filters["doc_comment"] = doc_comment
        self.jinja_env.filters["string"] = lambda text: string_literal(text, config.language)
        self._templates: dict[ArtifactKind, jinja2.Template | None] = {}

    def _template(self, kind: ArtifactKind) -> jinja2.Template | None:
        if kind not in self._templates:
            names = [f"{kind.value}.{extension}.jinja2" for extension in TEMPLATE_EXTENSIONS[self.config.language]]
            try:
                self._templates[kind] = self.jinja_env.select_template(names)
            except jinja2.TemplatesNotFound:
                self._templates[kind] = None
        return self._templates[kind]

    def template_name(self, kind: ArtifactKind) -> str | None:
        template = self._template(kind)
        return template.name if template is not None else None

    def renderer(self, kind: ArtifactKind) -> RenderFunction | None:
        template = self._template(kind)
        if template is None:
            return None

        def render(view: Any, naming: NamingHelper) -> str:
            return template.render(view=view, naming=naming, config=self.config)

        return render
