"""
Code emitter: renders the artifact set of a generation model.

Artifacts are independent once views are built, so they are rendered and
formatted on a thread pool. The result is ordered by path and is the same
for the same model and templates, whatever order the workers finish in.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

import structlog

from ..config import GeneratorConfig, OutputKind, TargetLanguage, TestFramework
from ..errors import GenerationError, TemplateError
from ..formatters import BlackFormatter, Formatter, SourceFormatter, run_formatters
from .model import GenerationModel
from .templates import ArtifactKind, RenderFunction, TemplateSet
from .views import ApiGroupView, GenerationViews, ModelView, ViewBuilder

logger = structlog.get_logger(__name__)

SOURCE_ROOTS = {
    TargetLanguage.JAVA: ("src/main/java", "src/test/java", "java"),
    TargetLanguage.KOTLIN: ("src/main/kotlin", "src/test/kotlin", "kt"),
}


@dataclass(frozen=True)
class Artifact:
    """One file to render."""

    path: str
    kind: ArtifactKind
    view: Any


class ArtifactLayout:
    """Output paths of every artifact kind for one configuration."""

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self.language = config.language
        self.package_path = config.package_name.replace(".", "/")

    def model_path(self, view: ModelView) -> str:
        if self.language == TargetLanguage.PYTHON:
            return f"{self.package_path}/models/{view.module}.py"
        main, _, extension = SOURCE_ROOTS[self.language]
        return f"{main}/{self.package_path}/model/{view.name}.{extension}"

    def models_index_path(self) -> str:
        return f"{self.package_path}/models/__init__.py"

    def client_path(self, view: ApiGroupView) -> str:
        if self.language == TargetLanguage.PYTHON:
            return f"{self.package_path}/api/{view.module}.py"
        main, _, extension = SOURCE_ROOTS[self.language]
        return f"{main}/{self.package_path}/api/{view.name}.{extension}"

    def server_path(self, view: ApiGroupView) -> str:
        if self.language == TargetLanguage.PYTHON:
            return f"{self.package_path}/server/{view.server_module}.py"
        main, _, extension = SOURCE_ROOTS[self.language]
        return f"{main}/{self.package_path}/controller/{view.server_name}.{extension}"

    def test_path(self, view: ApiGroupView) -> str:
        if self.language == TargetLanguage.PYTHON:
            return f"tests/test_{view.module}.py"
        if self.config.effective_test_framework() == TestFramework.SPOCK:
            return f"src/test/groovy/{self.package_path}/api/{view.test_name}.groovy"
        _, test, extension = SOURCE_ROOTS[self.language]
        return f"{test}/{self.package_path}/api/{view.test_name}.{extension}"


class CodeEmitter:
    """Renders views through a template set and formats the results."""

    def __init__(self, formatters: list[Formatter] | None = None):
        self._formatters = formatters

    def plan(self, config: GeneratorConfig, views: GenerationViews, template_set: TemplateSet) -> list[Artifact]:
        """Every artifact the configuration asks for and the template set can render."""
        layout = ArtifactLayout(config)
        kinds = set(config.output_kinds)
        artifacts = []

        if OutputKind.MODELS in kinds:
            for view in views.models:
                artifacts.append(Artifact(layout.model_path(view), view.kind, view))
            if config.language == TargetLanguage.PYTHON:
                artifacts.append(Artifact(layout.models_index_path(), ArtifactKind.MODELS_INDEX, views.index))

        for view in views.groups:
            if OutputKind.CLIENT in kinds:
                artifacts.append(Artifact(layout.client_path(view), ArtifactKind.API_CLIENT, view))
            if OutputKind.SERVER in kinds:
                artifacts.append(Artifact(layout.server_path(view), ArtifactKind.API_SERVER, view))
            if config.effective_test_framework() != TestFramework.NONE:
                artifacts.append(Artifact(layout.test_path(view), ArtifactKind.API_TEST, view))

        supported = [artifact for artifact in artifacts if template_set.supports(artifact.kind)]
        skipped = sorted({artifact.kind.value for artifact in artifacts} - {artifact.kind.value for artifact in supported})
        if skipped:
            logger.debug("artifact_kinds_skipped", kinds=skipped)
        return supported

    def formatters(self, config: GeneratorConfig) -> list[Formatter]:
        if self._formatters is not None:
            return self._formatters
        root = config.package_name.split(".")[0]
        formatters: list[Formatter] = [SourceFormatter(config.language, local_packages=(root,))]
        if config.formatter.use_black:
            formatters.append(BlackFormatter())
        return formatters

    def emit(self, model: GenerationModel, template_set: TemplateSet) -> dict[str, str]:
        """
        Render every artifact of a generation model.

        Args:
            model: The frozen generation model
            template_set: Templates to render with

        Returns:
            Path (relative to the output directory) -> file content, ordered by path

        Raises:
            GenerationError: listing every artifact that failed to render; no partial set is returned
        """
        config = model.config
        builder = ViewBuilder(model)
        views = builder.build()
        artifacts = self.plan(config, views, template_set)
        formatters = self.formatters(config)

        # Resolve templates up front: workers only render
        renderers = {kind: template_set.renderer(kind) for kind in {artifact.kind for artifact in artifacts}}

        results: dict[str, str] = {}
        issues = []
        with ThreadPoolExecutor(max_workers=config.render_workers) as pool:
            futures = [
                (artifact, pool.submit(self._render, artifact, renderers[artifact.kind], builder.naming, formatters, config))
                for artifact in artifacts
            ]
            for artifact, future in futures:
                try:
                    results[artifact.path] = future.result()
                except Exception as e:
                    issues.append(
                        TemplateError(
                            f"{type(e).__name__}: {e}",
                            schema=getattr(artifact.view, "schema_name", None),
                            path=f"Artifact {artifact.path} ({artifact.kind.value})",
                        )
                    )

        if issues:
            issues.sort(key=lambda issue: issue.path)
            raise GenerationError(issues, phase="emission")

        logger.info("artifacts_emitted", count=len(results), language=config.language.value)
        return dict(sorted(results.items()))

    def _render(self, artifact: Artifact, render: RenderFunction, naming, formatters: list[Formatter], config: GeneratorConfig) -> str:
        return run_formatters(formatters, render(artifact.view, naming), config.language, config.formatter)
