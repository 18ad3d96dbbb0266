"""
Error kinds raised by the generation pipeline.

Every structural problem is a PipelineError carrying the offending
schema/operation identifier and, where known, a structural path such as
"Operation getPet, response 200, property tag". Phases record problems in
a Diagnostics collector so that one run reports every issue it can find,
then raise a single GenerationError.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for a single structural issue."""

    kind = "error"

    def __init__(self, message: str, schema: str | None = None, operation: str | None = None, path: str | None = None):
        self.message = message
        self.schema = schema
        self.operation = operation
        self.path = path
        super().__init__(self.describe())

    def describe(self) -> str:
        location = self.path
        if not location:
            parts = []
            if self.operation:
                parts.append(f"Operation {self.operation}")
            if self.schema:
                parts.append(f"Schema {self.schema}")
            location = ", ".join(parts)
        if location:
            return f"[{self.kind}] {location}: {self.message}"
        return f"[{self.kind}] {self.message}"


class UnresolvedReference(PipelineError):
    """A reference names a schema that has no registry entry."""

    kind = "UnresolvedReference"


class NameCollision(PipelineError):
    """Two structurally different schemas claim the same name."""

    kind = "NameCollision"


class UnresolvedDiscriminatorMapping(PipelineError):
    """A discriminator mapping points at a schema that does not resolve."""

    kind = "UnresolvedDiscriminatorMapping"


class DiscriminatorPropertyConflict(PipelineError):
    """The discriminator property is declared with a constant that differs from its key."""

    kind = "DiscriminatorPropertyConflict"


class EnumValueCollision(PipelineError):
    """Two enum literals sanitize to the same identifier."""

    kind = "EnumValueCollision"


class DuplicateOperationId(PipelineError):
    """Two operations share an identifier."""

    kind = "DuplicateOperationId"


class UnsupportedDialect(PipelineError):
    """The document is neither an OpenAPI 3.0 nor a 3.1 document."""

    kind = "UnsupportedDialect"


class InvalidSchema(PipelineError):
    """A schema or operation is structurally malformed."""

    kind = "InvalidSchema"


class TemplateError(PipelineError):
    """Rendering an artifact failed."""

    kind = "TemplateError"


class ConfigError(Exception):
    """Raised when the generator configuration is invalid."""

    pass


class GenerationError(Exception):
    """Aggregated failure report of a run.

    Attributes:
        issues: Every issue found, in discovery order
    """

    def __init__(self, issues: list[PipelineError], phase: str = ""):
        self.issues = list(issues)
        self.phase = phase
        header = f"Generation failed with {len(self.issues)} issue(s)"
        if phase:
            header += f" during {phase}"
        lines = [header + ":"] + [f"  - {issue.describe()}" for issue in self.issues]
        super().__init__("\n".join(lines))

    def of_kind(self, kind: type[PipelineError]) -> list[PipelineError]:
        return [issue for issue in self.issues if isinstance(issue, kind)]


class Diagnostics:
    """Collects issues across pipeline phases."""

    def __init__(self):
        self.issues: list[PipelineError] = []

    def add(self, issue: PipelineError) -> None:
        self.issues.append(issue)

    def extend(self, issues: list[PipelineError]) -> None:
        self.issues.extend(issues)

    def has_errors(self) -> bool:
        return bool(self.issues)

    def __len__(self) -> int:
        return len(self.issues)

    def raise_if_errors(self, phase: str = "") -> None:
        """Raise a GenerationError listing every collected issue, if any."""
        if self.issues:
            raise GenerationError(self.issues, phase)
