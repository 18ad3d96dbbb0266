"""
Pipeline generator: runs every phase from raw documents to artifacts.

1. Ingestion: load and parse each document, unify its dialect
2. Merge: combine documents into one registry (duplicate policy)
3. Inline resolution: promote inline object/enum/union schemas
4. Normalization: deduplicate, canonicalize references, clean operations
5. Reference check: every reference must resolve
6. Discriminator resolution
7. Emission: freeze a GenerationModel, build views, render and format
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog
import yaml

from .analyzer import DiscriminatorResolver, InlineModelResolver, NamingHelper, SchemaNormalizer, SchemaRegistry, merge_documents
from .config import GeneratorConfig
from .emitter import CodeEmitter, GenerationModel, JinjaTemplateSet, TemplateSet
from .errors import Diagnostics, GenerationError, InvalidSchema, UnresolvedReference
from .schema_ast import Dialect, DocumentParser, Operation, SchemaNode

logger = structlog.get_logger(__name__)


def load_document(path: Path) -> dict[str, Any]:
    """
    Load an API description from a JSON or YAML file.

    Args:
        path: The document; `.json` files are read as JSON, anything else as YAML

    Returns:
        The raw document

    Raises:
        GenerationError: If the file cannot be parsed or is not a mapping
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        document = json.loads(text) if Path(path).suffix.lower() == ".json" else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise GenerationError([InvalidSchema(f"Cannot parse document: {e}", path=str(path))], phase="ingestion") from e
    if not isinstance(document, dict):
        raise GenerationError([InvalidSchema("Document root is not a mapping", path=str(path))], phase="ingestion")
    return document


def iter_schema_sites(node: SchemaNode, location: str) -> Iterator[tuple[str, SchemaNode]]:
    """Yield (structural path, node) for a schema and its anonymous descendants."""
    yield location, node
    for name, prop in node.properties.items():
        if prop.schema is not None and prop.schema.name is None:
            yield from iter_schema_sites(prop.schema, f"{location}, property {name}")
    if isinstance(node.additional_properties, SchemaNode) and node.additional_properties.name is None:
        yield from iter_schema_sites(node.additional_properties, f"{location}, additional properties")
    if node.items is not None and node.items.name is None:
        yield from iter_schema_sites(node.items, f"{location}, items")
    for index, member in enumerate(node.members):
        if member.name is None:
            yield from iter_schema_sites(member, f"{location}, {node.composition.value if node.composition else 'member'} {index}")


def check_references(registry: SchemaRegistry, operations: list[Operation], diagnostics: Diagnostics) -> int:
    """Record an UnresolvedReference for every reference without a registry entry.

    Returns:
        The number of unresolved references found
    """
    roots = [(f"Schema {name}", node) for name, node in registry.all_entries()]
    for operation in operations:
        roots.extend(operation.schema_sites())

    found = 0
    for location, root in roots:
        for path, node in iter_schema_sites(root, location):
            if node.is_reference and node.ref not in registry:
                found += 1
                diagnostics.add(
                    UnresolvedReference(
                        f"Reference to unknown schema '{node.ref}'",
                        schema=node.ref,
                        path=path,
                    )
                )
    return found


class PipelineGenerator:
    """Generates an artifact set from one or more API descriptions.

    Args:
        config: Generator configuration (validated on construction)
        template_set: Templates to render with; the packaged jinja2 templates by default
        dialect: Force a dialect instead of detecting it from the `openapi` field
        command_line: Command recorded in the generated-file header comment
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        template_set: TemplateSet | None = None,
        dialect: Dialect | None = None,
        command_line: str | None = None,
    ):
        self.config = config or GeneratorConfig()
        self.config.validate()
        self.template_set = template_set or JinjaTemplateSet(self.config)
        self.dialect = dialect
        self.command_line = command_line

    def generation_comment(self) -> str | None:
        if not self.config.add_generation_comment:
            return None
        return f"This file was generated by {self.command_line or 'api_schema_to_code'}. Do not edit it by hand."

    def resolve(self, documents: list[dict[str, Any]], sources: list[str] | None = None) -> GenerationModel:
        """
        Run every phase up to (not including) emission.

        Args:
            documents: Raw documents, in precedence order
            sources: Labels of the documents for diagnostics (file names)

        Returns:
            The frozen generation model

        Raises:
            GenerationError: Listing every ingestion and resolution issue found,
                labelled with the earliest failing phase
        """
        if not documents:
            raise GenerationError([InvalidSchema("No input documents")], phase="ingestion")
        sources = list(sources) if sources is not None else [f"document{index + 1}" for index in range(len(documents))]

        diagnostics = Diagnostics()
        parser = DocumentParser(diagnostics, sort_operations=self.config.sort_operations)
        parsed = [parser.parse(document, dialect=self.dialect, source=source) for document, source in zip(documents, sources)]
        registry, operations = merge_documents(parsed, self.config.duplicate_policy, diagnostics, self.config.sort_operations)
        # Malformed schemas were replaced by `any` placeholders, so resolution still runs
        phase = "ingestion" if diagnostics.has_errors() else "resolution"

        naming = NamingHelper(self.config)
        InlineModelResolver(registry, naming, self.config).resolve(operations)
        SchemaNormalizer(self.config).normalize(registry, operations)
        check_references(registry, operations, diagnostics)
        DiscriminatorResolver(registry).resolve(diagnostics)
        diagnostics.raise_if_errors(phase)

        first = parsed[0]
        return GenerationModel.freeze(
            registry,
            operations,
            self.config,
            title=first.title,
            version=first.version,
            servers=first.servers,
            generation_comment=self.generation_comment(),
        )

    def generate(self, documents: list[dict[str, Any]], sources: list[str] | None = None) -> dict[str, str]:
        """
        Generate the artifact set.

        Returns:
            Relative path -> file content, ordered by path
        """
        model = self.resolve(documents, sources)
        artifacts = CodeEmitter().emit(model, self.template_set)
        logger.info("generation_finished", artifacts=len(artifacts), schemas=len(model.schemas), operations=len(model.operations))
        return artifacts
