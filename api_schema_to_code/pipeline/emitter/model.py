"""
Generation model: the frozen input of the emitter.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..analyzer.registry import SchemaRegistry
from ..config import GeneratorConfig
from ..schema_ast.nodes import Operation, SchemaNode


@dataclass(frozen=True)
class GenerationModel:
    """Registry snapshot plus operations, read-only once handed to the emitter.

    Attributes:
        schemas: (name, schema) pairs in registration order
        aliases: (alias, canonical name) pairs left behind by deduplication
        operations: Every operation, webhooks included
        config: The configuration the run was resolved under
        generation_comment: Header comment of every artifact, or None
    """

    schemas: tuple[tuple[str, SchemaNode], ...]
    operations: tuple[Operation, ...]
    config: GeneratorConfig
    title: str = ""
    version: str = ""
    servers: tuple[str, ...] = ()
    aliases: tuple[tuple[str, str], ...] = ()
    generation_comment: str | None = None

    @staticmethod
    def freeze(
        registry: SchemaRegistry,
        operations: list[Operation],
        config: GeneratorConfig,
        title: str = "",
        version: str = "",
        servers: list[str] | None = None,
        generation_comment: str | None = None,
    ) -> GenerationModel:
        """Snapshot a resolved registry and operation list."""
        return GenerationModel(
            schemas=tuple(registry.all_entries()),
            operations=tuple(operations),
            config=config,
            title=title,
            version=version,
            servers=tuple(servers or ()),
            aliases=tuple(sorted(registry.aliases().items())),
            generation_comment=generation_comment,
        )

    def build_registry(self) -> SchemaRegistry:
        """A registry over the snapshot, for lookups during view building."""
        registry = SchemaRegistry()
        for name, node in self.schemas:
            registry.register(name, node)
        for alias, canonical in self.aliases:
            registry.add_alias(alias, canonical)
        return registry

    @property
    def api_operations(self) -> tuple[Operation, ...]:
        """Operations that get client/server code (webhooks only contribute models)."""
        return tuple(operation for operation in self.operations if not operation.webhook)
