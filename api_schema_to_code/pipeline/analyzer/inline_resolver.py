"""
Inline model resolver.

Walks every registered schema and every operation, promotes anonymous
complex schemas (objects with properties, enums, compositions) to named
registry entries and rewrites their use sites to reference nodes.
Children are resolved before their parent, so two inline schemas whose
nested inline parts are equal also end up equal and share one entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from ..config import GeneratorConfig
from ..schema_ast.nodes import Operation, SchemaKind, SchemaNode
from .name_resolver import NamingHelper
from .registry import SchemaRegistry, fingerprint, structurally_equal

logger = structlog.get_logger(__name__)


@dataclass
class _Promotion:
    """Bookkeeping for a node whose name is reserved while its children are visited."""

    name: str
    back_referenced: bool = False


@dataclass
class InlineResolution:
    """Outcome of an inline resolution run."""

    # Promoted name -> anchor it was synthesized from
    promoted: dict[str, str] = field(default_factory=dict)

    # Use sites rewritten to an existing entry instead of a new one
    reused: int = 0


class InlineModelResolver:
    """Promotes inline schemas to registry entries."""

    def __init__(self, registry: SchemaRegistry, naming: NamingHelper, config: GeneratorConfig):
        self.registry = registry
        self.naming = naming
        self.config = config
        self.result = InlineResolution()

        self._visited: set[str] = set()
        self._reserved: set[str] = set()
        self._in_progress: dict[int, _Promotion] = {}
        self._promoted_by_fingerprint: dict[tuple, list[str]] = {}

    def resolve(self, operations: list[Operation]) -> InlineResolution:
        """
        Promote inline schemas of the registry and the operations.

        Args:
            operations: Operations (webhooks included), mutated in place

        Returns:
            InlineResolution with the promoted names
        """
        for name, node in self.registry.all_entries():
            self._visit_named(name, node)

        for operation in operations:
            op_id = operation.operation_id
            for param in operation.parameters:
                if param.schema is not None:
                    param.schema = self._visit(param.schema, f"{op_id}_{param.name}")
            body = operation.request_body
            if body is not None and body.schema is not None:
                body.schema = self._visit(body.schema, f"{op_id}_request")
            for status, response in operation.responses.items():
                if response.schema is not None:
                    response.schema = self._visit(response.schema, f"{op_id}_{status}_response")

        logger.info("inline_schemas_resolved", promoted=len(self.result.promoted), reused=self.result.reused)
        return self.result

    def _visit_named(self, name: str, node: SchemaNode) -> None:
        if name in self._visited:
            return
        self._visited.add(name)
        self._visit_children(node, name)

    def _visit_children(self, node: SchemaNode, anchor: str) -> None:
        for prop_name, prop in node.properties.items():
            if prop.schema is not None:
                prop.schema = self._visit(prop.schema, f"{anchor}_{prop_name}")
        if isinstance(node.additional_properties, SchemaNode):
            node.additional_properties = self._visit(node.additional_properties, f"{anchor}_value")
        if node.items is not None:
            node.items = self._visit(node.items, f"{anchor}_inner")
        if node.members:
            kind = node.composition.value if node.composition else "member"
            node.members = [self._visit(member, f"{anchor}_{kind}_{index}") for index, member in enumerate(node.members)]

    def _visit(self, node: SchemaNode, anchor: str) -> SchemaNode:
        """Return the node to store at the use site."""
        if node.is_reference:
            return node
        if node.name is not None:
            # A registered node reached through a shared instance
            self._visit_named(node.name, node)
            return self._use_site(node, node.name)

        promotion = self._in_progress.get(id(node))
        if promotion is not None:
            promotion.back_referenced = True
            return SchemaNode.reference(promotion.name, source_path=node.source_path)

        if not self._is_promotable(node):
            self._visit_children(node, anchor)
            return node

        return self._promote(node, anchor)

    def _is_promotable(self, node: SchemaNode) -> bool:
        if node.kind == SchemaKind.OBJECT:
            return bool(node.properties)
        if node.kind == SchemaKind.COMPOSED:
            # "type: [string, integer]" style unions stay inline
            return node.discriminator is not None or any(
                member.kind not in (SchemaKind.PRIMITIVE, SchemaKind.BOOLEAN_SCHEMA) for member in node.members
            )
        return node.kind == SchemaKind.ENUM

    def _promote(self, node: SchemaNode, anchor: str) -> SchemaNode:
        candidate = node.title if self.config.use_title_for_inline_names and node.title else anchor
        base = self.naming.schema_name(candidate)
        name = self._reserve(base)

        promotion = _Promotion(name=name)
        self._in_progress[id(node)] = promotion
        try:
            self._visit_children(node, name)
        finally:
            del self._in_progress[id(node)]

        # The reference carries nullable/default; the entry only the shape
        site = SchemaNode.reference(
            name,
            source_path=node.source_path,
            nullable=node.nullable,
            default=node.default,
            has_default=node.has_default,
            description=node.description,
            read_only=node.read_only,
            write_only=node.write_only,
        )
        node.nullable = False
        node.default = None
        node.has_default = False
        node.read_only = False
        node.write_only = False

        if not promotion.back_referenced:
            existing = self._find_existing(node, base)
            if existing is not None:
                self._reserved.discard(name)
                self.result.reused += 1
                site.ref = existing
                return site

        self.registry.register(name, node)
        self._reserved.discard(name)
        self._visited.add(name)
        self._promoted_by_fingerprint.setdefault(fingerprint(node, self.registry), []).append(name)
        self.result.promoted[name] = anchor
        logger.debug("inline_schema_promoted", name=name, anchor=anchor, path=node.source_path)
        return site

    def _find_existing(self, node: SchemaNode, base: str) -> str | None:
        """An entry with the same content: earlier promotions first, then the candidate name itself."""
        for previous in self._promoted_by_fingerprint.get(fingerprint(node, self.registry), []):
            if structurally_equal(self.registry.resolve(previous), node, self.registry):
                return previous
        if base in self.registry and structurally_equal(self.registry.resolve(base), node, self.registry):
            return self.registry.canonical_name(base)
        return None

    def _reserve(self, base: str) -> str:
        """Pick base, base1, base2, ... whichever is free."""
        name = base
        counter = 1
        while name in self.registry or name in self._reserved:
            name = f"{base}{counter}"
            counter += 1
        self._reserved.add(name)
        return name

    def _use_site(self, node: SchemaNode, name: str) -> SchemaNode:
        return SchemaNode.reference(name, source_path=node.source_path)
