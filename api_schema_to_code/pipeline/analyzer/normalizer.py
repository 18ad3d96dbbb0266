"""
Schema normalizer and deduplicator.

Collapses structurally identical registry entries onto the first one
registered, rewrites every reference to canonical names and cleans the
operation lists. Also merges documents from independent sources into one
registry according to the duplicate policy.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from ..config import DuplicatePolicy, GeneratorConfig
from ..errors import Diagnostics, DuplicateOperationId, NameCollision
from ..schema_ast.nodes import ApiDocument, CompositionKind, Operation
from ..schema_ast.parser import HTTP_METHODS
from .registry import SchemaRegistry, fingerprint, structurally_equal

logger = structlog.get_logger(__name__)


@dataclass
class NormalizationReport:
    """What a normalization run changed."""

    # Alias -> canonical name for every entry merged by this run
    merged: dict[str, str] = field(default_factory=dict)

    # Number of references rewritten to a canonical name
    rewritten_references: int = 0

    # Duplicate tags, security requirements and parameters dropped from operations
    removed_operation_duplicates: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.merged or self.rewritten_references or self.removed_operation_duplicates)


class SchemaNormalizer:
    """Deduplicates the registry and canonicalizes references."""

    def __init__(self, config: GeneratorConfig | None = None):
        self.config = config or GeneratorConfig()

    def normalize(self, registry: SchemaRegistry, operations: list[Operation]) -> NormalizationReport:
        """
        Normalize the registry and the operations in place.

        Running it twice is a no-op the second time.

        Args:
            registry: The schema registry
            operations: The operations referencing registry entries

        Returns:
            NormalizationReport describing the changes
        """
        report = NormalizationReport()

        # Merging can make other entries equal (references compare by canonical name)
        while self._deduplicate(registry, report):
            pass

        report.rewritten_references = self._rewrite_references(registry, operations)

        for operation in operations:
            report.removed_operation_duplicates += self._clean_operation(operation)

        if report.merged:
            logger.info("schemas_deduplicated", merged=len(report.merged), aliases=report.merged)
        logger.debug(
            "normalization_finished",
            rewritten_references=report.rewritten_references,
            removed_operation_duplicates=report.removed_operation_duplicates,
        )
        return report

    def _deduplicate(self, registry: SchemaRegistry, report: NormalizationReport) -> bool:
        protected = self._discriminator_participants(registry)
        buckets: dict[tuple, list[str]] = {}
        merged_any = False

        for name, node in registry.all_entries():
            if name in protected:
                continue
            key = fingerprint(node, registry)
            canonical = None
            for candidate in buckets.get(key, []):
                if structurally_equal(registry.resolve(candidate), node, registry):
                    canonical = candidate
                    break
            if canonical is None:
                buckets.setdefault(key, []).append(name)
                continue

            registry.remove(name)
            registry.add_alias(name, canonical)
            report.merged[name] = canonical
            merged_any = True
            logger.debug("schema_merged", alias=name, canonical=canonical)

        return merged_any

    def _discriminator_participants(self, registry: SchemaRegistry) -> set[str]:
        """Entries whose identity carries meaning: mapping targets and subtypes of a discriminated base."""
        bases = set()
        participants = set()
        for name, node in registry.all_entries():
            if node.discriminator is None:
                continue
            bases.add(name)
            participants.update(registry.canonical_name(target) for target in node.discriminator.mapping.values())
            if node.composition in (CompositionKind.ONE_OF, CompositionKind.ANY_OF):
                participants.update(registry.canonical_name(member.ref) for member in node.members if member.is_reference)

        for name, node in registry.all_entries():
            if node.composition == CompositionKind.ALL_OF:
                if any(member.is_reference and registry.canonical_name(member.ref) in bases for member in node.members):
                    participants.add(name)
        return participants | bases

    def _rewrite_references(self, registry: SchemaRegistry, operations: list[Operation]) -> int:
        count = 0
        roots = [node for _, node in registry.all_entries()]
        for operation in operations:
            roots.extend(node for _, node in operation.schema_sites())

        for root in roots:
            for node in root.walk():
                if node.is_reference:
                    canonical = registry.canonical_name(node.ref)
                    if canonical != node.ref:
                        node.ref = canonical
                        count += 1
                if node.discriminator is not None:
                    for value, target in node.discriminator.mapping.items():
                        canonical = registry.canonical_name(target)
                        if canonical != target:
                            node.discriminator.mapping[value] = canonical
                            count += 1
        return count

    def _clean_operation(self, operation: Operation) -> int:
        removed = 0

        tags = list(dict.fromkeys(operation.tags))
        removed += len(operation.tags) - len(tags)
        operation.tags = tags

        security: list[dict[str, list[str]]] = []
        for requirement in operation.security:
            if requirement not in security:
                security.append(requirement)
        removed += len(operation.security) - len(security)
        operation.security = security

        seen = set()
        parameters = []
        for param in operation.parameters:
            key = (param.name, param.location)
            if key in seen:
                continue
            seen.add(key)
            parameters.append(param)
        removed += len(operation.parameters) - len(parameters)
        operation.parameters = parameters

        return removed


def merge_documents(
    documents: list[ApiDocument],
    policy: DuplicatePolicy,
    diagnostics: Diagnostics,
    sort_operations: bool = True,
) -> tuple[SchemaRegistry, list[Operation]]:
    """
    Combine documents from independent sources into one registry.

    Same-named, structurally identical schemas merge silently. Conflicting
    same-named schemas follow the duplicate policy.

    Args:
        documents: Parsed documents, in command-line order
        policy: How to handle conflicting same-named schemas
        diagnostics: Collector for NameCollision / DuplicateOperationId issues
        sort_operations: Sort the combined operations by (path, method)

    Returns:
        (registry, operations)
    """
    registry = SchemaRegistry()
    operations: list[Operation] = []
    origin: dict[str, str] = {}
    operation_sources: dict[str, str] = {}

    for document in documents:
        for name, node in document.schemas.items():
            if name not in registry:
                registry.register(name, node)
                origin[name] = document.source
                continue
            existing = registry.resolve(name)
            if structurally_equal(existing, node, registry):
                logger.debug("duplicate_schema_merged", schema=name, source=document.source)
                continue
            if policy == DuplicatePolicy.FAIL:
                diagnostics.add(
                    NameCollision(
                        f"Defined differently in '{origin[name]}' and '{document.source}'",
                        schema=name,
                    )
                )
            elif policy == DuplicatePolicy.PREFER_FIRST:
                logger.warning("duplicate_schema_kept_first", schema=name, kept=origin[name], dropped=document.source)
            else:
                logger.warning("duplicate_schema_replaced", schema=name, replaced=origin[name], by=document.source)
                registry.replace(name, node)
                origin[name] = document.source
        for operation in document.operations:
            declared_in = operation_sources.get(operation.operation_id)
            if declared_in is not None and declared_in != document.source:
                diagnostics.add(
                    DuplicateOperationId(
                        f"Operation id '{operation.operation_id}' is declared in '{declared_in}' and '{document.source}'",
                        operation=operation.operation_id,
                    )
                )
            operation_sources.setdefault(operation.operation_id, document.source)
        operations.extend(document.operations)

    if len(documents) > 1 and sort_operations:
        operations.sort(key=lambda op: (op.webhook, op.path, HTTP_METHODS.index(op.method)))

    logger.info("schemas_registered", schemas=len(registry), operations=len(operations), documents=len(documents))
    return registry, operations
