"""
Discriminator and composition resolver.

Computes, for every discriminated schema, the complete mapping from
discriminator value to registry name, and records subtype back-links
(parent -> children) for every allOf inheritance edge. Only the
discriminated nodes' `discriminator.resolved_mapping` and the parents'
`subtypes` are written; the structure of the graph is left untouched.
"""

from __future__ import annotations

import structlog

from ..errors import Diagnostics, DiscriminatorPropertyConflict, UnresolvedDiscriminatorMapping, UnresolvedReference
from ..schema_ast.nodes import CompositionKind, SchemaNode
from .registry import SchemaRegistry

logger = structlog.get_logger(__name__)


class DiscriminatorResolver:
    """Resolves discriminator mappings against the registry."""

    def __init__(self, registry: SchemaRegistry):
        self.registry = registry

    def resolve(self, diagnostics: Diagnostics) -> dict[str, dict[str, str]]:
        """
        Resolve every discriminator in the registry.

        Args:
            diagnostics: Collector for mapping and property issues

        Returns:
            Schema name -> resolved mapping, for every discriminated schema
        """
        children = self._inheritance_children()
        for parent, names in children.items():
            parent_node = self.registry.get(parent)
            if parent_node is not None:
                parent_node.subtypes = names

        resolved_all: dict[str, dict[str, str]] = {}
        for name, node in self.registry.all_entries():
            if node.discriminator is None:
                continue
            mapping = self._mapping_for(name, node, children.get(name, []), diagnostics)
            node.discriminator.resolved_mapping = mapping
            if node.composition in (CompositionKind.ONE_OF, CompositionKind.ANY_OF):
                node.subtypes = list(dict.fromkeys(mapping.values()))
            self._check_property(name, node, mapping, diagnostics)
            resolved_all[name] = mapping
            logger.info("discriminator_resolved", schema=name, property=node.discriminator.property_name, entries=len(mapping))
        return resolved_all

    def _inheritance_children(self) -> dict[str, list[str]]:
        """Parent name -> names of the entries whose allOf references it, in registry order."""
        children: dict[str, list[str]] = {}
        for name, node in self.registry.all_entries():
            if node.composition != CompositionKind.ALL_OF:
                continue
            for member in node.members:
                if member.is_reference and member.ref in self.registry:
                    parent = self.registry.canonical_name(member.ref)
                    if parent != name:
                        children.setdefault(parent, []).append(name)
        return children

    def _mapping_for(self, name: str, node: SchemaNode, subtypes: list[str], diagnostics: Diagnostics) -> dict[str, str]:
        discriminator = node.discriminator
        mapping: dict[str, str] = {}

        for value, target in discriminator.mapping.items():
            if target not in self.registry:
                diagnostics.add(
                    UnresolvedDiscriminatorMapping(
                        f"Discriminator value '{value}' maps to unknown schema '{target}'",
                        schema=name,
                        path=f"Schema {name}, discriminator mapping '{value}'",
                    )
                )
                continue
            mapping[value] = self.registry.canonical_name(target)

        # Implicit entries for subtypes the explicit mapping does not cover
        if node.composition in (CompositionKind.ONE_OF, CompositionKind.ANY_OF):
            implicit = [member.ref for member in node.members if member.is_reference]
        else:
            implicit = subtypes
        covered = set(mapping.values())
        for target in implicit:
            canonical = self.registry.canonical_name(target)
            if canonical in covered or canonical not in self.registry:
                continue
            if canonical in mapping and mapping[canonical] != canonical:
                continue
            mapping[canonical] = canonical
            covered.add(canonical)
        return mapping

    def _check_property(self, name: str, node: SchemaNode, mapping: dict[str, str], diagnostics: Diagnostics) -> None:
        """A constant discriminator property must agree with its mapping key."""
        property_name = node.discriminator.property_name
        declared = self._property_schema(node, property_name)
        for value, target in mapping.items():
            subtype = self.registry.resolve(target)
            schema = self._concrete(self._property_schema(subtype, property_name) or declared)
            if schema is None:
                continue
            has_constant, constant = schema.constant_value()
            if has_constant and str(constant) != value:
                diagnostics.add(
                    DiscriminatorPropertyConflict(
                        f"Property '{property_name}' is fixed to '{constant}' but the discriminator maps '{value}' to it",
                        schema=target,
                        path=f"Schema {name}, discriminator '{property_name}', subtype {target}",
                    )
                )
        if declared is None and not any(self._property_schema(self.registry.resolve(t), property_name) for t in mapping.values()):
            logger.warning("discriminator_property_undeclared", schema=name, property=property_name)

    def _concrete(self, schema: SchemaNode | None) -> SchemaNode | None:
        if schema is None:
            return None
        try:
            return self.registry.deref(schema)
        except UnresolvedReference:
            # Already recorded by the reference check
            return None

    def _property_schema(self, node: SchemaNode, property_name: str) -> SchemaNode | None:
        prop = node.properties.get(property_name)
        return prop.schema if prop is not None else None
