"""
Schema registry: the single source of truth for named schemas.

Names are bound once. Rebinding a name to a structurally identical node is
a no-op; rebinding it to a different node is a NameCollision. Deduplication
turns names into aliases of a canonical entry.
"""

from __future__ import annotations

from collections.abc import Iterator

from ..errors import NameCollision, UnresolvedReference
from ..schema_ast.nodes import CompositionKind, SchemaKind, SchemaNode


class SchemaRegistry:
    """Ordered name -> schema mapping with aliases."""

    def __init__(self):
        self._entries: dict[str, SchemaNode] = {}
        self._aliases: dict[str, str] = {}

    def register(self, name: str, node: SchemaNode) -> str:
        """
        Bind a name to a schema.

        Args:
            name: The schema name
            node: The concrete schema

        Returns:
            The canonical name the node is registered under

        Raises:
            NameCollision: if the name is bound to a structurally different schema
        """
        canonical = self.canonical_name(name)
        existing = self._entries.get(canonical)
        if existing is None:
            node.name = name
            self._entries[name] = node
            return name
        if existing is node or structurally_equal(existing, node, self):
            return canonical
        raise NameCollision(
            f"Schema name '{name}' is already bound to a different schema ({existing.source_path or 'generated'})",
            schema=name,
            path=node.source_path or None,
        )

    def resolve(self, name: str) -> SchemaNode:
        """Return the schema bound to a name or alias."""
        node = self._entries.get(self.canonical_name(name))
        if node is None:
            raise UnresolvedReference(f"No schema named '{name}'", schema=name)
        return node

    def deref(self, node: SchemaNode) -> SchemaNode:
        """Follow a reference node to its concrete schema."""
        seen: set[str] = set()
        while node.is_reference:
            if node.ref in seen:
                raise UnresolvedReference(f"Reference cycle through '{node.ref}'", schema=node.ref)
            seen.add(node.ref)
            node = self.resolve(node.ref)
        return node

    def get(self, name: str) -> SchemaNode | None:
        return self._entries.get(self.canonical_name(name))

    def canonical_name(self, name: str) -> str:
        seen = set()
        while name in self._aliases and name not in seen:
            seen.add(name)
            name = self._aliases[name]
        return name

    def add_alias(self, alias: str, canonical: str) -> None:
        """Make `alias` resolve to `canonical`. The alias must not be a live entry."""
        canonical = self.canonical_name(canonical)
        if alias == canonical:
            return
        if alias in self._entries:
            raise NameCollision(f"Cannot alias '{alias}': it is still a registered schema", schema=alias)
        self._aliases[alias] = canonical

    def replace(self, name: str, node: SchemaNode) -> None:
        """Rebind an existing name (used by resolution passes)."""
        canonical = self.canonical_name(name)
        if canonical not in self._entries:
            raise UnresolvedReference(f"No schema named '{name}'", schema=name)
        node.name = canonical
        self._entries[canonical] = node

    def remove(self, name: str) -> SchemaNode:
        return self._entries.pop(name)

    def names(self) -> list[str]:
        return list(self._entries)

    def aliases(self) -> dict[str, str]:
        return {alias: self.canonical_name(alias) for alias in self._aliases}

    def all_entries(self) -> list[tuple[str, SchemaNode]]:
        """All (name, schema) pairs in registration order."""
        return list(self._entries.items())

    def __contains__(self, name: str) -> bool:
        return self.canonical_name(name) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))


def _reference_key(node: SchemaNode, registry: SchemaRegistry | None) -> str | None:
    """Canonical name a nested node is compared by, or None for anonymous nodes."""
    name = node.ref if node.is_reference else node.name
    if name is None:
        return None
    return registry.canonical_name(name) if registry is not None else name


class _StructuralComparator:
    def __init__(self, registry: SchemaRegistry | None):
        self.registry = registry
        self.in_progress: set[tuple[int, int]] = set()

    def equal(self, a: SchemaNode, b: SchemaNode) -> bool:
        if a is b:
            return True
        pair = (id(a), id(b))
        if pair in self.in_progress:
            return True
        self.in_progress.add(pair)
        try:
            return self._equal(a, b)
        finally:
            self.in_progress.discard(pair)

    def nested_equal(self, a: SchemaNode | None, b: SchemaNode | None) -> bool:
        if a is None or b is None:
            return a is b
        key_a = _reference_key(a, self.registry)
        key_b = _reference_key(b, self.registry)
        if key_a is not None or key_b is not None:
            if key_a != key_b:
                return False
            # Same target: use-site annotations still matter
            return a.nullable == b.nullable and _same_default(a, b)
        return self.equal(a, b)

    def _equal(self, a: SchemaNode, b: SchemaNode) -> bool:
        if a.is_reference or b.is_reference:
            return (
                a.is_reference
                and b.is_reference
                and _reference_key(a, self.registry) == _reference_key(b, self.registry)
                and a.nullable == b.nullable
                and _same_default(a, b)
            )
        if (
            a.kind != b.kind
            or a.type_name != b.type_name
            or a.format != b.format
            or a.nullable != b.nullable
            or a.composition != b.composition
            or a.boolean_value != b.boolean_value
            or a.has_const != b.has_const
            or (a.has_const and a.const != b.const)
            or not _same_default(a, b)
            or a.enum_values != b.enum_values
            or a.constraints.as_tuple() != b.constraints.as_tuple()
        ):
            return False

        if a.properties.keys() != b.properties.keys():
            return False
        for name, prop in a.properties.items():
            other = b.properties[name]
            if prop.required != other.required or not self.nested_equal(prop.schema, other.schema):
                return False

        if isinstance(a.additional_properties, SchemaNode) or isinstance(b.additional_properties, SchemaNode):
            if not (isinstance(a.additional_properties, SchemaNode) and isinstance(b.additional_properties, SchemaNode)):
                return False
            if not self.nested_equal(a.additional_properties, b.additional_properties):
                return False
        elif a.additional_properties != b.additional_properties:
            return False

        if not self.nested_equal(a.items, b.items):
            return False

        if not self._members_equal(a, b):
            return False

        da, db = a.discriminator, b.discriminator
        if (da is None) != (db is None):
            return False
        if da is not None and (da.property_name != db.property_name or da.mapping != db.mapping):
            return False
        return True

    def _members_equal(self, a: SchemaNode, b: SchemaNode) -> bool:
        if len(a.members) != len(b.members):
            return False
        if a.composition == CompositionKind.ALL_OF:
            return all(self.nested_equal(x, y) for x, y in zip(a.members, b.members))
        # oneOf/anyOf: order-independent
        unmatched = list(b.members)
        for member in a.members:
            for index, candidate in enumerate(unmatched):
                if self.nested_equal(member, candidate):
                    del unmatched[index]
                    break
            else:
                return False
        return True


def _same_default(a: SchemaNode, b: SchemaNode) -> bool:
    return a.has_default == b.has_default and (not a.has_default or a.default == b.default)


def structurally_equal(a: SchemaNode, b: SchemaNode, registry: SchemaRegistry | None = None) -> bool:
    """Compare two schemas by structure.

    Documentation (title, description, example) and extensions are ignored.
    Nested named schemas and references compare by canonical name; a pair
    already under comparison is assumed equal so cyclic graphs terminate.
    """
    return _StructuralComparator(registry).equal(a, b)


def fingerprint(node: SchemaNode, registry: SchemaRegistry | None = None) -> tuple:
    """Cheap structural hash: equal schemas always share a fingerprint."""
    if node.is_reference:
        return (SchemaKind.REFERENCE, _reference_key(node, registry), node.nullable)

    def child_key(child: SchemaNode | None):
        if child is None:
            return None
        return _reference_key(child, registry) or child.kind

    additional = node.additional_properties
    return (
        node.kind,
        node.type_name,
        node.format,
        node.nullable,
        node.composition,
        node.boolean_value,
        tuple(sorted((name, prop.required, child_key(prop.schema)) for name, prop in node.properties.items())),
        child_key(additional) if isinstance(additional, SchemaNode) else additional,
        child_key(node.items),
        len(node.members),
        len(node.enum_values),
        node.constraints.as_tuple(),
        node.discriminator.property_name if node.discriminator else None,
    )
