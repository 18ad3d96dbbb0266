#!/usr/bin/env python3

import pytest

from api_schema_to_code.pipeline.analyzer import SchemaRegistry, fingerprint, structurally_equal
from api_schema_to_code.pipeline.errors import NameCollision, UnresolvedReference
from api_schema_to_code.pipeline.schema_ast import PropertyDef, SchemaKind, SchemaNode


def string_node(**kwargs) -> SchemaNode:
    return SchemaNode(kind=SchemaKind.PRIMITIVE, type_name="string", **kwargs)


def object_node(**properties) -> SchemaNode:
    node = SchemaNode(kind=SchemaKind.OBJECT)
    for name, schema in properties.items():
        node.properties[name] = PropertyDef(name=name, schema=schema)
    return node


class TestSchemaRegistry:
    """Test name binding, aliases and lookups"""

    def test_register_and_resolve(self):
        registry = SchemaRegistry()
        node = object_node(name=string_node())

        assert registry.register("Pet", node) == "Pet"
        assert registry.resolve("Pet") is node
        assert node.name == "Pet"
        assert "Pet" in registry
        assert len(registry) == 1

    def test_register_identical_schema_is_noop(self):
        registry = SchemaRegistry()
        registry.register("Pet", object_node(name=string_node()))

        assert registry.register("Pet", object_node(name=string_node())) == "Pet"
        assert registry.names() == ["Pet"]

    def test_register_different_schema_collides(self):
        registry = SchemaRegistry()
        registry.register("Pet", object_node(name=string_node()))

        with pytest.raises(NameCollision) as exc_info:
            registry.register("Pet", object_node(age=SchemaNode(kind=SchemaKind.PRIMITIVE, type_name="integer")))
        assert exc_info.value.schema == "Pet"

    def test_unknown_name(self):
        with pytest.raises(UnresolvedReference):
            SchemaRegistry().resolve("Missing")

    def test_aliases_resolve_to_canonical(self):
        registry = SchemaRegistry()
        node = object_node(name=string_node())
        registry.register("Pet", node)
        registry.add_alias("Animal", "Pet")
        registry.add_alias("Creature", "Animal")

        assert registry.canonical_name("Creature") == "Pet"
        assert registry.resolve("Creature") is node
        assert registry.aliases() == {"Animal": "Pet", "Creature": "Pet"}

    def test_alias_of_live_entry_is_rejected(self):
        registry = SchemaRegistry()
        registry.register("Pet", object_node(name=string_node()))
        registry.register("Animal", object_node(kind=string_node()))

        with pytest.raises(NameCollision):
            registry.add_alias("Animal", "Pet")

    def test_deref_follows_references(self):
        registry = SchemaRegistry()
        node = object_node(name=string_node())
        registry.register("Pet", node)

        assert registry.deref(SchemaNode.reference("Pet")) is node

    def test_iteration_keeps_registration_order(self):
        registry = SchemaRegistry()
        for name in ("Zebra", "Ant", "Mole"):
            registry.register(name, object_node(**{name.lower(): string_node()}))

        assert list(registry) == ["Zebra", "Ant", "Mole"]
        assert [name for name, _ in registry.all_entries()] == ["Zebra", "Ant", "Mole"]


class TestStructuralEquality:
    """Test structure-only comparison of schemas"""

    def test_documentation_is_ignored(self):
        a = object_node(name=string_node(description="The name"))
        b = object_node(name=string_node(description="Another text", title="Name"))

        assert structurally_equal(a, b)
        assert fingerprint(a) == fingerprint(b)

    def test_nullability_and_constraints_matter(self):
        assert not structurally_equal(string_node(), string_node(nullable=True))

        limited = string_node()
        limited.constraints.max_length = 10
        assert not structurally_equal(string_node(), limited)

    def test_required_flag_matters(self):
        a = object_node(name=string_node())
        b = object_node(name=string_node())
        b.properties["name"].required = True

        assert not structurally_equal(a, b)

    def test_references_compare_by_canonical_name(self):
        registry = SchemaRegistry()
        registry.register("Owner", object_node(name=string_node()))
        registry.add_alias("Person", "Owner")

        a = object_node(owner=SchemaNode.reference("Owner"))
        b = object_node(owner=SchemaNode.reference("Person"))
        assert structurally_equal(a, b, registry)
        assert not structurally_equal(a, b)

    def test_cyclic_schemas_terminate(self):
        a = SchemaNode(kind=SchemaKind.OBJECT)
        a.properties["next"] = PropertyDef(name="next", schema=a)
        b = SchemaNode(kind=SchemaKind.OBJECT)
        b.properties["next"] = PropertyDef(name="next", schema=b)

        assert structurally_equal(a, b)


if __name__ == "__main__":
    pytest.main([__file__])
