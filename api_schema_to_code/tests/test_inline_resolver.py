"""
Tests for inline model promotion.

Anonymous objects, enums and unions are promoted to named registry
entries; identical inline shapes share one entry and distinct shapes that
want the same name get numbered.
"""

from __future__ import annotations

import pytest

from api_schema_to_code.pipeline.analyzer import InlineModelResolver, NamingHelper, merge_documents
from api_schema_to_code.pipeline.config import GeneratorConfig
from api_schema_to_code.pipeline.errors import Diagnostics
from api_schema_to_code.pipeline.schema_ast import CompositionKind, DocumentParser, SchemaKind


def document(schemas: dict | None = None, paths: dict | None = None) -> dict:
    return {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1"},
        "paths": paths or {},
        "components": {"schemas": schemas or {}},
    }


def json_response(schema: dict) -> dict:
    return {"description": "ok", "content": {"application/json": {"schema": schema}}}


def resolve_inline(raw: dict, config: GeneratorConfig | None = None):
    config = config or GeneratorConfig()
    diagnostics = Diagnostics()
    api = DocumentParser(diagnostics).parse(raw, source="test")
    registry, operations = merge_documents([api], config.duplicate_policy, diagnostics)
    diagnostics.raise_if_errors("ingestion")
    result = InlineModelResolver(registry, NamingHelper(config), config).resolve(operations)
    return registry, {op.operation_id: op for op in operations}, result


class TestInlinePromotion:
    """Test promotion of inline schemas to registry entries"""

    def test_inline_object_property(self):
        raw = document(
            {
                "Pet": {
                    "type": "object",
                    "properties": {"category": {"type": "object", "properties": {"name": {"type": "string"}}}},
                }
            }
        )
        registry, _, result = resolve_inline(raw)

        assert "PetCategory" in registry
        site = registry.resolve("Pet").properties["category"].schema
        assert site.is_reference
        assert site.ref == "PetCategory"
        assert result.promoted == {"PetCategory": "Pet_category"}

    def test_inline_enum_moves_use_site_annotations(self):
        raw = document(
            {
                "NewPet": {
                    "type": "object",
                    "properties": {"status": {"type": "string", "enum": ["available", "sold"], "default": "available", "nullable": True}},
                }
            }
        )
        registry, _, _ = resolve_inline(raw)

        site = registry.resolve("NewPet").properties["status"].schema
        entry = registry.resolve("NewPetStatus")
        assert site.ref == "NewPetStatus"
        assert site.nullable is True
        assert site.has_default is True
        assert site.default == "available"
        assert entry.kind == SchemaKind.ENUM
        assert entry.nullable is False
        assert entry.has_default is False

    def test_operation_schemas_are_promoted(self):
        paths = {
            "/pets": {
                "get": {
                    "operationId": "listPets",
                    "parameters": [{"name": "status", "in": "query", "schema": {"type": "string", "enum": ["a", "b"]}}],
                    "responses": {"200": json_response({"type": "object", "properties": {"total": {"type": "integer"}}})},
                }
            }
        }
        registry, operations, _ = resolve_inline(document(paths=paths))
        operation = operations["listPets"]

        assert operation.parameters[0].schema.ref == "ListPetsStatus"
        assert operation.responses["200"].schema.ref == "ListPets200Response"
        assert registry.resolve("ListPets200Response").properties["total"].schema.type_name == "integer"

    def test_primitive_union_stays_inline(self):
        raw = document({"Pet": {"type": "object", "properties": {"id": {"type": ["string", "integer"]}}}})
        raw["openapi"] = "3.1.0"
        registry, _, result = resolve_inline(raw)

        site = registry.resolve("Pet").properties["id"].schema
        assert not site.is_reference
        assert site.composition == CompositionKind.ANY_OF
        assert result.promoted == {}

    def test_title_names_the_promoted_schema(self):
        raw = document(
            {"Pet": {"type": "object", "properties": {"owner": {"title": "Person", "type": "object", "properties": {"name": {"type": "string"}}}}}}
        )
        registry, _, _ = resolve_inline(raw)
        assert "Person" in registry

        config = GeneratorConfig(use_title_for_inline_names=False)
        registry, _, _ = resolve_inline(raw, config)
        assert "PetOwner" in registry
        assert "Person" not in registry

    def test_inline_schema_name_mapping(self):
        raw = document({"Pet": {"type": "object", "properties": {"category": {"type": "object", "properties": {"name": {"type": "string"}}}}}})
        config = GeneratorConfig(inline_schema_name_mapping={"Pet_category": "Category"})
        registry, _, _ = resolve_inline(raw, config)

        assert "Category" in registry
        assert registry.resolve("Pet").properties["category"].schema.ref == "Category"

    def test_nested_inline_schemas_resolve_children_first(self):
        item = {"type": "object", "properties": {"tag": {"type": "object", "properties": {"label": {"type": "string"}}}}}
        raw = document({"Basket": {"type": "object", "properties": {"items": {"type": "array", "items": item}}}})
        registry, _, _ = resolve_inline(raw)

        items = registry.resolve("Basket").properties["items"].schema
        assert items.kind == SchemaKind.ARRAY
        assert items.items.ref == "BasketItemsInner"
        assert registry.resolve("BasketItemsInner").properties["tag"].schema.ref == "BasketItemsInnerTag"


class TestInlineDeduplication:
    """Identical inline shapes share one entry, distinct ones get distinct names"""

    def test_identical_inline_schemas_share_one_entry(self):
        shape = {"type": "object", "properties": {"id": {"type": "integer"}, "name": {"type": "string"}}}
        paths = {
            "/a": {"get": {"operationId": "opA", "responses": {"200": json_response(dict(shape))}}},
            "/b": {"get": {"operationId": "opB", "responses": {"200": json_response(dict(shape))}}},
        }
        registry, operations, result = resolve_inline(document(paths=paths))

        ref_a = operations["opA"].responses["200"].schema.ref
        ref_b = operations["opB"].responses["200"].schema.ref
        assert ref_a == ref_b == "OpA200Response"
        assert list(result.promoted) == ["OpA200Response"]
        assert result.reused == 1
        assert "OpB200Response" not in registry

    def test_distinct_shapes_named_error_are_numbered(self):
        paths = {
            "/a": {
                "get": {
                    "operationId": "opA",
                    "responses": {"default": json_response({"title": "Error", "type": "object", "properties": {"code": {"type": "integer"}}})},
                }
            },
            "/b": {
                "get": {
                    "operationId": "opB",
                    "responses": {"default": json_response({"title": "Error", "type": "object", "properties": {"message": {"type": "string"}}})},
                }
            },
        }
        registry, operations, _ = resolve_inline(document(paths=paths))

        ref_a = operations["opA"].responses["default"].schema.ref
        ref_b = operations["opB"].responses["default"].schema.ref
        assert {ref_a, ref_b} == {"Error", "Error1"}
        assert list(registry.resolve(ref_a).properties) == ["code"]
        assert list(registry.resolve(ref_b).properties) == ["message"]

    def test_inline_schema_does_not_replace_declared_component(self):
        schemas = {"Error": {"type": "object", "properties": {"code": {"type": "integer"}}}}
        paths = {
            "/a": {
                "get": {
                    "operationId": "opA",
                    "responses": {"default": json_response({"title": "Error", "type": "object", "properties": {"reason": {"type": "string"}}})},
                }
            }
        }
        registry, operations, _ = resolve_inline(document(schemas, paths))

        assert list(registry.resolve("Error").properties) == ["code"]
        assert operations["opA"].responses["default"].schema.ref == "Error1"
        assert list(registry.resolve("Error1").properties) == ["reason"]

    def test_inline_schema_equal_to_declared_component_reuses_it(self):
        schemas = {"Error": {"type": "object", "properties": {"code": {"type": "integer"}}}}
        paths = {
            "/a": {
                "get": {
                    "operationId": "opA",
                    "responses": {"default": json_response({"title": "Error", "type": "object", "properties": {"code": {"type": "integer"}}})},
                }
            }
        }
        registry, operations, result = resolve_inline(document(schemas, paths))

        assert operations["opA"].responses["default"].schema.ref == "Error"
        assert "Error1" not in registry
        assert result.reused == 1


class TestInlineCycles:
    """An inline schema that reaches itself is promoted once and referenced by name"""

    def test_self_reaching_inline_object(self):
        config = GeneratorConfig()
        diagnostics = Diagnostics()
        loop_shape = {"type": "object", "properties": {"self": {"type": "string"}, "label": {"type": "string"}}}
        api = DocumentParser(diagnostics).parse(document({"Holder": {"type": "object", "properties": {"loop": loop_shape}}}), source="test")
        registry, operations = merge_documents([api], config.duplicate_policy, diagnostics)
        loop = registry.resolve("Holder").properties["loop"].schema
        loop.properties["self"].schema = loop

        result = InlineModelResolver(registry, NamingHelper(config), config).resolve(operations)

        assert registry.names() == ["Holder", "HolderLoop"]
        assert result.promoted == {"HolderLoop": "Holder_loop"}
        assert registry.resolve("Holder").properties["loop"].schema.ref == "HolderLoop"
        entry = registry.resolve("HolderLoop")
        assert entry is loop
        back = entry.properties["self"].schema
        assert back.is_reference
        assert back.ref == "HolderLoop"


if __name__ == "__main__":
    pytest.main([__file__])
