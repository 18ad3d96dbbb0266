#!/usr/bin/env python3

import pytest

from api_schema_to_code.pipeline.analyzer import SchemaNormalizer, merge_documents
from api_schema_to_code.pipeline.config import DuplicatePolicy
from api_schema_to_code.pipeline.errors import Diagnostics, DuplicateOperationId, NameCollision
from api_schema_to_code.pipeline.schema_ast import DocumentParser, Parameter, ParameterLocation


def parse(schemas: dict, paths: dict | None = None, source: str = "test"):
    raw = {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1"},
        "paths": paths or {},
        "components": {"schemas": schemas},
    }
    return DocumentParser(Diagnostics()).parse(raw, source=source)


def registry_of(schemas: dict, paths: dict | None = None):
    diagnostics = Diagnostics()
    registry, operations = merge_documents([parse(schemas, paths)], DuplicatePolicy.FAIL, diagnostics)
    assert not diagnostics.has_errors()
    return registry, operations


OWNER = {"type": "object", "properties": {"name": {"type": "string"}}}


class TestSchemaNormalizer:
    """Test deduplication and reference canonicalization"""

    def test_identical_entries_are_merged(self):
        schemas = {
            "Owner": dict(OWNER),
            "Person": dict(OWNER),
            "Pet": {"type": "object", "properties": {"owner": {"$ref": "#/components/schemas/Person"}}},
        }
        registry, operations = registry_of(schemas)
        report = SchemaNormalizer().normalize(registry, operations)

        assert report.merged == {"Person": "Owner"}
        assert "Person" not in registry.names()
        assert registry.canonical_name("Person") == "Owner"
        assert registry.resolve("Pet").properties["owner"].schema.ref == "Owner"
        assert report.rewritten_references == 1

    def test_merging_cascades(self):
        # Once A and B merge, C and D (referencing them) become identical too
        schemas = {
            "A": dict(OWNER),
            "B": dict(OWNER),
            "C": {"type": "object", "properties": {"x": {"$ref": "#/components/schemas/A"}}},
            "D": {"type": "object", "properties": {"x": {"$ref": "#/components/schemas/B"}}},
        }
        registry, operations = registry_of(schemas)
        report = SchemaNormalizer().normalize(registry, operations)

        assert report.merged == {"B": "A", "D": "C"}
        assert registry.names() == ["A", "C"]

    def test_normalization_is_idempotent(self):
        schemas = {
            "Owner": dict(OWNER),
            "Person": dict(OWNER),
            "Pet": {"type": "object", "properties": {"owner": {"$ref": "#/components/schemas/Person"}}},
        }
        paths = {"/pets": {"get": {"operationId": "listPets", "tags": ["pets", "pets"], "responses": {}}}}
        registry, operations = registry_of(schemas, paths)
        normalizer = SchemaNormalizer()

        first = normalizer.normalize(registry, operations)
        names = registry.names()
        second = normalizer.normalize(registry, operations)

        assert first.changed
        assert not second.changed
        assert registry.names() == names

    def test_discriminator_participants_are_not_merged(self):
        schemas = {
            "Pet": {
                "type": "object",
                "properties": {"petType": {"type": "string"}},
                "discriminator": {"propertyName": "petType"},
            },
            "Cat": {"allOf": [{"$ref": "#/components/schemas/Pet"}, {"type": "object", "properties": {"name": {"type": "string"}}}]},
            "Dog": {"allOf": [{"$ref": "#/components/schemas/Pet"}, {"type": "object", "properties": {"name": {"type": "string"}}}]},
        }
        registry, operations = registry_of(schemas)
        report = SchemaNormalizer().normalize(registry, operations)

        assert report.merged == {}
        assert set(registry.names()) == {"Cat", "Dog", "Pet"}

    def test_operation_duplicates_are_removed(self):
        paths = {
            "/pets": {
                "get": {
                    "operationId": "listPets",
                    "tags": ["pets", "animals", "pets"],
                    "security": [{"apiKey": []}, {"apiKey": []}],
                    "responses": {},
                }
            }
        }
        registry, operations = registry_of({}, paths)
        operation = operations[0]
        operation.parameters = [
            Parameter(name="limit", location=ParameterLocation.QUERY),
            Parameter(name="limit", location=ParameterLocation.QUERY),
            Parameter(name="limit", location=ParameterLocation.HEADER),
        ]
        report = SchemaNormalizer().normalize(registry, operations)

        assert operation.tags == ["pets", "animals"]
        assert operation.security == [{"apiKey": []}]
        assert [(p.name, p.location) for p in operation.parameters] == [
            ("limit", ParameterLocation.QUERY),
            ("limit", ParameterLocation.HEADER),
        ]
        assert report.removed_operation_duplicates == 3


class TestMergeDocuments:
    """Test combining documents under each duplicate policy"""

    def documents(self):
        first = parse({"Pet": {"type": "object", "properties": {"name": {"type": "string"}}}}, source="first.yaml")
        second = parse({"Pet": {"type": "object", "properties": {"name": {"type": "integer"}}}}, source="second.yaml")
        return [first, second]

    def test_identical_schemas_merge_silently(self):
        documents = [parse({"Owner": dict(OWNER)}, source="a.yaml"), parse({"Owner": dict(OWNER)}, source="b.yaml")]
        diagnostics = Diagnostics()
        registry, _ = merge_documents(documents, DuplicatePolicy.FAIL, diagnostics)

        assert not diagnostics.has_errors()
        assert registry.names() == ["Owner"]

    def test_fail_policy_reports_collision(self):
        diagnostics = Diagnostics()
        merge_documents(self.documents(), DuplicatePolicy.FAIL, diagnostics)

        assert len(diagnostics) == 1
        issue = diagnostics.issues[0]
        assert isinstance(issue, NameCollision)
        assert issue.schema == "Pet"
        assert "first.yaml" in issue.message and "second.yaml" in issue.message

    def test_prefer_first_keeps_first(self):
        diagnostics = Diagnostics()
        registry, _ = merge_documents(self.documents(), DuplicatePolicy.PREFER_FIRST, diagnostics)

        assert not diagnostics.has_errors()
        assert registry.resolve("Pet").properties["name"].schema.type_name == "string"

    def test_prefer_last_replaces(self):
        diagnostics = Diagnostics()
        registry, _ = merge_documents(self.documents(), DuplicatePolicy.PREFER_LAST, diagnostics)

        assert not diagnostics.has_errors()
        assert registry.resolve("Pet").properties["name"].schema.type_name == "integer"

    def test_operations_are_combined_and_sorted(self):
        first = parse({}, {"/zoo": {"get": {"operationId": "getZoo", "responses": {}}}}, source="a.yaml")
        second = parse({}, {"/animals": {"get": {"operationId": "getAnimals", "responses": {}}}}, source="b.yaml")
        diagnostics = Diagnostics()
        _, operations = merge_documents([first, second], DuplicatePolicy.FAIL, diagnostics)

        assert [op.operation_id for op in operations] == ["getAnimals", "getZoo"]

    def test_duplicate_operation_id_across_documents(self):
        first = parse({}, {"/a": {"get": {"operationId": "fetch", "responses": {}}}}, source="a.yaml")
        second = parse({}, {"/b": {"get": {"operationId": "fetch", "responses": {}}}}, source="b.yaml")
        diagnostics = Diagnostics()
        merge_documents([first, second], DuplicatePolicy.FAIL, diagnostics)

        assert [type(issue) for issue in diagnostics.issues] == [DuplicateOperationId]


if __name__ == "__main__":
    pytest.main([__file__])
