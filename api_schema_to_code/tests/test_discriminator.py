"""
Tests for discriminator resolution.
"""

from __future__ import annotations

import pytest

from api_schema_to_code.pipeline import GeneratorConfig, GenerationError, PipelineGenerator
from api_schema_to_code.pipeline.errors import DiscriminatorPropertyConflict, UnresolvedDiscriminatorMapping, UnresolvedReference

REF = "#/components/schemas/"


def subtype(extra: dict | None = None, parent: str = "Pet") -> dict:
    properties = {"name": {"type": "string"}}
    properties.update(extra or {})
    return {"allOf": [{"$ref": REF + parent}, {"type": "object", "properties": properties}]}


def pet_document(discriminator: dict, subtypes: dict | None = None, version: str = "3.0.3") -> dict:
    schemas = {
        "Pet": {
            "type": "object",
            "required": ["petType"],
            "properties": {"petType": {"type": "string"}},
            "discriminator": discriminator,
        },
        "Cat": subtype({"indoor": {"type": "boolean"}}),
        "Dog": subtype({"bark": {"type": "boolean"}}),
        "Lizard": subtype({"scales": {"type": "integer"}}),
    }
    schemas.update(subtypes or {})
    return {"openapi": version, "info": {"title": "Pets", "version": "1"}, "paths": {}, "components": {"schemas": schemas}}


def resolved(document: dict) -> dict:
    model = PipelineGenerator(GeneratorConfig()).resolve([document])
    return dict(model.schemas)


class TestDiscriminatorResolver:
    """Test mapping completion and subtype back-links"""

    def test_implicit_mapping_has_every_subtype(self):
        schemas = resolved(pet_document({"propertyName": "petType"}))
        pet = schemas["Pet"]

        assert pet.discriminator.resolved_mapping == {"Cat": "Cat", "Dog": "Dog", "Lizard": "Lizard"}
        assert pet.subtypes == ["Cat", "Dog", "Lizard"]

    def test_one_of_without_mapping(self):
        document = pet_document({"propertyName": "petType"})
        document["components"]["schemas"]["Animal"] = {
            "oneOf": [{"$ref": REF + "Cat"}, {"$ref": REF + "Dog"}, {"$ref": REF + "Lizard"}],
            "discriminator": {"propertyName": "petType"},
        }
        schemas = resolved(document)
        animal = schemas["Animal"]

        assert len(animal.discriminator.resolved_mapping) == 3
        assert set(animal.discriminator.resolved_mapping) == {"Cat", "Dog", "Lizard"}
        assert animal.subtypes == ["Cat", "Dog", "Lizard"]

    def test_explicit_mapping_is_completed(self):
        schemas = resolved(pet_document({"propertyName": "petType", "mapping": {"cat": REF + "Cat"}}))
        mapping = schemas["Pet"].discriminator.resolved_mapping

        assert mapping == {"cat": "Cat", "Dog": "Dog", "Lizard": "Lizard"}

    def test_unknown_mapping_target(self):
        document = pet_document({"propertyName": "petType", "mapping": {"bird": REF + "Bird"}})

        with pytest.raises(GenerationError) as exc_info:
            resolved(document)
        issues = exc_info.value.of_kind(UnresolvedDiscriminatorMapping)
        assert len(issues) == 1
        assert issues[0].schema == "Pet"
        assert "bird" in issues[0].message

    def test_constant_property_must_match_mapping(self):
        document = pet_document(
            {"propertyName": "petType", "mapping": {"cat": REF + "Cat"}},
            {"Cat": subtype({"petType": {"const": "dog"}})},
            version="3.1.0",
        )

        with pytest.raises(GenerationError) as exc_info:
            resolved(document)
        issues = exc_info.value.of_kind(DiscriminatorPropertyConflict)
        assert [issue.schema for issue in issues] == ["Cat"]
        assert exc_info.value.phase == "resolution"

    def test_every_issue_is_reported_at_once(self):
        document = pet_document({"propertyName": "petType", "mapping": {"bird": REF + "Bird", "fish": REF + "Fish"}})

        with pytest.raises(GenerationError) as exc_info:
            resolved(document)
        assert len(exc_info.value.of_kind(UnresolvedDiscriminatorMapping)) == 2

    def test_mapping_checked_despite_unresolved_references(self):
        document = pet_document({"propertyName": "petType", "mapping": {"bird": REF + "Bird"}})
        document["components"]["schemas"]["Pet"]["properties"]["petType"] = {"$ref": REF + "PetKind"}

        with pytest.raises(GenerationError) as exc_info:
            resolved(document)
        error = exc_info.value
        assert error.phase == "resolution"
        assert [issue.schema for issue in error.of_kind(UnresolvedReference)] == ["PetKind"]
        assert [issue.schema for issue in error.of_kind(UnresolvedDiscriminatorMapping)] == ["Pet"]
        assert not error.of_kind(DiscriminatorPropertyConflict)


if __name__ == "__main__":
    pytest.main([__file__])
