#!/usr/bin/env python3

import pytest

from api_schema_to_code.pipeline.analyzer import NamingHelper, SchemaRegistry, sanitize_enum_case
from api_schema_to_code.pipeline.config import DateTimeFormat, GeneratorConfig, TargetLanguage
from api_schema_to_code.pipeline.errors import EnumValueCollision
from api_schema_to_code.pipeline.schema_ast import CompositionKind, PropertyDef, SchemaKind, SchemaNode
from api_schema_to_code.pipeline.type_mapping import Import, TypeMapper


def mapper_for(language=TargetLanguage.PYTHON, registry=None, **options) -> TypeMapper:
    config = GeneratorConfig(language=language, **options)
    return TypeMapper(registry or SchemaRegistry(), config, NamingHelper(config))


def primitive(type_name, format_name=None, **kwargs) -> SchemaNode:
    return SchemaNode(kind=SchemaKind.PRIMITIVE, type_name=type_name, format=format_name, **kwargs)


def pet_registry() -> SchemaRegistry:
    registry = SchemaRegistry()
    pet = SchemaNode(kind=SchemaKind.OBJECT)
    pet.properties["name"] = PropertyDef(name="name", schema=primitive("string"), required=True)
    registry.register("Pet", pet)
    registry.register("Status", SchemaNode(kind=SchemaKind.ENUM, type_name="string", enum_values=["available", "sold"]))
    return registry


class TestPrimitiveTables:
    """Test the per-language primitive tables"""

    @pytest.mark.parametrize(
        "language,type_name,format_name,expected",
        [
            (TargetLanguage.PYTHON, "string", None, "str"),
            (TargetLanguage.PYTHON, "string", "date-time", "datetime"),
            (TargetLanguage.PYTHON, "integer", "int64", "int"),
            (TargetLanguage.PYTHON, "string", "binary", "bytes"),
            (TargetLanguage.JAVA, "integer", "int64", "Long"),
            (TargetLanguage.JAVA, "number", None, "BigDecimal"),
            (TargetLanguage.JAVA, "string", "date-time", "OffsetDateTime"),
            (TargetLanguage.KOTLIN, "integer", None, "Int"),
            (TargetLanguage.KOTLIN, "string", "byte", "ByteArray"),
            (TargetLanguage.KOTLIN, "boolean", None, "Boolean"),
        ],
    )
    def test_primitive(self, language, type_name, format_name, expected):
        expression, _ = mapper_for(language).map_type(primitive(type_name, format_name))
        assert expression.text == expected

    def test_imports_are_collected(self):
        _, imports = mapper_for().map_type(primitive("string", "uuid"))
        assert imports == frozenset({Import("uuid", "UUID")})

        _, imports = mapper_for(TargetLanguage.JAVA).map_type(primitive("string", "date"))
        assert imports == frozenset({Import("java.time.LocalDate")})

    def test_date_time_format_choice(self):
        expression, imports = mapper_for(TargetLanguage.KOTLIN, date_time_format=DateTimeFormat.ZONED_DATETIME).map_type(primitive("string", "date-time"))

        assert expression.text == "ZonedDateTime"
        assert Import("java.time.ZonedDateTime") in imports

    def test_type_mapping_override(self):
        mapper = mapper_for(type_mapping={"string+uuid": "str"}, import_mapping={})
        expression, imports = mapper.map_type(primitive("string", "uuid"))

        assert expression.text == "str"
        assert imports == frozenset()

    def test_import_mapping_override(self):
        mapper = mapper_for(TargetLanguage.JAVA, type_mapping={"string+money": "Money"}, import_mapping={"Money": "org.javamoney.Money"})
        expression, imports = mapper.map_type(primitive("string", "money"))

        assert expression.text == "Money"
        assert imports == frozenset({Import("org.javamoney.Money")})


class TestContainersAndNullability:
    """Test containers, model references and nullability conventions"""

    def test_arrays_and_sets(self):
        items = SchemaNode(kind=SchemaKind.ARRAY, items=primitive("integer"))
        unique = SchemaNode(kind=SchemaKind.ARRAY, items=primitive("string"))
        unique.constraints.unique_items = True

        assert mapper_for().map_type(items)[0].text == "list[int]"
        assert mapper_for().map_type(unique)[0].text == "set[str]"

        expression, imports = mapper_for(TargetLanguage.JAVA).map_type(items)
        assert expression.text == "List<Integer>"
        assert Import("java.util.List") in imports

    def test_maps(self):
        node = SchemaNode(kind=SchemaKind.OBJECT, additional_properties=primitive("number", "double"))

        assert mapper_for().map_type(node)[0].text == "dict[str, float]"
        assert mapper_for(TargetLanguage.KOTLIN).map_type(node)[0].text == "Map<String, Double>"

    def test_nullable_per_language(self):
        node = primitive("string", nullable=True)

        assert mapper_for().map_type(node)[0].text == "str | None"
        assert mapper_for(TargetLanguage.KOTLIN).map_type(node)[0].text == "String?"

        expression, imports = mapper_for(TargetLanguage.JAVA).map_type(node)
        assert expression.text == "String"
        assert "@Nullable" in expression.annotations

        expression, _ = mapper_for(TargetLanguage.JAVA, use_optional=True).map_type(node)
        assert expression.text == "Optional<String>"

    def test_model_references(self):
        registry = pet_registry()
        expression, _ = mapper_for(registry=registry).map_type(SchemaNode.reference("Pet", nullable=True))

        assert expression.text == "Pet | None"
        assert expression.is_model
        assert expression.models == ("Pet",)

        listed = SchemaNode(kind=SchemaKind.ARRAY, items=SchemaNode.reference("Pet"))
        assert mapper_for(TargetLanguage.JAVA, registry=registry).map_type(listed)[0].text == "List<Pet>"

    def test_model_name_affixes(self):
        expression, _ = mapper_for(registry=pet_registry(), model_name_prefix="Api", model_name_suffix="Dto").map_type(SchemaNode.reference("Pet"))
        assert expression.text == "ApiPetDto"

    def test_python_unions(self):
        union = SchemaNode(kind=SchemaKind.COMPOSED, composition=CompositionKind.ANY_OF, members=[primitive("string"), primitive("integer")])
        assert mapper_for().map_type(union)[0].text == "str | int"
        assert mapper_for(TargetLanguage.JAVA).map_type(union)[0].text == "Object"

    def test_boolean_schemas(self):
        assert mapper_for().map_type(SchemaNode(kind=SchemaKind.BOOLEAN_SCHEMA, boolean_value=True))[0].text == "Any"
        assert mapper_for().map_type(SchemaNode(kind=SchemaKind.BOOLEAN_SCHEMA, boolean_value=False))[0].text == "None"


class TestEnums:
    """Test enum case naming and literals"""

    @pytest.mark.parametrize(
        "value,numeric,expected",
        [
            ("", False, "EMPTY"),
            ("available-now", False, "AVAILABLE_NOW"),
            ("2xx", False, "_2_XX"),
            ("+", False, "PLUS"),
            (-1.5, True, "NUMBER_MINUS_1_DOT_5"),
            (3, True, "NUMBER_3"),
            (True, False, "TRUE"),
        ],
    )
    def test_sanitize_enum_case(self, value, numeric, expected):
        assert sanitize_enum_case(value, numeric) == expected

    def test_collision_retry_spells_symbols(self):
        node = SchemaNode(kind=SchemaKind.ENUM, type_name="string", enum_values=["a-b", "a_b"])
        cases = mapper_for().enum_cases(node)

        assert [case.name for case in cases] == ["A_MINUS_B", "A_B"]
        assert [case.literal for case in cases] == ['"a-b"', '"a_b"']

    def test_non_ascii_values_stay_distinct(self):
        node = SchemaNode(kind=SchemaKind.ENUM, type_name="string", enum_values=["äa", "öa", "ünicode"])
        cases = mapper_for().enum_cases(node)

        assert [case.name for case in cases] == ["ÄA", "ÖA", "ÜNICODE"]

    def test_unresolvable_collision(self):
        node = SchemaNode(kind=SchemaKind.ENUM, type_name="string", enum_values=["A", "a"], name="Letter")

        with pytest.raises(EnumValueCollision) as exc_info:
            mapper_for().enum_cases(node)
        assert exc_info.value.schema == "Letter"

    def test_explicit_names(self):
        node = SchemaNode(kind=SchemaKind.ENUM, type_name="integer", enum_values=[1, 2], extensions={"x-enum-varnames": ["one", "two"]})
        cases = mapper_for(TargetLanguage.KOTLIN).enum_cases(node)

        assert [(case.name, case.literal) for case in cases] == [("ONE", "1"), ("TWO", "2")]

    def test_enum_name_mapping(self):
        node = SchemaNode(kind=SchemaKind.ENUM, type_name="string", enum_values=["*"])
        assert mapper_for(enum_name_mapping={"*": "ALL"}).enum_cases(node)[0].name == "ALL"

    def test_default_literal_uses_enum_case(self):
        registry = pet_registry()
        site = SchemaNode.reference("Status", default="sold", has_default=True)

        assert mapper_for(registry=registry).default_literal(site) == "Status.SOLD"
        assert mapper_for(TargetLanguage.JAVA, registry=registry).default_literal(site) == "Status.SOLD"


class TestLiterals:
    """Test target-language literals"""

    def test_python_literals(self):
        mapper = mapper_for()
        assert mapper.literal(None) == "None"
        assert mapper.literal(True) == "True"
        assert mapper.literal(3) == "3"
        assert mapper.literal('say "hi"') == '"say \\"hi\\""'

    def test_jvm_literals(self):
        java = mapper_for(TargetLanguage.JAVA)
        assert java.literal(5, "integer", "int64") == "5L"
        assert java.literal(1.5, "number", "float") == "1.5f"
        assert java.literal(2, "number", None) == 'new BigDecimal("2")'
        assert mapper_for(TargetLanguage.KOTLIN).literal(2, "number", None) == 'BigDecimal("2")'
        assert mapper_for(TargetLanguage.KOTLIN).literal("$5") == '"\\$5"'


class TestValidationAnnotations:
    """Test jakarta.validation annotations from constraints"""

    def test_string_constraints(self):
        node = primitive("string")
        node.constraints.min_length = 1
        node.constraints.max_length = 20
        node.constraints.pattern = "^[a-z]+$"
        annotations, imports = mapper_for(TargetLanguage.JAVA).validation_annotations(node, required=True)

        assert annotations == ("@NotNull", "@Size(min = 1, max = 20)", '@Pattern(regexp = "^[a-z]+$")')
        assert Import("jakarta.validation.constraints.Size") in imports

    def test_kotlin_targets_fields(self):
        node = primitive("integer")
        node.constraints.exclusive_minimum = 0
        annotations, _ = mapper_for(TargetLanguage.KOTLIN).validation_annotations(node, required=False)

        assert annotations == ("@field:Min(1)",)

    def test_nested_models_are_validated(self):
        annotations, imports = mapper_for(TargetLanguage.JAVA, registry=pet_registry()).validation_annotations(SchemaNode.reference("Pet"), required=False)

        assert annotations == ("@Valid",)
        assert imports == frozenset({Import("jakarta.validation.Valid")})

    def test_disabled_and_python(self):
        node = primitive("string")
        node.constraints.max_length = 5

        assert mapper_for(TargetLanguage.JAVA, bean_validation=False).validation_annotations(node, True) == ((), frozenset())
        assert mapper_for().validation_annotations(node, True) == ((), frozenset())


if __name__ == "__main__":
    pytest.main([__file__])
