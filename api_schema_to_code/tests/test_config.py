#!/usr/bin/env python3

import pytest

from api_schema_to_code.pipeline.config import (
    DuplicatePolicy,
    FormatterConfig,
    GeneratorConfig,
    NamingCase,
    OutputKind,
    OutputMode,
    SerializationLibrary,
    TargetLanguage,
    TestFramework,
)
from api_schema_to_code.pipeline.errors import ConfigError


class TestGeneratorConfig:
    """Test configuration parsing and validation"""

    def test_defaults(self):
        config = GeneratorConfig()

        assert config.language == TargetLanguage.PYTHON
        assert config.output_kinds == [OutputKind.MODELS, OutputKind.CLIENT]
        assert config.duplicate_policy == DuplicatePolicy.FAIL
        assert config.output.mode == OutputMode.ERROR_IF_EXISTS
        assert config.output.atomic_write is True
        config.validate()

    def test_language_defaults(self):
        python = GeneratorConfig()
        assert python.effective_test_framework() == TestFramework.PYTEST
        assert python.effective_naming_case() == NamingCase.SNAKE
        assert python.effective_serialization_library() == SerializationLibrary.DATACLASSES_JSON

        kotlin = GeneratorConfig(language=TargetLanguage.KOTLIN)
        assert kotlin.effective_test_framework() == TestFramework.JUNIT5
        assert kotlin.effective_naming_case() == NamingCase.CAMEL
        assert kotlin.effective_serialization_library() == SerializationLibrary.JACKSON

        explicit = GeneratorConfig(language=TargetLanguage.JAVA, test_framework=TestFramework.SPOCK)
        assert explicit.effective_test_framework() == TestFramework.SPOCK

    def test_from_dict(self):
        config = GeneratorConfig.from_dict(
            {
                "language": "kotlin",
                "output_kinds": ["models", "server"],
                "duplicate_policy": "last",
                "package_name": "com.example.pets",
                "type_mapping": {"string+uuid": "String"},
                "formatter": {"line_length": 120},
                "output": {"mode": "force", "atomic_write": False},
            }
        )

        assert config.language == TargetLanguage.KOTLIN
        assert config.output_kinds == [OutputKind.MODELS, OutputKind.SERVER]
        assert config.duplicate_policy == DuplicatePolicy.PREFER_LAST
        assert config.package_name == "com.example.pets"
        assert config.type_mapping == {"string+uuid": "String"}
        assert config.formatter == FormatterConfig(line_length=120)
        assert config.output.mode == OutputMode.FORCE
        assert config.output.atomic_write is False

    def test_round_trip(self):
        config = GeneratorConfig(
            language=TargetLanguage.JAVA,
            test_framework=TestFramework.NONE,
            serialization_library=SerializationLibrary.MICRONAUT_SERDE,
            model_name_suffix="Dto",
            enum_name_mapping={"*": "ALL"},
        )
        assert GeneratorConfig.from_dict(config.to_dict()) == config

    @pytest.mark.parametrize(
        "data,message",
        [
            ({"colour": "blue"}, "Unknown configuration option 'colour'"),
            ({"language": "cobol"}, "Invalid value for 'language'"),
            ({"output_kinds": ["docs"]}, "Invalid value for 'output_kinds'"),
            ({"formatter": {"tabs": True}}, "Invalid value for 'formatter'"),
            ({"output": {"mode": "append"}}, "Invalid value for 'output'"),
        ],
    )
    def test_invalid_values(self, data, message):
        with pytest.raises(ConfigError, match=message):
            GeneratorConfig.from_dict(data)

    @pytest.mark.parametrize(
        "options,message",
        [
            ({"test_framework": TestFramework.SPOCK}, "not available for python"),
            ({"language": TargetLanguage.KOTLIN, "test_framework": TestFramework.PYTEST}, "not available for kotlin"),
            ({"language": TargetLanguage.JAVA, "serialization_library": SerializationLibrary.PYDANTIC}, "not available for java"),
            ({"output_kinds": []}, "At least one output kind"),
            ({"formatter": FormatterConfig(line_length=10)}, "line_length"),
            ({"render_workers": 0}, "render_workers"),
        ],
    )
    def test_validate(self, options, message):
        with pytest.raises(ConfigError, match=message):
            GeneratorConfig(**options).validate()

    def test_cache_key_tracks_type_options(self):
        assert GeneratorConfig().cache_key() == GeneratorConfig().cache_key()
        assert GeneratorConfig().cache_key() != GeneratorConfig(use_optional=True).cache_key()


if __name__ == "__main__":
    pytest.main([__file__])
