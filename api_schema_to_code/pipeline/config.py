"""
Configuration for the code generator pipeline.

Everything the pipeline consumes as input rather than re-deriving:
target language, output kinds, test framework, naming and serialization
choices, duplicate resolution policy, formatter and output options.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import ConfigError


class TargetLanguage(str, Enum):
    """Languages the bundled template sets and type tables cover."""

    PYTHON = "python"
    JAVA = "java"
    KOTLIN = "kotlin"


class OutputKind(str, Enum):
    """Artifact families to generate; any combination is allowed."""

    MODELS = "models"
    CLIENT = "client"
    SERVER = "server"


class TestFramework(str, Enum):
    """Test scaffolding flavour. Only affects template selection."""

    NONE = "none"
    PYTEST = "pytest"
    UNITTEST = "unittest"
    JUNIT5 = "junit5"
    SPOCK = "spock"
    KOTEST = "kotest"

    # Keep pytest from collecting this enum as a test class
    __test__ = False


class NamingCase(str, Enum):
    """Naming convention for generated properties and parameters."""

    SNAKE = "snake_case"
    CAMEL = "camelCase"
    ORIGINAL = "original"


class SerializationLibrary(str, Enum):
    """Serialization library the generated models target."""

    DATACLASSES_JSON = "dataclasses_json"
    PYDANTIC = "pydantic"
    JACKSON = "jackson"
    MICRONAUT_SERDE = "micronaut_serde"


class DuplicatePolicy(str, Enum):
    """How conflicting same-named schemas from independent sources are handled."""

    FAIL = "fail"  # Default: report a NameCollision
    PREFER_FIRST = "first"  # Keep the first registered schema
    PREFER_LAST = "last"  # Replace with the last registered schema


class DateTimeFormat(str, Enum):
    """JVM type used for `format: date-time`."""

    OFFSET_DATETIME = "offset"
    ZONED_DATETIME = "zoned"
    LOCAL_DATETIME = "local"


class OutputMode(str, Enum):
    """Output mode for file generation.

    Controls behavior when an output file already exists.
    """

    ERROR_IF_EXISTS = "error"  # Default: raise error if file exists
    FORCE = "force"  # Overwrite


# Per-language defaults used when the corresponding option is left unset
LANGUAGE_DEFAULTS: dict[TargetLanguage, dict] = {
    TargetLanguage.PYTHON: {
        "test_framework": TestFramework.PYTEST,
        "naming_case": NamingCase.SNAKE,
        "serialization_library": SerializationLibrary.DATACLASSES_JSON,
    },
    TargetLanguage.JAVA: {
        "test_framework": TestFramework.JUNIT5,
        "naming_case": NamingCase.CAMEL,
        "serialization_library": SerializationLibrary.JACKSON,
    },
    TargetLanguage.KOTLIN: {
        "test_framework": TestFramework.JUNIT5,
        "naming_case": NamingCase.CAMEL,
        "serialization_library": SerializationLibrary.JACKSON,
    },
}

SUPPORTED_TEST_FRAMEWORKS: dict[TargetLanguage, set[TestFramework]] = {
    TargetLanguage.PYTHON: {TestFramework.NONE, TestFramework.PYTEST, TestFramework.UNITTEST},
    TargetLanguage.JAVA: {TestFramework.NONE, TestFramework.JUNIT5, TestFramework.SPOCK},
    TargetLanguage.KOTLIN: {TestFramework.NONE, TestFramework.JUNIT5, TestFramework.KOTEST},
}

SUPPORTED_SERIALIZATION: dict[TargetLanguage, set[SerializationLibrary]] = {
    TargetLanguage.PYTHON: {SerializationLibrary.DATACLASSES_JSON, SerializationLibrary.PYDANTIC},
    TargetLanguage.JAVA: {SerializationLibrary.JACKSON, SerializationLibrary.MICRONAUT_SERDE},
    TargetLanguage.KOTLIN: {SerializationLibrary.JACKSON, SerializationLibrary.MICRONAUT_SERDE},
}


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        mode: How to handle existing output files
        atomic_write: Whether to write the artifact set atomically
    """

    mode: OutputMode = OutputMode.ERROR_IF_EXISTS
    atomic_write: bool = True


@dataclass
class FormatterConfig:
    """Configuration for the source formatter."""

    # Column limit for wrapping long argument lists
    line_length: int = 100

    # Spaces per nesting level in emitted code
    indent_size: int = 4

    # Pattern collapsed in generated identifiers before case conversion
    identifier_substitution_pattern: str = r"[.\-\s]+"
    identifier_substitution: str = "_"

    # Run black over Python artifacts after formatting
    use_black: bool = False

    # Python version target for black (e.g., "py312")
    target_version: str = "py312"


@dataclass
class GeneratorConfig:
    """Configuration options for code generation."""

    # Target language
    language: TargetLanguage = TargetLanguage.PYTHON

    # Artifact families to emit
    output_kinds: list[OutputKind] = field(default_factory=lambda: [OutputKind.MODELS, OutputKind.CLIENT])

    # None = language default
    test_framework: TestFramework | None = None
    naming_case: NamingCase | None = None
    serialization_library: SerializationLibrary | None = None

    # Conflicting same-named schemas from independent sources
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.FAIL

    # Root package of generated code ("openapi_client" or "com.example.petstore")
    package_name: str = "openapi_client"

    # Affixes applied to every generated model name
    model_name_prefix: str = ""
    model_name_suffix: str = ""

    # "type" or "type+format" -> target type, and target type -> import
    type_mapping: dict[str, str] = field(default_factory=dict)
    import_mapping: dict[str, str] = field(default_factory=dict)

    # Explicit renames
    inline_schema_name_mapping: dict[str, str] = field(default_factory=dict)
    model_name_mapping: dict[str, str] = field(default_factory=dict)
    enum_name_mapping: dict[str, str] = field(default_factory=dict)

    # Prefer an inline schema's title over its positional anchor
    use_title_for_inline_names: bool = True

    # Sort operations by (path, method) for deterministic output
    sort_operations: bool = True

    # Required parameters before optional ones in generated signatures
    sort_params_by_required: bool = True

    # Java: wrap nullable types in Optional<T> instead of @Nullable
    use_optional: bool = False

    # JVM: emit jakarta.validation annotations from constraints
    bean_validation: bool = True

    date_time_format: DateTimeFormat = DateTimeFormat.OFFSET_DATETIME

    # Add generation comment at top of each file
    add_generation_comment: bool = True

    # Worker threads used to render artifacts
    render_workers: int = 4

    formatter: FormatterConfig = field(default_factory=FormatterConfig)

    output: OutputConfig = field(default_factory=OutputConfig)

    def effective_test_framework(self) -> TestFramework:
        return self.test_framework or LANGUAGE_DEFAULTS[self.language]["test_framework"]

    def effective_naming_case(self) -> NamingCase:
        return self.naming_case or LANGUAGE_DEFAULTS[self.language]["naming_case"]

    def effective_serialization_library(self) -> SerializationLibrary:
        return self.serialization_library or LANGUAGE_DEFAULTS[self.language]["serialization_library"]

    def validate(self) -> None:
        """Check option combinations; raises ConfigError on the first invalid one."""
        framework = self.effective_test_framework()
        if framework not in SUPPORTED_TEST_FRAMEWORKS[self.language]:
            raise ConfigError(f"Test framework '{framework.value}' is not available for {self.language.value}")
        library = self.effective_serialization_library()
        if library not in SUPPORTED_SERIALIZATION[self.language]:
            raise ConfigError(f"Serialization library '{library.value}' is not available for {self.language.value}")
        if not self.output_kinds:
            raise ConfigError("At least one output kind is required")
        if self.formatter.line_length < 20:
            raise ConfigError("formatter.line_length must be at least 20")
        if self.formatter.indent_size < 1:
            raise ConfigError("formatter.indent_size must be positive")
        if self.render_workers < 1:
            raise ConfigError("render_workers must be positive")

    def cache_key(self) -> tuple:
        """Hashable identity of the options that affect type mapping."""
        return (
            self.language,
            self.effective_serialization_library(),
            self.package_name,
            self.model_name_prefix,
            self.model_name_suffix,
            tuple(sorted(self.type_mapping.items())),
            tuple(sorted(self.import_mapping.items())),
            tuple(sorted(self.model_name_mapping.items())),
            tuple(sorted(self.enum_name_mapping.items())),
            self.use_optional,
            self.bean_validation,
            self.date_time_format,
            self.formatter.identifier_substitution_pattern,
            self.formatter.identifier_substitution,
        )

    @staticmethod
    def from_dict(d: dict) -> GeneratorConfig:
        """Create a config from a dictionary."""
        config = GeneratorConfig()
        enum_fields = {
            "language": TargetLanguage,
            "test_framework": TestFramework,
            "naming_case": NamingCase,
            "serialization_library": SerializationLibrary,
            "duplicate_policy": DuplicatePolicy,
            "date_time_format": DateTimeFormat,
        }
        for k, v in d.items():
            try:
                if k == "formatter" and isinstance(v, dict):
                    config.formatter = FormatterConfig(**v)
                elif k == "output" and isinstance(v, dict):
                    mode = v.get("mode", OutputMode.ERROR_IF_EXISTS)
                    if isinstance(mode, str):
                        mode = OutputMode(mode)
                    config.output = OutputConfig(mode=mode, atomic_write=v.get("atomic_write", True))
                elif k == "output_kinds":
                    config.output_kinds = [OutputKind(kind) for kind in v]
                elif k in enum_fields:
                    setattr(config, k, enum_fields[k](v) if v is not None else None)
                elif hasattr(config, k):
                    setattr(config, k, v)
                else:
                    raise ConfigError(f"Unknown configuration option '{k}'")
            except (ValueError, TypeError) as e:
                raise ConfigError(f"Invalid value for '{k}': {e}") from e
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "language": self.language.value,
            "output_kinds": [kind.value for kind in self.output_kinds],
            "test_framework": self.test_framework.value if self.test_framework else None,
            "naming_case": self.naming_case.value if self.naming_case else None,
            "serialization_library": self.serialization_library.value if self.serialization_library else None,
            "duplicate_policy": self.duplicate_policy.value,
            "package_name": self.package_name,
            "model_name_prefix": self.model_name_prefix,
            "model_name_suffix": self.model_name_suffix,
            "type_mapping": self.type_mapping,
            "import_mapping": self.import_mapping,
            "inline_schema_name_mapping": self.inline_schema_name_mapping,
            "model_name_mapping": self.model_name_mapping,
            "enum_name_mapping": self.enum_name_mapping,
            "use_title_for_inline_names": self.use_title_for_inline_names,
            "sort_operations": self.sort_operations,
            "sort_params_by_required": self.sort_params_by_required,
            "use_optional": self.use_optional,
            "bean_validation": self.bean_validation,
            "date_time_format": self.date_time_format.value,
            "add_generation_comment": self.add_generation_comment,
            "render_workers": self.render_workers,
            "formatter": {
                "line_length": self.formatter.line_length,
                "indent_size": self.formatter.indent_size,
                "identifier_substitution_pattern": self.formatter.identifier_substitution_pattern,
                "identifier_substitution": self.formatter.identifier_substitution,
                "use_black": self.formatter.use_black,
                "target_version": self.formatter.target_version,
            },
            "output": {
                "mode": self.output.mode.value,
                "atomic_write": self.output.atomic_write,
            },
        }
