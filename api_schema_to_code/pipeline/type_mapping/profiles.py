"""
Language profiles: primitive tables, containers and nullability conventions.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..config import DateTimeFormat, GeneratorConfig, SerializationLibrary, TargetLanguage


@dataclass(frozen=True, order=True)
class Import:
    """An import required by a type.

    Python: `from {module} import {name}`. JVM: `import {module}` where
    module is the fully qualified class name and name is None.
    """

    module: str
    name: str | None = None

    @staticmethod
    def parse(language: TargetLanguage, text: str) -> Import:
        """Parse an import_mapping value ("decimal.Decimal" or "java.math.BigDecimal")."""
        if language == TargetLanguage.PYTHON and "." in text:
            module, name = text.rsplit(".", 1)
            return Import(module, name)
        return Import(text)


# (type, format) -> (type text, import or None); format None is the fallback for the type
PYTHON_PRIMITIVES: dict[tuple[str, str | None], tuple[str, Import | None]] = {
    ("string", None): ("str", None),
    ("string", "date"): ("date", Import("datetime", "date")),
    ("string", "date-time"): ("datetime", Import("datetime", "datetime")),
    ("string", "time"): ("time", Import("datetime", "time")),
    ("string", "uuid"): ("UUID", Import("uuid", "UUID")),
    ("string", "binary"): ("bytes", None),
    ("string", "byte"): ("bytes", None),
    ("string", "decimal"): ("Decimal", Import("decimal", "Decimal")),
    ("integer", None): ("int", None),
    ("number", None): ("float", None),
    ("number", "decimal"): ("Decimal", Import("decimal", "Decimal")),
    ("boolean", None): ("bool", None),
    ("null", None): ("None", None),
    ("any", None): ("Any", Import("typing", "Any")),
}

JAVA_PRIMITIVES: dict[tuple[str, str | None], tuple[str, Import | None]] = {
    ("string", None): ("String", None),
    ("string", "date"): ("LocalDate", Import("java.time.LocalDate")),
    ("string", "time"): ("LocalTime", Import("java.time.LocalTime")),
    ("string", "uuid"): ("UUID", Import("java.util.UUID")),
    ("string", "uri"): ("URI", Import("java.net.URI")),
    ("string", "binary"): ("byte[]", None),
    ("string", "byte"): ("byte[]", None),
    ("string", "decimal"): ("BigDecimal", Import("java.math.BigDecimal")),
    ("integer", None): ("Integer", None),
    ("integer", "int32"): ("Integer", None),
    ("integer", "int64"): ("Long", None),
    ("number", None): ("BigDecimal", Import("java.math.BigDecimal")),
    ("number", "float"): ("Float", None),
    ("number", "double"): ("Double", None),
    ("boolean", None): ("Boolean", None),
    ("null", None): ("Void", None),
    ("any", None): ("Object", None),
}

KOTLIN_PRIMITIVES: dict[tuple[str, str | None], tuple[str, Import | None]] = {
    ("string", None): ("String", None),
    ("string", "date"): ("LocalDate", Import("java.time.LocalDate")),
    ("string", "time"): ("LocalTime", Import("java.time.LocalTime")),
    ("string", "uuid"): ("UUID", Import("java.util.UUID")),
    ("string", "uri"): ("URI", Import("java.net.URI")),
    ("string", "binary"): ("ByteArray", None),
    ("string", "byte"): ("ByteArray", None),
    ("string", "decimal"): ("BigDecimal", Import("java.math.BigDecimal")),
    ("integer", None): ("Int", None),
    ("integer", "int32"): ("Int", None),
    ("integer", "int64"): ("Long", None),
    ("number", None): ("BigDecimal", Import("java.math.BigDecimal")),
    ("number", "float"): ("Float", None),
    ("number", "double"): ("Double", None),
    ("boolean", None): ("Boolean", None),
    ("null", None): ("Nothing?", None),
    ("any", None): ("Any", None),
}

JVM_DATE_TIMES = {
    DateTimeFormat.OFFSET_DATETIME: ("OffsetDateTime", Import("java.time.OffsetDateTime")),
    DateTimeFormat.ZONED_DATETIME: ("ZonedDateTime", Import("java.time.ZonedDateTime")),
    DateTimeFormat.LOCAL_DATETIME: ("LocalDateTime", Import("java.time.LocalDateTime")),
}

# Model-level imports per serialization library
SERIALIZATION_IMPORTS: dict[SerializationLibrary, tuple[Import, ...]] = {
    SerializationLibrary.DATACLASSES_JSON: (
        Import("dataclasses", "dataclass"),
        Import("dataclasses", "field"),
        Import("dataclasses_json", "config"),
        Import("dataclasses_json", "dataclass_json"),
    ),
    SerializationLibrary.PYDANTIC: (
        Import("pydantic", "BaseModel"),
        Import("pydantic", "ConfigDict"),
        Import("pydantic", "Field"),
    ),
    SerializationLibrary.JACKSON: (
        Import("com.fasterxml.jackson.annotation.JsonProperty"),
        Import("com.fasterxml.jackson.annotation.JsonIgnoreProperties"),
    ),
    SerializationLibrary.MICRONAUT_SERDE: (
        Import("io.micronaut.serde.annotation.Serdeable"),
        Import("com.fasterxml.jackson.annotation.JsonProperty"),
    ),
}

POLYMORPHISM_IMPORTS: dict[TargetLanguage, tuple[Import, ...]] = {
    TargetLanguage.PYTHON: (),
    TargetLanguage.JAVA: (
        Import("com.fasterxml.jackson.annotation.JsonSubTypes"),
        Import("com.fasterxml.jackson.annotation.JsonTypeInfo"),
    ),
    TargetLanguage.KOTLIN: (
        Import("com.fasterxml.jackson.annotation.JsonSubTypes"),
        Import("com.fasterxml.jackson.annotation.JsonTypeInfo"),
    ),
}


@dataclass
class LanguageProfile:
    """Everything the type mapper needs to know about a target language."""

    language: TargetLanguage
    primitives: dict[tuple[str, str | None], tuple[str, Import | None]]
    list_template: str
    set_template: str
    map_template: str
    list_import: Import | None = None
    set_import: Import | None = None
    map_import: Import | None = None
    nullable_import: Import | None = None
    optional_import: Import | None = None

    def primitive(self, type_name: str, format_name: str | None) -> tuple[str, Import | None]:
        if (type_name, format_name) in self.primitives:
            return self.primitives[(type_name, format_name)]
        return self.primitives.get((type_name, None), self.primitives[("any", None)])

    def list_of(self, item: str) -> str:
        return self.list_template.format(item=item)

    def set_of(self, item: str) -> str:
        return self.set_template.format(item=item)

    def map_of(self, value: str) -> str:
        return self.map_template.format(value=value)

    @property
    def any_type(self) -> str:
        return self.primitives[("any", None)][0]

    def nullable(self, text: str, use_optional: bool = False) -> str:
        """Apply the nullability convention to a type text."""
        if self.language == TargetLanguage.PYTHON:
            return text if text.endswith("| None") or text in ("None", "Any") else f"{text} | None"
        if self.language == TargetLanguage.KOTLIN:
            return text if text.endswith("?") else f"{text}?"
        if use_optional:
            return f"Optional<{text}>"
        # Java marks nullability with an annotation, not in the type text
        return text


def build_profile(config: GeneratorConfig) -> LanguageProfile:
    """Profile for the configured language, with date-time choice applied."""
    if config.language == TargetLanguage.PYTHON:
        return LanguageProfile(
            language=TargetLanguage.PYTHON,
            primitives=dict(PYTHON_PRIMITIVES),
            list_template="list[{item}]",
            set_template="set[{item}]",
            map_template="dict[str, {value}]",
        )

    base = JAVA_PRIMITIVES if config.language == TargetLanguage.JAVA else KOTLIN_PRIMITIVES
    primitives = dict(base)
    primitives[("string", "date-time")] = JVM_DATE_TIMES[config.date_time_format]
    if config.language == TargetLanguage.JAVA:
        return LanguageProfile(
            language=TargetLanguage.JAVA,
            primitives=primitives,
            list_template="List<{item}>",
            set_template="Set<{item}>",
            map_template="Map<String, {value}>",
            list_import=Import("java.util.List"),
            set_import=Import("java.util.Set"),
            map_import=Import("java.util.Map"),
            nullable_import=Import("io.micronaut.core.annotation.Nullable"),
            optional_import=Import("java.util.Optional"),
        )
    return LanguageProfile(
        language=TargetLanguage.KOTLIN,
        primitives=primitives,
        list_template="List<{item}>",
        set_template="Set<{item}>",
        map_template="Map<String, {value}>",
    )
