"""
Type mapper: schema nodes to target-language type expressions.

Pure over the registry and the configuration; results are memoized per
(node identity, configuration). Registered models map to their class name,
everything else maps structurally through the language profile.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from ..analyzer.name_resolver import NamingHelper, sanitize_enum_case
from ..analyzer.registry import SchemaRegistry
from ..config import GeneratorConfig, TargetLanguage
from ..errors import EnumValueCollision
from ..schema_ast.nodes import CompositionKind, SchemaKind, SchemaNode
from .profiles import Import, LanguageProfile, build_profile


@dataclass(frozen=True)
class TypeExpression:
    """A mapped type.

    Attributes:
        text: Type as written at a use site, nullability convention applied
        base: Type without the nullability convention
        nullable: Whether the use site admits null
        models: Registry names of generated models the type mentions
        is_model: The type is a generated model itself
        annotations: Type-use annotations (Java @Nullable)
    """

    text: str
    base: str
    nullable: bool = False
    models: tuple[str, ...] = ()
    is_model: bool = False
    is_container: bool = False
    annotations: tuple[str, ...] = ()


@dataclass(frozen=True)
class EnumCase:
    """One case of a generated enum."""

    name: str
    value: Any
    literal: str


class TypeMapper:
    """Maps schema nodes to type expressions for one configuration."""

    def __init__(self, registry: SchemaRegistry, config: GeneratorConfig, naming: NamingHelper):
        self.registry = registry
        self.config = config
        self.naming = naming
        self.profile: LanguageProfile = build_profile(config)
        self.language = config.language
        self._config_key = config.cache_key()
        self._cache: dict[tuple[int, tuple], tuple[SchemaNode, TypeExpression, frozenset[Import]]] = {}
        self._import_overrides = {target: Import.parse(config.language, text) for target, text in config.import_mapping.items()}

    # Models

    def is_model(self, node: SchemaNode) -> bool:
        """Whether a registry entry is emitted as its own artifact."""
        if node.kind == SchemaKind.ENUM:
            return True
        if node.kind == SchemaKind.OBJECT:
            return bool(node.properties or node.discriminator is not None or node.subtypes)
        if node.kind == SchemaKind.COMPOSED:
            if node.composition == CompositionKind.ALL_OF:
                return True
            if self.language == TargetLanguage.PYTHON:
                return True
            # JVM unions become interfaces: every member must be a generated class
            return all(member.is_reference and self._is_model_name(member.ref) for member in node.members)
        return False

    def _is_model_name(self, name: str) -> bool:
        target = self.registry.get(name)
        return target is not None and self.is_model(target) and target.kind != SchemaKind.ENUM

    # Type expressions

    def map_type(self, node: SchemaNode) -> tuple[TypeExpression, frozenset[Import]]:
        """
        Map a schema node to a type expression.

        Args:
            node: A use-site node (reference or anonymous schema) or a registry entry

        Returns:
            (type expression, imports the expression needs)
        """
        key = (id(node), self._config_key)
        cached = self._cache.get(key)
        if cached is not None and cached[0] is node:
            return cached[1], cached[2]
        imports: set[Import] = set()
        expression = self._map(node, imports, ())
        result = (expression, frozenset(imports))
        self._cache[key] = (node, expression, result[1])
        return result

    def optional(self, expression: TypeExpression) -> tuple[TypeExpression, frozenset[Import]]:
        """Apply the nullability convention to an already mapped type (absent optional values)."""
        imports: set[Import] = set()
        return self._apply_nullable(expression, True, imports), frozenset(imports)

    def value_type(self, node: SchemaNode) -> tuple[TypeExpression, frozenset[Import]]:
        """Type of an enum's literals."""
        imports: set[Import] = set()
        return self._primitive(node.type_name or "string", node.format, imports), frozenset(imports)

    def _map(self, node: SchemaNode, imports: set[Import], stack: tuple[str, ...]) -> TypeExpression:
        if node.is_reference:
            target = self.registry.resolve(node.ref)
            name = self.registry.canonical_name(node.ref)
            if self.is_model(target):
                expression = TypeExpression(text=self.naming.model_name(name), base=self.naming.model_name(name), models=(name,), is_model=True)
            elif name in stack:
                expression = self._any(imports)
            else:
                expression = self._map(target, imports, stack + (name,))
            return self._apply_nullable(expression, node.nullable or target.nullable, imports)

        if node.name is not None and self.is_model(node) and node.name not in stack:
            name = self.registry.canonical_name(node.name)
            text = self.naming.model_name(name)
            return self._apply_nullable(TypeExpression(text=text, base=text, models=(name,), is_model=True), node.nullable, imports)

        expression = self._map_structure(node, imports, stack)
        return self._apply_nullable(expression, node.nullable, imports)

    def _map_structure(self, node: SchemaNode, imports: set[Import], stack: tuple[str, ...]) -> TypeExpression:
        kind = node.kind
        if kind == SchemaKind.BOOLEAN_SCHEMA:
            if node.boolean_value is False:
                return self._primitive("null", None, imports)
            return self._any(imports)

        if kind in (SchemaKind.PRIMITIVE, SchemaKind.ENUM):
            return self._primitive(node.type_name or "any", node.format, imports)

        if kind == SchemaKind.ARRAY:
            item = self._map(node.items, imports, stack) if node.items is not None else self._any(imports)
            if node.constraints.unique_items:
                text = self.profile.set_of(item.text)
                self._add(imports, self.profile.set_import)
            else:
                text = self.profile.list_of(item.text)
                self._add(imports, self.profile.list_import)
            return TypeExpression(text=text, base=text, models=item.models, is_container=True)

        if kind == SchemaKind.OBJECT:
            value = node.additional_properties
            if isinstance(value, SchemaNode):
                mapped = self._map(value, imports, stack)
            else:
                mapped = self._any(imports)
            text = self.profile.map_of(mapped.text)
            self._add(imports, self.profile.map_import)
            return TypeExpression(text=text, base=text, models=mapped.models, is_container=True)

        if kind == SchemaKind.COMPOSED:
            return self._map_composed(node, imports, stack)

        return self._any(imports)

    def _map_composed(self, node: SchemaNode, imports: set[Import], stack: tuple[str, ...]) -> TypeExpression:
        if node.composition == CompositionKind.ALL_OF:
            refs = [member for member in node.members if member.is_reference]
            if len(refs) == 1 and not node.properties:
                return self._map(refs[0], imports, stack)
            return self._any(imports)

        members = [self._map(member, imports, stack) for member in node.members]
        if self.language != TargetLanguage.PYTHON or not members:
            return self._any(imports)
        texts = list(dict.fromkeys(member.text for member in members))
        models = tuple(dict.fromkeys(name for member in members for name in member.models))
        text = " | ".join(texts)
        return TypeExpression(text=text, base=text, models=models)

    def _primitive(self, type_name: str, format_name: str | None, imports: set[Import]) -> TypeExpression:
        override = None
        if format_name:
            override = self.config.type_mapping.get(f"{type_name}+{format_name}")
        if override is None:
            override = self.config.type_mapping.get(type_name)
        if override is not None:
            self._add(imports, self._import_overrides.get(override))
            return TypeExpression(text=override, base=override)

        text, needed = self.profile.primitive(type_name, format_name)
        self._add(imports, self._import_overrides.get(text, needed))
        return TypeExpression(text=text, base=text)

    def _any(self, imports: set[Import]) -> TypeExpression:
        return self._primitive("any", None, imports)

    def _apply_nullable(self, expression: TypeExpression, nullable: bool, imports: set[Import]) -> TypeExpression:
        if not nullable or expression.nullable:
            return expression
        text = self.profile.nullable(expression.base, self.config.use_optional)
        annotations = expression.annotations
        if self.language == TargetLanguage.JAVA:
            if self.config.use_optional:
                self._add(imports, self.profile.optional_import)
            else:
                annotations = annotations + ("@Nullable",)
                self._add(imports, self.profile.nullable_import)
        return TypeExpression(
            text=text,
            base=expression.base,
            nullable=True,
            models=expression.models,
            is_model=expression.is_model,
            is_container=expression.is_container,
            annotations=annotations,
        )

    def _add(self, imports: set[Import], item: Import | None) -> None:
        if item is not None:
            imports.add(item)

    # Enums

    def enum_cases(self, node: SchemaNode) -> list[EnumCase]:
        """
        Case names and literals of an enum schema.

        Raises:
            EnumValueCollision: if two literals still share a name after spelling symbols out
        """
        numeric = node.type_name in ("integer", "number")
        explicit = node.extensions.get("x-enum-varnames") or []

        def names_for(spell_symbols: bool) -> list[str]:
            names = []
            for index, value in enumerate(node.enum_values):
                mapped = self.config.enum_name_mapping.get(str(value))
                if mapped:
                    names.append(mapped)
                elif index < len(explicit) and explicit[index]:
                    names.append(to_case_name(explicit[index]))
                else:
                    names.append(sanitize_enum_case(value, numeric, spell_symbols))
            return names

        names = names_for(False)
        if len(set(names)) != len(names):
            retry = names_for(True)
            duplicates = {name for name in names if names.count(name) > 1}
            names = [retry[i] if name in duplicates else name for i, name in enumerate(names)]
        if len(set(names)) != len(names):
            clashing = sorted({name for name in names if names.count(name) > 1})
            values = [value for value, name in zip(node.enum_values, names) if name in clashing]
            raise EnumValueCollision(
                f"Enum values {values!r} all map to case name(s) {', '.join(clashing)}",
                schema=node.name,
            )
        return [
            EnumCase(name=name, value=value, literal=self.literal(value, node.type_name, node.format)) for name, value in zip(names, node.enum_values)
        ]

    # Literals

    def literal(self, value: Any, type_name: str | None = None, format_name: str | None = None) -> str:
        """Render a JSON value as a literal of the target language."""
        if self.language == TargetLanguage.PYTHON:
            if value is None:
                return "None"
            if isinstance(value, bool):
                return "True" if value else "False"
            if isinstance(value, (int, float)):
                return repr(value)
            if isinstance(value, str):
                return json.dumps(value)
            return repr(value)

        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            if type_name == "integer" and format_name == "int64":
                return f"{int(value)}L"
            if type_name == "number" and format_name == "float":
                return f"{float(value)}f"
            if type_name == "number" and format_name in (None, "decimal"):
                prefix = "new " if self.language == TargetLanguage.JAVA else ""
                return f'{prefix}BigDecimal("{value}")'
            if type_name == "number":
                return repr(float(value))
            return str(int(value)) if isinstance(value, int) or float(value).is_integer() else repr(value)
        text = json.dumps(str(value))
        if self.language == TargetLanguage.KOTLIN:
            text = text.replace("$", "\\$")
        return text

    def default_literal(self, node: SchemaNode) -> str | None:
        """Literal for a node's default value, or None when there is none (or it is a container)."""
        source = node
        if not node.has_default and node.is_reference:
            target = self.registry.resolve(node.ref)
            if target.has_default:
                source = target
        if not source.has_default or isinstance(source.default, (list, dict)):
            return None

        target = self.registry.deref(node)
        if target.kind == SchemaKind.ENUM and target.name is not None and source.default is not None:
            cases = {case.value: case.name for case in self.enum_cases(target)}
            if source.default in cases:
                return f"{self.naming.model_name(target.name)}.{cases[source.default]}"
        if self.language == TargetLanguage.PYTHON and target.kind == SchemaKind.PRIMITIVE and target.type_name == "string" and target.format:
            # date/uuid defaults need constructors; keep them as plain values out of the signature
            return None
        return self.literal(source.default, target.type_name, target.format)

    # Bean validation

    def validation_annotations(self, node: SchemaNode, required: bool) -> tuple[tuple[str, ...], frozenset[Import]]:
        """jakarta.validation annotations for a JVM property or parameter."""
        if self.language == TargetLanguage.PYTHON or not self.config.bean_validation:
            return (), frozenset()

        target = node
        if node.is_reference:
            resolved = self.registry.resolve(node.ref)
            if not self.is_model(resolved):
                target = resolved
        prefix = "@field:" if self.language == TargetLanguage.KOTLIN else "@"
        annotations: list[str] = []
        names: set[str] = set()
        c = target.constraints

        def add(name: str, arguments: str = "") -> None:
            annotations.append(f"{prefix}{name}{arguments}")
            names.add(name)

        nullable = node.nullable or target.nullable
        if required and not nullable:
            add("NotNull")
        if target.kind == SchemaKind.PRIMITIVE and target.type_name == "string":
            size = self._size_arguments(c.min_length, c.max_length)
            if size:
                add("Size", size)
            if c.pattern:
                add("Pattern", f"(regexp = {self.literal(c.pattern)})")
        elif target.kind == SchemaKind.ARRAY:
            size = self._size_arguments(c.min_items, c.max_items)
            if size:
                add("Size", size)
        elif target.kind == SchemaKind.PRIMITIVE and target.type_name == "integer":
            if c.minimum is not None or c.exclusive_minimum is not None:
                low = c.minimum if c.minimum is not None else c.exclusive_minimum + 1
                add("Min", f"({int(low)})")
            if c.maximum is not None or c.exclusive_maximum is not None:
                high = c.maximum if c.maximum is not None else c.exclusive_maximum - 1
                add("Max", f"({int(high)})")
        elif target.kind == SchemaKind.PRIMITIVE and target.type_name == "number":
            if c.minimum is not None:
                add("DecimalMin", f'("{c.minimum}")')
            elif c.exclusive_minimum is not None:
                add("DecimalMin", f'(value = "{c.exclusive_minimum}", inclusive = false)')
            if c.maximum is not None:
                add("DecimalMax", f'("{c.maximum}")')
            elif c.exclusive_maximum is not None:
                add("DecimalMax", f'(value = "{c.exclusive_maximum}", inclusive = false)')

        expression, _ = self.map_type(node)
        if any(self.registry.resolve(name).kind != SchemaKind.ENUM for name in expression.models):
            add("Valid")

        imports = frozenset(
            Import("jakarta.validation.Valid") if name == "Valid" else Import(f"jakarta.validation.constraints.{name}") for name in names
        )
        return tuple(annotations), imports

    def _size_arguments(self, low: int | None, high: int | None) -> str:
        parts = []
        if low is not None:
            parts.append(f"min = {low}")
        if high is not None:
            parts.append(f"max = {high}")
        return f"({', '.join(parts)})" if parts else ""


def to_case_name(text: str) -> str:
    """Normalize an explicit x-enum-varnames entry."""
    return sanitize_enum_case(text, numeric=False)
