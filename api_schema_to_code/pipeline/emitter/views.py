"""
View builder: turns the generation model into template-ready views.

Views are fully resolved (identifiers, type texts, literals and import
lines) and immutable, so templates never consult the registry and
artifacts can be rendered concurrently.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from ..analyzer.name_resolver import NamingHelper
from ..config import OutputKind, SerializationLibrary, TargetLanguage, TestFramework
from ..errors import Diagnostics, EnumValueCollision, NameCollision
from ..schema_ast.nodes import CompositionKind, Operation, Parameter, ParameterLocation, PropertyDef, SchemaKind, SchemaNode
from ..type_mapping.profiles import POLYMORPHISM_IMPORTS, SERIALIZATION_IMPORTS, Import
from ..type_mapping.type_mapper import TypeMapper
from .model import GenerationModel
from .templates import ArtifactKind

logger = structlog.get_logger(__name__)

VOID_TYPES = {
    TargetLanguage.PYTHON: "None",
    TargetLanguage.JAVA: "void",
    TargetLanguage.KOTLIN: "Unit",
}

# Default of an optional argument that is left out
VOID_DEFAULTS = {
    TargetLanguage.PYTHON: "None",
    TargetLanguage.KOTLIN: "null",
}

PYTHON_ENUM_BASES = {"string": "str", "integer": "int", "number": "float"}

JVM_BINDINGS = {
    ParameterLocation.PATH: "PathVariable",
    ParameterLocation.QUERY: "QueryValue",
    ParameterLocation.HEADER: "Header",
    ParameterLocation.COOKIE: "CookieValue",
}

# Imports a Python model always needs, whatever its properties use
PYTHON_BASE_IMPORTS = {"dataclass", "dataclass_json", "BaseModel", "ConfigDict"}

_PATH_TEMPLATE = re.compile(r"\{([^}]+)\}")


@dataclass(frozen=True)
class PropertyView:
    """A model property.

    Attributes:
        name: Identifier in generated code
        wire_name: Name in the serialized form
        type: Type text at the declaration
        default: Default value literal, if any
        initializer: Python right-hand side of the field declaration, if any
        annotations: JVM annotations (nullability and bean validation)
        inherited: Declared by an ancestor (Kotlin overrides)
    """

    name: str
    wire_name: str
    type: str
    required: bool = False
    nullable: bool = False
    default: str | None = None
    initializer: str | None = None
    annotations: tuple[str, ...] = ()
    description: str | None = None
    deprecated: bool = False
    read_only: bool = False
    write_only: bool = False
    inherited: bool = False


@dataclass(frozen=True)
class EnumCaseView:
    name: str
    literal: str
    description: str | None = None


@dataclass(frozen=True)
class SubtypeView:
    """A concrete subtype of a polymorphic model, with its discriminator value when there is one."""

    name: str
    module: str
    value: str | None = None


@dataclass(frozen=True)
class DiscriminatorView:
    property_name: str
    field_name: str


@dataclass(frozen=True)
class ModelView:
    """A model, enum or union artifact."""

    schema_name: str
    name: str
    module: str
    package: str
    kind: ArtifactKind
    header: str | None = None
    description: str | None = None
    deprecated: bool = False
    properties: tuple[PropertyView, ...] = ()
    parent: str | None = None
    interfaces: tuple[str, ...] = ()
    is_parent: bool = False
    discriminator: DiscriminatorView | None = None
    subtypes: tuple[SubtypeView, ...] = ()
    helper: str | None = None
    enum_cases: tuple[EnumCaseView, ...] = ()
    enum_value_type: str | None = None
    enum_base: str | None = None
    members: tuple[str, ...] = ()
    imports: tuple[str, ...] = ()
    type_checking_imports: tuple[str, ...] = ()


@dataclass(frozen=True)
class IndexEntry:
    module: str
    names: tuple[str, ...]


@dataclass(frozen=True)
class ModelsIndexView:
    package: str
    header: str | None
    entries: tuple[IndexEntry, ...]

    @property
    def exported(self) -> tuple[str, ...]:
        return tuple(name for entry in self.entries for name in entry.names)


@dataclass(frozen=True)
class ParameterView:
    """An operation parameter (the request body is one too, with location "body")."""

    name: str
    wire_name: str
    location: str
    type: str
    required: bool = False
    default: str | None = None
    annotations: tuple[str, ...] = ()
    description: str | None = None
    deprecated: bool = False
    style: str | None = None
    explode: bool | None = None
    content_type: str | None = None


@dataclass(frozen=True)
class ResponseView:
    status: str
    description: str | None
    type: str | None
    content_type: str | None
    success: bool


@dataclass(frozen=True)
class OperationView:
    """An operation, ready for the client, server and test templates.

    Attributes:
        name: Method name
        path_expression: Python f-string body building the request path
        parameters: Method signature order (request body included)
        decode: Python expression decoding `_data` into the return type
    """

    operation_id: str
    name: str
    http_method: str
    path: str
    path_expression: str
    summary: str | None
    description: str | None
    deprecated: bool
    parameters: tuple[ParameterView, ...]
    path_parameters: tuple[ParameterView, ...]
    query_parameters: tuple[ParameterView, ...]
    header_parameters: tuple[ParameterView, ...]
    cookie_parameters: tuple[ParameterView, ...]
    body: ParameterView | None
    responses: tuple[ResponseView, ...]
    return_type: str
    returns_value: bool
    decode: str
    security: tuple[str, ...]
    tags: tuple[str, ...]

    @property
    def http_annotation(self) -> str:
        return self.http_method.capitalize()


@dataclass(frozen=True)
class ApiGroupView:
    """All operations sharing a grouping key."""

    group: str
    name: str
    module: str
    package: str
    server_name: str
    server_module: str
    server_package: str
    test_name: str
    test_subject: str
    test_subject_import: str
    model_package: str
    header: str | None
    title: str
    version: str
    base_url: str
    operations: tuple[OperationView, ...]
    imports: tuple[str, ...]


@dataclass(frozen=True)
class GenerationViews:
    models: tuple[ModelView, ...]
    index: ModelsIndexView
    groups: tuple[ApiGroupView, ...]


class ViewBuilder:
    """Builds every view of a generation model.

    Type mapping and import collection happen here and only here. Issues
    (enum case collisions, clashing class or method names) are collected and
    raised together as a GenerationError.
    """

    def __init__(self, model: GenerationModel):
        self.model = model
        self.config = model.config
        self.language = self.config.language
        self.naming = NamingHelper(self.config)
        self.registry = model.build_registry()
        self.mapper = TypeMapper(self.registry, self.config, self.naming)
        self.serialization = self.config.effective_serialization_library()
        self.diagnostics = Diagnostics()
        self._entries = dict(model.schemas)
        self._model_names = [name for name, node in model.schemas if self.mapper.is_model(node)]
        self._model_set = set(self._model_names)
        self._interfaces = self._union_interfaces()
        self._dependencies: dict[str, set[str]] | None = None

    # Packages

    @property
    def model_package(self) -> str:
        suffix = "models" if self.language == TargetLanguage.PYTHON else "model"
        return f"{self.config.package_name}.{suffix}"

    # Entry point

    def build(self) -> GenerationViews:
        models = []
        for name in self._model_names:
            try:
                models.append(self.model_view(name))
            except EnumValueCollision as e:
                self.diagnostics.add(e)
        self._check_model_names(models)

        kinds = set(self.config.output_kinds)
        groups = self.api_groups() if kinds & {OutputKind.CLIENT, OutputKind.SERVER} else []
        self.diagnostics.raise_if_errors("emission")

        index = ModelsIndexView(
            package=self.model_package,
            header=self.model.generation_comment,
            entries=tuple(IndexEntry(view.module, (view.name,) + ((view.helper,) if view.helper else ())) for view in models),
        )
        logger.debug("views_built", models=len(models), groups=len(groups))
        return GenerationViews(models=tuple(models), index=index, groups=tuple(groups))

    def _check_model_names(self, models: list[ModelView]) -> None:
        """Two schemas must not generate the same class (or, case-insensitively, the same file)."""
        seen: dict[str, str] = {}
        for view in models:
            for key in (view.name.lower(), f"module:{view.module}"):
                other = seen.setdefault(key, view.schema_name)
                if other != view.schema_name:
                    self.diagnostics.add(
                        NameCollision(
                            f"Schemas '{other}' and '{view.schema_name}' both generate '{view.name}'",
                            schema=view.schema_name,
                        )
                    )
                    break

    # Models

    def model_view(self, name: str) -> ModelView:
        node = self._entries[name]
        common = dict(
            schema_name=name,
            name=self.naming.model_name(name),
            module=self.naming.module_name(name),
            package=self.model_package,
            header=self.model.generation_comment,
            description=node.description or node.title,
            deprecated=node.deprecated,
        )
        if node.kind == SchemaKind.ENUM:
            return self._enum_view(node, common)
        if node.kind == SchemaKind.COMPOSED and node.composition != CompositionKind.ALL_OF:
            return self._union_view(name, node, common)
        return self._class_view(name, node, common)

    def _enum_view(self, node: SchemaNode, common: dict) -> ModelView:
        cases = self.mapper.enum_cases(node)
        descriptions = node.extensions.get("x-enum-descriptions") or []
        value_type, imports = self.mapper.value_type(node)
        return ModelView(
            kind=ArtifactKind.ENUM,
            enum_cases=tuple(
                EnumCaseView(case.name, case.literal, descriptions[i] if i < len(descriptions) else None) for i, case in enumerate(cases)
            ),
            enum_value_type=value_type.text,
            enum_base=PYTHON_ENUM_BASES.get(node.type_name or "string") if self.language == TargetLanguage.PYTHON else None,
            imports=self._import_lines(imports),
            **common,
        )

    def _union_view(self, name: str, node: SchemaNode, common: dict) -> ModelView:
        imports: set[Import] = set()
        models: set[str] = set()
        members = []
        for member in node.members:
            expression, needed = self.mapper.map_type(member)
            members.append(expression.text)
            imports |= needed
            models.update(expression.models)

        discriminator = self._discriminator_view(node)
        subtypes = self._subtypes(node)
        if discriminator is not None or self.language != TargetLanguage.PYTHON:
            imports.update(POLYMORPHISM_IMPORTS[self.language])
        if self.language == TargetLanguage.PYTHON and discriminator is not None:
            imports.add(Import("typing", "Any"))

        model_lines, checking = self._model_import_lines(name, models, runtime=models)
        return ModelView(
            kind=ArtifactKind.UNION,
            members=tuple(dict.fromkeys(members)),
            discriminator=discriminator,
            subtypes=subtypes,
            helper=self._helper_name(name, node),
            imports=self._import_lines(imports) + model_lines,
            type_checking_imports=checking,
            interfaces=self._interface_names(name),
            **common,
        )

    def _class_view(self, name: str, node: SchemaNode, common: dict) -> ModelView:
        parent = self._parent_name(name, node)
        own = self._own_properties(name, node, parent)
        entries = [(prop, False) for prop in own]
        if self.language == TargetLanguage.KOTLIN and parent is not None and not node.subtypes:
            # Kotlin parents are interfaces: concrete children implement every inherited property
            inherited = [prop for prop in self._all_properties(parent, set()) if prop.name not in {p.name for p in own}]
            entries = [(prop, True) for prop in inherited] + entries

        imports: set[Import] = set()
        models: set[str] = set()
        properties = []
        used: set[str] = set()
        for prop, is_inherited in entries:
            view = self._property_view(prop, is_inherited, used, imports, models)
            properties.append(view)

        discriminator = self._discriminator_view(node)
        is_parent = bool(node.subtypes)
        if discriminator is not None and is_parent:
            imports.update(POLYMORPHISM_IMPORTS[self.language])
        if self.language == TargetLanguage.PYTHON:
            imports.update(self._python_serialization_imports(properties))
            if discriminator is not None and is_parent:
                imports.add(Import("typing", "Any"))
        else:
            imports.update(SERIALIZATION_IMPORTS[self.serialization])

        if parent is not None:
            models.add(parent)
        model_lines, checking = self._model_import_lines(name, models, runtime={parent} if parent else set())
        return ModelView(
            kind=ArtifactKind.MODEL,
            properties=tuple(properties),
            parent=self.naming.model_name(parent) if parent else None,
            interfaces=self._interface_names(name),
            is_parent=is_parent,
            discriminator=discriminator,
            subtypes=self._subtypes(node),
            helper=self._helper_name(name, node),
            imports=self._import_lines(imports) + model_lines,
            type_checking_imports=checking,
            **common,
        )

    def _property_view(
        self, prop: PropertyDef, inherited: bool, used: set[str], imports: set[Import], models: set[str]
    ) -> PropertyView:
        schema = prop.schema
        expression, needed = self.mapper.map_type(schema)
        imports |= needed
        models.update(expression.models)
        default = self.mapper.default_literal(schema)
        annotations = list(expression.annotations)

        absent = not prop.required and default is None
        if absent:
            if self.language == TargetLanguage.JAVA:
                if "@Nullable" not in annotations:
                    annotations.append("@Nullable")
                    imports.add(self.mapper.profile.nullable_import)
            else:
                expression, needed = self.mapper.optional(expression)
                imports |= needed

        validation, needed = self.mapper.validation_annotations(schema, prop.required)
        annotations.extend(validation)
        imports |= needed

        name = self._unique(self.naming.property_name(prop.name), used)
        initializer = None
        if self.language == TargetLanguage.PYTHON:
            initializer = self._python_initializer(prop.name, name, default, absent)

        resolved = self.registry.deref(schema) if schema.is_reference else schema
        return PropertyView(
            name=name,
            wire_name=prop.name,
            type=expression.text,
            required=prop.required,
            nullable=expression.nullable,
            default=default,
            initializer=initializer,
            annotations=tuple(annotations),
            description=schema.description or resolved.description,
            deprecated=schema.deprecated or resolved.deprecated,
            read_only=schema.read_only or resolved.read_only,
            write_only=schema.write_only or resolved.write_only,
            inherited=inherited,
        )

    def _python_initializer(self, wire_name: str, name: str, default: str | None, absent: bool) -> str | None:
        value = default if default is not None else ("None" if absent else None)
        aliased = wire_name != name
        if not aliased:
            return value
        arguments = [f"default={value}"] if value is not None else []
        if self.serialization == SerializationLibrary.PYDANTIC:
            arguments.append(f"alias={json.dumps(wire_name)}")
            return f"Field({', '.join(arguments)})"
        arguments.append(f"metadata=config(field_name={json.dumps(wire_name)})")
        return f"field({', '.join(arguments)})"

    def _python_serialization_imports(self, properties: list[PropertyView]) -> set[Import]:
        initializers = [prop.initializer for prop in properties if prop.initializer]
        return {
            item
            for item in SERIALIZATION_IMPORTS[self.serialization]
            if item.name in PYTHON_BASE_IMPORTS or any(f"{item.name}(" in text for text in initializers)
        }

    def _parent_name(self, name: str, node: SchemaNode) -> str | None:
        """First allOf reference to a class model: the superclass."""
        if node.composition != CompositionKind.ALL_OF:
            return None
        for member in node.members:
            if not member.is_reference:
                continue
            target_name = self.registry.canonical_name(member.ref)
            target = self.registry.get(target_name)
            if target_name != name and target is not None and target_name in self._model_set and self._is_class(target):
                return target_name
        return None

    def _is_class(self, node: SchemaNode) -> bool:
        return node.kind == SchemaKind.OBJECT or (node.kind == SchemaKind.COMPOSED and node.composition == CompositionKind.ALL_OF)

    def _own_properties(self, name: str, node: SchemaNode, parent: str | None) -> list[PropertyDef]:
        """Declared properties plus those of allOf mixins (every allOf reference except the superclass)."""
        properties: dict[str, PropertyDef] = {}
        if node.composition == CompositionKind.ALL_OF:
            for member in node.members:
                if not member.is_reference:
                    continue
                mixin = self.registry.canonical_name(member.ref)
                if mixin in (parent, name):
                    continue
                for prop in self._all_properties(mixin, {name}):
                    properties.setdefault(prop.name, prop)
        for prop_name, prop in node.properties.items():
            properties[prop_name] = prop
        return list(properties.values())

    def _all_properties(self, name: str, seen: set[str]) -> list[PropertyDef]:
        """Every property of a schema, ancestors' first."""
        if name in seen:
            return []
        seen = seen | {name}
        node = self.registry.get(name)
        if node is None:
            return []
        properties: dict[str, PropertyDef] = {}
        for member in node.members if node.composition == CompositionKind.ALL_OF else []:
            if member.is_reference:
                for prop in self._all_properties(self.registry.canonical_name(member.ref), seen):
                    properties.setdefault(prop.name, prop)
        for prop_name, prop in node.properties.items():
            properties[prop_name] = prop
        return list(properties.values())

    def _discriminator_view(self, node: SchemaNode) -> DiscriminatorView | None:
        if node.discriminator is None:
            return None
        property_name = node.discriminator.property_name
        return DiscriminatorView(property_name=property_name, field_name=self.naming.property_name(property_name))

    def _subtypes(self, node: SchemaNode) -> tuple[SubtypeView, ...]:
        """Discriminator mapping entries, else the union members or allOf children."""
        if node.discriminator is not None and node.discriminator.resolved_mapping:
            return tuple(
                SubtypeView(self.naming.model_name(target), self.naming.module_name(target), value)
                for value, target in node.discriminator.resolved_mapping.items()
                if target in self._model_set
            )
        if node.composition in (CompositionKind.ONE_OF, CompositionKind.ANY_OF):
            names = [self.registry.canonical_name(member.ref) for member in node.members if member.is_reference]
        else:
            names = list(node.subtypes)
        return tuple(
            SubtypeView(self.naming.model_name(target), self.naming.module_name(target)) for target in dict.fromkeys(names) if target in self._model_set
        )

    def _helper_name(self, name: str, node: SchemaNode) -> str | None:
        """Python decoding helper dispatching on the discriminator."""
        if self.language != TargetLanguage.PYTHON or node.discriminator is None:
            return None
        if (node.kind == SchemaKind.COMPOSED and node.composition != CompositionKind.ALL_OF) or node.subtypes:
            return f"{self.naming.module_name(name)}_from_dict"
        return None

    def _union_interfaces(self) -> dict[str, list[str]]:
        """JVM only: model name -> unions it implements."""
        interfaces: dict[str, list[str]] = {}
        if self.language == TargetLanguage.PYTHON:
            return interfaces
        for name in self._model_names:
            node = self._entries[name]
            if node.kind != SchemaKind.COMPOSED or node.composition == CompositionKind.ALL_OF:
                continue
            for member in node.members:
                if member.is_reference:
                    interfaces.setdefault(self.registry.canonical_name(member.ref), []).append(name)
        return interfaces

    def _interface_names(self, name: str) -> tuple[str, ...]:
        return tuple(self.naming.model_name(union) for union in self._interfaces.get(name, []))

    # Imports

    def _import_lines(self, imports: Iterable[Import | None]) -> tuple[str, ...]:
        lines = []
        for item in sorted({item for item in imports if item is not None}):
            if self.language == TargetLanguage.PYTHON:
                lines.append(f"from {item.module} import {item.name}" if item.name else f"import {item.module}")
            elif self.language == TargetLanguage.JAVA:
                lines.append(f"import {item.module};")
            else:
                lines.append(f"import {item.module}")
        return tuple(lines)

    def _model_import_lines(self, name: str, models: set[str], runtime: set[str] | None = None) -> tuple[tuple[str, ...], tuple[str, ...]]:
        """Imports of other models from a model module: (regular, TYPE_CHECKING only).

        JVM models share a package and need none. Python imports of a model
        that imports this one back are deferred to TYPE_CHECKING, except the
        superclass, which is needed at runtime.
        """
        if self.language != TargetLanguage.PYTHON:
            return (), ()
        runtime = runtime or set()
        regular, checking = [], []
        for other in sorted(models - {name}):
            line = f"from .{self.naming.module_name(other)} import {self.naming.model_name(other)}"
            if other not in runtime and self._reaches(other, name):
                checking.append(line)
            else:
                regular.append(line)
        return tuple(regular), tuple(checking)

    def _reaches(self, start: str, target: str) -> bool:
        dependencies = self._model_dependencies()
        stack, seen = [start], set()
        while stack:
            current = stack.pop()
            if current == target:
                return True
            if current in seen:
                continue
            seen.add(current)
            stack.extend(dependencies.get(current, ()))
        return False

    def _model_dependencies(self) -> dict[str, set[str]]:
        """Model name -> models its module imports."""
        if self._dependencies is None:
            dependencies: dict[str, set[str]] = {}
            for name in self._model_names:
                node = self._entries[name]
                names: set[str] = set()
                for child in node.children():
                    expression, _ = self.mapper.map_type(child)
                    names.update(expression.models)
                parent = self._parent_name(name, node)
                if parent:
                    names.add(parent)
                dependencies[name] = (names & self._model_set) - {name}
            self._dependencies = dependencies
        return self._dependencies

    # APIs

    def api_groups(self) -> list[ApiGroupView]:
        grouped: dict[str, list[Operation]] = {}
        labels: dict[str, str] = {}
        for operation in self.model.api_operations:
            key = self.naming.group_name(operation.group)
            grouped.setdefault(key, []).append(operation)
            labels.setdefault(key, operation.group)
        return [self._group_view(key, labels[key], grouped[key]) for key in sorted(grouped)]

    def _group_view(self, key: str, label: str, operations: list[Operation]) -> ApiGroupView:
        imports: set[Import] = set()
        models: set[str] = set()
        helpers: set[str] = set()
        views = []
        names: dict[str, str] = {}
        for operation in operations:
            view = self._operation_view(operation, imports, models, helpers)
            other = names.setdefault(view.name, operation.operation_id)
            if other != operation.operation_id:
                self.diagnostics.add(
                    NameCollision(
                        f"Operations '{other}' and '{operation.operation_id}' both generate method '{view.name}' in {key}",
                        operation=operation.operation_id,
                    )
                )
            views.append(view)

        package = self.config.package_name
        module = f"{self.naming.group_module(label)}_api"
        if self.language == TargetLanguage.PYTHON:
            server_name, server_module = f"{key}ApiBase", f"{module}_base"
            client_package, server_package = f"{package}.api", f"{package}.server"
            test_name = f"Test{key}Api"
        else:
            server_name, server_module = f"{key}Controller", f"{key}Controller"
            client_package, server_package = f"{package}.api", f"{package}.controller"
            spock = self.config.effective_test_framework() == TestFramework.SPOCK
            test_name = f"{key}ApiSpec" if spock else f"{key}ApiTest"

        if OutputKind.CLIENT in self.config.output_kinds:
            subject, subject_module, subject_package = f"{key}Api", module, client_package
        else:
            subject, subject_module, subject_package = server_name, server_module, server_package
        if self.language == TargetLanguage.PYTHON:
            subject_import = f"{subject_package}.{subject_module}"
        else:
            subject_import = f"{subject_package}.{subject}"

        return ApiGroupView(
            group=label,
            name=f"{key}Api",
            module=module if self.language == TargetLanguage.PYTHON else f"{key}Api",
            package=client_package,
            server_name=server_name,
            server_module=server_module,
            server_package=server_package,
            test_name=test_name,
            test_subject=subject,
            test_subject_import=subject_import,
            model_package=self.model_package,
            header=self.model.generation_comment,
            title=self.model.title,
            version=self.model.version,
            base_url=self.model.servers[0] if self.model.servers else "http://localhost",
            operations=tuple(views),
            imports=self._import_lines(imports) + self._api_model_import_lines(models, helpers),
        )

    def _api_model_import_lines(self, models: set[str], helpers: set[str]) -> tuple[str, ...]:
        if self.language == TargetLanguage.PYTHON:
            names = sorted({self.naming.model_name(name) for name in models} | helpers)
            return (f"from {self.model_package} import {', '.join(names)}",) if names else ()
        terminator = ";" if self.language == TargetLanguage.JAVA else ""
        return tuple(sorted(f"import {self.model_package}.{self.naming.model_name(name)}{terminator}" for name in models))

    def _operation_view(self, operation: Operation, imports: set[Import], models: set[str], helpers: set[str]) -> OperationView:
        used: set[str] = set()
        if self.language == TargetLanguage.PYTHON:
            # Locals of the generated client method
            used.update({"self", "_path", "_params", "_headers", "_cookies", "_body", "_response", "_data", "quote", "warnings", "requests"})

        parameters = [self._parameter_view(parameter, used, imports, models) for parameter in operation.parameters]
        body = None
        if operation.request_body is not None and operation.request_body.schema is not None:
            body = self._body_view(operation, used, imports, models)

        signature = parameters + ([body] if body is not None else [])
        if self.language == TargetLanguage.PYTHON:
            # Parameters without a default must precede those with one
            signature.sort(key=lambda view: not (view.required and view.default is None))
        elif self.config.sort_params_by_required:
            signature.sort(key=lambda view: not view.required)

        responses = []
        success = None
        for status, response in operation.responses.items():
            type_text = None
            if response.schema is not None:
                expression, needed = self.mapper.map_type(response.schema)
                imports |= needed
                models.update(expression.models)
                type_text = expression.text
            view = ResponseView(status, response.description, type_text, response.content_type, status.startswith("2"))
            responses.append(view)
            if success is None and view.success:
                success = (view, response.schema)

        returns_value = success is not None and success[0].type is not None
        decode = "_data"
        if returns_value and self.language == TargetLanguage.PYTHON:
            decode = self._python_decode(success[1], "_data", helpers, models, 0)

        wire_to_name = {view.wire_name: view.name for view in parameters if view.location == ParameterLocation.PATH.value}
        return OperationView(
            operation_id=operation.operation_id,
            name=self.naming.operation_name(operation.operation_id),
            http_method=operation.method.lower(),
            path=operation.path,
            path_expression=self._python_path(operation.path, wire_to_name),
            summary=operation.summary,
            description=operation.description,
            deprecated=operation.deprecated,
            parameters=tuple(signature),
            path_parameters=self._located(parameters, ParameterLocation.PATH),
            query_parameters=self._located(parameters, ParameterLocation.QUERY),
            header_parameters=self._located(parameters, ParameterLocation.HEADER),
            cookie_parameters=self._located(parameters, ParameterLocation.COOKIE),
            body=body,
            responses=tuple(responses),
            return_type=success[0].type if returns_value else VOID_TYPES[self.language],
            returns_value=returns_value,
            decode=decode,
            security=tuple(sorted({scheme for requirement in operation.security for scheme in requirement})),
            tags=tuple(operation.tags),
        )

    def _located(self, parameters: list[ParameterView], location: ParameterLocation) -> tuple[ParameterView, ...]:
        return tuple(view for view in parameters if view.location == location.value)

    def _parameter_view(self, parameter: Parameter, used: set[str], imports: set[Import], models: set[str]) -> ParameterView:
        schema = parameter.schema or SchemaNode(kind=SchemaKind.PRIMITIVE, type_name="string")
        binding = JVM_BINDINGS.get(parameter.location)
        annotations = [f"@{binding}({json.dumps(parameter.name)})"] if binding else []
        return self._argument_view(
            name=self.naming.parameter_name(parameter.name),
            wire_name=parameter.name,
            location=parameter.location,
            schema=schema,
            required=parameter.required,
            annotations=annotations,
            description=parameter.description,
            deprecated=parameter.deprecated,
            used=used,
            imports=imports,
            models=models,
            style=parameter.style,
            explode=parameter.explode,
        )

    def _body_view(self, operation: Operation, used: set[str], imports: set[Import], models: set[str]) -> ParameterView:
        request_body = operation.request_body
        return self._argument_view(
            name="body",
            wire_name="body",
            location=ParameterLocation.BODY,
            schema=request_body.schema,
            required=request_body.required,
            annotations=["@Body"],
            description=request_body.description,
            deprecated=False,
            used=used,
            imports=imports,
            models=models,
            content_type=request_body.content_type,
        )

    def _argument_view(
        self,
        name: str,
        wire_name: str,
        location: ParameterLocation,
        schema: SchemaNode,
        required: bool,
        annotations: list[str],
        description: str | None,
        deprecated: bool,
        used: set[str],
        imports: set[Import],
        models: set[str],
        style: str | None = None,
        explode: bool | None = None,
        content_type: str | None = None,
    ) -> ParameterView:
        expression, needed = self.mapper.map_type(schema)
        imports |= needed
        models.update(expression.models)
        default = self.mapper.default_literal(schema)

        if not required:
            if self.language == TargetLanguage.JAVA:
                if "@Nullable" not in expression.annotations:
                    annotations.append("@Nullable")
                    imports.add(self.mapper.profile.nullable_import)
            else:
                expression, needed = self.mapper.optional(expression)
                imports |= needed
        annotations.extend(annotation for annotation in expression.annotations if annotation not in annotations)

        validation, needed = self.mapper.validation_annotations(schema, required)
        if self.language == TargetLanguage.KOTLIN:
            validation = tuple(annotation.replace("@field:", "@") for annotation in validation)
        annotations.extend(validation)
        imports |= needed

        if self.language != TargetLanguage.JAVA and not required and default is None:
            default = VOID_DEFAULTS[self.language]
        return ParameterView(
            name=self._unique(name, used),
            wire_name=wire_name,
            location=location.value,
            type=expression.text,
            required=required,
            default=default,
            annotations=tuple(annotations) if self.language != TargetLanguage.PYTHON else (),
            description=description,
            deprecated=deprecated,
            style=style,
            explode=explode,
            content_type=content_type,
        )

    def _python_path(self, path: str, wire_to_name: dict[str, str]) -> str:
        """f-string body of the request path, path parameters URL-quoted."""

        def replace(match: re.Match) -> str:
            name = wire_to_name.get(match.group(1))
            if name is None:
                return "{{" + match.group(1) + "}}"
            return "{quote(str(" + name + "), safe='')}"

        return _PATH_TEMPLATE.sub(replace, path.replace('"', '\\"'))

    def _python_decode(self, node: SchemaNode, var: str, helpers: set[str], models: set[str], depth: int) -> str:
        """Expression turning decoded JSON in `var` into the mapped Python type."""
        if depth > 8:
            return var
        resolved = self.registry.deref(node) if node.is_reference else node
        name = self.registry.canonical_name(node.ref) if node.is_reference else resolved.name
        result = var
        if name is not None and name in self._model_set:
            class_name = self.naming.model_name(name)
            helper = self._helper_name(name, resolved)
            if resolved.kind == SchemaKind.ENUM:
                models.add(name)
                result = f"{class_name}({var})"
            elif helper is not None:
                helpers.add(helper)
                result = f"{helper}({var})"
            elif resolved.kind == SchemaKind.COMPOSED and resolved.composition != CompositionKind.ALL_OF:
                result = var
            elif self.serialization == SerializationLibrary.PYDANTIC:
                models.add(name)
                result = f"{class_name}.model_validate({var})"
            else:
                models.add(name)
                result = f"{class_name}.from_dict({var})"
        elif resolved.kind == SchemaKind.ARRAY and resolved.items is not None:
            item = f"item{depth}" if depth else "item"
            inner = self._python_decode(resolved.items, item, helpers, models, depth + 1)
            if inner != item:
                result = f"[{inner} for {item} in {var}]"
        elif resolved.kind == SchemaKind.OBJECT and isinstance(resolved.additional_properties, SchemaNode) and not resolved.properties:
            value = f"value{depth}" if depth else "value"
            inner = self._python_decode(resolved.additional_properties, value, helpers, models, depth + 1)
            if inner != value:
                result = f"{{key: {inner} for key, {value} in {var}.items()}}"
        if result != var and (node.nullable or resolved.nullable):
            result = f"None if {var} is None else {result}"
        return result

    def _unique(self, name: str, used: set[str]) -> str:
        """Disambiguate identifiers within one scope with a numeric suffix."""
        candidate, index = name, 2
        while candidate in used:
            candidate = f"{name}{index}"
            index += 1
        used.add(candidate)
        return candidate
