"""
Node definitions for the API schema graph.

These nodes represent the parsed API description after dialect
unification. The resolution passes mutate them in place (or substitute
references for them) until the generation model is frozen for emission.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import InvalidSchema


class SchemaKind(str, Enum):
    """Shape of a schema node."""

    OBJECT = "object"
    ARRAY = "array"
    PRIMITIVE = "primitive"
    ENUM = "enum"
    COMPOSED = "composed"
    BOOLEAN_SCHEMA = "boolean-schema"
    REFERENCE = "reference"


class CompositionKind(str, Enum):
    """Composition keyword of a composed node."""

    ALL_OF = "allOf"
    ONE_OF = "oneOf"
    ANY_OF = "anyOf"


class Dialect(str, Enum):
    """Supported schema-description dialects."""

    OAS30 = "3.0"
    OAS31 = "3.1"


class ParameterLocation(str, Enum):
    """Where a parameter travels in the request."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"


@dataclass
class Constraints:
    """Validation constraints. Exclusive bounds are always numeric."""

    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: float | None = None
    exclusive_maximum: float | None = None
    multiple_of: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False
    min_properties: int | None = None
    max_properties: int | None = None

    def as_tuple(self) -> tuple:
        return (
            self.minimum,
            self.maximum,
            self.exclusive_minimum,
            self.exclusive_maximum,
            self.multiple_of,
            self.min_length,
            self.max_length,
            self.pattern,
            self.min_items,
            self.max_items,
            self.unique_items,
            self.min_properties,
            self.max_properties,
        )

    def is_empty(self) -> bool:
        return self.as_tuple() == Constraints().as_tuple()


@dataclass
class Discriminator:
    """Discriminator of a polymorphic schema."""

    property_name: str = ""

    # As declared: discriminator value -> schema name
    mapping: dict[str, str] = field(default_factory=dict)

    # Set by the discriminator resolver: discriminator value -> registry name
    resolved_mapping: dict[str, str] | None = None


@dataclass(eq=False)
class SchemaNode:
    """Canonical representation of a data shape.

    Nodes compare and hash by identity; structural comparison lives in the
    registry module.
    """

    kind: SchemaKind = SchemaKind.OBJECT

    # Registry name; None for anonymous (inline) nodes
    name: str | None = None

    # Target name of a reference node
    ref: str | None = None

    # Primitive type: "string", "integer", "number", "boolean", "null", "any"
    type_name: str | None = None
    format: str | None = None

    properties: dict[str, PropertyDef] = field(default_factory=dict)
    additional_properties: SchemaNode | bool | None = None
    items: SchemaNode | None = None

    composition: CompositionKind | None = None
    members: list[SchemaNode] = field(default_factory=list)
    discriminator: Discriminator | None = None

    enum_values: list[Any] = field(default_factory=list)
    const: Any = None
    has_const: bool = False

    constraints: Constraints = field(default_factory=Constraints)
    nullable: bool = False
    default: Any = None
    has_default: bool = False

    # For boolean schemas: True accepts anything, False accepts nothing
    boolean_value: bool | None = None

    title: str | None = None
    description: str | None = None
    deprecated: bool = False
    read_only: bool = False
    write_only: bool = False
    example: Any = None

    # x-* extensions
    extensions: dict[str, Any] = field(default_factory=dict)

    # Original location in the document (for error messages)
    source_path: str = ""

    # Names of schemas extending this one, filled by the discriminator resolver
    subtypes: list[str] = field(default_factory=list)

    @staticmethod
    def reference(name: str, source_path: str = "", **annotations: Any) -> SchemaNode:
        """Create a reference node. Only use-site annotations may accompany the name."""
        node = SchemaNode(kind=SchemaKind.REFERENCE, ref=name, source_path=source_path)
        for key, value in annotations.items():
            setattr(node, key, value)
        node.check_invariant()
        return node

    @property
    def is_reference(self) -> bool:
        return self.kind == SchemaKind.REFERENCE

    @property
    def is_anonymous(self) -> bool:
        return self.name is None and not self.is_reference

    @property
    def required_names(self) -> list[str]:
        return [name for name, prop in self.properties.items() if prop.required]

    def constant_value(self) -> tuple[bool, Any]:
        """Return (True, value) when the node only admits one literal."""
        if self.has_const:
            return True, self.const
        if self.kind == SchemaKind.ENUM and len(self.enum_values) == 1:
            return True, self.enum_values[0]
        return False, None

    def children(self) -> list[SchemaNode]:
        """Direct child nodes, in a stable order."""
        result = [prop.schema for prop in self.properties.values()]
        if isinstance(self.additional_properties, SchemaNode):
            result.append(self.additional_properties)
        if self.items is not None:
            result.append(self.items)
        result.extend(self.members)
        return result

    def walk(self) -> Iterator[SchemaNode]:
        """Yield this node and its descendants, stopping at other named nodes."""
        stack = [self]
        seen: set[int] = set()
        while stack:
            node = stack.pop()
            if id(node) in seen:
                continue
            seen.add(id(node))
            yield node
            stack.extend(child for child in reversed(node.children()) if child.name is None or child is self)

    def check_invariant(self) -> None:
        """A node is either a reference or a concrete definition, never both."""
        if not self.is_reference:
            if self.ref is not None:
                raise InvalidSchema("Concrete schema carries a reference target", schema=self.name, path=self.source_path or None)
            return
        if not self.ref:
            raise InvalidSchema("Reference without a target name", path=self.source_path or None)
        if (
            self.properties
            or self.items is not None
            or self.members
            or self.enum_values
            or self.type_name is not None
            or self.additional_properties is not None
            or self.discriminator is not None
        ):
            raise InvalidSchema(f"Reference to '{self.ref}' also carries a definition", path=self.source_path or None)


@dataclass
class PropertyDef:
    """A property of an object schema."""

    name: str = ""
    schema: SchemaNode | None = None
    required: bool = False


@dataclass
class Parameter:
    """An operation parameter."""

    name: str = ""
    location: ParameterLocation = ParameterLocation.QUERY
    schema: SchemaNode | None = None
    required: bool = False
    style: str | None = None
    explode: bool | None = None
    description: str | None = None
    deprecated: bool = False


@dataclass
class RequestBody:
    """The request payload of an operation."""

    schema: SchemaNode | None = None
    required: bool = False
    content_type: str = "application/json"
    description: str | None = None


@dataclass
class Response:
    """One response of an operation."""

    status: str = "default"
    description: str | None = None
    schema: SchemaNode | None = None
    content_type: str | None = None


@dataclass
class Operation:
    """An HTTP operation."""

    operation_id: str = ""
    method: str = "get"
    path: str = "/"
    parameters: list[Parameter] = field(default_factory=list)
    request_body: RequestBody | None = None

    # Ordered status code -> response
    responses: dict[str, Response] = field(default_factory=dict)

    # Each requirement maps a security scheme name to its scopes
    security: list[dict[str, list[str]]] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    # Grouping key: first tag, else "default"
    group: str = "default"

    summary: str | None = None
    description: str | None = None
    deprecated: bool = False

    # True for 3.1 webhooks: models are generated, APIs are not
    webhook: bool = False

    source_path: str = ""

    def schema_sites(self) -> list[tuple[str, SchemaNode]]:
        """Every top-level schema of the operation with a readable location."""
        sites = []
        for param in self.parameters:
            if param.schema is not None:
                sites.append((f"Operation {self.operation_id}, parameter {param.name}", param.schema))
        if self.request_body is not None and self.request_body.schema is not None:
            sites.append((f"Operation {self.operation_id}, request body", self.request_body.schema))
        for status, response in self.responses.items():
            if response.schema is not None:
                sites.append((f"Operation {self.operation_id}, response {status}", response.schema))
        return sites


@dataclass
class ApiDocument:
    """A parsed API description: the raw schema/operation graph."""

    title: str = ""
    version: str = ""
    dialect: Dialect = Dialect.OAS30

    # Ordered component name -> schema
    schemas: dict[str, SchemaNode] = field(default_factory=dict)
    operations: list[Operation] = field(default_factory=list)

    security_schemes: dict[str, dict[str, Any]] = field(default_factory=dict)
    servers: list[str] = field(default_factory=list)

    # Where the document came from (file name or caller supplied label)
    source: str = ""
