"""
Dialect adapters: raw schema dictionaries to canonical SchemaNodes.

OpenAPI 3.0 and the JSON-Schema-aligned 3.1 dialect disagree on how
nullability, exclusive bounds, boolean schemas, constants, examples and
type unions are written. Each adapter translates its own spelling into the
single SchemaNode shape; nothing downstream of ingestion looks at the
dialect again.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import unquote

import structlog

from ..errors import Diagnostics, InvalidSchema
from .nodes import CompositionKind, Constraints, Dialect, Discriminator, PropertyDef, SchemaKind, SchemaNode

logger = structlog.get_logger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"

PRIMITIVE_TYPES = {"string", "integer", "number", "boolean"}

CONSTRAINT_KEYWORDS = (
    ("minimum", "minimum"),
    ("maximum", "maximum"),
    ("multipleOf", "multiple_of"),
    ("minLength", "min_length"),
    ("maxLength", "max_length"),
    ("pattern", "pattern"),
    ("minItems", "min_items"),
    ("maxItems", "max_items"),
    ("uniqueItems", "unique_items"),
    ("minProperties", "min_properties"),
    ("maxProperties", "max_properties"),
)

# Use-site annotations a reference node may carry next to its target
REFERENCE_ANNOTATIONS = ("nullable", "default", "has_default", "description", "read_only", "write_only", "deprecated")


def schema_name_from_ref(ref: str) -> str:
    """Extract the component name from a schema $ref.

    "#/components/schemas/Pet" -> "Pet", "common.yaml#/components/schemas/Error" -> "Error"
    """
    fragment = ref.split("#", 1)[1] if "#" in ref else ref
    last = fragment.rstrip("/").split("/")[-1]
    if not last:
        return ref
    return unquote(last).replace("~1", "/").replace("~0", "~")


class SchemaDialect:
    """Shared conversion logic; subclasses override the divergent encodings."""

    dialect: Dialect = Dialect.OAS30

    def __init__(self, diagnostics: Diagnostics):
        self.diagnostics = diagnostics

        # Nested $defs discovered while converting: name -> (raw, path)
        self.extra_definitions: dict[str, tuple[Any, str]] = {}
        self._defs_scopes: list[dict[str, str]] = []

    # Entry point

    def to_node(self, raw: Any, path: str, component_name: str | None = None) -> SchemaNode:
        """Convert a raw schema into a SchemaNode.

        Args:
            raw: The raw schema (dict, or bool in the 3.1 dialect)
            path: Location of the schema in the document
            component_name: Name of the enclosing component, for nested $defs

        Returns:
            The canonical node
        """
        if isinstance(raw, bool):
            return self._boolean_schema(raw, path)
        if not isinstance(raw, dict):
            self.diagnostics.add(InvalidSchema(f"Expected a schema object, got {type(raw).__name__}", path=path))
            return SchemaNode(kind=SchemaKind.PRIMITIVE, type_name="any", source_path=path)

        scope = self._open_defs_scope(raw, path, component_name)
        try:
            return self._convert(raw, path)
        finally:
            if scope:
                self._defs_scopes.pop()

    def _convert(self, raw: dict[str, Any], path: str) -> SchemaNode:
        if "$ref" in raw:
            return self._reference(raw, path)

        nullable, types = self._types(raw, path)

        if "allOf" in raw:
            node = self._all_of(raw, path)
        elif "oneOf" in raw or "anyOf" in raw:
            node = self._union(raw, path)
        elif "enum" in raw:
            node = self._enum(raw, path, types)
        elif len(types) > 1:
            node = SchemaNode(
                kind=SchemaKind.COMPOSED,
                composition=CompositionKind.ANY_OF,
                members=[self._primitive_member(t, raw, f"{path}/type/{t}") for t in types],
                source_path=path,
            )
        else:
            node = self._typed(raw, path, types[0] if types else None, nullable_only=raw.get("type") in ("null", ["null"]))

        if node.is_reference:
            # Collapsed composition: only use-site annotations may be added
            if nullable:
                node.nullable = True
            return node

        node.nullable = node.nullable or nullable
        self._common(node, raw, path)
        return node

    # Divergent encodings (overridden per dialect)

    def _types(self, raw: dict[str, Any], path: str) -> tuple[bool, list[str]]:
        """Return (nullable, non-null type names)."""
        raise NotImplementedError

    def _exclusive_bounds(self, raw: dict[str, Any], constraints: Constraints, path: str) -> None:
        raise NotImplementedError

    def _boolean_schema(self, value: bool, path: str) -> SchemaNode:
        raise NotImplementedError

    def _example(self, raw: dict[str, Any]) -> Any:
        raise NotImplementedError

    def _reference_annotations(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Use-site annotations kept next to a $ref."""
        raise NotImplementedError

    def _is_null_member(self, raw: Any) -> bool:
        """Whether a oneOf/anyOf member only admits null."""
        return False

    def _binary_format(self, raw: dict[str, Any]) -> str | None:
        return None

    # Shared conversion

    def _open_defs_scope(self, raw: dict[str, Any], path: str, component_name: str | None) -> bool:
        defs = raw.get("$defs")
        if not isinstance(defs, dict) or not defs:
            return False
        owner = component_name or (self._defs_scopes[-1].get("__owner__") if self._defs_scopes else "") or "Inline"
        scope = {"__owner__": owner}
        for def_name, def_raw in defs.items():
            qualified = f"{owner}{def_name[:1].upper()}{def_name[1:]}"
            scope[def_name] = qualified
            self.extra_definitions[qualified] = (def_raw, f"{path}/$defs/{def_name}")
        self._defs_scopes.append(scope)
        return True

    def _resolve_ref_name(self, ref: str, path: str) -> str:
        if "/$defs/" in ref or ref.startswith("#/$defs/"):
            def_name = schema_name_from_ref(ref)
            for scope in reversed(self._defs_scopes):
                if def_name in scope:
                    return scope[def_name]
            owner = ref.split("#", 1)[-1]
            if owner.startswith("/components/schemas/"):
                parent = owner[len("/components/schemas/") :].split("/")[0]
                return f"{parent}{def_name[:1].upper()}{def_name[1:]}"
            return def_name
        fragment = ref.split("#", 1)[1] if "#" in ref else ""
        if fragment and not fragment.startswith("/components/schemas/"):
            self.diagnostics.add(InvalidSchema(f"Schema reference '{ref}' does not point at a schema component", path=path))
        return schema_name_from_ref(ref)

    def _reference(self, raw: dict[str, Any], path: str) -> SchemaNode:
        name = self._resolve_ref_name(raw["$ref"], path)
        return SchemaNode.reference(name, source_path=path, **self._reference_annotations(raw))

    def _all_of(self, raw: dict[str, Any], path: str) -> SchemaNode:
        """allOf: references first, inline object parts merged into the node itself."""
        refs: list[SchemaNode] = []
        others: list[SchemaNode] = []
        node = SchemaNode(kind=SchemaKind.COMPOSED, composition=CompositionKind.ALL_OF, source_path=path)

        for index, member_raw in enumerate(raw["allOf"]):
            member = self.to_node(member_raw, f"{path}/allOf/{index}")
            if member.is_reference:
                refs.append(member)
            elif member.kind == SchemaKind.OBJECT:
                self._merge_object_into(node, member)
            elif member.kind == SchemaKind.PRIMITIVE and member.type_name == "any" and not member.properties:
                # Annotation-only member (description, nullable...)
                node.nullable = node.nullable or member.nullable
                if member.description and not node.description:
                    node.description = member.description
            else:
                others.append(member)

        # Sibling properties declared next to allOf
        if "properties" in raw or "required" in raw:
            self._object_fields(node, raw, path)
        if "discriminator" in raw:
            node.discriminator = self._discriminator(raw["discriminator"])

        node.members = refs + others

        if not node.members:
            node.kind = SchemaKind.OBJECT
            node.composition = None
            return node

        if len(node.members) == 1 and refs and not node.properties and node.discriminator is None and node.additional_properties is None:
            # Single-$ref wrapper: collapse into the reference
            ref = refs[0]
            annotations = self._reference_annotations(raw)
            annotations["nullable"] = annotations.get("nullable", False) or node.nullable or ref.nullable
            if "description" not in annotations and ref.description:
                annotations["description"] = ref.description
            return SchemaNode.reference(ref.ref, source_path=path, **annotations)

        return node

    def _merge_object_into(self, target: SchemaNode, source: SchemaNode) -> None:
        for name, prop in source.properties.items():
            if name in target.properties:
                target.properties[name].required = target.properties[name].required or prop.required
                target.properties[name].schema = prop.schema
            else:
                target.properties[name] = prop
        if source.additional_properties is not None:
            target.additional_properties = source.additional_properties
        if source.discriminator is not None and target.discriminator is None:
            target.discriminator = source.discriminator
        target.nullable = target.nullable or source.nullable
        if source.description and not target.description:
            target.description = source.description
        if source.title and not target.title:
            target.title = source.title

    def _union(self, raw: dict[str, Any], path: str) -> SchemaNode:
        keyword = "oneOf" if "oneOf" in raw else "anyOf"
        composition = CompositionKind.ONE_OF if keyword == "oneOf" else CompositionKind.ANY_OF
        if "oneOf" in raw and "anyOf" in raw:
            logger.warning("anyof_ignored_next_to_oneof", path=path)

        nullable = False
        members = []
        for index, member_raw in enumerate(raw[keyword]):
            if self._is_null_member(member_raw):
                nullable = True
                continue
            members.append(self.to_node(member_raw, f"{path}/{keyword}/{index}"))

        discriminator = self._discriminator(raw["discriminator"]) if "discriminator" in raw else None

        if len(members) == 1 and discriminator is None and "properties" not in raw:
            only = members[0]
            only.nullable = only.nullable or nullable
            return only

        node = SchemaNode(
            kind=SchemaKind.COMPOSED,
            composition=composition,
            members=members,
            discriminator=discriminator,
            nullable=nullable,
            source_path=path,
        )
        if "properties" in raw:
            self._object_fields(node, raw, path)
        return node

    def _enum(self, raw: dict[str, Any], path: str, types: list[str]) -> SchemaNode:
        values = list(raw["enum"])
        nullable = None in values
        values = [v for v in values if v is not None]
        type_name = types[0] if types else self._infer_type(values[0] if values else "")
        node = SchemaNode(
            kind=SchemaKind.ENUM,
            type_name=type_name,
            format=raw.get("format"),
            enum_values=values,
            nullable=nullable,
            source_path=path,
        )
        if not values:
            self.diagnostics.add(InvalidSchema("Enum without any non-null value", path=path))
        return node

    def _typed(self, raw: dict[str, Any], path: str, type_name: str | None, nullable_only: bool) -> SchemaNode:
        if type_name is None:
            if nullable_only:
                return SchemaNode(kind=SchemaKind.PRIMITIVE, type_name="null", source_path=path)
            if "properties" in raw or "additionalProperties" in raw:
                type_name = "object"
            elif "items" in raw or "prefixItems" in raw:
                type_name = "array"
            elif "const" in raw:
                type_name = self._infer_type(raw["const"])
            else:
                return SchemaNode(kind=SchemaKind.PRIMITIVE, type_name="any", source_path=path)

        if type_name == "object":
            node = SchemaNode(kind=SchemaKind.OBJECT, source_path=path)
            self._object_fields(node, raw, path)
            if "discriminator" in raw:
                node.discriminator = self._discriminator(raw["discriminator"])
            return node

        if type_name == "array":
            node = SchemaNode(kind=SchemaKind.ARRAY, source_path=path)
            node.items = self._array_items(raw, path)
            return node

        if type_name not in PRIMITIVE_TYPES and type_name != "null":
            self.diagnostics.add(InvalidSchema(f"Unknown type '{type_name}'", path=path))
            type_name = "any"

        return SchemaNode(
            kind=SchemaKind.PRIMITIVE,
            type_name=type_name,
            format=raw.get("format") or self._binary_format(raw),
            source_path=path,
        )

    def _primitive_member(self, type_name: str, raw: dict[str, Any], path: str) -> SchemaNode:
        """One member of a multi-type union ("type": ["string", "integer"])."""
        return self._typed(raw if type_name in ("object", "array") else {"format": raw.get("format")}, path, type_name, False)

    def _array_items(self, raw: dict[str, Any], path: str) -> SchemaNode:
        items = raw.get("items")
        prefix = raw.get("prefixItems")
        if isinstance(items, (dict, bool)) and items is not False:
            return self.to_node(items, f"{path}/items")
        if isinstance(prefix, list) and prefix:
            members = [self.to_node(item, f"{path}/prefixItems/{i}") for i, item in enumerate(prefix)]
            if len(members) == 1:
                return members[0]
            return SchemaNode(kind=SchemaKind.COMPOSED, composition=CompositionKind.ANY_OF, members=members, source_path=f"{path}/prefixItems")
        return SchemaNode(kind=SchemaKind.PRIMITIVE, type_name="any", source_path=f"{path}/items")

    def _object_fields(self, node: SchemaNode, raw: dict[str, Any], path: str) -> None:
        required = raw.get("required") or []
        if not isinstance(required, list):
            self.diagnostics.add(InvalidSchema("'required' must be a list of property names", path=path))
            required = []
        for prop_name, prop_raw in (raw.get("properties") or {}).items():
            prop_schema = self.to_node(prop_raw, f"{path}/properties/{prop_name}")
            node.properties[prop_name] = PropertyDef(name=prop_name, schema=prop_schema, required=prop_name in required)
        for name in required:
            if name in node.properties:
                node.properties[name].required = True

        additional = raw.get("additionalProperties")
        if isinstance(additional, bool):
            node.additional_properties = additional
        elif isinstance(additional, dict):
            node.additional_properties = self.to_node(additional, f"{path}/additionalProperties")

    def _discriminator(self, raw: Any) -> Discriminator:
        if not isinstance(raw, dict):
            return Discriminator()
        mapping = {str(k): self._mapping_target(v) for k, v in (raw.get("mapping") or {}).items()}
        return Discriminator(property_name=raw.get("propertyName", ""), mapping=mapping)

    def _mapping_target(self, value: str) -> str:
        if "#" in value or "/" in value:
            return schema_name_from_ref(value)
        return value

    def _common(self, node: SchemaNode, raw: dict[str, Any], path: str) -> None:
        node.title = raw.get("title", node.title)
        node.description = raw.get("description", node.description)
        node.deprecated = bool(raw.get("deprecated", node.deprecated))
        node.read_only = bool(raw.get("readOnly", node.read_only))
        node.write_only = bool(raw.get("writeOnly", node.write_only))
        if "default" in raw:
            node.default = raw["default"]
            node.has_default = True
        example = self._example(raw)
        if example is not None:
            node.example = example
        if "const" in raw:
            node.const = raw["const"]
            node.has_const = True
        node.extensions.update({k: v for k, v in raw.items() if k.startswith("x-") and k != "x-nullable"})

        # A collapsed union member keeps its own constraints unless the wrapper sets them
        for keyword, attribute in CONSTRAINT_KEYWORDS:
            if keyword in raw:
                setattr(node.constraints, attribute, raw[keyword])
        self._exclusive_bounds(raw, node.constraints, path)

    def _infer_type(self, value: Any) -> str:
        if isinstance(value, bool):
            return "boolean"
        if isinstance(value, int):
            return "integer"
        if isinstance(value, float):
            return "number"
        return "string"


class Oas30Dialect(SchemaDialect):
    """OpenAPI 3.0: `nullable` sibling flag, boolean exclusive bounds, scalar `type`."""

    dialect = Dialect.OAS30

    def _types(self, raw: dict[str, Any], path: str) -> tuple[bool, list[str]]:
        nullable = bool(raw.get("nullable", False) or raw.get("x-nullable", False))
        type_value = raw.get("type")
        if type_value is None:
            return nullable, []
        if isinstance(type_value, list):
            self.diagnostics.add(InvalidSchema("'type' must be a string in OpenAPI 3.0", path=path))
            nullable = nullable or "null" in type_value
            return nullable, [t for t in type_value if t != "null"]
        return nullable, [type_value]

    def _exclusive_bounds(self, raw: dict[str, Any], constraints: Constraints, path: str) -> None:
        for flag, bound, target in (
            ("exclusiveMinimum", "minimum", "exclusive_minimum"),
            ("exclusiveMaximum", "maximum", "exclusive_maximum"),
        ):
            value = raw.get(flag)
            if value is True and raw.get(bound) is not None:
                setattr(constraints, target, raw[bound])
                setattr(constraints, bound, None)
            elif isinstance(value, (int, float)) and not isinstance(value, bool):
                logger.warning("numeric_exclusive_bound_in_oas30", path=path, keyword=flag)
                setattr(constraints, target, value)

    def _boolean_schema(self, value: bool, path: str) -> SchemaNode:
        self.diagnostics.add(InvalidSchema("Boolean schemas are not allowed in OpenAPI 3.0", path=path))
        return SchemaNode(kind=SchemaKind.PRIMITIVE, type_name="any", source_path=path)

    def _example(self, raw: dict[str, Any]) -> Any:
        return raw.get("example")

    def _reference_annotations(self, raw: dict[str, Any]) -> dict[str, Any]:
        # Siblings of $ref are ignored in 3.0, except the widespread nullable extension
        if raw.get("nullable") or raw.get("x-nullable"):
            return {"nullable": True}
        return {}

    def _binary_format(self, raw: dict[str, Any]) -> str | None:
        return None


class Oas31Dialect(SchemaDialect):
    """OpenAPI 3.1: JSON Schema 2020-12 spelling."""

    dialect = Dialect.OAS31

    def _types(self, raw: dict[str, Any], path: str) -> tuple[bool, list[str]]:
        type_value = raw.get("type")
        nullable = False
        if "nullable" in raw:
            logger.warning("nullable_keyword_in_oas31", path=path)
            nullable = bool(raw["nullable"])
        if type_value is None:
            return nullable, []
        if isinstance(type_value, str):
            if type_value == "null":
                return True, []
            return nullable, [type_value]
        types = [t for t in type_value if t != "null"]
        return nullable or "null" in type_value, types

    def _exclusive_bounds(self, raw: dict[str, Any], constraints: Constraints, path: str) -> None:
        for flag, bound, target in (
            ("exclusiveMinimum", "minimum", "exclusive_minimum"),
            ("exclusiveMaximum", "maximum", "exclusive_maximum"),
        ):
            value = raw.get(flag)
            if isinstance(value, bool):
                logger.warning("boolean_exclusive_bound_in_oas31", path=path, keyword=flag)
                if value and raw.get(bound) is not None:
                    setattr(constraints, target, raw[bound])
                    setattr(constraints, bound, None)
            elif isinstance(value, (int, float)):
                setattr(constraints, target, value)

    def _boolean_schema(self, value: bool, path: str) -> SchemaNode:
        return SchemaNode(kind=SchemaKind.BOOLEAN_SCHEMA, boolean_value=value, source_path=path)

    def _example(self, raw: dict[str, Any]) -> Any:
        examples = raw.get("examples")
        if isinstance(examples, list) and examples:
            return examples[0]
        return raw.get("example")

    def _reference_annotations(self, raw: dict[str, Any]) -> dict[str, Any]:
        annotations: dict[str, Any] = {}
        if "description" in raw:
            annotations["description"] = raw["description"]
        if "default" in raw:
            annotations["default"] = raw["default"]
            annotations["has_default"] = True
        if raw.get("readOnly"):
            annotations["read_only"] = True
        if raw.get("writeOnly"):
            annotations["write_only"] = True
        if raw.get("deprecated"):
            annotations["deprecated"] = True
        type_value = raw.get("type")
        if raw.get("nullable") or type_value == "null" or (isinstance(type_value, list) and "null" in type_value):
            annotations["nullable"] = True
        return annotations

    def _is_null_member(self, raw: Any) -> bool:
        return isinstance(raw, dict) and raw.get("type") == "null" and len(raw) == 1

    def _binary_format(self, raw: dict[str, Any]) -> str | None:
        if raw.get("contentEncoding") == "base64":
            return "byte"
        if raw.get("contentMediaType") == "application/octet-stream":
            return "binary"
        return None


DIALECTS: dict[Dialect, type[SchemaDialect]] = {
    Dialect.OAS30: Oas30Dialect,
    Dialect.OAS31: Oas31Dialect,
}
