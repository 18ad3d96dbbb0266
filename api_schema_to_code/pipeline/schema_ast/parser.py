"""
API description parser that builds the schema graph.

Phase 1 of the pipeline: detect the dialect, convert every schema through
the dialect adapter and collect the operations (paths and 3.1 webhooks).
References between schemas are kept as reference nodes; references to
parameter, request body and response components are resolved here.
"""

from __future__ import annotations

from typing import Any

import structlog

from ...utils import snake_to_pascal_case
from ..errors import Diagnostics, DuplicateOperationId, GenerationError, InvalidSchema, UnresolvedReference, UnsupportedDialect
from .dialects import DIALECTS, SchemaDialect
from .nodes import (
    ApiDocument,
    CompositionKind,
    Dialect,
    Operation,
    Parameter,
    ParameterLocation,
    RequestBody,
    Response,
    SchemaKind,
    SchemaNode,
)

logger = structlog.get_logger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Request/response content types, in order of preference
PREFERRED_CONTENT_TYPES = ("application/json", "application/problem+json", "application/x-www-form-urlencoded", "multipart/form-data")


def detect_dialect(document: dict[str, Any]) -> Dialect:
    """Detect the dialect from the document's version field.

    Raises:
        GenerationError: with an UnsupportedDialect issue for Swagger 2.0 and unknown versions
    """
    if "swagger" in document:
        issue = UnsupportedDialect(f"Swagger {document['swagger']} documents are not supported, convert to OpenAPI 3.x first")
        raise GenerationError([issue], phase="ingestion")
    version = str(document.get("openapi", ""))
    if version.startswith("3.0"):
        return Dialect.OAS30
    if version.startswith("3.1"):
        return Dialect.OAS31
    raise GenerationError([UnsupportedDialect(f"Unsupported OpenAPI version '{version or '<missing>'}'")], phase="ingestion")


def synthesize_operation_id(method: str, path: str) -> str:
    """Build an operation id from method and path.

    "get", "/pets/{id}" -> "getPetsById"
    """
    parts = [method.lower()]
    for segment in path.strip("/").split("/"):
        if not segment:
            continue
        if segment.startswith("{") and segment.endswith("}"):
            parts.append("By" + snake_to_pascal_case(segment[1:-1]))
        else:
            parts.append(snake_to_pascal_case(segment))
    if len(parts) == 1:
        parts.append("Root")
    return "".join(parts)


class DocumentParser:
    """Parses an OpenAPI 3.0/3.1 document into an ApiDocument."""

    def __init__(self, diagnostics: Diagnostics | None = None, sort_operations: bool = True):
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.sort_operations = sort_operations

    def parse(self, document: dict[str, Any], dialect: Dialect | None = None, source: str = "") -> ApiDocument:
        """
        Parse a raw document.

        Args:
            document: The decoded JSON/YAML document
            dialect: Force a dialect instead of detecting it
            source: Label used in log events (usually the file name)

        Returns:
            ApiDocument; structural problems are recorded in self.diagnostics
        """
        if not isinstance(document, dict):
            raise GenerationError([InvalidSchema("Document root must be a mapping", path=source or None)], phase="ingestion")

        if dialect is None or "swagger" in document:
            detected = detect_dialect(document)
        else:
            detected = dialect
            if not str(document.get("openapi", "")).startswith(dialect.value):
                logger.info("dialect_overridden", source=source, declared=document.get("openapi"), dialect=dialect.value)

        adapter = DIALECTS[detected](self.diagnostics)
        info = document.get("info") or {}
        api = ApiDocument(
            title=str(info.get("title", "")),
            version=str(info.get("version", "")),
            dialect=detected,
            source=source,
        )
        components = document.get("components") or {}

        self._parse_schemas(api, adapter, components)

        api.security_schemes = dict(sorted((components.get("securitySchemes") or {}).items()))
        api.servers = [server.get("url", "") for server in document.get("servers") or [] if isinstance(server, dict)]

        default_security = document.get("security") or []
        for path, path_item in (document.get("paths") or {}).items():
            api.operations.extend(self._parse_path_item(adapter, components, path, path_item, default_security, webhook=False))
        for name, path_item in (document.get("webhooks") or {}).items():
            api.operations.extend(self._parse_path_item(adapter, components, name, path_item, default_security, webhook=True))

        if self.sort_operations:
            api.operations.sort(key=lambda op: (op.webhook, op.path, HTTP_METHODS.index(op.method)))

        self._check_operation_ids(api.operations)

        logger.info(
            "document_parsed",
            source=source,
            dialect=detected.value,
            schemas=len(api.schemas),
            operations=len(api.operations),
        )
        return api

    def _parse_schemas(self, api: ApiDocument, adapter: SchemaDialect, components: dict[str, Any]) -> None:
        raw_schemas = components.get("schemas") or {}
        for name in sorted(raw_schemas):
            api.schemas[name] = self._named(adapter.to_node(raw_schemas[name], f"#/components/schemas/{name}", component_name=name), name)

        # Nested $defs discovered while converting; converting one may discover more
        done: set[str] = set()
        while True:
            pending = sorted(set(adapter.extra_definitions) - done)
            if not pending:
                break
            for name in pending:
                done.add(name)
                raw, path = adapter.extra_definitions[name]
                if name in api.schemas:
                    self.diagnostics.add(InvalidSchema(f"Nested definition collides with component '{name}'", schema=name, path=path))
                    continue
                api.schemas[name] = self._named(adapter.to_node(raw, path, component_name=name), name)

        api.schemas = dict(sorted(api.schemas.items()))

    def _named(self, node: SchemaNode, name: str) -> SchemaNode:
        """Name a component. A component that is itself a $ref becomes a single-member allOf."""
        if node.is_reference:
            # "Pet: {$ref: Animal}" keeps a distinct entry that points at the target
            wrapper = SchemaNode(
                kind=SchemaKind.COMPOSED,
                composition=CompositionKind.ALL_OF,
                members=[node],
                source_path=node.source_path,
                description=node.description,
                nullable=node.nullable,
            )
            node = wrapper
        node.name = name
        return node

    def _deref_component(self, raw: Any, section: str, components: dict[str, Any], path: str) -> dict[str, Any] | None:
        """Follow $ref chains into components.<section>."""
        seen: set[str] = set()
        while isinstance(raw, dict) and "$ref" in raw:
            ref = raw["$ref"]
            prefix = f"#/components/{section}/"
            if not ref.startswith(prefix) or ref in seen:
                self.diagnostics.add(UnresolvedReference(f"Cannot resolve '{ref}'", path=path))
                return None
            seen.add(ref)
            target = (components.get(section) or {}).get(ref[len(prefix) :])
            if target is None:
                self.diagnostics.add(UnresolvedReference(f"No component named '{ref[len(prefix):]}' in {section}", path=path))
                return None
            raw = target
        if not isinstance(raw, dict):
            self.diagnostics.add(InvalidSchema(f"Expected a {section} object", path=path))
            return None
        return raw

    def _parse_path_item(
        self,
        adapter: SchemaDialect,
        components: dict[str, Any],
        path: str,
        path_item: Any,
        default_security: list,
        webhook: bool,
    ) -> list[Operation]:
        section = "webhooks" if webhook else "paths"
        base = f"#/{section}/{path}"
        if not isinstance(path_item, dict):
            self.diagnostics.add(InvalidSchema("Path item must be a mapping", path=base))
            return []
        if "$ref" in path_item:
            path_item = self._deref_component(path_item, "pathItems", components, base) or {}

        shared = [self._parse_parameter(adapter, components, raw, f"{base}/parameters/{i}") for i, raw in enumerate(path_item.get("parameters") or [])]

        operations = []
        for method in HTTP_METHODS:
            raw_op = path_item.get(method)
            if raw_op is None:
                continue
            op_path = f"{base}/{method}"
            operation = Operation(
                operation_id=raw_op.get("operationId") or synthesize_operation_id(method, path),
                method=method,
                path=path,
                summary=raw_op.get("summary"),
                description=raw_op.get("description"),
                deprecated=bool(raw_op.get("deprecated", False)),
                tags=list(raw_op.get("tags") or []),
                webhook=webhook,
                source_path=op_path,
            )
            operation.group = operation.tags[0] if operation.tags else "default"
            operation.security = [dict(req) for req in raw_op.get("security", default_security) or []]

            own = [self._parse_parameter(adapter, components, raw, f"{op_path}/parameters/{i}") for i, raw in enumerate(raw_op.get("parameters") or [])]
            own = [p for p in own if p is not None]
            own_keys = {(p.name, p.location) for p in own}
            operation.parameters = [p for p in shared if p is not None and (p.name, p.location) not in own_keys] + own

            if "requestBody" in raw_op:
                operation.request_body = self._parse_request_body(adapter, components, raw_op["requestBody"], f"{op_path}/requestBody")

            statuses = list((raw_op.get("responses") or {}).keys())
            if self.sort_operations:
                statuses.sort(key=lambda s: (str(s) == "default", str(s)))
            for status in statuses:
                raw_response = raw_op["responses"][status]
                response = self._parse_response(adapter, components, str(status), raw_response, f"{op_path}/responses/{status}")
                if response is not None:
                    operation.responses[str(status)] = response

            operations.append(operation)
        return operations

    def _parse_parameter(self, adapter: SchemaDialect, components: dict[str, Any], raw: Any, path: str) -> Parameter | None:
        raw = self._deref_component(raw, "parameters", components, path)
        if raw is None:
            return None
        try:
            location = ParameterLocation(raw.get("in", "query"))
        except ValueError:
            self.diagnostics.add(InvalidSchema(f"Unknown parameter location '{raw.get('in')}'", path=path))
            return None
        if "name" not in raw:
            self.diagnostics.add(InvalidSchema("Parameter without a name", path=path))
            return None

        schema_raw = raw.get("schema")
        if schema_raw is None and isinstance(raw.get("content"), dict) and raw["content"]:
            _, media = self._pick_content(raw["content"])
            schema_raw = media.get("schema")
        schema = adapter.to_node(schema_raw, f"{path}/schema") if schema_raw is not None else None

        return Parameter(
            name=raw["name"],
            location=location,
            schema=schema,
            required=bool(raw.get("required", location == ParameterLocation.PATH)),
            style=raw.get("style"),
            explode=raw.get("explode"),
            description=raw.get("description"),
            deprecated=bool(raw.get("deprecated", False)),
        )

    def _parse_request_body(self, adapter: SchemaDialect, components: dict[str, Any], raw: Any, path: str) -> RequestBody | None:
        raw = self._deref_component(raw, "requestBodies", components, path)
        if raw is None:
            return None
        content = raw.get("content") or {}
        if not content:
            return RequestBody(required=bool(raw.get("required", False)), description=raw.get("description"))
        content_type, media = self._pick_content(content)
        schema_raw = media.get("schema")
        return RequestBody(
            schema=adapter.to_node(schema_raw, f"{path}/content/{content_type}/schema") if schema_raw is not None else None,
            required=bool(raw.get("required", False)),
            content_type=content_type,
            description=raw.get("description"),
        )

    def _parse_response(self, adapter: SchemaDialect, components: dict[str, Any], status: str, raw: Any, path: str) -> Response | None:
        raw = self._deref_component(raw, "responses", components, path)
        if raw is None:
            return None
        response = Response(status=status, description=raw.get("description"))
        content = raw.get("content") or {}
        if content:
            content_type, media = self._pick_content(content)
            response.content_type = content_type
            if media.get("schema") is not None:
                response.schema = adapter.to_node(media["schema"], f"{path}/content/{content_type}/schema")
        return response

    def _pick_content(self, content: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        for content_type in PREFERRED_CONTENT_TYPES:
            if content_type in content:
                return content_type, content[content_type] or {}
        for content_type in content:
            if content_type.endswith("+json"):
                return content_type, content[content_type] or {}
        content_type = next(iter(content))
        return content_type, content[content_type] or {}

    def _check_operation_ids(self, operations: list[Operation]) -> None:
        seen: dict[str, Operation] = {}
        for operation in operations:
            previous = seen.get(operation.operation_id)
            if previous is not None:
                self.diagnostics.add(
                    DuplicateOperationId(
                        f"Operation id '{operation.operation_id}' is used by {previous.method.upper()} {previous.path} "
                        f"and {operation.method.upper()} {operation.path}",
                        operation=operation.operation_id,
                    )
                )
                continue
            seen[operation.operation_id] = operation
