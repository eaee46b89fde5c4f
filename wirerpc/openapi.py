"""OpenAPI 3.0 specification and TypeScript client generation for RPC methods."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass
class Info:
    """API metadata."""

    title: str
    version: str
    description: Optional[str] = None


@dataclass
class MediaType:
    """A media type with its JSON schema."""

    schema: Any


@dataclass
class RequestBody:
    """Request body definition."""

    required: bool
    content: Dict[str, MediaType]


@dataclass
class Response:
    """Response definition."""

    description: str
    content: Optional[Dict[str, MediaType]] = None


@dataclass
class Operation:
    """An HTTP operation."""

    responses: Dict[str, Response]
    summary: Optional[str] = None
    description: Optional[str] = None
    request_body: Optional[RequestBody] = None


@dataclass
class PathItem:
    """Path item for a single endpoint."""

    post: Optional[Operation] = None


@dataclass
class Components:
    """Reusable components."""

    schemas: Optional[Dict[str, Any]] = None


_FIELD_ORDER = {
    Operation: ("summary", "description", "request_body", "responses"),
}


def _plain(value: Any) -> Any:
    if isinstance(value, MediaType):
        return {"schema": value.schema}
    if is_dataclass(value) and not isinstance(value, type):
        names = _FIELD_ORDER.get(type(value)) or tuple(f.name for f in fields(value))
        result = {}
        for name in names:
            item = getattr(value, name)
            if item is None:
                continue
            result[name] = _plain(item)
        return result
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


@dataclass
class OpenApiSpec:
    """An OpenAPI 3.0 specification."""

    openapi: str
    info: Info
    paths: Dict[str, PathItem]
    components: Optional[Components] = None

    def to_dict(self) -> dict:
        """Return the specification as JSON-ready data, omitting unset optional fields."""
        return _plain(self)


@dataclass
class MethodSchema:
    """Schema information for one RPC method; ``None`` stands for a null schema."""

    name: str
    params: Any = None
    returns: Any = None


def generate_openapi_spec(
    title: str, version: str, method_schemas: Dict[str, MethodSchema]
) -> OpenApiSpec:
    """Build a spec with one POST endpoint per method at ``/<method>``."""
    paths: Dict[str, PathItem] = {}
    for method_name, method_schema in method_schemas.items():
        request_body = None
        if method_schema.params is not None:
            request_body = RequestBody(
                required=True,
                content={"application/json": MediaType(schema=method_schema.params)},
            )
        responses = {
            "200": Response(
                description="Successful response",
                content={"application/json": MediaType(schema=method_schema.returns)},
            )
        }
        paths[f"/{method_name}"] = PathItem(
            post=Operation(
                summary=method_name,
                description=None,
                request_body=request_body,
                responses=responses,
            )
        )
    return OpenApiSpec(
        openapi="3.0.0",
        info=Info(title=title, version=version, description=None),
        paths=paths,
        components=None,
    )


def generate_typescript_client(
    class_name: str, base_url: str, method_schemas: Dict[str, MethodSchema]
) -> str:
    """Generate the source of a fetch-based TypeScript client class."""
    methods = [
        _ts_method(method_name, method_schema)
        for method_name, method_schema in method_schemas.items()
    ]
    body = "\n\n".join(methods)
    return f"""/**
 * Generated TypeScript client
 * Base URL: {base_url}
 */

export class {class_name} {{
  private baseUrl: string;

  constructor(baseUrl: string = "{base_url}") {{
    this.baseUrl = baseUrl;
  }}

  private async request<T>(method: string, params?: unknown): Promise<T> {{
    const response = await fetch(`${{this.baseUrl}}/${{method}}`, {{
      method: 'POST',
      headers: {{
        'Content-Type': 'application/json',
      }},
      body: JSON.stringify(params ?? null),
    }});

    if (!response.ok) {{
      throw new Error(`RPC error: ${{response.statusText}}`);
    }}

    return response.json();
  }}

{body}
}}
"""


def _ts_method(method_name: str, schema: MethodSchema) -> str:
    params_type, params_usage = _ts_params(schema.params)
    return_type = _ts_type(schema.returns)
    if not params_type:
        return (
            f"  async {method_name}(): Promise<{return_type}> {{\n"
            f"    return this.request<{return_type}>('{method_name}');\n"
            f"  }}"
        )
    return (
        f"  async {method_name}({params_type}): Promise<{return_type}> {{\n"
        f"    return this.request<{return_type}>('{method_name}', {params_usage});\n"
        f"  }}"
    )


def _ts_params(schema: Any) -> Tuple[str, str]:
    if schema is None:
        return "", ""
    if isinstance(schema, dict) and schema.get("type") == "array":
        items = schema.get("prefixItems")
        if isinstance(items, list):
            declared = ", ".join(
                f"arg{i}: {_ts_type(item)}" for i, item in enumerate(items)
            )
            usage = ", ".join(f"arg{i}" for i in range(len(items)))
            return declared, f"[{usage}]"
    return f"params: {_ts_type(schema)}", "params"


def _ts_type(schema: Any) -> str:
    if schema is None:
        return "void"
    if isinstance(schema, dict):
        type_str = schema.get("type")
        if isinstance(type_str, str):
            if type_str == "string":
                return "string"
            if type_str in ("integer", "number"):
                return "number"
            if type_str == "boolean":
                return "boolean"
            if type_str == "array":
                if "items" in schema:
                    return f"{_ts_type(schema['items'])}[]"
                return "unknown[]"
            if type_str == "object":
                props = schema.get("properties")
                if isinstance(props, dict):
                    members = ", ".join(
                        f"{key}: {_ts_type(props[key])}" for key in sorted(props)
                    )
                    return f"{{ {members} }}"
                return "Record<string, unknown>"
        variants = schema.get("enum")
        if isinstance(variants, list):
            values = [f"'{v}'" for v in variants if isinstance(v, str)]
            if values:
                return " | ".join(values)
    return "unknown"