"""Normalise a gateway-exported OpenAPI document for the documentation platform.

API-gateway exports carry vendor extensions the platform does not
understand and, for HTTP APIs with a Lambda proxy, describe routes with an
``x-amazon-apigateway-any-method`` construct instead of real operations.
:func:`transform_document` rewrites such a document into plain OpenAPI:

* vendor root extensions and vendor tags are dropped;
* any-method routes become a ``post`` and a ``get`` operation;
* vendor operation and parameter extensions are stripped;
* path items left without any operation are omitted;
* ``{basePath}`` server templates are collapsed to their default.

Each step inspects only the structure it needs and leaves malformed input
untouched, so a document missing ``paths`` or with a non-list ``tags``
still transforms without error.

:func:`serialize_document` and :func:`fingerprint` produce the exact text
pushed to the platform and the hash recorded in the state file.
"""

from __future__ import annotations

import copy
import hashlib
import json
from typing import Any

ROOT_EXTENSIONS = (
    "x-amazon-apigateway-cors",
    "x-amazon-apigateway-importexport-version",
)
RESERVED_TAG_PREFIXES = ("aws:", "httpapi:")
ANY_METHOD = "x-amazon-apigateway-any-method"
OPERATION_EXTENSIONS = (
    "x-amazon-apigateway-integration",
    "x-amazon-apigateway-request-validator",
)
PARAMETER_EXTENSION = "x-amazon-apigateway-param"
HTTP_METHODS = ("get", "post", "put", "patch", "delete", "head", "options")


def transform_document(document: dict[str, Any]) -> dict[str, Any]:
    """Return a normalised deep copy of *document*.

    Args:
        document: Raw OpenAPI document as exported by the gateway. It is
            never mutated.

    Returns:
        The transformed document.
    """
    transformed = copy.deepcopy(document)

    for field in ROOT_EXTENSIONS:
        transformed.pop(field, None)

    _filter_tags(transformed)
    _rewrite_paths(transformed)
    _collapse_base_path(transformed)
    return transformed


def _filter_tags(document: dict[str, Any]) -> None:
    tags = document.get("tags")
    if not isinstance(tags, list):
        return
    document["tags"] = [
        tag
        for tag in tags
        if isinstance(tag, dict)
        and isinstance(tag.get("name"), str)
        and tag["name"]
        and not tag["name"].startswith(RESERVED_TAG_PREFIXES)
    ]


def _rewrite_paths(document: dict[str, Any]) -> None:
    paths = document.get("paths")
    if not isinstance(paths, dict):
        return

    rewritten: dict[str, Any] = {}
    for path, item in paths.items():
        if not isinstance(item, dict):
            continue

        parameters = item.get("parameters")
        if not isinstance(parameters, list):
            parameters = None

        clean: dict[str, Any] = {}
        if ANY_METHOD in item:
            clean.update(_proxy_operations(path, item[ANY_METHOD], parameters or []))
        else:
            for method, operation in item.items():
                if method.lower() in HTTP_METHODS and isinstance(operation, dict):
                    clean[method] = {
                        k: v for k, v in operation.items() if k not in OPERATION_EXTENSIONS
                    }

        # Path-level parameters alone do not keep a path alive.
        if not clean:
            continue

        if parameters is not None:
            clean["parameters"] = [
                {k: v for k, v in param.items() if k != PARAMETER_EXTENSION}
                if isinstance(param, dict)
                else param
                for param in parameters
            ]
        rewritten[path] = clean

    document["paths"] = rewritten


def _proxy_operations(
    path: str, any_method: Any, parameters: list[Any]
) -> dict[str, Any]:
    """Synthesise ``post`` and ``get`` operations from an any-method route."""
    responses = any_method.get("responses") if isinstance(any_method, dict) else None
    if not responses:
        responses = {
            "200": {"description": "Success response"},
            "500": {"description": "Error response"},
        }

    summary = f"Proxy route: {path}"
    description = "Generic proxy route that forwards requests to the backing function"

    post = {
        "summary": summary,
        "description": description,
        "parameters": copy.deepcopy(parameters),
        "responses": copy.deepcopy(responses),
        "requestBody": {
            "description": "Request body",
            "content": {"application/json": {"schema": {"type": "object"}}},
        },
    }
    get = {
        "summary": summary,
        "description": description,
        "parameters": copy.deepcopy(parameters)
        + [
            {
                "name": "query",
                "in": "query",
                "description": "Query parameters",
                "required": False,
                "schema": {"type": "object"},
            }
        ],
        "responses": copy.deepcopy(responses),
    }
    return {"post": post, "get": get}


def _collapse_base_path(document: dict[str, Any]) -> None:
    servers = document.get("servers")
    if not isinstance(servers, list):
        return

    for server in servers:
        if not isinstance(server, dict):
            continue
        variables = server.get("variables")
        url = server.get("url")
        if not isinstance(variables, dict) or not isinstance(url, str):
            continue
        base_path = variables.get("basePath")
        if not isinstance(base_path, dict):
            continue
        default = base_path.get("default") or ""
        if default and "{basePath}" in url:
            server["url"] = url.replace("{basePath}", str(default), 1)
            del variables["basePath"]
            if not variables:
                del server["variables"]


def serialize_document(document: dict[str, Any]) -> str:
    """Serialise *document* to the text stored as the spec's root file.

    Key order follows the document, so the same input always yields the
    same bytes.
    """
    return json.dumps(document, indent=2, ensure_ascii=False)


def fingerprint(content: str) -> str:
    """Hex SHA-256 of the UTF-8 encoded *content*."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()
